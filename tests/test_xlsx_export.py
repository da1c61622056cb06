"""
XLSX 导出测试
作者: Tom
创建时间: 2025-11-21T16:40:58+08:00
"""

import io
from datetime import date, datetime

import pandas as pd
from openpyxl import load_workbook

from reports.xlsx import build_export_workbook, export_filename
from sisreg.models import FilterRequest, IndexType, QueryMode


def _sheets(content: bytes):
    return pd.read_excel(io.BytesIO(content), sheet_name=None, dtype=str, keep_default_na=False)


def test_headers_are_union_of_fields_and_missing_values_blank():
    records = [
        {"no_usuario": "Maria", "codigo_classificacao_risco": 1},
        {"no_usuario": None, "telefone": "22 9999-0000"},
        {"sigla_situacao": "P"},
    ]
    request = FilterRequest(index_type=IndexType.QUEUE_REQUEST, mode=QueryMode.QUEUE)
    sheets = _sheets(build_export_workbook(records, request, total_available=3))

    dados = sheets["Dados"]
    assert list(dados.columns) == ["codigo_classificacao_risco", "no_usuario", "sigla_situacao", "telefone"]
    assert len(dados) == 3
    assert dados.iloc[0]["codigo_classificacao_risco"] == "1"
    assert dados.iloc[1]["no_usuario"] == ""
    assert dados.iloc[2]["telefone"] == ""


def test_filter_sheet_defaults_and_values():
    request = FilterRequest(
        index_type=IndexType.SCHEDULING,
        mode=QueryMode.SCHEDULED,
        date_start="2024-01-01",
        risk_filter=["0", "1"],
    )
    content = build_export_workbook(
        [{"status_solicitacao": "X"}], request, total_available=50, exported_at=datetime(2024, 2, 3, 4, 5, 6)
    )
    filtros = _sheets(content)["Filtros"]
    values = dict(zip(filtros["Parâmetro"], filtros["Valor"]))
    assert values["Tipo de Índice"] == "Marcações Ambulatoriais"
    assert values["Modo"] == "agendadas"
    assert values["Data Início"] == "2024-01-01"
    assert values["Data Fim"] == "Não informado"
    assert values["Busca Procedimento"] == "Nenhum"
    assert values["Filtro Risco"] == "0, 1"
    assert values["Filtro Situação"] == "Todos"
    assert values["Central Reguladora"] == "Padrão"
    assert values["Total de Registros"] == "50"
    assert values["Registros Exportados"] == "1"
    assert values["Data da Exportação"] == "03/02/2024, 04:05:06"


def test_summary_sheet_sections():
    records = [
        {"status_solicitacao": "A", "nome_unidade_executante": "U1", "descricao_interna_procedimento": "P1", "codigo_classificacao_risco": "1"},
        {"status_solicitacao": "A", "nome_unidade_executante": "U1", "nome_grupo_procedimento": "G1"},
        {"status_solicitacao": "B"},
        {"sigla_situacao": "P"},
    ]
    request = FilterRequest(mode=QueryMode.QUICK)
    resumo = _sheets(build_export_workbook(records, request, total_available=4))["Resumo"]

    assert list(resumo.columns) == ["Categoria", "Item", "Quantidade", "Percentual"]
    rows = [tuple(r) for r in resumo.itertuples(index=False)]
    assert ("Status", "A", "2", "50.0%") in rows
    assert ("Status", "N/A", "1", "25.0%") in rows
    assert ("Unidade", "U1", "2", "100.0%") in rows
    assert ("Procedimento", "P1", "1", "50.0%") in rows
    assert ("Risco", "N/A", "3", "75.0%") in rows


def test_empty_export_only_has_filter_sheet():
    request = FilterRequest(mode=QueryMode.QUICK)
    workbook = load_workbook(io.BytesIO(build_export_workbook([], request, total_available=0)))
    assert workbook.sheetnames == ["Filtros"]


def test_sheet_order():
    request = FilterRequest(mode=QueryMode.QUICK)
    workbook = load_workbook(io.BytesIO(build_export_workbook([{"a": 1}], request, total_available=1)))
    assert workbook.sheetnames == ["Dados", "Filtros", "Resumo"]


def test_export_filename():
    name = export_filename(IndexType.QUEUE_REQUEST, QueryMode.QUEUE, date(2024, 5, 6))
    assert name == "sisreg_solicitacao_fila_2024-05-06.xlsx"
