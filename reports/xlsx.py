"""
XLSX 导出
生成三个工作表: Dados（记录明细）、Filtros（查询参数）、Resumo（分类汇总）

作者: Tom
创建时间: 2025-11-21T15:33:47+08:00
"""

import io
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd
from loguru import logger

from analytics.aggregation import count_by
from sisreg.constants import INDEX_LABELS, STATUS_FIELDS
from sisreg.mapper import RecordMapper
from sisreg.models import FilterRequest, IndexType, QueryMode


_mapper = RecordMapper()

DATA_SHEET = "Dados"
FILTER_SHEET = "Filtros"
SUMMARY_SHEET = "Resumo"

SUMMARY_COLUMNS = ["Categoria", "Item", "Quantidade", "Percentual"]


def export_filename(index_type: IndexType, mode: QueryMode, day: Optional[date] = None) -> str:
    day = day or date.today()
    return f"sisreg_{index_type.value}_{mode.value}_{day.strftime('%Y-%m-%d')}.xlsx"


def _data_frame(records: List[Dict[str, Any]]) -> pd.DataFrame:
    headers = sorted({key for record in records for key in record.keys()})
    rows = [[_mapper.cell_value(record.get(h)) for h in headers] for record in records]
    return pd.DataFrame(rows, columns=headers)


def _join_or(values: Optional[Sequence[str]], default: str) -> str:
    return ", ".join(values) if values else default


def _filter_frame(
    request: FilterRequest,
    total_available: int,
    exported: int,
    exported_at: datetime,
) -> pd.DataFrame:
    rows: List[Tuple[str, str]] = [
        ("Tipo de Índice", INDEX_LABELS[request.index_type]),
        ("Modo", request.mode.value),
        ("Data Início", request.date_start or "Não informado"),
        ("Data Fim", request.date_end or "Não informado"),
        ("Busca Procedimento", request.procedure_search or "Nenhum"),
        ("Filtro Risco", _join_or(request.risk_filter, "Todos")),
        ("Filtro Situação", _join_or(request.status_filter, "Todos")),
        ("Central Reguladora", _join_or(request.central_codes, "Padrão")),
        ("Total de Registros", str(total_available)),
        ("Registros Exportados", str(exported)),
        ("Data da Exportação", exported_at.strftime("%d/%m/%Y, %H:%M:%S")),
    ]
    return pd.DataFrame(rows, columns=["Parâmetro", "Valor"])


def _summary_frame(records: List[Dict[str, Any]], index_type: IndexType) -> pd.DataFrame:
    status_field = STATUS_FIELDS[index_type]
    sections = [
        ("Status", count_by(records, lambda r: _mapper.first_present(r, (status_field,)) or RecordMapper.NOT_AVAILABLE)),
        ("Unidade", count_by(records, lambda r: _mapper.unit_name(r, index_type))),
        ("Procedimento", count_by(records, _mapper.procedure_name)),
        ("Risco", count_by(records, _mapper.risk_code)),
    ]

    rows: List[List[Any]] = []
    for category, pairs in sections:
        section_total = sum(count for _, count in pairs)
        for name, count in pairs:
            rows.append([category, name, count, f"{count / section_total * 100:.1f}%"])
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


def build_export_workbook(
    records: List[Dict[str, Any]],
    request: FilterRequest,
    total_available: int,
    exported_at: Optional[datetime] = None,
) -> bytes:
    """
    生成 xlsx 文件内容

    Args:
        records: 导出的记录
        request: 查询参数（写入 Filtros 工作表）
        total_available: 远程报告的总数
        exported_at: 导出时间，默认当前时间

    Returns:
        xlsx 字节流；records 为空时仅包含 Filtros 工作表
    """
    exported_at = exported_at or datetime.now()
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        if records:
            _data_frame(records).to_excel(writer, sheet_name=DATA_SHEET, index=False)
        _filter_frame(request, total_available, len(records), exported_at).to_excel(
            writer, sheet_name=FILTER_SHEET, index=False
        )
        if records:
            _summary_frame(records, request.index_type).to_excel(writer, sheet_name=SUMMARY_SHEET, index=False)

    logger.info(f"XLSX: 导出 {len(records)} 条记录（可用 {total_available}）")
    return buffer.getvalue()


__all__ = [
    "build_export_workbook",
    "export_filename",
    "DATA_SHEET",
    "FILTER_SHEET",
    "SUMMARY_SHEET",
]
