"""
LLM 分析上下文
将一批记录汇总为结构化文本（状态分布、单位与流程排行、风险分布）

作者: Tom
创建时间: 2025-11-21T10:26:03+08:00
"""

from typing import Any, Dict, List, Optional

from analytics.aggregation import count_by, percentage
from sisreg.mapper import RecordMapper
from sisreg.models import IndexType, QueryMode


_mapper = RecordMapper()

CONTEXT_LABELS: Dict[IndexType, str] = {
    IndexType.SCHEDULING: "marcação ambulatorial",
    IndexType.QUEUE_REQUEST: "solicitação ambulatorial (fila)",
}

TOP_CONTEXT = 10


def _first_field(record: Dict[str, Any], fields) -> Optional[str]:
    return _mapper.first_present(record, fields)


def _status(record: Dict[str, Any]) -> str:
    return _first_field(record, ("status_solicitacao", "sigla_situacao")) or RecordMapper.NOT_AVAILABLE


def _unit(record: Dict[str, Any]) -> Optional[str]:
    return _first_field(record, ("nome_unidade_executante", "nome_unidade_solicitante"))


def build_insight_context(
    records: List[Dict[str, Any]],
    index_type: IndexType,
    mode: QueryMode,
    date_start: Optional[str] = None,
    date_end: Optional[str] = None,
) -> str:
    """生成 LLM 用户消息中的数据摘要"""
    total = len(records)
    status_counts = count_by(records, _status)
    unit_counts = count_by(records, _unit)
    procedure_counts = count_by(records, _mapper.procedure_name)
    risk_counts = count_by(records, _mapper.risk_code)

    lines = [
        f"Análise de dados de {CONTEXT_LABELS[index_type]} do SISREG (Sistema de Regulação) - Macaé/RJ.",
        f"Tipo de consulta: {mode.value}",
        f"Período: {date_start or 'N/A'} a {date_end or 'N/A'}",
        f"Total de registros: {total}",
        "",
        "Distribuição por Status:",
    ]
    lines.extend(f"- {name}: {count} ({percentage(count, total):.1f}%)" for name, count in status_counts)
    lines += ["", "Top 10 Unidades:"]
    lines.extend(f"- {name}: {count}" for name, count in unit_counts[:TOP_CONTEXT])
    lines += ["", "Top 10 Procedimentos:"]
    lines.extend(f"- {name}: {count}" for name, count in procedure_counts[:TOP_CONTEXT])
    lines += ["", "Distribuição por Classificação de Risco:"]
    lines.extend(f"- Risco {name}: {count} ({percentage(count, total):.1f}%)" for name, count in risk_counts)
    return "\n".join(lines)


__all__ = ["build_insight_context", "CONTEXT_LABELS"]
