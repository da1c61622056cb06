"""
仪表盘聚合引擎
对一批原始记录按单位、流程、风险、状态计数，并生成自动洞察文本

作者: Tom
创建时间: 2025-11-20T14:18:55+08:00
"""

from collections import Counter
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from sisreg.constants import HIGH_RISK_CODES
from sisreg.mapper import RecordMapper
from sisreg.models import AggregationResult, IndexType, NamedCount


TOP_N = 15

# 洞察告警阈值（百分比，严格大于）
CONCENTRATION_ALERT_PCT = 40.0
HIGH_RISK_ALERT_PCT = 30.0

EMPTY_DATASET_MESSAGE = "Nenhum dado para análise."

_mapper = RecordMapper()


class EmptyDatasetError(Exception):
    """聚合输入为空"""

    def __init__(self, message: str = EMPTY_DATASET_MESSAGE):
        super().__init__(message)


def count_by(
    records: Iterable[Dict[str, Any]],
    key_fn: Callable[[Dict[str, Any]], Optional[str]],
) -> List[Tuple[str, int]]:
    """
    按 key_fn 计数，key 为 None 的记录不计入

    Returns:
        [(key, count)]，按计数降序，计数相同保持首次出现顺序
    """
    counter: Counter = Counter()
    for record in records:
        key = key_fn(record)
        if key is not None:
            counter[key] += 1
    return counter.most_common()


def percentage(count: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round(count / total * 100, 1)


def format_int(value: int) -> str:
    """千分位使用点号（pt-BR）"""
    return f"{value:,}".replace(",", ".")


def _named(pairs: Sequence[Tuple[str, int]]) -> List[NamedCount]:
    return [NamedCount(name=name, value=value) for name, value in pairs]


def filter_by_procedure(records: List[Dict[str, Any]], needles: Optional[List[str]]) -> List[Dict[str, Any]]:
    """客户端流程过滤：流程名称包含任一关键字（不区分大小写）"""
    terms = [n.lower() for n in (needles or []) if n and n.strip()]
    if not terms:
        return records

    def matches(record: Dict[str, Any]) -> bool:
        name = _mapper.procedure_name(record)
        if name is None:
            return False
        lowered = name.lower()
        return any(t in lowered for t in terms)

    return [r for r in records if matches(r)]


def resolve_procedure_description(record: Dict[str, Any]) -> str:
    return _mapper.resolve_procedure_description(record)


def build_auto_insights(
    total: int,
    total_unfiltered: int,
    by_unit: Sequence[Tuple[str, int]],
    by_procedure: Sequence[Tuple[str, int]],
    by_risk: Sequence[Tuple[str, int]],
    by_status: Sequence[Tuple[str, int]],
) -> List[str]:
    """按固定顺序生成洞察文本"""
    insights = [f"**Total de registros:** {format_int(total)} de {format_int(total_unfiltered)} disponíveis"]

    if by_unit:
        name, count = by_unit[0]
        share = percentage(count, total)
        insights.append(f"**Unidade com mais registros:** {name} ({count} — {share:.1f}%)")
        if share > CONCENTRATION_ALERT_PCT:
            insights.append(f"⚠️ **Alerta de concentração:** {name} concentra {share:.1f}% dos registros")

    if by_procedure:
        name, count = by_procedure[0]
        insights.append(f"**Procedimento mais frequente:** {name} ({count} registros)")

    risk_total = sum(count for _, count in by_risk)
    high_risk = sum(count for code, count in by_risk if code in HIGH_RISK_CODES)
    if high_risk > 0:
        share = percentage(high_risk, risk_total)
        insights.append(f"**Risco alto (Emergência + Urgência):** {high_risk} registros ({share:.1f}%)")
        if share > HIGH_RISK_ALERT_PCT:
            insights.append(
                f"⚠️ **Alerta:** {share:.1f}% dos registros são de risco alto — pode indicar gargalo na regulação"
            )

    if by_status:
        name, count = by_status[0]
        insights.append(f"**Status predominante:** {name} ({count} — {percentage(count, total):.1f}%)")

    return insights


def aggregate_records(
    records: List[Dict[str, Any]],
    index_type: IndexType,
    total_unfiltered: int,
) -> AggregationResult:
    """
    聚合一批记录

    Args:
        records: 已经过客户端过滤的记录
        index_type: 实体类型，决定单位字段与状态字段
        total_unfiltered: 远程报告的总数

    Raises:
        EmptyDatasetError: records 为空
    """
    if not records:
        raise EmptyDatasetError()

    total = len(records)
    by_unit = count_by(records, lambda r: _mapper.unit_name(r, index_type))
    by_procedure = count_by(records, _mapper.procedure_name)
    by_risk = count_by(records, _mapper.risk_code)
    by_status = count_by(records, lambda r: _mapper.status(r, index_type))

    logger.debug(
        f"Aggregation: {index_type.value} 记录={total} 单位={len(by_unit)} "
        f"流程={len(by_procedure)} 状态={len(by_status)}"
    )

    return AggregationResult(
        total=total,
        total_unfiltered=total_unfiltered,
        by_unit=_named(by_unit[:TOP_N]),
        by_procedure=_named(by_procedure[:TOP_N]),
        by_risk=_named(by_risk),
        by_status=_named(by_status),
        all_procedures=sorted(name for name, _ in by_procedure),
        auto_insights=build_auto_insights(total, total_unfiltered, by_unit, by_procedure, by_risk, by_status),
    )


__all__ = [
    "EmptyDatasetError",
    "EMPTY_DATASET_MESSAGE",
    "count_by",
    "percentage",
    "format_int",
    "filter_by_procedure",
    "resolve_procedure_description",
    "build_auto_insights",
    "aggregate_records",
]
