"""
管理指标：平均等待天数、最常申请流程

作者: Tom
创建时间: 2025-11-20T16:02:41+08:00
"""

import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sisreg.mapper import RecordMapper
from sisreg.models import TopProcedureRecord, WaitTimeRecord


_mapper = RecordMapper()

SECONDS_PER_DAY = 86400


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def average_wait_time(
    records: List[Dict[str, Any]],
    now: Optional[datetime] = None,
) -> List[WaitTimeRecord]:
    """
    按流程描述分组计算平均等待天数

    - 等待天数 = floor((now - data_solicitacao) / 1 天)
    - data_solicitacao 缺失或无法解析的记录跳过
    - 结果按平均天数降序
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    # 描述 -> [累计天数, 样本数, 首个编码]
    groups: Dict[str, List[Any]] = {}
    for record in records:
        requested_at = _mapper.request_date(record)
        if requested_at is None:
            continue
        days = math.floor((now - requested_at).total_seconds() / SECONDS_PER_DAY)
        description = _mapper.resolve_procedure_description(record)
        entry = groups.setdefault(description, [0, 0, _mapper.procedure_code(record)])
        entry[0] += days
        entry[1] += 1

    result = [
        WaitTimeRecord(
            description=description,
            code=code,
            average_days=_round_half_up(total_days / count),
            sample_count=count,
        )
        for description, (total_days, count, code) in groups.items()
    ]
    result.sort(key=lambda r: r.average_days, reverse=True)
    return result


def top_procedures(records: List[Dict[str, Any]], limit: int = 10) -> List[TopProcedureRecord]:
    """按流程描述计数，取前 limit 个（1..50）"""
    if not 1 <= limit <= 50:
        raise ValueError(f"limit 必须在 1..50 之间，当前为 {limit}")

    groups: Dict[str, List[Any]] = {}
    for record in records:
        description = _mapper.resolve_procedure_description(record)
        entry = groups.setdefault(description, [0, _mapper.procedure_code(record)])
        entry[0] += 1

    result = [
        TopProcedureRecord(description=description, code=code, total=count)
        for description, (count, code) in groups.items()
    ]
    result.sort(key=lambda r: r.total, reverse=True)
    return result[:limit]


__all__ = ["average_wait_time", "top_procedures"]
