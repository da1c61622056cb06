"""
SISREG 数据模型定义
查询请求、查询结果、聚合结果等统一模型，均为单次请求内的临时对象

作者: Tom
创建时间: 2025-11-18T11:02:45+08:00
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator


class IndexType(str, Enum):
    """实体类型枚举（对应远程的两个索引）"""
    SCHEDULING = "marcacao"
    QUEUE_REQUEST = "solicitacao"


class QueryMode(str, Enum):
    """查询模式枚举"""
    QUICK = "quick"
    NEW = "novas"
    SCHEDULED = "agendadas"
    FULFILLED = "atendidas"
    QUEUE = "fila"


# 合法的 (实体类型, 模式) 组合；其他组合在构造请求时即被拒绝
VALID_MODES: Dict[IndexType, Tuple[QueryMode, ...]] = {
    IndexType.SCHEDULING: (
        QueryMode.QUICK,
        QueryMode.NEW,
        QueryMode.SCHEDULED,
        QueryMode.FULFILLED,
    ),
    IndexType.QUEUE_REQUEST: (QueryMode.QUEUE,),
}


class SisregCredentials(BaseModel):
    """远程 Elasticsearch 访问凭证"""

    base_url: str = Field(..., min_length=1, description="服务地址，如 https://sisreg-es.saude.gov.br")
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1, repr=False)

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class FilterRequest(BaseModel):
    """
    查询过滤请求

    - size: 请求条数，远程请求体中会被截断到 1000
    - offset: 分页偏移（请求体中的 from）
    - date_start/date_end: ISO 日期，date_end 视为包含当天
    """

    index_type: IndexType = IndexType.SCHEDULING
    mode: QueryMode
    size: int = Field(default=100, ge=1, le=10000)
    offset: int = Field(default=0, ge=0)
    date_start: Optional[str] = None
    date_end: Optional[str] = None
    central_codes: Optional[List[str]] = None
    selected_fields: Optional[List[str]] = None
    procedure_search: Optional[str] = None
    risk_filter: Optional[List[str]] = None
    status_filter: Optional[List[str]] = None

    @model_validator(mode="after")
    def _check_mode_for_index(self):
        allowed = VALID_MODES[self.index_type]
        if self.mode not in allowed:
            raise ValueError(
                f"模式 '{self.mode.value}' 不适用于实体类型 '{self.index_type.value}'，"
                f"可选: {[m.value for m in allowed]}"
            )
        return self

    def with_page(self, size: int, offset: int) -> "FilterRequest":
        """返回仅分页参数不同的副本"""
        return self.model_copy(update={"size": size, "offset": offset})


class SearchResult(BaseModel):
    """单次远程查询的统一结果"""

    ok: bool
    status: int
    took: Optional[int] = None
    total: int = 0
    hits: List[Dict[str, Any]] = Field(default_factory=list)
    error_message: Optional[str] = None


class BulkFetchResult(BaseModel):
    """多页批量拉取结果；complete=False 表示中途停止（部分结果）"""

    ok: bool
    total: int = 0
    records: List[Dict[str, Any]] = Field(default_factory=list)
    pages: int = 0
    complete: bool = True
    warning: Optional[str] = None
    error_message: Optional[str] = None


class NamedCount(BaseModel):
    name: str
    value: int


class AggregationResult(BaseModel):
    """仪表盘聚合结果"""

    total: int
    total_unfiltered: int
    by_unit: List[NamedCount] = Field(default_factory=list)
    by_procedure: List[NamedCount] = Field(default_factory=list)
    by_risk: List[NamedCount] = Field(default_factory=list)
    by_status: List[NamedCount] = Field(default_factory=list)
    all_procedures: List[str] = Field(default_factory=list)
    auto_insights: List[str] = Field(default_factory=list)


class WaitTimeRecord(BaseModel):
    description: str
    code: str = ""
    average_days: int
    sample_count: int


class TopProcedureRecord(BaseModel):
    description: str
    code: str = ""
    total: int


class FieldValueCount(BaseModel):
    value: Any
    count: int


__all__ = [
    "IndexType",
    "QueryMode",
    "VALID_MODES",
    "SisregCredentials",
    "FilterRequest",
    "SearchResult",
    "BulkFetchResult",
    "NamedCount",
    "AggregationResult",
    "WaitTimeRecord",
    "TopProcedureRecord",
    "FieldValueCount",
]
