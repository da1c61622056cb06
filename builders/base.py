"""
BaseQueryBuilder抽象类
定义统一的查询构造接口，为 Marcação、Solicitação 两类索引的各个模式生成 Elasticsearch 请求体

构造过程纯函数化：不做 I/O，相同输入得到相同请求体。

作者: Tom
创建时间: 2025-11-19T09:31:50+08:00
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from sisreg.constants import default_fields
from sisreg.mapper import RecordMapper
from sisreg.models import FilterRequest, IndexType, QueryMode


# 远程单页上限
MAX_PAGE_SIZE = 1000


class QueryBuildError(Exception):
    """查询构造相关异常基类"""
    pass


class UnsupportedModeError(QueryBuildError):
    """不支持的 (实体类型, 模式) 组合"""
    pass


class BaseQueryBuilder(ABC):
    """
    查询构造器抽象基类

    子类通过类属性声明模式差异：
    1. date_field: 日期区间过滤字段（None 表示该模式不做日期过滤）
    2. sort_field / sort_order: 排序
    3. mode_statuses: 模式固定的状态集合（空表示不限制）
    实体差异（调度中心过滤、状态字段、流程检索字段、空查询回退）由实体级子类实现。
    """

    index_type: IndexType
    mode: QueryMode
    status_field: str
    date_field: Optional[str] = None
    sort_field: str = "data_solicitacao"
    sort_order: str = "desc"
    mode_statuses: Sequence[str] = ()

    def __init__(self, request: FilterRequest):
        """
        初始化构造器

        Args:
            request: 已校验的过滤请求
        """
        if (request.index_type, request.mode) != (self.index_type, self.mode):
            raise UnsupportedModeError(
                f"{self.__class__.__name__} 仅支持 {self.index_type.value}/{self.mode.value}，"
                f"收到 {request.index_type.value}/{request.mode.value}"
            )
        self.request = request

    @abstractmethod
    def central_clause(self, codes: List[str]) -> Dict[str, Any]:
        """调度中心编码过滤子句"""
        pass

    @abstractmethod
    def procedure_clause(self, term: str) -> Dict[str, Any]:
        """流程文本检索子句（term 已去空白并转小写）"""
        pass

    @abstractmethod
    def finalize_query(self, must: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        """将过滤子句合成为 query；返回 None 表示请求体不带 query"""
        pass

    def source_fields(self) -> List[str]:
        if self.request.selected_fields:
            return list(self.request.selected_fields)
        return default_fields(self.index_type, self.mode)

    def date_range_clause(self) -> Optional[Dict[str, Any]]:
        """日期区间：[date_start, date_end 次日)，仅当起止都提供时生效"""
        if not self.date_field:
            return None
        start, end = self.request.date_start, self.request.date_end
        if not (start and end):
            return None
        return {
            "range": {
                self.date_field: {"gte": start, "lt": RecordMapper.next_day_iso(end)},
            }
        }

    def terms_clause(self, field: str, values: Sequence[str]) -> Dict[str, Any]:
        return {"terms": {field: list(values)}}

    def search_term(self) -> Optional[str]:
        raw = self.request.procedure_search
        if not raw or not raw.strip():
            return None
        return raw.strip().lower()

    def filter_clauses(self) -> List[Dict[str, Any]]:
        """按固定顺序收集过滤子句"""
        must: List[Dict[str, Any]] = []
        req = self.request

        date_clause = self.date_range_clause()
        if date_clause:
            must.append(date_clause)

        if self.mode_statuses:
            must.append(self.terms_clause(f"{self.status_field}.keyword", self.mode_statuses))

        if req.central_codes:
            must.append(self.central_clause(req.central_codes))

        if req.risk_filter:
            must.append(self.terms_clause("codigo_classificacao_risco", req.risk_filter))

        if req.status_filter:
            must.append(self.terms_clause(f"{self.status_field}.keyword", req.status_filter))

        term = self.search_term()
        if term:
            must.append(self.procedure_clause(term))

        return must

    def build(self) -> Dict[str, Any]:
        """
        生成请求体

        Returns:
            {"size", "from", "_source", "sort", ["query"]}
        """
        body: Dict[str, Any] = {
            "size": min(self.request.size, MAX_PAGE_SIZE),
            "from": self.request.offset,
            "_source": self.source_fields(),
            "sort": [{self.sort_field: {"order": self.sort_order}}],
        }

        must = self.filter_clauses()
        query = self.finalize_query(must)
        if query is not None:
            body["query"] = query

        logger.debug(
            f"QueryBuilder: {self.index_type.value}/{self.mode.value} 子句数={len(must)} "
            f"size={body['size']} from={body['from']}"
        )
        return body

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(index_type='{self.index_type.value}', mode='{self.mode.value}')>"


__all__ = [
    "BaseQueryBuilder",
    "QueryBuildError",
    "UnsupportedModeError",
    "MAX_PAGE_SIZE",
]
