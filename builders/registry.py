"""
查询构造器注册表
(实体类型, 模式) -> 构造器类

作者: Tom
创建时间: 2025-11-19T13:05:37+08:00
"""

from typing import Any, Dict, Tuple, Type

from loguru import logger

from builders.base import BaseQueryBuilder, UnsupportedModeError
from builders.marcacao import (
    AgendadasMarcacaoBuilder,
    AtendidasMarcacaoBuilder,
    NovasMarcacaoBuilder,
    QuickMarcacaoBuilder,
)
from builders.solicitacao import FilaSolicitacaoBuilder
from sisreg.models import FilterRequest, IndexType, QueryMode


# 支持的组合到构造器类的映射
BUILDERS: Dict[Tuple[IndexType, QueryMode], Type[BaseQueryBuilder]] = {
    (IndexType.SCHEDULING, QueryMode.QUICK): QuickMarcacaoBuilder,
    (IndexType.SCHEDULING, QueryMode.NEW): NovasMarcacaoBuilder,
    (IndexType.SCHEDULING, QueryMode.SCHEDULED): AgendadasMarcacaoBuilder,
    (IndexType.SCHEDULING, QueryMode.FULFILLED): AtendidasMarcacaoBuilder,
    (IndexType.QUEUE_REQUEST, QueryMode.QUEUE): FilaSolicitacaoBuilder,
}


def get_builder(request: FilterRequest) -> BaseQueryBuilder:
    """根据请求选择并实例化构造器"""
    key = (request.index_type, request.mode)
    builder_cls = BUILDERS.get(key)
    if builder_cls is None:
        msg = f"不支持的组合: {request.index_type.value}/{request.mode.value}"
        logger.warning(f"Registry: {msg}")
        raise UnsupportedModeError(msg)
    return builder_cls(request)


def build_query(request: FilterRequest) -> Dict[str, Any]:
    """构造请求体"""
    return get_builder(request).build()


__all__ = ["BUILDERS", "get_builder", "build_query"]
