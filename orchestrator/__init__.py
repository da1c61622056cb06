"""
编排层模块
包含查询执行器、分页拉取、索引探索和LLM代理，并提供高层入口函数

所有入口返回普通字典 {"ok": bool, "error": Optional[str], ...}，远程失败不抛异常。

作者: Tom
创建时间: 2025-11-21T17:10:52+08:00 (Asia/Shanghai)
"""

import base64
from typing import Any, Dict, List, Optional

from loguru import logger

from analytics.aggregation import EmptyDatasetError, aggregate_records, filter_by_procedure
from analytics import metrics
from config.credentials import CONFIG_NOT_FOUND_MESSAGE
from config.settings import get_sisreg_limits
from reports.xlsx import build_export_workbook, export_filename
from sisreg.models import FilterRequest, IndexType, QueryMode, SisregCredentials

from .executor import SearchExecutor
from .paginator import BulkFetcher
from .explorer import IndexExplorer
from .llm_proxy import InsightProxy

__version__ = "1.0.0"

METRICS_NO_CREDENTIALS_MESSAGE = "Credenciais SISREG não configuradas"
QUERY_ERROR_MESSAGE = "Erro na consulta."


def _failure(error: Optional[str], **extra: Any) -> Dict[str, Any]:
    return {"ok": False, "error": error or QUERY_ERROR_MESSAGE, **extra}


def search(
    credentials: Optional[SisregCredentials],
    request: FilterRequest,
    executor: Optional[SearchExecutor] = None,
) -> Dict[str, Any]:
    """单页查询"""
    if credentials is None:
        return _failure(CONFIG_NOT_FOUND_MESSAGE, status=None)

    result = (executor or SearchExecutor()).execute(credentials, request)
    if not result.ok:
        return _failure(result.error_message, status=result.status)
    return {
        "ok": True,
        "error": None,
        "status": result.status,
        "took": result.took,
        "total": result.total,
        "hits": result.hits,
    }


def export_xlsx(
    credentials: Optional[SisregCredentials],
    request: FilterRequest,
    export_all_pages: bool = True,
    executor: Optional[SearchExecutor] = None,
) -> Dict[str, Any]:
    """
    导出 xlsx。

    - export_all_pages=True: 批量拉取（上限 export_max_records）
    - export_all_pages=False: 仅导出请求指定的当前页

    Returns:
        data 中包含 base64、filename、total_exported、total_available、complete、warning
    """
    if credentials is None:
        return _failure(CONFIG_NOT_FOUND_MESSAGE, data=None)

    fetcher = BulkFetcher(executor)
    if export_all_pages:
        fetched = fetcher.fetch_all(credentials, request, get_sisreg_limits()["export_max_records"])
    else:
        fetched = fetcher.fetch_single(credentials, request)
    if not fetched.ok:
        return _failure(fetched.error_message, data=None)

    content = build_export_workbook(fetched.records, request, fetched.total)
    logger.info(f"Orchestrator: 导出完成 {len(fetched.records)}/{fetched.total} complete={fetched.complete}")
    return {
        "ok": True,
        "error": None,
        "data": {
            "base64": base64.b64encode(content).decode("ascii"),
            "filename": export_filename(request.index_type, request.mode),
            "total_exported": len(fetched.records),
            "total_available": fetched.total,
            "complete": fetched.complete,
            "warning": fetched.warning,
        },
    }


def dashboard_aggregate(
    credentials: Optional[SisregCredentials],
    request: FilterRequest,
    procedure_filter: Optional[List[str]] = None,
    executor: Optional[SearchExecutor] = None,
) -> Dict[str, Any]:
    """仪表盘聚合：批量拉取（上限 dashboard_max_records），客户端流程过滤后聚合"""
    if credentials is None:
        return _failure(CONFIG_NOT_FOUND_MESSAGE, data=None)

    fetched = BulkFetcher(executor).fetch_all(
        credentials, request, get_sisreg_limits()["dashboard_max_records"]
    )
    if not fetched.ok:
        return _failure(fetched.error_message, data=None)

    records = filter_by_procedure(fetched.records, procedure_filter)
    try:
        aggregated = aggregate_records(records, request.index_type, fetched.total)
    except EmptyDatasetError as e:
        return _failure(str(e), data=None)

    data = aggregated.model_dump()
    data.update({"complete": fetched.complete, "warning": fetched.warning})
    return {"ok": True, "error": None, "data": data}


def generate_insights(
    records: List[Dict[str, Any]],
    index_type: IndexType,
    mode: QueryMode,
    date_start: Optional[str] = None,
    date_end: Optional[str] = None,
    proxy: Optional[InsightProxy] = None,
) -> Dict[str, Any]:
    """LLM 数据分析"""
    return (proxy or InsightProxy()).generate(records, index_type, mode, date_start, date_end)


def _queue_records(
    credentials: SisregCredentials,
    date_start: Optional[str],
    date_end: Optional[str],
    executor: Optional[SearchExecutor],
):
    request = FilterRequest(
        index_type=IndexType.QUEUE_REQUEST,
        mode=QueryMode.QUEUE,
        date_start=date_start,
        date_end=date_end,
    )
    return BulkFetcher(executor).fetch_all(
        credentials, request, get_sisreg_limits()["dashboard_max_records"]
    )


def average_wait_time(
    credentials: Optional[SisregCredentials],
    date_start: Optional[str] = None,
    date_end: Optional[str] = None,
    executor: Optional[SearchExecutor] = None,
) -> Dict[str, Any]:
    """排队申请按流程的平均等待天数"""
    if credentials is None:
        return _failure(METRICS_NO_CREDENTIALS_MESSAGE, data=[])

    fetched = _queue_records(credentials, date_start, date_end, executor)
    if not fetched.ok:
        return _failure(fetched.error_message, data=[])

    data = metrics.average_wait_time(fetched.records)
    return {"ok": True, "error": None, "data": [r.model_dump() for r in data], "complete": fetched.complete}


def top_procedures(
    credentials: Optional[SisregCredentials],
    date_start: Optional[str] = None,
    date_end: Optional[str] = None,
    limit: int = 10,
    executor: Optional[SearchExecutor] = None,
) -> Dict[str, Any]:
    """排队申请中最常申请的流程"""
    if credentials is None:
        return _failure(METRICS_NO_CREDENTIALS_MESSAGE, data=[])

    fetched = _queue_records(credentials, date_start, date_end, executor)
    if not fetched.ok:
        return _failure(fetched.error_message, data=[])

    data = metrics.top_procedures(fetched.records, limit=limit)
    return {"ok": True, "error": None, "data": [r.model_dump() for r in data], "complete": fetched.complete}


def check_connection(
    credentials: Optional[SisregCredentials],
    index_type: Optional[IndexType] = None,
    executor: Optional[SearchExecutor] = None,
) -> Dict[str, Any]:
    """连接测试"""
    if credentials is None:
        return {"ok": False, "message": CONFIG_NOT_FOUND_MESSAGE}
    return (executor or SearchExecutor()).test_connection(credentials, index_type)


__all__ = [
    "SearchExecutor",
    "BulkFetcher",
    "IndexExplorer",
    "InsightProxy",
    "search",
    "export_xlsx",
    "dashboard_aggregate",
    "generate_insights",
    "average_wait_time",
    "top_procedures",
    "check_connection",
    "__version__",
]
