"""
批量分页拉取（BulkFetcher）

顺序逐页调用 SearchExecutor，累积记录直到达到远程总数或调用方上限。
首页失败视为整体失败；后续页失败或返回空页时停止，保留已拉取的部分并标记 complete=False。

作者: Tom
创建时间: 2025-11-19T17:03:15+08:00 (Asia/Shanghai)
"""

from typing import Any, Dict, List, Optional

from loguru import logger

from config.settings import get_sisreg_limits
from .executor import SearchExecutor
from sisreg.models import BulkFetchResult, FilterRequest, SisregCredentials


class BulkFetcher:
    """多页顺序拉取器"""

    def __init__(self, executor: Optional[SearchExecutor] = None, page_size: Optional[int] = None):
        self.executor = executor or SearchExecutor()
        self.page_size = page_size or get_sisreg_limits()["page_size"]

    def fetch_all(
        self,
        credentials: SisregCredentials,
        request: FilterRequest,
        max_records: int,
    ) -> BulkFetchResult:
        """
        拉取最多 max_records 条记录。

        Args:
            credentials: 远程访问凭证
            request: 过滤请求（size/offset 会被分页参数覆盖）
            max_records: 本次拉取上限（导出 10000，仪表盘 5000）
        """
        first = self.executor.execute(credentials, request.with_page(self.page_size, 0))
        if not first.ok:
            logger.warning(f"BulkFetcher: 首页失败 status={first.status}")
            return BulkFetchResult(ok=False, error_message=first.error_message)

        total = first.total
        target = min(total, max_records)
        records: List[Dict[str, Any]] = list(first.hits)
        pages = 1
        current_from = self.page_size
        warning: Optional[str] = None

        while current_from < target and len(records) < max_records:
            page = self.executor.execute(credentials, request.with_page(self.page_size, current_from))
            if not page.ok:
                warning = (
                    f"Resultado parcial: falha ao buscar a página {pages + 1} "
                    f"({page.error_message}). {len(records)} de {target} registros obtidos."
                )
                break
            if not page.hits:
                warning = (
                    f"Resultado parcial: a página {pages + 1} veio vazia. "
                    f"{len(records)} de {target} registros obtidos."
                )
                break
            records.extend(page.hits)
            pages += 1
            current_from += self.page_size

        if warning:
            logger.warning(f"BulkFetcher: {warning}")

        records = records[:max_records]
        logger.info(
            f"BulkFetcher: 拉取完成 pages={pages} records={len(records)} total={total} "
            f"max={max_records} complete={warning is None}"
        )
        return BulkFetchResult(
            ok=True,
            total=total,
            records=records,
            pages=pages,
            complete=warning is None,
            warning=warning,
        )

    def fetch_single(self, credentials: SisregCredentials, request: FilterRequest) -> BulkFetchResult:
        """仅拉取请求指定的当前页"""
        result = self.executor.execute(credentials, request)
        if not result.ok:
            return BulkFetchResult(ok=False, error_message=result.error_message)
        return BulkFetchResult(ok=True, total=result.total, records=result.hits, pages=1)


__all__ = ["BulkFetcher"]
