"""
索引探索工具
采样文档、字段取值分布、索引映射，用于了解远程数据结构

作者: Tom
创建时间: 2025-11-20T09:47:30+08:00 (Asia/Shanghai)
"""

from typing import Any, Dict, Optional

from loguru import logger

from .executor import SearchExecutor, extract_total
from sisreg.constants import INDEX_NAMES, INDEX_PATHS
from sisreg.models import FieldValueCount, IndexType, SisregCredentials


NO_DOCUMENT_MESSAGE = "Nenhum documento encontrado"


class IndexExplorer:
    """远程索引探索"""

    def __init__(self, executor: Optional[SearchExecutor] = None):
        self.executor = executor or SearchExecutor()

    def explore_index(
        self, credentials: SisregCredentials, index_type: IndexType, size: int = 10
    ) -> Dict[str, Any]:
        """
        采样若干文档并汇总出现过的字段名

        Returns:
            {"ok", "total", "samples", "fields"} 或 {"ok": False, "error"}
        """
        size = max(1, min(100, size))
        body = {"size": size, "query": {"match_all": {}}}
        status, payload, error = self.executor.post_json(credentials, INDEX_PATHS[index_type], body)
        if payload is None:
            return {"ok": False, "status": status, "error": error}

        hits_block = payload.get("hits") or {}
        if not isinstance(hits_block, dict):
            hits_block = {}
        samples = [
            (hit.get("_source") or {}) if isinstance(hit, dict) else {}
            for hit in hits_block.get("hits") or []
        ]
        fields = sorted({key for doc in samples for key in doc.keys()})
        logger.info(f"IndexExplorer: {index_type.value} 采样 {len(samples)} 条，字段 {len(fields)} 个")
        return {
            "ok": True,
            "total": extract_total(hits_block),
            "samples": samples,
            "fields": fields,
        }

    def sample_document(self, credentials: SisregCredentials, index_type: IndexType) -> Dict[str, Any]:
        explored = self.explore_index(credentials, index_type, size=1)
        if not explored["ok"]:
            return explored
        if not explored["samples"]:
            return {"ok": False, "error": NO_DOCUMENT_MESSAGE}
        return {"ok": True, "document": explored["samples"][0], "fields": explored["fields"]}

    def explore_field_values(
        self,
        credentials: SisregCredentials,
        index_type: IndexType,
        field: str,
        size: int = 100,
    ) -> Dict[str, Any]:
        """字段取值分布（terms 聚合）"""
        size = max(1, min(1000, size))
        body = {
            "size": 0,
            "aggs": {"unique_values": {"terms": {"field": field, "size": size}}},
        }
        status, payload, error = self.executor.post_json(credentials, INDEX_PATHS[index_type], body)
        if payload is None:
            return {"ok": False, "status": status, "error": error}

        aggregation = (payload.get("aggregations") or {}).get("unique_values") or {}
        values = [
            FieldValueCount(value=b.get("key"), count=int(b.get("doc_count") or 0))
            for b in aggregation.get("buckets") or []
            if isinstance(b, dict)
        ]
        return {"ok": True, "field": field, "values": values}

    def explore_mapping(self, credentials: SisregCredentials, index_type: IndexType) -> Dict[str, Any]:
        """索引映射（原样返回）"""
        path = f"/{INDEX_NAMES[index_type]}/_mapping"
        status, payload, error = self.executor.get_json(credentials, path)
        if payload is None:
            return {"ok": False, "status": status, "error": error}
        return {"ok": True, "mapping": payload}


__all__ = ["IndexExplorer", "NO_DOCUMENT_MESSAGE"]
