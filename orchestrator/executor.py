"""
编排层执行器（SearchExecutor）

职责：
- 将过滤请求交给查询构造器生成请求体，并以 Basic 认证 POST 到远程索引。
- 解析远程响应（总数、_source 列表、耗时）。
- 进行错误降级：HTTP 错误、超时、网络异常均转换为 ok=False 的统一结果，不向上抛出。
- 提供 post_json / get_json 通用传输方法，供探索模块复用。

作者: Tom
创建时间: 2025-11-19T15:22:48+08:00 (Asia/Shanghai)
"""

import base64
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from time import perf_counter
from typing import Any, Dict, Optional, Tuple

import requests
from loguru import logger

from builders.registry import build_query
from config.settings import settings
from sisreg.constants import INDEX_PATHS
from sisreg.models import FilterRequest, IndexType, QueryMode, SearchResult, SisregCredentials


# 按 HTTP 状态码区分的用户提示
STATUS_MESSAGES: Dict[int, str] = {
    400: "Requisição inválida. Verifique os parâmetros da consulta.",
    401: "Credenciais inválidas. Verifique usuário e senha.",
    403: "Acesso negado. Verifique suas permissões.",
    404: "Índice não encontrado. Verifique a URL do endpoint.",
}

TIMEOUT_STATUS = 408
TRANSPORT_ERROR_STATUS = 500
INVALID_RESPONSE_MESSAGE = "Resposta inválida do servidor."

# 连接测试中使用的实体名称
CONNECTION_LABELS: Dict[IndexType, str] = {
    IndexType.SCHEDULING: "Marcação Ambulatorial",
    IndexType.QUEUE_REQUEST: "Solicitação Ambulatorial",
}

# 连接测试探测模式
PROBE_MODES: Dict[IndexType, QueryMode] = {
    IndexType.SCHEDULING: QueryMode.QUICK,
    IndexType.QUEUE_REQUEST: QueryMode.QUEUE,
}


def error_message_for(status: int) -> str:
    """HTTP 状态码 -> 用户提示"""
    return STATUS_MESSAGES.get(status, f"HTTP {status}")


def basic_auth_header(credentials: SisregCredentials) -> str:
    token = base64.b64encode(f"{credentials.username}:{credentials.password}".encode("utf-8"))
    return f"Basic {token.decode('ascii')}"


def extract_total(hits_block: Dict[str, Any]) -> int:
    """hits.total 兼容整数与 {"value": n} 两种形态"""
    total = hits_block.get("total", 0)
    if isinstance(total, dict):
        total = total.get("value", 0)
    try:
        return int(total or 0)
    except (TypeError, ValueError):
        return 0


class SearchExecutor:
    """负责远程查询的执行与结果解析。"""

    def __init__(self, timeout_s: Optional[float] = None) -> None:
        self.timeout_s = timeout_s if timeout_s is not None else settings.sisreg_timeout_s
        logger.debug(f"SearchExecutor: 初始化完成（timeout={self.timeout_s}s）")

    @property
    def timeout_message(self) -> str:
        return (
            f"Timeout: a consulta demorou mais de {int(self.timeout_s)} segundos. "
            "Tente reduzir o período ou os filtros."
        )

    def _headers(self, credentials: SisregCredentials) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": basic_auth_header(credentials),
        }

    def _send(
        self,
        method: str,
        credentials: SisregCredentials,
        path: str,
        body: Optional[Dict[str, Any]] = None,
    ) -> Tuple[int, Optional[Dict[str, Any]], Optional[str]]:
        """
        发送请求并解析 JSON。

        requests 的 timeout 只限制连接与单次读取，整体时限由线程池 future 的等待时间保证；
        超时后调用方立即拿到 408，后台线程由 requests 自身的读超时收尾。

        Returns:
            (status, payload, error_message)；仅当 status == 200 时 payload 非空
        """
        url = f"{credentials.base_url}{path}"
        headers = self._headers(credentials)
        pool = ThreadPoolExecutor(max_workers=1)
        future = pool.submit(self._request, method, url, headers, body)
        try:
            resp = future.result(timeout=self.timeout_s)
        except FutureTimeoutError:
            future.cancel()
            logger.warning(f"SearchExecutor: {method} {path} 总耗时超时（>{self.timeout_s}s）")
            return TIMEOUT_STATUS, None, self.timeout_message
        except requests.Timeout:
            logger.warning(f"SearchExecutor: {method} {path} 超时（>{self.timeout_s}s）")
            return TIMEOUT_STATUS, None, self.timeout_message
        except requests.RequestException as e:
            logger.error(f"SearchExecutor: {method} {path} 网络异常：{e}")
            return TRANSPORT_ERROR_STATUS, None, str(e)
        finally:
            pool.shutdown(wait=False)

        if resp.status_code != 200:
            logger.warning(f"SearchExecutor: {method} {path} 非 200 响应，status={resp.status_code}")
            return resp.status_code, None, error_message_for(resp.status_code)

        try:
            payload = resp.json()
        except ValueError as e:
            logger.error(f"SearchExecutor: {method} {path} 响应无法解析为 JSON：{e}")
            return TRANSPORT_ERROR_STATUS, None, str(e)
        if not isinstance(payload, dict):
            logger.error(f"SearchExecutor: {method} {path} 响应不是 JSON 对象：{type(payload).__name__}")
            return TRANSPORT_ERROR_STATUS, None, INVALID_RESPONSE_MESSAGE
        return 200, payload, None

    def _request(
        self, method: str, url: str, headers: Dict[str, str], body: Optional[Dict[str, Any]]
    ) -> requests.Response:
        if method == "GET":
            return requests.get(url, headers=headers, timeout=self.timeout_s)
        return requests.post(url, headers=headers, json=body, timeout=self.timeout_s)

    def post_json(
        self, credentials: SisregCredentials, path: str, body: Dict[str, Any]
    ) -> Tuple[int, Optional[Dict[str, Any]], Optional[str]]:
        return self._send("POST", credentials, path, body)

    def get_json(
        self, credentials: SisregCredentials, path: str
    ) -> Tuple[int, Optional[Dict[str, Any]], Optional[str]]:
        return self._send("GET", credentials, path)

    def execute(self, credentials: SisregCredentials, request: FilterRequest) -> SearchResult:
        """
        执行单次查询。

        Args:
            credentials: 远程访问凭证
            request: 已校验的过滤请求

        Returns:
            SearchResult，远程失败时 ok=False 且 hits 为空
        """
        body = build_query(request)
        path = INDEX_PATHS[request.index_type]
        logger.info(
            f"SearchExecutor: 查询开始 {request.index_type.value}/{request.mode.value} "
            f"from={body['from']} size={body['size']}"
        )

        start = perf_counter()
        status, payload, error = self.post_json(credentials, path, body)
        duration_ms = (perf_counter() - start) * 1000.0

        if payload is None:
            return SearchResult(ok=False, status=status, error_message=error)

        hits_block = payload.get("hits") or {}
        if not isinstance(hits_block, dict):
            hits_block = {}
        hits = [
            (hit.get("_source") or {}) if isinstance(hit, dict) else {}
            for hit in hits_block.get("hits") or []
        ]
        total = extract_total(hits_block)
        logger.info(
            f"SearchExecutor: 查询完成 status={status} took={payload.get('took')} "
            f"total={total} 返回={len(hits)}，用时 {duration_ms:.2f}ms"
        )
        return SearchResult(
            ok=True,
            status=status,
            took=payload.get("took"),
            total=total,
            hits=hits,
        )

    def test_connection(
        self, credentials: SisregCredentials, index_type: Optional[IndexType] = None
    ) -> Dict[str, Any]:
        """
        连接测试：对一个或两个索引各取 1 条记录。

        Returns:
            {"ok": bool, "message": str, ["details": {实体: 文本}]}
        """
        if index_type is not None:
            result = self._probe(credentials, index_type)
            if result.ok:
                return {
                    "ok": True,
                    "message": f"{CONNECTION_LABELS[index_type]}: {result.total} registros encontrados",
                }
            return {"ok": False, "message": result.error_message}

        details: Dict[str, str] = {}
        all_ok = True
        for entity in (IndexType.SCHEDULING, IndexType.QUEUE_REQUEST):
            result = self._probe(credentials, entity)
            if result.ok:
                details[entity.value] = f"✅ {result.total} registros"
            else:
                details[entity.value] = f"❌ {result.error_message}"
                all_ok = False

        message = (
            "Conexão estabelecida com sucesso em ambos os índices!"
            if all_ok
            else "Conexão parcial ou com erros. Veja detalhes."
        )
        return {"ok": all_ok, "message": message, "details": details}

    def _probe(self, credentials: SisregCredentials, index_type: IndexType) -> SearchResult:
        request = FilterRequest(index_type=index_type, mode=PROBE_MODES[index_type], size=1)
        return self.execute(credentials, request)


__all__ = [
    "SearchExecutor",
    "STATUS_MESSAGES",
    "error_message_for",
    "basic_auth_header",
    "extract_total",
]
