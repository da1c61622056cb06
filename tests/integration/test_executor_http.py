"""
SearchExecutor 集成测试

作者: Tom
创建时间: 2025-11-19T18:12:37+08:00 (Asia/Shanghai)

说明：
- 不依赖真实远程服务，通过 unittest.mock.patch 替换 requests.post / requests.get
- 覆盖成功解析、各类 HTTP 错误提示、超时与网络异常降级、连接测试
"""

import base64
import threading
from unittest.mock import MagicMock, patch

import pytest
import requests

from orchestrator.executor import SearchExecutor
from sisreg.models import FilterRequest, IndexType, QueryMode, SisregCredentials


CREDS = SisregCredentials(base_url="https://es.example/", username="user", password="pass")


def _response(status: int, payload=None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = payload or {}
    resp.text = ""
    return resp


def _hits_payload(total, sources, took=7):
    return {"took": took, "hits": {"total": total, "hits": [{"_source": s} if s is not None else {} for s in sources]}}


def test_execute_success_with_object_total():
    payload = _hits_payload({"value": 42, "relation": "eq"}, [{"no_usuario": "Ana"}, None])
    with patch("orchestrator.executor.requests.post", return_value=_response(200, payload)) as post:
        result = SearchExecutor().execute(CREDS, FilterRequest(mode=QueryMode.QUICK, size=5000))

    assert result.ok is True
    assert result.status == 200
    assert result.total == 42
    assert result.took == 7
    assert result.hits == [{"no_usuario": "Ana"}, {}]

    args, kwargs = post.call_args
    assert args[0] == "https://es.example/marcacao-ambulatorial-rj-macae/_search"
    expected = "Basic " + base64.b64encode(b"user:pass").decode("ascii")
    assert kwargs["headers"]["Authorization"] == expected
    assert kwargs["json"]["size"] == 1000
    assert kwargs["timeout"] == 30.0


def test_execute_success_with_integer_total():
    payload = _hits_payload(3, [{"a": 1}])
    with patch("orchestrator.executor.requests.post", return_value=_response(200, payload)) as post:
        result = SearchExecutor().execute(
            CREDS, FilterRequest(index_type=IndexType.QUEUE_REQUEST, mode=QueryMode.QUEUE)
        )
    assert result.total == 3
    assert post.call_args[0][0].endswith("/solicitacao-ambulatorial-rj-macae/_search")


@pytest.mark.parametrize(
    "status,message",
    [
        (401, "Credenciais inválidas. Verifique usuário e senha."),
        (403, "Acesso negado. Verifique suas permissões."),
        (400, "Requisição inválida. Verifique os parâmetros da consulta."),
        (404, "Índice não encontrado. Verifique a URL do endpoint."),
        (502, "HTTP 502"),
    ],
)
def test_execute_http_errors(status, message):
    with patch("orchestrator.executor.requests.post", return_value=_response(status)):
        result = SearchExecutor().execute(CREDS, FilterRequest(mode=QueryMode.QUICK))
    assert result.ok is False
    assert result.status == status
    assert result.error_message == message
    assert result.hits == []
    assert result.total == 0


def test_execute_timeout_maps_to_408():
    with patch("orchestrator.executor.requests.post", side_effect=requests.Timeout("slow")):
        result = SearchExecutor().execute(CREDS, FilterRequest(mode=QueryMode.QUICK))
    assert result.ok is False
    assert result.status == 408
    assert result.error_message.startswith("Timeout: a consulta demorou mais de 30 segundos.")


def test_execute_connection_error_maps_to_500():
    with patch("orchestrator.executor.requests.post", side_effect=requests.ConnectionError("refused")):
        result = SearchExecutor().execute(CREDS, FilterRequest(mode=QueryMode.QUICK))
    assert result.ok is False
    assert result.status == 500
    assert "refused" in result.error_message


def test_execute_invalid_json_maps_to_500():
    resp = _response(200)
    resp.json.side_effect = ValueError("no json")
    with patch("orchestrator.executor.requests.post", return_value=resp):
        result = SearchExecutor().execute(CREDS, FilterRequest(mode=QueryMode.QUICK))
    assert result.ok is False
    assert result.status == 500


def test_execute_null_hits_list_is_empty_result():
    payload = {"took": 1, "hits": {"total": 0, "hits": None}}
    with patch("orchestrator.executor.requests.post", return_value=_response(200, payload)):
        result = SearchExecutor().execute(CREDS, FilterRequest(mode=QueryMode.QUICK))
    assert result.ok is True
    assert result.total == 0
    assert result.hits == []


@pytest.mark.parametrize("payload", [[1, 2], "texto", None])
def test_execute_non_object_body_maps_to_500(payload):
    resp = _response(200)
    resp.json.return_value = payload
    with patch("orchestrator.executor.requests.post", return_value=resp):
        result = SearchExecutor().execute(CREDS, FilterRequest(mode=QueryMode.QUICK))
    assert result.ok is False
    assert result.status == 500
    assert result.error_message == "Resposta inválida do servidor."


def test_execute_total_deadline_covers_slow_response():
    release = threading.Event()

    def _slow_post(*args, **kwargs):
        release.wait(2)
        return _response(200, _hits_payload(1, [{}]))

    try:
        with patch("orchestrator.executor.requests.post", side_effect=_slow_post):
            result = SearchExecutor(timeout_s=0.05).execute(CREDS, FilterRequest(mode=QueryMode.QUICK))
    finally:
        release.set()
    assert result.ok is False
    assert result.status == 408
    assert result.error_message.startswith("Timeout: a consulta demorou mais de")


def test_connection_single_index():
    with patch("orchestrator.executor.requests.post", return_value=_response(200, _hits_payload(1500, [{}]))) as post:
        result = SearchExecutor().test_connection(CREDS, IndexType.QUEUE_REQUEST)
    assert result == {"ok": True, "message": "Solicitação Ambulatorial: 1500 registros encontrados"}
    assert post.call_args[1]["json"]["size"] == 1


def test_connection_both_indexes_partial():
    responses = [_response(200, _hits_payload(10, [{}])), _response(403)]
    with patch("orchestrator.executor.requests.post", side_effect=responses):
        result = SearchExecutor().test_connection(CREDS)
    assert result["ok"] is False
    assert result["message"] == "Conexão parcial ou com erros. Veja detalhes."
    assert result["details"]["marcacao"] == "✅ 10 registros"
    assert result["details"]["solicitacao"] == "❌ Acesso negado. Verifique suas permissões."


def test_connection_both_indexes_ok():
    with patch("orchestrator.executor.requests.post", return_value=_response(200, _hits_payload(5, [{}]))):
        result = SearchExecutor().test_connection(CREDS)
    assert result["ok"] is True
    assert result["message"] == "Conexão estabelecida com sucesso em ambos os índices!"


def test_get_json_used_for_mapping_path():
    with patch("orchestrator.executor.requests.get", return_value=_response(200, {"m": {}})) as get:
        status, payload, error = SearchExecutor().get_json(CREDS, "/idx/_mapping")
    assert (status, payload, error) == (200, {"m": {}}, None)
    assert get.call_args[0][0] == "https://es.example/idx/_mapping"
