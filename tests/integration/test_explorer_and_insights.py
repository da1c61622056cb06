"""
索引探索与 LLM 分析集成测试

作者: Tom
创建时间: 2025-11-21T19:02:47+08:00 (Asia/Shanghai)

说明：
- 探索模块通过 monkeypatch SearchExecutor.post_json/get_json 控制远程返回
- LLM 代理通过 monkeypatch InsightProxy._call_llm 与 requests.post 控制解析路径，不依赖真实 API Key
"""

from unittest.mock import MagicMock, patch

from orchestrator import generate_insights
from orchestrator.executor import SearchExecutor
from orchestrator.explorer import IndexExplorer
from orchestrator import llm_proxy
from orchestrator.llm_proxy import InsightProxy
from sisreg.models import IndexType, QueryMode, SisregCredentials


CREDS = SisregCredentials(base_url="https://es.example", username="user", password="pass")


def test_explore_index_collects_sorted_field_union(monkeypatch):
    captured = {}

    def _post(self, credentials, path, body):
        captured["path"], captured["body"] = path, body
        return 200, {"hits": {"total": {"value": 9}, "hits": [{"_source": {"b": 1, "a": 2}}, {"_source": {"c": 3}}]}}, None

    monkeypatch.setattr(SearchExecutor, "post_json", _post, raising=True)
    result = IndexExplorer().explore_index(CREDS, IndexType.QUEUE_REQUEST, size=500)

    assert result["ok"] is True
    assert result["total"] == 9
    assert result["fields"] == ["a", "b", "c"]
    assert captured["body"] == {"size": 100, "query": {"match_all": {}}}
    assert captured["path"] == "/solicitacao-ambulatorial-rj-macae/_search"


def test_sample_document_empty_index(monkeypatch):
    monkeypatch.setattr(
        SearchExecutor, "post_json", lambda self, c, p, b: (200, {"hits": {"total": 0, "hits": []}}, None), raising=True
    )
    result = IndexExplorer().sample_document(CREDS, IndexType.SCHEDULING)
    assert result == {"ok": False, "error": "Nenhum documento encontrado"}


def test_field_values_buckets(monkeypatch):
    captured = {}

    def _post(self, credentials, path, body):
        captured["body"] = body
        payload = {"aggregations": {"unique_values": {"buckets": [{"key": "P", "doc_count": 12}, {"key": "A", "doc_count": 3}]}}}
        return 200, payload, None

    monkeypatch.setattr(SearchExecutor, "post_json", _post, raising=True)
    result = IndexExplorer().explore_field_values(CREDS, IndexType.QUEUE_REQUEST, "sigla_situacao.keyword", size=5000)

    assert captured["body"] == {
        "size": 0,
        "aggs": {"unique_values": {"terms": {"field": "sigla_situacao.keyword", "size": 1000}}},
    }
    assert [(v.value, v.count) for v in result["values"]] == [("P", 12), ("A", 3)]


def test_null_hits_and_buckets_are_empty(monkeypatch):
    payload = {"hits": {"total": 0, "hits": None}, "aggregations": {"unique_values": None}}
    monkeypatch.setattr(SearchExecutor, "post_json", lambda self, c, p, b: (200, payload, None), raising=True)

    explored = IndexExplorer().explore_index(CREDS, IndexType.SCHEDULING)
    assert explored["ok"] is True
    assert explored["samples"] == []
    assert explored["fields"] == []

    values = IndexExplorer().explore_field_values(CREDS, IndexType.SCHEDULING, "codigo_classificacao_risco")
    assert values == {"ok": True, "field": "codigo_classificacao_risco", "values": []}


def test_mapping_and_error_passthrough(monkeypatch):
    captured = {}

    def _get(self, credentials, path):
        captured["path"] = path
        return 401, None, "Credenciais inválidas. Verifique usuário e senha."

    monkeypatch.setattr(SearchExecutor, "get_json", _get, raising=True)
    result = IndexExplorer().explore_mapping(CREDS, IndexType.SCHEDULING)
    assert captured["path"] == "/marcacao-ambulatorial-rj-macae/_mapping"
    assert result["ok"] is False
    assert result["status"] == 401


def test_insights_empty_data():
    result = generate_insights([], IndexType.SCHEDULING, QueryMode.QUICK)
    assert result == {"ok": False, "insights": "", "error": "Nenhum dado para análise."}


def test_insights_success(monkeypatch):
    captured = {}

    def _fake(self, messages):
        captured["messages"] = messages
        return "## Análise\n- ok"

    monkeypatch.setattr(InsightProxy, "_call_llm", _fake, raising=True)
    records = [{"status_solicitacao": "A", "codigo_classificacao_risco": "1"}]
    result = generate_insights(records, IndexType.QUEUE_REQUEST, QueryMode.QUEUE, "2024-01-01", "2024-01-31")

    assert result == {"ok": True, "insights": "## Análise\n- ok", "error": None}
    system, user = captured["messages"]
    assert system["role"] == "system"
    assert "português brasileiro" in system["content"]
    assert "solicitação ambulatorial (fila)" in user["content"]
    assert "Período: 2024-01-01 a 2024-01-31" in user["content"]


def test_insights_degraded_when_llm_fails(monkeypatch):
    monkeypatch.setattr(InsightProxy, "_call_llm", lambda self, messages: None, raising=True)
    result = generate_insights([{"a": 1}], IndexType.SCHEDULING, QueryMode.NEW)
    assert result["ok"] is False
    assert result["error"] == "Erro ao gerar insights. Tente novamente."


def test_call_llm_without_key_skips_network(monkeypatch):
    monkeypatch.setattr(llm_proxy, "validate_api_key", lambda: False, raising=True)
    with patch("orchestrator.llm_proxy.requests.post") as post:
        assert InsightProxy()._call_llm([{"role": "user", "content": "x"}]) is None
    post.assert_not_called()


def test_call_llm_parses_message_content(monkeypatch):
    monkeypatch.setattr(llm_proxy, "validate_api_key", lambda: True, raising=True)
    resp = MagicMock()
    resp.status_code = 200
    resp.json.return_value = {"output": {"choices": [{"message": {"role": "assistant", "content": "texto"}}]}}
    with patch("orchestrator.llm_proxy.requests.post", return_value=resp) as post:
        assert InsightProxy(timeout_ms=1000)._call_llm([{"role": "user", "content": "x"}]) == "texto"
    assert post.call_args[1]["timeout"] == 1.0
    assert post.call_args[1]["json"]["input"]["messages"][0]["content"] == "x"
