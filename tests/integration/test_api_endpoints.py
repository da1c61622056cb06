"""
FastAPI 接口集成测试

作者: Tom
创建时间: 2025-11-22T10:15:26+08:00 (Asia/Shanghai)

说明：
- 使用 TestClient 调用接口；编排层入口通过 monkeypatch 替换，不发起远程请求
- 每个用例使用独立的 X-User-Id，避免凭证存储相互影响
"""

import uuid

import pytest
from fastapi.testclient import TestClient

import orchestrator
from api.main import app
from config.credentials import credential_store


client = TestClient(app)

CONFIG_BODY = {"base_url": "https://es.example/", "username": "user", "password": "secret"}


@pytest.fixture
def user_headers():
    user_id = f"user-{uuid.uuid4().hex[:8]}"
    yield {"X-User-Id": user_id}
    credential_store.delete(user_id)


def test_health():
    resp = client.get("/api/health")
    body = resp.json()
    assert resp.status_code == 200
    assert body["success"] is True
    assert body["data"]["status"] == "ok"


def test_config_roundtrip_hides_password(user_headers):
    resp = client.put("/api/config", json=CONFIG_BODY, headers=user_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data == {"configured": True, "base_url": "https://es.example", "username": "user", "stored": True}
    assert "secret" not in resp.text

    got = client.get("/api/config", headers=user_headers).json()["data"]
    assert got["stored"] is True
    assert "password" not in got

    deleted = client.delete("/api/config", headers=user_headers).json()["data"]
    assert deleted == {"deleted": True}


def test_fields_catalog():
    resp = client.get("/api/fields/solicitacao")
    data = resp.json()["data"]
    assert data["modes"] == ["fila"]
    assert "fila" in data["default_fields"]
    assert any(f["key"] == "sigla_situacao" for f in data["fields"])


def test_invalid_mode_combination_is_422():
    resp = client.post("/api/search/execute", json={"index_type": "marcacao", "mode": "fila"})
    body = resp.json()
    assert resp.status_code == 422
    assert body["code"] == 1001
    assert body["success"] is False


def test_search_passes_stored_credentials(monkeypatch, user_headers):
    client.put("/api/config", json=CONFIG_BODY, headers=user_headers)
    captured = {}

    def _fake_search(credentials, request):
        captured["credentials"], captured["request"] = credentials, request
        return {"ok": True, "error": None, "status": 200, "took": 3, "total": 1, "hits": [{"a": 1}]}

    monkeypatch.setattr(orchestrator, "search", _fake_search, raising=True)
    resp = client.post(
        "/api/search/execute",
        json={"index_type": "marcacao", "mode": "novas", "size": 50, "date_start": "2024-01-01", "date_end": "2024-01-31"},
        headers=user_headers,
    )
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["hits"] == [{"a": 1}]
    assert captured["credentials"].username == "user"
    assert captured["request"].size == 50


def test_remote_failure_is_wrapped(monkeypatch, user_headers):
    monkeypatch.setattr(
        orchestrator,
        "search",
        lambda credentials, request: {"ok": False, "error": "Acesso negado. Verifique suas permissões.", "status": 403},
        raising=True,
    )
    body = client.post("/api/search/execute", json={"mode": "quick"}, headers=user_headers).json()
    assert body["success"] is False
    assert body["code"] == 1003
    assert body["message"] == "Acesso negado. Verifique suas permissões."


def test_export_splits_flag_from_filters(monkeypatch, user_headers):
    captured = {}

    def _fake_export(credentials, request, export_all_pages=True):
        captured["request"], captured["all"] = request, export_all_pages
        return {"ok": True, "error": None, "data": {"base64": "", "filename": "f.xlsx"}}

    monkeypatch.setattr(orchestrator, "export_xlsx", _fake_export, raising=True)
    resp = client.post(
        "/api/search/export-xlsx",
        json={"index_type": "solicitacao", "mode": "fila", "export_all_pages": False},
        headers=user_headers,
    )
    assert resp.json()["success"] is True
    assert captured["all"] is False
    assert captured["request"].mode.value == "fila"


def test_top_procedures_limit_validated():
    resp = client.post("/api/metrics/top-procedures", json={"limit": 51})
    assert resp.status_code == 422


def test_explore_without_credentials(monkeypatch):
    monkeypatch.setattr(credential_store, "get", lambda user_id: None, raising=True)
    body = client.post("/api/explore/index", json={"index_type": "marcacao"}).json()
    assert body["success"] is False
    assert body["message"].startswith("Configuração não encontrada")


def test_insights_endpoint(monkeypatch):
    monkeypatch.setattr(
        orchestrator,
        "generate_insights",
        lambda data, index_type, mode, date_start, date_end: {"ok": True, "insights": "texto", "error": None},
        raising=True,
    )
    body = client.post("/api/insights/generate", json={"data": [{"a": 1}], "mode": "quick"}).json()
    assert body["data"]["insights"] == "texto"
