import pytest
from fastapi.testclient import TestClient


def test_root_banner(client):
    root = client.get("/")
    assert root.status_code == 200
    assert root.json()["name"] == "Support Bot API"


def test_request_context_headers(client):
    response = client.get("/health", headers={"x-request-id": "abc-123"})
    assert response.headers["x-request-id"] == "abc-123"
    assert "x-process-time-ms" in response.headers


def test_e2e_chat_flow_updates_metrics(client, owner_headers, oracle):
    before = client.get("/metrics", headers=owner_headers).json()
    session = client.post("/sessions", headers=owner_headers).json()
    response = client.post(
        "/chat",
        json={"sessionId": session["sessionId"], "message": "Is my data secure?"},
    )
    assert response.status_code == 200

    after = client.get("/metrics", headers=owner_headers).json()
    assert after["totalSessions"] == before["totalSessions"] + 1
    assert after["totalMessages"] == before["totalMessages"] + 2


def test_in_memory_store_serves_the_same_protocol(monkeypatch, owner_headers, oracle):
    monkeypatch.setenv("SESSION_STORE", "memory")
    from support_bot.api.deps import get_orchestrator
    from support_bot.core.config import get_settings
    from support_bot.db.repository import InMemorySessionRepository, get_session_repository

    get_settings.cache_clear()
    get_session_repository.cache_clear()
    get_orchestrator.cache_clear()

    from support_bot.main import create_app

    with TestClient(create_app()) as local_client:
        session = local_client.post("/sessions", headers=owner_headers).json()
        response = local_client.post("/chat", json={"sessionId": session["sessionId"], "message": "hours?"})
        metrics = local_client.get("/metrics", headers=owner_headers).json()

    assert isinstance(get_session_repository(), InMemorySessionRepository)
    assert response.status_code == 200
    assert metrics["totalMessages"] == 2


def test_storage_fault_surfaces_as_500(client, owner_headers, monkeypatch):
    from support_bot.core.errors import StorageFault
    from support_bot.db.repository import SqlSessionRepository

    session = client.post("/sessions", headers=owner_headers).json()

    def broken_append(self, session_id, message):
        raise StorageFault("Session store failure: OperationalError")

    monkeypatch.setattr(SqlSessionRepository, "append_message", broken_append)
    response = client.post("/chat", json={"sessionId": session["sessionId"], "message": "hello"})
    assert response.status_code == 500
    assert response.json() == {"error": "Session store failure: OperationalError"}


def test_unexpected_error_is_a_generic_500(owner_headers, monkeypatch):
    from support_bot.main import create_app
    from support_bot.services.session_service import SessionService

    def explode(self, owner_id, metadata=None):
        raise RuntimeError("boom")

    monkeypatch.setattr(SessionService, "create", explode)
    with TestClient(create_app(), raise_server_exceptions=False) as local_client:
        response = local_client.post("/sessions", headers=owner_headers)

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_rate_limit_enforced_for_non_exempt_path(monkeypatch, owner_headers):
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "true")
    monkeypatch.setenv("RATE_LIMIT_REQUESTS_PER_MINUTE", "2")
    monkeypatch.setenv("RATE_LIMIT_EXEMPT_PATHS", "/health")

    from support_bot.core.config import get_settings

    get_settings.cache_clear()

    from support_bot.main import create_app

    with TestClient(create_app()) as local_client:
        first = local_client.post("/sessions", headers=owner_headers)
        second = local_client.post("/sessions", headers=owner_headers)
        third = local_client.post("/sessions", headers=owner_headers)
        health = [local_client.get("/health") for _ in range(3)]

    assert first.status_code == 201
    assert second.status_code == 201
    assert third.status_code == 429
    assert all(item.status_code == 200 for item in health)


def test_production_rejects_in_memory_store(monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("CORS_ORIGINS", "https://support.example.com")
    monkeypatch.setenv("SESSION_STORE", "memory")

    from support_bot.core.config import get_settings

    get_settings.cache_clear()

    with pytest.raises(ValueError):
        from support_bot.main import create_app

        create_app()
