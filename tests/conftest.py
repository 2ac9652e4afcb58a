from pathlib import Path

import pytest
from fastapi.testclient import TestClient

CLASSIFIER_MARKER = "shouldEscalate"


def _reset_runtime() -> None:
    from support_bot.api.deps import get_orchestrator
    from support_bot.core.config import get_settings
    from support_bot.db.repository import get_session_repository
    from support_bot.db.session import get_engine, get_session_factory

    get_settings.cache_clear()
    get_engine.cache_clear()
    get_session_factory.cache_clear()
    get_session_repository.cache_clear()
    get_orchestrator.cache_clear()


@pytest.fixture(autouse=True)
def runtime_env(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'test_support_bot.db'}")
    monkeypatch.setenv("SESSION_STORE", "database")
    monkeypatch.setenv("APP_ENV", "development")
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("SMTP_HOST", "")
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "false")
    _reset_runtime()
    yield
    _reset_runtime()


class ScriptedOracle:
    """Stands in for LLMService.complete; routes on which prompt it is given.

    Patched onto the class as a plain callable, so it is not bound and receives no self.
    """

    def __init__(self) -> None:
        self.classification = '{"shouldEscalate": false, "confidence": 0.9, "reason": "FAQ question"}'
        self.answer = "We are open Monday to Friday, 9 AM to 6 PM EST."
        self.classification_calls: list[str] = []
        self.answer_calls: list[str] = []

    def __call__(self, prompt: str, max_tokens: int, temperature: float | None = None) -> str:
        if CLASSIFIER_MARKER in prompt:
            self.classification_calls.append(prompt)
            result = self.classification
        else:
            self.answer_calls.append(prompt)
            result = self.answer
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture()
def oracle(monkeypatch) -> ScriptedOracle:
    from support_bot.services.llm_service import LLMService

    scripted = ScriptedOracle()
    monkeypatch.setattr(LLMService, "complete", scripted)
    return scripted


@pytest.fixture()
def client():
    from support_bot.main import create_app

    app = create_app()
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def owner_headers() -> dict[str, str]:
    return {"X-User-Id": "user-1", "User-Agent": "pytest-agent"}


class RecordingSMTP:
    """Minimal smtplib.SMTP stand-in that keeps sent messages in an outbox."""

    outbox: list = []

    def __init__(self, host: str, port: int, timeout: float | None = None) -> None:
        self.host = host

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> bool:
        return False

    def starttls(self) -> None:
        pass

    def login(self, username: str, password: str) -> None:
        pass

    def send_message(self, message) -> None:
        self.outbox.append(message)


@pytest.fixture()
def smtp_outbox(monkeypatch) -> list:
    import smtplib

    from support_bot.core.config import get_settings

    outbox: list = []
    monkeypatch.setattr(RecordingSMTP, "outbox", outbox)
    monkeypatch.setattr(smtplib, "SMTP", RecordingSMTP)
    monkeypatch.setenv("SMTP_HOST", "smtp.invalid")
    get_settings.cache_clear()
    return outbox
