from functools import lru_cache

from support_bot.db.repository import get_session_repository
from support_bot.services.orchestration import ChatOrchestrator
from support_bot.services.session_service import SessionService


def get_session_service() -> SessionService:
    return SessionService(get_session_repository())


@lru_cache(maxsize=1)
def get_orchestrator() -> ChatOrchestrator:
    # Built once per process: the compiled graph and the OpenAI/SMTP clients are reused across turns.
    return ChatOrchestrator(get_session_service())
