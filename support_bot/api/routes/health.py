from fastapi import APIRouter, Depends

from support_bot.api.deps import get_session_service
from support_bot.core.config import get_settings
from support_bot.core.security import get_current_owner
from support_bot.schemas.chat import MetricsResponse
from support_bot.schemas.common import HealthResponse
from support_bot.services.metrics_service import compute_metrics
from support_bot.services.session_service import SessionService

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    settings = get_settings()
    return HealthResponse(status="ok", app_env=settings.app_env)


@router.get("/metrics", response_model=MetricsResponse)
def metrics(
    owner_id: str = Depends(get_current_owner),
    sessions: SessionService = Depends(get_session_service),
) -> MetricsResponse:
    rollup = compute_metrics(sessions.list_for_owner(owner_id))
    return MetricsResponse(
        total_sessions=rollup.total_sessions,
        escalated_sessions=rollup.escalated_sessions,
        escalation_rate=rollup.escalation_rate,
        total_messages=rollup.total_messages,
        average_messages_per_session=rollup.average_messages_per_session,
        average_confidence=rollup.average_confidence,
        average_response_time_ms=rollup.average_response_time_ms,
    )
