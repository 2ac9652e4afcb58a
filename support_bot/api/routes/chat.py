from fastapi import APIRouter, Depends, Request, status

from support_bot.api.deps import get_orchestrator, get_session_service
from support_bot.core.security import get_current_owner, get_optional_owner
from support_bot.schemas.chat import (
    ChatMessageRequest,
    ChatMessageResponse,
    MessageView,
    SessionResponse,
)
from support_bot.schemas.domain import Message, SessionMetadata
from support_bot.services.orchestration import ChatOrchestrator
from support_bot.services.session_service import SessionService

router = APIRouter(tags=["chat"])


@router.post("/sessions", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def create_session(
    request: Request,
    owner_id: str = Depends(get_current_owner),
    sessions: SessionService = Depends(get_session_service),
) -> SessionResponse:
    metadata = SessionMetadata(
        user_agent=request.headers.get("user-agent") or None,
        ip_address=request.client.host if request.client else None,
    )
    session = sessions.create(owner_id, metadata)
    return SessionResponse(
        session_id=session.id,
        created_at=session.created_at,
        messages=[MessageView(role=m.role, content=m.content, timestamp=m.timestamp) for m in session.messages],
        escalated=session.escalated,
    )


@router.post("/chat", response_model=ChatMessageResponse, response_model_exclude_none=True)
def send_message(
    payload: ChatMessageRequest,
    owner_id: str | None = Depends(get_optional_owner),
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
) -> ChatMessageResponse:
    history = [Message(role=item.role, content=item.content) for item in payload.conversation_history]
    result = orchestrator.run(
        session_id=payload.session_id,
        message=payload.message or "",
        history=history,
        owner_id=owner_id,
    )
    return ChatMessageResponse(
        response=result.response,
        escalated=result.escalated,
        confidence=result.confidence,
        session_id=result.session_id,
        escalation_reason=result.escalation_reason,
    )
