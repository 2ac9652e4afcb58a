from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HistoryMessage(CamelModel):
    role: Literal["user", "assistant"]
    content: str


class ChatMessageRequest(CamelModel):
    session_id: str
    # Missing, null and blank text are rejected by the orchestrator with a 400, not by schema validation.
    message: str | None = Field(default=None, max_length=4000)
    conversation_history: list[HistoryMessage] = Field(default_factory=list)


class ChatMessageResponse(CamelModel):
    response: str
    escalated: bool
    confidence: float
    session_id: str
    escalation_reason: str | None = None


class MessageView(CamelModel):
    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime


class SessionResponse(CamelModel):
    session_id: str
    created_at: datetime
    messages: list[MessageView] = Field(default_factory=list)
    escalated: bool


class MetricsResponse(CamelModel):
    total_sessions: int
    escalated_sessions: int
    escalation_rate: float
    total_messages: int
    average_messages_per_session: float
    average_confidence: float
    average_response_time_ms: float
