import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Literal

Role = Literal["user", "assistant"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FaqCategory(str, Enum):
    GENERAL = "general"
    ACCOUNT = "account"
    BILLING = "billing"
    SHIPPING = "shipping"
    RETURNS = "returns"
    SUPPORT = "support"
    SECURITY = "security"


@dataclass(frozen=True)
class FaqEntry:
    id: int
    question: str
    answer: str
    category: FaqCategory


@dataclass(frozen=True)
class Message:
    role: Role
    content: str
    timestamp: datetime = field(default_factory=utcnow)
    # Set on assistant messages only; feeds the metrics rollup.
    confidence: float | None = None
    latency_ms: float | None = None


@dataclass(frozen=True)
class SessionMetadata:
    user_agent: str | None = None
    ip_address: str | None = None


@dataclass
class ChatSession:
    owner_id: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    messages: list[Message] = field(default_factory=list)
    escalated: bool = False
    escalation_reason: str | None = None
    metadata: SessionMetadata = field(default_factory=SessionMetadata)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.updated_at is None:
            self.updated_at = self.created_at

    @property
    def state(self) -> str:
        return "escalated" if self.escalated else "active"


@dataclass(frozen=True)
class EscalationDecision:
    should_escalate: bool
    confidence: float
    reason: str


@dataclass(frozen=True)
class ChatTurnResult:
    session_id: str
    response: str
    escalated: bool
    confidence: float
    escalation_reason: str | None = None
