from collections.abc import Iterable
from dataclasses import dataclass

from support_bot.schemas.domain import ChatSession


@dataclass(frozen=True)
class SessionMetrics:
    total_sessions: int = 0
    escalated_sessions: int = 0
    escalation_rate: float = 0.0
    total_messages: int = 0
    average_messages_per_session: float = 0.0
    average_confidence: float = 0.0
    average_response_time_ms: float = 0.0


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def compute_metrics(sessions: Iterable[ChatSession]) -> SessionMetrics:
    sessions = list(sessions)
    total = len(sessions)
    escalated = sum(1 for session in sessions if session.escalated)
    messages = [message for session in sessions for message in session.messages]

    confidences = [m.confidence for m in messages if m.role == "assistant" and m.confidence is not None]
    latencies = [m.latency_ms for m in messages if m.role == "assistant" and m.latency_ms is not None]

    return SessionMetrics(
        total_sessions=total,
        escalated_sessions=escalated,
        escalation_rate=escalated / total if total else 0.0,
        total_messages=len(messages),
        average_messages_per_session=round(len(messages) / total, 2) if total else 0.0,
        average_confidence=round(_mean(confidences), 4),
        average_response_time_ms=round(_mean(latencies), 2),
    )
