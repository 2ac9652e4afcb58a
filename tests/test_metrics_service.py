from support_bot.schemas.domain import ChatSession, Message
from support_bot.services.metrics_service import SessionMetrics, compute_metrics


def test_empty_set_has_zero_rates():
    assert compute_metrics([]) == SessionMetrics(
        total_sessions=0,
        escalated_sessions=0,
        escalation_rate=0.0,
        total_messages=0,
        average_messages_per_session=0.0,
        average_confidence=0.0,
        average_response_time_ms=0.0,
    )


def test_rollup_over_sessions():
    answered = ChatSession(
        owner_id="owner-a",
        messages=[
            Message(role="user", content="q1"),
            Message(role="assistant", content="a1", confidence=0.85, latency_ms=100.0),
            Message(role="user", content="q2"),
            Message(role="assistant", content="a2", confidence=0.4, latency_ms=300.0),
        ],
    )
    escalated = ChatSession(
        owner_id="owner-a",
        messages=[Message(role="user", content="human please")],
        escalated=True,
        escalation_reason="explicit human request",
    )
    idle = ChatSession(owner_id="owner-a")

    metrics = compute_metrics([answered, escalated, idle])

    assert metrics.total_sessions == 3
    assert metrics.escalated_sessions == 1
    assert metrics.escalation_rate == 1 / 3
    assert metrics.total_messages == 5
    assert metrics.average_messages_per_session == 1.67
    assert metrics.average_confidence == 0.625
    assert metrics.average_response_time_ms == 200.0


def test_sessions_without_answers_have_zero_confidence():
    metrics = compute_metrics([ChatSession(owner_id="o", messages=[Message(role="user", content="hi")])])
    assert metrics.average_confidence == 0.0
    assert metrics.average_response_time_ms == 0.0
    assert metrics.total_messages == 1
    assert metrics.average_messages_per_session == 1.0
