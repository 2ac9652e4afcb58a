import logging
import time
from typing import TypedDict

from langgraph.graph import END, START, StateGraph

from support_bot.core.errors import InvalidRequest, SessionNotFound
from support_bot.schemas.domain import ChatTurnResult, EscalationDecision, Message
from support_bot.services.answer_service import AnswerGenerator
from support_bot.services.escalation_service import EscalationClassifier, EscalationNotifier
from support_bot.services.session_service import SessionService

logger = logging.getLogger(__name__)

ESCALATION_NOTICE = (
    "I understand this requires special attention. I'm escalating your case to our support team. "
    "They will contact you shortly at your registered email. Your session ID is: {session_id}. "
    "Reason: {reason}"
)


class TurnState(TypedDict, total=False):
    session_id: str
    message: str
    history: list[Message]
    decision: EscalationDecision
    response: str
    confidence: float
    escalated: bool
    escalation_reason: str | None
    latency_ms: float
    message_count: int


class ChatOrchestrator:
    """
    One chat turn: store the user message, classify, then either escalate or answer.

    The escalate branch never calls the answer generator. Turns against the
    same session are serialized by the session service's lock registry.
    """

    def __init__(
        self,
        sessions: SessionService,
        classifier: EscalationClassifier | None = None,
        generator: AnswerGenerator | None = None,
        notifier: EscalationNotifier | None = None,
    ) -> None:
        self.sessions = sessions
        self.classifier = classifier or EscalationClassifier()
        self.generator = generator or AnswerGenerator()
        self.notifier = notifier or EscalationNotifier()
        self.graph = self._build_graph()

    def _build_graph(self):
        graph = StateGraph(TurnState)
        graph.add_node("append_user", self._append_user)
        graph.add_node("classify", self._classify)
        graph.add_node("escalate", self._escalate)
        graph.add_node("answer", self._answer)
        graph.add_node("finalize", self._finalize)

        graph.add_edge(START, "append_user")
        graph.add_edge("append_user", "classify")
        graph.add_conditional_edges(
            "classify",
            self._route_after_classify,
            {"escalate": "escalate", "answer": "answer"},
        )
        graph.add_edge("escalate", "finalize")
        graph.add_edge("answer", "finalize")
        graph.add_edge("finalize", END)

        return graph.compile()

    def run(
        self,
        session_id: str,
        message: str,
        history: list[Message] | None = None,
        owner_id: str | None = None,
    ) -> ChatTurnResult:
        if not (message or "").strip():
            raise InvalidRequest()

        with self.sessions.locks.hold(session_id):
            session = self.sessions.require(session_id)
            if owner_id is not None and session.owner_id != owner_id:
                raise SessionNotFound()

            state = self.graph.invoke(
                {
                    "session_id": session_id,
                    "message": message,
                    "history": list(history) if history else list(session.messages),
                }
            )

        return ChatTurnResult(
            session_id=session_id,
            response=state.get("response", ""),
            escalated=bool(state.get("escalated", False)),
            confidence=float(state.get("confidence", 0.0)),
            escalation_reason=state.get("escalation_reason"),
        )

    def _append_user(self, state: TurnState) -> TurnState:
        session = self.sessions.append_message(state["session_id"], Message(role="user", content=state["message"]))
        return {"message_count": len(session.messages)}

    def _classify(self, state: TurnState) -> TurnState:
        decision = self.classifier.classify(state["message"], state.get("history", []))
        return {"decision": decision}

    def _escalate(self, state: TurnState) -> TurnState:
        decision = state["decision"]
        session, transitioned = self.sessions.escalate(state["session_id"], decision.reason)
        if transitioned:
            self.notifier.notify(session, decision.confidence)
        # Report the reason on record, which is the first escalation's.
        reason = session.escalation_reason or decision.reason
        return {
            "escalated": True,
            "escalation_reason": reason,
            "confidence": decision.confidence,
            "response": ESCALATION_NOTICE.format(session_id=state["session_id"], reason=reason),
        }

    def _answer(self, state: TurnState) -> TurnState:
        start = time.perf_counter()
        answer = self.generator.generate(state["message"], state.get("history", []))
        latency_ms = (time.perf_counter() - start) * 1000
        self.sessions.append_message(
            state["session_id"],
            Message(
                role="assistant",
                content=answer.response,
                confidence=answer.confidence,
                latency_ms=latency_ms,
            ),
        )
        return {
            "escalated": False,
            "escalation_reason": None,
            "confidence": answer.confidence,
            "response": answer.response,
            "latency_ms": latency_ms,
        }

    def _finalize(self, state: TurnState) -> TurnState:
        logger.info(
            "chat turn session=%s escalated=%s confidence=%.2f",
            state["session_id"],
            bool(state.get("escalated")),
            float(state.get("confidence", 0.0)),
        )
        return {
            "escalated": bool(state.get("escalated", False)),
            "confidence": float(state.get("confidence", 0.0)),
            "escalation_reason": state.get("escalation_reason"),
        }

    @staticmethod
    def _route_after_classify(state: TurnState) -> str:
        if state["decision"].should_escalate:
            return "escalate"
        return "answer"
