import json
import logging
import re

from support_bot.core.config import get_settings
from support_bot.core.errors import OracleMalformedOutput, OracleUnavailable
from support_bot.integrations.email_client import EmailClient
from support_bot.schemas.domain import ChatSession, EscalationDecision, Message
from support_bot.services.llm_service import LLMService

logger = logging.getLogger(__name__)

UNDETERMINED_DECISION = EscalationDecision(
    should_escalate=False,
    confidence=0.5,
    reason="Unable to determine escalation",
)
DEFAULT_REASON = "Escalation needed"
DECISION_KEYS = ("shouldEscalate", "confidence", "reason")

FENCED_JSON_RE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)
OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def render_history(history: list[Message]) -> str:
    return "\n".join(f"{msg.role}: {msg.content}" for msg in history)


def _extract_json_object(text: str) -> dict:
    candidates = [match.group(1) for match in FENCED_JSON_RE.finditer(text)]
    outer = OBJECT_RE.search(text)
    if outer:
        candidates.append(outer.group(0))
    candidates.append(text)

    for candidate in candidates:
        try:
            payload = json.loads(candidate.strip())
        except json.JSONDecodeError:
            continue
        if isinstance(payload, dict):
            return payload
    raise OracleMalformedOutput("No JSON object in classifier output")


def _coerce_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return False


def _coerce_confidence(value) -> float:
    if isinstance(value, bool):
        return 0.5
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return 0.5
    if confidence != confidence:  # NaN
        return 0.5
    return max(0.0, min(confidence, 1.0))


def parse_escalation_decision(text: str) -> EscalationDecision:
    """
    Leniently parse the classifier's reply.

    Accepts a fenced ```json block, a bare object, or an object embedded in
    prose. Raises ``OracleMalformedOutput`` when there is no object or when the
    object carries none of the expected keys; missing individual keys take
    their defaults.
    """
    payload = _extract_json_object(text)
    if not any(key in payload for key in DECISION_KEYS):
        raise OracleMalformedOutput("Classifier output has none of the expected fields")

    reason = payload.get("reason")
    reason = reason.strip() if isinstance(reason, str) else ""
    return EscalationDecision(
        should_escalate=_coerce_bool(payload.get("shouldEscalate", False)),
        confidence=_coerce_confidence(payload.get("confidence", 0.5)),
        reason=reason or DEFAULT_REASON,
    )


class EscalationClassifier:
    def __init__(self, llm: LLMService | None = None) -> None:
        self.settings = get_settings()
        self.llm = llm or LLMService()

    def build_prompt(self, message: str, history: list[Message]) -> str:
        turns = max(self.settings.escalation_history_turns, 0)
        recent = history[-turns:] if turns else []
        return (
            "Based on this customer support conversation, determine if the issue should be "
            "escalated to a human agent.\n\n"
            "Escalate if:\n"
            "- The customer is frustrated or angry\n"
            "- The issue is complex and requires human judgment\n"
            "- The question is outside the FAQ scope\n"
            "- The customer explicitly requests a human agent\n"
            "- Multiple failed attempts to resolve\n\n"
            f"Conversation so far:\n{render_history(recent) or '(none)'}\n\n"
            f'Customer message: "{message}"\n\n'
            'Respond with JSON only: { "shouldEscalate": boolean, "confidence": number (0-1), "reason": string }'
        )

    def classify(self, message: str, history: list[Message]) -> EscalationDecision:
        try:
            text = self.llm.complete(self.build_prompt(message, history), max_tokens=200)
            return parse_escalation_decision(text)
        except OracleUnavailable as exc:
            logger.warning("escalation classification fallback: %s", exc)
            return UNDETERMINED_DECISION


class EscalationNotifier:
    def __init__(self, email: EmailClient | None = None) -> None:
        self.email = email or EmailClient()

    def notify(self, session: ChatSession, confidence: float) -> None:
        reason = session.escalation_reason or DEFAULT_REASON
        self.email.send(
            subject=f"[Escalation] Session {session.id} - {reason}",
            body=self._build_email_body(session, reason, confidence),
        )

    @staticmethod
    def _build_email_body(session: ChatSession, reason: str, confidence: float) -> str:
        # Conversation content stays in the session store; the notice only points at it.
        return "\n".join(
            [
                f"Session: {session.id}",
                f"Owner: {session.owner_id}",
                f"Reason: {reason}",
                f"Classifier confidence: {confidence:.2f}",
                f"Messages so far: {len(session.messages)}",
                f"Escalated at: {session.updated_at.isoformat()}",
            ]
        )
