import logging
from dataclasses import dataclass

from support_bot.core.errors import OracleUnavailable
from support_bot.schemas.domain import Message
from support_bot.services.escalation_service import render_history
from support_bot.services.faq_service import render_faq_context
from support_bot.services.llm_service import LLMService

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a helpful customer support AI assistant. Your role is to:
1. Answer customer questions based on the provided FAQ database
2. Be friendly, professional, and concise
3. If you cannot find an answer in the FAQ, acknowledge this and suggest escalation
4. Maintain context from the conversation history
5. Provide accurate information only

When responding:
- If the answer is in the FAQ, provide it directly
- If the question is unclear, ask for clarification
- If the issue requires human intervention, indicate this clearly
- Always be empathetic and helpful"""

APOLOGY_RESPONSE = (
    "I apologize, but I encountered an error processing your request. "
    "Please try again or contact our support team."
)
APOLOGY_CONFIDENCE = 0.3

MAX_ANSWER_TOKENS = 500
ANSWER_TEMPERATURE = 0.7


def estimate_confidence(text: str) -> float:
    # Crude proxy: an answer that talks about escalating is one the model was unsure of.
    # Not a model probability.
    return 0.4 if "escalat" in text.lower() else 0.85


@dataclass(frozen=True)
class GeneratedAnswer:
    response: str
    confidence: float


class AnswerGenerator:
    def __init__(self, llm: LLMService | None = None) -> None:
        self.llm = llm or LLMService()

    def build_prompt(self, message: str, history: list[Message]) -> str:
        return (
            f"{SYSTEM_PROMPT}\n\n"
            f"FAQ Database:\n{render_faq_context()}\n\n"
            f"Conversation History:\n{render_history(history)}\n\n"
            f"Customer: {message}\n\n"
            "Provide a helpful response. If you're confident in your answer based on the FAQ, "
            "respond directly. If not, suggest escalation."
        )

    def generate(self, message: str, history: list[Message]) -> GeneratedAnswer:
        try:
            text = self.llm.complete(
                self.build_prompt(message, history),
                max_tokens=MAX_ANSWER_TOKENS,
                temperature=ANSWER_TEMPERATURE,
            )
        except OracleUnavailable as exc:
            logger.warning("response generation fallback: %s", exc)
            return GeneratedAnswer(response=APOLOGY_RESPONSE, confidence=APOLOGY_CONFIDENCE)
        return GeneratedAnswer(response=text, confidence=estimate_confidence(text))
