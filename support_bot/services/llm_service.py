import logging
import time

from openai import OpenAI

from support_bot.core.config import get_settings
from support_bot.core.errors import OracleMalformedOutput, OracleUnavailable

logger = logging.getLogger(__name__)


class LLMService:
    """
    Thin adapter over the hosted completion API.

    ``complete`` either returns non-empty text or raises ``OracleUnavailable``.
    Timeout and retry-with-backoff are delegated to the OpenAI client.
    """

    def __init__(self) -> None:
        self.settings = get_settings()
        self.client = (
            OpenAI(
                api_key=self.settings.openai_api_key,
                timeout=self.settings.llm_timeout_seconds,
                max_retries=max(self.settings.llm_max_retries, 0),
            )
            if self.settings.openai_api_key
            else None
        )

    def complete(self, prompt: str, max_tokens: int, temperature: float | None = None) -> str:
        if not self.client:
            raise OracleUnavailable("Language model is not configured")

        request: dict = {
            "model": self.settings.default_model,
            "input": prompt,
            "max_output_tokens": max_tokens,
        }
        if temperature is not None:
            request["temperature"] = temperature

        start = time.perf_counter()
        try:
            result = self.client.responses.create(**request)
        except Exception as exc:  # noqa: BLE001
            logger.warning("completion request failed: %s", exc)
            raise OracleUnavailable(f"Completion request failed: {exc.__class__.__name__}") from exc
        logger.debug("completion took %.1f ms", (time.perf_counter() - start) * 1000)

        text = getattr(result, "output_text", None)
        if not isinstance(text, str) or not text.strip():
            raise OracleMalformedOutput("Completion returned no text")
        return text.strip()
