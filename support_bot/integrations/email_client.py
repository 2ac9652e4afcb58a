import logging
import smtplib
from email.message import EmailMessage

from support_bot.core.config import get_settings

logger = logging.getLogger(__name__)

MAX_SUBJECT_LENGTH = 200


def clean_subject(subject: str) -> str:
    """Single-line, bounded header value. Subjects can carry model-generated text."""
    flattened = " ".join(subject.replace("\r", " ").replace("\n", " ").split())
    if len(flattened) > MAX_SUBJECT_LENGTH:
        return flattened[: MAX_SUBJECT_LENGTH - 3].rstrip() + "..."
    return flattened


class EmailClient:
    """Support-desk mailer. Delivery problems are logged, never raised to the chat turn."""

    def __init__(self) -> None:
        self.settings = get_settings()

    def _build_message(self, subject: str, body: str, recipient: str) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = clean_subject(subject)
        message["From"] = self.settings.escalation_email_from
        message["To"] = recipient
        message.set_content(body)
        return message

    def send(self, subject: str, body: str, to_address: str | None = None) -> bool:
        if not self.settings.smtp_host:
            logger.info("SMTP not configured, skipping escalation notice: %s", clean_subject(subject))
            return False

        try:
            message = self._build_message(subject, body, to_address or self.settings.escalation_email_to)
            with smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port, timeout=10) as server:
                if self.settings.smtp_use_tls:
                    server.starttls()
                if self.settings.smtp_username and self.settings.smtp_password:
                    server.login(self.settings.smtp_username, self.settings.smtp_password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError, ValueError) as exc:
            logger.warning("escalation notice not delivered: %s", exc)
            return False
        return True
