"""Domain exceptions.

These are business-logic errors, not HTTP errors. ``main.create_app`` registers
handlers that translate them into ``{"error": ...}`` responses.
"""


class SupportBotError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidRequest(SupportBotError):
    status_code = 400
    default_message = "Message cannot be empty"


class SessionNotFound(SupportBotError):
    status_code = 404
    default_message = "Session not found"


class Unauthorized(SupportBotError):
    status_code = 401
    default_message = "Unauthorized"


class StorageFault(SupportBotError):
    status_code = 500
    default_message = "Internal server error"


class OracleUnavailable(SupportBotError):
    """The completion service failed, timed out or is not configured."""

    status_code = 503
    default_message = "Language model unavailable"


class OracleMalformedOutput(OracleUnavailable):
    """The completion service answered, but not with usable text or structure."""

    default_message = "Language model returned malformed output"
