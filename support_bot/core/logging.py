import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(level.upper())

    # create_app() may run more than once per process (tests); keep a single handler.
    if not any(getattr(handler, "_support_bot", False) for handler in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._support_bot = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    for name in ("httpx", "openai"):
        logging.getLogger(name).setLevel(logging.WARNING)
