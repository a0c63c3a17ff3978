import logging
import sys
from typing import Optional

# threadName tells the constraint fan-out reads apart
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(threadName)s | %(name)s | %(message)s"

# Client libraries that log every request at INFO; the gateway and dspy wrappers log their own summary
_QUIET_LOGGERS = ("httpx", "httpcore", "LiteLLM", "urllib3")


def configure_logging(level: Optional[str] = None) -> None:
    """Attach one stdout handler to the root logger. A second call is a no-op."""
    root = logging.getLogger()
    if root.handlers:
        return
    if level is None:
        from mealplan.config import settings

        level = settings.log_level
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(level.upper())
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or "mealplan")
