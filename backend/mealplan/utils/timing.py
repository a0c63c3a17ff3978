"""[TIMING] log lines for pipeline stages and gateway calls."""

import time
from contextlib import contextmanager

from mealplan.logging import get_logger

logger = get_logger(__name__)

_TIMING_PREFIX = "[TIMING]"


def format_duration(ms: int) -> str:
    """12500 -> '12.5s', 750 -> '750ms'."""
    if ms >= 1000:
        return f"{ms / 1000:.1f}s"
    return f"{ms}ms"


def elapsed_ms(started: float) -> int:
    """Milliseconds since a time.perf_counter() reading."""
    return int((time.perf_counter() - started) * 1000)


@contextmanager
def time_span(name: str, **fields: object):
    """Log one [TIMING] line with elapsed_ms and the given fields when the block exits, failed or not."""
    started = time.perf_counter()
    try:
        yield
    finally:
        ms = elapsed_ms(started)
        parts = [f"elapsed_ms={ms}", f"({format_duration(ms)})"]
        parts.extend(f"{k}={v}" for k, v in fields.items())
        logger.info("%s %s %s", _TIMING_PREFIX, name, " ".join(parts))
