import functools
import logging
import re
import time
from datetime import datetime, timezone
from typing import Any

log = logging.getLogger(__name__)

_SLACK_TS_RE = re.compile(r"^\d+(?:\.\d+)?$")


def parse_slack_ts(value: Any) -> datetime:
    """Convert a Slack message ``ts`` ("1700000000.123456") to an aware UTC datetime.

    The sub-second part is a uniqueness counter, not a time, so it is dropped.
    """
    raw = str(value or "").strip()
    if not _SLACK_TS_RE.fullmatch(raw):
        raise ValueError(f"not a Slack timestamp: {value!r}")
    seconds = int(raw.split(".", 1)[0])
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


# ---------------------------------------------------------------------------
# Latency tracking utilities
# ---------------------------------------------------------------------------

class LatencyTracker:
    """Context manager that logs wall-clock latency for a block of code.

    Usage::

        with LatencyTracker("dateparse", "extract_spans") as lt:
            spans = extract_spans(text, reference, parser)
        # lt.elapsed_ms is now set, log entry emitted at DEBUG level
    """

    __slots__ = ("service", "operation", "elapsed_ms", "_start", "_logger")

    def __init__(self, service: str, operation: str, *, logger: logging.Logger | None = None):
        self.service = service
        self.operation = operation
        self.elapsed_ms: float = 0.0
        self._start: float = 0.0
        self._logger = logger or logging.getLogger(f"latency.{service}")

    def __enter__(self) -> "LatencyTracker":
        self._start = time.monotonic()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.elapsed_ms = (time.monotonic() - self._start) * 1000
        self._logger.debug("%s.%s latency=%.1fms", self.service, self.operation, self.elapsed_ms)


def track_latency(service: str, operation: str | None = None):
    """Decorator that logs wall-clock latency of a coroutine function.

    The *operation* defaults to the function name.  Latency is logged at
    DEBUG to the ``latency.<service>`` logger, failures included.
    """

    def decorator(fn: Any) -> Any:
        op = operation or fn.__name__
        _logger = logging.getLogger(f"latency.{service}")

        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            start = time.monotonic()
            try:
                return await fn(*args, **kwargs)
            finally:
                ms = (time.monotonic() - start) * 1000
                _logger.debug("%s.%s latency=%.1fms", service, op, ms)

        return wrapper

    return decorator
