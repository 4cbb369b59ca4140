"""Error reporting to Honeybadger.

Reporting is best effort: a missing API key disables it and any failure to
deliver a notice is logged, never raised.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from honeybadger import honeybadger

import config

log = logging.getLogger(__name__)


def notice_context(exc: BaseException, context: dict[str, Any] | None = None) -> dict[str, Any]:
    """Invocation context plus the public attributes of ``exc``."""
    error_details = {
        key: value
        for key, value in vars(exc).items()
        if not key.startswith("_") and isinstance(value, (str, int, float, bool, dict, list))
    }
    return {**(context or {}), "error_details": error_details}


class ErrorReporter:
    def __init__(self, api_key: str | None = None, *, environment: str | None = None, notifier=honeybadger):
        self.api_key = api_key if api_key is not None else config.HONEYBADGER_API_KEY
        self._notifier = notifier
        if self.enabled:
            self._notifier.configure(api_key=self.api_key, environment=environment or config.ENVIRONMENT)

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def notify(self, exc: BaseException, context: dict[str, Any] | None = None) -> None:
        if not self.enabled:
            return
        try:
            # the client sends synchronously
            await asyncio.to_thread(self._notifier.notify, exc, context=notice_context(exc, context))
        except Exception:
            log.error("Failed to report %s to Honeybadger", type(exc).__name__, exc_info=True)
