"""Per-caller Rate Limiter — fixed window request counting.

Each caller gets a window created lazily on first request:
  - first request, or now > reset_at → window resets to count=1, allow
  - count >= max_requests            → deny (count not incremented)
  - otherwise                        → increment, allow

Windows are never swept; the caller table grows with the number of
distinct callers seen by the process.

Thread-safe via a single lock around each read-modify-write.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

from zenex_ai.core.metrics import RATE_LIMIT_REJECTIONS

logger = logging.getLogger(__name__)

DEFAULT_MAX_REQUESTS = 50
DEFAULT_WINDOW_SECONDS = 3600.0  # 1 hour


@dataclass
class _CallerWindow:
    """Fixed window state for a single caller."""

    count: int
    reset_at: float


class CallerRateLimiter:
    """Fixed window limiter keyed by caller id.

    Usage:
        limiter = CallerRateLimiter()

        if not limiter.check_rate_limit(user_id):
            raise RateLimitExceededError(...)
    """

    def __init__(
        self,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, _CallerWindow] = {}
        self._lock = threading.Lock()

    def check_rate_limit(self, caller_id: str, max_requests: int | None = None) -> bool:
        """Count one request for the caller. Returns False when the window is exhausted."""
        limit = self.max_requests if max_requests is None else max_requests

        with self._lock:
            now = self._clock()
            window = self._windows.get(caller_id)

            if window is None or now > window.reset_at:
                self._windows[caller_id] = _CallerWindow(count=1, reset_at=now + self.window_seconds)
                return True

            if window.count >= limit:
                allowed = False
            else:
                window.count += 1
                allowed = True

        if not allowed:
            RATE_LIMIT_REJECTIONS.inc()
            logger.info("Rate limit exceeded for caller %s (%d requests)", caller_id, limit)
        return allowed

    def get_stats(self, caller_id: str) -> dict:
        """Current window for a caller (count 0 when none is open)."""
        with self._lock:
            window = self._windows.get(caller_id)
            now = self._clock()
            if window is None or now > window.reset_at:
                return {"caller_id": caller_id, "count": 0, "reset_in_seconds": 0.0}
            return {
                "caller_id": caller_id,
                "count": window.count,
                "reset_in_seconds": window.reset_at - now,
            }

    @property
    def tracked_callers(self) -> int:
        return len(self._windows)
