"""Response Cache — TTL-bounded memoization of (role, prompt, context) → response.

Entries expire a fixed TTL after insertion regardless of reads. Expired
entries are removed actively (oldest-expiry-first heap, drained on every
access), so an expired entry is never returned. No size bound, no LRU.
"""

from __future__ import annotations

import heapq
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Generic, Hashable, TypeVar

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600.0  # 1 hour

V = TypeVar("V")


@dataclass
class _CacheEntry(Generic[V]):
    value: V
    expires_at: float


class ResponseCache(Generic[V]):
    """In-memory cache with per-entry absolute expiry."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, _CacheEntry[V]] = {}
        self._expiry_heap: list[tuple[float, int, Hashable]] = []
        self._seq = 0  # tie-breaker so keys themselves are never compared
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def _purge_expired(self, now: float) -> None:
        while self._expiry_heap and self._expiry_heap[0][0] <= now:
            expires_at, _, key = heapq.heappop(self._expiry_heap)
            entry = self._entries.get(key)
            # A re-set key leaves a stale heap record behind; only drop the live entry if it is due
            if entry is not None and entry.expires_at <= now:
                del self._entries[key]

    def get(self, key: Hashable) -> V | None:
        """Return the stored value, or None on miss/expiry."""
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            self.hits += 1
            return entry.value

    def set(self, key: Hashable, value: V, ttl_seconds: float | None = None) -> None:
        """Store a value; it is removed ``ttl_seconds`` later regardless of reads."""
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            expires_at = now + ttl
            self._entries[key] = _CacheEntry(value=value, expires_at=expires_at)
            self._seq += 1
            heapq.heappush(self._expiry_heap, (expires_at, self._seq, key))

    def __len__(self) -> int:
        with self._lock:
            self._purge_expired(self._clock())
            return len(self._entries)

    def hit_rate(self) -> float:
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / float(total)
