"""Round-robin credential pools, one per upstream provider."""

from __future__ import annotations

import threading

from zenex_ai.core.exceptions import ConfigurationError


class KeyRotator:
    """Cycles through a provider's credentials in insertion order.

    Built once at startup from a comma-delimited string; only the cursor
    mutates afterwards.
    """

    def __init__(self, raw_keys: str, provider: str = ""):
        self.provider = provider
        self._keys: tuple[str, ...] = tuple(k.strip() for k in (raw_keys or "").split(",") if k.strip())
        if not self._keys:
            label = f" for {provider}" if provider else ""
            raise ConfigurationError(f"No API keys provided{label}")
        self._cursor = 0
        self._lock = threading.Lock()

    def get_next(self) -> str:
        """Return the credential at the cursor and advance it circularly."""
        with self._lock:
            key = self._keys[self._cursor]
            self._cursor = (self._cursor + 1) % len(self._keys)
        return key

    def has_multiple(self) -> bool:
        return len(self._keys) > 1

    def __len__(self) -> int:
        return len(self._keys)

    def __repr__(self) -> str:
        # Never render credentials
        return f"KeyRotator(provider={self.provider!r}, size={len(self._keys)})"
