"""Error taxonomy for the generation core.

Every error carries the HTTP status the API boundary maps it to; the core
itself never looks at ``status_code``.
"""

from __future__ import annotations


class ZenexError(Exception):
    """Base class for all structured, user-visible failures."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(ZenexError):
    """Missing or invalid startup configuration (e.g. an empty credential pool)."""

    status_code = 500


class PromptBlockedError(ZenexError):
    """Inbound prompt rejected by the firewall. Never retried."""

    status_code = 400

    def __init__(self, reason: str, risk_level: str = "high"):
        super().__init__(f"Prompt blocked: {reason}")
        self.reason = reason
        self.risk_level = risk_level


class RateLimitExceededError(ZenexError):
    status_code = 429


class InsufficientCreditsError(ZenexError):
    status_code = 403


class UnsafeOutputError(ZenexError):
    """Generated markup contains script/eval/exec/Function/dynamic import."""

    status_code = 422


class ProviderCallError(ZenexError):
    """Transient upstream failure (network, quota, timeout, malformed response)."""

    status_code = 502

    def __init__(self, message: str, provider: str = "", status_code: int = 0, error_code: str = ""):
        super().__init__(message)
        self.provider = provider
        self.upstream_status = status_code
        self.error_code = error_code


class ProviderUnavailableError(ZenexError):
    """Every provider on the request's path failed."""

    status_code = 503
