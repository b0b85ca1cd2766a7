"""Core types and DTOs for the AI Generation Gateway."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Role(str, Enum):
    """Which AI pass a request belongs to."""

    ARCHITECT = "architect"  # Structural/design plan from a raw request
    ENGINEER = "engineer"  # Renderable markup; also the fallback path


class ProviderId(str, Enum):
    """Supported upstream providers."""

    ANTHROPIC = "anthropic"
    GROQ = "groq"
    GEMINI = "gemini"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ---------------------------------------------------------------------------
# Request / Response: the manager's public contract
# ---------------------------------------------------------------------------


@dataclass
class AIRequest:
    """A single generation request, created per inbound call."""

    prompt: str
    role: Role
    caller_id: str
    context: str | None = None

    @property
    def cache_key(self) -> tuple[str, str, str]:
        """Exact (role, prompt, context) triple; no normalization applied."""
        return (self.role.value, self.prompt, self.context or "")


@dataclass
class AIResponse:
    """Unified response from any provider.

    ``cached`` is derived per lookup and is not part of cache identity.
    """

    content: str
    provider: ProviderId
    tokens_used: int | None = None
    cached: bool = False
    model: str = ""  # Model version reported upstream, else the configured id

    def to_dict(self) -> dict:
        return {
            "content": self.content,
            "provider": self.provider.value,
            "model": self.model,
            "tokens_used": self.tokens_used,
            "cached": self.cached,
        }


@dataclass(frozen=True)
class FirewallVerdict:
    """Safety classification attached to every inbound prompt."""

    safe: bool
    risk_level: RiskLevel = RiskLevel.LOW
    reason: str | None = None
    category: str | None = None  # Blocked-pattern category, when one matched


# ---------------------------------------------------------------------------
# Provider call: input/output of the adapter boundary
# ---------------------------------------------------------------------------


@dataclass
class ProviderCall:
    """Parameters for one upstream call. The credential is drawn by the adapter."""

    prompt: str
    model: str
    max_tokens: int = 4096
    temperature: float = 0.7
    timeout_seconds: float = 60.0


@dataclass
class ProviderResult:
    """Raw text and usage as reported by a provider."""

    text: str
    model_version: str = ""
    input_tokens: int | None = None
    output_tokens: int | None = None
    total_tokens: int | None = None
    latency_ms: int = 0

    @property
    def tokens_used(self) -> int | None:
        if self.total_tokens is not None:
            return self.total_tokens
        if self.input_tokens is None and self.output_tokens is None:
            return None
        return (self.input_tokens or 0) + (self.output_tokens or 0)


# ---------------------------------------------------------------------------
# Role config
# ---------------------------------------------------------------------------


@dataclass
class RoleConfig:
    """Which provider serves a role and with which generation parameters."""

    role: Role
    provider: ProviderId
    model: str
    max_tokens: int
    temperature: float
    timeout_seconds: float = 60.0
