"""Provider Adapters — protocol-level handling for each upstream provider.

Each adapter draws one credential from its KeyRotator per call, sends the
prompt over the provider's HTTP protocol (bounded by the call's timeout)
and returns a ProviderResult. Every failure is raised as ProviderCallError.

Provider-specific behaviors:
  - Anthropic: Messages API, x-api-key header, usage = input + output tokens
  - Groq: OpenAI-compatible chat completions, usage.total_tokens
  - Gemini: generateContent, finishReason SAFETY → error (no text to return)
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod

import httpx

from zenex_ai.core.exceptions import ProviderCallError
from zenex_ai.core.metrics import PROVIDER_CALLS, PROVIDER_LATENCY
from zenex_ai.gateway.key_rotator import KeyRotator
from zenex_ai.gateway.types import ProviderCall, ProviderId, ProviderResult

logger = logging.getLogger(__name__)


class BaseProviderAdapter(ABC):
    """Base class for all provider adapters."""

    provider: ProviderId

    def __init__(self, rotator: KeyRotator):
        self.rotator = rotator

    def _next_credential(self) -> str:
        if self.rotator.has_multiple():
            logger.debug("Rotating %s credential (pool of %d)", self.provider.value, len(self.rotator))
        return self.rotator.get_next()

    async def send(self, call: ProviderCall) -> ProviderResult:
        """Run one upstream call; raise ProviderCallError on any failure."""
        api_key = self._next_credential()
        start = time.monotonic()
        try:
            result = await self._send(call, api_key)
        except ProviderCallError:
            PROVIDER_CALLS.labels(provider=self.provider.value, status="error").inc()
            raise
        except httpx.TimeoutException as e:
            PROVIDER_CALLS.labels(provider=self.provider.value, status="error").inc()
            raise self._error(f"Timeout after {call.timeout_seconds}s", error_code="TIMEOUT") from e
        except httpx.HTTPStatusError as e:
            PROVIDER_CALLS.labels(provider=self.provider.value, status="error").inc()
            raise self._error(
                str(e), status_code=e.response.status_code, error_code=str(e.response.status_code)
            ) from e
        except httpx.HTTPError as e:
            PROVIDER_CALLS.labels(provider=self.provider.value, status="error").inc()
            raise self._error(f"Network error: {e}", error_code="NETWORK") from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            PROVIDER_CALLS.labels(provider=self.provider.value, status="error").inc()
            raise self._error(f"Malformed response: {e!r}", error_code="MALFORMED_RESPONSE") from e

        elapsed = time.monotonic() - start
        result.latency_ms = int(elapsed * 1000)
        PROVIDER_CALLS.labels(provider=self.provider.value, status="success").inc()
        PROVIDER_LATENCY.labels(provider=self.provider.value).observe(elapsed)
        logger.debug(
            "%s answered with model %s in %dms",
            self.provider.value,
            result.model_version or call.model,
            result.latency_ms,
            extra={"provider": self.provider.value},
        )
        return result

    @abstractmethod
    async def _send(self, call: ProviderCall, api_key: str) -> ProviderResult:
        """Provider-specific request/response mapping."""
        ...

    def _error(self, message: str, status_code: int = 0, error_code: str = "") -> ProviderCallError:
        return ProviderCallError(
            f"{self.provider.value}: {message}",
            provider=self.provider.value,
            status_code=status_code,
            error_code=error_code,
        )

    def _check_rate_limited(self, resp: httpx.Response) -> None:
        if resp.status_code == 429:
            raise self._error("Rate limited", status_code=429, error_code="429")


# ---------------------------------------------------------------------------
# Anthropic Adapter (architect)
# ---------------------------------------------------------------------------


class AnthropicAdapter(BaseProviderAdapter):
    """Anthropic Messages API adapter."""

    provider = ProviderId.ANTHROPIC
    api_url = "https://api.anthropic.com/v1/messages"
    api_version = "2023-06-01"

    async def _send(self, call: ProviderCall, api_key: str) -> ProviderResult:
        payload = {
            "model": call.model,
            "max_tokens": call.max_tokens,
            "temperature": call.temperature,
            "messages": [{"role": "user", "content": call.prompt}],
        }

        async with httpx.AsyncClient(timeout=call.timeout_seconds) as client:
            resp = await client.post(
                self.api_url,
                json=payload,
                headers={
                    "x-api-key": api_key,
                    "anthropic-version": self.api_version,
                    "Content-Type": "application/json",
                },
            )

        self._check_rate_limited(resp)
        resp.raise_for_status()
        data = resp.json()

        # Only a leading text block is usable content
        first = data["content"][0]
        text = first.get("text", "") if first.get("type") == "text" else ""

        usage = data.get("usage") or {}
        return ProviderResult(
            text=text,
            model_version=data.get("model", call.model),
            input_tokens=usage.get("input_tokens"),
            output_tokens=usage.get("output_tokens"),
        )


# ---------------------------------------------------------------------------
# Groq Adapter (engineer)
# ---------------------------------------------------------------------------


class GroqAdapter(BaseProviderAdapter):
    """Groq adapter (OpenAI-compatible chat completions)."""

    provider = ProviderId.GROQ
    api_url = "https://api.groq.com/openai/v1/chat/completions"

    async def _send(self, call: ProviderCall, api_key: str) -> ProviderResult:
        payload = {
            "model": call.model,
            "messages": [{"role": "user", "content": call.prompt}],
            "max_tokens": call.max_tokens,
            "temperature": call.temperature,
        }

        async with httpx.AsyncClient(timeout=call.timeout_seconds) as client:
            resp = await client.post(
                self.api_url,
                json=payload,
                headers={
                    "Authorization": f"Bearer {api_key}",
                    "Content-Type": "application/json",
                },
            )

        self._check_rate_limited(resp)
        resp.raise_for_status()
        data = resp.json()

        choices = data.get("choices") or [{}]
        message = choices[0].get("message") or {}
        usage = data.get("usage") or {}
        return ProviderResult(
            text=message.get("content") or "",
            model_version=data.get("model", call.model),
            input_tokens=usage.get("prompt_tokens"),
            output_tokens=usage.get("completion_tokens"),
            total_tokens=usage.get("total_tokens"),
        )


# ---------------------------------------------------------------------------
# Gemini Adapter (Google AI)
# ---------------------------------------------------------------------------


class GeminiAdapter(BaseProviderAdapter):
    """Google Gemini adapter with SAFETY filter detection."""

    provider = ProviderId.GEMINI
    api_url_template = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

    async def _send(self, call: ProviderCall, api_key: str) -> ProviderResult:
        url = self.api_url_template.format(model=call.model)
        payload = {
            "contents": [{"role": "user", "parts": [{"text": call.prompt}]}],
            "generationConfig": {
                "temperature": call.temperature,
                "maxOutputTokens": call.max_tokens,
            },
        }

        async with httpx.AsyncClient(timeout=call.timeout_seconds) as client:
            resp = await client.post(
                url,
                json=payload,
                params={"key": api_key},
                headers={"Content-Type": "application/json"},
            )

        self._check_rate_limited(resp)
        resp.raise_for_status()
        data = resp.json()

        block_reason = (data.get("promptFeedback") or {}).get("blockReason")
        if block_reason:
            raise self._error(f"Prompt blocked by vendor: {block_reason}", error_code="SAFETY")

        candidate = data["candidates"][0]
        if candidate.get("finishReason") == "SAFETY":
            raise self._error("Response withheld by vendor safety filter", error_code="SAFETY")

        parts = (candidate.get("content") or {}).get("parts") or []
        usage = data.get("usageMetadata") or {}
        return ProviderResult(
            text="".join(p.get("text", "") for p in parts),
            model_version=data.get("modelVersion", call.model),
            input_tokens=usage.get("promptTokenCount"),
            output_tokens=usage.get("candidatesTokenCount"),
            total_tokens=usage.get("totalTokenCount"),
        )


# ---------------------------------------------------------------------------
# Adapter Registry
# ---------------------------------------------------------------------------

ADAPTER_REGISTRY: dict[ProviderId, type[BaseProviderAdapter]] = {
    ProviderId.ANTHROPIC: AnthropicAdapter,
    ProviderId.GROQ: GroqAdapter,
    ProviderId.GEMINI: GeminiAdapter,
}


def get_adapter(provider: ProviderId, rotator: KeyRotator) -> BaseProviderAdapter:
    """Create an adapter instance for the given provider."""
    adapter_cls = ADAPTER_REGISTRY.get(provider)
    if adapter_cls is None:
        raise ValueError(f"No adapter registered for provider: {provider}")
    return adapter_cls(rotator)
