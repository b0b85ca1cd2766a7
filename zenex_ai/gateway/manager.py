"""AI Manager — single ``generate`` entry point over firewall, cache and providers.

Per-request flow:
  RECEIVED → FIREWALL_CHECK → BLOCKED (PromptBlockedError)
                            → CACHE_LOOKUP → CACHE_HIT (copy with cached=True)
                                           → PROVIDER_CALL → SUCCESS
                                                           → FAILOVER → SUCCESS | FAILED

Failover is exactly one hop: an architect failure degrades the same request
to the engineer path; the engineer path has no fallback and its failure
becomes ProviderUnavailableError.

Usage:
    manager = build_ai_manager(settings)
    response = await manager.generate(AIRequest(prompt=..., role=Role.ARCHITECT, caller_id=user_id))
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Protocol

from zenex_ai.core.config import Settings
from zenex_ai.core.exceptions import ConfigurationError, PromptBlockedError, ProviderUnavailableError
from zenex_ai.core.metrics import CACHE_LOOKUPS, FIREWALL_BLOCKS, PROVIDER_FAILOVERS
from zenex_ai.gateway.cache import ResponseCache
from zenex_ai.gateway.firewall import check_prompt_safety
from zenex_ai.gateway.key_rotator import KeyRotator
from zenex_ai.gateway.prompts import PROMPT_BUILDERS
from zenex_ai.gateway.types import (
    AIRequest,
    AIResponse,
    FirewallVerdict,
    ProviderCall,
    ProviderId,
    Role,
    RoleConfig,
)
from zenex_ai.gateway.vendor_adapters import BaseProviderAdapter, get_adapter

logger = logging.getLogger(__name__)

PROMPT_BLOCKED_EVENT = "prompt_blocked"


class SecurityEventSink(Protocol):
    """Audit collaborator receiving firewall rejections."""

    async def record(self, caller_id: str, event_type: str, reason: str) -> None: ...


class LoggingSecurityEventSink:
    """Default sink: security events go to the log stream."""

    def __init__(self, logger_name: str = "zenex_ai.security"):
        self._logger = logging.getLogger(logger_name)

    async def record(self, caller_id: str, event_type: str, reason: str) -> None:
        self._logger.warning(
            "Security event %s for caller %s: %s",
            event_type,
            caller_id,
            reason,
            extra={"caller_id": caller_id, "event_type": event_type},
        )


class AIManager:
    """Composes firewall, response cache and provider adapters.

    Integrates:
      - Prompt Firewall: rejects unsafe prompts before any paid call
      - ResponseCache: dedups identical (role, prompt, context) requests
      - Provider Adapters: one per provider, each with its own KeyRotator
      - Failover: architect → engineer, exactly once
    """

    def __init__(
        self,
        adapters: dict[ProviderId, BaseProviderAdapter],
        role_configs: dict[Role, RoleConfig],
        cache: ResponseCache[AIResponse] | None = None,
        security_events: SecurityEventSink | None = None,
    ):
        for role in Role:
            config = role_configs.get(role)
            if config is None:
                raise ConfigurationError(f"No provider configured for the {role.value} role")
            if config.provider not in adapters:
                raise ConfigurationError(
                    f"{role.value} role is routed to {config.provider.value}, which has no adapter"
                )

        self.adapters = adapters
        self.role_configs = role_configs
        self.cache: ResponseCache[AIResponse] = cache if cache is not None else ResponseCache()
        self.security_events: SecurityEventSink = security_events or LoggingSecurityEventSink()

    async def generate(self, request: AIRequest) -> AIResponse:
        """Run a request through firewall, cache and provider routing."""
        await self.enforce_firewall(request)

        key = request.cache_key
        cached = self.cache.get(key)
        if cached is not None:
            CACHE_LOOKUPS.labels(result="hit").inc()
            logger.debug("Cache hit for %s request from %s", request.role.value, request.caller_id)
            return replace(cached, cached=True)
        CACHE_LOOKUPS.labels(result="miss").inc()

        if request.role is Role.ARCHITECT:
            response = await self._try_primary_or_fallback(request)
        else:
            response = await self._try_last_resort(request)

        self.cache.set(key, response)
        return replace(response, cached=False)

    async def enforce_firewall(self, request: AIRequest) -> FirewallVerdict:
        """Classify the prompt; record and raise on rejection."""
        verdict = check_prompt_safety(request.prompt)
        if verdict.safe:
            return verdict

        reason = verdict.reason or "unspecified"
        FIREWALL_BLOCKS.labels(risk_level=verdict.risk_level.value).inc()
        logger.warning(
            "[FIREWALL BLOCK] caller=%s risk=%s reason=%s",
            request.caller_id,
            verdict.risk_level.value,
            reason,
            extra={"caller_id": request.caller_id},
        )
        try:
            await self.security_events.record(request.caller_id, PROMPT_BLOCKED_EVENT, reason)
        except Exception:
            logger.exception("Failed to record security event for caller %s", request.caller_id)
        raise PromptBlockedError(reason, verdict.risk_level.value)

    async def _try_primary_or_fallback(self, request: AIRequest) -> AIResponse:
        try:
            return await self._call_role(Role.ARCHITECT, request)
        except Exception as e:
            PROVIDER_FAILOVERS.inc()
            error_code = getattr(e, "error_code", "") or type(e).__name__
            logger.warning(
                "Architect path failed [%s] (%s), falling back to engineer path",
                error_code,
                e,
                extra={
                    "caller_id": request.caller_id,
                    "provider": getattr(e, "provider", None),
                    "error_code": error_code,
                },
            )
        return await self._try_last_resort(request)

    async def _try_last_resort(self, request: AIRequest) -> AIResponse:
        try:
            return await self._call_role(Role.ENGINEER, request)
        except Exception as e:
            error_code = getattr(e, "error_code", "") or type(e).__name__
            logger.error(
                "Engineer path failed [%s]: %s",
                error_code,
                e,
                extra={
                    "caller_id": request.caller_id,
                    "provider": getattr(e, "provider", None),
                    "error_code": error_code,
                },
            )
            raise ProviderUnavailableError("All AI providers failed") from e

    async def _call_role(self, role: Role, request: AIRequest) -> AIResponse:
        config = self.role_configs[role]
        adapter = self.adapters[config.provider]
        call = ProviderCall(
            prompt=PROMPT_BUILDERS[role](request),
            model=config.model,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            timeout_seconds=config.timeout_seconds,
        )
        result = await adapter.send(call)
        return AIResponse(
            content=result.text,
            provider=config.provider,
            tokens_used=result.tokens_used,
            model=result.model_version or config.model,
        )

    def get_status(self) -> dict:
        return {
            "routes": {
                role.value: {"provider": cfg.provider.value, "model": cfg.model}
                for role, cfg in self.role_configs.items()
            },
            "credential_pools": {
                provider.value: len(adapter.rotator) for provider, adapter in self.adapters.items()
            },
            "cache": {"entries": len(self.cache), "hit_rate": round(self.cache.hit_rate(), 4)},
        }


def build_role_configs(settings: Settings) -> dict[Role, RoleConfig]:
    configs: dict[Role, RoleConfig] = {}
    for role in Role:
        raw_provider = getattr(settings, f"{role.value}_provider")
        try:
            provider = ProviderId(raw_provider)
        except ValueError:
            raise ConfigurationError(f"Unknown provider '{raw_provider}' for the {role.value} role") from None
        configs[role] = RoleConfig(
            role=role,
            provider=provider,
            model=settings.provider_model(provider.value),
            max_tokens=getattr(settings, f"{role.value}_max_tokens"),
            temperature=getattr(settings, f"{role.value}_temperature"),
            timeout_seconds=settings.provider_timeout_seconds,
        )
    return configs


def build_ai_manager(
    settings: Settings,
    security_events: SecurityEventSink | None = None,
) -> AIManager:
    """Build the process-wide manager: one KeyRotator per routed provider."""
    role_configs = build_role_configs(settings)

    adapters: dict[ProviderId, BaseProviderAdapter] = {}
    for config in role_configs.values():
        if config.provider in adapters:
            continue
        rotator = KeyRotator(settings.provider_keys(config.provider.value), provider=config.provider.value)
        adapters[config.provider] = get_adapter(config.provider, rotator)
        logger.info("Configured %s with %d credential(s)", config.provider.value, len(rotator))

    return AIManager(
        adapters=adapters,
        role_configs=role_configs,
        cache=ResponseCache(ttl_seconds=settings.response_cache_ttl_seconds),
        security_events=security_events,
    )
