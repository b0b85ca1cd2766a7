"""Site generation — the two-pass architect/engineer pipeline behind POST /generate.

Gates (in order): per-caller rate limit, credit ledger. Then the architect
pass designs the site, the engineer pass renders it with the architecture
as context, the markup is scanned, and the page is published.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from zenex_ai.core.config import Settings
from zenex_ai.core.exceptions import InsufficientCreditsError, RateLimitExceededError, UnsafeOutputError
from zenex_ai.gateway.firewall import validate_generated_code
from zenex_ai.gateway.manager import AIManager, SecurityEventSink, build_ai_manager
from zenex_ai.gateway.rate_limiter import CallerRateLimiter
from zenex_ai.gateway.types import AIRequest, Role
from zenex_ai.services.collaborators import (
    CreditLedger,
    FilePublisher,
    InMemoryCreditLedger,
    InMemoryFilePublisher,
)

logger = logging.getLogger(__name__)

ENTRY_FILE = "index.html"
UNSAFE_OUTPUT_EVENT = "unsafe_output"


@dataclass
class SiteGenerationResult:
    html: str
    architecture: str
    public_url: str
    preview_url: str
    architect_provider: str
    engineer_provider: str
    cached: bool = False

    def to_dict(self) -> dict:
        return {
            "html": self.html,
            "architecture": self.architecture,
            "public_url": self.public_url,
            "preview_url": self.preview_url,
            "architect_provider": self.architect_provider,
            "engineer_provider": self.engineer_provider,
            "cached": self.cached,
        }


class SiteGenerationService:
    def __init__(
        self,
        manager: AIManager,
        rate_limiter: CallerRateLimiter,
        credit_ledger: CreditLedger,
        publisher: FilePublisher,
        max_requests: int | None = None,
    ):
        self.manager = manager
        self.rate_limiter = rate_limiter
        self.credit_ledger = credit_ledger
        self.publisher = publisher
        self.max_requests = max_requests

    async def generate_site(
        self,
        user_id: str,
        project_id: str,
        prompt: str,
        site_type: str = "business",
    ) -> SiteGenerationResult:
        if not self.rate_limiter.check_rate_limit(user_id, self.max_requests):
            raise RateLimitExceededError("Rate limit exceeded. Try again in 1 hour.")

        if not await self.credit_ledger.consume_credit(user_id):
            raise InsufficientCreditsError("No credits remaining. Please upgrade your plan.")

        architecture = await self.manager.generate(
            AIRequest(prompt=f"Design a {site_type} website: {prompt}", role=Role.ARCHITECT, caller_id=user_id)
        )
        engineered = await self.manager.generate(
            AIRequest(
                prompt=f"Build HTML/CSS for: {prompt}",
                role=Role.ENGINEER,
                context=architecture.content,
                caller_id=user_id,
            )
        )

        if not validate_generated_code(engineered.content):
            logger.warning("Discarding unsafe markup generated for %s/%s", user_id, project_id)
            await self.manager.security_events.record(
                user_id, UNSAFE_OUTPUT_EVENT, "Generated markup contains executable code"
            )
            raise UnsafeOutputError("Generated code failed safety validation")

        published = await self.publisher.publish(user_id, project_id, ENTRY_FILE, engineered.content)
        logger.info(
            "Published %s/%s (architect=%s, engineer=%s)",
            user_id,
            project_id,
            architecture.provider.value,
            engineered.provider.value,
        )

        return SiteGenerationResult(
            html=engineered.content,
            architecture=architecture.content,
            public_url=published.public_url,
            preview_url=published.preview_url,
            architect_provider=architecture.provider.value,
            engineer_provider=engineered.provider.value,
            cached=architecture.cached and engineered.cached,
        )


def build_site_generation_service(
    settings: Settings,
    security_events: SecurityEventSink | None = None,
) -> SiteGenerationService:
    """Wire the process-wide service from settings (in-memory ledger and publisher)."""
    return SiteGenerationService(
        manager=build_ai_manager(settings, security_events=security_events),
        rate_limiter=CallerRateLimiter(
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
        ),
        credit_ledger=InMemoryCreditLedger(daily_credits=settings.daily_credits),
        publisher=InMemoryFilePublisher(
            cdn_base_url=settings.site_cdn_base_url,
            preview_base_url=settings.site_preview_base_url,
        ),
        max_requests=settings.rate_limit_max_requests,
    )
