"""Sentry error tracking.

Enabled only when SENTRY_DSN is set. Events leave the process without the
request body (user prompts) and with provider keys masked.
"""

import logging

from zenex_ai.core.config import settings
from zenex_ai.core.logging import CredentialRedactionFilter, configured_secrets

logger = logging.getLogger(__name__)


def scrub_event(event: dict, hint: dict | None = None) -> dict:
    """``before_send`` hook: drop prompt bodies, redact credentials in messages."""
    request = event.get("request")
    if isinstance(request, dict):
        request.pop("data", None)
        if "query_string" in request:
            request["query_string"] = ""

    redactor = CredentialRedactionFilter(configured_secrets())
    for value in (event.get("exception") or {}).get("values", []):
        if isinstance(value.get("value"), str):
            value["value"] = redactor.redact(value["value"])
    logentry = event.get("logentry")
    if isinstance(logentry, dict) and isinstance(logentry.get("message"), str):
        logentry["message"] = redactor.redact(logentry["message"])
    return event


def init_sentry() -> bool:
    """Initialize Sentry if SENTRY_DSN is configured. Returns whether it was initialized."""
    if not settings.sentry_dsn:
        logger.debug("Sentry DSN not configured, skipping")
        return False

    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.app_env,
        traces_sample_rate=0.1 if settings.is_production else 1.0,
        send_default_pii=False,
        before_send=scrub_event,
        integrations=[FastApiIntegration(transaction_style="endpoint")],
    )
    logger.info("Sentry initialized (env=%s)", settings.app_env)
    return True
