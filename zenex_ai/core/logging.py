"""Logging setup: one stdout handler, human or JSON lines, provider keys masked.

Every record passes through ``CredentialRedactionFilter`` before it is
formatted. Configured provider keys are replaced verbatim, and anything shaped
like a vendor key or a ``key=`` query parameter is masked as well, since
upstream URLs and error bodies end up in exception messages.
"""

import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Iterable

from zenex_ai.core.config import KNOWN_PROVIDERS, settings

REDACTED = "[REDACTED]"

# Extra attributes passed via ``logger.x(..., extra={...})`` that are copied to JSON output
CONTEXT_FIELDS = ("caller_id", "provider", "role", "event_type", "risk_level", "error_code")

_KEY_SHAPES = re.compile(
    r"(sk-ant-[A-Za-z0-9_\-]{8,}|gsk_[A-Za-z0-9]{8,}|AIza[0-9A-Za-z_\-]{20,}|([?&]key=)[^&\s\"']+)"
)


class CredentialRedactionFilter(logging.Filter):
    """Mask provider credentials in the rendered message and exception text."""

    def __init__(self, secrets: Iterable[str] = ()):
        super().__init__()
        self.secrets = sorted({s for s in secrets if s}, key=len, reverse=True)

    def redact(self, text: str) -> str:
        for secret in self.secrets:
            text = text.replace(secret, REDACTED)
        return _KEY_SHAPES.sub(lambda m: (m.group(2) or "") + REDACTED, text)

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = self.redact(message)
        if redacted != message:
            record.msg, record.args = redacted, None
        if record.exc_info and record.exc_info[1] and not record.exc_text:
            record.exc_text = self.redact(logging.Formatter().formatException(record.exc_info))
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_text:
            log_data["exception"] = record.exc_text
        elif record.exc_info and record.exc_info[1]:
            log_data["exception"] = self.formatException(record.exc_info)
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_data[field] = getattr(value, "value", value)
        return json.dumps(log_data, ensure_ascii=False)


def configured_secrets() -> list[str]:
    secrets: list[str] = []
    for provider in KNOWN_PROVIDERS:
        secrets.extend(k.strip() for k in settings.provider_keys(provider).split(","))
    return [s for s in secrets if s]


def setup_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """Replace root handlers with a single redacting stdout handler."""
    level_name = (level or settings.log_level).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)
    use_json = settings.log_json if json_output is None else json_output

    root = logging.getLogger()
    root.setLevel(numeric_level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.addFilter(CredentialRedactionFilter(configured_secrets()))
    if use_json:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    root.addHandler(handler)

    # Request lines from httpx include the full URL (Gemini passes ?key=)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
