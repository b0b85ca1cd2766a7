"""Tests for settings validation, logging setup and Sentry bootstrap."""

from __future__ import annotations

import json
import logging

import pytest

from zenex_ai.core import logging as app_logging
from zenex_ai.core.config import Settings, settings, validate_settings_for_production
from zenex_ai.core.sentry import init_sentry, scrub_event


@pytest.fixture
def configured(monkeypatch):
    monkeypatch.setattr(settings, "anthropic_keys", "a1")
    monkeypatch.setattr(settings, "groq_keys", "g1,g2")
    monkeypatch.setattr(settings, "architect_provider", "anthropic")
    monkeypatch.setattr(settings, "engineer_provider", "groq")
    monkeypatch.setattr(settings, "app_env", "development")
    return settings


def test_defaults():
    s = Settings(_env_file=None)
    assert s.rate_limit_max_requests == 50
    assert s.rate_limit_window_seconds == 3600
    assert s.response_cache_ttl_seconds == 3600
    assert s.architect_max_tokens == 4096
    assert s.engineer_max_tokens == 8000
    assert s.provider_keys("groq") == s.groq_keys
    assert s.provider_model("anthropic") == "claude-sonnet-4-20250514"


def test_valid_configuration_passes(configured):
    validate_settings_for_production()


def test_missing_credentials_reported(configured, monkeypatch):
    monkeypatch.setattr(settings, "groq_keys", "")
    with pytest.raises(SystemExit, match="GROQ_KEYS"):
        validate_settings_for_production()


def test_unknown_provider_reported(configured, monkeypatch):
    monkeypatch.setattr(settings, "architect_provider", "sambanova")
    with pytest.raises(SystemExit, match="ARCHITECT_PROVIDER"):
        validate_settings_for_production()


def test_production_rules(configured, monkeypatch):
    monkeypatch.setattr(settings, "app_env", "production")
    monkeypatch.setattr(settings, "app_debug", True)
    monkeypatch.setattr(settings, "allowed_origins", "*")
    with pytest.raises(SystemExit) as exc_info:
        validate_settings_for_production()
    message = str(exc_info.value)
    assert "ALLOWED_ORIGINS" in message
    assert "APP_DEBUG" in message


def test_json_formatter_includes_caller_id():
    formatter = app_logging.JSONFormatter()
    record = logging.LogRecord("zenex_ai.test", logging.WARNING, __file__, 1, "blocked %s", ("u1",), None)
    record.caller_id = "u1"
    data = json.loads(formatter.format(record))
    assert data["message"] == "blocked u1"
    assert data["level"] == "WARNING"
    assert data["caller_id"] == "u1"


def test_setup_logging_installs_single_handler(monkeypatch):
    monkeypatch.setattr(settings, "log_json", True)
    root = logging.getLogger()
    saved = root.handlers[:]
    saved_level = root.level
    try:
        app_logging.setup_logging()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, app_logging.JSONFormatter)
        assert logging.getLogger("httpx").level == logging.WARNING
    finally:
        root.handlers[:] = saved
        root.setLevel(saved_level)


def test_sentry_disabled_without_dsn(monkeypatch):
    monkeypatch.setattr(settings, "sentry_dsn", "")
    assert init_sentry() is False


def test_redaction_masks_configured_and_shaped_keys():
    redactor = app_logging.CredentialRedactionFilter(["my-custom-secret"])
    text = redactor.redact(
        "auth my-custom-secret failed; GET https://x/v1beta/m:generateContent?key=AIzaSyA&alt=json; gsk_abcdefgh1234"
    )
    assert "my-custom-secret" not in text
    assert "AIzaSyA" not in text
    assert "gsk_abcdefgh1234" not in text
    assert "?key=[REDACTED]&alt=json" in text


def test_redaction_filter_rewrites_record():
    redactor = app_logging.CredentialRedactionFilter(["k-123"])
    record = logging.LogRecord("zenex_ai.test", logging.ERROR, __file__, 1, "upstream rejected %s", ("k-123",), None)
    assert redactor.filter(record) is True
    assert record.getMessage() == "upstream rejected [REDACTED]"


def test_scrub_event_drops_prompt_body(configured):
    event = {
        "request": {"data": {"prompt": "my secret plans"}, "query_string": "key=g1"},
        "exception": {"values": [{"type": "ProviderCallError", "value": "call with g2 failed"}]},
    }
    scrubbed = scrub_event(event)
    assert "data" not in scrubbed["request"]
    assert scrubbed["request"]["query_string"] == ""
    assert scrubbed["exception"]["values"][0]["value"] == "call with [REDACTED] failed"
