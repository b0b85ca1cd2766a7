from __future__ import annotations

import httpx
import pytest

from zenex_ai.gateway.cache import ResponseCache
from zenex_ai.gateway.key_rotator import KeyRotator
from zenex_ai.gateway.manager import AIManager
from zenex_ai.gateway.types import ProviderCall, ProviderId, ProviderResult, Role, RoleConfig
from zenex_ai.gateway.vendor_adapters import BaseProviderAdapter


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedAdapter(BaseProviderAdapter):
    """Adapter that returns canned text (or raises) without touching the network."""

    def __init__(self, provider: ProviderId, text: str = "ok", error: Exception | None = None, keys: str = "k1"):
        super().__init__(KeyRotator(keys, provider=provider.value))
        self.provider = provider
        self.text = text
        self.error = error
        self.calls: list[ProviderCall] = []
        self.credentials: list[str] = []

    async def _send(self, call: ProviderCall, api_key: str) -> ProviderResult:
        self.calls.append(call)
        self.credentials.append(api_key)
        if self.error is not None:
            raise self.error
        return ProviderResult(text=self.text, input_tokens=10, output_tokens=20)


class RecordingSink:
    def __init__(self):
        self.events: list[tuple[str, str, str]] = []

    async def record(self, caller_id: str, event_type: str, reason: str) -> None:
        self.events.append((caller_id, event_type, reason))


def make_role_configs(
    architect: ProviderId = ProviderId.ANTHROPIC,
    engineer: ProviderId = ProviderId.GROQ,
) -> dict[Role, RoleConfig]:
    return {
        Role.ARCHITECT: RoleConfig(
            role=Role.ARCHITECT, provider=architect, model="arch-model", max_tokens=4096, temperature=1.0
        ),
        Role.ENGINEER: RoleConfig(
            role=Role.ENGINEER, provider=engineer, model="eng-model", max_tokens=8000, temperature=0.7
        ),
    }


def make_httpx_response(status_code: int, json_data: dict | None = None, text: str = "") -> httpx.Response:
    """Create a proper httpx.Response with request set (needed for raise_for_status)."""
    request = httpx.Request("POST", "https://example.com")
    if json_data is not None:
        return httpx.Response(status_code, json=json_data, request=request)
    return httpx.Response(status_code, text=text, request=request)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def architect_adapter() -> ScriptedAdapter:
    return ScriptedAdapter(ProviderId.ANTHROPIC, text='{"structure": {}, "pages": []}')


@pytest.fixture
def engineer_adapter() -> ScriptedAdapter:
    return ScriptedAdapter(ProviderId.GROQ, text="<html><body><h1>Hi</h1></body></html>")


@pytest.fixture
def manager(architect_adapter, engineer_adapter, sink, clock) -> AIManager:
    return AIManager(
        adapters={ProviderId.ANTHROPIC: architect_adapter, ProviderId.GROQ: engineer_adapter},
        role_configs=make_role_configs(),
        cache=ResponseCache(ttl_seconds=3600, clock=clock),
        security_events=sink,
    )


