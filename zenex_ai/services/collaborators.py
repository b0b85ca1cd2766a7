"""Collaborators the generation service depends on: credit ledger and file publisher.

Production deployments plug in database- and repository-backed
implementations; the in-memory versions here serve development and tests.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Protocol


class CreditLedger(Protocol):
    async def consume_credit(self, user_id: str) -> bool:
        """Spend one credit; False when the user has none left."""
        ...


@dataclass
class PublishedFile:
    public_url: str
    preview_url: str


class FilePublisher(Protocol):
    async def publish(self, user_id: str, project_id: str, file_path: str, content: str) -> PublishedFile: ...


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


class InMemoryCreditLedger:
    """Daily credit allowance per user, reset at UTC midnight."""

    def __init__(self, daily_credits: int = 10, today: Callable[[], date] = _utc_today):
        self.daily_credits = daily_credits
        self._today = today
        self._balances: dict[str, tuple[date, int]] = {}
        self._lock = asyncio.Lock()

    async def consume_credit(self, user_id: str) -> bool:
        async with self._lock:
            today = self._today()
            day, remaining = self._balances.get(user_id, (today, self.daily_credits))
            if day != today:
                remaining = self.daily_credits
            if remaining <= 0:
                self._balances[user_id] = (today, 0)
                return False
            self._balances[user_id] = (today, remaining - 1)
            return True

    def remaining(self, user_id: str) -> int:
        day, remaining = self._balances.get(user_id, (self._today(), self.daily_credits))
        return remaining if day == self._today() else self.daily_credits


class InMemoryFilePublisher:
    """Keeps published files in memory and builds their CDN and preview URLs."""

    def __init__(self, cdn_base_url: str, preview_base_url: str):
        self.cdn_base_url = cdn_base_url.rstrip("/")
        self.preview_base_url = preview_base_url.rstrip("/")
        self.files: dict[tuple[str, str, str], str] = {}

    async def publish(self, user_id: str, project_id: str, file_path: str, content: str) -> PublishedFile:
        self.files[(user_id, project_id, file_path)] = content
        return PublishedFile(
            public_url=f"{self.cdn_base_url}/users/{user_id}/{project_id}/{file_path}",
            preview_url=self.preview_url(user_id, project_id),
        )

    def preview_url(self, user_id: str, project_id: str) -> str:
        return f"{self.preview_base_url}/preview/{user_id}/{project_id}"
