"""Test configuration and fixtures for the sitewatch test suite."""

import asyncio
import itertools
import os
from collections import defaultdict, deque
from datetime import datetime, timezone
from typing import Optional

import pytest

from sitewatch.client.types import ServiceResponseError
from sitewatch.commands.dispatcher import CommandDispatcher
from sitewatch.config import settings as settings_module
from sitewatch.domain.models import Category, CheckResult, Summary, Website
from sitewatch.domain.validation import CategoryDraft, WebsiteDraft
from sitewatch.sync.coordinator import SyncCoordinator
from sitewatch.sync.store import CollectionStore


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


class FakeMonitorService:
    """In-memory monitor service with call gates and failure injection.

    Reads capture the data at call time, then wait on a gate if one was queued
    for that operation. That lets a test hold an older refresh while a newer
    one completes.
    """

    READS = ("list_categories", "list_websites", "get_summary", "list_latest_checks")

    def __init__(self):
        self.categories: list[Category] = []
        self.websites: list[Website] = []
        self.checks: list[CheckResult] = []  # newest first
        self.calls: list[str] = []
        self.record_checks = True
        self.check_is_up = True
        self._ids = itertools.count(1)
        self._gates: dict[str, deque[asyncio.Event]] = defaultdict(deque)
        self._failures: dict[str, deque[BaseException]] = defaultdict(deque)

    # Test controls

    def hold_next(self, operation: str) -> asyncio.Event:
        """Make the next call to ``operation`` wait until the event is set."""
        gate = asyncio.Event()
        self._gates[operation].append(gate)
        return gate

    def hold_next_refresh(self) -> asyncio.Event:
        """Hold all four reads of the next refresh behind one event."""
        gate = asyncio.Event()
        for operation in self.READS:
            self._gates[operation].append(gate)
        return gate

    def fail_next(self, operation: str, error: BaseException, times: int = 1) -> None:
        for _ in range(times):
            self._failures[operation].append(error)

    def call_count(self, operation: Optional[str] = None) -> int:
        if operation is None:
            return len(self.calls)
        return self.calls.count(operation)

    def add_category(self, name: str, color: Optional[str] = "#3b82f6") -> Category:
        category = Category(id=f"cat-{next(self._ids)}", name=name, color=color)
        self.categories.append(category)
        return category

    def add_website(
        self, name: str, url: str = "https://example.com", **fields
    ) -> Website:
        website = Website(id=f"site-{next(self._ids)}", name=name, url=url, **fields)
        self.websites.append(website)
        return website

    def add_check(self, website_id: str, is_up: bool = True, **fields) -> CheckResult:
        fields.setdefault("created_at", datetime.now(timezone.utc))
        check = CheckResult(
            id=f"check-{next(self._ids)}", website_id=website_id, is_up=is_up, **fields
        )
        self.checks.insert(0, check)
        return check

    # Service operations

    async def list_categories(self) -> list[Category]:
        data = list(self.categories)
        await self._enter("list_categories")
        return data

    async def list_websites(self) -> list[Website]:
        data = list(self.websites)
        await self._enter("list_websites")
        return data

    async def get_summary(self) -> Summary:
        data = self._summary()
        await self._enter("get_summary")
        return data

    async def list_latest_checks(self, limit: Optional[int] = None) -> list[CheckResult]:
        data = list(self.checks[: limit or 20])
        await self._enter("list_latest_checks")
        return data

    async def create_category(self, draft: CategoryDraft) -> Category:
        await self._enter("create_category")
        return self.add_category(draft.name, draft.color)

    async def create_website(self, draft: WebsiteDraft) -> Website:
        await self._enter("create_website")
        payload = draft.to_payload()
        payload["keywords"] = tuple(payload["keywords"])
        name = payload.pop("name")
        url = payload.pop("url")
        return self.add_website(name, url, **payload)

    async def run_check(self, website_id: str) -> None:
        await self._enter("run_check")
        if not any(w.id == website_id for w in self.websites):
            raise ServiceResponseError(
                f"POST /api/check/{website_id} returned 404: Website not found",
                status_code=404,
            )
        if self.record_checks:
            self.add_check(
                website_id,
                is_up=self.check_is_up,
                status_code=200 if self.check_is_up else 500,
                response_time_ms=42,
            )

    async def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        if self._gates[operation]:
            await self._gates[operation].popleft().wait()
        if self._failures[operation]:
            raise self._failures[operation].popleft()

    def _summary(self) -> Summary:
        latest: dict[str, CheckResult] = {}
        for check in self.checks:
            latest.setdefault(check.website_id, check)
        times = [c.response_time_ms for c in self.checks if c.response_time_ms is not None]
        return Summary(
            total_sites=len(self.websites),
            total_categories=len(self.categories),
            up=sum(1 for c in latest.values() if c.is_up),
            down=sum(1 for c in latest.values() if not c.is_up),
            recent_checks=len(self.checks),
            avg_response_time_ms=round(sum(times) / len(times)) if times else None,
        )


@pytest.fixture
def fake_service():
    """Fresh in-memory monitor service."""
    return FakeMonitorService()


@pytest.fixture
def seeded_service(fake_service):
    """Service with one category, two websites and one check."""
    news = fake_service.add_category("News", "#ef4444")
    site = fake_service.add_website(
        "Example", "https://example.com", category_id=news.id, keywords=("pricing",)
    )
    fake_service.add_website("Orphan", "https://orphan.example.com")
    fake_service.add_check(site.id, status_code=200, response_time_ms=120)
    return fake_service


@pytest.fixture
def store():
    return CollectionStore()


@pytest.fixture
def coordinator(fake_service, store):
    """Coordinator without retry delays."""
    return SyncCoordinator(fake_service, store=store, fetch_retries=0, retry_delay=0)


@pytest.fixture
def seeded_coordinator(seeded_service, store):
    return SyncCoordinator(seeded_service, store=store, fetch_retries=0, retry_delay=0)


@pytest.fixture
def dispatcher(fake_service, coordinator):
    return CommandDispatcher(fake_service, coordinator)


@pytest.fixture
def seeded_dispatcher(seeded_service, seeded_coordinator):
    return CommandDispatcher(seeded_service, seeded_coordinator)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keep the global settings and dashboard from leaking between tests."""
    from sitewatch import dashboard as dashboard_module

    monkeypatch.setattr(settings_module, "_settings", None)
    monkeypatch.setattr(dashboard_module, "_dashboard", None)
    for name in list(os.environ):
        if name.startswith("SITEWATCH_"):
            monkeypatch.delenv(name)
    yield
