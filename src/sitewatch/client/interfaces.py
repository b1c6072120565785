"""Shared interface of the monitor service, so the core can run against fakes."""

from typing import Optional, Protocol

from ..domain.models import Category, CheckResult, Summary, Website
from ..domain.validation import CategoryDraft, WebsiteDraft


class MonitorServiceProtocol(Protocol):
    """Operations the sync and command layers need from the service."""

    async def list_categories(self) -> list[Category]:
        ...

    async def list_websites(self) -> list[Website]:
        ...

    async def get_summary(self) -> Summary:
        ...

    async def list_latest_checks(self, limit: Optional[int] = None) -> list[CheckResult]:
        ...

    async def create_category(self, draft: CategoryDraft) -> Category:
        ...

    async def create_website(self, draft: WebsiteDraft) -> Website:
        ...

    async def run_check(self, website_id: str) -> None:
        ...
