"""Sync coordinator: concurrent four-way refresh into the collection store."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, Optional, Union

from ..client.interfaces import MonitorServiceProtocol
from ..client.types import NetworkFailure
from ..config.settings import SyncSettings
from ..domain.models import UNKNOWN_CATEGORY, Category, Snapshot, Website
from ..domain.types import CollectionKind
from ..utils.async_utils import create_task_with_error_handling, retry_async
from ..utils.logging import get_structured_logger
from .store import CollectionStore
from .types import CommitStatus, FetchOutcome, PartialRefreshFailure, RefreshPolicy

logger = get_structured_logger(__name__)


class SyncCoordinator:
    """Refreshes all four collections as one epoch and serves derived views.

    Every refresh runs in its own task, shielded from the caller: a caller
    that gives up does not cancel reads already sent, and their results are
    still committed or dropped by the epoch rule.
    """

    def __init__(
        self,
        client: MonitorServiceProtocol,
        store: Optional[CollectionStore] = None,
        policy: Union[RefreshPolicy, str] = RefreshPolicy.SUPERSEDE,
        fetch_retries: int = 1,
        retry_delay: float = 0.5,
    ):
        self.client = client
        self.store = store or CollectionStore()
        self.policy = RefreshPolicy(policy)
        self.fetch_retries = fetch_retries
        self.retry_delay = retry_delay

        self._fetchers: dict[CollectionKind, Callable[[], Awaitable[Any]]] = {
            CollectionKind.CATEGORIES: client.list_categories,
            CollectionKind.WEBSITES: client.list_websites,
            CollectionKind.CHECKS: client.list_latest_checks,
            CollectionKind.SUMMARY: client.get_summary,
        }
        self._latest_task: Optional[asyncio.Task] = None
        self._tasks: set[asyncio.Task] = set()

        # Statistics
        self.refreshes_started = 0
        self.refreshes_joined = 0

    @classmethod
    def from_settings(
        cls,
        client: MonitorServiceProtocol,
        settings: SyncSettings,
        store: Optional[CollectionStore] = None,
    ) -> "SyncCoordinator":
        return cls(
            client,
            store=store,
            policy=settings.refresh_policy,
            fetch_retries=settings.fetch_retries,
            retry_delay=settings.retry_delay,
        )

    def current_snapshot(self) -> Snapshot:
        return self.store.current_snapshot()

    @property
    def in_flight(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def refresh(self, policy: Union[RefreshPolicy, str, None] = None) -> Snapshot:
        """Fetch all four collections and return the resulting visible snapshot.

        Under SUPERSEDE every call opens a new epoch. Under JOIN a call made
        while a refresh is in flight waits for that refresh instead.

        Raises:
            PartialRefreshFailure: a sub-fetch of this epoch failed and no
                newer epoch had finished meanwhile.
        """
        policy = RefreshPolicy(policy) if policy is not None else self.policy

        if (
            policy is RefreshPolicy.JOIN
            and self._latest_task is not None
            and not self._latest_task.done()
        ):
            self.refreshes_joined += 1
            logger.debug("Joining in-flight refresh", task=self._latest_task.get_name())
            return await asyncio.shield(self._latest_task)

        epoch = self.store.allocate_epoch()
        task = create_task_with_error_handling(
            self._run_epoch(epoch), task_name=f"refresh-epoch-{epoch}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._latest_task = task
        self.refreshes_started += 1

        return await asyncio.shield(task)

    async def wait_idle(self) -> None:
        """Wait for every in-flight refresh to settle, ignoring their errors."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run_epoch(self, epoch: int) -> Snapshot:
        logger.info("Refresh started", epoch=epoch)
        try:
            await asyncio.gather(*(self._fetch(epoch, kind) for kind in CollectionKind))
            result = await self.store.commit(epoch)
        finally:
            self.store.discard(epoch)

        if result.status is CommitStatus.FAILED:
            raise PartialRefreshFailure(epoch, result.failures)

        if result.status is CommitStatus.STALE:
            logger.info(
                "Refresh superseded",
                epoch=epoch,
                visible_epoch=result.visible_epoch,
                failed=[kind.value for kind in result.failures],
            )

        return self.store.current_snapshot()

    async def _fetch(self, epoch: int, kind: CollectionKind) -> None:
        fetcher = self._fetchers[kind]
        try:
            value = await retry_async(
                fetcher,
                max_retries=self.fetch_retries,
                delay=self.retry_delay,
                exceptions=(NetworkFailure,),
            )
        except Exception as e:
            logger.warning("Sub-fetch failed", epoch=epoch, kind=kind.value, error=str(e))
            self.store.apply_partial(epoch, FetchOutcome.failure(kind, e))
        else:
            self.store.apply_partial(epoch, FetchOutcome.success(kind, value))

    # Derived views

    def resolve_category(self, website_id: str) -> Category:
        """Category of a website in the visible snapshot.

        Returns UNKNOWN_CATEGORY when the website is unknown, uncategorised,
        or points at a category that no longer exists.
        """
        snapshot = self.store.current_snapshot()
        website = snapshot.find_website(website_id)
        if website is None or not website.category_id:
            return UNKNOWN_CATEGORY
        return snapshot.find_category(website.category_id) or UNKNOWN_CATEGORY

    def resolve_website(self, website_id: str) -> Optional[Website]:
        return self.store.current_snapshot().find_website(website_id)
