"""Dashboard runtime wiring the client, store, coordinator and dispatcher."""

from typing import Optional

from .client.http import MonitorServiceClient
from .client.interfaces import MonitorServiceProtocol
from .commands.dispatcher import CommandDispatcher
from .config.settings import AppSettings, get_settings
from .presentation.views import DashboardView, build_dashboard
from .sync.coordinator import SyncCoordinator
from .sync.store import CollectionStore
from .sync.types import PartialRefreshFailure
from .utils.async_utils import AsyncContextManager
from .utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


class Dashboard(AsyncContextManager):
    """One dashboard session against the monitor service."""

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        client: Optional[MonitorServiceProtocol] = None,
    ):
        self.settings = settings or get_settings()
        self.client = client or MonitorServiceClient(self.settings.service)
        self.store = CollectionStore()
        self.coordinator = SyncCoordinator.from_settings(
            self.client, self.settings.sync, store=self.store
        )
        self.dispatcher = CommandDispatcher(
            self.client,
            self.coordinator,
            clock_skew_tolerance_seconds=self.settings.sync.clock_skew_tolerance_seconds,
        )
        self.is_running = False

    async def setup(self) -> None:
        if self.is_running:
            return
        if isinstance(self.client, AsyncContextManager):
            await self.client.setup()
        self.is_running = True
        logger.info("Dashboard started", base_url=self.settings.service.base_url)

    async def cleanup(self) -> None:
        if not self.is_running:
            return
        await self.coordinator.wait_idle()
        if isinstance(self.client, AsyncContextManager):
            await self.client.cleanup()
        self.is_running = False
        logger.info("Dashboard stopped")

    async def refresh(self) -> DashboardView:
        """Refresh all collections and render the visible snapshot.

        A failed refresh keeps the previous snapshot on screen and reports the
        failed collections as warnings.
        """
        warnings: tuple[str, ...] = ()
        try:
            snapshot = await self.coordinator.refresh()
        except PartialRefreshFailure as e:
            logger.warning(
                "Refresh failed",
                epoch=e.epoch,
                kinds=[kind.value for kind in e.failed_kinds],
            )
            warnings = tuple(
                f"Could not load {kind.value}: {error}"
                for kind, error in e.failures.items()
            )
            snapshot = self.coordinator.current_snapshot()
        return build_dashboard(snapshot, self.coordinator.resolve_category, warnings)

    def view(self) -> DashboardView:
        return build_dashboard(
            self.coordinator.current_snapshot(), self.coordinator.resolve_category
        )


# Global dashboard instance
_dashboard: Optional[Dashboard] = None


async def get_dashboard() -> Dashboard:
    """Get or create the global dashboard."""
    global _dashboard

    if _dashboard is None:
        _dashboard = Dashboard()
        await _dashboard.setup()

    return _dashboard


async def cleanup_dashboard() -> None:
    """Clean up the global dashboard."""
    global _dashboard

    if _dashboard is not None:
        try:
            await _dashboard.cleanup()
        finally:
            _dashboard = None
