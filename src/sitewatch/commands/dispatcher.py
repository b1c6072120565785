"""Command dispatcher: mutations against the service, confirmed by a refresh.

Commands never edit the snapshot locally. Each successful command is
followed by a refresh that starts a new epoch, so what the caller gets back
is what the service reports after the command took effect.
"""

from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, TypeVar, Union

from ..client.interfaces import MonitorServiceProtocol
from ..client.types import ClientError, NetworkFailure, ServiceResponseError
from ..domain.models import CheckResult, Snapshot
from ..domain.types import InvalidConfiguration
from ..domain.validation import (
    WebsiteDraft,
    parse_keywords,
    validate_category,
    validate_website,
)
from ..sync.coordinator import SyncCoordinator
from ..sync.types import PartialRefreshFailure, RefreshPolicy
from ..utils.logging import get_structured_logger
from .types import (
    CheckDispatchFailed,
    CheckExecutionFailed,
    CheckOutcome,
    CheckTrace,
    CommandFailed,
    CommandOutcome,
    TriggerCheckState,
)

logger = get_structured_logger(__name__)

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CommandDispatcher:
    """Create categories and websites, and trigger out-of-band checks."""

    def __init__(
        self,
        client: MonitorServiceProtocol,
        coordinator: SyncCoordinator,
        clock_skew_tolerance_seconds: float = 5.0,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.client = client
        self.coordinator = coordinator
        self.clock_skew_tolerance = timedelta(seconds=clock_skew_tolerance_seconds)
        self._clock = clock

    async def create_category(
        self, name: str, color: Optional[str] = None
    ) -> CommandOutcome:
        """Create a category, then refresh.

        Raises:
            InvalidConfiguration: empty name (nothing is sent).
            CommandFailed: the service rejected the request or was unreachable.
        """
        draft = validate_category(name, color)
        return await self._run_command(
            "create_category", lambda: self.client.create_category(draft)
        )

    async def create_website(
        self, draft: Optional[WebsiteDraft] = None, **fields: Any
    ) -> CommandOutcome:
        """Create a website from a draft or from keyword fields, then refresh.

        Raises:
            InvalidConfiguration: bad name, URL or interval (nothing is sent).
            CommandFailed: the service rejected the request or was unreachable.
        """
        if draft is None:
            draft = _draft_from_fields(fields)
        elif fields:
            raise TypeError("Pass either a WebsiteDraft or keyword fields, not both")

        valid = validate_website(draft)
        return await self._run_command(
            "create_website", lambda: self.client.create_website(valid)
        )

    async def trigger_check(self, website_id: str) -> CheckOutcome:
        """Run a probe now and return the check result it produced.

        The probe call returns only after the engine has run, and the follow-up
        refresh opens a newer epoch than any running before, so the returned
        snapshot contains the new result.

        Raises:
            InvalidConfiguration: empty website id (nothing is sent).
            CheckDispatchFailed: the engine was unreachable or refused the call.
            CheckExecutionFailed: the engine failed, or reported success without
                a stored result.
            PartialRefreshFailure: the probe ran but the follow-up refresh failed.
        """
        if not website_id or not website_id.strip():
            raise InvalidConfiguration(
                {"website_id": "Website ID cannot be empty"}, subject="check"
            )

        log = logger.bind(website_id=website_id)
        trace = CheckTrace(website_id)
        invoked_at = self._clock()
        known_ids = {
            c.id for c in self.coordinator.current_snapshot().checks_for(website_id)
        }

        trace.advance(TriggerCheckState.DISPATCHING)
        log.info("Dispatching check")
        try:
            await self.client.run_check(website_id)
        except NetworkFailure as e:
            trace.advance(TriggerCheckState.DISPATCH_FAILED)
            log.warning("Probing engine unreachable", error=str(e))
            raise CheckDispatchFailed(website_id, e, trace.states) from e
        except ServiceResponseError as e:
            if e.is_client_error or e.is_gateway_error:
                trace.advance(TriggerCheckState.DISPATCH_FAILED)
                log.warning("Check request refused", status_code=e.status_code)
                raise CheckDispatchFailed(website_id, e, trace.states) from e
            trace.advance(TriggerCheckState.AWAITING_RESULT)
            trace.advance(TriggerCheckState.EXECUTION_FAILED)
            log.warning("Probing engine reported a failure", status_code=e.status_code)
            raise CheckExecutionFailed(
                website_id, f"engine returned {e.status_code}", e, trace.states
            ) from e

        trace.advance(TriggerCheckState.AWAITING_RESULT)
        trace.advance(TriggerCheckState.REFRESHING)
        try:
            snapshot = await self.coordinator.refresh(policy=RefreshPolicy.SUPERSEDE)
        except PartialRefreshFailure:
            trace.advance(TriggerCheckState.REFRESH_FAILED)
            log.warning("Check ran but the follow-up refresh failed")
            raise

        check = self._find_new_check(snapshot, website_id, known_ids, invoked_at)
        if check is None:
            trace.advance(TriggerCheckState.EXECUTION_FAILED)
            log.warning("Check completed without a recorded result", epoch=snapshot.epoch)
            raise CheckExecutionFailed(
                website_id,
                "probe completed but no new result was recorded",
                states=trace.states,
            )

        trace.advance(TriggerCheckState.DONE)
        log.info(
            "Check observed",
            check_id=check.id,
            is_up=check.is_up,
            epoch=snapshot.epoch,
        )
        return CheckOutcome(
            website_id=website_id, check=check, snapshot=snapshot, states=trace.states
        )

    async def _run_command(
        self, command: str, send: Callable[[], Awaitable[T]]
    ) -> CommandOutcome:
        # Sent once; retrying a create belongs to whoever calls us
        try:
            created = await send()
        except ClientError as e:
            logger.warning("Command failed", command=command, error=str(e))
            raise CommandFailed(command, e) from e

        logger.info("Command accepted", command=command, id=getattr(created, "id", None))
        snapshot = await self.coordinator.refresh(policy=RefreshPolicy.SUPERSEDE)
        return CommandOutcome(command=command, created=created, snapshot=snapshot)

    def _find_new_check(
        self,
        snapshot: Snapshot,
        website_id: str,
        known_ids: set[str],
        invoked_at: datetime,
    ) -> Optional[CheckResult]:
        earliest = invoked_at - self.clock_skew_tolerance
        for check in snapshot.checks_for(website_id):
            if check.id in known_ids:
                continue
            if check.created_at is not None and check.created_at < earliest:
                continue
            return check
        return None


def _draft_from_fields(fields: dict[str, Any]) -> WebsiteDraft:
    keywords: Union[str, Iterable[str], None] = fields.pop("keywords", None)
    if isinstance(keywords, str):
        parsed = parse_keywords(keywords)
    else:
        parsed = tuple(keywords or ())
    try:
        return WebsiteDraft(keywords=parsed, **fields)
    except TypeError as e:
        raise InvalidConfiguration({"fields": str(e)}, subject="website") from e
