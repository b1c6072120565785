"""Collection store: the single owner of the visible snapshot."""

import asyncio
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional

from ..domain.models import Snapshot, Summary
from ..domain.types import CollectionKind
from ..utils.logging import get_structured_logger
from .types import (
    CollectionState,
    CommitResult,
    CommitStatus,
    FetchOutcome,
    MissingResult,
    SyncError,
)

logger = get_structured_logger(__name__)


class CollectionStore:
    """Holds the converged snapshot plus per-epoch buffers of partial results.

    The visible snapshot only ever changes inside ``commit``, and only to an
    epoch newer than every epoch that already finished, built entirely from
    that epoch's four results.
    """

    def __init__(self, initial: Optional[Snapshot] = None):
        self._snapshot = initial or Snapshot()
        self._epoch_counter = self._snapshot.epoch
        # Highest epoch that finished, committed or failed
        self._settled_epoch = self._snapshot.epoch
        self._buffers: dict[int, dict[CollectionKind, FetchOutcome]] = {}
        self._pending: dict[CollectionKind, int] = {kind: 0 for kind in CollectionKind}
        self._states: dict[CollectionKind, CollectionState] = {
            kind: CollectionState(kind=kind, last_success_epoch=self._snapshot.epoch)
            for kind in CollectionKind
        }
        self._commit_lock = asyncio.Lock()

    def current_snapshot(self) -> Snapshot:
        """The last fully converged snapshot."""
        return self._snapshot

    @property
    def visible_epoch(self) -> int:
        return self._snapshot.epoch

    @property
    def settled_epoch(self) -> int:
        return self._settled_epoch

    @property
    def in_flight_epochs(self) -> list[int]:
        return sorted(self._buffers)

    def collection_state(self, kind: CollectionKind) -> CollectionState:
        return replace(self._states[kind])

    def is_loading(self) -> bool:
        return any(state.loading for state in self._states.values())

    def allocate_epoch(self) -> int:
        """Open a buffer for a new refresh and return its epoch number."""
        self._epoch_counter += 1
        epoch = self._epoch_counter
        self._buffers[epoch] = {}
        for kind in CollectionKind:
            self._pending[kind] += 1
            self._states[kind].loading = True
        logger.debug("Epoch allocated", epoch=epoch)
        return epoch

    def apply_partial(self, epoch: int, outcome: FetchOutcome) -> None:
        """Buffer one collection's fetch outcome for an in-flight epoch."""
        buffer = self._buffers.get(epoch)
        if buffer is None:
            logger.debug("Ignoring result for closed epoch", epoch=epoch, kind=outcome.kind.value)
            return

        if outcome.kind not in buffer:
            self._settle(outcome.kind)
        buffer[outcome.kind] = outcome

    async def commit(self, epoch: int) -> CommitResult:
        """Promote an epoch's buffer if all four sub-fetches succeeded.

        Epochs not newer than the last settled one are dropped as stale, so a
        slow older refresh never lands after a newer one has failed. A failed
        epoch leaves the snapshot untouched and flags the failing collections.
        """
        async with self._commit_lock:
            buffer = self._buffers.pop(epoch, None)
            if buffer is None:
                raise SyncError(f"Epoch {epoch} is not in flight")

            failures: dict[CollectionKind, BaseException] = {}
            for kind in CollectionKind:
                outcome = buffer.get(kind)
                if outcome is None:
                    self._settle(kind)
                    failures[kind] = MissingResult(f"No {kind.value} result for epoch {epoch}")
                elif not outcome.ok:
                    failures[kind] = outcome.error

            visible = self._snapshot.epoch
            if epoch <= self._settled_epoch:
                logger.info(
                    "Dropping stale epoch",
                    epoch=epoch,
                    visible_epoch=visible,
                    settled_epoch=self._settled_epoch,
                )
                return CommitResult(epoch, CommitStatus.STALE, visible, failures)

            if failures:
                self._settled_epoch = epoch
                for kind, error in failures.items():
                    self._states[kind].error = f"{type(error).__name__}: {error}"
                logger.warning(
                    "Epoch failed, keeping snapshot",
                    epoch=epoch,
                    visible_epoch=visible,
                    failed=[kind.value for kind in failures],
                )
                return CommitResult(epoch, CommitStatus.FAILED, visible, failures)

            self._settled_epoch = epoch
            self._snapshot = Snapshot(
                epoch=epoch,
                categories=tuple(buffer[CollectionKind.CATEGORIES].value),
                websites=tuple(buffer[CollectionKind.WEBSITES].value),
                checks=tuple(buffer[CollectionKind.CHECKS].value),
                summary=buffer[CollectionKind.SUMMARY].value or Summary(),
                refreshed_at=datetime.now(timezone.utc),
            )
            for state in self._states.values():
                state.error = None
                state.last_success_epoch = epoch

            logger.info(
                "Snapshot committed",
                epoch=epoch,
                websites=len(self._snapshot.websites),
                checks=len(self._snapshot.checks),
            )
            return CommitResult(epoch, CommitStatus.COMMITTED, epoch)

    def discard(self, epoch: int) -> None:
        """Close an epoch without committing it (no-op once committed)."""
        buffer = self._buffers.pop(epoch, None)
        if buffer is None:
            return
        for kind in CollectionKind:
            if kind not in buffer:
                self._settle(kind)
        logger.debug("Epoch discarded", epoch=epoch)

    def _settle(self, kind: CollectionKind) -> None:
        self._pending[kind] -= 1
        self._states[kind].loading = self._pending[kind] > 0
