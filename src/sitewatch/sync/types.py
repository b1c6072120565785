"""Type definitions for the sync layer."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..domain.types import CollectionKind, SiteWatchError


class RefreshPolicy(str, Enum):
    """What a refresh does when another one is already in flight."""

    SUPERSEDE = "supersede"  # start a newer epoch; older results lose
    JOIN = "join"  # wait for the in-flight epoch instead


class CommitStatus(str, Enum):
    """Result of promoting an epoch's buffered results."""

    COMMITTED = "committed"
    STALE = "stale"
    FAILED = "failed"


class SyncError(SiteWatchError):
    """Base exception for sync-related errors."""

    pass


class MissingResult(SyncError):
    """A sub-fetch never reported back before its epoch was committed."""

    pass


class PartialRefreshFailure(SyncError):
    """One or more sub-fetches of a refresh failed; the snapshot was kept."""

    def __init__(self, epoch: int, failures: dict[CollectionKind, BaseException]):
        self.epoch = epoch
        self.failures = dict(failures)
        details = ", ".join(
            f"{kind.value} ({type(error).__name__}: {error})"
            for kind, error in self.failures.items()
        )
        super().__init__(f"Refresh epoch {epoch} failed for: {details}")

    @property
    def failed_kinds(self) -> list[CollectionKind]:
        return list(self.failures)


@dataclass(frozen=True)
class FetchOutcome:
    """What one sub-fetch produced: a value or an error."""

    kind: CollectionKind
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, kind: CollectionKind, value: Any) -> "FetchOutcome":
        return cls(kind=kind, value=value)

    @classmethod
    def failure(cls, kind: CollectionKind, error: BaseException) -> "FetchOutcome":
        return cls(kind=kind, error=error)


@dataclass
class CommitResult:
    """Outcome of CollectionStore.commit for one epoch."""

    epoch: int
    status: CommitStatus
    visible_epoch: int
    failures: dict[CollectionKind, BaseException] = field(default_factory=dict)

    @property
    def committed(self) -> bool:
        return self.status is CommitStatus.COMMITTED


@dataclass
class CollectionState:
    """Loading/error flags of one collection."""

    kind: CollectionKind
    loading: bool = False
    error: Optional[str] = None
    last_success_epoch: int = 0
