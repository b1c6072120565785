"""Snapshot store and refresh coordination."""

from .coordinator import SyncCoordinator
from .store import CollectionStore
from .types import (
    CollectionState,
    CommitResult,
    CommitStatus,
    FetchOutcome,
    MissingResult,
    PartialRefreshFailure,
    RefreshPolicy,
    SyncError,
)

__all__ = [
    "CollectionStore",
    "SyncCoordinator",
    "RefreshPolicy",
    "CommitStatus",
    "CommitResult",
    "CollectionState",
    "FetchOutcome",
    "SyncError",
    "MissingResult",
    "PartialRefreshFailure",
]
