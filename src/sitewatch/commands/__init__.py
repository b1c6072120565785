"""Commands that mutate the service and converge the snapshot afterwards."""

from .dispatcher import CommandDispatcher
from .types import (
    CheckCommandError,
    CheckDispatchFailed,
    CheckExecutionFailed,
    CheckOutcome,
    CheckTrace,
    CommandError,
    CommandFailed,
    CommandOutcome,
    InvalidTransition,
    TriggerCheckState,
)

__all__ = [
    "CommandDispatcher",
    "CommandOutcome",
    "CheckOutcome",
    "CheckTrace",
    "TriggerCheckState",
    "CommandError",
    "CommandFailed",
    "CheckCommandError",
    "CheckDispatchFailed",
    "CheckExecutionFailed",
    "InvalidTransition",
]
