"""Type definitions for the command dispatcher."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..domain.models import CheckResult, Snapshot
from ..domain.types import SiteWatchError


class TriggerCheckState(str, Enum):
    """States of a single trigger-check invocation."""

    IDLE = "idle"
    DISPATCHING = "dispatching"
    DISPATCH_FAILED = "dispatch_failed"
    AWAITING_RESULT = "awaiting_result"
    EXECUTION_FAILED = "execution_failed"
    REFRESHING = "refreshing"
    REFRESH_FAILED = "refresh_failed"
    DONE = "done"


_TRANSITIONS: dict[TriggerCheckState, frozenset[TriggerCheckState]] = {
    TriggerCheckState.IDLE: frozenset({TriggerCheckState.DISPATCHING}),
    TriggerCheckState.DISPATCHING: frozenset(
        {TriggerCheckState.DISPATCH_FAILED, TriggerCheckState.AWAITING_RESULT}
    ),
    TriggerCheckState.AWAITING_RESULT: frozenset(
        {TriggerCheckState.EXECUTION_FAILED, TriggerCheckState.REFRESHING}
    ),
    TriggerCheckState.REFRESHING: frozenset(
        {
            TriggerCheckState.DONE,
            TriggerCheckState.EXECUTION_FAILED,
            TriggerCheckState.REFRESH_FAILED,
        }
    ),
}


class CommandError(SiteWatchError):
    """Base exception for command-related errors."""

    pass


class CommandFailed(CommandError):
    """The service rejected a command or could not be reached."""

    def __init__(self, command: str, cause: BaseException):
        self.command = command
        self.cause = cause
        super().__init__(f"{command} failed: {cause}")


class CheckCommandError(CommandError):
    """Base for trigger-check failures; carries the state trace."""

    def __init__(
        self,
        website_id: str,
        message: str,
        states: Optional[list[TriggerCheckState]] = None,
    ):
        self.website_id = website_id
        self.states = list(states or [])
        super().__init__(message)

    @property
    def final_state(self) -> Optional[TriggerCheckState]:
        return self.states[-1] if self.states else None


class CheckDispatchFailed(CheckCommandError):
    """The probing engine could not be reached or refused the request."""

    def __init__(
        self,
        website_id: str,
        cause: BaseException,
        states: Optional[list[TriggerCheckState]] = None,
    ):
        self.cause = cause
        super().__init__(
            website_id, f"Could not dispatch check for {website_id}: {cause}", states
        )


class CheckExecutionFailed(CheckCommandError):
    """The probing engine ran but failed to produce a stored result."""

    def __init__(
        self,
        website_id: str,
        reason: str,
        cause: Optional[BaseException] = None,
        states: Optional[list[TriggerCheckState]] = None,
    ):
        self.reason = reason
        self.cause = cause
        super().__init__(website_id, f"Check for {website_id} failed: {reason}", states)


class InvalidTransition(CommandError):
    """A trigger-check trace tried to skip or revisit a state."""

    pass


@dataclass
class CheckTrace:
    """Records the state path of one trigger-check invocation."""

    website_id: str
    states: list[TriggerCheckState] = field(
        default_factory=lambda: [TriggerCheckState.IDLE]
    )

    @property
    def state(self) -> TriggerCheckState:
        return self.states[-1]

    def advance(self, new_state: TriggerCheckState) -> None:
        allowed = _TRANSITIONS.get(self.state, frozenset())
        if new_state not in allowed:
            raise InvalidTransition(
                f"Cannot move from {self.state.value} to {new_state.value}"
            )
        self.states.append(new_state)


@dataclass
class CommandOutcome:
    """A created entity and the snapshot refreshed after creating it."""

    command: str
    created: Any
    snapshot: Snapshot


@dataclass
class CheckOutcome:
    """The observed result of a triggered check."""

    website_id: str
    check: CheckResult
    snapshot: Snapshot
    states: list[TriggerCheckState]

    @property
    def state(self) -> TriggerCheckState:
        return self.states[-1]
