"""Composite view status reported by the reconciliation engine.

A status is one of three variants. Each variant only accepts details from its
own set, so a combination such as ``ready/sessionExpired`` cannot be built:

- ``LoggedOut``: ``notLoggedIn``, ``sessionExpired``, ``requestError``
- ``NeedsWorkspace``: ``workspaceMissing``, ``noBinaries``
- ``Ready``: ``none``
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union


NO_DETAIL = "none"


class ViewState(str, Enum):
    LOGGED_OUT = "loggedOut"
    NEEDS_WORKSPACE = "needsWorkspace"
    READY = "ready"


class LoggedOutReason(str, Enum):
    NOT_LOGGED_IN = "notLoggedIn"
    SESSION_EXPIRED = "sessionExpired"
    REQUEST_ERROR = "requestError"


class WorkspaceIssue(str, Enum):
    WORKSPACE_MISSING = "workspaceMissing"
    NO_BINARIES = "noBinaries"


def _coerce(enum_cls, value, state: ViewState):
    try:
        return enum_cls(value)
    except ValueError:
        raise ValueError(
            f"'{getattr(value, 'value', value)}' is not a valid detail for state '{state.value}'"
        ) from None


@dataclass(frozen=True)
class LoggedOut:
    reason: LoggedOutReason

    state: ClassVar[ViewState] = ViewState.LOGGED_OUT

    def __post_init__(self):
        object.__setattr__(self, "reason", _coerce(LoggedOutReason, self.reason, self.state))

    @property
    def detail(self) -> str:
        return self.reason.value

    def to_dict(self) -> dict[str, str]:
        return {"state": self.state.value, "detail": self.detail}


@dataclass(frozen=True)
class NeedsWorkspace:
    issue: WorkspaceIssue

    state: ClassVar[ViewState] = ViewState.NEEDS_WORKSPACE

    def __post_init__(self):
        object.__setattr__(self, "issue", _coerce(WorkspaceIssue, self.issue, self.state))

    @property
    def detail(self) -> str:
        return self.issue.value

    def to_dict(self) -> dict[str, str]:
        return {"state": self.state.value, "detail": self.detail}


@dataclass(frozen=True)
class Ready:
    state: ClassVar[ViewState] = ViewState.READY

    @property
    def detail(self) -> str:
        return NO_DETAIL

    def to_dict(self) -> dict[str, str]:
        return {"state": self.state.value, "detail": self.detail}


ViewStatus = Union[LoggedOut, NeedsWorkspace, Ready]

INITIAL_STATUS: ViewStatus = LoggedOut(LoggedOutReason.NOT_LOGGED_IN)


def view_status_from_pair(state: str, detail: str) -> ViewStatus:
    """Build a status from wire values, rejecting illegal combinations."""
    try:
        parsed_state = ViewState(state)
    except ValueError:
        raise ValueError(f"Unknown view state: '{state}'") from None

    if parsed_state is ViewState.LOGGED_OUT:
        return LoggedOut(detail)
    if parsed_state is ViewState.NEEDS_WORKSPACE:
        return NeedsWorkspace(detail)
    if detail != NO_DETAIL:
        raise ValueError(f"'{detail}' is not a valid detail for state 'ready'")
    return Ready()


def legal_details(state: ViewState) -> frozenset[str]:
    """Return the detail values accepted for ``state``."""
    if state is ViewState.LOGGED_OUT:
        return frozenset(r.value for r in LoggedOutReason)
    if state is ViewState.NEEDS_WORKSPACE:
        return frozenset(i.value for i in WorkspaceIssue)
    return frozenset({NO_DETAIL})
