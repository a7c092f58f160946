# =============================================================================
# Events
# =============================================================================
# Delivered to the session context one at a time. Event is a closed union;
# session.handle_event matches every variant.

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Union

from .models import Pane, Tab


class CommandPurpose(Enum):
    """Why an external command was run; carried back with its result."""

    LOAD = "load"
    SAVE = "save"


@dataclass(frozen=True)
class Startup:
    pass


@dataclass(frozen=True)
class TabUpdate:
    tabs: tuple[Tab, ...]


@dataclass(frozen=True)
class PaneUpdate:
    panes: Mapping[int, tuple[Pane, ...]]


@dataclass(frozen=True)
class Key:
    key: str


@dataclass(frozen=True)
class PermissionResult:
    granted: bool


@dataclass(frozen=True)
class SessionUpdate:
    session_name: str


@dataclass(frozen=True)
class CommandResult:
    exit_code: int | None
    stdout: bytes = b""
    stderr: bytes = b""
    purpose: CommandPurpose | None = None


Event = Union[
    Startup,
    TabUpdate,
    PaneUpdate,
    Key,
    PermissionResult,
    SessionUpdate,
    CommandResult,
]
