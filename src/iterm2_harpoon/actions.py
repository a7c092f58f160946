# =============================================================================
# Actions
# =============================================================================
# Requests the session context asks the host to carry out.

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .events import CommandPurpose


@dataclass(frozen=True)
class RequestPermissions:
    pass


@dataclass(frozen=True)
class Subscribe:
    pass


@dataclass(frozen=True)
class HideOverlay:
    pass


@dataclass(frozen=True)
class ShowOverlay:
    pass


@dataclass(frozen=True)
class FocusPane:
    pane_id: str


@dataclass(frozen=True)
class RunCommand:
    """Fire-and-forget shell command; the result comes back as a CommandResult."""

    argv: tuple[str, ...]
    purpose: CommandPurpose


@dataclass(frozen=True)
class RenameOverlay:
    name: str


Action = Union[
    RequestPermissions,
    Subscribe,
    HideOverlay,
    ShowOverlay,
    FocusPane,
    RunCommand,
    RenameOverlay,
]
