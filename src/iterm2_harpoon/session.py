# =============================================================================
# Session Context + Event Handlers
# =============================================================================
# One SessionContext owns all state. Each event is handled to completion
# before the next one; handlers return the context together with the actions
# the host should perform.

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, assert_never
from uuid import uuid4

from loguru import logger

from .actions import (
    Action,
    FocusPane,
    HideOverlay,
    RenameOverlay,
    RequestPermissions,
    ShowOverlay,
    Subscribe,
)
from .events import (
    CommandPurpose,
    CommandResult,
    Event,
    Key,
    PaneUpdate,
    PermissionResult,
    SessionUpdate,
    Startup,
    TabUpdate,
)
from .focus import get_focused_entry
from .keys import DEFAULT_BINDINGS, Command, resolve_key
from .logging_config import trace_id_var
from .models import Pane, Snapshot, Tab, TrackedEntry
from .persistence import BookmarkStore
from .reconcile import collect_untracked, reconcile_entries, sort_entries
from .selection import clamp_selected, select_down, select_up, snap_to_pane


@dataclass
class SessionContext:
    store: BookmarkStore
    entries: list[TrackedEntry] = field(default_factory=list)
    selected: int = 0
    focused: TrackedEntry | None = None
    tabs: tuple[Tab, ...] | None = None
    pane_manifest: Mapping[int, tuple[Pane, ...]] | None = None
    session_name: str | None = None
    overlay_name: str = "harpoon"
    bindings: dict[str, Command] = field(default_factory=lambda: dict(DEFAULT_BINDINGS))

    @classmethod
    def create(
        cls,
        data_dir: Path,
        overlay_name: str = "harpoon",
        bindings: dict[str, Command] | None = None,
    ) -> SessionContext:
        return cls(
            store=BookmarkStore(data_dir),
            overlay_name=overlay_name,
            bindings=bindings if bindings is not None else dict(DEFAULT_BINDINGS),
        )

    def snapshot(self) -> Snapshot | None:
        """Both fragments are needed before anything can be reconciled."""
        if self.tabs is None or self.pane_manifest is None:
            return None
        return Snapshot(tabs=self.tabs, panes=self.pane_manifest)


@dataclass
class HandlerResult:
    context: SessionContext
    actions: list[Action] = field(default_factory=list)
    should_render: bool = False


def save(context: SessionContext) -> list[Action]:
    request = context.store.save_request(context.session_name, context.entries)
    return [request] if request is not None else []


def save_edit(context: SessionContext) -> list[Action]:
    """Persist a user edit. The tracked list becomes the whole durable content."""
    context.store.discard_pending()
    return save(context)


def refresh(context: SessionContext) -> list[Action]:
    """
    Bring the tracked list in line with the latest snapshot.

    Flow:
    1. Drop panes that no longer exist, refresh the rest
    2. Restore pending bookmarks that now have a live pane
    3. Track the focused pane and snap the cursor onto it
    4. Save if the persisted content changed and nothing is still pending
    """
    snapshot = context.snapshot()
    if snapshot is None:
        return []

    context.entries = reconcile_entries(context.entries, snapshot)

    restored = context.store.match(context.entries, snapshot)
    if restored:
        context.entries = sort_entries(context.entries + restored)

    context.focused = get_focused_entry(snapshot)
    if context.focused is not None:
        context.selected = snap_to_pane(
            context.selected, context.entries, context.focused.pane_id
        )
    context.selected = clamp_selected(context.selected, len(context.entries))

    # The file still holds what a partial restore has not matched yet.
    if context.store.pending:
        return []
    return save(context)


# -----------------------------------------------------------------------------
# Key commands
# -----------------------------------------------------------------------------


def add_current(context: SessionContext) -> list[Action]:
    actions: list[Action] = []
    focused = context.focused
    if focused is not None and all(e.pane_id != focused.pane_id for e in context.entries):
        context.entries = sort_entries(context.entries + [focused])
        logger.info(
            "Pane added",
            operation="add_current",
            status="success",
            pane_id=focused.pane_id,
            entry=str(focused),
        )
        actions.extend(save_edit(context))
    actions.append(HideOverlay())
    return actions


def add_all(context: SessionContext) -> list[Action]:
    actions: list[Action] = []
    snapshot = context.snapshot()
    if snapshot is not None:
        added = collect_untracked(context.entries, snapshot)
        if added:
            context.entries = sort_entries(context.entries + added)
            logger.info(
                "All panes added",
                operation="add_all",
                status="success",
                metrics={"added": len(added), "tracked": len(context.entries)},
            )
            actions.extend(save_edit(context))
    actions.append(HideOverlay())
    return actions


def delete_selected(context: SessionContext) -> list[Action]:
    actions: list[Action] = []
    if 0 <= context.selected < len(context.entries):
        removed = context.entries.pop(context.selected)
        logger.info(
            "Pane removed",
            operation="delete_selected",
            status="success",
            pane_id=removed.pane_id,
            entry=str(removed),
        )
        actions.extend(save_edit(context))
    context.selected = clamp_selected(context.selected, len(context.entries))
    return actions


def focus_selected(context: SessionContext) -> list[Action]:
    if not 0 <= context.selected < len(context.entries):
        return []
    entry = context.entries[context.selected]
    return [HideOverlay(), FocusPane(pane_id=entry.pane_id)]


def handle_key(context: SessionContext, event: Key) -> HandlerResult:
    command = resolve_key(context.bindings, event.key)
    if command is None:
        return HandlerResult(context)

    match command:
        case Command.ADD_CURRENT:
            return HandlerResult(context, add_current(context), should_render=True)
        case Command.ADD_ALL:
            return HandlerResult(context, add_all(context), should_render=True)
        case Command.DELETE:
            return HandlerResult(context, delete_selected(context), should_render=True)
        case Command.NEXT:
            if not context.entries:
                return HandlerResult(context)
            context.selected = select_down(context.selected, len(context.entries))
            return HandlerResult(context, should_render=True)
        case Command.PREVIOUS:
            if not context.entries:
                return HandlerResult(context)
            context.selected = select_up(context.selected, len(context.entries))
            return HandlerResult(context, should_render=True)
        case Command.FOCUS:
            return HandlerResult(context, focus_selected(context))
        case Command.CLOSE:
            return HandlerResult(context, [HideOverlay()])
        case _:
            assert_never(command)


# -----------------------------------------------------------------------------
# Host events
# -----------------------------------------------------------------------------


def handle_command_result(context: SessionContext, event: CommandResult) -> HandlerResult:
    match event.purpose:
        case CommandPurpose.LOAD:
            if event.exit_code is None:
                # The command never ran; pending bookmarks stay as they are.
                return HandlerResult(context)
            content = event.stdout.decode("utf-8", errors="replace")
            result = context.store.on_load_output(content)
            if result.is_err():
                logger.error(
                    "Failed to load bookmarks",
                    operation="load",
                    status="failed",
                    session_name=context.session_name,
                    error=str(result.error),
                    error_type=result.error.error_type.value,
                )
                return HandlerResult(context)
            return HandlerResult(context, refresh(context), should_render=True)
        case CommandPurpose.SAVE:
            if event.exit_code not in (0, None):
                logger.warning(
                    "Bookmark save command failed",
                    operation="save",
                    status="failed",
                    exit_code=event.exit_code,
                    stderr=event.stderr.decode("utf-8", errors="replace")[:500],
                )
            return HandlerResult(context)
        case None:
            return HandlerResult(context)
        case _:
            assert_never(event.purpose)


def handle_session_update(context: SessionContext, event: SessionUpdate) -> HandlerResult:
    if context.session_name is not None:
        return HandlerResult(context)

    context.session_name = event.session_name
    logger.info(
        "Session attached",
        operation="session_update",
        status="attached",
        session_name=event.session_name,
    )
    request = context.store.load_request(context.session_name)
    return HandlerResult(context, [request] if request is not None else [])


def handle_permission_result(context: SessionContext, event: PermissionResult) -> HandlerResult:
    if not event.granted:
        logger.warning(
            "Permissions denied - overlay stays unnamed",
            operation="permission_result",
            status="denied",
        )
        return HandlerResult(context)
    return HandlerResult(context, [RenameOverlay(name=context.overlay_name)])


def handle_event(context: SessionContext, event: Event) -> HandlerResult:
    """Handle one event to completion."""
    trace_id_var.set(str(uuid4()))

    match event:
        case Startup():
            return HandlerResult(context, [RequestPermissions(), Subscribe(), ShowOverlay()])
        case TabUpdate(tabs=tabs):
            context.tabs = tuple(tabs)
            return HandlerResult(context, refresh(context), should_render=True)
        case PaneUpdate(panes=panes):
            context.pane_manifest = {position: tuple(ps) for position, ps in panes.items()}
            return HandlerResult(context, refresh(context), should_render=True)
        case Key():
            return handle_key(context, event)
        case PermissionResult():
            return handle_permission_result(context, event)
        case SessionUpdate():
            return handle_session_update(context, event)
        case CommandResult():
            return handle_command_result(context, event)
        case _:
            assert_never(event)
