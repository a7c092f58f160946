# =============================================================================
# iTerm2 Bridge
# =============================================================================
# Turns iTerm2 state into TabUpdate/PaneUpdate events and carries out the
# actions returned by the session handlers. Every result is posted back to
# the event queue; nothing here touches the session context.

from __future__ import annotations

import asyncio
import os
from typing import assert_never

import iterm2
from loguru import logger

from .actions import (
    Action,
    FocusPane,
    HideOverlay,
    RenameOverlay,
    RequestPermissions,
    RunCommand,
    ShowOverlay,
    Subscribe,
)
from .events import CommandResult, Event, PaneUpdate, PermissionResult, SessionUpdate, TabUpdate
from .models import Pane, Snapshot, Tab

HOST_ERRORS = (iterm2.RPCException, AttributeError, TypeError)


def overlay_session_id(environ=None) -> str | None:
    """The iTerm2 session harpoon runs in.

    ``ITERM_SESSION_ID`` looks like ``w0t1p0:<uuid>``; the API uses the uuid.
    """
    environ = os.environ if environ is None else environ
    raw = environ.get("ITERM_SESSION_ID")
    if not raw:
        return None
    return raw.split(":", 1)[-1]


async def async_tab_name(tab) -> str:
    """Tab title variable, falling back to the current session's name."""
    try:
        title = await tab.async_get_variable("title")
    except HOST_ERRORS:
        title = None
    if title:
        return title
    current = tab.current_session
    return current.name if current is not None and current.name else ""


def find_tab_of(app, session_id: str | None):
    if session_id is None:
        return None
    for window in app.terminal_windows:
        for tab in window.tabs:
            if any(session.session_id == session_id for session in tab.sessions):
                return tab
    return None


async def async_build_snapshot(
    app, overlay_id: str | None, last_focused_id: str | None = None
) -> Snapshot:
    """
    Collect tabs and panes of every terminal window.

    Positions are numbered across windows in window order, then tab order.
    The active tab is the current tab of the current terminal window. While
    the overlay holds focus, the pane the user was in before it took over
    (``last_focused_id``) counts as focused and its tab as active.
    """
    current_window = app.current_terminal_window
    current_tab = current_window.current_tab if current_window is not None else None
    current_session = current_tab.current_session if current_tab is not None else None

    focus_override = None
    if (
        overlay_id is not None
        and current_session is not None
        and current_session.session_id == overlay_id
    ):
        previous_tab = find_tab_of(app, last_focused_id)
        if previous_tab is not None:
            current_tab = previous_tab
            focus_override = last_focused_id

    current_tab_id = current_tab.tab_id if current_tab is not None else None

    tabs: list[Tab] = []
    panes: dict[int, tuple[Pane, ...]] = {}
    position = 0
    for window in app.terminal_windows:
        for tab in window.tabs:
            active = tab.tab_id == current_tab_id
            tabs.append(Tab(
                name=await async_tab_name(tab),
                position=position,
                active=active,
            ))
            if active and focus_override is not None:
                focused_id = focus_override
            else:
                focused_id = tab.current_session.session_id if tab.current_session else None
            panes[position] = tuple(
                Pane(
                    pane_id=session.session_id,
                    title=session.name or "",
                    is_focused=session.session_id == focused_id,
                    is_overlay=session.session_id == overlay_id,
                )
                for session in tab.sessions
            )
            position += 1

    return Snapshot(tabs=tuple(tabs), panes=panes)


def log_task_failure(task: asyncio.Task) -> None:
    """Done-callback for background tasks; a failed task is logged, not lost."""
    if task.cancelled():
        return
    error = task.exception()
    if error is None:
        return
    logger.opt(exception=error).error(
        "Background task failed",
        operation="background_task",
        status="failed",
        task=task.get_name(),
        error=str(error),
        error_type=type(error).__name__,
    )


class HostBridge:
    """Executes actions against iTerm2 and posts events to ``queue``."""

    def __init__(
        self,
        connection,
        app,
        queue: asyncio.Queue[Event],
        overlay_id: str | None,
        session_name: str,
    ):
        self.connection = connection
        self.app = app
        self.queue = queue
        self.overlay_id = overlay_id
        self.session_name = session_name
        self.last_focused_id: str | None = None
        self._tasks: set[asyncio.Task] = set()

    def _spawn(self, coro) -> None:
        task = asyncio.create_task(coro, name=coro.__qualname__)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        task.add_done_callback(log_task_failure)

    async def perform(self, action: Action) -> None:
        match action:
            case RequestPermissions():
                # The iTerm2 Python API is enabled globally; there is no
                # per-script grant to wait for.
                await self.queue.put(PermissionResult(granted=True))
            case Subscribe():
                self.subscribe()
            case HideOverlay():
                await self.hide_overlay()
            case ShowOverlay():
                await self.activate(self.overlay_id)
            case FocusPane(pane_id=pane_id):
                await self.activate(pane_id)
            case RunCommand():
                self._spawn(self.run_command(action))
            case RenameOverlay(name=name):
                await self.rename_overlay(name)
            case _:
                assert_never(action)

    # -------------------------------------------------------------------------
    # Event sources
    # -------------------------------------------------------------------------

    def subscribe(self) -> None:
        self._spawn(self.queue.put(SessionUpdate(session_name=self.session_name)))
        self._spawn(self.publish_layout())
        self._spawn(self.watch_layout())
        self._spawn(self.watch_focus())
        self._spawn(self.watch_session_names())

    async def publish_layout(self) -> None:
        try:
            snapshot = await async_build_snapshot(
                self.app, self.overlay_id, self.last_focused_id
            )
        except HOST_ERRORS as e:
            logger.warning(
                "Could not read iTerm2 layout",
                operation="publish_layout",
                status="failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return
        await self.queue.put(TabUpdate(tabs=snapshot.tabs))
        await self.queue.put(PaneUpdate(panes=snapshot.panes))

    async def watch_layout(self) -> None:
        async with iterm2.LayoutChangeMonitor(self.connection) as monitor:
            while True:
                await monitor.async_get()
                await self.publish_layout()

    async def watch_focus(self) -> None:
        async with iterm2.FocusMonitor(self.connection) as monitor:
            while True:
                update = await monitor.async_get_next_update()
                changed = update.active_session_changed
                if changed is not None and changed.session_id != self.overlay_id:
                    self.last_focused_id = changed.session_id
                await self.publish_layout()

    async def watch_session_names(self) -> None:
        """Titles decide bookmark matches, so renames trigger a refresh."""
        async with iterm2.VariableMonitor(
            self.connection, iterm2.VariableScopes.SESSION, "name", "all"
        ) as monitor:
            while True:
                await monitor.async_get()
                await self.publish_layout()

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    async def activate(self, session_id: str | None) -> None:
        if session_id is None:
            return
        session = self.app.get_session_by_id(session_id)
        if session is None:
            logger.debug(
                "Session to focus no longer exists",
                operation="activate",
                status="missing",
                session_id=session_id,
            )
            return
        try:
            await session.async_activate(select_tab=True, order_window_front=True)
        except HOST_ERRORS as e:
            logger.warning(
                "Failed to activate session",
                operation="activate",
                status="failed",
                session_id=session_id,
                error=str(e),
            )

    async def hide_overlay(self) -> None:
        """Hand focus back to the pane the user was in before harpoon."""
        await self.activate(self.last_focused_id)

    async def rename_overlay(self, name: str) -> None:
        session = self.app.get_session_by_id(self.overlay_id) if self.overlay_id else None
        if session is None:
            return
        try:
            await session.async_set_name(name)
        except HOST_ERRORS as e:
            logger.warning(
                "Failed to rename overlay session",
                operation="rename_overlay",
                status="failed",
                error=str(e),
            )

    async def run_command(self, request: RunCommand) -> None:
        try:
            process = await asyncio.create_subprocess_exec(
                *request.argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await process.communicate()
        except OSError as e:
            logger.warning(
                "Could not run command",
                operation="run_command",
                status="failed",
                purpose=request.purpose.value,
                error=str(e),
            )
            await self.queue.put(CommandResult(
                exit_code=None,
                stderr=str(e).encode(),
                purpose=request.purpose,
            ))
            return

        await self.queue.put(CommandResult(
            exit_code=process.returncode,
            stdout=stdout,
            stderr=stderr,
            purpose=request.purpose,
        ))
