# =============================================================================
# Entry Point
# =============================================================================

from __future__ import annotations

import asyncio
import os
import sys
from uuid import uuid4

import iterm2
from loguru import logger

from .config_loader import (
    DEFAULT_CONFIG,
    load_config,
    resolve_data_dir,
    resolve_session_name,
)
from .events import Event, Key, Startup
from .iterm2_host import HostBridge, overlay_session_id
from .keys import build_bindings
from .logging_config import disable_console_logging, setup_logger
from .render import render_lines
from .session import SessionContext, handle_event
from .terminal import INTERRUPT, TerminalController, decode_keys


def start_key_reader(queue: asyncio.Queue[Event], stdin_fd: int, stop: asyncio.Event) -> None:
    """Post a Key event for every key pressed in the overlay pane."""
    loop = asyncio.get_running_loop()

    def on_readable() -> None:
        data = os.read(stdin_fd, 64)
        if not data:
            stop.set()
            return
        for key in decode_keys(data):
            if key == INTERRUPT:
                stop.set()
                return
            queue.put_nowait(Key(key=key))

    loop.add_reader(stdin_fd, on_readable)


async def dispatch_loop(
    context: SessionContext,
    bridge: HostBridge,
    queue: asyncio.Queue[Event],
    terminal: TerminalController | None,
) -> None:
    """Handle events strictly one at a time, in delivery order."""
    while True:
        event = await queue.get()
        result = handle_event(context, event)
        context = result.context
        for action in result.actions:
            await bridge.perform(action)
        if result.should_render and terminal is not None:
            rows, cols = terminal.size()
            terminal.draw(render_lines(context, rows, cols))


async def run_until_stopped(dispatch, stop: asyncio.Event) -> None:
    """Run the dispatch coroutine until ``stop`` is set or dispatching fails."""
    dispatcher = asyncio.create_task(dispatch)
    stop_waiter = asyncio.create_task(stop.wait())
    try:
        await asyncio.wait({dispatcher, stop_waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        stop_waiter.cancel()
        dispatcher.cancel()

    if dispatcher.done() and not dispatcher.cancelled():
        error = dispatcher.exception()
        if error is not None:
            logger.opt(exception=error).error(
                "Event dispatch stopped",
                operation="dispatch_loop",
                status="failed",
                error=str(error),
                error_type=type(error).__name__,
            )
            raise error


async def main(connection) -> None:
    """
    Run harpoon inside the current iTerm2 session.

    Flow:
    1. Load config and set up logging
    2. Build the session context and the iTerm2 bridge
    3. Feed the Startup event, then keys and host events, to the handlers
    """
    main_trace_id = str(uuid4())

    config_result = load_config()
    config = config_result.value if config_result.is_ok() else DEFAULT_CONFIG
    setup_logger(config)
    if config_result.is_err():
        logger.warning(
            "Using default configuration",
            operation="main",
            status="config_fallback",
            trace_id=main_trace_id,
            error=str(config_result.error),
        )

    app = await iterm2.async_get_app(connection)
    overlay_id = overlay_session_id()
    session_name = resolve_session_name(config)

    logger.info(
        "Harpoon starting",
        operation="main",
        status="started",
        trace_id=main_trace_id,
        session_name=session_name,
        overlay_id=overlay_id,
    )

    queue: asyncio.Queue[Event] = asyncio.Queue()
    context = SessionContext.create(
        data_dir=resolve_data_dir(config),
        overlay_name=config.get("overlay_name", "harpoon"),
        bindings=build_bindings(config.get("keys")),
    )
    bridge = HostBridge(connection, app, queue, overlay_id, session_name)
    stop = asyncio.Event()

    terminal = None
    if sys.stdin.isatty():
        terminal = TerminalController(sys.stdin.fileno(), sys.stdout.fileno())

    await queue.put(Startup())

    if terminal is None:
        logger.warning(
            "stdin is not a terminal - running without the overlay UI",
            operation="main",
            status="headless",
            trace_id=main_trace_id,
        )
        await dispatch_loop(context, bridge, queue, None)
        return

    disable_console_logging()
    with terminal.raw_mode():
        start_key_reader(queue, sys.stdin.fileno(), stop)
        try:
            await run_until_stopped(dispatch_loop(context, bridge, queue, terminal), stop)
        finally:
            asyncio.get_running_loop().remove_reader(sys.stdin.fileno())

    logger.info(
        "Harpoon stopped",
        operation="main",
        status="stopped",
        trace_id=main_trace_id,
    )


def run() -> None:
    iterm2.run_until_complete(main)


if __name__ == "__main__":
    run()
