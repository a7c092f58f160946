# =============================================================================
# Bookmark Persistence
# =============================================================================
# Reads and writes go through shell commands run by the host. Results come
# back later as CommandResult events tagged with a CommandPurpose.

from __future__ import annotations

import os
import shlex
from pathlib import Path
from typing import Sequence

from loguru import logger

from .actions import RunCommand
from .bookmarks import (
    bookmarks_for,
    decode_bookmarks,
    encode_bookmarks,
    match_pending_bookmarks,
)
from .errors import Result
from .events import CommandPurpose
from .models import Bookmark, Snapshot, TrackedEntry


def session_file_name(session_name: str) -> str:
    """One file per session; path separators are not allowed in the name."""
    safe_name = session_name.replace(os.sep, "_")
    if os.altsep:
        safe_name = safe_name.replace(os.altsep, "_")
    return f"{safe_name}.json"


class BookmarkStore:
    """Owns the pending bookmarks and the last content written to disk."""

    def __init__(self, data_dir: Path):
        self.data_dir = data_dir
        self.pending: list[Bookmark] = []
        # Starts empty so an empty list never clobbers the file before the
        # load result arrives.
        self.last_written: list[Bookmark] = []

    def session_file_path(self, session_name: str | None) -> Path | None:
        if not session_name:
            return None
        return self.data_dir / session_file_name(session_name)

    def load_request(self, session_name: str | None) -> RunCommand | None:
        """
        Build the read command for this session's bookmark file.

        A missing file prints an empty array instead of failing.
        """
        file_path = self.session_file_path(session_name)
        if file_path is None:
            return None

        cmd = f"cat {shlex.quote(str(file_path))} 2>/dev/null || echo '[]'"
        logger.debug(
            "Requesting bookmark load",
            operation="load",
            status="requested",
            file=str(file_path),
        )
        return RunCommand(argv=("sh", "-c", cmd), purpose=CommandPurpose.LOAD)

    def on_load_output(self, content: str) -> Result[list[Bookmark]]:
        """
        Replace the pending set with the parsed bookmarks.

        On a parse failure the pending set is left as it was and the error
        is handed back to the caller.
        """
        result = decode_bookmarks(content)
        if result.is_err():
            return result

        self.pending = list(result.value)
        self.last_written = list(result.value)
        logger.info(
            "Bookmarks loaded",
            operation="load",
            status="success",
            metrics={"pending": len(self.pending)},
        )
        return result

    def match(
        self, entries: Sequence[TrackedEntry], snapshot: Snapshot
    ) -> list[TrackedEntry]:
        """Resolve what can be resolved now; the rest stays pending."""
        if not self.pending:
            return []
        matched, self.pending = match_pending_bookmarks(self.pending, entries, snapshot)
        return matched

    def discard_pending(self) -> None:
        """Forget bookmarks that never resolved; the tracked list replaces them."""
        if not self.pending:
            return
        logger.info(
            "Unresolved bookmarks discarded",
            operation="discard_pending",
            status="success",
            metrics={"discarded": len(self.pending)},
        )
        self.pending = []

    def durable_form(self, entries: Sequence[TrackedEntry]) -> list[Bookmark]:
        return bookmarks_for(entries)

    def has_changed(self, entries: Sequence[TrackedEntry]) -> bool:
        return self.durable_form(entries) != self.last_written

    def save_request(
        self, session_name: str | None, entries: Sequence[TrackedEntry]
    ) -> RunCommand | None:
        """
        Build the write command when the persisted content changed.

        Only membership, order, tab names and titles count as content; a
        reconciliation that only moved tabs around writes nothing.
        """
        file_path = self.session_file_path(session_name)
        if file_path is None:
            return None

        bookmarks = self.durable_form(entries)
        if bookmarks == self.last_written:
            return None

        payload = encode_bookmarks(bookmarks)
        cmd = (
            f"mkdir -p {shlex.quote(str(self.data_dir))} "
            f"&& printf '%s' \"$1\" > {shlex.quote(str(file_path))}"
        )
        self.last_written = bookmarks
        logger.debug(
            "Requesting bookmark save",
            operation="save",
            status="requested",
            file=str(file_path),
            metrics={"bookmarks": len(bookmarks)},
        )
        return RunCommand(argv=("sh", "-c", cmd, "_", payload), purpose=CommandPurpose.SAVE)
