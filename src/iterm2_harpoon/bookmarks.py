# =============================================================================
# Bookmark Matching + Durable Form
# =============================================================================
# Pane identities do not survive an iTerm2 restart. Bookmarks remember panes
# by (tab name, pane title) instead and are matched back onto live panes as
# they appear.

from __future__ import annotations

import json
from typing import Sequence

from loguru import logger

from .errors import Error, ErrorType, Result
from .models import Bookmark, Snapshot, TrackedEntry


def match_pending_bookmarks(
    pending: Sequence[Bookmark],
    entries: Sequence[TrackedEntry],
    snapshot: Snapshot,
) -> tuple[list[TrackedEntry], list[Bookmark]]:
    """
    Resolve pending bookmarks against the live panes of a snapshot.

    Bookmarks are processed in order. Each one claims the first unclaimed
    non-overlay pane (snapshot order) whose tab name and title are exactly
    equal. Identities already tracked in ``entries`` count as claimed, so a
    pane is never claimed twice. Bookmarks with no match stay pending: the
    panes may still be starting up.

    Duplicate (tab name, title) pairs resolve in snapshot iteration order
    only.

    Args:
        pending: Bookmarks still waiting for a live pane
        entries: Current tracked list
        snapshot: Latest complete layout report

    Returns:
        Tuple of (matched_entries, still_pending).
    """
    if not pending:
        return [], []

    claimed: set[str] = {entry.pane_id for entry in entries}
    matched: list[TrackedEntry] = []
    still_pending: list[Bookmark] = []

    for bookmark in pending:
        hit = None
        for tab, pane in snapshot.iter_tab_panes():
            if tab.name != bookmark.tab_name or pane.title != bookmark.pane_title:
                continue
            if pane.pane_id in claimed:
                continue
            hit = TrackedEntry(pane=pane, tab=tab)
            break

        if hit is None:
            still_pending.append(bookmark)
            continue

        claimed.add(hit.pane_id)
        matched.append(hit)

    if matched:
        logger.info(
            "Restored bookmarked panes",
            operation="match_pending_bookmarks",
            status="matched",
            metrics={"matched": len(matched), "pending": len(still_pending)},
        )
    return matched, still_pending


def bookmarks_for(entries: Sequence[TrackedEntry]) -> list[Bookmark]:
    return [Bookmark.from_entry(entry) for entry in entries]


def encode_bookmarks(bookmarks: Sequence[Bookmark]) -> str:
    return json.dumps([bookmark.to_dict() for bookmark in bookmarks], ensure_ascii=False)


def decode_bookmarks(content: str) -> Result[list[Bookmark]]:
    """
    Parse the durable form: a JSON array of {"tab_name", "pane_title"}.

    Whitespace-only content counts as an empty list. Any malformed element
    fails the whole parse; a partial list is never returned.
    """
    if not content.strip():
        return Result.ok([])

    try:
        raw = json.loads(content)
    except json.JSONDecodeError as e:
        return Result.err(Error(
            error_type=ErrorType.PARSE_ERROR,
            message=f"Bookmark file is not valid JSON: {e}",
            context={"line_number": e.lineno, "column": e.colno},
            original_exception=e,
        ))

    if not isinstance(raw, list):
        return Result.err(Error(
            error_type=ErrorType.PARSE_ERROR,
            message=f"Bookmark file must hold a JSON array, got {type(raw).__name__}",
        ))

    bookmarks: list[Bookmark] = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            return Result.err(Error(
                error_type=ErrorType.PARSE_ERROR,
                message=f"Bookmark #{index} is not an object",
                context={"index": index},
            ))
        tab_name = item.get("tab_name")
        pane_title = item.get("pane_title")
        if not isinstance(tab_name, str) or not isinstance(pane_title, str):
            return Result.err(Error(
                error_type=ErrorType.PARSE_ERROR,
                message=f"Bookmark #{index} needs string tab_name and pane_title",
                context={"index": index},
            ))
        bookmarks.append(Bookmark(tab_name=tab_name, pane_title=pane_title))

    return Result.ok(bookmarks)
