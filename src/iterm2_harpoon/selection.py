# =============================================================================
# Selection Cursor
# =============================================================================
# The cursor is 0 when the list is empty and within [0, n-1] otherwise.

from __future__ import annotations

from typing import Sequence

from .models import TrackedEntry


def clamp_selected(selected: int, length: int) -> int:
    if length <= 0 or selected < 0:
        return 0
    if selected >= length:
        return length - 1
    return selected


def select_down(selected: int, length: int) -> int:
    if length <= 0:
        return 0
    return (clamp_selected(selected, length) + 1) % length


def select_up(selected: int, length: int) -> int:
    if length <= 0:
        return 0
    selected = clamp_selected(selected, length)
    if selected == 0:
        return length - 1
    return selected - 1


def snap_to_pane(
    selected: int, entries: Sequence[TrackedEntry], pane_id: str | None
) -> int:
    """Move the cursor onto ``pane_id`` when it is tracked."""
    if pane_id is None:
        return selected
    for idx, entry in enumerate(entries):
        if entry.pane_id == pane_id:
            return idx
    return selected
