# =============================================================================
# Focus Tracking
# =============================================================================
# Which pane was the user in before harpoon took focus.

from __future__ import annotations

from .models import Pane, Snapshot, Tab, TrackedEntry


def get_focused_tab(snapshot: Snapshot) -> Tab | None:
    return snapshot.active_tab()


def get_focused_pane(snapshot: Snapshot, tab_position: int) -> Pane | None:
    """Return the focused non-overlay pane in the tab at ``tab_position``.

    While the overlay itself holds focus no other pane in the tab is
    focused, so the first non-overlay pane is used instead.
    """
    panes = snapshot.panes_in(tab_position)
    for pane in panes:
        if pane.is_focused and not pane.is_overlay:
            return pane
    for pane in panes:
        if not pane.is_overlay:
            return pane
    return None


def get_focused_entry(snapshot: Snapshot) -> TrackedEntry | None:
    tab = get_focused_tab(snapshot)
    if tab is None:
        return None
    pane = get_focused_pane(snapshot, tab.position)
    if pane is None:
        return None
    return TrackedEntry(pane=pane, tab=tab)
