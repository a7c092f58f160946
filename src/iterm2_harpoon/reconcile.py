# =============================================================================
# Tracked List Reconciliation
# =============================================================================

from __future__ import annotations

from loguru import logger

from .models import Snapshot, TrackedEntry


def find_live_entry(pane_id: str, snapshot: Snapshot) -> TrackedEntry | None:
    """Look a pane up by identity across every tab of the snapshot.

    Tab positions change when tabs are created, closed or moved, so the
    stored position is never used for the lookup.
    """
    for tab, pane in snapshot.iter_tab_panes():
        if pane.pane_id == pane_id:
            return TrackedEntry(pane=pane, tab=tab)
    return None


def reconcile_entries(
    entries: list[TrackedEntry], snapshot: Snapshot
) -> list[TrackedEntry]:
    """
    Drop entries whose pane no longer exists and refresh the rest.

    Title, tab name and tab position always come from the snapshot. The
    relative order of surviving entries is preserved.

    Args:
        entries: Current tracked list
        snapshot: Latest complete layout report

    Returns:
        New tracked list
    """
    refreshed: list[TrackedEntry] = []
    for entry in entries:
        live = find_live_entry(entry.pane_id, snapshot)
        if live is not None:
            refreshed.append(live)

    dropped = len(entries) - len(refreshed)
    if dropped:
        logger.debug(
            "Dropped panes that no longer exist",
            operation="reconcile_entries",
            status="pruned",
            metrics={"before": len(entries), "after": len(refreshed), "dropped": dropped},
        )
    return refreshed


def sort_entries(entries: list[TrackedEntry]) -> list[TrackedEntry]:
    """Stable sort by tab position."""
    return sorted(entries, key=lambda entry: entry.tab.position)


def collect_untracked(
    entries: list[TrackedEntry], snapshot: Snapshot
) -> list[TrackedEntry]:
    """Every live non-overlay pane that is not tracked yet, in snapshot order."""
    tracked_ids = {entry.pane_id for entry in entries}
    untracked: list[TrackedEntry] = []
    for tab, pane in snapshot.iter_tab_panes():
        if pane.pane_id in tracked_ids:
            continue
        tracked_ids.add(pane.pane_id)
        untracked.append(TrackedEntry(pane=pane, tab=tab))
    return untracked
