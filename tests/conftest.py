"""
Pytest configuration and shared fixtures for iterm2_harpoon tests.

Layouts are written as ``[(tab_name, [pane, ...]), ...]`` where a pane is
either ``(pane_id, title)`` or a ready-made ``Pane``. Tab positions follow
list order; the first tab is active unless ``active`` says otherwise.
"""

import sys
from pathlib import Path

import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from iterm2_harpoon.models import Pane, Snapshot, Tab, TrackedEntry  # noqa: E402
from iterm2_harpoon.session import SessionContext  # noqa: E402


def _snapshot(layout, active=0):
    tabs = []
    panes = {}
    for position, (tab_name, tab_panes) in enumerate(layout):
        tabs.append(Tab(name=tab_name, position=position, active=position == active))
        panes[position] = tuple(
            p if isinstance(p, Pane) else Pane(pane_id=p[0], title=p[1])
            for p in tab_panes
        )
    return Snapshot(tabs=tuple(tabs), panes=panes)


@pytest.fixture
def make_snapshot():
    """Factory fixture: build a Snapshot from a compact layout."""
    return _snapshot


@pytest.fixture
def entry_for():
    """Factory fixture: the TrackedEntry for ``pane_id`` in a snapshot."""

    def _entry_for(snapshot: Snapshot, pane_id: str) -> TrackedEntry:
        for tab, pane in snapshot.iter_tab_panes():
            if pane.pane_id == pane_id:
                return TrackedEntry(pane=pane, tab=tab)
        raise KeyError(pane_id)

    return _entry_for


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture
def context(data_dir: Path) -> SessionContext:
    """Fresh session context attached to session "work"."""
    ctx = SessionContext.create(data_dir=data_dir)
    ctx.session_name = "work"
    return ctx
