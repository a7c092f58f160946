from iterm2_harpoon.focus import get_focused_entry, get_focused_pane, get_focused_tab
from iterm2_harpoon.models import Pane, Snapshot, Tab


def _snap(panes, active=True):
    tab = Tab(name="work", position=0, active=active)
    return Snapshot(tabs=(tab,), panes={0: tuple(panes)})


def test_no_active_tab_means_no_focus():
    snap = _snap([Pane("a", "x", is_focused=True)], active=False)

    assert get_focused_tab(snap) is None
    assert get_focused_entry(snap) is None


def test_prefers_focused_non_overlay_pane():
    snap = _snap([Pane("a", "x"), Pane("b", "y", is_focused=True)])

    entry = get_focused_entry(snap)

    assert entry is not None
    assert entry.pane_id == "b"
    assert entry.tab.name == "work"


def test_falls_back_to_first_non_overlay_when_overlay_has_focus():
    snap = _snap([
        Pane("h", "harpoon", is_focused=True, is_overlay=True),
        Pane("a", "x"),
        Pane("b", "y"),
    ])

    assert get_focused_pane(snap, 0).pane_id == "a"


def test_tab_with_only_overlay_has_no_focus():
    snap = _snap([Pane("h", "harpoon", is_focused=True, is_overlay=True)])

    assert get_focused_pane(snap, 0) is None
    assert get_focused_entry(snap) is None


def test_active_tab_missing_from_manifest():
    tab = Tab(name="work", position=2, active=True)
    snap = Snapshot(tabs=(tab,), panes={0: (Pane("a", "x"),)})

    assert get_focused_entry(snap) is None
