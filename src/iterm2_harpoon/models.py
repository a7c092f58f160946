# =============================================================================
# Layout Value Types
# =============================================================================
# Tabs, panes, tracked entries and bookmarks. A Snapshot is the host's latest
# complete report of the workspace; it is replaced wholesale, never merged.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Mapping


@dataclass(frozen=True)
class Tab:
    """An iTerm2 tab. ``position`` shifts whenever other tabs move."""

    name: str
    position: int
    active: bool = False


@dataclass(frozen=True)
class Pane:
    """An iTerm2 session inside a tab.

    ``pane_id`` is only unique for the lifetime of one iTerm2 run.
    """

    pane_id: str
    title: str
    is_focused: bool = False
    is_overlay: bool = False


@dataclass(frozen=True)
class TrackedEntry:
    pane: Pane
    tab: Tab

    @property
    def pane_id(self) -> str:
        return self.pane.pane_id

    def __str__(self) -> str:
        return f"{self.tab.name} | {self.pane.title}"


@dataclass(frozen=True)
class Bookmark:
    """Durable surrogate key used to find a pane again after a restart."""

    tab_name: str
    pane_title: str

    @classmethod
    def from_entry(cls, entry: TrackedEntry) -> Bookmark:
        return cls(tab_name=entry.tab.name, pane_title=entry.pane.title)

    def to_dict(self) -> dict[str, str]:
        return {"tab_name": self.tab_name, "pane_title": self.pane_title}


@dataclass(frozen=True)
class Snapshot:
    """Tab list plus pane manifest (panes keyed by tab position)."""

    tabs: tuple[Tab, ...] = ()
    panes: Mapping[int, tuple[Pane, ...]] = field(default_factory=dict)

    def tab_at(self, position: int) -> Tab | None:
        for tab in self.tabs:
            if tab.position == position:
                return tab
        return None

    def active_tab(self) -> Tab | None:
        for tab in self.tabs:
            if tab.active:
                return tab
        return None

    def panes_in(self, position: int) -> tuple[Pane, ...]:
        return tuple(self.panes.get(position, ()))

    def iter_tab_panes(self) -> Iterator[tuple[Tab, Pane]]:
        """Yield (tab, pane) for every non-overlay pane whose tab is known.

        Order follows the manifest, then the panes within each tab.
        """
        for position, tab_panes in self.panes.items():
            tab = self.tab_at(position)
            if tab is None:
                continue
            for pane in tab_panes:
                if not pane.is_overlay:
                    yield tab, pane
