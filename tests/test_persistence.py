"""
Tests for BookmarkStore: load/save commands and content-gated saves.
"""

import json
import shlex
import subprocess

import pytest

from iterm2_harpoon.events import CommandPurpose
from iterm2_harpoon.models import Bookmark
from iterm2_harpoon.persistence import BookmarkStore, session_file_name


@pytest.fixture
def store(data_dir):
    return BookmarkStore(data_dir)


def test_no_session_name_means_no_requests(store, make_snapshot, entry_for):
    snap = make_snapshot([("work", [("1", "server")])])

    assert store.load_request(None) is None
    assert store.save_request(None, [entry_for(snap, "1")]) is None


def test_load_request_is_tagged_load(store, data_dir):
    request = store.load_request("work")

    assert request.purpose is CommandPurpose.LOAD
    assert request.argv[:2] == ("sh", "-c")
    assert shlex.quote(str(data_dir / "work.json")) in request.argv[2]
    assert "echo '[]'" in request.argv[2]


def test_save_request_is_tagged_save_and_carries_json(store, data_dir, make_snapshot, entry_for):
    snap = make_snapshot([("work", [("1", "server")])])

    request = store.save_request("work", [entry_for(snap, "1")])

    assert request.purpose is CommandPurpose.SAVE
    assert request.argv[3] == "_"
    assert json.loads(request.argv[4]) == [{"tab_name": "work", "pane_title": "server"}]
    assert shlex.quote(str(data_dir / "work.json")) in request.argv[2]


def test_unchanged_content_is_saved_once(store, make_snapshot, entry_for):
    snap = make_snapshot([("work", [("1", "server")])])
    entries = [entry_for(snap, "1")]

    assert store.save_request("work", entries) is not None
    assert store.save_request("work", entries) is None


def test_tab_position_change_alone_does_not_save(store, make_snapshot, entry_for):
    before = make_snapshot([("misc", []), ("work", [("1", "server")])])
    store.save_request("work", [entry_for(before, "1")])

    after = make_snapshot([("work", [("1", "server")]), ("misc", [])])

    assert store.save_request("work", [entry_for(after, "1")]) is None


def test_empty_list_does_not_overwrite_before_anything_is_tracked(store):
    assert store.save_request("work", []) is None


def test_load_output_replaces_pending(store):
    store.pending = [Bookmark("old", "stale")]

    result = store.on_load_output('[{"tab_name": "work", "pane_title": "server"}]')

    assert result.is_ok()
    assert store.pending == [Bookmark("work", "server")]


def test_malformed_load_output_leaves_pending_unchanged(store):
    store.pending = [Bookmark("work", "server")]

    result = store.on_load_output("{broken")

    assert result.is_err()
    assert store.pending == [Bookmark("work", "server")]


def test_loaded_content_is_not_written_back_unchanged(store, make_snapshot):
    store.on_load_output('[{"tab_name": "work", "pane_title": "server"}]')
    snap = make_snapshot([("work", [("1", "server")])])

    matched = store.match([], snap)

    assert [e.pane_id for e in matched] == ["1"]
    assert store.pending == []
    assert store.save_request("work", matched) is None


def test_durable_form_is_the_tracked_list_only(store, make_snapshot):
    store.on_load_output(
        '[{"tab_name": "work", "pane_title": "logs"},'
        ' {"tab_name": "work", "pane_title": "server"}]'
    )
    snap = make_snapshot([("work", [("1", "server")])])

    matched = store.match([], snap)
    request = store.save_request("work", matched)

    assert store.pending == [Bookmark("work", "logs")]
    assert json.loads(request.argv[4]) == [{"tab_name": "work", "pane_title": "server"}]


def test_discard_pending_forgets_unresolved_bookmarks(store):
    store.on_load_output('[{"tab_name": "work", "pane_title": "zsh"}]')

    store.discard_pending()

    assert store.pending == []
    assert store.save_request("work", []).argv[4] == "[]"


def test_session_name_with_separator_stays_in_data_dir():
    assert session_file_name("team/work") == "team_work.json"


def test_save_then_load_through_shell(store, make_snapshot, entry_for):
    snap = make_snapshot([("my tab", [("1", "it's a title")])])
    save = store.save_request("my session", [entry_for(snap, "1")])

    subprocess.run(save.argv, check=True)
    loaded = subprocess.run(store.load_request("my session").argv, capture_output=True, check=True)

    fresh = BookmarkStore(store.data_dir)
    result = fresh.on_load_output(loaded.stdout.decode())
    assert result.value == [Bookmark("my tab", "it's a title")]


def test_missing_file_loads_as_empty(store):
    loaded = subprocess.run(store.load_request("never-saved").argv, capture_output=True, check=True)

    result = store.on_load_output(loaded.stdout.decode())

    assert result.is_ok()
    assert result.value == []
