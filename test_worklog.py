import json

import pytest
from click.testing import CliRunner
from prompt_toolkit.application import create_app_session
from prompt_toolkit.input import create_pipe_input
from prompt_toolkit.output import DummyOutput

from edit_session import EditMode, EditSession
from entry_store import ClockSeededIdSource, EntryStore
from storage import ENTRIES_KEY, SPLITS_KEY, JsonFileStore
from worklog import _interactive_edit, cli


@pytest.fixture
def state_dir(tmp_path, monkeypatch):
    monkeypatch.delenv("WORKLOG_SECOND_HALF_OFFSET_DAYS", raising=False)
    monkeypatch.delenv("WORKLOG_TIMELINE_WIDTH", raising=False)
    return tmp_path / "state"


def _run(state_dir, *args, input=None):
    result = CliRunner().invoke(cli, ["--state-dir", str(state_dir), *args], input=input)
    assert result.exit_code == 0, result.output
    return result


def _stored(state_dir):
    store = JsonFileStore(state_dir)
    entries = json.loads(store.get(ENTRIES_KEY) or b"[]")
    pairs = json.loads(store.get(SPLITS_KEY) or b"[]")
    return entries, pairs


def test_start_and_end_across_midnight(state_dir):
    _run(state_dir, "start", "--date", "2026-03-02", "--at", "23:50")
    result = _run(state_dir, "end", "--at", "00:10")
    assert "crosses midnight" in result.output

    entries, pairs = _stored(state_dir)
    assert sorted((e["start"], e["end"]) for e in entries) == [("00:00", "00:10"), ("23:50", "24:00")]
    assert all(e["date"] == "2026-03-02" for e in entries)
    assert len(pairs) == 1

    listing = _run(state_dir, "list").output
    assert "2026-03-04" in listing
    assert "2/2" in listing


def test_end_without_open_entry(state_dir):
    result = _run(state_dir, "end", "--at", "10:00")
    assert "No open entry" in result.output


def test_second_start_asks_first(state_dir):
    _run(state_dir, "start", "--date", "2026-03-02", "--at", "08:00")
    _run(state_dir, "start", "--date", "2026-03-02", "--at", "09:00", input="n\n")
    assert len(_stored(state_dir)[0]) == 1

    _run(state_dir, "start", "--date", "2026-03-02", "--at", "09:00", "--yes")
    assert len(_stored(state_dir)[0]) == 2


def test_edit_with_value_and_validation(state_dir):
    _run(state_dir, "add", "2026-03-02", "09:00", "10:00")
    (entry,), _ = _stored(state_dir)

    _run(state_dir, "edit", str(entry["id"]), "end", "--value", "11:30")
    (edited,), _ = _stored(state_dir)
    assert edited["end"] == "11:30"
    assert edited["id"] != entry["id"]

    bad = CliRunner().invoke(
        cli, ["--state-dir", str(state_dir), "edit", str(edited["id"]), "start", "--value", "nine"]
    )
    assert bad.exit_code != 0
    assert _stored(state_dir)[0] == [edited]


def test_delete_half_removes_pair(state_dir):
    _run(state_dir, "add", "2026-03-02", "22:00", "01:00")
    entries, pairs = _stored(state_dir)
    assert len(entries) == 2 and len(pairs) == 1

    _run(state_dir, "delete", str(pairs[0]["secondId"]), input="y\n")
    assert _stored(state_dir) == ([], [])


def test_add_defaults_to_noon_and_timeline_renders(state_dir):
    _run(state_dir, "add", "2026-03-01")
    _run(state_dir, "add", "2026-03-02", "06:00", "18:00")
    (noon,) = [e for e in _stored(state_dir)[0] if e["date"] == "2026-03-01"]
    assert (noon["start"], noon["end"]) == ("12:00", "12:00")

    output = _run(state_dir, "timeline", "--width", "24").output
    assert "MO 2026-03-02" in output
    assert "12h 0m" in output
    assert "█" * 12 in output


def test_offset_can_be_configured(state_dir, monkeypatch):
    monkeypatch.setenv("WORKLOG_SECOND_HALF_OFFSET_DAYS", "1")
    _run(state_dir, "add", "2026-03-02", "23:00", "01:00")
    assert "2026-03-03" in _run(state_dir, "list").output


@pytest.mark.parametrize("value", ["abc", ""])
def test_unusable_offset_setting_falls_back_to_default(state_dir, monkeypatch, value):
    monkeypatch.setenv("WORKLOG_SECOND_HALF_OFFSET_DAYS", value)
    _run(state_dir, "add", "2026-03-02", "23:00", "01:00")
    assert "2026-03-04" in _run(state_dir, "list").output


def test_unusable_timeline_width_falls_back_to_default(state_dir, monkeypatch):
    monkeypatch.setenv("WORKLOG_TIMELINE_WIDTH", "wide")
    _run(state_dir, "add", "2026-03-02", "00:00", "12:00")
    output = _run(state_dir, "timeline").output
    assert "█" * 24 in output
    assert "█" * 25 not in output


def _edit_with_keys(keys):
    store = EntryStore(id_source=ClockSeededIdSource(10), autosave=False)
    (entry,) = store.add_fixed_entry("2026-03-02", "09:00", "10:00")
    session = EditSession(store)
    session.begin(entry.id, EditMode.START)
    with create_pipe_input() as pipe_input:
        pipe_input.send_text(keys)
        with create_app_session(input=pipe_input, output=DummyOutput()):
            return _interactive_edit(session), session


def test_interactive_edit_steps_with_plus_and_minus():
    result, session = _edit_with_keys("+++-\r")
    assert result == "09:10"
    assert session.value == "09:10"


def test_interactive_edit_accepts_typed_time():
    result, session = _edit_with_keys("10:30\r")
    assert result == "10:30"
    assert session.value == "10:30"


def test_interactive_edit_escape_cancels():
    result, session = _edit_with_keys("+\x1b")
    assert result is None
    assert session.is_active
