"""Tests for session state persistence."""

import json

import pytest

from mcp_timeline.models import TimelineState
from mcp_timeline.state import read_state, update_touched_files, write_state


class TestReadState:
    """Tests for read_state."""

    def test_defaults_when_missing(self, paths):
        state = read_state(paths)

        assert state.entry_counter == 0
        assert state.touched_files == []
        assert state.session_id is None
        assert state.updated_at > 0

    def test_stored_values_override_defaults(self, paths):
        paths.timeline_dir.mkdir(parents=True)
        paths.state_file.write_text(json.dumps({"entryCounter": 4, "sessionID": "ses-9"}))

        state = read_state(paths)

        assert state.entry_counter == 4
        assert state.session_id == "ses-9"
        assert state.touched_files == []

    def test_corrupt_state_propagates(self, paths):
        paths.timeline_dir.mkdir(parents=True)
        paths.state_file.write_text("{")

        with pytest.raises(json.JSONDecodeError):
            read_state(paths)


class TestWriteState:
    """Tests for write_state."""

    def test_round_trip(self, paths):
        state = TimelineState(
            entry_counter=3,
            touched_files=["a.py"],
            updated_at=1,
            session_id="ses-1",
            last_diff_hash="abc",
        )

        written = write_state(paths, state)
        loaded = read_state(paths)

        assert written.updated_at > 1
        assert loaded == written

    def test_omits_unset_optional_fields(self, paths):
        write_state(paths, TimelineState())

        data = json.loads(paths.state_file.read_text())
        assert set(data) == {"entryCounter", "touchedFiles", "updatedAt"}


class TestUpdateTouchedFiles:
    """Tests for update_touched_files."""

    def test_union_is_sorted(self):
        state = TimelineState(touched_files=["b.py", "a.py"])

        updated = update_touched_files(state, ["c.py", "a.py"])

        assert updated.touched_files == ["a.py", "b.py", "c.py"]

    def test_does_not_mutate_input(self):
        state = TimelineState(touched_files=["b.py"])
        update_touched_files(state, ["a.py"])
        assert state.touched_files == ["b.py"]

    def test_accepts_generators(self):
        updated = update_touched_files(TimelineState(), (f for f in ["x", "y"]))
        assert updated.touched_files == ["x", "y"]
