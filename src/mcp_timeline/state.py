"""Session state persisted between record operations."""

from __future__ import annotations

import json
from dataclasses import replace
from typing import Iterable

from .locking import atomic_write
from .models import TimelineState, epoch_millis
from .paths import TimelinePaths, ensure_timeline_dirs
from .store import read_json_if_exists


def read_state(paths: TimelinePaths) -> TimelineState:
    """Load state.json, falling back to defaults when it does not exist.

    Stored values override the defaults field by field.

    Raises:
        json.JSONDecodeError: If state.json exists but is corrupt
    """
    data = read_json_if_exists(paths.state_file)
    defaults = TimelineState().to_dict()
    if data:
        defaults.update(data)
    return TimelineState.from_dict(defaults)


def write_state(paths: TimelinePaths, state: TimelineState) -> TimelineState:
    """Persist state with a fresh updatedAt stamp.

    Returns:
        The state as written.
    """
    ensure_timeline_dirs(paths)
    next_state = replace(state, updated_at=epoch_millis())
    with atomic_write(paths.state_file) as f:
        json.dump(next_state.to_dict(), f, indent=2, ensure_ascii=False)
    return next_state


def update_touched_files(state: TimelineState, files: Iterable[str]) -> TimelineState:
    """Merge files into the touched set, returning a new sorted state."""
    merged = set(state.touched_files)
    merged.update(files)
    return replace(state, touched_files=sorted(merged))
