"""Timeline directory layout and entry naming."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

DEFAULT_TIMELINE_DIR = ".opencode/timeline"
ENTRY_PREFIX_WIDTH = 6

_UNSAFE_ID_CHARS = re.compile(r"[\\/\s]")


@dataclass(frozen=True)
class TimelinePaths:
    """Resolved locations of everything the timeline writes."""
    root: Path
    timeline_dir: Path
    entries_dir: Path
    tmp_dir: Path
    index_file: Path
    state_file: Path


def build_timeline_paths(root: Path, timeline_dir: str = DEFAULT_TIMELINE_DIR) -> TimelinePaths:
    """Build the timeline layout under a project root."""
    root = Path(root)
    base = root / timeline_dir
    return TimelinePaths(
        root=root,
        timeline_dir=base,
        entries_dir=base / "entries",
        tmp_dir=base / "tmp",
        index_file=base / "index.json",
        state_file=base / "state.json",
    )


def ensure_timeline_dirs(paths: TimelinePaths) -> None:
    """Create the entries and tmp directories.

    Only ever writes under the timeline directory.
    """
    paths.entries_dir.mkdir(parents=True, exist_ok=True)
    paths.tmp_dir.mkdir(parents=True, exist_ok=True)


def format_entry_prefix(counter: int) -> str:
    """Zero-pad an entry counter to a fixed width."""
    return str(counter).zfill(ENTRY_PREFIX_WIDTH)


def sanitize_entry_id(value: str) -> str:
    """Replace path separators and whitespace with underscores."""
    return _UNSAFE_ID_CHARS.sub("_", value)
