"""Entry store - content-addressed, versioned timeline entries on disk.

Each entry is a directory ``<NNNNNN>_<id>`` under ``entries/`` holding the
live ``meta.json``/``patch.diff`` pair plus the file summaries and touched
file list. Superseded versions are copied into ``revisions/`` before being
overwritten, so history is never destroyed here.
"""

from __future__ import annotations

import hashlib
import json
import os
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from .locking import atomic_write, entry_lock
from .models import (
    DiffFileSummary,
    EntryStats,
    EntryWriteResult,
    TimelineEntryMeta,
    TimelineIndex,
    epoch_millis,
)
from .paths import TimelinePaths, ensure_timeline_dirs, format_entry_prefix, sanitize_entry_id

META_FILENAME = "meta.json"
PATCH_FILENAME = "patch.diff"
PATCH_FILES_FILENAME = "patch.files.json"
TOUCHED_FILES_FILENAME = "touched.files.json"
REVISIONS_DIRNAME = "revisions"

DEFAULT_MESSAGE_ID = "session"


class TimelineError(Exception):
    """Base exception for timeline operations."""


class EntryNotFoundError(TimelineError):
    """Raised when a requested entry does not exist."""


def hash_diff(diff_text: str) -> str:
    """Compute SHA-256 hex digest of patch text."""
    return hashlib.sha256(diff_text.encode("utf-8")).hexdigest()


def read_file_if_exists(path: Path) -> Optional[bytes]:
    """Read raw file contents, or None if the file does not exist.

    Only a missing file maps to None; any other OSError propagates.
    """
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None


def read_json_if_exists(path: Path) -> Optional[Any]:
    """Parse a JSON file, or None if it is missing or empty.

    Raises:
        json.JSONDecodeError: If the file exists but is not valid JSON
    """
    content = read_file_if_exists(path)
    if not content:
        return None
    return json.loads(content.decode("utf-8"))


def _dump_json(path: Path, data: Any) -> None:
    with atomic_write(path) as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def find_existing_entry_dir(paths: TimelinePaths, message_id: str) -> Optional[Path]:
    """Find the entry directory for a message identifier.

    Returns the first directory in listing order whose name, after the
    counter prefix, equals the sanitized id. If two raw identifiers
    sanitize to the same name, whichever the listing yields first wins.
    """
    safe_id = sanitize_entry_id(message_id)
    try:
        with os.scandir(paths.entries_dir) as it:
            for item in it:
                parts = item.name.split("_", 1)
                if len(parts) == 2 and parts[1] == safe_id and item.is_dir():
                    return Path(item.path)
    except FileNotFoundError:
        pass
    return None


def _archive_revision(entry_dir: Path, meta_raw: bytes, patch_raw: Optional[bytes]) -> int:
    """Copy the live meta/patch pair into revisions/ verbatim.

    Returns:
        The epoch-millisecond stamp used for the archived file names.
    """
    revisions_dir = entry_dir / REVISIONS_DIRNAME
    revisions_dir.mkdir(parents=True, exist_ok=True)

    # Two archives within one millisecond: move forward to the next free stamp
    stamp = epoch_millis()
    while (revisions_dir / f"{stamp}_{META_FILENAME}").exists():
        stamp += 1

    (revisions_dir / f"{stamp}_{META_FILENAME}").write_bytes(meta_raw)
    if patch_raw is not None:
        (revisions_dir / f"{stamp}_{PATCH_FILENAME}").write_bytes(patch_raw)
    return stamp


def write_timeline_entry(
    paths: TimelinePaths,
    session_id: str,
    patch: str,
    files: list[DiffFileSummary],
    touched_files: list[str],
    entry_counter: int,
    message_id: Optional[str] = None,
    lock_timeout: float = 10.0,
) -> EntryWriteResult:
    """Write a new version of a timeline entry.

    An existing entry for ``message_id`` keeps its directory and counter
    prefix; otherwise a directory is allocated from ``entry_counter``.
    If the stored diffHash equals the new one nothing is written and the
    result is marked skipped. Otherwise the current meta.json and
    patch.diff are archived under revisions/ before all four artifacts
    are overwritten.

    Args:
        paths: Timeline layout
        session_id: Session the change belongs to
        patch: Unified diff text
        files: Per-file summaries of the patch
        touched_files: Files touched so far in the session
        entry_counter: Counter used only when a new entry is allocated
        message_id: Identifier of the entry; "session" when absent
        lock_timeout: Seconds to wait for the per-entry lock

    Returns:
        EntryWriteResult for the entry.

    Raises:
        json.JSONDecodeError: If the stored meta.json is corrupt
        portalocker.LockException: If the entry lock cannot be acquired
    """
    ensure_timeline_dirs(paths)

    safe_id = sanitize_entry_id(message_id) if message_id else DEFAULT_MESSAGE_ID

    with entry_lock(paths, safe_id, timeout=lock_timeout):
        existing_dir = find_existing_entry_dir(paths, message_id) if message_id else None
        if existing_dir is not None:
            entry_name = existing_dir.name
            entry_dir = existing_dir
        else:
            entry_name = f"{format_entry_prefix(entry_counter)}_{safe_id}"
            entry_dir = paths.entries_dir / entry_name

        created = False
        if existing_dir is None:
            created = not entry_dir.exists()
            entry_dir.mkdir(parents=True, exist_ok=True)

        diff_hash = hash_diff(patch)

        meta_path = entry_dir / META_FILENAME
        patch_path = entry_dir / PATCH_FILENAME

        previous_raw = read_file_if_exists(meta_path)
        previous = json.loads(previous_raw.decode("utf-8")) if previous_raw else None

        if previous is not None and previous.get("diffHash") == diff_hash:
            logger.debug(f"Entry {entry_name} unchanged ({diff_hash[:12]}), skipping")
            return EntryWriteResult(
                entry_dir=str(entry_dir),
                meta=TimelineEntryMeta.from_dict(previous, default_id=entry_name),
                skipped=True,
                created=created,
            )

        if previous is not None:
            stamp = _archive_revision(entry_dir, previous_raw, read_file_if_exists(patch_path))
            logger.info(f"Archived previous version of {entry_name} as revision {stamp}")

        meta = TimelineEntryMeta(
            id=entry_name,
            session_id=session_id,
            message_id=message_id,
            created_at=epoch_millis(),
            diff_hash=diff_hash,
            stats=EntryStats.from_files(files),
            files=list(files),
            touched_files=list(touched_files),
        )

        _dump_json(meta_path, meta.to_dict())
        with atomic_write(patch_path, mode="wb") as f:
            f.write(patch.encode("utf-8"))
        _dump_json(entry_dir / PATCH_FILES_FILENAME, [f.to_dict() for f in files])
        _dump_json(entry_dir / TOUCHED_FILES_FILENAME, list(touched_files))

    logger.info(
        f"Wrote entry {entry_name}: {meta.stats.files} files, "
        f"+{meta.stats.additions} -{meta.stats.deletions}"
    )
    return EntryWriteResult(entry_dir=str(entry_dir), meta=meta, skipped=False, created=created)


def list_entries(paths: TimelinePaths) -> list[str]:
    """List entry directory names in counter order."""
    if not paths.entries_dir.exists():
        return []
    return sorted(p.name for p in paths.entries_dir.iterdir() if p.is_dir())


def export_timeline_index(paths: TimelinePaths) -> TimelineIndex:
    """Regenerate index.json from every entry's meta.json.

    Metas are copied into the index as read. Entries without a meta.json
    are left out. The index is rebuilt from scratch on every call and
    replaces any previous content.

    Returns:
        The TimelineIndex that was written.
    """
    ensure_timeline_dirs(paths)

    index = TimelineIndex(generated_at=epoch_millis())
    for name in list_entries(paths):
        data = read_json_if_exists(paths.entries_dir / name / META_FILENAME)
        if data is None:
            continue
        index.entries.append(data)
        index.totals.add(EntryStats.from_dict(data.get("stats") or {}))

    _dump_json(paths.index_file, index.to_dict())
    logger.info(f"Exported timeline index with {len(index.entries)} entries")
    return index


def resolve_entry_dir(paths: TimelinePaths, entry: str) -> Path:
    """Resolve an entry directory name or message identifier to a directory.

    Raises:
        EntryNotFoundError: If no such entry exists
    """
    candidate = paths.entries_dir / entry
    if entry and candidate.is_dir():
        return candidate
    found = find_existing_entry_dir(paths, entry) if entry else None
    if found is None:
        raise EntryNotFoundError(f"Timeline entry not found: {entry}")
    return found


def read_entry(paths: TimelinePaths, entry: str, include_patch: bool = True) -> dict:
    """Read the live version of an entry.

    Returns:
        Dict with the entry directory, its meta and (optionally) patch text.

    Raises:
        EntryNotFoundError: If the entry or its meta.json does not exist
    """
    entry_dir = resolve_entry_dir(paths, entry)
    data = read_json_if_exists(entry_dir / META_FILENAME)
    if data is None:
        raise EntryNotFoundError(f"Timeline entry has no {META_FILENAME}: {entry_dir.name}")

    result = {
        "entry_dir": str(entry_dir),
        "meta": data,
    }
    if include_patch:
        patch = read_file_if_exists(entry_dir / PATCH_FILENAME)
        result["patch"] = patch.decode("utf-8") if patch is not None else ""
    return result


def list_revisions(entry_dir: Path) -> list[dict]:
    """List archived revisions of an entry, oldest first."""
    revisions_dir = entry_dir / REVISIONS_DIRNAME
    if not revisions_dir.exists():
        return []

    suffix = f"_{META_FILENAME}"
    revisions = []
    for meta_file in revisions_dir.glob(f"*{suffix}"):
        stamp = meta_file.name[: -len(suffix)]
        if not stamp.isdigit():
            continue
        patch_file = revisions_dir / f"{stamp}_{PATCH_FILENAME}"
        revisions.append({
            "stamp": int(stamp),
            "meta": str(meta_file),
            "patch": str(patch_file) if patch_file.exists() else None,
        })

    return sorted(revisions, key=lambda r: r["stamp"])
