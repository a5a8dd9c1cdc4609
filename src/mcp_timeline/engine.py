"""Timeline engine - records change sets end to end for a host."""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Optional

from loguru import logger

from .config import TimelineConfig
from .diff import build_unified_diff
from .editor import open_file_in_editor, parse_command, resolve_editor_command
from .locking import file_lock
from .models import EntryWriteResult, FileDiff, TimelineIndex, TimelineState
from .paths import ensure_timeline_dirs
from .state import read_state, update_touched_files, write_state
from .store import (
    META_FILENAME,
    PATCH_FILENAME,
    export_timeline_index,
    list_entries,
    list_revisions,
    read_entry,
    read_json_if_exists,
    resolve_entry_dir,
    write_timeline_entry,
)


class TimelineEngine:
    """Core engine managing timeline entries, session state and the index."""

    def __init__(self, config: TimelineConfig):
        self.config = config
        self.paths = config.get_paths()
        ensure_timeline_dirs(self.paths)

    # ========== Recording ==========

    def begin_message(self, message_id: str) -> TimelineState:
        """Remember the message that subsequent records belong to."""
        with file_lock(self.paths.state_file, timeout=self.config.lock_timeout):
            state = read_state(self.paths)
            return write_state(self.paths, replace(state, last_user_message_id=message_id))

    def record(
        self,
        session_id: str,
        file_diffs: Iterable[FileDiff],
        message_id: Optional[str] = None,
    ) -> Optional[EntryWriteResult]:
        """Record a change set as a timeline entry and refresh the index.

        The state lock is held for the whole sequence so that allocating
        the next counter value and creating the entry directory happen
        together. The counter only advances when a new directory was
        created.

        Args:
            session_id: Session the change belongs to
            file_diffs: Before/after snapshots of every touched file
            message_id: Entry identifier; defaults to the last message
                passed to begin_message

        Returns:
            EntryWriteResult, or None if no file actually changed.
        """
        file_diffs = list(file_diffs)
        diff = build_unified_diff(file_diffs)

        with file_lock(self.paths.state_file, timeout=self.config.lock_timeout):
            state = read_state(self.paths)
            state = update_touched_files(state, (d.file for d in file_diffs))
            if message_id is None:
                message_id = state.last_user_message_id

            if not diff.patch:
                logger.debug(f"No changes to record for message {message_id}")
                write_state(self.paths, replace(state, session_id=session_id))
                return None

            next_counter = state.entry_counter + 1
            result = write_timeline_entry(
                self.paths,
                session_id=session_id,
                patch=diff.patch,
                files=diff.files,
                touched_files=state.touched_files,
                entry_counter=next_counter,
                message_id=message_id,
                lock_timeout=self.config.lock_timeout,
            )

            if result.created:
                state = replace(state, entry_counter=next_counter)
            write_state(self.paths, replace(
                state,
                session_id=session_id,
                last_recorded_message_id=message_id,
                last_diff_hash=result.meta.diff_hash,
            ))

        if not result.skipped:
            self.export_index()
            if "post_record" in self.config.hooks:
                self.config.hooks["post_record"](result)

        return result

    def export_index(self) -> TimelineIndex:
        """Rebuild index.json from all entries."""
        return export_timeline_index(self.paths)

    # ========== Browsing ==========

    def list_entries(self) -> list[dict]:
        """Summaries of all entries in counter order."""
        summaries = []
        for name in list_entries(self.paths):
            data = read_json_if_exists(self.paths.entries_dir / name / META_FILENAME)
            summaries.append({
                "entry": name,
                "message_id": data.get("messageID") if data else None,
                "created_at": data.get("createdAt") if data else None,
                "stats": data.get("stats") if data else None,
            })
        return summaries

    def read_entry(self, entry: str, include_patch: bool = True) -> dict:
        """Read an entry by directory name or message identifier."""
        return read_entry(self.paths, entry, include_patch=include_patch)

    def revisions(self, entry: str) -> list[dict]:
        """Archived revisions of an entry, oldest first."""
        return list_revisions(resolve_entry_dir(self.paths, entry))

    def state(self) -> TimelineState:
        return read_state(self.paths)

    def open_entry(self, entry: str) -> int:
        """Open an entry's patch.diff in the configured editor.

        Returns:
            The editor's exit code.
        """
        entry_dir = resolve_entry_dir(self.paths, entry)
        if self.config.editor:
            editor = parse_command(self.config.editor)
        else:
            editor = resolve_editor_command()
        logger.info(f"Opening {entry_dir.name}/{PATCH_FILENAME} with {editor.command}")
        return open_file_in_editor(entry_dir / PATCH_FILENAME, editor, self.config.project_root)
