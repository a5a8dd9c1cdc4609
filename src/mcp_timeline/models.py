"""Data models for diffs, timeline entries, session state and the index."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class DiffStatus(Enum):
    """How a file changed between two snapshots."""
    ADDED = "added"
    DELETED = "deleted"
    MODIFIED = "modified"


def epoch_millis() -> int:
    """Get current UTC time as integer milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


@dataclass
class FileDiff:
    """Before/after contents of one file, as supplied by the host."""
    file: str
    before: str
    after: str
    additions: int = 0
    deletions: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FileDiff:
        return cls(
            file=data["file"],
            before=data.get("before") or "",
            after=data.get("after") or "",
            additions=int(data.get("additions", 0)),
            deletions=int(data.get("deletions", 0)),
        )


@dataclass
class DiffFileSummary:
    """Per-file statistics recorded alongside a patch."""
    file: str
    additions: int
    deletions: int
    status: DiffStatus = DiffStatus.MODIFIED

    def to_dict(self) -> dict:
        return {
            "file": self.file,
            "additions": self.additions,
            "deletions": self.deletions,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DiffFileSummary:
        return cls(
            file=data["file"],
            additions=int(data.get("additions", 0)),
            deletions=int(data.get("deletions", 0)),
            status=DiffStatus(data.get("status", DiffStatus.MODIFIED.value)),
        )


@dataclass
class UnifiedDiffResult:
    """A multi-file unified diff plus the summaries of the files it covers."""
    patch: str = ""
    files: list[DiffFileSummary] = field(default_factory=list)
    additions: int = 0
    deletions: int = 0

    def to_dict(self) -> dict:
        return {
            "patch": self.patch,
            "files": [f.to_dict() for f in self.files],
            "additions": self.additions,
            "deletions": self.deletions,
        }


@dataclass
class EntryStats:
    """Aggregate counts for an entry or for the whole index."""
    files: int = 0
    additions: int = 0
    deletions: int = 0

    @classmethod
    def from_files(cls, files: list[DiffFileSummary]) -> EntryStats:
        return cls(
            files=len(files),
            additions=sum(f.additions for f in files),
            deletions=sum(f.deletions for f in files),
        )

    def add(self, other: EntryStats) -> None:
        self.files += other.files
        self.additions += other.additions
        self.deletions += other.deletions

    def to_dict(self) -> dict:
        return {
            "files": self.files,
            "additions": self.additions,
            "deletions": self.deletions,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EntryStats:
        return cls(
            files=int(data.get("files", 0)),
            additions=int(data.get("additions", 0)),
            deletions=int(data.get("deletions", 0)),
        )


_META_KEYS = frozenset({
    "id", "sessionID", "messageID", "createdAt", "diffHash", "stats", "files", "touchedFiles",
})


@dataclass
class TimelineEntryMeta:
    """Metadata describing the live version of a timeline entry.

    Serialized to meta.json using camelCase keys so that the on-disk
    layout can be read by other timeline viewers.
    """
    id: str
    session_id: str
    created_at: int
    diff_hash: str
    stats: EntryStats = field(default_factory=EntryStats)
    files: list[DiffFileSummary] = field(default_factory=list)
    touched_files: list[str] = field(default_factory=list)
    message_id: Optional[str] = None
    # Keys written by other tools, carried through untouched
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "id": self.id,
            "sessionID": self.session_id,
        }
        if self.message_id is not None:
            data["messageID"] = self.message_id
        data.update({
            "createdAt": self.created_at,
            "diffHash": self.diff_hash,
            "stats": self.stats.to_dict(),
            "files": [f.to_dict() for f in self.files],
            "touchedFiles": list(self.touched_files),
        })
        for key, value in self.extra.items():
            data.setdefault(key, value)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any], default_id: str = "") -> TimelineEntryMeta:
        return cls(
            id=data.get("id", default_id),
            session_id=data.get("sessionID", ""),
            message_id=data.get("messageID"),
            created_at=int(data.get("createdAt", 0)),
            diff_hash=data.get("diffHash", ""),
            stats=EntryStats.from_dict(data.get("stats", {})),
            files=[DiffFileSummary.from_dict(f) for f in data.get("files", [])],
            touched_files=list(data.get("touchedFiles", [])),
            extra={k: v for k, v in data.items() if k not in _META_KEYS},
        )


@dataclass
class EntryWriteResult:
    """Outcome of writing a timeline entry."""
    entry_dir: str
    meta: TimelineEntryMeta
    skipped: bool
    created: bool = False

    def to_dict(self) -> dict:
        return {
            "entry_dir": self.entry_dir,
            "meta": self.meta.to_dict(),
            "skipped": self.skipped,
            "created": self.created,
        }


@dataclass
class TimelineState:
    """Session state persisted between record operations."""
    entry_counter: int = 0
    touched_files: list[str] = field(default_factory=list)
    updated_at: int = field(default_factory=epoch_millis)
    session_id: Optional[str] = None
    last_user_message_id: Optional[str] = None
    last_recorded_message_id: Optional[str] = None
    last_diff_hash: Optional[str] = None

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "entryCounter": self.entry_counter,
            "touchedFiles": list(self.touched_files),
            "updatedAt": self.updated_at,
        }
        optional = {
            "sessionID": self.session_id,
            "lastUserMessageID": self.last_user_message_id,
            "lastRecordedMessageID": self.last_recorded_message_id,
            "lastDiffHash": self.last_diff_hash,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TimelineState:
        return cls(
            entry_counter=int(data.get("entryCounter", 0)),
            touched_files=list(data.get("touchedFiles", [])),
            updated_at=int(data.get("updatedAt", epoch_millis())),
            session_id=data.get("sessionID"),
            last_user_message_id=data.get("lastUserMessageID"),
            last_recorded_message_id=data.get("lastRecordedMessageID"),
            last_diff_hash=data.get("lastDiffHash"),
        )


@dataclass
class TimelineIndex:
    """Aggregate index regenerated from every entry's meta.json.

    Entries are the meta.json documents exactly as stored.
    """
    generated_at: int
    entries: list[dict[str, Any]] = field(default_factory=list)
    totals: EntryStats = field(default_factory=EntryStats)

    def to_dict(self) -> dict:
        return {
            "generatedAt": self.generated_at,
            "entries": list(self.entries),
            "totals": self.totals.to_dict(),
        }
