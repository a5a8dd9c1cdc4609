"""Unified diff generation for sets of before/after file snapshots.

Pure functions only: no filesystem access and no shared state.
"""

from __future__ import annotations

import difflib
from typing import Iterable

from .models import DiffFileSummary, DiffStatus, FileDiff, UnifiedDiffResult

CONTEXT_LINES = 3


def normalize_text(value: str) -> str:
    """Normalize line endings to LF and ensure a trailing newline.

    Empty input stays empty.
    """
    if not value:
        return ""
    normalized = value.replace("\r\n", "\n").replace("\r", "\n")
    return normalized if normalized.endswith("\n") else normalized + "\n"


def summarize_file_diff(file_diff: FileDiff) -> DiffFileSummary:
    """Classify a file change from the emptiness of its snapshots."""
    before_empty = not file_diff.before
    after_empty = not file_diff.after

    status = DiffStatus.MODIFIED
    if before_empty and not after_empty:
        status = DiffStatus.ADDED
    elif not before_empty and after_empty:
        status = DiffStatus.DELETED

    return DiffFileSummary(
        file=file_diff.file,
        additions=file_diff.additions,
        deletions=file_diff.deletions,
        status=status,
    )


def _split_lines(text: str) -> list[str]:
    # str.splitlines also breaks on form feeds and unicode separators
    return [line + "\n" for line in text.split("\n")[:-1]]


def _file_patch(file: str, before: str, after: str) -> str:
    lines = difflib.unified_diff(
        _split_lines(before),
        _split_lines(after),
        fromfile=f"a/{file}",
        tofile=f"b/{file}",
        fromfiledate="",
        tofiledate="",
        n=CONTEXT_LINES,
    )
    return "".join(lines).rstrip()


def build_unified_diff(file_diffs: Iterable[FileDiff]) -> UnifiedDiffResult:
    """Build a single multi-file unified diff.

    Files are processed in path order so the document does not depend on
    the caller's ordering. Files whose normalized contents are equal are
    dropped entirely: they emit no patch and do not count in the totals.

    Hunk headers use difflib's form (``@@ -0,0 +1 @@``) and there is no
    ``===`` banner line, so diffHash values differ from patches produced
    by jsdiff-based timeline writers for the same change.

    Args:
        file_diffs: Snapshots to compare

    Returns:
        UnifiedDiffResult with the patch text, per-file summaries and
        the summed caller-supplied additions/deletions.
    """
    patches = []
    result = UnifiedDiffResult()

    for diff in sorted(file_diffs, key=lambda d: d.file):
        before = normalize_text(diff.before)
        after = normalize_text(diff.after)
        if before == after:
            continue

        patches.append(_file_patch(diff.file, before, after))
        result.files.append(summarize_file_diff(diff))
        result.additions += diff.additions
        result.deletions += diff.deletions

    if patches:
        result.patch = "\n\n".join(patches) + "\n"
    return result
