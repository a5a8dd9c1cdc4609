"""File locking utilities for concurrent access safety."""

from __future__ import annotations

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import portalocker

from .paths import TimelinePaths, sanitize_entry_id


@contextmanager
def file_lock(path: Path, timeout: float = 10.0) -> Generator[None, None, None]:
    """Acquire an exclusive lock on a file.

    Creates a .lock file alongside the target file.

    Args:
        path: File to lock
        timeout: Seconds to wait for lock

    Raises:
        portalocker.LockException: If lock cannot be acquired
    """
    lock_path = path.with_suffix(path.suffix + ".lock")
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock_path.touch(exist_ok=True)

    with portalocker.Lock(lock_path, timeout=timeout):
        yield


@contextmanager
def entry_lock(paths: TimelinePaths, message_id: str, timeout: float = 10.0) -> Generator[None, None, None]:
    """Serialize writers of one timeline entry.

    The lock file lives in the timeline tmp directory, keyed by the
    sanitized identifier, so writers of different entries never contend.
    """
    with file_lock(paths.tmp_dir / f"entry_{sanitize_entry_id(message_id)}", timeout=timeout):
        yield


@contextmanager
def atomic_write(path: Path, mode: str = "w", encoding: str = "utf-8") -> Generator:
    """Write to a file atomically.

    Writes to a temporary file then renames to target path.

    Args:
        path: Target file path
        mode: Write mode ('w' for text, 'wb' for binary)
        encoding: Text encoding (ignored for binary mode)

    Yields:
        File handle for writing
    """
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        if "b" in mode:
            with open(tmp_path, mode) as f:
                yield f
        else:
            # newline="" keeps patch text byte-exact on every platform
            with open(tmp_path, mode, encoding=encoding, newline="") as f:
                yield f
        os.replace(tmp_path, path)

    except Exception:
        if tmp_path.exists():
            tmp_path.unlink()
        raise
