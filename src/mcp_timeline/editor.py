"""Opening timeline artifacts in the user's editor."""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_EDITOR = "vi"


@dataclass
class EditorCommand:
    """Executable plus leading arguments for an editor."""
    command: str
    args: list[str] = field(default_factory=list)


def resolve_editor_command(env: Optional[Mapping[str, str]] = None) -> EditorCommand:
    """Pick the editor from $VISUAL, then $EDITOR, then vi."""
    if env is None:
        env = os.environ
    raw = env.get("VISUAL") or env.get("EDITOR") or DEFAULT_EDITOR
    return parse_command(raw)


def parse_command(text: str) -> EditorCommand:
    """Split an editor command line on spaces.

    Single or double quotes group words; inside quotes a backslash
    escapes the next character.
    """
    args: list[str] = []
    current = ""
    quote: Optional[str] = None

    i = 0
    while i < len(text):
        char = text[i]
        i += 1

        if quote:
            if char == quote:
                quote = None
            elif char == "\\" and i < len(text):
                current += text[i]
                i += 1
            else:
                current += char
            continue

        if char in ("'", '"'):
            quote = char
        elif char == " ":
            if current:
                args.append(current)
                current = ""
        else:
            current += char

    if current:
        args.append(current)

    if not args:
        return EditorCommand(command=DEFAULT_EDITOR)
    return EditorCommand(command=args[0], args=args[1:])


def open_file_in_editor(file_path: Path, editor: EditorCommand, cwd: Path) -> int:
    """Run the editor on a file and wait for it to exit.

    The editor inherits this process's stdin/stdout/stderr.

    Returns:
        The editor's exit code.
    """
    absolute = Path(cwd, file_path).resolve()
    result = subprocess.run([editor.command, *editor.args, str(absolute)], cwd=cwd)
    return result.returncode
