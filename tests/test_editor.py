"""Tests for editor command resolution and launching."""

from pathlib import Path
from unittest.mock import MagicMock

from mcp_timeline import editor as editor_module
from mcp_timeline.editor import (
    EditorCommand,
    open_file_in_editor,
    parse_command,
    resolve_editor_command,
)


class TestParseCommand:
    """Tests for parse_command."""

    def test_simple_command(self):
        assert parse_command("vim") == EditorCommand("vim", [])

    def test_command_with_args(self):
        assert parse_command("code  --wait -n") == EditorCommand("code", ["--wait", "-n"])

    def test_double_quoted_path(self):
        cmd = parse_command('"/Applications/My Editor" --wait')
        assert cmd == EditorCommand("/Applications/My Editor", ["--wait"])

    def test_single_quotes(self):
        assert parse_command("ed 'a b' c") == EditorCommand("ed", ["a b", "c"])

    def test_backslash_escape_inside_quotes(self):
        assert parse_command('ed "say \\"hi\\""') == EditorCommand("ed", ['say "hi"'])

    def test_backslash_outside_quotes_is_literal(self):
        assert parse_command("C:\\bin\\ed") == EditorCommand("C:\\bin\\ed", [])

    def test_empty_falls_back_to_vi(self):
        assert parse_command("") == EditorCommand("vi", [])
        assert parse_command("   ") == EditorCommand("vi", [])


class TestResolveEditorCommand:
    """Tests for resolve_editor_command."""

    def test_visual_wins(self):
        cmd = resolve_editor_command({"VISUAL": "code -w", "EDITOR": "nano"})
        assert cmd == EditorCommand("code", ["-w"])

    def test_editor_fallback(self):
        assert resolve_editor_command({"EDITOR": "nano"}) == EditorCommand("nano", [])

    def test_empty_values_are_ignored(self):
        assert resolve_editor_command({"VISUAL": "", "EDITOR": "nano"}).command == "nano"

    def test_default_vi(self):
        assert resolve_editor_command({}) == EditorCommand("vi", [])


class TestOpenFileInEditor:
    """Tests for open_file_in_editor."""

    def test_runs_editor_with_absolute_path(self, temp_project, monkeypatch):
        run = MagicMock(return_value=MagicMock(returncode=0))
        monkeypatch.setattr(editor_module.subprocess, "run", run)

        code = open_file_in_editor(Path("patch.diff"), EditorCommand("code", ["-w"]), temp_project)

        assert code == 0
        args, kwargs = run.call_args
        assert args[0] == ["code", "-w", str((temp_project / "patch.diff").resolve())]
        assert kwargs["cwd"] == temp_project

    def test_returns_exit_code(self, temp_project, monkeypatch):
        monkeypatch.setattr(
            editor_module.subprocess, "run", MagicMock(return_value=MagicMock(returncode=3))
        )
        assert open_file_in_editor(temp_project / "x", EditorCommand("ed"), temp_project) == 3
