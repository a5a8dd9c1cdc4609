"""Tests for configuration loading."""

from pathlib import Path

import pytest

from mcp_timeline.config import (
    TimelineConfig,
    dict_to_config,
    find_config_file,
    load_config,
    load_json_config,
    load_python_config,
)


class TestFindConfigFile:
    """Tests for find_config_file."""

    def test_finds_python_config(self, temp_project):
        """Python config is found first."""
        (temp_project / "timeline_config.py").write_text("CONFIG = {}")
        (temp_project / "timeline_config.toml").write_text("")

        found = find_config_file(temp_project)
        assert found.name == "timeline_config.py"

    def test_finds_toml_config(self, temp_project):
        (temp_project / "timeline_config.toml").write_text("")

        found = find_config_file(temp_project)
        assert found.name == "timeline_config.toml"

    def test_finds_dotfile_config(self, temp_project):
        (temp_project / ".timeline.json").write_text("{}")

        found = find_config_file(temp_project)
        assert found.name == ".timeline.json"

    def test_returns_none_if_no_config(self, temp_project):
        assert find_config_file(temp_project) is None


class TestDictToConfig:
    """Tests for dict_to_config."""

    def test_all_sections(self, temp_project):
        config = dict_to_config({
            "project": {"name": "demo"},
            "directories": {"timeline": "history"},
            "locking": {"timeout": 2},
            "logging": {"level": "debug", "file": "logs/timeline.log"},
            "editor": {"command": "code -w"},
        }, temp_project)

        assert config.project_name == "demo"
        assert config.timeline_dir == "history"
        assert config.lock_timeout == 2.0
        assert config.log_level == "DEBUG"
        assert config.log_file == "logs/timeline.log"
        assert config.editor == "code -w"
        assert config.get_paths().entries_dir == temp_project / "history" / "entries"

    def test_editor_as_string(self, temp_project):
        assert dict_to_config({"editor": "nano"}, temp_project).editor == "nano"

    def test_defaults(self, temp_project):
        config = dict_to_config({}, temp_project)
        assert config.timeline_dir == ".opencode/timeline"
        assert config.lock_timeout == 10.0
        assert config.editor is None


class TestLoadConfig:
    """Tests for load_config."""

    def test_no_config_uses_defaults(self, temp_project):
        config = load_config(temp_project)
        assert isinstance(config, TimelineConfig)
        assert config.project_root == temp_project

    def test_loads_toml(self, temp_project):
        (temp_project / "timeline_config.toml").write_text(
            '[project]\nname = "toml-project"\n\n[directories]\ntimeline = ".tl"\n'
        )

        config = load_config(temp_project)
        assert config.project_name == "toml-project"
        assert config.timeline_dir == ".tl"

    def test_loads_json(self, temp_project):
        path = temp_project / "settings.json"
        path.write_text('{"project": {"name": "json-project"}}')

        assert load_json_config(path)["project"]["name"] == "json-project"
        assert load_config(temp_project, path).project_name == "json-project"

    def test_unsupported_suffix(self, temp_project):
        path = temp_project / "config.ini"
        path.write_text("")

        with pytest.raises(ValueError, match="Unsupported config file type"):
            load_config(temp_project, path)


class TestLoadPythonConfig:
    """Tests for load_python_config."""

    def test_extracts_config_hooks_and_tools(self, temp_project):
        path = temp_project / "timeline_config.py"
        path.write_text('''
CONFIG = {"project": {"name": "py-project"}}

def hook_post_record(result):
    pass

def custom_tool_summary(engine, params):
    """Summarize the timeline."""
    return {}
''')

        data, hooks, tools = load_python_config(path)

        assert data["project"]["name"] == "py-project"
        assert "post_record" in hooks
        assert "summary" in tools

    def test_load_config_attaches_hooks(self, temp_project):
        (temp_project / "timeline_config.py").write_text(
            "CONFIG = {}\n\ndef hook_post_record(result):\n    pass\n"
        )

        config = load_config(temp_project)
        assert "post_record" in config.hooks


class TestExampleConfig:
    """The shipped example config loads and its tool runs."""

    def test_example_loads(self, temp_project):
        from mcp_timeline.engine import TimelineEngine
        from mcp_timeline.models import FileDiff

        example = Path(__file__).parent.parent / "examples" / "timeline_config.py"
        config = load_config(temp_project, example)

        assert config.project_name == "my-service"
        assert config.lock_timeout == 5.0
        assert config.editor == "code --wait"
        assert "post_record" in config.hooks

        engine = TimelineEngine(config)
        engine.record("ses-1", [FileDiff("a.py", "x\n", "y\n", 1, 1)], message_id="m1")
        result = config.custom_tools["largest_entries"](engine, {"limit": 1})
        assert [e["entry"] for e in result["entries"]] == ["000001_m1"]
