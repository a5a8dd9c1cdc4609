"""Tests for MCP server module."""

import json
from unittest.mock import patch

import pytest
from loguru import logger

import mcp_timeline.server as server_module
from mcp_timeline.config import TimelineConfig
from mcp_timeline.engine import TimelineEngine
from mcp_timeline.models import FileDiff


class TestServerImports:
    """Test server module imports and HAS_MCP flag."""

    def test_server_imports_without_mcp(self):
        assert hasattr(server_module, "HAS_MCP")
        assert hasattr(server_module, "create_server")
        assert hasattr(server_module, "run_server")
        assert hasattr(server_module, "main")


class TestCreateServer:
    """Tests for create_server function."""

    def test_create_server_without_mcp_raises(self, config):
        with patch.object(server_module, "HAS_MCP", False):
            with pytest.raises(ImportError, match="MCP package not installed"):
                server_module.create_server(config)

    @pytest.mark.skipif(not server_module.HAS_MCP, reason="MCP not installed")
    def test_create_server_with_custom_tools(self, temp_project):
        def custom_tool_echo(engine, params):
            """Echo parameters back."""
            return params

        config = TimelineConfig(project_root=temp_project, custom_tools={"echo": custom_tool_echo})
        assert server_module.create_server(config) is not None


class TestMain:
    """Tests for the command line entry point."""

    @pytest.fixture(autouse=True)
    def reset_logger(self):
        """main() installs handlers on the captured stderr; drop them afterwards."""
        yield
        logger.remove()

    def test_init_creates_directories(self, temp_project, capsys):
        server_module.main(["--project-root", str(temp_project), "--init"])

        assert (temp_project / ".opencode" / "timeline" / "entries").is_dir()
        assert (temp_project / ".opencode" / "timeline" / "tmp").is_dir()
        assert "Initialized timeline directories" in capsys.readouterr().out

    def test_export_index(self, temp_project, capsys):
        engine = TimelineEngine(TimelineConfig(project_root=temp_project))
        engine.record("ses-1", [FileDiff("a.py", "x\n", "y\n", 1, 1)], message_id="m1")
        engine.paths.index_file.unlink()

        server_module.main(["--project-root", str(temp_project), "--export-index"])

        data = json.loads(engine.paths.index_file.read_text())
        assert len(data["entries"]) == 1
        assert "1 entries" in capsys.readouterr().out

    def test_open_exits_with_editor_code(self, temp_project, monkeypatch):
        monkeypatch.setattr(TimelineEngine, "open_entry", lambda self, entry: 5)

        with pytest.raises(SystemExit) as exc:
            server_module.main(["--project-root", str(temp_project), "--open", "m1"])
        assert exc.value.code == 5

    def test_bad_config_exits(self, temp_project, capsys):
        (temp_project / "timeline_config.json").write_text("{broken")

        with pytest.raises(SystemExit) as exc:
            server_module.main(["--project-root", str(temp_project)])

        assert exc.value.code == 1
        assert "Error loading config" in capsys.readouterr().err

    def test_server_mode_without_mcp_exits(self, temp_project):
        with patch.object(server_module, "HAS_MCP", False):
            with pytest.raises(SystemExit) as exc:
                server_module.main(["--project-root", str(temp_project)])
        assert exc.value.code == 1
