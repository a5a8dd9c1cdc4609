"""Configuration loading for MCP Timeline.

Supports three tiers:
1. Simple config via .toml or .json - most users
2. Python config via .py - power users with custom tools/hooks
3. Full override via subclassing - rare cases
"""

from __future__ import annotations

import importlib.util
import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

# Python 3.11+ has tomllib in stdlib; fall back to tomli for older versions
try:
    import tomllib  # Python 3.11+
except ImportError:
    try:
        import tomli as tomllib  # Python <3.11
    except ImportError:  # pragma: no cover
        tomllib = None

from .paths import DEFAULT_TIMELINE_DIR, TimelinePaths, build_timeline_paths


@dataclass
class TimelineConfig:
    """Configuration for a project's timeline."""

    # Project identification
    project_name: str = "unnamed"
    project_root: Path = field(default_factory=Path.cwd)

    # Directory structure (relative to project_root)
    timeline_dir: str = DEFAULT_TIMELINE_DIR

    # Seconds to wait for entry/state locks
    lock_timeout: float = 10.0

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # Editor command line; None means $VISUAL / $EDITOR
    editor: Optional[str] = None

    # Hooks (populated from Python config)
    hooks: dict[str, Callable] = field(default_factory=dict)

    # Custom tools (populated from Python config)
    custom_tools: dict[str, Callable] = field(default_factory=dict)

    def get_paths(self) -> TimelinePaths:
        return build_timeline_paths(self.project_root, self.timeline_dir)


def load_toml_config(path: Path) -> dict[str, Any]:
    """Load configuration from TOML file."""
    if tomllib is None:
        raise ImportError("tomli required for TOML config: pip install tomli")
    with open(path, "rb") as f:
        return tomllib.load(f)


def load_json_config(path: Path) -> dict[str, Any]:
    """Load configuration from JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_python_config(path: Path) -> tuple[dict[str, Any], dict[str, Callable], dict[str, Callable]]:
    """Load configuration from Python file.

    Returns:
        Tuple of (config_dict, hooks_dict, custom_tools_dict)

    Convention:
        - CONFIG dict or config dict for static configuration
        - Functions named hook_* become hooks
        - Functions named custom_tool_* become MCP tools
    """
    spec = importlib.util.spec_from_file_location("timeline_config", path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load Python config from {path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules["timeline_config"] = module
    spec.loader.exec_module(module)

    config_dict = {}
    if hasattr(module, "CONFIG"):
        config_dict = module.CONFIG
    elif hasattr(module, "config"):
        config_dict = module.config

    hooks = {}
    custom_tools = {}
    for name in dir(module):
        if name.startswith("hook_"):
            hooks[name[len("hook_"):]] = getattr(module, name)
        elif name.startswith("custom_tool_"):
            custom_tools[name[len("custom_tool_"):]] = getattr(module, name)

    return config_dict, hooks, custom_tools


def dict_to_config(data: dict[str, Any], project_root: Path) -> TimelineConfig:
    """Convert dictionary to TimelineConfig."""
    config = TimelineConfig(project_root=project_root)

    if "project" in data:
        proj = data["project"]
        if "name" in proj:
            config.project_name = proj["name"]

    if "directories" in data:
        dirs = data["directories"]
        if "timeline" in dirs:
            config.timeline_dir = dirs["timeline"]

    if "locking" in data:
        if "timeout" in data["locking"]:
            config.lock_timeout = float(data["locking"]["timeout"])

    if "logging" in data:
        log = data["logging"]
        if "level" in log:
            config.log_level = str(log["level"]).upper()
        if "file" in log:
            config.log_file = log["file"]

    if "editor" in data:
        editor = data["editor"]
        # Accept either `editor = "code -w"` or `[editor] command = "code -w"`
        if isinstance(editor, str):
            config.editor = editor
        elif isinstance(editor, dict) and "command" in editor:
            config.editor = editor["command"]

    return config


def find_config_file(project_root: Path) -> Optional[Path]:
    """Find configuration file in project root.

    Search order:
    1. timeline_config.py (most flexible)
    2. timeline_config.toml
    3. timeline_config.json
    4. .timeline.toml
    5. .timeline.json
    """
    candidates = [
        "timeline_config.py",
        "timeline_config.toml",
        "timeline_config.json",
        ".timeline.toml",
        ".timeline.json",
    ]

    for name in candidates:
        path = project_root / name
        if path.exists():
            return path

    return None


def load_config(project_root: Path, config_path: Optional[Path] = None) -> TimelineConfig:
    """Load project configuration.

    Args:
        project_root: Root directory of the project
        config_path: Optional explicit path to config file

    Returns:
        TimelineConfig instance
    """
    if config_path is None:
        config_path = find_config_file(project_root)

    if config_path is None:
        return TimelineConfig(project_root=project_root)

    suffix = config_path.suffix.lower()

    if suffix == ".py":
        config_dict, hooks, custom_tools = load_python_config(config_path)
        config = dict_to_config(config_dict, project_root)
        config.hooks = hooks
        config.custom_tools = custom_tools
        return config

    elif suffix == ".toml":
        return dict_to_config(load_toml_config(config_path), project_root)

    elif suffix == ".json":
        return dict_to_config(load_json_config(config_path), project_root)

    else:
        raise ValueError(f"Unsupported config file type: {suffix}")
