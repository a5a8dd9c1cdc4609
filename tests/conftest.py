"""Shared pytest fixtures for mcp-timeline tests."""

import tempfile
from pathlib import Path

import pytest
from loguru import logger

from mcp_timeline.config import TimelineConfig
from mcp_timeline.engine import TimelineEngine
from mcp_timeline.models import DiffFileSummary, DiffStatus
from mcp_timeline.paths import build_timeline_paths

# Library modules log through loguru; keep test output quiet
logger.remove()


@pytest.fixture
def temp_project():
    """Create a temporary project directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config(temp_project):
    """Create a test configuration."""
    return TimelineConfig(
        project_name="test-project",
        project_root=temp_project,
    )


@pytest.fixture
def paths(temp_project):
    """Timeline layout under the temporary project."""
    return build_timeline_paths(temp_project)


@pytest.fixture
def engine(config):
    """Create a test engine."""
    return TimelineEngine(config)


@pytest.fixture
def summaries():
    """A pair of file summaries as produced by the diff engine."""
    return [
        DiffFileSummary(file="src/a.py", additions=3, deletions=1, status=DiffStatus.MODIFIED),
        DiffFileSummary(file="src/b.py", additions=5, deletions=0, status=DiffStatus.ADDED),
    ]
