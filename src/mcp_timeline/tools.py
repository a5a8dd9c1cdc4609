"""MCP tool definitions wrapping the timeline engine."""

from __future__ import annotations

import json
from typing import Any

from loguru import logger

from .engine import TimelineEngine
from .models import FileDiff
from .store import TimelineError


def make_tools(engine: TimelineEngine) -> dict[str, dict]:
    """Create MCP tool definitions for the timeline engine.

    Returns:
        Dict mapping tool names to their definitions.
    """

    tools = {}

    # ========== timeline_record ==========
    tools["timeline_record"] = {
        "name": "timeline_record",
        "description": "Record before/after snapshots of edited files as a versioned timeline entry. Identical patches are skipped; changed patches archive the previous version.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "session_id": {
                    "type": "string",
                    "description": "Session the change belongs to",
                },
                "message_id": {
                    "type": "string",
                    "description": "Entry identifier (defaults to the last message passed to timeline_begin_message)",
                },
                "files": {
                    "type": "array",
                    "description": "Snapshots of every touched file",
                    "items": {
                        "type": "object",
                        "properties": {
                            "file": {"type": "string"},
                            "before": {"type": "string"},
                            "after": {"type": "string"},
                            "additions": {"type": "integer"},
                            "deletions": {"type": "integer"},
                        },
                        "required": ["file", "before", "after"],
                    },
                },
            },
            "required": ["session_id", "files"],
        },
    }

    # ========== timeline_begin_message ==========
    tools["timeline_begin_message"] = {
        "name": "timeline_begin_message",
        "description": "Set the message identifier that subsequent records are filed under.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "message_id": {
                    "type": "string",
                    "description": "Identifier of the user message",
                },
            },
            "required": ["message_id"],
        },
    }

    # ========== timeline_export_index ==========
    tools["timeline_export_index"] = {
        "name": "timeline_export_index",
        "description": "Regenerate index.json from every entry and return the totals.",
        "inputSchema": {
            "type": "object",
            "properties": {},
        },
    }

    # ========== timeline_list ==========
    tools["timeline_list"] = {
        "name": "timeline_list",
        "description": "List timeline entries in recording order with their stats.",
        "inputSchema": {
            "type": "object",
            "properties": {},
        },
    }

    # ========== timeline_read ==========
    tools["timeline_read"] = {
        "name": "timeline_read",
        "description": "Read the live version of a timeline entry.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "entry": {
                    "type": "string",
                    "description": "Entry directory name (e.g., 000003_msg_1) or message identifier",
                },
                "include_patch": {
                    "type": "boolean",
                    "description": "Include the unified diff text (default: true)",
                },
            },
            "required": ["entry"],
        },
    }

    # ========== timeline_revisions ==========
    tools["timeline_revisions"] = {
        "name": "timeline_revisions",
        "description": "List archived revisions of a timeline entry, oldest first.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "entry": {
                    "type": "string",
                    "description": "Entry directory name or message identifier",
                },
            },
            "required": ["entry"],
        },
    }

    # ========== timeline_state ==========
    tools["timeline_state"] = {
        "name": "timeline_state",
        "description": "Show the session state: entry counter and touched files.",
        "inputSchema": {
            "type": "object",
            "properties": {},
        },
    }

    return tools


async def execute_tool(engine: TimelineEngine, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
    """Execute a timeline tool and return the result.

    Args:
        engine: TimelineEngine instance
        name: Tool name
        arguments: Tool arguments

    Returns:
        Result dict with success status and data or error
    """
    try:
        if name == "timeline_record":
            result = engine.record(
                session_id=arguments["session_id"],
                file_diffs=[FileDiff.from_dict(f) for f in arguments["files"]],
                message_id=arguments.get("message_id"),
            )
            if result is None:
                return {
                    "success": True,
                    "recorded": False,
                    "message": "No changes to record",
                }
            return {
                "success": True,
                "recorded": not result.skipped,
                "skipped": result.skipped,
                "entry_dir": result.entry_dir,
                "entry_id": result.meta.id,
                "diff_hash": result.meta.diff_hash,
                "stats": result.meta.stats.to_dict(),
                "message": (
                    f"Entry {result.meta.id} unchanged" if result.skipped
                    else f"Entry {result.meta.id} recorded"
                ),
            }

        elif name == "timeline_begin_message":
            state = engine.begin_message(arguments["message_id"])
            return {
                "success": True,
                "message_id": state.last_user_message_id,
            }

        elif name == "timeline_export_index":
            index = engine.export_index()
            return {
                "success": True,
                "index_path": str(engine.paths.index_file),
                "entries": len(index.entries),
                "totals": index.totals.to_dict(),
            }

        elif name == "timeline_list":
            entries = engine.list_entries()
            return {
                "success": True,
                "count": len(entries),
                "entries": entries,
            }

        elif name == "timeline_read":
            entry = engine.read_entry(
                arguments["entry"],
                include_patch=arguments.get("include_patch", True),
            )
            return {"success": True, **entry}

        elif name == "timeline_revisions":
            revisions = engine.revisions(arguments["entry"])
            return {
                "success": True,
                "count": len(revisions),
                "revisions": revisions,
            }

        elif name == "timeline_state":
            return {
                "success": True,
                "state": engine.state().to_dict(),
            }

        else:
            return {
                "success": False,
                "error": f"Unknown tool: {name}",
                "error_type": "unknown_tool",
            }

    except json.JSONDecodeError:
        # Corrupt timeline files are not an argument problem
        raise
    except TimelineError as e:
        return {
            "success": False,
            "error": str(e),
            "error_type": type(e).__name__,
        }
    except FileNotFoundError as e:
        return {
            "success": False,
            "error": str(e),
            "error_type": "file_not_found",
        }
    except (KeyError, ValueError) as e:
        logger.warning(f"Invalid arguments for {name}: {e}")
        return {
            "success": False,
            "error": f"Invalid arguments: {e}",
            "error_type": "invalid_arguments",
        }
