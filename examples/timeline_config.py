"""MCP Timeline Configuration - Python Example

Copy to your project root as timeline_config.py for full extensibility.

Convention:
- CONFIG dict for static configuration (same structure as TOML)
- Functions named hook_* become lifecycle hooks
- Functions named custom_tool_* become MCP tools
"""

# =============================================================================
# Static Configuration (same structure as TOML)
# =============================================================================

CONFIG = {
    "project": {
        "name": "my-service",
    },
    "directories": {
        "timeline": ".opencode/timeline",
    },
    "locking": {
        "timeout": 5,
    },
    "logging": {
        "level": "INFO",
        "file": ".opencode/timeline/timeline.log",
    },
    "editor": {
        "command": "code --wait",
    },
}


# =============================================================================
# Hooks - Called during engine operations
# =============================================================================

def hook_post_record(result) -> None:
    """Called after every record that wrote a new version.

    `result` is the EntryWriteResult; skipped writes never reach this hook.
    """
    stats = result.meta.stats
    if stats.deletions > 500:
        print(f"Large deletion recorded in {result.meta.id}: -{stats.deletions}")


# =============================================================================
# Custom Tools - Exposed as MCP tools
# =============================================================================

def custom_tool_largest_entries(engine, params: dict) -> dict:
    """List the entries with the most changed lines."""
    limit = int(params.get("limit", 5))
    entries = [e for e in engine.list_entries() if e["stats"]]
    entries.sort(key=lambda e: e["stats"]["additions"] + e["stats"]["deletions"], reverse=True)
    return {"success": True, "entries": entries[:limit]}
