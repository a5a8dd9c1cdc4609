"""MCP Timeline Server - Main entry point."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

# MCP imports are optional - only needed when running the server
try:
    from mcp.server import Server  # pragma: no cover
    from mcp.server.stdio import stdio_server  # pragma: no cover
    from mcp.types import Tool, TextContent  # pragma: no cover
    HAS_MCP = True  # pragma: no cover
except ImportError:
    HAS_MCP = False
    Server = None  # type: ignore
    Tool = None  # type: ignore
    TextContent = None  # type: ignore

from loguru import logger

from .config import TimelineConfig, load_config
from .engine import TimelineEngine
from .logger import setup_logger
from .tools import execute_tool, make_tools


def create_server(config: TimelineConfig) -> "Server":
    """Create and configure the MCP server.

    Args:
        config: Project configuration

    Returns:
        Configured MCP Server instance

    Raises:
        ImportError: If MCP package is not installed
    """
    if not HAS_MCP:
        raise ImportError(
            "MCP package not installed. Install with: pip install mcp-timeline[mcp]"
        )

    server = Server("mcp-timeline")
    engine = TimelineEngine(config)
    tool_defs = make_tools(engine)

    # Add custom tools from Python config
    for tool_name, tool_func in config.custom_tools.items():
        doc = tool_func.__doc__ or f"Custom tool: {tool_name}"
        tool_defs[tool_name] = {
            "name": tool_name,
            "description": doc.strip().split("\n")[0],
            "inputSchema": {
                "type": "object",
                "properties": {
                    "params": {
                        "type": "object",
                        "description": "Parameters for the custom tool",
                    }
                },
            },
        }

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """Return list of available tools."""
        return [
            Tool(
                name=t["name"],
                description=t["description"],
                inputSchema=t["inputSchema"],
            )
            for t in tool_defs.values()
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        """Handle tool invocation."""

        if name in config.custom_tools:
            try:
                result = config.custom_tools[name](engine, arguments.get("params", arguments))
                if asyncio.iscoroutine(result):
                    result = await result
                return [TextContent(type="text", text=json.dumps(result, indent=2, default=str))]
            except Exception as e:
                logger.exception(f"Custom tool {name} failed")
                error_result = {
                    "success": False,
                    "error": str(e),
                    "error_type": "custom_tool_error",
                }
                return [TextContent(type="text", text=json.dumps(error_result, indent=2))]

        result = await execute_tool(engine, name, arguments)
        return [TextContent(type="text", text=json.dumps(result, indent=2, default=str))]

    return server


async def run_server(config: TimelineConfig) -> None:
    """Run the MCP server with stdio transport."""
    if not HAS_MCP:
        raise ImportError(
            "MCP package not installed. Install with: pip install mcp-timeline[mcp]"
        )

    server = create_server(config)  # pragma: no cover

    async with stdio_server() as (read_stream, write_stream):  # pragma: no cover
        await server.run(  # pragma: no cover
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="MCP Timeline Server - versioned diff history of a working session"
    )
    parser.add_argument(
        "--project-root",
        "-p",
        type=Path,
        default=Path.cwd(),
        help="Project root directory (default: current directory)",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        help="Path to config file (default: auto-detect in project root)",
    )
    parser.add_argument(
        "--log-level",
        help="Override the configured log level (DEBUG, INFO, WARNING, ERROR)",
    )

    actions = parser.add_argument_group("actions", "One-shot commands instead of serving")
    actions.add_argument(
        "--init",
        action="store_true",
        help="Initialize timeline directories in project root",
    )
    actions.add_argument(
        "--export-index",
        action="store_true",
        help="Regenerate index.json from all entries",
    )
    actions.add_argument(
        "--open",
        metavar="ENTRY",
        help="Open an entry's patch in $VISUAL / $EDITOR",
    )

    args = parser.parse_args(argv)
    project_root = args.project_root.resolve()

    try:
        config = load_config(project_root, args.config)
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logger(level=args.log_level or config.log_level, log_file=config.log_file)

    if args.init:
        engine = TimelineEngine(config)
        print(f"Initialized timeline directories in {project_root}")
        print(f"  - {engine.paths.entries_dir.relative_to(project_root)}/")
        print(f"  - {engine.paths.tmp_dir.relative_to(project_root)}/")
        return

    if args.export_index:
        engine = TimelineEngine(config)
        index = engine.export_index()
        totals = index.totals
        print(f"Wrote {engine.paths.index_file}")
        print(f"  {len(index.entries)} entries, {totals.files} files, +{totals.additions} -{totals.deletions}")
        return

    if args.open:
        engine = TimelineEngine(config)
        sys.exit(engine.open_entry(args.open))

    # Check for MCP before running in server mode
    if not HAS_MCP:
        print("Error: MCP package not installed.", file=sys.stderr)
        print("Install with: pip install mcp-timeline[mcp]", file=sys.stderr)
        sys.exit(1)

    asyncio.run(run_server(config))


if __name__ == "__main__":  # pragma: no cover
    main()
