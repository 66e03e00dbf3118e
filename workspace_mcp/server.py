"""
MCP server definition for the Workspace MCP.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi.middleware.cors import CORSMiddleware
from starlette.applications import Starlette
from starlette.middleware import Middleware

from mcp.server.fastmcp import Context, FastMCP

from workspace_mcp.tools.base import Tool, ToolExecResult
from workspace_mcp.utils.config import ServiceConfig
from workspace_mcp.utils.dependencies import (
    get_base_config,
    get_engine,
    get_file_tree_tool_provider,
    get_terminal_tool_provider,
    get_workspace_tool_provider,
)


# Get a module-level logger
logger = logging.getLogger(__name__)


class CustomFastMCP(FastMCP):
    """Custom FastMCP server with CORS middleware."""

    def _add_cors_middleware(self, app: Starlette) -> Starlette:
        """A helper to add CORS middleware to a Starlette app."""
        app.user_middleware.insert(
            0,
            Middleware(
                CORSMiddleware,
                allow_origin_regex=".*",  # Allow any origin
                allow_credentials=True,
                allow_methods=["*"],
                allow_headers=["*"],
            ),
        )
        app.middleware_stack = app.build_middleware_stack()
        return app

    def sse_app(self, mount_path: str | None = None) -> Starlette:
        """Overrides the default sse_app to inject CORS middleware."""
        app = super().sse_app(mount_path)
        return self._add_cors_middleware(app)

    def streamable_http_app(self) -> Starlette:
        """Overrides the default streamable_http_app to inject CORS middleware."""
        app = super().streamable_http_app()
        return self._add_cors_middleware(app)


@asynccontextmanager
async def engine_lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Start the workspace engine with the server and kill every session on the way out."""
    engine = get_engine()
    await engine.start()
    try:
        yield
    finally:
        await engine.shutdown()


def build_server(config: ServiceConfig) -> CustomFastMCP:
    """Build and configure the FastMCP server instance.

    Args:
        config: The server's service configuration.

    Returns:
        A configured CustomFastMCP instance.
    """
    logger.info(
        "Initializing FastMCP server",
        extra={"host": config.MCP_HOST, "port": config.MCP_PORT},
    )
    return CustomFastMCP(
        "workspace-session-mcp",
        host=config.MCP_HOST,
        port=config.MCP_PORT,
        lifespan=engine_lifespan,
    )

# Get the base configuration for server initialization.
# This is also imported by main.py to run the server.
server_config = get_base_config()
mcp_app = build_server(server_config)


def _to_response(result: ToolExecResult) -> dict[str, Any]:
    if result.error:
        return {"status": "error", "error": result.error, "exit_code": result.error_code, "data": result.data}
    return {"status": "success", "result": result.output, "exit_code": result.error_code, "data": result.data}


async def _run_tool(tool: Tool, args: dict[str, Any]) -> dict[str, Any]:
    # Filter out None values so we don't pass them to the tool
    args = {k: v for k, v in args.items() if v is not None}
    result = await tool.execute(args)
    return _to_response(result)


# --- Tool Definitions ---

@mcp_app.tool()
async def terminal(
    context: Context,
    subcommand: str,
    session_id: Optional[str] = None,
    data: Optional[str] = None,
    cwd: Optional[str] = None,
    path: Optional[str] = None,
    cols: Optional[int] = None,
    rows: Optional[int] = None,
) -> dict[str, Any]:
    """
    Manage interactive shell sessions on pseudo-terminals.

    Args:
        subcommand: One of 'create', 'write', 'execute', 'clear', 'resize', 'kill',
            'set_active', 'get_active', 'change_directory', 'run_file', 'list'.
        session_id: The target session, e.g. 'session-1'.
        data: Raw input for 'write', a command line for 'execute', the command for 'run_file'.
        cwd: Initial working directory for 'create'.
        path: Directory for 'change_directory', file for 'run_file'.
        cols: Columns for 'resize'.
        rows: Rows for 'resize'.

    Returns:
        A dictionary with the status, a short result or error, and structured data.
    """
    logger.info(f"Executing terminal subcommand '{subcommand}' (session={session_id})")
    try:
        return await _run_tool(
            get_terminal_tool_provider(),
            {
                "subcommand": subcommand,
                "session_id": session_id,
                "data": data,
                "cwd": cwd,
                "path": path,
                "cols": cols,
                "rows": rows,
            },
        )
    except Exception as e:
        logger.error(f"Error executing terminal subcommand: {e}", exc_info=True)
        # It's better to return a structured error than to let the exception bubble up
        return {"status": "error", "error": str(e), "exit_code": 1}


@mcp_app.tool()
async def terminal_events(
    context: Context,
    max_events: int = 100,
    timeout: float = 0.0,
) -> dict[str, Any]:
    """
    Drain pending terminal events: output chunks, exits, creations and kills.

    Args:
        max_events: Upper bound on the number of events returned.
        timeout: Seconds to wait for a first event when none is pending.

    Returns:
        A dictionary with the list of events in the order they were produced.
    """
    try:
        subscription = get_engine().ui_events
        if subscription is None:
            return {"status": "error", "error": "Engine is not running.", "exit_code": 1}
        events = await subscription.collect(max(1, max_events), max(0.0, timeout))
        return {
            "status": "success",
            "result": [event.to_payload() for event in events],
            "dropped": subscription.dropped,
            "exit_code": 0,
        }
    except Exception as e:
        logger.error(f"Error reading terminal events: {e}", exc_info=True)
        return {"status": "error", "error": str(e), "exit_code": 1}


@mcp_app.tool(name="file_tree")
async def file_tree_tool(
    context: Context,
    subcommand: str,
    target: Optional[str] = None,
    path: Optional[str] = None,
    name: Optional[str] = None,
    parent: Optional[str] = None,
    destination: Optional[str] = None,
    content: Optional[str] = None,
    is_base64: Optional[bool] = None,
    max_depth: Optional[int] = None,
) -> dict[str, Any]:
    """
    Read and change files and folders of the workspace tree.

    Args:
        subcommand: One of 'read_directory', 'read_file', 'save_file', 'create_file',
            'create_directory', 'delete', 'rename', 'move', 'resolve'.
        target: Node id or path the command acts on.
        path: Directory to scan for 'read_directory', or explicit target directory for creation.
        name: New name for 'create_file', 'create_directory' or 'rename'.
        parent: Parent node (id or path) for creation.
        destination: Destination directory (id or path) for 'move'.
        content: File content for 'save_file' and 'create_file'.
        is_base64: Whether 'content' is base64-encoded binary ('create_file').
        max_depth: Scan depth for 'read_directory'.

    Returns:
        A dictionary containing the result of the operation.
    """
    logger.info(f"Executing file_tree subcommand '{subcommand}' (target={target or path})")
    try:
        return await _run_tool(
            get_file_tree_tool_provider(),
            {
                "subcommand": subcommand,
                "target": target,
                "path": path,
                "name": name,
                "parent": parent,
                "destination": destination,
                "content": content,
                "is_base64": is_base64,
                "max_depth": max_depth,
            },
        )
    except Exception as e:
        logger.error(f"Error executing file_tree subcommand: {e}", exc_info=True)
        return {"status": "error", "error": str(e), "exit_code": 1}


@mcp_app.tool()
async def workspace(
    context: Context,
    subcommand: str,
    path: Optional[str] = None,
    target: Optional[str] = None,
    name: Optional[str] = None,
) -> dict[str, Any]:
    """
    Open folders, navigate the tree and inspect the workspace state.

    Args:
        subcommand: One of 'open_folder', 'close_folder', 'navigate', 'state', 'tree',
            'create_project', 'home_directory', 'list_roots'.
        path: Folder for 'open_folder', parent folder for 'create_project'.
        target: Node id or path for 'navigate'.
        name: Project name for 'create_project'.

    Returns:
        A dictionary containing the result of the operation.
    """
    logger.info(f"Executing workspace subcommand '{subcommand}'")
    try:
        return await _run_tool(
            get_workspace_tool_provider(),
            {"subcommand": subcommand, "path": path, "target": target, "name": name},
        )
    except Exception as e:
        logger.error(f"Error executing workspace subcommand: {e}", exc_info=True)
        return {"status": "error", "error": str(e), "exit_code": 1}
