"""
Configuration and dependency management for the Workspace MCP server.
"""

import logging
from functools import lru_cache

from workspace_mcp.engine import WorkspaceEngine
from workspace_mcp.tools.file_tree_tool import FileTreeTool
from workspace_mcp.tools.terminal_tool import TerminalTool
from workspace_mcp.tools.workspace_tool import WorkspaceTool
from workspace_mcp.utils.config import ServiceConfig

logger = logging.getLogger(__name__)


@lru_cache
def get_base_config() -> ServiceConfig:
    """
    Retrieves the base server configuration from environment variables.

    This function is cached to avoid repeatedly reading and parsing environment
    variables and .env files.

    Returns:
        A cached instance of the ServiceConfig.
    """
    return ServiceConfig()


@lru_cache
def get_engine() -> WorkspaceEngine:
    """Returns the process-wide engine. Started and stopped by the server lifespan."""
    logger.info("Initializing WorkspaceEngine singleton.")
    return WorkspaceEngine(get_base_config())


# --- Tool Providers ---


@lru_cache
def get_terminal_tool_provider() -> TerminalTool:
    """Returns a cached instance of the TerminalTool."""
    logger.info("Initializing TerminalTool singleton.")
    return TerminalTool(get_engine().sessions)


@lru_cache
def get_file_tree_tool_provider() -> FileTreeTool:
    """Returns a cached instance of the FileTreeTool."""
    logger.info("Initializing FileTreeTool singleton.")
    return FileTreeTool(get_engine().workspace)


@lru_cache
def get_workspace_tool_provider() -> WorkspaceTool:
    """Returns a cached instance of the WorkspaceTool."""
    logger.info("Initializing WorkspaceTool singleton.")
    return WorkspaceTool(get_engine().workspace)
