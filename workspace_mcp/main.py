"""
Entry point of the workspace session server (``workspace-session-mcp``).

Loads ``.env``, sends logs to stderr and runs FastMCP on the configured
transport. The engine itself is started by the server lifespan.
"""

import logging
import os
import sys

from dotenv import load_dotenv

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level_name: str) -> None:
    # stdout belongs to the protocol under the stdio transport
    logging.basicConfig(
        level=level_name.upper(),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )
    # One line per PTY read would drown everything else at DEBUG.
    if level_name.upper() != "DEBUG":
        logging.getLogger("workspace_mcp.tools.events").setLevel(logging.INFO)


def run_server() -> None:
    load_dotenv()
    configure_logging(os.environ.get("LOG_LEVEL", "INFO"))

    # .env must be loaded before the settings object is built on import
    from .server import mcp_app, server_config

    logger = logging.getLogger(__name__)
    logger.info(
        "Workspace session server: transport=%s, shell=%s, pty=%sx%s, default session=%s",
        server_config.MCP_TRANSPORT,
        server_config.TERMINAL_SHELL or "<platform default>",
        server_config.TERMINAL_COLS,
        server_config.TERMINAL_ROWS,
        server_config.DEFAULT_SESSION_ON_START,
    )
    if server_config.MCP_TRANSPORT != "stdio":
        logger.info("Listening on %s:%s", server_config.MCP_HOST, server_config.MCP_PORT)

    try:
        mcp_app.run(transport=server_config.MCP_TRANSPORT)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


if __name__ == "__main__":
    run_server()
