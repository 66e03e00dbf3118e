"""Service configuration definition."""

from pydantic_settings import BaseSettings

from workspace_mcp.tools.utils.constants import (
    MAX_CONTENT_BYTES,
    OPEN_FOLDER_DEPTH,
    READ_DIRECTORY_DEPTH,
)


class ServiceConfig(BaseSettings):
    """
    Defines the configuration for the workspace MCP server, loaded from environment
    variables or a .env file.
    """

    # MCP Server transport mechanism (e.g., "stdio", "sse", "streamable-http")
    MCP_TRANSPORT: str = "stdio"
    # Host for the MCP server to bind to. Defaults to 0.0.0.0 for accessibility.
    MCP_HOST: str = "0.0.0.0"
    # Port for the MCP server to listen on.
    MCP_PORT: int = 8660

    # Initial pseudo-terminal geometry.
    TERMINAL_COLS: int = 80
    TERMINAL_ROWS: int = 30
    # Shell override. Empty means the platform default ($SHELL or powershell.exe).
    TERMINAL_SHELL: str = ""
    TERMINAL_SHELL_ARGS: list[str] = []
    # Cosmetic banner written into every new session shortly after spawn.
    TERMINAL_GREETING: bool = True
    TERMINAL_BANNER: str = "WORKSPACE"
    # Spawn one session when the engine starts.
    DEFAULT_SESSION_ON_START: bool = True

    # Depth used when a folder is opened and after every disk-backed mutation.
    TREE_OPEN_DEPTH: int = OPEN_FOLDER_DEPTH
    # Depth used by the plain read_directory request.
    TREE_READ_DEPTH: int = READ_DIRECTORY_DEPTH
    # Files at or above this size (bytes) get a placeholder instead of content.
    CONTENT_SIZE_CEILING: int = MAX_CONTENT_BYTES

    # Per-subscriber buffer of engine -> UI events before new events are dropped.
    EVENT_QUEUE_SIZE: int = 1000

    class Config:
        """Pydantic configuration settings."""

        # We do not specify env_file here.
        # Environment loading is handled explicitly in main.py via load_dotenv
        # to ensure the correct .env file is used.
        extra = "ignore"
