from workspace_mcp.tools.terminal.manager import SessionManager
from workspace_mcp.tools.terminal.platforms import ShellProfile, resolve_profile
from workspace_mcp.tools.terminal.pty_session import PtySession
from workspace_mcp.tools.terminal.registry import SessionRegistry

__all__ = ["PtySession", "SessionManager", "SessionRegistry", "ShellProfile", "resolve_profile"]
