from typing import Literal

from pydantic import BaseModel, Field

SessionState = Literal["spawning", "running", "exited"]


class SessionInfo(BaseModel):
    """Plain-data snapshot of one shell session, safe to hand to the UI."""

    session_id: str
    window_id: str
    cwd: str
    pid: int | None = None
    state: SessionState
    active: bool = False


class WorkspaceState(BaseModel):
    """Stores the navigation state of the workspace."""

    root_path: str | None = None
    current_path: str | None = None
    # Last path actually sent to a terminal, used to drop repeated cd pushes.
    last_pushed_path: str | None = None
    expanded: set[str] = Field(default_factory=set)
