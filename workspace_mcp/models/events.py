from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

EventType = Literal["output", "exit", "created", "killed"]


class TerminalEvent(BaseModel):
    """Unsolicited engine -> UI notification."""

    type: EventType
    session_id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data: str | None = None
    exit_code: int | None = None
    success: bool | None = None

    @classmethod
    def output(cls, session_id: str, data: str) -> "TerminalEvent":
        return cls(type="output", session_id=session_id, data=data)

    @classmethod
    def exited(cls, session_id: str, exit_code: int | None) -> "TerminalEvent":
        return cls(type="exit", session_id=session_id, exit_code=exit_code)

    @classmethod
    def created(cls, session_id: str) -> "TerminalEvent":
        return cls(type="created", session_id=session_id)

    @classmethod
    def killed(cls, session_id: str, success: bool) -> "TerminalEvent":
        return cls(type="killed", session_id=session_id, success=success)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)
