"""Session registry: the set of live shell sessions. Pure state, no I/O."""

from typing import Generic, Iterator, TypeVar

T = TypeVar("T")

SESSION_ID_PREFIX = "session-"


class SessionRegistry(Generic[T]):
    """
    Live sessions keyed by id, plus the id counter and the active pointer.

    An id present here means the session is presumed alive. Ids are never
    reused: the counter only moves forward.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, T] = {}
        self._counter = 0
        self._active_id: str | None = None

    def next_id(self) -> str:
        self._counter += 1
        return f"{SESSION_ID_PREFIX}{self._counter}"

    def add(self, session_id: str, session: T) -> None:
        if session_id in self._sessions:
            raise KeyError(f"Session already registered: {session_id}")
        self._sessions[session_id] = session
        if self._active_id is None:
            self._active_id = session_id

    def get(self, session_id: str) -> T | None:
        return self._sessions.get(session_id)

    def remove(self, session_id: str) -> T | None:
        """Drop a session. If it was active, the oldest remaining one becomes active."""
        session = self._sessions.pop(session_id, None)
        if session is not None and self._active_id == session_id:
            self._active_id = next(iter(self._sessions), None)
        return session

    def set_active(self, session_id: str) -> bool:
        if session_id not in self._sessions:
            return False
        self._active_id = session_id
        return True

    @property
    def active_id(self) -> str | None:
        return self._active_id

    def ids(self) -> list[str]:
        return list(self._sessions)

    def clear(self) -> list[T]:
        sessions = list(self._sessions.values())
        self._sessions.clear()
        self._active_id = None
        return sessions

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._sessions.values()))
