"""Session manager: owns the registry and every live PtySession.

Handles:
- Spawning sessions and registering them only once the spawn succeeded
- Routing input, resize and cd requests by session id
- Kill and eviction, each producing exactly one terminal notification
- Tracking the active session
"""

import asyncio
import logging
import ntpath
import posixpath

from workspace_mcp.models.events import TerminalEvent
from workspace_mcp.models.results import OperationResult
from workspace_mcp.models.session import SessionInfo
from workspace_mcp.tools.events import EventStream
from workspace_mcp.tools.terminal.backends import spawn_backend
from workspace_mcp.tools.terminal.platforms import ShellProfile, resolve_profile, terminal_environment
from workspace_mcp.tools.terminal.pty_session import BackendFactory, PtySession
from workspace_mcp.tools.terminal.registry import SessionRegistry
from workspace_mcp.utils.config import ServiceConfig
from workspace_mcp.utils.path_utils import default_working_directory, uses_backslashes

logger = logging.getLogger(__name__)

TERMINAL_NOT_FOUND = "Terminal not found"


class SessionManager:
    """
    Multiplexes shell sessions for one engine instance.

    An id in the registry means the session is presumed alive. A session
    leaves the registry in exactly one of three ways, each reported once:
    - kill(): ``killed`` event, no ``exit`` event
    - natural process exit: ``exit`` event
    - failed write against a dead handle (eviction): ``exit`` event

    Unknown ids are silent no-ops everywhere.
    """

    def __init__(
        self,
        events: EventStream,
        config: ServiceConfig,
        backend_factory: BackendFactory = spawn_backend,
        window_id: str = "main",
        platform: str | None = None,
    ):
        self._events = events
        self._config = config
        self._backend_factory = backend_factory
        self._window_id = window_id
        self._platform = platform
        self._registry: SessionRegistry[PtySession] = SessionRegistry()

    def profile(self) -> ShellProfile:
        return resolve_profile(
            self._platform,
            shell=self._config.TERMINAL_SHELL or None,
            shell_args=self._config.TERMINAL_SHELL_ARGS or None,
        )

    # --- Lifecycle ---

    async def create(self, initial_cwd: str | None = None) -> str | None:
        """
        Spawn a new session.

        Returns:
            The new session id, or None when the spawn failed. Failure leaves
            the registry untouched and emits nothing.
        """
        loop = asyncio.get_running_loop()
        cwd = initial_cwd.strip() if initial_cwd and initial_cwd.strip() else default_working_directory()
        session_id = self._registry.next_id()
        session = PtySession(
            session_id,
            cwd,
            self.profile(),
            window_id=self._window_id,
            cols=self._config.TERMINAL_COLS,
            rows=self._config.TERMINAL_ROWS,
        )

        try:
            await loop.run_in_executor(None, session.spawn, self._backend_factory, terminal_environment())
        except Exception as e:
            logger.error(f"Failed to spawn terminal {session_id} in {cwd}: {e}")
            return None

        self._registry.add(session_id, session)
        session.start(loop, self._events, self._handle_exit)
        self._events.publish(TerminalEvent.created(session_id))
        logger.info(f"Created terminal {session_id} (pid={session.pid}, cwd={cwd})")

        if self._config.TERMINAL_GREETING:
            loop.call_later(session.profile.greeting_delay, self._greet, session)
        return session_id

    async def kill(self, session_id: str) -> bool:
        """
        Remove and terminate a session.

        Returns:
            Whether a live session was found. The ``killed`` event carries
            whether the process was terminated cleanly.
        """
        session = self._registry.remove(session_id)
        if session is None:
            logger.debug(f"kill: unknown terminal {session_id}")
            self._events.publish(TerminalEvent.killed(session_id, False))
            return False

        session.close_channel()
        success = True
        try:
            await asyncio.to_thread(session.terminate)
        except Exception as e:
            logger.error(f"Failed to kill terminal {session_id}: {e}")
            success = False

        self._events.publish(TerminalEvent.killed(session_id, success))
        logger.info(f"Killed terminal {session_id}")
        return True

    async def kill_all(self) -> None:
        sessions = self._registry.clear()
        if not sessions:
            return
        logger.info(f"Killing {len(sessions)} terminal(s)")
        for session in sessions:
            session.close_channel()
        results = await asyncio.gather(
            *(asyncio.to_thread(session.terminate) for session in sessions), return_exceptions=True
        )
        for session, result in zip(sessions, results):
            if isinstance(result, Exception):
                logger.error(f"Failed to kill terminal {session.session_id}: {result}")

    # --- Input ---

    def write(self, session_id: str, data: str) -> bool:
        session = self._registry.get(session_id)
        if session is None:
            return False
        try:
            session.write(data)
            return True
        except (OSError, EOFError) as e:
            self._evict(session, e)
            return False

    def execute_line(self, session_id: str, text: str) -> bool:
        session = self._registry.get(session_id)
        if session is None:
            return False
        return self.write(session_id, text + session.profile.line_terminator)

    def clear(self, session_id: str) -> bool:
        session = self._registry.get(session_id)
        if session is None:
            return False
        return self.execute_line(session_id, session.profile.clear_command)

    def resize(self, session_id: str, cols: int, rows: int) -> bool:
        session = self._registry.get(session_id)
        if session is None:
            return False
        try:
            session.resize(cols, rows)
            return True
        except (OSError, EOFError) as e:
            self._evict(session, e)
            return False

    def change_working_directory(self, session_id: str, path: str) -> OperationResult:
        """
        Send ``cd "<path>"`` to the session. Fire-and-forget: success means
        the line was written, not that the shell accepted it.
        """
        session = self._registry.get(session_id)
        if session is None:
            return OperationResult.fail(TERMINAL_NOT_FOUND)
        command = session.profile.cd_command(path)
        if not self.execute_line(session_id, command):
            return OperationResult.fail(f"Failed to write to terminal {session_id}")
        return OperationResult.ok(path=session.profile.native_path(path), command=command)

    def run_file(self, file_path: str, command: str, session_id: str | None = None) -> OperationResult:
        """Run ``command`` from the directory that contains ``file_path``."""
        session_id = session_id or self._registry.active_id
        session = self._registry.get(session_id) if session_id else None
        if session is None:
            return OperationResult.fail(TERMINAL_NOT_FOUND)

        directory = (ntpath if uses_backslashes(file_path) else posixpath).dirname(file_path)
        profile = session.profile
        full_command = f"{profile.cd_command(directory)} {profile.command_chain} {command}"
        if not self.execute_line(session_id, full_command):
            return OperationResult.fail(f"Failed to write to terminal {session_id}")
        return OperationResult.ok(path=file_path, command=full_command)

    # --- Active session ---

    def set_active(self, session_id: str) -> bool:
        return self._registry.set_active(session_id)

    def get_active(self) -> str | None:
        return self._registry.active_id

    # --- Introspection ---

    def get(self, session_id: str) -> PtySession | None:
        return self._registry.get(session_id)

    def list_sessions(self) -> list[SessionInfo]:
        active_id = self._registry.active_id
        return [session.info(active=session.session_id == active_id) for session in self._registry]

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._registry

    def __len__(self) -> int:
        return len(self._registry)

    # --- Internal ---

    def _greet(self, session: PtySession) -> None:
        if self._registry.get(session.session_id) is not session:
            return
        try:
            session.greet(self._config.TERMINAL_BANNER)
        except (OSError, EOFError) as e:
            self._evict(session, e)

    def _handle_exit(self, session: PtySession) -> None:
        # Called once the session's output channel has drained.
        if self._registry.get(session.session_id) is not session:
            return
        self._registry.remove(session.session_id)
        self._events.publish(TerminalEvent.exited(session.session_id, session.exit_code))
        logger.info(f"Terminal {session.session_id} exited with code {session.exit_code}")

    def _evict(self, session: PtySession, reason: Exception) -> None:
        if self._registry.get(session.session_id) is not session:
            return
        logger.warning(f"Evicting terminal {session.session_id}: {reason}")
        self._registry.remove(session.session_id)
        session.close_channel()
        self._events.publish(TerminalEvent.exited(session.session_id, session.exit_code))
        if session.loop is not None:
            task = session.loop.create_task(asyncio.to_thread(session.terminate))
            task.add_done_callback(self._log_terminate_failure(session.session_id))

    @staticmethod
    def _log_terminate_failure(session_id: str):
        def _callback(task: asyncio.Task) -> None:
            if task.cancelled():
                return
            error = task.exception()
            if error is not None:
                logger.error(f"Failed to terminate evicted terminal {session_id}: {error}")

        return _callback
