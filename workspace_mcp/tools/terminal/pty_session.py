"""PTY session management for individual terminal instances.

This module manages a single shell process bound to a pseudo-terminal, handling:
- Process lifecycle (spawn, terminate, reap)
- Output reading on a dedicated thread
- Ordered delivery of output chunks into the shared event stream
- Terminal sizing and raw input
"""

import asyncio
import logging
import threading
from typing import Callable

from workspace_mcp.models.events import TerminalEvent
from workspace_mcp.models.session import SessionInfo, SessionState
from workspace_mcp.tools.events import EventStream
from workspace_mcp.tools.terminal.backends import PtyBackend
from workspace_mcp.tools.terminal.platforms import ShellProfile

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 4096
READ_TIMEOUT = 0.1
BANNER_RULE = "=" * 41

BackendFactory = Callable[[ShellProfile, str, int, int, dict[str, str]], PtyBackend]


class PtySession:
    """
    Manages a single PTY process for one terminal session.

    States: ``spawning`` -> ``running`` -> ``exited``. A session never
    returns to ``running``; a new shell needs a new session id.

    Threading:
    - spawn() and terminate() block and are run in executor threads
    - a daemon reader thread pulls output from the pty
    - everything else runs on the event loop thread

    Output path: reader thread -> call_soon_threadsafe -> per-session channel
    (asyncio.Queue) -> pump task -> EventStream. Closing the channel stops
    delivery for this session immediately.

    Attributes:
        session_id: Unique session identifier
        window_id: Identity of the UI window that owns the session
        cwd: Working directory the shell was started in
        profile: Shell capabilities for this platform
        state: Current lifecycle state
        exit_code: Process exit code once exited (negative signal number if killed)
    """

    def __init__(
        self,
        session_id: str,
        cwd: str,
        profile: ShellProfile,
        window_id: str = "main",
        cols: int = 80,
        rows: int = 30,
    ):
        self.session_id = session_id
        self.cwd = cwd
        self.profile = profile
        self.window_id = window_id
        self.cols = cols
        self.rows = rows

        self.state: SessionState = "spawning"
        self.exit_code: int | None = None

        self._backend: PtyBackend | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._channel: asyncio.Queue[str | None] | None = None
        self._channel_closed = False
        self._pump_task: asyncio.Task | None = None
        self._reader: threading.Thread | None = None
        self._stopping = threading.Event()
        self._on_exit: Callable[["PtySession"], None] | None = None

        logger.debug(f"PtySession initialized: session_id={session_id}, cwd={cwd}")

    @property
    def pid(self) -> int | None:
        return self._backend.pid if self._backend else None

    @property
    def loop(self) -> asyncio.AbstractEventLoop | None:
        return self._loop

    def spawn(self, backend_factory: BackendFactory, env: dict[str, str]) -> None:
        """
        Launch the shell (blocking, runs in an executor).

        Raises:
            Exception: Whatever the backend raises when the OS refuses the spawn.
                The session then stays in ``spawning`` and is discarded.
        """
        logger.info(f"[PtySession] Spawning {self.profile.shell}: session_id={self.session_id}")
        self._backend = backend_factory(self.profile, self.cwd, self.cols, self.rows, env)
        self.state = "running"
        logger.info(f"[PtySession] Running: session_id={self.session_id}, pid={self.pid}")

    def start(
        self,
        loop: asyncio.AbstractEventLoop,
        events: EventStream,
        on_exit: Callable[["PtySession"], None],
    ) -> None:
        """Begin streaming output. Must be called on the loop thread after spawn()."""
        self._loop = loop
        self._on_exit = on_exit
        self._channel = asyncio.Queue()
        self._pump_task = loop.create_task(self._pump(events))
        self._reader = threading.Thread(
            target=self._read_loop, name=f"pty-reader-{self.session_id}", daemon=True
        )
        self._reader.start()

    def write(self, data: str) -> None:
        """
        Write raw input to the PTY.

        Raises:
            EOFError: The process has exited or was never started
            OSError: The write itself failed
        """
        if self.state != "running" or self._backend is None:
            raise EOFError(f"PTY not running: session_id={self.session_id}")
        self._backend.write(data)

    def resize(self, cols: int, rows: int) -> None:
        if self.state != "running" or self._backend is None:
            raise EOFError(f"PTY not running: session_id={self.session_id}")
        self._backend.setwinsize(rows, cols)
        self.cols, self.rows = cols, rows

    def greet(self, banner: str) -> None:
        """Cosmetic greeting: clear the screen and print a ruled banner."""
        eol = self.profile.line_terminator
        lines = [
            self.profile.clear_command,
            f'echo "{BANNER_RULE}"',
            f'echo "    {banner} - TERMINAL {self.session_id}"',
            f'echo "{BANNER_RULE}"',
            'echo ""',
        ]
        self.write("".join(line + eol for line in lines))

    def close_channel(self) -> None:
        """Stop delivering output for this session. Pending chunks are dropped."""
        self._channel_closed = True
        if self._pump_task is not None and not self._pump_task.done():
            self._pump_task.cancel()

    def terminate(self) -> None:
        """Kill the process and release the pty (blocking, runs in an executor)."""
        self._stopping.set()
        if self._backend is not None:
            self._backend.terminate()
        logger.info(f"[PtySession] Terminated: session_id={self.session_id}")

    def info(self, active: bool = False) -> SessionInfo:
        return SessionInfo(
            session_id=self.session_id,
            window_id=self.window_id,
            cwd=self.cwd,
            pid=self.pid,
            state=self.state,
            active=active,
        )

    # --- Reader thread ---

    def _read_loop(self) -> None:
        logger.debug(f"[PtySession] Read thread started: session_id={self.session_id}")
        backend = self._backend
        while not self._stopping.is_set():
            try:
                chunk = backend.read(READ_CHUNK_SIZE, READ_TIMEOUT)
            except (EOFError, OSError):
                break
            if chunk:
                self._call_in_loop(self._enqueue, chunk)

        backend.close()
        self._call_in_loop(self._finish, backend.exit_code)
        logger.debug(f"[PtySession] Read thread ended: session_id={self.session_id}")

    def _call_in_loop(self, callback, *args) -> None:
        try:
            self._loop.call_soon_threadsafe(callback, *args)
        except RuntimeError:
            # Event loop already closed (application shutdown)
            pass

    # --- Loop side ---

    def _enqueue(self, item: str | None) -> None:
        if not self._channel_closed:
            self._channel.put_nowait(item)

    def _finish(self, exit_code: int | None) -> None:
        self.state = "exited"
        self.exit_code = exit_code
        logger.info(f"[PtySession] Process exited: session_id={self.session_id}, code={exit_code}")
        # Sentinel goes behind any output still queued, so the exit is reported last.
        self._enqueue(None)

    async def _pump(self, events: EventStream) -> None:
        while True:
            chunk = await self._channel.get()
            if chunk is None:
                break
            events.publish(TerminalEvent.output(self.session_id, chunk))
        if self._on_exit is not None:
            self._on_exit(self)
