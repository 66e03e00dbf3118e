"""
Общие фикстуры: поддельный pty-бэкенд и конфигурация без приветствия.
"""

import asyncio
import queue

import pytest

from workspace_mcp.tools.events import EventStream
from workspace_mcp.tools.filetree.model import FileTreeModel
from workspace_mcp.tools.synchronizer import WorkspaceSynchronizer
from workspace_mcp.tools.terminal.manager import SessionManager
from workspace_mcp.utils.config import ServiceConfig


class FakeBackend:
    """In-memory stand-in for a pty: records writes, replays scripted output."""

    def __init__(self, profile, cwd, cols, rows, env):
        self.profile = profile
        self.cwd = cwd
        self.cols = cols
        self.rows = rows
        self.env = env
        self.pid = 4242
        self.writes: list[str] = []
        self.terminated = False
        self.fail_writes = False
        self.fail_terminate = False
        self.resizes: list[tuple[int, int]] = []
        self._output: queue.Queue[str] = queue.Queue()
        self._alive = True
        self._exit_code: int | None = None

    # --- backend surface ---

    def read(self, size, timeout):
        try:
            return self._output.get(timeout=timeout)
        except queue.Empty:
            if not self._alive:
                raise EOFError("closed")
            return ""

    def write(self, data):
        if self.fail_writes:
            raise OSError("Input/output error")
        if not self._alive:
            raise EOFError("process has exited")
        self.writes.append(data)

    def setwinsize(self, rows, cols):
        if not self._alive:
            raise EOFError("process has exited")
        self.rows, self.cols = rows, cols
        self.resizes.append((cols, rows))

    def terminate(self):
        if self.fail_terminate:
            raise OSError("Operation not permitted")
        self.terminated = True
        if self._alive:
            self._exit_code = -15
        self._alive = False

    def close(self):
        self._alive = False

    @property
    def exit_code(self):
        return self._exit_code

    # --- test controls ---

    def emit(self, text: str) -> None:
        self._output.put(text)

    def exit(self, code: int) -> None:
        self._exit_code = code
        self._alive = False


class FakeBackendFactory:
    def __init__(self):
        self.backends: list[FakeBackend] = []
        self.fail = False

    def __call__(self, profile, cwd, cols, rows, env):
        if self.fail:
            raise OSError("No such file or directory")
        backend = FakeBackend(profile, cwd, cols, rows, env)
        self.backends.append(backend)
        return backend

    def close_all(self):
        for backend in self.backends:
            backend.close()


@pytest.fixture
def config():
    """Конфигурация без приветствия и без сессии по умолчанию"""
    return ServiceConfig(TERMINAL_GREETING=False, DEFAULT_SESSION_ON_START=False)


@pytest.fixture
def backend_factory():
    factory = FakeBackendFactory()
    yield factory
    factory.close_all()


@pytest.fixture
def events():
    return EventStream(queue_size=100)


@pytest.fixture
def subscription(events):
    sub = events.subscribe()
    yield sub
    sub.close()


@pytest.fixture
def manager(events, config, backend_factory):
    return SessionManager(events, config, backend_factory=backend_factory, platform="linux")


@pytest.fixture
def synchronizer(manager, config):
    return WorkspaceSynchronizer(FileTreeModel(), manager, config)


@pytest.fixture
def wait_until():
    """Ждет выполнения условия, отдавая управление циклу событий"""

    async def _wait(predicate, timeout: float = 2.0, interval: float = 0.01) -> bool:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while loop.time() < deadline:
            if predicate():
                return True
            await asyncio.sleep(interval)
        return predicate()

    return _wait
