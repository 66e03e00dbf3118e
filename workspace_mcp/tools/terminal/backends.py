"""Thin adapters over the platform pseudo-terminal libraries.

Every backend exposes the same small surface. ``read`` returns "" when no
data arrived within the timeout and raises EOFError once the process is
gone; ``write`` and ``setwinsize`` raise OSError or EOFError against a dead
process.
"""

import logging
from typing import Protocol

import pexpect

from workspace_mcp.tools.terminal.platforms import ShellProfile

logger = logging.getLogger(__name__)


class PtyBackend(Protocol):
    pid: int | None

    def read(self, size: int, timeout: float) -> str: ...

    def write(self, data: str) -> None: ...

    def setwinsize(self, rows: int, cols: int) -> None: ...

    def terminate(self) -> None: ...

    def close(self) -> None: ...

    @property
    def exit_code(self) -> int | None: ...


class PexpectBackend:
    """POSIX pseudo-terminal through pexpect."""

    def __init__(self, profile: ShellProfile, cwd: str, cols: int, rows: int, env: dict[str, str]) -> None:
        self._proc = pexpect.spawn(
            profile.shell,
            list(profile.args),
            cwd=cwd,
            env=env,
            dimensions=(rows, cols),
            encoding="utf-8",
            codec_errors="replace",
        )
        self.pid = self._proc.pid

    def read(self, size: int, timeout: float) -> str:
        try:
            return self._proc.read_nonblocking(size, timeout)
        except pexpect.TIMEOUT:
            return ""
        except pexpect.EOF as e:
            raise EOFError(str(e)) from None
        except ValueError as e:
            # read on a closed pty
            raise EOFError(str(e)) from None

    def write(self, data: str) -> None:
        if not self._is_alive():
            raise EOFError("process has exited")
        self._proc.send(data)

    def setwinsize(self, rows: int, cols: int) -> None:
        if not self._is_alive():
            raise EOFError("process has exited")
        self._proc.setwinsize(rows, cols)

    def terminate(self) -> None:
        try:
            self._proc.terminate(force=True)
        except pexpect.ExceptionPexpect as e:
            logger.debug(f"terminate() on pid {self.pid}: {e}")
        self.close()

    def close(self) -> None:
        try:
            self._proc.close(force=True)
        except (OSError, pexpect.ExceptionPexpect) as e:
            logger.debug(f"close() on pid {self.pid}: {e}")

    @property
    def exit_code(self) -> int | None:
        if self._proc.exitstatus is not None:
            return self._proc.exitstatus
        if self._proc.signalstatus is not None:
            return -self._proc.signalstatus
        return None

    def _is_alive(self) -> bool:
        if self._proc.closed:
            return False
        try:
            return self._proc.isalive()
        except pexpect.ExceptionPexpect:
            return False


class WinptyBackend:
    """Windows console through pywinpty."""

    def __init__(self, profile: ShellProfile, cwd: str, cols: int, rows: int, env: dict[str, str]) -> None:
        from winpty import PtyProcess

        self._proc = PtyProcess.spawn(
            profile.argv,
            cwd=profile.native_path(cwd),
            env=env,
            dimensions=(rows, cols),
        )
        self.pid = self._proc.pid

    def read(self, size: int, timeout: float) -> str:
        # pywinpty reads block until data or EOF; the timeout does not apply.
        return self._proc.read(size)

    def write(self, data: str) -> None:
        if not self._proc.isalive():
            raise EOFError("process has exited")
        self._proc.write(data)

    def setwinsize(self, rows: int, cols: int) -> None:
        if not self._proc.isalive():
            raise EOFError("process has exited")
        self._proc.setwinsize(rows, cols)

    def terminate(self) -> None:
        try:
            self._proc.terminate(force=True)
        except OSError as e:
            logger.debug(f"terminate() on pid {self.pid}: {e}")
        self.close()

    def close(self) -> None:
        try:
            self._proc.close(force=True)
        except OSError as e:
            logger.debug(f"close() on pid {self.pid}: {e}")

    @property
    def exit_code(self) -> int | None:
        return self._proc.exitstatus


def spawn_backend(profile: ShellProfile, cwd: str, cols: int, rows: int, env: dict[str, str]) -> PtyBackend:
    """Start the shell described by ``profile``. Raises on spawn failure."""
    if profile.backend == "winpty":
        return WinptyBackend(profile, cwd, cols, rows, env)
    return PexpectBackend(profile, cwd, cols, rows, env)
