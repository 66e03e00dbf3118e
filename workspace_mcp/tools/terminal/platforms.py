"""Per-platform shell capabilities, resolved once when a session is spawned."""

import os
import sys
from dataclasses import dataclass, replace
from typing import Literal

BackendName = Literal["pexpect", "winpty"]


@dataclass(frozen=True)
class ShellProfile:
    shell: str
    args: tuple[str, ...]
    # Separator the shell expects in cd arguments
    path_separator: str
    clear_command: str
    line_terminator: str
    # Joins "cd <dir>" and a command on one line
    command_chain: str
    greeting_delay: float
    backend: BackendName

    @property
    def argv(self) -> list[str]:
        return [self.shell, *self.args]

    def native_path(self, path: str) -> str:
        if self.path_separator == "\\":
            return path.replace("/", "\\")
        return path

    def cd_command(self, path: str) -> str:
        return f'cd "{self.native_path(path)}"'


_POSIX = ShellProfile(
    shell="/bin/bash",
    args=("-l",),
    path_separator="/",
    clear_command="clear",
    line_terminator="\r",
    command_chain="&&",
    greeting_delay=0.5,
    backend="pexpect",
)

_WINDOWS = ShellProfile(
    shell="powershell.exe",
    args=("-NoLogo", "-NoExit"),
    path_separator="\\",
    clear_command="cls",
    line_terminator="\r\n",
    command_chain=";",
    greeting_delay=0.8,
    backend="winpty",
)


def resolve_profile(
    platform: str | None = None,
    shell: str | None = None,
    shell_args: list[str] | tuple[str, ...] | None = None,
) -> ShellProfile:
    """
    Pick the capability row for ``platform`` (defaults to sys.platform).

    On POSIX the user's $SHELL is preferred over /bin/bash. An explicit
    ``shell`` overrides both; ``shell_args`` replaces the default arguments
    when given, and defaults to none for an overridden shell.
    """
    platform = platform or sys.platform
    profile = _WINDOWS if platform.startswith("win") else _POSIX

    if shell:
        return replace(profile, shell=shell, args=tuple(shell_args or ()))
    if profile is _POSIX and os.environ.get("SHELL"):
        profile = replace(profile, shell=os.environ["SHELL"])
    if shell_args:
        profile = replace(profile, args=tuple(shell_args))
    return profile


def terminal_environment() -> dict[str, str]:
    """Inherited environment plus forced color capabilities."""
    env = dict(os.environ)
    env["TERM"] = "xterm-256color"
    env["COLORTERM"] = "truecolor"
    return env
