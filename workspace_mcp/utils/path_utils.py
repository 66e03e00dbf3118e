import ntpath
import os
import posixpath
import re
import string
import sys
from pathlib import Path

_REPEATED_SLASHES = re.compile(r"/+")


def normalize_separators(path_str: str) -> str:
    """
    Canonical form used for every path comparison inside the engine.

    Backslashes become forward slashes and runs of slashes collapse, so
    ``F:\\proj\\src`` and ``F:/proj//src`` compare equal. A trailing slash is
    dropped unless the path is a bare root.
    """
    normalized = _REPEATED_SLASHES.sub("/", path_str.replace("\\", "/"))
    if len(normalized) > 1 and normalized.endswith("/") and not normalized.endswith(":/"):
        normalized = normalized.rstrip("/") or "/"
    return normalized


def uses_backslashes(path_str: str | None) -> bool:
    return bool(path_str) and "\\" in path_str


def join_display_path(base: str, name: str) -> str:
    """
    Joins ``name`` onto ``base`` keeping the separator style of ``base``.

    Used for nodes that have no disk path of their own, so that the path
    shown to the user (and pushed to the terminal) looks native.
    """
    module = ntpath if uses_backslashes(base) else posixpath
    sep = "\\" if module is ntpath else "/"
    if base.endswith(sep):
        return base + name
    return module.join(base, name)


def relative_parts(path_str: str, root: str | None) -> list[str]:
    """
    Splits ``path_str`` into name segments relative to the workspace root.

    Absolute paths under ``root`` are made root-relative; anything else is
    treated as a logical path such as ``/src/app``.
    """
    target = normalize_separators(path_str)
    if root:
        norm_root = normalize_separators(root)
        if target == norm_root:
            return []
        prefix = norm_root if norm_root.endswith("/") else norm_root + "/"
        if target.startswith(prefix):
            return [p for p in target[len(prefix):].split("/") if p]
    return [p for p in target.split("/") if p]


def default_working_directory() -> str:
    """User home, falling back to the process working directory."""
    home = os.environ.get("HOME") or os.environ.get("USERPROFILE")
    if home and home.strip():
        return home
    return os.getcwd()


def resolve_user_path(path_str: str) -> Path:
    """Expands ``~`` and makes the path absolute without requiring it to exist."""
    return Path(path_str).expanduser().absolute()


def list_roots(platform: str | None = None) -> list[dict[str, str]]:
    """
    Filesystem roots to offer in a folder picker: every mounted drive
    letter on Windows, ``/`` everywhere else.
    """
    platform = platform or sys.platform
    if not platform.startswith("win"):
        return [{"name": "Root", "path": "/"}]
    roots = []
    for letter in string.ascii_uppercase:
        drive = f"{letter}:\\"
        # False for empty card readers and disconnected network drives too
        if os.path.exists(drive):
            roots.append({"name": f"Local Disk ({letter}:)", "path": drive})
    return roots
