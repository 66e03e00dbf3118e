import os
from datetime import datetime

from .constants import DEFAULT_IGNORE_DIRECTORIES, OVERSIZED_CONTENT_PLACEHOLDER


def should_ignore_name(name: str) -> bool:
    """Check if a directory entry should be left out of the tree."""
    # Ignore hidden files/directories
    if name.startswith('.'):
        return True

    # Ignore standard development directories
    if name in DEFAULT_IGNORE_DIRECTORIES:
        return True

    return False


def read_text_capped(path: str | os.PathLike, size: int, ceiling: int) -> str:
    """
    Read file content for the editor cache.

    Files at or above ``ceiling`` bytes are not read at all; the placeholder
    is returned instead. Undecodable bytes are replaced, never fatal.
    """
    if size >= ceiling:
        return OVERSIZED_CONTENT_PLACEHOLDER
    with open(path, "r", encoding="utf-8", errors="replace") as fh:
        return fh.read()


def mtime_to_datetime(st_mtime: float) -> datetime:
    return datetime.fromtimestamp(st_mtime)
