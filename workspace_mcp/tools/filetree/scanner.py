"""Bounded, best-effort disk scan that builds the workspace tree."""

import logging
import os

from workspace_mcp.models.file_node import FileNode
from workspace_mcp.tools.utils.constants import MAX_CONTENT_BYTES
from workspace_mcp.tools.utils.file_utils import mtime_to_datetime, read_text_capped, should_ignore_name

logger = logging.getLogger(__name__)


def load_subtree(
    path: str | os.PathLike, max_depth: int, ceiling: int = MAX_CONTENT_BYTES
) -> list[FileNode]:
    """
    Scan ``path`` into a list of FileNodes, at most ``max_depth`` levels deep.

    The direct children of ``path`` are level 1; directories on the last
    level are returned with an empty child tuple. Hidden and noise entries
    are filtered at every level.

    Errors are never raised:
    - the top directory cannot be listed: an empty list is returned
    - a single entry cannot be stat'ed: that entry is skipped
    - a nested directory cannot be listed: it is returned without children
    - a file cannot be read: it is returned with empty content

    Args:
        path: Directory to scan.
        max_depth: Number of levels to load. 0 loads nothing.
        ceiling: Files of this size or larger get the placeholder content.

    Returns:
        The children of ``path`` sorted by name.
    """
    try:
        return _scan_directory(os.fspath(path), 0, max_depth, ceiling)
    except OSError as e:
        logger.warning(f"Cannot read directory {path}: {e}")
        return []


def _scan_directory(dir_path: str, depth: int, max_depth: int, ceiling: int) -> list[FileNode]:
    if depth >= max_depth:
        return []

    with os.scandir(dir_path) as it:
        entries = sorted((e for e in it if not should_ignore_name(e.name)), key=lambda e: e.name)

    nodes: list[FileNode] = []
    for entry in entries:
        try:
            node = _scan_entry(entry, depth, max_depth, ceiling)
        except OSError as e:
            logger.debug(f"Skipping {entry.path}: {e}")
            continue
        nodes.append(node)
    return nodes


def _scan_entry(entry: os.DirEntry, depth: int, max_depth: int, ceiling: int) -> FileNode:
    stat_info = entry.stat()
    modified = mtime_to_datetime(stat_info.st_mtime)

    if entry.is_dir():
        try:
            children = _scan_directory(entry.path, depth + 1, max_depth, ceiling)
        except OSError as e:
            logger.debug(f"Cannot list {entry.path}: {e}")
            children = []
        return FileNode(
            name=entry.name,
            kind="directory",
            path=entry.path,
            size=0,
            modified=modified,
            children=tuple(children),
        )

    try:
        content = read_text_capped(entry.path, stat_info.st_size, ceiling)
    except OSError as e:
        logger.debug(f"Cannot read {entry.path}: {e}")
        content = ""
    return FileNode(
        name=entry.name,
        kind="file",
        path=entry.path,
        size=stat_info.st_size,
        modified=modified,
        content=content,
    )
