# Copyright (c) 2025 ByteDance Ltd. and/or its affiliates
# SPDX-License-Identifier: MIT

"""Disk mutations behind the workspace tree, each guarded and reported as a result."""

import base64
import binascii
import logging
import os
import shutil
from pathlib import Path

from workspace_mcp.models.results import OperationResult
from workspace_mcp.tools.utils.constants import PROJECT_TEMPLATE_ENTRYPOINT, PROJECT_TEMPLATE_FILES

logger = logging.getLogger(__name__)


def read_file(path: str) -> OperationResult:
    """
    Read the full content of a file, regardless of the editor size ceiling.

    Args:
        path: The absolute path to read from

    Returns:
        The content in ``content``, or the OS error message
    """
    logger.debug(f"Reading file: {path}")
    try:
        content = Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.error(f"Error reading file {path}: {e}")
        return OperationResult.fail(str(e))
    logger.debug(f"Successfully read file {path}, content length: {len(content)}")
    return OperationResult.ok(path, content=content)


def save_file(path: str, content: str) -> OperationResult:
    """
    Write content to a file at the given path, creating or truncating it.

    Args:
        path: The path to write to
        content: The content to write

    Returns:
        Success, or the OS error message
    """
    logger.debug(f"Writing file: {path}, content length: {len(content)}")
    try:
        Path(path).write_text(content, encoding="utf-8")
        logger.debug(f"Successfully wrote file {path}")
        return OperationResult.ok(path)
    except OSError as e:
        logger.error(f"Error writing file {path}: {e}")
        return OperationResult.fail(str(e))


def create_file_on_disk(
    parent_path: str, name: str, content: str = "", is_base64: bool = False
) -> OperationResult:
    """
    Create a new file inside ``parent_path``.

    Args:
        parent_path: Existing directory to create the file in
        name: File name
        content: Initial text, or base64 data when ``is_base64`` is set
        is_base64: Write ``content`` decoded as binary

    Returns:
        The new file path, or an error when the file already exists
    """
    file_path = os.path.join(parent_path, name)
    if os.path.lexists(file_path):
        return OperationResult.fail("File already exists")
    try:
        data = base64.b64decode(content, validate=True) if is_base64 else content.encode("utf-8")
    except binascii.Error as e:
        return OperationResult.fail(f"Invalid base64 content: {e}")
    try:
        with open(file_path, "xb") as fh:
            fh.write(data)
    except FileExistsError:
        return OperationResult.fail("File already exists")
    except OSError as e:
        logger.error(f"Error creating file {file_path}: {e}")
        return OperationResult.fail(str(e))
    logger.info(f"Created file {file_path}")
    return OperationResult.ok(file_path)


def create_folder_on_disk(parent_path: str, name: str) -> OperationResult:
    folder_path = os.path.join(parent_path, name)
    if os.path.lexists(folder_path):
        return OperationResult.fail("Folder already exists")
    try:
        os.makedirs(folder_path)
    except OSError as e:
        logger.error(f"Error creating folder {folder_path}: {e}")
        return OperationResult.fail(str(e))
    logger.info(f"Created folder {folder_path}")
    return OperationResult.ok(folder_path)


def delete_from_disk(path: str) -> OperationResult:
    """Delete a file, or a directory with everything below it."""
    if not os.path.lexists(path):
        return OperationResult.fail("Path does not exist")
    try:
        if os.path.isdir(path) and not os.path.islink(path):
            shutil.rmtree(path)
        else:
            os.unlink(path)
    except OSError as e:
        logger.error(f"Error deleting {path}: {e}")
        return OperationResult.fail(str(e))
    logger.info(f"Deleted {path}")
    return OperationResult.ok(path)


def rename_on_disk(old_path: str, new_path: str) -> OperationResult:
    return _relocate(old_path, new_path, "rename")


def move_on_disk(old_path: str, new_path: str) -> OperationResult:
    return _relocate(old_path, new_path, "move")


def _relocate(old_path: str, new_path: str, verb: str) -> OperationResult:
    if not os.path.lexists(old_path):
        return OperationResult.fail("Source does not exist")
    if os.path.lexists(new_path):
        return OperationResult.fail("Destination already exists")
    if os.path.isdir(old_path) and _is_within(new_path, old_path):
        return OperationResult.fail("Cannot move a folder into itself")
    try:
        # shutil.move falls back to copy + delete across devices
        shutil.move(old_path, new_path)
    except OSError as e:
        logger.error(f"Error during {verb} {old_path} -> {new_path}: {e}")
        return OperationResult.fail(str(e))
    logger.info(f"{verb.capitalize()}d {old_path} -> {new_path}")
    return OperationResult.ok(new_path)


def _is_within(path: str, directory: str) -> bool:
    path = os.path.abspath(path)
    directory = os.path.abspath(directory)
    return path == directory or path.startswith(directory.rstrip(os.sep) + os.sep)


def create_project(parent_path: str, name: str) -> OperationResult:
    """
    Scaffold a small web project folder named ``name`` inside ``parent_path``.

    The folder gets README.md, index.html, styles.css, script.js and
    src/main.js. Fails without touching disk when the folder already exists.
    """
    if not os.path.isdir(parent_path):
        return OperationResult.fail(f"'{parent_path}' is not a directory.")
    created = create_folder_on_disk(parent_path, name)
    if not created.success:
        return created
    project_path = created.path
    try:
        for filename, template in PROJECT_TEMPLATE_FILES.items():
            Path(project_path, filename).write_text(template.format(name=name), encoding="utf-8")
        subdir, filename, text = PROJECT_TEMPLATE_ENTRYPOINT
        os.makedirs(os.path.join(project_path, subdir), exist_ok=True)
        Path(project_path, subdir, filename).write_text(text, encoding="utf-8")
    except OSError as e:
        logger.error(f"Error scaffolding project {project_path}: {e}")
        return OperationResult.fail(str(e))
    return OperationResult.ok(project_path)
