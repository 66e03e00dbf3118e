"""Policy layer between the file tree, the disk and the active terminal session.

Every UI intent that touches the workspace goes through here:
- open/close folder and plain directory reads
- navigation (clicks on nodes) and the working-directory push it triggers
- tree mutations, applied to the model directly in virtual mode or to disk
  first (followed by a reload) when a folder is open
"""

import asyncio
import base64
import binascii
import logging
import os
from typing import Any

from workspace_mcp.models.file_node import FileNode, tree_to_transfer
from workspace_mcp.models.results import OpenFolderResult, OperationResult
from workspace_mcp.models.session import WorkspaceState
from workspace_mcp.tools.filetree import disk_ops
from workspace_mcp.tools.filetree.model import FileTreeModel, TreeError
from workspace_mcp.tools.filetree.scanner import load_subtree
from workspace_mcp.tools.terminal.manager import SessionManager
from workspace_mcp.tools.utils.constants import NEW_FOLDER_BASE_NAME
from workspace_mcp.utils.config import ServiceConfig
from workspace_mcp.utils.path_utils import normalize_separators, resolve_user_path

logger = logging.getLogger(__name__)


class WorkspaceSynchronizer:
    """
    Keeps the tree, the disk and the active session's working directory in step.

    All methods run on the event loop. Disk scans and disk mutations are sent
    to worker threads, so terminal output keeps flowing while they run.
    Every operation that awaits between reading the tree and replacing it
    holds ``_lock``, so concurrent tool calls apply one after another.
    """

    def __init__(self, tree: FileTreeModel, sessions: SessionManager, config: ServiceConfig):
        self.tree = tree
        self.sessions = sessions
        self.config = config
        self.workspace = WorkspaceState()
        self._lock = asyncio.Lock()

    # --- Folder lifecycle ---

    async def open_folder(self, path: str) -> OpenFolderResult | None:
        """
        Make ``path`` the disk-backed workspace root.

        Returns:
            Name, path and transfer tree of the opened folder, or None when
            ``path`` is not a directory (nothing changes in that case).
        """
        if not path or not path.strip():
            return None
        root_path = str(resolve_user_path(path.strip()))
        if not await asyncio.to_thread(os.path.isdir, root_path):
            logger.warning(f"open_folder: not a directory: {root_path}")
            return None

        async with self._lock:
            children = await asyncio.to_thread(
                load_subtree, root_path, self.config.TREE_OPEN_DEPTH, self.config.CONTENT_SIZE_CEILING
            )
            root = self.tree.load(root_path, children)
            self.workspace.root_path = root_path
            self.workspace.current_path = root_path
            self.workspace.expanded.clear()
            self._push_cwd(root_path)

        logger.info(f"Opened folder {root_path} ({len(children)} top-level entries)")
        return OpenFolderResult(name=root.name, path=root_path, tree=tree_to_transfer(self.tree.children))

    def close_folder(self) -> FileNode:
        """Return to the empty virtual workspace. Sessions are left alone."""
        logger.info(f"Closing folder {self.workspace.root_path}")
        self.workspace = WorkspaceState(last_pushed_path=self.workspace.last_pushed_path)
        return self.tree.reset()

    async def read_directory(self, path: str, max_depth: int | None = None) -> OperationResult:
        """Scan ``path`` without touching the workspace model."""
        target = str(resolve_user_path(path))
        if not await asyncio.to_thread(os.path.isdir, target):
            return OperationResult.fail(f"Not a directory: {target}")
        depth = max_depth if max_depth is not None else self.config.TREE_READ_DEPTH
        nodes = await asyncio.to_thread(load_subtree, target, depth, self.config.CONTENT_SIZE_CEILING)
        return OperationResult.ok(target, tree=tree_to_transfer(nodes))

    # --- Navigation ---

    def navigate(self, target: str) -> OperationResult:
        """
        Handle a click on a node (given by id or path).

        A file makes its parent directory current; a directory toggles its
        expansion and becomes current. The new current path is pushed to the
        active session unless it equals the last path pushed.
        """
        node = self._lookup(target)
        if node is None:
            return OperationResult.fail(f"Node not found: {target}")

        if node.is_dir:
            if node.id in self.workspace.expanded:
                self.workspace.expanded.discard(node.id)
            else:
                self.workspace.expanded.add(node.id)
            path = self.tree.node_path(node.id)
        else:
            parent = self.tree.parent(node.id)
            path = self.tree.node_path(parent.id) if parent else self.workspace.root_path

        if not path:
            return OperationResult.fail("Cannot resolve a path for this node")
        self.workspace.current_path = path
        pushed = self._push_cwd(path)
        return OperationResult.ok(path, command=pushed.command if pushed and pushed.success else None)

    def resolve(self, path: str) -> FileNode | None:
        return self.tree.resolve(path)

    # --- Mutations ---

    async def create_file(
        self,
        name: str,
        content: str = "",
        parent: str | None = None,
        path: str | None = None,
        is_base64: bool = False,
    ) -> OperationResult:
        name = (name or "").strip()
        if not name:
            return OperationResult.fail("File name must not be empty")

        async with self._lock:
            directory = self._target_directory(path, parent)
            if self.tree.is_disk_backed:
                if not directory:
                    return OperationResult.fail("No target directory")
                result = await asyncio.to_thread(disk_ops.create_file_on_disk, directory, name, content, is_base64)
                return await self._reload_after(result)

            dir_node = self._virtual_directory(directory)
            if dir_node is None:
                return OperationResult.fail(f"Target directory not found: {directory}")
            if is_base64:
                try:
                    content = base64.b64decode(content, validate=True).decode("utf-8", errors="replace")
                except binascii.Error as e:
                    return OperationResult.fail(f"Invalid base64 content: {e}")
            node = FileNode(name=name, kind="file", content=content, size=len(content.encode("utf-8")))
            return self._apply_virtual(lambda: self.tree.add_child(dir_node.id, node))

    async def create_directory(
        self, name: str | None = None, parent: str | None = None, path: str | None = None
    ) -> OperationResult:
        """
        Create a folder in the target directory. Without a name the folder is
        called ``New Folder``, or ``New Folder 1``, ``New Folder 2``... when taken.
        """
        async with self._lock:
            directory = self._target_directory(path, parent)
            if self.tree.is_disk_backed:
                if not directory:
                    return OperationResult.fail("No target directory")
                name = (name or "").strip() or await self._unique_folder_name(directory)
                result = await asyncio.to_thread(disk_ops.create_folder_on_disk, directory, name)
                return await self._reload_after(result)

            dir_node = self._virtual_directory(directory)
            if dir_node is None:
                return OperationResult.fail(f"Target directory not found: {directory}")
            name = (name or "").strip() or self._next_folder_name({c.name for c in dir_node.children or ()})
            node = FileNode(name=name, kind="directory", children=())
            return self._apply_virtual(lambda: self.tree.add_child(dir_node.id, node))

    async def delete(self, target: str) -> OperationResult:
        async with self._lock:
            node = self._lookup(target)
            if node is None:
                return OperationResult.fail(f"Node not found: {target}")
            if self.tree.is_disk_backed and node.path:
                if node.id == self.tree.root.id:
                    return OperationResult.fail("The workspace root cannot be deleted")
                result = await asyncio.to_thread(disk_ops.delete_from_disk, node.path)
                return await self._reload_after(result)

            path = self.tree.node_path(node.id)
            self.workspace.expanded.discard(node.id)
            result = self._apply_virtual(lambda: self.tree.remove(node.id))
            return OperationResult.ok(path) if result.success else result

    async def rename(self, target: str, new_name: str) -> OperationResult:
        new_name = (new_name or "").strip()
        if not new_name:
            return OperationResult.fail("Name must not be empty")

        async with self._lock:
            node = self._lookup(target)
            if node is None:
                return OperationResult.fail(f"Node not found: {target}")
            if self.tree.is_disk_backed and node.path:
                if node.id == self.tree.root.id:
                    return OperationResult.fail("The workspace root cannot be renamed")
                new_path = os.path.join(os.path.dirname(node.path), new_name)
                result = await asyncio.to_thread(disk_ops.rename_on_disk, node.path, new_path)
                return await self._reload_after(result)

            return self._apply_virtual(lambda: self.tree.rename(node.id, new_name))

    async def move(self, target: str, destination: str) -> OperationResult:
        """
        Move a node into the directory ``destination`` (node id or path).

        In disk mode a destination outside the tree must be an absolute path
        to an existing directory.
        """
        async with self._lock:
            node = self._lookup(target)
            if node is None:
                return OperationResult.fail(f"Node not found: {target}")
            dest = self._lookup(destination)
            if dest is not None and not dest.is_dir:
                return OperationResult.fail(f"'{dest.name}' is not a directory")

            if self.tree.is_disk_backed and node.path:
                if node.id == self.tree.root.id:
                    return OperationResult.fail("The workspace root cannot be moved")
                if dest is not None and dest.path:
                    dest_path = dest.path
                elif destination and os.path.isabs(destination) and await asyncio.to_thread(
                    os.path.isdir, destination
                ):
                    dest_path = destination
                else:
                    return OperationResult.fail(f"Destination not found: {destination}")
                new_path = os.path.join(dest_path, node.name)
                result = await asyncio.to_thread(disk_ops.move_on_disk, node.path, new_path)
                return await self._reload_after(result)

            if dest is None:
                return OperationResult.fail(f"Destination not found: {destination}")
            return self._apply_virtual(lambda: self.tree.move(node.id, dest.id))

    async def save_file(self, target: str, content: str) -> OperationResult:
        """
        Persist editor content. The node is updated in place; the tree
        shape does not change, so no reload is needed.
        """
        async with self._lock:
            node = self._lookup(target)
            if node is None:
                if self.tree.is_disk_backed and os.path.isabs(target):
                    # Files below the scan depth are not in the tree but still on disk.
                    return await asyncio.to_thread(disk_ops.save_file, target, content)
                return OperationResult.fail(f"Node not found: {target}")
            if node.is_dir:
                return OperationResult.fail(f"'{node.name}' is a directory")

            ceiling = None
            if node.path:
                result = await asyncio.to_thread(disk_ops.save_file, node.path, content)
                if not result.success:
                    return result
                ceiling = self.config.CONTENT_SIZE_CEILING
            return self._apply_virtual(lambda: self.tree.update_content(node.id, content, ceiling))

    async def read_file(self, target: str) -> OperationResult:
        node = self._lookup(target)
        if node is not None and not node.path:
            if node.is_dir:
                return OperationResult.fail(f"'{node.name}' is a directory")
            return OperationResult.ok(self.tree.node_path(node.id), content=node.content or "")
        path = node.path if node is not None else target
        return await asyncio.to_thread(disk_ops.read_file, path)

    async def create_project(self, path: str, name: str) -> OperationResult:
        """Scaffold a project folder; reload when it lands inside the open workspace."""
        name = (name or "").strip()
        if not name:
            return OperationResult.fail("Project name must not be empty")
        async with self._lock:
            parent = str(resolve_user_path(path)) if path else self.workspace.current_path or self.workspace.root_path
            if not parent:
                return OperationResult.fail("No target directory")
            result = await asyncio.to_thread(disk_ops.create_project, parent, name)
            if result.success and self._inside_workspace(parent):
                return await self._reload_after(result)
            return result

    # --- Snapshots ---

    def snapshot(self) -> list[dict[str, Any]]:
        return tree_to_transfer(self.tree.children)

    def state(self) -> dict[str, Any]:
        return {
            "root_path": self.workspace.root_path,
            "current_path": self.workspace.current_path,
            "last_pushed_path": self.workspace.last_pushed_path,
            "expanded": sorted(self.workspace.expanded),
            "active_session": self.sessions.get_active(),
            "disk_backed": self.tree.is_disk_backed,
        }

    # --- Internals ---

    def _push_cwd(self, path: str) -> OperationResult | None:
        """Send a cd to the active session, dropping an exact repeat of the last push."""
        if self.workspace.last_pushed_path is not None and normalize_separators(
            self.workspace.last_pushed_path
        ) == normalize_separators(path):
            logger.debug(f"Skipping redundant cd to {path}")
            return None
        session_id = self.sessions.get_active()
        if session_id is None:
            return None
        result = self.sessions.change_working_directory(session_id, path)
        if result.success:
            self.workspace.last_pushed_path = path
        else:
            logger.warning(f"cd push to {session_id} failed: {result.error}")
        return result

    def _target_directory(self, path: str | None, parent: str | None) -> str | None:
        """
        Directory a creation lands in: explicit path, else the explicit parent
        node's path, else the current path, else the workspace root.
        """
        if path and path.strip():
            return path.strip()
        if parent:
            node = self._lookup(parent)
            if node is not None:
                if not node.is_dir:
                    node = self.tree.parent(node.id) or self.tree.root
                return self.tree.node_path(node.id)
        return self.workspace.current_path or self.workspace.root_path

    def _virtual_directory(self, directory: str | None) -> FileNode | None:
        node = self.tree.resolve(directory) if directory else self.tree.root
        return node if node is not None and node.is_dir else None

    def _lookup(self, target: str | None) -> FileNode | None:
        if not target:
            return None
        return self.tree.find(target) or self.tree.resolve(target)

    def _apply_virtual(self, mutation) -> OperationResult:
        try:
            node = mutation()
        except TreeError as e:
            return OperationResult.fail(str(e))
        return OperationResult.ok(self.tree.node_path(node.id))

    async def _reload_after(self, result: OperationResult) -> OperationResult:
        if not result.success:
            return result
        await self._reload()
        return result

    async def _reload(self) -> None:
        """Rescan the workspace root, carrying expansion state over by path."""
        root_path = self.tree.workspace_root
        if root_path is None:
            return
        expanded_paths = [self.tree.node_path(node_id) for node_id in self.workspace.expanded]
        children = await asyncio.to_thread(
            load_subtree, root_path, self.config.TREE_OPEN_DEPTH, self.config.CONTENT_SIZE_CEILING
        )
        self.tree.load(root_path, children)
        self.workspace.expanded = {
            node.id for node in (self.tree.resolve(p) for p in expanded_paths if p) if node is not None
        }

    async def _unique_folder_name(self, directory: str) -> str:
        names: set[str] = set()
        dir_node = self.tree.resolve(directory)
        if dir_node is not None:
            names.update(c.name for c in dir_node.children or ())
        try:
            names.update(await asyncio.to_thread(os.listdir, directory))
        except OSError as e:
            logger.debug(f"Cannot list {directory}: {e}")
        return self._next_folder_name(names)

    @staticmethod
    def _next_folder_name(existing: set[str]) -> str:
        name = NEW_FOLDER_BASE_NAME
        counter = 1
        while name in existing:
            name = f"{NEW_FOLDER_BASE_NAME} {counter}"
            counter += 1
        return name

    def _inside_workspace(self, path: str) -> bool:
        root = self.tree.workspace_root
        if not root:
            return False
        norm_root = normalize_separators(root)
        norm_path = normalize_separators(path)
        return norm_path == norm_root or norm_path.startswith(norm_root.rstrip("/") + "/")
