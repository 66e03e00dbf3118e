"""In-memory workspace tree.

The tree is a chain of immutable FileNode objects hanging off a synthetic
root. Two indexes (id -> node, id -> parent id) address any node directly.
A mutation copies only the touched node and its ancestors, so every root
handed out earlier (a snapshot) keeps describing the tree as it was.
"""

import logging
import os
from datetime import datetime
from typing import Iterator

from workspace_mcp.models.file_node import FileNode
from workspace_mcp.tools.utils.constants import (
    OVERSIZED_CONTENT_PLACEHOLDER,
    VIRTUAL_ROOT_ID,
    VIRTUAL_ROOT_NAME,
)
from workspace_mcp.utils.path_utils import join_display_path, relative_parts

logger = logging.getLogger(__name__)


class TreeError(Exception):
    """A tree mutation was rejected; the tree is unchanged."""


class FileTreeModel:
    """
    Hierarchical model of the workspace, virtual or mirroring a disk directory.

    Attributes:
        root: Current snapshot of the whole tree (synthetic root node).
        workspace_root: Disk directory mirrored by the tree, or None in virtual mode.
    """

    def __init__(self) -> None:
        self._root: FileNode = self._make_root(None, ())
        self._nodes: dict[str, FileNode] = {}
        self._parents: dict[str, str | None] = {}
        self._reindex()

    @property
    def root(self) -> FileNode:
        return self._root

    @property
    def workspace_root(self) -> str | None:
        return self._root.path

    @property
    def is_disk_backed(self) -> bool:
        return self._root.path is not None

    @property
    def children(self) -> tuple[FileNode, ...]:
        return self._root.children or ()

    # --- Whole-tree replacement ---

    def load(self, root_path: str, children: list[FileNode]) -> FileNode:
        """Replace the tree with a freshly scanned disk directory."""
        self._root = self._make_root(root_path, tuple(children))
        self._reindex()
        logger.debug(f"Tree loaded from {root_path}: {len(self._nodes) - 1} nodes")
        return self._root

    def reset(self) -> FileNode:
        """Drop back to an empty virtual tree."""
        self._root = self._make_root(None, ())
        self._reindex()
        return self._root

    # --- Lookup ---

    def find(self, node_id: str) -> FileNode | None:
        return self._nodes.get(node_id)

    def parent(self, node_id: str) -> FileNode | None:
        parent_id = self._parents.get(node_id)
        return self._nodes.get(parent_id) if parent_id is not None else None

    def resolve(self, path: str | None) -> FileNode | None:
        """
        Map an absolute or root-relative path to a node by walking names.

        Mixed separator styles are accepted: ``C:\\proj\\src`` and
        ``C:/proj/src`` resolve to the same node.
        """
        if not path or path.strip() in ("/", "\\"):
            return self._root
        node = self._root
        for part in relative_parts(path, self.workspace_root):
            node = node.child_named(part) if node.is_dir else None
            if node is None:
                return None
        return node

    def node_path(self, node_id: str) -> str | None:
        """
        Path of a node as shown to the user and pushed to the terminal.

        Disk-backed nodes use their own path; virtual nodes get one built from
        their ancestors, starting at the workspace root or ``/``.
        """
        node = self._nodes.get(node_id)
        if node is None:
            return None
        if node.path:
            return node.path
        parent_id = self._parents.get(node_id)
        if parent_id is None:
            return self.workspace_root or VIRTUAL_ROOT_NAME
        return join_display_path(self.node_path(parent_id), node.name)

    def walk(self) -> Iterator[FileNode]:
        stack = [self._root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children or ()))

    # --- Copy-on-write mutations ---

    def add_child(self, parent_id: str, node: FileNode) -> FileNode:
        parent = self._require_directory(parent_id)
        if parent.child_named(node.name) is not None:
            raise TreeError(f'"{node.name}" already exists in this directory!')
        self._replace(parent.model_copy(update={
            "children": (parent.children or ()) + (node,),
            "modified": datetime.now(),
        }))
        self._index_subtree(node, parent_id)
        return node

    def remove(self, node_id: str) -> FileNode:
        node = self._require_node(node_id)
        parent = self._require_parent(node_id)
        self._replace(parent.model_copy(update={
            "children": tuple(c for c in parent.children or () if c.id != node_id),
            "modified": datetime.now(),
        }))
        self._unindex_subtree(node)
        return node

    def rename(self, node_id: str, new_name: str) -> FileNode:
        node = self._require_node(node_id)
        parent = self._require_parent(node_id)
        new_name = new_name.strip()
        if not new_name:
            raise TreeError("Name must not be empty.")
        existing = parent.child_named(new_name)
        if existing is not None and existing.id != node_id:
            raise TreeError(f'"{new_name}" already exists in this directory!')
        renamed = node.model_copy(update={"name": new_name, "modified": datetime.now()})
        self._replace(renamed)
        return renamed

    def move(self, node_id: str, target_parent_id: str) -> FileNode:
        node = self._require_node(node_id)
        self._require_parent(node_id)
        target = self._require_directory(target_parent_id)
        if self._parents.get(node_id) == target_parent_id:
            return node
        if self._is_same_or_ancestor(node_id, target_parent_id):
            raise TreeError("Cannot move a folder into itself.")
        if target.child_named(node.name) is not None:
            raise TreeError(f'"{node.name}" already exists in {target.name}.')
        self.remove(node_id)
        return self.add_child(target_parent_id, node.model_copy(update={"modified": datetime.now()}))

    def update_content(self, node_id: str, content: str, ceiling: int | None = None) -> FileNode:
        """
        Replace a file's cached content. With ``ceiling`` set, content at or
        above it is cached as the oversized placeholder; ``size`` stays true.
        """
        node = self._require_node(node_id)
        if node.is_dir:
            raise TreeError(f"'{node.name}' is a directory.")
        size = len(content.encode("utf-8"))
        if ceiling is not None and size >= ceiling:
            content = OVERSIZED_CONTENT_PLACEHOLDER
        updated = node.model_copy(update={
            "content": content,
            "size": size,
            "modified": datetime.now(),
        })
        self._replace(updated)
        return updated

    # --- Internals ---

    @staticmethod
    def _make_root(root_path: str | None, children: tuple[FileNode, ...]) -> FileNode:
        name = VIRTUAL_ROOT_NAME
        if root_path:
            name = os.path.basename(root_path.rstrip("/\\")) or root_path
        return FileNode(id=VIRTUAL_ROOT_ID, name=name, kind="directory", path=root_path, children=children)

    def _reindex(self) -> None:
        self._nodes.clear()
        self._parents.clear()
        self._index_subtree(self._root, None)

    def _index_subtree(self, node: FileNode, parent_id: str | None) -> None:
        stack = [(node, parent_id)]
        while stack:
            current, pid = stack.pop()
            self._nodes[current.id] = current
            self._parents[current.id] = pid
            stack.extend((child, current.id) for child in current.children or ())

    def _unindex_subtree(self, node: FileNode) -> None:
        stack = [node]
        while stack:
            current = stack.pop()
            self._nodes.pop(current.id, None)
            self._parents.pop(current.id, None)
            stack.extend(current.children or ())

    def _replace(self, new_node: FileNode) -> None:
        """Swap in a new version of a node and copy its ancestors up to the root."""
        self._nodes[new_node.id] = new_node
        parent_id = self._parents.get(new_node.id)
        while parent_id is not None:
            parent = self._nodes[parent_id]
            new_parent = parent.model_copy(update={
                "children": tuple(new_node if c.id == new_node.id else c for c in parent.children or ()),
            })
            self._nodes[parent_id] = new_parent
            new_node = new_parent
            parent_id = self._parents.get(parent_id)
        self._root = new_node

    def _is_same_or_ancestor(self, ancestor_id: str, node_id: str | None) -> bool:
        while node_id is not None:
            if node_id == ancestor_id:
                return True
            node_id = self._parents.get(node_id)
        return False

    def _require_node(self, node_id: str) -> FileNode:
        node = self._nodes.get(node_id)
        if node is None:
            raise TreeError(f"Node not found: {node_id}")
        return node

    def _require_parent(self, node_id: str) -> FileNode:
        parent = self.parent(node_id)
        if parent is None:
            raise TreeError("The workspace root cannot be changed.")
        return parent

    def _require_directory(self, node_id: str) -> FileNode:
        node = self._require_node(node_id)
        if not node.is_dir:
            raise TreeError(f"'{node.name}' is not a directory.")
        return node
