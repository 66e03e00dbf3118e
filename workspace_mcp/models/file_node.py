from datetime import datetime
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

NodeKind = Literal["file", "directory"]


def new_node_id() -> str:
    return uuid4().hex[:16]


class FileNode(BaseModel):
    """
    One file or directory of the workspace tree.

    Nodes are immutable: every mutation produces a new node (and new
    ancestors), so a tree handed out earlier is never changed underneath
    its reader.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_node_id)
    name: str
    kind: NodeKind
    path: str | None = None  # absent for purely virtual nodes
    size: int = 0
    modified: datetime = Field(default_factory=datetime.now)
    content: str | None = None
    children: tuple["FileNode", ...] | None = None

    @property
    def is_dir(self) -> bool:
        return self.kind == "directory"

    def child_named(self, name: str) -> "FileNode | None":
        for child in self.children or ():
            if child.name == name:
                return child
        return None

    def to_transfer(self) -> dict[str, Any]:
        """Plain-data form sent across the message boundary."""
        return self.model_dump(mode="json", exclude_none=True)


FileNode.model_rebuild()


def tree_to_transfer(nodes: tuple[FileNode, ...] | list[FileNode]) -> list[dict[str, Any]]:
    return [node.to_transfer() for node in nodes]
