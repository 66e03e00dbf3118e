from typing import Any

from pydantic import BaseModel


class OperationResult(BaseModel):
    """Structured outcome of a disk or session operation. Never raised, always returned."""

    success: bool
    path: str | None = None
    error: str | None = None
    command: str | None = None
    content: str | None = None
    tree: list[dict[str, Any]] | None = None

    @classmethod
    def ok(cls, path: str | None = None, **extra: Any) -> "OperationResult":
        return cls(success=True, path=path, **extra)

    @classmethod
    def fail(cls, error: str) -> "OperationResult":
        return cls(success=False, error=error)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class OpenFolderResult(BaseModel):
    name: str
    path: str
    tree: list[dict[str, Any]]
