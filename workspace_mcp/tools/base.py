# Copyright (c) 2025 ByteDance Ltd. and/or its affiliates
# SPDX-License-Identifier: MIT

"""Base classes for tools."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any

from workspace_mcp.models.results import OperationResult

ParamSchemaValue = str | list[str] | bool | dict[str, object]
Property = dict[str, ParamSchemaValue]

ToolCallArguments = dict[str, Any]


class ToolError(Exception):
    """Base class for tool errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message: str = message


@dataclass
class ToolExecResult:
    """Intermediate result of a tool execution."""

    output: str | None = None
    error: str | None = None
    error_code: int = 0
    # Structured payload for callers that want plain data rather than text.
    data: Any = None


@dataclass
class ToolParameter:
    """Tool parameter definition."""

    name: str
    type: str | list[str]
    description: str
    enum: list[str] | None = None
    items: dict[str, object] | None = None
    required: bool = True
    extra: dict[str, object] = field(default_factory=dict)


class Tool(ABC):
    """Base class for all tools."""

    @cached_property
    def name(self) -> str:
        return self.get_name()

    @cached_property
    def description(self) -> str:
        return self.get_description()

    @cached_property
    def parameters(self) -> list[ToolParameter]:
        return self.get_parameters()

    @abstractmethod
    def get_name(self) -> str:
        """Get the tool name."""
        pass

    @abstractmethod
    def get_description(self) -> str:
        """Get the tool description."""
        pass

    @abstractmethod
    def get_parameters(self) -> list[ToolParameter]:
        """Get the tool parameters."""
        pass

    @abstractmethod
    async def execute(self, arguments: ToolCallArguments) -> ToolExecResult:
        """Execute the tool with given parameters."""
        pass

    def get_input_schema(self) -> dict[str, object]:
        """Get the tool input schema."""
        schema: dict[str, object] = {
            "type": "object",
        }

        properties: dict[str, Property] = {}
        required: list[str] = []

        for param in self.parameters:
            param_schema: Property = {
                "type": param.type,
                "description": param.description,
            }
            if param.enum:
                param_schema["enum"] = param.enum
            if param.items:
                param_schema["items"] = param.items
            param_schema.update(param.extra)

            properties[param.name] = param_schema
            if param.required:
                required.append(param.name)

        schema["properties"] = properties
        if required:
            schema["required"] = required

        return schema

    def require_str(self, arguments: ToolCallArguments, name: str) -> str:
        """Fetch a required, non-empty string argument or raise ToolError."""
        value = arguments.get(name)
        if not isinstance(value, str) or not value:
            raise ToolError(f"The '{name}' parameter is required.")
        return value

    def optional_str(self, arguments: ToolCallArguments, name: str) -> str | None:
        value = arguments.get(name)
        if value is None:
            return None
        if not isinstance(value, str):
            raise ToolError(f"The '{name}' parameter must be a string.")
        return value

    def require_int(self, arguments: ToolCallArguments, name: str) -> int:
        value = arguments.get(name)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ToolError(f"The '{name}' parameter must be an integer.")
        return value


def operation_to_exec_result(result: OperationResult) -> ToolExecResult:
    """Map a structured operation outcome onto a tool result."""
    if not result.success:
        return ToolExecResult(error=result.error, error_code=1, data=result.to_payload())
    return ToolExecResult(output=result.command or result.path or "ok", data=result.to_payload())
