from typing_extensions import override

from workspace_mcp.tools.base import (
    Tool,
    ToolCallArguments,
    ToolError,
    ToolExecResult,
    ToolParameter,
    operation_to_exec_result,
)
from workspace_mcp.tools.synchronizer import WorkspaceSynchronizer

FileTreeToolSubCommands = [
    "read_directory",
    "read_file",
    "save_file",
    "create_file",
    "create_directory",
    "delete",
    "rename",
    "move",
    "resolve",
]


class FileTreeTool(Tool):
    """
    Tool for reading and mutating the workspace tree.
    With a folder open every mutation goes to disk first and the tree is
    reloaded; without one the in-memory virtual tree is edited directly.
    """

    def __init__(self, workspace: WorkspaceSynchronizer) -> None:
        self._workspace = workspace

    @override
    def get_name(self) -> str:
        return "file_tree"

    @override
    def get_description(self) -> str:
        return """Read and change files and folders of the workspace tree.
* Nodes are addressed by `target`: a node id or a path (absolute, or relative to the workspace root such as `/src/app.py`).
* `create_file`/`create_directory` land in: `path` if given, else the `parent` node, else the current navigation path, else the workspace root.
* `create_directory` without `name` picks `New Folder`, `New Folder 1`, ...
* `read_directory` scans any directory without changing the workspace.
"""

    @override
    def get_parameters(self) -> list[ToolParameter]:
        return [
            ToolParameter(
                name="subcommand",
                type="string",
                description=f"The command to run. Allowed options are: {', '.join(FileTreeToolSubCommands)}.",
                required=True,
                enum=FileTreeToolSubCommands,
            ),
            ToolParameter(name="target", type="string", description="Node id or path to act on.", required=False),
            ToolParameter(
                name="path",
                type="string",
                description="Directory for `read_directory`, or explicit target directory for creation.",
                required=False,
            ),
            ToolParameter(name="name", type="string", description="Name for create or rename.", required=False),
            ToolParameter(
                name="parent",
                type="string",
                description="Parent node (id or path) for creation.",
                required=False,
            ),
            ToolParameter(
                name="destination",
                type="string",
                description="Destination directory (id or path) for `move`.",
                required=False,
            ),
            ToolParameter(name="content", type="string", description="File content.", required=False),
            ToolParameter(
                name="is_base64",
                type="boolean",
                description="Treat `content` as base64-encoded binary for `create_file`.",
                required=False,
            ),
            ToolParameter(
                name="max_depth",
                type="integer",
                description="Scan depth for `read_directory`.",
                required=False,
            ),
        ]

    @override
    async def execute(self, arguments: ToolCallArguments) -> ToolExecResult:
        subcommand = arguments.get("subcommand")
        if not isinstance(subcommand, str):
            return ToolExecResult(error="Subcommand must be a string.", error_code=-1)

        workspace = self._workspace
        try:
            match subcommand:
                case "read_directory":
                    max_depth = arguments.get("max_depth")
                    if max_depth is not None:
                        max_depth = self.require_int(arguments, "max_depth")
                    result = await workspace.read_directory(self.require_str(arguments, "path"), max_depth)
                case "read_file":
                    result = await workspace.read_file(self._target(arguments))
                case "save_file":
                    result = await workspace.save_file(self._target(arguments), self._content(arguments))
                case "create_file":
                    result = await workspace.create_file(
                        self.require_str(arguments, "name"),
                        self._content(arguments, default=""),
                        parent=self.optional_str(arguments, "parent"),
                        path=self.optional_str(arguments, "path"),
                        is_base64=bool(arguments.get("is_base64", False)),
                    )
                case "create_directory":
                    result = await workspace.create_directory(
                        self.optional_str(arguments, "name"),
                        parent=self.optional_str(arguments, "parent"),
                        path=self.optional_str(arguments, "path"),
                    )
                case "delete":
                    result = await workspace.delete(self._target(arguments))
                case "rename":
                    result = await workspace.rename(self._target(arguments), self.require_str(arguments, "name"))
                case "move":
                    result = await workspace.move(
                        self._target(arguments), self.require_str(arguments, "destination")
                    )
                case "resolve":
                    return self._resolve_handler(arguments)
                case _:
                    return ToolExecResult(error=f"Unknown subcommand: {subcommand}", error_code=-1)
        except ToolError as e:
            return ToolExecResult(error=e.message, error_code=-1)

        return operation_to_exec_result(result)

    def _resolve_handler(self, args: ToolCallArguments) -> ToolExecResult:
        path = self.optional_str(args, "path") or self.optional_str(args, "target") or "/"
        node = self._workspace.resolve(path)
        if node is None:
            return ToolExecResult(error=f"No node at '{path}'.", error_code=1)
        payload = node.to_transfer()
        return ToolExecResult(output=node.id, data=payload)

    def _target(self, args: ToolCallArguments) -> str:
        target = self.optional_str(args, "target") or self.optional_str(args, "path")
        if not target:
            raise ToolError("The 'target' parameter is required.")
        return target

    def _content(self, args: ToolCallArguments, default: str | None = None) -> str:
        content = args.get("content", default)
        if not isinstance(content, str):
            raise ToolError("The 'content' parameter is required and must be a string.")
        return content
