import asyncio
import json
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
from workspace_mcp.utils.path_utils import default_working_directory, list_roots

WorkspaceToolSubCommands = [
    "open_folder",
    "close_folder",
    "navigate",
    "state",
    "tree",
    "create_project",
    "home_directory",
    "list_roots",
]


class WorkspaceTool(Tool):
    """
    Tool for the workspace as a whole: which folder is open, where the user
    has navigated, and the active terminal following along.
    """

    def __init__(self, workspace: WorkspaceSynchronizer) -> None:
        self._workspace = workspace

    @override
    def get_name(self) -> str:
        return "workspace"

    @override
    def get_description(self) -> str:
        return """Open folders and navigate the workspace.
* `open_folder` loads a directory as the workspace root and moves the active terminal there.
* `navigate` handles a click on a node (`target` = id or path): a file selects its parent folder, a folder toggles open/closed. The active terminal follows with `cd`, unless it is already there.
* `close_folder` returns to an empty in-memory workspace.
* `state` reports root, current path, expanded folders and the active session; `tree` returns the whole tree.
* `home_directory` and `list_roots` give starting points for picking a folder (drive letters on Windows, `/` elsewhere).
"""

    @override
    def get_parameters(self) -> list[ToolParameter]:
        return [
            ToolParameter(
                name="subcommand",
                type="string",
                description=f"The command to run. Allowed options are: {', '.join(WorkspaceToolSubCommands)}.",
                required=True,
                enum=WorkspaceToolSubCommands,
            ),
            ToolParameter(
                name="path",
                type="string",
                description="Folder for `open_folder`, parent folder for `create_project`.",
                required=False,
            ),
            ToolParameter(name="target", type="string", description="Node id or path for `navigate`.", required=False),
            ToolParameter(name="name", type="string", description="Project name for `create_project`.", required=False),
        ]

    @override
    async def execute(self, arguments: ToolCallArguments) -> ToolExecResult:
        subcommand = arguments.get("subcommand")
        if not isinstance(subcommand, str):
            return ToolExecResult(error="Subcommand must be a string.", error_code=-1)

        try:
            match subcommand:
                case "open_folder":
                    return await self._open_folder_handler(arguments)
                case "close_folder":
                    self._workspace.close_folder()
                    return ToolExecResult(output="Workspace closed.", data=self._workspace.state())
                case "navigate":
                    target = self.optional_str(arguments, "target") or self.require_str(arguments, "path")
                    return operation_to_exec_result(self._workspace.navigate(target))
                case "state":
                    state = self._workspace.state()
                    return ToolExecResult(output=json.dumps(state, indent=2), data=state)
                case "tree":
                    tree = self._workspace.snapshot()
                    return ToolExecResult(output=f"{len(tree)} top-level entries", data=tree)
                case "create_project":
                    result = await self._workspace.create_project(
                        self.optional_str(arguments, "path") or "", self.require_str(arguments, "name")
                    )
                    return operation_to_exec_result(result)
                case "home_directory":
                    home = default_working_directory()
                    return ToolExecResult(output=home, data={"path": home})
                case "list_roots":
                    roots = await asyncio.to_thread(list_roots)
                    return ToolExecResult(output=", ".join(r["path"] for r in roots), data=roots)
                case _:
                    return ToolExecResult(error=f"Unknown subcommand: {subcommand}", error_code=-1)
        except ToolError as e:
            return ToolExecResult(error=e.message, error_code=-1)

    async def _open_folder_handler(self, args: ToolCallArguments) -> ToolExecResult:
        path = self.require_str(args, "path")
        opened = await self._workspace.open_folder(path)
        if opened is None:
            return ToolExecResult(error=f"'{path}' is not a directory.", error_code=1, data=None)
        return ToolExecResult(output=opened.path, data=opened.model_dump())
