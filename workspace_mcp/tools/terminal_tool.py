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
from workspace_mcp.tools.terminal.manager import TERMINAL_NOT_FOUND, SessionManager

TerminalToolSubCommands = [
    "create",
    "write",
    "execute",
    "clear",
    "resize",
    "kill",
    "set_active",
    "get_active",
    "change_directory",
    "run_file",
    "list",
]


class TerminalTool(Tool):
    """
    Tool for driving interactive shell sessions.
    Output is not returned here: it arrives asynchronously through the
    event stream (see the `terminal_events` tool).
    """

    def __init__(self, sessions: SessionManager) -> None:
        self._sessions = sessions

    @override
    def get_name(self) -> str:
        return "terminal"

    @override
    def get_description(self) -> str:
        return """Manage interactive shell sessions running on pseudo-terminals.
* `create` starts a new shell (optionally in `cwd`) and returns its session id.
* `write` sends raw input; `execute` sends a line followed by Enter.
* `change_directory` sends `cd "<path>"` to a session. It is fire-and-forget: success means the command was written.
* `run_file` runs `data` as a command from the directory of the file at `path`, in the given or active session.
* Shell output is delivered as events; poll them with the `terminal_events` tool.
"""

    @override
    def get_parameters(self) -> list[ToolParameter]:
        return [
            ToolParameter(
                name="subcommand",
                type="string",
                description=f"The command to run. Allowed options are: {', '.join(TerminalToolSubCommands)}.",
                required=True,
                enum=TerminalToolSubCommands,
            ),
            ToolParameter(
                name="session_id",
                type="string",
                description="Target session, e.g. 'session-1'.",
                required=False,
            ),
            ToolParameter(
                name="data",
                type="string",
                description="Input for `write`/`execute`, or the command for `run_file`.",
                required=False,
            ),
            ToolParameter(
                name="cwd",
                type="string",
                description="Initial working directory for `create`.",
                required=False,
            ),
            ToolParameter(
                name="path",
                type="string",
                description="Directory for `change_directory`, or the file for `run_file`.",
                required=False,
            ),
            ToolParameter(name="cols", type="integer", description="Columns for `resize`.", required=False),
            ToolParameter(name="rows", type="integer", description="Rows for `resize`.", required=False),
        ]

    @override
    async def execute(self, arguments: ToolCallArguments) -> ToolExecResult:
        subcommand = arguments.get("subcommand")
        if not isinstance(subcommand, str):
            return ToolExecResult(error="Subcommand must be a string.", error_code=-1)

        try:
            match subcommand:
                case "create":
                    return await self._create_handler(arguments)
                case "write":
                    return self._input_handler(arguments, raw=True)
                case "execute":
                    return self._input_handler(arguments, raw=False)
                case "clear":
                    session_id = self.require_str(arguments, "session_id")
                    return self._flag_result(self._sessions.clear(session_id), session_id)
                case "resize":
                    return self._resize_handler(arguments)
                case "kill":
                    session_id = self.require_str(arguments, "session_id")
                    killed = await self._sessions.kill(session_id)
                    return ToolExecResult(
                        output=f"Killed {session_id}" if killed else None,
                        error=None if killed else TERMINAL_NOT_FOUND,
                        error_code=0 if killed else 1,
                        data={"session_id": session_id, "success": killed},
                    )
                case "set_active":
                    session_id = self.require_str(arguments, "session_id")
                    return self._flag_result(self._sessions.set_active(session_id), session_id)
                case "get_active":
                    active = self._sessions.get_active()
                    return ToolExecResult(output=active or "", data={"session_id": active})
                case "change_directory":
                    result = self._sessions.change_working_directory(
                        self.require_str(arguments, "session_id"), self.require_str(arguments, "path")
                    )
                    return operation_to_exec_result(result)
                case "run_file":
                    result = self._sessions.run_file(
                        self.require_str(arguments, "path"),
                        self.require_str(arguments, "data"),
                        self.optional_str(arguments, "session_id"),
                    )
                    return operation_to_exec_result(result)
                case "list":
                    sessions = [info.model_dump(mode="json") for info in self._sessions.list_sessions()]
                    return ToolExecResult(output=json.dumps(sessions, indent=2), data=sessions)
                case _:
                    return ToolExecResult(error=f"Unknown subcommand: {subcommand}", error_code=-1)
        except ToolError as e:
            return ToolExecResult(error=e.message, error_code=-1)

    async def _create_handler(self, args: ToolCallArguments) -> ToolExecResult:
        session_id = await self._sessions.create(self.optional_str(args, "cwd"))
        if session_id is None:
            return ToolExecResult(error="Failed to start a terminal session.", error_code=1)
        return ToolExecResult(output=session_id, data={"session_id": session_id})

    def _input_handler(self, args: ToolCallArguments, raw: bool) -> ToolExecResult:
        session_id = self.require_str(args, "session_id")
        data = args.get("data")
        if not isinstance(data, str):
            raise ToolError("The 'data' parameter is required.")
        written = self._sessions.write(session_id, data) if raw else self._sessions.execute_line(session_id, data)
        return self._flag_result(written, session_id)

    def _resize_handler(self, args: ToolCallArguments) -> ToolExecResult:
        session_id = self.require_str(args, "session_id")
        cols = self.require_int(args, "cols")
        rows = self.require_int(args, "rows")
        if cols <= 0 or rows <= 0:
            raise ToolError("Terminal size must be positive.")
        return self._flag_result(self._sessions.resize(session_id, cols, rows), session_id)

    @staticmethod
    def _flag_result(ok: bool, session_id: str) -> ToolExecResult:
        if ok:
            return ToolExecResult(output="ok", data={"session_id": session_id, "success": True})
        return ToolExecResult(
            error=TERMINAL_NOT_FOUND, error_code=1, data={"session_id": session_id, "success": False}
        )
