"""
Unit тесты для terminal_tool.py
"""

import pytest

from workspace_mcp.tools.terminal_tool import TerminalTool


class TestTerminalTool:
    """Тесты для TerminalTool"""

    @pytest.fixture
    def terminal_tool(self, manager):
        """Создает экземпляр TerminalTool поверх менеджера с поддельным бэкендом"""
        return TerminalTool(manager)

    def test_schema(self, terminal_tool):
        schema = terminal_tool.get_input_schema()

        assert terminal_tool.name == "terminal"
        assert terminal_tool.description.startswith("Manage interactive shell sessions")
        assert schema["required"] == ["subcommand"]
        assert "list" in schema["properties"]["subcommand"]["enum"]
        assert schema["properties"]["cols"]["type"] == "integer"

    @pytest.mark.asyncio
    async def test_create_execute_kill(self, terminal_tool, backend_factory):
        created = await terminal_tool.execute({"subcommand": "create", "cwd": "/tmp"})
        sid = created.data["session_id"]

        executed = await terminal_tool.execute({"subcommand": "execute", "session_id": sid, "data": "pwd"})
        killed = await terminal_tool.execute({"subcommand": "kill", "session_id": sid})

        assert created.output == "session-1"
        assert executed.error is None
        assert backend_factory.backends[0].writes == ["pwd\r"]
        assert killed.data == {"session_id": sid, "success": True}

    @pytest.mark.asyncio
    async def test_create_failure(self, terminal_tool, backend_factory):
        backend_factory.fail = True

        result = await terminal_tool.execute({"subcommand": "create"})

        assert result.error_code == 1
        assert result.error

    @pytest.mark.asyncio
    async def test_write_to_unknown_session(self, terminal_tool):
        result = await terminal_tool.execute({"subcommand": "write", "session_id": "session-9", "data": "x"})

        assert result.error == "Terminal not found"
        assert result.data["success"] is False

    @pytest.mark.asyncio
    async def test_missing_arguments(self, terminal_tool):
        no_session = await terminal_tool.execute({"subcommand": "clear"})
        bad_size = await terminal_tool.execute({"subcommand": "resize", "session_id": "session-1", "cols": "80"})

        assert no_session.error == "The 'session_id' parameter is required."
        assert no_session.error_code == -1
        assert bad_size.error == "The 'cols' parameter must be an integer."

    @pytest.mark.asyncio
    async def test_unknown_subcommand(self, terminal_tool):
        result = await terminal_tool.execute({"subcommand": "reboot"})

        assert result.error == "Unknown subcommand: reboot"

    @pytest.mark.asyncio
    async def test_active_and_list(self, terminal_tool):
        await terminal_tool.execute({"subcommand": "create"})
        await terminal_tool.execute({"subcommand": "create"})

        set_active = await terminal_tool.execute({"subcommand": "set_active", "session_id": "session-2"})
        active = await terminal_tool.execute({"subcommand": "get_active"})
        listed = await terminal_tool.execute({"subcommand": "list"})

        assert set_active.error is None
        assert active.output == "session-2"
        assert [s["session_id"] for s in listed.data] == ["session-1", "session-2"]
        assert [s["active"] for s in listed.data] == [False, True]

    @pytest.mark.asyncio
    async def test_change_directory_and_run_file(self, terminal_tool, backend_factory):
        await terminal_tool.execute({"subcommand": "create"})

        cd = await terminal_tool.execute(
            {"subcommand": "change_directory", "session_id": "session-1", "path": "/srv/app"}
        )
        run = await terminal_tool.execute({"subcommand": "run_file", "path": "/srv/app/main.py", "data": "python main.py"})

        assert cd.output == 'cd "/srv/app"'
        assert run.data["command"] == 'cd "/srv/app" && python main.py'
        assert backend_factory.backends[0].writes == ['cd "/srv/app"\r', 'cd "/srv/app" && python main.py\r']
