"""
Интеграционный тест с настоящим shell через pexpect (только POSIX)
"""

import os
import sys

import pytest

from workspace_mcp.tools.events import EventStream
from workspace_mcp.tools.terminal.manager import SessionManager
from workspace_mcp.utils.config import ServiceConfig

pytestmark = pytest.mark.skipif(
    sys.platform == "win32" or not os.path.exists("/bin/sh"), reason="needs a POSIX /bin/sh"
)


class TestRealShell:
    """Тесты с реальным /bin/sh"""

    @pytest.fixture
    def shell_manager(self):
        config = ServiceConfig(
            TERMINAL_SHELL="/bin/sh", TERMINAL_GREETING=False, DEFAULT_SESSION_ON_START=False
        )
        events = EventStream()
        return SessionManager(events, config, platform=sys.platform), events

    @pytest.mark.asyncio
    async def test_echo_and_exit(self, shell_manager, tmp_path, wait_until):
        manager, events = shell_manager
        subscription = events.subscribe()
        received = []

        sid = await manager.create(str(tmp_path))
        assert sid is not None

        manager.execute_line(sid, "echo marker-$((40 + 2))")

        def saw_marker():
            received.extend(subscription.drain(100))
            return "marker-42" in "".join(e.data or "" for e in received if e.type == "output")

        assert await wait_until(saw_marker, timeout=5.0)

        manager.execute_line(sid, "exit 5")
        assert await wait_until(lambda: sid not in manager, timeout=5.0)
        received.extend(subscription.drain(100))

        exits = [e for e in received if e.type == "exit"]
        assert len(exits) == 1
        assert exits[0].exit_code == 5

    @pytest.mark.asyncio
    async def test_spawn_in_missing_directory_fails(self, shell_manager, tmp_path):
        manager, _ = shell_manager

        sid = await manager.create(str(tmp_path / "does-not-exist"))

        assert sid is None
        assert len(manager) == 0
