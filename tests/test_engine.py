"""
Unit тесты для engine.py
"""

import pytest

from workspace_mcp.engine import WorkspaceEngine
from workspace_mcp.utils.config import ServiceConfig


class TestWorkspaceEngine:
    """Тесты запуска и остановки движка"""

    @pytest.fixture
    def engine(self, backend_factory):
        config = ServiceConfig(TERMINAL_GREETING=False, DEFAULT_SESSION_ON_START=True)
        return WorkspaceEngine(config, backend_factory=backend_factory, platform="linux")

    @pytest.mark.asyncio
    async def test_start_spawns_default_session(self, engine):
        await engine.start()

        assert engine.started
        assert engine.sessions.get_active() == "session-1"
        events = engine.ui_events.drain(10)
        assert [e.type for e in events] == ["created"]

        await engine.shutdown()

    @pytest.mark.asyncio
    async def test_shutdown_kills_everything(self, engine, backend_factory):
        await engine.start()
        await engine.sessions.create("/tmp")

        await engine.shutdown()

        assert len(engine.sessions) == 0
        assert all(b.terminated for b in backend_factory.backends)
        assert engine.ui_events is None
        assert not engine.started

    @pytest.mark.asyncio
    async def test_start_survives_spawn_failure(self, engine, backend_factory):
        backend_factory.fail = True

        await engine.start()

        assert engine.started
        assert engine.sessions.get_active() is None
        await engine.shutdown()

    @pytest.mark.asyncio
    async def test_workspace_follows_active_session(self, engine, backend_factory, tmp_path):
        await engine.start()

        await engine.workspace.open_folder(str(tmp_path))

        assert backend_factory.backends[0].writes == [f'cd "{tmp_path}"\r']
        await engine.shutdown()
