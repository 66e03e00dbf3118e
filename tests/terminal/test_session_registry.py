"""
Unit тесты для registry.py
"""

import pytest

from workspace_mcp.tools.terminal.registry import SessionRegistry


class TestSessionRegistry:
    """Тесты для SessionRegistry"""

    @pytest.fixture
    def registry(self):
        return SessionRegistry()

    def test_ids_are_monotonic_and_never_reused(self, registry):
        first = registry.next_id()
        registry.add(first, object())
        registry.remove(first)
        second = registry.next_id()

        assert first == "session-1"
        assert second == "session-2"

    def test_first_added_becomes_active(self, registry):
        registry.add("session-1", "a")
        registry.add("session-2", "b")

        assert registry.active_id == "session-1"

    def test_duplicate_add_rejected(self, registry):
        registry.add("session-1", "a")
        with pytest.raises(KeyError):
            registry.add("session-1", "b")

    def test_set_active_ignores_unknown_ids(self, registry):
        registry.add("session-1", "a")

        assert registry.set_active("session-9") is False
        assert registry.active_id == "session-1"

    def test_removing_active_moves_pointer_to_oldest_remaining(self, registry):
        for sid in ("session-1", "session-2", "session-3"):
            registry.add(sid, sid)
        registry.set_active("session-2")

        registry.remove("session-2")
        assert registry.active_id == "session-1"

        registry.remove("session-1")
        assert registry.active_id == "session-3"

        registry.remove("session-3")
        assert registry.active_id is None

    def test_removing_inactive_keeps_pointer(self, registry):
        registry.add("session-1", "a")
        registry.add("session-2", "b")

        assert registry.remove("session-2") == "b"
        assert registry.active_id == "session-1"
        assert registry.remove("session-2") is None

    def test_clear_returns_everything(self, registry):
        registry.add("session-1", "a")
        registry.add("session-2", "b")

        assert registry.clear() == ["a", "b"]
        assert len(registry) == 0
        assert registry.active_id is None
        assert "session-1" not in registry
