"""
Unit тесты для events.py
"""

import pytest

from workspace_mcp.models.events import TerminalEvent
from workspace_mcp.tools.events import EventStream


class TestEventStream:
    """Тесты для EventStream"""

    def test_publish_without_subscribers_is_dropped(self):
        stream = EventStream(queue_size=10)
        stream.publish(TerminalEvent.output("session-1", "lost"))

        subscription = stream.subscribe()
        assert subscription.drain(10) == []

    @pytest.mark.asyncio
    async def test_full_queue_drops_new_events(self):
        stream = EventStream(queue_size=2)
        subscription = stream.subscribe()

        for chunk in ("a", "b", "c"):
            stream.publish(TerminalEvent.output("session-1", chunk))

        assert [e.data for e in subscription.drain(10)] == ["a", "b"]
        assert subscription.dropped == 1

    @pytest.mark.asyncio
    async def test_collect_times_out_empty(self):
        subscription = EventStream().subscribe()

        assert await subscription.collect(10, timeout=0.05) == []

    @pytest.mark.asyncio
    async def test_collect_respects_max_events(self):
        stream = EventStream()
        subscription = stream.subscribe()
        for i in range(5):
            stream.publish(TerminalEvent.output("session-1", str(i)))

        first = await subscription.collect(3)
        rest = await subscription.collect(10)

        assert [e.data for e in first] == ["0", "1", "2"]
        assert [e.data for e in rest] == ["3", "4"]

    def test_every_subscriber_gets_a_copy(self):
        stream = EventStream()
        a, b = stream.subscribe(), stream.subscribe()

        stream.publish(TerminalEvent.created("session-1"))

        assert len(a.drain(10)) == 1
        assert len(b.drain(10)) == 1

    def test_closed_subscription_stops_receiving(self):
        stream = EventStream()
        subscription = stream.subscribe()
        subscription.close()

        stream.publish(TerminalEvent.killed("session-1", True))

        assert not stream.has_subscribers
        assert subscription.drain(10) == []

    def test_payload_omits_empty_fields(self):
        payload = TerminalEvent.exited("session-2", 0).to_payload()

        assert payload["type"] == "exit"
        assert payload["exit_code"] == 0
        assert "data" not in payload
        assert "success" not in payload
