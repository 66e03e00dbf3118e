"""Fan-in stream of engine -> UI events.

Every session's output channel, plus the session manager's lifecycle
notifications, publish here. Subscribers get a bounded queue each; the
stream never waits for a subscriber, so a slow or absent UI loses events
instead of stalling terminal output.
"""

import asyncio
import logging

from workspace_mcp.models.events import TerminalEvent

logger = logging.getLogger(__name__)


class EventSubscription:
    """A single consumer of the event stream."""

    def __init__(self, stream: "EventStream", maxsize: int) -> None:
        self._stream = stream
        self._queue: asyncio.Queue[TerminalEvent] = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0

    def offer(self, event: TerminalEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.debug(f"Subscriber queue full, dropping {event.type} event for {event.session_id}")

    async def get(self, timeout: float | None = None) -> TerminalEvent | None:
        """Wait for the next event. Returns None when ``timeout`` expires first."""
        try:
            return await asyncio.wait_for(self._queue.get(), timeout)
        except asyncio.TimeoutError:
            return None

    def drain(self, max_events: int) -> list[TerminalEvent]:
        events = []
        while len(events) < max_events:
            try:
                events.append(self._queue.get_nowait())
            except asyncio.QueueEmpty:
                break
        return events

    async def collect(self, max_events: int, timeout: float = 0.0) -> list[TerminalEvent]:
        """Wait up to ``timeout`` for a first event, then take whatever else is queued."""
        events = self.drain(max_events)
        if events or timeout <= 0:
            return events
        first = await self.get(timeout)
        if first is None:
            return []
        return [first] + self.drain(max_events - 1)

    def close(self) -> None:
        self._stream.unsubscribe(self)

    def __aiter__(self) -> "EventSubscription":
        return self

    async def __anext__(self) -> TerminalEvent:
        return await self._queue.get()


class EventStream:
    """Publishes TerminalEvents to all current subscribers without ever blocking."""

    def __init__(self, queue_size: int = 1000) -> None:
        self._queue_size = queue_size
        self._subscribers: list[EventSubscription] = []

    @property
    def has_subscribers(self) -> bool:
        return bool(self._subscribers)

    def subscribe(self) -> EventSubscription:
        subscription = EventSubscription(self, self._queue_size)
        self._subscribers.append(subscription)
        logger.debug(f"Event subscriber attached ({len(self._subscribers)} total)")
        return subscription

    def unsubscribe(self, subscription: EventSubscription) -> None:
        if subscription in self._subscribers:
            self._subscribers.remove(subscription)
            logger.debug(f"Event subscriber detached ({len(self._subscribers)} left)")

    def publish(self, event: TerminalEvent) -> None:
        # No UI attached: the event is simply dropped.
        for subscription in list(self._subscribers):
            subscription.offer(event)
