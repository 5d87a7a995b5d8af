"""
Unit tests for EventBus.

Tests subscription, delivery order and handler isolation.
"""

from typing import Any

import pytest

from arbdesk.core.event_bus import Event, EventBus, EventType
from tests.mocks import FakeClock


class TestEventBus:
    """Tests for EventBus."""

    @pytest.mark.asyncio
    async def test_emit_reaches_subscriber(self, clock: FakeClock) -> None:
        """Test an emitted event is delivered with a timestamp."""
        bus = EventBus(clock)
        received: list[Event[Any]] = []

        async def handler(event: Event[Any]) -> None:
            received.append(event)

        bus.subscribe(EventType.ORDER_FILLED, handler)
        await bus.emit(EventType.ORDER_FILLED, {"id": "o-1"}, source="test")

        assert len(received) == 1
        assert received[0].payload == {"id": "o-1"}
        assert received[0].timestamp_us == clock()
        assert received[0].source == "test"

    @pytest.mark.asyncio
    async def test_other_types_not_delivered(self) -> None:
        """Test handlers only see their event type."""
        bus = EventBus()
        received: list[Event[Any]] = []
        bus.subscribe_sync(EventType.ORDER_FILLED, received.append)

        await bus.emit(EventType.ORDER_REJECTED, None)

        assert received == []
        assert bus.published_count(EventType.ORDER_REJECTED) == 1

    @pytest.mark.asyncio
    async def test_priority_and_sync_first(self) -> None:
        """Test sync handlers run first, then by priority."""
        bus = EventBus()
        order: list[str] = []

        async def low(event: Event[Any]) -> None:
            order.append("async-low")

        async def high(event: Event[Any]) -> None:
            order.append("async-high")

        bus.subscribe(EventType.SCAN_COMPLETE, low, priority=0)
        bus.subscribe(EventType.SCAN_COMPLETE, high, priority=10)
        bus.subscribe_sync(EventType.SCAN_COMPLETE, lambda e: order.append("sync"))

        await bus.emit(EventType.SCAN_COMPLETE, [])

        assert order == ["sync", "async-high", "async-low"]

    @pytest.mark.asyncio
    async def test_failing_handler_isolated(self) -> None:
        """Test one handler's error does not block the others."""
        bus = EventBus()
        received: list[Event[Any]] = []

        async def broken(event: Event[Any]) -> None:
            raise RuntimeError("handler bug")

        async def healthy(event: Event[Any]) -> None:
            received.append(event)

        bus.subscribe(EventType.ERROR, broken, priority=5)
        bus.subscribe(EventType.ERROR, healthy)

        await bus.emit(EventType.ERROR, "x")

        assert len(received) == 1

    @pytest.mark.asyncio
    async def test_unsubscribe(self) -> None:
        """Test removed handlers stop receiving events."""
        bus = EventBus()
        received: list[Event[Any]] = []

        async def handler(event: Event[Any]) -> None:
            received.append(event)

        bus.subscribe(EventType.SHUTDOWN, handler)
        assert bus.unsubscribe(EventType.SHUTDOWN, handler) is True
        assert bus.unsubscribe(EventType.SHUTDOWN, handler) is False

        await bus.emit(EventType.SHUTDOWN, None)

        assert received == []
        assert bus.handler_count(EventType.SHUTDOWN) == 0

    def test_clear(self) -> None:
        """Test clearing handlers."""
        bus = EventBus()
        bus.subscribe_sync(EventType.ORDER_PLACED, lambda e: None)
        bus.subscribe_sync(EventType.ORDER_FILLED, lambda e: None)

        bus.clear(EventType.ORDER_PLACED)
        assert bus.handler_count(EventType.ORDER_PLACED) == 0
        assert bus.handler_count(EventType.ORDER_FILLED) == 1

        bus.clear()
        assert bus.handler_count(EventType.ORDER_FILLED) == 0
