"""
Internal event bus for engine notifications.

Scanner, store and order lifecycle publish what happened; telemetry and
any embedding application subscribe without the publishers knowing.
"""

import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Generic, TypeVar

from arbdesk.utils.time import Clock, get_timestamp_us


logger = logging.getLogger(__name__)


class EventType(Enum):
    """Engine event types."""

    # Detection events
    OPPORTUNITY_FOUND = auto()
    OPPORTUNITY_EXPIRED = auto()
    SCAN_COMPLETE = auto()

    # Order events
    ORDER_PLACED = auto()
    ORDER_FILLED = auto()
    ORDER_REJECTED = auto()
    ORDER_CANCELLED = auto()
    CREDIT_REFUNDED = auto()
    PARTIAL_ARBITRAGE = auto()

    # System events
    ERROR = auto()
    SHUTDOWN = auto()


T = TypeVar("T")


@dataclass
class Event(Generic[T]):
    """Event with typed payload."""

    type: EventType
    payload: T
    timestamp_us: int = 0
    source: str = ""


EventHandler = Callable[[Event[Any]], Awaitable[None]]
SyncEventHandler = Callable[[Event[Any]], None]


class EventBus:
    """
    Publish/subscribe bus for engine events.

    Handlers run in priority order (higher first), sync handlers before
    async ones. A failing handler is logged and never affects the
    publisher or the other handlers.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or get_timestamp_us
        self._handlers: dict[EventType, list[tuple[int, EventHandler]]] = defaultdict(list)
        self._sync_handlers: dict[EventType, list[tuple[int, SyncEventHandler]]] = defaultdict(list)
        self._published: dict[EventType, int] = defaultdict(int)

    def subscribe(
        self,
        event_type: EventType,
        handler: EventHandler,
        priority: int = 0,
    ) -> None:
        """
        Subscribe an async handler to an event type.

        Args:
            event_type: Event type to handle.
            handler: Async handler function.
            priority: Handler priority (higher = earlier execution).
        """
        self._handlers[event_type].append((priority, handler))
        self._handlers[event_type].sort(key=lambda x: x[0], reverse=True)

    def subscribe_sync(
        self,
        event_type: EventType,
        handler: SyncEventHandler,
        priority: int = 0,
    ) -> None:
        """Subscribe a sync handler to an event type."""
        self._sync_handlers[event_type].append((priority, handler))
        self._sync_handlers[event_type].sort(key=lambda x: x[0], reverse=True)

    def unsubscribe(
        self,
        event_type: EventType,
        handler: EventHandler | SyncEventHandler,
    ) -> bool:
        """
        Unsubscribe a handler.

        Returns:
            True if handler was found and removed.
        """
        for handlers in (self._handlers[event_type], self._sync_handlers[event_type]):
            for i, (_, registered) in enumerate(handlers):
                if registered is handler:
                    handlers.pop(i)
                    return True
        return False

    async def publish(self, event: Event[Any]) -> None:
        """Deliver an event to every subscriber of its type."""
        self._published[event.type] += 1

        for _, sync_handler in self._sync_handlers[event.type]:
            try:
                sync_handler(event)
            except Exception as e:
                logger.error(f"Sync handler error for {event.type.name}: {e}")

        for _, async_handler in self._handlers[event.type]:
            try:
                await async_handler(event)
            except Exception as e:
                logger.error(f"Async handler error for {event.type.name}: {e}")

    async def emit(self, event_type: EventType, payload: Any, source: str = "") -> None:
        """Build a timestamped event and publish it."""
        await self.publish(
            Event(type=event_type, payload=payload, timestamp_us=self._clock(), source=source)
        )

    def clear(self, event_type: EventType | None = None) -> None:
        """
        Clear handlers.

        Args:
            event_type: Specific type to clear, or None for all.
        """
        if event_type:
            self._handlers[event_type].clear()
            self._sync_handlers[event_type].clear()
        else:
            self._handlers.clear()
            self._sync_handlers.clear()

    def handler_count(self, event_type: EventType) -> int:
        """Get number of handlers for an event type."""
        return len(self._handlers[event_type]) + len(self._sync_handlers[event_type])

    def published_count(self, event_type: EventType) -> int:
        """Number of events of a type published so far."""
        return self._published[event_type]
