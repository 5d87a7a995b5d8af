"""Core module containing the event bus, scheduler, errors and type definitions."""

from arbdesk.core.errors import (
    EngineError,
    FeedUnavailableError,
    InsufficientBalanceError,
    InvalidInputError,
    OpportunityExpiredError,
    PartialArbitrageFailure,
)
from arbdesk.core.event_bus import Event, EventBus, EventType
from arbdesk.core.scheduler import Ticker
from arbdesk.core.types import (
    ArbitrageExecution,
    ArbitrageOpportunity,
    ExecutionReport,
    FeeBreakdown,
    Order,
    OrderSide,
    OrderStatus,
    PriceQuote,
)


__all__ = [
    "ArbitrageExecution",
    "ArbitrageOpportunity",
    "EngineError",
    "Event",
    "EventBus",
    "EventType",
    "ExecutionReport",
    "FeeBreakdown",
    "FeedUnavailableError",
    "InsufficientBalanceError",
    "InvalidInputError",
    "OpportunityExpiredError",
    "Order",
    "OrderSide",
    "OrderStatus",
    "PartialArbitrageFailure",
    "PriceQuote",
    "Ticker",
]
