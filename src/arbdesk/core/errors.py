"""
Exception hierarchy for the arbitrage desk.

Synchronous rejections (bad input, insufficient credit, stale
opportunities) are raised to the caller before any state changes.
Execution failures are recorded on the order instead and only appear
here as the reason attached to a rejected order.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from arbdesk.core.types import Order, OrderStatus


class EngineError(Exception):
    """Base exception for all engine errors."""

    pass


class InvalidInputError(EngineError):
    """Non-positive or non-numeric amount/price."""

    pass


class InsufficientBalanceError(EngineError):
    """Credit debit refused because the balance does not cover it."""

    def __init__(self, user_id: str, required: Decimal, available: Decimal) -> None:
        super().__init__(
            f"Insufficient credit for {user_id}: required {required}, available {available}"
        )
        self.user_id = user_id
        self.required = required
        self.available = available


class OpportunityExpiredError(EngineError):
    """Opportunity is unknown, already executed, or past its expiry."""

    def __init__(self, opportunity_id: str) -> None:
        super().__init__(f"Opportunity {opportunity_id} expired or not found")
        self.opportunity_id = opportunity_id


class FeedUnavailableError(EngineError):
    """A price feed could not provide a quote."""

    def __init__(self, exchange: str, symbol: str, reason: str = "") -> None:
        message = f"No quote for {symbol} on {exchange}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.exchange = exchange
        self.symbol = symbol
        self.reason = reason


class ExecutionError(EngineError):
    """An order leg did not fill."""

    pass


class ExecutionTimeoutError(ExecutionError):
    """The execution port did not answer in time."""

    pass


class ExecutionFailedError(ExecutionError):
    """The execution port reported a failure or raised."""

    pass


class OrderNotFoundError(EngineError):
    """No order with the given id."""

    def __init__(self, order_id: str) -> None:
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class InvalidOrderStateError(EngineError):
    """Requested transition is not allowed from the order's current state."""

    def __init__(self, order_id: str, current: OrderStatus, target: OrderStatus) -> None:
        super().__init__(
            f"Order {order_id} cannot move from {current.value} to {target.value}"
        )
        self.order_id = order_id
        self.current = current
        self.target = target


class ArbitrageExecutionError(EngineError):
    """Neither leg of a two-leg arbitrage filled."""

    def __init__(
        self,
        opportunity_id: str,
        buy_leg: Order | None,
        sell_leg: Order | None,
        causes: tuple[BaseException, ...] = (),
    ) -> None:
        super().__init__(f"Arbitrage {opportunity_id} failed on both legs")
        self.opportunity_id = opportunity_id
        self.buy_leg = buy_leg
        self.sell_leg = sell_leg
        self.causes = causes


class PartialArbitrageFailure(EngineError):
    """
    One leg of a two-leg arbitrage filled and the other did not.

    The filled leg is not unwound: the user holds a single-sided
    position and must be told so explicitly.
    """

    def __init__(
        self,
        opportunity_id: str,
        filled_leg: Order,
        failed_leg: Order | None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            f"Arbitrage {opportunity_id} partially executed: "
            f"{filled_leg.side.value} leg on {filled_leg.exchange} filled, "
            f"other leg failed"
        )
        self.opportunity_id = opportunity_id
        self.filled_leg = filled_leg
        self.failed_leg = failed_leg
        self.cause = cause
