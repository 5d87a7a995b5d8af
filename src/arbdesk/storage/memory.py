"""
In-memory persistence.

Keeps orders, credit balances and user statistics in process memory.
Orders are copied on the way in and out so that callers never share
mutable state with the repository.
"""

from dataclasses import replace
from decimal import Decimal

from arbdesk.core.errors import OrderNotFoundError
from arbdesk.core.types import FillInfo, Order, OrderStatus, UserStats
from arbdesk.utils.math import ZERO
from arbdesk.utils.time import Clock, get_timestamp_us


class InMemoryRepository:
    """Order, balance and statistics storage backed by dicts."""

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or get_timestamp_us
        self._orders: dict[str, Order] = {}
        self._sequence: dict[str, int] = {}
        self._balances: dict[str, Decimal] = {}
        self._stats: dict[str, UserStats] = {}

    # =========================================================================
    # Orders
    # =========================================================================

    async def save_order(self, order: Order) -> None:
        if order.id not in self._sequence:
            self._sequence[order.id] = len(self._sequence)
        self._orders[order.id] = replace(order)

    async def update_order_status(
        self,
        order_id: str,
        status: OrderStatus,
        filled: FillInfo | None = None,
        reason: str = "",
    ) -> None:
        order = self._orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)

        order.status = status
        order.updated_at_us = self._clock()
        if filled is not None:
            order.filled_amount = filled.amount
            order.filled_price = filled.price
        if reason:
            order.reason = reason

    async def mark_refunded(self, order_id: str) -> None:
        order = self._orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        order.refunded = True
        order.updated_at_us = self._clock()

    async def get_order(self, order_id: str) -> Order | None:
        order = self._orders.get(order_id)
        return replace(order) if order is not None else None

    async def list_orders(
        self,
        user_id: str | None = None,
        exchange: str | None = None,
        status: OrderStatus | None = None,
    ) -> list[Order]:
        matches = [
            order
            for order in self._orders.values()
            if (user_id is None or order.user_id == user_id)
            and (exchange is None or order.exchange.lower() == exchange.lower())
            and (status is None or order.status == status)
        ]
        matches.sort(key=lambda o: (o.created_at_us, self._sequence[o.id]), reverse=True)
        return [replace(order) for order in matches]

    # =========================================================================
    # Balances
    # =========================================================================

    async def get_balance(self, user_id: str) -> Decimal:
        return self._balances.get(user_id, ZERO)

    async def set_balance(self, user_id: str, amount: Decimal) -> None:
        self._balances[user_id] = amount

    # =========================================================================
    # Statistics
    # =========================================================================

    async def get_stats(self, user_id: str) -> UserStats:
        stats = self._stats.get(user_id)
        return replace(stats) if stats is not None else UserStats(user_id=user_id)

    async def save_stats(self, stats: UserStats) -> None:
        self._stats[stats.user_id] = replace(stats)

    @property
    def order_count(self) -> int:
        return len(self._orders)
