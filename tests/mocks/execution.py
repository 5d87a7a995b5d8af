"""
Scripted execution port for testing.

Outcomes are set per exchange:
- "fill": filled at the order price
- "reject": not filled
- "hang": never answers (exercises timeouts)
- "raise": raises RuntimeError
"""

import asyncio
from decimal import Decimal
from typing import Literal

from arbdesk.core.types import ExecutionReport, Order


Outcome = Literal["fill", "reject", "hang", "raise"]


class ScriptedExecutionPort:
    """ExecutionPort with configurable behavior per exchange."""

    def __init__(self, default: Outcome = "fill", fill_price: Decimal | None = None) -> None:
        """
        Initialize scripted port.

        Args:
            default: Outcome for exchanges without an explicit script.
            fill_price: Report this price instead of the order price.
        """
        self._default: Outcome = default
        self._outcomes: dict[str, Outcome] = {}
        self._fill_price = fill_price
        self.orders: list[Order] = []
        self.received = asyncio.Event()

    def script(self, exchange: str, outcome: Outcome) -> None:
        self._outcomes[exchange] = outcome

    async def execute(self, order: Order) -> ExecutionReport:
        self.orders.append(order)
        self.received.set()

        outcome = self._outcomes.get(order.exchange, self._default)
        if outcome == "hang":
            await asyncio.Event().wait()
        if outcome == "raise":
            raise RuntimeError("exchange unreachable")
        if outcome == "reject":
            return ExecutionReport(filled=False, reason="insufficient liquidity")

        return ExecutionReport(
            filled=True,
            filled_amount=order.amount,
            filled_price=self._fill_price or order.price,
        )
