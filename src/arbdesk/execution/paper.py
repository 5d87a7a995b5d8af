"""
Paper trading execution port.

Fills every order at its limit price after a short simulated latency.
Used in dry-run mode, where no order ever leaves the process.
"""

import asyncio
import logging
from collections.abc import Iterable

from arbdesk.config.constants import PAPER_FILL_LATENCY_SECONDS
from arbdesk.core.types import ExecutionReport, Order


logger = logging.getLogger(__name__)


class PaperExecutionPort:
    """
    Simulated ExecutionPort.

    Exchanges listed as halted reject every order, which makes failure
    paths reproducible in demos.
    """

    def __init__(
        self,
        latency_seconds: float = PAPER_FILL_LATENCY_SECONDS,
        halted_exchanges: Iterable[str] = (),
    ) -> None:
        """
        Initialize paper port.

        Args:
            latency_seconds: Simulated round trip before the fill.
            halted_exchanges: Exchanges whose orders are rejected.
        """
        self._latency = latency_seconds
        self._halted = {exchange.lower() for exchange in halted_exchanges}
        self._fills = 0
        self._rejections = 0

    async def execute(self, order: Order) -> ExecutionReport:
        """Simulate execution of an order."""
        if self._latency > 0:
            await asyncio.sleep(self._latency)

        if order.exchange.lower() in self._halted:
            self._rejections += 1
            logger.info(f"[PAPER] {order.exchange} halted, rejecting {order.id}")
            return ExecutionReport(filled=False, reason=f"{order.exchange} trading halted")

        self._fills += 1
        logger.info(
            f"[PAPER] Filled {order.side.value} {order.amount} {order.symbol} "
            f"@ {order.price} on {order.exchange}"
        )
        return ExecutionReport(
            filled=True,
            filled_amount=order.amount,
            filled_price=order.price,
        )

    def halt(self, exchange: str) -> None:
        """Reject all further orders on an exchange."""
        self._halted.add(exchange.lower())

    def resume(self, exchange: str) -> None:
        self._halted.discard(exchange.lower())

    @property
    def fills(self) -> int:
        return self._fills

    @property
    def rejections(self) -> int:
        return self._rejections
