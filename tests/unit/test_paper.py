"""
Unit tests for PaperExecutionPort.
"""

from decimal import Decimal

import pytest

from arbdesk.core.types import Order, OrderSide
from arbdesk.execution.paper import PaperExecutionPort


def make_order(exchange: str = "binance") -> Order:
    return Order(
        id="o-1",
        user_id="alice",
        exchange=exchange,
        symbol="BTC/USDT",
        side=OrderSide.SELL,
        amount=Decimal("0.25"),
        price=Decimal("64000"),
        total=Decimal("16000"),
        commission=Decimal("16"),
        credit_used=Decimal("160"),
    )


class TestPaperExecutionPort:
    """Tests for PaperExecutionPort."""

    @pytest.mark.asyncio
    async def test_fills_at_order_price(self) -> None:
        """Test paper fills."""
        port = PaperExecutionPort(latency_seconds=0)

        report = await port.execute(make_order())

        assert report.filled
        assert report.filled_amount == Decimal("0.25")
        assert report.filled_price == Decimal("64000")
        assert port.fills == 1

    @pytest.mark.asyncio
    async def test_halted_exchange_rejects(self) -> None:
        """Test halting and resuming a venue."""
        port = PaperExecutionPort(latency_seconds=0, halted_exchanges=["OKX"])

        report = await port.execute(make_order("okx"))
        assert not report.filled
        assert "halted" in report.reason
        assert port.rejections == 1

        port.resume("OKX")
        assert (await port.execute(make_order("okx"))).filled

        port.halt("binance")
        assert not (await port.execute(make_order("binance"))).filled
