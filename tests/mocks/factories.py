"""Builders for test data."""

from decimal import Decimal

from arbdesk.core.types import ArbitrageOpportunity
from arbdesk.utils.time import seconds_to_us
from tests.mocks.clock import START_US


def make_opportunity(
    now_us: int = START_US,
    buy_price: str = "100",
    sell_price: str = "102",
    available_volume: str = "10000",
    ttl_seconds: float = 300,
    opportunity_id: str = "opp-1",
    buy_exchange: str = "EX_A",
    sell_exchange: str = "EX_B",
    symbol: str = "BTC/USDT",
) -> ArbitrageOpportunity:
    """Build an opportunity with a consistent profit percentage."""
    buy = Decimal(buy_price)
    sell = Decimal(sell_price)
    return ArbitrageOpportunity(
        id=opportunity_id,
        symbol=symbol,
        buy_exchange=buy_exchange,
        sell_exchange=sell_exchange,
        buy_price=buy,
        sell_price=sell,
        profit_pct=(sell - buy) / buy * 100,
        available_volume=Decimal(available_volume),
        created_at_us=now_us,
        expires_at_us=now_us + seconds_to_us(ttl_seconds),
    )
