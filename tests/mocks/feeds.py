"""
Scripted price feed for testing.

Serves fixed quotes per (exchange, symbol) and raises whatever error
was scripted for a pair.
"""

from decimal import Decimal

from arbdesk.core.errors import FeedUnavailableError
from arbdesk.core.types import PriceQuote


class ScriptedPriceFeed:
    """PriceFeedPort returning preset quotes."""

    def __init__(self, now_us: int = 0) -> None:
        self._quotes: dict[tuple[str, str], tuple[Decimal, Decimal]] = {}
        self._errors: dict[tuple[str, str], Exception] = {}
        self._now_us = now_us
        self.calls: list[tuple[str, str]] = []

    def set_quote(
        self,
        exchange: str,
        symbol: str,
        price: Decimal | str | int,
        volume_24h: Decimal | str | int = Decimal("10000000"),
    ) -> None:
        """Script a quote for a pair."""
        self._errors.pop((exchange, symbol), None)
        self._quotes[(exchange, symbol)] = (Decimal(str(price)), Decimal(str(volume_24h)))

    def set_error(self, exchange: str, symbol: str, error: Exception) -> None:
        """Make a pair raise."""
        self._errors[(exchange, symbol)] = error

    async def get_quote(self, exchange: str, symbol: str) -> PriceQuote:
        self.calls.append((exchange, symbol))

        error = self._errors.get((exchange, symbol))
        if error is not None:
            raise error

        scripted = self._quotes.get((exchange, symbol))
        if scripted is None:
            raise FeedUnavailableError(exchange, symbol, "not scripted")

        price, volume = scripted
        return PriceQuote(
            exchange=exchange,
            symbol=symbol,
            price=price,
            volume_24h=volume,
            observed_at_us=self._now_us,
        )
