"""
Simulated multi-exchange price feed for demo mode.

Every symbol has a mid price following a random walk; each exchange
quotes around that mid with its own noise, so spreads between venues
open and close over time. Seeded runs are reproducible.
"""

import logging
import random
from collections.abc import Iterable, Mapping
from decimal import Decimal

from arbdesk.core.errors import FeedUnavailableError
from arbdesk.core.types import PriceQuote
from arbdesk.market.symbols import split_symbol
from arbdesk.utils.math import to_decimal
from arbdesk.utils.time import Clock, get_timestamp_us


logger = logging.getLogger(__name__)


# Reference mid prices (USDT) and 24h base volumes
DEFAULT_BASE_PRICES: dict[str, float] = {
    "BTC": 65000.0,
    "ETH": 3500.0,
    "SOL": 180.0,
    "BNB": 580.0,
    "ADA": 0.65,
    "XRP": 0.62,
    "DOT": 7.2,
    "DOGE": 0.15,
    "AVAX": 36.0,
    "MATIC": 0.72,
}

DEFAULT_BASE_VOLUMES: dict[str, float] = {
    "BTC": 25_000.0,
    "ETH": 300_000.0,
    "SOL": 2_500_000.0,
    "BNB": 800_000.0,
    "ADA": 400_000_000.0,
    "XRP": 900_000_000.0,
    "DOT": 30_000_000.0,
    "DOGE": 2_000_000_000.0,
    "AVAX": 8_000_000.0,
    "MATIC": 300_000_000.0,
}

# Pull of each venue price back toward the mid per quote
MEAN_REVERSION = 0.3


class SimulatedPriceFeed:
    """
    Random-walk PriceFeedPort.

    Features:
    - Shared mid per symbol with per-exchange dispersion
    - Deterministic with a seed
    - Exchanges can be taken offline to exercise failure paths
    - Prices can be pinned for scripted demos
    """

    def __init__(
        self,
        seed: int | None = None,
        volatility: float = 0.0005,
        dispersion: float = 0.003,
        base_prices: Mapping[str, float] | None = None,
        base_volumes: Mapping[str, float] | None = None,
        clock: Clock | None = None,
    ) -> None:
        """
        Initialize simulated feed.

        Args:
            seed: Random seed for reproducible runs.
            volatility: Std deviation of the mid move per quote.
            dispersion: Std deviation of a venue's deviation from the mid.
            base_prices: Starting mid per base asset.
            base_volumes: Typical 24h volume per base asset.
            clock: Microsecond clock for quote timestamps.
        """
        self._rng = random.Random(seed)
        self._volatility = volatility
        self._dispersion = dispersion
        self._base_prices = dict(base_prices or DEFAULT_BASE_PRICES)
        self._base_volumes = dict(base_volumes or DEFAULT_BASE_VOLUMES)
        self._clock = clock or get_timestamp_us

        self._mids: dict[str, float] = {}
        self._prices: dict[tuple[str, str], float] = {}
        self._pinned: dict[tuple[str, str], tuple[Decimal, Decimal]] = {}
        self._offline: set[str] = set()
        self._quotes_served = 0

    async def get_quote(self, exchange: str, symbol: str) -> PriceQuote:
        """
        Produce the next simulated quote.

        Raises:
            FeedUnavailableError: If the exchange is offline or the base
                asset has no reference price.
        """
        if exchange.upper() in self._offline:
            raise FeedUnavailableError(exchange, symbol, "exchange offline")

        key = (exchange.upper(), symbol)
        pinned = self._pinned.get(key)
        if pinned is not None:
            price, volume = pinned
        else:
            price, volume = self._next_quote(exchange, symbol)

        self._quotes_served += 1
        return PriceQuote(
            exchange=exchange,
            symbol=symbol,
            price=price,
            volume_24h=volume,
            observed_at_us=self._clock(),
        )

    def _next_quote(self, exchange: str, symbol: str) -> tuple[Decimal, Decimal]:
        try:
            base, _ = split_symbol(symbol)
        except ValueError as e:
            raise FeedUnavailableError(exchange, symbol, str(e)) from e

        if base not in self._base_prices:
            raise FeedUnavailableError(exchange, symbol, "no reference price")

        mid = self._mids.get(symbol, self._base_prices[base])
        mid *= 1 + self._rng.gauss(0, self._volatility)
        self._mids[symbol] = mid

        key = (exchange.upper(), symbol)
        last = self._prices.get(key, mid)
        price = last + (mid - last) * MEAN_REVERSION + mid * self._rng.gauss(0, self._dispersion)
        price = max(price, mid * 0.5)
        self._prices[key] = price

        volume = self._base_volumes.get(base, 1_000_000.0) * self._rng.uniform(0.5, 1.5)
        return to_decimal(round(price, 8)), to_decimal(round(volume, 4))

    def pin(self, exchange: str, symbol: str, price: Decimal, volume_24h: Decimal) -> None:
        """Always quote a fixed price and volume for a pair."""
        self._pinned[(exchange.upper(), symbol)] = (price, volume_24h)

    def unpin(self, exchange: str, symbol: str) -> None:
        self._pinned.pop((exchange.upper(), symbol), None)

    def set_offline(self, exchanges: Iterable[str]) -> None:
        """Make exchanges raise FeedUnavailableError."""
        for exchange in exchanges:
            self._offline.add(exchange.upper())
            logger.info(f"Simulated exchange {exchange} offline")

    def set_online(self, exchanges: Iterable[str]) -> None:
        for exchange in exchanges:
            self._offline.discard(exchange.upper())

    @property
    def quotes_served(self) -> int:
        return self._quotes_served
