"""
Cross-exchange spread detection.

Polls the last price of every symbol on every exchange and reports
pairs where buying on one venue and selling on another clears the
minimum profit threshold.
"""

import asyncio
import logging
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from itertools import combinations

from arbdesk.config.constants import (
    DEFAULT_MIN_PROFIT_PERCENT,
    DEFAULT_OPPORTUNITY_TTL_SECONDS,
    DEFAULT_VOLUME_SAMPLE_FRACTION,
)
from arbdesk.core.types import ArbitrageOpportunity, PriceFeedPort, PriceQuote
from arbdesk.utils.math import ZERO, percent_change
from arbdesk.utils.time import Clock, get_timestamp_us, seconds_to_us


logger = logging.getLogger(__name__)


def new_opportunity_id() -> str:
    """Generate a unique opportunity id."""
    return uuid.uuid4().hex


def rank_key(opportunity: ArbitrageOpportunity) -> tuple[Decimal, Decimal]:
    """Sort key: highest profit first, then deepest volume."""
    return (-opportunity.profit_pct, -opportunity.available_volume)


@dataclass
class ScanStats:
    """Statistics for scan cycles."""

    total_scans: int = 0
    quotes_requested: int = 0
    quotes_failed: int = 0
    opportunities_found: int = 0
    best_profit_pct: Decimal = ZERO
    last_scan_us: int = 0

    def record_scan(self, opportunities: Sequence[ArbitrageOpportunity], now_us: int) -> None:
        """Record the outcome of one scan."""
        self.total_scans += 1
        self.opportunities_found += len(opportunities)
        self.last_scan_us = now_us
        for opportunity in opportunities:
            if opportunity.profit_pct > self.best_profit_pct:
                self.best_profit_pct = opportunity.profit_pct


class ArbitrageScanner:
    """
    Detects cross-exchange arbitrage opportunities.

    Quotes for one symbol are fetched concurrently from all exchanges and
    symbols are scanned concurrently. A quote that cannot be fetched is
    logged and left out; it never aborts the scan.
    """

    def __init__(
        self,
        feed: PriceFeedPort,
        min_profit_pct: Decimal = DEFAULT_MIN_PROFIT_PERCENT,
        volume_fraction: Decimal = DEFAULT_VOLUME_SAMPLE_FRACTION,
        ttl_seconds: float = DEFAULT_OPPORTUNITY_TTL_SECONDS,
        clock: Clock | None = None,
        id_factory: Callable[[], str] = new_opportunity_id,
    ) -> None:
        """
        Initialize scanner.

        Args:
            feed: Price source.
            min_profit_pct: Default minimum spread in percent.
            volume_fraction: Fraction of 24h volume assumed tradable.
            ttl_seconds: Lifetime of reported opportunities.
            clock: Microsecond clock.
            id_factory: Opportunity id generator.
        """
        self._feed = feed
        self._min_profit_pct = min_profit_pct
        self._volume_fraction = volume_fraction
        self._ttl_us = seconds_to_us(ttl_seconds)
        self._clock = clock or get_timestamp_us
        self._id_factory = id_factory
        self._stats = ScanStats()

    async def scan(
        self,
        symbols: Sequence[str],
        exchanges: Sequence[str],
        min_profit_pct: Decimal | None = None,
    ) -> list[ArbitrageOpportunity]:
        """
        Scan symbols across exchanges.

        Args:
            symbols: Symbols to compare.
            exchanges: Exchanges to compare.
            min_profit_pct: Threshold override for this scan.

        Returns:
            Opportunities sorted by profit then available volume, both
            descending.
        """
        threshold = self._min_profit_pct if min_profit_pct is None else min_profit_pct

        per_symbol = await asyncio.gather(
            *(self._scan_symbol(symbol, exchanges, threshold) for symbol in symbols)
        )

        opportunities = [opp for found in per_symbol for opp in found]
        opportunities.sort(key=rank_key)

        self._stats.record_scan(opportunities, self._clock())
        logger.debug(
            f"Scan complete: {len(symbols)} symbols x {len(exchanges)} exchanges, "
            f"{len(opportunities)} opportunities"
        )
        return opportunities

    async def _scan_symbol(
        self,
        symbol: str,
        exchanges: Sequence[str],
        threshold: Decimal,
    ) -> list[ArbitrageOpportunity]:
        """Compare every pair of exchanges quoting one symbol."""
        quotes = await self._fetch_quotes(symbol, exchanges)
        now_us = self._clock()

        found: list[ArbitrageOpportunity] = []
        for first, second in combinations(quotes, 2):
            if first.price == second.price:
                continue
            buy, sell = (first, second) if first.price < second.price else (second, first)

            profit_pct = percent_change(buy.price, sell.price)
            if profit_pct < threshold:
                continue

            found.append(
                ArbitrageOpportunity(
                    id=self._id_factory(),
                    symbol=symbol,
                    buy_exchange=buy.exchange,
                    sell_exchange=sell.exchange,
                    buy_price=buy.price,
                    sell_price=sell.price,
                    profit_pct=profit_pct,
                    available_volume=min(
                        buy.volume_24h * self._volume_fraction,
                        sell.volume_24h * self._volume_fraction,
                    ),
                    created_at_us=now_us,
                    expires_at_us=now_us + self._ttl_us,
                )
            )
        return found

    async def _fetch_quotes(self, symbol: str, exchanges: Sequence[str]) -> list[PriceQuote]:
        """Fetch quotes concurrently, dropping failures."""
        results = await asyncio.gather(
            *(self._feed.get_quote(exchange, symbol) for exchange in exchanges),
            return_exceptions=True,
        )
        self._stats.quotes_requested += len(exchanges)

        quotes: list[PriceQuote] = []
        for exchange, result in zip(exchanges, results, strict=True):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                self._stats.quotes_failed += 1
                logger.warning(f"Skipping {symbol} on {exchange}: {result}")
                continue
            if result.price <= ZERO:
                self._stats.quotes_failed += 1
                logger.warning(f"Skipping {symbol} on {exchange}: non-positive price {result.price}")
                continue
            quotes.append(result)
        return quotes

    @property
    def stats(self) -> ScanStats:
        return self._stats
