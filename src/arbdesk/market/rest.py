"""
Public REST ticker feed.

Reads last price and 24h volume from the public market data endpoints
of Binance, OKX, KuCoin and Coinbase. No credentials are involved.
"""

import logging
from typing import Any

import aiohttp
import orjson
from pydantic import ValidationError

from arbdesk.config.constants import FEED_REQUEST_TIMEOUT
from arbdesk.core.errors import FeedUnavailableError
from arbdesk.core.types import PriceQuote
from arbdesk.market.models import parse_ticker
from arbdesk.market.symbols import ticker_request
from arbdesk.utils.time import Clock, get_timestamp_us


logger = logging.getLogger(__name__)


class RestPriceFeed:
    """
    PriceFeedPort over public exchange REST APIs.

    Features:
    - Single pooled aiohttp session, created lazily
    - orjson for response decoding
    - Every failure surfaces as FeedUnavailableError
    """

    def __init__(
        self,
        timeout: float = FEED_REQUEST_TIMEOUT,
        clock: Clock | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """
        Initialize REST feed.

        Args:
            timeout: Total timeout per request in seconds.
            clock: Microsecond clock for quote timestamps.
            session: Externally owned session; not closed by close().
        """
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._clock = clock or get_timestamp_us
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=50,
                limit_per_host=10,
                keepalive_timeout=30,
            )
            self._session = aiohttp.ClientSession(connector=connector, timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the session if this feed created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def get_quote(self, exchange: str, symbol: str) -> PriceQuote:
        """
        Fetch the current ticker of a pair.

        Raises:
            FeedUnavailableError: On unsupported exchange or symbol,
                network error, HTTP error or malformed payload.
        """
        try:
            url, params = ticker_request(exchange, symbol)
        except ValueError as e:
            raise FeedUnavailableError(exchange, symbol, str(e)) from e

        payload = await self._fetch(exchange, symbol, url, params)

        try:
            price, volume = parse_ticker(exchange, payload)
        except (ValidationError, ValueError) as e:
            raise FeedUnavailableError(exchange, symbol, f"Bad ticker payload: {e}") from e

        return PriceQuote(
            exchange=exchange,
            symbol=symbol,
            price=price,
            volume_24h=volume,
            observed_at_us=self._clock(),
        )

    async def _fetch(
        self,
        exchange: str,
        symbol: str,
        url: str,
        params: dict[str, str],
    ) -> Any:
        """GET a URL and decode its JSON body."""
        session = await self._get_session()
        try:
            async with session.get(url, params=params) as response:
                body = await response.read()
                status = response.status
        except (aiohttp.ClientError, TimeoutError) as e:
            raise FeedUnavailableError(exchange, symbol, f"Network error: {e}") from e

        if status >= 400:
            raise FeedUnavailableError(exchange, symbol, f"HTTP {status}")

        try:
            return orjson.loads(body)
        except orjson.JSONDecodeError as e:
            raise FeedUnavailableError(exchange, symbol, f"Invalid JSON: {e}") from e

    async def __aenter__(self) -> "RestPriceFeed":
        await self._get_session()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
