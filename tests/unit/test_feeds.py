"""
Unit tests for price feeds.

Tests ticker payload parsing, symbol notation, the simulated feed and
REST feed error mapping.
"""

from decimal import Decimal

import pytest

from arbdesk.core.errors import FeedUnavailableError
from arbdesk.market.models import parse_ticker
from arbdesk.market.rest import RestPriceFeed
from arbdesk.market.simulator import SimulatedPriceFeed
from arbdesk.market.symbols import split_symbol, ticker_request, to_exchange_symbol
from tests.mocks import FakeClock


class TestParseTicker:
    """Tests for parse_ticker."""

    def test_binance(self) -> None:
        """Test Binance 24h ticker."""
        payload = {"symbol": "BTCUSDT", "lastPrice": "64250.10", "volume": "21034.5"}

        assert parse_ticker("BINANCE", payload) == (Decimal("64250.10"), Decimal("21034.5"))

    def test_okx(self) -> None:
        """Test OKX envelope."""
        payload = {
            "code": "0",
            "msg": "",
            "data": [{"instId": "BTC-USDT", "last": "64251.3", "vol24h": "9876.1"}],
        }

        assert parse_ticker("okx", payload) == (Decimal("64251.3"), Decimal("9876.1"))

    def test_okx_error_code(self) -> None:
        """Test OKX error envelopes raise."""
        with pytest.raises(ValueError, match="51001"):
            parse_ticker("OKX", {"code": "51001", "msg": "Instrument ID does not exist"})

    def test_kucoin(self) -> None:
        """Test KuCoin stats."""
        payload = {
            "code": "200000",
            "data": {"symbol": "BTC-USDT", "last": "64248.9", "vol": "3456.7"},
        }

        assert parse_ticker("KUCOIN", payload) == (Decimal("64248.9"), Decimal("3456.7"))

    def test_kucoin_unknown_symbol(self) -> None:
        """Test KuCoin null fields for unlisted pairs."""
        payload = {"code": "200000", "data": {"symbol": "FOO-USDT", "last": None, "vol": None}}

        with pytest.raises(ValueError):
            parse_ticker("KUCOIN", payload)

    def test_coinbase(self) -> None:
        """Test Coinbase product stats."""
        payload = {"open": "64000", "last": "64260.00", "volume": "12000.5"}

        assert parse_ticker("COINBASE", payload) == (Decimal("64260.00"), Decimal("12000.5"))

    def test_malformed_payload(self) -> None:
        """Test missing fields raise a ValueError subclass."""
        with pytest.raises(ValueError):
            parse_ticker("BINANCE", {"symbol": "BTCUSDT"})

    def test_unknown_exchange(self) -> None:
        """Test unsupported venues raise."""
        with pytest.raises(ValueError):
            parse_ticker("KRAKEN", {})


class TestSymbols:
    """Tests for symbol notation helpers."""

    def test_split(self) -> None:
        """Test both separators."""
        assert split_symbol("btc/usdt") == ("BTC", "USDT")
        assert split_symbol("ETH-USDT") == ("ETH", "USDT")

    @pytest.mark.parametrize("symbol", ["BTCUSDT", "/USDT", "BTC/"])
    def test_split_invalid(self, symbol: str) -> None:
        """Test malformed pairs raise."""
        with pytest.raises(ValueError):
            split_symbol(symbol)

    def test_exchange_spelling(self) -> None:
        """Test venue-specific notation."""
        assert to_exchange_symbol("BINANCE", "BTC/USDT") == "BTCUSDT"
        assert to_exchange_symbol("OKX", "BTC/USDT") == "BTC-USDT"
        assert to_exchange_symbol("COINBASE", "ETH/USDT") == "ETH-USDT"

    def test_ticker_request(self) -> None:
        """Test public endpoint URLs and parameters."""
        url, params = ticker_request("BINANCE", "BTC/USDT")
        assert url == "https://api.binance.com/api/v3/ticker/24hr"
        assert params == {"symbol": "BTCUSDT"}

        url, params = ticker_request("OKX", "BTC/USDT")
        assert url == "https://www.okx.com/api/v5/market/ticker"
        assert params == {"instId": "BTC-USDT"}

        url, params = ticker_request("COINBASE", "BTC/USDT")
        assert url == "https://api.exchange.coinbase.com/products/BTC-USDT/stats"
        assert params == {}

    def test_ticker_request_unknown_exchange(self) -> None:
        """Test unsupported venues raise."""
        with pytest.raises(ValueError):
            ticker_request("KRAKEN", "BTC/USDT")


class TestSimulatedPriceFeed:
    """Tests for SimulatedPriceFeed."""

    @pytest.mark.asyncio
    async def test_quotes_are_positive(self, clock: FakeClock) -> None:
        """Test generated quotes."""
        feed = SimulatedPriceFeed(seed=7, clock=clock)

        quote = await feed.get_quote("BINANCE", "BTC/USDT")

        assert quote.price > 0
        assert quote.volume_24h > 0
        assert quote.observed_at_us == clock()
        assert feed.quotes_served == 1

    @pytest.mark.asyncio
    async def test_seeded_runs_repeat(self) -> None:
        """Test the same seed produces the same prices."""
        first = SimulatedPriceFeed(seed=42)
        second = SimulatedPriceFeed(seed=42)

        for exchange in ("BINANCE", "OKX", "KUCOIN"):
            a = await first.get_quote(exchange, "ETH/USDT")
            b = await second.get_quote(exchange, "ETH/USDT")
            assert a.price == b.price

    @pytest.mark.asyncio
    async def test_venues_disagree(self) -> None:
        """Test exchanges quote around the mid with their own noise."""
        feed = SimulatedPriceFeed(seed=1, dispersion=0.01)

        prices = {(await feed.get_quote(ex, "SOL/USDT")).price for ex in ("A", "B", "C", "D")}

        assert len(prices) > 1

    @pytest.mark.asyncio
    async def test_offline_exchange(self) -> None:
        """Test offline venues raise FeedUnavailableError."""
        feed = SimulatedPriceFeed(seed=1)
        feed.set_offline(["okx"])

        with pytest.raises(FeedUnavailableError):
            await feed.get_quote("OKX", "BTC/USDT")

        feed.set_online(["OKX"])
        assert (await feed.get_quote("OKX", "BTC/USDT")).price > 0

    @pytest.mark.asyncio
    async def test_pinned_quote(self) -> None:
        """Test pinned prices are served exactly."""
        feed = SimulatedPriceFeed(seed=1)
        feed.pin("BINANCE", "BTC/USDT", Decimal("100"), Decimal("5000"))

        quote = await feed.get_quote("binance", "BTC/USDT")

        assert quote.price == Decimal("100")
        assert quote.volume_24h == Decimal("5000")

        feed.unpin("BINANCE", "BTC/USDT")
        assert (await feed.get_quote("BINANCE", "BTC/USDT")).price != Decimal("100")

    @pytest.mark.asyncio
    async def test_unknown_asset(self) -> None:
        """Test assets without a reference price raise."""
        feed = SimulatedPriceFeed(seed=1)

        with pytest.raises(FeedUnavailableError):
            await feed.get_quote("BINANCE", "FOO/USDT")


class TestRestPriceFeed:
    """Tests for RestPriceFeed error mapping."""

    @pytest.mark.asyncio
    async def test_unsupported_exchange(self) -> None:
        """Test unknown venues fail before any request is made."""
        feed = RestPriceFeed()

        with pytest.raises(FeedUnavailableError, match="Unsupported exchange"):
            await feed.get_quote("KRAKEN", "BTC/USDT")

        await feed.close()

    @pytest.mark.asyncio
    async def test_malformed_symbol(self) -> None:
        """Test symbols without a separator fail fast."""
        feed = RestPriceFeed()

        with pytest.raises(FeedUnavailableError):
            await feed.get_quote("BINANCE", "BTCUSDT")

        await feed.close()
