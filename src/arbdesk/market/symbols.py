"""
Symbol notation per exchange.

Symbols are written "BASE/QUOTE" internally; each venue has its own
spelling of the same pair.
"""

from arbdesk.config.constants import (
    BINANCE_REST_URL,
    COINBASE_REST_URL,
    ENDPOINT_BINANCE_TICKER_24H,
    ENDPOINT_COINBASE_STATS,
    ENDPOINT_KUCOIN_STATS,
    ENDPOINT_OKX_TICKER,
    KUCOIN_REST_URL,
    OKX_REST_URL,
)


def split_symbol(symbol: str) -> tuple[str, str]:
    """
    Split a pair into base and quote asset.

    Accepts "BTC/USDT" and "BTC-USDT".

    Raises:
        ValueError: If the symbol has no recognizable separator.
    """
    for separator in ("/", "-"):
        if separator in symbol:
            base, _, quote = symbol.partition(separator)
            if base and quote:
                return base.upper(), quote.upper()
    raise ValueError(f"Symbol must look like BASE/QUOTE: {symbol!r}")


def to_exchange_symbol(exchange: str, symbol: str) -> str:
    """
    Spell a pair the way an exchange expects it.

    Example:
        >>> to_exchange_symbol("BINANCE", "BTC/USDT")
        'BTCUSDT'
        >>> to_exchange_symbol("OKX", "BTC/USDT")
        'BTC-USDT'
    """
    base, quote = split_symbol(symbol)
    if exchange.upper() == "BINANCE":
        return f"{base}{quote}"
    return f"{base}-{quote}"


def ticker_request(exchange: str, symbol: str) -> tuple[str, dict[str, str]]:
    """
    URL and query parameters of the public 24h ticker for a pair.

    Raises:
        ValueError: For exchanges without a known ticker endpoint.
    """
    name = exchange.upper()
    venue_symbol = to_exchange_symbol(name, symbol)

    if name == "BINANCE":
        return f"{BINANCE_REST_URL}{ENDPOINT_BINANCE_TICKER_24H}", {"symbol": venue_symbol}
    if name == "OKX":
        return f"{OKX_REST_URL}{ENDPOINT_OKX_TICKER}", {"instId": venue_symbol}
    if name == "KUCOIN":
        return f"{KUCOIN_REST_URL}{ENDPOINT_KUCOIN_STATS}", {"symbol": venue_symbol}
    if name == "COINBASE":
        endpoint = ENDPOINT_COINBASE_STATS.format(product_id=venue_symbol)
        return f"{COINBASE_REST_URL}{endpoint}", {}
    raise ValueError(f"Unsupported exchange: {exchange}")
