"""
Pydantic models for public ticker responses.

Each exchange reports last price and 24h base volume in its own shape;
these models validate the payload and expose both values as Decimal.
"""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field


class BinanceTicker24h(BaseModel):
    """GET /api/v3/ticker/24hr?symbol=..."""

    symbol: str
    last_price: Decimal = Field(alias="lastPrice")
    volume: Decimal

    model_config = {"populate_by_name": True}


class OkxTicker(BaseModel):
    """Single entry of an OKX ticker response."""

    inst_id: str = Field(alias="instId")
    last: Decimal
    vol_24h: Decimal = Field(alias="vol24h")

    model_config = {"populate_by_name": True}


class OkxTickerResponse(BaseModel):
    """GET /api/v5/market/ticker?instId=..."""

    code: str
    msg: str = ""
    data: list[OkxTicker] = Field(default_factory=list)


class KucoinStats(BaseModel):
    """Payload of a KuCoin 24h stats response; fields are null for unknown symbols."""

    symbol: str = ""
    last: Decimal | None = None
    vol: Decimal | None = None


class KucoinStatsResponse(BaseModel):
    """GET /api/v1/market/stats?symbol=..."""

    code: str
    msg: str = ""
    data: KucoinStats | None = None


class CoinbaseStats(BaseModel):
    """GET /products/{product_id}/stats"""

    last: Decimal
    volume: Decimal


# Success codes of the envelope-style APIs
OKX_OK = "0"
KUCOIN_OK = "200000"


def parse_ticker(exchange: str, payload: Any) -> tuple[Decimal, Decimal]:
    """
    Extract last price and 24h volume from a ticker payload.

    Args:
        exchange: Exchange name (case-insensitive).
        payload: Decoded JSON body.

    Returns:
        (price, volume_24h).

    Raises:
        ValueError: On unknown exchange, API error envelopes or missing
            values. pydantic.ValidationError (a ValueError) on malformed
            payloads.
    """
    name = exchange.upper()

    if name == "BINANCE":
        ticker = BinanceTicker24h.model_validate(payload)
        return ticker.last_price, ticker.volume

    if name == "OKX":
        okx = OkxTickerResponse.model_validate(payload)
        if okx.code != OKX_OK or not okx.data:
            raise ValueError(f"OKX error {okx.code}: {okx.msg or 'no data'}")
        return okx.data[0].last, okx.data[0].vol_24h

    if name == "KUCOIN":
        kucoin = KucoinStatsResponse.model_validate(payload)
        if kucoin.code != KUCOIN_OK or kucoin.data is None:
            raise ValueError(f"KuCoin error {kucoin.code}: {kucoin.msg or 'no data'}")
        if kucoin.data.last is None or kucoin.data.vol is None:
            raise ValueError("KuCoin returned no price for symbol")
        return kucoin.data.last, kucoin.data.vol

    if name == "COINBASE":
        stats = CoinbaseStats.model_validate(payload)
        return stats.last, stats.volume

    raise ValueError(f"Unsupported exchange: {exchange}")
