"""Market data module: price feed implementations."""

from arbdesk.market.rest import RestPriceFeed
from arbdesk.market.simulator import SimulatedPriceFeed
from arbdesk.market.symbols import split_symbol, to_exchange_symbol


__all__ = [
    "RestPriceFeed",
    "SimulatedPriceFeed",
    "split_symbol",
    "to_exchange_symbol",
]
