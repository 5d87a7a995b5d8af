"""Utility functions for the arbitrage desk."""

from arbdesk.utils.locks import KeyedLock
from arbdesk.utils.math import (
    percent_change,
    quantum,
    round_half_up,
    to_decimal,
)
from arbdesk.utils.time import (
    Clock,
    get_timestamp_us,
    seconds_to_us,
)


__all__ = [
    "Clock",
    "KeyedLock",
    "get_timestamp_us",
    "percent_change",
    "quantum",
    "round_half_up",
    "seconds_to_us",
    "to_decimal",
]
