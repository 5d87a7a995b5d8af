"""
High-precision time utilities.

Provides microsecond-precision timestamps and an injectable clock so
that expiry and timeout logic can be driven deterministically.
"""

import time
from collections.abc import Callable


# A clock returns the current Unix time in microseconds.
Clock = Callable[[], int]


def get_timestamp_us() -> int:
    """
    Get current timestamp in microseconds.

    Uses time.time_ns() for maximum precision, then converts to microseconds.
    This is faster than datetime operations.

    Returns:
        Current Unix timestamp in microseconds.
    """
    return time.time_ns() // 1000


def seconds_to_us(seconds: float) -> int:
    """Convert a duration in seconds to microseconds."""
    return int(seconds * 1_000_000)
