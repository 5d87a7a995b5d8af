"""Manually driven clock for expiry and watchdog tests."""

from arbdesk.utils.time import seconds_to_us


# 2023-11-14 22:13:20 UTC
START_US = 1_700_000_000_000_000


class FakeClock:
    """Microsecond clock that only moves when told to."""

    def __init__(self, now_us: int = START_US) -> None:
        self.now_us = now_us

    def __call__(self) -> int:
        return self.now_us

    def advance(self, seconds: float) -> None:
        self.now_us += seconds_to_us(seconds)
