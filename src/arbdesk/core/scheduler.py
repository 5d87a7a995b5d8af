"""
Periodic background jobs.

A Ticker runs one async callback on a fixed interval until it is
stopped. The engine uses one each for scanning, expiry sweeps and the
pending-order watchdog.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable


logger = logging.getLogger(__name__)

# Seconds to wait for a stopping loop before cancelling it
TICKER_STOP_TIMEOUT = 5.0


class Ticker:
    """
    Runs an async callback every `interval` seconds.

    The stop event doubles as cancellation token: the loop waits on it
    between iterations, so stop() takes effect without waiting out the
    interval. Exceptions raised by the callback are logged and the loop
    keeps going.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        callback: Callable[[], Awaitable[object]],
        run_immediately: bool = True,
    ) -> None:
        """
        Initialize ticker.

        Args:
            name: Name used in log messages.
            interval: Seconds between iterations.
            callback: Async callable invoked each iteration.
            run_immediately: Run the first iteration on start instead of
                after one interval.
        """
        if interval <= 0:
            raise ValueError(f"Ticker interval must be positive: {interval}")

        self._name = name
        self._interval = interval
        self._callback = callback
        self._run_immediately = run_immediately
        self._stop = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._iterations = 0
        self._failures = 0

    async def tick(self) -> bool:
        """
        Run a single iteration.

        Returns:
            True if the callback completed without raising.
        """
        self._iterations += 1
        try:
            await self._callback()
            return True
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._failures += 1
            logger.error(f"[{self._name}] iteration failed: {e}")
            return False

    async def run(self) -> None:
        """Loop until stopped."""
        logger.debug(f"[{self._name}] started (interval={self._interval}s)")

        if not self._run_immediately and await self._wait_interval():
            return

        while not self._stop.is_set():
            await self.tick()
            if await self._wait_interval():
                break

        logger.debug(f"[{self._name}] stopped after {self._iterations} iterations")

    async def _wait_interval(self) -> bool:
        """Sleep one interval; returns True if stopped meanwhile."""
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=self._interval)
        except TimeoutError:
            return False
        return True

    def start(self) -> asyncio.Task[None]:
        """Start the loop as a background task."""
        if self._task and not self._task.done():
            return self._task

        self._stop.clear()
        self._task = asyncio.create_task(self.run(), name=f"ticker-{self._name}")
        return self._task

    async def stop(self) -> None:
        """Signal the loop to stop and wait for it."""
        self._stop.set()

        if self._task:
            try:
                await asyncio.wait_for(self._task, timeout=TICKER_STOP_TIMEOUT)
            except (TimeoutError, asyncio.CancelledError):
                self._task.cancel()
            self._task = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_running(self) -> bool:
        """Check if the background task is alive."""
        return self._task is not None and not self._task.done()

    @property
    def iterations(self) -> int:
        return self._iterations

    @property
    def failures(self) -> int:
        return self._failures
