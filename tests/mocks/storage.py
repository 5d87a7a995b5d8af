"""Repository whose balance writes can be made to fail."""

from decimal import Decimal

from arbdesk.storage.memory import InMemoryRepository
from arbdesk.utils.time import Clock


class FlakyRepository(InMemoryRepository):
    """InMemoryRepository that raises on scheduled balance writes."""

    def __init__(self, clock: Clock | None = None) -> None:
        super().__init__(clock)
        self._writes_before_failure: int | None = None
        self._failures_left = 0
        self.failed_writes = 0

    def fail_set_balance(self, after: int = 0, times: int = 1) -> None:
        """
        Schedule failures.

        Args:
            after: Balance writes to let through first.
            times: Consecutive writes that fail after that.
        """
        self._writes_before_failure = after
        self._failures_left = times

    async def set_balance(self, user_id: str, amount: Decimal) -> None:
        if self._writes_before_failure is not None:
            if self._writes_before_failure > 0:
                self._writes_before_failure -= 1
            elif self._failures_left > 0:
                self._failures_left -= 1
                self.failed_writes += 1
                raise ConnectionError("balance store unavailable")
        await super().set_balance(user_id, amount)
