"""Mock implementations for testing."""

from tests.mocks.clock import START_US, FakeClock
from tests.mocks.execution import ScriptedExecutionPort
from tests.mocks.factories import make_opportunity
from tests.mocks.feeds import ScriptedPriceFeed
from tests.mocks.storage import FlakyRepository


__all__ = [
    "START_US",
    "FakeClock",
    "FlakyRepository",
    "ScriptedExecutionPort",
    "ScriptedPriceFeed",
    "make_opportunity",
]
