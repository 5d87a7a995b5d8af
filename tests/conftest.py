"""
Pytest configuration and shared fixtures.

Provides reusable test fixtures for all test modules.
"""

from decimal import Decimal

import pytest

from arbdesk.config.settings import Settings
from arbdesk.core.types import ArbitrageOpportunity
from arbdesk.execution.ledger import BalanceLedger
from arbdesk.execution.lifecycle import OrderLifecycle
from arbdesk.storage.memory import InMemoryRepository
from arbdesk.strategy.fees import FeeEngine, FeeSchedule
from arbdesk.strategy.opportunity import OpportunityStore
from arbdesk.telemetry.metrics import MetricsCollector
from tests.mocks import FakeClock, ScriptedExecutionPort, ScriptedPriceFeed, make_opportunity


# =============================================================================
# Clock & Settings
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at START_US until advanced."""
    return FakeClock()


@pytest.fixture
def settings() -> Settings:
    """Small deterministic configuration."""
    return Settings(
        symbols=["BTC/USDT"],
        exchanges=["EX_A", "EX_B"],
        min_profit_percent=Decimal("1"),
        opportunity_ttl_seconds=300,
        execution_timeout_seconds=0.2,
        dry_run=True,
    )


# =============================================================================
# Component Fixtures
# =============================================================================


@pytest.fixture
def schedule() -> FeeSchedule:
    """Default fee schedule (0.1% commission, 0.1 currency per credit)."""
    return FeeSchedule()


@pytest.fixture
def fee_engine(schedule: FeeSchedule) -> FeeEngine:
    return FeeEngine(schedule)


@pytest.fixture
def repository(clock: FakeClock) -> InMemoryRepository:
    return InMemoryRepository(clock)


@pytest.fixture
def ledger(repository: InMemoryRepository, clock: FakeClock) -> BalanceLedger:
    return BalanceLedger(repository, clock)


@pytest.fixture
def store(clock: FakeClock) -> OpportunityStore:
    return OpportunityStore(clock)


@pytest.fixture
def metrics() -> MetricsCollector:
    return MetricsCollector()


@pytest.fixture
def price_feed(clock: FakeClock) -> ScriptedPriceFeed:
    return ScriptedPriceFeed(now_us=clock())


@pytest.fixture
def execution_port() -> ScriptedExecutionPort:
    """Port that fills everything unless scripted otherwise."""
    return ScriptedExecutionPort()


@pytest.fixture
def lifecycle(
    fee_engine: FeeEngine,
    ledger: BalanceLedger,
    repository: InMemoryRepository,
    execution_port: ScriptedExecutionPort,
    store: OpportunityStore,
    clock: FakeClock,
    metrics: MetricsCollector,
) -> OrderLifecycle:
    """Lifecycle with a short execution timeout."""
    return OrderLifecycle(
        fee_engine=fee_engine,
        ledger=ledger,
        repository=repository,
        execution_port=execution_port,
        store=store,
        clock=clock,
        metrics=metrics,
        execution_timeout=0.1,
        max_pending_seconds=120,
    )


@pytest.fixture
def opportunity(clock: FakeClock) -> ArbitrageOpportunity:
    """EX_A 100 -> EX_B 102, expiring in 300s."""
    return make_opportunity(now_us=clock())
