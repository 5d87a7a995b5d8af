"""
Engine orchestrator.

Wires feeds, detection, the opportunity store, the credit ledger and the
order lifecycle together and runs the periodic scan, sweep and watchdog
jobs.
"""

import asyncio
import logging
import signal
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from decimal import Decimal

from arbdesk.config.constants import DISCOUNT_TIER_NONE
from arbdesk.config.settings import Settings
from arbdesk.core.errors import EngineError
from arbdesk.core.event_bus import EventBus, EventType
from arbdesk.core.scheduler import Ticker
from arbdesk.core.types import (
    ArbitrageExecution,
    ArbitrageOpportunity,
    ExecutionPort,
    LedgerEntry,
    Order,
    OrderRepository,
    OrderSide,
    PriceFeedPort,
    UserStats,
)
from arbdesk.execution.ledger import BalanceLedger
from arbdesk.execution.lifecycle import OrderLifecycle
from arbdesk.execution.paper import PaperExecutionPort
from arbdesk.market.rest import RestPriceFeed
from arbdesk.market.simulator import SimulatedPriceFeed
from arbdesk.storage.memory import InMemoryRepository
from arbdesk.strategy.fees import FeeEngine, FeeSchedule
from arbdesk.strategy.opportunity import OpportunityStore
from arbdesk.strategy.scanner import ArbitrageScanner
from arbdesk.telemetry.logger import AsyncLogger, setup_logging
from arbdesk.telemetry.metrics import MetricsCollector
from arbdesk.utils.time import Clock, get_timestamp_us


logger = logging.getLogger(__name__)


class TradingEngine:
    """
    Main engine orchestrator.

    Manages the complete lifecycle of:
    - Price polling and opportunity detection
    - Opportunity expiry
    - Credit settlement of orders
    - Stale order recovery
    - Telemetry
    """

    def __init__(
        self,
        settings: Settings,
        price_feed: PriceFeedPort | None = None,
        execution_port: ExecutionPort | None = None,
        repository: OrderRepository | None = None,
        clock: Clock | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            settings: Application settings.
            price_feed: Quote source; defaults to the REST or simulated
                feed depending on settings.
            execution_port: Order destination; defaults to the paper port
                in dry-run mode and is required otherwise.
            repository: Persistence; defaults to in-memory storage.
            clock: Microsecond clock.

        Raises:
            EngineError: If live mode is requested without an execution port.
        """
        if execution_port is None and not settings.dry_run:
            raise EngineError("Live mode requires an execution port")

        self._settings = settings
        self._clock = clock or get_timestamp_us
        self._running = False
        self._shutdown_event = asyncio.Event()
        self._closed = False

        # Infrastructure
        self._event_bus = EventBus(self._clock)
        self._metrics = MetricsCollector()
        self._async_logger: AsyncLogger | None = None

        # Ports
        self._feed: PriceFeedPort = price_feed or self._default_feed()
        self._port: ExecutionPort = execution_port or PaperExecutionPort()
        self._repository: OrderRepository = repository or InMemoryRepository(self._clock)

        # Domain components
        self._fees = FeeEngine(FeeSchedule.from_settings(settings))
        self._store = OpportunityStore(self._clock)
        self._scanner = ArbitrageScanner(
            feed=self._feed,
            min_profit_pct=settings.min_profit_percent,
            volume_fraction=settings.volume_sample_fraction,
            ttl_seconds=settings.opportunity_ttl_seconds,
            clock=self._clock,
        )
        self._ledger = BalanceLedger(self._repository, self._clock)
        self._lifecycle = OrderLifecycle(
            fee_engine=self._fees,
            ledger=self._ledger,
            repository=self._repository,
            execution_port=self._port,
            store=self._store,
            clock=self._clock,
            event_bus=self._event_bus,
            metrics=self._metrics,
            execution_timeout=settings.execution_timeout_seconds,
            max_pending_seconds=settings.max_pending_seconds,
        )

        # Background jobs
        self._tickers = [
            Ticker("scan", settings.scan_interval_seconds, self.scan_once),
            Ticker("sweep", settings.sweep_interval_seconds, self.sweep_once, run_immediately=False),
            Ticker(
                "watchdog",
                settings.watchdog_interval_seconds,
                self.watchdog_once,
                run_immediately=False,
            ),
        ]

    def _default_feed(self) -> PriceFeedPort:
        if self._settings.use_rest_feed:
            return RestPriceFeed(clock=self._clock)
        return SimulatedPriceFeed(clock=self._clock)

    async def setup(self) -> None:
        """Start logging and announce the configuration."""
        self._async_logger = setup_logging(
            level=self._settings.log_level,
            log_file=self._settings.log_file,
        )
        logger.info(
            f"Engine ready: {len(self._settings.symbols)} symbols x "
            f"{len(self._settings.exchanges)} exchanges, "
            f"feed={type(self._feed).__name__}, port={type(self._port).__name__}, "
            f"dry_run={self._settings.dry_run}"
        )

    # =========================================================================
    # Periodic jobs
    # =========================================================================

    async def scan_once(self) -> list[ArbitrageOpportunity]:
        """Run one scan cycle and store what it finds."""
        start_us = self._clock()
        opportunities = await self._scanner.scan(self._settings.symbols, self._settings.exchanges)
        self._store.put_many(opportunities)

        for opportunity in opportunities:
            self._metrics.record_opportunity(opportunity.profit_pct)
            await self._event_bus.emit(EventType.OPPORTUNITY_FOUND, opportunity, source="scanner")

        self._metrics.record_latency("scan", self._clock() - start_us)
        self._metrics.increment_counter("scans")
        await self._event_bus.emit(EventType.SCAN_COMPLETE, opportunities, source="scanner")

        if opportunities:
            best = opportunities[0]
            logger.info(
                f"Scan found {len(opportunities)} opportunities, best {best.symbol} "
                f"{best.buy_exchange}->{best.sell_exchange} {best.profit_pct:.4f}%"
            )
        return opportunities

    async def sweep_once(self) -> int:
        """Drop expired opportunities."""
        removed = self._store.sweep_expired()
        if removed:
            self._metrics.record_expired(removed)
            await self._event_bus.emit(EventType.OPPORTUNITY_EXPIRED, removed, source="store")
        return removed

    async def watchdog_once(self) -> list[Order]:
        """Reject orders stuck in PENDING and retry failed refunds."""
        return await self._lifecycle.expire_stale_orders()

    # =========================================================================
    # Facade
    # =========================================================================

    async def place_order(
        self,
        user_id: str,
        exchange: str,
        symbol: str,
        side: OrderSide,
        amount: Decimal | int | float | str,
        price: Decimal | int | float | str,
        discount_tier: str = DISCOUNT_TIER_NONE,
    ) -> Order:
        return await self._lifecycle.place_order(
            user_id, exchange, symbol, side, amount, price, discount_tier
        )

    async def cancel_order(self, order_id: str) -> Order:
        return await self._lifecycle.cancel_order(order_id)

    async def execute_opportunity(
        self,
        opportunity_id: str,
        user_id: str,
        amount: Decimal | int | float | str,
        discount_tier: str = DISCOUNT_TIER_NONE,
    ) -> ArbitrageExecution:
        return await self._lifecycle.execute_opportunity(
            opportunity_id, user_id, amount, discount_tier
        )

    def list_opportunities(self) -> list[ArbitrageOpportunity]:
        return self._store.list()

    def get_opportunity(self, opportunity_id: str) -> ArbitrageOpportunity | None:
        return self._store.get(opportunity_id)

    async def deposit(self, user_id: str, amount: Decimal, description: str = "Deposit") -> Decimal:
        return await self._ledger.deposit(user_id, amount, description)

    async def get_balance(self, user_id: str) -> Decimal:
        return await self._ledger.get_balance(user_id)

    def credit_history(self, user_id: str, limit: int | None = None) -> list[LedgerEntry]:
        return self._ledger.history(user_id, limit)

    async def order_history(self, user_id: str, exchange: str | None = None) -> list[Order]:
        return await self._lifecycle.order_history(user_id, exchange)

    async def open_orders(self, user_id: str) -> list[Order]:
        return await self._lifecycle.open_orders(user_id)

    async def user_stats(self, user_id: str) -> UserStats:
        return await self._lifecycle.user_stats(user_id)

    # =========================================================================
    # Run loop
    # =========================================================================

    def start(self) -> None:
        """Start the background jobs."""
        self._running = True
        for ticker in self._tickers:
            ticker.start()
        logger.info("Background jobs started")

    async def run(self) -> None:
        """Run until SIGINT/SIGTERM or request_shutdown()."""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self.request_shutdown)

        try:
            self.start()
            await self._shutdown_event.wait()
        except Exception as e:
            logger.error(f"Engine error: {e}")
            raise
        finally:
            await self.shutdown()

    def request_shutdown(self) -> None:
        """Handle shutdown signal."""
        logger.info("Shutdown requested")
        self._shutdown_event.set()

    async def shutdown(self) -> None:
        """Stop jobs and release resources. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._running = False
        logger.info("Shutting down engine...")

        for ticker in self._tickers:
            await ticker.stop()

        await self._event_bus.emit(EventType.SHUTDOWN, self._metrics.to_dict(), source="engine")

        if isinstance(self._feed, RestPriceFeed):
            await self._feed.close()

        logger.info("Engine shutdown complete")
        if self._async_logger:
            self._async_logger.stop()
            self._async_logger = None

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    @property
    def store(self) -> OpportunityStore:
        return self._store

    @property
    def ledger(self) -> BalanceLedger:
        return self._ledger

    @property
    def lifecycle(self) -> OrderLifecycle:
        return self._lifecycle

    @property
    def scanner(self) -> ArbitrageScanner:
        return self._scanner

    @property
    def fee_engine(self) -> FeeEngine:
        return self._fees


@asynccontextmanager
async def create_engine(
    settings: Settings,
    price_feed: PriceFeedPort | None = None,
    execution_port: ExecutionPort | None = None,
    repository: OrderRepository | None = None,
    clock: Clock | None = None,
) -> AsyncIterator[TradingEngine]:
    """
    Create and manage engine lifecycle.

    Usage:
        async with create_engine(settings) as engine:
            await engine.run()
    """
    engine = TradingEngine(settings, price_feed, execution_port, repository, clock)

    try:
        await engine.setup()
        yield engine
    finally:
        await engine.shutdown()
