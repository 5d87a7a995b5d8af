"""
Order lifecycle and settlement.

Orders are created PENDING after their commission credit is debited and
move to exactly one terminal state. An order that does not fill gets its
credit back exactly once, whichever path (execution report, timeout,
cancel or watchdog) settles it first.
"""

import asyncio
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import NoReturn

from arbdesk.config.constants import (
    DEFAULT_EXECUTION_TIMEOUT_SECONDS,
    DEFAULT_MAX_PENDING_SECONDS,
    DISCOUNT_TIER_NONE,
)
from arbdesk.core.errors import (
    ArbitrageExecutionError,
    ExecutionError,
    ExecutionFailedError,
    ExecutionTimeoutError,
    InsufficientBalanceError,
    InvalidInputError,
    InvalidOrderStateError,
    OpportunityExpiredError,
    OrderNotFoundError,
    PartialArbitrageFailure,
)
from arbdesk.core.event_bus import EventBus, EventType
from arbdesk.core.types import (
    ArbitrageExecution,
    ArbitrageOpportunity,
    ExecutionPort,
    ExecutionReport,
    FillInfo,
    Order,
    OrderRepository,
    OrderSide,
    OrderStatus,
    OrderType,
    UserStats,
)
from arbdesk.execution.ledger import BalanceLedger
from arbdesk.strategy.fees import FeeEngine
from arbdesk.strategy.opportunity import OpportunityStore
from arbdesk.telemetry.metrics import MetricsCollector
from arbdesk.utils.locks import KeyedLock
from arbdesk.utils.math import ZERO, to_decimal
from arbdesk.utils.time import Clock, get_timestamp_us, seconds_to_us


logger = logging.getLogger(__name__)


STALE_ORDER_REASON = "Execution timed out: pending too long, rejected by watchdog"


def new_order_id() -> str:
    """Generate a unique order id."""
    return uuid.uuid4().hex


@dataclass(slots=True)
class LegOutcome:
    """Result of one arbitrage leg."""

    order: Order | None
    error: BaseException | None = None

    @property
    def filled_order(self) -> Order | None:
        """The leg's order if it filled."""
        if self.order is not None and self.order.is_filled:
            return self.order
        return None


class OrderLifecycle:
    """
    Places, settles and cancels orders.

    Features:
    - Commission credit debited before an order exists
    - Execution under a timeout, failures recorded on the order
    - Idempotent settlement keyed by order id
    - Two-leg arbitrage execution with explicit partial-fill signal
    - Watchdog for orders stuck in PENDING
    """

    def __init__(
        self,
        fee_engine: FeeEngine,
        ledger: BalanceLedger,
        repository: OrderRepository,
        execution_port: ExecutionPort,
        store: OpportunityStore,
        clock: Clock | None = None,
        event_bus: EventBus | None = None,
        metrics: MetricsCollector | None = None,
        execution_timeout: float = DEFAULT_EXECUTION_TIMEOUT_SECONDS,
        max_pending_seconds: float = DEFAULT_MAX_PENDING_SECONDS,
        id_factory: Callable[[], str] = new_order_id,
    ) -> None:
        """
        Initialize order lifecycle.

        Args:
            fee_engine: Commission calculator.
            ledger: Credit balance ledger.
            repository: Order and statistics persistence.
            execution_port: Where orders are sent.
            store: Live opportunities.
            clock: Microsecond clock.
            event_bus: Optional event bus for order events.
            metrics: Optional metrics collector.
            execution_timeout: Seconds to wait for the execution port.
            max_pending_seconds: Age after which the watchdog rejects
                a PENDING order.
            id_factory: Order id generator.
        """
        self._fees = fee_engine
        self._ledger = ledger
        self._repository = repository
        self._port = execution_port
        self._store = store
        self._clock = clock or get_timestamp_us
        self._event_bus = event_bus
        self._metrics = metrics
        self._execution_timeout = execution_timeout
        self._max_pending_us = seconds_to_us(max_pending_seconds)
        self._id_factory = id_factory

        self._order_locks = KeyedLock()

    # =========================================================================
    # Placement
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
        order_type: OrderType = OrderType.MARKET,
        opportunity_id: str | None = None,
    ) -> Order:
        """
        Place an order and wait for its settlement.

        Args:
            user_id: User the commission is charged to.
            exchange: Target exchange.
            symbol: Traded symbol.
            side: BUY or SELL.
            amount: Quantity, must be positive.
            price: Unit price, must be positive.
            discount_tier: Commission discount tier.
            order_type: MARKET or LIMIT.
            opportunity_id: Arbitrage opportunity this order belongs to.

        Returns:
            The order in its terminal state. A REJECTED order carries the
            failure in `reason` and its credit has been refunded.

        Raises:
            InvalidInputError: If amount or price is not positive.
            InsufficientBalanceError: If the balance does not cover the
                credit. No order is created in that case.
        """
        order, _ = await self._place(
            user_id, exchange, symbol, side, amount, price, discount_tier, order_type, opportunity_id
        )
        return order

    async def _place(
        self,
        user_id: str,
        exchange: str,
        symbol: str,
        side: OrderSide,
        amount: Decimal | int | float | str,
        price: Decimal | int | float | str,
        discount_tier: str,
        order_type: OrderType,
        opportunity_id: str | None,
    ) -> tuple[Order, ExecutionError | None]:
        """Place an order; also returns the execution failure, if any."""
        if not exchange or not symbol:
            raise InvalidInputError("Exchange and symbol are required")

        fees = self._fees.quote(amount, price, exchange, discount_tier)
        order_id = self._id_factory()

        if fees.credit_required > ZERO:
            await self._ledger.debit(
                user_id,
                fees.credit_required,
                reference=order_id,
                description=f"Commission for {side.value} {symbol} on {exchange}",
            )

        now_us = self._clock()
        order = Order(
            id=order_id,
            user_id=user_id,
            exchange=exchange,
            symbol=symbol,
            side=side,
            amount=to_decimal(amount),
            price=to_decimal(price),
            total=fees.total,
            commission=fees.commission,
            credit_used=fees.credit_required,
            order_type=order_type,
            opportunity_id=opportunity_id,
            created_at_us=now_us,
            updated_at_us=now_us,
        )

        try:
            await self._repository.save_order(order)
        except Exception:
            if fees.credit_required > ZERO:
                await self._ledger.credit(
                    user_id, fees.credit_required, reference=order_id, description="Order not saved"
                )
            raise

        logger.info(
            f"Order {order_id} placed: {side.value} {order.amount} {symbol} @ {order.price} "
            f"on {exchange}, credit {fees.credit_required}"
        )
        if self._metrics:
            self._metrics.record_order_placed(fees.credit_required)
        await self._emit(EventType.ORDER_PLACED, order)

        report, error = await self._dispatch(order)
        return await self.resolve(order_id, report), error

    async def _dispatch(self, order: Order) -> tuple[ExecutionReport, ExecutionError | None]:
        """Send an order to the execution port under the timeout."""
        start_us = self._clock()
        try:
            report = await asyncio.wait_for(
                self._port.execute(replace(order)), timeout=self._execution_timeout
            )
        except TimeoutError:
            error: ExecutionError = ExecutionTimeoutError(
                f"Execution timed out after {self._execution_timeout}s"
            )
            return ExecutionReport(filled=False, reason=str(error)), error
        except Exception as e:
            error = ExecutionFailedError(f"Execution port error: {e}")
            return ExecutionReport(filled=False, reason=str(error)), error
        finally:
            if self._metrics:
                self._metrics.record_latency("order_execution", self._clock() - start_us)

        if not report.filled:
            error = ExecutionFailedError(report.reason or "Order not filled")
            return report, error
        return report, None

    # =========================================================================
    # Settlement
    # =========================================================================

    async def resolve(self, order_id: str, report: ExecutionReport) -> Order:
        """
        Settle an order from an execution report.

        Reports for orders that are already terminal do not change their
        status, so the same report may safely arrive more than once. If
        such an order still holds a refund that failed earlier, the
        refund is retried.

        Returns:
            The order after settlement.

        Raises:
            OrderNotFoundError: If the order does not exist.
        """
        order, _ = await self._settle(order_id, report)
        return order

    async def _settle(self, order_id: str, report: ExecutionReport) -> tuple[Order, bool]:
        """Apply a report; the flag tells whether this call changed the order."""
        retried = False
        async with self._order_locks.hold(order_id):
            order = await self._require(order_id)
            changed = not order.status.is_terminal
            if changed:
                fill = self._validated_fill(order, report)
                if fill is not None:
                    await self._repository.update_order_status(
                        order_id, OrderStatus.FILLED, filled=fill
                    )
                else:
                    reason = report.reason or "Order not filled"
                    if report.filled:
                        reason = f"Invalid fill report: {report.filled_amount} @ {report.filled_price}"
                    await self._repository.update_order_status(
                        order_id, OrderStatus.REJECTED, reason=reason
                    )
                order = await self._refund(await self._require(order_id))
            elif order.refund_due:
                logger.warning(f"Retrying refund for {order.status.value} order {order_id}")
                order = await self._refund(order)
                retried = True
            else:
                logger.warning(
                    f"Ignoring report for order {order_id}: already {order.status.value}"
                )

        if not changed:
            if retried:
                await self._emit(EventType.CREDIT_REFUNDED, order)
            return order, False
        if order.is_filled:
            await self._on_filled(order)
        else:
            await self._on_rejected(order)
        return order, True

    @staticmethod
    def _validated_fill(order: Order, report: ExecutionReport) -> FillInfo | None:
        """Fill of a report, or None if it is not a usable fill."""
        if not report.filled:
            return None
        amount = report.filled_amount if report.filled_amount is not None else order.amount
        price = report.filled_price if report.filled_price is not None else order.price
        if amount <= ZERO or price <= ZERO:
            return None
        return FillInfo(amount=amount, price=price)

    async def cancel_order(self, order_id: str) -> Order:
        """
        Cancel a PENDING order and refund its credit.

        Raises:
            OrderNotFoundError: If the order does not exist.
            InvalidOrderStateError: If the order is no longer PENDING.
        """
        async with self._order_locks.hold(order_id):
            order = await self._require(order_id)
            if not order.status.can_transition_to(OrderStatus.CANCELLED):
                raise InvalidOrderStateError(order_id, order.status, OrderStatus.CANCELLED)

            await self._repository.update_order_status(
                order_id, OrderStatus.CANCELLED, reason="Cancelled by user"
            )
            order = await self._refund(await self._require(order_id))

        logger.info(f"Order {order_id} cancelled")
        if order.refunded:
            await self._emit(EventType.CREDIT_REFUNDED, order)
        if self._metrics:
            self._metrics.record_order_cancelled()
        await self._emit(EventType.ORDER_CANCELLED, order)
        return order

    async def expire_stale_orders(self) -> list[Order]:
        """
        Reject orders that have been PENDING longer than allowed.

        Also retries refunds that failed on earlier settlements.

        Returns:
            Orders this call moved to REJECTED.
        """
        cutoff_us = self._clock() - self._max_pending_us
        pending = await self._repository.list_orders(status=OrderStatus.PENDING)

        expired: list[Order] = []
        for order in pending:
            if order.created_at_us >= cutoff_us:
                continue
            report = ExecutionReport(filled=False, reason=STALE_ORDER_REASON)
            settled, changed = await self._settle(order.id, report)
            if changed:
                expired.append(settled)

        if expired:
            logger.warning(f"Watchdog rejected {len(expired)} stale orders")
        await self.retry_refunds()
        return expired

    async def retry_refunds(self) -> list[Order]:
        """
        Refund unfilled orders whose refund has not gone through yet.

        A failing refund is logged and left for the next attempt.

        Returns:
            Orders refunded by this call.
        """
        due: list[Order] = []
        for status in (OrderStatus.REJECTED, OrderStatus.CANCELLED):
            orders = await self._repository.list_orders(status=status)
            due.extend(order for order in orders if order.refund_due)

        refunded: list[Order] = []
        for candidate in due:
            try:
                async with self._order_locks.hold(candidate.id):
                    order = await self._require(candidate.id)
                    if not order.refund_due:
                        continue
                    order = await self._refund(order)
            except Exception as e:
                logger.error(f"Refund retry for order {candidate.id} failed: {e}")
                continue
            await self._emit(EventType.CREDIT_REFUNDED, order)
            refunded.append(order)

        if refunded:
            logger.warning(f"Recovered {len(refunded)} pending refunds")
        return refunded

    async def _on_filled(self, order: Order) -> None:
        logger.info(
            f"Order {order.id} filled: {order.filled_amount} @ {order.filled_price}"
        )
        stats = await self._repository.get_stats(order.user_id)
        stats.total_trades += 1
        stats.total_volume += (order.filled_amount or ZERO) * (order.filled_price or ZERO)
        stats.total_commission_paid += order.commission
        await self._repository.save_stats(stats)

        if self._metrics:
            self._metrics.record_order_filled()
        await self._emit(EventType.ORDER_FILLED, order)

    async def _on_rejected(self, order: Order) -> None:
        logger.warning(f"Order {order.id} rejected: {order.reason}")
        if order.refunded:
            await self._emit(EventType.CREDIT_REFUNDED, order)
        if self._metrics:
            self._metrics.record_order_rejected()
        await self._emit(EventType.ORDER_REJECTED, order)

    async def _refund(self, order: Order) -> Order:
        """
        Return an order's credit and record it on the order.

        The caller holds the order's lock. The refunded flag lives in the
        repository, so a refund that raises here stays due and is retried
        by the next settlement attempt or the watchdog.

        Returns:
            The order as stored after the refund.
        """
        if not order.refund_due:
            return order

        await self._ledger.credit(
            order.user_id,
            order.credit_used,
            reference=order.id,
            description=f"Refund for {order.status.value.lower()} order {order.id}",
        )
        await self._repository.mark_refunded(order.id)

        logger.info(f"Refunded {order.credit_used} credits to {order.user_id} for {order.id}")
        if self._metrics:
            self._metrics.record_refund(order.credit_used)
        return await self._require(order.id)

    # =========================================================================
    # Arbitrage
    # =========================================================================

    async def execute_opportunity(
        self,
        opportunity_id: str,
        user_id: str,
        amount: Decimal | int | float | str,
        discount_tier: str = DISCOUNT_TIER_NONE,
    ) -> ArbitrageExecution:
        """
        Execute both legs of an opportunity concurrently.

        Args:
            opportunity_id: Opportunity to trade.
            user_id: User paying the commissions.
            amount: Quantity traded on each leg.
            discount_tier: Commission discount tier.

        Returns:
            ArbitrageExecution when both legs filled.

        Raises:
            OpportunityExpiredError: If the opportunity is unknown or
                expired. Nothing is changed in that case.
            InvalidInputError: If amount is not positive.
            InsufficientBalanceError: If the balance cannot cover both legs.
            PartialArbitrageFailure: If exactly one leg filled. The filled
                leg stays in place; the other leg's credit is refunded.
            ArbitrageExecutionError: If neither leg filled. The opportunity
                stays available until it expires.
        """
        opportunity = self._store.get(opportunity_id)
        if opportunity is None:
            raise OpportunityExpiredError(opportunity_id)

        await self._check_affordable(opportunity, user_id, amount, discount_tier)

        if to_decimal(amount) > opportunity.available_volume:
            logger.warning(
                f"Amount {amount} exceeds available volume {opportunity.available_volume} "
                f"for opportunity {opportunity_id}"
            )

        results = await asyncio.gather(
            self._place(
                user_id,
                opportunity.buy_exchange,
                opportunity.symbol,
                OrderSide.BUY,
                amount,
                opportunity.buy_price,
                discount_tier,
                OrderType.LIMIT,
                opportunity_id,
            ),
            self._place(
                user_id,
                opportunity.sell_exchange,
                opportunity.symbol,
                OrderSide.SELL,
                amount,
                opportunity.sell_price,
                discount_tier,
                OrderType.LIMIT,
                opportunity_id,
            ),
            return_exceptions=True,
        )
        buy, sell = (self._leg_outcome(result) for result in results)
        bought, sold = buy.filled_order, sell.filled_order
        if self._metrics:
            self._metrics.record_arbitrage(int(bought is not None) + int(sold is not None))

        if bought is not None and sold is not None:
            self._store.remove(opportunity_id)
            logger.info(
                f"Arbitrage {opportunity_id} executed: bought on {opportunity.buy_exchange}, "
                f"sold on {opportunity.sell_exchange}"
            )
            return ArbitrageExecution(
                opportunity=opportunity, buy_order=bought, sell_order=sold
            )

        if bought is not None:
            await self._partial_failure(opportunity_id, bought, sell)
        if sold is not None:
            await self._partial_failure(opportunity_id, sold, buy)

        logger.warning(f"Arbitrage {opportunity_id} failed on both legs")
        raise ArbitrageExecutionError(
            opportunity_id,
            buy.order,
            sell.order,
            causes=tuple(leg.error for leg in (buy, sell) if leg.error is not None),
        )

    async def _partial_failure(
        self, opportunity_id: str, filled: Order, failed: LegOutcome
    ) -> NoReturn:
        """Drop the opportunity and raise for a one-legged execution."""
        self._store.remove(opportunity_id)
        error = PartialArbitrageFailure(opportunity_id, filled, failed.order, cause=failed.error)
        logger.error(str(error))
        await self._emit(EventType.PARTIAL_ARBITRAGE, error)
        raise error

    async def _check_affordable(
        self,
        opportunity: ArbitrageOpportunity,
        user_id: str,
        amount: Decimal | int | float | str,
        discount_tier: str,
    ) -> None:
        """Refuse up front if the balance cannot pay for both legs."""
        buy_fees = self._fees.quote(
            amount, opportunity.buy_price, opportunity.buy_exchange, discount_tier
        )
        sell_fees = self._fees.quote(
            amount, opportunity.sell_price, opportunity.sell_exchange, discount_tier
        )
        required = buy_fees.credit_required + sell_fees.credit_required
        available = await self._ledger.get_balance(user_id)
        if available < required:
            raise InsufficientBalanceError(user_id, required, available)

    @staticmethod
    def _leg_outcome(result: tuple[Order, ExecutionError | None] | BaseException) -> LegOutcome:
        if isinstance(result, BaseException):
            return LegOutcome(order=None, error=result)
        order, error = result
        return LegOutcome(order=order, error=error)

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_order(self, order_id: str) -> Order:
        """
        Load an order.

        Raises:
            OrderNotFoundError: If the order does not exist.
        """
        return await self._require(order_id)

    async def order_history(
        self,
        user_id: str,
        exchange: str | None = None,
        limit: int | None = None,
    ) -> list[Order]:
        """A user's orders, newest first, optionally for one exchange."""
        orders = await self._repository.list_orders(user_id=user_id, exchange=exchange)
        return orders if limit is None else orders[:limit]

    async def open_orders(self, user_id: str | None = None) -> list[Order]:
        """Orders still awaiting execution."""
        return await self._repository.list_orders(user_id=user_id, status=OrderStatus.PENDING)

    async def user_stats(self, user_id: str) -> UserStats:
        return await self._repository.get_stats(user_id)

    async def _require(self, order_id: str) -> Order:
        order = await self._repository.get_order(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    async def _emit(self, event_type: EventType, payload: object) -> None:
        if self._event_bus:
            await self._event_bus.emit(event_type, payload, source="lifecycle")
