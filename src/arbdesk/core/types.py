"""
Type definitions for the arbitrage desk.

This module contains all dataclasses, enums and Protocol definitions
used throughout the application. Market values are Decimal; timestamps
are integer microseconds since the Unix epoch.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Protocol

from arbdesk.config.constants import (
    HIGH_RISK_MIN_VOLUME,
    HIGH_RISK_PROFIT_PERCENT,
    MEDIUM_RISK_MIN_VOLUME,
    MEDIUM_RISK_PROFIT_PERCENT,
)


# =============================================================================
# Enums
# =============================================================================


class OrderSide(str, Enum):
    """Order side enumeration."""

    BUY = "BUY"
    SELL = "SELL"


class OrderType(str, Enum):
    """Order type enumeration."""

    MARKET = "MARKET"
    LIMIT = "LIMIT"


class OrderStatus(str, Enum):
    """Order lifecycle status."""

    PENDING = "PENDING"
    FILLED = "FILLED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        """Check if no further transition is possible."""
        return self is not OrderStatus.PENDING

    def can_transition_to(self, target: "OrderStatus") -> bool:
        """Check the transition table."""
        return target in ORDER_TRANSITIONS[self]


ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset(
        {OrderStatus.FILLED, OrderStatus.REJECTED, OrderStatus.CANCELLED}
    ),
    OrderStatus.FILLED: frozenset(),
    OrderStatus.REJECTED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


class RiskLevel(str, Enum):
    """Coarse risk classification of an opportunity."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class LedgerEntryKind(str, Enum):
    """Direction of a credit balance movement."""

    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


# =============================================================================
# Market Data Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class PriceQuote:
    """
    Last price and 24h volume of a symbol on one exchange.

    Produced per poll and discarded after the scan cycle.
    """

    exchange: str
    symbol: str
    price: Decimal
    volume_24h: Decimal
    observed_at_us: int


# =============================================================================
# Opportunity Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class ArbitrageOpportunity:
    """
    Detected cross-exchange spread.

    Frozen so that copies handed out by the store cannot alter it.
    Invariant: buy_price < sell_price and
    profit_pct == (sell_price - buy_price) / buy_price * 100.
    """

    id: str
    symbol: str
    buy_exchange: str
    sell_exchange: str
    buy_price: Decimal
    sell_price: Decimal
    profit_pct: Decimal
    available_volume: Decimal
    created_at_us: int
    expires_at_us: int

    @property
    def spread(self) -> Decimal:
        """Absolute price difference between the two venues."""
        return self.sell_price - self.buy_price

    def estimated_profit(self, amount: Decimal) -> Decimal:
        """Gross profit for trading amount units, before commissions."""
        return self.spread * amount

    def is_expired(self, now_us: int) -> bool:
        """An opportunity stays executable up to and including expires_at_us."""
        return now_us > self.expires_at_us

    def time_left_us(self, now_us: int) -> int:
        """Remaining lifetime, never negative."""
        return max(0, self.expires_at_us - now_us)

    @property
    def risk_level(self) -> RiskLevel:
        """Classify by spread size and available volume."""
        if (
            self.profit_pct > HIGH_RISK_PROFIT_PERCENT
            or self.available_volume < HIGH_RISK_MIN_VOLUME
        ):
            return RiskLevel.HIGH
        if (
            self.profit_pct > MEDIUM_RISK_PROFIT_PERCENT
            or self.available_volume < MEDIUM_RISK_MIN_VOLUME
        ):
            return RiskLevel.MEDIUM
        return RiskLevel.LOW


# =============================================================================
# Fee Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class FeeBreakdown:
    """Cost of a prospective trade."""

    total: Decimal
    commission: Decimal
    credit_required: Decimal
    base_commission: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")


# =============================================================================
# Order Types
# =============================================================================


@dataclass(slots=True)
class Order:
    """
    Order placed on behalf of a user.

    Mutated only by the order lifecycle while it moves from PENDING to
    exactly one terminal status.
    """

    id: str
    user_id: str
    exchange: str
    symbol: str
    side: OrderSide
    amount: Decimal
    price: Decimal
    total: Decimal
    commission: Decimal
    credit_used: Decimal
    order_type: OrderType = OrderType.MARKET
    status: OrderStatus = OrderStatus.PENDING
    filled_amount: Decimal | None = None
    filled_price: Decimal | None = None
    reason: str = ""
    opportunity_id: str | None = None
    refunded: bool = False
    created_at_us: int = 0
    updated_at_us: int = 0

    @property
    def is_filled(self) -> bool:
        """Check if the order was filled."""
        return self.status == OrderStatus.FILLED

    @property
    def is_open(self) -> bool:
        """Check if the order still awaits execution."""
        return self.status == OrderStatus.PENDING

    @property
    def refund_due(self) -> bool:
        """Check if the order ended unfilled and its credit is still held."""
        return (
            self.status in (OrderStatus.REJECTED, OrderStatus.CANCELLED)
            and self.credit_used > 0
            and not self.refunded
        )

    def to_dict(self) -> dict[str, object]:
        """Convert to a JSON-friendly dict."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "exchange": self.exchange,
            "symbol": self.symbol,
            "side": self.side.value,
            "order_type": self.order_type.value,
            "amount": str(self.amount),
            "price": str(self.price),
            "total": str(self.total),
            "commission": str(self.commission),
            "credit_used": str(self.credit_used),
            "status": self.status.value,
            "filled_amount": None if self.filled_amount is None else str(self.filled_amount),
            "filled_price": None if self.filled_price is None else str(self.filled_price),
            "reason": self.reason,
            "opportunity_id": self.opportunity_id,
            "refunded": self.refunded,
            "created_at_us": self.created_at_us,
            "updated_at_us": self.updated_at_us,
        }


@dataclass(slots=True, frozen=True)
class FillInfo:
    """Executed amount and price of a filled order."""

    amount: Decimal
    price: Decimal


@dataclass(slots=True, frozen=True)
class ExecutionReport:
    """Outcome reported by an execution port."""

    filled: bool
    filled_amount: Decimal | None = None
    filled_price: Decimal | None = None
    reason: str = ""


@dataclass(slots=True)
class ArbitrageExecution:
    """Both legs of an executed opportunity."""

    opportunity: ArbitrageOpportunity
    buy_order: Order
    sell_order: Order

    @property
    def total_credit_used(self) -> Decimal:
        """Credit consumed by both legs."""
        return self.buy_order.credit_used + self.sell_order.credit_used

    @property
    def gross_profit(self) -> Decimal:
        """Sell proceeds minus buy cost at the filled prices."""
        buy = self.buy_order
        sell = self.sell_order
        buy_cost = (buy.filled_amount or Decimal("0")) * (buy.filled_price or Decimal("0"))
        proceeds = (sell.filled_amount or Decimal("0")) * (sell.filled_price or Decimal("0"))
        return proceeds - buy_cost


# =============================================================================
# Balance Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class UserBalance:
    """Credit balance of a user."""

    user_id: str
    credit_balance: Decimal


@dataclass(slots=True, frozen=True)
class LedgerEntry:
    """Single credit balance movement."""

    user_id: str
    kind: LedgerEntryKind
    amount: Decimal
    balance_after: Decimal
    timestamp_us: int
    reference: str = ""
    description: str = ""


@dataclass(slots=True)
class UserStats:
    """Running trading totals of a user."""

    user_id: str
    total_trades: int = 0
    total_volume: Decimal = field(default_factory=lambda: Decimal("0"))
    total_commission_paid: Decimal = field(default_factory=lambda: Decimal("0"))


# =============================================================================
# Protocols (Interfaces)
# =============================================================================


class PriceFeedPort(Protocol):
    """Source of current price and volume per (exchange, symbol)."""

    async def get_quote(self, exchange: str, symbol: str) -> PriceQuote:
        """Fetch a quote; raises FeedUnavailableError when none is available."""
        ...


class ExecutionPort(Protocol):
    """Places an order on an exchange. Treated as untrusted and unreliable."""

    async def execute(self, order: Order) -> ExecutionReport:
        """Execute the order and report the fill outcome."""
        ...


class OrderRepository(Protocol):
    """Persistence consumed by the ledger and the order lifecycle."""

    async def save_order(self, order: Order) -> None:
        """Persist a new order."""
        ...

    async def update_order_status(
        self,
        order_id: str,
        status: OrderStatus,
        filled: FillInfo | None = None,
        reason: str = "",
    ) -> None:
        """Persist a status transition."""
        ...

    async def mark_refunded(self, order_id: str) -> None:
        """Record that an order's credit was returned."""
        ...

    async def get_order(self, order_id: str) -> Order | None:
        """Load an order."""
        ...

    async def list_orders(
        self,
        user_id: str | None = None,
        exchange: str | None = None,
        status: OrderStatus | None = None,
    ) -> list[Order]:
        """List orders, newest first."""
        ...

    async def get_balance(self, user_id: str) -> Decimal:
        """Load a credit balance (zero for unknown users)."""
        ...

    async def set_balance(self, user_id: str, amount: Decimal) -> None:
        """Store a credit balance."""
        ...

    async def get_stats(self, user_id: str) -> UserStats:
        """Load trading totals."""
        ...

    async def save_stats(self, stats: UserStats) -> None:
        """Store trading totals."""
        ...
