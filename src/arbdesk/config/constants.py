"""
Trading constants and configuration values.

This module contains all hardcoded values used throughout the arbitrage desk.
Values are organized by category for easy maintenance and auditing.
"""

from decimal import Decimal
from typing import Final


# =============================================================================
# Public Market Data Endpoints
# =============================================================================

BINANCE_REST_URL: Final[str] = "https://api.binance.com"
OKX_REST_URL: Final[str] = "https://www.okx.com"
KUCOIN_REST_URL: Final[str] = "https://api.kucoin.com"
COINBASE_REST_URL: Final[str] = "https://api.exchange.coinbase.com"

ENDPOINT_BINANCE_TICKER_24H: Final[str] = "/api/v3/ticker/24hr"
ENDPOINT_OKX_TICKER: Final[str] = "/api/v5/market/ticker"
ENDPOINT_KUCOIN_STATS: Final[str] = "/api/v1/market/stats"
ENDPOINT_COINBASE_STATS: Final[str] = "/products/{product_id}/stats"

# Per-request timeout for public ticker calls (seconds)
FEED_REQUEST_TIMEOUT: Final[float] = 10.0


# =============================================================================
# Supported Markets
# =============================================================================

SUPPORTED_EXCHANGES: Final[tuple[str, ...]] = ("BINANCE", "OKX", "KUCOIN", "COINBASE")

DEFAULT_SYMBOLS: Final[tuple[str, ...]] = (
    "BTC/USDT",
    "ETH/USDT",
    "SOL/USDT",
    "BNB/USDT",
    "ADA/USDT",
    "XRP/USDT",
    "DOT/USDT",
    "DOGE/USDT",
    "AVAX/USDT",
    "MATIC/USDT",
)


# =============================================================================
# Commissions
# =============================================================================

# Default commission rate when an exchange has no override (0.1%)
DEFAULT_COMMISSION_RATE: Final[Decimal] = Decimal("0.001")

# Taker rates per exchange (keys are lower-case exchange names)
DEFAULT_EXCHANGE_COMMISSION_RATES: Final[dict[str, Decimal]] = {
    "binance": Decimal("0.001"),
    "okx": Decimal("0.001"),
    "kucoin": Decimal("0.001"),
    "coinbase": Decimal("0.006"),
}

# Discount tier name -> fraction of commission waived
DISCOUNT_TIER_NONE: Final[str] = "none"
DISCOUNT_TIER_NATIVE_TOKEN: Final[str] = "native_token"

DEFAULT_DISCOUNT_TIERS: Final[dict[str, Decimal]] = {
    DISCOUNT_TIER_NONE: Decimal("0"),
    DISCOUNT_TIER_NATIVE_TOKEN: Decimal("0.25"),
}

# Currency value of one platform credit
DEFAULT_CREDIT_UNIT_VALUE: Final[Decimal] = Decimal("0.1")

# Decimal places of the smallest currency/credit unit
DEFAULT_COMMISSION_DECIMALS: Final[int] = 8


# =============================================================================
# Opportunity Detection
# =============================================================================

# Minimum spread to report, in percent (0.5%)
DEFAULT_MIN_PROFIT_PERCENT: Final[Decimal] = Decimal("0.5")

# Fraction of 24h volume assumed tradable (0.1%)
DEFAULT_VOLUME_SAMPLE_FRACTION: Final[Decimal] = Decimal("0.001")

DEFAULT_OPPORTUNITY_TTL_SECONDS: Final[float] = 300.0
DEFAULT_SCAN_INTERVAL_SECONDS: Final[float] = 30.0
DEFAULT_SWEEP_INTERVAL_SECONDS: Final[float] = 10.0
DEFAULT_WATCHDOG_INTERVAL_SECONDS: Final[float] = 10.0

# Risk classification thresholds
HIGH_RISK_PROFIT_PERCENT: Final[Decimal] = Decimal("3")
MEDIUM_RISK_PROFIT_PERCENT: Final[Decimal] = Decimal("1.5")
HIGH_RISK_MIN_VOLUME: Final[Decimal] = Decimal("1000")
MEDIUM_RISK_MIN_VOLUME: Final[Decimal] = Decimal("5000")


# =============================================================================
# Order Execution
# =============================================================================

DEFAULT_EXECUTION_TIMEOUT_SECONDS: Final[float] = 30.0

# Orders pending longer than this are force-timed-out by the watchdog
DEFAULT_MAX_PENDING_SECONDS: Final[float] = 120.0

# Simulated fill latency of the paper execution port
PAPER_FILL_LATENCY_SECONDS: Final[float] = 0.05


# =============================================================================
# Logging & Telemetry
# =============================================================================

LOG_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

# Maximum log queue size
MAX_LOG_QUEUE_SIZE: Final[int] = 10_000

# Samples kept per latency metric
METRICS_LATENCY_WINDOW: Final[int] = 1000
