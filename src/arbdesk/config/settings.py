"""
Application settings with environment variable support.

Uses Pydantic Settings for type-safe configuration with automatic
environment variable loading and validation.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from arbdesk.config.constants import (
    DEFAULT_COMMISSION_DECIMALS,
    DEFAULT_COMMISSION_RATE,
    DEFAULT_CREDIT_UNIT_VALUE,
    DEFAULT_DISCOUNT_TIERS,
    DEFAULT_EXCHANGE_COMMISSION_RATES,
    DEFAULT_EXECUTION_TIMEOUT_SECONDS,
    DEFAULT_MAX_PENDING_SECONDS,
    DEFAULT_MIN_PROFIT_PERCENT,
    DEFAULT_OPPORTUNITY_TTL_SECONDS,
    DEFAULT_SCAN_INTERVAL_SECONDS,
    DEFAULT_SWEEP_INTERVAL_SECONDS,
    DEFAULT_SYMBOLS,
    DEFAULT_VOLUME_SAMPLE_FRACTION,
    DEFAULT_WATCHDOG_INTERVAL_SECONDS,
    SUPPORTED_EXCHANGES,
)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables. Mappings
    and lists are given as JSON, e.g.
    ``DISCOUNT_TIERS='{"none": 0, "native_token": 0.25}'``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Commission Configuration
    # =========================================================================

    default_commission_rate: Decimal = Field(
        default=DEFAULT_COMMISSION_RATE,
        ge=0,
        le=Decimal("0.05"),
        description="Commission rate for exchanges without an override (0.001 = 0.1%)",
    )

    exchange_commission_rates: dict[str, Decimal] = Field(
        default_factory=lambda: dict(DEFAULT_EXCHANGE_COMMISSION_RATES),
        description="Per-exchange commission rate overrides",
    )

    discount_tiers: dict[str, Decimal] = Field(
        default_factory=lambda: dict(DEFAULT_DISCOUNT_TIERS),
        description="Discount tier name -> fraction of commission waived",
    )

    credit_unit_value: Decimal = Field(
        default=DEFAULT_CREDIT_UNIT_VALUE,
        gt=0,
        description="Currency value of one platform credit",
    )

    commission_decimals: int = Field(
        default=DEFAULT_COMMISSION_DECIMALS,
        ge=0,
        le=18,
        description="Decimal places of the smallest currency unit",
    )

    # =========================================================================
    # Opportunity Detection
    # =========================================================================

    symbols: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SYMBOLS),
        description="Symbols to scan",
    )

    exchanges: list[str] = Field(
        default_factory=lambda: list(SUPPORTED_EXCHANGES),
        description="Exchanges to compare",
    )

    min_profit_percent: Decimal = Field(
        default=DEFAULT_MIN_PROFIT_PERCENT,
        ge=0,
        le=100,
        description="Minimum spread in percent to report an opportunity",
    )

    volume_sample_fraction: Decimal = Field(
        default=DEFAULT_VOLUME_SAMPLE_FRACTION,
        gt=0,
        le=1,
        description="Fraction of 24h volume assumed tradable",
    )

    opportunity_ttl_seconds: float = Field(
        default=DEFAULT_OPPORTUNITY_TTL_SECONDS,
        gt=0,
        description="Lifetime of a detected opportunity",
    )

    scan_interval_seconds: float = Field(
        default=DEFAULT_SCAN_INTERVAL_SECONDS,
        gt=0,
        description="Interval between scan cycles",
    )

    sweep_interval_seconds: float = Field(
        default=DEFAULT_SWEEP_INTERVAL_SECONDS,
        gt=0,
        description="Interval between expiry sweeps",
    )

    watchdog_interval_seconds: float = Field(
        default=DEFAULT_WATCHDOG_INTERVAL_SECONDS,
        gt=0,
        description="Interval between checks for stuck orders and pending refunds",
    )

    # =========================================================================
    # Order Execution
    # =========================================================================

    execution_timeout_seconds: float = Field(
        default=DEFAULT_EXECUTION_TIMEOUT_SECONDS,
        gt=0,
        le=300,
        description="Timeout for a single execution port call",
    )

    max_pending_seconds: float = Field(
        default=DEFAULT_MAX_PENDING_SECONDS,
        gt=0,
        description="Orders pending longer than this are force-timed-out",
    )

    # =========================================================================
    # Operation Mode
    # =========================================================================

    dry_run: bool = Field(
        default=True,
        description="Fill orders on the paper execution port",
    )

    use_rest_feed: bool = Field(
        default=False,
        description="Read public exchange tickers instead of the simulated feed",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )

    log_file: Path | None = Field(
        default=None,
        description="Optional log file path",
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("exchange_commission_rates", mode="after")
    @classmethod
    def validate_commission_rates(cls, v: dict[str, Decimal]) -> dict[str, Decimal]:
        """Normalize exchange keys and bound the rates."""
        normalized: dict[str, Decimal] = {}
        for exchange, rate in v.items():
            if not Decimal("0") <= rate <= Decimal("0.05"):
                raise ValueError(f"Commission rate for {exchange} out of range: {rate}")
            normalized[exchange.lower()] = rate
        return normalized

    @field_validator("discount_tiers", mode="after")
    @classmethod
    def validate_discount_tiers(cls, v: dict[str, Decimal]) -> dict[str, Decimal]:
        """Ensure every discount is a fraction in [0, 1]."""
        for tier, discount in v.items():
            if not Decimal("0") <= discount <= Decimal("1"):
                raise ValueError(f"Discount for tier {tier} must be within [0, 1]: {discount}")
        return v

    @field_validator("symbols", "exchanges", mode="after")
    @classmethod
    def validate_not_empty(cls, v: list[str]) -> list[str]:
        """Ensure the scan universe is not empty."""
        if not v:
            raise ValueError("At least one entry is required")
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def total_universe(self) -> int:
        """Number of (symbol, exchange) quotes requested per scan."""
        return len(self.symbols) * len(self.exchanges)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are loaded only once.
    Clear cache with `get_settings.cache_clear()` if needed.
    """
    return Settings()
