"""
Commission and credit calculation.

Turns a prospective trade into its notional, commission and the number
of platform credits the user has to spend on it. All arithmetic is
Decimal; commission and credits are rounded half-up to the smallest
configured unit.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import TYPE_CHECKING

from arbdesk.config.constants import (
    DEFAULT_COMMISSION_DECIMALS,
    DEFAULT_COMMISSION_RATE,
    DEFAULT_CREDIT_UNIT_VALUE,
    DEFAULT_DISCOUNT_TIERS,
    DEFAULT_EXCHANGE_COMMISSION_RATES,
    DISCOUNT_TIER_NONE,
)
from arbdesk.core.errors import InvalidInputError
from arbdesk.core.types import FeeBreakdown
from arbdesk.utils.math import ZERO, quantum, round_half_up, to_decimal


if TYPE_CHECKING:
    from arbdesk.config.settings import Settings


logger = logging.getLogger(__name__)

ONE = Decimal("1")


@dataclass(slots=True, frozen=True)
class FeeSchedule:
    """
    Immutable fee configuration.

    Exchange keys of `exchange_rates` are lower-case; lookups are
    case-insensitive.
    """

    default_rate: Decimal = DEFAULT_COMMISSION_RATE
    exchange_rates: Mapping[str, Decimal] = field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_EXCHANGE_COMMISSION_RATES))
    )
    discount_tiers: Mapping[str, Decimal] = field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_DISCOUNT_TIERS))
    )
    credit_unit_value: Decimal = DEFAULT_CREDIT_UNIT_VALUE
    decimals: int = DEFAULT_COMMISSION_DECIMALS

    @classmethod
    def from_settings(cls, settings: Settings) -> FeeSchedule:
        """Build the schedule from application settings."""
        return cls(
            default_rate=settings.default_commission_rate,
            exchange_rates=MappingProxyType(
                {k.lower(): v for k, v in settings.exchange_commission_rates.items()}
            ),
            discount_tiers=MappingProxyType(dict(settings.discount_tiers)),
            credit_unit_value=settings.credit_unit_value,
            decimals=settings.commission_decimals,
        )

    def base_rate(self, exchange: str) -> Decimal:
        """Commission rate of an exchange, falling back to the default."""
        return self.exchange_rates.get(exchange.lower(), self.default_rate)

    @property
    def unit(self) -> Decimal:
        """Smallest currency and credit unit."""
        return quantum(self.decimals)


class FeeEngine:
    """
    Quotes commission and credit cost of trades.

    Example:
        >>> engine = FeeEngine(FeeSchedule())
        >>> engine.quote(1, 100, "binance").commission
        Decimal('0.10000000')
    """

    __slots__ = ("_schedule", "_unit")

    def __init__(self, schedule: FeeSchedule | None = None) -> None:
        self._schedule = schedule or FeeSchedule()
        self._unit = self._schedule.unit

    def quote(
        self,
        amount: Decimal | int | float | str,
        price: Decimal | int | float | str,
        exchange: str,
        discount_tier: str = DISCOUNT_TIER_NONE,
    ) -> FeeBreakdown:
        """
        Compute the cost of trading `amount` units at `price` on `exchange`.

        Args:
            amount: Quantity in base units, must be positive.
            price: Unit price, must be positive.
            exchange: Exchange name (case-insensitive).
            discount_tier: Discount tier name. Unknown tiers get no discount.

        Returns:
            FeeBreakdown with total, commission and credit_required.

        Raises:
            InvalidInputError: If amount or price is not a positive number.
        """
        amount_d = self._positive(amount, "amount")
        price_d = self._positive(price, "price")

        total = amount_d * price_d
        base_commission = round_half_up(total * self._schedule.base_rate(exchange), self._unit)
        discount = self._discount(discount_tier)
        commission = round_half_up(base_commission * (ONE - discount), self._unit)
        credit_required = round_half_up(
            commission / self._schedule.credit_unit_value, self._unit
        )

        return FeeBreakdown(
            total=total,
            commission=commission,
            credit_required=credit_required,
            base_commission=base_commission,
            discount=base_commission - commission,
        )

    def _discount(self, tier: str) -> Decimal:
        """Discount fraction of a tier (zero for unknown tiers)."""
        discount = self._schedule.discount_tiers.get(tier)
        if discount is None:
            logger.warning(f"Unknown discount tier '{tier}', applying no discount")
            return ZERO
        return discount

    @staticmethod
    def _positive(value: Decimal | int | float | str, name: str) -> Decimal:
        try:
            result = to_decimal(value)
        except ValueError as e:
            raise InvalidInputError(f"{name} must be a number: {value!r}") from e
        if result <= ZERO:
            raise InvalidInputError(f"{name} must be positive: {value!r}")
        return result

    @property
    def schedule(self) -> FeeSchedule:
        return self._schedule
