"""
Decimal utilities for money calculations.

Commissions, credit amounts and prices are carried as Decimal so that
repeated debits and refunds never accumulate floating point drift.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Final


ZERO: Final[Decimal] = Decimal("0")
HUNDRED: Final[Decimal] = Decimal("100")


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """
    Convert a numeric value to Decimal.

    Floats go through their shortest repr so that 0.1 becomes
    Decimal("0.1") rather than its binary expansion.

    Raises:
        ValueError: If the value is not a finite number.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    elif isinstance(value, float):
        result = Decimal(repr(value))
    else:
        try:
            result = Decimal(value)
        except (InvalidOperation, TypeError) as e:
            raise ValueError(f"Not a number: {value!r}") from e

    if not result.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return result


def quantum(decimals: int) -> Decimal:
    """
    Smallest unit for a number of decimal places.

    Example:
        >>> quantum(2)
        Decimal('0.01')
    """
    return Decimal(1).scaleb(-decimals)


def round_half_up(value: Decimal, unit: Decimal) -> Decimal:
    """
    Round to a unit using round-half-up.

    Example:
        >>> round_half_up(Decimal("0.125"), Decimal("0.01"))
        Decimal('0.13')
    """
    return value.quantize(unit, rounding=ROUND_HALF_UP)


def percent_change(low: Decimal, high: Decimal) -> Decimal:
    """
    Percentage gain from buying at low and selling at high.

    Returns:
        (high - low) / low * 100, or zero when low is not positive.
    """
    if low <= ZERO:
        return ZERO
    return (high - low) / low * HUNDRED

