"""
Unit tests for FeeEngine.

Tests commission, discount and credit calculation and input validation.
"""

import logging
from decimal import Decimal
from types import MappingProxyType

import pytest

from arbdesk.config.settings import Settings
from arbdesk.core.errors import InvalidInputError
from arbdesk.strategy.fees import FeeEngine, FeeSchedule


class TestFeeSchedule:
    """Tests for FeeSchedule."""

    def test_default_schedule(self) -> None:
        """Test default rates and unit."""
        schedule = FeeSchedule()

        assert schedule.default_rate == Decimal("0.001")
        assert schedule.base_rate("coinbase") == Decimal("0.006")
        assert schedule.credit_unit_value == Decimal("0.1")
        assert schedule.unit == Decimal("0.00000001")

    def test_base_rate_is_case_insensitive(self) -> None:
        """Test exchange lookup ignores case."""
        schedule = FeeSchedule()

        assert schedule.base_rate("COINBASE") == schedule.base_rate("coinbase")

    def test_unknown_exchange_uses_default(self) -> None:
        """Test fallback to the default rate."""
        schedule = FeeSchedule(default_rate=Decimal("0.002"))

        assert schedule.base_rate("bybit") == Decimal("0.002")

    def test_from_settings(self) -> None:
        """Test schedule built from settings."""
        settings = Settings(
            default_commission_rate=Decimal("0.0015"),
            exchange_commission_rates={"Kraken": Decimal("0.0026")},
            credit_unit_value=Decimal("0.5"),
            commission_decimals=6,
        )

        schedule = FeeSchedule.from_settings(settings)

        assert schedule.default_rate == Decimal("0.0015")
        assert schedule.base_rate("kraken") == Decimal("0.0026")
        assert schedule.base_rate("binance") == Decimal("0.0015")
        assert schedule.credit_unit_value == Decimal("0.5")
        assert schedule.unit == Decimal("0.000001")

    def test_schedule_is_read_only(self) -> None:
        """Test rate tables cannot be mutated."""
        schedule = FeeSchedule(exchange_rates=MappingProxyType({"binance": Decimal("0.001")}))

        with pytest.raises(TypeError):
            schedule.exchange_rates["binance"] = Decimal("0")  # type: ignore[index]


class TestFeeEngine:
    """Tests for FeeEngine.quote."""

    @pytest.fixture
    def engine(self) -> FeeEngine:
        return FeeEngine()

    def test_basic_quote(self, engine: FeeEngine) -> None:
        """Test one unit at 100 on a 0.1% venue."""
        fees = engine.quote(Decimal("1"), Decimal("100"), "binance")

        assert fees.total == Decimal("100")
        assert fees.commission == Decimal("0.1")
        assert fees.credit_required == Decimal("1")
        assert fees.discount == Decimal("0")

    def test_native_token_discount(self, engine: FeeEngine) -> None:
        """Test 25% discount tier."""
        fees = engine.quote(Decimal("1"), Decimal("100"), "binance", "native_token")

        assert fees.base_commission == Decimal("0.1")
        assert fees.commission == Decimal("0.075")
        assert fees.discount == Decimal("0.025")
        assert fees.credit_required == Decimal("0.75")

    def test_exchange_override(self, engine: FeeEngine) -> None:
        """Test per-exchange rate override."""
        fees = engine.quote(Decimal("1"), Decimal("100"), "Coinbase")

        assert fees.commission == Decimal("0.6")
        assert fees.credit_required == Decimal("6")

    def test_unknown_tier_applies_no_discount(
        self, engine: FeeEngine, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test unknown tier is logged and ignored."""
        with caplog.at_level(logging.WARNING, logger="arbdesk.strategy.fees"):
            fees = engine.quote(Decimal("2"), Decimal("50"), "binance", "platinum")

        assert fees.commission == Decimal("0.1")
        assert fees.discount == Decimal("0")
        assert "platinum" in caplog.text

    def test_rounds_half_up_to_unit(self, engine: FeeEngine) -> None:
        """Test half a unit rounds up."""
        # 0.000005 * 0.001 = 0.000000005, exactly half of 1e-8
        fees = engine.quote(Decimal("1"), Decimal("0.000005"), "binance")

        assert fees.commission == Decimal("0.00000001")
        assert fees.credit_required == Decimal("0.0000001")

    def test_values_are_quantized(self, engine: FeeEngine) -> None:
        """Test commission and credits carry exactly eight decimals."""
        fees = engine.quote(Decimal("0.123456789"), Decimal("98765.4321"), "okx", "native_token")

        assert fees.commission.as_tuple().exponent == -8
        assert fees.credit_required.as_tuple().exponent == -8

    def test_commission_matches_formula(self, engine: FeeEngine) -> None:
        """Test commission == round(total * rate * (1 - discount))."""
        unit = Decimal("0.00000001")
        for amount, price in [("0.5", "64000"), ("3", "0.15"), ("1234.5678", "1.07")]:
            fees = engine.quote(amount, price, "kucoin", "native_token")
            total = Decimal(amount) * Decimal(price)
            base = (total * Decimal("0.001")).quantize(unit)
            expected = (base * Decimal("0.75")).quantize(unit)

            assert fees.total == total
            assert fees.commission == expected
            assert fees.credit_required == (expected / Decimal("0.1")).quantize(unit)

    def test_accepts_floats_and_strings(self, engine: FeeEngine) -> None:
        """Test non-Decimal numeric inputs."""
        fees = engine.quote(0.1, "3", "binance")

        assert fees.total == Decimal("0.3")

    @pytest.mark.parametrize(
        ("amount", "price"),
        [
            (Decimal("0"), Decimal("100")),
            (Decimal("-1"), Decimal("100")),
            (Decimal("1"), Decimal("0")),
            (Decimal("1"), Decimal("-5")),
            ("abc", Decimal("100")),
            (Decimal("1"), float("nan")),
            (float("inf"), Decimal("100")),
        ],
    )
    def test_invalid_inputs_rejected(
        self, engine: FeeEngine, amount: object, price: object
    ) -> None:
        """Test non-positive and non-numeric inputs raise."""
        with pytest.raises(InvalidInputError):
            engine.quote(amount, price, "binance")  # type: ignore[arg-type]
