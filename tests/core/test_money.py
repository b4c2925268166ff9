"""
Tests for Money arithmetic, rounding and allocation.
"""

from decimal import Decimal

import pytest

from successionlab.core.currency import (
    Currency,
    CurrencyMismatchError,
    Money,
    RoundingPolicy,
    as_money,
    get_currency,
)


class TestMoneyConstruction:
    """Quantization and currency lookup."""

    def test_value_is_quantized_to_currency_precision(self):
        assert Money("1.005", "KES").value == Decimal("1.00")  # Banker's rounding
        assert Money("1.015", "KES").value == Decimal("1.02")
        assert Money("123.5", "UGX").value == Decimal("124")

    def test_half_up_policy(self):
        kes_half_up = Currency("KES", decimals=2, rounding=RoundingPolicy.HALF_UP)
        assert Money("1.005", kes_half_up).value == Decimal("1.01")

    def test_unknown_currency_defaults_to_two_decimals(self):
        assert get_currency("tzs").decimals == 2
        assert get_currency("tzs").code == "TZS"

    def test_money_is_immutable(self):
        money = Money(10, "KES")
        with pytest.raises(AttributeError):
            money.value = Decimal("20")

    def test_as_money_passes_money_through(self):
        money = Money(5, "USD")
        assert as_money(money, "KES") is money
        assert as_money("7.5", "KES") == Money("7.50", "KES")

    def test_dict_round_trip(self):
        money = Money("1234.56", "KES")
        assert money.to_dict() == {"amount": "1234.56", "currency": "KES"}
        assert Money.from_dict(money.to_dict()) == money


class TestMoneyArithmetic:
    """Same-currency arithmetic and mismatches."""

    def test_add_and_subtract(self):
        assert Money(100, "KES") + Money("0.50", "KES") == Money("100.50", "KES")
        assert Money(100, "KES") - Money(150, "KES") == Money(-50, "KES")

    def test_mixed_currencies_raise(self):
        with pytest.raises(CurrencyMismatchError):
            Money(1, "KES") + Money(1, "USD")
        with pytest.raises(CurrencyMismatchError):
            Money(1, "KES") < Money(1, "USD")

    def test_mismatch_is_an_estate_error(self):
        from successionlab.core.errors import EstateError

        with pytest.raises(EstateError) as exc_info:
            Money(1, "KES") + Money(1, "USD")
        assert isinstance(exc_info.value, ValueError)
        assert exc_info.value.left == "KES"
        assert exc_info.value.right == "USD"

    def test_foreign_payment_caught_as_estate_error(self, estate):
        from successionlab.core.errors import EstateError

        estate.deposit_cash(1_000)
        estate.add_debt("Clinic", "MEDICAL_BILL", 500, debt_id="bill")
        version = estate.version
        with pytest.raises(EstateError):
            estate.pay_debt("bill", Money(10, "USD"))
        assert estate.version == version

    def test_subtract_clamped_never_negative(self):
        assert Money(10, "KES").subtract_clamped(Money(25, "KES")) == Money.zero("KES")
        assert Money(30, "KES").subtract_clamped(Money(25, "KES")) == Money(5, "KES")

    def test_percentage_and_divide(self):
        assert Money(900_000, "KES").percentage(10) == Money(90_000, "KES")
        assert Money(100, "KES").divide(3) == Money("33.33", "KES")
        with pytest.raises(ZeroDivisionError):
            Money(1, "KES").divide(0)

    def test_ratio_to_zero_is_none(self):
        assert Money(5, "KES").ratio_to(Money.zero("KES")) is None
        assert Money(50, "KES").ratio_to(Money(200, "KES")) == Decimal("0.25")

    def test_sum_of_empty_iterable_is_zero(self):
        assert Money.sum([], "KES") == Money.zero("KES")

    def test_format(self):
        assert Money(1_000, "KES").format() == "KES 1,000.00"
        assert Money(2_500, "UGX").format() == "UGX 2,500"


class TestMoneyAllocate:
    """Remainder-preserving allocation."""

    def test_two_to_one_split_is_exact(self):
        parts = Money(900_000, "KES").allocate([2, 1])
        assert parts == [Money(600_000, "KES"), Money(300_000, "KES")]

    def test_leftover_cents_go_to_largest_remainders(self):
        parts = Money(100, "KES").allocate([1, 1, 1])
        assert parts == [Money("33.34", "KES"), Money("33.33", "KES"), Money("33.33", "KES")]
        assert Money.sum(parts, "KES") == Money(100, "KES")

    def test_zero_weight_receives_nothing(self):
        parts = Money(10, "KES").allocate([0, 1])
        assert parts == [Money.zero("KES"), Money(10, "KES")]

    def test_negative_amount_keeps_sign(self):
        parts = Money(-10, "KES").allocate([1, 2])
        assert Money.sum(parts, "KES") == Money(-10, "KES")
        assert all(p.is_negative() for p in parts)

    @pytest.mark.parametrize("ratios", [[], [0, 0], [1, -1]])
    def test_invalid_ratios(self, ratios):
        with pytest.raises(ValueError):
            Money(10, "KES").allocate(ratios)
