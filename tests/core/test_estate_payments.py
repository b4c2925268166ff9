"""
Tests for paying estate debts in S.45 order.
"""

import pytest

from successionlab.core.currency import Money
from successionlab.core.debts import DebtStatus
from successionlab.core.errors import (
    DebtStateError,
    EstateFrozenError,
    InsufficientLiquidityError,
    InvalidAmountError,
    NotFoundError,
    OverpaymentError,
    Section45ViolationError,
)
from successionlab.core.events import EventKind


def kes(amount):
    return Money(amount, "KES")


@pytest.fixture
def scenario_a(estate):
    """Cash 100,000; funeral debt A of 50,000; credit card debt B of 30,000."""
    estate.deposit_cash(100_000, source="Deceased's M-Pesa")
    estate.add_debt("Lee Funeral Services", "FUNERAL_EXPENSE", 50_000, debt_id="A")
    estate.add_debt("KCB Credit Card", "CREDIT_CARD", 30_000, debt_id="B")
    return estate


class TestSection45Order:
    """A lower tier cannot be paid while a higher tier is outstanding."""

    def test_paying_lower_tier_first_is_refused(self, scenario_a):
        with pytest.raises(Section45ViolationError) as exc_info:
            scenario_a.pay_debt("B", 10_000)

        err = exc_info.value
        assert err.debt_id == "B"
        assert err.debt_tier == 5
        assert err.blocking_debt_id == "A"
        assert err.blocking_tier == 1
        assert err.blocking_creditor == "Lee Funeral Services"

    def test_paying_highest_tier_settles_and_debits_cash(self, scenario_a):
        events = scenario_a.pay_debt("A", 50_000)

        assert scenario_a.get_debt("A").status is DebtStatus.SETTLED
        assert scenario_a.cash_on_hand == kes(50_000)
        assert [e.kind for e in events] == [
            EventKind.DEBT_PAYMENT_RECORDED,
            EventKind.DEBT_SETTLED,
        ]
        assert events[0].meta["debt_id"] == "A"

    def test_lower_tier_payable_once_higher_tier_settled(self, scenario_a):
        scenario_a.pay_debt("A", 50_000)
        scenario_a.pay_debt("B", 10_000)
        assert scenario_a.get_debt("B").outstanding_balance == kes(20_000)
        assert scenario_a.get_debt("B").status is DebtStatus.PARTIALLY_PAID

    def test_only_outstanding_debts_block(self, scenario_a):
        scenario_a.pay_debt("A", 20_000)
        assert scenario_a.get_debt("A").status is DebtStatus.PARTIALLY_PAID
        scenario_a.pay_debt("B", 5_000)
        assert scenario_a.cash_on_hand == kes(75_000)

    def test_same_tier_debts_do_not_block_each_other(self, estate):
        estate.deposit_cash(10_000)
        estate.add_debt("Nairobi Hospital", "MEDICAL_BILL", 4_000, debt_id="hospital")
        estate.add_debt("Kenya Power", "UTILITY_BILLS", 2_000, debt_id="power")
        estate.pay_debt("power", 2_000)
        assert estate.get_debt("hospital").status is DebtStatus.OUTSTANDING

    def test_disputed_or_barred_higher_tier_does_not_block(self, scenario_a):
        scenario_a.dispute_debt("A", "Invoice inflated")
        scenario_a.pay_debt("B", 30_000)
        assert scenario_a.get_debt("B").status is DebtStatus.SETTLED

    def test_secured_personal_loan_ranks_above_taxes(self, estate):
        estate.deposit_cash(50_000)
        estate.add_asset("Toyota Probox", "VEHICLE", 900_000, asset_id="car")
        estate.add_debt(
            "Equity Bank", "PERSONAL_LOAN", 20_000, is_secured=True, secured_asset_id="car", debt_id="loan"
        )
        estate.add_debt("County Government", "LAND_RATES", 5_000, debt_id="rates")
        with pytest.raises(Section45ViolationError):
            estate.pay_debt("rates", 5_000)
        estate.pay_debt("loan", 20_000)
        estate.pay_debt("rates", 5_000)


class TestPaymentGuards:
    """Guard order and atomicity of failed payments."""

    def test_frozen_estate_checked_before_amount(self, scenario_a):
        scenario_a.freeze("Court injunction")
        with pytest.raises(EstateFrozenError):
            scenario_a.pay_debt("missing", -5)

    def test_amount_checked_before_lookup(self, scenario_a):
        with pytest.raises(InvalidAmountError):
            scenario_a.pay_debt("missing", 0)

    def test_lookup_checked_before_liquidity(self, scenario_a):
        with pytest.raises(NotFoundError):
            scenario_a.pay_debt("missing", 1_000_000)

    def test_liquidity_checked_before_priority(self, scenario_a):
        with pytest.raises(InsufficientLiquidityError):
            scenario_a.pay_debt("B", 150_000)

    def test_overpayment_is_rejected(self, scenario_a):
        with pytest.raises(OverpaymentError):
            scenario_a.pay_debt("A", 60_000)

    def test_settled_debt_cannot_be_paid_again(self, scenario_a):
        scenario_a.pay_debt("A", 50_000)
        with pytest.raises(DebtStateError):
            scenario_a.pay_debt("A", 1)

    def test_failed_payment_leaves_estate_unchanged(self, scenario_a):
        version = scenario_a.version
        snapshot = scenario_a.to_snapshot()
        with pytest.raises(Section45ViolationError):
            scenario_a.pay_debt("B", 10_000)
        assert scenario_a.version == version
        assert scenario_a.to_snapshot() == snapshot

    def test_currency_of_payment_must_match(self, scenario_a):
        with pytest.raises(ValueError):
            scenario_a.pay_debt("A", Money(100, "USD"))


class TestNetValue:
    """Net value follows payments without moving."""

    def test_payment_does_not_change_net_value(self, scenario_a):
        before = scenario_a.get_net_value()
        scenario_a.pay_debt("A", 50_000)
        assert scenario_a.get_net_value() == before == kes(20_000)

    def test_net_value_is_idempotent(self, scenario_a):
        assert scenario_a.get_net_value() == scenario_a.get_net_value()
