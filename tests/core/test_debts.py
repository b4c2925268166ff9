"""
Tests for the Debt entity and its status graph.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from successionlab.core.currency import Money
from successionlab.core.debts import Debt, DebtStatus, can_transition
from successionlab.core.errors import (
    DebtStateError,
    InvalidAmountError,
    InvalidDebtTransitionError,
    OverpaymentError,
    PercentageOutOfRangeError,
    SecuredDebtError,
)

NOW = datetime(2024, 4, 1, 12, 0, tzinfo=timezone.utc)


def kes(amount):
    return Money(amount, "KES")


def make_debt(**overrides):
    fields = {
        "id": "loan",
        "creditor_name": "Equity Bank",
        "debt_type": "PERSONAL_LOAN",
        "initial_amount": kes(100_000),
    }
    fields.update(overrides)
    return Debt(**fields)


class TestDebtConstruction:
    """Invariants checked when a debt is recorded."""

    def test_defaults(self):
        debt = make_debt()
        assert debt.outstanding_balance == kes(100_000)
        assert debt.total_paid == kes(0)
        assert debt.status is DebtStatus.OUTSTANDING
        assert debt.tier == 5

    def test_amount_must_be_positive(self):
        with pytest.raises(InvalidAmountError):
            make_debt(initial_amount=kes(0))

    def test_outstanding_cannot_exceed_initial(self):
        with pytest.raises(InvalidAmountError):
            make_debt(outstanding_balance=kes(100_001))

    def test_interest_rate_is_a_fraction(self):
        assert make_debt(interest_rate=0.12).interest_rate == Decimal("0.12")
        with pytest.raises(PercentageOutOfRangeError):
            make_debt(interest_rate=12)

    def test_secured_debt_needs_asset(self):
        with pytest.raises(SecuredDebtError):
            make_debt(is_secured=True)
        secured = make_debt(is_secured=True, secured_asset_id="car")
        assert secured.tier == 3


class TestDebtPayments:
    """Balance bookkeeping."""

    def test_partial_then_full_payment(self):
        debt = make_debt()
        assert debt.record_payment(kes(40_000), NOW) is False
        assert debt.status is DebtStatus.PARTIALLY_PAID
        assert debt.outstanding_balance == kes(60_000)

        assert debt.record_payment(kes(60_000), NOW) is True
        assert debt.status is DebtStatus.SETTLED
        assert debt.total_paid == kes(100_000)
        assert debt.last_payment_date == NOW.date()
        assert debt.liability() == kes(0)

    def test_overpayment_is_rejected(self):
        debt = make_debt()
        with pytest.raises(OverpaymentError):
            debt.record_payment(kes(100_000.01), NOW)
        assert debt.outstanding_balance == kes(100_000)

    def test_non_positive_payment_is_rejected(self):
        with pytest.raises(InvalidAmountError):
            make_debt().record_payment(kes(0), NOW)

    def test_disputed_debt_does_not_accept_payments(self):
        debt = make_debt()
        debt.dispute("Amount not owed", NOW)
        with pytest.raises(DebtStateError):
            debt.record_payment(kes(1), NOW)


class TestDebtStatusGraph:
    """Allowed and forbidden transitions."""

    def test_graph(self):
        assert can_transition(DebtStatus.OUTSTANDING, DebtStatus.DISPUTED)
        assert can_transition(DebtStatus.UNDER_REVIEW, DebtStatus.FORGIVEN)
        assert not can_transition(DebtStatus.SETTLED, DebtStatus.OUTSTANDING)
        assert not can_transition(DebtStatus.PARTIALLY_PAID, DebtStatus.STATUTE_BARRED)

    def test_terminal_states_are_final(self):
        debt = make_debt()
        debt.write_off(NOW)
        with pytest.raises(InvalidDebtTransitionError):
            debt.transition(DebtStatus.OUTSTANDING, NOW)

    def test_cannot_settle_with_balance_outstanding(self):
        debt = make_debt()
        with pytest.raises(DebtStateError, match="record a payment"):
            debt.transition(DebtStatus.SETTLED, NOW)
        assert debt.status is DebtStatus.OUTSTANDING

    def test_statute_bar_moves_debt_to_tier_six(self):
        debt = make_debt(debt_type="TAX_OBLIGATION")
        assert debt.tier == 4
        debt.mark_statute_barred(NOW)
        assert debt.tier == 6
        assert debt.liability() == kes(0)
        assert not debt.is_critical()

    def test_dispute_needs_reason_and_resolves(self):
        debt = make_debt()
        with pytest.raises(DebtStateError):
            debt.dispute("   ", NOW)
        debt.dispute("Duplicate invoice", NOW)
        assert debt.dispute_reason == "Duplicate invoice"
        assert debt.resolve_dispute(upheld=False, now=NOW) is DebtStatus.WRITTEN_OFF
        assert debt.dispute_reason is None

    def test_resolving_undisputed_debt_fails(self):
        with pytest.raises(DebtStateError):
            make_debt().resolve_dispute(upheld=True, now=NOW)


class TestDebtPersistence:
    def test_dict_round_trip_keeps_priority_and_balance(self):
        debt = make_debt(created_at=NOW, updated_at=NOW)
        debt.record_payment(kes(25_000), NOW)
        restored = Debt.from_dict(debt.to_dict())
        assert restored.outstanding_balance == kes(75_000)
        assert restored.status is DebtStatus.PARTIALLY_PAID
        assert restored.priority == debt.priority
        assert restored.created_at == NOW
