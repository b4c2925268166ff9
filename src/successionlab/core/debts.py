"""
Debt ledger entity and its status graph.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from .currency import Money
from .errors import (
    DebtStateError,
    InvalidAmountError,
    InvalidDebtTransitionError,
    OverpaymentError,
    PercentageOutOfRangeError,
    SecuredDebtError,
)
from .priority import DebtPriority, DebtTier, DebtType
from .utils import iso, to_date, to_datetime, utcnow


class DebtStatus(str, Enum):
    OUTSTANDING = "OUTSTANDING"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    DISPUTED = "DISPUTED"
    PENDING_VERIFICATION = "PENDING_VERIFICATION"
    IN_COLLECTION = "IN_COLLECTION"
    UNDER_REVIEW = "UNDER_REVIEW"
    SETTLED = "SETTLED"
    WRITTEN_OFF = "WRITTEN_OFF"
    FORGIVEN = "FORGIVEN"
    STATUTE_BARRED = "STATUTE_BARRED"
    DISCHARGED = "DISCHARGED"
    CONVERTED = "CONVERTED"


TERMINAL_STATUSES = frozenset(
    {
        DebtStatus.SETTLED,
        DebtStatus.WRITTEN_OFF,
        DebtStatus.FORGIVEN,
        DebtStatus.STATUTE_BARRED,
        DebtStatus.DISCHARGED,
        DebtStatus.CONVERTED,
    }
)

PAYABLE_STATUSES = frozenset(
    {DebtStatus.OUTSTANDING, DebtStatus.PARTIALLY_PAID, DebtStatus.IN_COLLECTION}
)

ALLOWED_TRANSITIONS: dict[DebtStatus, frozenset[DebtStatus]] = {
    DebtStatus.OUTSTANDING: frozenset(
        {
            DebtStatus.PARTIALLY_PAID,
            DebtStatus.DISPUTED,
            DebtStatus.PENDING_VERIFICATION,
            DebtStatus.IN_COLLECTION,
            DebtStatus.SETTLED,
            DebtStatus.WRITTEN_OFF,
            DebtStatus.STATUTE_BARRED,
        }
    ),
    DebtStatus.PARTIALLY_PAID: frozenset(
        {
            DebtStatus.SETTLED,
            DebtStatus.DISPUTED,
            DebtStatus.IN_COLLECTION,
            DebtStatus.WRITTEN_OFF,
        }
    ),
    DebtStatus.DISPUTED: frozenset(
        {DebtStatus.OUTSTANDING, DebtStatus.UNDER_REVIEW, DebtStatus.WRITTEN_OFF}
    ),
    DebtStatus.PENDING_VERIFICATION: frozenset(
        {DebtStatus.OUTSTANDING, DebtStatus.DISPUTED, DebtStatus.WRITTEN_OFF}
    ),
    DebtStatus.IN_COLLECTION: frozenset(
        {
            DebtStatus.PARTIALLY_PAID,
            DebtStatus.SETTLED,
            DebtStatus.DISPUTED,
            DebtStatus.WRITTEN_OFF,
        }
    ),
    DebtStatus.UNDER_REVIEW: frozenset(
        {
            DebtStatus.OUTSTANDING,
            DebtStatus.WRITTEN_OFF,
            DebtStatus.FORGIVEN,
            DebtStatus.DISCHARGED,
            DebtStatus.CONVERTED,
        }
    ),
}


def can_transition(current: DebtStatus, target: DebtStatus) -> bool:
    """True when the status graph allows ``current`` -> ``target``."""
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


@dataclass
class Debt:
    """
    A liability of the estate, ranked by S.45 priority.

    Invariant: ``0 <= outstanding_balance <= initial_amount``. Balances are
    only reduced through ``record_payment``; write-offs and statute bars
    leave the balance on record but stop it counting as a liability.

    Attributes:
        id: Entity id, unique within the estate
        creditor_name: Who the debt is owed to
        debt_type: Kind of liability (drives the S.45 tier)
        initial_amount: Amount owed at the date of death
        outstanding_balance: Amount still owed
        interest_rate: Annual rate as a fraction in [0, 1]
        priority: Statutory rank
        is_secured: True when charged against an estate asset
        secured_asset_id: The charged asset (required when secured)
        status: Position in the debt status graph
        total_paid: Running total of payments recorded
    """

    id: str
    creditor_name: str
    debt_type: DebtType
    initial_amount: Money
    outstanding_balance: Money | None = None
    interest_rate: Decimal = Decimal("0")
    priority: DebtPriority | None = None
    is_secured: bool = False
    secured_asset_id: str | None = None
    status: DebtStatus = DebtStatus.OUTSTANDING
    total_paid: Money | None = None
    last_payment_date: date | None = None
    dispute_reason: str | None = None
    description: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        self.debt_type = DebtType(self.debt_type)
        self.status = DebtStatus(self.status)
        self.interest_rate = Decimal(str(self.interest_rate))
        currency = self.initial_amount.currency
        if self.outstanding_balance is None:
            self.outstanding_balance = self.initial_amount
        if self.total_paid is None:
            self.total_paid = Money.zero(currency)
        if self.priority is None:
            if self.status is DebtStatus.STATUTE_BARRED:
                self.priority = DebtPriority.statute_barred()
            else:
                self.priority = DebtPriority.for_debt(self.debt_type, self.is_secured)

        if not self.initial_amount.is_positive():
            raise InvalidAmountError(self.initial_amount, "Debt amount must be positive")
        if self.outstanding_balance.is_negative() or self.outstanding_balance > self.initial_amount:
            raise InvalidAmountError(
                self.outstanding_balance,
                f"Outstanding balance must lie between 0 and {self.initial_amount}",
            )
        if not Decimal("0") <= self.interest_rate <= Decimal("1"):
            raise PercentageOutOfRangeError(
                "interest_rate", self.interest_rate, Decimal("0"), Decimal("1")
            )
        if self.is_secured and not self.secured_asset_id:
            raise SecuredDebtError(f"Secured debt {self.id} must reference a secured asset")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def tier(self) -> DebtTier:
        return self.priority.tier

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_open(self) -> bool:
        return not self.is_terminal

    @property
    def is_payable(self) -> bool:
        return self.status in PAYABLE_STATUSES

    @property
    def is_disputed(self) -> bool:
        return self.status is DebtStatus.DISPUTED

    @property
    def is_statute_barred(self) -> bool:
        return self.status is DebtStatus.STATUTE_BARRED

    def is_critical(self) -> bool:
        """Critical tier with money still owed."""
        return self.priority.is_critical() and self.is_open and self.outstanding_balance.is_positive()

    def liability(self) -> Money:
        """Balance that counts against the estate (zero once terminal)."""
        if self.is_terminal:
            return Money.zero(self.initial_amount.currency)
        return self.outstanding_balance

    # ------------------------------------------------------------------
    # State changes (called by Estate only)
    # ------------------------------------------------------------------

    def _check_transition(self, target: DebtStatus) -> None:
        if not can_transition(self.status, target):
            raise InvalidDebtTransitionError(self.id, self.status.value, target.value)

    def check_payment(self, amount: Money) -> None:
        """Raise if ``amount`` could not be recorded against this debt."""
        if not amount.is_positive():
            raise InvalidAmountError(amount)
        if not self.is_payable:
            raise DebtStateError(self.id, self.status.value, "debt is not accepting payments")
        if amount > self.outstanding_balance:
            raise OverpaymentError(self.id, amount, self.outstanding_balance)

    def record_payment(self, amount: Money, now: datetime) -> bool:
        """
        Apply a payment to the balance.

        Returns:
            True when the debt is settled by this payment
        """
        self.check_payment(amount)
        self.outstanding_balance = self.outstanding_balance - amount
        self.total_paid = self.total_paid + amount
        self.last_payment_date = now.date()
        self.updated_at = now
        if self.outstanding_balance.is_zero():
            self.status = DebtStatus.SETTLED
            return True
        self.status = DebtStatus.PARTIALLY_PAID
        return False

    def transition(self, target: DebtStatus | str, now: datetime) -> DebtStatus:
        """Move along the status graph; returns the previous status."""
        target = DebtStatus(target)
        self._check_transition(target)
        if target is DebtStatus.SETTLED and self.outstanding_balance.is_positive():
            raise DebtStateError(
                self.id,
                self.status.value,
                f"cannot settle with {self.outstanding_balance} outstanding; record a payment",
            )
        previous = self.status
        self.status = target
        if target is DebtStatus.STATUTE_BARRED:
            self.priority = DebtPriority.statute_barred()
        self.updated_at = now
        return previous

    def dispute(self, reason: str, now: datetime) -> None:
        if not reason or not reason.strip():
            raise DebtStateError(self.id, self.status.value, "a dispute reason is required")
        self._check_transition(DebtStatus.DISPUTED)
        self.status = DebtStatus.DISPUTED
        self.dispute_reason = reason.strip()
        self.updated_at = now

    def resolve_dispute(self, upheld: bool, now: datetime) -> DebtStatus:
        """Close a dispute: an upheld claim is outstanding again, else written off."""
        if not self.is_disputed:
            raise DebtStateError(self.id, self.status.value, "debt is not disputed")
        self.status = DebtStatus.OUTSTANDING if upheld else DebtStatus.WRITTEN_OFF
        self.dispute_reason = None
        self.updated_at = now
        return self.status

    def write_off(self, now: datetime) -> None:
        self._check_transition(DebtStatus.WRITTEN_OFF)
        self.status = DebtStatus.WRITTEN_OFF
        self.updated_at = now

    def mark_statute_barred(self, now: datetime) -> None:
        self.transition(DebtStatus.STATUTE_BARRED, now)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "creditor_name": self.creditor_name,
            "debt_type": self.debt_type.value,
            "initial_amount": self.initial_amount.to_dict(),
            "outstanding_balance": self.outstanding_balance.to_dict(),
            "interest_rate": str(self.interest_rate),
            "priority": self.priority.to_dict(),
            "is_secured": self.is_secured,
            "secured_asset_id": self.secured_asset_id,
            "status": self.status.value,
            "total_paid": self.total_paid.to_dict(),
            "last_payment_date": iso(self.last_payment_date),
            "dispute_reason": self.dispute_reason,
            "description": self.description,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Debt:
        priority = data.get("priority")
        if isinstance(priority, dict):
            priority = DebtPriority.for_tier(priority["tier"])
        elif priority is not None:
            priority = DebtPriority.for_tier(priority)
        return cls(
            id=data["id"],
            creditor_name=data["creditor_name"],
            debt_type=DebtType(data["debt_type"]),
            initial_amount=Money.from_dict(data["initial_amount"]),
            outstanding_balance=(
                Money.from_dict(data["outstanding_balance"])
                if data.get("outstanding_balance") is not None
                else None
            ),
            interest_rate=Decimal(str(data.get("interest_rate", "0"))),
            priority=priority,
            is_secured=bool(data.get("is_secured", False)),
            secured_asset_id=data.get("secured_asset_id"),
            status=DebtStatus(data.get("status", DebtStatus.OUTSTANDING.value)),
            total_paid=(
                Money.from_dict(data["total_paid"]) if data.get("total_paid") is not None else None
            ),
            last_payment_date=to_date(data.get("last_payment_date")),
            dispute_reason=data.get("dispute_reason"),
            description=data.get("description"),
            created_at=to_datetime(data.get("created_at")) or utcnow(),
            updated_at=to_datetime(data.get("updated_at")) or utcnow(),
        )
