"""
S.45 debt priority engine.

Maps each debt type to its statutory tier and orders debts for payment.
Tier 1 is paid first; statute-barred debts drop to a sixth pseudo-tier below
every enforceable claim.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum, IntEnum
from typing import Protocol


class DebtTier(IntEnum):
    """Statutory payment rank (lower value = paid earlier)."""

    FUNERAL_EXPENSES = 1
    TESTAMENTARY_EXPENSES = 2
    SECURED_DEBTS = 3
    TAXES_RATES_WAGES = 4
    UNSECURED_GENERAL = 5
    STATUTE_BARRED = 6


class DebtType(str, Enum):
    """Kinds of liability recorded against an estate."""

    FUNERAL_EXPENSE = "FUNERAL_EXPENSE"
    TESTAMENTARY_EXPENSE = "TESTAMENTARY_EXPENSE"
    PROBATE_FEES = "PROBATE_FEES"
    MORTGAGE = "MORTGAGE"
    SECURED_LOAN = "SECURED_LOAN"
    TAX_OBLIGATION = "TAX_OBLIGATION"
    LAND_RATES = "LAND_RATES"
    EMPLOYEE_WAGES = "EMPLOYEE_WAGES"
    PERSONAL_LOAN = "PERSONAL_LOAN"
    CREDIT_CARD = "CREDIT_CARD"
    BUSINESS_DEBT = "BUSINESS_DEBT"
    MEDICAL_BILL = "MEDICAL_BILL"
    UTILITY_BILLS = "UTILITY_BILLS"
    COURT_FINES = "COURT_FINES"
    OTHER = "OTHER"


_TYPE_TIERS: dict[DebtType, DebtTier] = {
    DebtType.FUNERAL_EXPENSE: DebtTier.FUNERAL_EXPENSES,
    DebtType.TESTAMENTARY_EXPENSE: DebtTier.TESTAMENTARY_EXPENSES,
    DebtType.PROBATE_FEES: DebtTier.TESTAMENTARY_EXPENSES,
    DebtType.MORTGAGE: DebtTier.SECURED_DEBTS,
    DebtType.SECURED_LOAN: DebtTier.SECURED_DEBTS,
    DebtType.TAX_OBLIGATION: DebtTier.TAXES_RATES_WAGES,
    DebtType.LAND_RATES: DebtTier.TAXES_RATES_WAGES,
    DebtType.EMPLOYEE_WAGES: DebtTier.TAXES_RATES_WAGES,
}

_TIER_LABELS: dict[DebtTier, tuple[str, str]] = {
    DebtTier.FUNERAL_EXPENSES: ("Funeral expenses", "S.45(2)(a) LSA"),
    DebtTier.TESTAMENTARY_EXPENSES: (
        "Testamentary and administration expenses",
        "S.45(2)(a) LSA",
    ),
    DebtTier.SECURED_DEBTS: ("Secured debts", "S.45(2)(b) LSA"),
    DebtTier.TAXES_RATES_WAGES: ("Taxes, rates and wages", "S.45(2)(c) LSA"),
    DebtTier.UNSECURED_GENERAL: ("Unsecured general debts", "S.45(2)(d) LSA"),
    DebtTier.STATUTE_BARRED: ("Statute-barred debts", "Limitation of Actions Act"),
}

CRITICAL_TIER_CUTOFF = DebtTier.TAXES_RATES_WAGES


def tier_for_type(debt_type: DebtType | str, is_secured: bool = False) -> DebtTier:
    """
    Resolve the S.45 tier for a debt type.

    Secured debts rank as tier 3 unless their type already ranks higher
    (funeral or testamentary expenses are never demoted).
    """
    debt_type = DebtType(debt_type)
    tier = _TYPE_TIERS.get(debt_type, DebtTier.UNSECURED_GENERAL)
    if is_secured and tier > DebtTier.SECURED_DEBTS:
        return DebtTier.SECURED_DEBTS
    return tier


def is_critical(tier: DebtTier | int) -> bool:
    """Critical debts (tiers 1-4) block distribution while outstanding."""
    return int(tier) <= int(CRITICAL_TIER_CUTOFF)


@dataclass(frozen=True)
class DebtPriority:
    """
    Value object describing a debt's statutory rank.

    Attributes:
        tier: S.45 tier (1-5, or 6 when statute-barred)
        label: Human-readable tier name
        legal_citation: Statutory source of the rank
    """

    tier: DebtTier
    label: str
    legal_citation: str

    def __post_init__(self):
        if not isinstance(self.tier, DebtTier):
            object.__setattr__(self, "tier", DebtTier(self.tier))

    @classmethod
    def for_tier(cls, tier: DebtTier | int) -> DebtPriority:
        tier = DebtTier(tier)
        label, citation = _TIER_LABELS[tier]
        return cls(tier=tier, label=label, legal_citation=citation)

    @classmethod
    def for_debt(cls, debt_type: DebtType | str, is_secured: bool = False) -> DebtPriority:
        return cls.for_tier(tier_for_type(debt_type, is_secured))

    @classmethod
    def statute_barred(cls) -> DebtPriority:
        return cls.for_tier(DebtTier.STATUTE_BARRED)

    def is_critical(self) -> bool:
        return is_critical(self.tier)

    def outranks(self, other: DebtPriority) -> bool:
        """True when this priority must be paid strictly before ``other``."""
        return self.tier < other.tier

    def to_dict(self) -> dict[str, object]:
        return {
            "tier": int(self.tier),
            "label": self.label,
            "legal_citation": self.legal_citation,
        }


class _Prioritised(Protocol):
    id: str
    priority: DebtPriority
    created_at: datetime


def compare_priority(a: _Prioritised, b: _Prioritised) -> int:
    """Negative when ``a`` is paid before ``b`` (tier difference only)."""
    return int(a.priority.tier) - int(b.priority.tier)


def payment_order_key(debt: _Prioritised) -> tuple[int, datetime, str]:
    """Deterministic S.45 ordering: tier, then creation time, then id."""
    return (int(debt.priority.tier), debt.created_at, debt.id)


def sort_for_payment(debts):
    """Return debts in the order they must be paid."""
    return sorted(debts, key=payment_order_key)


__all__ = [
    "DebtTier",
    "DebtType",
    "DebtPriority",
    "CRITICAL_TIER_CUTOFF",
    "tier_for_type",
    "is_critical",
    "compare_priority",
    "payment_order_key",
    "sort_for_payment",
]
