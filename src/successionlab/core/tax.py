"""
Tax compliance record held by the estate.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .currency import Currency, Money
from .errors import InvalidAmountError, OverpaymentError


class TaxStatus(str, Enum):
    PENDING_ASSESSMENT = "PENDING_ASSESSMENT"
    ASSESSED = "ASSESSED"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    CLEARED = "CLEARED"
    EXEMPT = "EXEMPT"
    DISPUTED = "DISPUTED"


@dataclass
class TaxCompliance:
    """
    Estate tax position: assessed liability, payments and clearance.

    Only the clearance signal leaves the estate; the tax authority itself
    is an external collaborator.
    """

    tax_liability: Money
    tax_paid: Money
    status: TaxStatus = TaxStatus.PENDING_ASSESSMENT

    def __post_init__(self):
        self.status = TaxStatus(self.status)

    @classmethod
    def pending(cls, currency: Currency | str = "KES") -> TaxCompliance:
        return cls(tax_liability=Money.zero(currency), tax_paid=Money.zero(currency))

    def is_cleared_for_distribution(self) -> bool:
        return self.status in (TaxStatus.CLEARED, TaxStatus.EXEMPT)

    def outstanding(self) -> Money:
        """Unpaid liability counted against solvency."""
        return self.tax_liability.subtract_clamped(self.tax_paid)

    def assess(self, liability: Money) -> None:
        if liability.is_negative():
            raise InvalidAmountError(liability, "Tax liability cannot be negative")
        if liability < self.tax_paid:
            raise InvalidAmountError(liability, f"Assessment is below tax already paid ({self.tax_paid})")
        self.tax_liability = liability
        self.status = TaxStatus.PARTIALLY_PAID if self.tax_paid.is_positive() else TaxStatus.ASSESSED

    def record_payment(self, amount: Money) -> None:
        if not amount.is_positive():
            raise InvalidAmountError(amount)
        remaining = self.outstanding()
        if amount > remaining:
            raise OverpaymentError("tax", amount, remaining)
        self.tax_paid = self.tax_paid + amount
        self.status = TaxStatus.PARTIALLY_PAID

    def clear(self, exempt: bool = False) -> None:
        if not exempt and self.outstanding().is_positive():
            raise InvalidAmountError(
                self.outstanding(), "Tax cannot be cleared while a liability remains"
            )
        self.status = TaxStatus.EXEMPT if exempt else TaxStatus.CLEARED

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "tax_liability": self.tax_liability.to_dict(),
            "tax_paid": self.tax_paid.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TaxCompliance:
        return cls(
            tax_liability=Money.from_dict(data["tax_liability"]),
            tax_paid=Money.from_dict(data["tax_paid"]),
            status=TaxStatus(data.get("status", TaxStatus.PENDING_ASSESSMENT.value)),
        )
