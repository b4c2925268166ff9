"""
Validation and reporting utilities for SuccessionLab.

Provides a structured report on whether a computed distribution is
internally consistent.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from .currency import Money
from .distribution import DistributionResult, ShareType

PERCENTAGE_TOLERANCE = Decimal("0.01")


@dataclass
class DistributionValidationReport:
    """
    Structured validation report for a distribution result.

    Errors are invariant violations (the shares cannot be paid out as
    computed); warnings are the advisory findings carried on the result.
    """

    percentage_errors: list[str] = None
    value_errors: list[str] = None
    life_interest_errors: list[str] = None
    warnings: list[str] = None
    vested_percentage_total: Decimal = Decimal("0")

    def __post_init__(self):
        """Initialize default empty lists."""
        if self.percentage_errors is None:
            self.percentage_errors = []
        if self.value_errors is None:
            self.value_errors = []
        if self.life_interest_errors is None:
            self.life_interest_errors = []
        if self.warnings is None:
            self.warnings = []

    @property
    def errors(self) -> list[str]:
        return self.percentage_errors + self.value_errors + self.life_interest_errors

    def has_errors(self) -> bool:
        return bool(self.errors)

    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def is_valid(self) -> bool:
        """Check if validation passed (no errors, warnings are OK)."""
        return not self.has_errors()

    def get_exit_code(self) -> int:
        """
        Get appropriate CLI exit code.

        Returns:
            0: Valid (no errors)
            1: Errors present
            2: Warnings only
        """
        if self.has_errors():
            return 1
        elif self.has_warnings():
            return 2
        else:
            return 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "percentage_errors": self.percentage_errors,
            "value_errors": self.value_errors,
            "life_interest_errors": self.life_interest_errors,
            "warnings": self.warnings,
            "vested_percentage_total": str(self.vested_percentage_total),
            "has_errors": self.has_errors(),
            "has_warnings": self.has_warnings(),
            "is_valid": self.is_valid(),
            "exit_code": self.get_exit_code(),
        }

    def __str__(self) -> str:
        """Human-readable string representation."""
        lines = []

        if self.is_valid():
            lines.append("✅ Distribution is consistent")
        else:
            lines.append("❌ Distribution failed validation")

        for error in self.errors:
            lines.append(f"Error: {error}")

        for warning in self.warnings:
            lines.append(f"Warning: {warning}")

        return "\n".join(lines)


def validate_distribution(
    result: DistributionResult, tolerance: Decimal = PERCENTAGE_TOLERANCE
) -> DistributionValidationReport:
    """
    Check a distribution result against its invariants.

    - Vested shares (ABSOLUTE and REMAINDER) add up to 100% within ``tolerance``
    - Vested value does not exceed the distributable remainder, and vested
      value plus dependant provisions does not exceed the hotchpot-adjusted value
    - Every LIFE_INTEREST has a REMAINDER share in the same house
    """
    report = DistributionValidationReport(warnings=list(result.warnings))
    currency = result.total_distributable_value.currency
    breakdown = result.calculation_breakdown

    vested = [s for s in result.shares if s.share_type.is_vested]
    total_pct = sum((s.share_percentage for s in vested), Decimal("0"))
    report.vested_percentage_total = total_pct
    if vested and abs(total_pct - Decimal("100")) > tolerance:
        kinds = "ABSOLUTE and REMAINDER" if any(
            s.share_type is ShareType.REMAINDER for s in vested
        ) else "ABSOLUTE"
        report.percentage_errors.append(f"{kinds} shares total {total_pct}% instead of 100%")

    vested_value = Money.sum((s.gross_share_value for s in vested), currency)
    remainder = result.total_distributable_value
    ceiling = remainder if remainder.is_positive() else Money.zero(currency)
    if vested_value > ceiling:
        report.value_errors.append(
            f"Shares total {vested_value.format()}, exceeding the distributable "
            f"remainder {ceiling.format()}"
        )
    with_provisions = vested_value + breakdown.dependant_provisions
    if with_provisions > breakdown.hotchpot_adjusted_value:
        report.value_errors.append(
            f"Shares plus dependant provisions total {with_provisions.format()}, exceeding the "
            f"hotchpot-adjusted value {breakdown.hotchpot_adjusted_value.format()}"
        )

    remainder_houses = {
        s.polygamous_house_id for s in result.shares if s.share_type is ShareType.REMAINDER
    }
    for share in result.shares:
        if share.share_type is ShareType.LIFE_INTEREST and share.polygamous_house_id not in remainder_houses:
            where = f" in house {share.polygamous_house_id}" if share.polygamous_house_id else ""
            report.life_interest_errors.append(
                f"Life interest for {share.beneficiary_id}{where} has no corresponding remainder interest"
            )

    return report
