"""
Hotchpot calculator (S.35(3) Law of Succession Act).

Lifetime gifts are notionally brought back into the estate and then deducted
from what the recipient inherits. Only the value at the time of the gift
counts: later appreciation or depreciation is reported, never applied.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from .currency import Money
from .gifts import GiftInterVivos, GiftStatus
from .utils import to_date, whole_months_between, whole_years_between

if TYPE_CHECKING:
    from .estate import Estate

logger = logging.getLogger(__name__)


@dataclass
class HotchpotCriteria:
    """
    Configurable rules deciding which gifts are brought into hotchpot.

    A CONFIRMED gift is included when its value exceeds
    ``minimum_gift_value_percentage`` of the net estate, or it was given
    within ``maximum_years_before_death`` of death, or a court ordered its
    inclusion; a court-ordered exclusion always wins.

    The remaining fields tune the advisory warnings.
    """

    minimum_gift_value_percentage: Decimal = Decimal("10")
    maximum_years_before_death: int = 5
    court_ordered_inclusion: frozenset[str] = frozenset()
    court_ordered_exclusion: frozenset[str] = frozenset()
    recent_gift_months: int = 6
    inflation_warning_percentage: Decimal = Decimal("50")
    recipient_concentration_percentage: Decimal = Decimal("30")
    unverified_high_value_percentage: Decimal = Decimal("5")
    appreciation_note_percentage: Decimal = Decimal("50")

    def __post_init__(self):
        for name in (
            "minimum_gift_value_percentage",
            "inflation_warning_percentage",
            "recipient_concentration_percentage",
            "unverified_high_value_percentage",
            "appreciation_note_percentage",
        ):
            setattr(self, name, Decimal(str(getattr(self, name))))
        self.court_ordered_inclusion = frozenset(self.court_ordered_inclusion)
        self.court_ordered_exclusion = frozenset(self.court_ordered_exclusion)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> HotchpotCriteria:
        """Build criteria from a mapping; unknown keys are ignored, missing keys default."""
        data = dict(data or {})
        known = {f for f in cls.__dataclass_fields__}
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> dict[str, Any]:
        return {
            "minimum_gift_value_percentage": str(self.minimum_gift_value_percentage),
            "maximum_years_before_death": self.maximum_years_before_death,
            "court_ordered_inclusion": sorted(self.court_ordered_inclusion),
            "court_ordered_exclusion": sorted(self.court_ordered_exclusion),
            "recent_gift_months": self.recent_gift_months,
            "inflation_warning_percentage": str(self.inflation_warning_percentage),
            "recipient_concentration_percentage": str(self.recipient_concentration_percentage),
            "unverified_high_value_percentage": str(self.unverified_high_value_percentage),
            "appreciation_note_percentage": str(self.appreciation_note_percentage),
        }


@dataclass
class GiftSummary:
    gift_id: str
    description: str
    value_at_time_of_gift: Money
    current_estimated_value: Money | None
    date_given: date
    years_before_death: int
    months_before_death: int
    status: GiftStatus
    is_verified: bool
    is_included: bool
    inclusion_reason: str | None = None

    @property
    def appreciation_percentage(self) -> Decimal | None:
        """Change from gift value to current estimate, in percent (informational)."""
        if self.current_estimated_value is None:
            return None
        ratio = (self.current_estimated_value - self.value_at_time_of_gift).ratio_to(
            self.value_at_time_of_gift
        )
        return None if ratio is None else (ratio * 100).quantize(Decimal("0.1"))

    def to_dict(self) -> dict[str, Any]:
        appreciation = self.appreciation_percentage
        return {
            "gift_id": self.gift_id,
            "description": self.description,
            "value_at_time_of_gift": self.value_at_time_of_gift.to_dict(),
            "current_estimated_value": (
                self.current_estimated_value.to_dict() if self.current_estimated_value else None
            ),
            "date_given": self.date_given.isoformat(),
            "years_before_death": self.years_before_death,
            "status": self.status.value,
            "is_verified": self.is_verified,
            "is_included": self.is_included,
            "inclusion_reason": self.inclusion_reason,
            "appreciation_percentage": None if appreciation is None else str(appreciation),
        }


@dataclass
class RecipientGiftSummary:
    """All gifts one person received, and how much of it hotchpot brings back."""

    recipient_id: str
    gifts: list[GiftSummary]
    total_gift_value: Money
    included_gift_value: Money

    @property
    def is_subject_to_hotchpot(self) -> bool:
        return self.included_gift_value.is_positive()

    def to_dict(self) -> dict[str, Any]:
        return {
            "recipient_id": self.recipient_id,
            "total_gift_value": self.total_gift_value.to_dict(),
            "included_gift_value": self.included_gift_value.to_dict(),
            "is_subject_to_hotchpot": self.is_subject_to_hotchpot,
            "gifts": [g.to_dict() for g in self.gifts],
        }


@dataclass
class HotchpotAnalysis:
    """
    Result of bringing lifetime gifts into account.

    Attributes:
        actual_estate_value: Net estate value at analysis time
        total_hotchpot_gifts: Sum of included gifts (value at time of gift)
        adjusted_value: actual_estate_value + total_hotchpot_gifts
        gifts_by_recipient: Per-recipient gift summaries
        warnings: Advisory findings that may draw a challenge
        recommendations: Suggested follow-ups for the administrator
    """

    actual_estate_value: Money
    total_hotchpot_gifts: Money
    adjusted_value: Money
    gifts_by_recipient: dict[str, RecipientGiftSummary] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    @property
    def included_gift_ids(self) -> list[str]:
        return [
            g.gift_id
            for summary in self.gifts_by_recipient.values()
            for g in summary.gifts
            if g.is_included
        ]

    def deduction_for(self, recipient_id: str) -> Money:
        summary = self.gifts_by_recipient.get(recipient_id)
        if summary is None:
            return Money.zero(self.actual_estate_value.currency)
        return summary.included_gift_value

    def to_dict(self) -> dict[str, Any]:
        return {
            "actual_estate_value": self.actual_estate_value.to_dict(),
            "total_hotchpot_gifts": self.total_hotchpot_gifts.to_dict(),
            "adjusted_value": self.adjusted_value.to_dict(),
            "gifts_by_recipient": {k: v.to_dict() for k, v in self.gifts_by_recipient.items()},
            "warnings": list(self.warnings),
            "recommendations": list(self.recommendations),
        }


@dataclass
class AdjustedShare:
    beneficiary_id: str
    original_share: Money
    hotchpot_deduction: Money
    adjusted_share: Money


def _inclusion_reason(
    gift: GiftInterVivos,
    years_before_death: int,
    threshold: Money,
    criteria: HotchpotCriteria,
) -> str | None:
    """Why a gift is brought into hotchpot, or None when it is not."""
    if not gift.is_confirmed or gift.id in criteria.court_ordered_exclusion:
        return None
    if gift.id in criteria.court_ordered_inclusion:
        return "Court-ordered inclusion"
    if gift.value_at_time_of_gift > threshold:
        return (
            f"Value exceeds {criteria.minimum_gift_value_percentage}% of the net estate"
        )
    if years_before_death <= criteria.maximum_years_before_death:
        return f"Given within {criteria.maximum_years_before_death} years of death"
    return None


def analyze_hotchpot(
    estate: Estate,
    date_of_death: date | str | None = None,
    criteria: HotchpotCriteria | None = None,
) -> HotchpotAnalysis:
    """
    Decide which gifts come into hotchpot and compute the adjusted value.

    Args:
        estate: Estate whose gifts are analyzed (not modified)
        date_of_death: Look-back anchor (defaults to the estate's date of death)
        criteria: Inclusion rules (defaults to HotchpotCriteria())

    Returns:
        HotchpotAnalysis
    """
    criteria = criteria or HotchpotCriteria()
    death = to_date(date_of_death) or estate.date_of_death
    currency = estate.currency
    actual = estate.get_net_value()
    threshold = (
        actual.percentage(criteria.minimum_gift_value_percentage)
        if actual.is_positive()
        else Money.zero(currency)
    )

    summaries: dict[str, RecipientGiftSummary] = {}
    for gift in sorted(estate.gifts.values(), key=lambda g: (g.date_given, g.id)):
        years = whole_years_between(gift.date_given, death)
        reason = _inclusion_reason(gift, years, threshold, criteria)
        item = GiftSummary(
            gift_id=gift.id,
            description=gift.description,
            value_at_time_of_gift=gift.value_at_time_of_gift,
            current_estimated_value=gift.current_estimated_value,
            date_given=gift.date_given,
            years_before_death=years,
            months_before_death=whole_months_between(gift.date_given, death),
            status=gift.status,
            is_verified=gift.is_verified,
            is_included=reason is not None,
            inclusion_reason=reason,
        )
        summary = summaries.setdefault(
            gift.recipient_id,
            RecipientGiftSummary(
                recipient_id=gift.recipient_id,
                gifts=[],
                total_gift_value=Money.zero(currency),
                included_gift_value=Money.zero(currency),
            ),
        )
        summary.gifts.append(item)
        summary.total_gift_value = summary.total_gift_value + gift.value_at_time_of_gift
        if item.is_included:
            summary.included_gift_value = summary.included_gift_value + gift.value_at_time_of_gift

    total = Money.sum((s.included_gift_value for s in summaries.values()), currency)
    adjusted = actual + total
    analysis = HotchpotAnalysis(
        actual_estate_value=actual,
        total_hotchpot_gifts=total,
        adjusted_value=adjusted,
        gifts_by_recipient=summaries,
    )
    analysis.warnings = _warnings(analysis, criteria)
    analysis.recommendations = _recommendations(analysis, criteria)
    logger.debug(
        "Hotchpot for estate %s: %d gift(s) included, adjusted value %s",
        estate.id,
        len(analysis.included_gift_ids),
        adjusted,
    )
    return analysis


def _all_gifts(analysis: HotchpotAnalysis) -> list[GiftSummary]:
    return [g for s in analysis.gifts_by_recipient.values() for g in s.gifts]


def _warnings(analysis: HotchpotAnalysis, criteria: HotchpotCriteria) -> list[str]:
    warnings = []
    actual = analysis.actual_estate_value
    increase = analysis.total_hotchpot_gifts.ratio_to(actual) if actual.is_positive() else None
    if increase is not None and increase * 100 > criteria.inflation_warning_percentage:
        warnings.append(
            f"Hotchpot increases estate value by {increase * 100:.1f}%; "
            "the adjustment may be challenged by beneficiaries."
        )

    high_value = actual.percentage(criteria.unverified_high_value_percentage)
    unverified = [
        g
        for g in _all_gifts(analysis)
        if not g.is_verified
        and g.status in (GiftStatus.CONFIRMED, GiftStatus.CONTESTED)
        and g.value_at_time_of_gift > high_value
    ]
    if unverified:
        warnings.append(f"{len(unverified)} high-value gift(s) are unverified and may be challenged.")

    concentration = analysis.adjusted_value.percentage(criteria.recipient_concentration_percentage)
    for recipient_id, summary in analysis.gifts_by_recipient.items():
        if summary.is_subject_to_hotchpot and summary.included_gift_value > concentration:
            warnings.append(
                f"Recipient {recipient_id} received gifts exceeding "
                f"{criteria.recipient_concentration_percentage}% of the hotchpot estate; "
                "their final inheritance may be reduced to zero."
            )

    recent = [
        g
        for g in _all_gifts(analysis)
        if g.status is not GiftStatus.EXCLUDED and g.months_before_death < criteria.recent_gift_months
    ]
    if recent:
        warnings.append(
            f"{len(recent)} gift(s) made within {criteria.recent_gift_months} months of death; "
            "strongly presumed subject to hotchpot."
        )
    return warnings


def _recommendations(analysis: HotchpotAnalysis, criteria: HotchpotCriteria) -> list[str]:
    gifts = _all_gifts(analysis)
    recommendations = []
    contested = [g for g in gifts if g.status is GiftStatus.CONTESTED]
    if contested:
        recommendations.append(
            f"{len(contested)} contested gift(s) are left out until the contest is resolved."
        )
    appreciated = [
        g
        for g in gifts
        if g.appreciation_percentage is not None
        and g.appreciation_percentage > criteria.appreciation_note_percentage
    ]
    if appreciated:
        recommendations.append(
            f"{len(appreciated)} gift(s) have appreciated by more than "
            f"{criteria.appreciation_note_percentage}%; S.35(3) uses the value at the time of "
            "the gift, so appreciation does not change the adjustment."
        )
    unverified = [g for g in gifts if not g.is_verified]
    if unverified:
        recommendations.append(
            f"{len(unverified)} gift(s) are not yet verified; request deeds of gift or "
            "transfer documents."
        )
    if gifts:
        recommendations.append("Record each hotchpot decision for possible court review.")
    return recommendations


def calculate_adjusted_shares(
    shares: Mapping[str, Money], analysis: HotchpotAnalysis
) -> dict[str, AdjustedShare]:
    """Deduct each beneficiary's included gifts from their share, floored at zero."""
    adjusted = {}
    for beneficiary_id, share in shares.items():
        deduction = analysis.deduction_for(beneficiary_id)
        adjusted[beneficiary_id] = AdjustedShare(
            beneficiary_id=beneficiary_id,
            original_share=share,
            hotchpot_deduction=deduction,
            adjusted_share=share.subtract_clamped(deduction),
        )
    return adjusted


def generate_report(analysis: HotchpotAnalysis) -> str:
    """Render a plain-text hotchpot statement."""
    rule = "=" * 72
    lines = [rule, "HOTCHPOT CALCULATION (S.35(3) LAW OF SUCCESSION ACT)", rule, ""]
    lines.append(f"Actual estate (net):            {analysis.actual_estate_value.format()}")
    lines.append(f"Add: gifts inter vivos:         {analysis.total_hotchpot_gifts.format()}")
    lines.append(f"Hotchpot-adjusted estate value: {analysis.adjusted_value.format()}")
    lines.append("")

    for recipient_id, summary in analysis.gifts_by_recipient.items():
        lines.append(f"Recipient {recipient_id}: {summary.total_gift_value.format()} received, "
                     f"{summary.included_gift_value.format()} brought into account")
        for gift in summary.gifts:
            mark = "✅" if gift.is_included else "  "
            lines.append(
                f"  {mark} {gift.description}: {gift.value_at_time_of_gift.format()} on "
                f"{gift.date_given.isoformat()} ({gift.years_before_death} years before death, "
                f"{gift.status.value})"
            )
            if gift.inclusion_reason:
                lines.append(f"     {gift.inclusion_reason}")
        lines.append("")

    if analysis.warnings:
        lines.append("WARNINGS:")
        lines.extend(f"⚠️  {w}" for w in analysis.warnings)
        lines.append("")
    if analysis.recommendations:
        lines.append("RECOMMENDATIONS:")
        lines.extend(f"{i}. {r}" for i, r in enumerate(analysis.recommendations, 1))
        lines.append("")
    lines.append("Value used: value at the time of the gift, not current value.")
    lines.append(rule)
    return "\n".join(lines)
