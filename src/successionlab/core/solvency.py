"""
Solvency calculator for SuccessionLab.

Pure functions of the estate ledger. The Estate aggregate calls
``calculate_net_value`` after every mutation; ``assess_solvency`` produces the
fuller S.45 analysis an administrator reviews before paying creditors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from .assets import VerificationStatus
from .currency import Money
from .priority import DebtPriority, DebtTier, is_critical, sort_for_payment

if TYPE_CHECKING:
    from .estate import Estate

LOW_LIQUIDITY_RATIO = Decimal("0.5")
CRITICAL_LIQUIDITY_RATIO = Decimal("0.3")
HIGH_LEVERAGE_RATIO = Decimal("0.7")
HIGH_ENCUMBRANCE_RATIO = Decimal("0.5")


# =============================================================================
# Core figures
# =============================================================================


def counted_assets(estate: Estate) -> list:
    """Assets that contribute to the estate value (not liquidated, not rejected)."""
    return [
        a
        for a in estate.assets.values()
        if not a.is_liquidated and a.verification_status is not VerificationStatus.REJECTED
    ]


def calculate_asset_value(estate: Estate) -> Money:
    return Money.sum((a.distributable_value() for a in counted_assets(estate)), estate.currency)


def calculate_gross_value(estate: Estate) -> Money:
    """Asset value plus cash on hand."""
    return calculate_asset_value(estate) + estate.cash_on_hand


def calculate_debt_total(estate: Estate) -> Money:
    return Money.sum((d.liability() for d in estate.debts.values()), estate.currency)


def calculate_total_liabilities(estate: Estate) -> Money:
    """Outstanding debt balances plus unpaid tax."""
    return calculate_debt_total(estate) + estate.tax_compliance.outstanding()


def calculate_net_value(estate: Estate) -> Money:
    """
    Net estate value.

    net = Σ distributable asset value + cash − Σ outstanding debt − unpaid tax.
    May be negative (insolvent estate).
    """
    return calculate_gross_value(estate) - calculate_total_liabilities(estate)


def calculate_distributable_pool(estate: Estate) -> Money:
    """Net value plus every CONFIRMED lifetime gift (at its value when given)."""
    confirmed = (g.value_at_time_of_gift for g in estate.gifts.values() if g.is_confirmed)
    return calculate_net_value(estate) + Money.sum(confirmed, estate.currency)


# =============================================================================
# Solvency report
# =============================================================================


@dataclass
class TierAnalysis:
    """Debts of one S.45 tier, with cumulative coverage from gross value."""

    priority: DebtPriority
    debt_count: int
    total_amount: Money
    paid_amount: Money
    outstanding_amount: Money
    percentage_of_estate: Decimal
    is_covered: bool
    debt_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tier": int(self.priority.tier),
            "label": self.priority.label,
            "legal_citation": self.priority.legal_citation,
            "debt_count": self.debt_count,
            "total_amount": self.total_amount.to_dict(),
            "paid_amount": self.paid_amount.to_dict(),
            "outstanding_amount": self.outstanding_amount.to_dict(),
            "percentage_of_estate": str(self.percentage_of_estate),
            "is_covered": self.is_covered,
            "debt_ids": list(self.debt_ids),
        }


@dataclass
class SolvencyRisk:
    severity: str
    category: str
    description: str
    mitigation: str

    def to_dict(self) -> dict[str, str]:
        return {
            "severity": self.severity,
            "category": self.category,
            "description": self.description,
            "mitigation": self.mitigation,
        }


@dataclass
class WaterfallStep:
    """Proposed payment to one debt when cash is applied in S.45 order."""

    debt_id: str
    creditor_name: str
    tier: DebtTier
    outstanding: Money
    proposed_payment: Money
    remaining_after_payment: Money

    @property
    def is_fully_paid(self) -> bool:
        return self.remaining_after_payment.is_zero()

    def to_dict(self) -> dict[str, Any]:
        return {
            "debt_id": self.debt_id,
            "creditor_name": self.creditor_name,
            "tier": int(self.tier),
            "outstanding": self.outstanding.to_dict(),
            "proposed_payment": self.proposed_payment.to_dict(),
            "remaining_after_payment": self.remaining_after_payment.to_dict(),
            "is_fully_paid": self.is_fully_paid,
        }


@dataclass
class SolvencyReport:
    """
    Structured solvency analysis of an estate.

    Ratios are None when their denominator is zero (no liabilities).
    """

    is_solvent: bool
    gross_value: Money
    total_liabilities: Money
    net_value: Money
    solvency_ratio: Decimal | None
    liquid_assets: Money
    illiquid_assets: Money
    encumbered_assets: Money
    liquidity_ratio: Decimal | None
    critical_debts_covered: bool
    tiers: list[TierAnalysis] = field(default_factory=list)
    risks: list[SolvencyRisk] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_solvent": self.is_solvent,
            "gross_value": self.gross_value.to_dict(),
            "total_liabilities": self.total_liabilities.to_dict(),
            "net_value": self.net_value.to_dict(),
            "solvency_ratio": None if self.solvency_ratio is None else str(self.solvency_ratio),
            "liquid_assets": self.liquid_assets.to_dict(),
            "illiquid_assets": self.illiquid_assets.to_dict(),
            "encumbered_assets": self.encumbered_assets.to_dict(),
            "liquidity_ratio": None if self.liquidity_ratio is None else str(self.liquidity_ratio),
            "critical_debts_covered": self.critical_debts_covered,
            "tiers": [t.to_dict() for t in self.tiers],
            "risks": [r.to_dict() for r in self.risks],
            "recommendations": list(self.recommendations),
        }

    def __str__(self) -> str:
        lines = ["ESTATE SOLVENCY ANALYSIS (S.45 LSA)"]
        lines.append("✅ Solvent" if self.is_solvent else "❌ Insolvent")
        lines.append(f"Gross value:       {self.gross_value.format()}")
        lines.append(f"Total liabilities: {self.total_liabilities.format()}")
        lines.append(f"Net value:         {self.net_value.format()}")
        if self.solvency_ratio is not None:
            lines.append(f"Solvency ratio:    {self.solvency_ratio:.2f}")
        lines.append(f"Liquid assets:     {self.liquid_assets.format()}")
        for tier in self.tiers:
            mark = "✅" if tier.is_covered else "❌"
            lines.append(
                f"{mark} Tier {int(tier.priority.tier)} {tier.priority.label}: "
                f"{tier.outstanding_amount.format()} outstanding ({tier.debt_count} debt(s))"
            )
        for risk in self.risks:
            lines.append(f"[{risk.severity}] {risk.category}: {risk.description}")
        for i, rec in enumerate(self.recommendations, 1):
            lines.append(f"{i}. {rec}")
        return "\n".join(lines)


def _ratio(numerator: Money, denominator: Money) -> Decimal | None:
    ratio = numerator.ratio_to(denominator)
    return None if ratio is None else ratio.quantize(Decimal("0.0001"))


def _analyze_tiers(estate: Estate, gross: Money) -> list[TierAnalysis]:
    analyses = []
    remaining = gross
    for tier in DebtTier:
        tier_debts = [d for d in estate.debts.values() if d.tier is tier]
        if not tier_debts:
            continue
        total = Money.sum((d.initial_amount for d in tier_debts), estate.currency)
        paid = Money.sum((d.total_paid for d in tier_debts), estate.currency)
        outstanding = Money.sum((d.liability() for d in tier_debts), estate.currency)
        covered = remaining >= outstanding
        remaining = remaining.subtract_clamped(outstanding)
        share = total.ratio_to(gross)
        analyses.append(
            TierAnalysis(
                priority=DebtPriority.for_tier(tier),
                debt_count=len(tier_debts),
                total_amount=total,
                paid_amount=paid,
                outstanding_amount=outstanding,
                percentage_of_estate=(
                    Decimal("0") if share is None else (share * 100).quantize(Decimal("0.01"))
                ),
                is_covered=covered,
                debt_ids=[d.id for d in sort_for_payment(tier_debts)],
            )
        )
    return analyses


def assess_solvency(estate: Estate) -> SolvencyReport:
    """
    Analyze whether the estate can meet its debts in S.45 order.

    Args:
        estate: Estate to analyze (not modified)

    Returns:
        SolvencyReport with totals, liquidity, per-tier coverage, risks and
        recommendations.
    """
    gross = calculate_gross_value(estate)
    liabilities = calculate_total_liabilities(estate)
    net = gross - liabilities
    solvent = not net.is_negative()

    assets = counted_assets(estate)
    secured_ids = {d.secured_asset_id for d in estate.debts.values() if d.is_secured and d.is_open}
    liquid = Money.sum(
        (a.distributable_value() for a in assets if a.is_liquid), estate.currency
    ) + estate.cash_on_hand
    illiquid = Money.sum(
        (a.distributable_value() for a in assets if not a.is_liquid), estate.currency
    )
    encumbered = Money.sum(
        (a.distributable_value() for a in assets if a.id in secured_ids), estate.currency
    )

    tiers = _analyze_tiers(estate, gross)
    critical_covered = all(t.is_covered for t in tiers if is_critical(t.priority.tier))
    liquidity_ratio = _ratio(liquid, liabilities)
    encumbrance = _ratio(encumbered, gross - estate.cash_on_hand)

    risks: list[SolvencyRisk] = []
    recommendations: list[str] = []

    if not solvent:
        risks.append(
            SolvencyRisk(
                "CRITICAL",
                "INSOLVENCY",
                f"Estate is insolvent by {(-net).format()}",
                "Negotiate settlements with creditors or liquidate assets.",
            )
        )
        recommendations.append(
            "Estate is insolvent. Distribution cannot proceed until debts are settled or written off."
        )
    if liquidity_ratio is not None and liquidity_ratio < CRITICAL_LIQUIDITY_RATIO:
        risks.append(
            SolvencyRisk(
                "HIGH",
                "LIQUIDITY",
                "Liquid assets cover less than 30% of liabilities",
                "Begin liquidating land or property early; sales take time.",
            )
        )
    by_tier = {t.priority.tier: t for t in tiers}
    secured = by_tier.get(DebtTier.SECURED_DEBTS)
    if secured is not None and not secured.is_covered:
        risks.append(
            SolvencyRisk(
                "HIGH",
                "FORECLOSURE",
                "Secured debts are not covered; creditors may realise their collateral",
                "Prioritise secured debts or negotiate with the chargees.",
            )
        )
    taxes = by_tier.get(DebtTier.TAXES_RATES_WAGES)
    if taxes is not None and not taxes.is_covered:
        risks.append(
            SolvencyRisk(
                "HIGH",
                "TAX_LIABILITY",
                "Taxes, rates or wages are not covered",
                "Agree a payment plan with the revenue authority.",
            )
        )
    funeral = by_tier.get(DebtTier.FUNERAL_EXPENSES)
    if funeral is not None and funeral.outstanding_amount.is_positive():
        risks.append(
            SolvencyRisk(
                "MEDIUM",
                "FUNERAL_DEBT",
                "Funeral expenses are not fully paid (S.45(2)(a), highest priority)",
                "Settle funeral expenses before any other creditor.",
            )
        )
    leverage = _ratio(liabilities, gross)
    if solvent and leverage is not None and HIGH_LEVERAGE_RATIO < leverage < 1:
        risks.append(
            SolvencyRisk(
                "MEDIUM",
                "HIGH_LEVERAGE",
                "Liabilities exceed 70% of gross value",
                "Minimise administration expenses.",
            )
        )

    if not critical_covered:
        recommendations.append(
            "Critical debts (funeral, administration, secured, taxes) are not fully covered; "
            "consider liquidating illiquid assets."
        )
    if solvent and liquidity_ratio is not None and liquidity_ratio < LOW_LIQUIDITY_RATIO:
        recommendations.append("Liquid assets cover less than 50% of liabilities.")
    if encumbrance is not None and encumbrance > HIGH_ENCUMBRANCE_RATIO:
        recommendations.append("Over half of the asset value is charged to secured creditors.")
    if solvent and critical_covered and (liquidity_ratio is None or liquidity_ratio >= 1):
        recommendations.append("Estate is solvent with adequate liquidity.")

    return SolvencyReport(
        is_solvent=solvent,
        gross_value=gross,
        total_liabilities=liabilities,
        net_value=net,
        solvency_ratio=_ratio(gross, liabilities),
        liquid_assets=liquid,
        illiquid_assets=illiquid,
        encumbered_assets=encumbered,
        liquidity_ratio=liquidity_ratio,
        critical_debts_covered=critical_covered,
        tiers=tiers,
        risks=risks,
        recommendations=recommendations,
    )


def payment_waterfall(estate: Estate, available_cash: Money | None = None) -> list[WaterfallStep]:
    """
    Show how cash would be applied to open debts in S.45 order.

    Args:
        estate: Estate to analyze (not modified)
        available_cash: Cash to apply (defaults to cash on hand)
    """
    remaining = estate.cash_on_hand if available_cash is None else available_cash
    steps = []
    for debt in sort_for_payment(d for d in estate.debts.values() if d.is_open):
        outstanding = debt.outstanding_balance
        if outstanding.is_zero():
            continue
        payment = outstanding if remaining >= outstanding else remaining
        steps.append(
            WaterfallStep(
                debt_id=debt.id,
                creditor_name=debt.creditor_name,
                tier=debt.tier,
                outstanding=outstanding,
                proposed_payment=payment,
                remaining_after_payment=outstanding - payment,
            )
        )
        remaining = remaining - payment
        if remaining.is_zero():
            break
    return steps
