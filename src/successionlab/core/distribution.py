"""
Distribution calculator for intestate succession (S.35, S.38-S.40 LSA).

Runs only once the readiness gate passes. The pipeline is:

1. gross estate, debts and net estate (solvency calculator)
2. hotchpot additions (hotchpot calculator)
3. provisions for verified dependants, deducted before any share
4. distributable remainder = hotchpot-adjusted value - provisions
5. beneficiary shares per family structure (houses first when polygamous)
6. hotchpot deduction from each recipient's share
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any

from .currency import Money
from .errors import DistributionBlockedError
from .family import FamilyMember, FamilyStructure
from .hotchpot import HotchpotAnalysis, HotchpotCriteria, analyze_hotchpot
from .specs import ReadyForDistribution
from .utils import to_date

if TYPE_CHECKING:
    from .estate import Estate
    from .interfaces import FamilyStructureProvider
    from .validation import DistributionValidationReport

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


class ShareType(str, Enum):
    ABSOLUTE = "ABSOLUTE"
    LIFE_INTEREST = "LIFE_INTEREST"
    REMAINDER = "REMAINDER"

    @property
    def is_vested(self) -> bool:
        """Shares that eventually vest absolutely (everything but a life interest)."""
        return self is not ShareType.LIFE_INTEREST


class DistributionScenario(str, Enum):
    INTESTATE_S35 = "INTESTATE_S35"
    INTESTATE_S40 = "INTESTATE_S40"


LEGAL_BASIS = {
    DistributionScenario.INTESTATE_S35: "S.35-S.39 LSA (intestate: spouse, children, parents)",
    DistributionScenario.INTESTATE_S40: "S.40 LSA (intestate: polygamous household)",
}


@dataclass
class DistributionConfig:
    """
    Distribution calculator configuration.

    Attributes:
        hotchpot_criteria: Rules deciding which gifts come into hotchpot
        percentage_places: Decimal places kept on share percentages
        enforce_readiness_gate: Check ReadyForDistribution before computing
    """

    hotchpot_criteria: HotchpotCriteria = field(default_factory=HotchpotCriteria)
    percentage_places: int = 4
    enforce_readiness_gate: bool = True

    @property
    def percentage_quantum(self) -> Decimal:
        return Decimal("1").scaleb(-self.percentage_places)


@dataclass
class BeneficiaryShare:
    """
    One beneficiary's entitlement.

    ``share_percentage`` is relative to the whole distributable remainder;
    ``share_value`` is after the hotchpot deduction, ``gross_share_value``
    before it.
    """

    beneficiary_id: str
    beneficiary_name: str
    relationship: str
    share_type: ShareType
    share_percentage: Decimal
    gross_share_value: Money
    share_value: Money
    hotchpot_deduction: Money
    polygamous_house_id: str | None = None
    conditions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "beneficiary_id": self.beneficiary_id,
            "beneficiary_name": self.beneficiary_name,
            "relationship": self.relationship,
            "share_type": self.share_type.value,
            "share_percentage": str(self.share_percentage),
            "gross_share_value": self.gross_share_value.to_dict(),
            "share_value": self.share_value.to_dict(),
            "hotchpot_deduction": self.hotchpot_deduction.to_dict(),
            "polygamous_house_id": self.polygamous_house_id,
            "conditions": list(self.conditions),
        }


@dataclass
class DependantProvision:
    dependant_id: str
    dependant_name: str
    relationship: str
    monthly_provision: Money
    annual_provision: Money
    lump_sum_provision: Money | None = None
    years_of_support: int | None = None
    requires_court_review: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "dependant_id": self.dependant_id,
            "dependant_name": self.dependant_name,
            "relationship": self.relationship,
            "monthly_provision": self.monthly_provision.to_dict(),
            "annual_provision": self.annual_provision.to_dict(),
            "lump_sum_provision": (
                self.lump_sum_provision.to_dict() if self.lump_sum_provision else None
            ),
            "years_of_support": self.years_of_support,
            "requires_court_review": self.requires_court_review,
        }


@dataclass
class CalculationBreakdown:
    gross_estate: Money
    debts_paid: Money
    net_estate: Money
    hotchpot_additions: Money
    hotchpot_adjusted_value: Money
    dependant_provisions: Money
    distributable_remainder: Money
    spouse_life_interest: Money | None = None
    children_remainder: Money | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            name: (value.to_dict() if value is not None else None)
            for name, value in (
                ("gross_estate", self.gross_estate),
                ("debts_paid", self.debts_paid),
                ("net_estate", self.net_estate),
                ("hotchpot_additions", self.hotchpot_additions),
                ("hotchpot_adjusted_value", self.hotchpot_adjusted_value),
                ("dependant_provisions", self.dependant_provisions),
                ("distributable_remainder", self.distributable_remainder),
                ("spouse_life_interest", self.spouse_life_interest),
                ("children_remainder", self.children_remainder),
            )
        }


@dataclass
class DistributionResult:
    """
    Outcome of an intestate distribution calculation.

    Attributes:
        estate_id: Estate the result belongs to
        scenario: S.35 (monogamous) or S.40 (polygamous)
        legal_basis: Statutory basis of the shares
        total_distributable_value: Distributable remainder (may be negative)
        shares: Beneficiary shares
        dependant_provisions: Provisions deducted before the shares
        warnings: Advisory findings (court intervention, skipped houses...)
        calculation_breakdown: Step-by-step figures
        hotchpot: Hotchpot analysis used for additions and deductions
    """

    estate_id: str
    scenario: DistributionScenario
    legal_basis: str
    total_distributable_value: Money
    shares: list[BeneficiaryShare]
    dependant_provisions: list[DependantProvision]
    warnings: list[str]
    calculation_breakdown: CalculationBreakdown
    hotchpot: HotchpotAnalysis | None = None

    def share_for(self, beneficiary_id: str) -> BeneficiaryShare | None:
        for share in self.shares:
            if share.beneficiary_id == beneficiary_id:
                return share
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "estate_id": self.estate_id,
            "scenario": self.scenario.value,
            "legal_basis": self.legal_basis,
            "total_distributable_value": self.total_distributable_value.to_dict(),
            "shares": [s.to_dict() for s in self.shares],
            "dependant_provisions": [p.to_dict() for p in self.dependant_provisions],
            "warnings": list(self.warnings),
            "calculation_breakdown": self.calculation_breakdown.to_dict(),
            "hotchpot": self.hotchpot.to_dict() if self.hotchpot else None,
        }


# (member, relationship label, share type, percentage, value, house id, conditions)
_Draft = tuple[FamilyMember, str, ShareType, Decimal, Money, "str | None", list[str]]


class DistributionCalculator:
    """
    Compute intestate shares for an estate that has passed the readiness gate.

    Example:
        ```python
        calculator = DistributionCalculator()
        result = calculator.calculate_intestate_distribution(estate, family)
        report = calculator.validate_distribution(result)
        print(calculator.generate_report(result))
        ```
    """

    def __init__(self, config: DistributionConfig | None = None):
        self.config = config or DistributionConfig()
        self.gate = ReadyForDistribution()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def calculate_from_provider(
        self, estate: Estate, provider: FamilyStructureProvider, as_of: date | None = None
    ) -> DistributionResult:
        """Fetch the family structure from a provider, then calculate."""
        return self.calculate_intestate_distribution(
            estate, provider.get_family_structure(estate.deceased_id), as_of
        )

    def calculate_intestate_distribution(
        self,
        estate: Estate,
        family: FamilyStructure,
        as_of: date | str | None = None,
    ) -> DistributionResult:
        """
        Compute the intestate distribution.

        Args:
            estate: Estate to distribute (not modified)
            family: Surviving family of the deceased
            as_of: Date used for dependant ages (defaults to the date of death)

        Returns:
            DistributionResult

        Raises:
            EstateFrozenError, EstateInsolventError, TaxNotClearedError,
            UnresolvedDisputesError: First readiness check that fails
            DistributionBlockedError: Composite readiness gate fails
        """
        estate.validate_ready_for_distribution()
        if self.config.enforce_readiness_gate and not self.gate.is_satisfied_by(estate):
            raise DistributionBlockedError(estate.id, self.gate.get_blocking_reasons(estate))

        as_of = to_date(as_of) or estate.date_of_death
        currency = estate.currency
        warnings: list[str] = []

        gross = estate.get_gross_value()
        debts = estate.get_total_liabilities()
        net = estate.get_net_value()

        hotchpot = analyze_hotchpot(estate, estate.date_of_death, self.config.hotchpot_criteria)
        adjusted = hotchpot.adjusted_value

        provisions = self.calculate_dependant_provisions(estate, as_of)
        provision_total = Money.sum((p.annual_provision for p in provisions), currency)
        for p in provisions:
            if p.requires_court_review:
                warnings.append(
                    f"Dependant {p.dependant_name} is an incapacitated adult; "
                    "provision requires court review"
                )

        remainder = adjusted - provision_total
        base = remainder
        if remainder.is_negative():
            warnings.append(
                f"Dependant provisions ({provision_total.format()}) exceed the hotchpot-adjusted "
                f"estate ({adjusted.format()}); court intervention required"
            )
            base = Money.zero(currency)

        if family.is_polygamous and family.polygamous_houses:
            scenario = DistributionScenario.INTESTATE_S40
            drafts = self._polygamous_shares(base, family, warnings)
        else:
            if family.is_polygamous:
                warnings.append(
                    "Polygamous family has no house information; distributed as a single household"
                )
            scenario = DistributionScenario.INTESTATE_S35
            drafts = self._household_shares(
                base,
                HUNDRED,
                family.living_spouses(),
                family.living_children(),
                family.living_parents(),
                None,
                None,
            )
        if not drafts:
            warnings.append("No living spouse, child or parent found; the estate may pass under S.39 or bona vacantia")

        shares = self._apply_hotchpot(drafts, hotchpot)

        life = [s.gross_share_value for s in shares if s.share_type is ShareType.LIFE_INTEREST]
        rem = [s.gross_share_value for s in shares if s.share_type is ShareType.REMAINDER]
        breakdown = CalculationBreakdown(
            gross_estate=gross,
            debts_paid=debts,
            net_estate=net,
            hotchpot_additions=hotchpot.total_hotchpot_gifts,
            hotchpot_adjusted_value=adjusted,
            dependant_provisions=provision_total,
            distributable_remainder=remainder,
            spouse_life_interest=Money.sum(life, currency) if life else None,
            children_remainder=Money.sum(rem, currency) if rem else None,
        )

        for warning in warnings:
            logger.warning("Estate %s distribution: %s", estate.id, warning)
        logger.info(
            "Computed %s distribution for estate %s: %d share(s) over %s",
            scenario.value,
            estate.id,
            len(shares),
            remainder,
        )
        return DistributionResult(
            estate_id=estate.id,
            scenario=scenario,
            legal_basis=LEGAL_BASIS[scenario],
            total_distributable_value=remainder,
            shares=shares,
            dependant_provisions=provisions,
            warnings=warnings,
            calculation_breakdown=breakdown,
            hotchpot=hotchpot,
        )

    # ------------------------------------------------------------------
    # Dependant provisions
    # ------------------------------------------------------------------

    def calculate_dependant_provisions(
        self, estate: Estate, as_of: date | None = None
    ) -> list[DependantProvision]:
        """Annual provision for each verified dependant; minors also get a lump sum."""
        as_of = as_of or estate.date_of_death
        provisions = []
        for dependant in estate.get_verified_dependants():
            monthly = dependant.monthly_provision(estate.currency)
            annual = monthly.multiply(12)
            lump_sum = None
            years = None
            if dependant.is_minor(as_of):
                years = dependant.years_until_majority(as_of)
                lump_sum = annual.multiply(years)
            provisions.append(
                DependantProvision(
                    dependant_id=dependant.id,
                    dependant_name=dependant.name,
                    relationship=dependant.relationship.value,
                    monthly_provision=monthly,
                    annual_provision=annual,
                    lump_sum_provision=lump_sum,
                    years_of_support=years,
                    requires_court_review=(
                        dependant.is_incapacitated and not dependant.is_minor(as_of)
                    ),
                )
            )
        return provisions

    # ------------------------------------------------------------------
    # Shares
    # ------------------------------------------------------------------

    def _pct(self, value: Decimal) -> Decimal:
        return value.quantize(self.config.percentage_quantum)

    def _household_shares(
        self,
        value: Money,
        percentage: Decimal,
        spouses: list[FamilyMember],
        children: list[FamilyMember],
        parents: list[FamilyMember],
        house_id: str | None,
        house_label: str | None,
    ) -> list[_Draft]:
        """
        Shares within one household worth ``value`` (``percentage`` of the remainder).

        Spouse(s) with children: each spouse takes a life interest in the whole
        household value and the children split the remainder interest. Spouse(s)
        alone or children alone take absolutely in equal parts; failing both,
        living parents take absolutely.
        """
        suffix = f" (House {house_label})" if house_label else ""
        drafts: list[_Draft] = []

        def equal(members: list[FamilyMember], relationship: str, share_type: ShareType, conditions: list[str]):
            parts = value.allocate([1] * len(members))
            for member, part in zip(members, parts):
                drafts.append(
                    (
                        member,
                        relationship + suffix,
                        share_type,
                        self._pct(percentage / len(members)),
                        part,
                        house_id,
                        list(conditions),
                    )
                )

        if spouses and children:
            for spouse in spouses:
                drafts.append(
                    (
                        spouse,
                        "Spouse" + suffix,
                        ShareType.LIFE_INTEREST,
                        self._pct(percentage),
                        value,
                        house_id,
                        [
                            "Life interest only; the property may not be sold or disposed of",
                            "Passes to the children on the spouse's death or remarriage",
                        ],
                    )
                )
            equal(
                children,
                "Child",
                ShareType.REMAINDER,
                ["Remainder interest; vests when the life interest ends"],
            )
        elif spouses:
            equal(spouses, "Spouse", ShareType.ABSOLUTE, [])
        elif children:
            equal(children, "Child", ShareType.ABSOLUTE, [])
        elif parents:
            equal(parents, "Parent", ShareType.ABSOLUTE, [])
        return drafts

    def _polygamous_shares(
        self, value: Money, family: FamilyStructure, warnings: list[str]
    ) -> list[_Draft]:
        """
        Split ``value`` across houses in proportion to living children
        (a house without children counts as one unit), then share each
        house's portion among its own spouse and children.

        Living spouses and children not placed in any house form one extra
        unit, weighted the same way, and are named in a warning.
        """
        # (house id, house label, living spouses, living children)
        units: list[tuple[str | None, str | None, list[FamilyMember], list[FamilyMember]]] = []
        housed: set[str] = set()
        for house in family.houses_in_order():
            house_spouses = family.house_spouses(house)
            house_children = family.house_children(house)
            housed.update(m.id for m in (*house_spouses, *house_children))
            spouses = [m for m in house_spouses if m.is_alive]
            children = [m for m in house_children if m.is_alive]
            if not spouses and not children:
                warnings.append(f"House {house.house_order} ({house.id}) has no living members and was skipped")
                continue
            units.append((house.id, str(house.house_order), spouses, children))

        loose_spouses = [m for m in family.living_spouses() if m.id not in housed]
        loose_children = [m for m in family.living_children() if m.id not in housed]
        if loose_spouses or loose_children:
            names = ", ".join(m.id for m in (*loose_spouses, *loose_children))
            warnings.append(
                f"Living family member(s) {names} are not assigned to any house; "
                "shared as a separate unit pending court confirmation"
            )
            units.append((None, None, loose_spouses, loose_children))
        if not units:
            return []

        weights = [Decimal(len(children) or 1) for _, _, _, children in units]
        total_weight = sum(weights, Decimal("0"))
        portions = value.allocate(weights)

        drafts: list[_Draft] = []
        for (house_id, label, spouses, children), weight, portion in zip(units, weights, portions):
            drafts.extend(
                self._household_shares(
                    portion,
                    weight / total_weight * HUNDRED,
                    spouses,
                    children,
                    [],
                    house_id,
                    label,
                )
            )
        return drafts

    def _apply_hotchpot(
        self, drafts: list[_Draft], hotchpot: HotchpotAnalysis
    ) -> list[BeneficiaryShare]:
        shares = []
        for member, relationship, share_type, pct, value, house_id, conditions in drafts:
            deduction = hotchpot.deduction_for(member.id)
            if deduction.is_positive():
                conditions = conditions + [
                    f"Hotchpot deduction of {deduction.format()} for lifetime gifts (S.35(3))"
                ]
            shares.append(
                BeneficiaryShare(
                    beneficiary_id=member.id,
                    beneficiary_name=member.name,
                    relationship=relationship,
                    share_type=share_type,
                    share_percentage=pct,
                    gross_share_value=value,
                    share_value=value.subtract_clamped(deduction),
                    hotchpot_deduction=deduction,
                    polygamous_house_id=house_id,
                    conditions=conditions,
                )
            )
        return shares

    # ------------------------------------------------------------------
    # Validation and reporting
    # ------------------------------------------------------------------

    def validate_distribution(self, result: DistributionResult) -> DistributionValidationReport:
        from .validation import validate_distribution

        return validate_distribution(result)

    def generate_report(self, result: DistributionResult) -> str:
        return generate_report(result)


def generate_report(result: DistributionResult) -> str:
    """Render a plain-text distribution statement."""
    rule = "=" * 72
    b = result.calculation_breakdown
    lines = [rule, "ESTATE DISTRIBUTION CALCULATION", rule, ""]
    lines.append(f"Scenario:    {result.scenario.value}")
    lines.append(f"Legal basis: {result.legal_basis}")
    lines.append("")
    lines.append(f"1. Gross estate value:            {b.gross_estate.format()}")
    lines.append(f"2. Less: debts (S.45):            {b.debts_paid.format()}")
    lines.append(f"3. Net estate:                    {b.net_estate.format()}")
    lines.append(f"4. Add: hotchpot gifts (S.35(3)): {b.hotchpot_additions.format()}")
    lines.append(f"5. Hotchpot-adjusted value:       {b.hotchpot_adjusted_value.format()}")
    lines.append(f"6. Less: dependant provisions:    {b.dependant_provisions.format()}")
    lines.append(f"7. Distributable remainder:       {b.distributable_remainder.format()}")
    lines.append("")

    if result.dependant_provisions:
        lines.append("DEPENDANT PROVISIONS (S.26/S.29 LSA):")
        for p in result.dependant_provisions:
            lines.append(
                f"  {p.dependant_name} ({p.relationship}): {p.monthly_provision.format()} monthly, "
                f"{p.annual_provision.format()} annually"
            )
            if p.lump_sum_provision is not None:
                lines.append(f"    Lump sum ({p.years_of_support} years to majority): {p.lump_sum_provision.format()}")
        lines.append("")

    lines.append("BENEFICIARY SHARES:")
    for s in result.shares:
        lines.append(
            f"  {s.beneficiary_name} ({s.relationship}): {s.share_type.value} "
            f"{s.share_percentage}% = {s.share_value.format()}"
        )
        if s.hotchpot_deduction.is_positive():
            lines.append(f"    Hotchpot deduction: {s.hotchpot_deduction.format()}")
        for condition in s.conditions:
            lines.append(f"    - {condition}")
    lines.append("")

    if result.warnings:
        lines.append("WARNINGS:")
        lines.extend(f"⚠️  {w}" for w in result.warnings)
        lines.append("")
    lines.append(rule)
    return "\n".join(lines)
