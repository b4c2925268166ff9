"""
Specification engine: composable business-rule predicates.

A Specification wraps a named predicate over an entity (Estate, Asset or
Debt). Specifications combine with ``and_``/``or_``/``not_`` (or ``&``,
``|``, ``~``) into new specifications; nothing is evaluated until
``is_satisfied_by`` is called.

Example:
    ```python
    from successionlab.core.specs import has_no_disputed_assets, is_solvent

    gate = is_solvent & has_no_disputed_assets
    if not gate.is_satisfied_by(estate):
        ...
    ```
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Generic, TypeVar

from .currency import Money, as_money
from .debts import DebtStatus
from .priority import is_critical

if TYPE_CHECKING:
    from .assets import Asset
    from .debts import Debt
    from .estate import Estate

T = TypeVar("T")


@dataclass(frozen=True)
class Specification(Generic[T]):
    """
    A named predicate over entities of type T.

    Attributes:
        name: Short identifier (combinators build names like 'a AND b')
        predicate: Function returning True when the entity satisfies the rule
        failure_reason: Human-readable text used when the rule fails
    """

    name: str
    predicate: Callable[[T], bool]
    failure_reason: str = ""

    def is_satisfied_by(self, candidate: T) -> bool:
        return bool(self.predicate(candidate))

    def __call__(self, candidate: T) -> bool:
        return self.is_satisfied_by(candidate)

    def and_(self, other: Specification[T]) -> Specification[T]:
        return Specification(
            f"({self.name} AND {other.name})",
            lambda c: self.is_satisfied_by(c) and other.is_satisfied_by(c),
        )

    def or_(self, other: Specification[T]) -> Specification[T]:
        return Specification(
            f"({self.name} OR {other.name})",
            lambda c: self.is_satisfied_by(c) or other.is_satisfied_by(c),
        )

    def not_(self) -> Specification[T]:
        return Specification(f"NOT {self.name}", lambda c: not self.is_satisfied_by(c))

    __and__ = and_
    __or__ = or_
    __invert__ = not_

    def __repr__(self) -> str:
        return f"Specification({self.name!r})"


def spec(name: str, failure_reason: str = ""):
    """Decorator turning a predicate function into a Specification."""

    def wrap(fn: Callable[[T], bool]) -> Specification[T]:
        return Specification(name, fn, failure_reason)

    return wrap


# =============================================================================
# Estate specifications
# =============================================================================


@spec("is_solvent", "Estate is insolvent")
def is_solvent(estate: Estate) -> bool:
    return estate.is_solvent()


@spec("has_no_critical_debts", "Critical debts (S.45 tiers 1-4) are outstanding")
def has_no_critical_debts(estate: Estate) -> bool:
    return not estate.get_critical_debts()


@spec("has_verified_assets", "No verified assets")
def has_verified_assets(estate: Estate) -> bool:
    return bool(estate.get_verified_assets())


@spec("is_not_frozen", "Estate is frozen")
def is_not_frozen(estate: Estate) -> bool:
    return not estate.is_frozen


@spec("has_no_disputed_assets", "Assets are under dispute")
def has_no_disputed_assets(estate: Estate) -> bool:
    return not estate.get_disputed_assets()


@spec("has_no_disputed_debts", "Debts are under dispute")
def has_no_disputed_debts(estate: Estate) -> bool:
    return not estate.get_disputed_debts()


@spec("is_tax_cleared", "Tax has not been cleared for distribution")
def is_tax_cleared(estate: Estate) -> bool:
    return estate.tax_compliance.is_cleared_for_distribution()


@spec("has_verified_dependant_claims")
def has_verified_dependant_claims(estate: Estate) -> bool:
    return bool(estate.get_verified_dependants())


@spec("dependant_provisions_exceed_estate")
def dependant_provisions_exceed_estate(estate: Estate) -> bool:
    """Annual provisions of verified dependants exceed the net estate value."""
    provisions = Money.sum(
        (d.annual_provision(estate.currency) for d in estate.get_verified_dependants()),
        estate.currency,
    )
    return provisions > estate.get_net_value()


@spec("has_hotchpot_gifts")
def has_hotchpot_gifts(estate: Estate) -> bool:
    return bool(estate.get_confirmed_gifts())


@spec("has_unverified_gifts")
def has_unverified_gifts(estate: Estate) -> bool:
    return any(not g.is_verified for g in estate.get_confirmed_gifts())


def has_minimum_estate_value(minimum: Money | Decimal | int | str) -> Specification[Estate]:
    """Net value is at least ``minimum`` (plain numbers use the estate currency)."""

    def check(estate: Estate) -> bool:
        return estate.get_net_value() >= as_money(minimum, estate.currency)

    return Specification(f"has_minimum_estate_value({minimum})", check)


# =============================================================================
# Asset specifications
# =============================================================================


@spec("is_asset_verified")
def is_asset_verified(asset: Asset) -> bool:
    return asset.is_verified


@spec("is_asset_disputed")
def is_asset_disputed(asset: Asset) -> bool:
    return asset.is_disputed


@spec("is_liquid_asset")
def is_liquid_asset(asset: Asset) -> bool:
    return asset.is_liquid


def is_high_value_asset(threshold: Money | Decimal | int | str) -> Specification[Asset]:
    def check(asset: Asset) -> bool:
        return asset.distributable_value() > as_money(threshold, asset.current_value.currency)

    return Specification(f"is_high_value_asset({threshold})", check)


# =============================================================================
# Debt specifications
# =============================================================================


@spec("is_critical_debt")
def is_critical_debt(debt: Debt) -> bool:
    return is_critical(debt.tier)


@spec("is_secured_debt")
def is_secured_debt(debt: Debt) -> bool:
    return debt.is_secured


@spec("is_outstanding_debt")
def is_outstanding_debt(debt: Debt) -> bool:
    return debt.is_open and debt.outstanding_balance.is_positive()


@spec("is_disputed_debt")
def is_disputed_debt(debt: Debt) -> bool:
    return debt.status is DebtStatus.DISPUTED


@spec("is_statute_barred_debt")
def is_statute_barred_debt(debt: Debt) -> bool:
    return debt.status is DebtStatus.STATUTE_BARRED


# =============================================================================
# Composite readiness gate
# =============================================================================


class ReadyForDistribution:
    """
    Composite gate an estate must pass before shares are computed.

    The components are checked in a fixed order, which is also the order of
    ``get_blocking_reasons``: frozen, insolvent, critical debts, no verified
    assets, disputed assets, disputed debts.
    """

    components: tuple[Specification, ...] = (
        is_not_frozen,
        is_solvent,
        has_no_critical_debts,
        has_verified_assets,
        has_no_disputed_assets,
        has_no_disputed_debts,
    )

    def __init__(self):
        combined = self.components[0]
        for component in self.components[1:]:
            combined = combined & component
        self._combined = combined

    def is_satisfied_by(self, estate: Estate) -> bool:
        return self._combined.is_satisfied_by(estate)

    def get_blocking_reasons(self, estate: Estate) -> list[str]:
        """One message per failing component, in gate order."""
        reasons = []
        for component in self.components:
            if component.is_satisfied_by(estate):
                continue
            reasons.append(_describe_failure(component, estate))
        return reasons


def _describe_failure(component: Specification, estate: Estate) -> str:
    if component is is_not_frozen:
        return f"Estate is frozen: {estate.frozen_reason or 'no reason recorded'}"
    if component is is_solvent:
        return f"Estate is insolvent (shortfall: {estate.get_insolvency_shortfall().format()})"
    if component is has_no_critical_debts:
        debts = estate.get_critical_debts()
        total = Money.sum((d.outstanding_balance for d in debts), estate.currency)
        return (
            f"{len(debts)} critical debt(s) outstanding totalling {total.format()} "
            f"({', '.join(d.id for d in debts)})"
        )
    if component is has_no_disputed_assets:
        return f"Disputed assets: {', '.join(a.id for a in estate.get_disputed_assets())}"
    if component is has_no_disputed_debts:
        return f"Disputed debts: {', '.join(d.id for d in estate.get_disputed_debts())}"
    return component.failure_reason or f"{component.name} not satisfied"
