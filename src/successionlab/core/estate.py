"""
Estate aggregate root.

The Estate owns every ledger entity (assets, debts, gifts, dependants and the
tax record). Entities are created and changed only through the methods below;
each successful mutation bumps ``version``, recomputes solvency and returns
the domain events it produced. A failed mutation raises before touching any
state, so the aggregate is left exactly as it was.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from .assets import Asset, AssetType
from .currency import Currency, CurrencyMismatchError, Money, as_money, get_currency
from .debts import Debt, DebtStatus
from .dependants import DependantEvidence, DependantRelationship, LegalDependant
from .errors import (
    DuplicateEntityError,
    EstateFrozenError,
    EstateInsolventError,
    EstateStateError,
    GiftStateError,
    InsufficientLiquidityError,
    InvalidAmountError,
    InvalidEstateTransitionError,
    NotFoundError,
    Section45ViolationError,
    SecuredDebtError,
    TaxNotClearedError,
    UnresolvedDisputesError,
)
from .events import DomainEvent, EventKind
from .gifts import GiftInterVivos, GiftStatus
from .priority import DebtType, sort_for_payment
from .solvency import (
    calculate_distributable_pool,
    calculate_gross_value,
    calculate_net_value,
    calculate_total_liabilities,
)
from .tax import TaxCompliance
from .utils import iso, new_id, to_date, to_datetime, utcnow

logger = logging.getLogger(__name__)


class EstateStatus(str, Enum):
    SETUP = "SETUP"
    EVALUATION = "EVALUATION"
    ADMINISTRATION = "ADMINISTRATION"
    READY_FOR_DISTRIBUTION = "READY_FOR_DISTRIBUTION"
    DISTRIBUTING = "DISTRIBUTING"
    CLOSED = "CLOSED"


_NEXT_STATUS: dict[EstateStatus, EstateStatus] = {
    EstateStatus.SETUP: EstateStatus.EVALUATION,
    EstateStatus.EVALUATION: EstateStatus.ADMINISTRATION,
    EstateStatus.ADMINISTRATION: EstateStatus.READY_FOR_DISTRIBUTION,
    EstateStatus.READY_FOR_DISTRIBUTION: EstateStatus.DISTRIBUTING,
    EstateStatus.DISTRIBUTING: EstateStatus.CLOSED,
}

_REVERTIBLE = frozenset({EstateStatus.READY_FOR_DISTRIBUTION, EstateStatus.DISTRIBUTING})

# (kind, message, meta) collected by a mutation before the commit stamps them
_Record = tuple[str, str, dict[str, Any]]


@dataclass(eq=False)
class Estate:
    """
    A deceased person's estate under administration.

    Attributes:
        id: Estate id
        name: Display name (e.g. 'Estate of the late J. Kamau')
        deceased_id: Reference to the deceased in the family subsystem
        deceased_name: Name of the deceased
        date_of_death: Anchor date for hotchpot look-back and dependant ages
        currency: Currency every ledger amount must use
        status: Administration stage
        cash_on_hand: Liquid cash held by the administrator (never negative)
        is_frozen: True while a court order or dispute freezes the estate
        frozen_reason: Why the estate is frozen
        version: Optimistic-concurrency counter, bumped on every mutation
        loaded_version: Version the estate had when read from storage
            (None for an estate never saved)
        clock: Source of mutation timestamps
    """

    id: str
    name: str
    deceased_id: str
    deceased_name: str
    date_of_death: date
    currency: Currency = field(default_factory=lambda: get_currency("KES"))
    status: EstateStatus = EstateStatus.SETUP
    cash_on_hand: Money | None = None
    assets: dict[str, Asset] = field(default_factory=dict)
    debts: dict[str, Debt] = field(default_factory=dict)
    gifts: dict[str, GiftInterVivos] = field(default_factory=dict)
    dependants: dict[str, LegalDependant] = field(default_factory=dict)
    tax_compliance: TaxCompliance | None = None
    is_frozen: bool = False
    frozen_reason: str | None = None
    version: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    loaded_version: int | None = field(default=None, repr=False)
    clock: Callable[[], datetime] = field(default=utcnow, repr=False)

    def __post_init__(self):
        if isinstance(self.currency, str):
            self.currency = get_currency(self.currency)
        self.status = EstateStatus(self.status)
        self.date_of_death = to_date(self.date_of_death)
        if self.cash_on_hand is None:
            self.cash_on_hand = Money.zero(self.currency)
        if self.tax_compliance is None:
            self.tax_compliance = TaxCompliance.pending(self.currency)
        self._check_currency(self.cash_on_hand, "hold")
        if self.cash_on_hand.is_negative():
            raise InvalidAmountError(self.cash_on_hand, "Cash on hand cannot be negative")
        self._solvent = not calculate_net_value(self).is_negative()

    @classmethod
    def create(
        cls,
        name: str,
        deceased_id: str,
        deceased_name: str,
        date_of_death: date | str,
        *,
        estate_id: str | None = None,
        currency: Currency | str = "KES",
        clock: Callable[[], datetime] = utcnow,
    ) -> tuple[Estate, list[DomainEvent]]:
        """Open a new estate in SETUP; returns the estate and its creation event."""
        now = clock()
        estate = cls(
            id=estate_id or new_id("estate"),
            name=name,
            deceased_id=deceased_id,
            deceased_name=deceased_name,
            date_of_death=to_date(date_of_death),
            currency=currency,
            created_at=now,
            updated_at=now,
            clock=clock,
        )
        event = DomainEvent(
            kind=EventKind.ESTATE_CREATED,
            aggregate_id=estate.id,
            version=estate.version,
            message=f"Estate '{name}' opened for {deceased_name}",
            occurred_at=now,
            meta={"deceased_id": deceased_id, "date_of_death": iso(estate.date_of_death)},
        )
        logger.info("Opened estate %s for %s", estate.id, deceased_name)
        return estate, [event]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _ensure_mutable(self) -> None:
        if self.is_frozen:
            raise EstateFrozenError(self.id, self.frozen_reason)
        if self.status is EstateStatus.CLOSED:
            raise EstateStateError(self.id, "estate is closed")

    def _check_currency(self, amount: Money, op: str) -> None:
        if amount.currency.code != self.currency.code:
            raise CurrencyMismatchError(op, self.currency.code, amount.currency.code)

    def _money(self, value: Money | Decimal | float | int | str, op: str = "record") -> Money:
        amount = as_money(value, self.currency)
        self._check_currency(amount, op)
        return amount

    def _check_new_id(self, entity: str, entity_id: str, existing: dict) -> None:
        if entity_id in existing:
            raise DuplicateEntityError(entity, entity_id)

    def _commit(self, now: datetime, *records: _Record) -> list[DomainEvent]:
        """Bump the version, re-run solvency and stamp the collected events."""
        self.version += 1
        self.updated_at = now
        records = list(records) + self._recalculate_solvency()
        return [
            DomainEvent(kind, self.id, self.version, message, now, meta or None)
            for kind, message, meta in records
        ]

    def _recalculate_solvency(self) -> list[_Record]:
        net = calculate_net_value(self)
        solvent = not net.is_negative()
        logger.debug("Estate %s v%d net value %s", self.id, self.version, net)
        records: list[_Record] = []
        if self._solvent and not solvent:
            logger.warning("Estate %s became insolvent (shortfall %s)", self.id, -net)
            records.append(
                (
                    EventKind.ESTATE_INSOLVENCY_DETECTED,
                    f"Estate is insolvent by {(-net).format()}",
                    {"net_value": net.to_dict(), "shortfall": (-net).to_dict()},
                )
            )
        elif not self._solvent and solvent:
            logger.info("Estate %s is solvent again (net %s)", self.id, net)
            records.append(
                (
                    EventKind.ESTATE_SOLVENCY_RESTORED,
                    f"Estate is solvent again with net value {net.format()}",
                    {"net_value": net.to_dict()},
                )
            )
        self._solvent = solvent
        return records

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _lookup(self, entity: str, collection: dict, entity_id: str):
        try:
            return collection[entity_id]
        except KeyError:
            raise NotFoundError(entity, entity_id, self.id) from None

    def get_asset(self, asset_id: str) -> Asset:
        return self._lookup("Asset", self.assets, asset_id)

    def get_debt(self, debt_id: str) -> Debt:
        return self._lookup("Debt", self.debts, debt_id)

    def get_gift(self, gift_id: str) -> GiftInterVivos:
        return self._lookup("Gift", self.gifts, gift_id)

    def get_dependant(self, dependant_id: str) -> LegalDependant:
        return self._lookup("Dependant", self.dependants, dependant_id)

    # ------------------------------------------------------------------
    # Financial queries
    # ------------------------------------------------------------------

    def get_gross_value(self) -> Money:
        return calculate_gross_value(self)

    def get_total_liabilities(self) -> Money:
        return calculate_total_liabilities(self)

    def get_net_value(self) -> Money:
        return calculate_net_value(self)

    def get_distributable_pool(self) -> Money:
        """Net value plus every CONFIRMED gift inter vivos."""
        return calculate_distributable_pool(self)

    def is_solvent(self) -> bool:
        return not self.get_net_value().is_negative()

    def get_insolvency_shortfall(self) -> Money:
        net = self.get_net_value()
        return -net if net.is_negative() else Money.zero(self.currency)

    def get_critical_debts(self) -> list[Debt]:
        """Tier 1-4 debts with money still owed, in payment order."""
        return sort_for_payment(d for d in self.debts.values() if d.is_critical())

    def debts_in_payment_order(self) -> list[Debt]:
        return sort_for_payment(self.debts.values())

    def get_verified_assets(self) -> list[Asset]:
        return [a for a in self.assets.values() if a.is_verified and not a.is_liquidated]

    def get_disputed_assets(self) -> list[Asset]:
        return [a for a in self.assets.values() if a.is_disputed]

    def get_disputed_debts(self) -> list[Debt]:
        return [d for d in self.debts.values() if d.is_disputed]

    def get_confirmed_gifts(self) -> list[GiftInterVivos]:
        return [g for g in self.gifts.values() if g.is_confirmed]

    def get_verified_dependants(self) -> list[LegalDependant]:
        return [d for d in self.dependants.values() if d.is_verified]

    def validate_ready_for_distribution(self) -> None:
        """
        Raise the first condition that bars distribution.

        Order: frozen, insolvent, tax not cleared, unresolved disputes.

        Raises:
            EstateFrozenError, EstateInsolventError, TaxNotClearedError,
            UnresolvedDisputesError
        """
        if self.is_frozen:
            raise EstateFrozenError(self.id, self.frozen_reason)
        if not self.is_solvent():
            raise EstateInsolventError(self.id, self.get_insolvency_shortfall())
        if not self.tax_compliance.is_cleared_for_distribution():
            raise TaxNotClearedError(self.id, self.tax_compliance.status.value)
        disputed_assets = [a.id for a in self.get_disputed_assets()]
        disputed_debts = [d.id for d in self.get_disputed_debts()]
        if disputed_assets or disputed_debts:
            raise UnresolvedDisputesError(self.id, disputed_assets, disputed_debts)

    # ------------------------------------------------------------------
    # Assets
    # ------------------------------------------------------------------

    def add_asset(
        self,
        name: str,
        asset_type: AssetType | str,
        current_value: Money | Decimal | int | str,
        *,
        ownership_percentage: Decimal | int | str = Decimal("100"),
        asset_id: str | None = None,
    ) -> list[DomainEvent]:
        self._ensure_mutable()
        asset_id = asset_id or new_id("asset")
        self._check_new_id("Asset", asset_id, self.assets)
        now = self.clock()
        asset = Asset(
            id=asset_id,
            name=name,
            asset_type=AssetType(asset_type),
            current_value=self._money(current_value),
            ownership_percentage=Decimal(str(ownership_percentage)),
            created_at=now,
            updated_at=now,
        )
        self.assets[asset.id] = asset
        return self._commit(
            now,
            (
                EventKind.ASSET_ADDED,
                f"Asset '{name}' added at {asset.current_value.format()}",
                {"asset_id": asset.id, "value": asset.current_value.to_dict()},
            ),
        )

    def verify_asset(self, asset_id: str) -> list[DomainEvent]:
        self._ensure_mutable()
        asset = self.get_asset(asset_id)
        now = self.clock()
        asset.verify(now)
        return self._commit(
            now, (EventKind.ASSET_VERIFIED, f"Asset '{asset.name}' verified", {"asset_id": asset_id})
        )

    def dispute_asset(self, asset_id: str, reason: str) -> list[DomainEvent]:
        self._ensure_mutable()
        asset = self.get_asset(asset_id)
        now = self.clock()
        asset.dispute(reason, now)
        return self._commit(
            now,
            (
                EventKind.ASSET_DISPUTED,
                f"Asset '{asset.name}' disputed: {asset.dispute_reason}",
                {"asset_id": asset_id, "reason": asset.dispute_reason},
            ),
        )

    def resolve_asset_dispute(self, asset_id: str, upheld_ownership: bool) -> list[DomainEvent]:
        """Close an asset dispute; a rejected asset stops counting toward the estate."""
        self._ensure_mutable()
        asset = self.get_asset(asset_id)
        now = self.clock()
        asset.resolve_dispute(upheld_ownership, now)
        return self._commit(
            now,
            (
                EventKind.ASSET_DISPUTE_RESOLVED,
                f"Dispute over '{asset.name}' resolved: {asset.verification_status.value}",
                {"asset_id": asset_id, "status": asset.verification_status.value},
            ),
        )

    def revalue_asset(self, asset_id: str, new_value: Money | Decimal | int | str) -> list[DomainEvent]:
        self._ensure_mutable()
        asset = self.get_asset(asset_id)
        amount = self._money(new_value, "revalue")
        now = self.clock()
        previous = asset.current_value
        asset.revalue(amount, now)
        return self._commit(
            now,
            (
                EventKind.ASSET_REVALUED,
                f"Asset '{asset.name}' revalued from {previous.format()} to {amount.format()}",
                {"asset_id": asset_id, "previous": previous.to_dict(), "value": amount.to_dict()},
            ),
        )

    def liquidate_asset(
        self, asset_id: str, proceeds: Money | Decimal | int | str | None = None
    ) -> list[DomainEvent]:
        """
        Sell an asset; the proceeds (default: its distributable value) become cash.
        """
        self._ensure_mutable()
        asset = self.get_asset(asset_id)
        amount = asset.distributable_value() if proceeds is None else self._money(proceeds, "liquidate")
        if amount.is_negative():
            raise InvalidAmountError(amount, "Sale proceeds cannot be negative")
        now = self.clock()
        asset.liquidate(now)
        self.cash_on_hand = self.cash_on_hand + amount
        logger.info("Estate %s liquidated asset %s for %s", self.id, asset_id, amount)
        return self._commit(
            now,
            (
                EventKind.ASSET_LIQUIDATED,
                f"Asset '{asset.name}' liquidated for {amount.format()}",
                {"asset_id": asset_id, "proceeds": amount.to_dict()},
            ),
        )

    def remove_asset(self, asset_id: str) -> list[DomainEvent]:
        self._ensure_mutable()
        asset = self.get_asset(asset_id)
        charged = [d.id for d in self.debts.values() if d.secured_asset_id == asset_id and d.is_open]
        if charged:
            raise SecuredDebtError(
                f"Asset {asset_id} secures open debt(s) {', '.join(charged)} and cannot be removed"
            )
        now = self.clock()
        del self.assets[asset_id]
        return self._commit(
            now, (EventKind.ASSET_REMOVED, f"Asset '{asset.name}' removed", {"asset_id": asset_id})
        )

    # ------------------------------------------------------------------
    # Debts
    # ------------------------------------------------------------------

    def add_debt(
        self,
        creditor_name: str,
        debt_type: DebtType | str,
        amount: Money | Decimal | int | str,
        *,
        outstanding_balance: Money | Decimal | int | str | None = None,
        interest_rate: Decimal | int | str = Decimal("0"),
        is_secured: bool = False,
        secured_asset_id: str | None = None,
        description: str | None = None,
        debt_id: str | None = None,
        created_at: datetime | str | None = None,
    ) -> list[DomainEvent]:
        self._ensure_mutable()
        debt_id = debt_id or new_id("debt")
        self._check_new_id("Debt", debt_id, self.debts)
        if secured_asset_id is not None and secured_asset_id not in self.assets:
            raise SecuredDebtError(f"Secured asset {secured_asset_id} is not part of estate {self.id}")
        now = self.clock()
        debt = Debt(
            id=debt_id,
            creditor_name=creditor_name,
            debt_type=DebtType(debt_type),
            initial_amount=self._money(amount),
            outstanding_balance=(
                None if outstanding_balance is None else self._money(outstanding_balance)
            ),
            interest_rate=Decimal(str(interest_rate)),
            is_secured=is_secured,
            secured_asset_id=secured_asset_id,
            description=description,
            created_at=to_datetime(created_at) or now,
            updated_at=now,
        )
        self.debts[debt.id] = debt
        return self._commit(
            now,
            (
                EventKind.DEBT_ADDED,
                f"Debt to {creditor_name} of {debt.outstanding_balance.format()} recorded "
                f"(tier {int(debt.tier)})",
                {
                    "debt_id": debt.id,
                    "tier": int(debt.tier),
                    "amount": debt.outstanding_balance.to_dict(),
                },
            ),
        )

    def _blocking_debt(self, debt: Debt) -> Debt | None:
        """First OUTSTANDING debt (in payment order) that strictly outranks ``debt``."""
        for other in self.debts_in_payment_order():
            if other.id == debt.id:
                continue
            if other.status is DebtStatus.OUTSTANDING and other.tier < debt.tier:
                return other
        return None

    def pay_debt(self, debt_id: str, amount: Money | Decimal | int | str) -> list[DomainEvent]:
        """
        Pay a debt from cash on hand, enforcing S.45 order.

        Raises:
            EstateFrozenError: Estate is frozen
            InvalidAmountError: Amount is zero or negative
            NotFoundError: No such debt
            InsufficientLiquidityError: Amount exceeds cash on hand
            Section45ViolationError: An OUTSTANDING debt of a higher-priority
                (lower-numbered) tier exists
            DebtStateError / OverpaymentError: The debt cannot take this payment
        """
        self._ensure_mutable()
        payment = self._money(amount, "pay")
        if not payment.is_positive():
            raise InvalidAmountError(payment)
        debt = self.get_debt(debt_id)
        if payment > self.cash_on_hand:
            raise InsufficientLiquidityError(payment, self.cash_on_hand)
        blocker = self._blocking_debt(debt)
        if blocker is not None:
            raise Section45ViolationError(
                debt.id, int(debt.tier), blocker.id, int(blocker.tier), blocker.creditor_name
            )

        now = self.clock()
        settled = debt.record_payment(payment, now)
        self.cash_on_hand = self.cash_on_hand - payment
        logger.info(
            "Estate %s paid %s to %s (debt %s, tier %d)",
            self.id,
            payment,
            debt.creditor_name,
            debt.id,
            int(debt.tier),
        )
        records: list[_Record] = [
            (
                EventKind.DEBT_PAYMENT_RECORDED,
                f"Paid {payment.format()} to {debt.creditor_name}",
                {
                    "debt_id": debt.id,
                    "amount": payment.to_dict(),
                    "outstanding_balance": debt.outstanding_balance.to_dict(),
                    "cash_on_hand": self.cash_on_hand.to_dict(),
                },
            )
        ]
        if settled:
            records.append(
                (EventKind.DEBT_SETTLED, f"Debt to {debt.creditor_name} settled", {"debt_id": debt.id})
            )
        return self._commit(now, *records)

    def _debt_status_event(self, debt: Debt, previous: DebtStatus, kind: str = EventKind.DEBT_STATUS_CHANGED) -> _Record:
        return (
            kind,
            f"Debt to {debt.creditor_name} moved from {previous.value} to {debt.status.value}",
            {"debt_id": debt.id, "from": previous.value, "to": debt.status.value},
        )

    def transition_debt(self, debt_id: str, target: DebtStatus | str) -> list[DomainEvent]:
        """Move a debt along its status graph (InvalidDebtTransitionError otherwise)."""
        self._ensure_mutable()
        debt = self.get_debt(debt_id)
        now = self.clock()
        previous = debt.transition(target, now)
        return self._commit(now, self._debt_status_event(debt, previous))

    def dispute_debt(self, debt_id: str, reason: str) -> list[DomainEvent]:
        self._ensure_mutable()
        debt = self.get_debt(debt_id)
        now = self.clock()
        previous = debt.status
        debt.dispute(reason, now)
        return self._commit(now, self._debt_status_event(debt, previous, EventKind.DEBT_DISPUTED))

    def resolve_debt_dispute(self, debt_id: str, upheld: bool) -> list[DomainEvent]:
        """Close a debt dispute: upheld claims are OUTSTANDING again, others WRITTEN_OFF."""
        self._ensure_mutable()
        debt = self.get_debt(debt_id)
        now = self.clock()
        previous = debt.status
        debt.resolve_dispute(upheld, now)
        return self._commit(now, self._debt_status_event(debt, previous))

    def write_off_debt(self, debt_id: str) -> list[DomainEvent]:
        self._ensure_mutable()
        debt = self.get_debt(debt_id)
        now = self.clock()
        previous = debt.status
        debt.write_off(now)
        logger.info("Estate %s wrote off debt %s", self.id, debt_id)
        return self._commit(now, self._debt_status_event(debt, previous, EventKind.DEBT_WRITTEN_OFF))

    def mark_debt_statute_barred(self, debt_id: str) -> list[DomainEvent]:
        """Bar an unenforceable debt; it drops to the sixth pseudo-tier."""
        self._ensure_mutable()
        debt = self.get_debt(debt_id)
        now = self.clock()
        previous = debt.status
        debt.mark_statute_barred(now)
        return self._commit(
            now, self._debt_status_event(debt, previous, EventKind.DEBT_STATUTE_BARRED)
        )

    # ------------------------------------------------------------------
    # Gifts inter vivos
    # ------------------------------------------------------------------

    def add_gift(
        self,
        recipient_id: str,
        description: str,
        value_at_time_of_gift: Money | Decimal | int | str,
        date_given: date | str,
        *,
        current_estimated_value: Money | Decimal | int | str | None = None,
        is_verified: bool = False,
        status: GiftStatus | str = GiftStatus.CONFIRMED,
        gift_id: str | None = None,
    ) -> list[DomainEvent]:
        self._ensure_mutable()
        gift_id = gift_id or new_id("gift")
        self._check_new_id("Gift", gift_id, self.gifts)
        given = to_date(date_given)
        if given > self.date_of_death:
            raise GiftStateError(
                f"Gift {gift_id} is dated {given}, after the date of death {self.date_of_death}"
            )
        now = self.clock()
        gift = GiftInterVivos(
            id=gift_id,
            recipient_id=recipient_id,
            description=description,
            value_at_time_of_gift=self._money(value_at_time_of_gift),
            date_given=given,
            current_estimated_value=(
                None if current_estimated_value is None else self._money(current_estimated_value)
            ),
            status=GiftStatus(status),
            is_verified=is_verified,
            created_at=now,
            updated_at=now,
        )
        self.gifts[gift.id] = gift
        return self._commit(
            now,
            (
                EventKind.GIFT_ADDED,
                f"Gift '{description}' to {recipient_id} of {gift.value_at_time_of_gift.format()}",
                {"gift_id": gift.id, "recipient_id": recipient_id, "status": gift.status.value},
            ),
        )

    def _gift_event(self, gift: GiftInterVivos, previous: GiftStatus) -> _Record:
        return (
            EventKind.GIFT_STATUS_CHANGED,
            f"Gift '{gift.description}' moved from {previous.value} to {gift.status.value}",
            {"gift_id": gift.id, "from": previous.value, "to": gift.status.value},
        )

    def contest_gift(self, gift_id: str, reason: str) -> list[DomainEvent]:
        self._ensure_mutable()
        gift = self.get_gift(gift_id)
        now = self.clock()
        previous = gift.contest(reason, now)
        return self._commit(now, self._gift_event(gift, previous))

    def confirm_gift(self, gift_id: str) -> list[DomainEvent]:
        self._ensure_mutable()
        gift = self.get_gift(gift_id)
        now = self.clock()
        previous = gift.confirm(now)
        return self._commit(now, self._gift_event(gift, previous))

    def exclude_gift(self, gift_id: str) -> list[DomainEvent]:
        self._ensure_mutable()
        gift = self.get_gift(gift_id)
        now = self.clock()
        previous = gift.exclude(now)
        return self._commit(now, self._gift_event(gift, previous))

    def reclassify_gift_as_loan(self, gift_id: str) -> list[DomainEvent]:
        self._ensure_mutable()
        gift = self.get_gift(gift_id)
        now = self.clock()
        previous = gift.reclassify_as_loan(now)
        return self._commit(now, self._gift_event(gift, previous))

    # ------------------------------------------------------------------
    # Dependants
    # ------------------------------------------------------------------

    def add_dependant(
        self,
        name: str,
        relationship: DependantRelationship | str,
        *,
        monthly_needs: Money | Decimal | int | str | None = None,
        previous_support: Money | Decimal | int | str | None = None,
        dependency_percentage: Decimal | int | str = Decimal("100"),
        date_of_birth: date | str | None = None,
        is_incapacitated: bool = False,
        dependant_id: str | None = None,
    ) -> list[DomainEvent]:
        self._ensure_mutable()
        dependant_id = dependant_id or new_id("dependant")
        self._check_new_id("Dependant", dependant_id, self.dependants)
        now = self.clock()
        dependant = LegalDependant(
            id=dependant_id,
            name=name,
            relationship=DependantRelationship(relationship),
            monthly_needs=None if monthly_needs is None else self._money(monthly_needs),
            previous_support=None if previous_support is None else self._money(previous_support),
            dependency_percentage=Decimal(str(dependency_percentage)),
            date_of_birth=to_date(date_of_birth),
            is_incapacitated=is_incapacitated,
            created_at=now,
            updated_at=now,
        )
        self.dependants[dependant.id] = dependant
        return self._commit(
            now,
            (
                EventKind.DEPENDANT_ADDED,
                f"{dependant.relationship.section} claim by {name} "
                f"({dependant.relationship.value}) recorded",
                {"dependant_id": dependant.id, "relationship": dependant.relationship.value},
            ),
        )

    def add_dependant_evidence(self, dependant_id: str, kind: str, description: str = "") -> list[DomainEvent]:
        self._ensure_mutable()
        dependant = self.get_dependant(dependant_id)
        now = self.clock()
        dependant.add_evidence(DependantEvidence(kind=kind, description=description, submitted_at=now), now)
        return self._commit(
            now,
            (
                EventKind.DEPENDANT_EVIDENCE_ADDED,
                f"Evidence '{kind}' filed for {dependant.name}",
                {"dependant_id": dependant_id, "evidence_count": len(dependant.evidence)},
            ),
        )

    def verify_dependant(self, dependant_id: str) -> list[DomainEvent]:
        self._ensure_mutable()
        dependant = self.get_dependant(dependant_id)
        now = self.clock()
        dependant.verify(now)
        return self._commit(
            now,
            (
                EventKind.DEPENDANT_VERIFIED,
                f"Claim by {dependant.name} verified",
                {"dependant_id": dependant_id},
            ),
        )

    def reject_dependant(self, dependant_id: str, reason: str) -> list[DomainEvent]:
        self._ensure_mutable()
        dependant = self.get_dependant(dependant_id)
        now = self.clock()
        dependant.reject(reason, now)
        return self._commit(
            now,
            (
                EventKind.DEPENDANT_REJECTED,
                f"Claim by {dependant.name} rejected: {reason}",
                {"dependant_id": dependant_id, "reason": reason},
            ),
        )

    def settle_dependant(self, dependant_id: str) -> list[DomainEvent]:
        self._ensure_mutable()
        dependant = self.get_dependant(dependant_id)
        now = self.clock()
        dependant.settle(now)
        return self._commit(
            now,
            (
                EventKind.DEPENDANT_SETTLED,
                f"Provision for {dependant.name} settled",
                {"dependant_id": dependant_id},
            ),
        )

    # ------------------------------------------------------------------
    # Cash and tax
    # ------------------------------------------------------------------

    def deposit_cash(self, amount: Money | Decimal | int | str, source: str | None = None) -> list[DomainEvent]:
        self._ensure_mutable()
        deposit = self._money(amount, "deposit")
        if not deposit.is_positive():
            raise InvalidAmountError(deposit)
        now = self.clock()
        self.cash_on_hand = self.cash_on_hand + deposit
        return self._commit(
            now,
            (
                EventKind.CASH_DEPOSITED,
                f"Deposited {deposit.format()}" + (f" from {source}" if source else ""),
                {"amount": deposit.to_dict(), "source": source, "cash_on_hand": self.cash_on_hand.to_dict()},
            ),
        )

    def record_tax_assessment(self, liability: Money | Decimal | int | str) -> list[DomainEvent]:
        self._ensure_mutable()
        amount = self._money(liability, "assess")
        now = self.clock()
        self.tax_compliance.assess(amount)
        return self._commit(
            now,
            (
                EventKind.TAX_ASSESSED,
                f"Tax assessed at {amount.format()}",
                {"liability": amount.to_dict(), "status": self.tax_compliance.status.value},
            ),
        )

    def record_tax_payment(self, amount: Money | Decimal | int | str) -> list[DomainEvent]:
        """Pay tax from cash on hand."""
        self._ensure_mutable()
        payment = self._money(amount, "pay")
        if not payment.is_positive():
            raise InvalidAmountError(payment)
        if payment > self.cash_on_hand:
            raise InsufficientLiquidityError(payment, self.cash_on_hand)
        now = self.clock()
        self.tax_compliance.record_payment(payment)
        self.cash_on_hand = self.cash_on_hand - payment
        return self._commit(
            now,
            (
                EventKind.TAX_PAYMENT_RECORDED,
                f"Tax payment of {payment.format()} recorded",
                {"amount": payment.to_dict(), "tax_paid": self.tax_compliance.tax_paid.to_dict()},
            ),
        )

    def clear_tax(self, exempt: bool = False) -> list[DomainEvent]:
        self._ensure_mutable()
        now = self.clock()
        self.tax_compliance.clear(exempt)
        return self._commit(
            now,
            (
                EventKind.TAX_CLEARED,
                f"Tax {self.tax_compliance.status.value.lower()} for distribution",
                {"status": self.tax_compliance.status.value},
            ),
        )

    # ------------------------------------------------------------------
    # Freezing
    # ------------------------------------------------------------------

    def freeze(self, reason: str) -> list[DomainEvent]:
        if self.is_frozen:
            raise EstateFrozenError(self.id, self.frozen_reason)
        if not reason or not reason.strip():
            raise EstateStateError(self.id, "a freeze reason is required")
        now = self.clock()
        self.is_frozen = True
        self.frozen_reason = reason.strip()
        logger.info("Estate %s frozen: %s", self.id, self.frozen_reason)
        return self._commit(
            now, (EventKind.ESTATE_FROZEN, f"Estate frozen: {self.frozen_reason}", {"reason": self.frozen_reason})
        )

    def unfreeze(self, reason: str | None = None) -> list[DomainEvent]:
        if not self.is_frozen:
            raise EstateStateError(self.id, "estate is not frozen")
        now = self.clock()
        self.is_frozen = False
        self.frozen_reason = None
        logger.info("Estate %s unfrozen", self.id)
        return self._commit(
            now, (EventKind.ESTATE_UNFROZEN, "Estate unfrozen" + (f": {reason}" if reason else ""), {"reason": reason})
        )

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    def _advance(self, target: EstateStatus, *extra: _Record) -> list[DomainEvent]:
        self._ensure_mutable()
        if _NEXT_STATUS.get(self.status) is not target:
            raise InvalidEstateTransitionError(self.id, self.status.value, target.value)
        now = self.clock()
        previous = self.status
        self.status = target
        logger.info("Estate %s moved from %s to %s", self.id, previous.value, target.value)
        return self._commit(
            now,
            (
                EventKind.ESTATE_STATUS_CHANGED,
                f"Estate moved from {previous.value} to {target.value}",
                {"from": previous.value, "to": target.value},
            ),
            *extra,
        )

    def start_evaluation(self) -> list[DomainEvent]:
        return self._advance(EstateStatus.EVALUATION)

    def begin_administration(self) -> list[DomainEvent]:
        return self._advance(EstateStatus.ADMINISTRATION)

    def mark_ready_for_distribution(self) -> list[DomainEvent]:
        """Advance to READY_FOR_DISTRIBUTION once every readiness check passes."""
        self._ensure_mutable()
        self.validate_ready_for_distribution()
        return self._advance(
            EstateStatus.READY_FOR_DISTRIBUTION,
            (
                EventKind.ESTATE_READY_FOR_DISTRIBUTION,
                f"Estate ready for distribution with net value {self.get_net_value().format()}",
                {"net_value": self.get_net_value().to_dict()},
            ),
        )

    def start_distribution(self) -> list[DomainEvent]:
        return self._advance(EstateStatus.DISTRIBUTING)

    def close(self) -> list[DomainEvent]:
        return self._advance(EstateStatus.CLOSED)

    def revert_to_administration(self, reason: str) -> list[DomainEvent]:
        """Step back from READY_FOR_DISTRIBUTION or DISTRIBUTING (e.g. a new claim surfaced)."""
        self._ensure_mutable()
        if self.status not in _REVERTIBLE:
            raise InvalidEstateTransitionError(
                self.id, self.status.value, EstateStatus.ADMINISTRATION.value
            )
        now = self.clock()
        previous = self.status
        self.status = EstateStatus.ADMINISTRATION
        logger.info("Estate %s reverted to ADMINISTRATION: %s", self.id, reason)
        return self._commit(
            now,
            (
                EventKind.ESTATE_STATUS_CHANGED,
                f"Estate reverted from {previous.value} to ADMINISTRATION: {reason}",
                {"from": previous.value, "to": EstateStatus.ADMINISTRATION.value, "reason": reason},
            ),
        )

    # ------------------------------------------------------------------
    # Persistence boundary
    # ------------------------------------------------------------------

    def to_snapshot(self) -> dict[str, Any]:
        """Flat, JSON-serialisable record of the whole aggregate."""
        return {
            "id": self.id,
            "name": self.name,
            "deceased_id": self.deceased_id,
            "deceased_name": self.deceased_name,
            "date_of_death": iso(self.date_of_death),
            "currency": self.currency.code,
            "status": self.status.value,
            "cash_on_hand": self.cash_on_hand.to_dict(),
            "is_frozen": self.is_frozen,
            "frozen_reason": self.frozen_reason,
            "version": self.version,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
            "tax_compliance": self.tax_compliance.to_dict(),
            "assets": [a.to_dict() for a in self.assets.values()],
            "debts": [d.to_dict() for d in self.debts.values()],
            "gifts": [g.to_dict() for g in self.gifts.values()],
            "dependants": [d.to_dict() for d in self.dependants.values()],
        }

    @classmethod
    def from_snapshot(
        cls, record: dict[str, Any], clock: Callable[[], datetime] = utcnow
    ) -> Estate:
        """Rebuild an estate (and its owned entities) from ``to_snapshot`` output."""
        currency = get_currency(record.get("currency", "KES"))
        tax = record.get("tax_compliance")
        return cls(
            id=record["id"],
            name=record["name"],
            deceased_id=record["deceased_id"],
            deceased_name=record["deceased_name"],
            date_of_death=to_date(record["date_of_death"]),
            currency=currency,
            status=EstateStatus(record.get("status", EstateStatus.SETUP.value)),
            cash_on_hand=(
                Money.from_dict(record["cash_on_hand"]) if record.get("cash_on_hand") else None
            ),
            assets={a["id"]: Asset.from_dict(a) for a in record.get("assets", [])},
            debts={d["id"]: Debt.from_dict(d) for d in record.get("debts", [])},
            gifts={g["id"]: GiftInterVivos.from_dict(g) for g in record.get("gifts", [])},
            dependants={d["id"]: LegalDependant.from_dict(d) for d in record.get("dependants", [])},
            tax_compliance=TaxCompliance.from_dict(tax) if tax else None,
            is_frozen=bool(record.get("is_frozen", False)),
            frozen_reason=record.get("frozen_reason"),
            version=int(record.get("version", 0)),
            created_at=to_datetime(record.get("created_at")) or utcnow(),
            updated_at=to_datetime(record.get("updated_at")) or utcnow(),
            clock=clock,
        )
