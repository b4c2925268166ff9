"""
Domain event records returned by Estate mutations.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, NamedTuple, Optional


class DomainEvent(NamedTuple):
    """
    Record of something that happened to an Estate.

    Mutating Estate methods return a list of these instead of buffering them
    on the aggregate; the caller publishes them once the save succeeds.

    Attributes:
        kind: Event type identifier (e.g. 'DebtPaymentRecorded')
        aggregate_id: Estate id
        version: Estate version after the mutation
        message: Human-readable description
        occurred_at: Timestamp of the mutation
        meta: Optional dictionary with event payload
    """

    kind: str
    aggregate_id: str
    version: int
    message: str
    occurred_at: datetime
    meta: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "aggregate_id": self.aggregate_id,
            "version": self.version,
            "message": self.message,
            "occurred_at": self.occurred_at.isoformat(),
            "meta": dict(self.meta or {}),
        }


class EventKind:
    """Event type identifiers emitted by the Estate aggregate."""

    ESTATE_CREATED = "EstateCreated"
    ESTATE_FROZEN = "EstateFrozen"
    ESTATE_UNFROZEN = "EstateUnfrozen"
    ESTATE_STATUS_CHANGED = "EstateStatusChanged"
    ESTATE_INSOLVENCY_DETECTED = "EstateInsolvencyDetected"
    ESTATE_SOLVENCY_RESTORED = "EstateSolvencyRestored"
    ESTATE_READY_FOR_DISTRIBUTION = "EstateReadyForDistribution"
    CASH_DEPOSITED = "CashDeposited"

    ASSET_ADDED = "AssetAdded"
    ASSET_REMOVED = "AssetRemoved"
    ASSET_VERIFIED = "AssetVerified"
    ASSET_DISPUTED = "AssetDisputed"
    ASSET_DISPUTE_RESOLVED = "AssetDisputeResolved"
    ASSET_REVALUED = "AssetRevalued"
    ASSET_LIQUIDATED = "AssetLiquidated"

    DEBT_ADDED = "DebtAdded"
    DEBT_PAYMENT_RECORDED = "DebtPaymentRecorded"
    DEBT_SETTLED = "DebtSettled"
    DEBT_STATUS_CHANGED = "DebtStatusChanged"
    DEBT_DISPUTED = "DebtDisputed"
    DEBT_WRITTEN_OFF = "DebtWrittenOff"
    DEBT_STATUTE_BARRED = "DebtStatuteBarred"

    GIFT_ADDED = "GiftAdded"
    GIFT_STATUS_CHANGED = "GiftStatusChanged"

    DEPENDANT_ADDED = "DependantAdded"
    DEPENDANT_EVIDENCE_ADDED = "DependantEvidenceAdded"
    DEPENDANT_VERIFIED = "DependantVerified"
    DEPENDANT_REJECTED = "DependantRejected"
    DEPENDANT_SETTLED = "DependantSettled"

    TAX_ASSESSED = "TaxAssessed"
    TAX_PAYMENT_RECORDED = "TaxPaymentRecorded"
    TAX_CLEARED = "TaxCleared"


__all__ = ["DomainEvent", "EventKind"]
