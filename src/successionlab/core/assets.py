"""
Asset ledger entity.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from .currency import Money
from .errors import AssetStateError, InvalidAmountError, PercentageOutOfRangeError
from .utils import iso, to_datetime, utcnow


class AssetType(str, Enum):
    LAND = "LAND"
    BUILDING = "BUILDING"
    BANK_ACCOUNT = "BANK_ACCOUNT"
    INVESTMENT = "INVESTMENT"
    VEHICLE = "VEHICLE"
    BUSINESS = "BUSINESS"
    HOUSEHOLD = "HOUSEHOLD"
    DIGITAL = "DIGITAL"
    OTHER = "OTHER"

    @property
    def is_liquid(self) -> bool:
        return self in (AssetType.BANK_ACCOUNT, AssetType.INVESTMENT)


class VerificationStatus(str, Enum):
    UNVERIFIED = "UNVERIFIED"
    VERIFIED = "VERIFIED"
    DISPUTED = "DISPUTED"
    REJECTED = "REJECTED"


@dataclass
class Asset:
    """
    Property owned (wholly or partly) by the deceased.

    Only the deceased's share counts toward the estate, and an asset stops
    counting once liquidated: its sale proceeds move into the estate's cash.

    Attributes:
        id: Entity id, unique within the estate
        name: Description of the asset
        asset_type: Asset category
        current_value: Latest valuation of the whole asset
        ownership_percentage: Deceased's share of the asset in [0, 100]
        verification_status: Ownership/valuation verification state
        is_liquidated: True once sold and converted to cash
    """

    id: str
    name: str
    asset_type: AssetType
    current_value: Money
    ownership_percentage: Decimal = Decimal("100")
    verification_status: VerificationStatus = VerificationStatus.UNVERIFIED
    is_liquidated: bool = False
    dispute_reason: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        self.asset_type = AssetType(self.asset_type)
        self.verification_status = VerificationStatus(self.verification_status)
        self.ownership_percentage = Decimal(str(self.ownership_percentage))
        if self.current_value.is_negative():
            raise InvalidAmountError(self.current_value, "Asset value cannot be negative")
        if not Decimal("0") <= self.ownership_percentage <= Decimal("100"):
            raise PercentageOutOfRangeError("ownership_percentage", self.ownership_percentage)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def is_verified(self) -> bool:
        return self.verification_status is VerificationStatus.VERIFIED

    @property
    def is_disputed(self) -> bool:
        return self.verification_status is VerificationStatus.DISPUTED

    @property
    def is_rejected(self) -> bool:
        return self.verification_status is VerificationStatus.REJECTED

    @property
    def is_liquid(self) -> bool:
        return self.asset_type.is_liquid

    def distributable_value(self) -> Money:
        """Deceased's share of the current value; zero once liquidated."""
        if self.is_liquidated:
            return Money.zero(self.current_value.currency)
        return self.current_value.percentage(self.ownership_percentage)

    # ------------------------------------------------------------------
    # State changes (called by Estate only)
    # ------------------------------------------------------------------

    def _ensure_active(self) -> None:
        if self.is_liquidated:
            raise AssetStateError(f"Asset {self.id} has been liquidated")
        if self.is_rejected:
            raise AssetStateError(
                f"Asset {self.id} was rejected; it is not part of the estate and can only be removed"
            )

    def verify(self, now: datetime) -> None:
        self._ensure_active()
        if self.is_verified:
            raise AssetStateError(f"Asset {self.id} is already verified")
        if self.is_disputed:
            raise AssetStateError(f"Asset {self.id} is disputed; resolve the dispute first")
        self.verification_status = VerificationStatus.VERIFIED
        self.updated_at = now

    def dispute(self, reason: str, now: datetime) -> None:
        self._ensure_active()
        if self.is_disputed:
            raise AssetStateError(f"Asset {self.id} is already disputed")
        if not reason or not reason.strip():
            raise AssetStateError("A dispute reason is required")
        self.verification_status = VerificationStatus.DISPUTED
        self.dispute_reason = reason.strip()
        self.updated_at = now

    def resolve_dispute(self, upheld_ownership: bool, now: datetime) -> None:
        """Close a dispute; an upheld claim leaves the asset verified, else rejected."""
        if not self.is_disputed:
            raise AssetStateError(f"Asset {self.id} is not disputed")
        self.verification_status = (
            VerificationStatus.VERIFIED if upheld_ownership else VerificationStatus.REJECTED
        )
        self.dispute_reason = None
        self.updated_at = now

    def revalue(self, new_value: Money, now: datetime) -> None:
        self._ensure_active()
        if new_value.is_negative():
            raise InvalidAmountError(new_value, "Asset value cannot be negative")
        # raises on currency mismatch
        new_value - self.current_value
        self.current_value = new_value
        self.updated_at = now

    def liquidate(self, now: datetime) -> None:
        self._ensure_active()
        if self.is_disputed:
            raise AssetStateError(f"Asset {self.id} is disputed and cannot be liquidated")
        self.is_liquidated = True
        self.updated_at = now

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "asset_type": self.asset_type.value,
            "current_value": self.current_value.to_dict(),
            "ownership_percentage": str(self.ownership_percentage),
            "verification_status": self.verification_status.value,
            "is_liquidated": self.is_liquidated,
            "dispute_reason": self.dispute_reason,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Asset:
        return cls(
            id=data["id"],
            name=data["name"],
            asset_type=AssetType(data["asset_type"]),
            current_value=Money.from_dict(data["current_value"]),
            ownership_percentage=Decimal(str(data.get("ownership_percentage", "100"))),
            verification_status=VerificationStatus(
                data.get("verification_status", VerificationStatus.UNVERIFIED.value)
            ),
            is_liquidated=bool(data.get("is_liquidated", False)),
            dispute_reason=data.get("dispute_reason"),
            created_at=to_datetime(data.get("created_at")) or utcnow(),
            updated_at=to_datetime(data.get("updated_at")) or utcnow(),
        )
