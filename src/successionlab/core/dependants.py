"""
Legal dependants claiming provision from the estate (S.26 / S.29).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from .currency import Money
from .errors import (
    DependantStateError,
    InvalidAmountError,
    MissingEvidenceError,
    PercentageOutOfRangeError,
)
from .utils import iso, to_date, to_datetime, utcnow, whole_years_between

AGE_OF_MAJORITY = 18


class DependantRelationship(str, Enum):
    SPOUSE = "SPOUSE"
    CHILD = "CHILD"
    PARENT = "PARENT"
    SIBLING = "SIBLING"
    STEP_CHILD = "STEP_CHILD"
    GRANDCHILD = "GRANDCHILD"
    OTHER = "OTHER"

    @property
    def is_automatic(self) -> bool:
        """S.29(a) relationships carry a presumption of dependency."""
        return self in (DependantRelationship.SPOUSE, DependantRelationship.CHILD)

    @property
    def section(self) -> str:
        return "S.29(a)" if self.is_automatic else "S.29(b)"


class DependantStatus(str, Enum):
    PENDING_VERIFICATION = "PENDING_VERIFICATION"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"
    SETTLED = "SETTLED"


@dataclass(frozen=True)
class DependantEvidence:
    """One item supporting a dependency claim (affidavit, receipts...)."""

    kind: str
    description: str
    submitted_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "description": self.description,
            "submitted_at": iso(self.submitted_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DependantEvidence:
        return cls(
            kind=data["kind"],
            description=data.get("description", ""),
            submitted_at=to_datetime(data.get("submitted_at")) or utcnow(),
        )


@dataclass
class LegalDependant:
    """
    A person claiming maintenance from the estate.

    Attributes:
        id: Entity id, unique within the estate
        name: Claimant name
        relationship: Relationship to the deceased
        monthly_needs: Assessed monthly maintenance need
        previous_support: Monthly support the deceased provided
        dependency_percentage: Share of ``previous_support`` still needed, in [0, 100]
        date_of_birth: Used for the minority lump sum
        is_incapacitated: Adult unable to self-support (court review)
        evidence: Items supporting an S.29(b) claim
        status: Claim verification state
    """

    id: str
    name: str
    relationship: DependantRelationship
    monthly_needs: Money | None = None
    previous_support: Money | None = None
    dependency_percentage: Decimal = Decimal("100")
    date_of_birth: date | None = None
    is_incapacitated: bool = False
    evidence: list[DependantEvidence] = field(default_factory=list)
    status: DependantStatus = DependantStatus.PENDING_VERIFICATION
    rejection_reason: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        self.relationship = DependantRelationship(self.relationship)
        self.status = DependantStatus(self.status)
        self.date_of_birth = to_date(self.date_of_birth)
        self.dependency_percentage = Decimal(str(self.dependency_percentage))
        if not Decimal("0") <= self.dependency_percentage <= Decimal("100"):
            raise PercentageOutOfRangeError("dependency_percentage", self.dependency_percentage)
        for label, amount in (("monthly_needs", self.monthly_needs), ("previous_support", self.previous_support)):
            if amount is not None and amount.is_negative():
                raise InvalidAmountError(amount, f"{label} cannot be negative")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def requires_evidence(self) -> bool:
        return not self.relationship.is_automatic

    @property
    def is_verified(self) -> bool:
        return self.status is DependantStatus.VERIFIED

    def age_on(self, as_of: date) -> int | None:
        if self.date_of_birth is None:
            return None
        return whole_years_between(self.date_of_birth, as_of)

    def is_minor(self, as_of: date) -> bool:
        age = self.age_on(as_of)
        return age is not None and age < AGE_OF_MAJORITY

    def years_until_majority(self, as_of: date) -> int:
        age = self.age_on(as_of)
        if age is None or age >= AGE_OF_MAJORITY:
            return 0
        return AGE_OF_MAJORITY - age

    def monthly_provision(self, currency) -> Money:
        """Monthly need, or the still-needed share of previous support."""
        if self.monthly_needs is not None:
            return self.monthly_needs
        if self.previous_support is not None:
            return self.previous_support.percentage(self.dependency_percentage)
        return Money.zero(currency)

    def annual_provision(self, currency) -> Money:
        return self.monthly_provision(currency).multiply(12)

    # ------------------------------------------------------------------
    # State changes (called by Estate only)
    # ------------------------------------------------------------------

    def _ensure_pending(self, action: str) -> None:
        if self.status is not DependantStatus.PENDING_VERIFICATION:
            raise DependantStateError(
                f"Cannot {action} dependant {self.id}: claim is {self.status.value}"
            )

    def add_evidence(self, item: DependantEvidence, now: datetime) -> None:
        if self.status in (DependantStatus.REJECTED, DependantStatus.SETTLED):
            raise DependantStateError(
                f"Cannot add evidence to dependant {self.id}: claim is {self.status.value}"
            )
        self.evidence.append(item)
        self.updated_at = now

    def verify(self, now: datetime) -> None:
        self._ensure_pending("verify")
        if self.requires_evidence and not self.evidence:
            raise MissingEvidenceError(self.id, self.relationship.value)
        self.status = DependantStatus.VERIFIED
        self.updated_at = now

    def reject(self, reason: str, now: datetime) -> None:
        self._ensure_pending("reject")
        self.status = DependantStatus.REJECTED
        self.rejection_reason = reason
        self.updated_at = now

    def settle(self, now: datetime) -> None:
        if not self.is_verified:
            raise DependantStateError(
                f"Cannot settle dependant {self.id}: claim is {self.status.value}"
            )
        self.status = DependantStatus.SETTLED
        self.updated_at = now

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "relationship": self.relationship.value,
            "monthly_needs": self.monthly_needs.to_dict() if self.monthly_needs else None,
            "previous_support": self.previous_support.to_dict() if self.previous_support else None,
            "dependency_percentage": str(self.dependency_percentage),
            "date_of_birth": iso(self.date_of_birth),
            "is_incapacitated": self.is_incapacitated,
            "evidence": [item.to_dict() for item in self.evidence],
            "status": self.status.value,
            "rejection_reason": self.rejection_reason,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LegalDependant:
        needs = data.get("monthly_needs")
        support = data.get("previous_support")
        return cls(
            id=data["id"],
            name=data["name"],
            relationship=DependantRelationship(data["relationship"]),
            monthly_needs=Money.from_dict(needs) if needs else None,
            previous_support=Money.from_dict(support) if support else None,
            dependency_percentage=Decimal(str(data.get("dependency_percentage", "100"))),
            date_of_birth=to_date(data.get("date_of_birth")),
            is_incapacitated=bool(data.get("is_incapacitated", False)),
            evidence=[DependantEvidence.from_dict(e) for e in data.get("evidence", [])],
            status=DependantStatus(data.get("status", DependantStatus.PENDING_VERIFICATION.value)),
            rejection_reason=data.get("rejection_reason"),
            created_at=to_datetime(data.get("created_at")) or utcnow(),
            updated_at=to_datetime(data.get("updated_at")) or utcnow(),
        )
