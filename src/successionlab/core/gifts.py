"""
Gifts inter vivos: lifetime transfers subject to S.35(3) hotchpot.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

from .currency import Money
from .errors import GiftStateError, InvalidAmountError
from .utils import iso, to_date, to_datetime, utcnow


class GiftStatus(str, Enum):
    CONFIRMED = "CONFIRMED"
    CONTESTED = "CONTESTED"
    EXCLUDED = "EXCLUDED"
    RECLASSIFIED_AS_LOAN = "RECLASSIFIED_AS_LOAN"


_GIFT_TRANSITIONS: dict[GiftStatus, frozenset[GiftStatus]] = {
    GiftStatus.CONFIRMED: frozenset(
        {GiftStatus.CONTESTED, GiftStatus.EXCLUDED, GiftStatus.RECLASSIFIED_AS_LOAN}
    ),
    GiftStatus.CONTESTED: frozenset(
        {GiftStatus.CONFIRMED, GiftStatus.EXCLUDED, GiftStatus.RECLASSIFIED_AS_LOAN}
    ),
}


@dataclass
class GiftInterVivos:
    """
    A gift the deceased made during their lifetime.

    ``value_at_time_of_gift`` is fixed and is the only value hotchpot uses;
    ``current_estimated_value`` is kept for information (inflation warnings).
    """

    id: str
    recipient_id: str
    description: str
    value_at_time_of_gift: Money
    date_given: date
    current_estimated_value: Money | None = None
    status: GiftStatus = GiftStatus.CONFIRMED
    is_verified: bool = False
    contest_reason: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        self.status = GiftStatus(self.status)
        self.date_given = to_date(self.date_given)
        if not self.value_at_time_of_gift.is_positive():
            raise InvalidAmountError(self.value_at_time_of_gift, "Gift value must be positive")
        if self.current_estimated_value is not None and self.current_estimated_value.is_negative():
            raise InvalidAmountError(
                self.current_estimated_value, "Estimated value cannot be negative"
            )

    @property
    def is_confirmed(self) -> bool:
        return self.status is GiftStatus.CONFIRMED

    @property
    def is_contested(self) -> bool:
        return self.status is GiftStatus.CONTESTED

    def _move(self, target: GiftStatus, now: datetime) -> GiftStatus:
        if target not in _GIFT_TRANSITIONS.get(self.status, frozenset()):
            raise GiftStateError(
                f"Gift {self.id} cannot move from {self.status.value} to {target.value}"
            )
        previous = self.status
        self.status = target
        self.updated_at = now
        return previous

    def contest(self, reason: str, now: datetime) -> GiftStatus:
        if not reason or not reason.strip():
            raise GiftStateError("A contest reason is required")
        previous = self._move(GiftStatus.CONTESTED, now)
        self.contest_reason = reason.strip()
        return previous

    def confirm(self, now: datetime, verified: bool = True) -> GiftStatus:
        """Resolve a contest in favour of the gift standing."""
        previous = self._move(GiftStatus.CONFIRMED, now)
        self.contest_reason = None
        self.is_verified = self.is_verified or verified
        return previous

    def exclude(self, now: datetime) -> GiftStatus:
        return self._move(GiftStatus.EXCLUDED, now)

    def reclassify_as_loan(self, now: datetime) -> GiftStatus:
        return self._move(GiftStatus.RECLASSIFIED_AS_LOAN, now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "recipient_id": self.recipient_id,
            "description": self.description,
            "value_at_time_of_gift": self.value_at_time_of_gift.to_dict(),
            "date_given": iso(self.date_given),
            "current_estimated_value": (
                self.current_estimated_value.to_dict()
                if self.current_estimated_value is not None
                else None
            ),
            "status": self.status.value,
            "is_verified": self.is_verified,
            "contest_reason": self.contest_reason,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GiftInterVivos:
        estimated = data.get("current_estimated_value")
        return cls(
            id=data["id"],
            recipient_id=data["recipient_id"],
            description=data.get("description", ""),
            value_at_time_of_gift=Money.from_dict(data["value_at_time_of_gift"]),
            date_given=to_date(data["date_given"]),
            current_estimated_value=Money.from_dict(estimated) if estimated else None,
            status=GiftStatus(data.get("status", GiftStatus.CONFIRMED.value)),
            is_verified=bool(data.get("is_verified", False)),
            contest_reason=data.get("contest_reason"),
            created_at=to_datetime(data.get("created_at")) or utcnow(),
            updated_at=to_datetime(data.get("updated_at")) or utcnow(),
        )
