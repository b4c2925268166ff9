"""
Utility functions for SuccessionLab: ids, clocks and calendar arithmetic.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal


def new_id(prefix: str | None = None) -> str:
    """Generate a fresh entity id, optionally prefixed (e.g. 'debt-1a2b...')."""
    token = uuid.uuid4().hex[:12]
    return f"{prefix}-{token}" if prefix else token


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def to_date(value: date | datetime | str | None) -> date | None:
    """Normalize str | date | datetime to a date (None passes through)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def to_datetime(value: datetime | date | str | None) -> datetime | None:
    """Normalize str | date | datetime to an aware datetime (naive values are UTC)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    else:
        dt = datetime.fromisoformat(str(value))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def whole_years_between(start: date, end: date) -> int:
    """Completed years from ``start`` to ``end`` (negative if end precedes start)."""
    years = end.year - start.year
    if (end.month, end.day) < (start.month, start.day):
        years -= 1
    return years


def whole_months_between(start: date, end: date) -> int:
    """Completed months from ``start`` to ``end``."""
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        months -= 1
    return months


def to_decimal(value: Decimal | float | int | str | None) -> Decimal | None:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None
