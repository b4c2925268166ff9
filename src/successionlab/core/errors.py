"""
Error classes for SuccessionLab.

This module defines the exception hierarchy raised by the estate domain core.
Every error is a local, synchronous validation failure: the operation that
raised it left the Estate aggregate unchanged, and nothing is retried
internally.

**Families:**
- State guards: the entity is in a state that forbids the operation
- Invariants: an argument would break a ledger invariant
- Statutory order: S.45 payment priority would be violated
- Readiness: the estate cannot yet be distributed
- Concurrency: a stale snapshot was saved

**Example Usage:**
    ```python
    from successionlab.core.errors import EstateError, Section45ViolationError

    try:
        estate.pay_debt("loan-7", Money(10_000))
    except Section45ViolationError as e:
        print(f"Pay {e.blocking_debt_id} first: {e}")
    except EstateError as e:
        print(f"Rejected: {e}")
    ```
"""

from __future__ import annotations

from decimal import Decimal



class EstateError(Exception):
    """Base class for every domain error raised by SuccessionLab."""


# =============================================================================
# Lookup / liquidity
# =============================================================================


class NotFoundError(EstateError, LookupError):
    """An owned ledger entity with the given id does not exist."""

    def __init__(self, entity: str, entity_id: str, estate_id: str | None = None):
        self.entity = entity
        self.entity_id = entity_id
        self.estate_id = estate_id
        where = f" in estate {estate_id}" if estate_id else ""
        super().__init__(f"{entity} '{entity_id}' not found{where}")


class InsufficientLiquidityError(EstateError):
    """A payment exceeds the cash on hand."""

    def __init__(self, requested, available):
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient cash on hand: requested {requested}, available {available}"
        )


# =============================================================================
# State guards
# =============================================================================


class EstateFrozenError(EstateError):
    """The estate is frozen; no mutation or distribution may proceed."""

    def __init__(self, estate_id: str, reason: str | None = None):
        self.estate_id = estate_id
        self.reason = reason
        super().__init__(
            f"Estate {estate_id} is frozen: {reason or 'no reason recorded'}"
        )


class EstateStateError(EstateError):
    """The estate's own state forbids the operation (closed, not frozen...)."""

    def __init__(self, estate_id: str, message: str):
        self.estate_id = estate_id
        super().__init__(f"Estate {estate_id}: {message}")


class InvalidEstateTransitionError(EstateError):
    """The requested estate status change is not allowed."""

    def __init__(self, estate_id: str, current: str, target: str):
        self.estate_id = estate_id
        self.current = current
        self.target = target
        super().__init__(
            f"Estate {estate_id} cannot move from {current} to {target}"
        )


class AssetStateError(EstateError):
    """The asset's state forbids the operation."""


class DebtStateError(EstateError):
    """The debt's state forbids the operation (settled, barred, disputed...)."""

    def __init__(self, debt_id: str, status: str, message: str):
        self.debt_id = debt_id
        self.status = status
        super().__init__(f"Debt {debt_id} ({status}): {message}")


class InvalidDebtTransitionError(DebtStateError):
    """The debt status graph does not allow this transition."""

    def __init__(self, debt_id: str, current: str, target: str):
        self.target = target
        super().__init__(debt_id, current, f"transition to {target} is not allowed")


class GiftStateError(EstateError):
    """The gift's state forbids the operation."""


class DependantStateError(EstateError):
    """The dependant claim's state forbids the operation (e.g. double verify)."""


# =============================================================================
# Invariants
# =============================================================================


class CurrencyMismatchError(EstateError, ValueError):
    """Raised when arithmetic or comparison mixes two currencies."""

    def __init__(self, op: str, left: str, right: str):
        self.op = op
        self.left = left
        self.right = right
        super().__init__(
            f"Cannot {op} amounts in different currencies: {left} vs {right}"
        )


class InvalidAmountError(EstateError, ValueError):
    """A monetary amount is zero, negative or otherwise invalid."""

    def __init__(self, amount, message: str = "Amount must be positive"):
        self.amount = amount
        super().__init__(f"{message}: {amount}")


class OverpaymentError(EstateError, ValueError):
    """A payment exceeds the debt's outstanding balance."""

    def __init__(self, debt_id: str, amount, outstanding):
        self.debt_id = debt_id
        self.amount = amount
        self.outstanding = outstanding
        super().__init__(
            f"Payment {amount} exceeds outstanding balance {outstanding} on debt {debt_id}"
        )


class SecuredDebtError(EstateError, ValueError):
    """A secured debt is missing its linked asset (or links an unknown one)."""


class PercentageOutOfRangeError(EstateError, ValueError):
    """A percentage fell outside [0, 100] (or a rate outside [0, 1])."""

    def __init__(self, name: str, value, low=Decimal("0"), high=Decimal("100")):
        self.name = name
        self.value = value
        super().__init__(f"{name} must be between {low} and {high}, got {value}")


class DuplicateEntityError(EstateError, ValueError):
    """An entity with the same id is already owned by the estate."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' already exists in estate")


class MissingEvidenceError(EstateError):
    """An S.29(b) dependant claim was verified without evidence."""

    def __init__(self, dependant_id: str, relationship: str):
        self.dependant_id = dependant_id
        self.relationship = relationship
        super().__init__(
            f"Dependant {dependant_id} ({relationship}) requires at least one "
            "evidence item under S.29(b) before verification"
        )


# =============================================================================
# Statutory order
# =============================================================================


class Section45ViolationError(EstateError):
    """
    A lower-priority debt was paid while a higher-priority one is outstanding.

    Attributes:
        debt_id: The debt the caller tried to pay
        debt_tier: Its S.45 tier
        blocking_debt_id: The outstanding higher-priority debt
        blocking_tier: Tier of the blocking debt
        blocking_creditor: Creditor of the blocking debt
    """

    def __init__(
        self,
        debt_id: str,
        debt_tier: int,
        blocking_debt_id: str,
        blocking_tier: int,
        blocking_creditor: str | None = None,
    ):
        self.debt_id = debt_id
        self.debt_tier = debt_tier
        self.blocking_debt_id = blocking_debt_id
        self.blocking_tier = blocking_tier
        self.blocking_creditor = blocking_creditor
        creditor = f" owed to {blocking_creditor}" if blocking_creditor else ""
        super().__init__(
            f"S.45 violation: cannot pay debt {debt_id} (tier {debt_tier}) while "
            f"debt {blocking_debt_id}{creditor} (tier {blocking_tier}) is outstanding"
        )


# =============================================================================
# Readiness
# =============================================================================


class EstateInsolventError(EstateError):
    """Liabilities exceed assets; distribution is barred."""

    def __init__(self, estate_id: str, shortfall):
        self.estate_id = estate_id
        self.shortfall = shortfall
        super().__init__(f"Estate {estate_id} is insolvent (shortfall: {shortfall})")


class TaxNotClearedError(EstateError):
    """The tax authority has not cleared the estate for distribution."""

    def __init__(self, estate_id: str, status: str):
        self.estate_id = estate_id
        self.status = status
        super().__init__(
            f"Estate {estate_id} is not tax-cleared for distribution (status: {status})"
        )


class UnresolvedDisputesError(EstateError):
    """Disputed assets or debts remain unresolved."""

    def __init__(
        self,
        estate_id: str,
        disputed_asset_ids: list[str] | None = None,
        disputed_debt_ids: list[str] | None = None,
    ):
        self.estate_id = estate_id
        self.disputed_asset_ids = disputed_asset_ids or []
        self.disputed_debt_ids = disputed_debt_ids or []
        super().__init__(
            f"Estate {estate_id} has unresolved disputes: "
            f"{len(self.disputed_asset_ids)} asset(s), "
            f"{len(self.disputed_debt_ids)} debt(s)"
        )


class DistributionBlockedError(EstateError):
    """The composite readiness specification failed."""

    def __init__(self, estate_id: str, reasons: list[str]):
        self.estate_id = estate_id
        self.reasons = list(reasons)
        super().__init__(
            f"Estate {estate_id} not ready for distribution: " + "; ".join(reasons)
        )


# =============================================================================
# Concurrency / configuration
# =============================================================================


class ConcurrencyConflictError(EstateError):
    """The stored version no longer matches the version the estate was loaded with."""

    def __init__(self, estate_id: str, expected_version: int | None, actual_version: int | None):
        self.estate_id = estate_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Estate {estate_id} was modified concurrently: expected stored "
            f"version {expected_version}, found {actual_version}. Reload and retry."
        )


class CatalogError(EstateError, ValueError):
    """Raised when a ledger file cannot be parsed or validated."""


__all__ = [
    "EstateError",
    "NotFoundError",
    "InsufficientLiquidityError",
    "EstateFrozenError",
    "EstateStateError",
    "InvalidEstateTransitionError",
    "AssetStateError",
    "DebtStateError",
    "InvalidDebtTransitionError",
    "GiftStateError",
    "DependantStateError",
    "InvalidAmountError",
    "OverpaymentError",
    "SecuredDebtError",
    "PercentageOutOfRangeError",
    "DuplicateEntityError",
    "MissingEvidenceError",
    "CurrencyMismatchError",
    "Section45ViolationError",
    "EstateInsolventError",
    "TaxNotClearedError",
    "UnresolvedDisputesError",
    "DistributionBlockedError",
    "ConcurrencyConflictError",
    "CatalogError",
]
