"""
Collaborator protocols for SuccessionLab.
Defines the contracts external subsystems must satisfy.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    # Only imported for type checking to avoid runtime cycles
    from .estate import Estate
    from .family import FamilyStructure


@runtime_checkable
class TaxComplianceProvider(Protocol):
    """
    Contract for the tax-clearance signal consumed by the readiness gate.
    Responsibilities: say whether the estate may be distributed, and why not.
    """

    @property
    def status(self):
        """Status label (e.g. 'CLEARED', 'ASSESSED')."""
        ...

    def is_cleared_for_distribution(self) -> bool:
        """True when the tax authority no longer blocks distribution."""
        ...


@runtime_checkable
class FamilyStructureProvider(Protocol):
    """
    Contract for the family-relationship subsystem.
    Responsibilities: supply the surviving family of a deceased person.
    """

    def get_family_structure(self, deceased_id: str) -> FamilyStructure:
        """Return the read-only family structure for ``deceased_id``."""
        ...


@runtime_checkable
class EstateRepository(Protocol):
    """
    Contract for estate persistence.

    ``save`` must persist the whole aggregate atomically and only when the
    stored version equals the version the estate was loaded with, raising
    ConcurrencyConflictError otherwise.
    """

    def get(self, estate_id: str) -> Estate:
        ...

    def save(self, estate: Estate) -> None:
        ...

    def delete(self, estate_id: str) -> None:
        ...

    def exists(self, estate_id: str) -> bool:
        ...
