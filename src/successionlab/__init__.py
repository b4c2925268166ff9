"""
SuccessionLab - Estate Administration Engine under Kenyan Succession Law

SuccessionLab models a deceased person's estate as a versioned ledger and
computes what the Law of Succession Act requires of an administrator: who is
paid first, whether the estate is solvent, which lifetime gifts are brought
back into account and how the remainder is shared among the family.

Key Features:
- **Exact Money**: Decimal amounts with currency, banker's rounding and
  remainder-preserving allocation
- **Section 45 Priority**: Debts are paid strictly in statutory tier order
- **Estate Aggregate**: Every change goes through the Estate, bumps its
  version and returns domain events
- **Hotchpot**: S.35(3) gifts inter vivos brought into the distributable pool
- **Intestate Distribution**: S.35 (spouse and children) and S.40
  (polygamous houses) shares, after S.26/S.29 dependant provisions
- **Specifications**: Composable business rules with a readiness gate
- **Reports and Charts**: pandas frames and Plotly figures for review

Architecture Overview:
- **Money / Currency**: Value objects for every amount
- **DebtPriority**: Tier, label and legal citation of each debt
- **Estate**: Aggregate root owning assets, debts, gifts, dependants and tax
- **Solvency / Hotchpot / Distribution**: Pure calculators over an Estate
- **Specification**: Named predicates combined with &, | and ~
- **InMemoryEstateRepository**: Snapshot persistence with version CAS
- **load_ledger**: Build an Estate from a YAML or JSON ledger

Quick Start:
    ```python
    from successionlab import DistributionCalculator, Estate, FamilyStructure

    estate, _ = Estate.create("Estate of J. Otieno", "d-001", "J. Otieno", "2024-03-01")
    estate.add_asset("Shamba", "LAND", 900_000, asset_id="land")
    estate.verify_asset("land")
    estate.clear_tax(exempt=True)

    family = FamilyStructure.from_dict({
        "spouses": [{"id": "w1", "name": "Achieng"}],
        "children": [{"id": "c1", "name": "Otieno"}, {"id": "c2", "name": "Awino"}],
    })
    result = DistributionCalculator().calculate_intestate_distribution(estate, family)
    ```
"""

# Version information
__version__ = "0.1.0"
__author__ = "SuccessionLab Team"
__description__ = "Estate administration engine under Kenyan succession law"

from .charts import debt_priority_chart, distribution_shares_chart, save_chart
from .core import (
    Asset,
    AssetType,
    ConcurrencyConflictError,
    Currency,
    Debt,
    DebtPriority,
    DebtStatus,
    DebtTier,
    DebtType,
    DistributionBlockedError,
    DistributionCalculator,
    DistributionConfig,
    DistributionResult,
    DomainEvent,
    Estate,
    EstateError,
    EstateStatus,
    EventKind,
    FamilyMember,
    FamilyStructure,
    GiftInterVivos,
    HotchpotCriteria,
    InMemoryEstateRepository,
    LegalDependant,
    Money,
    PolygamousHouse,
    ReadyForDistribution,
    Section45ViolationError,
    ShareType,
    Specification,
    analyze_hotchpot,
    assess_solvency,
    load_ledger,
    payment_waterfall,
    validate_distribution,
)
from .reports import (
    asset_register_frame,
    debt_schedule_frame,
    dependant_provisions_frame,
    shares_frame,
    solvency_summary,
)

__all__ = [
    # Money
    "Currency",
    "Money",
    # Ledger
    "Estate",
    "EstateStatus",
    "Asset",
    "AssetType",
    "Debt",
    "DebtStatus",
    "DebtPriority",
    "DebtTier",
    "DebtType",
    "GiftInterVivos",
    "LegalDependant",
    "DomainEvent",
    "EventKind",
    # Family
    "FamilyMember",
    "FamilyStructure",
    "PolygamousHouse",
    # Calculators
    "assess_solvency",
    "payment_waterfall",
    "analyze_hotchpot",
    "HotchpotCriteria",
    "DistributionCalculator",
    "DistributionConfig",
    "DistributionResult",
    "ShareType",
    "validate_distribution",
    # Rules
    "Specification",
    "ReadyForDistribution",
    # Persistence and loading
    "InMemoryEstateRepository",
    "load_ledger",
    # Errors
    "EstateError",
    "Section45ViolationError",
    "DistributionBlockedError",
    "ConcurrencyConflictError",
    # Reports
    "debt_schedule_frame",
    "asset_register_frame",
    "shares_frame",
    "dependant_provisions_frame",
    "solvency_summary",
    # Charts
    "distribution_shares_chart",
    "debt_priority_chart",
    "save_chart",
]
