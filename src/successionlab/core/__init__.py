"""
Core module for SuccessionLab.

This module contains the estate ledger, the statutory calculators and the
business-rule specifications.
"""

from .assets import Asset, AssetType, VerificationStatus
from .catalog_loader import Ledger, load_ledger
from .currency import Currency, CurrencyMismatchError, Money, RoundingPolicy, create_money, get_currency
from .debts import Debt, DebtStatus
from .dependants import DependantEvidence, DependantRelationship, DependantStatus, LegalDependant
from .distribution import (
    BeneficiaryShare,
    CalculationBreakdown,
    DependantProvision,
    DistributionCalculator,
    DistributionConfig,
    DistributionResult,
    DistributionScenario,
    ShareType,
)
from .errors import (
    CatalogError,
    ConcurrencyConflictError,
    DistributionBlockedError,
    EstateError,
    EstateFrozenError,
    EstateInsolventError,
    InsufficientLiquidityError,
    NotFoundError,
    Section45ViolationError,
)
from .estate import Estate, EstateStatus
from .events import DomainEvent, EventKind
from .family import FamilyMember, FamilyStructure, PolygamousHouse
from .gifts import GiftInterVivos, GiftStatus
from .hotchpot import HotchpotAnalysis, HotchpotCriteria, analyze_hotchpot, calculate_adjusted_shares
from .interfaces import EstateRepository, FamilyStructureProvider, TaxComplianceProvider
from .priority import DebtPriority, DebtTier, DebtType, sort_for_payment
from .repository import InMemoryEstateRepository
from .solvency import SolvencyReport, assess_solvency, payment_waterfall
from .specs import ReadyForDistribution, Specification
from .tax import TaxCompliance, TaxStatus
from .validation import DistributionValidationReport, validate_distribution

__all__ = [
    # Money
    "Currency",
    "CurrencyMismatchError",
    "Money",
    "RoundingPolicy",
    "create_money",
    "get_currency",
    # Priority
    "DebtPriority",
    "DebtTier",
    "DebtType",
    "sort_for_payment",
    # Ledger entities
    "Asset",
    "AssetType",
    "VerificationStatus",
    "Debt",
    "DebtStatus",
    "GiftInterVivos",
    "GiftStatus",
    "LegalDependant",
    "DependantEvidence",
    "DependantRelationship",
    "DependantStatus",
    "TaxCompliance",
    "TaxStatus",
    # Aggregate
    "Estate",
    "EstateStatus",
    "DomainEvent",
    "EventKind",
    # Family
    "FamilyMember",
    "FamilyStructure",
    "PolygamousHouse",
    # Calculators
    "SolvencyReport",
    "assess_solvency",
    "payment_waterfall",
    "HotchpotAnalysis",
    "HotchpotCriteria",
    "analyze_hotchpot",
    "calculate_adjusted_shares",
    "BeneficiaryShare",
    "CalculationBreakdown",
    "DependantProvision",
    "DistributionCalculator",
    "DistributionConfig",
    "DistributionResult",
    "DistributionScenario",
    "ShareType",
    # Specifications
    "Specification",
    "ReadyForDistribution",
    # Validation
    "DistributionValidationReport",
    "validate_distribution",
    # Persistence and loading
    "EstateRepository",
    "FamilyStructureProvider",
    "TaxComplianceProvider",
    "InMemoryEstateRepository",
    "Ledger",
    "load_ledger",
    # Errors
    "EstateError",
    "NotFoundError",
    "InsufficientLiquidityError",
    "EstateFrozenError",
    "EstateInsolventError",
    "Section45ViolationError",
    "DistributionBlockedError",
    "ConcurrencyConflictError",
    "CatalogError",
]
