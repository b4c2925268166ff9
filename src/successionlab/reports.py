"""
Tabular reporting utilities for estate analysis.

This module turns estates and distribution results into pandas DataFrames
with one row per ledger entry or share. Amounts are floats in the estate
currency; exact figures stay on the domain objects.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

from .core.currency import Money
from .core.distribution import DistributionResult
from .core.estate import Estate
from .core.priority import sort_for_payment
from .core.solvency import assess_solvency

DEBT_COLUMNS = [
    "debt_id",
    "creditor_name",
    "debt_type",
    "tier",
    "tier_label",
    "status",
    "initial_amount",
    "total_paid",
    "outstanding_balance",
    "is_secured",
    "secured_asset_id",
]

ASSET_COLUMNS = [
    "asset_id",
    "name",
    "asset_type",
    "verification_status",
    "current_value",
    "ownership_percentage",
    "distributable_value",
    "is_liquid",
    "is_liquidated",
]

SHARE_COLUMNS = [
    "beneficiary_id",
    "beneficiary_name",
    "relationship",
    "share_type",
    "share_percentage",
    "gross_share_value",
    "hotchpot_deduction",
    "share_value",
    "polygamous_house_id",
]

PROVISION_COLUMNS = [
    "dependant_id",
    "dependant_name",
    "relationship",
    "monthly_provision",
    "annual_provision",
    "lump_sum_provision",
    "years_of_support",
    "requires_court_review",
]


def _amount(money: Money | None) -> float:
    return float(money.value) if money is not None else np.nan


def debt_schedule_frame(estate: Estate) -> pd.DataFrame:
    """
    Debt schedule in Section 45 payment order.

    Args:
        estate: Estate to tabulate

    Returns:
        DataFrame with one row per debt and a ``cumulative_outstanding``
        column showing how much cash clears each debt and those before it
    """
    rows = [
        {
            "debt_id": debt.id,
            "creditor_name": debt.creditor_name,
            "debt_type": debt.debt_type.value,
            "tier": int(debt.tier),
            "tier_label": debt.priority.label,
            "status": debt.status.value,
            "initial_amount": _amount(debt.initial_amount),
            "total_paid": _amount(debt.total_paid),
            "outstanding_balance": _amount(debt.liability()),
            "is_secured": debt.is_secured,
            "secured_asset_id": debt.secured_asset_id,
        }
        for debt in sort_for_payment(estate.debts.values())
    ]
    df = pd.DataFrame(rows, columns=DEBT_COLUMNS)
    df["cumulative_outstanding"] = df["outstanding_balance"].cumsum()
    return df


def asset_register_frame(estate: Estate) -> pd.DataFrame:
    """
    Asset register with each asset's share of the counted estate value.

    Returns:
        DataFrame with one row per asset and a ``share_of_estate`` column
        (fraction of the total distributable value, 0 when that total is zero)
    """
    rows = [
        {
            "asset_id": asset.id,
            "name": asset.name,
            "asset_type": asset.asset_type.value,
            "verification_status": asset.verification_status.value,
            "current_value": _amount(asset.current_value),
            "ownership_percentage": float(asset.ownership_percentage),
            "distributable_value": _amount(asset.distributable_value()),
            "is_liquid": asset.is_liquid,
            "is_liquidated": asset.is_liquidated,
        }
        for asset in estate.assets.values()
    ]
    df = pd.DataFrame(rows, columns=ASSET_COLUMNS)
    total = df["distributable_value"].sum()
    df["share_of_estate"] = df["distributable_value"] / total if total > 0 else 0.0
    return df


def shares_frame(result: DistributionResult) -> pd.DataFrame:
    """
    Beneficiary shares of a distribution result.

    Returns:
        DataFrame with one row per share, in calculation order
    """
    rows = [
        {
            "beneficiary_id": share.beneficiary_id,
            "beneficiary_name": share.beneficiary_name,
            "relationship": share.relationship,
            "share_type": share.share_type.value,
            "share_percentage": float(share.share_percentage),
            "gross_share_value": _amount(share.gross_share_value),
            "hotchpot_deduction": _amount(share.hotchpot_deduction),
            "share_value": _amount(share.share_value),
            "polygamous_house_id": share.polygamous_house_id,
        }
        for share in result.shares
    ]
    return pd.DataFrame(rows, columns=SHARE_COLUMNS)


def dependant_provisions_frame(result: DistributionResult) -> pd.DataFrame:
    rows = [
        {
            "dependant_id": p.dependant_id,
            "dependant_name": p.dependant_name,
            "relationship": p.relationship,
            "monthly_provision": _amount(p.monthly_provision),
            "annual_provision": _amount(p.annual_provision),
            "lump_sum_provision": _amount(p.lump_sum_provision),
            "years_of_support": p.years_of_support,
            "requires_court_review": p.requires_court_review,
        }
        for p in result.dependant_provisions
    ]
    return pd.DataFrame(rows, columns=PROVISION_COLUMNS)


def solvency_summary(estate: Estate) -> pd.Series:
    """
    Headline solvency figures as a labelled Series.

    Ratios are NaN when their denominator is zero.
    """
    report = assess_solvency(estate)
    return pd.Series(
        {
            "gross_value": _amount(report.gross_value),
            "total_liabilities": _amount(report.total_liabilities),
            "net_value": _amount(report.net_value),
            "cash_on_hand": _amount(estate.cash_on_hand),
            "liquid_assets": _amount(report.liquid_assets),
            "illiquid_assets": _amount(report.illiquid_assets),
            "encumbered_assets": _amount(report.encumbered_assets),
            "solvency_ratio": (
                np.nan if report.solvency_ratio is None else float(report.solvency_ratio)
            ),
            "liquidity_ratio": (
                np.nan if report.liquidity_ratio is None else float(report.liquidity_ratio)
            ),
            "is_solvent": report.is_solvent,
        },
        name=estate.id,
    )
