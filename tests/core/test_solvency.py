"""
Tests for the solvency calculator and the S.45 payment waterfall.
"""

from decimal import Decimal

import pytest

from successionlab.core.currency import Money
from successionlab.core.solvency import (
    assess_solvency,
    calculate_distributable_pool,
    payment_waterfall,
)


def kes(amount):
    return Money(amount, "KES")


class TestEstateValues:
    """Gross, net and distributable pool."""

    def test_distributable_pool_adds_confirmed_gifts(self, estate):
        estate.add_asset("Shamba", "LAND", 800_000)
        estate.add_gift("c1", "Matatu", 200_000, "2019-08-01")
        assert estate.get_net_value() == kes(800_000)
        assert estate.get_distributable_pool() == kes(1_000_000)

    def test_contested_and_excluded_gifts_stay_out_of_pool(self, estate):
        estate.add_asset("Shamba", "LAND", 800_000)
        estate.add_gift("c1", "Matatu", 200_000, "2019-08-01", gift_id="matatu")
        estate.add_gift("c2", "Cows", 50_000, "2019-08-01", gift_id="cows")
        estate.contest_gift("matatu", "Was a loan")
        estate.exclude_gift("cows")
        assert calculate_distributable_pool(estate) == kes(800_000)

    def test_partial_ownership_and_unpaid_tax(self, estate):
        estate.add_asset("Jointly owned flat", "BUILDING", 4_000_000, ownership_percentage=25)
        estate.record_tax_assessment(150_000)
        assert estate.get_gross_value() == kes(1_000_000)
        assert estate.get_total_liabilities() == kes(150_000)
        assert estate.get_net_value() == kes(850_000)

    def test_terminal_debts_count_as_zero(self, estate):
        estate.add_asset("Shamba", "LAND", 100_000)
        estate.add_debt("Old supplier", "BUSINESS_DEBT", 40_000, debt_id="old")
        estate.mark_debt_statute_barred("old")
        assert estate.get_total_liabilities() == kes(0)

    def test_insolvency_shortfall(self, estate):
        estate.add_asset("Shamba", "LAND", 100_000)
        estate.add_debt("Equity Bank", "PERSONAL_LOAN", 130_000)
        assert not estate.is_solvent()
        assert estate.get_insolvency_shortfall() == kes(30_000)


class TestAssessSolvency:
    """Structured solvency report."""

    @pytest.fixture
    def indebted_estate(self, estate):
        estate.deposit_cash(100_000)
        estate.add_asset("Shamba", "LAND", 500_000, asset_id="land")
        estate.add_asset("Savings", "BANK_ACCOUNT", 50_000)
        estate.add_debt("Lee Funeral Services", "FUNERAL_EXPENSE", 120_000, debt_id="funeral")
        estate.add_debt(
            "Co-op Bank", "MORTGAGE", 300_000, is_secured=True, secured_asset_id="land", debt_id="mortgage"
        )
        estate.add_debt("KCB Credit Card", "CREDIT_CARD", 200_000, debt_id="card")
        return estate

    def test_totals_and_ratios(self, indebted_estate):
        report = assess_solvency(indebted_estate)
        assert report.gross_value == kes(650_000)
        assert report.total_liabilities == kes(620_000)
        assert report.net_value == kes(30_000)
        assert report.is_solvent
        assert report.liquid_assets == kes(150_000)
        assert report.illiquid_assets == kes(500_000)
        assert report.encumbered_assets == kes(500_000)
        assert report.liquidity_ratio == Decimal("0.2419")

    def test_tier_coverage(self, indebted_estate):
        report = assess_solvency(indebted_estate)
        assert [int(t.priority.tier) for t in report.tiers] == [1, 3, 5]
        assert all(t.is_covered for t in report.tiers)
        assert report.critical_debts_covered
        assert report.tiers[0].debt_ids == ["funeral"]

    def test_risks(self, indebted_estate):
        categories = {r.category for r in assess_solvency(indebted_estate).risks}
        assert {"LIQUIDITY", "FUNERAL_DEBT", "HIGH_LEVERAGE"} <= categories
        assert "INSOLVENCY" not in categories

    def test_insolvent_estate_report(self, estate):
        estate.add_asset("Shamba", "LAND", 100_000)
        estate.add_debt("Equity Bank", "PERSONAL_LOAN", 130_000)
        report = assess_solvency(estate)
        assert not report.is_solvent
        assert report.risks[0].category == "INSOLVENCY"
        assert "insolvent" in report.recommendations[0]
        assert "❌ Insolvent" in str(report)

    def test_ratios_are_none_without_liabilities(self, estate):
        estate.add_asset("Shamba", "LAND", 100_000)
        report = assess_solvency(estate)
        assert report.solvency_ratio is None
        assert report.liquidity_ratio is None
        assert report.to_dict()["solvency_ratio"] is None
        assert "Estate is solvent with adequate liquidity." in report.recommendations


class TestPaymentWaterfall:
    """Cash applied to open debts in S.45 order."""

    def test_cash_runs_out_mid_tier(self, estate):
        estate.deposit_cash(150_000)
        estate.add_debt("KCB Credit Card", "CREDIT_CARD", 70_000, debt_id="card")
        estate.add_debt("Lee Funeral Services", "FUNERAL_EXPENSE", 100_000, debt_id="funeral")
        estate.add_debt("Nairobi Hospital", "MEDICAL_BILL", 30_000, debt_id="hospital")

        steps = payment_waterfall(estate)
        assert [s.debt_id for s in steps] == ["funeral", "card"]
        assert steps[0].is_fully_paid
        assert steps[1].proposed_payment == kes(50_000)
        assert steps[1].remaining_after_payment == kes(20_000)

    def test_available_cash_override_and_barred_debts(self, estate):
        estate.add_debt("Lee Funeral Services", "FUNERAL_EXPENSE", 100_000, debt_id="funeral")
        estate.add_debt("Old supplier", "BUSINESS_DEBT", 40_000, debt_id="old")
        estate.mark_debt_statute_barred("old")
        steps = payment_waterfall(estate, available_cash=kes(500_000))
        assert [s.debt_id for s in steps] == ["funeral"]
        assert steps[0].to_dict()["tier"] == 1

    def test_waterfall_does_not_mutate(self, estate):
        estate.deposit_cash(10_000)
        estate.add_debt("Lee Funeral Services", "FUNERAL_EXPENSE", 5_000)
        version = estate.version
        payment_waterfall(estate)
        assert estate.version == version
        assert estate.cash_on_hand == kes(10_000)
