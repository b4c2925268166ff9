"""
Tests for the pandas report frames and plotly charts.
"""

import math

import plotly.graph_objects as go
import pytest

from successionlab.charts import debt_priority_chart, distribution_shares_chart, save_chart
from successionlab.core.distribution import DistributionCalculator
from successionlab.reports import (
    ASSET_COLUMNS,
    DEBT_COLUMNS,
    PROVISION_COLUMNS,
    SHARE_COLUMNS,
    asset_register_frame,
    debt_schedule_frame,
    dependant_provisions_frame,
    shares_frame,
    solvency_summary,
)


@pytest.fixture
def ledger_estate(estate):
    """Cash 80k after a partial funeral payment; land 500k; savings 50k; debts 60k."""
    estate.deposit_cash(100_000)
    estate.add_asset("Shamba", "LAND", 500_000, asset_id="land")
    estate.add_asset("Savings", "BANK_ACCOUNT", 50_000, asset_id="savings")
    estate.add_debt("KCB Credit Card", "CREDIT_CARD", 30_000, debt_id="card")
    estate.add_debt("Lee Funeral Services", "FUNERAL_EXPENSE", 50_000, debt_id="funeral")
    estate.pay_debt("funeral", 20_000)
    return estate


@pytest.fixture
def monogamous_result(distributable_estate, monogamous_family):
    return DistributionCalculator().calculate_intestate_distribution(distributable_estate, monogamous_family)


class TestDebtSchedule:
    def test_rows_follow_payment_order(self, ledger_estate):
        df = debt_schedule_frame(ledger_estate)
        assert list(df.columns) == DEBT_COLUMNS + ["cumulative_outstanding"]
        assert list(df["debt_id"]) == ["funeral", "card"]
        assert list(df["tier"]) == [1, 5]
        assert list(df["status"]) == ["PARTIALLY_PAID", "OUTSTANDING"]
        assert list(df["total_paid"]) == [20_000.0, 0.0]
        assert list(df["cumulative_outstanding"]) == [30_000.0, 60_000.0]

    def test_empty_estate(self, estate):
        df = debt_schedule_frame(estate)
        assert df.empty
        assert "cumulative_outstanding" in df.columns


class TestAssetRegister:
    def test_share_of_estate(self, ledger_estate):
        df = asset_register_frame(ledger_estate).set_index("asset_id")
        assert list(df.reset_index().columns) == ASSET_COLUMNS + ["share_of_estate"]
        assert df.loc["land", "share_of_estate"] == pytest.approx(500 / 550)
        assert df.loc["savings", "is_liquid"]
        assert df["share_of_estate"].sum() == pytest.approx(1.0)

    def test_no_assets_means_zero_shares(self, estate):
        df = asset_register_frame(estate)
        assert df.empty


class TestSolvencySummary:
    def test_headline_figures(self, ledger_estate):
        summary = solvency_summary(ledger_estate)
        assert summary.name == "estate-1"
        assert summary["gross_value"] == 630_000.0
        assert summary["total_liabilities"] == 60_000.0
        assert summary["net_value"] == 570_000.0
        assert summary["cash_on_hand"] == 80_000.0
        assert summary["liquid_assets"] == 130_000.0
        assert summary["liquidity_ratio"] == pytest.approx(2.1667)
        assert summary["is_solvent"]

    def test_ratios_nan_without_liabilities(self, estate):
        summary = solvency_summary(estate)
        assert math.isnan(summary["liquidity_ratio"])


class TestShareFrames:
    def test_shares_frame(self, monogamous_result):
        df = shares_frame(monogamous_result)
        assert list(df.columns) == SHARE_COLUMNS
        assert list(df["beneficiary_id"]) == ["s1", "c1", "c2"]
        assert list(df["share_type"]) == ["LIFE_INTEREST", "REMAINDER", "REMAINDER"]
        assert list(df["share_value"]) == [900_000.0, 450_000.0, 450_000.0]

    def test_provisions_frame(self, distributable_estate, monogamous_family):
        distributable_estate.add_dependant("Grace", "SPOUSE", monthly_needs=10_000, dependant_id="g")
        distributable_estate.verify_dependant("g")
        result = DistributionCalculator().calculate_intestate_distribution(
            distributable_estate, monogamous_family
        )

        df = dependant_provisions_frame(result)
        assert list(df.columns) == PROVISION_COLUMNS
        assert df.loc[0, "dependant_id"] == "g"
        assert df.loc[0, "monthly_provision"] == 10_000.0
        assert df.loc[0, "annual_provision"] == 120_000.0

    def test_empty_provisions(self, monogamous_result):
        assert dependant_provisions_frame(monogamous_result).empty


class TestCharts:
    def test_distribution_chart(self, monogamous_result):
        fig, tidy = distribution_shares_chart(monogamous_result)
        assert isinstance(fig, go.Figure)
        assert len(tidy) == 6
        assert set(tidy["component"]) == {"Net share", "Hotchpot deduction"}
        assert "INTESTATE_S35" in fig.layout.title.text

    def test_debt_priority_chart(self, ledger_estate):
        fig, by_tier = debt_priority_chart(ledger_estate)
        assert isinstance(fig, go.Figure)
        assert list(by_tier["tier"]) == [1, 5]
        assert list(by_tier["cumulative_outstanding"]) == [30_000.0, 60_000.0]
        assert len(fig.data) == 3

    def test_save_chart_html(self, monogamous_result, tmp_path):
        fig, _ = distribution_shares_chart(monogamous_result)
        path = tmp_path / "shares.html"
        save_chart(fig, str(path))
        assert path.exists()
        assert path.stat().st_size > 0

    def test_save_chart_rejects_unknown_format(self, monogamous_result, tmp_path):
        fig, _ = distribution_shares_chart(monogamous_result)
        with pytest.raises(ValueError, match="Unsupported format"):
            save_chart(fig, str(tmp_path / "shares.xyz"), format="xyz")
