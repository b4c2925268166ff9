"""
Tests for S.35(3) hotchpot analysis.
"""

from decimal import Decimal

import pytest

from successionlab.core.currency import Money
from successionlab.core.hotchpot import (
    HotchpotCriteria,
    analyze_hotchpot,
    calculate_adjusted_shares,
    generate_report,
)


def kes(amount):
    return Money(amount, "KES")


@pytest.fixture
def gifted_estate(distributable_estate):
    """Net estate 900,000 (threshold 90,000) with four lifetime gifts."""
    estate = distributable_estate
    estate.add_gift("c1", "Plot in Kisumu", 100_000, "2010-05-01", gift_id="plot")
    estate.add_gift("c1", "School fees", 50_000, "2021-06-15", gift_id="fees", is_verified=True)
    estate.add_gift("c2", "Bicycle", 20_000, "2012-01-01", gift_id="bicycle", is_verified=True)
    estate.add_gift("c2", "Matatu", 300_000, "2020-02-01", gift_id="matatu")
    estate.contest_gift("matatu", "Family says it was a loan")
    return estate


class TestInclusionRules:
    """Which gifts are brought into account."""

    def test_default_criteria(self, gifted_estate):
        analysis = analyze_hotchpot(gifted_estate)

        assert sorted(analysis.included_gift_ids) == ["fees", "plot"]
        assert analysis.actual_estate_value == kes(900_000)
        assert analysis.total_hotchpot_gifts == kes(150_000)
        assert analysis.adjusted_value == kes(1_050_000)

    def test_inclusion_reasons(self, gifted_estate):
        gifts = {
            g.gift_id: g
            for summary in analyze_hotchpot(gifted_estate).gifts_by_recipient.values()
            for g in summary.gifts
        }
        assert gifts["plot"].inclusion_reason == "Value exceeds 10% of the net estate"
        assert gifts["fees"].inclusion_reason == "Given within 5 years of death"
        assert gifts["bicycle"].inclusion_reason is None
        assert gifts["matatu"].is_included is False

    def test_years_counted_in_whole_years(self, gifted_estate):
        fees = analyze_hotchpot(gifted_estate).gifts_by_recipient["c1"].gifts[1]
        assert fees.gift_id == "fees"
        assert fees.years_before_death == 2
        assert fees.months_before_death == 32

    def test_court_orders(self, gifted_estate):
        criteria = HotchpotCriteria(
            court_ordered_inclusion=["bicycle", "plot"],
            court_ordered_exclusion=["plot"],
        )
        analysis = analyze_hotchpot(gifted_estate, criteria=criteria)
        assert sorted(analysis.included_gift_ids) == ["bicycle", "fees"]

    def test_contested_gift_never_included(self, gifted_estate):
        criteria = HotchpotCriteria(court_ordered_inclusion=["matatu"])
        assert "matatu" not in analyze_hotchpot(gifted_estate, criteria=criteria).included_gift_ids

    def test_custom_thresholds(self, gifted_estate):
        criteria = HotchpotCriteria.from_dict(
            {"minimum_gift_value_percentage": "50", "maximum_years_before_death": 1, "unknown": 1}
        )
        assert criteria.minimum_gift_value_percentage == Decimal("50")
        assert analyze_hotchpot(gifted_estate, criteria=criteria).included_gift_ids == []

    def test_explicit_date_of_death(self, gifted_estate):
        analysis = analyze_hotchpot(gifted_estate, date_of_death="2040-01-01")
        assert analysis.included_gift_ids == ["plot"]


class TestRecipientSummaries:
    def test_per_recipient_totals(self, gifted_estate):
        analysis = analyze_hotchpot(gifted_estate)
        c1 = analysis.gifts_by_recipient["c1"]
        c2 = analysis.gifts_by_recipient["c2"]
        assert c1.total_gift_value == kes(150_000)
        assert c1.included_gift_value == kes(150_000)
        assert c2.total_gift_value == kes(320_000)
        assert not c2.is_subject_to_hotchpot
        assert analysis.deduction_for("c1") == kes(150_000)
        assert analysis.deduction_for("stranger") == kes(0)

    def test_adjusted_shares_floor_at_zero(self, gifted_estate):
        analysis = analyze_hotchpot(gifted_estate)
        adjusted = calculate_adjusted_shares({"c1": kes(100_000), "c2": kes(400_000)}, analysis)
        assert adjusted["c1"].adjusted_share == kes(0)
        assert adjusted["c1"].hotchpot_deduction == kes(150_000)
        assert adjusted["c2"].adjusted_share == kes(400_000)


class TestWarningsAndRecommendations:
    def test_recent_and_unverified_gifts(self, distributable_estate):
        distributable_estate.add_gift("c1", "Car", 600_000, "2024-01-10", current_estimated_value=550_000)
        analysis = analyze_hotchpot(distributable_estate)
        text = " ".join(analysis.warnings)
        assert "increases estate value by 66.7%" in text
        assert "1 high-value gift(s) are unverified" in text
        assert "Recipient c1 received gifts exceeding 30%" in text
        assert "made within 6 months of death" in text

    def test_appreciation_is_informational(self, distributable_estate):
        distributable_estate.add_gift(
            "c1", "Plot", 100_000, "2021-06-15", current_estimated_value=400_000, is_verified=True
        )
        analysis = analyze_hotchpot(distributable_estate)
        summary = analysis.gifts_by_recipient["c1"].gifts[0]
        assert summary.appreciation_percentage == Decimal("300.0")
        assert analysis.total_hotchpot_gifts == kes(100_000)
        assert any("appreciated by more than 50" in r for r in analysis.recommendations)

    def test_contested_recommendation(self, gifted_estate):
        recommendations = analyze_hotchpot(gifted_estate).recommendations
        assert recommendations[0].startswith("1 contested gift(s)")
        assert recommendations[-1] == "Record each hotchpot decision for possible court review."

    def test_no_gifts(self, distributable_estate):
        analysis = analyze_hotchpot(distributable_estate)
        assert analysis.adjusted_value == kes(900_000)
        assert analysis.warnings == []
        assert analysis.recommendations == []

    def test_report_text(self, gifted_estate):
        text = generate_report(analyze_hotchpot(gifted_estate))
        assert "HOTCHPOT CALCULATION" in text
        assert "Hotchpot-adjusted estate value: KES 1,050,000.00" in text
        assert "Recipient c2" in text
