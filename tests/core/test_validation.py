"""
Tests for distribution validation reports.
"""

from dataclasses import replace
from decimal import Decimal

from successionlab.core.currency import Money
from successionlab.core.distribution import DistributionCalculator, ShareType
from successionlab.core.validation import DistributionValidationReport, validate_distribution


def kes(amount):
    return Money(amount, "KES")


def compute(estate, family):
    return DistributionCalculator().calculate_intestate_distribution(estate, family)


class TestValidReports:
    def test_monogamous_result_is_consistent(self, distributable_estate, monogamous_family):
        report = validate_distribution(compute(distributable_estate, monogamous_family))
        assert report.is_valid()
        assert report.get_exit_code() == 0
        assert report.vested_percentage_total == Decimal("100.0000")
        assert str(report) == "✅ Distribution is consistent"

    def test_polygamous_rounding_within_tolerance(self, distributable_estate, polygamous_family):
        report = validate_distribution(compute(distributable_estate, polygamous_family))
        assert report.vested_percentage_total == Decimal("99.9999")
        assert report.is_valid()

    def test_calculator_delegates(self, distributable_estate, monogamous_family):
        calculator = DistributionCalculator()
        result = calculator.calculate_intestate_distribution(distributable_estate, monogamous_family)
        assert calculator.validate_distribution(result).is_valid()

    def test_warnings_only_exit_code(self, distributable_estate):
        from successionlab.core.family import FamilyStructure

        structure = FamilyStructure.from_dict({"is_polygamous": True, "spouses": [{"id": "w1"}]})
        report = validate_distribution(compute(distributable_estate, structure))
        assert report.is_valid()
        assert report.has_warnings()
        assert report.get_exit_code() == 2
        assert "Warning: Polygamous family has no house information" in str(report)


class TestInvalidReports:
    def test_percentages_not_summing_to_hundred(self, distributable_estate, monogamous_family):
        result = compute(distributable_estate, monogamous_family)
        result.shares[1] = replace(result.shares[1], share_percentage=Decimal("40"))

        report = validate_distribution(result)
        assert report.percentage_errors == [
            "ABSOLUTE and REMAINDER shares total 90.0000% instead of 100%"
        ]
        assert report.get_exit_code() == 1

    def test_vested_value_above_remainder(self, distributable_estate, monogamous_family):
        result = compute(distributable_estate, monogamous_family)
        result.shares[1] = replace(result.shares[1], gross_share_value=kes(460_000))

        report = validate_distribution(result)
        assert report.value_errors[0].startswith("Shares total KES 910,000.00, exceeding")
        assert len(report.value_errors) == 2

    def test_life_interest_without_remainder(self, distributable_estate, monogamous_family):
        result = compute(distributable_estate, monogamous_family)
        result.shares = [s for s in result.shares if s.share_type is ShareType.LIFE_INTEREST]

        report = validate_distribution(result)
        assert report.life_interest_errors == [
            "Life interest for s1 has no corresponding remainder interest"
        ]
        assert "❌ Distribution failed validation" in str(report)

    def test_provisions_above_adjusted_value(self, distributable_estate, monogamous_family):
        distributable_estate.add_dependant("Grace", "SPOUSE", monthly_needs=100_000, dependant_id="g")
        distributable_estate.verify_dependant("g")

        report = validate_distribution(compute(distributable_estate, monogamous_family))
        assert report.value_errors == [
            "Shares plus dependant provisions total KES 1,200,000.00, exceeding the "
            "hotchpot-adjusted value KES 900,000.00"
        ]
        assert report.has_warnings()


class TestReportShape:
    def test_defaults_and_dict(self):
        report = DistributionValidationReport()
        assert report.errors == []
        data = report.to_dict()
        assert data["is_valid"] is True
        assert data["exit_code"] == 0
        assert data["vested_percentage_total"] == "0"
