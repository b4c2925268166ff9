"""
Command-line interface for SuccessionLab.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

import numpy as np
import pandas as pd
import yaml

from successionlab import __version__
from successionlab.charts import distribution_shares_chart, save_chart
from successionlab.core.catalog_loader import Ledger, load_ledger
from successionlab.core.currency import Money
from successionlab.core.distribution import DistributionCalculator, DistributionConfig
from successionlab.core.errors import EstateError
from successionlab.core.hotchpot import analyze_hotchpot, generate_report
from successionlab.core.solvency import assess_solvency, payment_waterfall
from successionlab.core.validation import validate_distribution
from successionlab.reports import shares_frame

EXAMPLE_LEDGER = {
    "version": 1,
    "estate": {
        "id": "estate-otieno",
        "name": "Estate of the late Joseph Otieno",
        "deceased_id": "d-otieno",
        "deceased_name": "Joseph Otieno",
        "date_of_death": "2024-03-01",
        "currency": "KES",
        "cash_on_hand": 700000,
    },
    "assets": [
        {"id": "land", "name": "Shamba in Siaya", "type": "LAND", "value": 3000000, "verified": True},
        {"id": "savings", "name": "Savings account", "type": "BANK_ACCOUNT", "value": 450000, "verified": True},
        {"id": "car", "name": "Toyota Probox", "type": "VEHICLE", "value": 900000, "verified": True},
    ],
    "debts": [
        {"id": "funeral", "creditor": "Lee Funeral Services", "type": "FUNERAL_EXPENSE", "amount": 180000},
        {"id": "probate", "creditor": "Ochieng & Co. Advocates", "type": "PROBATE_FEES", "amount": 60000},
        {
            "id": "car-loan",
            "creditor": "Equity Bank",
            "type": "SECURED_LOAN",
            "amount": 400000,
            "interest_rate": 0.12,
            "secured_asset_id": "car",
        },
        {"id": "card", "creditor": "KCB Credit Card", "type": "CREDIT_CARD", "amount": 75000},
    ],
    "payments": [
        {"debt_id": "funeral", "amount": 180000},
        {"debt_id": "probate", "amount": 60000},
        {"debt_id": "car-loan", "amount": 400000},
    ],
    "gifts": [
        {
            "id": "plot-kisumu",
            "recipient_id": "c-akinyi",
            "description": "Plot in Kisumu",
            "value": 400000,
            "date_given": "2021-06-15",
            "current_value": 650000,
            "verified": True,
        },
    ],
    "dependants": [
        {
            "id": "dep-mary",
            "name": "Mary Adhiambo",
            "relationship": "PARENT",
            "monthly_needs": 15000,
            "evidence": [{"kind": "bank_statements", "description": "Monthly transfers 2019-2024"}],
            "verified": True,
        },
    ],
    "tax": {"liability": 50000, "paid": 50000, "cleared": True},
    "family": {
        "spouses": [{"id": "s-grace", "name": "Grace Otieno"}],
        "children": [
            {"id": "c-akinyi", "name": "Akinyi Otieno", "date_of_birth": "1998-02-10"},
            {"id": "c-baraka", "name": "Baraka Otieno", "date_of_birth": "2012-05-01"},
        ],
    },
    "hotchpot": {"maximum_years_before_death": 5},
}


class LedgerEncoder(json.JSONEncoder):
    """JSON encoder for Money, Decimal, dates, enums, numpy values and pandas frames."""

    def default(self, obj):
        if isinstance(obj, Money):
            return obj.to_dict()
        elif isinstance(obj, Decimal):
            return str(obj)
        elif isinstance(obj, (date, datetime)):
            return obj.isoformat()
        elif isinstance(obj, Enum):
            return obj.value
        elif isinstance(obj, np.generic):
            return obj.item()
        elif isinstance(obj, pd.DataFrame):
            return obj.to_dict("records")
        elif isinstance(obj, pd.Series):
            return obj.to_dict()
        elif hasattr(obj, "to_dict"):
            return obj.to_dict()
        return super().default(obj)


def _dump_json(data) -> None:
    json.dump(data, sys.stdout, indent=2, cls=LedgerEncoder)
    sys.stdout.write("\n")


def _load(args) -> Ledger:
    return load_ledger(args.input)


def _calculator(ledger: Ledger, args) -> DistributionCalculator:
    return DistributionCalculator(
        DistributionConfig(
            hotchpot_criteria=ledger.criteria,
            enforce_readiness_gate=not getattr(args, "skip_gate", False),
        )
    )


def cmd_example(args) -> int:
    """Print a complete example ledger."""
    if args.format == "json":
        _dump_json(EXAMPLE_LEDGER)
    else:
        yaml.safe_dump(EXAMPLE_LEDGER, sys.stdout, sort_keys=False)
    return 0


def cmd_assess(args) -> int:
    """Print the solvency analysis and the Section 45 payment waterfall."""
    ledger = _load(args)
    report = assess_solvency(ledger.estate)
    waterfall = payment_waterfall(ledger.estate)

    if args.format == "json":
        _dump_json(
            {
                "estate_id": ledger.estate.id,
                "solvency": report.to_dict(),
                "payment_waterfall": [step.to_dict() for step in waterfall],
            }
        )
    else:
        print(str(report))
        if waterfall:
            print()
            print(f"Payment waterfall (cash on hand {ledger.estate.cash_on_hand.format()}):")
            for step in waterfall:
                mark = "✅" if step.is_fully_paid else "❌"
                print(
                    f"  {mark} Tier {int(step.tier)} {step.creditor_name}: "
                    f"pay {step.proposed_payment.format()} of {step.outstanding.format()}"
                )
    return 0


def cmd_hotchpot(args) -> int:
    """Print the hotchpot analysis of lifetime gifts."""
    ledger = _load(args)
    analysis = analyze_hotchpot(ledger.estate, criteria=ledger.criteria)
    if args.format == "json":
        _dump_json(analysis.to_dict())
    else:
        print(generate_report(analysis))
    return 0


def cmd_distribute(args) -> int:
    """Compute the intestate distribution and optionally export it."""
    ledger = _load(args)
    calculator = _calculator(ledger, args)
    result = calculator.calculate_intestate_distribution(ledger.estate, ledger.family)

    if args.format == "json":
        _dump_json(result.to_dict())
    else:
        print(calculator.generate_report(result))

    if args.csv:
        shares_frame(result).to_csv(args.csv, index=False)
        print(f"Shares saved to {args.csv}", file=sys.stderr)
    if args.chart:
        fig, _ = distribution_shares_chart(result)
        save_chart(fig, args.chart)
        print(f"Chart saved to {args.chart}", file=sys.stderr)
    return 0


def cmd_validate(args) -> int:
    """Compute the distribution and check it against its invariants."""
    ledger = _load(args)
    result = _calculator(ledger, args).calculate_intestate_distribution(
        ledger.estate, ledger.family
    )
    report = validate_distribution(result)

    if args.format == "json":
        _dump_json(report.to_dict())
    else:
        print(str(report))

    return report.get_exit_code()


def _add_input(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-i", "--input", required=True, help="Input ledger file (YAML or JSON)")


def _add_format(parser: argparse.ArgumentParser, default: str = "human") -> None:
    choices = ["yaml", "json"] if default == "yaml" else ["human", "json"]
    parser.add_argument("--format", choices=choices, default=default, help="Output format")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="succession", description="SuccessionLab - Estate administration engine"
    )

    parser.add_argument("--version", action="version", version=f"SuccessionLab {__version__}")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log state changes and warnings to stderr"
    )

    subparsers = parser.add_subparsers(
        dest="cmd", required=True, help="Available commands"
    )

    # Example command
    example_parser = subparsers.add_parser("example", help="Print a complete example ledger")
    _add_format(example_parser, default="yaml")
    example_parser.set_defaults(func=cmd_example)

    # Assess command
    assess_parser = subparsers.add_parser(
        "assess", help="Solvency analysis and Section 45 payment waterfall"
    )
    _add_input(assess_parser)
    _add_format(assess_parser)
    assess_parser.set_defaults(func=cmd_assess)

    # Hotchpot command
    hotchpot_parser = subparsers.add_parser("hotchpot", help="Hotchpot analysis of lifetime gifts")
    _add_input(hotchpot_parser)
    _add_format(hotchpot_parser)
    hotchpot_parser.set_defaults(func=cmd_hotchpot)

    # Distribute command
    distribute_parser = subparsers.add_parser(
        "distribute", help="Compute the intestate distribution"
    )
    _add_input(distribute_parser)
    _add_format(distribute_parser)
    distribute_parser.add_argument("--csv", help="Write beneficiary shares to a CSV file")
    distribute_parser.add_argument("--chart", help="Write the shares chart to an HTML file")
    distribute_parser.add_argument(
        "--skip-gate",
        action="store_true",
        help="Skip the composite readiness gate (statutory checks still apply)",
    )
    distribute_parser.set_defaults(func=cmd_distribute)

    # Validate command
    validate_parser = subparsers.add_parser(
        "validate", help="Check a computed distribution against its invariants"
    )
    _add_input(validate_parser)
    _add_format(validate_parser)
    validate_parser.add_argument(
        "--skip-gate",
        action="store_true",
        help="Skip the composite readiness gate (statutory checks still apply)",
    )
    validate_parser.epilog = """
Exit codes:
  0  distribution is consistent
  1  invariant violations, or the estate cannot be distributed
  2  consistent, with advisory warnings
    """
    validate_parser.set_defaults(func=cmd_validate)

    return parser


def run(argv: list[str] | None = None) -> int:
    """Parse ``argv`` and run the selected command, returning its exit code."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        return args.func(args)
    except (EstateError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def main() -> None:
    """Main CLI entry point."""
    sys.exit(run())


if __name__ == "__main__":
    main()
