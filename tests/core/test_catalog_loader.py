from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from successionlab.core.catalog_loader import CatalogError, load_ledger
from successionlab.core.currency import Money
from successionlab.core.debts import DebtStatus
from successionlab.core.distribution import DistributionCalculator, DistributionConfig
from successionlab.core.errors import Section45ViolationError
from successionlab.core.events import EventKind
from successionlab.core.tax import TaxStatus

LEDGER_PATH = Path(__file__).resolve().parents[1] / "data" / "ledgers" / "wafula.yaml"


def _minimal(**sections) -> dict:
    ledger = {
        "estate": {
            "name": "Estate of the late A. Mutua",
            "deceased_id": "d-mutua",
            "deceased_name": "A. Mutua",
            "date_of_death": "2024-01-15",
        }
    }
    ledger.update(sections)
    return ledger


def test_load_yaml_ledger_replays_sections() -> None:
    ledger = load_ledger(LEDGER_PATH)
    estate = ledger.estate

    assert ledger.source == str(LEDGER_PATH)
    assert ledger.metadata == {"version": 1}
    assert estate.id == "estate-wafula"
    assert estate.cash_on_hand == Money(100_000, "KES")
    assert estate.get_net_value() == Money(2_800_000, "KES")
    assert all(d.status is DebtStatus.SETTLED for d in estate.debts.values())
    assert estate.get_debt("loan").description == "Development loan"
    assert estate.tax_compliance.status is TaxStatus.EXEMPT

    assert ledger.family.is_polygamous
    assert len(ledger.family.polygamous_houses) == 2
    assert ledger.criteria.maximum_years_before_death == 3

    kinds = [e.kind for e in ledger.events]
    assert kinds[0] == EventKind.ESTATE_CREATED
    assert kinds.count(EventKind.DEBT_SETTLED) == 3


def test_loaded_ledger_distributes_by_house() -> None:
    ledger = load_ledger(LEDGER_PATH)
    calculator = DistributionCalculator(DistributionConfig(hotchpot_criteria=ledger.criteria))
    result = calculator.calculate_intestate_distribution(ledger.estate, ledger.family)

    assert result.share_for("w-nasimiyu").share_value == Money("1866666.67", "KES")
    assert result.share_for("w-nekesa").share_value == Money("933333.33", "KES")
    assert result.share_for("c-barasa").share_value == Money("933333.33", "KES")


def test_json_and_yaml_sources_agree(tmp_path: Path) -> None:
    data = yaml.safe_load(LEDGER_PATH.read_text(encoding="utf-8"))
    json_path = tmp_path / "wafula.json"
    json_path.write_text(json.dumps(data, default=str), encoding="utf-8")

    from_json = load_ledger(json_path)
    from_yaml = load_ledger(LEDGER_PATH)
    assert from_json.estate.get_net_value() == from_yaml.estate.get_net_value()
    assert from_json.family == from_yaml.family


def test_explicit_format_overrides_suffix(tmp_path: Path) -> None:
    path = tmp_path / "ledger.txt"
    path.write_text(yaml.safe_dump(_minimal()), encoding="utf-8")
    ledger = load_ledger(path, format="yaml")
    assert ledger.estate.deceased_name == "A. Mutua"


def test_mapping_source_is_not_mutated() -> None:
    data = _minimal(assets=[{"name": "Plot", "type": "LAND", "value": "1,250,000.50", "verified": True}])
    ledger = load_ledger(data)

    assert ledger.source == "<mapping>"
    [asset] = ledger.estate.assets.values()
    assert asset.current_value == Money("1250000.50", "KES")
    assert asset.is_verified
    assert "id" not in data["assets"][0]


def test_dependants_and_gifts_sections() -> None:
    ledger = load_ledger(
        _minimal(
            gifts=[
                {
                    "id": "g1",
                    "recipient_id": "c1",
                    "description": "Dairy cows",
                    "value": 80000,
                    "date_given": "2022-02-01",
                    "status": "CONTESTED",
                }
            ],
            dependants=[
                {
                    "id": "dep-1",
                    "name": "Mzee Mutua",
                    "relationship": "PARENT",
                    "previous_support": 20000,
                    "dependency_percentage": 75,
                    "evidence": [{"kind": "mpesa_statements"}],
                    "verified": True,
                }
            ],
        )
    )
    dependant = ledger.estate.get_dependant("dep-1")
    assert dependant.is_verified
    assert dependant.dependency_percentage == Decimal("75")
    assert len(dependant.evidence) == 1
    assert ledger.estate.get_gift("g1").is_contested


def test_disputes_and_statute_bar() -> None:
    ledger = load_ledger(
        _minimal(
            assets=[{"id": "plot", "name": "Plot", "type": "LAND", "value": 100, "disputed": "Boundary"}],
            debts=[
                {"id": "old", "creditor": "Shop", "type": "BUSINESS_DEBT", "amount": 10, "statute_barred": True},
                {"id": "bill", "creditor": "Clinic", "type": "MEDICAL_BILL", "amount": 5, "disputed": "Not treated"},
            ],
        )
    )
    estate = ledger.estate
    assert estate.get_asset("plot").is_disputed
    assert estate.get_debt("old").tier == 6
    assert estate.get_debt("bill").status is DebtStatus.DISPUTED


def test_missing_estate_section_raises() -> None:
    with pytest.raises(CatalogError, match="must define an 'estate' section"):
        load_ledger({"assets": []})


def test_missing_date_of_death_raises() -> None:
    data = _minimal()
    del data["estate"]["date_of_death"]
    with pytest.raises(CatalogError, match="date_of_death"):
        load_ledger(data)


def test_invalid_yaml_raises(tmp_path: Path) -> None:
    bad_yaml = tmp_path / "bad.yaml"
    bad_yaml.write_text("estate: [unclosed", encoding="utf-8")
    with pytest.raises(CatalogError, match="Could not parse ledger"):
        load_ledger(bad_yaml)


def test_non_mapping_root_raises(tmp_path: Path) -> None:
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(CatalogError, match="must be a mapping"):
        load_ledger(path)


def test_unsupported_format_and_missing_file(tmp_path: Path) -> None:
    path = tmp_path / "ledger.toml"
    path.write_text("x = 1", encoding="utf-8")
    with pytest.raises(CatalogError, match="Unsupported ledger format"):
        load_ledger(path)
    with pytest.raises(FileNotFoundError):
        load_ledger(tmp_path / "missing.yaml")


def test_out_of_order_payment_is_wrapped() -> None:
    data = _minimal(
        estate={**_minimal()["estate"], "cash_on_hand": 1000},
        debts=[
            {"id": "funeral", "creditor": "Funeral Home", "type": "FUNERAL_EXPENSE", "amount": 500},
            {"id": "card", "creditor": "Bank", "type": "CREDIT_CARD", "amount": 300},
        ],
        payments=[{"debt_id": "card", "amount": 300}],
    )
    with pytest.raises(CatalogError) as exc_info:
        load_ledger(data)
    assert isinstance(exc_info.value.__cause__, Section45ViolationError)


@pytest.mark.parametrize(
    "assets",
    [
        [{"name": "Plot", "type": "LAND", "value": "lots"}],
        [{"name": "Plot", "type": "LAND", "value": True}],
        [{"name": "Plot", "type": "LAND", "value": 1, "verified": "yes please"}],
        [{"name": "", "type": "LAND", "value": 1}],
        [{"name": "Plot", "type": "SPACESHIP", "value": 1}],
        {"name": "Plot"},
    ],
)
def test_invalid_asset_entries_raise(assets) -> None:
    with pytest.raises(CatalogError):
        load_ledger(_minimal(assets=assets))
