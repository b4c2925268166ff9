"""Utilities for loading estate ledgers from YAML/JSON sources."""

from __future__ import annotations

import json
import logging
from copy import deepcopy
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from .errors import CatalogError, EstateError
from .estate import Estate
from .events import DomainEvent
from .family import FamilyStructure
from .hotchpot import HotchpotCriteria

logger = logging.getLogger(__name__)

__all__ = [
    "CatalogError",
    "Ledger",
    "load_ledger",
]


@dataclass(slots=True)
class Ledger:
    """An estate rebuilt from a ledger file, plus its family and hotchpot rules."""

    estate: Estate
    family: FamilyStructure
    criteria: HotchpotCriteria
    events: list[DomainEvent] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    source: str = "<memory>"


def load_ledger(
    source: str | Path | dict[str, Any], *, format: str | None = None
) -> Ledger:
    """
    Parse an estate ledger from YAML/JSON/dict and replay it onto a new Estate.

    The ledger is applied through the estate's own mutation methods, so every
    invariant (Section 45 order, liquidity, evidence rules) holds for the
    result. Sections are applied in this order: cash, assets, debts,
    payments, gifts, dependants, tax.

    Example:
        ```yaml
        estate:
          name: Estate of the late J. Otieno
          deceased_id: d-001
          deceased_name: J. Otieno
          date_of_death: 2024-03-01
          cash_on_hand: 250000
        assets:
          - {id: land, name: Shamba, type: LAND, value: 900000, verified: true}
        debts:
          - {id: funeral, creditor: Lee Funeral Home, type: FUNERAL_EXPENSE, amount: 80000}
        payments:
          - {debt_id: funeral, amount: 80000}
        ```
    """

    mapping, label = _read_source(source, format=format)
    estate_data = _ensure_dict(mapping.get("estate"), f"{label}::estate")
    if not estate_data:
        raise CatalogError(f"{label}: ledger must define an 'estate' section")

    estate, events = _create_estate(estate_data, label)
    try:
        events += _apply_cash(estate, estate_data, label)
        events += _apply_assets(estate, mapping.get("assets"), label)
        events += _apply_debts(estate, mapping.get("debts"), label)
        events += _apply_payments(estate, mapping.get("payments"), label)
        events += _apply_gifts(estate, mapping.get("gifts"), label)
        events += _apply_dependants(estate, mapping.get("dependants"), label)
        events += _apply_tax(estate, mapping.get("tax"), label)
    except (EstateError, ValueError) as exc:
        if isinstance(exc, CatalogError):
            raise
        raise CatalogError(f"{label}: {exc}") from exc

    try:
        family = FamilyStructure.from_dict(_ensure_dict(mapping.get("family"), f"{label}::family"))
        criteria = HotchpotCriteria.from_dict(
            _ensure_dict(mapping.get("hotchpot"), f"{label}::hotchpot")
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise CatalogError(f"{label}: invalid family or hotchpot section ({exc})") from exc

    logger.info(
        "Loaded ledger %s: %d assets, %d debts, %d gifts, %d dependants",
        label,
        len(estate.assets),
        len(estate.debts),
        len(estate.gifts),
        len(estate.dependants),
    )
    return Ledger(
        estate=estate,
        family=family,
        criteria=criteria,
        events=events,
        metadata={"version": mapping.get("version", 1)},
        source=label,
    )


def _read_source(
    source: str | Path | dict[str, Any], *, format: str | None
) -> tuple[dict[str, Any], str]:
    if isinstance(source, dict):
        return deepcopy(source), "<mapping>"

    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(path)

    fmt = (format or path.suffix.lstrip(".")).lower()
    text = path.read_text(encoding="utf-8")
    try:
        if fmt in {"yaml", "yml", ""}:
            data = yaml.safe_load(text)
        elif fmt == "json":
            data = json.loads(text)
        else:
            raise CatalogError(f"Unsupported ledger format '{fmt}' for {path}")
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise CatalogError(f"Could not parse ledger {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise CatalogError(f"Ledger root must be a mapping (source={path})")
    return data, str(path)


def _create_estate(data: dict[str, Any], label: str) -> tuple[Estate, list[DomainEvent]]:
    ctx = f"{label}::estate"
    for key in ("name", "deceased_id", "deceased_name"):
        _coerce_str(data.get(key), f"{ctx}.{key}")
    date_of_death = _coerce_date(data.get("date_of_death"), f"{ctx}.date_of_death")
    if date_of_death is None:
        raise CatalogError(f"{ctx}: 'date_of_death' is required")
    estate, events = Estate.create(
        data["name"],
        data["deceased_id"],
        data["deceased_name"],
        date_of_death,
        estate_id=data.get("id"),
        currency=_coerce_optional_str(data.get("currency"), f"{ctx}.currency") or "KES",
    )
    return estate, events


def _apply_cash(estate: Estate, data: dict[str, Any], label: str) -> list[DomainEvent]:
    cash = data.get("cash_on_hand")
    if cash is None:
        return []
    amount = _amount(cash, f"{label}::estate.cash_on_hand")
    if amount == 0:
        return []
    return estate.deposit_cash(amount, source="opening balance")


def _apply_assets(estate: Estate, raw: Any, label: str) -> list[DomainEvent]:
    events: list[DomainEvent] = []
    for idx, entry in enumerate(_ensure_list(raw, f"{label}::assets", allow_none=True) or []):
        ctx = f"{label}::assets[{idx}]"
        data = _ensure_dict(entry, ctx)
        added = estate.add_asset(
            _coerce_str(data.get("name"), f"{ctx}.name"),
            _coerce_str(data.get("type"), f"{ctx}.type"),
            _amount(data.get("value"), f"{ctx}.value"),
            ownership_percentage=_amount(data.get("ownership_percentage", 100), f"{ctx}.ownership_percentage"),
            asset_id=data.get("id"),
        )
        events += added
        asset_id = added[0].meta["asset_id"]
        if _flag(data, "verified", ctx):
            events += estate.verify_asset(asset_id)
        if data.get("disputed"):
            events += estate.dispute_asset(asset_id, _coerce_str(data["disputed"], f"{ctx}.disputed"))
    return events


def _apply_debts(estate: Estate, raw: Any, label: str) -> list[DomainEvent]:
    events: list[DomainEvent] = []
    for idx, entry in enumerate(_ensure_list(raw, f"{label}::debts", allow_none=True) or []):
        ctx = f"{label}::debts[{idx}]"
        data = _ensure_dict(entry, ctx)
        outstanding = data.get("outstanding")
        added = estate.add_debt(
            _coerce_str(data.get("creditor"), f"{ctx}.creditor"),
            _coerce_str(data.get("type"), f"{ctx}.type"),
            _amount(data.get("amount"), f"{ctx}.amount"),
            outstanding_balance=None if outstanding is None else _amount(outstanding, f"{ctx}.outstanding"),
            interest_rate=_amount(data.get("interest_rate", 0), f"{ctx}.interest_rate"),
            is_secured=_flag(data, "secured", ctx) or data.get("secured_asset_id") is not None,
            secured_asset_id=data.get("secured_asset_id"),
            description=data.get("description"),
            debt_id=data.get("id"),
            created_at=data.get("created_at"),
        )
        events += added
        debt_id = added[0].meta["debt_id"]
        if data.get("disputed"):
            events += estate.dispute_debt(debt_id, _coerce_str(data["disputed"], f"{ctx}.disputed"))
        if _flag(data, "statute_barred", ctx):
            events += estate.mark_debt_statute_barred(debt_id)
    return events


def _apply_payments(estate: Estate, raw: Any, label: str) -> list[DomainEvent]:
    events: list[DomainEvent] = []
    for idx, entry in enumerate(_ensure_list(raw, f"{label}::payments", allow_none=True) or []):
        ctx = f"{label}::payments[{idx}]"
        data = _ensure_dict(entry, ctx)
        events += estate.pay_debt(
            _coerce_str(data.get("debt_id"), f"{ctx}.debt_id"),
            _amount(data.get("amount"), f"{ctx}.amount"),
        )
    return events


def _apply_gifts(estate: Estate, raw: Any, label: str) -> list[DomainEvent]:
    events: list[DomainEvent] = []
    for idx, entry in enumerate(_ensure_list(raw, f"{label}::gifts", allow_none=True) or []):
        ctx = f"{label}::gifts[{idx}]"
        data = _ensure_dict(entry, ctx)
        given = _coerce_date(data.get("date_given"), f"{ctx}.date_given")
        if given is None:
            raise CatalogError(f"{ctx}: 'date_given' is required")
        current = data.get("current_value")
        events += estate.add_gift(
            _coerce_str(data.get("recipient_id"), f"{ctx}.recipient_id"),
            _coerce_str(data.get("description"), f"{ctx}.description"),
            _amount(data.get("value"), f"{ctx}.value"),
            given,
            current_estimated_value=None if current is None else _amount(current, f"{ctx}.current_value"),
            is_verified=_flag(data, "verified", ctx),
            status=data.get("status", "CONFIRMED"),
            gift_id=data.get("id"),
        )
    return events


def _apply_dependants(estate: Estate, raw: Any, label: str) -> list[DomainEvent]:
    events: list[DomainEvent] = []
    for idx, entry in enumerate(_ensure_list(raw, f"{label}::dependants", allow_none=True) or []):
        ctx = f"{label}::dependants[{idx}]"
        data = _ensure_dict(entry, ctx)
        monthly = data.get("monthly_needs")
        support = data.get("previous_support")
        added = estate.add_dependant(
            _coerce_str(data.get("name"), f"{ctx}.name"),
            _coerce_str(data.get("relationship"), f"{ctx}.relationship"),
            monthly_needs=None if monthly is None else _amount(monthly, f"{ctx}.monthly_needs"),
            previous_support=None if support is None else _amount(support, f"{ctx}.previous_support"),
            dependency_percentage=_amount(data.get("dependency_percentage", 100), f"{ctx}.dependency_percentage"),
            date_of_birth=_coerce_date(data.get("date_of_birth"), f"{ctx}.date_of_birth"),
            is_incapacitated=_flag(data, "incapacitated", ctx),
            dependant_id=data.get("id"),
        )
        events += added
        dependant_id = added[0].meta["dependant_id"]
        for e_idx, item in enumerate(_ensure_list(data.get("evidence"), f"{ctx}.evidence", allow_none=True) or []):
            evidence = _ensure_dict(item, f"{ctx}.evidence[{e_idx}]")
            events += estate.add_dependant_evidence(
                dependant_id,
                _coerce_str(evidence.get("kind"), f"{ctx}.evidence[{e_idx}].kind"),
                evidence.get("description", ""),
            )
        if _flag(data, "verified", ctx):
            events += estate.verify_dependant(dependant_id)
    return events


def _apply_tax(estate: Estate, raw: Any, label: str) -> list[DomainEvent]:
    ctx = f"{label}::tax"
    data = _ensure_dict(raw, ctx)
    events: list[DomainEvent] = []
    if data.get("liability") is not None:
        events += estate.record_tax_assessment(_amount(data["liability"], f"{ctx}.liability"))
    if data.get("paid") is not None:
        events += estate.record_tax_payment(_amount(data["paid"], f"{ctx}.paid"))
    if _flag(data, "exempt", ctx):
        events += estate.clear_tax(exempt=True)
    elif _flag(data, "cleared", ctx):
        events += estate.clear_tax()
    return events


def _amount(value: Any, ctx: str) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise CatalogError(f"{ctx}: expected a number")
    text = str(value).strip().replace(",", "").replace("_", "")
    try:
        return Decimal(text)
    except InvalidOperation as exc:
        raise CatalogError(f"{ctx}: invalid amount '{value}'") from exc


def _flag(data: dict[str, Any], key: str, ctx: str) -> bool:
    value = data.get(key, False)
    if not isinstance(value, bool):
        raise CatalogError(f"{ctx}.{key} must be boolean when provided")
    return value


def _coerce_date(value: Any, ctx: str) -> date | None:
    if value is None:
        return None
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError as exc:
            raise CatalogError(f"{ctx}: invalid ISO date '{value}'") from exc
    raise CatalogError(f"{ctx}: expected ISO date string")


def _coerce_str(value: Any, ctx: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise CatalogError(f"{ctx}: expected non-empty string")
    return value


def _coerce_optional_str(value: Any, ctx: str) -> str | None:
    if value is None:
        return None
    return _coerce_str(value, ctx)


def _ensure_dict(value: Any, ctx: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise CatalogError(f"{ctx}: expected a mapping")
    return deepcopy(value)


def _ensure_list(value: Any, ctx: str, *, allow_none: bool = False) -> list[Any] | None:
    if value is None:
        if allow_none:
            return None
        raise CatalogError(f"{ctx}: expected a list")
    if not isinstance(value, list):
        raise CatalogError(f"{ctx}: expected a list")
    return list(value)
