"""Shared fixtures for SuccessionLab tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from successionlab.core.estate import Estate
from successionlab.core.family import FamilyStructure


class TickingClock:
    """Deterministic clock: every call is one second after the previous one."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 4, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now = self.now + timedelta(seconds=1)
        return self.now


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def estate(clock) -> Estate:
    """Empty estate in SETUP, KES, date of death 2024-03-01."""
    estate, _ = Estate.create(
        "Estate of the late Joseph Otieno",
        "d-otieno",
        "Joseph Otieno",
        "2024-03-01",
        estate_id="estate-1",
        clock=clock,
    )
    return estate


@pytest.fixture
def distributable_estate(estate) -> Estate:
    """Solvent estate worth exactly 900,000 that passes every readiness check."""
    estate.add_asset("Shamba in Siaya", "LAND", 900_000, asset_id="land")
    estate.verify_asset("land")
    estate.clear_tax(exempt=True)
    return estate


@pytest.fixture
def monogamous_family() -> FamilyStructure:
    return FamilyStructure.from_dict(
        {
            "spouses": [{"id": "s1", "name": "Grace"}],
            "children": [{"id": "c1", "name": "Akinyi"}, {"id": "c2", "name": "Baraka"}],
        }
    )


@pytest.fixture
def polygamous_family() -> FamilyStructure:
    return FamilyStructure.from_dict(
        {
            "is_polygamous": True,
            "spouses": [
                {"id": "w1", "name": "Grace", "house_id": "h1"},
                {"id": "w2", "name": "Rose", "house_id": "h2"},
            ],
            "children": [
                {"id": "c1", "name": "Akinyi", "house_id": "h1"},
                {"id": "c2", "name": "Baraka", "house_id": "h1"},
                {"id": "c3", "name": "Chebet", "house_id": "h2"},
            ],
            "polygamous_houses": [
                {"id": "h1", "house_order": 1, "spouse_id": "w1", "children_ids": ["c1", "c2"]},
                {"id": "h2", "house_order": 2, "spouse_id": "w2", "children_ids": ["c3"]},
            ],
        }
    )
