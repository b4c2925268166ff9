"""
Read-only family structure consumed by the distribution calculator.

The family-relationship subsystem is external; this module only defines the
shape it hands over and a loader from plain dictionaries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from .utils import to_date


@dataclass(frozen=True)
class FamilyMember:
    id: str
    name: str
    relationship: str
    is_alive: bool = True
    date_of_birth: date | None = None
    house_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], relationship: str | None = None) -> FamilyMember:
        return cls(
            id=str(data["id"]),
            name=data.get("name", str(data["id"])),
            relationship=(data.get("relationship") or relationship or "OTHER").upper(),
            is_alive=bool(data.get("is_alive", True)),
            date_of_birth=to_date(data.get("date_of_birth")),
            house_id=data.get("house_id"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "relationship": self.relationship,
            "is_alive": self.is_alive,
            "date_of_birth": self.date_of_birth.isoformat() if self.date_of_birth else None,
            "house_id": self.house_id,
        }


@dataclass(frozen=True)
class PolygamousHouse:
    """One wife and her children under S.40."""

    id: str
    house_order: int
    spouse_id: str | None = None
    children_ids: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PolygamousHouse:
        return cls(
            id=str(data["id"]),
            house_order=int(data.get("house_order", 0)),
            spouse_id=data.get("spouse_id"),
            children_ids=tuple(str(c) for c in data.get("children_ids", ())),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "house_order": self.house_order,
            "spouse_id": self.spouse_id,
            "children_ids": list(self.children_ids),
        }


@dataclass(frozen=True)
class FamilyStructure:
    """
    Surviving family of the deceased.

    Attributes:
        spouses: All spouses (living and deceased)
        children: All children
        parents: Parents of the deceased
        is_polygamous: True when the estate devolves by house (S.40)
        polygamous_houses: Houses in order of marriage
    """

    spouses: tuple[FamilyMember, ...] = ()
    children: tuple[FamilyMember, ...] = ()
    parents: tuple[FamilyMember, ...] = ()
    is_polygamous: bool = False
    polygamous_houses: tuple[PolygamousHouse, ...] = field(default_factory=tuple)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def living_spouses(self) -> list[FamilyMember]:
        return [m for m in self.spouses if m.is_alive]

    def living_children(self) -> list[FamilyMember]:
        return [m for m in self.children if m.is_alive]

    def living_parents(self) -> list[FamilyMember]:
        return [m for m in self.parents if m.is_alive]

    def houses_in_order(self) -> list[PolygamousHouse]:
        return sorted(self.polygamous_houses, key=lambda h: (h.house_order, h.id))

    def house_spouses(self, house: PolygamousHouse) -> list[FamilyMember]:
        return [
            m
            for m in self.spouses
            if m.id == house.spouse_id or (m.house_id is not None and m.house_id == house.id)
        ]

    def house_children(self, house: PolygamousHouse) -> list[FamilyMember]:
        members = set(house.children_ids)
        return [m for m in self.children if m.id in members or m.house_id == house.id]

    def find_member(self, member_id: str) -> FamilyMember | None:
        for member in (*self.spouses, *self.children, *self.parents):
            if member.id == member_id:
                return member
        return None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FamilyStructure:
        """
        Build a structure from a plain mapping (e.g. a parsed YAML ledger).

        Example:
            ```python
            FamilyStructure.from_dict({
                "spouses": [{"id": "w1", "name": "Achieng"}],
                "children": [{"id": "c1", "name": "Otieno"}],
            })
            ```
        """
        houses = tuple(PolygamousHouse.from_dict(h) for h in data.get("polygamous_houses", ()))
        return cls(
            spouses=tuple(FamilyMember.from_dict(m, "SPOUSE") for m in data.get("spouses", ())),
            children=tuple(FamilyMember.from_dict(m, "CHILD") for m in data.get("children", ())),
            parents=tuple(FamilyMember.from_dict(m, "PARENT") for m in data.get("parents", ())),
            is_polygamous=bool(data.get("is_polygamous", bool(houses))),
            polygamous_houses=houses,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "spouses": [m.to_dict() for m in self.spouses],
            "children": [m.to_dict() for m in self.children],
            "parents": [m.to_dict() for m in self.parents],
            "is_polygamous": self.is_polygamous,
            "polygamous_houses": [h.to_dict() for h in self.polygamous_houses],
        }
