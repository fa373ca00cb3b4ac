"""simulation/hall_of_fame.py — Memorial for retired elders.

Retiring an ancient or legendary plant (instead of harvesting it) keeps a
small record of its life: name, final evolution, elder tier, bonds,
wishes granted, and a generated epitaph.  Only the most recent few are
kept, newest first.
"""

from __future__ import annotations
import random
from dataclasses import dataclass

from components.plant import Plant
from core.tuning import get as _tun


_EPITAPHS = {
    "legendary_soulmate": (
        "Together forever, even now.",
        "A legend who never grew alone.",
    ),
    "legendary": (
        "The garden will tell stories of this one.",
        "Stood tall through every season.",
    ),
    "ancient_soulmate": (
        "Old roots, true heart.",
        "Grew wise beside a dear friend.",
    ),
    "ancient": (
        "Patient, steady, unforgettable.",
        "Watched the garden grow up around them.",
    ),
    "wishmaker": (
        "Dreamed often, and saw dreams come true.",
        "Every wish a little sunshine.",
    ),
    "golden": (
        "Shone brighter than the rest.",
        "Worth its weight in gold.",
    ),
    "default": (
        "A good plant. A good life.",
        "Rest well, little sprout.",
    ),
}


@dataclass
class RetiredPlant:
    id: str
    name: str
    personality: str
    evolution_id: str
    seed_id: str
    elder_tier: str
    retired_at: float
    time_alive: float
    total_bonds: int
    strongest_bond: str | None
    wishes_granted: int
    was_golden: bool
    epitaph: str

    def to_dict(self) -> dict:
        return dict(self.__dict__)

    @classmethod
    def from_dict(cls, d: dict) -> RetiredPlant:
        bond = d.get("strongest_bond")
        return cls(
            id=str(d["id"]),
            name=str(d.get("name", "")),
            personality=str(d.get("personality", "cheerful")),
            evolution_id=str(d["evolution_id"]),
            seed_id=str(d["seed_id"]),
            elder_tier=str(d.get("elder_tier", "none")),
            retired_at=float(d["retired_at"]),
            time_alive=float(d.get("time_alive", 0.0)),
            total_bonds=int(d.get("total_bonds", 0)),
            strongest_bond=None if bond is None else str(bond),
            wishes_granted=int(d.get("wishes_granted", 0)),
            was_golden=bool(d.get("was_golden", False)),
            epitaph=str(d.get("epitaph", "")),
        )


def epitaph_pool(elder_tier: str, strongest_bond: str | None,
                 wishes_granted: int, was_golden: bool) -> str:
    if elder_tier == "legendary":
        return "legendary_soulmate" if strongest_bond == "soulmate" else "legendary"
    if elder_tier == "ancient":
        return "ancient_soulmate" if strongest_bond == "soulmate" else "ancient"
    if wishes_granted >= 3:
        return "wishmaker"
    if was_golden:
        return "golden"
    return "default"


def retire_record(plant: Plant, elder_tier: str, strongest_bond: str | None,
                  now: float, rng: random.Random | None = None) -> RetiredPlant:
    rng = rng or random
    pool = epitaph_pool(elder_tier, strongest_bond, plant.wishes_granted, plant.is_golden)
    return RetiredPlant(
        id=plant.id,
        name=plant.name or "Unknown",
        personality=plant.personality,
        evolution_id=plant.evolution_id,
        seed_id=plant.seed_id,
        elder_tier=elder_tier,
        retired_at=now,
        time_alive=max(0.0, now - plant.evo.planted_time),
        total_bonds=len(plant.neighbor_bonds),
        strongest_bond=strongest_bond,
        wishes_granted=plant.wishes_granted,
        was_golden=plant.is_golden,
        epitaph=rng.choice(_EPITAPHS[pool]),
    )


class HallOfFame:
    """Newest-first list of retired plants, trimmed to ``max_size``."""

    def __init__(self, entries: list[RetiredPlant] | None = None):
        self.entries: list[RetiredPlant] = list(entries or [])[: self.max_size()]

    @staticmethod
    def max_size() -> int:
        return int(_tun("garden", "hall_of_fame_max", 5))

    def add(self, record: RetiredPlant) -> None:
        self.entries.insert(0, record)
        del self.entries[self.max_size():]

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def to_list(self) -> list[dict]:
        return [r.to_dict() for r in self.entries]

    @classmethod
    def from_list(cls, raw) -> HallOfFame:
        if not isinstance(raw, list):
            raise TypeError("hall of fame must be a list")
        return cls([RetiredPlant.from_dict(r) for r in raw])
