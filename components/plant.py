"""components.plant — Per-plant state records.

A ``Plant`` is pure data: every rule that reads or mutates it lives in
``simulation/``.  Each record knows how to flatten itself to plain dicts
(``to_dict``) and rebuild from them (``from_dict``) for snapshots.
``from_dict`` raises ``KeyError`` / ``TypeError`` / ``ValueError`` on
malformed input; restore code catches those and discards the whole save.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from core.constants import BOND_LEVELS, ELDER_TIERS, VISITOR_KINDS, WISH_TYPES


@dataclass(frozen=True)
class Cell:
    """Grid coordinate (x = column, y = row)."""
    x: int
    y: int

    @property
    def key(self) -> str:
        """Stable string key, e.g. ``"2,3"`` (used for per-spot counters)."""
        return f"{self.x},{self.y}"


@dataclass
class EvolutionTelemetry:
    """Counters the trigger evaluator reads.  Accumulated over the
    plant's life; ``planted_time`` and ``spot_harvest_count`` are stamped
    at placement."""
    night_water_count: int = 0
    combo_water_count: int = 0
    visitor_touches: list[str] = field(default_factory=list)
    farmer_boost_ticks: int = 0
    planted_time: float = 0.0
    spot_harvest_count: int = 0

    def to_dict(self) -> dict:
        return {
            "night_water_count": self.night_water_count,
            "combo_water_count": self.combo_water_count,
            "visitor_touches": list(self.visitor_touches),
            "farmer_boost_ticks": self.farmer_boost_ticks,
            "planted_time": float(self.planted_time),
            "spot_harvest_count": self.spot_harvest_count,
        }

    @classmethod
    def from_dict(cls, d: dict) -> EvolutionTelemetry:
        if not isinstance(d, dict):
            raise TypeError("evo must be a mapping")
        touches = d.get("visitor_touches", [])
        if not isinstance(touches, list):
            raise TypeError("visitor_touches must be a list")
        return cls(
            night_water_count=int(d.get("night_water_count", 0)),
            combo_water_count=int(d.get("combo_water_count", 0)),
            visitor_touches=[str(v) for v in touches if str(v) in VISITOR_KINDS],
            farmer_boost_ticks=int(d.get("farmer_boost_ticks", 0)),
            planted_time=float(d.get("planted_time", 0.0)),
            spot_harvest_count=int(d.get("spot_harvest_count", 0)),
        )


@dataclass
class NeighborBond:
    neighbor_id: str
    since: float
    level: str = "acquaintance"

    def to_dict(self) -> dict:
        return {"neighbor_id": self.neighbor_id, "since": float(self.since),
                "level": self.level}

    @classmethod
    def from_dict(cls, d: dict) -> NeighborBond:
        if not isinstance(d, dict):
            raise TypeError("bond entry must be a mapping")
        level = str(d.get("level", "acquaintance"))
        if level not in BOND_LEVELS:
            raise ValueError(f"unknown bond level {level!r}")
        return cls(str(d["neighbor_id"]), float(d["since"]), level)


@dataclass
class GriefState:
    """Growth penalty after losing a bonded neighbour."""
    mourning_name: str
    since: float
    duration: float

    def expired(self, now: float) -> bool:
        return now - self.since >= self.duration

    def to_dict(self) -> dict:
        return {"mourning_name": self.mourning_name, "since": float(self.since),
                "duration": float(self.duration)}

    @classmethod
    def from_dict(cls, d: dict) -> GriefState:
        return cls(str(d["mourning_name"]), float(d["since"]), float(d["duration"]))


@dataclass
class Wish:
    type: str
    text: str
    emoji: str
    created_at: float
    expires_at: float
    target_id: str | None = None

    def to_dict(self) -> dict:
        return {
            "type": self.type, "text": self.text, "emoji": self.emoji,
            "created_at": float(self.created_at),
            "expires_at": float(self.expires_at),
            "target_id": self.target_id,
        }

    @classmethod
    def from_dict(cls, d: dict) -> Wish:
        wtype = str(d["type"])
        if wtype not in WISH_TYPES:
            raise ValueError(f"unknown wish type {wtype!r}")
        target = d.get("target_id")
        return cls(wtype, str(d.get("text", "")), str(d.get("emoji", "")),
                   float(d["created_at"]), float(d["expires_at"]),
                   None if target is None else str(target))


@dataclass
class Plant:
    """One grid-resident organism.

    ``growth_progress`` stays in [0, 1) between ticks.  ``maxed_at`` is
    stamped the first time the elder check sees the plant on a terminal
    node and is never cleared.  ``elder_tier`` is the last *announced*
    tier; auras and harvest use the live tier derived from ``maxed_at``.
    """
    id: str
    seed_id: str
    evolution_id: str
    cell: Cell

    # ── Growth ───────────────────────────────────────────────────────
    is_watered: bool = False
    water_count: int = 0
    growth_progress: float = 0.0
    last_update_time: float = 0.0

    # ── Modifiers ────────────────────────────────────────────────────
    is_golden: bool = False
    growth_boost: float = 1.0

    # ── Cosmetic ─────────────────────────────────────────────────────
    name: str = ""
    personality: str = "cheerful"

    # ── Social ───────────────────────────────────────────────────────
    neighbor_bonds: list[NeighborBond] = field(default_factory=list)
    grief_state: GriefState | None = None

    # ── Aging ────────────────────────────────────────────────────────
    maxed_at: float | None = None
    elder_tier: str = "none"

    # ── Desire ───────────────────────────────────────────────────────
    active_wish: Wish | None = None
    last_wish_time: float | None = None
    wishes_granted: int = 0

    evo: EvolutionTelemetry = field(default_factory=EvolutionTelemetry)

    @property
    def x(self) -> int:
        return self.cell.x

    @property
    def y(self) -> int:
        return self.cell.y

    def bond_with(self, neighbor_id: str) -> NeighborBond | None:
        for bond in self.neighbor_bonds:
            if bond.neighbor_id == neighbor_id:
                return bond
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "seed_id": self.seed_id,
            "evolution_id": self.evolution_id,
            "x": self.cell.x,
            "y": self.cell.y,
            "is_watered": self.is_watered,
            "water_count": self.water_count,
            "growth_progress": float(self.growth_progress),
            "last_update_time": float(self.last_update_time),
            "is_golden": self.is_golden,
            "growth_boost": float(self.growth_boost),
            "name": self.name,
            "personality": self.personality,
            "neighbor_bonds": [b.to_dict() for b in self.neighbor_bonds],
            "grief_state": self.grief_state.to_dict() if self.grief_state else None,
            "maxed_at": self.maxed_at,
            "elder_tier": self.elder_tier,
            "active_wish": self.active_wish.to_dict() if self.active_wish else None,
            "last_wish_time": self.last_wish_time,
            "wishes_granted": self.wishes_granted,
            "evo": self.evo.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: dict) -> Plant:
        if not isinstance(d, dict):
            raise TypeError("plant entry must be a mapping")
        bonds = d.get("neighbor_bonds", [])
        if not isinstance(bonds, list):
            raise TypeError("neighbor_bonds must be a list")
        tier = str(d.get("elder_tier", "none"))
        if tier not in ELDER_TIERS:
            raise ValueError(f"unknown elder tier {tier!r}")
        progress = float(d.get("growth_progress", 0.0))
        if not 0.0 <= progress < 1.0:
            raise ValueError(f"growth_progress out of range: {progress}")
        grief = d.get("grief_state")
        wish = d.get("active_wish")
        maxed_at = d.get("maxed_at")
        last_wish = d.get("last_wish_time")
        return cls(
            id=str(d["id"]),
            seed_id=str(d["seed_id"]),
            evolution_id=str(d["evolution_id"]),
            cell=Cell(int(d["x"]), int(d["y"])),
            is_watered=bool(d.get("is_watered", False)),
            water_count=int(d.get("water_count", 0)),
            growth_progress=progress,
            last_update_time=float(d.get("last_update_time", 0.0)),
            is_golden=bool(d.get("is_golden", False)),
            growth_boost=float(d.get("growth_boost", 1.0)),
            name=str(d.get("name", "")),
            personality=str(d.get("personality", "cheerful")),
            neighbor_bonds=[NeighborBond.from_dict(b) for b in bonds],
            grief_state=GriefState.from_dict(grief) if grief else None,
            maxed_at=None if maxed_at is None else float(maxed_at),
            elder_tier=tier,
            active_wish=Wish.from_dict(wish) if wish else None,
            last_wish_time=None if last_wish is None else float(last_wish),
            wishes_granted=int(d.get("wishes_granted", 0)),
            evo=EvolutionTelemetry.from_dict(d.get("evo", {})),
        )
