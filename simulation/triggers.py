"""simulation/triggers.py — Conditional evolution triggers.

A catalog branch carries one trigger: a frozen dataclass from the closed
set below, parsed from a TOML inline table such as
``{ type = "night_water", count = 2 }``.  ``parse_trigger`` returns
``None`` for anything malformed, and ``check_trigger(None, ...)`` is
simply False, so a bad catalog entry can never crash a tick.

Evaluation reads the plant, its live neighbourhood, and a few global
values bundled in a ``TriggerContext``.  Nothing here mutates state; the
``random`` trigger draws from the context's RNG, which is the only
observable effect of evaluating a branch.
"""

from __future__ import annotations
import random
from dataclasses import dataclass, field
from typing import Callable, Union, TYPE_CHECKING

from core.constants import MS_PER_HOUR, SEASONS, VISITOR_KINDS

if TYPE_CHECKING:
    from components.plant import Plant
    from simulation.catalog import EvolutionCatalog, EvolutionNode


# ═══════════════════════════════════════════════════════════════════
#  Trigger variants
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Golden:
    pass


@dataclass(frozen=True)
class NightWater:
    count: int


@dataclass(frozen=True)
class ComboWater:
    count: int


@dataclass(frozen=True)
class VisitorTouch:
    visitor: str | None = None     # None = any visitor


@dataclass(frozen=True)
class FarmerBoosted:
    count: int


@dataclass(frozen=True)
class NeighborCount:
    min: int


@dataclass(frozen=True)
class NeighborSame:
    """Neighbours of the same seed lineage."""
    min: int


@dataclass(frozen=True)
class NeighborDiverse:
    """Distinct evolution ids among neighbours."""
    min: int


@dataclass(frozen=True)
class Age:
    hours: float


@dataclass(frozen=True)
class HarvestSpot:
    count: int


@dataclass(frozen=True)
class MergeCount:
    count: int


@dataclass(frozen=True)
class Season:
    season: str


@dataclass(frozen=True)
class Month:
    month: int                     # 1–12


@dataclass(frozen=True)
class NeighborEvolution:
    evolution_id: str


@dataclass(frozen=True)
class AllNeighborsMax:
    """All eight surrounding cells hold terminal plants."""


@dataclass(frozen=True)
class RandomChance:
    chance: float


Trigger = Union[
    Golden, NightWater, ComboWater, VisitorTouch, FarmerBoosted,
    NeighborCount, NeighborSame, NeighborDiverse, Age, HarvestSpot,
    MergeCount, Season, Month, NeighborEvolution, AllNeighborsMax,
    RandomChance,
]


# ── Parsing ──────────────────────────────────────────────────────────

def _count(raw: dict, key: str = "count") -> int:
    value = raw[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{key} must be a number")
    if value < 0 or int(value) != value:
        raise ValueError(f"{key} must be a non-negative integer")
    return int(value)


def _visitor(raw: dict) -> VisitorTouch:
    kind = raw.get("visitor")
    if kind is not None and kind not in VISITOR_KINDS:
        raise ValueError(f"unknown visitor {kind!r}")
    return VisitorTouch(kind)


def _season(raw: dict) -> Season:
    if raw["season"] not in SEASONS:
        raise ValueError(f"unknown season {raw['season']!r}")
    return Season(raw["season"])


def _month(raw: dict) -> Month:
    month = _count(raw, "month")
    if not 1 <= month <= 12:
        raise ValueError("month must be 1–12")
    return Month(month)


def _age(raw: dict) -> Age:
    hours = raw["hours"]
    if isinstance(hours, bool) or not isinstance(hours, (int, float)) or hours < 0:
        raise ValueError("hours must be a non-negative number")
    return Age(float(hours))


def _chance(raw: dict) -> RandomChance:
    chance = raw["chance"]
    if isinstance(chance, bool) or not isinstance(chance, (int, float)) or not 0 <= chance <= 1:
        raise ValueError("chance must be within 0–1")
    return RandomChance(float(chance))


def _evolution(raw: dict) -> NeighborEvolution:
    evo_id = raw["evolution_id"]
    if not isinstance(evo_id, str) or not evo_id:
        raise ValueError("evolution_id must be a non-empty string")
    return NeighborEvolution(evo_id)


_PARSERS: dict[str, Callable[[dict], Trigger]] = {
    "golden": lambda raw: Golden(),
    "night_water": lambda raw: NightWater(_count(raw)),
    "combo_water": lambda raw: ComboWater(_count(raw)),
    "visitor_touch": _visitor,
    "farmer_boosted": lambda raw: FarmerBoosted(_count(raw)),
    "neighbor_count": lambda raw: NeighborCount(_count(raw, "min")),
    "neighbor_same": lambda raw: NeighborSame(_count(raw, "min")),
    "neighbor_diverse": lambda raw: NeighborDiverse(_count(raw, "min")),
    "age": _age,
    "harvest_spot": lambda raw: HarvestSpot(_count(raw)),
    "merge_count": lambda raw: MergeCount(_count(raw)),
    "season": _season,
    "month": _month,
    "neighbor_evolution": _evolution,
    "all_neighbors_max": lambda raw: AllNeighborsMax(),
    "random": _chance,
}


def parse_trigger(raw) -> Trigger | None:
    """Build a trigger from its table form, or ``None`` if malformed."""
    if not isinstance(raw, dict):
        return None
    parser = _PARSERS.get(raw.get("type"))
    if parser is None:
        return None
    try:
        return parser(raw)
    except (KeyError, TypeError, ValueError):
        return None


# ═══════════════════════════════════════════════════════════════════
#  Evaluation
# ═══════════════════════════════════════════════════════════════════

@dataclass
class TriggerContext:
    """Everything a trigger may look at besides the plant itself."""
    now: float
    neighbors: list[Plant] = field(default_factory=list)
    neighbor_cells: int = 8            # in-bounds cells around the plant
    is_terminal: Callable[[str], bool] = lambda evo_id: False
    month: int = 1
    total_merges: int = 0
    spot_harvest_count: int = 0
    rng: random.Random = field(default_factory=random.Random)


def season_for_month(month: int) -> str:
    if 3 <= month <= 5:
        return "spring"
    if 6 <= month <= 8:
        return "summer"
    if 9 <= month <= 11:
        return "fall"
    return "winter"


def is_night_time(hour: int) -> bool:
    return hour >= 20 or hour < 6


def check_trigger(trigger: Trigger | None, plant: Plant, ctx: TriggerContext) -> bool:
    """Evaluate *trigger* for *plant*.  Never raises; bad data is False."""
    if trigger is None:
        return False
    try:
        return _check(trigger, plant, ctx)
    except (AttributeError, KeyError, TypeError, ValueError):
        return False


def _check(t: Trigger, plant: Plant, ctx: TriggerContext) -> bool:
    evo = plant.evo
    if isinstance(t, Golden):
        return plant.is_golden
    if isinstance(t, NightWater):
        return evo.night_water_count >= t.count
    if isinstance(t, ComboWater):
        return evo.combo_water_count >= t.count
    if isinstance(t, VisitorTouch):
        if t.visitor is None:
            return len(evo.visitor_touches) > 0
        return t.visitor in evo.visitor_touches
    if isinstance(t, FarmerBoosted):
        return evo.farmer_boost_ticks >= t.count
    if isinstance(t, NeighborCount):
        return len(ctx.neighbors) >= t.min
    if isinstance(t, NeighborSame):
        return sum(1 for n in ctx.neighbors if n.seed_id == plant.seed_id) >= t.min
    if isinstance(t, NeighborDiverse):
        return len({n.evolution_id for n in ctx.neighbors}) >= t.min
    if isinstance(t, Age):
        return (ctx.now - evo.planted_time) / MS_PER_HOUR >= t.hours
    if isinstance(t, HarvestSpot):
        return max(evo.spot_harvest_count, ctx.spot_harvest_count) >= t.count
    if isinstance(t, MergeCount):
        return ctx.total_merges >= t.count
    if isinstance(t, Season):
        return season_for_month(ctx.month) == t.season
    if isinstance(t, Month):
        return ctx.month == t.month
    if isinstance(t, NeighborEvolution):
        return any(n.evolution_id == t.evolution_id for n in ctx.neighbors)
    if isinstance(t, AllNeighborsMax):
        return (ctx.neighbor_cells == 8 and len(ctx.neighbors) == 8
                and all(ctx.is_terminal(n.evolution_id) for n in ctx.neighbors))
    if isinstance(t, RandomChance):
        return ctx.rng.random() < t.chance
    return False


def determine_next_evolution(node: EvolutionNode, plant: Plant, ctx: TriggerContext,
                             catalog: EvolutionCatalog) -> tuple[str | None, bool]:
    """Pick the node a completed stage evolves into.

    Branches are tried in declared order and the first satisfied one
    wins; otherwise the default edge.  Targets missing from the catalog
    are skipped.  Returns ``(next_id, is_special)`` or ``(None, False)``.
    """
    for branch in node.special_evolutions:
        if branch.to in catalog and check_trigger(branch.trigger, plant, ctx):
            return branch.to, True
    if node.default_evolution is not None and node.default_evolution in catalog:
        return node.default_evolution, False
    return None, False
