"""simulation/garden.py — Garden orchestrator.

The ``Garden`` owns every plant and the grid index over them, and is the
only thing that adds or removes plants.  Player-facing actions (place,
water, merge, harvest) are atomic state transitions that either succeed
and emit events, or return ``None`` / ``False`` and change nothing.

Time never comes from a live clock inside the rules: every entry point
takes an explicit ``now`` (ms), falling back to the injected ``clock``
only when the caller omits it.

    garden = Garden(catalog, on_event=print, rng=random.Random(7))
    garden.place(2, 2, now=0)
    garden.water(2, 2, now=0)
    garden.tick(now=1000)               # growth + gated bond/wish/elder checks

Externally owned state is *pulled* through accessors:

    can_use_water()  → bool            is there water to spend?
    selected_seed()  → str             seed lineage to plant
    counters()       → GardenCounters  merges / spot harvests / discovered
"""

from __future__ import annotations
import math
import random
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from components.plant import Cell, EvolutionTelemetry, Plant
from components.resources import CheckTimers, GardenCounters
from core.constants import ORTHOGONAL_OFFSETS, SAVE_FORMAT_VERSION, elder_rank
from core.events import (
    ComboWatered, EvolutionDiscovered, PlantEvolved, PlantHarvested,
    PlantPlaced, PlantRetired, PlantsMerged, PlantWatered, VisitorTouchedPlant,
)
from core.grid import PlantGrid
from core.tuning import get as _tun
from logic.names import generate_plant_name
from logic.personality import random_personality
from simulation import bonds, elders, wishes
from simulation.catalog import EvolutionCatalog
from simulation.growth import accumulate, growth_time
from simulation.triggers import TriggerContext, determine_next_evolution, is_night_time
from simulation.wishes import WishContext

_LEGACY_KEYS = ("zones", "currentZoneId")


def wall_clock_ms() -> float:
    return time.time() * 1000.0


def wall_local_time(now: float) -> tuple[int, int]:
    """(hour, month) of *now* in the host's local time zone."""
    t = datetime.fromtimestamp(now / 1000.0)
    return t.hour, t.month


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def harvest_points(base: int, golden: bool, same_neighbors: int,
                   elder_tier: str, retire: bool) -> int:
    """Harvest value, rounded after each multiplier."""
    points = base
    if golden:
        points = round_half_up(points * float(_tun("economy", "golden_multiplier", 2)))
    if same_neighbors > 0:
        bonus = float(_tun("economy", "neighbor_bonus", 0.25))
        points = round_half_up(points * (1 + same_neighbors * bonus))
    if elder_tier != "none":
        points = round_half_up(points * elders.harvest_multiplier_for(elder_tier))
    if retire:
        points = round_half_up(points * float(_tun("elders", "retire_multiplier", 1.5)))
    return points


@dataclass
class CatchUpReport:
    start: float
    end: float
    ticks: int = 0
    evolutions: int = 0


class Garden:
    """Plant collection, spatial index, and the per-tick update sequence."""

    def __init__(self, catalog: EvolutionCatalog, on_event: Callable | None = None, *,
                 size: int | None = None,
                 can_use_water: Callable[[], bool] | None = None,
                 selected_seed: Callable[[], str] | None = None,
                 counters: Callable[[], GardenCounters] | None = None,
                 local_time: Callable[[float], tuple[int, int]] | None = None,
                 clock: Callable[[], float] | None = None,
                 rng: random.Random | None = None):
        self.catalog = catalog
        self.on_event = on_event
        self.grid = PlantGrid(size if size is not None else int(_tun("garden", "size", 5)))
        self.can_use_water = can_use_water or (lambda: True)
        self.selected_seed = selected_seed or (lambda: "sprout")
        self._own_counters = GardenCounters() if counters is None else None
        self.counters = counters or (lambda: self._own_counters)
        self.local_time = local_time or wall_local_time
        self.clock = clock or wall_clock_ms
        self.rng = rng if rng is not None else random.Random()

        self.timers = CheckTimers()
        self.sim_time: float | None = None
        self.evolution_count = 0
        self._recent_waters: list[tuple[Plant, float]] = []
        self._seq = 0

    # ── Queries ──────────────────────────────────────────────────────

    @property
    def plants(self) -> list[Plant]:
        """Plants in placement order (a copy; safe to mutate the garden while iterating)."""
        return self.grid.snapshot_list()

    def __len__(self) -> int:
        return len(self.grid)

    def plant_at(self, x: int, y: int) -> Plant | None:
        return self.grid.at(x, y)

    def get_plant(self, plant_id: str | None) -> Plant | None:
        return self.grid.get(plant_id)

    def neighbors_of(self, plant: Plant) -> list[Plant]:
        return self.grid.neighbors(plant)

    def orthogonal_neighbors_of(self, plant: Plant) -> list[Plant]:
        return self.grid.orthogonal(plant)

    def is_terminal(self, plant: Plant) -> bool:
        return self.catalog.is_terminal(plant.evolution_id)

    def is_night(self, now: float) -> bool:
        hour, _ = self.local_time(now)
        return is_night_time(hour)

    def elder_tier_of(self, plant: Plant, now: float | None = None) -> str:
        return elders.live_elder_tier(plant, self._now(now))

    def strongest_bond(self, plant: Plant) -> str | None:
        return bonds.strongest_bond(plant)

    def should_confirm_harvest(self, plant: Plant, now: float | None = None) -> str | None:
        """Reason to ask before harvesting, or ``None`` to just do it."""
        if any(b.level == "soulmate" for b in plant.neighbor_bonds):
            return "soulmate"
        tier = self.elder_tier_of(plant, now)
        if elder_rank(tier) >= elder_rank("ancient"):
            return tier
        return None

    def emit(self, event) -> None:
        if self.on_event is not None:
            self.on_event(event)

    def _now(self, now: float | None) -> float:
        return float(self.clock() if now is None else now)

    # ── Actions ──────────────────────────────────────────────────────

    def place(self, x: int, y: int, now: float | None = None,
              seed_id: str | None = None) -> Plant | None:
        """Plant the selected seed on an empty cell."""
        if not self.grid.in_bounds(x, y) or self.grid.at(x, y) is not None:
            return None
        seed = self.catalog.seed(seed_id or self.selected_seed())
        if seed is None:
            return None
        now = self._now(now)
        cell = Cell(x, y)
        plant = Plant(
            id=self._new_id(now),
            seed_id=seed.id,
            evolution_id=seed.start_evolution,
            cell=cell,
            last_update_time=now,
            is_golden=self.rng.random() < float(_tun("economy", "golden_chance", 0.1)),
            name=generate_plant_name(seed.id, self.rng),
            personality=random_personality(seed.id, self.rng),
            evo=EvolutionTelemetry(planted_time=now,
                                   spot_harvest_count=self.counters().spot_count(cell.key)),
        )
        self.grid.add(plant)
        self.emit(PlantPlaced(plant))
        return plant

    def water(self, x: int, y: int, now: float | None = None, free: bool = False) -> bool:
        """Water an unwatered plant.  *free* waterings skip the water check."""
        plant = self.grid.at(x, y)
        if plant is None or plant.is_watered:
            return False
        if not free and not self.can_use_water():
            return False
        now = self._now(now)
        plant.is_watered = True
        plant.water_count += 1
        plant.last_update_time = now
        night = self.is_night(now)
        if night:
            plant.evo.night_water_count += 1
        self.emit(PlantWatered(plant, free, night))
        self._track_combo(plant, now)
        return True

    def _track_combo(self, plant: Plant, now: float) -> None:
        window = float(_tun("watering", "combo_window", 2000))
        self._recent_waters.append((plant, now))
        self._recent_waters = [(p, t) for p, t in self._recent_waters
                               if now - t <= window and p in self.grid]
        tracked: list[Plant] = []
        for p, _ in self._recent_waters:
            if p not in tracked:
                tracked.append(p)
        if len(tracked) < int(_tun("watering", "combo_min_size", 3)):
            return
        boost = float(_tun("watering", "combo_growth_boost", 1.5))
        for p in tracked:
            p.growth_boost = max(p.growth_boost, boost)
            p.evo.combo_water_count += 1
        self._recent_waters.clear()
        self.emit(ComboWatered(tracked, boost))

    def can_merge(self, source: Plant | None, target: Plant | None) -> bool:
        if source is None or target is None or source is target:
            return False
        if source.seed_id != target.seed_id or source.evolution_id != target.evolution_id:
            return False
        if not (source.is_watered and target.is_watered):
            return False
        node = self.catalog.get(target.evolution_id)
        if node is None or node.is_terminal:
            return False
        return node.default_evolution is not None and node.default_evolution in self.catalog

    def merge(self, sx: int, sy: int, tx: int, ty: int,
              now: float | None = None) -> Plant | None:
        """Fold the source plant into the target, pushing the target one
        stage along its default edge.  Conditional branches never apply."""
        source, target = self.grid.at(sx, sy), self.grid.at(tx, ty)
        if not self.can_merge(source, target):
            return None
        now = self._now(now)
        node = self.catalog.get(target.evolution_id)
        target.evolution_id = node.default_evolution
        target.is_watered = False
        target.water_count = 0
        target.growth_progress = 0.0
        target.last_update_time = now
        if source.is_golden:
            target.is_golden = True
        self._remove(source)
        self.emit(PlantsMerged(source, target))
        return target

    def harvest(self, x: int, y: int, now: float | None = None,
                retire: bool = False) -> int | None:
        """Harvest (or retire) a terminal plant.  Returns points earned."""
        plant = self.grid.at(x, y)
        if plant is None or not self.is_terminal(plant):
            return None
        now = self._now(now)
        tier = elders.live_elder_tier(plant, now)
        if retire and elder_rank(tier) < elder_rank("ancient"):
            return None

        node = self.catalog.get(plant.evolution_id)
        same = sum(1 for n in self.orthogonal_neighbors_of(plant) if n.seed_id == plant.seed_id)
        points = harvest_points(node.points, plant.is_golden, same, tier, retire)
        strongest = bonds.strongest_bond(plant)

        bonds.trigger_grief(self, plant, now)
        self._remove(plant)
        if retire:
            self.emit(PlantRetired(plant, points, tier, strongest))
        else:
            self.emit(PlantHarvested(plant, points, same, tier))
        return points

    def _remove(self, plant: Plant) -> None:
        self.grid.remove(plant)
        self._recent_waters = [(p, t) for p, t in self._recent_waters if p is not plant]

    def _new_id(self, now: float) -> str:
        while True:
            self._seq += 1
            plant_id = f"plant_{int(now)}_{self._seq}"
            if self.grid.get(plant_id) is None:
                return plant_id

    # ── Visitors & farmer ────────────────────────────────────────────

    def mark_visitor_touch(self, plant: Plant, visitor: str) -> None:
        if visitor not in plant.evo.visitor_touches:
            plant.evo.visitor_touches.append(visitor)
        self.emit(VisitorTouchedPlant(plant, visitor))

    def pollinate(self, x: int, y: int) -> list[Plant]:
        """Butterfly: boost and touch every plant around (x, y)."""
        boost = float(_tun("visitors", "pollinate_boost", 1.5))
        radius = int(_tun("visitors", "pollinate_radius", 1))
        touched = self.grid.within(x, y, radius)
        for plant in touched:
            plant.growth_boost = max(plant.growth_boost, boost)
            self.mark_visitor_touch(plant, "butterfly")
        return touched

    def ripen_random(self, now: float | None = None) -> Plant | None:
        """Rabbit: one random growing plant finishes its stage on the spot."""
        now = self._now(now)
        growing = []
        for plant in self.grid:
            node = self.catalog.get(plant.evolution_id)
            if (plant.is_watered and node is not None and not node.is_terminal
                    and not math.isinf(growth_time(self.catalog, node))):
                growing.append((plant, node))
        if not growing:
            return None
        plant, node = self.rng.choice(growing)
        self.mark_visitor_touch(plant, "rabbit")
        plant.last_update_time = now
        self._complete_stage(plant, node, now)
        return plant

    def farmer_water_nearby(self, pos: tuple[int, int],
                            now: float | None = None) -> Plant | None:
        """Free watering of the first thirsty plant on or beside the farmer."""
        fx, fy = pos
        for dx, dy in ((0, 0),) + ORTHOGONAL_OFFSETS:
            plant = self.grid.at(fx + dx, fy + dy)
            if plant is not None and not plant.is_watered:
                if self.water(plant.x, plant.y, now, free=True):
                    return plant
        return None

    # ── Growth ───────────────────────────────────────────────────────

    def update_growth(self, now: float | None = None, multiplier: float = 1.0,
                      farmer_pos: tuple[int, int] | None = None) -> list[Plant]:
        """Advance every growing plant with one captured *now*.

        Returns the plants that evolved, in plant order.
        """
        now = self._now(now)
        evolved = []
        for plant in self.plants:
            if not plant.is_watered:
                continue
            node = self.catalog.get(plant.evolution_id)
            if node is None or node.is_terminal:
                continue
            done = accumulate(self, plant, node, now, multiplier, farmer_pos)
            plant.last_update_time = now
            if done and self._complete_stage(plant, node, now):
                evolved.append(plant)
        return evolved

    def trigger_context(self, plant: Plant, now: float) -> TriggerContext:
        _, month = self.local_time(now)
        counters = self.counters()
        return TriggerContext(
            now=now,
            neighbors=self.grid.neighbors(plant),
            neighbor_cells=len(self.grid.neighbor_cells(plant.x, plant.y)),
            is_terminal=self.catalog.is_terminal,
            month=month,
            total_merges=counters.total_merges,
            spot_harvest_count=counters.spot_count(plant.cell.key),
            rng=self.rng,
        )

    def _complete_stage(self, plant: Plant, node, now: float) -> bool:
        plant.growth_progress = 0.0
        next_id, special = determine_next_evolution(
            node, plant, self.trigger_context(plant, now), self.catalog)
        if next_id is None:
            return False

        from_id = plant.evolution_id
        plant.evolution_id = next_id
        plant.is_watered = False
        plant.water_count = 0
        plant.growth_boost = 1.0
        self.evolution_count += 1
        self.emit(PlantEvolved(plant, from_id, next_id, special,
                               self.catalog.is_terminal(next_id)))

        counters = self.counters()
        if next_id not in counters.discovered:
            if self._own_counters is not None:
                self._own_counters.discovered.add(next_id)
            self.emit(EvolutionDiscovered(plant, next_id))
        return True

    # ── Coarse periodic checks ───────────────────────────────────────

    def update_neighbor_bonds(self, now: float | None = None) -> bool:
        now = self._now(now)
        if not self.timers.due("bonds", now, float(_tun("bonds", "check_interval", 5000))):
            return False
        bonds.update_bonds(self, now)
        return True

    def update_wishes(self, now: float | None = None) -> bool:
        now = self._now(now)
        if not self.timers.due("wishes", now, float(_tun("wishes", "check_interval", 10_000))):
            return False
        wishes.check_fulfillment(self, WishContext(), now)
        wishes.update_wishes(self, now, self.rng)
        return True

    def update_elder_status(self, now: float | None = None) -> bool:
        now = self._now(now)
        if not self.timers.due("elders", now, float(_tun("elders", "check_interval", 30_000))):
            return False
        elders.update_elders(self, now)
        return True

    def check_wish_fulfillment(self, context: WishContext,
                               now: float | None = None) -> list:
        return wishes.check_fulfillment(self, context, self._now(now))

    def bring_bond_forward(self, plant: Plant, bonus_ms: float,
                           target_id: str | None = None) -> None:
        bonds.bring_bond_forward(self, plant, bonus_ms, target_id)

    # ── Ticking ──────────────────────────────────────────────────────

    def tick(self, now: float | None = None, multiplier: float = 1.0,
             farmer_pos: tuple[int, int] | None = None) -> None:
        """One real tick: growth, then the gated bond / wish / elder checks."""
        now = self._now(now)
        self.update_growth(now, multiplier, farmer_pos)
        self.update_neighbor_bonds(now)
        self.update_wishes(now)
        self.update_elder_status(now)
        self.sim_time = now if self.sim_time is None else max(self.sim_time, now)

    def catch_up(self, until: float, multiplier: float = 1.0,
                 farmer_pos: tuple[int, int] | None = None,
                 since: float | None = None) -> CatchUpReport:
        """Replay growth ticks from the last simulated time up to *until*.

        Bounded by the max offline duration; plants whose last update is
        older than the replay start are clamped to it.  Calling again for
        the same *until* does nothing.
        """
        step = float(_tun("timing", "growth_tick", 1000))
        cap = float(_tun("timing", "max_offline", 28_800_000))
        start = since if since is not None else self.sim_time
        if start is None:
            start = until
        if self.sim_time is not None:
            start = max(start, self.sim_time)
        start = max(start, until - cap)
        if until <= start:
            return CatchUpReport(start, start)

        for plant in self.grid:
            if plant.last_update_time < start:
                plant.last_update_time = start

        before = self.evolution_count
        ticks = 0
        t = start
        while t < until:
            t = min(t + step, until)
            self.tick(t, multiplier, farmer_pos)
            ticks += 1
        self.sim_time = until
        report = CatchUpReport(start, until, ticks, self.evolution_count - before)
        print(f"[GARDEN] caught up {(until - start) / 1000:.0f}s in {ticks} ticks, "
              f"{report.evolutions} evolutions")
        return report

    # ── Snapshot / restore ───────────────────────────────────────────

    def snapshot(self) -> dict:
        return {
            "format_version": SAVE_FORMAT_VERSION,
            "size": self.grid.size,
            "sim_time": self.sim_time,
            "plants": [p.to_dict() for p in self.grid],
        }

    def restore(self, data) -> bool:
        """Replace all plants from a snapshot.

        Anything malformed or from an older layout discards the whole
        snapshot and leaves an empty garden; returns False in that case.
        """
        try:
            grid, sim_time = self._parse_snapshot(data)
        except (AttributeError, KeyError, TypeError, ValueError) as ex:
            print(f"[SAVE] discarding garden snapshot: {ex}")
            self.reset()
            return False
        self.reset()
        self.grid = grid
        self.sim_time = sim_time
        return True

    def _parse_snapshot(self, data) -> tuple[PlantGrid, float | None]:
        if not isinstance(data, dict):
            raise TypeError("snapshot must be a mapping")
        if any(key in data for key in _LEGACY_KEYS):
            raise ValueError("legacy zone-based layout")
        if data.get("format_version") != SAVE_FORMAT_VERSION:
            raise ValueError(f"unsupported format_version {data.get('format_version')!r}")
        raw_plants = data["plants"]
        if not isinstance(raw_plants, list):
            raise TypeError("plants must be a list")
        grid = PlantGrid(int(data.get("size", self.grid.size)))
        for raw in raw_plants:
            plant = Plant.from_dict(raw)
            if not grid.add(plant):
                raise ValueError(f"plant {plant.id!r} collides or is out of bounds")
        sim_time = data.get("sim_time")
        return grid, None if sim_time is None else float(sim_time)

    def reset(self) -> None:
        """Empty the garden, keeping its size and collaborators."""
        self.grid = PlantGrid(self.grid.size)
        self.timers.reset()
        self.sim_time = None
        self._recent_waters.clear()

    def debug_info(self) -> dict:
        return {
            "plants": len(self.grid),
            "watered": sum(1 for p in self.grid if p.is_watered),
            "terminal": sum(1 for p in self.grid if self.is_terminal(p)),
            "wishes": sum(1 for p in self.grid if p.active_wish is not None),
            "grieving": sum(1 for p in self.grid if p.grief_state is not None),
            "sim_time": self.sim_time,
        }
