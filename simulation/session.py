"""simulation/session.py — Top-level garden session manager.

``GardenSim`` wraps a ``Garden`` with the state the garden itself does
not own: water, points, unlocked seeds, global counters, the hall of
fame.  It is the garden's event sink; every event is applied to that
state synchronously, written to the dev log, and then queued on the
``EventBus`` for presentation-side subscribers.

Usage from a host loop::

    sim = GardenSim(EvolutionCatalog.from_toml())
    sim.start(now_ms)
    sim.place(2, 2, now_ms)
    sim.water(2, 2, now_ms)
    ...
    sim.tick(now_ms, farmer_pos=(2, 3))     # once per growth tick

Persistence goes through ``snapshot()`` / ``restore()``; restoring after
a long absence replays the missed time at the offline growth rate.
"""

from __future__ import annotations
import random
from dataclasses import dataclass, field
from typing import Callable

from components.dev_log import DevLog
from components.resources import GameClock, GardenCounters
from core.constants import SAVE_FORMAT_VERSION, STARTING_SEED
from core.events import EventBus
from core.tuning import get as _tun
from simulation.catalog import EvolutionCatalog
from simulation.garden import CatchUpReport, Garden
from simulation.hall_of_fame import HallOfFame, retire_record
from simulation.wishes import WishContext


@dataclass
class GardenState:
    """Session state the garden reads through its accessors."""
    water: int = 4
    last_water_regen: float = 0.0
    garden_points: int = 0
    total_plants_maxed: int = 0
    harvest_counts: dict[str, int] = field(default_factory=dict)
    counters: GardenCounters = field(default_factory=GardenCounters)
    unlocked_seeds: list[str] = field(default_factory=lambda: [STARTING_SEED])
    selected_seed_id: str = STARTING_SEED
    double_harvest: bool = False
    last_save_time: float | None = None
    last_play_time: float | None = None

    def to_dict(self) -> dict:
        return {
            "water": self.water,
            "last_water_regen": float(self.last_water_regen),
            "garden_points": self.garden_points,
            "total_plants_maxed": self.total_plants_maxed,
            "harvest_counts": dict(self.harvest_counts),
            "counters": self.counters.to_dict(),
            "unlocked_seeds": list(self.unlocked_seeds),
            "selected_seed_id": self.selected_seed_id,
            "double_harvest": self.double_harvest,
            "last_save_time": self.last_save_time,
            "last_play_time": self.last_play_time,
        }

    @classmethod
    def from_dict(cls, d: dict) -> GardenState:
        if not isinstance(d, dict):
            raise TypeError("state must be a mapping")
        unlocked = d.get("unlocked_seeds", [STARTING_SEED])
        counts = d.get("harvest_counts", {})
        if not isinstance(unlocked, list) or not isinstance(counts, dict):
            raise TypeError("malformed session state")
        unlocked = [str(s) for s in unlocked] or [STARTING_SEED]
        selected = str(d.get("selected_seed_id", unlocked[0]))
        save_t, play_t = d.get("last_save_time"), d.get("last_play_time")
        return cls(
            water=int(d.get("water", 0)),
            last_water_regen=float(d.get("last_water_regen", 0.0)),
            garden_points=int(d.get("garden_points", 0)),
            total_plants_maxed=int(d.get("total_plants_maxed", 0)),
            harvest_counts={str(k): int(v) for k, v in counts.items()},
            counters=GardenCounters.from_dict(d.get("counters", {})),
            unlocked_seeds=unlocked,
            selected_seed_id=selected if selected in unlocked else unlocked[0],
            double_harvest=bool(d.get("double_harvest", False)),
            last_save_time=None if save_t is None else float(save_t),
            last_play_time=None if play_t is None else float(play_t),
        )


def water_max() -> int:
    return int(_tun("watering", "water_max", 4))


class GardenSim:
    """Owns one garden session: state, event handling, persistence."""

    def __init__(self, catalog: EvolutionCatalog | None = None, *,
                 size: int | None = None,
                 local_time: Callable[[float], tuple[int, int]] | None = None,
                 rng: random.Random | None = None) -> None:
        self.catalog = catalog if catalog is not None else EvolutionCatalog.from_toml()
        self.rng = rng if rng is not None else random.Random()
        self.state = GardenState(water=water_max())
        self.hall_of_fame = HallOfFame()
        self.clock = GameClock()
        self.log = DevLog()
        self.bus = EventBus()
        self.garden = Garden(
            self.catalog, self._on_event,
            size=size,
            can_use_water=lambda: self.state.water > 0,
            selected_seed=lambda: self.state.selected_seed_id,
            counters=lambda: self.state.counters,
            local_time=local_time,
            clock=self.clock.now,
            rng=self.rng,
        )
        self._handlers: dict[str, Callable] = {
            "PlantPlaced": self._on_placed,
            "PlantWatered": self._on_watered,
            "PlantEvolved": self._on_evolved,
            "EvolutionDiscovered": self._on_discovered,
            "PlantsMerged": self._on_merged,
            "PlantHarvested": self._on_harvested,
            "PlantRetired": self._on_retired,
            "ComboWatered": self._on_combo,
            "BondFormed": self._on_bond,
            "PlantGrieving": self._on_grief,
            "ElderReached": self._on_elder,
            "WishAppeared": self._on_wish_appeared,
            "WishFulfilled": self._on_wish_fulfilled,
            "VisitorTouchedPlant": self._on_visitor_touch,
        }

    # ── Setup ────────────────────────────────────────────────────────

    def start(self, now: float) -> None:
        """Begin a fresh session at *now*."""
        self.clock.advance_to(now)
        self.state.last_water_regen = now
        self.state.last_play_time = now

    def reset(self, now: float) -> None:
        self.state = GardenState(water=water_max())
        self.hall_of_fame = HallOfFame()
        self.garden.reset()
        self.start(now)

    # ── Player actions ───────────────────────────────────────────────

    def _advance(self, now: float) -> float:
        return self.clock.advance_to(now)

    def place(self, x: int, y: int, now: float):
        return self.garden.place(x, y, self._advance(now))

    def water(self, x: int, y: int, now: float) -> bool:
        return self.garden.water(x, y, self._advance(now))

    def merge(self, sx: int, sy: int, tx: int, ty: int, now: float):
        return self.garden.merge(sx, sy, tx, ty, self._advance(now))

    def harvest(self, x: int, y: int, now: float, retire: bool = False) -> int | None:
        """Returns points credited (after any bluebird doubling)."""
        before = self.state.garden_points
        if self.garden.harvest(x, y, self._advance(now), retire=retire) is None:
            return None
        return self.state.garden_points - before

    def farmer_water(self, pos: tuple[int, int], now: float):
        return self.garden.farmer_water_nearby(pos, self._advance(now))

    def select_seed(self, seed_id: str) -> bool:
        if seed_id not in self.state.unlocked_seeds or self.catalog.seed(seed_id) is None:
            return False
        self.state.selected_seed_id = seed_id
        return True

    def unlock_seed(self, seed_id: str) -> bool:
        """Record an unlock granted by the host (the shop decides the price)."""
        if self.catalog.seed(seed_id) is None or seed_id in self.state.unlocked_seeds:
            return False
        self.state.unlocked_seeds.append(seed_id)
        return True

    def visitor_arrives(self, visitor: str, now: float,
                        pos: tuple[int, int] | None = None) -> bool:
        """Apply a visitor's effect.  Butterflies need the cell they land on."""
        now = self._advance(now)
        if visitor == "butterfly":
            if pos is None:
                return False
            return len(self.garden.pollinate(*pos)) > 0
        if visitor == "bee":
            bonus = int(_tun("economy", "visitor_bonus_water", 2))
            self.state.water = min(water_max(), self.state.water + bonus)
            return True
        if visitor == "rabbit":
            return self.garden.ripen_random(now) is not None
        if visitor == "bluebird":
            self.state.double_harvest = True
            return True
        return False

    # ── Per-tick update ──────────────────────────────────────────────

    def tick(self, now: float, farmer_pos: tuple[int, int] | None = None) -> int:
        """One growth tick.  Returns the number of bus events delivered."""
        now = self._advance(now)
        self._regen_water(now)
        self.garden.tick(now, 1.0, farmer_pos)
        self.state.last_play_time = now
        return self.bus.drain()

    def _regen_water(self, now: float) -> None:
        cap = water_max()
        if self.state.water >= cap:
            self.state.last_water_regen = now
            return
        period = float(_tun("watering", "water_regen_time", 1500))
        gained = int((now - self.state.last_water_regen) // period)
        if gained <= 0:
            return
        self.state.water = min(cap, self.state.water + gained)
        self.state.last_water_regen += gained * period
        if self.state.water >= cap:
            self.state.last_water_regen = now

    # ── Event handling ───────────────────────────────────────────────

    def _on_event(self, event) -> None:
        handler = self._handlers.get(type(event).__name__)
        if handler is not None:
            handler(event, self.clock.now())
        self.bus.emit(event)

    def _record(self, plant, cat: str, msg: str, now: float, **details) -> None:
        self.log.record(plant.id, cat, msg, name=plant.name, t=now,
                        details=details or None)

    def _on_placed(self, ev, now):
        self._record(ev.plant, "growth", f"planted {ev.plant.seed_id}", now,
                     golden=ev.plant.is_golden)
        self.garden.check_wish_fulfillment(
            WishContext(subject_id=ev.plant.id, neighbor_just_planted=True), now)

    def _on_watered(self, ev, now):
        if not ev.free:
            self.state.water = max(0, self.state.water - 1)
        self._record(ev.plant, "growth", "watered", now, free=ev.free, night=ev.is_night)
        self.garden.check_wish_fulfillment(
            WishContext(subject_id=ev.plant.id, just_watered=True, is_night=ev.is_night), now)

    def _on_evolved(self, ev, now):
        if ev.is_terminal:
            self.state.total_plants_maxed += 1
        self._record(ev.plant, "growth", f"{ev.from_id} -> {ev.to_id}", now,
                     special=ev.is_special)

    def _on_discovered(self, ev, now):
        self.state.counters.discovered.add(ev.evolution_id)
        self._record(ev.plant, "growth", f"discovered {ev.evolution_id}", now)

    def _on_merged(self, ev, now):
        self.state.counters.total_merges += 1
        self._record(ev.target, "merge", f"absorbed {ev.source.name}", now)

    def _credit_harvest(self, plant, points: int) -> int:
        if self.state.double_harvest:
            points *= 2
            self.state.double_harvest = False
        self.state.garden_points += points
        counts = self.state.harvest_counts
        counts[plant.evolution_id] = counts.get(plant.evolution_id, 0) + 1
        spots = self.state.counters.spot_harvest_counts
        spots[plant.cell.key] = spots.get(plant.cell.key, 0) + 1
        back = int(_tun("economy", "harvest_water_return", 3))
        self.state.water = min(water_max(), self.state.water + back)
        return points

    def _on_harvested(self, ev, now):
        points = self._credit_harvest(ev.plant, ev.points)
        self._record(ev.plant, "harvest", f"harvested for {points}", now,
                     same_neighbors=ev.same_neighbors, elder=ev.elder_tier)

    def _on_retired(self, ev, now):
        points = self._credit_harvest(ev.plant, ev.points)
        self.hall_of_fame.add(retire_record(ev.plant, ev.elder_tier, ev.strongest_bond,
                                            now, self.rng))
        self._record(ev.plant, "harvest", f"retired for {points}", now, elder=ev.elder_tier)

    def _on_combo(self, ev, now):
        for plant in ev.plants:
            self._record(plant, "growth", "combo boost", now, boost=ev.boost)

    def _on_bond(self, ev, now):
        self._record(ev.plant, "bond", f"now {ev.level} with {ev.neighbor.name}", now)

    def _on_grief(self, ev, now):
        self._record(ev.plant, "grief", f"mourning {ev.mourning.name}", now,
                     duration=ev.duration)

    def _on_elder(self, ev, now):
        self._record(ev.plant, "elder", f"became {ev.tier}", now)

    def _on_wish_appeared(self, ev, now):
        self._record(ev.plant, "wish", ev.wish.text, now, type=ev.wish.type)

    def _on_wish_fulfilled(self, ev, now):
        self.state.garden_points += int(_tun("economy", "wish_points", 5))
        self.garden.bring_bond_forward(ev.plant, ev.bonus_ms, ev.wish.target_id)
        self._record(ev.plant, "wish", f"wish granted: {ev.wish.type}", now)

    def _on_visitor_touch(self, ev, now):
        self._record(ev.plant, "visitor", f"touched by {ev.visitor}", now)
        self.garden.check_wish_fulfillment(
            WishContext(subject_id=ev.plant.id, visitor_just_touched=ev.visitor), now)

    # ── Persistence ──────────────────────────────────────────────────

    def snapshot(self, now: float) -> dict:
        now = self._advance(now)
        self.state.last_save_time = now
        self.state.last_play_time = now
        return {
            "format_version": SAVE_FORMAT_VERSION,
            "garden": self.garden.snapshot(),
            "state": self.state.to_dict(),
            "hall_of_fame": self.hall_of_fame.to_list(),
        }

    def restore(self, data, now: float) -> bool:
        """Load a snapshot and catch up on the time since it was taken.

        A malformed or legacy snapshot leaves a fresh session and
        returns False.
        """
        try:
            if not isinstance(data, dict) or data.get("format_version") != SAVE_FORMAT_VERSION:
                raise ValueError("unsupported session snapshot")
            state = GardenState.from_dict(data["state"])
            hall = HallOfFame.from_list(data.get("hall_of_fame", []))
            garden_data = data["garden"]
        except (AttributeError, KeyError, TypeError, ValueError) as ex:
            print(f"[SAVE] discarding session snapshot: {ex}")
            self.reset(now)
            return False
        if not self.garden.restore(garden_data):
            self.reset(now)
            return False

        self.state = state
        self.hall_of_fame = hall
        now = self._advance(now)
        self.catch_up(now)
        self._regen_water(now)
        self.state.last_play_time = now
        return True

    def catch_up(self, now: float) -> CatchUpReport | None:
        """Offline growth since the last play time, if away long enough."""
        last = self.state.last_play_time
        if last is None or now - last < float(_tun("timing", "min_offline", 60_000)):
            return None
        report = self.garden.catch_up(
            now, float(_tun("timing", "offline_multiplier", 0.3)), since=last)
        print(f"[SIM] welcome back: {report.evolutions} evolutions while away")
        return report

    # ── Queries ──────────────────────────────────────────────────────

    def debug_info(self) -> dict:
        info = self.garden.debug_info()
        info.update({
            "water": self.state.water,
            "points": self.state.garden_points,
            "discovered": len(self.state.counters.discovered),
            "merges": self.state.counters.total_merges,
            "hall_of_fame": len(self.hall_of_fame),
            "pending_events": self.bus.pending_count(),
            "event_counts": self.bus.stats(),
        })
        return info
