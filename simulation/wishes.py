"""simulation/wishes.py — Plant wishes: generation and fulfilment.

Every few seconds the garden gives each wish-less plant a chance to want
something.  The chance ramps from 0 at five minutes since its last wish
(or planting) up to 10% at fifteen minutes.  A wish type is then drawn,
weighted by priority, from those whose ``can_appear`` holds right now.

Fulfilment is push-style: after an action the caller describes what just
happened in a ``WishContext`` and every active wish is tested against it
plus the live neighbourhood.  Context-driven wishes only resolve for the
context's ``subject_id`` plant; state-driven ones (lonely, sunny_spot
...) resolve whenever their condition holds.
"""

from __future__ import annotations
import random
from dataclasses import dataclass
from typing import Callable, TYPE_CHECKING

from components.plant import Plant, Wish
from core.constants import bond_rank
from core.events import WishAppeared, WishFulfilled
from core.tuning import get as _tun

if TYPE_CHECKING:
    from simulation.garden import Garden


@dataclass
class WishContext:
    """What just happened, as far as wishes care."""
    subject_id: str | None = None          # plant the action touched
    just_watered: bool = False
    is_night: bool = False
    visitor_just_touched: str | None = None
    neighbor_just_planted: bool = False

    def is_about(self, plant: Plant) -> bool:
        return self.subject_id is not None and self.subject_id == plant.id


@dataclass(frozen=True)
class WishDefinition:
    type: str
    emoji: str
    priority: int
    template: str
    can_appear: Callable[[Garden, Plant, list[Plant], float], bool]
    is_fulfilled: Callable[[Garden, Plant, list[Plant], WishContext], bool]
    pick_target: Callable[[Garden, Plant, list[Plant]], Plant | None] = lambda g, p, n: None


# ── Target pickers ───────────────────────────────────────────────────

def _thirsty_friend(garden: Garden, plant: Plant, neighbors: list[Plant]) -> Plant | None:
    for n in neighbors:
        bond = plant.bond_with(n.id)
        if bond is not None and bond_rank(bond.level) >= bond_rank("friend") and not n.is_watered:
            return n
    return None


def _new_acquaintance(garden: Garden, plant: Plant, neighbors: list[Plant]) -> Plant | None:
    for n in neighbors:
        bond = plant.bond_with(n.id)
        if bond is not None and bond.level == "acquaintance":
            return n
    return None


def _target_watered(garden: Garden, plant: Plant, neighbors, ctx) -> bool:
    wish = plant.active_wish
    target = garden.get_plant(wish.target_id) if wish else None
    return target is not None and target.is_watered


def _target_befriended(garden: Garden, plant: Plant, neighbors, ctx) -> bool:
    wish = plant.active_wish
    if wish is None or wish.target_id is None:
        return False
    bond = plant.bond_with(wish.target_id)
    return bond is not None and bond_rank(bond.level) > bond_rank("acquaintance")


# ── Catalogue ────────────────────────────────────────────────────────

WISH_DEFINITIONS: tuple[WishDefinition, ...] = (
    WishDefinition(
        "lonely", "🥺", 10, "{name} feels lonely and wishes for a neighbour",
        can_appear=lambda g, p, n, now: len(n) == 0,
        is_fulfilled=lambda g, p, n, ctx: len(n) > 0,
    ),
    WishDefinition(
        "want_visitor", "🦋", 5, "{name} hopes a visitor will drop by",
        can_appear=lambda g, p, n, now: not p.evo.visitor_touches,
        is_fulfilled=lambda g, p, n, ctx: ctx.is_about(p) and ctx.visitor_just_touched is not None,
    ),
    WishDefinition(
        "night_water", "🌙", 8, "{name} would love a drink under the stars",
        can_appear=lambda g, p, n, now: g.is_night(now),
        is_fulfilled=lambda g, p, n, ctx: ctx.is_about(p) and ctx.just_watered and ctx.is_night,
    ),
    WishDefinition(
        "help_friend", "💧", 12, "{name} wants you to water {target}",
        can_appear=lambda g, p, n, now: _thirsty_friend(g, p, n) is not None,
        is_fulfilled=_target_watered,
        pick_target=_thirsty_friend,
    ),
    WishDefinition(
        "grow_tall", "📏", 4, "{name} dreams of growing tall",
        can_appear=lambda g, p, n, now: not g.is_terminal(p) and p.growth_progress < 0.3,
        is_fulfilled=lambda g, p, n, ctx: g.is_terminal(p) or p.growth_progress >= 0.8,
    ),
    WishDefinition(
        "make_friend", "🤝", 7, "{name} wants to get to know {target}",
        can_appear=lambda g, p, n, now: _new_acquaintance(g, p, n) is not None,
        is_fulfilled=_target_befriended,
        pick_target=_new_acquaintance,
    ),
    WishDefinition(
        "sunny_spot", "☀️", 3, "{name} wishes the garden were livelier",
        can_appear=lambda g, p, n, now: 1 <= len(n) <= 3,
        is_fulfilled=lambda g, p, n, ctx: len(n) >= 4,
    ),
)

_BY_TYPE = {d.type: d for d in WISH_DEFINITIONS}


def definition(wish_type: str) -> WishDefinition | None:
    return _BY_TYPE.get(wish_type)


def fulfillment_bonus(wish_type: str) -> float:
    """Bond-time reward (ms) granted when a wish of this type comes true."""
    if wish_type == "help_friend":
        return float(_tun("wishes", "help_friend_bonus", 120_000))
    if wish_type == "make_friend":
        return float(_tun("wishes", "make_friend_bonus", 180_000))
    if wish_type == "lonely":
        return float(_tun("wishes", "lonely_bonus", 60_000))
    return float(_tun("wishes", "default_bonus", 30_000))


# ── Generation ───────────────────────────────────────────────────────

def wish_chance(plant: Plant, now: float) -> float:
    """Probability of a new wish on this check (0 while one is active)."""
    if plant.active_wish is not None:
        return 0.0
    low = float(_tun("wishes", "min_interval", 300_000))
    high = float(_tun("wishes", "max_interval", 900_000))
    last = plant.last_wish_time if plant.last_wish_time is not None else plant.evo.planted_time
    gap = now - last
    if gap < low:
        return 0.0
    ramp = min((gap - low) / (high - low), 1.0) if high > low else 1.0
    return ramp * float(_tun("wishes", "max_chance", 0.1))


def should_generate(plant: Plant, now: float, rng: random.Random) -> bool:
    chance = wish_chance(plant, now)
    return chance > 0 and rng.random() < chance


def pick_weighted(candidates: list[WishDefinition], rng: random.Random) -> WishDefinition | None:
    if not candidates:
        return None
    roll = rng.random() * sum(d.priority for d in candidates)
    for d in candidates:
        roll -= d.priority
        if roll <= 0:
            return d
    return candidates[-1]


def make_wish(garden: Garden, plant: Plant, neighbors: list[Plant], now: float,
              rng: random.Random) -> Wish | None:
    """Draw and materialise a wish for *plant*, or ``None`` if nothing fits."""
    candidates = [d for d in WISH_DEFINITIONS if d.can_appear(garden, plant, neighbors, now)]
    chosen = pick_weighted(candidates, rng)
    if chosen is None:
        return None
    target = chosen.pick_target(garden, plant, neighbors)
    text = chosen.template.format(name=plant.name or "This plant",
                                  target=target.name if target else "a friend")
    duration = float(_tun("wishes", "duration", 600_000))
    return Wish(chosen.type, text, chosen.emoji, now, now + duration,
                target.id if target else None)


def update_wishes(garden: Garden, now: float, rng: random.Random) -> None:
    """Expire stale wishes, then roll new ones for eligible plants."""
    for plant in garden.plants:
        wish = plant.active_wish
        if wish is not None:
            if now >= wish.expires_at:
                plant.active_wish = None
                plant.last_wish_time = now
            continue
        if not should_generate(plant, now, rng):
            continue
        wish = make_wish(garden, plant, garden.neighbors_of(plant), now, rng)
        if wish is None:
            continue
        plant.active_wish = wish
        garden.emit(WishAppeared(plant, wish))


# ── Fulfilment ───────────────────────────────────────────────────────

def check_fulfillment(garden: Garden, ctx: WishContext, now: float) -> list[tuple[Plant, Wish]]:
    """Resolve every active wish against *ctx*; returns what came true."""
    granted = []
    for plant in garden.plants:
        wish = plant.active_wish
        if wish is None or now >= wish.expires_at:
            continue
        d = definition(wish.type)
        if d is None or not d.is_fulfilled(garden, plant, garden.neighbors_of(plant), ctx):
            continue
        plant.active_wish = None
        plant.last_wish_time = now
        plant.wishes_granted += 1
        granted.append((plant, wish))
        garden.emit(WishFulfilled(plant, wish, fulfillment_bonus(wish.type)))
    return granted
