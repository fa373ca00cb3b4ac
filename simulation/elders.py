"""simulation/elders.py — Elder aging for plants on terminal nodes.

The elder check stamps ``maxed_at`` the first time it sees a plant on a
terminal node; from then on the plant climbs

    none → elder (10 min) → ancient (30 min) → legendary (60 min)

Elders radiate a growth aura to their eight neighbours and multiply
their own harvest value.
"""

from __future__ import annotations
from typing import TYPE_CHECKING

from core.constants import elder_rank
from core.events import ElderReached
from core.tuning import get as _tun

if TYPE_CHECKING:
    from components.plant import Plant
    from simulation.garden import Garden


def elder_tier_for(elapsed: float) -> str:
    if elapsed >= float(_tun("elders", "legendary_time", 3_600_000)):
        return "legendary"
    if elapsed >= float(_tun("elders", "ancient_time", 1_800_000)):
        return "ancient"
    if elapsed >= float(_tun("elders", "elder_time", 600_000)):
        return "elder"
    return "none"


def live_elder_tier(plant: Plant, now: float) -> str:
    """Tier from time spent at the terminal node, independent of announcements."""
    if plant.maxed_at is None:
        return "none"
    return elder_tier_for(now - plant.maxed_at)


def elder_aura_for(tier: str) -> float:
    if tier == "elder":
        return float(_tun("elders", "elder_aura", 0.10))
    if tier == "ancient":
        return float(_tun("elders", "ancient_aura", 0.15))
    if tier == "legendary":
        return float(_tun("elders", "legendary_aura", 0.20))
    return 0.0


def harvest_multiplier_for(tier: str) -> float:
    if tier == "elder":
        return float(_tun("elders", "elder_harvest", 1.5))
    if tier == "ancient":
        return float(_tun("elders", "ancient_harvest", 2.0))
    if tier == "legendary":
        return float(_tun("elders", "legendary_harvest", 3.0))
    return 1.0


def total_elder_aura(garden: Garden, plant: Plant, now: float) -> float:
    total = sum(elder_aura_for(live_elder_tier(n, now)) for n in garden.neighbors_of(plant))
    return min(total, float(_tun("elders", "max_aura", 0.5)))


def update_elders(garden: Garden, now: float) -> None:
    """Stamp newly-terminal plants and announce tier promotions."""
    for plant in garden.plants:
        if not garden.is_terminal(plant):
            continue
        if plant.maxed_at is None:
            plant.maxed_at = now
            continue
        tier = live_elder_tier(plant, now)
        if elder_rank(tier) > elder_rank(plant.elder_tier):
            plant.elder_tier = tier
            garden.emit(ElderReached(plant, tier))
