"""simulation/growth.py — Growth accumulator.

Each tick a watered, non-terminal plant gains

    progress += elapsed / growth_time × rate

where ``rate`` multiplies together every modifier that applies to the
plant right now (tick multiplier, combo boost, golden, farmer, bond and
elder auras, grief, diminishing water returns).  When progress reaches
1.0 the garden resolves the next evolution node.
"""

from __future__ import annotations
import math
from typing import TYPE_CHECKING

from core.tuning import get as _tun, int_keyed as _tun_table
from simulation.bonds import total_bond_boost, is_grieving
from simulation.elders import total_elder_aura

if TYPE_CHECKING:
    from components.plant import Plant
    from simulation.catalog import EvolutionCatalog, EvolutionNode
    from simulation.garden import Garden


_WATER_TABLE = (1.0, 0.5, 0.25, 0.1)
_TIER_DEFAULTS = {0: 1.0, 1: 0.5, 2: 2.0, 3: 8.0, 4: 20.0, 5: 1.0, 6: 1.0}


def water_effectiveness(water_count: int) -> float:
    """Share of full growth the *water_count*-th watering provides.

    1st = 100%, 2nd = 50%, 3rd = 25%, 4th and later = 10%.
    """
    table = _tun("watering", "effectiveness", list(_WATER_TABLE)) or list(_WATER_TABLE)
    floor = float(_tun("watering", "effectiveness_floor", 0.1))
    idx = min(max(int(water_count), 1) - 1, len(table) - 1)
    return max(float(table[idx]), floor)


def tier_multiplier(tier: int) -> float:
    table = _tun_table("growth.tier_multipliers", _TIER_DEFAULTS)
    return table.get(tier, float(_tun("growth", "unknown_tier_multiplier", 1.0)))


def growth_time(catalog: EvolutionCatalog, node: EvolutionNode) -> float:
    """Milliseconds to finish the stage at *node*.

    Read from the node the stage grows into: the default edge, or the
    first branch when there is no default.  ``math.inf`` when nothing
    can follow (the plant never grows).
    """
    target_id = node.default_evolution
    if target_id is None and node.special_evolutions:
        target_id = node.special_evolutions[0].to
    target = catalog.get(target_id)
    if target is None:
        return math.inf
    return target.growth_time * tier_multiplier(target.tier)


def farmer_adjacent(plant: Plant, farmer_pos: tuple[int, int] | None) -> bool:
    if farmer_pos is None:
        return False
    fx, fy = farmer_pos
    return max(abs(plant.x - fx), abs(plant.y - fy)) <= 1


def growth_rate(garden: Garden, plant: Plant, now: float,
                multiplier: float = 1.0, farmer_near: bool = False) -> float:
    """Composite growth-rate multiplier for *plant* at *now*."""
    rate = 1.0 * multiplier
    if plant.growth_boost > 1:
        rate *= plant.growth_boost
    if plant.is_golden:
        rate *= float(_tun("economy", "golden_growth_multiplier", 1.5))
    if farmer_near:
        rate *= 1 + float(_tun("economy", "farmer_proximity_bonus", 0.5))
    rate *= 1 + total_bond_boost(plant)
    rate *= 1 + total_elder_aura(garden, plant, now)
    if is_grieving(plant, now):
        rate *= float(_tun("bonds", "grief_growth_penalty", 0.5))
    rate *= water_effectiveness(plant.water_count)
    return rate


def accumulate(garden: Garden, plant: Plant, node: EvolutionNode, now: float,
               multiplier: float = 1.0,
               farmer_pos: tuple[int, int] | None = None) -> bool:
    """Advance *plant* by the time since its last update.

    Returns True when the stage is complete (progress ≥ 1); the caller
    resets progress and resolves the next node.
    """
    stage_time = growth_time(garden.catalog, node)
    if math.isinf(stage_time):
        return False

    near = farmer_adjacent(plant, farmer_pos)
    if near:
        plant.evo.farmer_boost_ticks += 1

    if stage_time <= 0:
        plant.growth_progress = 1.0
        return True

    elapsed = max(0.0, now - plant.last_update_time)
    rate = growth_rate(garden, plant, now, multiplier, near)
    plant.growth_progress += elapsed / stage_time * rate
    return plant.growth_progress >= 1.0
