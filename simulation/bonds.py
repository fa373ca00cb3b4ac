"""simulation/bonds.py — Neighbour bonds and grief.

Plants in each other's 8-neighbourhood slowly bond:

    acquaintance → friend (5 min) → bestFriend (10 min) → soulmate (15 min)

The level is a pure function of how long the pair has been continuously
adjacent, so it only ever climbs while they stay put.  Moving apart (one
of them harvested, merged away ...) deletes the entry outright; coming
back starts over as acquaintances.

Each level adds a small growth bonus (capped in total), and losing a
bonded neighbour above acquaintance puts the survivor into grief, which
halves its growth for a level-dependent duration.
"""

from __future__ import annotations
from typing import TYPE_CHECKING

from components.plant import GriefState, NeighborBond, Plant
from core.constants import BOND_LEVELS, bond_rank
from core.events import BondFormed, PlantGrieving
from core.tuning import get as _tun

if TYPE_CHECKING:
    from simulation.garden import Garden


# ── Level tables ─────────────────────────────────────────────────────

def _thresholds() -> tuple[tuple[str, float], ...]:
    """(level, min adjacency ms), highest first."""
    return (
        ("soulmate", float(_tun("bonds", "soulmate_time", 900_000))),
        ("bestFriend", float(_tun("bonds", "best_friend_time", 600_000))),
        ("friend", float(_tun("bonds", "friend_time", 300_000))),
    )


def bond_level_for(elapsed: float) -> str:
    for level, threshold in _thresholds():
        if elapsed >= threshold:
            return level
    return "acquaintance"


def bond_boost_for(level: str) -> float:
    if level == "friend":
        return float(_tun("bonds", "friend_boost", 0.05))
    if level == "bestFriend":
        return float(_tun("bonds", "best_friend_boost", 0.10))
    if level == "soulmate":
        return float(_tun("bonds", "soulmate_boost", 0.15))
    return 0.0


def grief_duration_for(level: str) -> float:
    if level == "friend":
        return float(_tun("bonds", "friend_grief", 300_000))
    if level == "bestFriend":
        return float(_tun("bonds", "best_friend_grief", 900_000))
    if level == "soulmate":
        return float(_tun("bonds", "soulmate_grief", 1_800_000))
    return 0.0


def total_bond_boost(plant: Plant) -> float:
    """Sum of per-bond boosts, capped."""
    total = sum(bond_boost_for(b.level) for b in plant.neighbor_bonds)
    return min(total, float(_tun("bonds", "max_boost", 0.5)))


def strongest_bond(plant: Plant) -> str | None:
    """Highest bond level held, or ``None`` with no bonds at all."""
    best = None
    for bond in plant.neighbor_bonds:
        if best is None or bond_rank(bond.level) > bond_rank(best):
            best = bond.level
    return best


def is_grieving(plant: Plant, now: float) -> bool:
    return plant.grief_state is not None and not plant.grief_state.expired(now)


# ── Periodic check ───────────────────────────────────────────────────

def update_bonds(garden: Garden, now: float) -> None:
    """Prune, create and escalate bonds for every plant; expire grief.

    Emits one ``BondFormed`` per bond entry whose level strictly rose,
    so a pair that levels up together produces an event on each side.
    """
    for plant in garden.plants:
        neighbors = garden.neighbors_of(plant)
        adjacent = {n.id for n in neighbors}
        plant.neighbor_bonds = [b for b in plant.neighbor_bonds if b.neighbor_id in adjacent]

        for neighbor in neighbors:
            bond = plant.bond_with(neighbor.id)
            if bond is None:
                plant.neighbor_bonds.append(NeighborBond(neighbor.id, now))
                continue
            level = bond_level_for(now - bond.since)
            if bond_rank(level) > bond_rank(bond.level):
                bond.level = level
                garden.emit(BondFormed(plant, neighbor, level))

        if plant.grief_state is not None and plant.grief_state.expired(now):
            plant.grief_state = None


def trigger_grief(garden: Garden, removed: Plant, now: float) -> None:
    """Start grief on every survivor bonded to *removed* above acquaintance.

    A newer grief overwrites an older one.  The survivors' bond entries
    to *removed* are dropped immediately.
    """
    for plant in garden.plants:
        if plant is removed:
            continue
        bond = plant.bond_with(removed.id)
        if bond is None:
            continue
        plant.neighbor_bonds.remove(bond)
        if bond_rank(bond.level) <= bond_rank(BOND_LEVELS[0]):
            continue
        duration = grief_duration_for(bond.level)
        plant.grief_state = GriefState(removed.name, now, duration)
        garden.emit(PlantGrieving(plant, removed, duration))


def bring_bond_forward(garden: Garden, plant: Plant, bonus_ms: float,
                       target_id: str | None = None) -> None:
    """Credit *bonus_ms* of adjacency time to *plant*'s bonds.

    Only the bond with *target_id* when given, otherwise all of them.
    The partner's matching entry moves too so both sides stay in step;
    levels catch up on the next bond check.
    """
    if bonus_ms <= 0:
        return
    for bond in plant.neighbor_bonds:
        if target_id is not None and bond.neighbor_id != target_id:
            continue
        bond.since -= bonus_ms
        partner = garden.get_plant(bond.neighbor_id)
        mirror = partner.bond_with(plant.id) if partner else None
        if mirror is not None:
            mirror.since = min(mirror.since, bond.since)
