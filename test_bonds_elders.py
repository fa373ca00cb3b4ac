"""
Bond & elder tests — neighbour relationships, grief, and terminal-plant aging.

Tests:
  1. Friend after six minutes; harvesting one friend grieves the other
  2. Soulmate grief lasts 30 minutes at exactly half growth
  3. Levels only climb; separation deletes, reunion starts over
  4. Bond boost cap and wish bonus time
  5. Elder tiers: stamping, announcements, aura, legendary after 65 minutes
  6. Harvest multipliers, retire rules, rounding

Run: python test_bonds_elders.py
"""

from __future__ import annotations
import math

from core.tuning import load as _load_tuning
_load_tuning()

from garden_testkit import check, run_sections, make_garden, put, MINUTE
from components.plant import NeighborBond
from simulation.bonds import bring_bond_forward, strongest_bond, total_bond_boost
from simulation.elders import total_elder_aura
from simulation.garden import harvest_points
from simulation.growth import growth_rate


def _close(a: float, b: float) -> bool:
    return math.isclose(a, b, rel_tol=1e-9, abs_tol=1e-12)


# ═══════════════════════════════════════════════════════════════════
#  1. Friend & grief
# ═══════════════════════════════════════════════════════════════════

def test_friends_then_grief():
    print("\n=== FRIEND & GRIEF ===")
    garden, rec = make_garden()
    a = put(garden, 1, 1)
    b = put(garden, 2, 1)

    garden.update_neighbor_bonds(0)
    check(a.bond_with(b.id).level == "acquaintance", "A meets B")
    check(b.bond_with(a.id).level == "acquaintance", "B meets A")
    check(not rec.of("BondFormed"), "first meeting is not announced")

    garden.update_neighbor_bonds(6 * MINUTE)
    check(a.bond_with(b.id).level == "friend" and b.bond_with(a.id).level == "friend",
          "six minutes side by side makes friends")
    formed = rec.of("BondFormed")
    check(len(formed) == 2 and {e.plant.id for e in formed} == {a.id, b.id},
          "one BondFormed per side")
    check(_close(total_bond_boost(a), 0.05), "friend bond adds 5%")

    garden.water(1, 1, now=6 * MINUTE)
    check(_close(growth_rate(garden, a, 6 * MINUTE), 1.05), "bond boost reaches growth")

    a.evolution_id = "sprout_bloom"
    rec.clear()
    points = garden.harvest(1, 1, now=6 * MINUTE)
    check(points == 13, "10 pts × 1.25 for one same-seed neighbour, rounded half up", str(points))
    check(b.grief_state is not None, "B is grieving")
    check(b.grief_state.mourning_name == a.name, "B mourns A by name")
    check(b.grief_state.since == 6 * MINUTE and b.grief_state.duration == 300_000,
          "friend grief lasts five minutes")
    check(b.neighbor_bonds == [], "B's bond to A is gone")
    check(rec.names() == ["PlantGrieving", "PlantHarvested"], "grief precedes harvest",
          str(rec.names()))

    garden.water(2, 1, now=6 * MINUTE)
    check(_close(growth_rate(garden, b, 6 * MINUTE + 1), 0.5), "grief halves growth")
    garden.update_neighbor_bonds(11 * MINUTE)
    check(b.grief_state is None, "bond check clears expired grief")


# ═══════════════════════════════════════════════════════════════════
#  2. Soulmates
# ═══════════════════════════════════════════════════════════════════

def test_soulmate_grief():
    print("\n=== SOULMATE GRIEF ===")
    garden, rec = make_garden()
    a = put(garden, 1, 1, evolution_id="sprout_bloom")
    b = put(garden, 2, 2)
    garden.update_neighbor_bonds(0)
    garden.update_neighbor_bonds(15 * MINUTE)
    check(a.bond_with(b.id).level == "soulmate", "fifteen minutes makes soulmates")
    check([e.level for e in rec.of("BondFormed")] == ["soulmate", "soulmate"],
          "a skipped level is announced as the level reached")
    check(garden.should_confirm_harvest(a, 15 * MINUTE) == "soulmate",
          "harvesting a soulmate asks first")
    check(strongest_bond(a) == "soulmate", "strongest bond is soulmate")

    garden.harvest(1, 1, now=15 * MINUTE)
    check(b.grief_state.duration == 1_800_000, "soulmate grief lasts 30 minutes")

    garden.water(2, 2, now=15 * MINUTE)
    t = 20 * MINUTE
    grieving = growth_rate(garden, b, t)
    grief, b.grief_state = b.grief_state, None
    normal = growth_rate(garden, b, t)
    b.grief_state = grief
    check(_close(grieving, normal * 0.5), "growth is exactly halved", f"{grieving} vs {normal}")
    check(_close(growth_rate(garden, b, 45 * MINUTE), normal), "grief is over at 30 minutes")


# ═══════════════════════════════════════════════════════════════════
#  3. Monotonic levels & separation
# ═══════════════════════════════════════════════════════════════════

def test_levels_climb_and_reset_on_separation():
    print("\n=== LEVELS ===")
    garden, _ = make_garden()
    a = put(garden, 1, 1)
    b = put(garden, 1, 2, evolution_id="sprout_bloom")

    levels = []
    for minute in (0, 5, 10, 15, 20):
        garden.update_neighbor_bonds(minute * MINUTE)
        levels.append(a.bond_with(b.id).level)
    check(levels == ["acquaintance", "friend", "bestFriend", "soulmate", "soulmate"],
          "acquaintance → friend → bestFriend → soulmate", str(levels))

    garden.harvest(1, 2, now=20 * MINUTE)
    check(a.bond_with(b.id) is None, "separation deletes the bond")

    c = put(garden, 1, 2, now=21 * MINUTE)
    garden.update_neighbor_bonds(21 * MINUTE)
    bond = a.bond_with(c.id)
    check(bond is not None and bond.level == "acquaintance" and bond.since == 21 * MINUTE,
          "a new neighbour starts from scratch")

    check(not garden.update_neighbor_bonds(21 * MINUTE + 1000), "bond check is rate-limited")


# ═══════════════════════════════════════════════════════════════════
#  4. Caps & bonus time
# ═══════════════════════════════════════════════════════════════════

def test_bond_cap_and_bonus():
    print("\n=== BOND CAP ===")
    garden, _ = make_garden()
    hub = put(garden, 2, 2)
    hub.neighbor_bonds = [NeighborBond(f"ghost_{i}", 0, "soulmate") for i in range(8)]
    check(_close(total_bond_boost(hub), 0.5), "eight soulmates cap at +50%")

    a = put(garden, 0, 0)
    b = put(garden, 1, 0)
    garden.update_neighbor_bonds(0)
    bring_bond_forward(garden, a, 120_000, b.id)
    check(a.bond_with(b.id).since == -120_000, "bonus moves the bond start back")
    check(b.bond_with(a.id).since == -120_000, "partner side moves too")
    garden.update_neighbor_bonds(3 * MINUTE)
    check(a.bond_with(b.id).level == "friend", "three minutes plus a two-minute bonus is a friend")


# ═══════════════════════════════════════════════════════════════════
#  5. Elders
# ═══════════════════════════════════════════════════════════════════

def test_legendary_after_65_minutes():
    print("\n=== LEGENDARY ===")
    garden, rec = make_garden()
    elder = put(garden, 2, 2, evolution_id="sprout_bloom")
    young = put(garden, 2, 3)

    garden.update_elder_status(0)
    check(elder.maxed_at == 0 and elder.elder_tier == "none", "first sighting stamps maxed_at")
    check(young.maxed_at is None, "growing plants are not stamped")
    check(not rec.of("ElderReached"), "no instant elder")

    garden.update_elder_status(65 * MINUTE)
    reached = rec.of("ElderReached")
    check(len(reached) == 1 and reached[0].tier == "legendary", "legendary after 65 minutes")
    check(elder.elder_tier == "legendary", "recorded tier updated")
    check(garden.elder_tier_of(elder, 65 * MINUTE) == "legendary", "live tier agrees")

    check(_close(total_elder_aura(garden, young, 65 * MINUTE), 0.20), "legendary aura is +20%")
    garden.water(2, 3, now=65 * MINUTE)
    check(_close(growth_rate(garden, young, 65 * MINUTE), 1.2), "aura reaches growth")


def test_elder_promotions_announced_once():
    print("\n=== ELDER PROMOTIONS ===")
    garden, rec = make_garden()
    plant = put(garden, 0, 0, evolution_id="sprout_bloom")
    for minute in (0, 5, 10, 30, 45, 60, 90):
        garden.update_elder_status(minute * MINUTE)
    tiers = [e.tier for e in rec.of("ElderReached")]
    check(tiers == ["elder", "ancient", "legendary"], "each tier announced once", str(tiers))
    check(garden.should_confirm_harvest(plant, 90 * MINUTE) == "legendary",
          "legendary harvest asks first")
    check(not garden.update_elder_status(90 * MINUTE + 1000), "elder check is rate-limited")


def test_aura_cap():
    print("\n=== AURA CAP ===")
    garden, _ = make_garden()
    center = put(garden, 2, 2)
    for x, y in ((1, 1), (2, 1), (3, 1), (1, 2), (3, 2), (1, 3), (2, 3), (3, 3)):
        put(garden, x, y, evolution_id="sprout_bloom").maxed_at = 0
    check(_close(total_elder_aura(garden, center, 65 * MINUTE), 0.5),
          "eight legendary neighbours cap at +50%")


# ═══════════════════════════════════════════════════════════════════
#  6. Harvest value
# ═══════════════════════════════════════════════════════════════════

def test_harvest_multipliers():
    print("\n=== HARVEST VALUE ===")
    check(harvest_points(10, False, 3, "none", False) == 18, "17.5 rounds up to 18")
    check(harvest_points(5, False, 1, "elder", False) == 9, "rounded after each factor")
    check(harvest_points(10, True, 2, "ancient", False) == 60, "golden × neighbours × ancient")
    check(harvest_points(10, False, 0, "legendary", True) == 45, "legendary retire")

    garden, rec = make_garden()
    lone = put(garden, 0, 0, evolution_id="sprout_bloom")
    lone.maxed_at = 0
    check(garden.harvest(0, 0, now=15 * MINUTE, retire=True) is None,
          "an elder cannot retire yet")
    check(garden.plant_at(0, 0) is lone, "rejected retire leaves the plant")
    check(garden.should_confirm_harvest(lone, 15 * MINUTE) is None, "plain elder needs no prompt")
    check(garden.harvest(0, 0, now=15 * MINUTE) == 15, "elder harvest ×1.5")

    legend = put(garden, 4, 4, evolution_id="sprout_bloom")
    legend.maxed_at = 0
    check(garden.harvest(4, 4, now=65 * MINUTE, retire=True) == 45, "legendary retire ×3 ×1.5")
    retired = rec.of("PlantRetired")[-1]
    check(retired.elder_tier == "legendary" and retired.points == 45, "PlantRetired carries tier")

    young = put(garden, 2, 2)
    check(garden.harvest(2, 2, now=65 * MINUTE) is None, "non-terminal plants cannot be harvested")
    check(garden.plant_at(2, 2) is young, "rejected harvest changes nothing")


if __name__ == "__main__":
    run_sections("Bond & Elder Tests", [
        ("Friend & grief", test_friends_then_grief),
        ("Soulmate grief", test_soulmate_grief),
        ("Levels", test_levels_climb_and_reset_on_separation),
        ("Bond cap", test_bond_cap_and_bonus),
        ("Legendary", test_legendary_after_65_minutes),
        ("Elder promotions", test_elder_promotions_announced_once),
        ("Aura cap", test_aura_cap),
        ("Harvest value", test_harvest_multipliers),
    ])
