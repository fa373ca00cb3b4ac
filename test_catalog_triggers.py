"""
Catalog & trigger tests — the evolution graph and its conditional branches.

Tests:
  1. Shipped catalog loads: six seeds, every edge resolves, tiers climb
  2. Malformed catalog entries are skipped, not fatal
  3. Stage times come from the target node × tier multiplier
  4. parse_trigger accepts every kind and rejects malformed tables
  5. check_trigger for every kind against live neighbourhoods
  6. determine_next_evolution: declared order, default fallback, missing targets

Run: python test_catalog_triggers.py
"""

from __future__ import annotations
import math
import random
import tempfile
from pathlib import Path

from core.tuning import load as _load_tuning
_load_tuning()

from garden_testkit import (
    check, run_sections, make_catalog, make_garden, put, Rigged, MINUTE,
)
from components.plant import Cell, Plant
from simulation.catalog import Branch, EvolutionCatalog, EvolutionNode, SeedType
from simulation.growth import growth_time
from simulation.triggers import (
    AllNeighborsMax, Age, ComboWater, FarmerBoosted, Golden, HarvestSpot,
    MergeCount, Month, NeighborCount, NeighborDiverse, NeighborEvolution,
    NeighborSame, NightWater, RandomChance, Season, TriggerContext, VisitorTouch,
    check_trigger, determine_next_evolution, is_night_time, parse_trigger,
    season_for_month,
)


def _bare(seed_id="sprout", evo="sprout_shoot", x=0, y=0, **kw) -> Plant:
    return Plant(id=f"{evo}@{x},{y}", seed_id=seed_id, evolution_id=evo,
                 cell=Cell(x, y), **kw)


# ═══════════════════════════════════════════════════════════════════
#  1. Shipped catalog
# ═══════════════════════════════════════════════════════════════════

def test_shipped_catalog():
    print("\n=== SHIPPED CATALOG ===")
    catalog = EvolutionCatalog.from_toml()
    seeds = set(catalog.seeds)
    check(seeds == {"sprout", "acorn", "bean", "bulb", "spore", "cactus"},
          "six seed lineages load", str(sorted(seeds)))

    for seed in catalog.seeds.values():
        check(seed.start_evolution in catalog, f"{seed.id} start node exists")

    dangling = []
    for node in catalog.nodes.values():
        targets = [node.default_evolution] if node.default_evolution else []
        targets += [b.to for b in node.special_evolutions]
        dangling += [(node.id, t) for t in targets if t not in catalog]
    check(not dangling, "every edge resolves", str(dangling))

    regress = [n.id for n in catalog.nodes.values()
               if n.default_evolution and catalog.get(n.default_evolution).tier <= n.tier]
    check(not regress, "default edges climb in tier", str(regress))

    # Following default edges from every start reaches a harvestable node.
    for seed in catalog.seeds.values():
        node = catalog.get(seed.start_evolution)
        for _ in range(len(catalog)):
            if node.default_evolution is None:
                break
            node = catalog.get(node.default_evolution)
        check(node.is_terminal, f"{seed.id} default path ends terminal", node.id)

    check(catalog.is_terminal("sprout_bloom"), "sprout_bloom is terminal")
    check(not catalog.is_terminal("sprout_shoot"), "sprout_shoot is not terminal")
    check(not catalog.is_terminal("no_such_node"), "unknown id is never terminal")

    shoot = catalog.get("sprout_shoot")
    check(isinstance(shoot.special_evolutions[0].trigger, Golden),
          "sprout_shoot carries its golden branch")


# ═══════════════════════════════════════════════════════════════════
#  2. Malformed entries
# ═══════════════════════════════════════════════════════════════════

_BROKEN_TOML = """
[seeds.good]
name = "Good"
start = "good_seed"

[seeds.orphan]
name = "Orphan"
start = "nowhere"

[seeds.nostart]
name = "No start"

[evolutions.good_seed]
seed = "good"
tier = 0
default = "good_bloom"

[[evolutions.good_seed.special]]
to = "good_bloom"
trigger = { type = "night_water" }

[[evolutions.good_seed.special]]
to = "good_bloom"
trigger = { type = "night_water", count = 2 }

[[evolutions.good_seed.special]]
to = "good_bloom"
trigger = { type = "teleport" }

[evolutions.good_bloom]
seed = "good"
tier = 1
growth_time = 1000
points = 5

[evolutions.no_seed]
tier = 1

[evolutions.negative]
seed = "good"
tier = 1
growth_time = -5

[evolutions.bad_tier]
seed = "good"
tier = "high"
"""


def test_malformed_entries_skipped():
    print("\n=== MALFORMED ENTRIES ===")
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "broken.toml"
        path.write_text(_BROKEN_TOML, encoding="utf-8")
        catalog = EvolutionCatalog.from_toml(path)

    check(set(catalog.nodes) == {"good_seed", "good_bloom"},
          "only well-formed nodes survive", str(sorted(catalog.nodes)))
    check(set(catalog.seeds) == {"good"},
          "seeds with missing or unknown starts are dropped", str(sorted(catalog.seeds)))
    branches = catalog.get("good_seed").special_evolutions
    check(len(branches) == 1 and branches[0].trigger == NightWater(2),
          "branches with bad triggers are dropped", str(branches))

    with tempfile.TemporaryDirectory() as tmp:
        missing = EvolutionCatalog.from_toml(Path(tmp) / "absent.toml")
    check(len(missing) == 0 and len(missing.seeds) == 0, "missing file gives an empty catalog")


# ═══════════════════════════════════════════════════════════════════
#  3. Stage times
# ═══════════════════════════════════════════════════════════════════

def test_stage_times():
    print("\n=== STAGE TIMES ===")
    catalog = make_catalog()
    check(growth_time(catalog, catalog.get("sprout_seed")) == 1000,
          "seed → tier 1 (×0.5)")
    check(growth_time(catalog, catalog.get("sprout_shoot")) == 2000,
          "tier 1 → tier 2 (×2)")
    check(growth_time(catalog, catalog.get("sprout_bud")) == 8000,
          "tier 2 → tier 3 (×8)")
    check(math.isinf(growth_time(catalog, catalog.get("sprout_bloom"))),
          "terminal node never grows")

    branch_only = EvolutionCatalog([
        EvolutionNode("x_seed", "x", 0, special_evolutions=(Branch("x_big", Golden()),)),
        EvolutionNode("x_big", "x", 1, growth_time=4000, points=1),
        EvolutionNode("x_stuck", "x", 1, default_evolution="x_missing"),
    ])
    check(growth_time(branch_only, branch_only.get("x_seed")) == 2000,
          "no default: first branch target sets the time")
    check(math.isinf(growth_time(branch_only, branch_only.get("x_stuck"))),
          "missing target: infinite stage")


# ═══════════════════════════════════════════════════════════════════
#  4. Parsing
# ═══════════════════════════════════════════════════════════════════

def test_parse_trigger():
    print("\n=== PARSE TRIGGER ===")
    cases = [
        ({"type": "golden"}, Golden()),
        ({"type": "night_water", "count": 2}, NightWater(2)),
        ({"type": "combo_water", "count": 1}, ComboWater(1)),
        ({"type": "visitor_touch"}, VisitorTouch(None)),
        ({"type": "visitor_touch", "visitor": "rabbit"}, VisitorTouch("rabbit")),
        ({"type": "farmer_boosted", "count": 20}, FarmerBoosted(20)),
        ({"type": "neighbor_count", "min": 3}, NeighborCount(3)),
        ({"type": "neighbor_same", "min": 2}, NeighborSame(2)),
        ({"type": "neighbor_diverse", "min": 3}, NeighborDiverse(3)),
        ({"type": "age", "hours": 2}, Age(2.0)),
        ({"type": "harvest_spot", "count": 2}, HarvestSpot(2)),
        ({"type": "merge_count", "count": 3}, MergeCount(3)),
        ({"type": "season", "season": "spring"}, Season("spring")),
        ({"type": "month", "month": 2}, Month(2)),
        ({"type": "neighbor_evolution", "evolution_id": "sprout_sunflower"},
         NeighborEvolution("sprout_sunflower")),
        ({"type": "all_neighbors_max"}, AllNeighborsMax()),
        ({"type": "random", "chance": 0.05}, RandomChance(0.05)),
    ]
    for raw, expected in cases:
        got = parse_trigger(raw)
        check(got == expected, f"parses {raw['type']}", repr(got))

    bad = [
        None, "golden", {}, {"type": "teleport"},
        {"type": "night_water"},
        {"type": "night_water", "count": -1},
        {"type": "night_water", "count": 1.5},
        {"type": "night_water", "count": True},
        {"type": "visitor_touch", "visitor": "dragon"},
        {"type": "season", "season": "monsoon"},
        {"type": "month", "month": 13},
        {"type": "random", "chance": 2},
        {"type": "age", "hours": -1},
        {"type": "neighbor_evolution", "evolution_id": ""},
    ]
    for raw in bad:
        check(parse_trigger(raw) is None, f"rejects {raw!r}")


# ═══════════════════════════════════════════════════════════════════
#  5. Evaluation
# ═══════════════════════════════════════════════════════════════════

def test_check_trigger_counters():
    print("\n=== CHECK TRIGGER: COUNTERS ===")
    plant = _bare()
    ctx = TriggerContext(now=0)
    check(not check_trigger(None, plant, ctx), "absent trigger is False")

    check(not check_trigger(Golden(), plant, ctx), "golden: plain plant")
    plant.is_golden = True
    check(check_trigger(Golden(), plant, ctx), "golden: golden plant")

    plant.evo.night_water_count = 1
    check(not check_trigger(NightWater(2), plant, ctx), "night_water below threshold")
    plant.evo.night_water_count = 2
    check(check_trigger(NightWater(2), plant, ctx), "night_water at threshold")

    plant.evo.combo_water_count = 1
    check(check_trigger(ComboWater(1), plant, ctx), "combo_water")

    check(not check_trigger(VisitorTouch(), plant, ctx), "visitor_touch: none yet")
    plant.evo.visitor_touches.append("bee")
    check(check_trigger(VisitorTouch(), plant, ctx), "visitor_touch: any visitor")
    check(not check_trigger(VisitorTouch("rabbit"), plant, ctx), "visitor_touch: wrong kind")
    plant.evo.visitor_touches.append("rabbit")
    check(check_trigger(VisitorTouch("rabbit"), plant, ctx), "visitor_touch: specific kind")

    plant.evo.farmer_boost_ticks = 19
    check(not check_trigger(FarmerBoosted(20), plant, ctx), "farmer_boosted below")
    plant.evo.farmer_boost_ticks = 20
    check(check_trigger(FarmerBoosted(20), plant, ctx), "farmer_boosted at")

    plant.evo.planted_time = 0
    check(not check_trigger(Age(2), plant, TriggerContext(now=119 * MINUTE)), "age under 2h")
    check(check_trigger(Age(2), plant, TriggerContext(now=120 * MINUTE)), "age at 2h")

    check(check_trigger(HarvestSpot(2), plant, TriggerContext(now=0, spot_harvest_count=2)),
          "harvest_spot from live counter")
    plant.evo.spot_harvest_count = 2
    check(check_trigger(HarvestSpot(2), plant, ctx), "harvest_spot stamped at placement")

    check(not check_trigger(MergeCount(3), plant, TriggerContext(now=0, total_merges=2)),
          "merge_count below")
    check(check_trigger(MergeCount(3), plant, TriggerContext(now=0, total_merges=3)),
          "merge_count at")

    check(check_trigger(Season("spring"), plant, TriggerContext(now=0, month=4)), "season spring")
    check(not check_trigger(Season("summer"), plant, TriggerContext(now=0, month=4)),
          "season mismatch")
    check(check_trigger(Month(2), plant, TriggerContext(now=0, month=2)), "month match")

    check(check_trigger(RandomChance(0.05), plant, TriggerContext(now=0, rng=Rigged(0.01))),
          "random hit")
    check(not check_trigger(RandomChance(0.05), plant, TriggerContext(now=0, rng=Rigged(0.5))),
          "random miss")


def test_check_trigger_neighbors():
    print("\n=== CHECK TRIGGER: NEIGHBOURHOOD ===")
    garden, _ = make_garden()
    center = put(garden, 2, 2, evolution_id="sprout_shoot")
    a = put(garden, 1, 1, evolution_id="sprout_bloom")
    b = put(garden, 2, 1, evolution_id="sprout_bloom")
    c = put(garden, 3, 1, seed_id="bean", evolution_id="bean_stalk")

    ctx = garden.trigger_context(center, 0)
    check(check_trigger(NeighborCount(3), center, ctx), "neighbor_count 3")
    check(not check_trigger(NeighborCount(4), center, ctx), "neighbor_count 4 fails")
    check(check_trigger(NeighborSame(2), center, ctx), "neighbor_same counts the lineage")
    check(not check_trigger(NeighborSame(3), center, ctx), "bean is not the same lineage")
    check(check_trigger(NeighborDiverse(2), center, ctx), "two distinct evolutions around")
    check(not check_trigger(NeighborDiverse(3), center, ctx), "not three distinct")
    check(check_trigger(NeighborEvolution("bean_stalk"), center, ctx), "neighbor_evolution hit")
    check(not check_trigger(NeighborEvolution("sprout_gold"), center, ctx),
          "neighbor_evolution miss")
    check(not check_trigger(AllNeighborsMax(), center, ctx), "all_neighbors_max needs eight")

    for x, y in ((1, 2), (3, 2), (1, 3), (2, 3), (3, 3)):
        put(garden, x, y, evolution_id="sprout_bloom")
    ctx = garden.trigger_context(center, 0)
    check(check_trigger(AllNeighborsMax(), center, ctx), "all_neighbors_max: ring of terminals")

    garden.plant_at(3, 3).evolution_id = "sprout_bud"
    ctx = garden.trigger_context(center, 0)
    check(not check_trigger(AllNeighborsMax(), center, ctx), "one growing neighbour breaks it")

    corner = put(garden, 0, 0, evolution_id="sprout_shoot")
    ctx = garden.trigger_context(corner, 0)
    check(ctx.neighbor_cells == 3, "corner has three in-bounds cells")
    check(not check_trigger(AllNeighborsMax(), corner, ctx),
          "all_neighbors_max fails at the edge")
    del a, b, c


def test_time_helpers():
    print("\n=== TIME HELPERS ===")
    check([season_for_month(m) for m in (12, 1, 2)] == ["winter"] * 3, "winter months")
    check([season_for_month(m) for m in (3, 4, 5)] == ["spring"] * 3, "spring months")
    check([season_for_month(m) for m in (6, 7, 8)] == ["summer"] * 3, "summer months")
    check([season_for_month(m) for m in (9, 10, 11)] == ["fall"] * 3, "fall months")
    check(is_night_time(20) and is_night_time(23) and is_night_time(0) and is_night_time(5),
          "20:00 to 05:59 is night")
    check(not is_night_time(6) and not is_night_time(12) and not is_night_time(19),
          "06:00 to 19:59 is day")


# ═══════════════════════════════════════════════════════════════════
#  6. Next-node selection
# ═══════════════════════════════════════════════════════════════════

def test_determine_next_evolution():
    print("\n=== NEXT EVOLUTION ===")
    catalog = EvolutionCatalog([
        EvolutionNode("n_seed", "n", 0, default_evolution="n_plain", special_evolutions=(
            Branch("n_ghost", Golden()),
            Branch("n_night", NightWater(1)),
            Branch("n_gold", Golden()),
        )),
        EvolutionNode("n_plain", "n", 1, growth_time=1, points=1),
        EvolutionNode("n_night", "n", 1, growth_time=1, points=1),
        EvolutionNode("n_gold", "n", 1, growth_time=1, points=1),
    ], [SeedType("n", "N", start_evolution="n_seed")])
    node = catalog.get("n_seed")
    ctx = TriggerContext(now=0)

    plant = _bare("n", "n_seed")
    check(determine_next_evolution(node, plant, ctx, catalog) == ("n_plain", False),
          "no trigger holds: default edge")

    plant.is_golden = True
    check(determine_next_evolution(node, plant, ctx, catalog) == ("n_gold", True),
          "branch to a missing node is skipped")

    plant.evo.night_water_count = 1
    check(determine_next_evolution(node, plant, ctx, catalog) == ("n_night", True),
          "first satisfied branch in declared order wins")

    lonely = EvolutionNode("n_end", "n", 2, default_evolution="n_nowhere")
    check(determine_next_evolution(lonely, plant, ctx, catalog) == (None, False),
          "nothing reachable: no transition")

    # Rolling a random branch draws from the context RNG only.
    rnd = EvolutionCatalog([
        EvolutionNode("r_seed", "r", 0, default_evolution="r_a",
                      special_evolutions=(Branch("r_b", RandomChance(0.5)),)),
        EvolutionNode("r_a", "r", 1, growth_time=1, points=1),
        EvolutionNode("r_b", "r", 1, growth_time=1, points=1),
    ])
    rng = random.Random(3)
    picks = {determine_next_evolution(rnd.get("r_seed"), _bare("r", "r_seed"),
                                      TriggerContext(now=0, rng=rng), rnd)[0]
             for _ in range(50)}
    check(picks == {"r_a", "r_b"}, "random branch sometimes fires", str(picks))


if __name__ == "__main__":
    run_sections("Catalog & Trigger Tests", [
        ("Shipped catalog", test_shipped_catalog),
        ("Malformed entries", test_malformed_entries_skipped),
        ("Stage times", test_stage_times),
        ("Parse trigger", test_parse_trigger),
        ("Check trigger: counters", test_check_trigger_counters),
        ("Check trigger: neighbourhood", test_check_trigger_neighbors),
        ("Time helpers", test_time_helpers),
        ("Next evolution", test_determine_next_evolution),
    ])
