"""garden_testkit.py — Shared builders and pass/fail harness for the tests.

Every ``test_*.py`` module imports from here.  ``check()`` both records a
[PASS]/[FAIL] line (for ``python test_x.py``) and asserts, so the same
functions run under pytest.
"""
from __future__ import annotations
import sys, traceback

from components.plant import Plant
from simulation.catalog import Branch, EvolutionCatalog, EvolutionNode, SeedType
from simulation.garden import Garden
from simulation.triggers import Golden


# ── Test harness ─────────────────────────────────────────────────────

_passed = 0
_failed = 0


def ok(label: str):
    global _passed
    _passed += 1
    print(f"  [PASS] {label}")


def fail(label: str, detail: str = ""):
    global _failed
    _failed += 1
    msg = f"  [FAIL] {label}"
    if detail:
        msg += f" — {detail}"
    print(msg)


def check(cond: bool, label: str, detail: str = ""):
    if cond:
        ok(label)
    else:
        fail(label, detail)
    assert cond, f"{label} {detail}".strip()


def run_sections(title: str, sections) -> None:
    """Run ``(name, fn)`` pairs, print a summary, and exit non-zero on failure."""
    global _failed
    for name, fn in sections:
        print(f"\n=== {name} ===")
        try:
            fn()
        except AssertionError:
            pass
        except Exception:
            _failed += 1
            print(f"\n  [CRASH] {name} — unhandled exception:")
            traceback.print_exc()
    print(f"\n{'=' * 60}")
    print(f"  {title}: {_passed} passed, {_failed} failed")
    print(f"{'=' * 60}")
    sys.exit(1 if _failed else 0)


# ── Fixtures ─────────────────────────────────────────────────────────

MINUTE = 60_000


def noon_june(now: float) -> tuple[int, int]:
    return 12, 6


def night_june(now: float) -> tuple[int, int]:
    return 22, 6


def make_catalog() -> EvolutionCatalog:
    """Tiny catalog with known stage times (default tier multipliers):

        sprout_seed  → sprout_shoot   1000 ms   (2000 × 0.5)
        sprout_shoot → sprout_bud     2000 ms   (1000 × 2), golden → sprout_gold
        sprout_bud   → sprout_bloom   8000 ms   (1000 × 8), terminal 10 pts
        bean_seed    → bean_stalk     1000 ms   terminal 20 pts
    """
    nodes = [
        EvolutionNode("sprout_seed", "sprout", 0, default_evolution="sprout_shoot"),
        EvolutionNode("sprout_shoot", "sprout", 1, growth_time=2000,
                      default_evolution="sprout_bud",
                      special_evolutions=(Branch("sprout_gold", Golden()),)),
        EvolutionNode("sprout_bud", "sprout", 2, growth_time=1000,
                      default_evolution="sprout_bloom"),
        EvolutionNode("sprout_gold", "sprout", 2, growth_time=1000, points=40),
        EvolutionNode("sprout_bloom", "sprout", 3, growth_time=1000, points=10),
        EvolutionNode("bean_seed", "bean", 0, default_evolution="bean_stalk"),
        EvolutionNode("bean_stalk", "bean", 1, growth_time=2000, points=20),
    ]
    seeds = [
        SeedType("sprout", "Sprout", start_evolution="sprout_seed"),
        SeedType("bean", "Bean", start_evolution="bean_seed"),
    ]
    return EvolutionCatalog(nodes, seeds)


class Recorder:
    """Event sink that keeps everything it receives."""

    def __init__(self):
        self.events = []

    def __call__(self, event):
        self.events.append(event)

    def names(self) -> list[str]:
        return [type(e).__name__ for e in self.events]

    def of(self, name: str) -> list:
        return [e for e in self.events if type(e).__name__ == name]

    def clear(self):
        self.events.clear()


class Rigged:
    """Stand-in RNG returning a fixed ``random()`` value."""

    def __init__(self, value: float = 0.0):
        self.value = value

    def random(self) -> float:
        return self.value

    def choice(self, seq):
        return seq[0]


def make_garden(size: int = 5, local_time=noon_june, rng=None, **kw) -> tuple[Garden, Recorder]:
    import random
    rec = Recorder()
    garden = Garden(make_catalog(), rec, size=size, local_time=local_time,
                    rng=rng if rng is not None else random.Random(1), **kw)
    return garden, rec


def put(garden: Garden, x: int, y: int, now: float = 0.0, seed_id: str = "sprout",
        golden: bool = False, evolution_id: str | None = None) -> Plant:
    """Place a plant and pin down the random bits tests care about."""
    plant = garden.place(x, y, now, seed_id=seed_id)
    assert plant is not None, f"could not place at {x},{y}"
    plant.is_golden = golden
    if evolution_id is not None:
        plant.evolution_id = evolution_id
    return plant
