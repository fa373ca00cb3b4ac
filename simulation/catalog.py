"""simulation/catalog.py — Seed types and the evolution graph.

Every seed lineage is a small directed graph of evolution nodes.  Default
edges always climb in tier; conditional branches hang off a node in
declared order.  The catalog is built once (usually from
``data/evolutions.toml``) and only read afterwards.

    catalog = EvolutionCatalog.from_toml("data/evolutions.toml")
    node = catalog.get("sprout_shoot")
    catalog.is_terminal("sprout_bloom")     # True
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

from core.data import read_toml
from simulation.triggers import Trigger, parse_trigger


@dataclass(frozen=True)
class Branch:
    """Conditional edge: evolve into ``to`` when ``trigger`` holds."""
    to: str
    trigger: Trigger | None
    hint: str = ""


@dataclass(frozen=True)
class EvolutionNode:
    """One stage of a seed lineage.

    ``growth_time`` is the base time (ms) to grow *into* this node; the
    time a plant spends on a stage is read from the node it grows into
    (see ``simulation.growth.growth_time``).  ``points`` is 0 until the
    lineage's terminal stages.
    """
    id: str
    seed_id: str
    tier: int
    name: str = ""
    emoji: str = ""
    growth_time: float = 0.0
    points: int = 0
    default_evolution: str | None = None
    special_evolutions: tuple[Branch, ...] = ()
    description: str = ""

    @property
    def is_terminal(self) -> bool:
        return self.default_evolution is None and self.points > 0


@dataclass(frozen=True)
class SeedType:
    id: str
    name: str
    emoji: str = ""
    cost: int = 0
    start_evolution: str = ""


class EvolutionCatalog:
    """Immutable id-indexed lookup of seeds and evolution nodes."""

    def __init__(self, nodes=(), seeds=()):
        node_map: dict[str, EvolutionNode] = {}
        for node in nodes:
            node_map[node.id] = node
        seed_map: dict[str, SeedType] = {}
        for seed in seeds:
            if seed.start_evolution in node_map:
                seed_map[seed.id] = seed
            else:
                print(f"[CATALOG] seed {seed.id!r} has unknown start {seed.start_evolution!r}, skipped")
        self._nodes = MappingProxyType(node_map)
        self._seeds = MappingProxyType(seed_map)
        self._warn_tier_order()

    # ── Lookups ──────────────────────────────────────────────────────

    @property
    def nodes(self):
        return self._nodes

    @property
    def seeds(self):
        return self._seeds

    def get(self, evolution_id: str | None) -> EvolutionNode | None:
        if evolution_id is None:
            return None
        return self._nodes.get(evolution_id)

    def seed(self, seed_id: str | None) -> SeedType | None:
        if seed_id is None:
            return None
        return self._seeds.get(seed_id)

    def is_terminal(self, evolution_id: str) -> bool:
        """Unknown ids are never terminal (and so never harvestable)."""
        node = self._nodes.get(evolution_id)
        return node is not None and node.is_terminal

    def lineage(self, seed_id: str) -> list[EvolutionNode]:
        """All nodes of a lineage, ordered by tier."""
        return sorted((n for n in self._nodes.values() if n.seed_id == seed_id),
                      key=lambda n: (n.tier, n.id))

    def __contains__(self, evolution_id: str) -> bool:
        return evolution_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def _warn_tier_order(self) -> None:
        for node in self._nodes.values():
            nxt = self._nodes.get(node.default_evolution) if node.default_evolution else None
            if nxt is not None and nxt.tier <= node.tier:
                print(f"[CATALOG] default edge {node.id} -> {nxt.id} does not climb in tier")

    # ── Loading ──────────────────────────────────────────────────────

    @classmethod
    def from_toml(cls, filepath: str | Path | None = None) -> EvolutionCatalog:
        """Load seeds and nodes from a TOML definition file.

        Expected format:

            [seeds.sprout]
            name = "Sprout"
            cost = 0
            start = "sprout_seed"

            [evolutions.sprout_shoot]
            seed = "sprout"
            tier = 1
            growth_time = 30000
            default = "sprout_sapling"

            [[evolutions.sprout_shoot.special]]
            to = "sprout_gilded"
            trigger = { type = "golden" }

        Malformed entries are skipped with a log line; branches whose
        trigger does not parse are dropped.
        """
        data = read_toml("evolutions.toml" if filepath is None else filepath)
        if data is None:
            print("[CATALOG] no catalog data, starting empty")
            return cls()

        nodes = []
        for node_id, ndata in data.get("evolutions", {}).items():
            node = _node_from_table(node_id, ndata)
            if node is None:
                print(f"[CATALOG] malformed evolution {node_id!r}, skipped")
                continue
            nodes.append(node)

        seeds = []
        for seed_id, sdata in data.get("seeds", {}).items():
            if not isinstance(sdata, dict) or not isinstance(sdata.get("start"), str):
                print(f"[CATALOG] malformed seed {seed_id!r}, skipped")
                continue
            seeds.append(SeedType(
                id=seed_id,
                name=str(sdata.get("name", seed_id)),
                emoji=str(sdata.get("emoji", "")),
                cost=int(sdata.get("cost", 0)),
                start_evolution=sdata["start"],
            ))

        catalog = cls(nodes, seeds)
        print(f"[CATALOG] loaded {len(catalog)} evolutions across {len(catalog.seeds)} seeds")
        return catalog


def _node_from_table(node_id: str, ndata) -> EvolutionNode | None:
    if not isinstance(ndata, dict) or not isinstance(ndata.get("seed"), str):
        return None
    try:
        tier = int(ndata.get("tier", 0))
        growth = float(ndata.get("growth_time", 0))
        points = int(ndata.get("points", 0))
    except (TypeError, ValueError):
        return None
    if growth < 0 or points < 0:
        return None
    default = ndata.get("default")
    if default is not None and not isinstance(default, str):
        return None

    branches = []
    raw_branches = ndata.get("special", [])
    if not isinstance(raw_branches, list):
        raw_branches = []
    for raw in raw_branches:
        if not isinstance(raw, dict) or not isinstance(raw.get("to"), str):
            continue
        trigger = parse_trigger(raw.get("trigger"))
        if trigger is None:
            print(f"[CATALOG] {node_id}: bad trigger for branch to {raw['to']!r}, dropped")
            continue
        branches.append(Branch(raw["to"], trigger, str(raw.get("hint", ""))))

    return EvolutionNode(
        id=node_id,
        seed_id=ndata["seed"],
        tier=tier,
        name=str(ndata.get("name", node_id)),
        emoji=str(ndata.get("emoji", "")),
        growth_time=growth,
        points=points,
        default_evolution=default,
        special_evolutions=tuple(branches),
        description=str(ndata.get("description", "")),
    )
