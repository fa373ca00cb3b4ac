"""logic/personality.py — Seed-weighted personality traits."""

from __future__ import annotations
import random

from core.data import cached_toml

TRAITS = (
    "cheerful", "bashful", "dramatic", "zen",
    "curious", "mysterious", "sleepy", "energetic",
)


def trait_weights(seed_id: str) -> list[tuple[str, float]]:
    """(trait, weight) pairs in ``TRAITS`` order; unknown traits ignored."""
    tables = cached_toml("cosmetics.toml").get("traits", {})
    table = tables.get(seed_id) or tables.get("default") or {}
    weights = []
    for trait in TRAITS:
        try:
            w = float(table.get(trait, 0))
        except (TypeError, ValueError):
            w = 0.0
        if w > 0:
            weights.append((trait, w))
    return weights or [(t, 1.0) for t in TRAITS]


def random_personality(seed_id: str, rng: random.Random | None = None) -> str:
    rng = rng or random
    weights = trait_weights(seed_id)
    roll = rng.random() * sum(w for _, w in weights)
    for trait, w in weights:
        roll -= w
        if roll <= 0:
            return trait
    return weights[-1][0]
