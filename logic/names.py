"""logic/names.py — Botanical pun names for new plants.

Pools come from ``[names.<seed>]`` in ``data/cosmetics.toml``.  Most
plants (70%) get a standalone name; the rest glue a prefix to a suffix.
Seeds without a pool fall back to a small generic one.
"""

from __future__ import annotations
import random

from core.data import cached_toml

_FALLBACK = {
    "prefixes": ["Leaf", "Green", "Bud", "Stem", "Root"],
    "suffixes": ["y", "ie", "ling", "kins"],
    "standalone": ["Planty", "Leafy", "Sprouty", "Buddy", "Dewdrop", "Sunbeam"],
}

STANDALONE_CHANCE = 0.7


def name_pool(seed_id: str) -> dict[str, list[str]]:
    pool = cached_toml("cosmetics.toml").get("names", {}).get(seed_id)
    if not isinstance(pool, dict):
        return _FALLBACK
    merged = {}
    for key, fallback in _FALLBACK.items():
        values = pool.get(key)
        merged[key] = [str(v) for v in values] if isinstance(values, list) and values else fallback
    return merged


def generate_plant_name(seed_id: str, rng: random.Random | None = None) -> str:
    rng = rng or random
    pool = name_pool(seed_id)
    if rng.random() < STANDALONE_CHANCE:
        return rng.choice(pool["standalone"])
    return rng.choice(pool["prefixes"]) + rng.choice(pool["suffixes"])
