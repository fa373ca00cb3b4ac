"""components — Garden state dataclasses, organised by concern.

Submodules
----------
plant       Plant, Cell, EvolutionTelemetry, NeighborBond, GriefState, Wish
resources   GameClock, CheckTimers, GardenCounters
dev_log     DevLog

All public names are re-exported here so callers can write
``from components import Plant``.
"""

# ── Plant ────────────────────────────────────────────────────────────
from components.plant import (
    Cell, EvolutionTelemetry, NeighborBond, GriefState, Wish, Plant,
)

# ── Garden resources / singletons ────────────────────────────────────
from components.resources import GameClock, CheckTimers, GardenCounters

# ── Diagnostics ──────────────────────────────────────────────────────
from components.dev_log import DevLog

__all__ = [
    # plant
    "Cell", "EvolutionTelemetry", "NeighborBond", "GriefState", "Wish", "Plant",
    # resources
    "GameClock", "CheckTimers", "GardenCounters",
    # diagnostics
    "DevLog",
]
