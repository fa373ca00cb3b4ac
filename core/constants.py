"""core/constants.py — Shared constants used across the codebase.

Centralises fixed identifiers and units so there's exactly one place to
change them.  Tunable numbers live in ``data/tuning.toml`` instead.

Unit System
-----------
All simulation time is measured in **milliseconds** on a caller-supplied
clock.  Nothing in the core reads the wall clock directly; every update
receives an explicit ``now``.

    Timestamps / durations    ms
    Growth progress           0.0 – 1.0 (fraction of the current stage)
    Multipliers / auras       unitless
    Grid positions            cells (x = column, y = row)
"""

# ── Time units ───────────────────────────────────────────────────────
MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND
MS_PER_HOUR = 60 * MS_PER_MINUTE

# ── Ordered levels (index = rank) ────────────────────────────────────
BOND_LEVELS = ("acquaintance", "friend", "bestFriend", "soulmate")
ELDER_TIERS = ("none", "elder", "ancient", "legendary")

# ── Closed vocabularies ──────────────────────────────────────────────
VISITOR_KINDS = ("butterfly", "bee", "rabbit", "bluebird")
SEASONS = ("spring", "summer", "fall", "winter")
WISH_TYPES = (
    "lonely", "want_visitor", "night_water", "help_friend",
    "grow_tall", "make_friend", "sunny_spot",
)

# ── Neighbourhoods ───────────────────────────────────────────────────
NEIGHBOR_OFFSETS = (
    (-1, -1), (0, -1), (1, -1),
    (-1, 0),           (1, 0),
    (-1, 1),  (0, 1),  (1, 1),
)
ORTHOGONAL_OFFSETS = ((0, -1), (0, 1), (-1, 0), (1, 0))

# ── Persistence ──────────────────────────────────────────────────────
SAVE_FORMAT_VERSION = 1
STARTING_SEED = "sprout"


def bond_rank(level: str) -> int:
    """Rank of a bond level; unknown levels rank below acquaintance."""
    try:
        return BOND_LEVELS.index(level)
    except ValueError:
        return -1


def elder_rank(tier: str) -> int:
    """Rank of an elder tier; unknown tiers rank as ``none``."""
    try:
        return ELDER_TIERS.index(tier)
    except ValueError:
        return 0
