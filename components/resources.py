"""components.resources — Garden-level singletons (not per-plant)."""

from __future__ import annotations
from dataclasses import dataclass, field


@dataclass
class GameClock:
    """Monotonic simulation time in ms.

    The session advances it from whatever timestamps the host feeds in;
    a timestamp older than the current time is ignored so durations never
    go negative.
    """
    time: float = 0.0

    def advance_to(self, now: float) -> float:
        if now > self.time:
            self.time = float(now)
        return self.time

    def now(self) -> float:
        return self.time


@dataclass
class CheckTimers:
    """Last-run timestamps for the coarse periodic checks.

    ``None`` means "never ran", so the first call always fires.
    """
    bonds: float | None = None
    wishes: float | None = None
    elders: float | None = None

    def due(self, name: str, now: float, interval: float) -> bool:
        """Return True (and stamp *now*) when check *name* should run."""
        last = getattr(self, name)
        if last is not None and now - last < interval:
            return False
        setattr(self, name, now)
        return True

    def reset(self) -> None:
        self.bonds = self.wishes = self.elders = None


@dataclass
class GardenCounters:
    """Global counters owned by the session and read by the garden.

    ``spot_harvest_counts`` is keyed by ``Cell.key`` (``"x,y"``).
    """
    total_merges: int = 0
    spot_harvest_counts: dict[str, int] = field(default_factory=dict)
    discovered: set[str] = field(default_factory=set)

    def spot_count(self, key: str) -> int:
        return self.spot_harvest_counts.get(key, 0)

    def to_dict(self) -> dict:
        return {
            "total_merges": self.total_merges,
            "spot_harvest_counts": dict(self.spot_harvest_counts),
            "discovered": sorted(self.discovered),
        }

    @classmethod
    def from_dict(cls, d: dict) -> GardenCounters:
        spots = d.get("spot_harvest_counts", {})
        found = d.get("discovered", [])
        if not isinstance(spots, dict) or not isinstance(found, list):
            raise TypeError("malformed garden counters")
        return cls(
            total_merges=int(d.get("total_merges", 0)),
            spot_harvest_counts={str(k): int(v) for k, v in spots.items()},
            discovered={str(e) for e in found},
        )
