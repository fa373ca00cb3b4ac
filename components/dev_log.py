"""components.dev_log — Structured garden event log.

A ring-buffer resource that records timestamped simulation happenings
(evolutions, bonds, grief, wishes, harvests ...).  The session appends
one entry per garden event so a debugging front-end can show what every
plant has been up to.

Usage:
    log = sim.log
    log.record(plant.id, "bond", "now friend with Fern", t=now)

Each entry is a dict:
    {"t": float, "plant_id": str, "name": str, "cat": str,
     "msg": str, "details": dict | None}
"""

from __future__ import annotations
from dataclasses import dataclass, field


@dataclass
class DevLog:
    """Ring-buffer of garden events."""

    entries: list[dict] = field(default_factory=list)
    max_entries: int = 500

    # If non-empty, only entries whose ``cat`` is in the set are kept.
    cat_filter: set[str] = field(default_factory=set)

    def record(self, plant_id: str, cat: str, msg: str, *,
               name: str = "", t: float = 0.0,
               details: dict | None = None) -> None:
        if self.cat_filter and cat not in self.cat_filter:
            return
        self.entries.append({
            "t": t,
            "plant_id": plant_id,
            "name": name,
            "cat": cat,
            "msg": msg,
            "details": details,
        })
        if len(self.entries) > self.max_entries:
            self.entries = self.entries[-self.max_entries:]

    def recent(self, n: int = 50) -> list[dict]:
        """Return the *n* most recent entries (newest last)."""
        return self.entries[-n:]

    def for_plant(self, plant_id: str, n: int = 30) -> list[dict]:
        return [e for e in self.entries if e["plant_id"] == plant_id][-n:]
