"""core/events.py — Garden events and a lightweight event bus.

The garden reports every state change through a single synchronous
callback (its event sink) with one of the dataclasses below.  The
session consumes them immediately for bookkeeping, then queues them on
an ``EventBus`` for presentation-side subscribers::

    bus.subscribe("PlantEvolved", my_handler)
    bus.drain()          # calls all handlers for pending events

Design rules:
  - Events are plain dataclasses, no behaviour.
  - The tag of an event is its class name.
  - ``emit()`` is O(1) (just appends).
  - ``drain()`` processes all queued events in FIFO order.
  - Handlers may emit new events; those are processed in the same drain.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, TYPE_CHECKING
from collections import defaultdict

if TYPE_CHECKING:
    from components.plant import Plant, Wish


# ═══════════════════════════════════════════════════════════════════
#  Event definitions
# ═══════════════════════════════════════════════════════════════════

@dataclass
class PlantPlaced:
    plant: Plant


@dataclass
class PlantWatered:
    plant: Plant
    free: bool = False
    is_night: bool = False


@dataclass
class ComboWatered:
    """Enough distinct plants were watered inside the combo window."""
    plants: list[Plant] = field(default_factory=list)
    boost: float = 1.5


@dataclass
class PlantEvolved:
    plant: Plant
    from_id: str = ""
    to_id: str = ""
    is_special: bool = False       # a conditional branch fired
    is_terminal: bool = False


@dataclass
class EvolutionDiscovered:
    """First time this evolution node was produced in the session."""
    plant: Plant
    evolution_id: str = ""


@dataclass
class PlantsMerged:
    source: Plant
    target: Plant


@dataclass
class PlantHarvested:
    plant: Plant
    points: int = 0
    same_neighbors: int = 0
    elder_tier: str = "none"


@dataclass
class PlantRetired:
    """An elder was retired to the hall of fame instead of harvested."""
    plant: Plant
    points: int = 0
    elder_tier: str = "none"
    strongest_bond: str | None = None


@dataclass
class BondFormed:
    """A bond reached a strictly higher level."""
    plant: Plant
    neighbor: Plant
    level: str = "friend"


@dataclass
class PlantGrieving:
    plant: Plant
    mourning: Plant
    duration: float = 0.0


@dataclass
class ElderReached:
    plant: Plant
    tier: str = "elder"


@dataclass
class WishAppeared:
    plant: Plant
    wish: Wish


@dataclass
class WishFulfilled:
    plant: Plant
    wish: Wish
    bonus_ms: float = 0.0          # bond-time reward for the caller to grant


@dataclass
class VisitorTouchedPlant:
    plant: Plant
    visitor: str = ""


# ═══════════════════════════════════════════════════════════════════
#  Event bus
# ═══════════════════════════════════════════════════════════════════

class EventBus:
    """Fire-and-forget event queue with per-type subscribers."""

    def __init__(self):
        self._queue: list[Any] = []
        self._subs: dict[str, list[Callable]] = defaultdict(list)
        self._stats: dict[str, int] = defaultdict(int)

    # ── Public API ───────────────────────────────────────────────────

    def emit(self, event) -> None:
        """Queue an event for processing on next ``drain()``."""
        self._queue.append(event)

    def subscribe(self, event_type: str, handler: Callable) -> None:
        """Register *handler* to receive events of *event_type*.

        *event_type* is the class name, e.g. ``"PlantEvolved"``.
        ``"*"`` receives every event.
        """
        self._subs[event_type].append(handler)

    def drain(self) -> int:
        """Process all queued events.  Returns number processed.

        Handlers may emit new events; those are processed in the
        same drain pass (breadth-first).
        """
        processed = 0
        safety = 1000  # prevent infinite loops
        while self._queue and safety > 0:
            batch = self._queue[:]
            self._queue.clear()
            for event in batch:
                name = type(event).__name__
                self._stats[name] += 1
                for handler in self._subs.get(name, []) + self._subs.get("*", []):
                    try:
                        handler(event)
                    except Exception as exc:
                        print(f"[EVENT] handler error for {name}: {exc}")
            processed += len(batch)
            safety -= 1
        return processed

    def stats(self) -> dict[str, int]:
        """Return cumulative event counts by type."""
        return dict(self._stats)

    def pending_count(self) -> int:
        return len(self._queue)

    def __repr__(self) -> str:
        return f"EventBus(pending={len(self._queue)}, subs={len(self._subs)})"
