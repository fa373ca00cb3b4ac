"""core/grid.py — Plant collection with spatial and id indices.

The garden keeps plants in one ordered list (placement order, which is
also the iteration and event-emission order) plus two dict indices:

    cell → plant      O(1) occupancy and neighbourhood lookups
    id   → plant      O(1) bond / wish target lookups

All three structures are updated together; nothing else mutates them.
"""

from __future__ import annotations
from typing import Iterator, TYPE_CHECKING

from core.constants import NEIGHBOR_OFFSETS, ORTHOGONAL_OFFSETS

if TYPE_CHECKING:
    from components.plant import Plant


class PlantGrid:
    """Square grid of ``size`` × ``size`` cells holding at most one plant each."""

    def __init__(self, size: int):
        self.size = int(size)
        self._plants: list[Plant] = []
        self._by_cell: dict[tuple[int, int], Plant] = {}
        self._by_id: dict[str, Plant] = {}

    # ── Membership ───────────────────────────────────────────────────

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.size and 0 <= y < self.size

    def add(self, plant: Plant) -> bool:
        """Insert *plant*; refuses out-of-bounds, occupied cells and duplicate ids."""
        key = (plant.x, plant.y)
        if not self.in_bounds(*key) or key in self._by_cell or plant.id in self._by_id:
            return False
        self._plants.append(plant)
        self._by_cell[key] = plant
        self._by_id[plant.id] = plant
        return True

    def remove(self, plant: Plant) -> bool:
        if self._by_id.get(plant.id) is not plant:
            return False
        self._plants.remove(plant)
        del self._by_id[plant.id]
        self._by_cell.pop((plant.x, plant.y), None)
        return True

    def clear(self) -> None:
        self._plants.clear()
        self._by_cell.clear()
        self._by_id.clear()

    # ── Lookups ──────────────────────────────────────────────────────

    def at(self, x: int, y: int) -> Plant | None:
        return self._by_cell.get((x, y))

    def get(self, plant_id: str | None) -> Plant | None:
        if plant_id is None:
            return None
        return self._by_id.get(plant_id)

    def neighbors(self, plant: Plant) -> list[Plant]:
        """Occupied cells of the 8-neighbourhood, in fixed offset order."""
        return self._around(plant.x, plant.y, NEIGHBOR_OFFSETS)

    def orthogonal(self, plant: Plant) -> list[Plant]:
        return self._around(plant.x, plant.y, ORTHOGONAL_OFFSETS)

    def neighbor_cells(self, x: int, y: int) -> list[tuple[int, int]]:
        """In-bounds cells of the 8-neighbourhood (occupied or not)."""
        return [(x + dx, y + dy) for dx, dy in NEIGHBOR_OFFSETS
                if self.in_bounds(x + dx, y + dy)]

    def within(self, x: int, y: int, radius: int) -> list[Plant]:
        """Plants within Chebyshev distance *radius* of (x, y), list order."""
        return [p for p in self._plants
                if max(abs(p.x - x), abs(p.y - y)) <= radius]

    def _around(self, x: int, y: int, offsets) -> list[Plant]:
        out = []
        for dx, dy in offsets:
            p = self._by_cell.get((x + dx, y + dy))
            if p is not None:
                out.append(p)
        return out

    # ── Iteration ────────────────────────────────────────────────────

    def __iter__(self) -> Iterator[Plant]:
        return iter(self._plants)

    def __len__(self) -> int:
        return len(self._plants)

    def __contains__(self, plant: Plant) -> bool:
        return self._by_id.get(plant.id) is plant

    def snapshot_list(self) -> list[Plant]:
        """Copy of the plant list, safe to iterate while mutating."""
        return list(self._plants)
