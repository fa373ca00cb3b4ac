"""core/save.py — Session persistence to JSON save slots.

A save file is exactly ``GardenSim.snapshot()`` written as JSON:

- format_version
- garden: grid size, simulated time, every plant with all its fields
- state: water, points, counters, unlocked seeds, play/save times
- hall_of_fame: retired plants, newest first

Loading hands the parsed dict to ``GardenSim.restore``, which validates
it and runs the offline catch-up.  Unreadable files never raise; they
log a ``[SAVE]`` line and load as nothing.
"""

from __future__ import annotations
import json
from pathlib import Path
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from simulation.session import GardenSim


SAVES_DIR = Path("saves")


def get_save_file(slot: int = 0, saves_dir: Path | None = None) -> Path:
    """Get the path for a save slot."""
    saves_dir = Path(saves_dir) if saves_dir is not None else SAVES_DIR
    saves_dir.mkdir(parents=True, exist_ok=True)
    return saves_dir / f"slot{slot}.json"


def save_session(sim: GardenSim, now: float, slot: int = 0,
                 saves_dir: Path | None = None) -> Path:
    """Write the session to a save slot and return the file path."""
    path = get_save_file(slot, saves_dir)
    data = sim.snapshot(now)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    print(f"[SAVE] Saved {len(data['garden']['plants'])} plants to {path}")
    return path


def load_save_data(slot: int = 0, saves_dir: Path | None = None) -> dict[str, Any] | None:
    """Read a save slot.  Returns ``None`` if missing or unreadable."""
    path = get_save_file(slot, saves_dir)
    if not path.exists():
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as ex:
        print(f"[SAVE] Error loading save file: {ex}")
        return None
    if not isinstance(data, dict):
        print(f"[SAVE] Ignoring save file with unexpected layout: {path}")
        return None
    return data


def load_session(sim: GardenSim, now: float, slot: int = 0,
                 saves_dir: Path | None = None) -> bool:
    """Restore *sim* from a save slot.  False if nothing usable was there."""
    data = load_save_data(slot, saves_dir)
    if data is None:
        return False
    return sim.restore(data, now)


def delete_save(slot: int = 0, saves_dir: Path | None = None) -> bool:
    path = get_save_file(slot, saves_dir)
    if path.exists():
        path.unlink()
        return True
    return False
