"""core/nbt.py — NBT export of garden snapshots.

Writes the flat dict produced by ``Garden.snapshot()`` (or a whole
session snapshot) as a binary NBT file via `nbtlib`, and reads it back
into the same dict shape.  Values map as follows:

    dict   → TAG_Compound        bool → TAG_Byte
    list   → TAG_List            int  → TAG_Long
    str    → TAG_String          float → TAG_Double
    None   → (key omitted; readers fall back to their defaults)

Garden snapshots also get an ``occupancy`` TAG_Byte_Array (row-major,
1 = planted) so external tools can preview a layout without decoding
every plant.
"""
from __future__ import annotations
from pathlib import Path

import nbtlib
from nbtlib import tag


def to_tag(value):
    """Convert a plain Python value to its NBT tag (``None`` stays ``None``)."""
    if value is None:
        return None
    if isinstance(value, bool):
        return tag.Byte(1 if value else 0)
    if isinstance(value, int):
        return tag.Long(value)
    if isinstance(value, float):
        return tag.Double(value)
    if isinstance(value, str):
        return tag.String(value)
    if isinstance(value, dict):
        comp = nbtlib.Compound()
        for key, item in value.items():
            converted = to_tag(item)
            if converted is not None:
                comp[str(key)] = converted
        return comp
    if isinstance(value, (list, tuple, set)):
        items = [to_tag(v) for v in value]
        items = [v for v in items if v is not None]
        if not items:
            return nbtlib.List[nbtlib.Compound]()
        return nbtlib.List[type(items[0])](items)
    raise TypeError(f"cannot store {type(value).__name__} in NBT")


def from_tag(value):
    """Convert an NBT tag back to plain Python values."""
    if isinstance(value, dict):
        return {str(k): from_tag(v) for k, v in value.items()}
    if isinstance(value, tag.Array):
        return [int(v) for v in value]
    if isinstance(value, list):
        return [from_tag(v) for v in value]
    if isinstance(value, str):
        return str(value)
    if isinstance(value, float):
        return float(value)
    if isinstance(value, int):
        return int(value)
    return value


def occupancy(snapshot: dict) -> list[int]:
    size = int(snapshot.get("size", 0))
    cells = [0] * (size * size)
    for p in snapshot.get("plants", []):
        x, y = int(p["x"]), int(p["y"])
        if 0 <= x < size and 0 <= y < size:
            cells[y * size + x] = 1
    return cells


def save_garden_nbt(snapshot: dict, path: str | Path) -> Path:
    """Write *snapshot* to *path* as NBT and return the path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    root = to_tag(snapshot)
    if "plants" in snapshot and "size" in snapshot:
        root["occupancy"] = tag.ByteArray(occupancy(snapshot))
    nbt_file = nbtlib.File(root)
    # Remove old file if exists to ensure clean overwrite
    if path.exists():
        path.unlink()
    nbt_file.save(path)
    print(f"[NBT] wrote {path}")
    return path


def load_garden_nbt(path: str | Path) -> dict | None:
    """Read an NBT snapshot.  Returns ``None`` if missing or unreadable."""
    path = Path(path)
    if not path.exists():
        print(f"[NBT] {path} not found")
        return None
    try:
        # In nbtlib 2.0+, the File object IS the root compound
        root = nbtlib.load(path)
    except (OSError, ValueError, EOFError) as ex:
        print(f"[NBT] Error loading {path}: {ex}")
        return None
    data = from_tag(root)
    data.pop("occupancy", None)
    return data
