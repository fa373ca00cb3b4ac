"""core/tuning.py — Data-driven garden constants.

Every gameplay number (bond thresholds, wish timing, combo window,
harvest multipliers ...) lives in ``data/tuning.toml``.  Systems read a
value at call time, always passing the in-code default::

    from core.tuning import get as _tun
    window = _tun("watering", "combo_window", 2000)

Because defaults mirror the shipped file, the simulation behaves the same
whether or not ``load()`` ran.  ``reload()`` re-reads the file so a running
session picks up edits on its next tick.
"""

from __future__ import annotations
from pathlib import Path

try:
    import tomllib                         # Python 3.11+
except ModuleNotFoundError:
    try:
        import tomli as tomllib            # pip install tomli
    except ModuleNotFoundError:
        tomllib = None                     # type: ignore[assignment]


_data: dict = {}
_path: Path | None = None


def data_dir() -> Path:
    """``data/`` next to the packages (one level above ``core/``)."""
    return Path(__file__).resolve().parent.parent / "data"


def load(path: str | Path | None = None) -> None:
    """Load (or reload) tuning constants from *path*.

    If *path* is ``None``, default to ``data/tuning.toml``.
    """
    global _data, _path

    path = data_dir() / "tuning.toml" if path is None else Path(path)
    _path = path

    if not path.exists():
        print(f"[TUNING] {path} not found, using defaults")
        _data = {}
        return

    if tomllib is None:
        print("[TUNING] No TOML parser available (need Python 3.11+ or `pip install tomli`)")
        _data = {}
        return

    with open(path, "rb") as f:
        _data = tomllib.load(f)

    print(f"[TUNING] Loaded {_count_leaves(_data)} values from {path}")


def reload() -> None:
    """Re-read the tuning file from disk."""
    load(_path)


def get(section: str, key: str, default=None):
    """Read a tuning value.

    *section* uses dot-notation for nested tables, e.g. ``"growth"`` or
    ``"growth.tier_multipliers"``.

    >>> get("bonds", "friend_time", 300_000)
    300000
    """
    node = _lookup(section)
    if isinstance(node, dict):
        return node.get(key, default)
    return default


def section(section_path: str) -> dict:
    """Return an entire section dict (shallow copy), or empty dict."""
    node = _lookup(section_path)
    return dict(node) if isinstance(node, dict) else {}


def int_keyed(section_path: str, default: dict[int, float]) -> dict[int, float]:
    """Return a table whose TOML keys are integers written as strings.

    Entries whose key does not parse as an int are dropped; a missing or
    empty table yields *default*.
    """
    raw = section(section_path)
    out: dict[int, float] = {}
    for k, v in raw.items():
        try:
            out[int(k)] = float(v)
        except (TypeError, ValueError):
            continue
    return out or dict(default)


def _lookup(section_path: str):
    node = _data
    for part in section_path.split("."):
        if not isinstance(node, dict):
            return None
        node = node.get(part)
        if node is None:
            return None
    return node


def _count_leaves(d: dict, _n: int = 0) -> int:
    for v in d.values():
        if isinstance(v, dict):
            _n = _count_leaves(v, _n)
        else:
            _n += 1
    return _n
