"""
core/data.py — TOML data-file reader

Game content (the evolution catalog, name pools, personality weights)
lives in ``data/*.toml``.  This module is the one place that opens and
parses those files; callers get plain dicts back and build their own
records from them.

Usage:
    raw = read_toml("cosmetics.toml")          # relative to data/
    raw = read_toml(Path("/tmp/custom.toml"))  # absolute path
    pools = cached_toml("cosmetics.toml")      # parsed once per process
"""

from __future__ import annotations
try:
    import tomllib
except ModuleNotFoundError:  # Python < 3.11
    import tomli as tomllib
from pathlib import Path

from core.tuning import data_dir


_cache: dict[Path, dict] = {}


def resolve(path: str | Path) -> Path:
    """Bare file names resolve inside ``data/``; anything else as given."""
    path = Path(path)
    if not path.is_absolute() and path.parent == Path("."):
        return data_dir() / path
    return path


def read_toml(path: str | Path) -> dict | None:
    """Parse a TOML file.  Returns ``None`` if it is missing or malformed."""
    path = resolve(path)
    if not path.exists():
        print(f"[DATA] {path} not found")
        return None
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as ex:
        print(f"[DATA] {path} is not valid TOML: {ex}")
        return None


def cached_toml(path: str | Path) -> dict:
    """Like ``read_toml`` but parsed once; a missing file caches as ``{}``."""
    key = resolve(path)
    if key not in _cache:
        _cache[key] = read_toml(key) or {}
    return _cache[key]

