"""core package initialization.

Infrastructure shared by the simulation: tuning constants, TOML data
files, the event bus, the plant grid index, and save/NBT persistence.
"""

__all__ = ["constants", "data", "events", "grid", "nbt", "save", "tuning"]
