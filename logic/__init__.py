"""logic — Cosmetic generators used when a plant is placed.

Top-level modules
-----------------
names        botanical pun names per seed lineage
personality  seed-weighted personality traits
"""
