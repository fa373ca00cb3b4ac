"""simulation — Garden plant ecosystem rules.

Everything here is driven by explicit timestamps from the host: a fast
growth tick plus coarser bond, wish and elder checks gated inside the
garden.  No module reads the wall clock on its own.

Submodules
----------
catalog       SeedType, EvolutionNode, EvolutionCatalog — evolution graph
triggers      Conditional-branch triggers and next-node resolution
growth        Growth rate composition and progress accumulation
bonds         Neighbour bonds and grief
elders        Elder tiers and auras for plants on terminal nodes
wishes        Wish generation and fulfilment
hall_of_fame  Retired-plant memorial
garden        Garden — owns plants, grid and player actions
session       GardenSim — session state, event handling, persistence
"""
