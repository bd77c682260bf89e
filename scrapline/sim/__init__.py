"""
Determinism-friendly simulation helpers.

Small primitives (RNG streams, sim time, snapshot contracts) that keep gameplay
code off wall-clock time and the global `random` module.
"""
