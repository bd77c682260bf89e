"""
Determinism helpers.

Goals:
- One base seed for all gameplay randomness (map generation, wave mix, creep jitter)
- Stable sub-streams derived from that seed, so adding a draw in one system
  never shifts another system's sequence

Non-goals:
- Cryptographic security
- Cross-language reproducibility (this is Python's Mersenne Twister)
"""

from __future__ import annotations

import random
import zlib
from typing import Optional

_BASE_SEED: int = 1
_GLOBAL_RNG: random.Random = random.Random(_BASE_SEED)


def set_sim_seed(seed: int) -> None:
    """Set the base seed used for deterministic simulation RNG."""
    global _BASE_SEED, _GLOBAL_RNG
    _BASE_SEED = int(seed) & 0xFFFFFFFF
    _GLOBAL_RNG = random.Random(_BASE_SEED)


def get_sim_seed() -> int:
    return _BASE_SEED


def derive_seed(tag: str, seed: Optional[int] = None) -> int:
    """Stable 32-bit seed for `tag`, mixed with `seed` (or the current base seed)."""
    # NEVER Python's built-in hash(): it is randomized per process.
    base = _BASE_SEED if seed is None else int(seed) & 0xFFFFFFFF
    crc = zlib.crc32(tag.encode("utf-8")) & 0xFFFFFFFF
    return (base ^ crc) & 0xFFFFFFFF


def get_rng(tag: Optional[str] = None, seed: Optional[int] = None) -> random.Random:
    """
    Get the shared gameplay RNG, or an independent stream for one system.

    - `tag` None: the shared RNG (sequence depends on call order).
    - `tag` given: a fresh stream derived from the base seed, or from `seed` when passed.
    """
    if tag is None:
        return _GLOBAL_RNG
    return random.Random(derive_seed(str(tag), seed))
