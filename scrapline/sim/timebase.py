"""
Simulation clock.

The engine owns time: it adds each tick's dt (rounded to whole ms) to its own counter
and publishes the result here. Systems that stamp events, like the economy's
transaction log, read `now_ms()` rather than any wall clock, so a replay with the same
seed and tick sequence produces identical logs.
"""

from __future__ import annotations

from typing import Optional

_sim_now_ms = 0


def set_sim_now_ms(now_ms: Optional[int]) -> None:
    """Publish the current sim time in ms. None rewinds the clock to zero."""
    global _sim_now_ms
    _sim_now_ms = 0 if now_ms is None else int(now_ms)


def now_ms() -> int:
    return _sim_now_ms
