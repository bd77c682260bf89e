"""
Tiny global perf counters for diagnosing slow ticks.

Plain ints + floats so they can stay enabled in every run.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class _PathStats:
    calls: int = 0
    failures: int = 0
    total_ms: float = 0.0

    @property
    def avg_ms(self) -> float:
        return self.total_ms / self.calls if self.calls else 0.0


@dataclass
class _MapGenStats:
    maps: int = 0
    attempts: int = 0
    fallbacks: int = 0


pathfinding = _PathStats()
mapgen = _MapGenStats()


def reset_pathfinding() -> None:
    pathfinding.calls = 0
    pathfinding.failures = 0
    pathfinding.total_ms = 0.0


def reset_mapgen() -> None:
    mapgen.maps = 0
    mapgen.attempts = 0
    mapgen.fallbacks = 0


def summary() -> dict:
    return {
        "path_calls": pathfinding.calls,
        "path_failures": pathfinding.failures,
        "path_avg_ms": round(pathfinding.avg_ms, 3),
        "maps": mapgen.maps,
        "mapgen_attempts": mapgen.attempts,
        "mapgen_fallbacks": mapgen.fallbacks,
    }
