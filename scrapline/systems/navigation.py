"""
Navigation helpers for creep movement across the occupancy grid.

Creeps plan on the tile grid but move in world space. These helpers bridge the gap:
timed A* planning (feeds perf_stats), waypoint conversion, and fixed-speed stepping.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Optional

from config import ENDPOINT_RADIUS
from scrapline.systems import perf_stats
from scrapline.systems.pathfinding import EIGHT_WAY, MovementRules, find_path


@dataclass(frozen=True)
class Landmark:
    """A spawn or home point: its cell, its world-space center and its radius."""

    cell: tuple[int, int]
    x: float
    y: float
    radius: float = ENDPOINT_RADIUS

    @classmethod
    def at_cell(cls, grid, cell: tuple[int, int], radius: float = ENDPOINT_RADIUS) -> "Landmark":
        x, y = grid.grid_to_world(cell[0], cell[1])
        return cls((int(cell[0]), int(cell[1])), x, y, radius)

    def distance_to(self, x: float, y: float) -> float:
        return math.hypot(self.x - x, self.y - y)


def plan_path(grid, start: tuple[int, int], goal: tuple[int, int], rules: MovementRules = EIGHT_WAY) -> Optional[list]:
    """A* on the occupancy grid, with timing recorded in perf_stats."""
    t0 = time.perf_counter()
    path = find_path(grid, start, goal, rules)
    dt_ms = (time.perf_counter() - t0) * 1000.0
    perf_stats.pathfinding.calls += 1
    perf_stats.pathfinding.total_ms += dt_ms
    if path is None:
        perf_stats.pathfinding.failures += 1
    return path


def step_towards(x: float, y: float, tx: float, ty: float, speed: float, dt: float) -> tuple[float, float, bool]:
    """Move a point towards (tx, ty) at `speed` pixels per 1/60 s. Returns (x, y, reached)."""
    dx = tx - x
    dy = ty - y
    dist = math.sqrt(dx * dx + dy * dy)
    if dist < 1e-6:
        return tx, ty, True
    move_dist = speed * dt * 60
    if move_dist >= dist:
        return tx, ty, True
    return x + (dx / dist) * move_dist, y + (dy / dist) * move_dist, False
