"""
Parameterized A* pathfinding.

One search routine serves both map generation (4-way, Manhattan) and live creep
navigation (8-way, Euclidean, no corner cutting). The difference lives entirely in
`MovementRules`.

`grid` is anything with `is_cell_occupied(x, y) -> bool` that answers True out of bounds
(`OccupancyGrid`, `GameMap`).
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Optional

Cell = tuple[int, int]


def manhattan(a: Cell, b: Cell) -> float:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def euclidean(a: Cell, b: Cell) -> float:
    return math.sqrt((a[0] - b[0]) ** 2 + (a[1] - b[1]) ** 2)


class TieBreak(Enum):
    FIRST = auto()  # earliest-inserted node among equal f wins
    LAST = auto()  # latest-inserted node among equal f wins


# Order matters: it decides which of several equal-cost paths comes back.
ORTHOGONAL = ((0, -1), (1, 0), (0, 1), (-1, 0))  # up, right, down, left
DIAGONAL = ((1, -1), (1, 1), (-1, 1), (-1, -1))  # up-right, down-right, down-left, up-left


@dataclass(frozen=True)
class MovementRules:
    directions: tuple[Cell, ...] = ORTHOGONAL + DIAGONAL
    heuristic: Callable[[Cell, Cell], float] = euclidean
    avoid_corner_cutting: bool = True
    tie_break: TieBreak = TieBreak.FIRST


EIGHT_WAY = MovementRules()
FOUR_WAY = MovementRules(directions=ORTHOGONAL, heuristic=manhattan, avoid_corner_cutting=False)


def get_neighbors(pos: Cell, grid, rules: MovementRules) -> list[Cell]:
    """Get walkable neighbor cells of `pos` in `rules.directions` order."""
    x, y = pos
    neighbors = []
    for dx, dy in rules.directions:
        nx, ny = x + dx, y + dy
        if grid.is_cell_occupied(nx, ny):
            continue
        if dx != 0 and dy != 0 and rules.avoid_corner_cutting:
            # Only allow a diagonal if both orthogonal cells it slips between are open.
            if grid.is_cell_occupied(x + dx, y) or grid.is_cell_occupied(x, y + dy):
                continue
        neighbors.append((nx, ny))
    return neighbors


def _pick_current(open_list: list[Cell], f_score: dict[Cell, float], tie_break: TieBreak) -> int:
    best = 0
    for i in range(1, len(open_list)):
        f = f_score[open_list[i]]
        best_f = f_score[open_list[best]]
        if f < best_f or (tie_break is TieBreak.LAST and f == best_f):
            best = i
    return best


def find_path(grid, start: Cell, goal: Cell, rules: MovementRules = EIGHT_WAY) -> Optional[list[Cell]]:
    """
    Find a path from start to goal using A*.

    Every step costs 1, diagonals included. The open list is scanned linearly, so ties
    resolve by insertion order and the result is fully deterministic.

    Returns:
        List of (x, y) cells from start to goal inclusive, or None when the goal is out of
        bounds, occupied, or unreachable. `start == goal` returns `[start]`.
    """
    start = (int(start[0]), int(start[1]))
    goal = (int(goal[0]), int(goal[1]))
    if start == goal:
        return [start]
    if grid.is_cell_occupied(goal[0], goal[1]):
        return None
    cols = getattr(grid, "cols", None)
    rows = getattr(grid, "rows", None)
    if cols is not None and rows is not None:
        if not (0 <= start[0] < cols and 0 <= start[1] < rows):
            return None

    open_list = [start]
    open_set = {start}
    closed: set[Cell] = set()
    came_from: dict[Cell, Cell] = {}
    g_score = {start: 0}
    f_score = {start: rules.heuristic(start, goal)}

    while open_list:
        current = open_list.pop(_pick_current(open_list, f_score, rules.tie_break))
        open_set.discard(current)

        if current == goal:
            path = [current]
            while current in came_from:
                current = came_from[current]
                path.append(current)
            path.reverse()
            return path

        closed.add(current)
        for neighbor in get_neighbors(current, grid, rules):
            if neighbor in closed:
                continue
            tentative_g = g_score[current] + 1
            if neighbor not in open_set or tentative_g < g_score[neighbor]:
                came_from[neighbor] = current
                g_score[neighbor] = tentative_g
                f_score[neighbor] = tentative_g + rules.heuristic(neighbor, goal)
                if neighbor not in open_set:
                    open_list.append(neighbor)
                    open_set.add(neighbor)

    return None
