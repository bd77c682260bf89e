"""Unit tests for the parameterized A* pathfinder."""

from __future__ import annotations

import pytest

from scrapline.grid import OccupancyGrid
from scrapline.systems import perf_stats
from scrapline.systems.navigation import plan_path
from scrapline.systems.pathfinding import (
    EIGHT_WAY,
    FOUR_WAY,
    MovementRules,
    ORTHOGONAL,
    TieBreak,
    euclidean,
    find_path,
    manhattan,
)


pytestmark = pytest.mark.unit


def _is_adjacent_step(a, b) -> bool:
    return max(abs(a[0] - b[0]), abs(a[1] - b[1])) == 1


class TestFindPathBasics:
    """Start/goal edge cases and simple open-field routes."""

    def test_start_equals_goal(self, make_map):
        grid = OccupancyGrid(make_map(5, 5))
        assert find_path(grid, (2, 2), (2, 2)) == [(2, 2)]

    def test_occupied_goal_returns_none(self, make_map):
        grid = OccupancyGrid(make_map(5, 5, obstacles=[(3, 3)]))
        assert find_path(grid, (0, 0), (3, 3)) is None

    def test_out_of_bounds_goal_returns_none(self, make_map):
        grid = OccupancyGrid(make_map(5, 5))
        assert find_path(grid, (0, 0), (5, 0)) is None
        assert find_path(grid, (0, 0), (-1, 2)) is None

    def test_out_of_bounds_start_returns_none(self, make_map):
        grid = OccupancyGrid(make_map(5, 5))
        assert find_path(grid, (-1, 0), (3, 3)) is None

    def test_straight_line_includes_start_and_goal(self, make_map):
        grid = OccupancyGrid(make_map(5, 5))
        assert find_path(grid, (0, 0), (3, 0)) == [(0, 0), (1, 0), (2, 0), (3, 0)]

    def test_diagonal_route_uses_diagonal_steps(self, make_map):
        grid = OccupancyGrid(make_map(5, 5))
        path = find_path(grid, (0, 0), (3, 3))
        assert path == [(0, 0), (1, 1), (2, 2), (3, 3)]

    def test_every_step_is_adjacent_and_walkable(self, make_map):
        grid = OccupancyGrid(make_map(10, 6, obstacles=[(4, y) for y in range(0, 5)]))
        path = find_path(grid, (0, 0), (9, 0))
        assert path is not None
        assert path[0] == (0, 0) and path[-1] == (9, 0)
        for a, b in zip(path, path[1:]):
            assert _is_adjacent_step(a, b)
            assert not grid.is_cell_occupied(*b)
        # The only gap in the wall is at the bottom row.
        assert (4, 5) in path

    def test_walled_off_goal_returns_none(self, make_map):
        grid = OccupancyGrid(make_map(6, 4, obstacles=[(3, y) for y in range(4)]))
        assert find_path(grid, (0, 0), (5, 0)) is None

    def test_occupied_start_can_still_escape(self, make_map):
        grid = OccupancyGrid(make_map(5, 5))
        grid.reserve(0, 0, 1, 1, structure_id=9)
        path = find_path(grid, (0, 0), (2, 0))
        assert path == [(0, 0), (1, 0), (2, 0)]


class TestMovementRules:
    """Corner cutting, direction sets and tie-breaking."""

    def test_no_diagonal_past_a_blocked_corner(self, make_map):
        grid = OccupancyGrid(make_map(4, 4, obstacles=[(1, 0)]))
        assert find_path(grid, (0, 0), (1, 1)) == [(0, 0), (0, 1), (1, 1)]

    def test_corner_cutting_allowed_when_disabled(self, make_map):
        grid = OccupancyGrid(make_map(4, 4, obstacles=[(1, 0)]))
        rules = MovementRules(avoid_corner_cutting=False)
        assert find_path(grid, (0, 0), (1, 1), rules) == [(0, 0), (1, 1)]

    def test_four_way_never_moves_diagonally(self, make_map):
        grid = OccupancyGrid(make_map(6, 6))
        path = find_path(grid, (0, 0), (4, 3), FOUR_WAY)
        assert len(path) == 8
        for a, b in zip(path, path[1:]):
            assert abs(a[0] - b[0]) + abs(a[1] - b[1]) == 1

    def test_tie_break_first_prefers_earliest_direction(self, make_map):
        grid = OccupancyGrid(make_map(5, 5))
        path = find_path(grid, (0, 0), (2, 2), FOUR_WAY)
        assert len(path) == 5
        assert path[1] == (1, 0)

    def test_tie_break_last_prefers_latest_insert(self, make_map):
        grid = OccupancyGrid(make_map(5, 5))
        rules = MovementRules(directions=ORTHOGONAL, heuristic=manhattan, tie_break=TieBreak.LAST)
        path = find_path(grid, (0, 0), (2, 2), rules)
        assert len(path) == 5
        assert path[1] == (0, 1)

    def test_repeated_calls_are_identical(self, make_map):
        obstacles = [(3, 1), (3, 2), (3, 3), (6, 4), (6, 5), (6, 6), (1, 5)]
        grid = OccupancyGrid(make_map(10, 8, obstacles=obstacles))
        first = find_path(grid, (0, 4), (9, 4))
        for _ in range(5):
            assert find_path(grid, (0, 4), (9, 4)) == first

    def test_heuristics(self):
        assert manhattan((0, 0), (3, 4)) == 7
        assert euclidean((0, 0), (3, 4)) == pytest.approx(5.0)
        assert EIGHT_WAY.heuristic is euclidean
        assert FOUR_WAY.heuristic is manhattan


class TestPlanPathStats:
    """plan_path wraps find_path and feeds perf counters."""

    def test_counts_calls_and_failures(self, make_map):
        perf_stats.reset_pathfinding()
        grid = OccupancyGrid(make_map(6, 4, obstacles=[(3, y) for y in range(4)]))
        assert plan_path(grid, (0, 0), (2, 0)) is not None
        assert plan_path(grid, (0, 0), (5, 0)) is None
        assert perf_stats.pathfinding.calls == 2
        assert perf_stats.pathfinding.failures == 1
        assert perf_stats.pathfinding.total_ms >= 0.0
