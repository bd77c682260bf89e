"""Unit tests for OccupancyGrid: cell occupancy, footprints, coordinate conversion."""

from __future__ import annotations

import pytest

from scrapline.grid import OccupancyGrid


pytestmark = pytest.mark.unit


def _occupancy(grid: OccupancyGrid) -> list:
    return [[(c.occupied, c.is_obstacle, c.structure_id) for c in row] for row in grid.cells]


class TestOccupancy:
    def test_out_of_bounds_is_occupied(self, make_map):
        grid = OccupancyGrid(make_map(6, 4))
        assert grid.is_cell_occupied(-1, 0)
        assert grid.is_cell_occupied(0, -1)
        assert grid.is_cell_occupied(6, 0)
        assert grid.is_cell_occupied(0, 4)
        assert grid.get_cell(6, 0) is None

    def test_obstacles_start_occupied(self, make_map):
        grid = OccupancyGrid(make_map(6, 4, obstacles=[(2, 1)]))
        cell = grid.get_cell(2, 1)
        assert cell.occupied and cell.is_obstacle
        assert not grid.is_cell_occupied(3, 1)
        assert grid.occupied_cells() == {(2, 1)}

    def test_dimensions_follow_map(self, make_map):
        grid = OccupancyGrid(make_map(7, 3))
        assert (grid.cols, grid.rows) == (7, 3)
        assert len(grid.cells) == 3 and len(grid.cells[0]) == 7


class TestFootprints:
    def test_reserve_then_release_restores_grid(self, make_map):
        grid = OccupancyGrid(make_map(8, 6, obstacles=[(0, 0), (7, 5)]))
        before = _occupancy(grid)
        assert grid.reserve(3, 2, 2, 2, structure_id=4)
        assert grid.structure_id_at(4, 3) == 4
        assert grid.is_cell_occupied(3, 2)
        grid.release(3, 2, 2, 2)
        assert _occupancy(grid) == before

    def test_reserve_is_all_or_nothing(self, make_map):
        grid = OccupancyGrid(make_map(8, 6, obstacles=[(4, 3)]))
        before = _occupancy(grid)
        assert not grid.reserve(3, 2, 2, 2, structure_id=1)
        assert _occupancy(grid) == before

    def test_reserve_refuses_overlap(self, make_map):
        grid = OccupancyGrid(make_map(8, 6))
        assert grid.reserve(2, 2, 2, 2, structure_id=1)
        assert not grid.can_place_footprint(3, 3, 2, 2)
        assert not grid.reserve(3, 3, 2, 2, structure_id=2)
        assert grid.structure_id_at(3, 3) == 1

    def test_footprint_partly_out_of_bounds(self, make_map):
        grid = OccupancyGrid(make_map(8, 6))
        assert not grid.can_place_footprint(7, 0, 2, 2)
        assert not grid.can_place_footprint(0, 5, 1, 2)
        assert grid.can_place_footprint(6, 4, 2, 2)

    def test_empty_footprint_rejected(self, make_map):
        grid = OccupancyGrid(make_map(8, 6))
        assert not grid.can_place_footprint(1, 1, 0, 2)

    def test_release_never_clears_obstacles(self, make_map):
        grid = OccupancyGrid(make_map(8, 6, obstacles=[(3, 3)]))
        grid.release(2, 2, 3, 3)
        assert grid.is_cell_occupied(3, 3)
        assert grid.get_cell(3, 3).is_obstacle

    def test_release_out_of_bounds_is_ignored(self, make_map):
        grid = OccupancyGrid(make_map(4, 4))
        grid.release(3, 3, 3, 3)
        assert grid.occupied_cells() == set()


class TestCoordinates:
    def test_grid_to_world_is_cell_center(self, make_map):
        grid = OccupancyGrid(make_map(8, 6), cell_size=30)
        assert grid.grid_to_world(2, 3) == (75.0, 105.0)

    def test_world_to_grid_round_trip(self, make_map):
        grid = OccupancyGrid(make_map(8, 6), cell_size=30)
        for cell in [(0, 0), (2, 3), (7, 5)]:
            assert grid.world_to_grid(*grid.grid_to_world(*cell)) == cell

    def test_world_to_grid_floors(self, make_map):
        grid = OccupancyGrid(make_map(8, 6), cell_size=30)
        assert grid.world_to_grid(29.9, 30.0) == (0, 1)
        assert grid.world_to_grid(-0.5, 10) == (-1, 0)
