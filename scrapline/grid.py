"""
Occupancy grid: the single source of truth for which cells block movement and building.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional

from config import TILE_SIZE
from scrapline.mapgen import GameMap, TileType


@dataclass(slots=True)
class Cell:
    x: int
    y: int
    occupied: bool = False
    is_obstacle: bool = False
    # Owning structure, as an id (never a live reference).
    structure_id: Optional[int] = None


class OccupancyGrid:
    """
    Per-cell occupancy over a generated map.

    Obstacles are occupied from the start and stay that way. Structure footprints toggle
    `occupied` through reserve/release; terrain never changes after construction.
    Out-of-bounds queries always read as occupied.
    """

    def __init__(self, game_map: GameMap, cell_size: int = TILE_SIZE):
        self.game_map = game_map
        self.cols = game_map.width
        self.rows = game_map.height
        self.cell_size = cell_size
        self.cells = []
        for y in range(self.rows):
            row = []
            for x in range(self.cols):
                obstacle = game_map.get_tile(x, y) == TileType.OBSTACLE
                row.append(Cell(x, y, occupied=obstacle, is_obstacle=obstacle))
            self.cells.append(row)

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.cols and 0 <= y < self.rows

    def get_cell(self, x: int, y: int) -> Optional[Cell]:
        if self.in_bounds(x, y):
            return self.cells[y][x]
        return None

    def is_cell_occupied(self, x: int, y: int) -> bool:
        cell = self.get_cell(x, y)
        return True if cell is None else cell.occupied

    def _footprint(self, x: int, y: int, w: int, h: int) -> Iterator[tuple[int, int]]:
        for cy in range(y, y + h):
            for cx in range(x, x + w):
                yield cx, cy

    def can_place_footprint(self, x: int, y: int, w: int, h: int) -> bool:
        """True if every cell of the w×h footprint at (x, y) is in bounds and free."""
        if w <= 0 or h <= 0:
            return False
        return not any(self.is_cell_occupied(cx, cy) for cx, cy in self._footprint(x, y, w, h))

    def reserve(self, x: int, y: int, w: int, h: int, structure_id: Optional[int] = None) -> bool:
        """Mark a footprint occupied. All-or-nothing: returns False and changes nothing if any cell is taken."""
        if not self.can_place_footprint(x, y, w, h):
            return False
        for cx, cy in self._footprint(x, y, w, h):
            cell = self.cells[cy][cx]
            cell.occupied = True
            cell.structure_id = structure_id
        return True

    def release(self, x: int, y: int, w: int, h: int) -> None:
        """Free a footprint. Obstacle cells and out-of-bounds cells are left alone."""
        for cx, cy in self._footprint(x, y, w, h):
            cell = self.get_cell(cx, cy)
            if cell is None or cell.is_obstacle:
                continue
            cell.occupied = False
            cell.structure_id = None

    def structure_id_at(self, x: int, y: int) -> Optional[int]:
        cell = self.get_cell(x, y)
        return None if cell is None else cell.structure_id

    def occupied_cells(self) -> set[tuple[int, int]]:
        return {(c.x, c.y) for row in self.cells for c in row if c.occupied}

    def world_to_grid(self, world_x: float, world_y: float) -> tuple[int, int]:
        """Convert world coordinates to grid coordinates."""
        return int(world_x // self.cell_size), int(world_y // self.cell_size)

    def grid_to_world(self, grid_x: int, grid_y: int) -> tuple[float, float]:
        """World coordinates of a cell's center."""
        return (
            grid_x * self.cell_size + self.cell_size / 2,
            grid_y * self.cell_size + self.cell_size / 2,
        )
