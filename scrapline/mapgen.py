"""
Tile map and procedural map generation.
"""
from __future__ import annotations

import random
from typing import Iterable, Optional

from loguru import logger

from config import (
    MAP_COLS, MAP_ROWS, SPAWN_POINTS, HOME_POINTS,
    MAP_OBSTACLE_DENSITY, MAP_MAX_ATTEMPTS,
    MAPGEN_ROUTES, MAPGEN_WAYPOINTS,
    MAPGEN_CORNER_WEIGHT, MAPGEN_MAX_SEED_PROBABILITY,
    MAPGEN_SMOOTHING_ITERATIONS, MAPGEN_BIRTH_LIMIT, MAPGEN_DEATH_LIMIT,
    MAPGEN_GROWTH_EVERY, MAPGEN_GROWTH_CHANCE,
    MAPGEN_MIN_CLUSTER_SIZE, MAPGEN_PROTRUSION_CHANCE,
)
from scrapline.sim.determinism import get_rng
from scrapline.systems import perf_stats
from scrapline.systems.pathfinding import FOUR_WAY, ORTHOGONAL, DIAGONAL, find_path


class TileType:
    FLOOR = 0
    OBSTACLE = 1
    PATH = 2  # only exists while a map is being generated


NEIGHBORS_8 = ORTHOGONAL + DIAGONAL


class GameMap:
    """A finished tile map plus its spawn (start) and home (end) cells."""

    def __init__(self, width: int, height: int, start_points: list, end_points: list, tiles: list = None):
        self.width = width
        self.height = height
        self.start_points = [tuple(p) for p in start_points]
        self.end_points = [tuple(p) for p in end_points]
        self.tiles = tiles if tiles is not None else [
            [TileType.FLOOR for _ in range(width)] for _ in range(height)
        ]
        # False when generation gave up and handed back its last attempt.
        self.valid = False
        self.attempts = 0

    @property
    def cols(self) -> int:
        return self.width

    @property
    def rows(self) -> int:
        return self.height

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get_tile(self, x: int, y: int) -> int:
        """Get tile type at grid position. Out of bounds reads as an obstacle."""
        if self.in_bounds(x, y):
            return self.tiles[y][x]
        return TileType.OBSTACLE

    def is_cell_occupied(self, x: int, y: int) -> bool:
        return self.get_tile(x, y) == TileType.OBSTACLE

    def is_walkable(self, x: int, y: int) -> bool:
        return not self.is_cell_occupied(x, y)

    def count(self, tile_type: int) -> int:
        return sum(row.count(tile_type) for row in self.tiles)

    def is_connected(self, start: tuple, end: tuple) -> bool:
        return find_path(self, start, end, FOUR_WAY) is not None

    def connected_pairs(self) -> list[tuple[tuple, tuple]]:
        return [
            (s, e)
            for s in self.start_points
            for e in self.end_points
            if self.is_connected(s, e)
        ]


class _OpenField:
    """Bounds-only view of a map, used to route a repair corridor straight through obstacles."""

    def __init__(self, width: int, height: int):
        self.cols = width
        self.rows = height

    def is_cell_occupied(self, x: int, y: int) -> bool:
        return not (0 <= x < self.cols and 0 <= y < self.rows)


class MapGenerator:
    """
    Generates tile maps with guaranteed (or best-effort) spawn-to-home connectivity.

    Each attempt carves a few wandering routes first, then grows organic obstacle blobs
    around them (corner-weighted seeding, cellular-automaton smoothing, noise cleanup,
    edge protrusions), and finally repairs any start/end pair that got cut off.

    `require_all_pairs=False` accepts a map once any one start/end pair is connected.
    """

    def __init__(
        self,
        width: int = MAP_COLS,
        height: int = MAP_ROWS,
        start_points: Optional[Iterable] = None,
        end_points: Optional[Iterable] = None,
        obstacle_density: float = MAP_OBSTACLE_DENSITY,
        max_attempts: int = MAP_MAX_ATTEMPTS,
        *,
        rng: Optional[random.Random] = None,
        require_all_pairs: bool = False,
    ):
        if int(width) <= 0 or int(height) <= 0:
            raise ValueError(f"map size must be positive, got {width}x{height}")
        if int(max_attempts) < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self.width = int(width)
        self.height = int(height)
        self.start_points = [tuple(p) for p in (start_points if start_points is not None else SPAWN_POINTS)]
        self.end_points = [tuple(p) for p in (end_points if end_points is not None else HOME_POINTS)]
        self.obstacle_density = max(0.0, min(1.0, float(obstacle_density)))
        self.max_attempts = int(max_attempts)
        self.require_all_pairs = bool(require_all_pairs)
        # Deterministic map-gen stream (independent of other RNG usage).
        self.rng = rng if rng is not None else get_rng("map_gen")

    def generate(self) -> GameMap:
        """Generate a map. On failure, returns the last attempt with `valid=False`."""
        game_map = None
        for attempt in range(1, self.max_attempts + 1):
            game_map = self._generate_attempt()
            game_map.attempts = attempt
            perf_stats.mapgen.attempts += 1
            if self.is_valid_map(game_map):
                game_map.valid = True
                perf_stats.mapgen.maps += 1
                return game_map

        perf_stats.mapgen.maps += 1
        perf_stats.mapgen.fallbacks += 1
        logger.warning(
            f"Map generation failed after {self.max_attempts} attempts; returning last attempt"
        )
        return game_map

    def is_valid_map(self, game_map: GameMap) -> bool:
        pairs = [(s, e) for s in game_map.start_points for e in game_map.end_points]
        if not pairs:
            return False
        if self.require_all_pairs:
            return all(game_map.is_connected(s, e) for s, e in pairs)
        return any(game_map.is_connected(s, e) for s, e in pairs)

    # -- one attempt ------------------------------------------------------

    def _generate_attempt(self) -> GameMap:
        game_map = GameMap(self.width, self.height, self.start_points, self.end_points)
        self._clear_endpoints(game_map)
        self._carve_routes(game_map)
        self._seed_obstacles(game_map)
        for i in range(MAPGEN_SMOOTHING_ITERATIONS):
            self._smooth(game_map)
            if (i + 1) % MAPGEN_GROWTH_EVERY == 0:
                self._grow_diagonally(game_map)
        self._remove_small_clusters(game_map)
        self._add_protrusions(game_map)
        self._repair_connectivity(game_map)

        for row in game_map.tiles:
            for x, tile in enumerate(row):
                if tile == TileType.PATH:
                    row[x] = TileType.FLOOR
        return game_map

    def _clear_endpoints(self, game_map: GameMap) -> None:
        for px, py in self.start_points + self.end_points:
            for dx in (-1, 0, 1):
                for dy in (-1, 0, 1):
                    if game_map.in_bounds(px + dx, py + dy):
                        game_map.tiles[py + dy][px + dx] = TileType.FLOOR

    def _random_waypoint(self) -> tuple[int, int]:
        rng = self.rng
        x = rng.randint(1, self.width - 2) if self.width > 2 else rng.randrange(self.width)
        y = rng.randint(1, self.height - 2) if self.height > 2 else rng.randrange(self.height)
        return x, y

    def _carve_routes(self, game_map: GameMap) -> None:
        if not self.start_points or not self.end_points:
            return
        rng = self.rng
        for _ in range(rng.randint(*MAPGEN_ROUTES)):
            start = rng.choice(self.start_points)
            end = rng.choice(self.end_points)
            points = [start]
            points.extend(self._random_waypoint() for _ in range(rng.randint(*MAPGEN_WAYPOINTS)))
            points.append(end)

            for a, b in zip(points, points[1:]):
                leg = find_path(game_map, a, b, FOUR_WAY)
                if leg is None:
                    continue
                for x, y in leg:
                    self._mark_path(game_map, x, y)

    def _mark_path(self, game_map: GameMap, x: int, y: int) -> None:
        game_map.tiles[y][x] = TileType.PATH
        for dx, dy in NEIGHBORS_8:
            nx, ny = x + dx, y + dy
            if game_map.in_bounds(nx, ny) and game_map.tiles[ny][nx] != TileType.PATH:
                game_map.tiles[ny][nx] = TileType.FLOOR

    def _is_near_special(self, game_map: GameMap, x: int, y: int) -> bool:
        """True if (x, y) or any 8-neighbor is a path, start or end tile."""
        specials = self.start_points + self.end_points
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                nx, ny = x + dx, y + dy
                if not game_map.in_bounds(nx, ny):
                    continue
                if game_map.tiles[ny][nx] == TileType.PATH or (nx, ny) in specials:
                    return True
        return False

    def _seed_obstacles(self, game_map: GameMap) -> None:
        rng = self.rng
        half_w = max(1.0, (self.width - 1) / 2)
        half_h = max(1.0, (self.height - 1) / 2)
        for y in range(self.height):
            for x in range(self.width):
                if game_map.tiles[y][x] != TileType.FLOOR or self._is_near_special(game_map, x, y):
                    continue
                # 0 at the center axes, 1 in the corners.
                corner = abs((x - half_w) / half_w) * abs((y - half_h) / half_h)
                chance = min(
                    MAPGEN_MAX_SEED_PROBABILITY,
                    self.obstacle_density * (1.0 + MAPGEN_CORNER_WEIGHT * corner),
                )
                if rng.random() < chance:
                    game_map.tiles[y][x] = TileType.OBSTACLE

    def _obstacle_neighbors(self, game_map: GameMap, x: int, y: int) -> int:
        count = 0
        for dx, dy in NEIGHBORS_8:
            nx, ny = x + dx, y + dy
            if game_map.in_bounds(nx, ny) and game_map.tiles[ny][nx] == TileType.OBSTACLE:
                count += 1
        return count

    def _smooth(self, game_map: GameMap) -> None:
        # Double buffered: every count reads the previous generation.
        nxt = [row[:] for row in game_map.tiles]
        for y in range(self.height):
            for x in range(self.width):
                tile = game_map.tiles[y][x]
                count = self._obstacle_neighbors(game_map, x, y)
                if tile == TileType.FLOOR and count > MAPGEN_BIRTH_LIMIT:
                    if not self._is_near_special(game_map, x, y):
                        nxt[y][x] = TileType.OBSTACLE
                elif tile == TileType.OBSTACLE and count < MAPGEN_DEATH_LIMIT:
                    nxt[y][x] = TileType.FLOOR
        game_map.tiles = nxt

    def _obstacle_cells(self, game_map: GameMap) -> list[tuple[int, int]]:
        return [
            (x, y)
            for y in range(self.height)
            for x in range(self.width)
            if game_map.tiles[y][x] == TileType.OBSTACLE
        ]

    def _grow_diagonally(self, game_map: GameMap) -> None:
        rng = self.rng
        for x, y in self._obstacle_cells(game_map):
            if rng.random() >= MAPGEN_GROWTH_CHANCE:
                continue
            dx, dy = rng.choice(DIAGONAL)
            nx, ny = x + dx, y + dy
            if (
                game_map.in_bounds(nx, ny)
                and game_map.tiles[ny][nx] == TileType.FLOOR
                and not self._is_near_special(game_map, nx, ny)
            ):
                game_map.tiles[ny][nx] = TileType.OBSTACLE

    def _remove_small_clusters(self, game_map: GameMap) -> None:
        seen: set[tuple[int, int]] = set()
        for cell in self._obstacle_cells(game_map):
            if cell in seen:
                continue
            cluster = []
            stack = [cell]
            seen.add(cell)
            while stack:
                x, y = stack.pop()
                cluster.append((x, y))
                for dx, dy in ORTHOGONAL:
                    n = (x + dx, y + dy)
                    if n in seen or not game_map.in_bounds(*n):
                        continue
                    if game_map.tiles[n[1]][n[0]] == TileType.OBSTACLE:
                        seen.add(n)
                        stack.append(n)
            if len(cluster) < MAPGEN_MIN_CLUSTER_SIZE:
                for x, y in cluster:
                    game_map.tiles[y][x] = TileType.FLOOR

    def _add_protrusions(self, game_map: GameMap) -> None:
        rng = self.rng
        for x, y in self._obstacle_cells(game_map):
            open_dirs = [
                (dx, dy) for dx, dy in ORTHOGONAL
                if game_map.in_bounds(x + dx, y + dy) and game_map.tiles[y + dy][x + dx] == TileType.FLOOR
            ]
            if not open_dirs or rng.random() >= MAPGEN_PROTRUSION_CHANCE:
                continue
            dx, dy = rng.choice(open_dirs)
            nx, ny = x, y
            for _ in range(rng.randint(1, 2)):
                nx, ny = nx + dx, ny + dy
                if (
                    not game_map.in_bounds(nx, ny)
                    or game_map.tiles[ny][nx] != TileType.FLOOR
                    or self._is_near_special(game_map, nx, ny)
                ):
                    break
                game_map.tiles[ny][nx] = TileType.OBSTACLE

    def _repair_connectivity(self, game_map: GameMap) -> None:
        field = _OpenField(self.width, self.height)
        for start in self.start_points:
            for end in self.end_points:
                if game_map.is_connected(start, end):
                    continue
                route = find_path(field, start, end, FOUR_WAY)
                if route is None:
                    continue
                for x, y in route:
                    self._mark_path(game_map, x, y)
