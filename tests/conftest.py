"""Shared fixtures: hand-built open maps and small simulation worlds."""

from __future__ import annotations

import os
import random
from types import SimpleNamespace

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import pytest

from scrapline.engine import GameEngine
from scrapline.grid import OccupancyGrid
from scrapline.mapgen import GameMap, TileType
from scrapline.sim.timebase import set_sim_now_ms
from scrapline.systems.navigation import Landmark
from scrapline.systems.registry import EntityRegistry


def _build_map(cols: int = 12, rows: int = 8, start=None, end=None, obstacles=()) -> GameMap:
    start = start if start is not None else (0, rows // 2)
    end = end if end is not None else (cols - 1, rows // 2)
    game_map = GameMap(cols, rows, [start], [end])
    for x, y in obstacles:
        game_map.tiles[y][x] = TileType.OBSTACLE
    game_map.valid = True
    return game_map


@pytest.fixture(autouse=True)
def _sim_clock():
    set_sim_now_ms(0)
    yield
    set_sim_now_ms(None)


@pytest.fixture
def make_map():
    """Factory for all-floor maps with optional obstacle cells."""
    return _build_map


@pytest.fixture
def make_world():
    """Factory for a grid + registries + home point, without an engine."""

    def _make(cols: int = 12, rows: int = 8, obstacles=(), seed: int = 1):
        game_map = _build_map(cols, rows, obstacles=obstacles)
        grid = OccupancyGrid(game_map)
        return SimpleNamespace(
            game_map=game_map,
            grid=grid,
            creeps=EntityRegistry("creep_id"),
            structures=EntityRegistry("structure_id"),
            spawn=Landmark.at_cell(grid, game_map.start_points[0]),
            home=Landmark.at_cell(grid, game_map.end_points[0]),
            rng=random.Random(seed),
        )

    return _make


@pytest.fixture
def engine():
    """Engine on a fixed 20x10 open map: spawn (0, 5), home (19, 5)."""
    return GameEngine(seed=11, game_map=_build_map(20, 10), starting_scraps=500, starting_lives=10)
