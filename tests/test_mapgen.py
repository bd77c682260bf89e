"""Unit tests for MapGenerator: connectivity, keep-clear zones, determinism, fallback."""

from __future__ import annotations

import pytest

from scrapline.mapgen import GameMap, MapGenerator, TileType
from scrapline.sim.determinism import get_rng
from scrapline.systems import perf_stats


pytestmark = pytest.mark.unit


def _make_generator(width=30, height=20, density=0.3, seed=1, **kwargs) -> MapGenerator:
    start = kwargs.pop("start_points", [(0, height // 2)])
    end = kwargs.pop("end_points", [(width - 1, height // 2)])
    return MapGenerator(
        width, height, start, end, density, kwargs.pop("max_attempts", 10),
        rng=get_rng("map_gen", seed=seed), **kwargs,
    )


class TestGeneratorArguments:
    def test_rejects_non_positive_size(self):
        with pytest.raises(ValueError):
            MapGenerator(0, 10)
        with pytest.raises(ValueError):
            MapGenerator(10, -1)

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            MapGenerator(10, 10, max_attempts=0)

    def test_density_is_clamped(self):
        assert MapGenerator(10, 10, obstacle_density=3.0).obstacle_density == 1.0
        assert MapGenerator(10, 10, obstacle_density=-1).obstacle_density == 0.0


class TestGeneratedMaps:
    @pytest.mark.parametrize("density", [0.0, 0.2, 0.35, 0.5])
    @pytest.mark.parametrize("size", [(10, 10), (30, 20)])
    @pytest.mark.parametrize("seed", [1, 2, 3, 4, 5])
    def test_spawn_reaches_home(self, density, size, seed):
        game_map = _make_generator(size[0], size[1], density, seed).generate()
        assert game_map.valid
        assert game_map.connected_pairs()

    def test_only_floor_and_obstacle_remain(self):
        game_map = _make_generator(density=0.4, seed=9).generate()
        assert game_map.count(TileType.PATH) == 0
        assert game_map.count(TileType.FLOOR) + game_map.count(TileType.OBSTACLE) == 30 * 20

    def test_endpoint_neighborhoods_stay_clear(self):
        for seed in range(1, 6):
            game_map = _make_generator(density=0.5, seed=seed).generate()
            for px, py in game_map.start_points + game_map.end_points:
                for dx in (-1, 0, 1):
                    for dy in (-1, 0, 1):
                        if game_map.in_bounds(px + dx, py + dy):
                            assert game_map.get_tile(px + dx, py + dy) == TileType.FLOOR

    def test_zero_density_has_no_obstacles(self):
        game_map = _make_generator(density=0.0, seed=2).generate()
        assert game_map.count(TileType.OBSTACLE) == 0

    def test_dense_maps_have_obstacles(self):
        counts = [
            _make_generator(density=0.5, seed=seed).generate().count(TileType.OBSTACLE)
            for seed in range(1, 6)
        ]
        assert max(counts) > 0

    def test_same_seed_same_map(self):
        a = _make_generator(seed=5).generate()
        b = _make_generator(seed=5).generate()
        assert a.tiles == b.tiles

    def test_multiple_endpoints(self):
        gen = _make_generator(
            density=0.35, seed=3,
            start_points=[(0, 3), (0, 16)],
            end_points=[(29, 3), (29, 16)],
        )
        game_map = gen.generate()
        assert game_map.valid
        # Repair runs for every pair, so all of them end up connected.
        assert len(game_map.connected_pairs()) == 4


class TestFallback:
    def test_unreachable_endpoint_returns_last_attempt(self):
        perf_stats.reset_mapgen()
        gen = _make_generator(10, 10, 0.3, seed=1, start_points=[(-5, -5)], max_attempts=3)
        game_map = gen.generate()
        assert game_map is not None
        assert game_map.valid is False
        assert game_map.attempts == 3
        assert perf_stats.mapgen.fallbacks == 1
        assert perf_stats.mapgen.attempts == 3

    def test_first_valid_attempt_wins(self):
        game_map = _make_generator(10, 10, 0.2, seed=1).generate()
        assert game_map.attempts == 1


class TestValidityPolicy:
    """One connected start/end pair is enough unless all pairs are required."""

    def _half_blocked_map(self) -> GameMap:
        game_map = GameMap(10, 10, [(0, 1)], [(9, 1), (9, 8)])
        # Box in (9, 8).
        for x, y in [(8, 7), (9, 7), (8, 8), (8, 9), (9, 9)]:
            game_map.tiles[y][x] = TileType.OBSTACLE
        return game_map

    def test_any_pair_is_enough_by_default(self):
        gen = MapGenerator(10, 10, [(0, 1)], [(9, 1), (9, 8)])
        assert gen.is_valid_map(self._half_blocked_map())

    def test_require_all_pairs(self):
        gen = MapGenerator(10, 10, [(0, 1)], [(9, 1), (9, 8)], require_all_pairs=True)
        assert not gen.is_valid_map(self._half_blocked_map())

    def test_no_endpoints_is_invalid(self):
        gen = MapGenerator(10, 10, [], [])
        assert not gen.is_valid_map(GameMap(10, 10, [], []))


class TestGameMap:
    def test_out_of_bounds_reads_as_obstacle(self):
        game_map = GameMap(4, 4, [(0, 0)], [(3, 3)])
        assert game_map.get_tile(-1, 0) == TileType.OBSTACLE
        assert game_map.is_cell_occupied(4, 4)
        assert game_map.is_walkable(1, 1)
