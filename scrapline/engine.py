"""
Simulation engine - owns the session state and runs the fixed tick order.

Rendering and input live outside; hosts read `snapshot()` / `get_game_state()` and push
back placement, sale, upgrade and wave commands.
"""
from __future__ import annotations

import copy
import math
from typing import Optional

from loguru import logger

from config import (
    SIM_SEED, MAP_COLS, MAP_ROWS, SPAWN_POINTS, HOME_POINTS,
    MAP_OBSTACLE_DENSITY, MAP_MAX_ATTEMPTS,
    STARTING_SCRAPS, STARTING_LIVES,
    STRUCTURE_STATS, SAFE_PLACEMENT_DISTANCE, UPGRADE_MULTIPLIERS,
)
from scrapline.entities.creep import Creep
from scrapline.entities.structure import Structure
from scrapline.grid import OccupancyGrid
from scrapline.mapgen import GameMap, MapGenerator
from scrapline.sim.contracts import GameSnapshot
from scrapline.sim.determinism import get_rng, set_sim_seed
from scrapline.sim.timebase import set_sim_now_ms
from scrapline.systems.economy import EconomySystem
from scrapline.systems.navigation import Landmark
from scrapline.systems.registry import EntityRegistry
from scrapline.systems.spawner import WaveSpawner


class GameEngine:
    """
    One tower-defense session.

    Pass `game_map` to play on a fixed layout (restarts reuse a fresh copy of it);
    otherwise maps come from a seeded `MapGenerator`.
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        *,
        game_map: Optional[GameMap] = None,
        map_cols: int = MAP_COLS,
        map_rows: int = MAP_ROWS,
        spawn_points: Optional[list] = None,
        home_points: Optional[list] = None,
        obstacle_density: float = MAP_OBSTACLE_DENSITY,
        starting_scraps: int = STARTING_SCRAPS,
        starting_lives: int = STARTING_LIVES,
    ):
        # Seed first so map generation and the wave mix are reproducible.
        self.seed = SIM_SEED if seed is None else int(seed)
        set_sim_seed(self.seed)
        self.map_rng = get_rng("map_gen")
        self.wave_rng = get_rng("wave_spawner")
        self.creep_rng = get_rng("creeps")

        self._map_template = copy.deepcopy(game_map) if game_map is not None else None
        self.generator = MapGenerator(
            map_cols,
            map_rows,
            spawn_points if spawn_points is not None else SPAWN_POINTS,
            home_points if home_points is not None else HOME_POINTS,
            obstacle_density,
            MAP_MAX_ATTEMPTS,
            rng=self.map_rng,
        )
        self.economy = EconomySystem(starting_scraps, starting_lives)
        self.spawner = WaveSpawner(self._make_creep, rng=self.wave_rng)
        self._new_session()

    def _new_session(self):
        if self._map_template is not None:
            self.game_map = copy.deepcopy(self._map_template)
        else:
            self.game_map = self.generator.generate()
        self.grid = OccupancyGrid(self.game_map)
        self.spawns = [Landmark.at_cell(self.grid, p) for p in self.game_map.start_points]
        # Creeps all head for the first home point.
        self.home = Landmark.at_cell(self.grid, self.game_map.end_points[0])

        self.creeps = EntityRegistry("creep_id")
        self.structures = EntityRegistry("structure_id")
        self.economy.reset()
        self.spawner.reset()
        self.game_over = False
        self.sim_now_ms = 0
        set_sim_now_ms(self.sim_now_ms)

    def restart(self):
        """Throw away the session and start over on a new map (or a fresh copy of the fixed one)."""
        logger.info(f"Restarting (wave reached: {self.spawner.wave_reached})")
        self._new_session()

    # -- wiring -----------------------------------------------------------

    def _make_creep(self, creep_type: str, base_health: int, wave_number: int) -> Creep:
        spawn = self.spawns[self.spawner.total_spawned % len(self.spawns)]
        return Creep(
            spawn.x, spawn.y, self.grid, self.structures, self.home,
            creep_type, base_health, rng=self.creep_rng,
        )

    def _invalidate_all_paths(self):
        for creep in self.creeps:
            creep.invalidate_path()

    def _resolve_structure(self, structure_or_id) -> Optional[Structure]:
        if isinstance(structure_or_id, Structure):
            structure_or_id = structure_or_id.structure_id
        return self.structures.get(structure_or_id)

    def _remove_structure(self, structure: Structure):
        w, h = structure.size
        self.grid.release(structure.grid_x, structure.grid_y, w, h)
        self.structures.remove(structure)

    def _too_close_to_endpoints(self, cell_x: int, cell_y: int, w: int, h: int) -> bool:
        # Any footprint cell center inside a landmark's keep-out circle rejects the placement.
        for gy in range(cell_y, cell_y + h):
            for gx in range(cell_x, cell_x + w):
                cx, cy = self.grid.grid_to_world(gx, gy)
                for landmark in self.spawns + [self.home]:
                    if landmark.distance_to(cx, cy) < landmark.radius + SAFE_PLACEMENT_DISTANCE:
                        return True
        return False

    # -- commands ---------------------------------------------------------

    def can_place_structure(self, cell_x: int, cell_y: int, structure_type: str) -> bool:
        if self.game_over or structure_type not in STRUCTURE_STATS:
            return False
        w, h = STRUCTURE_STATS[structure_type]["size"]
        if not self.economy.can_afford_structure(structure_type):
            return False
        if not self.grid.can_place_footprint(cell_x, cell_y, w, h):
            return False
        return not self._too_close_to_endpoints(cell_x, cell_y, w, h)

    def place_structure(self, cell_x: int, cell_y: int, structure_type: str) -> bool:
        """Validate, pay for and place a structure. Every live creep replans afterwards."""
        if not self.can_place_structure(cell_x, cell_y, structure_type):
            return False
        structure = Structure(cell_x, cell_y, structure_type, self.creeps, self.grid.cell_size)
        structure_id = self.structures.add(structure)
        w, h = structure.size
        self.grid.reserve(cell_x, cell_y, w, h, structure_id)
        self.economy.buy_structure(structure_type)
        self._invalidate_all_paths()
        logger.debug(f"Placed {structure_type} #{structure_id} at ({cell_x}, {cell_y})")
        return True

    def remove_structure(self, structure_or_id) -> int:
        """Sell a structure for half its cost. Unknown or already-gone structures refund 0."""
        if self.game_over:
            return 0
        structure = self._resolve_structure(structure_or_id)
        if structure is None:
            return 0
        self._remove_structure(structure)
        refund = self.economy.refund_structure(structure.structure_type, structure.cost)
        self._invalidate_all_paths()
        logger.debug(f"Sold {structure.structure_type} #{structure.structure_id} for {refund}")
        return refund

    def structure_at(self, cell_x: int, cell_y: int) -> Optional[Structure]:
        return self.structures.get(self.grid.structure_id_at(cell_x, cell_y))

    def upgrade_structure(self, structure_or_id, stat: str) -> bool:
        if self.game_over or stat not in UPGRADE_MULTIPLIERS:
            return False
        structure = self._resolve_structure(structure_or_id)
        if structure is None or not structure.is_upgradable:
            return False
        if stat == "range" and math.isinf(structure.range):
            return False
        if not self.economy.buy_upgrade(stat, structure.structure_id):
            return False
        return structure.apply_upgrade(stat)

    def start_next_wave(self) -> bool:
        if self.game_over:
            return False
        if not self.spawner.start_next_wave():
            return False
        logger.info(f"Wave {self.spawner.wave_number} started ({self.spawner.creeps_to_spawn} creeps)")
        return True

    # -- tick -------------------------------------------------------------

    def update(self, dt: float):
        """Advance the simulation by `dt` seconds."""
        if self.game_over:
            return
        self.sim_now_ms += int(round(float(dt) * 1000.0))
        set_sim_now_ms(self.sim_now_ms)

        for structure in self.structures:
            structure.update(dt)

        scrappers = [s for s in self.structures.alive() if s.is_scrapper]
        self.economy.update_scrappers(dt, scrappers, self.spawner.wave_active)

        for creep in self.creeps:
            creep.update(dt)

        destroyed = [s for s in self.structures if s.is_destroyed]
        for structure in destroyed:
            self._remove_structure(structure)
        if destroyed:
            self._invalidate_all_paths()

        self._sweep_dead_creeps()

        if self.spawner.check_completion(len(self.creeps.alive())):
            bonus = self.economy.reward_wave(self.spawner.wave_number)
            logger.info(f"Wave {self.spawner.wave_number} complete (+{bonus} scraps)")

        if self.economy.is_game_over:
            self.game_over = True
            logger.info(f"Game over at wave {self.spawner.wave_number}")
            return

        for creep in self.spawner.update(dt):
            self.creeps.add(creep)

    def _sweep_dead_creeps(self):
        for creep in reversed(list(self.creeps)):
            if creep.is_alive:
                continue
            self.creeps.remove(creep)
            if creep.reached_goal:
                self.economy.lose_life()
                continue
            self.economy.reward_kill(self.spawner.wave_number, creep.creep_type)
            for child in creep.split_children():
                self.creeps.add(child)

    # -- views ------------------------------------------------------------

    @property
    def alive_creeps(self) -> list:
        return self.creeps.alive()

    def snapshot(self) -> GameSnapshot:
        return GameSnapshot(
            sim_now_ms=self.sim_now_ms,
            wave_number=self.spawner.wave_number,
            wave_active=self.spawner.wave_active,
            wave_reached=self.spawner.wave_reached,
            creeps_to_spawn=self.spawner.creeps_to_spawn,
            scraps=self.economy.scraps,
            lives=self.economy.lives,
            game_over=self.game_over,
            creeps=[c.to_snapshot() for c in self.creeps.alive()],
            structures=[s.to_snapshot() for s in self.structures.alive()],
        )

    def get_game_state(self) -> dict:
        """Get current game state for hosts and tooling."""
        return {
            "scraps": self.economy.scraps,
            "lives": self.economy.lives,
            "wave": self.spawner.wave_number,
            "wave_active": self.spawner.wave_active,
            "wave_reached": self.spawner.wave_reached,
            "creeps_to_spawn": self.spawner.creeps_to_spawn,
            "creeps": self.creeps.alive(),
            "structures": self.structures.alive(),
            "game_over": self.game_over,
            "economy": self.economy,
            "grid": self.grid,
            "game_map": self.game_map,
            "home": self.home,
            "spawns": self.spawns,
        }
