"""
Creep (hostile unit) entities.
"""
import math
from enum import Enum, auto

from loguru import logger

from config import (
    BASE_CREEP_HEALTH, BASE_CREEP_SPEED, BASE_CREEP_RADIUS, CREEP_TYPE_STATS,
    CREEP_ATTACK_COOLDOWN_MS, CREEP_MELEE_REACH, CREEP_IDLE_REPLAN_MS,
    CREEP_REVALIDATE_CHANCE, TIMER_EPSILON_MS,
    SPLIT_CHILD_COUNT, SPLIT_SPEED_MULTIPLIER, SPLIT_RADIUS_MULTIPLIER, SPLIT_OFFSET,
)
from scrapline.sim.contracts import CreepSnapshot
from scrapline.sim.determinism import get_rng
from scrapline.systems.navigation import plan_path, step_towards


class CreepType:
    NORMAL = "normal"
    FAST = "fast"
    TANK = "tank"
    SPLITTER = "splitter"
    BOSS = "boss"
    MINI_BOSS = "mini_boss"


class CreepState(Enum):
    PATHING = auto()
    ATTACKING = auto()
    IDLE = auto()
    DEAD = auto()


class Creep:
    """
    A hostile unit walking from a spawn point to the home point.

    Collaborators are passed in, never looked up:
        grid: occupancy grid used for planning
        structures: id registry of structures (for the attack fallback)
        home: Landmark the creep is heading for
        rng: random stream for revalidation rolls and split placement

    If no route to home exists the creep walks to the nearest structure and hits it
    once per cooldown; enough hits destroy it, which reopens the map.
    """

    def __init__(
        self,
        x: float,
        y: float,
        grid,
        structures,
        home,
        creep_type: str = CreepType.NORMAL,
        base_health: int = BASE_CREEP_HEALTH,
        *,
        rng=None,
        health: int = None,
        speed: float = None,
        radius: float = None,
        will_split: bool = None,
    ):
        if creep_type not in CREEP_TYPE_STATS:
            raise ValueError(f"unknown creep type: {creep_type!r}")
        self.creep_id = None  # assigned by the creep registry
        self.x = x
        self.y = y
        self.grid = grid
        self.structures = structures
        self.home = home
        self.rng = rng if rng is not None else get_rng("creeps")
        self.creep_type = creep_type

        # Stats: type multipliers over the wave's baseline unless given explicitly.
        stats = CREEP_TYPE_STATS[creep_type]
        self.max_health = health if health is not None else math.floor(base_health * stats["health"])
        self.health = self.max_health
        self.speed = speed if speed is not None else BASE_CREEP_SPEED * stats["speed"]
        self.radius = radius if radius is not None else BASE_CREEP_RADIUS * stats["radius"]
        self.attack_damage = stats["attack_damage"]
        self.will_split = (creep_type == CreepType.SPLITTER) if will_split is None else bool(will_split)

        # Navigation
        self.path = None
        self.path_index = 0
        self.state = CreepState.PATHING
        self.idle_timer_ms = 0.0

        # Combat
        self.attack_target_id = None
        self.attack_cooldown_ms = 0.0

        self.is_alive = True
        self.reached_goal = False

        self.plan()

    @property
    def killed(self) -> bool:
        """Died to damage (as opposed to walking into the home point)."""
        return not self.is_alive and not self.reached_goal

    @property
    def cell(self) -> tuple[int, int]:
        return self.grid.world_to_grid(self.x, self.y)

    def distance_to(self, x: float, y: float) -> float:
        """Calculate distance to a point."""
        return math.sqrt((self.x - x) ** 2 + (self.y - y) ** 2)

    def _clamped(self, x: float, y: float) -> tuple[float, float]:
        max_x = self.grid.cols * self.grid.cell_size - 1
        max_y = self.grid.rows * self.grid.cell_size - 1
        return min(max_x, max(0.0, x)), min(max_y, max(0.0, y))

    def _planning_cell(self) -> tuple[int, int]:
        """Current cell, or the nearest in-bounds one if the creep has drifted off the grid."""
        gx, gy = self.cell
        return min(self.grid.cols - 1, max(0, gx)), min(self.grid.rows - 1, max(0, gy))

    # -- planning ---------------------------------------------------------

    def invalidate_path(self):
        """Drop the current route; the creep replans on its next update."""
        if not self.is_alive:
            return
        self.path = None
        self.path_index = 0
        self.attack_target_id = None
        self.state = CreepState.PATHING

    def plan(self) -> bool:
        """
        Plan a route home. Falls back to attacking the nearest structure, or idling
        when there is nothing to attack. Returns True if a route was found.
        """
        path = plan_path(self.grid, self._planning_cell(), self.home.cell)
        if path:
            self.path = path
            self.path_index = 0
            self.attack_target_id = None
            self.state = CreepState.PATHING
            return True

        self.path = None
        self.path_index = 0
        target = self.find_target()
        if target is not None:
            self.attack_target_id = target.structure_id
            self.state = CreepState.ATTACKING
            logger.debug(f"Creep {self.creep_id} blocked; attacking structure {target.structure_id}")
        else:
            self.attack_target_id = None
            self.state = CreepState.IDLE
            self.idle_timer_ms = 0.0
        return False

    def find_target(self):
        """Nearest live structure by straight-line distance to its center."""
        best_target = None
        best_dist = float("inf")
        for structure in self.structures.alive():
            dist = self.distance_to(structure.center_x, structure.center_y)
            if dist < best_dist:
                best_dist = dist
                best_target = structure
        return best_target

    # -- per tick ---------------------------------------------------------

    def update(self, dt: float):
        """Update creep state and behavior."""
        if not self.is_alive:
            return

        if self.state == CreepState.PATHING and self.path is None:
            self.plan()

        if self.rng.random() < CREEP_REVALIDATE_CHANCE:
            self._revalidate()

        if self.state == CreepState.PATHING:
            self._update_pathing(dt)
        elif self.state == CreepState.ATTACKING:
            self._update_attacking(dt)
        elif self.state == CreepState.IDLE:
            self.idle_timer_ms += dt * 1000
            if self.idle_timer_ms >= CREEP_IDLE_REPLAN_MS:
                self.idle_timer_ms = 0.0
                self.plan()

    def _revalidate(self):
        if self.state == CreepState.PATHING and self.path:
            cx, cy = self.cell
            if not self.grid.is_cell_occupied(cx, cy):
                return
            # Standing inside something new: back off half the way from the waypoint, then replan.
            wx, wy = self.grid.grid_to_world(*self.path[min(self.path_index, len(self.path) - 1)])
            self.x, self.y = self._clamped(self.x - (wx - self.x) * 0.5, self.y - (wy - self.y) * 0.5)
            self.plan()
        elif self.state == CreepState.ATTACKING:
            path = plan_path(self.grid, self._planning_cell(), self.home.cell)
            if path:
                self.path = path
                self.path_index = 0
                self.attack_target_id = None
                self.state = CreepState.PATHING

    def _at_home(self) -> bool:
        return self.home.distance_to(self.x, self.y) < self.home.radius + self.radius

    def _reach_goal(self):
        self.reached_goal = True
        self.is_alive = False
        self.state = CreepState.DEAD

    def _update_pathing(self, dt: float):
        if self._at_home():
            self._reach_goal()
            return
        if not self.path:
            return

        step = self.speed * dt * 60
        if self.path_index < len(self.path):
            tx, ty = self.grid.grid_to_world(*self.path[self.path_index])
            if self.distance_to(tx, ty) < step * 2:
                self.path_index += 1
            else:
                self.x, self.y, _ = step_towards(self.x, self.y, tx, ty, self.speed, dt)
        else:
            # Past the last waypoint: head straight for the home center.
            self.x, self.y, _ = step_towards(self.x, self.y, self.home.x, self.home.y, self.speed, dt)

        if self._at_home():
            self._reach_goal()

    def _update_attacking(self, dt: float):
        target = self.structures.get(self.attack_target_id)
        if target is None:
            # Sold or destroyed out from under us.
            self.attack_target_id = None
            self.plan()
            return

        if self.attack_cooldown_ms > 0:
            self.attack_cooldown_ms -= dt * 1000
        contact = max(target.width, target.height) / 2 + self.radius + CREEP_MELEE_REACH
        if self.distance_to(target.center_x, target.center_y) > contact:
            # No backlog of hits builds up while walking over.
            self.attack_cooldown_ms = max(0.0, self.attack_cooldown_ms)
            self.x, self.y, _ = step_towards(self.x, self.y, target.center_x, target.center_y, self.speed, dt)
            return

        if self.attack_cooldown_ms <= TIMER_EPSILON_MS:
            target.register_hit(self.attack_damage)
            self.attack_cooldown_ms += CREEP_ATTACK_COOLDOWN_MS

    # -- damage / death ---------------------------------------------------

    def take_damage(self, amount: int) -> bool:
        """Take damage, returns True if killed by this hit."""
        if amount < 0:
            raise ValueError(f"damage must be non-negative, got {amount}")
        if not self.is_alive:
            return False
        self.health = max(0, self.health - amount)
        if self.health <= 0:
            self.is_alive = False
            self.state = CreepState.DEAD
            return True
        return False

    def split_children(self) -> list:
        """
        Children spawned by a splitter killed in combat: two weaker copies on opposite
        sides of where it died, which never split again.
        """
        if not (self.killed and self.will_split):
            return []
        self.will_split = False

        angle = self.rng.uniform(0, 2 * math.pi)
        children = []
        for i in range(SPLIT_CHILD_COUNT):
            a = angle + i * (2 * math.pi / SPLIT_CHILD_COUNT)
            cx, cy = self._clamped(self.x + math.cos(a) * SPLIT_OFFSET, self.y + math.sin(a) * SPLIT_OFFSET)
            children.append(Creep(
                cx, cy, self.grid, self.structures, self.home, self.creep_type,
                rng=self.rng,
                health=math.floor(self.max_health / 2),
                speed=self.speed * SPLIT_SPEED_MULTIPLIER,
                radius=self.radius * SPLIT_RADIUS_MULTIPLIER,
                will_split=False,
            ))
        return children

    def to_snapshot(self) -> CreepSnapshot:
        return CreepSnapshot(
            creep_id=self.creep_id if self.creep_id is not None else -1,
            creep_type=self.creep_type,
            state=self.state.name,
            x=self.x,
            y=self.y,
            health=self.health,
            max_health=self.max_health,
            radius=self.radius,
            attack_target_id=self.attack_target_id,
        )
