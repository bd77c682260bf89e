"""
Defensive structures and their projectiles.
"""
import math

import pygame
from loguru import logger

from config import (
    TILE_SIZE, STRUCTURE_STATS, HITS_TO_DESTROY, TIMER_EPSILON_MS,
    PROJECTILE_SPEED, PROJECTILE_RADIUS,
    UPGRADE_MULTIPLIERS, NON_UPGRADABLE,
)
from scrapline.sim.contracts import ProjectileSnapshot, StructureSnapshot
from scrapline.systems.navigation import step_towards


class Projectile:
    """
    A homing shot. The target is held by id and re-resolved every tick, so a target
    that dies mid-flight just makes the shot fizzle.
    """

    def __init__(
        self,
        x: float,
        y: float,
        target_id: int,
        damage: int,
        *,
        speed: float = PROJECTILE_SPEED,
        radius: float = PROJECTILE_RADIUS,
        bounces: int = 0,
        bounce_range: float = 0.0,
        explosion_radius: float = 0.0,
        explosion_damage: int = 0,
    ):
        self.x = x
        self.y = y
        self.target_id = target_id
        self.damage = damage
        self.speed = speed
        self.radius = radius
        self.bounces = bounces
        self.bounce_range = bounce_range
        self.explosion_radius = explosion_radius
        self.explosion_damage = explosion_damage
        self.active = True

    def update(self, dt: float, creeps):
        if not self.active:
            return
        target = creeps.get(self.target_id)
        if target is None:
            self.active = False
            return

        self.x, self.y, _ = step_towards(self.x, self.y, target.x, target.y, self.speed, dt)
        if math.hypot(target.x - self.x, target.y - self.y) <= self.radius + target.radius:
            self._hit(target, creeps)

    def _hit(self, target, creeps):
        target.take_damage(self.damage)

        if self.explosion_radius > 0:
            for creep in creeps.alive():
                if creep is target:
                    continue
                if math.hypot(creep.x - self.x, creep.y - self.y) <= self.explosion_radius:
                    creep.take_damage(self.explosion_damage)

        if self.bounces > 0:
            next_target = None
            best_dist = float("inf")
            for creep in creeps.alive():
                if creep is target:
                    continue
                dist = math.hypot(creep.x - self.x, creep.y - self.y)
                if dist <= self.bounce_range and dist < best_dist:
                    best_dist = dist
                    next_target = creep
            if next_target is not None:
                self.target_id = next_target.creep_id
                self.bounces -= 1
                return

        self.active = False

    def to_snapshot(self) -> ProjectileSnapshot:
        return ProjectileSnapshot(x=self.x, y=self.y, target_id=self.target_id, damage=self.damage)


class Structure:
    """
    A placed structure: a tower, wall, fence or scrapper.

    `creeps` is the creep id registry, used for targeting and for resolving
    projectile targets. Walls and scrappers never fire; fences pulse damage on every
    creep in range instead of shooting.
    """

    def __init__(self, grid_x: int, grid_y: int, structure_type: str, creeps, cell_size: int = TILE_SIZE):
        if structure_type not in STRUCTURE_STATS:
            raise ValueError(f"unknown structure type: {structure_type!r}")
        self.structure_id = None  # assigned by the structure registry
        self.grid_x = grid_x
        self.grid_y = grid_y
        self.structure_type = structure_type
        self.creeps = creeps
        self.cell_size = cell_size

        # Per-instance copy so upgrades never touch the catalogue.
        self.stats = dict(STRUCTURE_STATS[structure_type])
        self.size = tuple(self.stats["size"])
        self.cost = self.stats["cost"]
        self.damage = self.stats["damage"]
        self.range = self.stats["range"]
        self.fire_rate = self.stats["fire_rate"]
        self.upgrade_levels = {stat: 0 for stat in UPGRADE_MULTIPLIERS}

        self.hits = 0
        self.is_destroyed = False
        self.cooldown_ms = 0.0
        self.target_id = None
        self.projectiles = []

    @property
    def is_alive(self) -> bool:
        return not self.is_destroyed

    @property
    def is_scrapper(self) -> bool:
        return self.structure_type == "scrapper"

    @property
    def is_fence(self) -> bool:
        return self.structure_type == "electric_fence"

    @property
    def can_fire(self) -> bool:
        return self.damage > 0 and self.range > 0 and self.fire_rate > 0

    @property
    def is_upgradable(self) -> bool:
        return self.structure_type not in NON_UPGRADABLE

    @property
    def fire_interval_ms(self) -> float:
        return 1000 / self.fire_rate if self.fire_rate > 0 else float("inf")

    @property
    def world_x(self) -> float:
        return self.grid_x * self.cell_size

    @property
    def world_y(self) -> float:
        return self.grid_y * self.cell_size

    @property
    def width(self) -> int:
        return self.size[0] * self.cell_size

    @property
    def height(self) -> int:
        return self.size[1] * self.cell_size

    @property
    def center_x(self) -> float:
        return self.world_x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.world_y + self.height / 2

    def get_rect(self) -> pygame.Rect:
        """Get the structure's bounding rectangle in world space."""
        return pygame.Rect(self.world_x, self.world_y, self.width, self.height)

    def occupies_tile(self, grid_x: int, grid_y: int) -> bool:
        """Check if the structure's footprint covers a specific grid tile."""
        return (self.grid_x <= grid_x < self.grid_x + self.size[0] and
                self.grid_y <= grid_y < self.grid_y + self.size[1])

    def register_hit(self, damage: int = 1) -> bool:
        """
        Record one melee hit. Returns True if this hit destroyed the structure.

        Destruction only counts hits; `damage` is what the attacker reports.
        """
        if self.is_destroyed:
            return False
        self.hits += 1
        if self.hits >= HITS_TO_DESTROY:
            self.is_destroyed = True
            logger.debug(f"Structure {self.structure_id} ({self.structure_type}) destroyed after {self.hits} hits")
            return True
        return False

    def find_target(self):
        """Nearest living creep strictly within range of the footprint center."""
        best_target = None
        best_dist = float("inf")
        for creep in self.creeps.alive():
            dist = math.hypot(self.center_x - creep.x, self.center_y - creep.y)
            if dist < self.range and dist < best_dist:
                best_dist = dist
                best_target = creep
        return best_target

    def update(self, dt: float):
        """Advance projectiles, then fire if the cooldown allows."""
        if self.is_destroyed:
            return

        for projectile in self.projectiles:
            projectile.update(dt, self.creeps)
        self.projectiles = [p for p in self.projectiles if p.active]

        if not self.can_fire:
            return
        if self.cooldown_ms > 0:
            self.cooldown_ms -= dt * 1000
            if self.cooldown_ms > TIMER_EPSILON_MS:
                return

        # Ready. A cooldown that ran out mid-tick carries its overshoot into the next one.
        if self.is_fence:
            self._pulse()
            self.cooldown_ms += self.fire_interval_ms
            return

        target = self.find_target()
        if target is None:
            self.target_id = None
            self.cooldown_ms = 0.0
            return
        self.fire_at(target)
        self.cooldown_ms += self.fire_interval_ms

    def fire_at(self, target) -> Projectile:
        projectile = Projectile(
            self.center_x,
            self.center_y,
            target.creep_id,
            self.damage,
            speed=self.stats.get("projectile_speed", PROJECTILE_SPEED),
            bounces=self.stats.get("max_bounces", 0),
            bounce_range=self.range,
            explosion_radius=self.stats.get("explosion_radius", 0.0),
            explosion_damage=self.stats.get("explosion_damage", 0),
        )
        self.projectiles.append(projectile)
        self.target_id = target.creep_id
        return projectile

    def _pulse(self):
        for creep in self.creeps.alive():
            if math.hypot(self.center_x - creep.x, self.center_y - creep.y) <= self.range:
                creep.take_damage(self.damage)

    def apply_upgrade(self, stat: str) -> bool:
        """Raise one stat by its upgrade multiplier. Payment is the economy's job."""
        if not self.is_upgradable or stat not in UPGRADE_MULTIPLIERS:
            return False
        mult = UPGRADE_MULTIPLIERS[stat]
        if stat == "damage":
            self.damage = math.floor(self.damage * mult)
        elif stat == "fire_rate":
            self.fire_rate = self.fire_rate * mult
        elif stat == "range":
            if not math.isinf(self.range):
                self.range = math.floor(self.range * mult)
        self.upgrade_levels[stat] += 1
        return True

    def to_snapshot(self) -> StructureSnapshot:
        return StructureSnapshot(
            structure_id=self.structure_id if self.structure_id is not None else -1,
            structure_type=self.structure_type,
            grid_x=self.grid_x,
            grid_y=self.grid_y,
            size=self.size,
            damage=self.damage,
            range=self.range,
            fire_rate=self.fire_rate,
            hits=self.hits,
            projectiles=[p.to_snapshot() for p in self.projectiles],
        )
