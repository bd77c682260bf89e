"""
Thin, stable data contracts for renderers and tooling.

Small "struct-like" dataclasses so:
- a renderer or observer can read simulation state without holding live entities
- state is easy to serialize (JSON dumps from the headless runner)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(slots=True)
class CreepSnapshot:
    creep_id: int
    creep_type: str
    state: str
    x: float
    y: float
    health: int
    max_health: int
    radius: float
    attack_target_id: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "creep_id": int(self.creep_id),
            "creep_type": str(self.creep_type),
            "state": str(self.state),
            "x": round(float(self.x), 3),
            "y": round(float(self.y), 3),
            "health": int(self.health),
            "max_health": int(self.max_health),
            "radius": float(self.radius),
            "attack_target_id": self.attack_target_id,
        }


@dataclass(slots=True)
class ProjectileSnapshot:
    x: float
    y: float
    target_id: int
    damage: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "x": round(float(self.x), 3),
            "y": round(float(self.y), 3),
            "target_id": int(self.target_id),
            "damage": int(self.damage),
        }


@dataclass(slots=True)
class StructureSnapshot:
    """
    A structure's footprint, current stats and in-flight shots.

    `hits` counts melee hits taken; a structure is removed at HITS_TO_DESTROY.
    """

    structure_id: int
    structure_type: str
    grid_x: int
    grid_y: int
    size: tuple[int, int]
    damage: int
    range: float
    fire_rate: float
    hits: int
    projectiles: list[ProjectileSnapshot] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "structure_id": int(self.structure_id),
            "structure_type": str(self.structure_type),
            "grid_x": int(self.grid_x),
            "grid_y": int(self.grid_y),
            "size": [int(self.size[0]), int(self.size[1])],
            "damage": int(self.damage),
            # inf (sniper) is not valid JSON
            "range": None if self.range == float("inf") else float(self.range),
            "fire_rate": float(self.fire_rate),
            "hits": int(self.hits),
            "projectiles": [p.to_dict() for p in self.projectiles],
        }


@dataclass(slots=True)
class GameSnapshot:
    """
    A read-only view of one tick, for renderers and the headless observer.

    Built fresh by `GameEngine.snapshot()`; mutating it never affects the sim.
    """

    sim_now_ms: int
    wave_number: int
    wave_active: bool
    wave_reached: int
    creeps_to_spawn: int
    scraps: int
    lives: int
    game_over: bool
    creeps: list[CreepSnapshot] = field(default_factory=list)
    structures: list[StructureSnapshot] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sim_now_ms": int(self.sim_now_ms),
            "wave_number": int(self.wave_number),
            "wave_active": bool(self.wave_active),
            "wave_reached": int(self.wave_reached),
            "creeps_to_spawn": int(self.creeps_to_spawn),
            "scraps": int(self.scraps),
            "lives": int(self.lives),
            "game_over": bool(self.game_over),
            "creeps": [c.to_dict() for c in self.creeps],
            "structures": [s.to_dict() for s in self.structures],
        }
