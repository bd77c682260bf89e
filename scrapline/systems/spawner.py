"""
Wave spawning system.
"""
import math
from enum import Enum, auto

from config import (
    BASE_CREEP_HEALTH, CREEP_HEALTH_GROWTH, CREEP_TYPE_UNLOCKS,
    SPAWN_INTERVAL_MS, BASE_WAVE_SIZE, WAVE_SIZE_GROWTH, BOSS_WAVE_SIZE,
    MINI_BOSS_WAVE_EVERY, BOSS_WAVE_EVERY, TIMER_EPSILON_MS,
)
from scrapline.sim.determinism import get_rng


class WaveState(Enum):
    IDLE = auto()
    ACTIVE = auto()


def wave_size(wave_number: int) -> int:
    """Creeps in a wave: a small fixed boss batch every 5th wave, else a growing batch."""
    if wave_number % MINI_BOSS_WAVE_EVERY == 0:
        return BOSS_WAVE_SIZE
    return BASE_WAVE_SIZE + WAVE_SIZE_GROWTH * wave_number


def base_health(wave_number: int) -> int:
    """Health of a normal creep in `wave_number`, before type multipliers."""
    return math.floor(BASE_CREEP_HEALTH * CREEP_HEALTH_GROWTH ** wave_number)


class WaveSpawner:
    """
    Runs one wave at a time: start, spawn on a fixed cadence, complete when cleared.

    Creeps are built by `creep_factory(creep_type, base_health, wave_number)`, so the
    spawner never needs to know about the grid, the home point or the registries.
    """

    def __init__(self, creep_factory, rng=None):
        self.creep_factory = creep_factory
        # Deterministic stream for the wave type mix.
        self.rng = rng if rng is not None else get_rng("wave_spawner")
        self.reset()

    def reset(self):
        """Reset the spawner."""
        self.state = WaveState.IDLE
        self.wave_number = 0
        self.wave_reached = 0
        self.creeps_to_spawn = 0
        self.spawn_timer_ms = 0.0
        self.total_spawned = 0

    @property
    def wave_active(self) -> bool:
        return self.state == WaveState.ACTIVE

    def creep_type_for_wave(self, wave_number: int) -> str:
        # Boss waves take precedence over mini-boss waves (10 is also a multiple of 5).
        if wave_number % BOSS_WAVE_EVERY == 0:
            return "boss"
        if wave_number % MINI_BOSS_WAVE_EVERY == 0:
            return "mini_boss"
        pool = [
            (creep_type, weight)
            for creep_type, (unlock_wave, weight) in CREEP_TYPE_UNLOCKS.items()
            if wave_number >= unlock_wave
        ]
        if len(pool) == 1:
            return pool[0][0]
        types = [t for t, _ in pool]
        weights = [w for _, w in pool]
        return self.rng.choices(types, weights=weights, k=1)[0]

    def start_next_wave(self) -> bool:
        """Begin the next wave. Refused while one is already running."""
        if self.wave_active:
            return False
        self.wave_number += 1
        self.wave_reached = max(self.wave_reached, self.wave_number)
        self.creeps_to_spawn = wave_size(self.wave_number)
        # Primed so the first creep appears on the next update.
        self.spawn_timer_ms = SPAWN_INTERVAL_MS
        self.state = WaveState.ACTIVE
        return True

    def update(self, dt: float) -> list:
        """
        Update spawner and return list of newly spawned creeps.
        """
        if not self.wave_active or self.creeps_to_spawn <= 0:
            return []

        # A primed timer spawns without counting this tick, so the next gap is a full interval.
        if self.spawn_timer_ms < SPAWN_INTERVAL_MS:
            self.spawn_timer_ms += dt * 1000
        if self.spawn_timer_ms < SPAWN_INTERVAL_MS - TIMER_EPSILON_MS:
            return []
        # Keep the overshoot so the cadence does not drift with the tick rate.
        self.spawn_timer_ms -= SPAWN_INTERVAL_MS

        creep_type = self.creep_type_for_wave(self.wave_number)
        creep = self.creep_factory(creep_type, base_health(self.wave_number), self.wave_number)
        self.creeps_to_spawn -= 1
        self.total_spawned += 1
        return [creep]

    def check_completion(self, alive_count: int) -> bool:
        """End the wave once its batch is exhausted and nothing is left alive."""
        if self.wave_active and self.creeps_to_spawn <= 0 and alive_count == 0:
            self.state = WaveState.IDLE
            return True
        return False
