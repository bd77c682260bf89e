"""
Configuration settings for the Scrapline tower-defense sim.
"""
import os
from dotenv import load_dotenv

load_dotenv()

# Loop settings
FPS = 60
PROTOTYPE_VERSION = "0.3.0"
GAME_TITLE = f"Scrapline (Prototype v{PROTOTYPE_VERSION})"

# Determinism knobs (headless runs and tests want these on).
DETERMINISTIC_SIM = os.getenv("DETERMINISTIC_SIM", "1") not in ("0", "false", "False", "")
SIM_TICK_HZ = int(os.getenv("SIM_TICK_HZ", "60"))
SIM_SEED = int(os.getenv("SIM_SEED", "1"))

# Tile settings
SCALE_FACTOR = 1.5
TILE_SIZE = 30
MAP_COLS = 30  # tiles
MAP_ROWS = 20  # tiles

# Spawn (left edge) and home (right edge) cells, as (x, y).
SPAWN_POINTS = [(0, MAP_ROWS // 2)]
HOME_POINTS = [(MAP_COLS - 1, MAP_ROWS // 2)]
ENDPOINT_RADIUS = 20 * SCALE_FACTOR  # pixels
SAFE_PLACEMENT_DISTANCE = 30 * SCALE_FACTOR  # pixels beyond ENDPOINT_RADIUS

# Map generation
MAP_OBSTACLE_DENSITY = float(os.getenv("MAP_OBSTACLE_DENSITY", "0.3"))
MAP_MAX_ATTEMPTS = 10
MAPGEN_ROUTES = (2, 3)  # inclusive range of carved routes per attempt
MAPGEN_WAYPOINTS = (2, 4)  # inclusive range of intermediate waypoints per route
MAPGEN_CORNER_WEIGHT = 1.5
MAPGEN_MAX_SEED_PROBABILITY = 0.6
MAPGEN_SMOOTHING_ITERATIONS = 4
MAPGEN_BIRTH_LIMIT = 4
MAPGEN_DEATH_LIMIT = 3
MAPGEN_GROWTH_EVERY = 2
MAPGEN_GROWTH_CHANCE = 0.3
MAPGEN_MIN_CLUSTER_SIZE = 3
MAPGEN_PROTRUSION_CHANCE = 0.15

# Creep settings (the "normal" baseline)
BASE_CREEP_HEALTH = 80
CREEP_HEALTH_GROWTH = 1.2  # per wave, compounded
BASE_CREEP_SPEED = 0.5  # pixels per 1/60 s
BASE_CREEP_RADIUS = 8 * SCALE_FACTOR
CREEP_ATTACK_COOLDOWN_MS = 1000
CREEP_MELEE_REACH = 4  # pixels past footprint edge + radius
CREEP_IDLE_REPLAN_MS = 500
CREEP_REVALIDATE_CHANCE = 0.03
HITS_TO_DESTROY = 5

# Multipliers on the baseline. "attack_damage" is what the creep reports per melee hit.
CREEP_TYPE_STATS = {
    "normal": {"speed": 1.0, "health": 1.0, "radius": 1.0, "attack_damage": 1},
    "fast": {"speed": 2.0, "health": 0.5, "radius": 1.0, "attack_damage": 1},
    "tank": {"speed": 0.5, "health": 2.0, "radius": 1.0, "attack_damage": 2},
    "splitter": {"speed": 1.0, "health": 0.7, "radius": 1.0, "attack_damage": 1},
    "mini_boss": {"speed": 0.7, "health": 2.0, "radius": 14 / 8, "attack_damage": 3},
    "boss": {"speed": 0.5, "health": 3.0, "radius": 16 / 8, "attack_damage": 5},
}

# Earliest wave each type can appear in the mixed pool, and its pick weight.
CREEP_TYPE_UNLOCKS = {
    "normal": (1, 6),
    "fast": (3, 2),
    "tank": (4, 2),
    "splitter": (6, 2),
}

SPLIT_CHILD_COUNT = 2
SPLIT_SPEED_MULTIPLIER = 1.2
SPLIT_RADIUS_MULTIPLIER = 0.6
SPLIT_OFFSET = 6  # pixels

# Structure settings
STRUCTURE_STATS = {
    "sentry": {"cost": 40, "damage": 20, "range": 150 * SCALE_FACTOR, "fire_rate": 1.0, "size": (2, 2)},
    "bouncer": {
        "cost": 60, "damage": 15, "range": 150 * SCALE_FACTOR, "fire_rate": 0.8, "size": (2, 2),
        "max_bounces": 3,
    },
    "rpg": {
        "cost": 80, "damage": 25, "range": 120 * SCALE_FACTOR, "fire_rate": 0.5, "size": (2, 2),
        "explosion_radius": 50 * SCALE_FACTOR, "explosion_damage": 15,
    },
    "sniper": {
        "cost": 120, "damage": 50, "range": float("inf"), "fire_rate": 0.2, "size": (2, 2),
        "projectile_speed": 20,
    },
    "wall": {"cost": 5, "damage": 0, "range": 0, "fire_rate": 0, "size": (1, 1)},
    "scrapper": {
        "cost": 100, "damage": 0, "range": 0, "fire_rate": 0, "size": (2, 2),
        "scrap_rate": 1, "scrap_interval_ms": 5000,
    },
    "electric_fence": {"cost": 15, "damage": 5, "range": 24 * SCALE_FACTOR, "fire_rate": 2.0, "size": (1, 1)},
}

PROJECTILE_SPEED = 10  # pixels per 1/60 s
PROJECTILE_RADIUS = 3

# Upgrades (combat towers only)
UPGRADE_BASE_COST = 50
UPGRADE_COST_GROWTH = 1.5
UPGRADE_MULTIPLIERS = {
    "damage": 1.3,
    "fire_rate": 1.2,
    "range": 1.25,
}
NON_UPGRADABLE = {"wall", "scrapper", "electric_fence"}

# Wave / economy settings
STARTING_SCRAPS = int(os.getenv("STARTING_SCRAPS", "500"))
STARTING_LIVES = int(os.getenv("STARTING_LIVES", "10"))
SPAWN_INTERVAL_MS = 1000
TIMER_EPSILON_MS = 1e-6  # float slack when a tick lands exactly on an interval
BASE_WAVE_SIZE = 5
WAVE_SIZE_GROWTH = 2
BOSS_WAVE_SIZE = 5
MINI_BOSS_WAVE_EVERY = 5
BOSS_WAVE_EVERY = 10
KILL_REWARD_BASE = 15
KILL_REWARD_PER_WAVE = 1.5
WAVE_BONUS_BASE = 20
WAVE_BONUS_PER_WAVE = 10
