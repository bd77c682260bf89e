"""
Simulation systems package.
"""
from .pathfinding import EIGHT_WAY, FOUR_WAY, MovementRules, TieBreak, find_path
from .registry import EntityRegistry
from .economy import EconomySystem
from .spawner import WaveSpawner, WaveState
