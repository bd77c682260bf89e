"""
Simulation entities package.
"""
from .creep import Creep, CreepState, CreepType
from .structure import Projectile, Structure
