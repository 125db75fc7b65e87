"""Terrain generation package.

Noise, the height/slope field, per-cell land records, Poisson-disk scatter
of natural objects and coarse pathgrids.
"""

from .fields import TerrainField
from .land import LandData, build_land, terrain_stats
from .noise import PerlinNoise, VoronoiNoise
from .sampling import PoissonDiskSampler

__all__ = [
    "LandData",
    "PerlinNoise",
    "PoissonDiskSampler",
    "TerrainField",
    "VoronoiNoise",
    "build_land",
    "terrain_stats",
]
