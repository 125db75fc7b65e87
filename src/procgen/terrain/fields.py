"""Terrain field: height, slope and texture class as pure functions of position."""

import math

from ..config import TerrainParams
from ..terrain_types import REAL_SIZE, TextureClass
from .noise import PerlinNoise, VoronoiNoise

HEIGHT_MIN = -32768.0
HEIGHT_MAX = 32767.0

# Forward-difference distance for slope estimation
SLOPE_DELTA = 32.0


class TerrainField:
    """Layered-noise height field.

    Holds only immutable noise tables, so every query is re-entrant and the
    same position always yields the same answer. Placement checks rely on
    this to agree with the land records written earlier in a run.
    """

    def __init__(self, params: TerrainParams, seed: int):
        self.params = params
        self.seed = seed
        self.perlin = PerlinNoise(seed)
        self.voronoi = VoronoiNoise(seed + 1)
        self._scale = params.mountain_frequency / (REAL_SIZE * 4.0)

    def height(self, x: float, y: float) -> float:
        """Terrain height at a world position.

        Combines continental, regional, ridged, valley and detail layers,
        subtracts an erosion term, then scales by ``height_variation`` and
        clamps to the signed 16-bit range.
        """
        tp = self.params
        nx = x * self._scale
        ny = y * self._scale

        continental = self.perlin.fractal_noise_2d(nx * 0.25, ny * 0.25, 3, 0.5, 2.0)
        regional = self.perlin.fractal_noise_2d(
            nx, ny, tp.octaves, tp.persistence, tp.lacunarity
        )
        ridge = self.perlin.ridged_noise_2d(
            nx * 0.5, ny * 0.5, max(1, tp.octaves - 2), 0.5, 2.0, 1.0
        )
        valley = max(0.0, 1.0 - self.voronoi.distance_to_nearest(nx * 2.0, ny * 2.0) * 2.0)
        detail = self.perlin.turbulence_2d(nx * 4.0, ny * 4.0, 3, 0.5, 2.0)

        combined = (
            continental * 0.3
            + regional * 0.35
            + ridge * 0.25
            - valley * tp.valley_depth * 0.15
            + detail * tp.roughness * 0.1
        )

        if tp.erosion_strength > 0.0:
            erosion = self.perlin.fractal_noise_2d(nx * 8.0, ny * 8.0, 2, 0.5, 2.0)
            combined -= abs(erosion) * tp.erosion_strength * 0.1

        value = tp.base_height + combined * tp.height_variation
        return min(max(value, HEIGHT_MIN), HEIGHT_MAX)

    def slope(self, x: float, y: float) -> float:
        """Gradient magnitude from forward differences."""
        h = self.height(x, y)
        dx = (self.height(x + SLOPE_DELTA, y) - h) / SLOPE_DELTA
        dy = (self.height(x, y + SLOPE_DELTA) - h) / SLOPE_DELTA
        return math.sqrt(dx * dx + dy * dy)

    def water_level(self) -> float:
        """Water surface height; minus infinity when water is disabled."""
        if not self.params.generate_water:
            return -math.inf
        return self.params.water_level

    def is_underwater(self, x: float, y: float) -> bool:
        return self.height(x, y) < self.water_level()

    def normalized_height(self, height: float) -> float:
        """Height mapped onto [base - variation, base + variation]."""
        tp = self.params
        low = tp.base_height - tp.height_variation
        span = 2.0 * tp.height_variation
        if span <= 0.01:
            return 0.5
        return (height - low) / span

    def texture_class(self, height: float, slope: float) -> TextureClass:
        """Texture slot for a height/slope pair."""
        tp = self.params
        nh = self.normalized_height(height)

        if slope > 0.7:
            return TextureClass.ROCK
        if slope > 0.4:
            return TextureClass.ROCK if nh > 0.6 else TextureClass.DIRT
        if nh < 0.15:
            if tp.generate_water and height < tp.water_level + 50.0:
                return TextureClass.SAND
            return TextureClass.GRASS
        if nh > 0.85:
            return TextureClass.SNOW
        if nh > 0.65:
            return TextureClass.DIRT
        return TextureClass.GRASS

    def texture_at(self, x: float, y: float) -> TextureClass:
        """Texture class at a position, with noise-jittered zone borders."""
        jitter = self.perlin.noise_2d(x * 0.01, y * 0.01) * 0.1
        return self.texture_class(self.height(x, y) + jitter * 100.0, self.slope(x, y))
