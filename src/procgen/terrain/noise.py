"""Gradient and cellular noise for terrain synthesis.

Provides seeded Perlin noise with fractal, turbulence and ridged
multifractal sums, plus Voronoi (Worley) distances whose feature points
are derived on demand from a cell hash so the pattern tiles without storage.
"""

import math

from ..rng import MASK64, RandomGenerator

# Magnitude the (1,2)/(2,1) gradient set reaches at a lattice cell centre.
# Dividing by it keeps noise_2d close to [-1, 1]; overshoot stays under 1.2.
GRADIENT_PEAK = 1.5

VORONOI_HASH_X = 73856093
VORONOI_HASH_Y = 19349663


def fade(t: float) -> float:
    """Quintic fade curve 6t^5 - 15t^4 + 10t^3."""
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


def lerp(t: float, a: float, b: float) -> float:
    return a + t * (b - a)


def grad(hash_value: int, x: float, y: float) -> float:
    """Dot product of (x, y) with one of eight lattice gradients."""
    h = hash_value & 7
    u = x if h < 4 else y
    v = y if h < 4 else x
    return (-u if h & 1 else u) + (-2.0 * v if h & 2 else 2.0 * v)


class PerlinNoise:
    """Classic 2D Perlin noise over a seeded permutation table."""

    def __init__(self, seed: int):
        self.set_seed(seed)

    def set_seed(self, seed: int) -> None:
        """Rebuild the permutation table from a seed."""
        rng = RandomGenerator(seed)
        p = list(range(256))
        for i in range(255, 0, -1):
            j = rng.next_int(i + 1)
            p[i], p[j] = p[j], p[i]
        # Doubled so corner lookups never wrap
        self._perm = p + p

    @property
    def permutation(self) -> list[int]:
        return list(self._perm)

    def noise_2d(self, x: float, y: float) -> float:
        """Gradient noise at (x, y), roughly in [-1, 1]."""
        fx = math.floor(x)
        fy = math.floor(y)
        xi = int(fx) & 255
        yi = int(fy) & 255
        x -= fx
        y -= fy

        u = fade(x)
        v = fade(y)

        p = self._perm
        a = p[xi] + yi
        aa = p[a]
        ab = p[a + 1]
        b = p[xi + 1] + yi
        ba = p[b]
        bb = p[b + 1]

        value = lerp(
            v,
            lerp(u, grad(p[aa], x, y), grad(p[ba], x - 1.0, y)),
            lerp(u, grad(p[ab], x, y - 1.0), grad(p[bb], x - 1.0, y - 1.0)),
        )
        return value / GRADIENT_PEAK

    def fractal_noise_2d(
        self,
        x: float,
        y: float,
        octaves: int,
        persistence: float = 0.5,
        lacunarity: float = 2.0,
    ) -> float:
        """Fractal Brownian motion normalized by the summed amplitude.

        Args:
            x: Sample x coordinate.
            y: Sample y coordinate.
            octaves: Number of noise layers to sum.
            persistence: Amplitude multiplier between octaves.
            lacunarity: Frequency multiplier between octaves.

        Returns:
            Noise value roughly in [-1, 1].
        """
        total = 0.0
        amplitude = 1.0
        frequency = 1.0
        max_value = 0.0
        for _ in range(octaves):
            total += self.noise_2d(x * frequency, y * frequency) * amplitude
            max_value += amplitude
            amplitude *= persistence
            frequency *= lacunarity
        if max_value == 0.0:
            return 0.0
        return total / max_value

    def turbulence_2d(
        self,
        x: float,
        y: float,
        octaves: int,
        persistence: float = 0.5,
        lacunarity: float = 2.0,
    ) -> float:
        """Sum of absolute octaves, normalized by the summed amplitude."""
        total = 0.0
        amplitude = 1.0
        frequency = 1.0
        max_value = 0.0
        for _ in range(octaves):
            total += abs(self.noise_2d(x * frequency, y * frequency)) * amplitude
            max_value += amplitude
            amplitude *= persistence
            frequency *= lacunarity
        if max_value == 0.0:
            return 0.0
        return total / max_value

    def ridged_noise_2d(
        self,
        x: float,
        y: float,
        octaves: int,
        persistence: float = 0.5,
        lacunarity: float = 2.0,
        offset: float = 1.0,
    ) -> float:
        """Ridged multifractal with weight feedback between octaves.

        Each octave contributes ``(offset - |n|)^2 * weight`` and the next
        weight is ``clamp(2 * signal, 0, 1)``, so detail accumulates along
        ridgelines. The sum is not normalized.
        """
        total = 0.0
        amplitude = 1.0
        frequency = 1.0
        weight = 1.0
        for _ in range(octaves):
            signal = offset - abs(self.noise_2d(x * frequency, y * frequency))
            signal *= signal
            signal *= weight
            weight = min(max(signal * 2.0, 0.0), 1.0)
            total += signal * amplitude
            amplitude *= persistence
            frequency *= lacunarity
        return total


class VoronoiNoise:
    """Worley noise with one hashed feature point per unit cell."""

    def __init__(self, seed: int):
        self.set_seed(seed)

    def set_seed(self, seed: int) -> None:
        self._seed = seed & MASK64

    @property
    def seed(self) -> int:
        return self._seed

    def point_in_cell(self, cell_x: int, cell_y: int) -> tuple[float, float]:
        """Feature point of a cell, derived from the cell hash and seed."""
        hash_value = (
            ((cell_x & MASK64) * VORONOI_HASH_X) & MASK64
        ) ^ (((cell_y & MASK64) * VORONOI_HASH_Y) & MASK64)
        local = RandomGenerator(hash_value ^ self._seed)
        px = cell_x + local.next_float()
        py = cell_y + local.next_float()
        return px, py

    def _sorted_distances(self, x: float, y: float) -> tuple[float, float]:
        cell_x = math.floor(x)
        cell_y = math.floor(y)
        nearest = math.inf
        second = math.inf
        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                px, py = self.point_in_cell(cell_x + dx, cell_y + dy)
                dist = (px - x) * (px - x) + (py - y) * (py - y)
                if dist < nearest:
                    second = nearest
                    nearest = dist
                elif dist < second:
                    second = dist
        return math.sqrt(nearest), math.sqrt(second)

    def distance_to_nearest(self, x: float, y: float) -> float:
        """F1: distance to the closest feature point."""
        return self._sorted_distances(x, y)[0]

    def distance_to_second_nearest(self, x: float, y: float) -> float:
        """F2: distance to the second closest feature point."""
        return self._sorted_distances(x, y)[1]

    def cellular_noise(self, x: float, y: float) -> float:
        """F2 - F1, zero along cell borders."""
        nearest, second = self._sorted_distances(x, y)
        return second - nearest
