"""Poisson disk sampling (Bridson) with optional density masks."""

import math
from collections import deque

import numpy as np
from numpy.typing import NDArray

from ..rng import RandomGenerator

TWO_PI = 2.0 * math.pi

Point = tuple[float, float]


class PoissonDiskSampler:
    """Blue-noise point generator over a ``width`` x ``height`` rectangle.

    A background grid with cell size ``min_distance / sqrt(2)`` holds at most
    one point per cell, so neighbour checks only look at a 5x5 block.
    """

    def __init__(self, seed: int, min_distance: float, width: float, height: float):
        if min_distance <= 0:
            raise ValueError(f"min_distance must be positive, got {min_distance}")
        self.rng = RandomGenerator(seed)
        self.min_distance = min_distance
        self.width = width
        self.height = height
        self.cell_size = min_distance / math.sqrt(2.0)
        self.grid_width = max(1, math.ceil(width / self.cell_size))
        self.grid_height = max(1, math.ceil(height / self.cell_size))

    def _new_grid(self) -> NDArray[np.int64]:
        return np.full((self.grid_height, self.grid_width), -1, dtype=np.int64)

    def _grid_index(self, x: float, y: float) -> tuple[int, int]:
        return int(x / self.cell_size), int(y / self.cell_size)

    def is_valid_point(
        self,
        x: float,
        y: float,
        points: list[Point],
        grid: NDArray[np.int64],
    ) -> bool:
        """Check bounds and minimum distance against grid neighbours."""
        if x < 0 or x >= self.width or y < 0 or y >= self.height:
            return False

        cell_x, cell_y = self._grid_index(x, y)
        x0 = max(0, cell_x - 2)
        x1 = min(self.grid_width - 1, cell_x + 2)
        y0 = max(0, cell_y - 2)
        y1 = min(self.grid_height - 1, cell_y + 2)

        for idx in grid[y0:y1 + 1, x0:x1 + 1].ravel():
            if idx < 0:
                continue
            ox, oy = points[idx]
            if math.hypot(x - ox, y - oy) < self.min_distance:
                return False
        return True

    def _accept(
        self,
        x: float,
        y: float,
        points: list[Point],
        grid: NDArray[np.int64],
        active: deque[int],
    ) -> None:
        new_idx = len(points)
        points.append((x, y))
        cell_x, cell_y = self._grid_index(x, y)
        grid[cell_y, cell_x] = new_idx
        active.append(new_idx)

    def generate_points(self, max_attempts: int = 30) -> list[Point]:
        """Generate points at least ``min_distance`` apart.

        Args:
            max_attempts: Candidates tried around each active point.

        Returns:
            Points in acceptance order.
        """
        points: list[Point] = []
        grid = self._new_grid()
        active: deque[int] = deque()

        start_x = self.rng.next_float() * self.width
        start_y = self.rng.next_float() * self.height
        self._accept(start_x, start_y, points, grid, active)

        while active:
            px, py = points[active.popleft()]
            for _ in range(max_attempts):
                angle = self.rng.next_float() * TWO_PI
                dist = self.min_distance + self.rng.next_float() * self.min_distance
                new_x = px + math.cos(angle) * dist
                new_y = py + math.sin(angle) * dist
                if self.is_valid_point(new_x, new_y, points, grid):
                    self._accept(new_x, new_y, points, grid, active)

        return points

    def _mask_value(self, mask: NDArray[np.floating], x: float, y: float) -> float:
        mask_h, mask_w = mask.shape
        mx = min(max(int(x / self.width * mask_w), 0), mask_w - 1)
        my = min(max(int(y / self.height * mask_h), 0), mask_h - 1)
        return float(mask[my, mx])

    def generate_points_with_mask(
        self,
        density_mask: NDArray[np.floating],
        max_attempts: int = 30,
    ) -> list[Point]:
        """Generate points whose local spacing follows a density mask.

        The mask spans the sampling rectangle; values are in [0, 1]. Around
        each active point the spacing grows to ``min_distance / sqrt(d)`` and a
        candidate is kept only if its own mask value beats a uniform draw.
        Returns an empty list when no starting point with density >= 0.1 is
        found in 1000 draws.

        Args:
            density_mask: 2D array of shape (mask_height, mask_width).
            max_attempts: Candidates tried around each active point.

        Returns:
            Points in acceptance order.
        """
        mask = np.asarray(density_mask, dtype=np.float64)
        if mask.ndim != 2 or mask.size == 0:
            raise ValueError(f"density_mask must be a non-empty 2D array, got shape {mask.shape}")
        mask_h, mask_w = mask.shape

        points: list[Point] = []
        grid = self._new_grid()
        active: deque[int] = deque()

        density = 0.0
        start_x = start_y = 0.0
        for _ in range(1000):
            start_x = self.rng.next_float() * self.width
            start_y = self.rng.next_float() * self.height
            density = self._mask_value(mask, start_x, start_y)
            if density >= 0.1:
                break
        if density < 0.1:
            return points

        self._accept(start_x, start_y, points, grid, active)

        while active:
            px, py = points[active.popleft()]
            for _ in range(max_attempts):
                angle = self.rng.next_float() * TWO_PI
                local_density = self._mask_value(mask, px, py)
                if local_density < 0.01:
                    continue

                spacing = self.min_distance / math.sqrt(local_density)
                dist = spacing + self.rng.next_float() * spacing
                new_x = px + math.cos(angle) * dist
                new_y = py + math.sin(angle) * dist

                mx = int(new_x / self.width * mask_w)
                my = int(new_y / self.height * mask_h)
                if not (0 <= mx < mask_w and 0 <= my < mask_h):
                    continue
                if mask[my, mx] > self.rng.next_float() and self.is_valid_point(
                    new_x, new_y, points, grid
                ):
                    self._accept(new_x, new_y, points, grid, active)

        return points
