"""Per-cell land records: height grids, vertex normals and texture grids."""

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray
from scipy import ndimage

from ..terrain_types import LAND_SIZE, LAND_TEXTURE_SIZE, REAL_SIZE, cell_origin
from .fields import TerrainField

logger = logging.getLogger(__name__)

VERTEX_SIZE = REAL_SIZE / (LAND_SIZE - 1)
TEXTURE_TILE_SIZE = REAL_SIZE / LAND_TEXTURE_SIZE


@dataclass
class LandData:
    """Land record content for one exterior cell."""

    cell_x: int
    cell_y: int
    heights: NDArray[np.float32]
    normals: NDArray[np.int8]
    textures: NDArray[np.uint16]


def sample_heights(field: TerrainField, cell_x: int, cell_y: int) -> NDArray[np.float32]:
    """Sample the cell's height vertices.

    Args:
        field: Terrain field to sample.
        cell_x: Cell x coordinate.
        cell_y: Cell y coordinate.

    Returns:
        Array of shape (LAND_SIZE, LAND_SIZE), indexed [vy, vx].
    """
    x0, y0 = cell_origin(cell_x, cell_y)
    offsets = np.arange(LAND_SIZE, dtype=np.float64) * VERTEX_SIZE
    heights = np.empty((LAND_SIZE, LAND_SIZE), dtype=np.float32)
    for vy, oy in enumerate(offsets):
        wy = y0 + oy
        heights[vy] = [field.height(x0 + ox, wy) for ox in offsets]
    return heights


def compute_normals(
    heights: NDArray[np.float32],
    vertex_size: float = VERTEX_SIZE,
) -> NDArray[np.int8]:
    """Vertex normals from central differences, scaled to signed bytes.

    Border vertices reuse their own height for the missing neighbour.

    Args:
        heights: 2D height grid indexed [vy, vx].
        vertex_size: World distance between adjacent vertices.

    Returns:
        Array of shape (rows, cols, 3) holding (nx, ny, nz) in [-127, 127].
    """
    padded = np.pad(heights.astype(np.float64), 1, mode="edge")
    dx = (padded[1:-1, 2:] - padded[1:-1, :-2]) / (2.0 * vertex_size)
    dy = (padded[2:, 1:-1] - padded[:-2, 1:-1]) / (2.0 * vertex_size)
    length = np.sqrt(dx * dx + dy * dy + 1.0)

    normals = np.empty(heights.shape + (3,), dtype=np.float64)
    normals[..., 0] = np.clip(-dx / length * 127.0, -127.0, 127.0)
    normals[..., 1] = np.clip(-dy / length * 127.0, -127.0, 127.0)
    normals[..., 2] = np.clip(1.0 / length * 127.0, 0.0, 127.0)
    # Truncate toward zero like an integer cast
    return np.trunc(normals).astype(np.int8)


def sample_textures(field: TerrainField, cell_x: int, cell_y: int) -> NDArray[np.uint16]:
    """Texture class per texture tile, sampled at tile centres."""
    x0, y0 = cell_origin(cell_x, cell_y)
    textures = np.empty((LAND_TEXTURE_SIZE, LAND_TEXTURE_SIZE), dtype=np.uint16)
    for ty in range(LAND_TEXTURE_SIZE):
        wy = y0 + (ty + 0.5) * TEXTURE_TILE_SIZE
        for tx in range(LAND_TEXTURE_SIZE):
            wx = x0 + (tx + 0.5) * TEXTURE_TILE_SIZE
            textures[ty, tx] = int(field.texture_at(wx, wy))
    return textures


def build_land(field: TerrainField, cell_x: int, cell_y: int) -> LandData:
    """Heights, normals and textures for one cell."""
    heights = sample_heights(field, cell_x, cell_y)
    return LandData(
        cell_x=cell_x,
        cell_y=cell_y,
        heights=heights,
        normals=compute_normals(heights),
        textures=sample_textures(field, cell_x, cell_y),
    )


def terrain_stats(
    heights: NDArray[np.float32],
    water_level: float,
    vertex_size: float = VERTEX_SIZE,
    steep_threshold: float = 0.7,
) -> dict[str, float]:
    """Summary statistics for a height grid.

    Args:
        heights: 2D height grid.
        water_level: Water surface height (minus infinity for none).
        vertex_size: World distance between adjacent vertices.
        steep_threshold: Slope above which ground counts as cliff.

    Returns:
        Dict with min/max/mean height, steep fraction and underwater fraction.
    """
    grid = heights.astype(np.float64)
    # Sobel responses are 8x the central-difference gradient
    gx = ndimage.sobel(grid, axis=1, mode="nearest") / (8.0 * vertex_size)
    gy = ndimage.sobel(grid, axis=0, mode="nearest") / (8.0 * vertex_size)
    slope = np.hypot(gx, gy)

    stats = {
        "min_height": float(grid.min()),
        "max_height": float(grid.max()),
        "mean_height": float(grid.mean()),
        "steep_fraction": float(np.mean(slope > steep_threshold)),
        "underwater_fraction": float(np.mean(grid < water_level)),
    }
    logger.debug(
        f"Height range {stats['min_height']:.0f}..{stats['max_height']:.0f}, "
        f"steep {stats['steep_fraction']:.1%}"
    )
    return stats
