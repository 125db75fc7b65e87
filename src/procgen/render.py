"""Pillow renderings of generated land for quick visual inspection."""

from collections import Counter
from typing import Iterable, Mapping

import numpy as np
from numpy.typing import NDArray
from PIL import Image

from .assets import AssetCategory, categorize_asset
from .terrain_types import LAND_TEXTURE_SIZE, REAL_SIZE, TextureClass

TEXTURE_COLORS = {
    TextureClass.SAND: (230, 210, 140),  # Sandy yellow
    TextureClass.GRASS: (60, 150, 60),  # Green
    TextureClass.ROCK: (110, 110, 110),  # Gray
    TextureClass.DIRT: (140, 100, 60),  # Brown
    TextureClass.SNOW: (240, 240, 250),  # Off-white
}
UNKNOWN_COLOR = (255, 0, 255)  # Magenta

CATEGORY_COLORS = {
    AssetCategory.TREE: (20, 90, 20),
    AssetCategory.ROCK: (70, 70, 70),
    AssetCategory.GRASS: (120, 190, 90),
    AssetCategory.BUSH: (90, 160, 90),
    AssetCategory.BUILDING: (180, 40, 40),
    AssetCategory.ROAD: (200, 170, 110),
}
OTHER_REFERENCE_COLOR = (255, 120, 0)

WATER_COLOR = np.array([40, 90, 160], dtype=np.float64)


def texture_image(
    lands: Mapping[tuple[int, int], NDArray[np.uint16]],
    pixels_per_tile: int = 4,
) -> tuple[Image.Image, tuple[int, int]]:
    """Mosaic of every cell's texture grid, north up.

    Args:
        lands: Texture grid per (cell_x, cell_y).
        pixels_per_tile: Output pixels per texture tile.

    Returns:
        Tuple of (image, (min_cell_x, max_cell_y)) so callers can map world
        positions onto the image.
    """
    xs = [c[0] for c in lands]
    ys = [c[1] for c in lands]
    min_x, max_x, min_y, max_y = min(xs), max(xs), min(ys), max(ys)
    tiles_w = (max_x - min_x + 1) * LAND_TEXTURE_SIZE
    tiles_h = (max_y - min_y + 1) * LAND_TEXTURE_SIZE

    rgb = np.zeros((tiles_h, tiles_w, 3), dtype=np.uint8)
    palette = np.array(
        [TEXTURE_COLORS.get(TextureClass(i), UNKNOWN_COLOR) for i in range(len(TextureClass))],
        dtype=np.uint8,
    )
    for (cx, cy), textures in lands.items():
        tile = palette[np.clip(textures, 0, len(palette) - 1)]
        # Row 0 of a texture grid is the cell's southern edge
        row0 = (max_y - cy) * LAND_TEXTURE_SIZE
        col0 = (cx - min_x) * LAND_TEXTURE_SIZE
        rgb[row0 : row0 + LAND_TEXTURE_SIZE, col0 : col0 + LAND_TEXTURE_SIZE] = tile[::-1]

    img = Image.fromarray(rgb)
    if pixels_per_tile > 1:
        size = (tiles_w * pixels_per_tile, tiles_h * pixels_per_tile)
        img = img.resize(size, Image.Resampling.NEAREST)
    return img, (min_x, max_y)


def overlay_references(
    img: Image.Image,
    references: Iterable[Mapping],
    origin: tuple[int, int],
    pixels_per_tile: int = 4,
) -> Counter:
    """Draw one pixel per exterior reference; returns counts per category."""
    min_x, max_y = origin
    px_per_unit = pixels_per_tile * LAND_TEXTURE_SIZE / REAL_SIZE
    top = (max_y + 1) * REAL_SIZE
    left = min_x * REAL_SIZE
    pixels = img.load()
    counts: Counter = Counter()

    for ref in references:
        if not ref["cell_id"].startswith("#"):
            continue
        category = categorize_asset(ref["object_id"])
        counts[category.value] += 1
        px = int((ref["x"] - left) * px_per_unit)
        py = int((top - ref["y"]) * px_per_unit)
        if 0 <= px < img.width and 0 <= py < img.height:
            pixels[px, py] = CATEGORY_COLORS.get(category, OTHER_REFERENCE_COLOR)
    return counts


def height_image(heights: NDArray[np.float32], water_level: float) -> Image.Image:
    """Grayscale relief of one height grid with water tinted blue, north up."""
    grid = heights.astype(np.float64)
    low, high = float(grid.min()), float(grid.max())
    span = high - low or 1.0
    shade = (grid - low) / span * 200.0 + 40.0

    rgb = np.repeat(shade[..., None], 3, axis=2)
    underwater = grid < water_level
    rgb[underwater] = WATER_COLOR * (0.6 + 0.4 * (shade[underwater, None] / 240.0))
    return Image.fromarray(np.clip(rgb[::-1], 0, 255).astype(np.uint8))
