"""Natural object scatter: trees, rocks, grass and bushes per cell."""

import logging
import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from ..assets import AssetCategory
from ..hosts import GenerationContext, TerrainQueries
from ..rng import MASK64, RandomGenerator
from ..terrain_types import LAND_TEXTURE_SIZE, REAL_SIZE, cell_origin
from .noise import VORONOI_HASH_X, VORONOI_HASH_Y
from .sampling import PoissonDiskSampler

logger = logging.getLogger(__name__)

MASK_SIZE = LAND_TEXTURE_SIZE
MIN_CATEGORY_DENSITY = 0.01
CELL_HASH_OFFSET = 10000
FNV_OFFSET = 0xCBF29CE484222325
FNV_PRIME = 0x100000001B3

TREE_FALLBACKS = [
    "flora_tree_gl_01",
    "flora_tree_gl_02",
    "flora_tree_gl_03",
    "flora_tree_ai_01",
    "flora_tree_ai_02",
    "flora_bc_tree_01",
    "flora_bc_tree_02",
]
ROCK_FALLBACKS = [
    "terrain_rock_ai_01",
    "terrain_rock_ai_02",
    "terrain_rock_ai_03",
    "terrain_rock_bc_01",
    "terrain_rock_bc_02",
    "terrain_rock_gl_01",
    "terrain_rock_gl_02",
]
GRASS_FALLBACKS = [
    "flora_grass_01",
    "flora_grass_02",
    "flora_grass_03",
    "flora_plant_01",
    "flora_plant_02",
    "flora_bc_fern_01",
    "flora_bc_fern_02",
]


@dataclass
class PlacedObject:
    """A scattered natural object."""

    ref_id: str
    object_id: str
    category: AssetCategory
    x: float
    y: float
    z: float
    rotation: float
    scale: float


def fnv1a(text: str) -> int:
    """64-bit FNV-1a hash of a string's UTF-8 bytes."""
    h = FNV_OFFSET
    for byte in text.encode("utf-8"):
        h ^= byte
        h = (h * FNV_PRIME) & MASK64
    return h


def cell_seed(seed: int, cell_x: int, cell_y: int) -> int:
    """Per-cell seed, stable across runs and independent of visit order."""
    return (
        seed
        + (cell_x + CELL_HASH_OFFSET) * VORONOI_HASH_X
        + (cell_y + CELL_HASH_OFFSET) * VORONOI_HASH_Y
    ) & MASK64


def density_mask(
    terrain: TerrainQueries,
    cell_x: int,
    cell_y: int,
    base_height: float,
    height_variation: float,
) -> NDArray[np.float32]:
    """Suitability of each mask tile for vegetation, in [0, 1].

    Steep tiles fade out, underwater tiles are zero and tiles above
    ``base + 0.8 * variation`` are thinned to 0.3.

    Returns:
        Array of shape (MASK_SIZE, MASK_SIZE), indexed [my, mx].
    """
    x0, y0 = cell_origin(cell_x, cell_y)
    tile = REAL_SIZE / MASK_SIZE
    water_level = terrain.water_level()
    high_ground = base_height + height_variation * 0.8

    mask = np.zeros((MASK_SIZE, MASK_SIZE), dtype=np.float32)
    for my in range(MASK_SIZE):
        for mx in range(MASK_SIZE):
            x = x0 + (mx + 0.5) * tile
            y = y0 + (my + 0.5) * tile
            h = terrain.height(x, y)
            if h < water_level:
                continue
            slope_factor = max(0.0, 1.0 - terrain.slope(x, y) * 1.5)
            height_factor = 0.3 if h > high_ground else 1.0
            mask[my, mx] = slope_factor * height_factor
    return mask


def _categories(ctx: GenerationContext) -> list[tuple[AssetCategory, float, list[str]]]:
    op = ctx.config.objects
    candidates = [
        (AssetCategory.TREE, op.tree_density, TREE_FALLBACKS),
        (AssetCategory.ROCK, op.rock_density, ROCK_FALLBACKS),
        (AssetCategory.GRASS, op.grass_density, GRASS_FALLBACKS),
    ]
    # Bushes have no built-in ids
    if ctx.catalog.get_asset_ids(AssetCategory.BUSH):
        candidates.append((AssetCategory.BUSH, op.bush_density, []))
    return [c for c in candidates if c[1] > MIN_CATEGORY_DENSITY]


def place_objects_in_cell(ctx: GenerationContext, cell_x: int, cell_y: int) -> list[PlacedObject]:
    """Scatter every enabled category over one cell.

    Each category is sampled with its own Poisson stream seeded from the cell
    and the category name; ids, rotations and scales come from a per-cell
    stream. Neither touches the run's shared stream, so a cell's objects do
    not depend on which cells were generated before it.
    """
    op = ctx.config.objects
    tp = ctx.config.terrain
    base = cell_seed(ctx.config.seed, cell_x, cell_y)
    cell_rng = RandomGenerator(base)
    use_library = op.use_asset_library and ctx.catalog.has_assets()
    mask = density_mask(ctx.terrain, cell_x, cell_y, tp.base_height, tp.height_variation)
    x0, y0 = cell_origin(cell_x, cell_y)

    placed: list[PlacedObject] = []
    for category, density, fallbacks in _categories(ctx):
        ids = ctx.catalog.get_asset_ids(category) if use_library else []
        ids = ids or fallbacks
        if not ids:
            continue

        sampler = PoissonDiskSampler(
            (base + fnv1a(category.value)) & MASK64,
            op.min_spacing / math.sqrt(density),
            REAL_SIZE,
            REAL_SIZE,
        )
        points = sampler.generate_points_with_mask(mask * density)
        for px, py in points:
            x = x0 + px
            y = y0 + py
            if ctx.is_underwater(x, y):
                continue
            object_id = cell_rng.choice(ids)
            rotation = cell_rng.next_float_range(0.0, 6.28318) * op.rotation_variation
            scale = max(
                0.5, 1.0 + cell_rng.next_float_range(-op.scale_variation, op.scale_variation)
            )
            ref_id = ctx.place(object_id, x, y, rotation=rotation, scale=scale)
            z = ctx.terrain.height(x, y)
            placed.append(PlacedObject(ref_id, object_id, category, x, y, z, rotation, scale))

    logger.debug(f"Cell ({cell_x}, {cell_y}): placed {len(placed)} objects")
    return placed
