"""Caves and dungeons: an exterior entrance plus BSP interiors."""

import math
from dataclasses import dataclass, field
from typing import Callable

import structlog

from .assets import AssetCategory
from .config import CaveDungeonParams
from .hosts import GenerationContext
from .interiors import build_interior
from .terrain_types import REAL_SIZE, cell_coords

logger = structlog.get_logger()

ENTRANCE_ATTEMPTS = 100
CAVE_MIN_SLOPE = 0.3
CAVE_MAX_SLOPE = 0.8
DUNGEON_MAX_SLOPE = 0.5
DECOR_PER_ROOM = 3

CAVE_ENTRANCE_FALLBACKS = ["ex_cave_entrance_01", "ex_cave_entrance_02"]
DUNGEON_ENTRANCE_FALLBACKS = ["ex_ruins_entrance_01", "ex_ruins_door_01"]
LOOT_FALLBACKS = ["chest_small_01", "chest_common_01", "urn_01"]


@dataclass
class UndergroundSite:
    """An emitted cave or dungeon."""

    kind: str
    entrance_ref: str
    x: float
    y: float
    z: float
    interiors: list[str] = field(default_factory=list)


def find_entrance_site(
    ctx: GenerationContext, accept: Callable[[float, float], bool]
) -> tuple[float, float] | None:
    """Random world points until ``accept`` passes or the budget runs out."""
    cfg = ctx.config
    rng = ctx.rng
    for _ in range(ENTRANCE_ATTEMPTS):
        cell_x = cfg.origin_x + rng.next_int(cfg.world_size_x)
        cell_y = cfg.origin_y + rng.next_int(cfg.world_size_y)
        x = cell_x * REAL_SIZE + rng.next_float_range(0.2, 0.8) * REAL_SIZE
        y = cell_y * REAL_SIZE + rng.next_float_range(0.2, 0.8) * REAL_SIZE
        if accept(x, y):
            return x, y
    return None


def _scatter(
    ctx: GenerationContext,
    interior_id: str,
    ids: list[str],
    count: int,
    spread: float,
    z_range: tuple[float, float] | None,
    scale_range: tuple[float, float] | None,
) -> None:
    rng = ctx.rng
    for _ in range(count):
        x = rng.next_float_range(-spread / 2.0, spread / 2.0)
        y = rng.next_float_range(-spread / 2.0, spread / 2.0)
        z = rng.next_float_range(*z_range) if z_range else 0.0
        rotation = rng.next_float_range(0.0, 6.28)
        scale = rng.next_float_range(*scale_range) if scale_range else 1.0
        ctx.host.create_reference(rng.choice(ids), interior_id, x, y, z, rotation, scale)


def generate_cave(ctx: GenerationContext, params: CaveDungeonParams) -> UndergroundSite | None:
    """One cave on a hillside, or None when no slope in range was found."""
    terrain = ctx.terrain

    def accept(x: float, y: float) -> bool:
        slope = terrain.slope(x, y)
        above_water = terrain.height(x, y) > terrain.water_level()
        return CAVE_MIN_SLOPE < slope < CAVE_MAX_SLOPE and above_water

    site = find_entrance_site(ctx, accept)
    if site is None:
        logger.debug("cave_site_not_found", attempts=ENTRANCE_ATTEMPTS)
        return None
    x, y = site
    entrance = ctx.select(AssetCategory.CAVE_ENTRANCE, CAVE_ENTRANCE_FALLBACKS)
    ref = ctx.place(entrance, x, y, rotation=ctx.rng.next_float_range(0.0, 6.28318))

    cx, cy = cell_coords(x, y)
    interior_id = f"Cave_{ctx.config.seed}_{cx}_{cy}"
    rooms = ctx.rng.next_int_range(params.cave_min_rooms, params.cave_max_rooms)
    interior = ctx.config.interiors
    build_interior(
        ctx, interior_id, rooms, interior, params.cave_room_size_min, params.cave_room_size_max
    )

    decor = ctx.catalog.get_asset_ids(AssetCategory.CAVE_INTERIOR)
    if decor:
        _scatter(
            ctx,
            interior_id,
            decor,
            rooms * DECOR_PER_ROOM,
            params.cave_room_size_max * math.sqrt(rooms),
            (0.0, interior.ceiling_height),
            (0.8, 1.2),
        )
    return UndergroundSite("cave", ref, x, y, terrain.height(x, y), [interior_id])


def generate_dungeon(
    ctx: GenerationContext, params: CaveDungeonParams
) -> UndergroundSite | None:
    """One dungeon on flat dry ground with an interior per floor."""
    terrain = ctx.terrain

    def accept(x: float, y: float) -> bool:
        return (
            terrain.slope(x, y) < DUNGEON_MAX_SLOPE
            and terrain.height(x, y) > terrain.water_level()
        )

    site = find_entrance_site(ctx, accept)
    if site is None:
        logger.debug("dungeon_site_not_found", attempts=ENTRANCE_ATTEMPTS)
        return None
    x, y = site
    entrance = ctx.select(AssetCategory.DUNGEON_ENTRANCE, DUNGEON_ENTRANCE_FALLBACKS)
    ref = ctx.place(entrance, x, y, rotation=ctx.rng.next_float_range(0.0, 6.28318))
    result = UndergroundSite("dungeon", ref, x, y, terrain.height(x, y))

    cx, cy = cell_coords(x, y)
    for floor in range(params.dungeon_floors):
        interior_id = f"Dungeon_{ctx.config.seed}_{cx}_{cy}_Floor{floor}"
        rooms = ctx.rng.next_int_range(params.dungeon_min_rooms, params.dungeon_max_rooms)
        build_interior(
            ctx,
            interior_id,
            rooms,
            ctx.config.interiors,
            params.dungeon_room_size_min,
            params.dungeon_room_size_max,
        )
        result.interiors.append(interior_id)

        if params.generate_loot:
            loot = ctx.catalog.get_asset_ids(AssetCategory.CONTAINER) or LOOT_FALLBACKS
            _scatter(
                ctx,
                interior_id,
                loot,
                rooms // 2 + 1,
                params.dungeon_room_size_max * math.sqrt(rooms),
                None,
                None,
            )
    return result
