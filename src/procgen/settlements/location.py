"""Settlement sites and the search that finds them."""

import math
from dataclasses import dataclass, field

import structlog

from ..config import GenerationConfig, SettlementType, settlement_radius
from ..hosts import TerrainQueries
from ..rng import RandomGenerator
from ..terrain_types import REAL_SIZE, cell_center

logger = structlog.get_logger()

# Attempts per requested settlement before the search gives up
ATTEMPTS_PER_SETTLEMENT = 100
MIN_SETTLEMENT_GAP = 500.0
SHORE_CLEARANCE = 50.0
MAX_HEIGHT_SPREAD = 200.0
MAX_CENTER_SLOPE = 0.3
RING_SAMPLES = 8


@dataclass
class SettlementLocation:
    """A settlement site.

    ``building_ids`` and ``interior_ids`` accumulate as the layout engine
    places buildings.
    """

    name: str
    cell_x: int
    cell_y: int
    center_x: float
    center_y: float
    center_z: float
    radius: float
    type: SettlementType
    building_ids: list[str] = field(default_factory=list)
    interior_ids: list[str] = field(default_factory=list)


def is_suitable_site(
    terrain: TerrainQueries,
    config: GenerationConfig,
    x: float,
    y: float,
    radius: float,
) -> bool:
    """Dry, moderately low, flat-centred ground with an even rim."""
    tp = config.terrain
    water_level = terrain.water_level()
    center = terrain.height(x, y)
    if center < water_level + SHORE_CLEARANCE:
        return False
    if center > tp.base_height + tp.height_variation * 0.7:
        return False
    if terrain.slope(x, y) > MAX_CENTER_SLOPE:
        return False

    low = high = center
    for i in range(RING_SAMPLES):
        angle = i * 2.0 * math.pi / RING_SAMPLES
        h = terrain.height(x + math.cos(angle) * radius * 0.8, y + math.sin(angle) * radius * 0.8)
        if h < water_level:
            return False
        low = min(low, h)
        high = max(high, h)
    return high - low <= MAX_HEIGHT_SPREAD


def find_settlement_locations(
    terrain: TerrainQueries,
    config: GenerationConfig,
    rng: RandomGenerator,
) -> list[SettlementLocation]:
    """Manual locations, or a rejection-sampled set of suitable sites.

    The automatic search draws a random cell and a random point in its
    central 60%, and stops after ``count * 100`` attempts even if fewer
    sites were found.
    """
    sp = config.settlement
    radius = settlement_radius(sp.type)
    locations: list[SettlementLocation] = []

    def add(cell_x: int, cell_y: int, x: float, y: float) -> None:
        locations.append(
            SettlementLocation(
                name=f"Settlement_{config.seed}_{len(locations)}",
                cell_x=cell_x,
                cell_y=cell_y,
                center_x=x,
                center_y=y,
                center_z=terrain.height(x, y),
                radius=radius,
                type=sp.type,
            )
        )

    if not sp.auto_place_settlements:
        for cell_x, cell_y in sp.manual_locations:
            add(cell_x, cell_y, *cell_center(cell_x, cell_y))
        return locations

    max_attempts = sp.settlement_count * ATTEMPTS_PER_SETTLEMENT
    attempts = 0
    while len(locations) < sp.settlement_count and attempts < max_attempts:
        attempts += 1
        cell_x = config.origin_x + rng.next_int(config.world_size_x)
        cell_y = config.origin_y + rng.next_int(config.world_size_y)
        x = cell_x * REAL_SIZE + rng.next_float_range(0.2, 0.8) * REAL_SIZE
        y = cell_y * REAL_SIZE + rng.next_float_range(0.2, 0.8) * REAL_SIZE

        if not is_suitable_site(terrain, config, x, y, radius):
            continue
        if any(
            math.hypot(x - other.center_x, y - other.center_y)
            < radius + other.radius + MIN_SETTLEMENT_GAP
            for other in locations
        ):
            continue
        add(cell_x, cell_y, x, y)

    if len(locations) < sp.settlement_count:
        logger.debug(
            "settlement_search_short",
            requested=sp.settlement_count,
            found=len(locations),
            attempts=attempts,
        )
    return locations
