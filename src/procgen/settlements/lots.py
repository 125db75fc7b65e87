"""Building lots subdivided along both sides of each street."""

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

from ..hosts import TerrainQueries
from ..rng import RandomGenerator
from .districts import District, DistrictType, district_at
from .streets import StreetSegment

if TYPE_CHECKING:
    from .buildings import BuildingRole

MIN_STREET_LENGTH = 50.0
LOT_SETBACK = 10.0
MAX_LOT_SLOPE = 0.35
DEFAULT_LOT_SIZE = (80.0, 100.0)

# (frontage width, depth) per district
LOT_SIZES: dict[DistrictType, tuple[float, float]] = {
    DistrictType.SLUMS: (50.0, 60.0),
    DistrictType.NOBLE: (150.0, 200.0),
    DistrictType.MARKET: (100.0, 80.0),
    DistrictType.INDUSTRIAL: (120.0, 150.0),
}


@dataclass
class BuildingLot:
    """A buildable parcel facing a street.

    ``occupied`` and ``role`` are set once when a building role is assigned.
    """

    x: float
    y: float
    width: float
    depth: float
    rotation: float
    district: DistrictType
    is_corner: bool = False
    faces_main_road: bool = False
    occupied: bool = False
    role: "BuildingRole | None" = None


def lots_along_street(
    terrain: TerrainQueries,
    street: StreetSegment,
    districts: Sequence[District],
    rng: RandomGenerator,
    building_density: float,
    organic_factor: float,
) -> list[BuildingLot]:
    """Lots on the left then right side of one street."""
    length = street.length
    if length < MIN_STREET_LENGTH:
        return []

    mx, my = street.midpoint
    district = district_at(districts, mx, my)
    width, depth = LOT_SIZES.get(district, DEFAULT_LOT_SIZE)
    width *= 1.0 + organic_factor * rng.next_float_range(-0.2, 0.2)
    depth *= 1.0 + organic_factor * rng.next_float_range(-0.2, 0.2)

    count = int(length / width)
    if count < 1:
        return []

    dx = (street.end_x - street.start_x) / length
    dy = (street.end_y - street.start_y) / length
    perp_x, perp_y = -dy, dx
    offset = street.width / 2.0 + depth / 2.0 + LOT_SETBACK
    angle = street.angle

    lots = []
    for side in (-1, 1):
        for i in range(count):
            if rng.next_bool(1.0 - building_density):
                continue
            t = (i + 0.5) / count
            x = street.start_x + dx * length * t + perp_x * offset * side
            y = street.start_y + dy * length * t + perp_y * offset * side
            if terrain.slope(x, y) > MAX_LOT_SLOPE:
                continue
            lots.append(
                BuildingLot(
                    x=x,
                    y=y,
                    width=width * (1.0 + rng.next_float_range(-0.1, 0.1)),
                    depth=depth * (1.0 + rng.next_float_range(-0.1, 0.1)),
                    rotation=angle + (0.0 if side > 0 else math.pi),
                    district=district_at(districts, x, y),
                    is_corner=i == 0 or i == count - 1,
                    faces_main_road=street.is_main,
                )
            )
    return lots


def create_lots(
    terrain: TerrainQueries,
    streets: Sequence[StreetSegment],
    districts: Sequence[District],
    rng: RandomGenerator,
    building_density: float = 0.6,
    organic_factor: float = 0.3,
    max_lots: int | None = None,
) -> list[BuildingLot]:
    """Lots for every street in order, truncated to ``max_lots``."""
    lots: list[BuildingLot] = []
    for street in streets:
        lots += lots_along_street(
            terrain, street, districts, rng, building_density, organic_factor
        )
    if max_lots is not None:
        del lots[max_lots:]
    return lots
