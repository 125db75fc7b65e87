"""Street network inside a settlement: grid or organic."""

import math
from dataclasses import dataclass

from ..hosts import TerrainQueries
from ..rng import RandomGenerator

GRID_SPACING = 200.0
GRID_JITTER = 20.0
GRID_MAIN_WIDTH = 150.0
GRID_SIDE_WIDTH = 80.0

RADIAL_WIDTH = 120.0
RADIAL_REACH = 0.95
RING_SPACING = 400.0
RING_WIDTH = 80.0
IRREGULAR_WIDTH = 50.0
IRREGULAR_MAX_SLOPE = 0.4


@dataclass(frozen=True)
class StreetSegment:
    start_x: float
    start_y: float
    end_x: float
    end_y: float
    width: float
    is_main: bool = False

    @property
    def length(self) -> float:
        return math.hypot(self.end_x - self.start_x, self.end_y - self.start_y)

    @property
    def angle(self) -> float:
        return math.atan2(self.end_y - self.start_y, self.end_x - self.start_x)

    @property
    def midpoint(self) -> tuple[float, float]:
        return (self.start_x + self.end_x) * 0.5, (self.start_y + self.end_y) * 0.5


def grid_streets(
    center_x: float,
    center_y: float,
    radius: float,
    rng: RandomGenerator,
    organic_factor: float = 0.0,
) -> list[StreetSegment]:
    """Parallel horizontal then vertical streets across the settlement square.

    The middle street of each direction is the main street.
    """
    spacing = GRID_SPACING + rng.next_float_range(-GRID_JITTER, GRID_JITTER)
    count = int(radius * 2.0 / spacing)
    main = count // 2
    streets = []

    for i in range(count):
        y = center_y - radius + (i + 0.5) * spacing
        y += organic_factor * rng.next_float_range(-GRID_JITTER, GRID_JITTER)
        streets.append(
            StreetSegment(
                center_x - radius, y, center_x + radius, y,
                width=GRID_MAIN_WIDTH if i == main else GRID_SIDE_WIDTH,
                is_main=i == main,
            )
        )

    for i in range(count):
        x = center_x - radius + (i + 0.5) * spacing
        x += organic_factor * rng.next_float_range(-GRID_JITTER, GRID_JITTER)
        streets.append(
            StreetSegment(
                x, center_y - radius, x, center_y + radius,
                width=GRID_MAIN_WIDTH if i == main else GRID_SIDE_WIDTH,
                is_main=i == main,
            )
        )
    return streets


def _radial_streets(
    center_x: float, center_y: float, radius: float, rng: RandomGenerator, organic: float
) -> list[StreetSegment]:
    count = 4 + int(radius / 500.0)
    step = 6.28 / count
    offset = rng.next_float_range(0.0, step)
    streets = []
    for i in range(count):
        angle = offset + i * step + organic * rng.next_float_range(-0.2, 0.2)
        # Bends the far end sideways
        curve = organic * rng.next_float_range(-0.3, 0.3)
        end_angle = angle + curve
        streets.append(
            StreetSegment(
                center_x,
                center_y,
                center_x + math.cos(end_angle) * radius * RADIAL_REACH,
                center_y + math.sin(end_angle) * radius * RADIAL_REACH,
                width=RADIAL_WIDTH,
                is_main=True,
            )
        )
    return streets


def _ring_streets(
    center_x: float, center_y: float, radius: float, rng: RandomGenerator, organic: float
) -> list[StreetSegment]:
    ring_count = int(radius / RING_SPACING)
    streets = []
    for ring in range(1, ring_count + 1):
        ring_radius = radius * ring / (ring_count + 1)
        segments = 8 + ring * 4
        for i in range(segments):
            a1 = i * 6.28 / segments
            a2 = (i + 1) * 6.28 / segments
            r1 = ring_radius * (1.0 + organic * rng.next_float_range(-0.05, 0.05))
            r2 = ring_radius * (1.0 + organic * rng.next_float_range(-0.05, 0.05))
            streets.append(
                StreetSegment(
                    center_x + math.cos(a1) * r1,
                    center_y + math.sin(a1) * r1,
                    center_x + math.cos(a2) * r2,
                    center_y + math.sin(a2) * r2,
                    width=RING_WIDTH,
                )
            )
    return streets


def _irregular_streets(
    terrain: TerrainQueries,
    center_x: float,
    center_y: float,
    radius: float,
    rng: RandomGenerator,
    road_density: float,
) -> list[StreetSegment]:
    count = int(road_density * radius / 50.0)
    streets = []
    for _ in range(count):
        d1 = rng.next_float_range(0.1, 0.8) * radius
        d2 = rng.next_float_range(0.1, 0.8) * radius
        a1 = rng.next_float_range(0.0, 6.28)
        a2 = a1 + rng.next_float_range(0.3, 1.0)
        street = StreetSegment(
            center_x + math.cos(a1) * d1,
            center_y + math.sin(a1) * d1,
            center_x + math.cos(a2) * d2,
            center_y + math.sin(a2) * d2,
            width=IRREGULAR_WIDTH + rng.next_float_range(-10.0, 10.0),
        )
        mx, my = street.midpoint
        if terrain.slope(mx, my) < IRREGULAR_MAX_SLOPE:
            streets.append(street)
    return streets


def organic_streets(
    terrain: TerrainQueries,
    center_x: float,
    center_y: float,
    radius: float,
    rng: RandomGenerator,
    organic_factor: float = 0.3,
    radial: bool = True,
    rings: bool = True,
    irregular: bool = True,
    road_density: float = 0.5,
) -> list[StreetSegment]:
    """Radial spokes, concentric ring segments and random connectors.

    Rings need a radius above 400. Connectors whose midpoint is steeper
    than 0.4 are dropped.
    """
    streets: list[StreetSegment] = []
    if radial:
        streets += _radial_streets(center_x, center_y, radius, rng, organic_factor)
    if rings and radius > RING_SPACING:
        streets += _ring_streets(center_x, center_y, radius, rng, organic_factor)
    if irregular:
        streets += _irregular_streets(terrain, center_x, center_y, radius, rng, road_density)
    return streets
