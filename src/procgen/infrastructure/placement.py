"""Placement contexts and constraint-checked location search."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from ..hosts import TerrainQueries
from ..rng import RandomGenerator
from ..settlements.location import SettlementLocation
from .roads import WorldRoad

DEFAULT_MAX_ATTEMPTS = 100

# Angular step used for ring samples around a position
PROBE_STEP = 0.785
PROBE_COUNT = 8

HILL_PROBE_RADIUS = 300.0
HILL_PROMINENCE = 100.0
NEAR_WATER_RADIUS = 200.0
FAR_AWAY = 1e10


class InfrastructureType(str, Enum):
    """Kinds of structure the infrastructure engine places."""

    SIGNPOST = "signpost"
    SHRINE = "shrine"
    REST_STOP = "rest_stop"
    WATCHTOWER = "watchtower"
    GUARD_POST = "guard_post"
    FARM = "farm"
    BARN = "barn"
    WELL = "well"
    WINDMILL = "windmill"
    WATER_MILL = "water_mill"
    MINE = "mine"
    LUMBER_CAMP = "lumber_camp"
    RUINS = "ruins"
    STANDING_STONE = "standing_stone"
    BURIAL_MOUND = "burial_mound"
    BANDIT_CAMP = "bandit_camp"
    TRAVELER_CAMP = "traveler_camp"
    DOCK = "dock"
    PIER = "pier"
    LIGHTHOUSE = "lighthouse"
    FISHING_HUT = "fishing_hut"


@dataclass(frozen=True)
class PlacementContext:
    """Constraints a location must satisfy for one infrastructure type."""

    min_height: float = -10000.0
    max_height: float = 10000.0
    max_slope: float = 0.3
    near_water: bool = False
    on_water: bool = False
    avoid_water: bool = True
    on_hill: bool = False
    near_road: bool = False
    road_distance: float = 200.0
    near_settlement: bool = False
    settlement_distance: float = 1000.0
    away_from_settlement: bool = False
    min_settlement_distance: float = 2000.0
    min_spacing_from_same: float = 500.0
    min_spacing_from_any: float = 100.0


DEFAULT_CONTEXT = PlacementContext()

PLACEMENT_CONTEXTS: dict[InfrastructureType, PlacementContext] = {
    InfrastructureType.WATCHTOWER: PlacementContext(
        on_hill=True, max_slope=0.3, min_spacing_from_same=2000.0
    ),
    InfrastructureType.FARM: PlacementContext(
        max_slope=0.15,
        near_settlement=True,
        settlement_distance=1500.0,
        min_spacing_from_same=500.0,
    ),
    InfrastructureType.MINE: PlacementContext(
        on_hill=True,
        max_slope=0.6,
        away_from_settlement=True,
        min_settlement_distance=1000.0,
        min_spacing_from_same=1500.0,
    ),
    InfrastructureType.LUMBER_CAMP: PlacementContext(
        max_slope=0.3,
        away_from_settlement=True,
        min_settlement_distance=800.0,
        min_spacing_from_same=1000.0,
    ),
    InfrastructureType.RUINS: PlacementContext(
        max_slope=0.4,
        away_from_settlement=True,
        min_settlement_distance=1500.0,
        min_spacing_from_same=2000.0,
    ),
    InfrastructureType.BANDIT_CAMP: PlacementContext(
        max_slope=0.25,
        near_road=True,
        road_distance=500.0,
        away_from_settlement=True,
        min_settlement_distance=1000.0,
        min_spacing_from_same=2000.0,
    ),
    InfrastructureType.FISHING_HUT: PlacementContext(
        near_water=True, max_slope=0.2, min_spacing_from_same=800.0
    ),
    InfrastructureType.STANDING_STONE: PlacementContext(
        max_slope=0.2,
        away_from_settlement=True,
        min_settlement_distance=500.0,
        min_spacing_from_same=1500.0,
    ),
    InfrastructureType.BURIAL_MOUND: PlacementContext(
        max_slope=0.2,
        away_from_settlement=True,
        min_settlement_distance=500.0,
        min_spacing_from_same=1500.0,
    ),
}


def context_for(infra_type: InfrastructureType) -> PlacementContext:
    """Constraint record for a type; unlisted types get the default."""
    return PLACEMENT_CONTEXTS.get(infra_type, DEFAULT_CONTEXT)


@dataclass(frozen=True)
class PlacedInfrastructure:
    """An emitted infrastructure anchor.

    ``ref_id`` and ``object_id`` are empty for camps, whose anchor is only a
    site marker for the tents and fire around it.
    """

    infra_type: InfrastructureType
    x: float
    y: float
    z: float
    rotation: float = 0.0
    scale: float = 1.0
    ref_id: str = ""
    object_id: str = ""
    cell_x: int = 0
    cell_y: int = 0
    linked_refs: tuple[str, ...] = field(default=())

    @property
    def context(self) -> PlacementContext:
        return context_for(self.infra_type)


@dataclass(frozen=True)
class WorldBounds:
    """Axis-aligned search area in world units."""

    min_x: float
    min_y: float
    width: float
    height: float


class SiteFinder:
    """Terrain, settlement, road and spacing checks for candidate sites.

    ``placed`` is shared with the engine and grows as structures are
    committed; spacing checks scan it linearly.
    """

    def __init__(
        self,
        terrain: TerrainQueries,
        rng: RandomGenerator,
        bounds: WorldBounds,
        settlements: Sequence[SettlementLocation] = (),
        roads: Sequence[WorldRoad] = (),
        placed: list[PlacedInfrastructure] | None = None,
    ):
        self.terrain = terrain
        self.rng = rng
        self.bounds = bounds
        self.settlements = settlements
        self.roads = roads
        self.placed = placed if placed is not None else []
        self.last_attempts = 0

    def is_in_water(self, x: float, y: float) -> bool:
        return self.terrain.height(x, y) < self.terrain.water_level()

    def is_near_water(self, x: float, y: float, radius: float) -> bool:
        """Whether any of eight ring samples at ``radius`` is in water."""
        for i in range(PROBE_COUNT):
            a = i * PROBE_STEP
            if self.is_in_water(x + math.cos(a) * radius, y + math.sin(a) * radius):
                return True
        return False

    def is_on_hill(self, x: float, y: float) -> bool:
        """Whether the point stands clearly above its surroundings."""
        center = self.terrain.height(x, y)
        total = 0.0
        for i in range(PROBE_COUNT):
            a = i * PROBE_STEP
            total += self.terrain.height(
                x + math.cos(a) * HILL_PROBE_RADIUS, y + math.sin(a) * HILL_PROBE_RADIUS
            )
        return center > total / PROBE_COUNT + HILL_PROMINENCE

    def distance_to_nearest_settlement(self, x: float, y: float) -> float:
        """Distance to the closest settlement edge (negative inside one)."""
        best = FAR_AWAY
        for s in self.settlements:
            best = min(best, math.hypot(x - s.center_x, y - s.center_y) - s.radius)
        return best

    def distance_to_nearest_road(self, x: float, y: float) -> float:
        best = FAR_AWAY
        for road in self.roads:
            for (x1, y1), (x2, y2) in zip(road.waypoints, road.waypoints[1:]):
                dx = x2 - x1
                dy = y2 - y1
                length_sq = dx * dx + dy * dy
                if length_sq < 0.001:
                    continue
                t = ((x - x1) * dx + (y - y1) * dy) / length_sq
                t = min(max(t, 0.0), 1.0)
                best = min(best, math.hypot(x - (x1 + t * dx), y - (y1 + t * dy)))
        return best

    def is_valid_location(
        self,
        x: float,
        y: float,
        ctx: PlacementContext,
        infra_type: InfrastructureType | None = None,
        check_spacing: bool = True,
    ) -> bool:
        """Test every constraint of ``ctx`` at a position.

        Checks run cheapest first: height, slope, water, hill, settlement
        and road proximity, then spacing against placed infrastructure.
        """
        height = self.terrain.height(x, y)
        if height < ctx.min_height or height > ctx.max_height:
            return False
        if self.terrain.slope(x, y) > ctx.max_slope:
            return False

        in_water = height < self.terrain.water_level()
        if ctx.avoid_water and in_water:
            return False
        if ctx.on_water and not in_water:
            return False
        if ctx.near_water and not self.is_near_water(x, y, NEAR_WATER_RADIUS):
            return False

        if ctx.on_hill and not self.is_on_hill(x, y):
            return False

        if ctx.near_settlement or ctx.away_from_settlement:
            settlement_dist = self.distance_to_nearest_settlement(x, y)
            if ctx.near_settlement and settlement_dist > ctx.settlement_distance:
                return False
            if ctx.away_from_settlement and settlement_dist < ctx.min_settlement_distance:
                return False

        if ctx.near_road and self.distance_to_nearest_road(x, y) > ctx.road_distance:
            return False

        if check_spacing:
            for placed in self.placed:
                dist = math.hypot(x - placed.x, y - placed.y)
                if dist < ctx.min_spacing_from_any:
                    return False
                if placed.infra_type == infra_type and dist < ctx.min_spacing_from_same:
                    return False

        return True

    def find_valid_location(
        self,
        infra_type: InfrastructureType,
        ctx: PlacementContext | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> tuple[float, float, float] | None:
        """Rejection-sample a site for ``infra_type``.

        Args:
            infra_type: Type being placed; used for same-type spacing.
            ctx: Constraint override; defaults to the type's context.
            max_attempts: Uniform samples drawn before giving up.

        Returns:
            (x, y, z) of the first valid sample, or None when the budget runs
            out. Exhaustion is an expected outcome, not an error.
        """
        ctx = ctx or context_for(infra_type)
        b = self.bounds
        self.last_attempts = 0
        for _ in range(max_attempts):
            self.last_attempts += 1
            x = b.min_x + self.rng.next_float_range(0.0, b.width)
            y = b.min_y + self.rng.next_float_range(0.0, b.height)
            if self.is_valid_location(x, y, ctx, infra_type):
                return x, y, self.terrain.height(x, y)
        return None
