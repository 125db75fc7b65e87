"""Post-generation re-validation of placed infrastructure and buildings."""

import logging
from typing import Sequence

import numpy as np
from scipy.spatial import cKDTree

from .hosts import TerrainQueries
from .infrastructure.placement import (
    InfrastructureType,
    PlacedInfrastructure,
    SiteFinder,
    WorldBounds,
)
from .infrastructure.roads import WorldRoad
from .interiors import Rect
from .rng import RandomGenerator
from .settlements.location import SettlementLocation

logger = logging.getLogger(__name__)

# Types whose anchors come from the constrained location search
SEARCH_PLACED = frozenset(
    {
        InfrastructureType.WATCHTOWER,
        InfrastructureType.FARM,
        InfrastructureType.MINE,
        InfrastructureType.LUMBER_CAMP,
        InfrastructureType.RUINS,
        InfrastructureType.STANDING_STONE,
        InfrastructureType.BURIAL_MOUND,
        InfrastructureType.BANDIT_CAMP,
        InfrastructureType.FISHING_HUT,
    }
)


class ValidationResult:
    """Result of a validation pass."""

    def __init__(self) -> None:
        self.errors: list[str] = []
        self.warnings: list[str] = []
        self.passed = True

    def add_error(self, message: str) -> None:
        """Add validation error."""
        self.errors.append(message)
        self.passed = False

    def add_warning(self, message: str) -> None:
        """Add validation warning."""
        self.warnings.append(message)


def validate_infrastructure(
    placed: Sequence[PlacedInfrastructure],
    terrain: TerrainQueries,
    settlements: Sequence[SettlementLocation] = (),
    roads: Sequence[WorldRoad] = (),
) -> ValidationResult:
    """Re-check every search-placed anchor against its placement context.

    Only terrain and settlement constraints are re-checked; satellites and
    road-side structures are placed by offset rather than by search and are
    reported as warnings when they fail.

    Args:
        placed: Infrastructure records in placement order.
        terrain: Terrain the records were placed on.
        settlements: Settlements present during placement.
        roads: Roads present during placement.

    Returns:
        ValidationResult with any errors/warnings.
    """
    result = ValidationResult()
    bounds = WorldBounds(0.0, 0.0, 0.0, 0.0)
    finder = SiteFinder(terrain, RandomGenerator(0), bounds, settlements, roads)

    for item in placed:
        ctx = item.context
        if finder.is_valid_location(item.x, item.y, ctx, item.infra_type, check_spacing=False):
            continue
        message = f"{item.infra_type.value} at ({item.x:.0f}, {item.y:.0f}) violates its context"
        if item.infra_type in SEARCH_PLACED:
            result.add_error(message)
        else:
            result.add_warning(message)

    _check_spacing(placed, result)

    if result.passed:
        logger.info(f"Infrastructure validation passed ({len(placed)} records)")
    else:
        logger.warning(f"Infrastructure validation failed with {len(result.errors)} errors")
    return result


def _check_spacing(placed: Sequence[PlacedInfrastructure], result: ValidationResult) -> None:
    """Same-type spacing audit with a k-d tree per type."""
    by_type: dict[InfrastructureType, list[PlacedInfrastructure]] = {}
    for item in placed:
        if item.infra_type in SEARCH_PLACED:
            by_type.setdefault(item.infra_type, []).append(item)

    for infra_type, items in by_type.items():
        if len(items) < 2:
            continue
        spacing = items[0].context.min_spacing_from_same
        coords = np.array([(i.x, i.y) for i in items], dtype=np.float64)
        tree = cKDTree(coords)
        pairs = tree.query_pairs(spacing - 1e-6)
        if pairs:
            result.add_error(f"{len(pairs)} {infra_type.value} pairs closer than {spacing:.0f}")


def min_pairwise_distance(points: Sequence[tuple[float, float]]) -> float:
    """Smallest distance between any two points; infinity for fewer than two."""
    if len(points) < 2:
        return float("inf")
    tree = cKDTree(np.asarray(points, dtype=np.float64))
    distances, _ = tree.query(tree.data, k=2)
    return float(distances[:, 1].min())


def find_room_overlaps(rooms: Sequence[Rect]) -> list[tuple[int, int]]:
    """Index pairs of rooms whose interiors intersect."""
    overlaps = []
    for i in range(len(rooms)):
        for j in range(i + 1, len(rooms)):
            if rooms[i].overlaps(rooms[j]):
                overlaps.append((i, j))
    return overlaps
