"""Tests for placement contexts and site search."""

import math

import pytest

from conftest import CoastTerrain, FlatTerrain, SteepTerrain
from procgen.config import SettlementType
from procgen.infrastructure.placement import (
    DEFAULT_CONTEXT,
    FAR_AWAY,
    InfrastructureType,
    PlacedInfrastructure,
    PlacementContext,
    SiteFinder,
    WorldBounds,
    context_for,
)
from procgen.infrastructure.roads import WorldRoad
from procgen.rng import RandomGenerator
from procgen.settlements.location import SettlementLocation

T = InfrastructureType
BOX = WorldBounds(0.0, 0.0, 1000.0, 1000.0)


class ConeTerrain:
    """A single peak of height 1000 at the origin."""

    def height(self, x: float, y: float) -> float:
        return max(0.0, 1000.0 - math.hypot(x, y))

    def slope(self, x: float, y: float) -> float:
        return 0.0

    def water_level(self) -> float:
        return -math.inf


def _village(x: float = 0.0, y: float = 0.0, radius: float = 500.0) -> SettlementLocation:
    return SettlementLocation(
        name="V", cell_x=0, cell_y=0, center_x=x, center_y=y, center_z=0.0,
        radius=radius, type=SettlementType.VILLAGE,
    )


class TestContexts:
    """Tests for the per-type constraint table."""

    def test_unlisted_type_uses_default(self) -> None:
        """Types without an entry get the default context."""
        assert context_for(T.SIGNPOST) is DEFAULT_CONTEXT
        assert PlacedInfrastructure(T.SHRINE, 0.0, 0.0, 0.0).context is DEFAULT_CONTEXT

    def test_listed_types(self) -> None:
        """Watchtowers need hills and mines avoid settlements."""
        assert context_for(T.WATCHTOWER).on_hill
        assert context_for(T.MINE).away_from_settlement
        assert context_for(T.FISHING_HUT).near_water


class TestSiteFinderQueries:
    """Tests for the terrain and proximity checks."""

    def test_near_water(self) -> None:
        """A ring sample reaching the sea counts as near water."""
        sites = SiteFinder(CoastTerrain(), RandomGenerator(1), BOX)
        assert sites.is_near_water(100.0, 0.0, 200.0)
        assert not sites.is_near_water(1000.0, 0.0, 200.0)

    def test_on_hill(self) -> None:
        """The peak stands above its ring; flat ground does not."""
        assert SiteFinder(ConeTerrain(), RandomGenerator(1), BOX).is_on_hill(0.0, 0.0)
        assert not SiteFinder(FlatTerrain(), RandomGenerator(1), BOX).is_on_hill(0.0, 0.0)

    def test_settlement_distance(self) -> None:
        """Distance is measured to the settlement edge."""
        sites = SiteFinder(FlatTerrain(), RandomGenerator(1), BOX, settlements=[_village()])
        assert sites.distance_to_nearest_settlement(1000.0, 0.0) == pytest.approx(500.0)
        assert sites.distance_to_nearest_settlement(100.0, 0.0) < 0.0
        empty = SiteFinder(FlatTerrain(), RandomGenerator(1), BOX)
        assert empty.distance_to_nearest_settlement(0.0, 0.0) == FAR_AWAY

    def test_road_distance(self) -> None:
        """Distance to a polyline clamps to its segments."""
        road = WorldRoad(waypoints=[(0.0, 0.0), (1000.0, 0.0)])
        sites = SiteFinder(FlatTerrain(), RandomGenerator(1), BOX, roads=[road])
        assert sites.distance_to_nearest_road(500.0, 300.0) == pytest.approx(300.0)
        assert sites.distance_to_nearest_road(1500.0, 0.0) == pytest.approx(500.0)


class TestIsValidLocation:
    """Tests for constraint checking."""

    def test_height_window(self) -> None:
        """Heights outside the window are rejected."""
        sites = SiteFinder(FlatTerrain(level=100.0), RandomGenerator(1), BOX)
        assert sites.is_valid_location(0.0, 0.0, PlacementContext(max_height=150.0))
        assert not sites.is_valid_location(0.0, 0.0, PlacementContext(max_height=50.0))

    def test_slope_limit(self) -> None:
        """Slopes over the limit are rejected."""
        sites = SiteFinder(SteepTerrain(0.4), RandomGenerator(1), BOX)
        assert not sites.is_valid_location(0.0, 0.0, PlacementContext(max_slope=0.3))
        assert sites.is_valid_location(0.0, 0.0, PlacementContext(max_slope=0.5))

    def test_water_rules(self) -> None:
        """Water is avoided by default and required by on_water."""
        sites = SiteFinder(CoastTerrain(), RandomGenerator(1), BOX)
        assert not sites.is_valid_location(-500.0, 0.0, DEFAULT_CONTEXT)
        on_water = PlacementContext(avoid_water=False, on_water=True)
        assert sites.is_valid_location(-500.0, 0.0, on_water)
        assert not sites.is_valid_location(500.0, 0.0, on_water)

    def test_settlement_rules(self) -> None:
        """near_settlement and away_from_settlement bound the edge distance."""
        sites = SiteFinder(FlatTerrain(), RandomGenerator(1), BOX, settlements=[_village()])
        near = PlacementContext(near_settlement=True, settlement_distance=1000.0)
        away = PlacementContext(away_from_settlement=True, min_settlement_distance=1000.0)
        assert sites.is_valid_location(1000.0, 0.0, near)
        assert not sites.is_valid_location(1000.0, 0.0, away)
        assert sites.is_valid_location(2000.0, 0.0, away)

    def test_near_road(self) -> None:
        """near_road requires a road within the distance."""
        road = WorldRoad(waypoints=[(0.0, 0.0), (1000.0, 0.0)])
        sites = SiteFinder(FlatTerrain(), RandomGenerator(1), BOX, roads=[road])
        ctx = PlacementContext(near_road=True, road_distance=200.0)
        assert sites.is_valid_location(500.0, 100.0, ctx)
        assert not sites.is_valid_location(500.0, 300.0, ctx)

    def test_spacing_from_any_and_same(self) -> None:
        """Both the any-type and same-type spacing are enforced."""
        placed = [PlacedInfrastructure(T.RUINS, 0.0, 0.0, 0.0)]
        sites = SiteFinder(FlatTerrain(), RandomGenerator(1), BOX, placed=placed)
        ctx = PlacementContext(min_spacing_from_any=100.0, min_spacing_from_same=1000.0)
        assert not sites.is_valid_location(50.0, 0.0, ctx, T.FARM)
        assert sites.is_valid_location(500.0, 0.0, ctx, T.FARM)
        assert not sites.is_valid_location(500.0, 0.0, ctx, T.RUINS)
        assert sites.is_valid_location(500.0, 0.0, ctx, T.RUINS, check_spacing=False)


class TestFindValidLocation:
    """Tests for rejection-sampled site search."""

    def test_first_sample_on_open_ground(self) -> None:
        """Unconstrained flat ground accepts the first sample."""
        sites = SiteFinder(FlatTerrain(), RandomGenerator(1), BOX)
        site = sites.find_valid_location(T.SIGNPOST)
        assert site is not None
        x, y, z = site
        assert 0.0 <= x < 1000.0 and 0.0 <= y < 1000.0
        assert z == 100.0
        assert sites.last_attempts == 1

    def test_exhausts_budget(self) -> None:
        """An impossible spacing returns None after exactly the attempt budget."""
        placed = [PlacedInfrastructure(T.SIGNPOST, 500.0, 500.0, 100.0)]
        sites = SiteFinder(FlatTerrain(), RandomGenerator(1), BOX, placed=placed)
        ctx = PlacementContext(min_spacing_from_any=10000.0)
        assert sites.find_valid_location(T.SHRINE, ctx, max_attempts=37) is None
        assert sites.last_attempts == 37

    def test_hill_type_fails_on_flat(self) -> None:
        """Watchtowers never find a site on flat ground."""
        sites = SiteFinder(FlatTerrain(), RandomGenerator(1), BOX)
        assert sites.find_valid_location(T.WATCHTOWER) is None
        assert sites.last_attempts == 100
