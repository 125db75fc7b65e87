"""Tests for settlement street networks."""

import math

import pytest

from conftest import FlatTerrain, SteepTerrain
from procgen.rng import RandomGenerator
from procgen.settlements.streets import (
    RADIAL_REACH,
    StreetSegment,
    grid_streets,
    organic_streets,
)


class TestStreetSegment:
    """Tests for StreetSegment geometry."""

    def test_geometry(self) -> None:
        """Length, angle and midpoint follow the endpoints."""
        street = StreetSegment(0.0, 0.0, 30.0, 40.0, width=10.0)
        assert street.length == 50.0
        assert street.angle == pytest.approx(math.atan2(40.0, 30.0))
        assert street.midpoint == (15.0, 20.0)


class TestGridStreets:
    """Tests for grid_streets."""

    def test_two_directions_one_main_each(self) -> None:
        """Half the streets run east-west, half north-south, each with one main."""
        streets = grid_streets(0.0, 0.0, 1000.0, RandomGenerator(3))
        half = len(streets) // 2
        assert len(streets) == 2 * half
        assert 9 <= half <= 11
        horizontal, vertical = streets[:half], streets[half:]
        assert all(s.start_y == s.end_y for s in horizontal)
        assert all(s.start_x == s.end_x for s in vertical)
        assert sum(s.is_main for s in horizontal) == 1
        assert sum(s.is_main for s in vertical) == 1

    def test_span_the_square(self) -> None:
        """Streets run edge to edge across the settlement square."""
        for street in grid_streets(100.0, 100.0, 500.0, RandomGenerator(3)):
            assert street.length == pytest.approx(1000.0)

    def test_even_spacing_without_organic(self) -> None:
        """With no organic factor streets are evenly spaced."""
        streets = grid_streets(0.0, 0.0, 1000.0, RandomGenerator(6))
        ys = [s.start_y for s in streets[: len(streets) // 2]]
        gaps = {round(b - a, 6) for a, b in zip(ys, ys[1:])}
        assert len(gaps) == 1

    def test_small_radius_has_no_streets(self) -> None:
        """A settlement narrower than one spacing has no grid."""
        assert grid_streets(0.0, 0.0, 50.0, RandomGenerator(1)) == []


class TestOrganicStreets:
    """Tests for organic_streets."""

    def test_radials_and_rings(self) -> None:
        """Radius 1500 gives seven spokes and three rings of segments."""
        streets = organic_streets(
            FlatTerrain(), 0.0, 0.0, 1500.0, RandomGenerator(2), irregular=False
        )
        radials = [s for s in streets if s.is_main]
        rings = [s for s in streets if not s.is_main]
        assert len(radials) == 7
        assert len(rings) == 12 + 16 + 20
        for spoke in radials:
            assert (spoke.start_x, spoke.start_y) == (0.0, 0.0)
            assert spoke.length == pytest.approx(1500.0 * RADIAL_REACH)

    def test_small_settlement_skips_rings(self) -> None:
        """Rings need more than 400 units of radius."""
        streets = organic_streets(
            FlatTerrain(), 0.0, 0.0, 400.0, RandomGenerator(2), irregular=False
        )
        assert all(s.is_main for s in streets)
        assert len(streets) == 4

    def test_irregular_connectors(self) -> None:
        """Connectors scale with road density on flat ground."""
        streets = organic_streets(
            FlatTerrain(), 0.0, 0.0, 1500.0, RandomGenerator(2),
            radial=False, rings=False, road_density=0.5,
        )
        assert len(streets) == 15

    def test_steep_connectors_dropped(self) -> None:
        """Connectors on steep ground are discarded."""
        streets = organic_streets(
            SteepTerrain(0.5), 0.0, 0.0, 1500.0, RandomGenerator(2),
            radial=False, rings=False,
        )
        assert streets == []
