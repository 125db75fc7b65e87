"""Tests for street-side lot subdivision."""

import math

import pytest

from conftest import FlatTerrain, SteepTerrain
from procgen.rng import RandomGenerator
from procgen.settlements.districts import District, DistrictType
from procgen.settlements.lots import create_lots, lots_along_street
from procgen.settlements.streets import StreetSegment

WHOLE_TOWN = [District(DistrictType.RESIDENTIAL, 0.0, 0.0, 10000.0, 0.5)]
SLUMS = [District(DistrictType.SLUMS, 0.0, 0.0, 10000.0, 0.1)]


def _street(length: float = 800.0, is_main: bool = False) -> StreetSegment:
    return StreetSegment(0.0, 0.0, length, 0.0, width=80.0, is_main=is_main)


class TestLotsAlongStreet:
    """Tests for lots_along_street."""

    def test_both_sides_filled(self) -> None:
        """Full density fills both sides with one lot per frontage width."""
        lots = lots_along_street(FlatTerrain(), _street(), WHOLE_TOWN, RandomGenerator(1), 1.0, 0.0)
        assert len(lots) == 20
        left, right = lots[:10], lots[10:]
        # Offset is street half-width + half depth + setback
        assert all(lot.y == pytest.approx(-100.0) for lot in left)
        assert all(lot.y == pytest.approx(100.0) for lot in right)
        assert all(lot.rotation == pytest.approx(math.pi) for lot in left)
        assert all(lot.rotation == pytest.approx(0.0) for lot in right)

    def test_lots_evenly_spaced(self) -> None:
        """Lot centres sit at the middle of each frontage slot."""
        lots = lots_along_street(FlatTerrain(), _street(), WHOLE_TOWN, RandomGenerator(1), 1.0, 0.0)
        assert [lot.x for lot in lots[:10]] == pytest.approx([40.0 + 80.0 * i for i in range(10)])

    def test_corners_and_main_road(self) -> None:
        """End lots are corners and main-street lots face the main road."""
        lots = lots_along_street(
            FlatTerrain(), _street(is_main=True), WHOLE_TOWN, RandomGenerator(1), 1.0, 0.0
        )
        assert sum(lot.is_corner for lot in lots) == 4
        assert all(lot.faces_main_road for lot in lots)
        assert not any(lot.occupied for lot in lots)

    def test_district_sets_lot_size(self) -> None:
        """Slum lots are narrower, so more fit."""
        lots = lots_along_street(FlatTerrain(), _street(), SLUMS, RandomGenerator(1), 1.0, 0.0)
        assert len(lots) == 32
        assert all(lot.district is DistrictType.SLUMS for lot in lots)

    def test_zero_density_empty(self) -> None:
        """Density zero skips every slot."""
        lots = lots_along_street(FlatTerrain(), _street(), WHOLE_TOWN, RandomGenerator(1), 0.0, 0.0)
        assert lots == []

    def test_steep_lots_rejected(self) -> None:
        """Lots steeper than 0.35 are dropped."""
        terrain = SteepTerrain(0.4)
        assert lots_along_street(terrain, _street(), WHOLE_TOWN, RandomGenerator(1), 1.0, 0.0) == []

    def test_short_street(self) -> None:
        """Streets under 50 units get no lots."""
        lots = lots_along_street(
            FlatTerrain(), _street(length=40.0), WHOLE_TOWN, RandomGenerator(1), 1.0, 0.0
        )
        assert lots == []


class TestCreateLots:
    """Tests for create_lots."""

    def test_concatenates_streets(self) -> None:
        """Lots from every street are returned in street order."""
        streets = [_street(), StreetSegment(0.0, 1000.0, 400.0, 1000.0, width=80.0)]
        lots = create_lots(FlatTerrain(), streets, WHOLE_TOWN, RandomGenerator(1), 1.0, 0.0)
        assert len(lots) == 20 + 10
        assert all(lot.y > 500.0 for lot in lots[20:])

    def test_max_lots_truncates(self) -> None:
        """max_lots keeps only the first lots."""
        lots = create_lots(
            FlatTerrain(), [_street()], WHOLE_TOWN, RandomGenerator(1), 1.0, 0.0, max_lots=7
        )
        assert len(lots) == 7
