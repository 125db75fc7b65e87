"""Tests for the terrain height field."""

import math

import pytest

from procgen.config import TerrainParams
from procgen.terrain.fields import HEIGHT_MAX, HEIGHT_MIN, TerrainField
from procgen.terrain_types import TextureClass


@pytest.fixture
def field() -> TerrainField:
    return TerrainField(TerrainParams(), seed=42)


class TestHeight:
    """Tests for height and slope queries."""

    def test_deterministic(self, field: TerrainField) -> None:
        """Repeated queries and fresh fields agree."""
        other = TerrainField(TerrainParams(), seed=42)
        for x, y in [(0.0, 0.0), (1234.5, -987.0), (40000.0, 12000.0)]:
            assert field.height(x, y) == field.height(x, y)
            assert field.height(x, y) == other.height(x, y)

    def test_seed_changes_heights(self, field: TerrainField) -> None:
        """A different seed reshapes the terrain."""
        other = TerrainField(TerrainParams(), seed=43)
        points = [(i * 3000.0, i * 1700.0) for i in range(10)]
        assert [field.height(x, y) for x, y in points] != [other.height(x, y) for x, y in points]

    def test_heights_clamped(self) -> None:
        """Extreme variation is clamped to the signed 16-bit range."""
        field = TerrainField(TerrainParams(height_variation=1.0e7), seed=3)
        for i in range(20):
            h = field.height(i * 5000.0, i * 2500.0)
            assert HEIGHT_MIN <= h <= HEIGHT_MAX

    def test_zero_variation_is_flat(self) -> None:
        """No variation leaves only the base height."""
        field = TerrainField(TerrainParams(height_variation=0.0, base_height=250.0), seed=1)
        assert field.height(100.0, 200.0) == 250.0
        assert field.slope(100.0, 200.0) == 0.0

    def test_slope_non_negative(self, field: TerrainField) -> None:
        """Slope is a gradient magnitude."""
        for i in range(10):
            assert field.slope(i * 911.0, i * 377.0) >= 0.0


class TestWater:
    """Tests for water queries."""

    def test_water_level_from_params(self) -> None:
        """Enabled water reports its configured level."""
        field = TerrainField(TerrainParams(water_level=-50.0), seed=1)
        assert field.water_level() == -50.0

    def test_disabled_water_is_minus_infinity(self) -> None:
        """Nothing is underwater without water."""
        field = TerrainField(TerrainParams(generate_water=False), seed=1)
        assert field.water_level() == -math.inf
        assert not field.is_underwater(0.0, 0.0)

    def test_underwater_when_below_level(self) -> None:
        """A base far below the water level floods everything."""
        field = TerrainField(
            TerrainParams(base_height=-5000.0, height_variation=10.0, water_level=0.0), seed=1
        )
        assert field.is_underwater(500.0, 500.0)


class TestTextureClass:
    """Tests for texture classification."""

    def test_steep_is_rock(self, field: TerrainField) -> None:
        """Slopes above 0.7 are always rock."""
        assert field.texture_class(0.0, 0.8) is TextureClass.ROCK

    def test_moderate_slope_splits_on_height(self, field: TerrainField) -> None:
        """Moderate slopes are rock high up and dirt low down."""
        assert field.texture_class(800.0, 0.5) is TextureClass.ROCK
        assert field.texture_class(-200.0, 0.5) is TextureClass.DIRT

    def test_low_shore_is_sand(self, field: TerrainField) -> None:
        """Low ground near the water is sand."""
        assert field.texture_class(-900.0, 0.0) is TextureClass.SAND

    def test_low_ground_without_water_is_grass(self) -> None:
        """Without water, low ground stays grass."""
        field = TerrainField(TerrainParams(generate_water=False), seed=1)
        assert field.texture_class(-900.0, 0.0) is TextureClass.GRASS

    def test_height_bands(self, field: TerrainField) -> None:
        """Mid ground is grass, upper ground dirt, peaks snow."""
        assert field.texture_class(0.0, 0.0) is TextureClass.GRASS
        assert field.texture_class(500.0, 0.0) is TextureClass.DIRT
        assert field.texture_class(900.0, 0.0) is TextureClass.SNOW

    def test_normalized_height_degenerate_span(self) -> None:
        """Zero variation maps every height to the middle."""
        field = TerrainField(TerrainParams(height_variation=0.0), seed=1)
        assert field.normalized_height(12345.0) == 0.5
