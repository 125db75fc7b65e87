"""Tests for per-cell land records."""

import math

import numpy as np
import pytest

from procgen.config import TerrainParams
from procgen.terrain.fields import TerrainField
from procgen.terrain.land import (
    VERTEX_SIZE,
    LandData,
    build_land,
    compute_normals,
    terrain_stats,
)
from procgen.terrain_types import LAND_SIZE, LAND_TEXTURE_SIZE, REAL_SIZE


@pytest.fixture(scope="module")
def land() -> LandData:
    return build_land(TerrainField(TerrainParams(), seed=42), 0, 0)


class TestBuildLand:
    """Tests for build_land."""

    def test_shapes_and_dtypes(self, land: LandData) -> None:
        """Grids have the land record dimensions."""
        assert land.heights.shape == (LAND_SIZE, LAND_SIZE)
        assert land.heights.dtype == np.float32
        assert land.normals.shape == (LAND_SIZE, LAND_SIZE, 3)
        assert land.normals.dtype == np.int8
        assert land.textures.shape == (LAND_TEXTURE_SIZE, LAND_TEXTURE_SIZE)
        assert land.textures.dtype == np.uint16

    def test_heights_match_field(self, land: LandData) -> None:
        """Vertex (vx, vy) samples the field at origin + v * vertex size."""
        field = TerrainField(TerrainParams(), seed=42)
        assert land.heights[0, 0] == pytest.approx(field.height(0.0, 0.0), abs=1e-2)
        assert land.heights[3, 5] == pytest.approx(
            field.height(5 * VERTEX_SIZE, 3 * VERTEX_SIZE), abs=1e-2
        )

    def test_shared_edges_match(self, land: LandData) -> None:
        """Adjacent cells agree on their shared vertex column."""
        east = build_land(TerrainField(TerrainParams(), seed=42), 1, 0)
        np.testing.assert_array_equal(land.heights[:, -1], east.heights[:, 0])

    def test_textures_are_known_classes(self, land: LandData) -> None:
        """Every tile holds a valid texture class."""
        assert land.textures.max() <= 4

    def test_normals_point_up(self, land: LandData) -> None:
        """Terrain normals always have a positive vertical component."""
        assert (land.normals[..., 2] > 0).all()


class TestComputeNormals:
    """Tests for compute_normals."""

    def test_flat_grid(self) -> None:
        """A flat grid has straight-up normals."""
        normals = compute_normals(np.zeros((5, 5), dtype=np.float32))
        np.testing.assert_array_equal(normals[..., 0], 0)
        np.testing.assert_array_equal(normals[..., 1], 0)
        np.testing.assert_array_equal(normals[..., 2], 127)

    def test_slope_tilts_away(self) -> None:
        """Heights rising eastward tilt normals westward."""
        heights = np.tile(np.arange(5, dtype=np.float32) * 128.0, (5, 1))
        normals = compute_normals(heights, vertex_size=128.0)
        # gradient 1 in x: nx = -127 / sqrt(2), nz = 127 / sqrt(2), truncated
        assert normals[2, 2, 0] == math.trunc(-127.0 / math.sqrt(2.0))
        assert normals[2, 2, 2] == math.trunc(127.0 / math.sqrt(2.0))
        assert normals[2, 2, 1] == 0


class TestTerrainStats:
    """Tests for terrain_stats."""

    def test_flat_dry_grid(self) -> None:
        """A flat grid above water has no steep or wet fraction."""
        stats = terrain_stats(np.full((9, 9), 10.0, dtype=np.float32), water_level=0.0)
        assert stats["min_height"] == 10.0
        assert stats["max_height"] == 10.0
        assert stats["steep_fraction"] == 0.0
        assert stats["underwater_fraction"] == 0.0

    def test_underwater_fraction(self) -> None:
        """Half the grid below water gives half underwater."""
        heights = np.zeros((4, 4), dtype=np.float32)
        heights[:2] = -10.0
        stats = terrain_stats(heights, water_level=0.0)
        assert stats["underwater_fraction"] == pytest.approx(0.5)

    def test_no_water(self) -> None:
        """Minus infinity water level means nothing is wet."""
        heights = np.full((4, 4), -30000.0, dtype=np.float32)
        assert terrain_stats(heights, water_level=-math.inf)["underwater_fraction"] == 0.0

    def test_cliff_is_steep(self) -> None:
        """A steep ramp counts as steep everywhere."""
        heights = np.tile(np.arange(6, dtype=np.float32) * REAL_SIZE, (6, 1))
        stats = terrain_stats(heights, water_level=-math.inf)
        assert stats["steep_fraction"] == 1.0
