"""Tests for natural object scatter."""

from typing import Callable

import numpy as np
import pytest

from conftest import CoastTerrain, FlatTerrain, SteepTerrain
from procgen.assets import AssetCatalog, AssetCategory
from procgen.config import GenerationConfig, ObjectPlacementParams
from procgen.hosts import GenerationContext
from procgen.terrain.objects import (
    FNV_OFFSET,
    GRASS_FALLBACKS,
    MASK_SIZE,
    ROCK_FALLBACKS,
    TREE_FALLBACKS,
    cell_seed,
    density_mask,
    fnv1a,
    place_objects_in_cell,
)
from procgen.terrain_types import REAL_SIZE


def _config(**objects: object) -> GenerationConfig:
    params = {"min_spacing": 1000.0, **objects}
    return GenerationConfig(
        world_size_x=1,
        world_size_y=1,
        seed=42,
        objects=ObjectPlacementParams(**params),
    )


class TestHashing:
    """Tests for the seed hashes."""

    def test_fnv1a_known_values(self) -> None:
        """Empty input hashes to the offset basis; "a" to its published value."""
        assert fnv1a("") == FNV_OFFSET
        assert fnv1a("a") == 0xAF63DC4C8601EC8C

    def test_cell_seed_formula(self) -> None:
        """Cells offset by 10000 and mixed with the Voronoi primes."""
        assert cell_seed(5, 0, 0) == 5 + 10000 * 73856093 + 10000 * 19349663
        assert cell_seed(5, 1, 0) != cell_seed(5, 0, 1)

    def test_cell_seed_negative_cells(self) -> None:
        """Negative cells still give unsigned 64-bit seeds."""
        assert 0 <= cell_seed(0, -20000, -20000) < 2**64


class TestDensityMask:
    """Tests for density_mask."""

    def test_flat_dry_ground_is_full(self) -> None:
        """Level ground below the high band is fully suitable."""
        mask = density_mask(FlatTerrain(), 0, 0, 0.0, 1000.0)
        assert mask.shape == (MASK_SIZE, MASK_SIZE)
        np.testing.assert_allclose(mask, 1.0)

    def test_high_ground_thinned(self) -> None:
        """Ground above base + 0.8 * variation drops to 0.3."""
        mask = density_mask(FlatTerrain(level=900.0), 0, 0, 0.0, 1000.0)
        np.testing.assert_allclose(mask, 0.3)

    def test_steep_ground_empty(self) -> None:
        """Slopes of 2/3 and more zero the mask."""
        mask = density_mask(SteepTerrain(0.7), 0, 0, 0.0, 1000.0)
        np.testing.assert_allclose(mask, 0.0)

    def test_water_tiles_empty(self) -> None:
        """Tiles west of the shore are zero."""
        mask = density_mask(CoastTerrain(shore_x=REAL_SIZE / 2), 0, 0, 0.0, 1000.0)
        np.testing.assert_allclose(mask[:, : MASK_SIZE // 2], 0.0)
        np.testing.assert_allclose(mask[:, MASK_SIZE // 2 :], 1.0)


class TestPlaceObjectsInCell:
    """Tests for place_objects_in_cell."""

    def test_places_inside_cell(self, make_ctx: Callable[..., GenerationContext]) -> None:
        """Objects land inside the requested cell and on the ground."""
        ctx = make_ctx(config=_config())
        placed = place_objects_in_cell(ctx, 1, -1)
        assert placed
        for obj in placed:
            assert REAL_SIZE <= obj.x < 2 * REAL_SIZE
            assert -REAL_SIZE <= obj.y < 0
            assert obj.z == 100.0

    def test_emits_one_reference_per_object(
        self, make_ctx: Callable[..., GenerationContext]
    ) -> None:
        """Every placed object is a host reference in the right cell."""
        ctx = make_ctx(config=_config())
        placed = place_objects_in_cell(ctx, 0, 0)
        refs = ctx.host.references
        assert [r.ref_id for r in refs] == [p.ref_id for p in placed]
        assert {r.cell_id for r in refs} == {"#0, 0"}

    def test_independent_of_shared_stream(
        self, make_ctx: Callable[..., GenerationContext]
    ) -> None:
        """The run's decision stream does not affect a cell's objects."""
        a = place_objects_in_cell(make_ctx(config=_config(), seed=1), 0, 0)
        b = place_objects_in_cell(make_ctx(config=_config(), seed=999), 0, 0)
        assert [(o.object_id, o.x, o.y, o.rotation) for o in a] == [
            (o.object_id, o.x, o.y, o.rotation) for o in b
        ]

    def test_fallback_ids_without_catalog(
        self, make_ctx: Callable[..., GenerationContext]
    ) -> None:
        """An empty catalog uses built-in ids and skips bushes."""
        placed = place_objects_in_cell(make_ctx(config=_config()), 0, 0)
        fallbacks = {
            AssetCategory.TREE: TREE_FALLBACKS,
            AssetCategory.ROCK: ROCK_FALLBACKS,
            AssetCategory.GRASS: GRASS_FALLBACKS,
        }
        for obj in placed:
            assert obj.object_id in fallbacks[obj.category]

    def test_catalog_ids_used(
        self,
        make_ctx: Callable[..., GenerationContext],
        sample_catalog: AssetCatalog,
    ) -> None:
        """Catalog ids replace fallbacks and enable bushes."""
        placed = place_objects_in_cell(make_ctx(config=_config(), catalog=sample_catalog), 0, 0)
        assert {o.object_id for o in placed} <= {
            "flora_tree_01",
            "terrain_rock_01",
            "flora_grass_01",
            "flora_bush_01",
        }
        assert any(o.category is AssetCategory.BUSH for o in placed)

    def test_library_disabled(
        self,
        make_ctx: Callable[..., GenerationContext],
        sample_catalog: AssetCatalog,
    ) -> None:
        """Turning the library off ignores catalog ids."""
        config = _config(use_asset_library=False)
        placed = place_objects_in_cell(make_ctx(config=config, catalog=sample_catalog), 0, 0)
        assert all(o.object_id != "flora_tree_01" for o in placed)

    def test_zero_density_category_skipped(
        self, make_ctx: Callable[..., GenerationContext]
    ) -> None:
        """Categories at or below the density floor are not sampled."""
        config = _config(tree_density=0.0, rock_density=0.0)
        placed = place_objects_in_cell(make_ctx(config=config), 0, 0)
        assert placed
        assert {o.category for o in placed} == {AssetCategory.GRASS}

    def test_nothing_in_water(self, make_ctx: Callable[..., GenerationContext]) -> None:
        """The flooded half of a coastal cell stays empty."""
        ctx = make_ctx(terrain=CoastTerrain(shore_x=REAL_SIZE / 2), config=_config())
        placed = place_objects_in_cell(ctx, 0, 0)
        assert placed
        assert all(o.x >= REAL_SIZE / 2 for o in placed)

    @pytest.mark.parametrize("rotation_variation", [0.0, 1.0])
    def test_rotation_and_scale_ranges(
        self,
        make_ctx: Callable[..., GenerationContext],
        rotation_variation: float,
    ) -> None:
        """Rotation scales with the variation and scale stays at least 0.5."""
        config = _config(rotation_variation=rotation_variation, scale_variation=0.9)
        for obj in place_objects_in_cell(make_ctx(config=config), 0, 0):
            assert 0.0 <= obj.rotation <= 6.28318 * rotation_variation
            assert obj.scale >= 0.5
