"""Tests for settlement wall rings."""

import math
from typing import Callable

import pytest

from procgen.assets import AssetCatalog, AssetCategory
from procgen.config import GenerationConfig, SettlementParams, SettlementType
from procgen.hosts import GenerationContext
from procgen.settlements.location import SettlementLocation
from procgen.settlements.walls import place_walls


def _town(radius: float = 800.0) -> SettlementLocation:
    return SettlementLocation(
        name="Walled", cell_x=0, cell_y=0, center_x=4096.0, center_y=4096.0,
        center_z=100.0, radius=radius, type=SettlementType.TOWN,
    )


class TestPlaceWalls:
    """Tests for place_walls."""

    def test_ring_with_gates(
        self,
        make_ctx: Callable[..., GenerationContext],
        sample_catalog: AssetCatalog,
    ) -> None:
        """Default radius is 95% of the settlement; two gates cover three indices."""
        ctx = make_ctx(catalog=sample_catalog)
        refs = place_walls(ctx, _town())
        # int(2 * pi * 760 / 80)
        assert len(refs) == 59
        ids = [r.object_id for r in ctx.host.references]
        # Gates at index 0 and around 29.5
        assert ids.count("ex_wall_gate_01") == 3
        assert ids[0] == "ex_wall_gate_01"
        assert ids.count("ex_wall_01") == 56

    def test_pieces_on_the_circle(
        self,
        make_ctx: Callable[..., GenerationContext],
        sample_catalog: AssetCatalog,
    ) -> None:
        """Every piece sits on the wall radius, facing along the ring."""
        ctx = make_ctx(catalog=sample_catalog)
        place_walls(ctx, _town())
        for ref in ctx.host.references:
            assert math.hypot(ref.x - 4096.0, ref.y - 4096.0) == pytest.approx(760.0)
        first = ctx.host.references[0]
        assert first.rotation == pytest.approx(math.pi / 2.0)

    def test_towers_every_eighth(self, make_ctx: Callable[..., GenerationContext]) -> None:
        """Tower pieces replace every eighth non-gate segment."""
        catalog = AssetCatalog()
        catalog.set_asset_ids(AssetCategory.WALL, ["wall"])
        catalog.set_asset_ids(AssetCategory.WALL_TOWER, ["tower"])
        ctx = make_ctx(catalog=catalog)
        place_walls(ctx, _town())
        ids = [r.object_id for r in ctx.host.references]
        # No gate pieces, so every multiple of eight is a tower
        assert [i for i, object_id in enumerate(ids) if object_id == "tower"] == list(
            range(0, 59, 8)
        )

    def test_explicit_radius(
        self,
        make_ctx: Callable[..., GenerationContext],
        sample_catalog: AssetCatalog,
    ) -> None:
        """A configured wall radius overrides the settlement radius."""
        config = GenerationConfig(seed=1, settlement=SettlementParams(wall_radius=100.0))
        ctx = make_ctx(config=config, catalog=sample_catalog)
        assert len(place_walls(ctx, _town())) == 7

    def test_no_wall_assets(self, make_ctx: Callable[..., GenerationContext]) -> None:
        """Without wall segments nothing is placed."""
        ctx = make_ctx()
        assert place_walls(ctx, _town()) == []
        assert ctx.host.references == []
