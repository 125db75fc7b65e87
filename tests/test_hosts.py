"""Tests for the recording host and generation context."""

from typing import Callable

import numpy as np

from conftest import FlatTerrain
from procgen.assets import AssetCatalog, AssetCategory
from procgen.config import GenerationConfig, ObjectPlacementParams
from procgen.hosts import (
    CellRecord,
    GenerationContext,
    InteriorRecord,
    ProgressRecord,
    RecordingHost,
)


class TestRecordingHost:
    """Tests for RecordingHost."""

    def test_reference_ids_sequential(self, host: RecordingHost) -> None:
        """Reference ids count up from ref_000001."""
        first = host.create_reference("a", "#0, 0", 0.0, 0.0, 0.0, 0.0, 1.0)
        second = host.create_reference("b", "#0, 0", 1.0, 1.0, 0.0, 0.0, 1.0)
        assert (first, second) == ("ref_000001", "ref_000002")

    def test_events_in_call_order(self, host: RecordingHost) -> None:
        """Events keep call order and typed views filter them."""
        host.create_cell(0, 0)
        host.progress(1, 2, "Working")
        host.create_interior("Room")
        assert host.events == [
            CellRecord(0, 0),
            ProgressRecord(1, 2, "Working"),
            InteriorRecord("Room"),
        ]
        assert host.cells == [CellRecord(0, 0)]
        assert host.interiors == [InteriorRecord("Room")]
        assert host.progress_messages[0].message == "Working"

    def test_land_and_pathgrid_records(self, host: RecordingHost) -> None:
        """Land arrays and pathgrid tuples are kept."""
        heights = np.zeros((2, 2), dtype=np.float32)
        host.create_land(1, 2, heights, np.zeros((2, 2, 3), np.int8), np.zeros((1, 1), np.uint16))
        host.create_pathgrid("#1, 2", [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0)], [(0, 1)])
        assert host.lands[0].heights is heights
        assert host.pathgrids[0].edges == ((0, 1),)
        assert len(host.pathgrids[0].points) == 2


class TestGenerationContext:
    """Tests for GenerationContext helpers."""

    def test_place_rests_on_terrain(self, make_ctx: Callable[..., GenerationContext]) -> None:
        """Placement z is terrain height plus the offset, in the right cell."""
        ctx = make_ctx(terrain=FlatTerrain(level=50.0))
        ctx.place("obj", 9000.0, -10.0, rotation=1.5, scale=2.0, z_offset=5.0)
        ref = ctx.host.references[0]
        assert ref.cell_id == "#1, -1"
        assert ref.z == 55.0
        assert (ref.rotation, ref.scale) == (1.5, 2.0)

    def test_is_underwater(self, make_ctx: Callable[..., GenerationContext]) -> None:
        """Below the water level is underwater."""
        ctx = make_ctx(terrain=FlatTerrain(level=-5.0, water=0.0))
        assert ctx.is_underwater(0.0, 0.0)
        assert not make_ctx().is_underwater(0.0, 0.0)

    def test_select_prefers_catalog(
        self,
        make_ctx: Callable[..., GenerationContext],
        sample_catalog: AssetCatalog,
    ) -> None:
        """Catalog ids win over fallbacks."""
        ctx = make_ctx(catalog=sample_catalog)
        assert ctx.select(AssetCategory.TREE, ["fallback"]) == "flora_tree_01"

    def test_select_fallbacks(self, make_ctx: Callable[..., GenerationContext]) -> None:
        """Empty categories fall back, and with no fallbacks give None."""
        ctx = make_ctx()
        assert ctx.select(AssetCategory.TREE, ["fallback"]) == "fallback"
        assert ctx.select(AssetCategory.TREE) is None

    def test_select_library_disabled(
        self,
        make_ctx: Callable[..., GenerationContext],
        sample_catalog: AssetCatalog,
    ) -> None:
        """With the library off only fallbacks are used."""
        config = GenerationConfig(seed=1, objects=ObjectPlacementParams(use_asset_library=False))
        ctx = make_ctx(config=config, catalog=sample_catalog)
        assert ctx.select(AssetCategory.TREE, ["fallback"]) == "fallback"

    def test_catalog_pick(
        self,
        make_ctx: Callable[..., GenerationContext],
        sample_catalog: AssetCatalog,
    ) -> None:
        """catalog_pick ignores fallbacks entirely."""
        ctx = make_ctx(catalog=sample_catalog)
        assert ctx.catalog_pick(AssetCategory.WALL) == "ex_wall_01"
        assert ctx.catalog_pick(AssetCategory.DOCK) is None

    def test_cancel_flag(self, make_ctx: Callable[..., GenerationContext]) -> None:
        """Setting the event marks the context cancelled."""
        ctx = make_ctx()
        assert not ctx.cancelled
        ctx.cancel_event.set()
        assert ctx.cancelled
