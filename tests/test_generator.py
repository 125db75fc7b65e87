"""Tests for the generation orchestrator."""

import numpy as np

from conftest import FlatTerrain
from procgen.assets import AssetCatalog
from procgen.config import CaveDungeonParams, GenerationConfig, SettlementParams
from procgen.generator import GenerationOutcome, ProceduralGenerator
from procgen.hosts import (
    CellRecord,
    LandRecord,
    ProgressRecord,
    RecordingHost,
    ReferenceRecord,
)
from procgen.terrain_types import LAND_SIZE


def _interiors_only(size: int = 1, seed: int = 42) -> GenerationConfig:
    return GenerationConfig(
        world_size_x=size,
        world_size_y=size,
        seed=seed,
        generate_exteriors=False,
        generate_pathgrids=False,
    )


def _progress(host: RecordingHost) -> list[ProgressRecord]:
    return [e for e in host.events if isinstance(e, ProgressRecord)]


class RejectingHost(RecordingHost):
    """Refuses every cell."""

    def create_cell(self, cell_x: int, cell_y: int) -> bool:
        super().create_cell(cell_x, cell_y)
        return False


class InteriorRejectingHost(RecordingHost):
    """Accepts exterior cells but refuses interiors."""

    def create_interior(self, name: str) -> bool:
        super().create_interior(name)
        return False


class FailingHost(RecordingHost):
    """Raises when asked for an interior."""

    def create_interior(self, name: str) -> bool:
        raise RuntimeError("disk full")


class CancellingHost(RecordingHost):
    """Cancels the run from its first progress callback."""

    generator: ProceduralGenerator | None = None

    def progress(self, current: int, total: int, message: str) -> None:
        super().progress(current, total, message)
        if self.generator is not None:
            self.generator.cancel()


class TestTotalSteps:
    """Tests for progress accounting."""

    def test_default_phases(self, small_config: GenerationConfig) -> None:
        """Terrain and objects, one interior and one pathgrid for a single cell."""
        generator = ProceduralGenerator(small_config, RecordingHost())
        assert generator.total_steps(small_config) == 2 + 1 + 1

    def test_every_phase(self) -> None:
        """Settlements count ten steps each; caves and dungeons one each."""
        config = GenerationConfig(
            world_size_x=2,
            world_size_y=2,
            seed=1,
            generate_settlements=True,
            generate_caves_and_dungeons=True,
            settlement=SettlementParams(settlement_count=3),
        )
        generator = ProceduralGenerator(config, RecordingHost())
        assert generator.total_steps(config) == 8 + 30 + 3 + 2 + 1 + 4

    def test_disabled_caves_not_counted(self) -> None:
        """Disabled cave kinds add nothing."""
        config = _interiors_only().model_copy(
            update={
                "generate_caves_and_dungeons": True,
                "cave_dungeon": CaveDungeonParams(generate_caves=False),
            }
        )
        generator = ProceduralGenerator(config, RecordingHost())
        assert generator.total_steps(config) == 1 + 2

    def test_never_zero(self) -> None:
        """A run with every phase off still reports one step."""
        config = _interiors_only().model_copy(update={"generate_interiors": False})
        assert ProceduralGenerator(config, RecordingHost()).total_steps(config) == 1


class TestRun:
    """Tests for ProceduralGenerator.run."""

    def test_completes(self, small_config: GenerationConfig) -> None:
        """A full run ends with the completion message at total steps."""
        host = RecordingHost()
        assert ProceduralGenerator(small_config, host).run() is GenerationOutcome.SUCCEEDED
        assert host.events[-1] == ProgressRecord(4, 4, "Generation complete!")
        assert [(c.cell_x, c.cell_y) for c in host.cells] == [(0, 0)]
        assert host.lands[0].heights.shape == (LAND_SIZE, LAND_SIZE)
        assert [i.name for i in host.interiors] == ["Proc_Interior_42_0"]
        assert len(host.pathgrids) <= 1

    def test_progress_counts_up(self, small_config: GenerationConfig) -> None:
        """Progress steps are monotonic and never exceed the total."""
        host = RecordingHost()
        ProceduralGenerator(small_config, host).run()
        steps = [p.current for p in _progress(host)]
        assert steps == [1, 2, 3, 4, 4]
        assert all(p.total == 4 for p in _progress(host))

    def test_deterministic(self, small_config: GenerationConfig) -> None:
        """Same seed, same records."""

        def run() -> RecordingHost:
            host = RecordingHost()
            ProceduralGenerator(small_config, host).run()
            return host

        a, b = run(), run()
        assert a.references == b.references
        assert a.pathgrids == b.pathgrids
        np.testing.assert_array_equal(a.lands[0].heights, b.lands[0].heights)
        np.testing.assert_array_equal(a.lands[0].textures, b.lands[0].textures)

    def test_deterministic_every_phase(
        self, small_config: GenerationConfig, sample_catalog: AssetCatalog
    ) -> None:
        """With every phase on, two runs make the same callbacks in the same order."""
        config = small_config.model_copy(
            update={
                "world_size_x": 2,
                "world_size_y": 2,
                "generate_settlements": True,
                "generate_caves_and_dungeons": True,
                "settlement": SettlementParams(settlement_count=2),
            }
        )

        def run() -> tuple[GenerationOutcome, list[object]]:
            host = RecordingHost()
            outcome = ProceduralGenerator(config, host, catalog=sample_catalog).run()
            return outcome, [e for e in host.events if not isinstance(e, LandRecord)]

        outcome_a, events_a = run()
        outcome_b, events_b = run()
        assert outcome_a is outcome_b is GenerationOutcome.SUCCEEDED
        assert any(isinstance(e, ReferenceRecord) for e in events_a)
        assert events_a == events_b

    def test_zero_seed_resolved(self) -> None:
        """A zero seed is replaced for the run."""
        generator = ProceduralGenerator(_interiors_only(seed=0), RecordingHost())
        assert generator.run() is GenerationOutcome.SUCCEEDED
        assert generator.report.seed != 0
        assert generator.report.interiors == [f"Proc_Interior_{generator.report.seed}_0"]

    def test_rejected_callback_fails(self, small_config: GenerationConfig) -> None:
        """A False callback result aborts the run."""
        host = RejectingHost()
        generator = ProceduralGenerator(small_config, host)
        assert generator.run() is GenerationOutcome.FAILED
        assert host.events[-1] == ProgressRecord(0, 0, "Error: Host rejected cell (0, 0)")
        assert host.lands == []
        assert not generator.is_running

    def test_rejected_interior_fails(self) -> None:
        """Refusing an interior aborts before anything is placed inside it."""
        host = InteriorRejectingHost()
        generator = ProceduralGenerator(_interiors_only(), host)
        assert generator.run() is GenerationOutcome.FAILED
        assert host.events[-1] == ProgressRecord(
            0, 0, "Error: Host rejected interior Proc_Interior_42_0"
        )
        assert host.references == []

    def test_host_exception_fails(self) -> None:
        """Exceptions from the host become a failed outcome."""
        host = FailingHost()
        generator = ProceduralGenerator(_interiors_only(), host)
        assert generator.run() is GenerationOutcome.FAILED
        assert generator.report.error == "disk full"
        assert host.events[-1] == ProgressRecord(0, 0, "Error: disk full")

    def test_cancel_from_callback(self) -> None:
        """Cancelling stops at the next checkpoint without a completion message."""
        host = CancellingHost()
        # 64 cells give four standalone interiors
        generator = ProceduralGenerator(_interiors_only(size=8), host)
        host.generator = generator
        assert generator.run() is GenerationOutcome.CANCELLED
        assert len(_progress(host)) == 1
        assert len(host.interiors) == 2

    def test_terrain_override(self) -> None:
        """Placement terrain can be replaced; flat cells get full pathgrids."""
        config = GenerationConfig(
            world_size_x=2,
            world_size_y=1,
            seed=5,
            generate_exteriors=False,
            generate_interiors=False,
        )
        host = RecordingHost()
        ProceduralGenerator(config, host, terrain=FlatTerrain()).run()
        assert [p.cell_id for p in host.pathgrids] == ["#0, 0", "#1, 0"]
        assert all(len(p.points) == 64 for p in host.pathgrids)

    def test_settlement_run(self) -> None:
        """A village always fits a flat cell and feeds the report."""
        config = GenerationConfig(
            world_size_x=1,
            world_size_y=1,
            seed=42,
            generate_exteriors=False,
            generate_interiors=False,
            generate_pathgrids=False,
            generate_settlements=True,
        )
        host = RecordingHost()
        generator = ProceduralGenerator(config, host, terrain=FlatTerrain())
        assert generator.run() is GenerationOutcome.SUCCEEDED
        report = generator.report
        assert len(report.settlements) == len(report.layouts) == 1
        location = report.settlements[0]
        assert location.building_ids
        assert set(location.building_ids) <= {r.ref_id for r in host.references}
        assert set(location.interior_ids) <= set(report.interiors)


class TestPreviewCell:
    """Tests for preview_cell."""

    def test_emits_one_cell(self, small_config: GenerationConfig) -> None:
        """The preview writes a cell and its land and returns the heights."""
        host = RecordingHost()
        heights = ProceduralGenerator(small_config, host).preview_cell(0, 0)
        assert heights.shape == (LAND_SIZE, LAND_SIZE)
        assert heights.dtype == np.float32
        assert [type(e) for e in host.events[:2]] == [CellRecord, LandRecord]
