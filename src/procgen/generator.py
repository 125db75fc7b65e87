"""Generation orchestrator: runs every phase in order through a host."""

import threading
from dataclasses import dataclass, field
from enum import Enum

import numpy as np
import structlog
from numpy.typing import NDArray

from .assets import AssetCatalog
from .caves import UndergroundSite, generate_cave, generate_dungeon
from .config import GenerationConfig, SettlementType
from .hosts import GenerationContext, TerrainQueries, WorldHost, require_accepted
from .infrastructure.engine import InfrastructureEngine
from .infrastructure.placement import PlacedInfrastructure
from .infrastructure.roads import WorldRoad
from .interiors import build_interior
from .rng import RandomGenerator
from .settlements.engine import SettlementEngine, SettlementLayout
from .settlements.location import SettlementLocation, find_settlement_locations
from .terrain.fields import TerrainField
from .terrain.land import LandData, build_land
from .terrain.objects import place_objects_in_cell
from .terrain.pathgrid import build_pathgrid
from .terrain_types import format_cell_id

logger = structlog.get_logger()

STEPS_PER_SETTLEMENT = 10
CELLS_PER_INTERIOR = 16
# Offset of the run's decision stream from the terrain seed
DECISION_SEED_OFFSET = 2


class GenerationOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class GenerationReport:
    """What the last run produced, for callers that need more than the host saw."""

    seed: int = 0
    settlements: list[SettlementLocation] = field(default_factory=list)
    layouts: list[SettlementLayout] = field(default_factory=list)
    roads: list[WorldRoad] = field(default_factory=list)
    infrastructure: list[PlacedInfrastructure] = field(default_factory=list)
    underground: list[UndergroundSite] = field(default_factory=list)
    interiors: list[str] = field(default_factory=list)
    error: str = ""


class _Cancelled(Exception):
    pass


class ProceduralGenerator:
    """Runs terrain, objects, settlements, infrastructure, caves, interiors
    and pathgrids for one configuration.

    A zero seed is replaced by a clock-derived seed at the start of each run.
    The terrain field uses the seed directly (Voronoi gets seed + 1) and the
    run's decision stream uses seed + 2.

    Args:
        config: Parameters for the run.
        host: Storage and progress callbacks.
        catalog: Asset catalog; an empty one means built-in ids everywhere.
        terrain: Override for terrain queries during placement. Land records
            always come from the built-in terrain field.
    """

    def __init__(
        self,
        config: GenerationConfig,
        host: WorldHost,
        catalog: AssetCatalog | None = None,
        terrain: TerrainQueries | None = None,
    ):
        self.config = config
        self.host = host
        self.catalog = catalog or AssetCatalog()
        self.terrain_override = terrain
        self.report = GenerationReport()
        self._cancel = threading.Event()
        self._running = False
        self._step = 0
        self._total = 0

    @property
    def is_running(self) -> bool:
        return self._running

    def cancel(self) -> None:
        """Ask the current run to stop at the next checkpoint."""
        self._cancel.set()

    def _context(self, config: GenerationConfig) -> tuple[GenerationContext, TerrainField]:
        field_ = TerrainField(config.terrain, config.seed)
        ctx = GenerationContext(
            config=config,
            terrain=self.terrain_override or field_,
            catalog=self.catalog,
            host=self.host,
            rng=RandomGenerator(config.seed + DECISION_SEED_OFFSET),
            cancel_event=self._cancel,
        )
        return ctx, field_

    def total_steps(self, config: GenerationConfig) -> int:
        cells = config.total_cells
        total = 0
        if config.generate_exteriors:
            total += cells * 2
        if config.generate_settlements and config.settlement.type is not SettlementType.NONE:
            total += config.settlement.settlement_count * STEPS_PER_SETTLEMENT
        if config.generate_caves_and_dungeons:
            cd = config.cave_dungeon
            total += (cd.cave_count if cd.generate_caves else 0) + (
                cd.dungeon_count if cd.generate_dungeons else 0
            )
        if config.generate_interiors:
            total += self.standalone_interior_count(config)
        if config.generate_pathgrids:
            total += cells
        return max(total, 1)

    @staticmethod
    def standalone_interior_count(config: GenerationConfig) -> int:
        return max(1, config.total_cells // CELLS_PER_INTERIOR)

    def _advance(self, message: str, steps: int = 1) -> None:
        if self._cancel.is_set():
            raise _Cancelled()
        self._step += steps
        self.host.progress(self._step, self._total, message)

    def run(self) -> GenerationOutcome:
        """Run every enabled phase.

        Host exceptions abort the run and yield FAILED after a final
        ``"Error: ..."`` progress message. Records already emitted stay.
        """
        config = self.config.with_resolved_seed()
        self._cancel.clear()
        self._running = True
        self._step = 0
        self._total = self.total_steps(config)
        self.report = GenerationReport(seed=config.seed)
        log = logger.bind(seed=config.seed)
        log.info(
            "generation_started",
            cells=config.total_cells,
            size_x=config.world_size_x,
            size_y=config.world_size_y,
        )

        try:
            ctx, field_ = self._context(config)
            if config.generate_exteriors:
                self._generate_terrain(ctx, field_)
                self._generate_objects(ctx)
            if config.generate_settlements:
                self._generate_settlements(ctx)
            if config.generate_caves_and_dungeons:
                self._generate_underground(ctx)
            if config.generate_interiors:
                self._generate_interiors(ctx)
            if config.generate_pathgrids:
                self._generate_pathgrids(ctx)
        except _Cancelled:
            log.info("generation_cancelled", step=self._step, total=self._total)
            return GenerationOutcome.CANCELLED
        except Exception as e:
            self.report.error = str(e)
            log.exception("generation_failed", step=self._step)
            self.host.progress(0, 0, f"Error: {e}")
            return GenerationOutcome.FAILED
        finally:
            self._running = False

        self.host.progress(self._total, self._total, "Generation complete!")
        log.info("generation_finished", steps=self._step)
        return GenerationOutcome.SUCCEEDED

    def _cells(self, config: GenerationConfig):
        for cell_y in range(config.origin_y, config.origin_y + config.world_size_y):
            for cell_x in range(config.origin_x, config.origin_x + config.world_size_x):
                yield cell_x, cell_y

    def _generate_terrain(self, ctx: GenerationContext, field_: TerrainField) -> None:
        logger.info("phase_started", phase="terrain", cells=ctx.config.total_cells)
        for cell_x, cell_y in self._cells(ctx.config):
            self._emit_land(field_, cell_x, cell_y)
            self._advance(f"Generating terrain for cell ({cell_x}, {cell_y})")

    def _emit_land(self, field_: TerrainField, cell_x: int, cell_y: int) -> LandData:
        require_accepted(self.host.create_cell(cell_x, cell_y), f"cell ({cell_x}, {cell_y})")
        land = build_land(field_, cell_x, cell_y)
        accepted = self.host.create_land(cell_x, cell_y, land.heights, land.normals, land.textures)
        require_accepted(accepted, f"land ({cell_x}, {cell_y})")
        return land

    def _generate_objects(self, ctx: GenerationContext) -> None:
        logger.info("phase_started", phase="objects", cells=ctx.config.total_cells)
        placed = 0
        for cell_x, cell_y in self._cells(ctx.config):
            placed += len(place_objects_in_cell(ctx, cell_x, cell_y))
            self._advance(f"Placing objects in cell ({cell_x}, {cell_y})")
        logger.info("phase_finished", phase="objects", placed=placed)

    def _generate_settlements(self, ctx: GenerationContext) -> None:
        sp = ctx.config.settlement
        if sp.type is SettlementType.NONE:
            return
        logger.info("phase_started", phase="settlements", requested=sp.settlement_count)
        locations = find_settlement_locations(ctx.terrain, ctx.config, ctx.rng)
        self.report.settlements = locations

        engine = SettlementEngine(ctx)
        for location in locations:
            self.report.layouts.append(engine.generate(location))
            self.report.interiors += location.interior_ids
            self._advance(f"Generated settlement {location.name}", STEPS_PER_SETTLEMENT)

        if ctx.config.generate_infrastructure:
            infra = InfrastructureEngine(ctx, locations)
            self.report.infrastructure = infra.generate()
            self.report.roads = infra.roads
            if ctx.cancelled:
                raise _Cancelled()

    def _generate_underground(self, ctx: GenerationContext) -> None:
        cd = ctx.config.cave_dungeon
        logger.info("phase_started", phase="caves_and_dungeons")
        if cd.generate_caves:
            for i in range(cd.cave_count):
                site = generate_cave(ctx, cd)
                if site is not None:
                    self.report.underground.append(site)
                    self.report.interiors += site.interiors
                self._advance(f"Generated cave {i + 1}/{cd.cave_count}")
        if cd.generate_dungeons:
            for i in range(cd.dungeon_count):
                site = generate_dungeon(ctx, cd)
                if site is not None:
                    self.report.underground.append(site)
                    self.report.interiors += site.interiors
                self._advance(f"Generated dungeon {i + 1}/{cd.dungeon_count}")

    def _generate_interiors(self, ctx: GenerationContext) -> None:
        params = ctx.config.interiors
        count = self.standalone_interior_count(ctx.config)
        logger.info("phase_started", phase="interiors", count=count)
        for i in range(count):
            name = f"Proc_Interior_{ctx.config.seed}_{i}"
            rooms = ctx.rng.next_int_range(params.min_rooms, params.max_rooms)
            build_interior(ctx, name, rooms, params)
            self.report.interiors.append(name)
            self._advance(f"Generated interior {name}")

    def _generate_pathgrids(self, ctx: GenerationContext) -> None:
        logger.info("phase_started", phase="pathgrids", cells=ctx.config.total_cells)
        for cell_x, cell_y in self._cells(ctx.config):
            grid = build_pathgrid(ctx.terrain, cell_x, cell_y)
            if grid.points:
                cid = format_cell_id(cell_x, cell_y)
                accepted = self.host.create_pathgrid(cid, grid.points, grid.edges)
                require_accepted(accepted, f"pathgrid {cid}")
            self._advance(f"Generated pathgrid for cell ({cell_x}, {cell_y})")

    def preview_cell(self, cell_x: int, cell_y: int) -> NDArray[np.float32]:
        """Generate one cell with its objects and return its height grid."""
        config = self.config.with_resolved_seed()
        ctx, field_ = self._context(config)
        land = self._emit_land(field_, cell_x, cell_y)
        place_objects_in_cell(ctx, cell_x, cell_y)
        return land.heights
