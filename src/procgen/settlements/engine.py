"""Settlement layout engine: districts, streets, lots, buildings, walls."""

import math
from dataclasses import dataclass, field

import structlog

from ..assets import AssetCategory
from ..config import settlement_building_range
from ..hosts import GenerationContext
from ..interiors import build_interior
from .buildings import (
    BuildingRole,
    PlacedBuilding,
    assign_roles,
    building_size,
    needs_interior,
    required_buildings,
    select_building_for_role,
)
from .districts import District, plan_districts, wealth_of
from .location import SettlementLocation
from .lots import BuildingLot, create_lots
from .streets import StreetSegment, grid_streets, organic_streets
from .walls import place_walls

logger = structlog.get_logger()

ROTATION_JITTER = 0.1
LIGHT_SPACING = 150.0
LIGHT_SETBACK = 20.0
STREET_TILE_SPACING = 50.0
MIN_TILE_STREET = 10.0

CLUTTER_FALLBACKS = ["contain_crate_01", "contain_barrel_01", "furn_bench_01"]
LIGHT_FALLBACKS = ["light_de_lantern_01", "light_com_torch_01"]


@dataclass
class SettlementLayout:
    """Everything produced for one settlement."""

    location: SettlementLocation
    districts: list[District] = field(default_factory=list)
    streets: list[StreetSegment] = field(default_factory=list)
    lots: list[BuildingLot] = field(default_factory=list)
    buildings: list[PlacedBuilding] = field(default_factory=list)
    detail_refs: list[str] = field(default_factory=list)
    light_refs: list[str] = field(default_factory=list)
    road_refs: list[str] = field(default_factory=list)
    wall_refs: list[str] = field(default_factory=list)


class SettlementEngine:
    """Lays out settlements one at a time through a shared context.

    All randomness comes from ``ctx.rng`` in a fixed step order, so a
    settlement's layout depends on the seed and on everything generated
    before it.
    """

    def __init__(self, ctx: GenerationContext):
        self.ctx = ctx
        self.layout = ctx.config.settlement_layout

    def generate(self, location: SettlementLocation) -> SettlementLayout:
        ctx = self.ctx
        rng = ctx.rng
        result = SettlementLayout(location)

        result.districts = plan_districts(
            location.center_x,
            location.center_y,
            location.radius,
            location.type,
            rng,
            enabled=self.layout.enable_districts,
        )
        result.streets = self.generate_streets(location)

        low, high = settlement_building_range(location.type)
        target = rng.next_int_range(low, high)
        result.lots = create_lots(
            ctx.terrain,
            result.streets,
            result.districts,
            rng,
            building_density=self.layout.building_density,
            organic_factor=self.layout.organic_factor,
            max_lots=target,
        )

        required = required_buildings(location.type, len(result.lots), rng)
        claimed = assign_roles(result.lots, required, rng)
        for lot in claimed:
            result.buildings.append(self.place_building(location, lot))

        if self.layout.add_clutter:
            result.detail_refs = self.place_street_details(result.buildings)
        if self.layout.add_lighting:
            result.light_refs = self.place_street_lights(result.streets)
        result.road_refs = self.place_street_tiles(result.streets)

        if ctx.config.settlement.walls_enabled(location.type):
            result.wall_refs = place_walls(ctx, location)

        logger.debug(
            "settlement_generated",
            name=location.name,
            type=location.type.value,
            districts=len(result.districts),
            streets=len(result.streets),
            buildings=len(result.buildings),
            walls=len(result.wall_refs),
        )
        return result

    def generate_streets(self, location: SettlementLocation) -> list[StreetSegment]:
        lay = self.layout
        if not lay.organic_layout:
            return grid_streets(
                location.center_x,
                location.center_y,
                location.radius,
                self.ctx.rng,
                organic_factor=lay.organic_factor,
            )
        return organic_streets(
            self.ctx.terrain,
            location.center_x,
            location.center_y,
            location.radius,
            self.ctx.rng,
            organic_factor=lay.organic_factor,
            radial=lay.radial_roads,
            rings=lay.ring_roads,
            irregular=lay.irregular_streets,
            road_density=lay.road_density,
        )

    def place_building(self, location: SettlementLocation, lot: BuildingLot) -> PlacedBuilding:
        """Emit the building for a claimed lot, with an interior when it has one."""
        ctx = self.ctx
        role = lot.role
        object_id = select_building_for_role(
            role, wealth_of(lot.district), ctx.catalog, ctx.rng, ctx.use_asset_library
        )
        rotation = lot.rotation
        if self.layout.organic_layout:
            rotation += ctx.rng.next_float_range(-ROTATION_JITTER, ROTATION_JITTER)

        ref_id = ctx.place(object_id, lot.x, lot.y, rotation=rotation)
        location.building_ids.append(ref_id)

        interior_id = ""
        if ctx.config.settlement.generate_building_interiors and needs_interior(role):
            interior_id = f"{location.name}_{ref_id}_Interior"
            rooms = ctx.rng.next_int_range(
                ctx.config.interiors.min_rooms, ctx.config.interiors.max_rooms
            )
            build_interior(ctx, interior_id, rooms, ctx.config.interiors)
            location.interior_ids.append(interior_id)

        width, depth = building_size(role)
        return PlacedBuilding(
            ref_id=ref_id,
            object_id=object_id,
            role=role,
            district=lot.district,
            x=lot.x,
            y=lot.y,
            z=ctx.terrain.height(lot.x, lot.y),
            rotation=rotation,
            width=width,
            depth=depth,
            interior_id=interior_id,
        )

    def _detail_category(self, building: PlacedBuilding) -> AssetCategory:
        if building.role in (BuildingRole.GENERAL_STORE, BuildingRole.WAREHOUSE):
            return AssetCategory.CONTAINER
        if building.role in (BuildingRole.TAVERN, BuildingRole.INN):
            return AssetCategory.FURNITURE
        return AssetCategory.CLUTTER

    def place_street_details(self, buildings: list[PlacedBuilding]) -> list[str]:
        """One to three props in front of a density-gated subset of buildings."""
        ctx = self.ctx
        rng = ctx.rng
        refs = []
        for building in buildings:
            if not rng.next_bool(self.layout.clutter_density):
                continue
            category = self._detail_category(building)
            for _ in range(rng.next_int_range(1, 3)):
                offset = building.width * 0.4 + rng.next_float_range(10.0, 50.0)
                angle = building.rotation + rng.next_float_range(-0.5, 0.5)
                x = building.x + math.cos(angle) * offset
                y = building.y + math.sin(angle) * offset
                object_id = ctx.select(category, CLUTTER_FALLBACKS)
                refs.append(ctx.place(object_id, x, y, rotation=rng.next_float_range(0.0, 6.28)))
        return refs

    def place_street_lights(self, streets: list[StreetSegment]) -> list[str]:
        """Lights beside main streets at a fixed spacing."""
        ctx = self.ctx
        refs = []
        for street in streets:
            if not street.is_main:
                continue
            length = street.length
            count = int(length / LIGHT_SPACING)
            if count < 1:
                continue
            dx = (street.end_x - street.start_x) / length
            dy = (street.end_y - street.start_y) / length
            side = street.width / 2.0 + LIGHT_SETBACK
            for i in range(count):
                t = (i + 0.5) / count
                x = street.start_x + dx * length * t - dy * side
                y = street.start_y + dy * length * t + dx * side
                object_id = ctx.select(AssetCategory.LIGHT, LIGHT_FALLBACKS)
                refs.append(ctx.place(object_id, x, y))
        return refs

    def place_street_tiles(self, streets: list[StreetSegment]) -> list[str]:
        """Road surface pieces along every street; catalog only."""
        ctx = self.ctx
        refs = []
        for street in streets:
            length = street.length
            if length < MIN_TILE_STREET:
                continue
            category = AssetCategory.COBBLESTONE_ROAD if street.is_main else AssetCategory.ROAD
            ids = ctx.catalog.get_asset_ids(category) or ctx.catalog.get_asset_ids(
                AssetCategory.ROAD
            )
            if not ids:
                continue
            count = int(length / STREET_TILE_SPACING)
            for i in range(count):
                t = i / count
                x = street.start_x + (street.end_x - street.start_x) * t
                y = street.start_y + (street.end_y - street.start_y) * t
                refs.append(ctx.place(ctx.rng.choice(ids), x, y, rotation=street.angle))
        return refs
