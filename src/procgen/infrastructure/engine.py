"""Infrastructure between settlements: roads and everything along them.

Phases run in a fixed order (roads, waypoints, defense, rural, industry,
ruins, camps, water) and all draw from the context's random stream, so the
whole network is reproducible from the seed.
"""

import math
from dataclasses import replace
from typing import Sequence

import structlog

from ..assets import AssetCategory
from ..config import is_town_or_larger, is_village_or_larger
from ..hosts import GenerationContext
from ..settlements.location import SettlementLocation
from ..terrain_types import REAL_SIZE, cell_center, cell_coords
from .placement import (
    InfrastructureType,
    PlacedInfrastructure,
    SiteFinder,
    WorldBounds,
)
from .roads import (
    MAIN_ROAD_WIDTH,
    SECONDARY_ROAD_WIDTH,
    RoadConnection,
    WorldRoad,
    build_connections,
    find_path,
    minimum_spanning_tree,
    smooth_path,
)

logger = structlog.get_logger()

T = InfrastructureType

HALF_TURN = 3.14159
QUARTER_TURN = 1.5708
FULL_TURN = 6.28

ROAD_TILE_SPACING = 40.0
MIN_ROAD_SEGMENT = 10.0
SIGNPOST_JOIN_DISTANCE = 100.0
SHRINE_MIN_ROAD = 1000.0
GUARD_POST_SPACING = 3000.0
DOCK_SHORE_STEP = 20.0
LIGHTHOUSE_CHANCE = 0.2
LIGHTHOUSE_WATER_RADIUS = 500.0
MILL_CHANCE = 0.7
WELL_CHANCE = 0.7

MARKER_FALLBACK = "furn_marker_arrow"

# Catalog categories tried in order when choosing an anchor object
TYPE_CATEGORIES: dict[InfrastructureType, tuple[AssetCategory, ...]] = {
    T.WATCHTOWER: (AssetCategory.WALL_TOWER, AssetCategory.BUILDING),
    T.GUARD_POST: (AssetCategory.WALL_TOWER, AssetCategory.BUILDING),
    T.SIGNPOST: (AssetCategory.CITY_PROP,),
    T.SHRINE: (AssetCategory.CITY_PROP,),
    T.FARM: (AssetCategory.FARM, AssetCategory.BUILDING),
    T.BARN: (AssetCategory.FARM, AssetCategory.BUILDING),
    T.MINE: (AssetCategory.CAVE_ENTRANCE,),
    T.DOCK: (AssetCategory.DOCK,),
    T.PIER: (AssetCategory.DOCK,),
}
DEFAULT_CATEGORIES = (AssetCategory.BUILDING,)


class InfrastructureEngine:
    """Builds the road network and rural structures for one run.

    Attributes:
        placed: Every anchor and typed satellite, in placement order.
        roads: Inter-settlement roads, backbone first.
        backbone: The spanning-tree connections the roads were built from.
    """

    def __init__(self, ctx: GenerationContext, settlements: Sequence[SettlementLocation]):
        self.ctx = ctx
        self.cfg = ctx.config.infrastructure
        self.rng = ctx.rng
        self.terrain = ctx.terrain
        self.settlements = list(settlements)
        self.placed: list[PlacedInfrastructure] = []
        self.roads: list[WorldRoad] = []
        self.backbone: list[RoadConnection] = []

        config = ctx.config
        self.bounds = WorldBounds(
            min_x=config.origin_x * REAL_SIZE,
            min_y=config.origin_y * REAL_SIZE,
            width=config.world_size_x * REAL_SIZE,
            height=config.world_size_y * REAL_SIZE,
        )
        self.sites = SiteFinder(
            self.terrain, self.rng, self.bounds, self.settlements, self.roads, self.placed
        )

    @property
    def area_cells(self) -> int:
        return self.ctx.config.world_size_x * self.ctx.config.world_size_y

    def generate(self) -> list[PlacedInfrastructure]:
        cfg = self.cfg
        phases = [
            ("roads", cfg.generate_roads and cfg.connect_settlements, self.generate_roads),
            ("waypoints", cfg.generate_waypoints, self.generate_waypoints),
            ("defense", cfg.generate_watchtowers, self.generate_defense),
            ("rural", cfg.generate_farms, self.generate_rural),
            (
                "industry",
                cfg.generate_mines or cfg.generate_lumber_camps,
                self.generate_industry,
            ),
            ("ruins", cfg.generate_ruins, self.generate_ruins),
            ("camps", cfg.generate_camps, self.generate_camps),
            ("water", True, self.generate_water),
        ]
        for name, enabled, phase in phases:
            if self.ctx.cancelled:
                logger.info("infrastructure_cancelled", phase=name)
                break
            if not enabled:
                continue
            before = len(self.placed)
            phase()
            logger.info(
                "infrastructure_phase_done",
                phase=name,
                placed=len(self.placed) - before,
                roads=len(self.roads),
            )
        return self.placed

    # Selection and emission

    def select_object(self, infra_type: InfrastructureType) -> str:
        """Object id for an anchor; a marker when nothing is configured."""
        if self.ctx.use_asset_library:
            for category in TYPE_CATEGORIES.get(infra_type, DEFAULT_CATEGORIES):
                ids = self.ctx.catalog.get_asset_ids(category)
                if ids:
                    return self.rng.choice(ids)
        return MARKER_FALLBACK

    def record(
        self,
        infra_type: InfrastructureType,
        x: float,
        y: float,
        rotation: float,
        object_id: str = "",
        ref_id: str = "",
        scale: float = 1.0,
    ) -> PlacedInfrastructure:
        cell_x, cell_y = cell_coords(x, y)
        item = PlacedInfrastructure(
            infra_type=infra_type,
            x=x,
            y=y,
            z=self.terrain.height(x, y),
            rotation=rotation,
            scale=scale,
            ref_id=ref_id,
            object_id=object_id,
            cell_x=cell_x,
            cell_y=cell_y,
        )
        self.placed.append(item)
        return item

    def place_infrastructure(
        self,
        infra_type: InfrastructureType,
        x: float,
        y: float,
        rotation: float,
    ) -> PlacedInfrastructure:
        """Select, emit and record an anchor object."""
        object_id = self.select_object(infra_type)
        ref_id = self.ctx.place(object_id, x, y, rotation=rotation)
        return self.record(infra_type, x, y, rotation, object_id, ref_id)

    def _link(self, anchor: PlacedInfrastructure, links: Sequence[str]) -> PlacedInfrastructure:
        """Swap a recorded anchor for a copy carrying its satellite refs."""
        linked = replace(anchor, linked_refs=tuple(links))
        for i in range(len(self.placed) - 1, -1, -1):
            if self.placed[i] is anchor:
                self.placed[i] = linked
                break
        return linked

    def place_at_random_site(self, infra_type: InfrastructureType) -> PlacedInfrastructure | None:
        site = self.sites.find_valid_location(infra_type)
        if site is None:
            logger.debug("site_not_found", type=infra_type.value, attempts=self.sites.last_attempts)
            return None
        x, y, _ = site
        rotation = self.rng.next_float_range(0.0, FULL_TURN)
        return self.place_infrastructure(infra_type, x, y, rotation)

    def _polar_offset(
        self, x: float, y: float, min_dist: float, max_dist: float
    ) -> tuple[float, float, float]:
        angle = self.rng.next_float_range(0.0, FULL_TURN)
        dist = self.rng.next_float_range(min_dist, max_dist)
        return x + math.cos(angle) * dist, y + math.sin(angle) * dist, angle

    # Roads

    def generate_roads(self) -> None:
        """Spanning-tree backbone plus redundant links around towns."""
        if len(self.settlements) < 2:
            return
        centers = [(s.center_x, s.center_y) for s in self.settlements]
        connections = build_connections(self.terrain, centers)
        self.backbone = minimum_spanning_tree(len(centers), connections)
        selected = list(self.backbone)

        chosen = {(c.from_index, c.to_index) for c in self.backbone}
        for c in connections:
            if (c.from_index, c.to_index) in chosen:
                continue
            important = is_town_or_larger(self.settlements[c.from_index].type) or is_town_or_larger(
                self.settlements[c.to_index].type
            )
            if important and self.rng.next_bool(self.cfg.redundant_road_chance):
                selected.append(c)

        for c in selected:
            start = self.settlements[c.from_index]
            end = self.settlements[c.to_index]
            self.roads.append(self.create_road(start, end))

    def create_road(self, start: SettlementLocation, end: SettlementLocation) -> WorldRoad:
        is_main = is_town_or_larger(start.type) and is_town_or_larger(end.type)
        path = find_path(
            self.terrain,
            (start.center_x, start.center_y),
            (end.center_x, end.center_y),
            self.cfg.max_road_slope,
            self.cfg.path_scoring,
        )
        road = WorldRoad(
            waypoints=smooth_path(path),
            width=MAIN_ROAD_WIDTH if is_main else SECONDARY_ROAD_WIDTH,
            is_main=is_main,
            start_location=start.name,
            end_location=end.name,
        )
        road.placed_objects = self.place_road_segments(road)
        return road

    def place_road_segments(self, road: WorldRoad) -> list[str]:
        """Road surface pieces at fixed spacing; nothing without catalog roads."""
        catalog = self.ctx.catalog
        ids = []
        if road.is_main:
            ids = catalog.get_asset_ids(AssetCategory.COBBLESTONE_ROAD)
        if not ids:
            ids = catalog.get_asset_ids(AssetCategory.ROAD)
        if not ids:
            return []

        refs = []
        for (x1, y1), (x2, y2) in zip(road.waypoints, road.waypoints[1:]):
            dx = x2 - x1
            dy = y2 - y1
            length = math.hypot(dx, dy)
            if length < MIN_ROAD_SEGMENT:
                continue
            count = int(length / ROAD_TILE_SPACING)
            rotation = math.atan2(dy, dx)
            for j in range(count):
                t = j / count
                object_id = self.rng.choice(ids)
                refs.append(self.ctx.place(object_id, x1 + dx * t, y1 + dy * t, rotation=rotation))
        return refs

    # Waypoints

    def generate_waypoints(self) -> None:
        self.place_signposts()
        for road in self.roads:
            self.place_shrine(road)
            self.place_rest_stops(road)

    def place_signposts(self) -> None:
        """Signposts where waypoints of two roads come close."""
        for i, a in enumerate(self.roads):
            for b in self.roads[i + 1:]:
                for ax, ay in a.waypoints:
                    for bx, by in b.waypoints:
                        if math.hypot(ax - bx, ay - by) >= SIGNPOST_JOIN_DISTANCE:
                            continue
                        if not self.rng.next_bool(self.cfg.signpost_frequency):
                            continue
                        self.place_infrastructure(
                            T.SIGNPOST,
                            (ax + bx) / 2.0,
                            (ay + by) / 2.0,
                            self.rng.next_float_range(0.0, FULL_TURN),
                        )

    def place_shrine(self, road: WorldRoad) -> None:
        if road.length <= SHRINE_MIN_ROAD or not self.rng.next_bool(self.cfg.shrine_frequency):
            return
        t = self.rng.next_float_range(0.3, 0.7)
        x, y = road.waypoints[int(t * (len(road.waypoints) - 1))]
        x += self.rng.next_float_range(-50.0, 50.0)
        y += self.rng.next_float_range(-50.0, 50.0)
        self.place_infrastructure(T.SHRINE, x, y, self.rng.next_float_range(0.0, FULL_TURN))

    def place_rest_stops(self, road: WorldRoad) -> None:
        interval = self.cfg.rest_stop_interval
        for r in range(1, int(road.length / interval)):
            if not self.rng.next_bool(self.cfg.rest_stop_frequency):
                continue
            point = road.point_at_distance(r * interval)
            if point is None:
                continue
            x, y, _ = point
            x += self.rng.next_float_range(30.0, 80.0) * (1 if self.rng.next_bool(0.5) else -1)
            y += self.rng.next_float_range(30.0, 80.0) * (1 if self.rng.next_bool(0.5) else -1)
            self.place_infrastructure(T.REST_STOP, x, y, self.rng.next_float_range(0.0, FULL_TURN))

    # Defense

    def generate_defense(self) -> None:
        count = int(self.area_cells * self.cfg.watchtower_density * 0.1)
        for _ in range(count):
            self.place_at_random_site(T.WATCHTOWER)
        if self.cfg.generate_guard_posts:
            for road in self.roads:
                if road.is_main:
                    self.place_guard_posts(road)

    def place_guard_posts(self, road: WorldRoad) -> None:
        count = int(road.length / GUARD_POST_SPACING)
        for g in range(1, count):
            point = road.point_at_distance(g * GUARD_POST_SPACING)
            if point is None:
                continue
            x, y, heading = point
            self.place_infrastructure(T.GUARD_POST, x, y, heading + QUARTER_TURN)

    # Rural

    def generate_rural(self) -> None:
        count = int(self.area_cells * self.cfg.farm_density * 0.2)
        for _ in range(count):
            site = self.sites.find_valid_location(T.FARM)
            if site is not None:
                self.place_farm(site[0], site[1])
        if self.cfg.generate_mills:
            self.place_mills()

    def place_farm(self, x: float, y: float) -> PlacedInfrastructure:
        """Farmhouse with a barn and usually a well, each on dry ground."""
        ctx = self.ctx
        rotation = self.rng.next_float_range(0.0, FULL_TURN)
        farm = self.place_infrastructure(T.FARM, x, y, rotation)
        links = []

        bx, by, angle = self._polar_offset(x, y, 100.0, 200.0)
        if not ctx.is_underwater(bx, by):
            barn = self.place_infrastructure(T.BARN, bx, by, angle + HALF_TURN)
            links.append(barn.ref_id)

        if self.rng.next_bool(WELL_CHANCE):
            wx, wy, _ = self._polar_offset(x, y, 50.0, 100.0)
            if not ctx.is_underwater(wx, wy):
                well = self.place_infrastructure(T.WELL, wx, wy, 0.0)
                links.append(well.ref_id)

        return self._link(farm, links)

    def place_mills(self) -> None:
        for s in self.settlements:
            if not is_village_or_larger(s.type) or not self.rng.next_bool(MILL_CHANCE):
                continue
            angle = self.rng.next_float_range(0.0, FULL_TURN)
            dist = s.radius * self.rng.next_float_range(1.2, 2.0)
            x = s.center_x + math.cos(angle) * dist
            y = s.center_y + math.sin(angle) * dist
            mill = T.WATER_MILL if self.sites.is_near_water(x, y, 200.0) else T.WINDMILL
            if self.ctx.is_underwater(x, y):
                continue
            self.place_infrastructure(mill, x, y, self.rng.next_float_range(0.0, FULL_TURN))

    # Industry

    def generate_industry(self) -> None:
        count = int(self.area_cells * self.cfg.industry_density * 0.1)
        if self.cfg.generate_mines:
            for _ in range(count // 2):
                site = self.sites.find_valid_location(T.MINE)
                if site is not None:
                    self.place_mine(site[0], site[1])
        if self.cfg.generate_lumber_camps:
            for _ in range(count // 2):
                self.place_at_random_site(T.LUMBER_CAMP)

    def place_mine(self, x: float, y: float) -> PlacedInfrastructure:
        """Mine entrance with one to three storage containers around it."""
        rotation = self.rng.next_float_range(0.0, FULL_TURN)
        mine = self.place_infrastructure(T.MINE, x, y, rotation)
        links = []
        for _ in range(self.rng.next_int_range(1, 3)):
            sx, sy, _ = self._polar_offset(x, y, 50.0, 150.0)
            if self.ctx.is_underwater(sx, sy):
                continue
            object_id = self.ctx.catalog_pick(AssetCategory.CONTAINER)
            if object_id is None:
                continue
            turn = self.rng.next_float_range(0.0, FULL_TURN)
            links.append(self.ctx.place(object_id, sx, sy, rotation=turn))
        return self._link(mine, links)

    # Ruins

    def generate_ruins(self) -> None:
        count = int(self.area_cells * self.cfg.ruin_density * 0.15)
        for _ in range(count):
            site = self.sites.find_valid_location(T.RUINS)
            if site is not None:
                self.place_ruins(site[0], site[1])
        for _ in range(count // 3):
            kind = T.STANDING_STONE if self.rng.next_bool(0.5) else T.BURIAL_MOUND
            self.place_at_random_site(kind)

    def place_ruins(self, x: float, y: float) -> PlacedInfrastructure:
        """Ruin anchor with three to eight pieces of scattered rubble."""
        rotation = self.rng.next_float_range(0.0, FULL_TURN)
        ruins = self.place_infrastructure(T.RUINS, x, y, rotation)
        links = []
        for _ in range(self.rng.next_int_range(3, 8)):
            dx, dy, _ = self._polar_offset(x, y, 30.0, 150.0)
            if self.ctx.is_underwater(dx, dy):
                continue
            object_id = self.ctx.catalog_pick(AssetCategory.ROCK)
            if object_id is None:
                continue
            links.append(
                self.ctx.place(
                    object_id,
                    dx,
                    dy,
                    rotation=self.rng.next_float_range(0.0, FULL_TURN),
                    scale=self.rng.next_float_range(0.5, 1.5),
                )
            )
        return self._link(ruins, links)

    # Camps

    def generate_camps(self) -> None:
        count = int(self.area_cells * self.cfg.bandit_camp_density * 0.1)
        for _ in range(count):
            site = self.sites.find_valid_location(T.BANDIT_CAMP)
            if site is not None:
                self.place_camp(site[0], site[1], T.BANDIT_CAMP)

        for road in self.roads:
            n = len(road.waypoints)
            if n < 3 or not self.rng.next_bool(self.cfg.traveler_camp_density):
                continue
            x, y = road.waypoints[self.rng.next_int(n - 2) + 1]
            x += self.rng.next_float_range(-100.0, 100.0)
            y += self.rng.next_float_range(-100.0, 100.0)
            if self.ctx.is_underwater(x, y):
                continue
            self.place_camp(x, y, T.TRAVELER_CAMP)

    def place_camp(self, x: float, y: float, kind: InfrastructureType) -> PlacedInfrastructure:
        """Tents in a ring, a fire in the middle and loose clutter.

        The anchor is a site marker only and has no reference of its own.
        """
        ctx = self.ctx
        rng = self.rng
        camp = self.record(kind, x, y, 0.0)
        links = []
        tents =rng.next_int_range(2, 5) if kind is T.BANDIT_CAMP else rng.next_int_range(1, 3)
        for _ in range(tents):
            tx, ty, angle = self._polar_offset(x, y, 20.0, 80.0)
            if ctx.is_underwater(tx, ty):
                continue
            object_id = ctx.catalog_pick(AssetCategory.FURNITURE)
            if object_id is not None:
                links.append(ctx.place(object_id, tx, ty, rotation=angle + HALF_TURN))

        light = ctx.catalog_pick(AssetCategory.LIGHT)
        if light is not None:
            links.append(ctx.place(light, x, y))

        for _ in range(rng.next_int_range(2, 6)):
            cx, cy, _ = self._polar_offset(x, y, 10.0, 50.0)
            if ctx.is_underwater(cx, cy):
                continue
            object_id = ctx.catalog_pick(AssetCategory.CLUTTER) or ctx.catalog_pick(
                AssetCategory.CONTAINER
            )
            if object_id is not None:
                rotation = rng.next_float_range(0.0, FULL_TURN)
                links.append(ctx.place(object_id, cx, cy, rotation=rotation))

        return self._link(camp, links)

    # Water

    def generate_water(self) -> None:
        if self.cfg.generate_docks:
            for s in self.settlements:
                if is_village_or_larger(s.type):
                    self.place_dock(s)
        if self.cfg.generate_lighthouses:
            self.place_lighthouses()
        if self.cfg.generate_fishing_huts:
            count = int((self.ctx.config.world_size_x + self.ctx.config.world_size_y) * 0.5)
            for _ in range(count):
                self.place_at_random_site(T.FISHING_HUT)

    def find_shore(self, s: SettlementLocation) -> tuple[float, float] | None:
        """Dry point on the first bearing whose 1.5r sample lands in water.

        The walk steps inward from 1.5r until the ground is dry. Returns None
        when no bearing reaches water or the walk never finds dry ground.
        """
        reach = s.radius * 1.5
        for i in range(8):
            a = i * 0.785
            sample_x = s.center_x + math.cos(a) * reach
            sample_y = s.center_y + math.sin(a) * reach
            if not self.sites.is_in_water(sample_x, sample_y):
                continue
            dist = reach
            while dist > 0:
                x = s.center_x + math.cos(a) * dist
                y = s.center_y + math.sin(a) * dist
                if not self.sites.is_in_water(x, y):
                    return x, y
                dist -= DOCK_SHORE_STEP
            return None
        return None

    def place_dock(self, s: SettlementLocation) -> PlacedInfrastructure | None:
        shore = self.find_shore(s)
        if shore is None:
            return None
        x, y = shore
        kind = T.DOCK if is_town_or_larger(s.type) else T.PIER
        return self.place_infrastructure(kind, x, y, math.atan2(y - s.center_y, x - s.center_x))

    def place_lighthouses(self) -> None:
        config = self.ctx.config
        for cell_y in range(config.origin_y, config.origin_y + config.world_size_y):
            for cell_x in range(config.origin_x, config.origin_x + config.world_size_x):
                x, y = cell_center(cell_x, cell_y)
                if self.sites.is_in_water(x, y):
                    continue
                if not self.sites.is_near_water(x, y, LIGHTHOUSE_WATER_RADIUS):
                    continue
                if not self.sites.is_on_hill(x, y):
                    continue
                if self.rng.next_bool(LIGHTHOUSE_CHANCE):
                    self.place_infrastructure(
                        T.LIGHTHOUSE, x, y, self.rng.next_float_range(0.0, FULL_TURN)
                    )
