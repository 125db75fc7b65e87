"""Generation configuration models and TOML loading."""

import time
import tomllib
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, model_validator

from .exceptions import ConfigError


class SettlementType(str, Enum):
    """Settlement scale, from a lone farm up to a walled metropolis."""

    NONE = "none"
    FARM = "farm"
    HAMLET = "hamlet"
    VILLAGE = "village"
    TOWN = "town"
    CITY = "city"
    METROPOLIS = "metropolis"
    FORTRESS = "fortress"
    CASTLE = "castle"


# Settlement radius in world units
SETTLEMENT_RADIUS: dict[SettlementType, float] = {
    SettlementType.FARM: 300.0,
    SettlementType.HAMLET: 500.0,
    SettlementType.VILLAGE: 800.0,
    SettlementType.TOWN: 1500.0,
    SettlementType.CITY: 3000.0,
    SettlementType.METROPOLIS: 6000.0,
    SettlementType.FORTRESS: 1000.0,
    SettlementType.CASTLE: 800.0,
}

SETTLEMENT_BUILDING_RANGE: dict[SettlementType, tuple[int, int]] = {
    SettlementType.FARM: (1, 3),
    SettlementType.HAMLET: (5, 10),
    SettlementType.VILLAGE: (10, 30),
    SettlementType.TOWN: (30, 100),
    SettlementType.CITY: (100, 500),
    SettlementType.METROPOLIS: (500, 2000),
    SettlementType.FORTRESS: (5, 20),
    SettlementType.CASTLE: (1, 5),
}

_WALLED_BY_DEFAULT = {
    SettlementType.TOWN,
    SettlementType.CITY,
    SettlementType.METROPOLIS,
    SettlementType.FORTRESS,
    SettlementType.CASTLE,
}

# Importance follows declaration order; fortresses and castles outrank towns.
_SETTLEMENT_RANK: dict[SettlementType, int] = {
    settlement_type: rank for rank, settlement_type in enumerate(SettlementType)
}


def settlement_radius(settlement_type: SettlementType) -> float:
    return SETTLEMENT_RADIUS.get(settlement_type, 500.0)


def settlement_building_range(settlement_type: SettlementType) -> tuple[int, int]:
    return SETTLEMENT_BUILDING_RANGE.get(settlement_type, (0, 0))


def settlement_default_walls(settlement_type: SettlementType) -> bool:
    return settlement_type in _WALLED_BY_DEFAULT


def settlement_rank(settlement_type: SettlementType) -> int:
    return _SETTLEMENT_RANK[settlement_type]


def is_village_or_larger(settlement_type: SettlementType) -> bool:
    return settlement_rank(settlement_type) >= settlement_rank(SettlementType.VILLAGE)


def is_town_or_larger(settlement_type: SettlementType) -> bool:
    return settlement_rank(settlement_type) >= settlement_rank(SettlementType.TOWN)


class TerrainParams(BaseModel):
    """Height field synthesis parameters."""

    base_height: float = Field(default=0.0, description="Height offset in world units")
    height_variation: float = Field(
        default=1000.0, ge=0.0, description="Amplitude of combined noise"
    )
    roughness: float = Field(default=0.5, ge=0.0, le=1.0, description="Detail turbulence weight")
    erosion_strength: float = Field(
        default=0.3, ge=0.0, le=1.0, description="Strength of the erosion noise term"
    )
    octaves: int = Field(default=6, ge=1, description="Octaves for regional noise")
    persistence: float = Field(default=0.5, description="Amplitude multiplier per octave")
    lacunarity: float = Field(default=2.0, description="Frequency multiplier per octave")
    generate_water: bool = Field(default=True, description="Heights below water level are water")
    water_level: float = Field(default=0.0, description="Water surface height")
    mountain_frequency: float = Field(
        default=0.1, gt=0.0, description="Base noise frequency multiplier"
    )
    valley_depth: float = Field(default=0.3, ge=0.0, le=1.0, description="Valley carve depth")


class ObjectPlacementParams(BaseModel):
    """Natural object scatter parameters."""

    tree_density: float = Field(default=0.3, ge=0.0, le=1.0)
    rock_density: float = Field(default=0.2, ge=0.0, le=1.0)
    grass_density: float = Field(default=0.5, ge=0.0, le=1.0)
    bush_density: float = Field(default=0.2, ge=0.0, le=1.0)
    building_density: float = Field(default=0.05, ge=0.0, le=1.0)
    city_prop_density: float = Field(default=0.1, ge=0.0, le=1.0)
    min_spacing: float = Field(default=100.0, gt=0.0, description="Base Poisson spacing")
    clustering_factor: float = Field(default=0.5, ge=0.0, le=1.0)
    align_to_terrain: bool = Field(default=True)
    scale_variation: float = Field(default=0.2, ge=0.0, description="Max relative scale jitter")
    rotation_variation: float = Field(default=1.0, ge=0.0, description="Fraction of a full turn")
    use_asset_library: bool = Field(
        default=True, description="Select objects from the asset catalog"
    )


class InteriorParams(BaseModel):
    """BSP interior layout parameters."""

    min_rooms: int = Field(default=3, ge=1)
    max_rooms: int = Field(default=12, ge=1)
    room_size_min: float = Field(default=200.0, gt=0.0)
    room_size_max: float = Field(default=800.0, gt=0.0)
    corridor_width: float = Field(default=150.0, ge=0.0, description="Padding around each room")
    ceiling_height: float = Field(default=300.0, gt=0.0)
    generate_lighting: bool = Field(default=True)
    generate_containers: bool = Field(default=True)
    generate_npcs: bool = Field(default=False)
    clutter: float = Field(default=0.4, ge=0.0, le=1.0, description="Container chance per room")
    use_asset_library: bool = Field(default=True)

    @model_validator(mode="after")
    def _check_ranges(self) -> "InteriorParams":
        if self.min_rooms > self.max_rooms:
            raise ValueError(f"min_rooms ({self.min_rooms}) exceeds max_rooms ({self.max_rooms})")
        if self.room_size_min > self.room_size_max:
            raise ValueError("room_size_min exceeds room_size_max")
        return self


class SettlementParams(BaseModel):
    """Which settlements to build and where."""

    type: SettlementType = Field(default=SettlementType.VILLAGE)
    settlement_count: int = Field(default=1, ge=0)
    auto_place_settlements: bool = Field(default=True)
    manual_locations: list[tuple[int, int]] = Field(
        default_factory=list, description="Cell coordinates used when auto placement is off"
    )
    generate_walls: bool = Field(default=False)
    user_override_walls: bool = Field(
        default=False, description="Use generate_walls instead of the per-type default"
    )
    wall_radius: float = Field(default=0.0, ge=0.0, description="0 = 0.95 x settlement radius")
    wall_gate_count: int = Field(default=2, ge=0)
    generate_moat: bool = Field(default=False)
    moat_width: float = Field(default=100.0)
    generate_roads: bool = Field(default=True)
    generate_main_square: bool = Field(default=True)
    main_square_size: float = Field(default=500.0)
    building_spacing: float = Field(default=150.0)
    generate_building_interiors: bool = Field(default=True)
    generate_castle: bool = Field(default=False)
    generate_temple: bool = Field(default=False)
    generate_market: bool = Field(default=True)
    generate_inn: bool = Field(default=True)

    def walls_enabled(self, settlement_type: SettlementType) -> bool:
        """Whether a settlement of this type gets a wall ring."""
        if self.user_override_walls:
            return self.generate_walls
        return settlement_default_walls(settlement_type)


class CaveDungeonParams(BaseModel):
    """Cave and dungeon generation parameters."""

    generate_caves: bool = Field(default=True)
    generate_dungeons: bool = Field(default=True)
    cave_count: int = Field(default=3, ge=0, description="Caves per world")
    dungeon_count: int = Field(default=2, ge=0, description="Dungeons per world")
    cave_min_rooms: int = Field(default=3, ge=1)
    cave_max_rooms: int = Field(default=10, ge=1)
    cave_room_size_min: float = Field(default=300.0, gt=0.0)
    cave_room_size_max: float = Field(default=800.0, gt=0.0)
    cave_underwater: bool = Field(default=False)
    dungeon_min_rooms: int = Field(default=5, ge=1)
    dungeon_max_rooms: int = Field(default=20, ge=1)
    dungeon_room_size_min: float = Field(default=200.0, gt=0.0)
    dungeon_room_size_max: float = Field(default=600.0, gt=0.0)
    dungeon_floors: int = Field(default=1, ge=1)
    generate_creatures: bool = Field(default=False)
    generate_loot: bool = Field(default=True)
    generate_traps: bool = Field(default=False)


class PathScoringConfig(BaseModel):
    """Weights for greedy road path synthesis."""

    step_size: float = Field(default=200.0, gt=0.0, description="Distance per path step")
    direct_threshold: float = Field(
        default=100.0, description="Below this distance the path is just the endpoints"
    )
    bearing_spread: float = Field(default=0.3, description="Radians between candidate bearings")
    bearing_count: int = Field(default=7, ge=1, description="Candidate bearings per step (odd)")
    progress_weight: float = Field(default=0.1, description="Penalty per unit remaining")
    over_slope_penalty: float = Field(
        default=10000.0, description="Penalty when slope exceeds the road limit"
    )
    slope_weight: float = Field(default=100.0, description="Penalty per unit of slope")
    water_penalty: float = Field(default=5000.0, description="Penalty for stepping into water")
    turn_weight: float = Field(default=10.0, description="Penalty per radian of heading change")
    step_budget_factor: float = Field(
        default=3.0, description="Max steps as a multiple of distance / step_size"
    )


class InfrastructureConfig(BaseModel):
    """Roads, waypoints and rural structures between settlements."""

    generate_roads: bool = Field(default=True)
    connect_settlements: bool = Field(default=True)
    road_curviness: float = Field(default=0.3, ge=0.0, le=1.0)
    avoid_steep_slopes: bool = Field(default=True)
    max_road_slope: float = Field(default=0.3, gt=0.0)
    redundant_road_chance: float = Field(
        default=0.3, ge=0.0, le=1.0, description="Extra edge chance for towns and larger"
    )
    path_scoring: PathScoringConfig = Field(default_factory=PathScoringConfig)

    generate_waypoints: bool = Field(default=True)
    signpost_frequency: float = Field(default=0.5, ge=0.0, le=1.0)
    shrine_frequency: float = Field(default=0.3, ge=0.0, le=1.0)
    rest_stop_frequency: float = Field(default=0.2, ge=0.0, le=1.0)
    rest_stop_interval: float = Field(default=2000.0, gt=0.0)

    generate_watchtowers: bool = Field(default=True)
    watchtower_density: float = Field(default=0.3, ge=0.0, le=1.0)
    generate_guard_posts: bool = Field(default=True)

    generate_farms: bool = Field(default=True)
    farm_density: float = Field(default=0.4, ge=0.0, le=1.0)
    generate_mills: bool = Field(default=True)

    generate_mines: bool = Field(default=True)
    generate_lumber_camps: bool = Field(default=True)
    industry_density: float = Field(default=0.2, ge=0.0, le=1.0)

    generate_ruins: bool = Field(default=True)
    ruin_density: float = Field(default=0.2, ge=0.0, le=1.0)
    ruin_age: float = Field(default=0.5, ge=0.0, le=1.0, description="0 = recent, 1 = ancient")

    generate_camps: bool = Field(default=True)
    bandit_camp_density: float = Field(default=0.1, ge=0.0, le=1.0)
    traveler_camp_density: float = Field(default=0.2, ge=0.0, le=1.0)

    generate_docks: bool = Field(default=True)
    generate_lighthouses: bool = Field(default=True)
    generate_fishing_huts: bool = Field(default=True)


class RealisticSettlementConfig(BaseModel):
    """Layout style for settlement interiors."""

    organic_layout: bool = Field(default=True, description="Organic streets instead of a grid")
    organic_factor: float = Field(default=0.3, ge=0.0, le=1.0, description="0 = grid, 1 = chaos")
    enable_districts: bool = Field(default=True)
    segregate_wealth: bool = Field(default=True)
    radial_roads: bool = Field(default=True)
    ring_roads: bool = Field(default=True)
    irregular_streets: bool = Field(default=True)
    road_density: float = Field(default=0.5, ge=0.0, le=1.0)
    building_density: float = Field(default=0.6, ge=0.0, le=1.0)
    height_variation: float = Field(default=0.2, ge=0.0, le=1.0)
    align_to_roads: bool = Field(default=True)
    add_clutter: bool = Field(default=True)
    add_vegetation: bool = Field(default=True)
    add_lighting: bool = Field(default=True)
    clutter_density: float = Field(default=0.3, ge=0.0, le=1.0)


class AnalysisResults(BaseModel):
    """Statistics measured from a reference worldspace by an external analyzer."""

    avg_height: float = 0.0
    height_std_dev: float = 0.0
    min_height: float = 0.0
    max_height: float = 0.0
    avg_roughness: float = 0.0
    texture_frequency: dict[str, float] = Field(default_factory=dict)
    object_density_by_type: dict[str, float] = Field(default_factory=dict)
    avg_object_spacing: float = 0.0
    is_valid: bool = False


class GenerationConfig(BaseModel):
    """Complete parameter bundle for one generation run."""

    world_size_x: int = Field(default=10, ge=1, description="World width in cells")
    world_size_y: int = Field(default=10, ge=1, description="World height in cells")
    origin_x: int = Field(default=0, description="Cell x of the world's first column")
    origin_y: int = Field(default=0, description="Cell y of the world's first row")
    seed: int = Field(default=0, ge=0, description="0 = derive from the clock at run start")

    generate_exteriors: bool = Field(default=True)
    generate_interiors: bool = Field(default=True)
    generate_pathgrids: bool = Field(default=True)
    generate_settlements: bool = Field(default=False)
    generate_infrastructure: bool = Field(default=True)
    generate_caves_and_dungeons: bool = Field(default=False)
    overwrite_existing: bool = Field(default=False)

    terrain: TerrainParams = Field(default_factory=TerrainParams)
    objects: ObjectPlacementParams = Field(default_factory=ObjectPlacementParams)
    interiors: InteriorParams = Field(default_factory=InteriorParams)
    settlement: SettlementParams = Field(default_factory=SettlementParams)
    settlement_layout: RealisticSettlementConfig = Field(
        default_factory=RealisticSettlementConfig
    )
    infrastructure: InfrastructureConfig = Field(default_factory=InfrastructureConfig)
    cave_dungeon: CaveDungeonParams = Field(default_factory=CaveDungeonParams)

    @property
    def total_cells(self) -> int:
        return self.world_size_x * self.world_size_y

    def with_resolved_seed(self) -> "GenerationConfig":
        """Copy with a concrete seed; a zero seed is replaced by a clock value."""
        if self.seed != 0:
            return self
        return self.model_copy(update={"seed": time.monotonic_ns() or 1})


def derive_terrain_params(results: AnalysisResults) -> TerrainParams:
    """Terrain parameters suggested by reference-world statistics."""
    params = TerrainParams(
        base_height=results.avg_height,
        height_variation=max(0.0, results.height_std_dev * 3.0),
        roughness=min(max(results.avg_roughness / 100.0, 0.0), 1.0),
    )
    span = results.max_height - results.min_height
    if span > 0:
        params.mountain_frequency = min(max(results.height_std_dev / span, 0.05), 0.5)
        params.valley_depth = min(
            max((results.avg_height - results.min_height) / span, 0.1), 0.5
        )
    return params


def derive_object_params(results: AnalysisResults) -> ObjectPlacementParams:
    """Object densities suggested by reference-world statistics."""
    densities = results.object_density_by_type

    def scaled(name: str, ceiling: float = 1.0) -> float:
        return min(max(densities.get(name, 0.0) * 0.1, 0.0), ceiling)

    params = ObjectPlacementParams(
        tree_density=scaled("tree"),
        rock_density=scaled("rock"),
        grass_density=scaled("grass"),
        building_density=scaled("building", 0.3),
    )
    if results.avg_object_spacing > 0:
        params.min_spacing = results.avg_object_spacing * 0.8
    return params


def apply_analysis(config: GenerationConfig, results: AnalysisResults) -> GenerationConfig:
    """Replace terrain and object parameters with analysis suggestions.

    Invalid analyses leave the config untouched.
    """
    if not results.is_valid:
        return config
    return config.model_copy(
        update={
            "terrain": derive_terrain_params(results),
            "objects": derive_object_params(results),
        }
    )


def load_config(config_path: Path) -> GenerationConfig:
    """Load a generation config from a TOML file.

    Args:
        config_path: Path to the TOML config file.

    Returns:
        Parsed GenerationConfig.

    Raises:
        ConfigError: If the file is missing, malformed or fails validation.
    """
    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {config_path}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Malformed TOML in {config_path}: {e}") from e

    try:
        return GenerationConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config {config_path}: {e}") from e
