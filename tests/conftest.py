"""Shared test fixtures for procgen tests."""

import math
from typing import Callable

import pytest

from procgen.assets import AssetCatalog
from procgen.config import GenerationConfig, ObjectPlacementParams
from procgen.hosts import GenerationContext, RecordingHost, TerrainQueries
from procgen.rng import RandomGenerator


class FlatTerrain:
    """Level ground at a fixed height with no water."""

    def __init__(self, level: float = 100.0, water: float = -math.inf):
        self.level = level
        self.water = water

    def height(self, x: float, y: float) -> float:
        return self.level

    def slope(self, x: float, y: float) -> float:
        return 0.0

    def water_level(self) -> float:
        return self.water


class CoastTerrain:
    """Sea west of ``shore_x``, level dry land east of it. Water level is 0."""

    def __init__(self, shore_x: float = 0.0, land: float = 100.0, sea: float = -100.0):
        self.shore_x = shore_x
        self.land = land
        self.sea = sea

    def height(self, x: float, y: float) -> float:
        return self.land if x >= self.shore_x else self.sea

    def slope(self, x: float, y: float) -> float:
        return 0.0

    def water_level(self) -> float:
        return 0.0


class SteepTerrain:
    """Constant height with a constant slope everywhere."""

    def __init__(self, slope: float, level: float = 100.0):
        self._slope = slope
        self.level = level

    def height(self, x: float, y: float) -> float:
        return self.level

    def slope(self, x: float, y: float) -> float:
        return self._slope

    def water_level(self) -> float:
        return -math.inf


@pytest.fixture
def flat_terrain() -> FlatTerrain:
    """Dry level ground at height 100."""
    return FlatTerrain()


@pytest.fixture
def coast_terrain() -> CoastTerrain:
    """Sea for x < 0, land for x >= 0."""
    return CoastTerrain()


@pytest.fixture
def steep_terrain() -> Callable[[float], SteepTerrain]:
    """Factory for terrain with a fixed slope."""
    return SteepTerrain


@pytest.fixture
def host() -> RecordingHost:
    return RecordingHost()


@pytest.fixture
def small_config() -> GenerationConfig:
    """1x1 world with sparse objects so full runs stay fast."""
    return GenerationConfig(
        world_size_x=1,
        world_size_y=1,
        seed=42,
        objects=ObjectPlacementParams(min_spacing=2000.0),
    )


@pytest.fixture
def sample_catalog() -> AssetCatalog:
    """Catalog scanned from a handful of representative ids."""
    return AssetCatalog.from_ids(
        [
            "flora_tree_01",
            "terrain_rock_01",
            "flora_grass_01",
            "flora_bush_01",
            "ex_common_house_01",
            "ex_guild_hall_01",
            "ex_wall_01",
            "ex_wall_gate_01",
            "light_lantern_01",
            "contain_chest_01",
            "furn_table_01",
            "road_dirt_01",
            "road_cobble_01",
        ]
    )


@pytest.fixture
def make_ctx(host: RecordingHost) -> Callable[..., GenerationContext]:
    """Factory for a GenerationContext over a stub terrain and the shared host."""

    def _make(
        terrain: TerrainQueries | None = None,
        config: GenerationConfig | None = None,
        catalog: AssetCatalog | None = None,
        seed: int = 7,
    ) -> GenerationContext:
        return GenerationContext(
            config=config or GenerationConfig(world_size_x=2, world_size_y=2, seed=42),
            terrain=terrain or FlatTerrain(),
            catalog=catalog or AssetCatalog(),
            host=host,
            rng=RandomGenerator(seed),
        )

    return _make
