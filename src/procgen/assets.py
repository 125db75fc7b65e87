"""Asset catalog: semantic categories mapped to placeable object ids."""

import tomllib
from enum import Enum
from pathlib import Path
from typing import Iterable, Mapping

from pydantic import BaseModel, Field, ValidationError

from .config import SettlementType
from .exceptions import AssetCatalogError, ConfigError


class AssetCategory(str, Enum):
    """What an object is used for during generation."""

    TREE = "tree"
    ROCK = "rock"
    GRASS = "grass"
    BUSH = "bush"
    BUILDING = "building"
    BUILDING_INTERIOR = "building_interior"
    ROAD = "road"
    COBBLESTONE_ROAD = "cobblestone_road"
    WALL = "wall"
    WALL_GATE = "wall_gate"
    WALL_TOWER = "wall_tower"
    CITY_PROP = "city_prop"
    CAVE_ENTRANCE = "cave_entrance"
    CAVE_INTERIOR = "cave_interior"
    DUNGEON_ENTRANCE = "dungeon_entrance"
    DUNGEON_INTERIOR = "dungeon_interior"
    CASTLE_WALL = "castle_wall"
    CASTLE_GALLERY = "castle_gallery"
    CASTLE_STAIRS = "castle_stairs"
    BRIDGE = "bridge"
    DOCK = "dock"
    FARM = "farm"
    FENCE = "fence"
    LIGHT = "light"
    CONTAINER = "container"
    FURNITURE = "furniture"
    CLUTTER = "clutter"
    LANDSCAPE_TEXTURE = "landscape_texture"

    @property
    def display_name(self) -> str:
        """Plural label used in progress messages and listings."""
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES: dict[AssetCategory, str] = {
    AssetCategory.TREE: "Trees",
    AssetCategory.ROCK: "Rocks",
    AssetCategory.GRASS: "Grass",
    AssetCategory.BUSH: "Bushes",
    AssetCategory.BUILDING: "Buildings",
    AssetCategory.BUILDING_INTERIOR: "Building Interiors",
    AssetCategory.ROAD: "Roads",
    AssetCategory.COBBLESTONE_ROAD: "Cobblestone Roads",
    AssetCategory.WALL: "Walls",
    AssetCategory.WALL_GATE: "Wall Gates",
    AssetCategory.WALL_TOWER: "Wall Towers",
    AssetCategory.CITY_PROP: "City Props",
    AssetCategory.CAVE_ENTRANCE: "Cave Entrances",
    AssetCategory.CAVE_INTERIOR: "Cave Interior",
    AssetCategory.DUNGEON_ENTRANCE: "Dungeon Entrances",
    AssetCategory.DUNGEON_INTERIOR: "Dungeon Interior",
    AssetCategory.CASTLE_WALL: "Castle Walls",
    AssetCategory.CASTLE_GALLERY: "Castle Galleries",
    AssetCategory.CASTLE_STAIRS: "Castle Stairs",
    AssetCategory.BRIDGE: "Bridges",
    AssetCategory.DOCK: "Docks",
    AssetCategory.FARM: "Farm Items",
    AssetCategory.FENCE: "Fences",
    AssetCategory.LIGHT: "Lights",
    AssetCategory.CONTAINER: "Containers",
    AssetCategory.FURNITURE: "Furniture",
    AssetCategory.CLUTTER: "Clutter",
    AssetCategory.LANDSCAPE_TEXTURE: "Landscape Textures",
}


class AssetInfo(BaseModel):
    """A placeable object plus its placement hints."""

    id: str
    name: str = ""
    source: str = ""
    category: AssetCategory = AssetCategory.TREE
    preferred_scale: float = 1.0
    min_scale: float = 0.8
    max_scale: float = 1.2
    align_to_terrain: bool = True
    slope_limit: float = Field(default=0.5, description="Max slope this object tolerates")
    min_height: float = -10000.0
    max_height: float = 10000.0
    linked_interior_id: str = ""
    has_interior: bool = False
    group_id: str = Field(default="", description="Identifier shared by related pieces")
    group_index: int = Field(default=0, description="Order within the group")


class WallConfig(BaseModel):
    """Object ids and geometry for settlement walls."""

    enabled: bool = False
    wall_segment_ids: list[str] = Field(default_factory=list)
    gate_ids: list[str] = Field(default_factory=list)
    tower_ids: list[str] = Field(default_factory=list)
    wall_height: float = 500.0
    tower_spacing: float = 300.0
    moat: bool = False
    moat_width: float = 100.0
    gate_count: int = 1


class RoadConfig(BaseModel):
    """Object ids and widths for roads."""

    enabled: bool = True
    main_road_texture_ids: list[str] = Field(default_factory=list)
    side_road_texture_ids: list[str] = Field(default_factory=list)
    cobblestone_ids: list[str] = Field(default_factory=list)
    main_road_width: float = 200.0
    side_road_width: float = 100.0
    use_3d_roads: bool = Field(default=False, description="Place cobblestone objects")


class InteriorConfig(BaseModel):
    """Object ids used to dress interiors."""

    floor_ids: list[str] = Field(default_factory=list)
    wall_ids: list[str] = Field(default_factory=list)
    ceiling_ids: list[str] = Field(default_factory=list)
    door_ids: list[str] = Field(default_factory=list)
    light_ids: list[str] = Field(default_factory=list)
    furniture_ids: list[str] = Field(default_factory=list)
    container_ids: list[str] = Field(default_factory=list)
    clutter_ids: list[str] = Field(default_factory=list)
    ceiling_height: float = 300.0
    light_spacing: float = 200.0
    clutter_density: float = 0.4


class CaveDungeonConfig(BaseModel):
    """Object ids used for caves and dungeons."""

    enabled: bool = True
    entrance_ids: list[str] = Field(default_factory=list)
    floor_ids: list[str] = Field(default_factory=list)
    wall_ids: list[str] = Field(default_factory=list)
    ceiling_ids: list[str] = Field(default_factory=list)
    rock_ids: list[str] = Field(default_factory=list)
    stalactite_ids: list[str] = Field(default_factory=list)
    light_ids: list[str] = Field(default_factory=list)
    min_rooms: int = 3
    max_rooms: int = 15
    room_size_min: float = 300.0
    room_size_max: float = 1000.0
    corridor_width: float = 150.0
    underwater: bool = False
    water_level: float = 0.0


def _contains_any(text: str, words: Iterable[str]) -> bool:
    return any(word in text for word in words)


_BUILDING_WORDS = (
    "house", "building", "hut", "shack", "manor", "tower",
    "tavern", "inn", "shop", "temple", "guild",
)
_LIGHT_WORDS = ("light", "torch", "lamp", "candle", "lantern")
_CONTAINER_WORDS = ("contain", "chest", "barrel", "crate", "sack", "urn")
_FURNITURE_WORDS = ("table", "chair", "bed", "bench", "shelf", "cabinet", "desk", "throne")
_CITY_PROP_WORDS = ("sign", "banner", "flag", "statue", "fountain", "well", "market")
_FARM_WORDS = ("farm", "hay", "plow", "wheat", "crop")


def categorize_asset(object_id: str) -> AssetCategory:
    """Guess an object's category from substrings of its id.

    Rules are checked in order and the first match wins, so ``"rock_tower"``
    is a rock and ``"wall_tower_01"`` is a building (``tower`` matches before
    the wall rules).
    """
    lower = object_id.lower()

    if "tree" in lower:
        return AssetCategory.TREE
    if _contains_any(lower, ("rock", "stone", "boulder")):
        return AssetCategory.ROCK
    if "grass" in lower:
        return AssetCategory.GRASS
    if _contains_any(lower, ("bush", "shrub", "fern")):
        return AssetCategory.BUSH
    if _contains_any(lower, _BUILDING_WORDS):
        return AssetCategory.BUILDING
    if "wall" in lower:
        if "gate" in lower:
            return AssetCategory.WALL_GATE
        if "tower" in lower:
            return AssetCategory.WALL_TOWER
        return AssetCategory.WALL
    if _contains_any(lower, ("fence", "palisade")):
        return AssetCategory.FENCE
    if _contains_any(lower, ("road", "path")):
        if "cobble" in lower:
            return AssetCategory.COBBLESTONE_ROAD
        return AssetCategory.ROAD
    if "bridge" in lower:
        return AssetCategory.BRIDGE
    if _contains_any(lower, ("dock", "pier")):
        return AssetCategory.DOCK
    if "cave" in lower:
        if _contains_any(lower, ("entrance", "door")):
            return AssetCategory.CAVE_ENTRANCE
        return AssetCategory.CAVE_INTERIOR
    if _contains_any(lower, ("dungeon", "crypt", "tomb")):
        if _contains_any(lower, ("entrance", "door")):
            return AssetCategory.DUNGEON_ENTRANCE
        return AssetCategory.DUNGEON_INTERIOR
    if _contains_any(lower, ("castle", "fort")):
        if "wall" in lower:
            return AssetCategory.CASTLE_WALL
        if _contains_any(lower, ("gallery", "walkway")):
            return AssetCategory.CASTLE_GALLERY
        if _contains_any(lower, ("stair", "ramp")):
            return AssetCategory.CASTLE_STAIRS
        return AssetCategory.BUILDING
    if _contains_any(lower, _LIGHT_WORDS):
        return AssetCategory.LIGHT
    if _contains_any(lower, _CONTAINER_WORDS):
        return AssetCategory.CONTAINER
    if _contains_any(lower, _FURNITURE_WORDS):
        return AssetCategory.FURNITURE
    if _contains_any(lower, _CITY_PROP_WORDS):
        return AssetCategory.CITY_PROP
    if _contains_any(lower, _FARM_WORDS):
        return AssetCategory.FARM
    if _contains_any(lower, ("tx_", "terrain_")):
        return AssetCategory.LANDSCAPE_TEXTURE
    return AssetCategory.CLUTTER


def default_asset_info(object_id: str, category: AssetCategory) -> AssetInfo:
    """AssetInfo with the placement hints scanning assigns to a category."""
    info = AssetInfo(id=object_id, name=object_id, source="scanned", category=category)
    if category is AssetCategory.TREE:
        info.slope_limit, info.align_to_terrain = 0.4, False
        info.min_scale, info.max_scale = 0.7, 1.3
    elif category is AssetCategory.ROCK:
        info.slope_limit = 0.8
        info.min_scale, info.max_scale = 0.6, 1.5
    elif category in (AssetCategory.GRASS, AssetCategory.BUSH):
        info.slope_limit = 0.5
    elif category is AssetCategory.BUILDING:
        info.slope_limit, info.align_to_terrain = 0.2, False
        info.has_interior = True
    elif category in (AssetCategory.WALL, AssetCategory.WALL_GATE, AssetCategory.WALL_TOWER):
        info.slope_limit, info.align_to_terrain = 0.3, False
    elif category in (AssetCategory.LIGHT, AssetCategory.CONTAINER, AssetCategory.FURNITURE):
        info.align_to_terrain = False
    return info


class AssetCatalog:
    """Category-keyed lists of placeable objects.

    Built once before a run and only read during generation. An empty
    category is a valid state: callers fall back to built-in ids.
    """

    def __init__(self) -> None:
        self._assets: dict[AssetCategory, list[AssetInfo]] = {}
        self.settlement_type = SettlementType.VILLAGE
        self.wall_config = WallConfig()
        self.road_config = RoadConfig()
        self.interior_config = InteriorConfig()
        self.cave_config = CaveDungeonConfig()

    @classmethod
    def from_ids(cls, object_ids: Iterable[str]) -> "AssetCatalog":
        """Catalog built by categorising every id by name."""
        catalog = cls()
        catalog.scan(object_ids)
        return catalog

    def scan(self, object_ids: Iterable[str]) -> None:
        """Replace the catalog with categorised ids. Empty ids are skipped."""
        self._assets.clear()
        for object_id in object_ids:
            if not object_id:
                continue
            category = categorize_asset(object_id)
            self._assets.setdefault(category, []).append(
                default_asset_info(object_id, category)
            )

    def get_assets(self, category: AssetCategory) -> list[AssetInfo]:
        return list(self._assets.get(category, ()))

    def get_asset_ids(self, category: AssetCategory) -> list[str]:
        """Object ids in a category, in insertion order."""
        return [asset.id for asset in self._assets.get(category, ())]

    def add_asset(self, category: AssetCategory, asset: AssetInfo) -> None:
        self._assets.setdefault(category, []).append(asset)

    def remove_asset(self, category: AssetCategory, object_id: str) -> None:
        if category in self._assets:
            self._assets[category] = [a for a in self._assets[category] if a.id != object_id]

    def clear_category(self, category: AssetCategory) -> None:
        self._assets[category] = []

    def set_assets(self, category: AssetCategory, assets: list[AssetInfo]) -> None:
        self._assets[category] = list(assets)

    def set_asset_ids(self, category: AssetCategory, object_ids: Iterable[str]) -> None:
        """Replace a category with bare ids (no placement hints)."""
        self._assets[category] = [
            AssetInfo(id=object_id, name=object_id, category=category)
            for object_id in object_ids
        ]

    def has_assets(self) -> bool:
        return any(self._assets.values())

    def total_asset_count(self) -> int:
        return sum(len(assets) for assets in self._assets.values())

    def categories(self) -> list[AssetCategory]:
        """Categories that currently hold at least one asset."""
        return [category for category in AssetCategory if self._assets.get(category)]


def category_from_name(name: str) -> AssetCategory:
    """Parse a category by value (``"wall_gate"``) or display name (``"Wall Gates"``).

    Raises:
        AssetCatalogError: If the name matches no category.
    """
    key = name.strip().lower()
    for category in AssetCategory:
        if key in (category.value, category.display_name.lower()):
            return category
    raise AssetCatalogError(f"Unknown asset category: {name!r}")


def catalog_from_mapping(data: Mapping[str, object]) -> AssetCatalog:
    """Build a catalog from a ``{"scan": [...], "categories": {...}}`` mapping.

    Ids under ``scan`` are categorised by name; explicit ``categories``
    entries then replace whole categories.
    """
    catalog = AssetCatalog()
    scan_ids = data.get("scan", [])
    if isinstance(scan_ids, list):
        catalog.scan(str(object_id) for object_id in scan_ids)

    categories = data.get("categories", {})
    if isinstance(categories, Mapping):
        for name, ids in categories.items():
            catalog.set_asset_ids(category_from_name(str(name)), [str(i) for i in ids])

    try:
        if "walls" in data:
            catalog.wall_config = WallConfig.model_validate(data["walls"])
        if "roads" in data:
            catalog.road_config = RoadConfig.model_validate(data["roads"])
    except ValidationError as e:
        raise ConfigError(f"Invalid asset catalog section: {e}") from e
    return catalog


def load_catalog(path: Path) -> AssetCatalog:
    """Load an asset catalog from a TOML file.

    Raises:
        ConfigError: If the file is missing or malformed.
        AssetCatalogError: If a category name is unknown.
    """
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Asset catalog not found: {path}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Malformed TOML in {path}: {e}") from e
    return catalog_from_mapping(data)
