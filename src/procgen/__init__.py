"""Deterministic procedural world generation."""

from .assets import AssetCatalog, AssetCategory, categorize_asset, load_catalog
from .config import GenerationConfig, SettlementType, load_config
from .exceptions import AssetCatalogError, CallbackError, ConfigError, GenerationError
from .generator import GenerationOutcome, GenerationReport, ProceduralGenerator
from .hosts import GenerationContext, RecordingHost, TerrainQueries, WorldHost
from .rng import RandomGenerator

__all__ = [
    # Orchestration
    "GenerationOutcome",
    "GenerationReport",
    "ProceduralGenerator",
    # Configuration
    "GenerationConfig",
    "SettlementType",
    "load_config",
    # Host seam
    "GenerationContext",
    "RecordingHost",
    "TerrainQueries",
    "WorldHost",
    # Assets
    "AssetCatalog",
    "AssetCategory",
    "categorize_asset",
    "load_catalog",
    # Randomness
    "RandomGenerator",
    # Exceptions
    "GenerationError",
    "ConfigError",
    "CallbackError",
    "AssetCatalogError",
]
