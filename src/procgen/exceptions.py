"""Custom exceptions for procedural world generation."""


class GenerationError(Exception):
    """Base exception for generation errors."""

    pass


class ConfigError(GenerationError):
    """Raised when a generation config cannot be loaded or is inconsistent."""

    pass


class CallbackError(GenerationError):
    """Raised when a host callback rejects a record."""

    pass


class AssetCatalogError(GenerationError):
    """Raised when an asset category name is unknown."""

    pass
