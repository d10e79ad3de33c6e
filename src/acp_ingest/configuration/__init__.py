"""Configuration domain exports."""

from .config_scaffold_builder import (
    DEFAULT_CONFIG_FILENAME,
    build_placeholder_configuration,
    write_placeholder_configuration,
)
from .loader import ConfigurationError, load_configuration
from .runtime_settings import (
    BusSettings,
    Configuration,
    FeedConfig,
    FeedType,
    FilingSettings,
    RejectedEntry,
    RouteConfig,
    StoreMode,
    TagFormat,
    TagMapping,
)

__all__ = [
    "BusSettings",
    "Configuration",
    "FeedConfig",
    "FeedType",
    "FilingSettings",
    "RejectedEntry",
    "RouteConfig",
    "StoreMode",
    "TagFormat",
    "TagMapping",
    "ConfigurationError",
    "load_configuration",
    "DEFAULT_CONFIG_FILENAME",
    "build_placeholder_configuration",
    "write_placeholder_configuration",
]
