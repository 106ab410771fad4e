"""Configuration models and loading."""

from .pydantic_config import (
    ArchiveConfig,
    CollectionConfig,
    ConfigurationManager,
    LoggingConfig,
    ManagerConfig,
    ViewConfig,
    format_config_error,
)

__all__ = [
    "ArchiveConfig",
    "CollectionConfig",
    "ConfigurationManager",
    "LoggingConfig",
    "ManagerConfig",
    "ViewConfig",
    "format_config_error",
]
