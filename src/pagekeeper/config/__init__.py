"""Application configuration helpers."""

from __future__ import annotations

from .env import env_flag
from .errors import ConfigurationError
from .logging import configure_logging
from .settings import (
    DirectoriesConfig,
    ImageConfig,
    MetadataConfig,
    Settings,
    get_settings,
    parse_settings,
)
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_database_uri,
    get_storage_config,
)

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "DirectoriesConfig",
    "ImageConfig",
    "MetadataConfig",
    "Settings",
    "StorageConfig",
    "configure_logging",
    "env_flag",
    "get_database_config",
    "get_database_uri",
    "get_settings",
    "get_storage_config",
    "parse_settings",
]
