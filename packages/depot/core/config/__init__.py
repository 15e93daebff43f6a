"""Configuration models and loaders for depot."""

from depot.core.config.loader import (
    create_storage_manager,
    detect_format,
    load_app_config,
    load_config,
    load_storage_config,
)
from depot.core.config.models import AppConfig, LoggingConfig, StorageConfig

__all__ = [
    "AppConfig",
    "LoggingConfig",
    "StorageConfig",
    "create_storage_manager",
    "detect_format",
    "load_app_config",
    "load_config",
    "load_storage_config",
]
