"""Configuration loading utilities with JSON and YAML support."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

import yaml

from depot.core.config.models import AppConfig, StorageConfig
from depot.core.storage import StorageManager

logger = logging.getLogger(__name__)

DEFAULT_DISK_ENV = "DEPOT_DEFAULT_DISK"


def detect_format(file_path: Path | str) -> str:
    """Detect config file format from extension.

    Args:
        file_path: Path to config file

    Returns:
        Format string: "json" or "yaml"

    Raises:
        ValueError: If format cannot be determined

    Example:
        >>> detect_format("depot.json")
        'json'
        >>> detect_format("depot.yml")
        'yaml'
    """
    suffix = Path(file_path).suffix.lower()

    if suffix == ".json":
        return "json"
    elif suffix in [".yaml", ".yml"]:
        return "yaml"
    else:
        raise ValueError(f"Unsupported config format: {suffix}")


def load_config(path: str | Path) -> dict[str, Any]:
    """Load and return raw configuration dictionary.

    Args:
        path: Path to config file (.json, .yaml, or .yml)

    Returns:
        Raw configuration dictionary

    Raises:
        FileNotFoundError: If config file does not exist
        ValueError: If format is not supported or file content is invalid
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file does not exist: {path}")

    fmt = detect_format(path)

    if fmt == "json":
        try:
            content = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e
    else:
        try:
            with path.open("r", encoding="utf-8") as f:
                content = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}") from e
        # safe_load returns None for empty files
        if content is None:
            content = {}

    if not isinstance(content, dict):
        raise ValueError(f"Config root must be a mapping in {path}")
    return content


def _expand_disk_paths(storage: StorageConfig) -> StorageConfig:
    """Expand ~ and environment variables in disk 'path' options."""
    disks: dict[str, dict[str, Any]] = {}
    for name, options in storage.disks.items():
        options = dict(options)
        raw = options.get("path")
        if isinstance(raw, str) and raw:
            options["path"] = os.path.expandvars(os.path.expanduser(raw))
        disks[name] = options
    return storage.model_copy(update={"disks": disks})


def _apply_env_overrides(storage: StorageConfig) -> StorageConfig:
    default_disk = os.getenv(DEFAULT_DISK_ENV)
    if default_disk:
        logger.debug("Loaded %s from environment", DEFAULT_DISK_ENV)
        storage = storage.model_copy(update={"default": default_disk})
    return storage


def load_app_config(path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration.

    Args:
        path: Path to config file; defaults to depot.yaml. A missing
              file yields the default configuration.

    Returns:
        Validated AppConfig instance

    Raises:
        ValidationError: If config is invalid
    """
    if path is None:
        path = AppConfig.default_path()

    if Path(path).exists():
        config = AppConfig.model_validate(load_config(path))
    else:
        logger.debug("Config file %s not found, using defaults", path)
        config = AppConfig()

    storage = _apply_env_overrides(_expand_disk_paths(config.storage))
    return config.model_copy(update={"storage": storage})


def load_storage_config(path: str | Path) -> StorageConfig:
    """Load and validate storage configuration.

    Accepts either a full application config (with a top-level "storage"
    section) or a bare storage section.

    Args:
        path: Path to config file (.json, .yaml, or .yml)

    Returns:
        Validated StorageConfig instance

    Raises:
        ValidationError: If config is invalid
        FileNotFoundError: If config file does not exist

    Example:
        >>> storage = load_storage_config("storage.yaml")
        >>> storage.disks["uploads"]["path"]
    """
    raw = load_config(path)
    section = raw.get("storage", raw)
    storage = StorageConfig.model_validate(section)
    return _apply_env_overrides(_expand_disk_paths(storage))


def create_storage_manager(path: str | Path | None = None) -> StorageManager:
    """Build a StorageManager from a config file.

    This is the explicit wiring point: callers keep the returned manager
    and pass it where storage is needed.

    Args:
        path: Path to config file (defaults as in load_app_config)

    Returns:
        StorageManager configured with the file's disks
    """
    storage = load_app_config(path).storage
    logger.debug(
        "Creating storage manager with disks %s (default '%s')",
        sorted(storage.disks),
        storage.default,
    )
    return StorageManager(storage.model_dump())
