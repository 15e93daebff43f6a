"""Configuration models for depot."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    structured: bool = Field(default=False, description="Emit JSON lines instead of text")
    filename: str | None = Field(default=None, description="Log file (stderr when unset)")

    @field_validator("level", mode="before")
    @classmethod
    def _upper(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


class StorageConfig(BaseModel):
    """Disk definitions consumed by StorageManager.

    Example:
        >>> cfg = StorageConfig(default="tmp", disks={"tmp": {"driver": "memory"}})
        >>> cfg.disks["tmp"]["driver"]
        'memory'
    """

    model_config = ConfigDict(extra="ignore")

    default: str = Field(default="local", min_length=1, description="Default disk name")
    disks: dict[str, dict[str, Any]] = Field(
        default_factory=dict, description="Disk name -> disk options"
    )


class AppConfig(BaseModel):
    """Application-level configuration."""

    model_config = ConfigDict(extra="ignore")

    logging: LoggingConfig = LoggingConfig()
    storage: StorageConfig = StorageConfig()

    @classmethod
    def default_path(cls) -> Path:
        """Default path for application config."""
        return Path("depot.yaml")
