"""Models for the storage layer.

Provides disk configuration, per-driver option models and the in-memory
file record.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_DRIVER = "local"
DEFAULT_FILE_PERMISSIONS = 0o644
DEFAULT_DIRECTORY_PERMISSIONS = 0o755


def _parse_mode(value: Any) -> Any:
    """Accept octal strings ("0755", "0o755") as permission bits."""
    if isinstance(value, str):
        text = value.strip().lower().removeprefix("0o")
        try:
            return int(text, 8)
        except ValueError as e:
            raise ValueError(f"Invalid permission bits: {value!r}") from e
    return value


class DiskConfig(BaseModel):
    """Configuration for one named disk.

    Example:
        >>> disk = DiskConfig.from_options("uploads", {"driver": "memory"})
        >>> disk.driver
        'memory'
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Logical disk name")
    driver: str = Field(default=DEFAULT_DRIVER, description="Driver kind selecting the backend")
    options: dict[str, Any] = Field(
        default_factory=dict, description="Raw disk options, including 'driver'"
    )

    @classmethod
    def from_options(cls, name: str, options: Mapping[str, Any]) -> DiskConfig:
        """Build a DiskConfig from a raw option mapping.

        Args:
            name: Disk name
            options: Raw options as found in configuration

        Returns:
            DiskConfig with the driver kind extracted (defaults to "local")
        """
        driver = options.get("driver") or DEFAULT_DRIVER
        return cls(name=name, driver=str(driver), options=dict(options))


class LocalDiskOptions(BaseModel):
    """Options recognized by the local filesystem driver."""

    model_config = ConfigDict(extra="allow")

    path: str = Field(min_length=1, description="Root directory of the disk")
    public_url: str = Field(default="", description="Prefix for public URLs")
    directory_permissions: int = Field(
        default=DEFAULT_DIRECTORY_PERMISSIONS, ge=0, le=0o7777, description="Mode for new dirs"
    )
    file_permissions: int = Field(
        default=DEFAULT_FILE_PERMISSIONS, ge=0, le=0o7777, description="Mode for written files"
    )

    @field_validator("path", mode="before")
    @classmethod
    def _fspath(cls, value: Any) -> Any:
        return os.fspath(value) if isinstance(value, os.PathLike) else value

    @field_validator("directory_permissions", "file_permissions", mode="before")
    @classmethod
    def _octal_strings(cls, value: Any) -> Any:
        return _parse_mode(value)

    @field_validator("public_url", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class MemoryDiskOptions(BaseModel):
    """Options recognized by the in-memory driver."""

    model_config = ConfigDict(extra="allow")

    public_url: str = Field(default="", description="Prefix for public URLs")

    @field_validator("public_url", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


@dataclass(slots=True)
class StoredFile:
    """A file held by the in-memory backend."""

    contents: bytes
    last_modified: int
