"""Storage disk manager.

Resolves named disks to backend instances, caching one instance per disk
and dispatching construction by driver kind.
"""

from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import Any, Self

from depot.core.storage.backends import LocalStorageBackend, MemoryStorageBackend
from depot.core.storage.errors import MissingConfigurationError, UnknownDriverError
from depot.core.storage.models import DiskConfig
from depot.core.storage.protocols import BackendFactory, StorageBackend

logger = logging.getLogger(__name__)

DEFAULT_DISK = "local"

BUILTIN_DRIVERS: dict[str, BackendFactory] = {
    "local": LocalStorageBackend.from_config,
    "memory": MemoryStorageBackend.from_config,
}


class StorageManager:
    """Registry of named disks and the backends serving them.

    Backends are built lazily on first access and cached per disk name.
    Custom factories registered with extend() take precedence over the
    built-in "local" and "memory" drivers.

    Example:
        >>> manager = StorageManager({"default": "mem", "disks": {"mem": {"driver": "memory"}}})
        >>> manager.disk().put("hello.txt", b"hi")
        >>> manager.disk("mem") is manager.disk()
        True
    """

    def __init__(self, config: Mapping[str, Any] | None = None) -> None:
        """
        Initialize manager.

        Args:
            config: Mapping with optional "default" (disk name) and
                "disks" (disk name -> option mapping)
        """
        config = config or {}
        self._default_disk: str = config.get("default") or DEFAULT_DISK
        self._disks: dict[str, dict[str, Any]] = {
            name: dict(options) for name, options in (config.get("disks") or {}).items()
        }
        self._backends: dict[str, StorageBackend] = {}
        self._custom_creators: dict[str, BackendFactory] = {}

    def disk(self, name: str | None = None) -> StorageBackend:
        """
        Get the backend for a disk, building it on first access.

        Args:
            name: Disk name (None for the default disk)

        Returns:
            Cached backend instance

        Raises:
            MissingConfigurationError: If the disk is not configured
            UnknownDriverError: If no constructor exists for the disk's driver
        """
        name = name or self._default_disk

        backend = self._backends.get(name)
        if backend is None:
            backend = self._resolve(name)
            self._backends[name] = backend
        return backend

    def get_driver(self) -> StorageBackend:
        """Get the backend of the default disk."""
        return self.disk()

    def get_default_driver(self) -> str:
        """Name of the default disk."""
        return self._default_disk

    def set_default_driver(self, name: str) -> Self:
        """Set the name of the default disk."""
        self._default_disk = name
        return self

    def extend(self, driver: str, factory: BackendFactory) -> Self:
        """
        Register a backend factory for a driver kind.

        Args:
            driver: Driver kind name (may shadow a built-in)
            factory: Callable taking the disk's option mapping

        Returns:
            The manager, for chaining
        """
        if driver in self._custom_creators or driver in BUILTIN_DRIVERS:
            logger.warning("Overriding storage driver '%s'", driver)
        self._custom_creators[driver] = factory
        return self

    def add_disk(self, name: str, config: Mapping[str, Any]) -> Self:
        """
        Add or replace a disk configuration.

        Any cached backend for the disk is dropped, so the next disk(name)
        builds from the new configuration.
        """
        self._disks[name] = dict(config)
        self._backends.pop(name, None)
        return self

    def get_disks(self) -> dict[str, dict[str, Any]]:
        """All disk configurations, keyed by disk name."""
        return {name: dict(options) for name, options in self._disks.items()}

    def purge(self) -> None:
        """Drop every cached backend; configurations are kept."""
        self._backends.clear()

    @property
    def drivers(self) -> list[str]:
        """Driver kinds that can currently be resolved."""
        return sorted(set(BUILTIN_DRIVERS) | set(self._custom_creators))

    def _resolve(self, name: str) -> StorageBackend:
        options = self._disks.get(name)
        if options is None:
            raise MissingConfigurationError(f"disks.{name}")

        disk = DiskConfig.from_options(name, options)

        factory = self._custom_creators.get(disk.driver) or BUILTIN_DRIVERS.get(disk.driver)
        if factory is None:
            raise UnknownDriverError(disk.driver)

        logger.debug("Resolving disk '%s' with driver '%s'", name, disk.driver)
        return factory(disk.options)
