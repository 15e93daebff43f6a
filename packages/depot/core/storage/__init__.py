"""Storage abstraction layer for depot.

A uniform file and directory contract served by interchangeable backends,
selected and cached per named disk by a StorageManager.

Example:
    >>> from depot.core.storage import StorageManager
    >>> manager = StorageManager(
    ...     {
    ...         "default": "uploads",
    ...         "disks": {
    ...             "uploads": {"driver": "local", "path": "/srv/uploads"},
    ...             "scratch": {"driver": "memory"},
    ...         },
    ...     }
    ... )
    >>> manager.disk().put("avatars/1.png", png_bytes)
    >>> manager.disk("scratch").files("", recursive=True)
"""

from .backends import LocalStorageBackend, MemoryStorageBackend
from .errors import (
    CopyFailedError,
    DeleteFailedError,
    InvalidPathError,
    MissingConfigurationError,
    MoveFailedError,
    PathTraversalError,
    ReadFailedError,
    StorageDirectoryNotFoundError,
    StorageError,
    StorageErrorData,
    StorageFileNotFoundError,
    UnknownDriverError,
    UploadFailedError,
    WriteFailedError,
)
from .manager import BUILTIN_DRIVERS, StorageManager
from .models import DiskConfig, LocalDiskOptions, MemoryDiskOptions, StoredFile
from .paths import PathResolver, generate_unique_name, sanitize_extension
from .protocols import BackendFactory, StorageBackend

__all__ = [
    # Contract
    "StorageBackend",
    "BackendFactory",
    # Backends
    "LocalStorageBackend",
    "MemoryStorageBackend",
    # Manager
    "StorageManager",
    "BUILTIN_DRIVERS",
    # Models
    "DiskConfig",
    "LocalDiskOptions",
    "MemoryDiskOptions",
    "StoredFile",
    # Paths
    "PathResolver",
    "generate_unique_name",
    "sanitize_extension",
    # Errors
    "StorageError",
    "StorageErrorData",
    "MissingConfigurationError",
    "InvalidPathError",
    "PathTraversalError",
    "StorageFileNotFoundError",
    "StorageDirectoryNotFoundError",
    "UploadFailedError",
    "WriteFailedError",
    "ReadFailedError",
    "DeleteFailedError",
    "CopyFailedError",
    "MoveFailedError",
    "UnknownDriverError",
]
