"""Built-in storage backends."""

from depot.core.storage.backends.local import LocalStorageBackend
from depot.core.storage.backends.memory import MemoryStorageBackend

__all__ = [
    "LocalStorageBackend",
    "MemoryStorageBackend",
]
