"""Shared pytest fixtures for depot tests."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from depot.core.storage import (
    LocalStorageBackend,
    MemoryStorageBackend,
    StorageBackend,
    StorageManager,
)

# ============================================================================
# Backend Fixtures
# ============================================================================


@pytest.fixture
def storage_root(tmp_path: Path) -> Path:
    """Root directory for the local backend (not created up front)."""
    return tmp_path / "storage"


@pytest.fixture
def local_backend(storage_root: Path) -> LocalStorageBackend:
    """Provide a LocalStorageBackend rooted in a temp directory."""
    return LocalStorageBackend(storage_root)


@pytest.fixture
def memory_backend() -> MemoryStorageBackend:
    """Provide fresh MemoryStorageBackend instance."""
    return MemoryStorageBackend()


@pytest.fixture(params=["local", "memory"])
def backend(request: pytest.FixtureRequest, tmp_path: Path) -> StorageBackend:
    """Provide each built-in backend in turn."""
    if request.param == "local":
        return LocalStorageBackend(tmp_path / "contract")
    return MemoryStorageBackend()


@pytest.fixture
def manager(tmp_path: Path) -> StorageManager:
    """Provide a manager with one local and one memory disk."""
    return StorageManager(
        {
            "default": "local",
            "disks": {
                "local": {"driver": "local", "path": str(tmp_path / "disk")},
                "memory": {"driver": "memory", "public_url": "https://cdn.example.com"},
            },
        }
    )


# ============================================================================
# Logging Isolation
# ============================================================================


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo configure_logging() side effects on the root logger."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
