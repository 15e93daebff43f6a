"""In-memory storage backend for fast, isolated testing.

Files live in a process-local key table and are lost on exit.
Not thread-safe (use one instance per test).
"""

from __future__ import annotations

from collections.abc import Mapping
import hashlib
import logging
import os
from pathlib import Path
import tempfile
import time
from typing import Any

from depot.core.storage.errors import (
    InvalidPathError,
    StorageFileNotFoundError,
    UploadFailedError,
)
from depot.core.storage.mime import detect_mime_type
from depot.core.storage.models import MemoryDiskOptions, StoredFile
from depot.core.storage.paths import generate_unique_name, join_public_url, normalize_key
from depot.core.storage.protocols import Contents

logger = logging.getLogger(__name__)


def _to_bytes(contents: Contents) -> bytes:
    return contents.encode("utf-8") if isinstance(contents, str) else bytes(contents)


def _sort_key(path: str) -> list[str]:
    # Segment-wise ordering equals a pre-order walk with name-sorted siblings.
    return path.split("/")


class MemoryStorageBackend:
    """
    In-memory storage backend.

    Keys are paths with surrounding "/" trimmed. Directories are tracked in
    a separate set: every ancestor of a stored file is present, and
    make_directory() adds entries without any file.
    """

    def __init__(self, public_url: str = "") -> None:
        self.public_url = public_url.rstrip("/")
        self._files: dict[str, StoredFile] = {}
        self._directories: set[str] = set()

    @classmethod
    def from_config(cls, options: Mapping[str, Any]) -> MemoryStorageBackend:
        """Build a backend from disk options."""
        opts = MemoryDiskOptions.model_validate(dict(options))
        return cls(public_url=opts.public_url)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(files={len(self._files)}, "
            f"directories={len(self._directories)})"
        )

    # Test helpers

    @property
    def stored_files(self) -> dict[str, StoredFile]:
        """Snapshot of stored files keyed by path."""
        return dict(self._files)

    @property
    def stored_directories(self) -> set[str]:
        """Snapshot of known directory keys."""
        return set(self._directories)

    def clear(self) -> None:
        """Remove all files and directories."""
        self._files.clear()
        self._directories.clear()

    # Internal helpers

    @staticmethod
    def _key(path: str, *, required: bool = True) -> str:
        key = normalize_key(path)
        if required and not key:
            raise InvalidPathError(path, "Empty path")
        return key

    def _ensure_parents(self, key: str) -> None:
        """Register every ancestor directory of key."""
        parts = key.split("/")[:-1]
        for i in range(1, len(parts) + 1):
            self._directories.add("/".join(parts[:i]))

    def _file(self, path: str) -> StoredFile:
        stored = self._files.get(normalize_key(path))
        if stored is None:
            raise StorageFileNotFoundError(path)
        return stored

    @staticmethod
    def _select(paths: list[str], directory: str, recursive: bool) -> list[str]:
        prefix = f"{directory}/" if directory else ""
        selected = []
        for path in paths:
            if not path.startswith(prefix) or path == directory:
                continue
            if recursive or "/" not in path[len(prefix) :]:
                selected.append(path)
        return sorted(selected, key=_sort_key)

    # Read operations

    def get(self, path: str) -> bytes:
        return self._file(path).contents

    def size(self, path: str) -> int:
        return len(self._file(path).contents)

    def last_modified(self, path: str) -> int:
        return self._file(path).last_modified

    def mime_type(self, path: str) -> str | None:
        return detect_mime_type(normalize_key(path), self._file(path).contents)

    def download(self, path: str) -> str:
        """Write the contents to a temporary file and return its path."""
        key = normalize_key(path)
        stored = self._file(path)

        digest = hashlib.md5(key.encode("utf-8")).hexdigest()
        target = Path(tempfile.gettempdir()) / f"depot_{digest}"
        target.write_bytes(stored.contents)
        return str(target)

    def exists(self, path: str) -> bool:
        key = normalize_key(path)
        # The root always exists.
        return not key or key in self._files or key in self._directories

    def get_public_url(self, path: str) -> str:
        return join_public_url(self.public_url, path)

    # Write operations

    def put(self, path: str, contents: Contents) -> None:
        key = self._key(path)
        self._files[key] = StoredFile(contents=_to_bytes(contents), last_modified=int(time.time()))
        self._ensure_parents(key)

    def append(self, path: str, contents: Contents) -> None:
        key = self._key(path)
        stored = self._files.get(key)
        if stored is None:
            self.put(key, contents)
            return

        stored.contents += _to_bytes(contents)
        stored.last_modified = int(time.time())

    def prepend(self, path: str, contents: Contents) -> None:
        key = self._key(path)
        stored = self._files.get(key)
        if stored is None:
            self.put(key, contents)
            return

        stored.contents = _to_bytes(contents) + stored.contents
        stored.last_modified = int(time.time())

    def upload(self, path: str, local_path: str | os.PathLike[str]) -> str:
        source = Path(local_path)
        if not os.path.isfile(source):
            raise UploadFailedError(str(source), path, "Source file does not exist")

        try:
            contents = source.read_bytes()
        except OSError as e:
            raise UploadFailedError(
                str(source), path, "Could not read source file", cause=e
            ) from e

        unique_name = generate_unique_name(path)
        self.put(unique_name, contents)
        return self.get_public_url(unique_name)

    def copy(self, source: str, destination: str) -> None:
        stored = self._file(source)
        key = self._key(destination)
        self._files[key] = StoredFile(contents=stored.contents, last_modified=int(time.time()))
        self._ensure_parents(key)

    def move(self, source: str, destination: str) -> None:
        stored = self._file(source)
        key = self._key(destination)
        del self._files[normalize_key(source)]

        stored.last_modified = int(time.time())
        self._files[key] = stored
        self._ensure_parents(key)

    def delete(self, path: str) -> bool:
        return self._files.pop(normalize_key(path), None) is not None

    # Directory operations

    def files(self, directory: str = "", recursive: bool = False) -> list[str]:
        return self._select(list(self._files), normalize_key(directory), recursive)

    def directories(self, directory: str = "", recursive: bool = False) -> list[str]:
        return self._select(list(self._directories), normalize_key(directory), recursive)

    def make_directory(self, path: str) -> None:
        key = normalize_key(path)
        if not key:
            return
        self._directories.add(key)
        self._ensure_parents(key)

    def delete_directory(self, directory: str, recursive: bool = False) -> bool:
        key = normalize_key(directory)
        if key not in self._directories:
            return False

        prefix = f"{key}/"
        file_keys = [path for path in self._files if path.startswith(prefix)]
        dir_keys = [path for path in self._directories if path.startswith(prefix)]

        if not recursive and (file_keys or dir_keys):
            return False

        for path in file_keys:
            del self._files[path]
        for path in dir_keys:
            self._directories.discard(path)
        self._directories.discard(key)

        logger.debug(
            "Deleted in-memory directory %s (%d files, %d subdirectories)",
            key,
            len(file_keys),
            len(dir_keys),
        )
        return True
