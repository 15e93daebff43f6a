"""Local filesystem storage backend.

Every path is resolved through a PathResolver so no operation can escape
the configured root, including writes to paths that do not exist yet.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
import errno
import logging
import os
from pathlib import Path
import shutil
import stat
from typing import Any

from depot.core.storage.errors import (
    CopyFailedError,
    DeleteFailedError,
    MissingConfigurationError,
    MoveFailedError,
    ReadFailedError,
    StorageError,
    StorageFileNotFoundError,
    UploadFailedError,
    WriteFailedError,
)
from depot.core.storage.mime import SNIFF_BYTES, detect_mime_type
from depot.core.storage.models import (
    DEFAULT_DIRECTORY_PERMISSIONS,
    DEFAULT_FILE_PERMISSIONS,
    LocalDiskOptions,
)
from depot.core.storage.paths import PathResolver, generate_unique_name, join_public_url
from depot.core.storage.protocols import Contents

logger = logging.getLogger(__name__)


def _to_bytes(contents: Contents) -> bytes:
    return contents.encode("utf-8") if isinstance(contents, str) else bytes(contents)


def _reason(error: OSError) -> str:
    return error.strerror or str(error)


# stat() failures that mean "nothing usable is there"
_MISSING_ERRNOS = frozenset({errno.ENOENT, errno.ENOTDIR, errno.ELOOP})


class LocalStorageBackend:
    """
    Storage backend rooted at a directory of the local filesystem.

    The root is created lazily on first use. Written files receive
    file_permissions; directories created on behalf of a write receive
    directory_permissions (both subject to the process umask).
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        public_url: str = "",
        directory_permissions: int = DEFAULT_DIRECTORY_PERMISSIONS,
        file_permissions: int = DEFAULT_FILE_PERMISSIONS,
    ) -> None:
        """
        Initialize local backend.

        Args:
            path: Root directory of the disk
            public_url: Prefix for public URLs (empty for none)
            directory_permissions: Mode for created directories
            file_permissions: Mode applied to written files
        """
        self.resolver = PathResolver(path, directory_permissions)
        self.public_url = public_url.rstrip("/")
        self.directory_permissions = directory_permissions
        self.file_permissions = file_permissions

    @classmethod
    def from_config(cls, options: Mapping[str, Any]) -> LocalStorageBackend:
        """
        Build a backend from disk options.

        Raises:
            MissingConfigurationError: If the 'path' option is missing or empty
            ValidationError: If other options are invalid
        """
        if not options.get("path"):
            raise MissingConfigurationError("storage.path")

        opts = LocalDiskOptions.model_validate(dict(options))
        return cls(
            opts.path,
            public_url=opts.public_url,
            directory_permissions=opts.directory_permissions,
            file_permissions=opts.file_permissions,
        )

    @property
    def root_path(self) -> Path:
        """Absolute root directory."""
        return self.resolver.root

    def __repr__(self) -> str:
        return f"{type(self).__name__}(root={str(self.root_path)!r})"

    # Internal helpers

    def _make_dirs(self, directory: Path, path: str) -> None:
        """Create a directory and missing parents, applying directory_permissions to each."""
        if os.path.isdir(directory):
            return

        missing: list[Path] = []
        current = directory
        while not os.path.exists(current) and current != current.parent:
            missing.append(current)
            current = current.parent

        for item in reversed(missing):
            try:
                item.mkdir(mode=self.directory_permissions)
            except FileExistsError:
                continue
            except OSError as e:
                raise WriteFailedError(path, "Could not create directory", cause=e) from e

    def _apply_file_permissions(self, full: Path, path: str) -> None:
        try:
            os.chmod(full, self.file_permissions)
        except OSError as e:
            raise WriteFailedError(path, "Could not set file permissions", cause=e) from e

    @staticmethod
    def _stat(full: Path, path: str) -> os.stat_result | None:
        """stat() a path, following symlinks.

        Returns:
            The stat result, or None when nothing usable exists there

        Raises:
            ReadFailedError: On any other OS failure
        """
        try:
            return full.stat()
        except OSError as e:
            if e.errno in _MISSING_ERRNOS:
                return None
            raise ReadFailedError(path, _reason(e), cause=e) from e

    def _existing_file(self, path: str) -> Path:
        """Resolve path to the canonical location of an existing regular file."""
        full = self.resolver.resolve(path)
        try:
            real = full.resolve()
        except (OSError, RuntimeError):
            raise StorageFileNotFoundError(path) from None

        info = self._stat(real, path)
        if info is None or not stat.S_ISREG(info.st_mode):
            raise StorageFileNotFoundError(path)
        return real

    def _inside_root(self, entry: os.DirEntry[str], real_root: Path) -> bool:
        """Whether an entry, after following symlinks, stays within the root."""
        if not entry.is_symlink():
            return True
        try:
            target = Path(entry.path).resolve()
        except (OSError, RuntimeError):
            return False
        return target == real_root or target.is_relative_to(real_root)

    def _walk(
        self, directory: Path, recursive: bool, real_root: Path
    ) -> Iterator[os.DirEntry[str]]:
        """Yield entries of directory in pre-order, siblings sorted by name.

        Symlinks leading outside the root are skipped.
        """
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            raise ReadFailedError(
                self.resolver.relative(directory), "Could not list directory", cause=e
            ) from e

        for entry in entries:
            if not self._inside_root(entry, real_root):
                continue
            yield entry
            # Symlinked directories are listed but never descended.
            if recursive and entry.is_dir(follow_symlinks=False):
                yield from self._walk(Path(entry.path), recursive, real_root)

    def _entries(self, directory: str, recursive: bool) -> Iterator[os.DirEntry[str]]:
        full = self.resolver.resolve(directory)
        info = self._stat(full, directory)
        if info is None or not stat.S_ISDIR(info.st_mode):
            return iter(())
        return self._walk(full, recursive, self.resolver.canonical_root())

    def _listed(self, directory: str, recursive: bool, want_dirs: bool) -> list[str]:
        paths = []
        for entry in self._entries(directory, recursive):
            try:
                matched = entry.is_dir() if want_dirs else entry.is_file()
            except OSError as e:
                if e.errno in _MISSING_ERRNOS:
                    continue
                raise ReadFailedError(
                    self.resolver.relative(entry.path), _reason(e), cause=e
                ) from e
            if matched:
                paths.append(self.resolver.relative(entry.path))
        return paths

    # Read operations

    def get(self, path: str) -> bytes:
        real = self._existing_file(path)
        try:
            return real.read_bytes()
        except OSError as e:
            raise ReadFailedError(path, _reason(e), cause=e) from e

    def size(self, path: str) -> int:
        real = self._existing_file(path)
        try:
            return real.stat().st_size
        except OSError as e:
            raise ReadFailedError(path, "Could not get file size", cause=e) from e

    def last_modified(self, path: str) -> int:
        real = self._existing_file(path)
        try:
            return int(real.stat().st_mtime)
        except OSError as e:
            raise ReadFailedError(path, "Could not get last modified time", cause=e) from e

    def mime_type(self, path: str) -> str | None:
        real = self._existing_file(path)
        try:
            with real.open("rb") as f:
                head = f.read(SNIFF_BYTES)
        except OSError as e:
            raise ReadFailedError(path, _reason(e), cause=e) from e
        return detect_mime_type(real.name, head)

    def download(self, path: str) -> str:
        return str(self._existing_file(path))

    def exists(self, path: str) -> bool:
        try:
            full = self.resolver.resolve(path)
        except (StorageError, OSError):
            return False
        # os.path.exists reports False for every OS failure
        return os.path.exists(full)

    def get_public_url(self, path: str) -> str:
        return join_public_url(self.public_url, path)

    # Write operations

    def put(self, path: str, contents: Contents) -> None:
        full = self.resolver.resolve(path)
        self._make_dirs(full.parent, path)

        try:
            full.write_bytes(_to_bytes(contents))
        except OSError as e:
            raise WriteFailedError(path, _reason(e), cause=e) from e

        self._apply_file_permissions(full, path)
        logger.debug("Wrote %s", full)

    def append(self, path: str, contents: Contents) -> None:
        full = self.resolver.resolve(path)
        self._make_dirs(full.parent, path)

        try:
            with full.open("ab") as f:
                f.write(_to_bytes(contents))
        except OSError as e:
            raise WriteFailedError(path, _reason(e), cause=e) from e

        self._apply_file_permissions(full, path)

    def prepend(self, path: str, contents: Contents) -> None:
        if self.exists(path):
            self.put(path, _to_bytes(contents) + self.get(path))
        else:
            self.put(path, contents)

    def upload(self, path: str, local_path: str | os.PathLike[str]) -> str:
        unique_name = generate_unique_name(path)
        destination = self.resolver.resolve(unique_name)
        self._make_dirs(destination.parent, unique_name)

        source = Path(local_path)
        if not os.path.isfile(source):
            raise UploadFailedError(str(source), str(destination), "Source file does not exist")

        try:
            shutil.copyfile(source, destination)
        except OSError as e:
            raise UploadFailedError(str(source), str(destination), _reason(e), cause=e) from e

        self._apply_file_permissions(destination, unique_name)
        logger.debug("Uploaded %s as %s", source, unique_name)
        return self.get_public_url(unique_name)

    def copy(self, source: str, destination: str) -> None:
        src = self.resolver.resolve(source)
        dst = self.resolver.resolve(destination)

        if not os.path.isfile(src):
            raise StorageFileNotFoundError(source)

        self._make_dirs(dst.parent, destination)
        try:
            shutil.copyfile(src, dst)
        except (OSError, shutil.Error) as e:
            raise CopyFailedError(source, destination, str(e), cause=e) from e

        self._apply_file_permissions(dst, destination)
        logger.debug("Copied %s to %s", source, destination)

    def move(self, source: str, destination: str) -> None:
        src = self.resolver.resolve(source)
        dst = self.resolver.resolve(destination)

        if not os.path.exists(src):
            raise StorageFileNotFoundError(source)

        self._make_dirs(dst.parent, destination)
        try:
            os.replace(src, dst)
        except OSError as e:
            raise MoveFailedError(source, destination, _reason(e), cause=e) from e

        logger.debug("Moved %s to %s", source, destination)

    def delete(self, path: str) -> bool:
        try:
            full = self.resolver.resolve(path)
        except (StorageError, OSError):
            return False

        if not os.path.isfile(full):
            return False

        try:
            full.unlink()
        except OSError as e:
            logger.warning("Could not delete %s: %s", full, e)
            return False

        logger.debug("Deleted %s", full)
        return True

    # Directory operations

    def files(self, directory: str = "", recursive: bool = False) -> list[str]:
        return self._listed(directory, recursive, want_dirs=False)

    def directories(self, directory: str = "", recursive: bool = False) -> list[str]:
        return self._listed(directory, recursive, want_dirs=True)

    def make_directory(self, path: str) -> None:
        full = self.resolver.resolve(path)
        self._make_dirs(full, path)

    def delete_directory(self, directory: str, recursive: bool = False) -> bool:
        try:
            full = self.resolver.resolve(directory)
        except (StorageError, OSError):
            return False

        # The root itself is never removed; symlinks are not directories here.
        if full == self.root_path or os.path.islink(full) or not os.path.isdir(full):
            return False

        try:
            if recursive:
                shutil.rmtree(full)
            else:
                if any(full.iterdir()):
                    return False
                full.rmdir()
        except OSError as e:
            raise DeleteFailedError(directory, _reason(e), cause=e) from e

        logger.debug("Deleted directory %s (recursive=%s)", full, recursive)
        return True
