"""Protocol for storage backends.

Defines the operation contract every disk backend satisfies.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Protocol, TypeAlias, runtime_checkable

Contents: TypeAlias = bytes | str


@runtime_checkable
class StorageBackend(Protocol):
    """
    Protocol for storage backends.

    All paths are relative, "/"-separated storage paths. Content is raw
    bytes; str content is accepted on writes and encoded as UTF-8.

    Failures surface as StorageError subclasses, except for exists() and
    delete(), which report False instead of raising.
    """

    # Read operations
    def get(self, path: str) -> bytes:
        """
        Read file contents.

        Raises:
            StorageFileNotFoundError: If the file doesn't exist
            ReadFailedError: On read failure
        """
        ...

    def size(self, path: str) -> int:
        """File size in bytes."""
        ...

    def last_modified(self, path: str) -> int:
        """Last modification time as a unix timestamp (seconds)."""
        ...

    def mime_type(self, path: str) -> str | None:
        """MIME type of a file, None when it cannot be determined."""
        ...

    def download(self, path: str) -> str:
        """
        Absolute local filesystem path holding the file's contents.

        Raises:
            StorageFileNotFoundError: If the file doesn't exist
        """
        ...

    def exists(self, path: str) -> bool:
        """Check if a file or directory exists. Never raises."""
        ...

    def get_public_url(self, path: str) -> str:
        """Public URL of a path (the path itself when no prefix is configured)."""
        ...

    # Write operations
    def put(self, path: str, contents: Contents) -> None:
        """
        Write a file, replacing existing contents and creating parents.

        Raises:
            WriteFailedError: On write failure
        """
        ...

    def append(self, path: str, contents: Contents) -> None:
        """Append to a file, creating it when missing."""
        ...

    def prepend(self, path: str, contents: Contents) -> None:
        """Prepend to a file, creating it when missing."""
        ...

    def upload(self, path: str, local_path: str) -> str:
        """
        Store a copy of an external file under a generated unique name.

        Args:
            path: Client filename; only its sanitized extension is kept
            local_path: Source file on the local filesystem

        Returns:
            Public URL of the stored file

        Raises:
            UploadFailedError: If the source is missing or the copy fails
        """
        ...

    def copy(self, source: str, destination: str) -> None:
        """
        Copy a file within the disk.

        Raises:
            StorageFileNotFoundError: If the source doesn't exist
            CopyFailedError: On copy failure
        """
        ...

    def move(self, source: str, destination: str) -> None:
        """
        Move a file within the disk.

        Raises:
            StorageFileNotFoundError: If the source doesn't exist
            MoveFailedError: On move failure
        """
        ...

    def delete(self, path: str) -> bool:
        """Delete a file. Returns False instead of raising."""
        ...

    # Directory operations
    def files(self, directory: str = "", recursive: bool = False) -> list[str]:
        """List file paths below a directory (direct children unless recursive)."""
        ...

    def directories(self, directory: str = "", recursive: bool = False) -> list[str]:
        """List directory paths below a directory (direct children unless recursive)."""
        ...

    def make_directory(self, path: str) -> None:
        """Create a directory and its parents."""
        ...

    def delete_directory(self, directory: str, recursive: bool = False) -> bool:
        """
        Delete a directory.

        Non-recursive deletion only succeeds for an empty directory.

        Returns:
            True if the directory was removed
        """
        ...


BackendFactory: TypeAlias = Callable[[Mapping[str, Any]], StorageBackend]
"""Constructor building a backend from a disk's option mapping."""
