"""Path handling for storage backends.

Provides root-confined path resolution for the local backend and the key,
filename and URL helpers shared by every backend.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
import re
import uuid

from depot.core.storage.errors import InvalidPathError, PathTraversalError

logger = logging.getLogger(__name__)

_UNSAFE_EXTENSION_CHARS = re.compile(r"[^a-zA-Z0-9]")


def split_segments(path: str) -> list[str]:
    """
    Split a caller-supplied path into clean segments.

    Backslashes count as separators, empty and "." segments are dropped.

    Args:
        path: Relative storage path

    Returns:
        Path segments in order

    Raises:
        InvalidPathError: If the path contains a NUL byte
        PathTraversalError: If any segment is ".."

    Example:
        >>> split_segments("/a//b/./c.txt")
        ['a', 'b', 'c.txt']
    """
    if "\x00" in path:
        raise InvalidPathError(path, "Path contains a null byte")

    segments = [s for s in path.replace("\\", "/").split("/") if s not in ("", ".")]
    if ".." in segments:
        raise PathTraversalError(path)
    return segments


def normalize_key(path: str) -> str:
    """Trim surrounding separators from an in-memory storage key."""
    return path.strip("/")


def sanitize_extension(original_name: str) -> str:
    """
    Extract a safe, lowercase extension from a client-supplied filename.

    Only the final component of the name is considered, and only
    alphanumeric characters of its extension survive.

    Args:
        original_name: Filename as provided by the client (may contain directories)

    Returns:
        Extension including the leading dot, or "" when none survives

    Example:
        >>> sanitize_extension("../../etc/Photo.J-P_G")
        '.jpg'
        >>> sanitize_extension("README")
        ''
    """
    basename = original_name.replace("\\", "/").rsplit("/", 1)[-1]
    _, dot, extension = basename.rpartition(".")
    if not dot:
        return ""

    safe = _UNSAFE_EXTENSION_CHARS.sub("", extension)
    return f".{safe.lower()}" if safe else ""


def generate_unique_name(original_name: str) -> str:
    """
    Generate a collision-free storage name keeping only a sanitized extension.

    The directory part of original_name is always discarded.

    Args:
        original_name: Filename as provided by the client

    Returns:
        32 hex characters followed by the sanitized extension
    """
    return uuid.uuid4().hex + sanitize_extension(original_name)


def join_public_url(prefix: str, path: str) -> str:
    """
    Build the public URL of a storage path.

    Args:
        prefix: Public URL prefix (may be empty)
        path: Relative storage path

    Returns:
        prefix + "/" + path, or path unchanged when no prefix is configured
    """
    prefix = prefix.rstrip("/")
    if not prefix:
        return path
    return f"{prefix}/{path.lstrip('/')}"


def _within(candidate: str, root: str) -> bool:
    root = root.rstrip(os.sep) or os.sep
    if candidate == root:
        return True
    return candidate.startswith(root if root.endswith(os.sep) else root + os.sep)


class PathResolver:
    """
    Resolve relative storage paths into absolute paths confined to a root.

    Validation works for paths that do not exist yet: the nearest existing
    ancestor is canonicalized (symlinks resolved) and must lie inside the
    canonical root. When canonicalization is impossible, a separator-aware
    string prefix check is used instead.

    Example:
        >>> resolver = PathResolver("/srv/storage")
        >>> resolver.resolve("avatars/1.png")
        PosixPath('/srv/storage/avatars/1.png')
    """

    def __init__(self, root: str | Path, directory_permissions: int = 0o755) -> None:
        """
        Initialize resolver.

        Args:
            root: Root directory (made absolute, trailing separators dropped)
            directory_permissions: Mode used when the root must be created
        """
        self.root = Path(os.path.abspath(os.fspath(root)))
        self.directory_permissions = directory_permissions

    def full_path(self, path: str) -> Path:
        """Join a relative path onto the root without validating containment."""
        segments = split_segments(path)
        return self.root.joinpath(*segments) if segments else self.root

    def canonical_root(self) -> Path:
        """
        Return the symlink-free root, creating the root when missing.

        Raises:
            InvalidPathError: If the root does not exist and cannot be created
        """
        if not os.path.exists(self.root):
            try:
                self.root.mkdir(mode=self.directory_permissions, parents=True, exist_ok=True)
            except OSError as e:
                raise InvalidPathError(
                    str(self.root),
                    "Base path does not exist and could not be created",
                    cause=e,
                ) from e
            logger.debug("Created storage root %s", self.root)
        return self.root.resolve()

    def validate(self, full_path: Path, original: str | None = None) -> None:
        """
        Ensure an absolute path lies within the root.

        Args:
            full_path: Absolute candidate path (possibly non-existent)
            original: Caller-supplied path, used in the error

        Raises:
            PathTraversalError: If the path escapes the root
            InvalidPathError: If the root cannot be created
        """
        real_root = self.canonical_root()

        check = full_path
        while not os.path.lexists(check) and check != check.parent:
            check = check.parent

        try:
            real = check.resolve()
        except (OSError, RuntimeError):
            # Symlink loops and unreadable ancestors cannot be canonicalized.
            inside = _within(os.path.normpath(full_path), os.path.normpath(self.root))
        else:
            inside = real == real_root or real.is_relative_to(real_root)

        if not inside:
            logger.warning("Rejected path outside storage root %s: %s", self.root, original)
            raise PathTraversalError(original if original is not None else str(full_path))

    def resolve(self, path: str) -> Path:
        """
        Resolve a relative path to a validated absolute path.

        Args:
            path: Relative storage path

        Returns:
            Absolute path under the root (not symlink-resolved)

        Raises:
            PathTraversalError: If the path escapes the root
            InvalidPathError: If the path is malformed
        """
        full = self.full_path(path)
        self.validate(full, path)
        return full

    def relative(self, full_path: str | Path) -> str:
        """Express an absolute path under the root as a "/"-separated relative path."""
        rel = os.path.relpath(full_path, self.root)
        if rel == os.curdir:
            return ""
        return rel.replace(os.sep, "/")
