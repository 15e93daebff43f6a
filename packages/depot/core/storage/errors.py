from __future__ import annotations

from pydantic import BaseModel, Field


class StorageErrorData(BaseModel):
    """Structured data for storage errors.

    Args:
        message: Human-readable error description
        path: Offending storage path (or source path for two-path operations)
        destination: Destination path for copy/move/upload
        reason: Optional detail appended to the message
        cause: Original exception that caused this error
    """

    model_config = {"arbitrary_types_allowed": True}

    message: str
    path: str | None = None
    destination: str | None = None
    reason: str | None = None
    cause: BaseException | None = Field(default=None, repr=False)


class StorageError(Exception):
    """Base exception for all storage errors.

    Wraps structured error data in an exception for ergonomic error handling.

    Attributes:
        data: Structured error data (StorageErrorData)
        message: Human-readable error description
        path: Offending path
        destination: Destination path (two-path operations only)
        reason: Optional detail
        cause: Original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        destination: str | None = None,
        reason: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.data = StorageErrorData(
            message=message,
            path=path,
            destination=destination,
            reason=reason or None,
            cause=cause,
        )
        self.message = self.data.message
        self.path = self.data.path
        self.destination = self.data.destination
        self.reason = self.data.reason
        self.cause = self.data.cause

        super().__init__(str(self))

    def __str__(self) -> str:
        return self.message


def _with_reason(message: str, reason: str | None, sep: str = " ({})") -> str:
    if not reason:
        return message
    return message + sep.format(reason)


class MissingConfigurationError(StorageError):
    """A required configuration key is absent."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Storage configuration missing: {key}")


class InvalidPathError(StorageError):
    """A storage path is malformed or unusable."""

    def __init__(
        self, path: str, reason: str | None = None, cause: BaseException | None = None
    ) -> None:
        super().__init__(
            _with_reason(f"Invalid storage path: {path}", reason),
            path=path,
            reason=reason,
            cause=cause,
        )


class PathTraversalError(InvalidPathError):
    """A path resolves outside the backend root."""

    def __init__(self, path: str) -> None:
        StorageError.__init__(self, f"Path traversal detected: {path}", path=path)


class StorageFileNotFoundError(StorageError):
    """File does not exist in storage."""

    def __init__(self, path: str) -> None:
        super().__init__(f"File not found in storage: {path}", path=path)


class StorageDirectoryNotFoundError(StorageError):
    """Directory does not exist in storage."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Directory not found in storage: {path}", path=path)


class UploadFailedError(StorageError):
    """Copying an external file into storage failed."""

    def __init__(
        self,
        source: str,
        destination: str,
        reason: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            _with_reason(
                f"Failed to upload file from '{source}' to '{destination}'", reason, ": {}"
            ),
            path=source,
            destination=destination,
            reason=reason,
            cause=cause,
        )


class WriteFailedError(StorageError):
    """Writing a file or creating a directory failed."""

    def __init__(
        self, path: str, reason: str | None = None, cause: BaseException | None = None
    ) -> None:
        super().__init__(
            _with_reason(f"Failed to write to file: {path}", reason),
            path=path,
            reason=reason,
            cause=cause,
        )


class ReadFailedError(StorageError):
    """Reading a file or its metadata failed."""

    def __init__(
        self, path: str, reason: str | None = None, cause: BaseException | None = None
    ) -> None:
        super().__init__(
            _with_reason(f"Failed to read file: {path}", reason),
            path=path,
            reason=reason,
            cause=cause,
        )


class DeleteFailedError(StorageError):
    """Removing a file or directory failed."""

    def __init__(
        self, path: str, reason: str | None = None, cause: BaseException | None = None
    ) -> None:
        super().__init__(
            _with_reason(f"Failed to delete: {path}", reason),
            path=path,
            reason=reason,
            cause=cause,
        )


class CopyFailedError(StorageError):
    """Copying a file within storage failed."""

    def __init__(
        self,
        source: str,
        destination: str,
        reason: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            _with_reason(f"Failed to copy from '{source}' to '{destination}'", reason, ": {}"),
            path=source,
            destination=destination,
            reason=reason,
            cause=cause,
        )


class MoveFailedError(StorageError):
    """Moving a file within storage failed."""

    def __init__(
        self,
        source: str,
        destination: str,
        reason: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            _with_reason(f"Failed to move from '{source}' to '{destination}'", reason, ": {}"),
            path=source,
            destination=destination,
            reason=reason,
            cause=cause,
        )


class UnknownDriverError(StorageError):
    """No constructor is registered for a driver kind."""

    def __init__(self, driver: str) -> None:
        self.driver = driver
        super().__init__(f"Unknown storage driver: {driver}")
