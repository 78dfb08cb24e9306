"""
Object Storage Port.

Protocol-based interface for the blob store that holds service pictures,
character art, portfolio images and blog images.

Implementations: local filesystem with HMAC-signed URLs (now); any hosted
bucket SDK exposing upload/share/delete/batch-sign can be adapted to it.

Only these operations are consumed by the application:
- upload(file, path, upsert)
- share(path, expires_in) -> signed URL
- delete(paths)
- create_signed_urls(paths, expires_in)
- create_signed_upload_url(path, filename, upsert)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


@dataclass(frozen=True)
class StoredObject:
    """Metadata for a stored object."""

    path: str
    size_bytes: int
    content_type: str


@dataclass(frozen=True)
class SignedUrlResult:
    """One entry of a batch signing call. `error` is set when `signed_url` is None."""

    path: str
    signed_url: str | None
    expires_at: datetime | None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.signed_url is not None and self.error is None


@dataclass(frozen=True)
class SignedUpload:
    """A URL the browser can PUT bytes to directly."""

    path: str
    signed_url: str
    expires_at: datetime


class ObjectStoragePort(Protocol):
    """Object storage port interface."""

    def upload(
        self,
        data: bytes,
        *,
        path: str,
        filename: str,
        content_type: str = "application/octet-stream",
        upsert: bool = True,
    ) -> StoredObject:
        """
        Store bytes at `<path>/<filename>`.

        Raises:
            ObjectExistsError: If the object exists and upsert is False
            StorageError: On backend failure
        """
        ...

    def share(self, path: str, *, expires_in: int) -> str:
        """
        Create a signed read URL for a single object.

        Raises:
            ObjectNotFoundError: If the object doesn't exist
        """
        ...

    def delete(self, paths: list[str]) -> list[str]:
        """Delete objects. Returns the paths that were actually removed."""
        ...

    def create_signed_urls(self, paths: list[str], expires_in: int) -> list[SignedUrlResult]:
        """Sign many paths in one call. Missing objects are reported per entry."""
        ...

    def create_signed_upload_url(
        self, path: str, filename: str, *, upsert: bool = True
    ) -> SignedUpload:
        """Create a signed URL for a direct upload to `<path>/<filename>`."""
        ...


class StorageError(Exception):
    """Base class for storage errors."""


class ObjectNotFoundError(StorageError):
    """Raised when a path doesn't exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Object not found: {path}")


class ObjectExistsError(StorageError):
    """Raised when writing to an existing path without upsert."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Object already exists: {path}")


class InvalidPathError(StorageError):
    """Raised for empty paths or paths escaping the storage root."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Invalid storage path: {path!r}")


class InvalidSignatureError(StorageError):
    """Raised when a signed URL is forged or expired."""
