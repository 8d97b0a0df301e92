"""Storage client protocol and data types.

This module defines the backend surface the transport needs from an object
store: download to a local path, upload from a local path, one page of a
bucket listing, and closing the client handle.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Protocol

ProgressCallback = Callable[[int], None]


class StorageError(RuntimeError):
    """Raised when object storage operations fail."""


class ObjectNotFoundError(StorageError):
    """Raised when the requested object key does not exist in the bucket."""


@dataclass(frozen=True, slots=True)
class Credentials:
    """Static identity for the backend client."""

    access_key: str
    secret_key: str
    session_token: str | None = None

    def __repr__(self) -> str:
        return f"Credentials(access_key={self.access_key[:4]!r}***)"


@dataclass(frozen=True, slots=True)
class ObjectSummary:
    """Metadata of one object returned by a listing request."""

    key: str
    size_bytes: int
    etag: str | None
    last_modified: datetime | None


@dataclass(frozen=True, slots=True)
class ObjectListing:
    """One page of a bucket listing."""

    objects: tuple[ObjectSummary, ...]
    next_continuation_token: str | None


class StorageClient(Protocol):
    """Protocol defining the interface for object storage backends.

    A client is bound to one set of credentials and one region for its whole
    life; ``close`` must be safe to call more than once.
    """

    def download_file(
        self,
        *,
        bucket: str,
        object_key: str,
        destination: Path,
        progress: ProgressCallback | None = None,
    ) -> None:
        """Download an object to a local file.

        Args:
            bucket: Source bucket name.
            object_key: Object key (path) in the bucket.
            destination: Local path to write the object to.
            progress: Called with the byte count of every chunk written.

        Raises:
            ObjectNotFoundError: If the key does not exist.
            StorageError: If the operation fails for any other reason.
        """
        ...

    def upload_file(
        self,
        *,
        source: Path,
        bucket: str,
        object_key: str,
        progress: ProgressCallback | None = None,
    ) -> None:
        """Upload a local file as an object.

        Args:
            source: Local file to read.
            bucket: Target bucket name.
            object_key: Object key (path) in the bucket.
            progress: Called with the byte count of every chunk sent.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def list_objects(
        self,
        *,
        bucket: str,
        max_keys: int,
        continuation_token: str | None = None,
    ) -> ObjectListing:
        """Fetch a single page of the bucket listing.

        Args:
            bucket: Bucket to list.
            max_keys: Upper bound of objects in the page.
            continuation_token: Token from the previous page, if any.

        Returns:
            ObjectListing with the page contents and the next token.

        Raises:
            StorageError: If the operation fails.
        """
        ...

    def close(self) -> None:
        """Release the underlying connection pool."""
        ...
