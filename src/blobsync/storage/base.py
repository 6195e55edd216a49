"""Blob store abstraction.

This module provides:
- StoreError and subclasses: Failures reported by a store backend
- StoredObject: Metadata returned after an upload
- BlobStore: Abstract interface every backend implements
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path


class StoreError(Exception):
    """Base exception for store errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(StoreError):
    """Credentials were rejected by the store."""


class ObjectNotFoundError(StoreError):
    """Object or container not found."""


@dataclass(frozen=True)
class StoredObject:
    """An object as written to the store."""

    key: str
    size: int
    content_digest: str


class BlobStore(ABC):
    """Abstract interface for a container of named objects.

    Implementations must be safe to call from several threads at once as
    long as each thread writes a distinct key.
    """

    @property
    @abstractmethod
    def location(self) -> str:
        """Return a human-readable description of the destination."""

    @property
    @abstractmethod
    def container(self) -> str:
        """Return the container name."""

    @abstractmethod
    def container_exists(self) -> bool:
        """Check if the container exists."""

    @abstractmethod
    def create_container(self) -> None:
        """Create the container. Creating an existing container is not an error."""

    @abstractmethod
    def get_object_digest(self, key: str) -> str | None:
        """Get the stored content digest of an object.

        Args:
            key: Object key.

        Returns:
            Base64 MD5 digest, or None if the object does not exist or was
            stored without a digest.
        """

    @abstractmethod
    def object_exists(self, key: str) -> bool:
        """Check if an object exists."""

    @abstractmethod
    def upload_object(
        self,
        local_path: Path,
        key: str,
        content_digest: str | None = None,
        cancel_check: Callable[[], bool] | None = None,
    ) -> StoredObject:
        """Upload a local file, replacing any existing object.

        Args:
            local_path: File to upload.
            key: Destination object key.
            content_digest: Digest of the file if already known.
            cancel_check: Optional function returning True to abort.

        Returns:
            Metadata of the written object.

        Raises:
            StoreError: If the store rejects the upload.
            CancelledException: If cancelled before the upload finished.
        """

    def ensure_container(self) -> bool:
        """Create the container if missing.

        Returns:
            True if the container was created, False if it already existed.
        """
        if self.container_exists():
            return False
        self.create_container()
        return True

    def close(self) -> None:
        """Release any connections held by the store."""

    def __enter__(self) -> BlobStore:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()
