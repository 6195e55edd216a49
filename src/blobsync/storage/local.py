"""Local filesystem blob store for development and testing.

Containers are directories under a base path. Each object is a plain file
and its digest is kept in a sidecar JSON file under ``.blobsync-meta``.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Callable
from pathlib import Path

from blobsync.core.cancellation import CancelledException
from blobsync.core.hashing import HASH_CHUNK_SIZE, compute_file_digest
from blobsync.storage.base import BlobStore, StoredObject, StoreError

logger = logging.getLogger(__name__)

META_DIR = ".blobsync-meta"


class LocalFSBlobStore(BlobStore):
    """Local filesystem storage."""

    def __init__(self, base_path: Path | str, container: str) -> None:
        """Initialize local storage.

        Args:
            base_path: Directory holding the containers.
            container: Container (sub-directory) name.
        """
        if not container or "/" in container or "\\" in container or container in (".", ".."):
            raise ValueError(f"Invalid container name: {container!r}")
        self._base_path = Path(base_path).resolve()
        self._container = container

    @property
    def location(self) -> str:
        """Return the local storage path."""
        return f"Local filesystem: {self._container_path}"

    @property
    def container(self) -> str:
        """Return the container name."""
        return self._container

    @property
    def _container_path(self) -> Path:
        return self._base_path / self._container

    def _object_path(self, key: str) -> Path:
        """Get the file path for an object key."""
        if not key or "/" in key or "\\" in key or key in (".", "..") or key == META_DIR:
            raise StoreError(f"Invalid object key: {key!r}")
        return self._container_path / key

    def _meta_path(self, key: str) -> Path:
        return self._container_path / META_DIR / f"{key}.json"

    def container_exists(self) -> bool:
        """Check if the container directory exists."""
        return self._container_path.is_dir()

    def create_container(self) -> None:
        """Create the container directory."""
        try:
            (self._container_path / META_DIR).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreError(f"Cannot create container {self._container}: {e}") from e

    def get_object_digest(self, key: str) -> str | None:
        """Read the digest recorded for an object."""
        if not self._object_path(key).is_file():
            return None
        meta_path = self._meta_path(key)
        if not meta_path.exists():
            return None
        meta = json.loads(meta_path.read_text(encoding="utf-8"))
        digest: str | None = meta.get("content_md5")
        return digest

    def object_exists(self, key: str) -> bool:
        """Check if an object exists."""
        return self._object_path(key).is_file()

    def read_object(self, key: str) -> bytes:
        """Return the content of an object (used by tooling and tests)."""
        path = self._object_path(key)
        if not path.is_file():
            raise StoreError(f"Object not found: {key}", 404)
        return path.read_bytes()

    def upload_object(
        self,
        local_path: Path,
        key: str,
        content_digest: str | None = None,
        cancel_check: Callable[[], bool] | None = None,
    ) -> StoredObject:
        """Copy a file into the container.

        The object is written to a temporary file and moved into place, so
        readers never observe a partial object.
        """
        target = self._object_path(key)
        if not self.container_exists():
            raise StoreError(f"Container does not exist: {self._container}", 404)

        if content_digest is None:
            content_digest = compute_file_digest(local_path, cancel_check=cancel_check)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".part", dir=self._container_path)
        size = 0
        try:
            with os.fdopen(fd, "wb") as out, open(local_path, "rb") as src:
                for block in iter(lambda: src.read(HASH_CHUNK_SIZE), b""):
                    if cancel_check and cancel_check():
                        raise CancelledException(f"Upload of {key} cancelled")
                    out.write(block)
                    size += len(block)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        meta_path = self._meta_path(key)
        meta_path.parent.mkdir(exist_ok=True)
        meta_path.write_text(
            json.dumps({"content_md5": content_digest, "size": size}),
            encoding="utf-8",
        )
        logger.debug(f"Stored {key} ({size} bytes) in {self._container_path}")
        return StoredObject(key=key, size=size, content_digest=content_digest)
