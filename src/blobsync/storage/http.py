"""HTTP blob store client.

Speaks the Azure Blob REST shape, which most HTTP object gateways accept:
- ``HEAD/PUT /{container}?restype=container`` for container checks/creation
- ``HEAD /{container}/{key}`` returning ``Content-MD5``
- ``PUT /{container}/{key}`` with ``x-ms-blob-type: BlockBlob``

Authentication is either a shared access signature appended to every
request or a bearer token.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from pathlib import Path
from urllib.parse import quote

import httpx

from blobsync.core.cancellation import CancelledException
from blobsync.core.hashing import compute_file_digest
from blobsync.storage.base import (
    AuthenticationError,
    BlobStore,
    ObjectNotFoundError,
    StoredObject,
    StoreError,
)

logger = logging.getLogger(__name__)

API_VERSION = "2021-08-06"
UPLOAD_CHUNK_SIZE = 4 * 1024 * 1024


class HTTPBlobStore(BlobStore):
    """HTTP client for a blob container."""

    def __init__(
        self,
        account_url: str,
        container: str,
        sas_token: str | None = None,
        token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the HTTP store.

        Args:
            account_url: Base URL of the storage account.
            container: Container name.
            sas_token: Optional shared access signature query string.
            token: Optional bearer token.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (for testing).
        """
        self._account_url = account_url.rstrip("/")
        self._container = container
        headers = {"x-ms-version": API_VERSION}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        params = httpx.QueryParams(sas_token.lstrip("?")) if sas_token else None
        self._client = httpx.Client(
            base_url=self._account_url,
            timeout=timeout,
            headers=headers,
            params=params,
            transport=transport,
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    @property
    def location(self) -> str:
        """Return the container URL."""
        return f"HTTP: {self._account_url}/{self._container}"

    @property
    def container(self) -> str:
        """Return the container name."""
        return self._container

    def _blob_url(self, key: str) -> str:
        return f"/{self._container}/{quote(key, safe='')}"

    def _handle_response(self, response: httpx.Response) -> httpx.Response:
        """Handle a response and raise appropriate exceptions."""
        if response.status_code in (401, 403):
            raise AuthenticationError("Invalid or expired credentials", response.status_code)
        if response.status_code == 404:
            raise ObjectNotFoundError("Resource not found", 404)
        if response.status_code >= 400:
            detail = response.headers.get("x-ms-error-code") or response.reason_phrase
            raise StoreError(f"Request failed: {detail}", response.status_code)
        return response

    # === Container operations ===

    def container_exists(self) -> bool:
        """Check if the container exists."""
        response = self._client.head(
            f"/{self._container}", params={"restype": "container"}
        )
        if response.status_code == 404:
            return False
        self._handle_response(response)
        return True

    def create_container(self) -> None:
        """Create the container; an existing container is accepted."""
        response = self._client.put(
            f"/{self._container}", params={"restype": "container"}
        )
        if response.status_code == 409:
            logger.debug(f"Container {self._container} already exists")
            return
        self._handle_response(response)

    # === Object operations ===

    def get_object_digest(self, key: str) -> str | None:
        """Read the ``Content-MD5`` header of an object."""
        response = self._client.head(self._blob_url(key))
        if response.status_code == 404:
            return None
        self._handle_response(response)
        return response.headers.get("Content-MD5") or None

    def object_exists(self, key: str) -> bool:
        """Check if an object exists."""
        response = self._client.head(self._blob_url(key))
        if response.status_code == 404:
            return False
        self._handle_response(response)
        return True

    def upload_object(
        self,
        local_path: Path,
        key: str,
        content_digest: str | None = None,
        cancel_check: Callable[[], bool] | None = None,
    ) -> StoredObject:
        """Stream a file to the store as a single block blob."""
        if content_digest is None:
            content_digest = compute_file_digest(local_path, cancel_check=cancel_check)
        size = local_path.stat().st_size

        def body() -> Iterator[bytes]:
            with open(local_path, "rb") as f:
                for block in iter(lambda: f.read(UPLOAD_CHUNK_SIZE), b""):
                    if cancel_check and cancel_check():
                        raise CancelledException(f"Upload of {key} cancelled")
                    yield block

        self._handle_response(
            self._client.put(
                self._blob_url(key),
                content=body(),
                headers={
                    "x-ms-blob-type": "BlockBlob",
                    "Content-MD5": content_digest,
                    "Content-Length": str(size),
                    "Content-Type": "application/octet-stream",
                },
            )
        )
        logger.debug(f"Uploaded {key} to {self.location}")
        return StoredObject(key=key, size=size, content_digest=content_digest)
