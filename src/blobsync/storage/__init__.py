"""Blob store backends.

This package provides:
- BlobStore: Abstract interface used by the upload pipeline
- LocalFSBlobStore: Directory-backed store for development and testing
- S3BlobStore: S3-compatible store (boto3)
- HTTPBlobStore: Blob REST store over httpx
- create_store / store_config_from_env: Factory helpers
"""

from __future__ import annotations

import os

from blobsync.storage.base import (
    AuthenticationError,
    BlobStore,
    ObjectNotFoundError,
    StoredObject,
    StoreError,
)
from blobsync.storage.http import HTTPBlobStore
from blobsync.storage.local import LocalFSBlobStore
from blobsync.storage.s3 import S3BlobStore

STORE_TYPES = ("local", "s3", "http")


def store_config_from_env(store_type: str | None = None) -> dict[str, str | None]:
    """Build store configuration from BLOBSYNC_* environment variables.

    Args:
        store_type: Store type; defaults to BLOBSYNC_STORE, then "local".
    """
    store_type = store_type or os.environ.get("BLOBSYNC_STORE", "local")

    if store_type == "s3":
        return {
            "type": "s3",
            "endpoint_url": os.environ.get("BLOBSYNC_S3_ENDPOINT"),
            "access_key": os.environ.get("BLOBSYNC_S3_ACCESS_KEY"),
            "secret_key": os.environ.get("BLOBSYNC_S3_SECRET_KEY"),
            "region": os.environ.get("BLOBSYNC_S3_REGION", "us-east-1"),
        }

    if store_type == "http":
        return {
            "type": "http",
            "account_url": os.environ.get("BLOBSYNC_HTTP_URL"),
            "sas_token": os.environ.get("BLOBSYNC_HTTP_SAS_TOKEN"),
            "token": os.environ.get("BLOBSYNC_HTTP_TOKEN"),
            "timeout": os.environ.get("BLOBSYNC_HTTP_TIMEOUT"),
        }

    return {
        "type": store_type,
        "local_path": os.environ.get("BLOBSYNC_STORAGE_PATH", "storage"),
    }


def create_store(config: dict[str, str | None], container: str) -> BlobStore:
    """Factory function to create a store from configuration.

    Args:
        config: Store configuration dict with keys:
            - type: "local", "s3" or "http"
            - For local: local_path
            - For S3: endpoint_url, access_key, secret_key, region
            - For HTTP: account_url, sas_token, token, timeout
        container: Destination container (bucket) name.

    Returns:
        Configured BlobStore instance.

    Raises:
        ValueError: If the store type is unknown or a required key is missing.
    """
    store_type = config.get("type") or "local"

    if store_type == "local":
        return LocalFSBlobStore(config.get("local_path") or "storage", container)

    if store_type == "s3":
        return S3BlobStore(
            bucket=container,
            endpoint_url=config.get("endpoint_url"),
            access_key=config.get("access_key"),
            secret_key=config.get("secret_key"),
            region=config.get("region") or "us-east-1",
        )

    if store_type == "http":
        account_url = config.get("account_url")
        if not account_url:
            raise ValueError("HTTP store requires 'account_url' configuration")
        timeout = config.get("timeout")
        return HTTPBlobStore(
            account_url=account_url,
            container=container,
            sas_token=config.get("sas_token"),
            token=config.get("token"),
            timeout=float(timeout) if timeout else 30.0,
        )

    raise ValueError(f"Unknown store type: {store_type}")


__all__ = [
    "STORE_TYPES",
    "AuthenticationError",
    "BlobStore",
    "HTTPBlobStore",
    "LocalFSBlobStore",
    "ObjectNotFoundError",
    "S3BlobStore",
    "StoreError",
    "StoredObject",
    "create_store",
    "store_config_from_env",
]
