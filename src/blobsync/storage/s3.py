"""S3-compatible blob store (AWS, OVH, MinIO, etc.)."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from pathlib import Path
from typing import Any

from blobsync.core.cancellation import CancelledException
from blobsync.core.hashing import compute_file_digest, digest_from_hex
from blobsync.storage.base import AuthenticationError, BlobStore, StoredObject, StoreError

logger = logging.getLogger(__name__)

DIGEST_METADATA_KEY = "content-md5"
_PLAIN_ETAG = re.compile(r"^[0-9a-f]{32}$")


class S3BlobStore(BlobStore):
    """S3-compatible storage; the bucket is the container."""

    def __init__(
        self,
        bucket: str,
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        region: str = "us-east-1",
    ) -> None:
        """Initialize S3 storage.

        Args:
            bucket: S3 bucket name.
            endpoint_url: Custom endpoint URL (for OVH, MinIO, etc.).
            access_key: AWS access key ID.
            secret_key: AWS secret access key.
            region: AWS region (default: us-east-1).
        """
        import boto3

        self._bucket = bucket
        self._endpoint_url = endpoint_url
        self._region = region
        self._client: Any = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
        )

    @property
    def location(self) -> str:
        """Return the S3 bucket location."""
        if self._endpoint_url:
            return f"S3: {self._endpoint_url}/{self._bucket}"
        return f"S3: s3://{self._bucket}"

    @property
    def container(self) -> str:
        """Return the bucket name."""
        return self._bucket

    def _translate(self, e: Exception, what: str) -> StoreError:
        """Map a botocore ClientError to a StoreError."""
        response = getattr(e, "response", {}) or {}
        code = response.get("Error", {}).get("Code", "")
        status = response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        if code in ("AccessDenied", "InvalidAccessKeyId", "SignatureDoesNotMatch"):
            return AuthenticationError(f"{what}: {code}", status)
        return StoreError(f"{what}: {code or e}", status)

    def container_exists(self) -> bool:
        """Check if the bucket exists."""
        from botocore.exceptions import ClientError

        try:
            self._client.head_bucket(Bucket=self._bucket)
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] in ("404", "NoSuchBucket", "NotFound"):
                return False
            raise self._translate(e, f"Cannot check bucket {self._bucket}") from e

    def create_container(self) -> None:
        """Create the bucket."""
        from botocore.exceptions import ClientError

        kwargs: dict[str, Any] = {"Bucket": self._bucket}
        if self._region and self._region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": self._region}
        try:
            self._client.create_bucket(**kwargs)
        except ClientError as e:
            if e.response["Error"]["Code"] in ("BucketAlreadyOwnedByYou", "BucketAlreadyExists"):
                return
            raise self._translate(e, f"Cannot create bucket {self._bucket}") from e

    def get_object_digest(self, key: str) -> str | None:
        """Read the digest from object metadata, falling back to a plain ETag."""
        from botocore.exceptions import ClientError

        try:
            response = self._client.head_object(Bucket=self._bucket, Key=key)
        except ClientError as e:
            if e.response["Error"]["Code"] in ("404", "NoSuchKey", "NotFound"):
                return None
            raise self._translate(e, f"Cannot read metadata of {key}") from e

        metadata = response.get("Metadata") or {}
        digest: str | None = metadata.get(DIGEST_METADATA_KEY)
        if digest:
            return digest
        # Single-part uploads carry the hex MD5 as ETag
        etag = str(response.get("ETag", "")).strip('"')
        if _PLAIN_ETAG.match(etag):
            return digest_from_hex(etag)
        return None

    def object_exists(self, key: str) -> bool:
        """Check if an object exists."""
        from botocore.exceptions import ClientError

        try:
            self._client.head_object(Bucket=self._bucket, Key=key)
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] in ("404", "NoSuchKey", "NotFound"):
                return False
            raise self._translate(e, f"Cannot check {key}") from e

    def upload_object(
        self,
        local_path: Path,
        key: str,
        content_digest: str | None = None,
        cancel_check: Callable[[], bool] | None = None,
    ) -> StoredObject:
        """Upload a file with put_object.

        The request itself cannot be interrupted; cancellation is honored
        up to the moment it is sent.
        """
        from botocore.exceptions import ClientError

        if content_digest is None:
            content_digest = compute_file_digest(local_path, cancel_check=cancel_check)
        if cancel_check and cancel_check():
            raise CancelledException(f"Upload of {key} cancelled")

        size = local_path.stat().st_size
        try:
            with open(local_path, "rb") as body:
                self._client.put_object(
                    Bucket=self._bucket,
                    Key=key,
                    Body=body,
                    ContentLength=size,
                    ContentMD5=content_digest,
                    Metadata={DIGEST_METADATA_KEY: content_digest},
                )
        except ClientError as e:
            raise self._translate(e, f"Cannot upload {key}") from e

        logger.debug(f"Uploaded {key} to {self.location}")
        return StoredObject(key=key, size=size, content_digest=content_digest)
