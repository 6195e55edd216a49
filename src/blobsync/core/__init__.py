"""Core module - Configuration, hashing, cancellation and run locking."""

from blobsync.core.cancellation import CancellationToken, CancelledException
from blobsync.core.config import (
    DEFAULT_PARALLEL_OPERATIONS,
    UploadConfig,
    default_hash_workers,
)
from blobsync.core.hashing import (
    DIGEST_LENGTH,
    HASH_CHUNK_SIZE,
    compute_content_digest,
    compute_file_digest,
    digest_from_hex,
)
from blobsync.core.lock import LockHeldError, run_lock

__all__ = [
    # Cancellation
    "CancellationToken",
    "CancelledException",
    # Config
    "DEFAULT_PARALLEL_OPERATIONS",
    "UploadConfig",
    "default_hash_workers",
    # Hashing
    "DIGEST_LENGTH",
    "HASH_CHUNK_SIZE",
    "compute_content_digest",
    "compute_file_digest",
    "digest_from_hex",
    # Lock
    "LockHeldError",
    "run_lock",
]
