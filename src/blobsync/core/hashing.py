"""Content hashing for overwrite decisions.

Digests are MD5 encoded as base64, the representation object stores
report for ``Content-MD5``, so local and remote values compare directly.
"""

from __future__ import annotations

import base64
import hashlib
from collections.abc import Callable
from pathlib import Path
from typing import BinaryIO

from blobsync.core.cancellation import CancelledException

HASH_CHUNK_SIZE = 8192
DIGEST_LENGTH = 24  # base64 of 16 bytes


def compute_content_digest(
    stream: BinaryIO,
    cancel_check: Callable[[], bool] | None = None,
    chunk_size: int = HASH_CHUNK_SIZE,
) -> str:
    """Compute the base64 MD5 digest of a byte stream.

    Reads through a single buffer allocated per call, so memory use does
    not grow with the stream size and concurrent calls share nothing.

    Args:
        stream: Readable binary stream, consumed to EOF.
        cancel_check: Optional function returning True to abort.
        chunk_size: Size of the read buffer in bytes.

    Returns:
        24-character base64 digest.

    Raises:
        CancelledException: If cancel_check returns True between chunks.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    hasher = hashlib.md5(usedforsecurity=False)
    buffer = bytearray(chunk_size)
    view = memoryview(buffer)
    while True:
        length = stream.readinto(view)
        if not length:
            break
        hasher.update(view[:length])
        if cancel_check and cancel_check():
            raise CancelledException("Hashing cancelled")
    return base64.b64encode(hasher.digest()).decode("ascii")


def compute_file_digest(
    path: Path,
    cancel_check: Callable[[], bool] | None = None,
    chunk_size: int = HASH_CHUNK_SIZE,
) -> str:
    """Compute the base64 MD5 digest of a file.

    Args:
        path: Path to the file to hash.
        cancel_check: Optional function returning True to abort.
        chunk_size: Size of the read buffer in bytes.

    Returns:
        24-character base64 digest.
    """
    with open(path, "rb") as f:
        return compute_content_digest(f, cancel_check=cancel_check, chunk_size=chunk_size)


def digest_from_hex(hex_digest: str) -> str:
    """Convert a hex MD5 (S3 ETag form) to the base64 digest form."""
    return base64.b64encode(bytes.fromhex(hex_digest)).decode("ascii")
