"""Overwrite policy: decide whether a candidate needs uploading.

Decision table:
| Candidate size | Destination digest     | Decision                  |
|----------------|------------------------|---------------------------|
| 0              | (not consulted)        | skip (zero-length)        |
| > 0            | absent                 | transfer (no hashing)     |
| > 0            | equal to local digest  | skip (content-unchanged)  |
| > 0            | different              | transfer                  |
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

from blobsync.core.hashing import compute_file_digest
from blobsync.sync.domain.transfers import object_key
from blobsync.sync.types import SkipReason, TransferOutcome

if TYPE_CHECKING:
    from blobsync.storage.base import BlobStore
    from blobsync.sync.types import FileCandidate

logger = logging.getLogger(__name__)


class OverwriteAction(Enum):
    """Action the policy chose for a candidate."""

    SKIP = auto()
    TRANSFER = auto()


@dataclass(frozen=True)
class OverwriteDecision:
    """Result of evaluating the overwrite policy for one candidate.

    Attributes:
        action: SKIP or TRANSFER.
        reason: Why the candidate is skipped (SKIP only).
        content_digest: Local digest, when it was computed.
    """

    action: OverwriteAction
    reason: SkipReason | None = None
    content_digest: str | None = None

    @classmethod
    def skip(cls, reason: SkipReason, content_digest: str | None = None) -> OverwriteDecision:
        return cls(OverwriteAction.SKIP, reason=reason, content_digest=content_digest)

    @classmethod
    def transfer(cls, content_digest: str | None = None) -> OverwriteDecision:
        return cls(OverwriteAction.TRANSFER, content_digest=content_digest)

    @property
    def should_transfer(self) -> bool:
        return self.action == OverwriteAction.TRANSFER

    def as_outcome(self) -> TransferOutcome:
        """Return the Skipped outcome of a skip decision."""
        if self.reason is None:
            raise ValueError("A transfer decision has no terminal outcome")
        return TransferOutcome.skipped(self.reason)


DigestFunc = Callable[..., str]


class OverwritePolicy:
    """Content-based overwrite policy.

    Holds no mutable state, so one instance can evaluate independent
    candidates from several threads.
    """

    def __init__(
        self,
        store: BlobStore,
        cancel_check: Callable[[], bool] | None = None,
        digest_func: DigestFunc = compute_file_digest,
    ) -> None:
        """Initialize the policy.

        Args:
            store: Destination store, queried for stored digests.
            cancel_check: Optional function returning True to abort hashing.
            digest_func: Function computing a file digest.
        """
        self._store = store
        self._cancel_check = cancel_check
        self._digest_func = digest_func

    def decide(self, candidate: FileCandidate, key: str | None = None) -> OverwriteDecision:
        """Evaluate the policy for a candidate.

        Args:
            candidate: The local file.
            key: Destination key (defaults to the file name).

        Returns:
            The decision.

        Raises:
            OSError: If the local file cannot be read.
            StoreError: If the destination metadata lookup fails.
            CancelledException: If cancelled while hashing.
        """
        if candidate.size == 0:
            logger.debug(f"Not transferring zero length {candidate.name}")
            return OverwriteDecision.skip(SkipReason.ZERO_LENGTH)

        remote_digest = self._store.get_object_digest(key or object_key(candidate))
        if remote_digest is None:
            return OverwriteDecision.transfer()

        local_digest = self._digest_func(candidate.path, cancel_check=self._cancel_check)
        if local_digest == remote_digest:
            return OverwriteDecision.skip(SkipReason.CONTENT_UNCHANGED, local_digest)
        return OverwriteDecision.transfer(local_digest)
