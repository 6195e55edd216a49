"""Upload worker: runs one transfer job against the store.

This module provides:
- UploadWorker: Executes a TransferJob and returns its TransferOutcome
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from blobsync.core.cancellation import CancelledException
from blobsync.sync.types import TransferError, TransferOutcome

if TYPE_CHECKING:
    from blobsync.storage.base import BlobStore
    from blobsync.sync.domain.transfers import TransferJob

logger = logging.getLogger(__name__)


class UploadWorker:
    """Worker for uploading one file to the store.

    Per-file failures are returned as a Failed outcome so they never
    propagate to sibling jobs. Cancellation is raised, not returned.

    Usage:
        worker = UploadWorker(store)
        outcome = worker.execute(job, cancel_check=token.is_cancelled)
    """

    def __init__(self, store: BlobStore) -> None:
        """Initialize the upload worker.

        Args:
            store: Destination store.
        """
        self._store = store

    @property
    def worker_type(self) -> str:
        """Return worker type name."""
        return "upload"

    def execute(
        self,
        job: TransferJob,
        cancel_check: Callable[[], bool] | None = None,
    ) -> TransferOutcome:
        """Run the upload.

        Args:
            job: The job to run (must be PENDING).
            cancel_check: Optional function returning True to abort.

        Returns:
            Succeeded or Failed outcome.

        Raises:
            CancelledException: If cancellation was requested before or
                during the upload.
        """
        if cancel_check and cancel_check():
            job.cancel()
            raise CancelledException(f"Upload of {job.key} cancelled before start")

        job.start()
        try:
            self._store.upload_object(
                job.candidate.path,
                job.key,
                content_digest=job.content_digest,
                cancel_check=cancel_check,
            )
        except CancelledException:
            job.cancel()
            logger.info(f"{self.worker_type} worker: {job.key} cancelled")
            raise
        except Exception as e:
            job.fail(e)
            logger.debug(f"{self.worker_type} worker failed on {job.key}: {e}")
            return TransferOutcome.failed(TransferError(job.key, e))

        job.succeed()
        return TransferOutcome.succeeded()
