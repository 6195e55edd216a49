"""Workers for concurrent uploads.

This package provides:
- UploadWorker: Runs one transfer job against the store
- TransferScheduler: Bounded thread pool yielding completions as they arrive

Usage:
    from blobsync.sync.workers import TransferScheduler

    with TransferScheduler(store, max_parallel=64, token=token) as scheduler:
        scheduler.submit(job)
        for completion in scheduler.as_completed():
            ...
"""

from blobsync.sync.workers.scheduler import COMPLETION_POLL_INTERVAL, TransferScheduler
from blobsync.sync.workers.upload_worker import UploadWorker

__all__ = [
    "COMPLETION_POLL_INTERVAL",
    "TransferScheduler",
    "UploadWorker",
]
