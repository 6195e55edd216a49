"""Bounded concurrent execution of transfer jobs.

This module provides:
- TransferScheduler: Runs upload jobs on a thread pool and yields their
  completions in completion order
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable, Iterator
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING

from blobsync.core.cancellation import CancellationToken, CancelledException
from blobsync.core.config import DEFAULT_PARALLEL_OPERATIONS
from blobsync.sync.domain.transfers import JobStatus
from blobsync.sync.types import TransferCompletion, TransferError, TransferOutcome
from blobsync.sync.workers.upload_worker import UploadWorker

if TYPE_CHECKING:
    from blobsync.storage.base import BlobStore
    from blobsync.sync.domain.transfers import TransferJob

logger = logging.getLogger(__name__)

COMPLETION_POLL_INTERVAL = 0.1  # seconds between cancellation checks while waiting


class TransferScheduler:
    """Runs transfer jobs with at most ``max_parallel`` uploads in flight.

    Each submitted job becomes one future. Finished futures are pushed onto
    a completion queue by their done-callback, so draining costs O(1) per
    completion regardless of how many jobs are outstanding.

    Usage:
        with TransferScheduler(store, max_parallel=64, token=token) as scheduler:
            for job in jobs:
                scheduler.submit(job)
            for completion in scheduler.as_completed():
                ...
    """

    def __init__(
        self,
        store: BlobStore,
        max_parallel: int = DEFAULT_PARALLEL_OPERATIONS,
        token: CancellationToken | None = None,
        worker_factory: Callable[[BlobStore], UploadWorker] = UploadWorker,
    ) -> None:
        """Initialize the scheduler.

        Args:
            store: Destination store.
            max_parallel: Maximum concurrently running uploads.
            token: Cancellation token shared with every job.
            worker_factory: Creates the worker that runs each job.
        """
        if max_parallel < 1:
            raise ValueError(f"max_parallel must be at least 1, got {max_parallel}")
        self._store = store
        self._max_parallel = max_parallel
        self._token = token or CancellationToken()
        self._worker_factory = worker_factory
        self._executor = ThreadPoolExecutor(
            max_workers=max_parallel, thread_name_prefix="TransferScheduler"
        )
        self._lock = threading.Lock()
        self._outstanding: dict[Future[TransferOutcome], TransferJob] = {}
        self._completed: queue.Queue[Future[TransferOutcome]] = queue.Queue()
        self._closed = False
        self._cancel_handled = False

        # Statistics
        self._active = 0
        self._peak_active = 0
        self._submitted = 0

    @property
    def max_parallel(self) -> int:
        """Get the concurrency ceiling."""
        return self._max_parallel

    @property
    def token(self) -> CancellationToken:
        """Get the shared cancellation token."""
        return self._token

    @property
    def active_count(self) -> int:
        """Get number of uploads currently running."""
        with self._lock:
            return self._active

    @property
    def peak_active(self) -> int:
        """Get the highest number of simultaneously running uploads."""
        with self._lock:
            return self._peak_active

    @property
    def submitted_count(self) -> int:
        """Get number of submitted jobs."""
        return self._submitted

    @property
    def outstanding_count(self) -> int:
        """Get number of submitted jobs not yet drained."""
        return len(self._outstanding)

    def submit(self, job: TransferJob) -> Future[TransferOutcome]:
        """Submit a job for execution.

        Args:
            job: A PENDING transfer job.

        Returns:
            Future resolving to the job's outcome.

        Raises:
            CancelledException: If the run was cancelled.
            RuntimeError: If the scheduler is closed.
        """
        if self._closed:
            raise RuntimeError("Cannot submit job: scheduler closed")
        if self._token.cancelled:
            job.cancel()
            raise CancelledException(f"Not starting {job.key}: run cancelled")

        future = self._executor.submit(self._run_job, job)
        self._outstanding[future] = job
        self._submitted += 1
        future.add_done_callback(self._completed.put)
        logger.debug(f"Job submitted: {job.key}")
        return future

    def _run_job(self, job: TransferJob) -> TransferOutcome:
        """Execute a job on a pool thread, tracking the in-flight count."""
        with self._lock:
            self._active += 1
            self._peak_active = max(self._peak_active, self._active)
        try:
            worker = self._worker_factory(self._store)
            return worker.execute(job, cancel_check=self._token.is_cancelled)
        finally:
            with self._lock:
                self._active -= 1

    def as_completed(self, block: bool = True) -> Iterator[TransferCompletion]:
        """Yield completions of submitted jobs in the order they finish.

        With ``block=False`` only jobs that have already finished are
        yielded and iteration stops as soon as none is ready.

        The cancellation token is checked before every wait and after every
        completion is observed. Once it is set, jobs that have not started
        are cancelled and iteration stops without waiting for running
        uploads, which are left to observe the token.

        Yields:
            TransferCompletion for each job that succeeded or failed.
        """
        while self._outstanding:
            if self._token.cancelled:
                self._cancel_outstanding()
                return
            try:
                if block:
                    future = self._completed.get(timeout=COMPLETION_POLL_INTERVAL)
                else:
                    future = self._completed.get_nowait()
            except queue.Empty:
                if not block:
                    return
                continue

            job = self._outstanding.pop(future, None)
            if job is None:
                continue

            completion = self._resolve(job, future)
            if self._token.cancelled:
                # A completion observed after cancellation is not reported
                self._cancel_outstanding()
                return
            if completion is not None:
                yield completion

    def _resolve(
        self, job: TransferJob, future: Future[TransferOutcome]
    ) -> TransferCompletion | None:
        """Turn a finished future into a completion (None if cancelled)."""
        if future.cancelled():
            job.cancel()
            return None
        error = future.exception()
        if isinstance(error, CancelledException):
            return None
        if error is not None:
            # The worker returns per-file errors; anything raised here is unexpected
            logger.exception(f"Unexpected error in job {job.key}", exc_info=error)
            if job.status == JobStatus.RUNNING:
                job.fail(error)
            return TransferCompletion(job, TransferOutcome.failed(TransferError(job.key, error)))
        return TransferCompletion(job, future.result())

    def _cancel_outstanding(self) -> None:
        """Cancel futures that have not started running (logged once)."""
        if self._cancel_handled:
            return
        self._cancel_handled = True
        not_started = 0
        for future, job in self._outstanding.items():
            if future.cancel():
                job.cancel()
                not_started += 1
        logger.info(
            f"Cancellation requested: {not_started} queued jobs dropped, "
            f"{len(self._outstanding) - not_started} still running"
        )

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting jobs and release the thread pool.

        After cancellation, queued jobs are dropped and running uploads are
        not waited for.
        """
        if self._token.cancelled:
            wait = False
        self._closed = True
        self._executor.shutdown(wait=wait, cancel_futures=self._token.cancelled)

    def __enter__(self) -> TransferScheduler:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.shutdown()
