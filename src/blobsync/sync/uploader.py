"""Bulk upload run coordinating selection, decisions, transfers and tally.

Architecture:
    FileSelector -> OverwritePolicy (concurrent) -> TransferScheduler -> ResultAggregator

Flow of one run:
    1. Ensure the destination container exists (fatal on failure)
    2. Select and order the matching files (fatal on bad pattern/directory);
       a file whose name is already taken by an earlier one fails
    3. Evaluate the overwrite policy for every candidate on a hashing pool;
       decisions are consumed in sorter order
    4. Record skips immediately, submit accepted jobs to the scheduler
    5. Drain transfer completions in arrival order and emit the summary;
       after cancellation the run returns without waiting for running uploads
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from blobsync import __version__
from blobsync.core.cancellation import CancellationToken, CancelledException
from blobsync.logs import RunLogger
from blobsync.sync.aggregator import ResultAggregator
from blobsync.sync.domain.decisions import OverwriteDecision, OverwritePolicy
from blobsync.sync.domain.transfers import TransferJob, split_key_collisions
from blobsync.sync.selector import FileSelector
from blobsync.sync.types import (
    ContainerError,
    FileCandidate,
    RunSummary,
    TransferOutcome,
)
from blobsync.sync.workers.scheduler import TransferScheduler

if TYPE_CHECKING:
    from blobsync.core.config import UploadConfig
    from blobsync.storage.base import BlobStore

logger = logging.getLogger(__name__)


class BulkUploader:
    """Uploads the files of a directory tree that match a pattern.

    Usage:
        config = UploadConfig(input_dir=Path("photos"), container="photos",
                              pattern=r"(?<sorter>\\d+)\\.jpg$")
        uploader = BulkUploader(store, config)
        summary = uploader.run()
    """

    def __init__(
        self,
        store: BlobStore,
        config: UploadConfig,
        log: RunLogger | None = None,
        token: CancellationToken | None = None,
    ) -> None:
        """Initialize the uploader.

        The pattern is compiled here, so a bad pattern fails before any I/O.

        Args:
            store: Destination store.
            config: Run configuration.
            log: Run-scoped logger; defaults to one carrying version, store
                location and container.
            token: Cancellation token shared by every stage.

        Raises:
            InvalidPatternError: If the pattern is unusable.
        """
        self._store = store
        self._config = config
        self._token = token or CancellationToken()
        self._selector = FileSelector(config.pattern)
        self._policy = OverwritePolicy(store, cancel_check=self._token.is_cancelled)
        self._log = log or RunLogger(
            logger,
            {
                "version": __version__,
                "store": store.location,
                "container": store.container,
            },
        )

    @property
    def token(self) -> CancellationToken:
        """Get the run's cancellation token."""
        return self._token

    def cancel(self) -> None:
        """Request cancellation of the run."""
        self._token.cancel()

    def run(self) -> RunSummary:
        """Perform the upload run.

        Returns:
            RunSummary with the final counters.

        Raises:
            ContainerError: If the container cannot be checked or created.
            InvalidPatternError: If the pattern is unusable.
            InputDirectoryError: If the input directory cannot be scanned.
        """
        self._ensure_container()

        self._log.info("Looking for matching files")
        candidates = self._selector.select(self._config.input_dir)
        self._log.info(f"Found {len(candidates)} files that match")

        aggregator = ResultAggregator(len(candidates), self._log)
        candidates, collisions = split_key_collisions(candidates)
        for candidate, error in collisions:
            aggregator.record(candidate, TransferOutcome.failed(error))
        if not candidates:
            return aggregator.finish()

        hashers = ThreadPoolExecutor(
            max_workers=self._config.hash_workers, thread_name_prefix="OverwritePolicy"
        )
        try:
            with TransferScheduler(
                self._store, max_parallel=self._config.max_parallel, token=self._token
            ) as scheduler:
                decisions = hashers.map(self._decide, candidates)
                for candidate, decision in zip(candidates, decisions, strict=True):
                    if decision is None or self._token.cancelled:
                        break
                    if isinstance(decision, TransferOutcome):
                        aggregator.record(candidate, decision)
                    elif decision.should_transfer:
                        job = TransferJob.for_candidate(candidate, decision.content_digest)
                        try:
                            scheduler.submit(job)
                        except CancelledException:
                            break
                    else:
                        aggregator.record(candidate, decision.as_outcome())

                    # Record uploads that already finished without waiting
                    aggregator.drain(scheduler.as_completed(block=False))

                aggregator.drain(scheduler.as_completed())
        finally:
            # After cancellation, hashing still in progress is not waited for
            hashers.shutdown(wait=not self._token.cancelled, cancel_futures=True)

        return aggregator.finish(cancelled=self._token.cancelled)

    def _ensure_container(self) -> None:
        """Create the destination container if missing."""
        try:
            created = self._store.ensure_container()
        except Exception as e:
            raise ContainerError(
                f"Cannot prepare container {self._store.container}: {e}"
            ) from e
        if created:
            self._log.info(f"Created container {self._store.container}")

    def _decide(
        self, candidate: FileCandidate
    ) -> OverwriteDecision | TransferOutcome | None:
        """Evaluate the policy for one candidate on a hashing thread.

        Returns:
            The decision, a Failed outcome if the decision itself failed,
            or None if the run was cancelled.
        """
        if self._token.cancelled:
            return None
        try:
            return self._policy.decide(candidate)
        except CancelledException:
            return None
        except Exception as e:
            return TransferOutcome.failed(e)
