"""Result aggregation for an upload run.

This module provides:
- ResultAggregator: Classifies outcomes, keeps counters, logs per file and
  emits the final summary
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from blobsync.logs import RunLogger
from blobsync.sync.types import (
    FileCandidate,
    OutcomeKind,
    RunSummary,
    TransferCompletion,
    TransferOutcome,
)

logger = logging.getLogger(__name__)


class ResultAggregator:
    """Running tally of outcomes for one run.

    Outcomes are recorded in the order they arrive. Each candidate must be
    recorded at most once; recording the same file twice is a bug and
    raises ValueError.
    """

    def __init__(self, total_matched: int, log: RunLogger | None = None) -> None:
        """Initialize the aggregator.

        Args:
            total_matched: Number of candidates produced by the selector.
            log: Run-scoped logger (defaults to this module's logger).
        """
        self._total_matched = total_matched
        self._log = log or RunLogger(logger)
        self._counts = {kind: 0 for kind in OutcomeKind}
        self._seen: set[str] = set()
        self._summary: RunSummary | None = None

    @property
    def succeeded(self) -> int:
        return self._counts[OutcomeKind.SUCCEEDED]

    @property
    def skipped(self) -> int:
        return self._counts[OutcomeKind.SKIPPED]

    @property
    def failed(self) -> int:
        return self._counts[OutcomeKind.FAILED]

    @property
    def recorded(self) -> int:
        """Number of candidates recorded so far."""
        return sum(self._counts.values())

    def record(self, candidate: FileCandidate, outcome: TransferOutcome) -> None:
        """Count an outcome and log it.

        Args:
            candidate: The file the outcome belongs to.
            outcome: Its terminal classification.
        """
        if self._summary is not None:
            raise RuntimeError("Cannot record outcomes after finish()")
        path_key = str(candidate.path)
        if path_key in self._seen:
            raise ValueError(f"Outcome already recorded for {candidate.path}")
        self._seen.add(path_key)
        self._counts[outcome.kind] += 1

        file_log = self._log.bind(file=candidate.name, outcome=outcome.kind.name.lower())
        if outcome.kind == OutcomeKind.SUCCEEDED:
            file_log.info(f"Transferred {candidate.name} ok")
        elif outcome.kind == OutcomeKind.SKIPPED:
            reason = outcome.reason.value if outcome.reason else "unknown"
            file_log.info(
                f"Skipped {candidate.name} ({reason})",
                extra={"context": {"reason": reason}},
            )
        else:
            error = outcome.error
            file_log.warning(
                f"Error in {candidate.name}: {error}",
                exc_info=error,
            )

    def record_completion(self, completion: TransferCompletion) -> None:
        """Record the outcome of a finished transfer job."""
        self.record(completion.candidate, completion.outcome)

    def drain(self, completions: Iterable[TransferCompletion]) -> None:
        """Record completions as the iterable yields them."""
        for completion in completions:
            self.record_completion(completion)

    def finish(self, cancelled: bool = False) -> RunSummary:
        """Freeze the counters and emit the summary record.

        Args:
            cancelled: Whether the run stopped on a cancellation request.

        Returns:
            The final summary.
        """
        if self._summary is not None:
            return self._summary

        summary = RunSummary(
            total_matched=self._total_matched,
            succeeded=self.succeeded,
            skipped=self.skipped,
            failed=self.failed,
            cancelled=cancelled,
        )
        self._summary = summary
        summary_log = self._log.bind(**summary.to_dict())
        if cancelled:
            summary_log.warning(
                f"Cancelled after {summary.resolved} of {summary.total_matched} files: "
                f"transferred {summary.succeeded} ok, skipped {summary.skipped}, "
                f"had {summary.failed} errors"
            )
        else:
            summary_log.info(
                f"Transferred {summary.succeeded} ok, skipped {summary.skipped}, "
                f"had {summary.failed} errors (of {summary.total_matched} matched)"
            )
        return summary

