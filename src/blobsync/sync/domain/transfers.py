"""Transfer job state machine.

States:
    PENDING -> RUNNING -> SUCCEEDED
                       -> FAILED
    PENDING/RUNNING    -> CANCELLED

All state transitions are validated. Object keys are file names; see
split_key_collisions() for files that share one.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from enum import IntEnum, auto
from typing import TYPE_CHECKING

from blobsync.sync.types import KeyCollisionError

if TYPE_CHECKING:
    from blobsync.sync.types import FileCandidate


class JobStatus(IntEnum):
    """Status of a transfer job."""

    PENDING = auto()
    RUNNING = auto()
    SUCCEEDED = auto()
    FAILED = auto()
    CANCELLED = auto()


# Valid state transitions
VALID_TRANSITIONS: dict[JobStatus, set[JobStatus]] = {
    JobStatus.PENDING: {JobStatus.RUNNING, JobStatus.CANCELLED},
    JobStatus.RUNNING: {JobStatus.SUCCEEDED, JobStatus.FAILED, JobStatus.CANCELLED},
    JobStatus.SUCCEEDED: set(),  # Terminal
    JobStatus.FAILED: set(),  # Terminal
    JobStatus.CANCELLED: set(),  # Terminal
}


class InvalidTransitionError(Exception):
    """Raised when attempting invalid state transition."""


def object_key(candidate: FileCandidate) -> str:
    """Destination key of a candidate: its file name."""
    return candidate.name


def split_key_collisions(
    candidates: list[FileCandidate],
) -> tuple[list[FileCandidate], list[tuple[FileCandidate, KeyCollisionError]]]:
    """Keep the first candidate for each object key.

    Files in different directories can share a name and therefore a key.
    Only the first of them in sorter order is uploaded; the others are
    returned with the error they fail with, so no two jobs write one key.

    Args:
        candidates: Candidates in sorter order.

    Returns:
        (unique candidates, colliding candidates with their errors).
    """
    owners: dict[str, FileCandidate] = {}
    unique: list[FileCandidate] = []
    collisions: list[tuple[FileCandidate, KeyCollisionError]] = []
    for candidate in candidates:
        key = object_key(candidate)
        owner = owners.setdefault(key, candidate)
        if owner is candidate:
            unique.append(candidate)
        else:
            collisions.append((candidate, KeyCollisionError(key, owner.path)))
    return unique, collisions


@dataclass(eq=False)
class TransferJob:
    """One accepted upload of a candidate.

    Attributes:
        candidate: The file to upload.
        key: Destination object key.
        content_digest: Digest computed by the overwrite policy, if any.
        status: Current status.
        started_at: When the upload started running.
        finished_at: When the job reached a terminal state.
        error: Error message if failed.
    """

    candidate: FileCandidate
    key: str
    content_digest: str | None = None
    status: JobStatus = JobStatus.PENDING
    started_at: float | None = None
    finished_at: float | None = None
    error: str | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @classmethod
    def for_candidate(
        cls, candidate: FileCandidate, content_digest: str | None = None
    ) -> TransferJob:
        """Create a job whose key is the candidate's file name."""
        return cls(candidate=candidate, key=object_key(candidate), content_digest=content_digest)

    def transition_to(self, new_status: JobStatus) -> None:
        """Transition to a new status with validation."""
        with self._lock:
            if new_status not in VALID_TRANSITIONS[self.status]:
                raise InvalidTransitionError(
                    f"Cannot transition from {self.status.name} to {new_status.name}"
                )
            self.status = new_status

    def start(self) -> None:
        """Mark job as running."""
        self.transition_to(JobStatus.RUNNING)
        self.started_at = time.monotonic()

    def succeed(self) -> None:
        """Mark job as succeeded."""
        self.transition_to(JobStatus.SUCCEEDED)
        self.finished_at = time.monotonic()

    def fail(self, error: BaseException) -> None:
        """Mark job as failed."""
        self.transition_to(JobStatus.FAILED)
        self.error = str(error)
        self.finished_at = time.monotonic()

    def cancel(self) -> bool:
        """Mark job as cancelled if not yet terminal.

        Returns:
            True if the job moved to CANCELLED.
        """
        with self._lock:
            if self.status not in (JobStatus.PENDING, JobStatus.RUNNING):
                return False
            self.status = JobStatus.CANCELLED
        self.finished_at = time.monotonic()
        return True

    @property
    def is_terminal(self) -> bool:
        """Check if job is in a terminal state."""
        return not VALID_TRANSITIONS[self.status]

    @property
    def elapsed(self) -> float | None:
        """Seconds spent running, once finished."""
        if self.started_at is None or self.finished_at is None:
            return None
        return self.finished_at - self.started_at
