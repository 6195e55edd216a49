"""Shared types and dataclasses for upload runs.

This module provides:
- SyncError, SetupError, InvalidPatternError, InputDirectoryError,
  ContainerError, KeyCollisionError, TransferError: Exception classes
- FileCandidate: A selected local file
- SkipReason, OutcomeKind, TransferOutcome: Terminal classification of a file
- TransferCompletion: A resolved transfer job with its outcome
- RunSummary: Reconciled counters for a run
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum, auto
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from blobsync.sync.domain.transfers import TransferJob


class SyncError(Exception):
    """Base exception for upload run errors."""


class SetupError(SyncError):
    """Fatal error detected before any transfer is scheduled."""


class InvalidPatternError(SetupError):
    """The matching pattern is malformed or lacks the sorter group."""


class InputDirectoryError(SetupError):
    """The input directory is missing or not a directory."""


class ContainerError(SetupError):
    """The destination container could not be checked or created."""


class KeyCollisionError(SyncError):
    """Two selected files map to the same object key."""

    def __init__(self, key: str, first_path: Path) -> None:
        self.key = key
        self.first_path = first_path
        super().__init__(f"Object key {key} is already used by {first_path}")


class TransferError(SyncError):
    """A single upload failed."""

    def __init__(self, key: str, cause: BaseException) -> None:
        self.key = key
        self.cause = cause
        super().__init__(f"Upload of {key} failed: {cause}")


@dataclass(frozen=True)
class FileCandidate:
    """A local file selected for upload.

    Attributes:
        path: Absolute path of the file.
        name: Display name (the file name).
        sort_key: Value of the ``sorter`` group, used for ordering.
        size: File size in bytes at selection time.
    """

    path: Path
    name: str
    sort_key: str
    size: int


class SkipReason(str, Enum):
    """Why a candidate was not uploaded."""

    ZERO_LENGTH = "zero-length"
    CONTENT_UNCHANGED = "content-unchanged"


class OutcomeKind(IntEnum):
    """Terminal classification of a candidate."""

    SUCCEEDED = auto()
    SKIPPED = auto()
    FAILED = auto()


@dataclass(frozen=True)
class TransferOutcome:
    """Tagged result: Succeeded, Skipped(reason) or Failed(error)."""

    kind: OutcomeKind
    reason: SkipReason | None = None
    error: BaseException | None = None

    @classmethod
    def succeeded(cls) -> TransferOutcome:
        return cls(OutcomeKind.SUCCEEDED)

    @classmethod
    def skipped(cls, reason: SkipReason) -> TransferOutcome:
        return cls(OutcomeKind.SKIPPED, reason=reason)

    @classmethod
    def failed(cls, error: BaseException) -> TransferOutcome:
        return cls(OutcomeKind.FAILED, error=error)

    @property
    def is_success(self) -> bool:
        return self.kind == OutcomeKind.SUCCEEDED

    @property
    def is_skipped(self) -> bool:
        return self.kind == OutcomeKind.SKIPPED

    @property
    def is_failure(self) -> bool:
        return self.kind == OutcomeKind.FAILED

    def __str__(self) -> str:
        if self.kind == OutcomeKind.SKIPPED and self.reason is not None:
            return f"skipped ({self.reason.value})"
        if self.kind == OutcomeKind.FAILED:
            return f"failed ({self.error})"
        return "succeeded"


@dataclass(frozen=True)
class TransferCompletion:
    """A transfer job together with the outcome it resolved to."""

    job: TransferJob
    outcome: TransferOutcome

    @property
    def candidate(self) -> FileCandidate:
        return self.job.candidate


@dataclass(frozen=True)
class RunSummary:
    """Final counters of an upload run.

    Attributes:
        total_matched: Number of files the selector produced.
        succeeded: Files uploaded.
        skipped: Files skipped (zero-length or unchanged).
        failed: Files whose decision or upload failed.
        cancelled: Whether the run stopped on a cancellation request.
    """

    total_matched: int = 0
    succeeded: int = 0
    skipped: int = 0
    failed: int = 0
    cancelled: bool = False

    @property
    def resolved(self) -> int:
        """Number of candidates with a terminal classification."""
        return self.succeeded + self.skipped + self.failed

    @property
    def is_complete(self) -> bool:
        """Check every matched file was classified."""
        return not self.cancelled and self.resolved == self.total_matched

    @property
    def ok(self) -> bool:
        """Check the run completed without failures."""
        return self.is_complete and self.failed == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total_matched,
            "succeeded": self.succeeded,
            "skipped": self.skipped,
            "failed": self.failed,
            "cancelled": self.cancelled,
        }
