"""Upload pipeline.

Architecture:
    FileSelector → OverwritePolicy → TransferScheduler → ResultAggregator

Components:
- **FileSelector**: Scans the input tree, filters names by pattern, orders
  candidates by the ``sorter`` group
- **OverwritePolicy**: Skips empty and unchanged files by comparing content
  digests with the destination
- **TransferScheduler**: Runs uploads on a bounded thread pool and yields
  completions as they arrive
- **ResultAggregator**: Counts and logs outcomes, emits the run summary
- **BulkUploader**: Drives one run end to end
"""

from blobsync.sync.aggregator import ResultAggregator
from blobsync.sync.domain import (
    InvalidTransitionError,
    JobStatus,
    OverwriteAction,
    OverwriteDecision,
    OverwritePolicy,
    TransferJob,
)
from blobsync.sync.selector import SORTER_GROUP, FileSelector, compile_pattern
from blobsync.sync.types import (
    ContainerError,
    FileCandidate,
    InputDirectoryError,
    InvalidPatternError,
    KeyCollisionError,
    OutcomeKind,
    RunSummary,
    SetupError,
    SkipReason,
    SyncError,
    TransferCompletion,
    TransferError,
    TransferOutcome,
)
from blobsync.sync.uploader import BulkUploader
from blobsync.sync.workers import TransferScheduler, UploadWorker

__all__ = [
    "BulkUploader",
    "ContainerError",
    "FileCandidate",
    "FileSelector",
    "InputDirectoryError",
    "InvalidPatternError",
    "InvalidTransitionError",
    "JobStatus",
    "KeyCollisionError",
    "OutcomeKind",
    "OverwriteAction",
    "OverwriteDecision",
    "OverwritePolicy",
    "ResultAggregator",
    "RunSummary",
    "SORTER_GROUP",
    "SetupError",
    "SkipReason",
    "SyncError",
    "TransferCompletion",
    "TransferError",
    "TransferJob",
    "TransferOutcome",
    "TransferScheduler",
    "UploadWorker",
    "compile_pattern",
]
