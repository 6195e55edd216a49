"""Domain modules for upload business rules.

This package centralizes business logic for upload runs:
- transfers: TransferJob state machine
- decisions: Overwrite policy and its decision values

Architecture:
    domain/ contains business rules without I/O of its own; the store and
    the hasher are handed in.
"""

from blobsync.sync.domain.decisions import (
    OverwriteAction,
    OverwriteDecision,
    OverwritePolicy,
)
from blobsync.sync.domain.transfers import (
    VALID_TRANSITIONS,
    InvalidTransitionError,
    JobStatus,
    TransferJob,
    object_key,
    split_key_collisions,
)

__all__ = [
    # transfers
    "InvalidTransitionError",
    "JobStatus",
    "TransferJob",
    "VALID_TRANSITIONS",
    "object_key",
    "split_key_collisions",
    # decisions
    "OverwriteAction",
    "OverwriteDecision",
    "OverwritePolicy",
]
