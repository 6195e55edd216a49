"""Configuration classes for blobsync.

This module defines the run configuration shared by the CLI and the
upload pipeline.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

# Maximum simultaneous uploads; object stores handle wide fan-out well
DEFAULT_PARALLEL_OPERATIONS = 64


def default_hash_workers() -> int:
    """Number of threads used to hash candidates (CPU count, at least 2)."""
    return max(os.cpu_count() or 4, 2)


@dataclass
class UploadConfig:
    """Configuration for one bulk upload run.

    Attributes:
        input_dir: Root of the directory tree to scan.
        container: Destination container (bucket) name.
        pattern: Regular expression with a named ``sorter`` group, matched
            against file names.
        max_parallel: Ceiling on concurrently running uploads.
        hash_workers: Threads used to evaluate the overwrite policy.
    """

    input_dir: Path
    container: str
    pattern: str
    max_parallel: int = DEFAULT_PARALLEL_OPERATIONS
    hash_workers: int = field(default_factory=default_hash_workers)

    def __post_init__(self) -> None:
        """Normalize the input directory and validate limits."""
        self.input_dir = Path(self.input_dir).expanduser().resolve()
        if self.max_parallel < 1:
            raise ValueError(f"max_parallel must be at least 1, got {self.max_parallel}")
        if self.hash_workers < 1:
            raise ValueError(f"hash_workers must be at least 1, got {self.hash_workers}")
        if not self.container:
            raise ValueError("container name must not be empty")
