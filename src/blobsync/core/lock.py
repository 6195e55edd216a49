"""Advisory lock file guarding against overlapping runs.

This module provides:
- run_lock: Context manager holding an exclusive, non-blocking file lock
- LockHeldError: Raised when another process holds the lock

The lock lives on the open file, so it is released when the holder exits,
even on a crash. The file itself is left in place.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)


class LockHeldError(Exception):
    """Another run holds the lock file."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Another run holds the lock file {path}")


def _open_lock_file(path: Path) -> int:
    path.parent.mkdir(parents=True, exist_ok=True)
    return os.open(path, os.O_CREAT | os.O_RDWR | getattr(os, "O_CLOEXEC", 0))


try:
    import fcntl

    @contextmanager
    def run_lock(path: str | Path) -> Iterator[Path]:
        """Hold an exclusive lock on ``path`` for the duration of the block.

        Raises:
            LockHeldError: If the lock is already held.
        """
        lock_path = Path(path)
        fd = _open_lock_file(lock_path)
        try:
            try:
                fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            except BlockingIOError as e:
                raise LockHeldError(lock_path) from e
            logger.debug(f"Acquired lock {lock_path}")
            try:
                yield lock_path
            finally:
                fcntl.flock(fd, fcntl.LOCK_UN)
        finally:
            os.close(fd)

except ImportError:
    import msvcrt

    @contextmanager
    def run_lock(path: str | Path) -> Iterator[Path]:
        """Hold an exclusive lock on ``path`` for the duration of the block.

        Raises:
            LockHeldError: If the lock is already held.
        """
        lock_path = Path(path)
        fd = _open_lock_file(lock_path)
        os.set_inheritable(fd, False)
        try:
            try:
                msvcrt.locking(fd, msvcrt.LK_NBLCK, 1)
            except OSError as e:
                raise LockHeldError(lock_path) from e
            logger.debug(f"Acquired lock {lock_path}")
            try:
                yield lock_path
            finally:
                os.lseek(fd, 0, os.SEEK_SET)
                msvcrt.locking(fd, msvcrt.LK_UNLCK, 1)
        finally:
            os.close(fd)
