"""Tests for the run lock file."""

from __future__ import annotations

from pathlib import Path

import pytest

from blobsync.core.lock import LockHeldError, run_lock


class TestRunLock:
    """Tests for run_lock()."""

    def test_acquire_and_release(self, tmp_path: Path) -> None:
        """The lock can be taken again once the holder leaves the block."""
        lock_file = tmp_path / "upload.lock"
        with run_lock(lock_file) as held:
            assert held == lock_file
            assert lock_file.exists()
        with run_lock(lock_file):
            pass

    def test_second_holder_refused(self, tmp_path: Path) -> None:
        """A second acquisition while held raises LockHeldError."""
        lock_file = tmp_path / "upload.lock"
        with run_lock(lock_file):
            with pytest.raises(LockHeldError, match="Another run holds") as exc_info:
                with run_lock(lock_file):
                    pass
        assert exc_info.value.path == lock_file

    def test_released_on_error(self, tmp_path: Path) -> None:
        """An exception inside the block still releases the lock."""
        lock_file = tmp_path / "upload.lock"
        with pytest.raises(RuntimeError):
            with run_lock(lock_file):
                raise RuntimeError("boom")
        with run_lock(lock_file):
            pass

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        """Missing parent directories are created."""
        lock_file = tmp_path / "var" / "run" / "upload.lock"
        with run_lock(str(lock_file)) as held:
            assert held == lock_file
        assert lock_file.exists()

    def test_file_left_in_place(self, tmp_path: Path) -> None:
        """The lock file stays after release."""
        lock_file = tmp_path / "upload.lock"
        with run_lock(lock_file):
            pass
        assert lock_file.exists()
