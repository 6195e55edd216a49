"""Tests for transfer jobs and the overwrite policy."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from blobsync.core.hashing import compute_file_digest
from blobsync.storage.base import StoreError
from blobsync.storage.local import LocalFSBlobStore
from blobsync.sync.domain.decisions import (
    OverwriteAction,
    OverwriteDecision,
    OverwritePolicy,
)
from blobsync.sync.domain.transfers import (
    InvalidTransitionError,
    JobStatus,
    TransferJob,
    object_key,
    split_key_collisions,
)
from blobsync.sync.types import FileCandidate, KeyCollisionError, OutcomeKind, SkipReason


def make_candidate(path: Path) -> FileCandidate:
    """Create a FileCandidate for an existing file."""
    return FileCandidate(path=path, name=path.name, sort_key="", size=path.stat().st_size)


class TestTransferJob:
    """Tests for TransferJob state machine."""

    @pytest.fixture
    def job(self, tmp_path: Path) -> TransferJob:
        path = tmp_path / "a_01.jpg"
        path.write_bytes(b"x")
        return TransferJob.for_candidate(make_candidate(path), content_digest="d")

    def test_for_candidate(self, job: TransferJob) -> None:
        """The key is the file name and the job starts PENDING."""
        assert job.key == "a_01.jpg"
        assert job.content_digest == "d"
        assert job.status == JobStatus.PENDING

    def test_success_path(self, job: TransferJob) -> None:
        """PENDING -> RUNNING -> SUCCEEDED."""
        job.start()
        assert job.status == JobStatus.RUNNING
        job.succeed()
        assert job.status == JobStatus.SUCCEEDED
        assert job.is_terminal
        assert job.elapsed is not None and job.elapsed >= 0

    def test_failure_path(self, job: TransferJob) -> None:
        """A failure records the error text."""
        job.start()
        job.fail(OSError("disk"))
        assert job.status == JobStatus.FAILED
        assert job.error == "disk"

    def test_cannot_succeed_pending(self, job: TransferJob) -> None:
        """Skipping RUNNING is invalid."""
        with pytest.raises(InvalidTransitionError):
            job.succeed()

    def test_cancel_pending(self, job: TransferJob) -> None:
        """Pending jobs can be cancelled."""
        assert job.cancel() is True
        assert job.status == JobStatus.CANCELLED

    def test_cancel_terminal(self, job: TransferJob) -> None:
        """Finished jobs stay finished."""
        job.start()
        job.succeed()
        assert job.cancel() is False
        assert job.status == JobStatus.SUCCEEDED


class TestKeyCollisions:
    """Tests for object_key() and split_key_collisions()."""

    def test_key_is_file_name(self) -> None:
        """The object key drops the directory part."""
        candidate = FileCandidate(
            path=Path("/in/a/x_01.jpg"), name="x_01.jpg", sort_key="01", size=1
        )
        assert object_key(candidate) == "x_01.jpg"

    def test_unique_names_kept(self) -> None:
        """Candidates with distinct names all go through in order."""
        candidates = [
            FileCandidate(path=Path(f"/in/{name}"), name=name, sort_key="", size=1)
            for name in ("b.jpg", "a.jpg")
        ]
        unique, collisions = split_key_collisions(candidates)
        assert unique == candidates
        assert collisions == []

    def test_first_candidate_owns_key(self) -> None:
        """Later candidates with a taken name fail with KeyCollisionError."""
        first = FileCandidate(path=Path("/in/a/x.jpg"), name="x.jpg", sort_key="1", size=1)
        other = FileCandidate(path=Path("/in/y.jpg"), name="y.jpg", sort_key="2", size=1)
        second = FileCandidate(path=Path("/in/b/x.jpg"), name="x.jpg", sort_key="3", size=1)
        third = FileCandidate(path=Path("/in/c/x.jpg"), name="x.jpg", sort_key="4", size=1)

        unique, collisions = split_key_collisions([first, other, second, third])

        assert unique == [first, other]
        assert [candidate for candidate, _ in collisions] == [second, third]
        error = collisions[0][1]
        assert isinstance(error, KeyCollisionError)
        assert error.key == "x.jpg"
        assert error.first_path == first.path
        assert str(first.path) in str(error)


class TestOverwriteDecision:
    """Tests for OverwriteDecision."""

    def test_skip_outcome(self) -> None:
        """A skip decision converts to a Skipped outcome."""
        outcome = OverwriteDecision.skip(SkipReason.ZERO_LENGTH).as_outcome()
        assert outcome.kind == OutcomeKind.SKIPPED
        assert outcome.reason == SkipReason.ZERO_LENGTH

    def test_transfer_has_no_outcome(self) -> None:
        """A transfer decision is not terminal."""
        decision = OverwriteDecision.transfer("d")
        assert decision.should_transfer
        with pytest.raises(ValueError):
            decision.as_outcome()


class TestOverwritePolicy:
    """Tests for OverwritePolicy.decide()."""

    def test_zero_length_not_consulted(self, tmp_path: Path) -> None:
        """Empty files are skipped without hashing or a store lookup."""
        path = tmp_path / "empty.bin"
        path.write_bytes(b"")
        store = MagicMock()
        digest_func = MagicMock()
        decision = OverwritePolicy(store, digest_func=digest_func).decide(make_candidate(path))
        assert decision == OverwriteDecision.skip(SkipReason.ZERO_LENGTH)
        store.get_object_digest.assert_not_called()
        digest_func.assert_not_called()

    def test_missing_destination_transfers_without_hashing(self, tmp_path: Path) -> None:
        """No destination object means transfer, and no local hash."""
        path = tmp_path / "a.jpg"
        path.write_bytes(b"data")
        store = MagicMock()
        store.get_object_digest.return_value = None
        digest_func = MagicMock()
        decision = OverwritePolicy(store, digest_func=digest_func).decide(make_candidate(path))
        assert decision.action == OverwriteAction.TRANSFER
        assert decision.content_digest is None
        store.get_object_digest.assert_called_once_with("a.jpg")
        digest_func.assert_not_called()

    def test_unchanged_content_skipped(
        self, tmp_path: Path, local_store: LocalFSBlobStore
    ) -> None:
        """A matching destination digest is skipped as unchanged."""
        path = tmp_path / "report.csv"
        path.write_bytes(b"a,b,c\n1,2,3\n")
        local_store.upload_object(path, "report.csv")
        decision = OverwritePolicy(local_store).decide(make_candidate(path))
        assert decision.action == OverwriteAction.SKIP
        assert decision.reason == SkipReason.CONTENT_UNCHANGED

    def test_changed_content_transferred(
        self, tmp_path: Path, local_store: LocalFSBlobStore
    ) -> None:
        """Changing one byte makes the candidate transfer with its digest."""
        path = tmp_path / "report.csv"
        path.write_bytes(b"a,b,c\n1,2,3\n")
        local_store.upload_object(path, "report.csv")
        path.write_bytes(b"a,b,c\n1,2,4\n")
        decision = OverwritePolicy(local_store).decide(make_candidate(path))
        assert decision.action == OverwriteAction.TRANSFER
        assert decision.content_digest == compute_file_digest(path)

    def test_explicit_key(self, tmp_path: Path) -> None:
        """A destination key can differ from the file name."""
        path = tmp_path / "a.jpg"
        path.write_bytes(b"data")
        store = MagicMock()
        store.get_object_digest.return_value = None
        OverwritePolicy(store).decide(make_candidate(path), key="other.jpg")
        store.get_object_digest.assert_called_once_with("other.jpg")

    def test_lookup_error_propagates(self, tmp_path: Path) -> None:
        """Store errors surface to the caller."""
        path = tmp_path / "a.jpg"
        path.write_bytes(b"data")
        store = MagicMock()
        store.get_object_digest.side_effect = StoreError("boom", 500)
        with pytest.raises(StoreError):
            OverwritePolicy(store).decide(make_candidate(path))

    def test_passes_cancel_check(self, tmp_path: Path) -> None:
        """The cancel check is handed to the digest function."""
        path = tmp_path / "a.jpg"
        path.write_bytes(b"data")
        store = MagicMock()
        store.get_object_digest.return_value = "remote"
        digest_func = MagicMock(return_value="local")

        def cancel_check() -> bool:
            return False

        OverwritePolicy(store, cancel_check=cancel_check, digest_func=digest_func).decide(
            make_candidate(path)
        )
        digest_func.assert_called_once_with(path, cancel_check=cancel_check)
