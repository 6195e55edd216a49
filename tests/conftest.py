"""Shared fixtures for blobsync tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from blobsync.storage.local import LocalFSBlobStore

FileFactory = Callable[..., Path]


@pytest.fixture
def input_dir(tmp_path: Path) -> Path:
    """Create an empty input directory."""
    path = tmp_path / "input"
    path.mkdir()
    return path


@pytest.fixture
def make_file(input_dir: Path) -> FileFactory:
    """Return a helper writing a file below the input directory."""

    def _make(relative: str, data: bytes = b"data") -> Path:
        path = input_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path

    return _make


@pytest.fixture
def local_store(tmp_path: Path) -> LocalFSBlobStore:
    """Create a LocalFSBlobStore with an existing container."""
    store = LocalFSBlobStore(tmp_path / "storage", "photos")
    store.create_container()
    return store
