"""Tests for pattern-based file selection."""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

import pytest

from blobsync.sync.selector import FileSelector, compile_pattern
from blobsync.sync.types import InputDirectoryError, InvalidPatternError

JPG_PATTERN = r"(?<sorter>\d{2})\.jpg$"


class TestCompilePattern:
    """Tests for compile_pattern()."""

    def test_angle_bracket_group(self) -> None:
        """.NET style named groups are accepted."""
        assert "sorter" in compile_pattern(JPG_PATTERN).groupindex

    def test_python_group(self) -> None:
        """Python style named groups are accepted."""
        assert "sorter" in compile_pattern(r"(?P<sorter>\d+)").groupindex

    def test_lookbehind_untouched(self) -> None:
        """Lookbehind assertions are not mistaken for named groups."""
        pattern = compile_pattern(r"(?<=x)(?<sorter>\d)")
        assert pattern.search("x5").group("sorter") == "5"

    def test_missing_sorter_group(self) -> None:
        """A pattern without the sorter group is rejected."""
        with pytest.raises(InvalidPatternError, match="sorter"):
            compile_pattern(r"(?<index>\d+)\.jpg$")

    def test_malformed_pattern(self) -> None:
        """A malformed pattern is rejected."""
        with pytest.raises(InvalidPatternError, match="Invalid pattern"):
            compile_pattern(r"(?<sorter>\d+")

    def test_case_insensitive(self) -> None:
        """Matching ignores case."""
        assert compile_pattern(JPG_PATTERN).search("A_01.JPG") is not None


class TestFileSelectorMatch:
    """Tests for FileSelector.match()."""

    def test_match_returns_sorter(self) -> None:
        """The sorter group value is returned."""
        assert FileSelector(JPG_PATTERN).match("a_07.jpg") == "07"

    def test_no_match(self) -> None:
        """Non-matching names return None."""
        assert FileSelector(JPG_PATTERN).match("notes.txt") is None

    def test_non_participating_group(self) -> None:
        """A sorter group that did not take part yields an empty key."""
        selector = FileSelector(r"^(?:(?<sorter>\d+)_)?[a-z]+\.bin$")
        assert selector.match("empty.bin") == ""
        assert selector.match("12_data.bin") == "12"


class TestFileSelectorSelect:
    """Tests for FileSelector.select()."""

    @pytest.fixture
    def touch(self, input_dir: Path) -> Callable[..., Path]:
        def _touch(relative: str, data: bytes = b"x") -> Path:
            path = input_dir / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
            return path

        return _touch

    def test_orders_by_sorter(self, input_dir: Path, touch: Callable[..., Path]) -> None:
        """Candidates come back ordered by sorter value, not by name."""
        touch("a_01.jpg")
        touch("b_02.jpg")
        touch("c_00.jpg")
        candidates = FileSelector(JPG_PATTERN).select(input_dir)
        assert [c.name for c in candidates] == ["c_00.jpg", "a_01.jpg", "b_02.jpg"]

    def test_recurses_and_filters(self, input_dir: Path, touch: Callable[..., Path]) -> None:
        """Subdirectories are scanned and non-matches dropped."""
        touch("x/y/deep_05.JPG", b"12345")
        touch("top_03.jpg")
        touch("notes.txt")
        touch("x/readme.md")
        candidates = FileSelector(JPG_PATTERN).select(input_dir)
        assert [c.name for c in candidates] == ["top_03.jpg", "deep_05.JPG"]
        deep = candidates[1]
        assert deep.path == input_dir / "x" / "y" / "deep_05.JPG"
        assert deep.path.is_absolute()
        assert deep.size == 5
        assert deep.sort_key == "05"

    def test_equal_sorters_kept_together(
        self, input_dir: Path, touch: Callable[..., Path]
    ) -> None:
        """Files with the same sorter value are all kept."""
        touch("a_01.jpg")
        touch("sub/b_01.jpg")
        touch("c_00.jpg")
        candidates = FileSelector(JPG_PATTERN).select(input_dir)
        assert [c.name for c in candidates] == ["c_00.jpg", "a_01.jpg", "b_01.jpg"]

    def test_enumerates_in_name_order(
        self, input_dir: Path, touch: Callable[..., Path]
    ) -> None:
        """Ties follow name order: files of a directory, then its sub-directories."""
        touch("b/x_01.jpg")
        touch("a/x_01.jpg")
        touch("z_01.jpg")
        touch("m_01.jpg")
        candidates = FileSelector(JPG_PATTERN).select(input_dir)
        assert [c.path.relative_to(input_dir).as_posix() for c in candidates] == [
            "m_01.jpg",
            "z_01.jpg",
            "a/x_01.jpg",
            "b/x_01.jpg",
        ]

    def test_stable_for_equal_sorters(
        self, input_dir: Path, touch: Callable[..., Path], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Equal sorter values keep their enumeration order."""
        names = ["z_1.jpg", "a_0.jpg", "m_1.jpg", "b_1.jpg"]
        for name in names:
            touch(name)
        selector = FileSelector(r"(?<sorter>\d)\.jpg$")
        entries = {entry.name: entry for entry in os.scandir(input_dir)}
        monkeypatch.setattr(selector, "_walk", lambda root: iter(entries[n] for n in names))
        candidates = selector.select(input_dir)
        assert [c.name for c in candidates] == ["a_0.jpg", "z_1.jpg", "m_1.jpg", "b_1.jpg"]

    def test_zero_length_selected(self, input_dir: Path, touch: Callable[..., Path]) -> None:
        """Empty files are candidates with size 0."""
        touch("empty_01.jpg", b"")
        (candidate,) = FileSelector(JPG_PATTERN).select(input_dir)
        assert candidate.size == 0

    def test_no_matches(self, input_dir: Path, touch: Callable[..., Path]) -> None:
        """No matching files gives an empty list."""
        touch("notes.txt")
        assert FileSelector(JPG_PATTERN).select(input_dir) == []

    def test_missing_directory(self, tmp_path: Path) -> None:
        """A missing input directory is a setup error."""
        with pytest.raises(InputDirectoryError):
            FileSelector(JPG_PATTERN).select(tmp_path / "missing")

    def test_file_as_directory(self, tmp_path: Path) -> None:
        """A regular file is not a valid input directory."""
        path = tmp_path / "file.jpg"
        path.write_bytes(b"x")
        with pytest.raises(InputDirectoryError):
            FileSelector(JPG_PATTERN).select(path)

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
    def test_symlinked_files_followed(
        self, input_dir: Path, touch: Callable[..., Path], tmp_path: Path
    ) -> None:
        """Symlinked files are selected; symlinked directories are not entered."""
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "o_01.jpg").write_bytes(b"target")
        touch("in_02.jpg")
        try:
            (input_dir / "linkdir").symlink_to(outside, target_is_directory=True)
            (input_dir / "link_03.jpg").symlink_to(outside / "o_01.jpg")
            (input_dir / "broken_04.jpg").symlink_to(tmp_path / "missing.jpg")
        except OSError:
            pytest.skip("cannot create symlinks")
        candidates = FileSelector(JPG_PATTERN).select(input_dir)
        assert [c.name for c in candidates] == ["in_02.jpg", "link_03.jpg"]
        link = candidates[1]
        assert link.path == input_dir / "link_03.jpg"
        assert link.size == len(b"target")
