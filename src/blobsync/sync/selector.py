"""File selection by name pattern.

This module provides:
- FileSelector: Scans a directory tree and produces ordered FileCandidates
- compile_pattern: Validates and compiles a matching pattern
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterator
from pathlib import Path

from blobsync.sync.types import FileCandidate, InputDirectoryError, InvalidPatternError

logger = logging.getLogger(__name__)

SORTER_GROUP = "sorter"

# ``(?<name>...)`` named groups (.NET/PCRE syntax) -> ``(?P<name>...)``
_ANGLE_GROUP = re.compile(r"(?<!\\)\(\?<(?=[A-Za-z_])")


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a matching pattern, case-insensitively.

    Args:
        pattern: Regular expression containing a ``sorter`` named group.

    Returns:
        The compiled pattern.

    Raises:
        InvalidPatternError: If the pattern is malformed or has no sorter group.
    """
    source = _ANGLE_GROUP.sub("(?P<", pattern)
    try:
        compiled = re.compile(source, re.IGNORECASE)
    except re.error as e:
        raise InvalidPatternError(f"Invalid pattern {pattern!r}: {e}") from e
    if SORTER_GROUP not in compiled.groupindex:
        raise InvalidPatternError(
            f"Pattern {pattern!r} must contain a named group '{SORTER_GROUP}'"
        )
    return compiled


class FileSelector:
    """Selects files whose name matches a pattern, ordered by sorter value.

    Usage:
        selector = FileSelector(r"(?<sorter>\\d{2})\\.jpg$")
        candidates = selector.select(Path("/data/photos"))
    """

    def __init__(self, pattern: str) -> None:
        """Initialize the selector.

        Args:
            pattern: Regular expression with a ``sorter`` named group.

        Raises:
            InvalidPatternError: If the pattern is unusable.
        """
        self._pattern = compile_pattern(pattern)

    @property
    def pattern(self) -> re.Pattern[str]:
        """Return the compiled pattern."""
        return self._pattern

    def match(self, name: str) -> str | None:
        """Match a file name.

        Returns:
            The sorter value ("" if the group did not participate), or None
            if the name does not match.
        """
        match = self._pattern.search(name)
        if match is None:
            return None
        return match.group(SORTER_GROUP) or ""

    def select(self, root: Path) -> list[FileCandidate]:
        """Scan a directory tree and return matching files.

        Candidates are sorted ascending by sorter value. The sort is stable,
        so equal values keep their enumeration order: files of a directory by
        name, then its sub-directories by name. Symlinked files are
        selected (their size is the target's); symlinked directories are not
        descended into, and broken links are ignored.

        Args:
            root: Directory to scan recursively.

        Returns:
            Ordered list of candidates.

        Raises:
            InputDirectoryError: If root is missing or not a directory.
        """
        root = Path(root)
        if not root.is_dir():
            raise InputDirectoryError(f"Input directory not found: {root}")

        candidates: list[FileCandidate] = []
        for entry in self._walk(root):
            sort_key = self.match(entry.name)
            if sort_key is None:
                continue
            try:
                size = entry.stat().st_size
            except OSError as e:
                logger.warning(f"Cannot stat {entry.path}: {e}")
                continue
            candidates.append(
                FileCandidate(
                    path=Path(os.path.abspath(entry.path)),
                    name=entry.name,
                    sort_key=sort_key,
                    size=size,
                )
            )

        candidates.sort(key=lambda c: c.sort_key)
        return candidates

    def _walk(self, root: Path) -> Iterator[os.DirEntry[str]]:
        """Yield files below root, not descending into symlinked directories."""
        pending = [str(root)]
        while pending:
            directory = pending.pop()
            try:
                with os.scandir(directory) as it:
                    entries = sorted(it, key=lambda e: e.name)
            except OSError as e:
                if directory == str(root):
                    raise InputDirectoryError(f"Cannot read input directory {root}: {e}") from e
                logger.warning(f"Skipping unreadable directory {directory}: {e}")
                continue
            subdirs: list[str] = []
            for entry in entries:
                if entry.is_dir(follow_symlinks=False):
                    subdirs.append(entry.path)
                elif entry.is_file():
                    yield entry
            # Depth-first, visiting sub-directories in name order
            pending.extend(reversed(subdirs))
