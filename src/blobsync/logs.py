"""Logging setup and run-scoped logging context.

This module provides:
- setup_logging: Configure the ``blobsync`` logger (stdout and/or file)
- ContextFormatter: Formatter appending run context as key=value pairs
- RunLogger: LoggerAdapter carrying run context, passed to components
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from datetime import datetime
from pathlib import Path
from typing import Any

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_PLACEHOLDER = "{date}"


class ContextFormatter(logging.Formatter):
    """Formatter that renders ``record.context`` after the message."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = getattr(record, "context", None)
        if not context:
            return message
        pairs = " ".join(f"{key}={value}" for key, value in context.items())
        return f"{message} [{pairs}]"


class RunLogger(logging.LoggerAdapter):  # type: ignore[type-arg]
    """Logger adapter holding the context of one run.

    The context travels on each record as ``record.context`` (a dict) and
    per-call context can be added with ``extra={"context": {...}}``.

    Usage:
        log = RunLogger(logging.getLogger(__name__), {"container": "photos"})
        file_log = log.bind(file="a_01.jpg")
        file_log.info("Transferred ok")
    """

    def __init__(self, logger: logging.Logger, context: dict[str, Any] | None = None) -> None:
        super().__init__(logger, dict(context or {}))

    @property
    def context(self) -> dict[str, Any]:
        """Return a copy of the bound context."""
        return dict(self.extra or {})

    def bind(self, **context: Any) -> RunLogger:
        """Return a child logger with additional context."""
        return RunLogger(self.logger, {**self.context, **context})

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        call_context = extra.pop("context", None) or {}
        extra["context"] = {**self.context, **call_context}
        kwargs["extra"] = extra
        return msg, kwargs


def resolve_log_path(log_file: str | Path, now: datetime | None = None) -> Path:
    """Expand the ``{date}`` placeholder in a log file name.

    Args:
        log_file: File name, optionally containing ``{date}``.
        now: Date to substitute (defaults to today).

    Returns:
        Path with the placeholder replaced by ``YYYYMMDD``.
    """
    now = now or datetime.now()
    return Path(str(log_file).replace(DATE_PLACEHOLDER, now.strftime("%Y%m%d")))


def setup_logging(
    log_file: str | Path | None = None,
    console: bool = True,
    level: int = logging.INFO,
) -> logging.Logger:
    """Configure logging to stdout and/or a file.

    Replaces handlers previously installed by this function, so it can be
    called once per CLI invocation.

    Args:
        log_file: Optional log file name (``{date}`` is expanded).
        console: Whether to log to stdout.
        level: Level for the ``blobsync`` logger.

    Returns:
        The configured ``blobsync`` logger.
    """
    formatter = ContextFormatter(LOG_FORMAT)

    root_logger = logging.getLogger("blobsync")
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    if console:
        stdout_handler = logging.StreamHandler(sys.stdout)
        stdout_handler.setFormatter(formatter)
        root_logger.addHandler(stdout_handler)

    if log_file is not None:
        log_path = resolve_log_path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    if not root_logger.handlers:
        root_logger.addHandler(logging.NullHandler())

    return root_logger
