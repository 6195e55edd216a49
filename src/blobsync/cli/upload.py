"""Upload command for the blobsync CLI.

Commands:
- upload: Upload the matching files of a directory tree to a container
"""

from __future__ import annotations

import logging
import signal
import sys
from collections.abc import Iterator
from contextlib import contextmanager, nullcontext
from pathlib import Path

import click

from blobsync.cli.config import load_config
from blobsync.core.config import DEFAULT_PARALLEL_OPERATIONS, UploadConfig
from blobsync.core.lock import LockHeldError, run_lock
from blobsync.logs import setup_logging
from blobsync.storage import STORE_TYPES, create_store, store_config_from_env
from blobsync.sync import BulkUploader, RunSummary, SetupError

logger = logging.getLogger(__name__)

EXIT_FAILURES = 1
EXIT_CANCELLED = 130


def build_store_config(
    store_type: str | None, overrides: dict[str, str | None]
) -> dict[str, str | None]:
    """Merge store settings: command-line options > config file > environment.

    Args:
        store_type: Store type given on the command line, if any.
        overrides: Store settings given on the command line.

    Returns:
        Store configuration for create_store().
    """
    file_config = load_config()
    resolved_type = store_type or file_config.get("store")
    config = store_config_from_env(resolved_type)
    for key, value in file_config.items():
        if key in ("store", "parallel"):
            continue
        if value:
            config[key] = value
    for key, value in overrides.items():
        if value:
            config[key] = value
    return config


@contextmanager
def interrupt_cancels(uploader: BulkUploader) -> Iterator[None]:
    """Turn Ctrl+C into a cancellation request for the duration of a run."""

    def handler(signum: int, frame: object) -> None:
        click.echo("Cancelling upload run...", err=True)
        uploader.cancel()

    try:
        previous = signal.signal(signal.SIGINT, handler)
    except ValueError:
        # Not on the main thread; leave the default handler in place
        yield
        return
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def run_upload(
    input_dir: Path,
    container: str,
    pattern: str,
    parallel: int,
    store_config: dict[str, str | None],
) -> RunSummary:
    """Create the store and run one upload, exiting on setup errors."""
    try:
        config = UploadConfig(
            input_dir=input_dir,
            container=container,
            pattern=pattern,
            max_parallel=parallel,
        )
        store = create_store(store_config, container)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_FAILURES)
    except ImportError as e:
        click.echo(f"Error: {e}. Install the S3 extra: pip install 'blobsync[s3]'", err=True)
        sys.exit(EXIT_FAILURES)

    try:
        uploader = BulkUploader(store, config)
        with interrupt_cancels(uploader):
            return uploader.run()
    except SetupError as e:
        logger.error(f"Setup failed: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_FAILURES)
    finally:
        store.close()


@click.command()
@click.argument("input_dir", type=click.Path(path_type=Path, file_okay=False))
@click.argument("container")
@click.argument("pattern")
@click.option("--store", "store_type", type=click.Choice(STORE_TYPES), help="Store backend.")
@click.option("--local-path", help="Base directory of the local store.")
@click.option("--endpoint-url", help="S3 endpoint URL (OVH, MinIO, ...).")
@click.option("--region", help="S3 region.")
@click.option("--account-url", help="Base URL of the HTTP blob store.")
@click.option(
    "--parallel",
    "-p",
    type=click.IntRange(min=1),
    help=f"Maximum simultaneous uploads [default: {DEFAULT_PARALLEL_OPERATIONS}].",
)
@click.option("--log-file", help="Log file name; {date} is replaced by the current date.")
@click.option(
    "--lock-file",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Refuse to start while another run holds this lock file.",
)
@click.option("--no-console", is_flag=True, help="Do not log to the console.")
@click.option("--verbose", "-v", is_flag=True, help="Log debug messages.")
def upload(
    input_dir: Path,
    container: str,
    pattern: str,
    store_type: str | None,
    local_path: str | None,
    endpoint_url: str | None,
    region: str | None,
    account_url: str | None,
    parallel: int | None,
    log_file: str | None,
    lock_file: Path | None,
    no_console: bool,
    verbose: bool,
) -> None:
    """Upload files of INPUT_DIR matching PATTERN to CONTAINER.

    PATTERN is a regular expression matched against file names; it must
    contain a named group 'sorter' that orders the uploads, e.g.
    '(?<sorter>\\d{2})\\.jpg$'. Files whose content is already in the
    container are skipped, as are empty files.
    """
    setup_logging(
        log_file=log_file,
        console=not no_console,
        level=logging.DEBUG if verbose else logging.INFO,
    )

    file_config = load_config()
    if parallel is None:
        parallel = int(file_config.get("parallel") or DEFAULT_PARALLEL_OPERATIONS)

    store_config = build_store_config(
        store_type,
        {
            "local_path": local_path,
            "endpoint_url": endpoint_url,
            "region": region,
            "account_url": account_url,
        },
    )

    try:
        with run_lock(lock_file) if lock_file else nullcontext():
            summary = run_upload(input_dir, container, pattern, parallel, store_config)
    except LockHeldError as e:
        logger.error(f"Not starting: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_FAILURES)

    click.echo(
        f"{summary.total_matched} matched: {summary.succeeded} uploaded, "
        f"{summary.skipped} skipped, {summary.failed} failed"
    )
    if summary.cancelled:
        click.echo("Upload cancelled.", err=True)
        sys.exit(EXIT_CANCELLED)
    if summary.failed:
        sys.exit(EXIT_FAILURES)
