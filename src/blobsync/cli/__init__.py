"""Command-line interface for blobsync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- upload: Upload matching files to a container
- config: Show or change saved settings
"""

from __future__ import annotations

import click

from blobsync.cli.config import (
    config_group,
    get_config_dir,
    get_config_file,
    load_config,
    save_config,
)
from blobsync.cli.upload import upload


@click.group()
@click.version_option(package_name="blobsync")
def cli() -> None:
    """blobsync - Content-aware bulk upload to object storage."""


cli.add_command(upload)
cli.add_command(config_group)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    "cli",
    "main",
    "get_config_dir",
    "get_config_file",
    "load_config",
    "save_config",
]
