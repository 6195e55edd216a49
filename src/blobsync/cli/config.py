"""Configuration utilities and commands for the blobsync CLI.

This module provides shared configuration functions used across CLI
commands, and the ``config`` command group.

Commands:
- config show: Print the saved configuration
- config set: Save one setting
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

# Settings that may be saved in config.json; secrets stay in the environment
CONFIG_KEYS = (
    "store",
    "local_path",
    "endpoint_url",
    "region",
    "account_url",
    "timeout",
    "parallel",
)


def get_config_dir() -> Path:
    """Get the configuration directory for blobsync.

    Returns:
        Path to $BLOBSYNC_HOME, or ~/.blobsync.
    """
    home = os.environ.get("BLOBSYNC_HOME")
    if home:
        return Path(home).expanduser()
    return Path.home() / ".blobsync"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def load_config() -> dict[str, str]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if config_file.exists():
        return dict(json.loads(config_file.read_text(encoding="utf-8")))
    return {}


def save_config(config: dict[str, str]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2), encoding="utf-8")


@click.group(name="config")
def config_group() -> None:
    """Show or change saved settings."""


@config_group.command(name="show")
def show() -> None:
    """Print the saved configuration."""
    config = load_config()
    if not config:
        click.echo(f"No configuration saved ({get_config_file()})")
        return
    for key in sorted(config):
        click.echo(f"{key} = {config[key]}")


@config_group.command(name="set")
@click.argument("key")
@click.argument("value")
def set_value(key: str, value: str) -> None:
    """Save KEY = VALUE in the configuration file."""
    if key not in CONFIG_KEYS:
        click.echo(
            f"Error: Unknown setting '{key}'. Valid settings: {', '.join(CONFIG_KEYS)}",
            err=True,
        )
        sys.exit(1)
    if key == "parallel" and (not value.isdigit() or int(value) < 1):
        click.echo("Error: parallel must be a positive integer", err=True)
        sys.exit(1)

    config = load_config()
    config[key] = value
    save_config(config)
    click.echo(f"Saved {key} = {value}")
