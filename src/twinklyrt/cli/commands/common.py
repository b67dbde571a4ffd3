"""Shared helpers for CLI commands."""

import logging
import sys
from pathlib import Path

import click

from twinklyrt.exceptions import TwinklyError, format_error_for_display
from twinklyrt.models import AppConfig

logger = logging.getLogger(__name__)


def config_path(ctx: click.Context) -> Path:
    obj = ctx.find_root().obj or {}
    return obj.get("config_path") or AppConfig.default_path()


def load_config(ctx: click.Context) -> AppConfig:
    """Load the app config, exiting with a readable message if it is broken."""
    try:
        return AppConfig.load_or_default(config_path(ctx))
    except TwinklyError as e:
        exit_with_error(ctx, e)


def exit_with_error(ctx: click.Context, error: Exception) -> None:
    """Print an error without a traceback and exit with status 1."""
    logger.error(f"Command failed: {error}")

    user_message, recovery_hint = format_error_for_display(error)

    click.echo("\n" + "=" * 70, err=True)
    click.echo(f"ERROR: {user_message}", err=True)
    click.echo("=" * 70, err=True)

    if recovery_hint:
        click.echo(f"\n{recovery_hint}", err=True)

    log_path = (ctx.find_root().obj or {}).get("log_path")
    if log_path:
        click.echo(f"\nFor details, check the log file: {log_path}", err=True)

    sys.exit(1)
