"""
Config command implementations.

Commands:
    - config show [--field FIELD]       # Display configuration
    - config set FIELD VALUE            # Update one field (dotted path)
    - config reset [--field FIELD]      # Reset to defaults

Fields are addressed by dotted path, e.g. `http_timeout` or
`device.fps_limit`. Values are validated by the AppConfig model before
anything is written.
"""

import json
from typing import Any

import click
from pydantic import ValidationError

from twinklyrt.exceptions import wrap_pydantic_error
from twinklyrt.models import AppConfig

from .common import config_path, exit_with_error, load_config


def _get_path(data: dict[str, Any], field: str) -> Any:
    value: Any = data
    for part in field.split("."):
        if not isinstance(value, dict) or part not in value:
            raise click.BadParameter(f"Unknown field: {field}", param_hint="FIELD")
        value = value[part]
    return value


def _set_path(data: dict[str, Any], field: str, value: Any) -> None:
    parts = field.split(".")
    target = data
    for part in parts[:-1]:
        if not isinstance(target.get(part), dict):
            raise click.BadParameter(f"Unknown field: {field}", param_hint="FIELD")
        target = target[part]
    if parts[-1] not in target:
        raise click.BadParameter(f"Unknown field: {field}", param_hint="FIELD")
    target[parts[-1]] = value


def _parse_value(raw: str) -> Any:
    """Interpret VALUE as JSON when possible ("60", "true"), else as a string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _echo_tree(data: dict[str, Any], indent: int = 0) -> None:
    for key, value in data.items():
        if isinstance(value, dict):
            click.echo(f"{'  ' * indent}{key}:")
            _echo_tree(value, indent + 1)
        else:
            click.echo(f"{'  ' * indent}{key}: {value}")


@click.group(name="config")
def config():
    """Configure twinklyrt settings."""
    pass


@config.command(name="show")
@click.option("--field", "-f", default=None, help="Show a single field (dotted path)")
@click.pass_context
def show_config(ctx, field: str | None):
    """Display the current configuration."""
    data = load_config(ctx).model_dump(mode="json")

    if field:
        value = _get_path(data, field)
        if isinstance(value, dict):
            _echo_tree(value)
        else:
            click.echo(f"{field}: {value}")
        return

    click.echo(f"Configuration ({config_path(ctx)}):\n")
    _echo_tree(data)


@config.command(name="set")
@click.argument("field")
@click.argument("value")
@click.pass_context
def set_config(ctx, field: str, value: str):
    """Set FIELD to VALUE and save."""
    path = config_path(ctx)
    data = load_config(ctx).model_dump(mode="json")
    _set_path(data, field, _parse_value(value))

    try:
        updated = AppConfig.model_validate(data)
    except ValidationError as e:
        exit_with_error(ctx, wrap_pydantic_error(e, str(path)))

    updated.save(path)
    click.echo(f"{field} = {_get_path(updated.model_dump(mode='json'), field)}")


@config.command(name="reset")
@click.option("--field", "-f", default=None, help="Reset a single field (dotted path)")
@click.pass_context
def reset_config(ctx, field: str | None):
    """Reset the configuration (or one field) to defaults."""
    path = config_path(ctx)
    defaults = AppConfig().model_dump(mode="json")

    if field is None:
        AppConfig().save(path)
        click.echo("Configuration reset to defaults.")
        return

    data = load_config(ctx).model_dump(mode="json")
    _set_path(data, field, _get_path(defaults, field))
    AppConfig.model_validate(data).save(path)
    click.echo(f"{field} reset to {_get_path(defaults, field)}")
