"""Device cache command implementations."""

import click

from twinklyrt.discovery import DeviceCache, JsonSettingsStore

from .common import load_config


def _open_cache(ctx: click.Context) -> DeviceCache:
    return DeviceCache(JsonSettingsStore(load_config(ctx).state_path))


@click.group(name="cache")
def cache_group():
    """Inspect and manage the cache of confirmed devices."""
    pass


@cache_group.command(name="list")
@click.pass_context
def list_cache(ctx):
    """List cached devices."""
    entries = _open_cache(ctx).entries()

    if not entries:
        click.echo("Device cache is empty.")
        return

    click.echo("Cached devices:\n")
    for key, entry in entries:
        click.echo(f"  {entry.name:<24} {key:<20} {entry.ip}:{entry.port}")


@cache_group.command(name="remove")
@click.argument("device_id")
@click.pass_context
def remove_cache(ctx, device_id: str):
    """Remove one device from the cache by id (MAC address)."""
    if _open_cache(ctx).remove(device_id):
        click.echo(f"Removed {device_id}")
    else:
        click.echo(f"{device_id} is not in the cache", err=True)
        ctx.exit(1)


@cache_group.command(name="purge")
@click.confirmation_option(prompt="Forget every cached device?")
@click.pass_context
def purge_cache(ctx):
    """Forget every cached device."""
    _open_cache(ctx).purge()
    click.echo("Device cache purged.")
