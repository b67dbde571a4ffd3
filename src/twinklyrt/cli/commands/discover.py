"""Discovery command implementation."""

import logging
import time

import click

from twinklyrt.discovery import DeviceCache, DiscoveryManager, JsonSettingsStore

from .common import load_config

logger = logging.getLogger(__name__)


@click.command(name="discover")
@click.option(
    "--timeout", "-t",
    type=float,
    default=5.0,
    show_default=True,
    help="Seconds to listen for replies",
)
@click.option(
    "--ip",
    "ips",
    multiple=True,
    help="Confirm a controller by address instead of broadcasting (repeatable)",
)
@click.option(
    "--cached/--no-cached",
    default=True,
    help="Also reconnect devices from the cache (default: enabled)",
)
@click.pass_context
def discover(ctx, timeout: float, ips: tuple[str, ...], cached: bool):
    """
    Find Twinkly controllers and add them to the device cache.

    Broadcasts a discovery request on UDP port 5555 and confirms every
    controller that answers. With --ip, only the given addresses are checked.
    """
    app_config = load_config(ctx)
    cache = DeviceCache(JsonSettingsStore(app_config.state_path))
    manager = DiscoveryManager(
        cache,
        poll_interval=app_config.discovery_poll_interval,
        http_timeout=app_config.http_timeout,
    )
    service = manager.service

    if ips:
        for ip in ips:
            ok = service.force_discover(ip)
            click.echo(f"  {ip}: {'confirmed' if ok else 'not a Twinkly controller'}")
    else:
        click.echo(f"Listening for Twinkly controllers for {timeout:.0f}s...")
        try:
            manager.start(load_cached=cached)
        except OSError as e:
            raise click.ClickException(f"Could not open discovery socket: {e}")

        try:
            time.sleep(timeout)
        except KeyboardInterrupt:
            click.echo("\nStopping discovery...")
        finally:
            manager.stop()

    records = service.records
    if not records:
        click.echo("\nNo devices found.")
        return

    click.echo(f"\nFound {len(records)} device(s):\n")
    for record in records.values():
        click.echo(f"  {record.name:<24} {record.id:<20} {record.ip}")
