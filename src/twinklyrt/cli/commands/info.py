"""Device info command implementation."""

import click

from twinklyrt.device import MetadataFetcher, SessionManager, XledHttpClient, get_product_catalog
from twinklyrt.exceptions import TwinklyError

from .common import exit_with_error, load_config


@click.command(name="info")
@click.argument("ip")
@click.pass_context
def info(ctx, ip: str):
    """Show what the controller at IP reports about itself."""
    app_config = load_config(ctx)
    settings = app_config.device

    with XledHttpClient(ip, timeout=app_config.http_timeout) as client:
        session = SessionManager(client)
        fetcher = MetadataFetcher(client, session)

        firmware = fetcher.fetch_firmware_version()
        try:
            session.authenticate()
        except TwinklyError as e:
            exit_with_error(ctx, e)

        device = fetcher.fetch_device_info()
        brightness = fetcher.fetch_brightness()
        mode = fetcher.fetch_led_mode()
        layout = fetcher.fetch_layout(settings.x_scale, settings.y_scale)

    product = get_product_catalog().lookup(device.product_code)

    click.echo(f"Device:      {device.device_name or 'unknown'}")
    click.echo(f"Product:     {product.family} ({device.product_code or 'unknown'})")
    click.echo(f"MAC:         {device.mac or 'unknown'}")
    click.echo(f"Hardware:    {device.hardware_revision or 'unknown'}")
    click.echo(f"Firmware:    {firmware or 'unknown'}")
    click.echo(f"LEDs:        {device.led_count} x {device.bytes_per_led} bytes")
    click.echo(f"LED mode:    {mode or 'unknown'}")
    click.echo(f"Brightness:  {brightness if brightness is not None else 'disabled'}")
    if layout is not None:
        click.echo(f"Layout:      {layout.led_count} LEDs on a {layout.width}x{layout.height} grid")
    else:
        click.echo("Layout:      unavailable")
