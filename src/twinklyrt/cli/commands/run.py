"""Run command implementation: stream frames to one controller."""

import logging
import time

import click

from twinklyrt.device import DeviceController
from twinklyrt.exceptions import TwinklyError
from twinklyrt.models import Color, LightingMode, SignalSettings

from ..sources import RainbowSource, SolidColor
from .common import exit_with_error, load_config

logger = logging.getLogger(__name__)


def run_settings(settings: SignalSettings, forced: bool, color: str) -> SignalSettings:
    """
    Settings for an interactive run.

    Idle power-off is disabled: a static pattern or a forced color stops
    changing, and the run must keep the device lit until the user stops it.
    A forced color is resent at least every second so the controller stays
    in real-time mode.
    """
    update: dict = {"immediate_pause_off": False, "off_when_idle": False}
    if forced:
        update["lighting_mode"] = LightingMode.FORCED
        update["forced_color"] = Color.from_hex(color)
        update["keepalive_seconds"] = max(settings.keepalive_seconds, 1)
    return settings.model_copy(update=update)


@click.command(name="run")
@click.argument("ip")
@click.option(
    "--pattern", "-p",
    type=click.Choice(["solid", "rainbow"], case_sensitive=False),
    default="rainbow",
    show_default=True,
    help="Built-in pattern to render",
)
@click.option(
    "--color", "-c",
    default="#FFFFFF",
    show_default=True,
    help="Color for the solid pattern (#RRGGBB)",
)
@click.option(
    "--forced",
    is_flag=True,
    help="Use Forced lighting mode with --color instead of rendering a pattern",
)
@click.option(
    "--seconds", "-s",
    type=float,
    default=None,
    help="Stop after this many seconds (default: until Ctrl+C)",
)
@click.pass_context
def run(ctx, ip: str, pattern: str, color: str, forced: bool, seconds: float | None):
    """
    Stream real-time frames to the controller at IP.

    On exit the controller is switched off according to the configured
    shutdown settings.
    """
    app_config = load_config(ctx)
    settings = run_settings(app_config.device, forced, color)

    source = (
        SolidColor(Color.from_hex(color))
        if pattern.lower() == "solid"
        else RainbowSource(width=10 * settings.x_scale + 1)
    )

    controller = DeviceController(
        ip,
        source,
        settings,
        http_timeout=app_config.http_timeout,
        health_check_interval=app_config.health_check_interval,
    )

    with controller:
        click.echo(f"Connecting to {ip}...")
        if not controller.initialize():
            exit_with_error(
                ctx,
                TwinklyError(
                    f"Could not take control of the Twinkly device at {ip}.",
                    recovery_hint="Run 'twinklyrt info' to check the device.",
                ),
            )

        click.echo(
            f"Streaming {pattern if not forced else 'forced color'} to "
            f"{controller.info.device_name or ip} ({controller.layout.led_count} LEDs). "
            "Press Ctrl+C to stop."
        )

        interval = 1.0 / app_config.tick_rate
        deadline = time.monotonic() + seconds if seconds is not None else None
        try:
            while deadline is None or time.monotonic() < deadline:
                controller.on_tick()
                time.sleep(interval)
        except KeyboardInterrupt:
            click.echo("\nStopping...")
        finally:
            controller.on_shutdown(suspending=False)
            logger.info(f"Stopped streaming to {ip}")
