"""Main CLI entry point."""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

import click

from twinklyrt import __version__
from twinklyrt.models import AppConfig

from .commands import cache_group, config, discover, info, run

logger = logging.getLogger(__name__)


def setup_logging(verbose: int, debug: bool, log_file: Optional[Path], log_level: str) -> Path:
    """
    Configure logging for the application.

    Args:
        verbose: Verbosity count (0 = WARNING, 1 = INFO, 2+ = DEBUG)
        debug: If True, enable debug mode with file logging in the current directory
        log_file: Custom log file path (optional)
        log_level: Log level for file logging (DEBUG/INFO/WARNING/ERROR)

    Returns:
        Path of the log file in use
    """
    if debug or verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    # Override with explicit log level if provided
    if log_file:
        level = getattr(logging, log_level.upper())

    if debug and not log_file:
        log_path = Path.cwd() / "twinklyrt-debug.log"
    elif log_file:
        log_path = log_file
    else:
        log_dir = Path.home() / ".twinklyrt" / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path = log_dir / "twinklyrt.log"

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Keeps last 5 files, max 10MB each
    file_handler = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=10 * 1024 * 1024,
        backupCount=5
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(file_handler)

    # Console gets warnings unless -v was given
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level if verbose else logging.WARNING)
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    root_logger.addHandler(console_handler)

    logger.info(f"Logging configured: level={logging.getLevelName(level)}, file={log_path}")
    return log_path


@click.group()
@click.pass_context
@click.version_option(version=__version__, prog_name="twinklyrt")
@click.option(
    '--config', 'config_path',
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help='Config file (default: ~/.twinklyrt/config.json)'
)
@click.option(
    '-v', '--verbose',
    count=True,
    help='Increase verbosity (-v: INFO, -vv: DEBUG)'
)
@click.option(
    '--debug',
    is_flag=True,
    help='Enable debug mode (DEBUG level, logs to ./twinklyrt-debug.log)'
)
@click.option(
    '--log-file',
    type=click.Path(path_type=Path),
    default=None,
    help='Custom log file path'
)
@click.option(
    '--log-level',
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
    default='INFO',
    help='Log level for file logging (default: INFO)'
)
def cli(
    ctx,
    config_path: Optional[Path],
    verbose: int,
    debug: bool,
    log_file: Optional[Path],
    log_level: str
):
    """
    Twinkly RT - drive Twinkly LED controllers in real-time mode.

    \b
    Examples:
      # Find controllers on the local network
      twinklyrt discover

      # Add a controller by address
      twinklyrt discover --ip 192.168.1.40

      # Show what a controller reports about itself
      twinklyrt info 192.168.1.40

      # Play a rainbow for 30 seconds
      twinklyrt run 192.168.1.40 --pattern rainbow --seconds 30

      # Change the default frame rate limit
      twinklyrt config set device.fps_limit 60
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path or AppConfig.default_path()
    ctx.obj["log_path"] = setup_logging(verbose, debug, log_file, log_level)


cli.add_command(discover)
cli.add_command(cache_group)
cli.add_command(info)
cli.add_command(run)
cli.add_command(config)

if __name__ == "__main__":
    cli()
