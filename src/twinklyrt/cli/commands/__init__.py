"""CLI commands for twinklyrt."""

from .cache import cache_group
from .config import config
from .discover import discover
from .info import info
from .run import run

__all__ = ["cache_group", "config", "discover", "info", "run"]
