"""Metadata fetches: firmware, gestalt, brightness and LED layout.

Every fetch is tolerant. A failed request or a malformed field leaves the
previously cached value in place and is logged, so a flaky controller
never takes down the render loop.
"""

import logging
from typing import Any

from twinklyrt.exceptions import DeviceError, ParseError
from twinklyrt.models import BrightnessMode, DeviceInfo, LayoutSource, LedLayout

from . import http
from .http import XledHttpClient
from .layout import normalize_layout
from .session import OK, SessionManager

logger = logging.getLogger(__name__)


def firmware_generation(version: str | None) -> int:
    """
    Pick the real-time frame layout for a firmware version.

    1.x firmware speaks generation 1, 2.x before 2.4.14 speaks generation 2,
    anything newer (or unknown) speaks chunked generation 3.
    """
    if not version:
        return 3
    try:
        parts = tuple(int(p) for p in version.split(".")[:3])
    except ValueError:
        return 3
    if parts < (2,):
        return 1
    if parts < (2, 4, 14):
        return 2
    return 3


class MetadataFetcher:
    """Fetches and caches `DeviceInfo` for one controller."""

    def __init__(self, client: XledHttpClient, session: SessionManager):
        self._http = client
        self._session = session
        self._info = DeviceInfo()

    @property
    def info(self) -> DeviceInfo:
        return self._info

    def _update(self, **fields: Any) -> None:
        changed = {k: v for k, v in fields.items() if v is not None}
        if changed:
            self._info = self._info.model_copy(update=changed)

    def fetch_firmware_version(self) -> str | None:
        try:
            data = self._http.get(http.FIRMWARE_VERSION)
        except DeviceError as e:
            logger.warning(f"Could not read firmware version of {self._http.ip}: {e.technical_message}")
            return self._info.firmware_version

        version = data.get("version")
        if isinstance(version, str):
            self._update(firmware_version=version)
            logger.info(f"{self._http.ip}: firmware {version}")
        return self._info.firmware_version

    def fetch_gestalt(self) -> dict[str, Any]:
        """Raw gestalt response. Raises DeviceError on failure."""
        return self._http.get(http.GESTALT, token=self._session.token)

    def fetch_device_info(self) -> DeviceInfo:
        try:
            data = self.fetch_gestalt()
        except DeviceError as e:
            logger.warning(f"Could not read device info of {self._http.ip}: {e.technical_message}")
            return self._info

        def _int(key: str) -> int | None:
            value = data.get(key)
            return value if isinstance(value, int) and value >= 0 else None

        def _str(key: str) -> str | None:
            value = data.get(key)
            return value if isinstance(value, str) else None

        self._update(
            device_name=_str("device_name"),
            mac=_str("mac"),
            product_code=_str("product_code"),
            hardware_revision=_str("hardware_version"),
            led_count=_int("number_of_led"),
            bytes_per_led=_int("bytes_per_led"),
        )
        logger.info(
            f"{self._http.ip}: {self._info.device_name} ({self._info.product_code}), "
            f"{self._info.led_count} LEDs, {self._info.bytes_per_led} bytes/LED"
        )
        return self._info

    def fetch_brightness(self) -> int | None:
        """Read current brightness; remember it if output is enabled."""
        try:
            data = self._http.get(http.BRIGHTNESS, token=self._session.token)
        except DeviceError as e:
            logger.warning(f"Could not read brightness of {self._http.ip}: {e.technical_message}")
            return self._info.previous_brightness

        value = data.get("value")
        if data.get("mode") == BrightnessMode.ENABLED.value and isinstance(value, int):
            self._update(previous_brightness=value)
        return self._info.previous_brightness

    def fetch_led_mode(self) -> str | None:
        try:
            data = self._http.get(http.LED_MODE, token=self._session.token)
        except DeviceError as e:
            logger.debug(f"Could not read LED mode of {self._http.ip}: {e.technical_message}")
            return None
        mode = data.get("mode")
        return mode if isinstance(mode, str) else None

    def fetch_layout(self, x_scale: int, y_scale: int) -> LedLayout | None:
        """
        Fetch /led/layout/full and normalize it to the canvas grid.

        Returns None (and keeps the caller's layout) on any failure.
        """
        try:
            data = self._http.get(http.LAYOUT, token=self._session.token)
            if data.get("code", OK) != OK:
                raise ParseError(self._http.ip, http.LAYOUT, f"status code {data.get('code')}")

            coordinates = data.get("coordinates")
            if not isinstance(coordinates, list):
                raise ParseError(self._http.ip, http.LAYOUT, "missing coordinates")

            source = data.get("source", LayoutSource.TWO_D.value)
            layout = normalize_layout(coordinates, source, x_scale, y_scale)
        except DeviceError as e:
            logger.warning(f"Could not read layout of {self._http.ip}: {e.technical_message}")
            return None
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Malformed layout from {self._http.ip}: {e!r}")
            return None

        logger.debug(
            f"{self._http.ip}: layout {layout.led_count} LEDs on {layout.width}x{layout.height} grid"
        )
        return layout
