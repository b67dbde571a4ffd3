"""Session handshake and device control calls.

Handshake sequence against /xled/v1:

```
login(challenge)  ──►  authentication_token, challenge-response
verify(challenge-response, X-Auth-Token)  ──►  code 1000
decode(token)  ──►  raw token bytes embedded in every UDP frame header
```

The active `DeviceSession` is an immutable value. It is swapped as a whole
after a successful decode, so the frame encoder never observes a token
paired with the wrong decoded bytes.
"""

import base64
import binascii
import logging
import secrets
import threading
from dataclasses import dataclass
from typing import Any

from twinklyrt.exceptions import AuthError, DeviceError, ProtocolError, handle_errors
from twinklyrt.models import BrightnessMode, LedMode

from . import http
from .http import XledHttpClient

logger = logging.getLogger(__name__)

CHALLENGE_BYTES = 32

OK = 1000

STATUS_CODES: dict[int, str] = {
    1000: "Ok",
    1001: "Error",
    1101: "Invalid Argument",
    1102: "Error",
    1103: "Error, Value too long or missing required object key?",
    1104: "Error, Malformed Json?",
    1105: "Invalid Argument Key",
    1107: "Ok?",
    1108: "Ok?",
    1205: "Error With Firmware Upgrade",
}


def describe_status(code: Any) -> str:
    """Map a device status code to its human-readable status."""
    return STATUS_CODES.get(code, "Unknown") if isinstance(code, int) else "Unknown"


@dataclass(frozen=True)
class DeviceSession:
    """An authenticated session: the token string and its decoded bytes."""

    token: str
    decoded: bytes


class SessionManager:
    """
    Owns the login/verify/decode handshake and the token-authenticated
    control calls for one controller.

    Control calls (`set_led_mode`, `set_brightness`, `set_current_effect`)
    are fire-and-forget: failures are logged and reported as False, never
    raised. Callers that must not block submit them to a worker pool.
    """

    def __init__(self, client: XledHttpClient):
        self._http = client
        self._lock = threading.Lock()

        # Result of the last login, not yet decoded
        self._token: str | None = None
        self._challenge_response: str | None = None

        self._session: DeviceSession | None = None

    @property
    def ip(self) -> str:
        return self._http.ip

    @property
    def token(self) -> str | None:
        """Token of the active session (None before the first decode)."""
        session = self._session
        return session.token if session else None

    @property
    def session(self) -> DeviceSession | None:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    # =================================================================
    # Handshake
    # =================================================================

    def login(self) -> tuple[str, str | None]:
        """
        Send a random challenge and store the returned token.

        Returns:
            (authentication_token, challenge-response)

        Raises:
            AuthError: If the request fails or no token is returned
        """
        challenge = base64.b64encode(secrets.token_bytes(CHALLENGE_BYTES)).decode("ascii")

        try:
            data = self._http.post(http.LOGIN, {"challenge": challenge})
        except DeviceError as e:
            raise AuthError(self.ip, f"login request failed: {e.technical_message}") from e

        token = data.get("authentication_token")
        if not isinstance(token, str) or not token:
            raise AuthError(self.ip, "login response has no authentication_token")

        challenge_response = data.get("challenge-response")
        if not isinstance(challenge_response, str):
            challenge_response = None

        with self._lock:
            self._token = token
            self._challenge_response = challenge_response

        logger.debug(f"Logged in to {self.ip}")
        return token, challenge_response

    def verify_token(self, token: str | None = None, challenge_response: str | None = None) -> bool:
        """Confirm the login with the device. Returns True on status 1000."""
        token = token or self._token
        if challenge_response is None:
            challenge_response = self._challenge_response

        if not token:
            logger.warning(f"Cannot verify {self.ip}: not logged in")
            return False

        try:
            data = self._http.post(
                http.VERIFY, {"challenge-response": challenge_response or ""}, token=token
            )
        except DeviceError as e:
            logger.warning(f"Token verification for {self.ip} failed: {e.technical_message}")
            return False

        code = data.get("code")
        if code != OK:
            logger.warning(f"Token verification for {self.ip} rejected: {describe_status(code)}")
            return False
        return True

    def decode_token(self) -> bytes:
        """
        Base64-decode the stored token and make it the active session.

        Raises:
            AuthError: If there is no token or it is not valid base64
        """
        token = self._token
        if not token:
            raise AuthError(self.ip, "no token to decode, login first")

        try:
            decoded = base64.b64decode(token, validate=True)
        except (binascii.Error, ValueError) as e:
            raise AuthError(self.ip, f"token is not valid base64: {e}") from e

        with self._lock:
            self._session = DeviceSession(token=token, decoded=decoded)
        return decoded

    def authenticate(self) -> DeviceSession:
        """
        Run the full handshake: login, verify, decode.

        The previous session stays active unless every step succeeds.

        Raises:
            AuthError: On any handshake failure
        """
        self.login()
        if not self.verify_token():
            raise AuthError(self.ip, "token verification rejected")
        self.decode_token()

        logger.info(f"Authenticated with Twinkly device at {self.ip}")
        return self._session

    # =================================================================
    # Health
    # =================================================================

    def check_health(self) -> str:
        """
        Read the LED mode and classify the session.

        Returns "Ok" only if the device answers code 1000 in mode "rt".
        Never raises: transport or parse failures return "Error".
        """
        try:
            data = self._http.get(http.LED_MODE, token=self.token)
        except DeviceError as e:
            logger.debug(f"Health check for {self.ip} failed: {e.technical_message}")
            return "Error"

        status = describe_status(data.get("code"))
        if status == "Ok" and data.get("mode") != LedMode.RT.value:
            return "Incorrect Mode"
        return status

    # =================================================================
    # Control (fire-and-forget)
    # =================================================================

    @handle_errors(
        operation_name="set LED mode", fallback_value=False, re_raise=False, log_level=logging.WARNING
    )
    def set_led_mode(self, mode: LedMode | str) -> bool:
        mode = LedMode(mode)
        self._post_checked(http.LED_MODE, {"mode": mode.value})
        logger.debug(f"{self.ip}: LED mode -> {mode.value}")
        return True

    @handle_errors(
        operation_name="set brightness", fallback_value=False, re_raise=False, log_level=logging.WARNING
    )
    def set_brightness(
        self, mode: BrightnessMode | str, value: int, brightness_type: str = "A"
    ) -> bool:
        """Set output brightness. `brightness_type` "A" means absolute."""
        mode = BrightnessMode(mode)
        self._post_checked(
            http.BRIGHTNESS, {"mode": mode.value, "type": brightness_type, "value": int(value)}
        )
        logger.debug(f"{self.ip}: brightness -> {mode.value} {value}")
        return True

    @handle_errors(
        operation_name="set current effect",
        fallback_value=False,
        re_raise=False,
        log_level=logging.WARNING,
    )
    def set_current_effect(self, preset_id: int) -> bool:
        self._post_checked(http.CURRENT_EFFECT, {"preset_id": int(preset_id)})
        return True

    def _post_checked(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        data = self._http.post(path, body, token=self.token)
        code = data.get("code", OK)
        if code != OK:
            raise ProtocolError(self.ip, path, code, describe_status(code))
        return data
