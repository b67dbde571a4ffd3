"""Device communication exceptions.

This module defines the errors raised by the device HTTP layer:
- DeviceError: Base class for errors talking to a controller
- NetworkError: Request failed or timed out
- AuthError: Login or token verification was rejected
- ParseError: Response body missing or malformed
- ProtocolError: Device answered with a non-success status code

None of these are fatal. Call sites on the render, idle and health paths
catch them, log, and treat the cycle as "no update".
"""

from typing import Optional

from .base import TwinklyError


class DeviceError(TwinklyError):
    """Communication with a controller failed."""

    def __init__(self, user_message: str, ip: Optional[str] = None, **kwargs):
        """
        Initialize device error.

        Args:
            user_message: User-friendly error message
            ip: Address of the controller involved (if known)
        """
        kwargs.setdefault("recoverable", True)
        super().__init__(user_message, **kwargs)
        self.ip = ip


class NetworkError(DeviceError):
    """HTTP request to the controller failed or timed out."""

    def __init__(self, ip: Optional[str], path: str, original_error: Optional[str] = None):
        user_msg = f"Could not reach Twinkly device at {ip}."
        tech_msg = f"Request to http://{ip}{path} failed"
        if original_error:
            tech_msg += f": {original_error}"

        super().__init__(
            user_msg,
            ip=ip,
            technical_message=tech_msg,
            recovery_hint=(
                "Check that the device is powered on and on the same network. "
                "Run 'twinklyrt discover' to find its current address."
            ),
        )
        self.path = path


class AuthError(DeviceError):
    """Login handshake or token verification was rejected."""

    def __init__(self, ip: Optional[str], reason: str):
        super().__init__(
            f"Authentication with Twinkly device at {ip} failed.",
            ip=ip,
            technical_message=f"Auth failed for {ip}: {reason}",
            recovery_hint="The device may have been reset. Retry, or power-cycle the controller.",
        )
        self.reason = reason


class ParseError(DeviceError):
    """Response body was missing or not valid JSON."""

    def __init__(self, ip: Optional[str], path: str, detail: str):
        super().__init__(
            f"Unexpected response from Twinkly device at {ip}.",
            ip=ip,
            technical_message=f"Could not parse response from {path}: {detail}",
        )
        self.path = path


class ProtocolError(DeviceError):
    """Device returned a non-success status code."""

    def __init__(self, ip: Optional[str], path: str, code: Optional[int], status: str):
        super().__init__(
            f"Twinkly device at {ip} reported: {status}",
            ip=ip,
            technical_message=f"{path} returned code {code} ({status})",
        )
        self.path = path
        self.code = code
        self.status = status
