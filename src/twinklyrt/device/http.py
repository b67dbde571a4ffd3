"""HTTP client for the controller-resident /xled/v1 API.

Thin wrapper over `httpx.Client` that turns every failure into a typed
`DeviceError`: transport failures become `NetworkError`, non-200 answers
become `NetworkError` with the HTTP status, and missing or non-JSON bodies
become `ParseError`. Callers decide whether to contain or propagate.
"""

import logging
from typing import Any

import httpx

from twinklyrt.exceptions import NetworkError, ParseError, wrap_http_error

logger = logging.getLogger(__name__)

LOGIN = "/xled/v1/login"
VERIFY = "/xled/v1/verify"
GESTALT = "/xled/v1/gestalt"
FIRMWARE_VERSION = "/xled/v1/fw/version"
BRIGHTNESS = "/xled/v1/led/out/brightness"
LED_MODE = "/xled/v1/led/mode"
LAYOUT = "/xled/v1/led/layout/full"
CURRENT_EFFECT = "/xled/v1/led/effects/current"

AUTH_HEADER = "X-Auth-Token"


class XledHttpClient:
    """
    JSON request/response client bound to one controller address.

    `httpx.Client` is safe to share between the render thread and the
    worker pool, so one instance serves a whole device controller.
    """

    def __init__(
        self,
        ip: str,
        timeout: float = 3.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Args:
            ip: Controller IP address (or host[:port])
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.ip = ip
        self._client = httpx.Client(
            base_url=f"http://{ip}",
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json", "Content-Type": "application/json"},
        )

    def get(self, path: str, token: str | None = None) -> dict[str, Any]:
        """GET `path` and return the decoded JSON object."""
        return self._request("GET", path, None, token)

    def post(self, path: str, body: dict[str, Any], token: str | None = None) -> dict[str, Any]:
        """POST a JSON body to `path` and return the decoded JSON object."""
        return self._request("POST", path, body, token)

    def _request(
        self, method: str, path: str, body: dict[str, Any] | None, token: str | None
    ) -> dict[str, Any]:
        headers = {AUTH_HEADER: token} if token else None

        try:
            response = self._client.request(method, path, json=body, headers=headers)
        except httpx.HTTPError as e:
            raise wrap_http_error(e, self.ip, path) from e

        if response.status_code != 200:
            raise NetworkError(self.ip, path, f"HTTP {response.status_code}")

        if not response.content:
            raise ParseError(self.ip, path, "empty response body")

        try:
            data = response.json()
        except ValueError as e:
            raise ParseError(self.ip, path, f"invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ParseError(self.ip, path, f"expected a JSON object, got {type(data).__name__}")

        logger.debug(f"{method} {self.ip}{path} -> {data.get('code')}")
        return data

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
