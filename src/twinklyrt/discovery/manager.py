"""Socket side of discovery: broadcast sender and reply listener thread."""

import logging
import socket
import threading
from typing import Callable

from twinklyrt.device.http import XledHttpClient
from twinklyrt.models import DiscoveryCandidate

from .cache import DeviceCache
from .service import DISCOVERY_PORT, DiscoveryService

logger = logging.getLogger(__name__)

BROADCAST_ADDRESS = "255.255.255.255"
RECV_BUFFER = 1024


class DiscoveryManager:
    """
    Owns the UDP discovery socket and a daemon thread that alternates
    between probing and reading replies.

    Replies arrive on the socket the probe was sent from, so one socket
    bound to an ephemeral port serves both directions.
    """

    def __init__(
        self,
        cache: DeviceCache,
        poll_interval: float = 60.0,
        http_timeout: float = 3.0,
        listen_port: int = 0,
        recv_timeout: float = 0.5,
        socket_factory: Callable[[], socket.socket] | None = None,
        http_factory: Callable[[str], XledHttpClient] | None = None,
    ):
        """
        Args:
            cache: Persistent cache of confirmed devices
            poll_interval: Minimum seconds between broadcasts
            http_timeout: Timeout for confirmation requests
            listen_port: Local UDP port (0 = ephemeral)
            recv_timeout: Socket read timeout, bounds stop() latency
            socket_factory: Builds the UDP socket (tests inject fakes)
            http_factory: Builds the HTTP client used to confirm a device
        """
        self._listen_port = listen_port
        self._recv_timeout = recv_timeout
        self._socket_factory = socket_factory or self._create_socket
        self._sock: socket.socket | None = None

        self.service = DiscoveryService(
            cache,
            self._send_broadcast,
            poll_interval=poll_interval,
            http_timeout=http_timeout,
            http_factory=http_factory,
        )

        self._running = False
        self._thread: threading.Thread | None = None

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
        sock.bind(("", self._listen_port))
        return sock

    def _send_broadcast(self, payload: bytes) -> None:
        if self._sock is None:
            raise OSError("discovery socket is not open")
        self._sock.sendto(payload, (BROADCAST_ADDRESS, DISCOVERY_PORT))

    def start(self, load_cached: bool = True) -> None:
        """Open the socket and start the listener thread."""
        if self._running:
            logger.warning("DiscoveryManager is already running")
            return

        self._sock = self._socket_factory()
        self._sock.settimeout(self._recv_timeout)
        self._running = True
        self._thread = threading.Thread(
            target=self._run, args=(load_cached,), name="twinkly-discovery", daemon=True
        )
        self._thread.start()
        logger.debug("DiscoveryManager started")

    def stop(self) -> None:
        """Stop the listener thread and close the socket."""
        self._running = False

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=max(1.0, self._recv_timeout * 2))
        self._thread = None

        if self._sock is not None:
            try:
                self._sock.close()
            except OSError as e:
                logger.error(f"Error closing discovery socket: {e}")
            self._sock = None

        logger.debug("DiscoveryManager stopped")

    def _run(self, load_cached: bool) -> None:
        if load_cached:
            self.service.load_cached()

        while self._running:
            self.service.probe()

            try:
                data, (ip, port) = self._sock.recvfrom(RECV_BUFFER)
            except socket.timeout:
                continue
            except OSError as e:
                if self._running:
                    logger.error(f"Discovery socket error: {e}")
                break

            candidate = DiscoveryCandidate(
                ip=ip, port=port, response=data.decode("latin-1", errors="replace")
            )
            try:
                self.service.on_response(candidate)
            except Exception as e:
                logger.error(f"Error handling discovery reply from {ip}: {e}", exc_info=True)

    @property
    def is_running(self) -> bool:
        return self._running

    def __enter__(self):
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.stop()
