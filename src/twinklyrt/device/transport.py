"""Fire-and-forget UDP transport for real-time frames."""

import logging
import socket

from .frame import RT_PORT

logger = logging.getLogger(__name__)


class UdpTransport:
    """Sends datagrams to one controller. Send errors are logged, never raised."""

    def __init__(self, ip: str, port: int = RT_PORT):
        self.address = (ip, port)
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self._failing = False

    def send(self, datagram: bytes | memoryview) -> None:
        try:
            self._sock.sendto(datagram, self.address)
        except OSError as e:
            # Log once per failure streak
            if not self._failing:
                logger.warning(f"UDP send to {self.address[0]}:{self.address[1]} failed: {e}")
                self._failing = True
            return
        if self._failing:
            logger.info(f"UDP send to {self.address[0]} recovered")
            self._failing = False

    def close(self) -> None:
        self._sock.close()
