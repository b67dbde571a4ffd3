"""Real-time UDP frame encoding and change detection.

Datagram layouts (all sent to UDP port 7777):

```
gen 1/2:  [gen][token ...][led count field][buffer ...]
gen 3:    [0x03][token ...][0x00][0x00][chunk index][chunk ...]   chunk <= 900 bytes
```

The gen 3 header is written once per token into a reusable packet, and
only the index byte and payload region are rewritten per chunk.
"""

from typing import Iterator

RT_PORT = 7777
MAX_CHUNK = 900


def _make_crc_table() -> tuple[int, ...]:
    table = []
    for n in range(256):
        c = n
        for _ in range(8):
            c = (0xEDB88320 ^ (c >> 1)) if c & 1 else (c >> 1)
        table.append(c)
    return tuple(table)


CRC_TABLE = _make_crc_table()


def crc32(data: bytes | bytearray | memoryview) -> int:
    """Standard reflected CRC-32 (same value as zlib.crc32)."""
    crc = 0xFFFFFFFF
    table = CRC_TABLE
    for byte in bytes(data):
        crc = table[(crc ^ byte) & 0xFF] ^ (crc >> 8)
    return crc ^ 0xFFFFFFFF


def led_count_field(generation: int, led_count: int) -> bytes:
    """Header field between token and payload for gen 1/2 frames."""
    if generation == 1:
        return bytes([led_count & 0xFF])
    return b"\x00"


class FrameEncoder:
    """Splits an LED buffer into real-time datagrams for one session token."""

    def __init__(self, generation: int = 3):
        if generation not in (1, 2, 3):
            raise ValueError(f"Unsupported frame generation: {generation}")
        self.generation = generation
        self.token: bytes | None = None
        self._header_len = 0
        self._packet = bytearray()

    def set_token(self, token: bytes) -> None:
        self.token = token
        if self.generation == 3:
            header = bytes([0x03]) + token + b"\x00\x00"
        else:
            header = bytes([self.generation]) + token
        self._header_len = len(header)
        self._packet = bytearray(header)
        if self.generation == 3:
            # header + index byte + largest chunk
            self._packet.extend(bytes(1 + MAX_CHUNK))

    def encode(self, buffer: bytes | bytearray | memoryview, led_count: int = 0) -> Iterator[bytes | memoryview]:
        """
        Yield the datagrams for one frame.

        Gen 3 datagrams are views into a shared packet buffer; send each
        one before advancing the iterator. An empty buffer yields nothing.
        """
        if self.token is None:
            raise RuntimeError("FrameEncoder has no session token")

        payload = memoryview(buffer).cast("B")
        if len(payload) == 0:
            return

        if self.generation != 3:
            yield bytes(self._packet) + led_count_field(self.generation, led_count) + payload.tobytes()
            return

        packet = self._packet
        start = self._header_len + 1
        view = memoryview(packet)
        for index, offset in enumerate(range(0, len(payload), MAX_CHUNK)):
            chunk = payload[offset:offset + MAX_CHUNK]
            packet[self._header_len] = index & 0xFF
            packet[start:start + len(chunk)] = chunk
            yield view[:start + len(chunk)]
