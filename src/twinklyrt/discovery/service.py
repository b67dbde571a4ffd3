"""
Device discovery: probe, confirm, cache.

Discovery Flow
--------------

::

    probe() ── b"\\x01discover" ──► UDP broadcast :5555   (at most every 60 s)
                                         │
                   reply "…OKTwinkly…"   ↓
    on_response(candidate) ── skip if IP already active
                                         │
                                         ↓
    confirm(candidate) ── login ──► gestalt ── code 1000, bytes_per_led > 2?
                                         │ yes
                                         ↓
              controller record added/updated, IP marked active, cached

Cached devices skip the broadcast: load_cached() replays every cache entry
through confirm() at startup, and force_discover(ip) confirms an address
the user typed in.
"""

import logging
import threading
import time
from typing import Callable

from twinklyrt.device.http import XledHttpClient
from twinklyrt.device.metadata import MetadataFetcher
from twinklyrt.device.session import OK, SessionManager
from twinklyrt.exceptions import DeviceError, collect_errors
from twinklyrt.model_manager import ObserverManager
from twinklyrt.models import DiscoveryCandidate
from twinklyrt.protocols import DiscoveryEvent, DiscoveryObserver

from .cache import DeviceCache

logger = logging.getLogger(__name__)

DISCOVERY_PORT = 5555
PROBE_PAYLOAD = b"\x01discover"
RESPONSE_MARKERS = ("OKTwinkly", "WHEREAREYOU")


class DiscoveryService:
    """
    Turns probe replies and cached/typed addresses into confirmed
    controller records.

    Sockets live in DiscoveryManager; this class only sees a broadcast
    callable and candidates, so it runs unchanged under tests.
    """

    def __init__(
        self,
        cache: DeviceCache,
        broadcaster: Callable[[bytes], None],
        *,
        poll_interval: float = 60.0,
        http_timeout: float = 3.0,
        http_factory: Callable[[str], XledHttpClient] | None = None,
        clock: Callable[[], float] | None = None,
    ):
        """
        Args:
            cache: Persistent cache of confirmed devices
            broadcaster: Sends one discovery datagram to the broadcast address
            poll_interval: Minimum seconds between broadcasts
            http_timeout: Timeout for confirmation requests
            http_factory: Builds an HTTP client for an IP (tests inject mocks)
            clock: Seconds clock (monotonic if None)
        """
        self.cache = cache
        self._broadcast = broadcaster
        self._poll_interval = poll_interval
        self._http_factory = http_factory or (lambda ip: XledHttpClient(ip, timeout=http_timeout))
        self._clock = clock or time.monotonic

        self._lock = threading.Lock()
        self._last_probe_at: float | None = None
        self._active_ips: set[str] = set()
        self._records: dict[str, DiscoveryCandidate] = {}

        self._observers = ObserverManager[DiscoveryObserver](observer_type_name="discovery")

    # ================================================================
    # OBSERVER PATTERN
    # ================================================================

    def register_observer(self, observer: DiscoveryObserver) -> None:
        self._observers.register(observer)

    def unregister_observer(self, observer: DiscoveryObserver) -> None:
        self._observers.unregister(observer)

    # ================================================================
    # DISCOVERY
    # ================================================================

    def probe(self) -> bool:
        """Broadcast a discovery request unless one went out recently."""
        now = self._clock()
        with self._lock:
            if self._last_probe_at is not None and now - self._last_probe_at < self._poll_interval:
                return False
            self._last_probe_at = now

        try:
            self._broadcast(PROBE_PAYLOAD)
        except OSError as e:
            logger.warning(f"Discovery broadcast failed: {e}")
            return False

        logger.debug("Discovery broadcast sent")
        return True

    def on_response(self, candidate: DiscoveryCandidate) -> bool:
        """Handle one reply to a probe. Returns True if it was confirmed."""
        with self._lock:
            if candidate.ip in self._active_ips:
                return False

        if not any(marker in candidate.response for marker in RESPONSE_MARKERS):
            logger.debug(f"Ignoring non-Twinkly reply from {candidate.ip}")
            return False

        return self.confirm(candidate)

    def confirm(self, candidate: DiscoveryCandidate) -> bool:
        """
        Verify that `candidate` is a Twinkly controller and record it.

        Returns:
            True if the device was accepted
        """
        client = self._http_factory(candidate.ip)
        try:
            session = SessionManager(client)
            session.login()
            gestalt = MetadataFetcher(client, session).fetch_gestalt()
        except DeviceError as e:
            logger.info(f"Rejected {candidate.ip}: {e.technical_message}")
            self._observers.notify("on_discovery_event", DiscoveryEvent.DEVICE_REJECTED, candidate)
            return False
        finally:
            client.close()

        bytes_per_led = gestalt.get("bytes_per_led")
        if gestalt.get("code") != OK or not isinstance(bytes_per_led, int) or bytes_per_led <= 2:
            logger.info(
                f"Rejected {candidate.ip}: code={gestalt.get('code')} bytes_per_led={bytes_per_led}"
            )
            self._observers.notify("on_discovery_event", DiscoveryEvent.DEVICE_REJECTED, candidate)
            return False

        confirmed = candidate.model_copy(
            update={
                "id": gestalt.get("mac") or candidate.id,
                "name": gestalt.get("device_name") or candidate.name,
            }
        )

        with self._lock:
            self._active_ips.add(confirmed.ip)
            existing = self._records.get(confirmed.id)
            self._records[confirmed.id] = confirmed

        self.cache.add(confirmed.id, confirmed.to_cache_entry())

        if existing is None:
            logger.info(f"Found Twinkly device {confirmed.name} ({confirmed.id}) at {confirmed.ip}")
            event = DiscoveryEvent.DEVICE_ADDED
        else:
            if existing.ip != confirmed.ip:
                logger.info(f"{confirmed.name} moved from {existing.ip} to {confirmed.ip}")
                with self._lock:
                    self._active_ips.discard(existing.ip)
            event = DiscoveryEvent.DEVICE_UPDATED

        self._observers.notify("on_discovery_event", event, confirmed)
        return True

    def force_discover(self, ip: str | None) -> bool:
        """Confirm a device by address, bypassing the broadcast."""
        if not ip:
            logger.warning("force_discover called without an IP address")
            return False

        logger.info(f"Forcing discovery of {ip}")
        return self.confirm(DiscoveryCandidate(ip=ip))

    def load_cached(self) -> int:
        """Replay every cached device through confirm(). Returns the number confirmed."""
        entries = self.cache.entries()
        collector = collect_errors("reconnect cached devices")
        confirmed = 0

        for _, entry in entries:
            with collector.try_operation(f"confirm {entry.name} at {entry.ip}"):
                candidate = DiscoveryCandidate(
                    ip=entry.ip, id=entry.id, name=entry.name, port=entry.port
                )
                if self.confirm(candidate):
                    confirmed += 1

        if collector.has_errors:
            logger.warning(collector.get_summary())
        logger.info(f"Reconnected {confirmed} of {len(entries)} cached devices")
        return confirmed

    def purge_cache(self) -> None:
        self.cache.purge()

    # ================================================================
    # STATE QUERIES
    # ================================================================

    @property
    def records(self) -> dict[str, DiscoveryCandidate]:
        with self._lock:
            return dict(self._records)

    @property
    def active_ips(self) -> set[str]:
        with self._lock:
            return set(self._active_ips)
