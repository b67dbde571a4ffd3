"""
Render and power state machine for one Twinkly controller.

Architecture Overview
=====================

::

    ┌──────────────────────────────────────────────────────────────────┐
    │                     HOST APPLICATION                             │
    │      tick scheduler · color source · settings · shutdown         │
    └───────────────┬──────────────────────────────┬───────────────────┘
                    │ on_tick()                    │ on_shutdown()
                    ↓                              ↓
    ┌──────────────────────────────────────────────────────────────────┐
    │                      DeviceController                            │
    │                                                                  │
    │   ACTIVE ──(no frame for 300 ms / idle_off)──► FORCED_OFF        │
    │     ▲                                                    │       │
    │     └────────────────(next render tick)──────────────────┘       │
    │                                                                  │
    │   tick thread: sample, checksum, encode, send UDP                │
    │   worker pool: login, health check, LED mode, brightness         │
    │   idle thread: check_idle() every 200 ms                         │
    └───────┬──────────────────────┬─────────────────────┬─────────────┘
            │                      │                     │
            ↓                      ↓                     ↓
      SessionManager        MetadataFetcher        FrameEncoder + UdpTransport
      (session.py)          (metadata.py)          (frame.py, transport.py)

Render Tick
-----------

1. Start mode Off keeps the device dark, nothing else happens.
2. A tick while ForcedOff is render activity: leave ForcedOff.
3. Forced mode with an unchanged color and no keepalive: nothing to do.
4. Health check at most every 60 s, one in flight at a time.
5. Re-enter real-time mode if needed (at most every 900 ms).
6. FPS limit, then fill the buffer (canvas sample or solid color).
7. Skip if the CRC-32 matches the last sent frame, else send.

The render tick never performs HTTP itself and never raises.
"""

import logging
import threading
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Callable

from twinklyrt.exceptions import AuthError, ErrorContext
from twinklyrt.model_manager import ObserverManager
from twinklyrt.models import (
    BrightnessMode,
    DeviceInfo,
    LedLayout,
    LedMode,
    LightingMode,
    PowerState,
    SignalSettings,
    StartMode,
)
from twinklyrt.protocols import ColorSource, PowerEvent, PowerObserver, SettingsProvider

from .buffer import FrameBuffer
from .frame import FrameEncoder, crc32
from .http import XledHttpClient
from .metadata import MetadataFetcher, firmware_generation
from .products import get_product_catalog
from .schema import ProductFamily
from .session import SessionManager
from .transport import UdpTransport

logger = logging.getLogger(__name__)

ENSURE_RT_COOLDOWN_MS = 900
IMMEDIATE_PAUSE_MS = 300
MIN_FPS = 10
MAX_FPS = 120


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


class DeviceController:
    """
    Drives one controller from host render ticks.

    All state transitions happen under one lock, so a render tick, an idle
    check and the shutdown hook never interleave halfway through a
    transition. HTTP work goes to `executor`; a single worker keeps
    control calls in submission order.
    """

    # ================================================================
    # INITIALIZATION
    # ================================================================

    def __init__(
        self,
        ip: str,
        source: ColorSource,
        settings: SignalSettings | None = None,
        *,
        settings_provider: SettingsProvider | None = None,
        http_client: XledHttpClient | None = None,
        transport: UdpTransport | None = None,
        executor: Executor | None = None,
        clock: Callable[[], int] | None = None,
        http_timeout: float = 3.0,
        health_check_interval: float = 60.0,
        idle_check_interval: float | None = 0.2,
    ):
        """
        Initialize device controller.

        Args:
            ip: Controller IP address
            source: Color source sampled in Canvas mode
            settings: Initial settings (defaults if None)
            settings_provider: If given, polled for new settings every tick
            http_client: HTTP client (created from ip/http_timeout if None)
            transport: UDP transport (created for ip:7777 if None)
            executor: Worker pool for HTTP calls (single-thread pool if None)
            clock: Millisecond clock (monotonic if None)
            health_check_interval: Seconds between session health checks
            idle_check_interval: Seconds between idle checks, None disables
                the background idle thread (call check_idle() directly)
        """
        self.ip = ip
        self._source = source
        self._settings = settings or SignalSettings()
        self._settings_provider = settings_provider

        self._http = http_client or XledHttpClient(ip, timeout=http_timeout)
        self._session = SessionManager(self._http)
        self._metadata = MetadataFetcher(self._http, self._session)
        self._transport = transport or UdpTransport(ip)
        self._encoder = FrameEncoder()
        self._buffer = FrameBuffer()

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=f"twinkly-{ip}"
        )
        self._clock = clock or monotonic_ms
        self._health_interval_ms = int(health_check_interval * 1000)
        self._idle_interval = idle_check_interval

        self._lock = threading.RLock()
        self._state = PowerState.ACTIVE
        self._rt_active = False
        self._initialized = False
        self._layout = LedLayout()

        # Millisecond timestamps, None = never
        self._last_frame_sent_at: int | None = None
        self._last_frame_accepted_at: int | None = None
        self._last_ensure_rt_at: int | None = None
        self._last_health_check_at: int | None = None
        self._health_in_flight = False

        self._forced_dirty = True
        self._last_forced_color = self._settings.forced_color

        self._idle_thread: threading.Thread | None = None
        self._idle_stop = threading.Event()

        self._observers = ObserverManager[PowerObserver](observer_type_name="power")

        if self._settings.start_mode is StartMode.OFF:
            self._state = PowerState.FORCED_OFF

    def initialize(self) -> bool:
        """
        Bring the device under engine control.

        Fetches firmware, authenticates, reads device info and brightness,
        applies the start mode and computes the layout. Blocks on HTTP, so
        hosts call it from a worker (see initialize_async()).

        Returns:
            True on success, False if the handshake failed (logged)
        """
        with ErrorContext(f"initialize Twinkly device at {self.ip}", logger, re_raise=False) as ctx:
            version = self._metadata.fetch_firmware_version()
            self._session.authenticate()
            self._metadata.fetch_device_info()
            self._metadata.fetch_brightness()

            with self._lock:
                generation = firmware_generation(version)
                if generation != self._encoder.generation:
                    self._encoder = FrameEncoder(generation)
                    logger.info(f"{self.ip}: using generation {generation} frames")

                start_mode = self._settings.start_mode
                if start_mode is StartMode.OFF:
                    self._state = PowerState.FORCED_OFF
                    self._rt_active = False
                else:
                    self._state = PowerState.ACTIVE
                    self._rt_active = True
                    self._last_ensure_rt_at = self._clock()

            if start_mode is StartMode.OFF:
                self._switch_off_remote()
            else:
                self._enter_rt_remote(start_mode)

            self._refresh_layout()
            logger.debug(f"{self.ip}: LED mode is {self._metadata.fetch_led_mode()}")

            with self._lock:
                self._last_health_check_at = self._clock()

        if ctx.error is not None:
            return False

        self._initialized = True
        self._notify(PowerEvent.INITIALIZED)
        return True

    def initialize_async(self) -> Future:
        """Run initialize() on the worker pool."""
        return self._submit(self.initialize)

    # ================================================================
    # LIFECYCLE MANAGEMENT
    # ================================================================

    def on_tick(self) -> None:
        self.render()

    def on_shutdown(self, suspending: bool) -> None:
        self.shutdown(suspending)

    def close(self) -> None:
        """Stop background work and release sockets."""
        self._stop_idle_checker()
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
        self._http.close()
        self._transport.close()
        logger.debug(f"DeviceController for {self.ip} closed")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()

    # ================================================================
    # OBSERVER PATTERN
    # ================================================================

    def register_observer(self, observer: PowerObserver) -> None:
        """Register observer for power events."""
        self._observers.register(observer)

    def unregister_observer(self, observer: PowerObserver) -> None:
        """Unregister observer."""
        self._observers.unregister(observer)

    def _notify(self, event: PowerEvent) -> None:
        self._observers.notify("on_power_event", event, self.ip)

    # ================================================================
    # RENDER
    # ================================================================

    def render(self) -> bool:
        """
        Run one render tick.

        Returns:
            True if a frame was dispatched to the device
        """
        if not self._initialized:
            return False

        if self._settings_provider is not None:
            try:
                self.apply_settings(self._settings_provider.current_settings())
            except Exception as e:
                logger.error(f"Could not read settings for {self.ip}: {e}", exc_info=True)

        woke = False
        try:
            with self._lock:
                woke = self._wake_if_forced_off()
                sent = self._render_frame(self._clock())
        except Exception as e:
            logger.error(f"Render tick for {self.ip} failed: {e}", exc_info=True)
            sent = False

        if woke:
            self._notify(PowerEvent.WOKE)
        return sent

    def _wake_if_forced_off(self) -> bool:
        if self._state is not PowerState.FORCED_OFF:
            return False
        if self._settings.start_mode is StartMode.OFF:
            return False

        self._state = PowerState.ACTIVE
        logger.info(f"{self.ip}: render activity, leaving forced-off")
        return True

    def _render_frame(self, now: int) -> bool:
        settings = self._settings
        if self._state is PowerState.FORCED_OFF:
            return False

        forced = settings.lighting_mode is LightingMode.FORCED
        color_changed = forced and (
            self._forced_dirty or settings.forced_color != self._last_forced_color
        )
        if forced and not color_changed and settings.keepalive_seconds == 0:
            return False

        self._maybe_check_health(now)

        if not self._session.is_authenticated:
            return False

        if not self._rt_active:
            if self._last_ensure_rt_at is not None and now - self._last_ensure_rt_at <= ENSURE_RT_COOLDOWN_MS:
                return False
            self._last_ensure_rt_at = now
            self._rt_active = True
            self._submit(self._enter_rt_remote, settings.start_mode)

        min_interval = 1000 / min(max(settings.fps_limit, MIN_FPS), MAX_FPS)
        if self._last_frame_sent_at is not None and now - self._last_frame_sent_at < min_interval:
            return False
        self._last_frame_sent_at = now

        if not forced:
            sent = self._send_canvas()
        elif color_changed:
            sent = self._send_color(settings.forced_color.to_rgb_tuple(), gated=False)
            if sent:
                self._forced_dirty = False
                self._last_forced_color = settings.forced_color
        else:
            keepalive_due = (
                self._last_frame_accepted_at is None
                or now - self._last_frame_accepted_at >= settings.keepalive_ms
            )
            sent = self._send_color(settings.forced_color.to_rgb_tuple(), gated=not keepalive_due)

        if sent:
            self._last_frame_accepted_at = now
            self._ensure_idle_checker()
        return sent

    def _send_canvas(self) -> bool:
        layout = self._layout
        if not self._prepare_buffer(layout.led_count):
            return False
        self._buffer.fill_from_source(layout.positions, self._source)
        return self._dispatch(gated=True)

    def _send_color(self, rgb: tuple[int, int, int], gated: bool) -> bool:
        if not self._prepare_buffer(self._layout.led_count):
            return False
        self._buffer.fill_solid(rgb)
        return self._dispatch(gated)

    def _prepare_buffer(self, led_count: int) -> bool:
        if led_count == 0:
            return False
        self._buffer.ensure(led_count, self._metadata.info.stride)
        return True

    def _dispatch(self, gated: bool) -> bool:
        frame = self._buffer.tobytes()
        checksum = crc32(frame)
        if gated and checksum == self._buffer.last_checksum:
            return False

        session = self._session.session
        if session is None:
            return False
        if self._encoder.token is not session.decoded:
            self._encoder.set_token(session.decoded)

        for datagram in self._encoder.encode(frame, self._buffer.led_count):
            self._transport.send(datagram)

        self._buffer.last_checksum = checksum
        return True

    # ================================================================
    # POWER
    # ================================================================

    def check_idle(self) -> bool:
        """
        Switch the device off if frames stopped arriving.

        Called every 200 ms by the idle thread. Returns True if it powered
        the device off.
        """
        try:
            with self._lock:
                if self._state is PowerState.FORCED_OFF or self._last_frame_accepted_at is None:
                    return False

                settings = self._settings
                elapsed = self._clock() - self._last_frame_accepted_at
                if settings.immediate_pause_off and elapsed > IMMEDIATE_PAUSE_MS:
                    reason = f"no new frame for {elapsed} ms"
                elif settings.off_when_idle and elapsed > settings.idle_off_ms:
                    reason = f"idle for {elapsed / 1000:.1f} s"
                else:
                    return False

                self._power_off(reason, send_shutdown_color=True)
                self._submit(self._switch_off_remote)
        except Exception as e:
            logger.error(f"Idle check for {self.ip} failed: {e}", exc_info=True)
            return False

        self._notify(PowerEvent.POWERED_OFF)
        return True

    def shutdown(self, suspending: bool = False) -> None:
        """Host exit/suspend hook: optionally blank, then switch off."""
        self._stop_idle_checker()
        settings = self._settings
        if not settings.keep_off_on_shutdown:
            logger.info(f"{self.ip}: leaving device on at {'suspend' if suspending else 'shutdown'}")
            return

        with self._lock:
            self._power_off(
                "host suspending" if suspending else "host shutdown",
                send_shutdown_color=settings.send_black_on_shutdown,
            )
        # HTTP stays outside the lock
        self._switch_off_remote()
        self._notify(PowerEvent.POWERED_OFF)

    def _power_off(self, reason: str, send_shutdown_color: bool) -> None:
        """Local half of a power-off. Caller holds the lock and switches the device off."""
        logger.info(f"{self.ip}: switching off ({reason})")
        if send_shutdown_color:
            self._send_color(self._settings.shutdown_color.to_rgb_tuple(), gated=False)

        # The next canvas frame after a wake must go out even if unchanged
        self._buffer.invalidate()
        # Idle checks stay quiet until the next real frame
        self._last_frame_accepted_at = None
        self._rt_active = False
        self._state = PowerState.FORCED_OFF

    def _enter_rt_remote(self, start_mode: StartMode) -> None:
        brightness = 100
        previous = self._metadata.info.previous_brightness
        if start_mode is StartMode.RESTORE and previous:
            brightness = previous
        self._session.set_brightness(BrightnessMode.ENABLED, brightness)
        self._session.set_led_mode(LedMode.RT)

    def _switch_off_remote(self) -> None:
        self._session.set_led_mode(LedMode.OFF)
        self._session.set_brightness(BrightnessMode.DISABLED, 0)

    def _ensure_idle_checker(self) -> None:
        if self._idle_interval is None or self._idle_thread is not None:
            return
        self._idle_stop.clear()
        self._idle_thread = threading.Thread(
            target=self._idle_loop, name=f"twinkly-idle-{self.ip}", daemon=True
        )
        self._idle_thread.start()

    def _idle_loop(self) -> None:
        while not self._idle_stop.wait(self._idle_interval):
            self.check_idle()

    def _stop_idle_checker(self) -> None:
        self._idle_stop.set()
        thread = self._idle_thread
        self._idle_thread = None
        if thread and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=1.0)

    # ================================================================
    # SESSION HEALTH
    # ================================================================

    def _maybe_check_health(self, now: int) -> None:
        if self._health_in_flight:
            return
        if self._last_health_check_at is not None and now - self._last_health_check_at < self._health_interval_ms:
            return
        self._health_in_flight = True
        self._last_health_check_at = now
        self._submit(self._run_health_check)

    def _run_health_check(self) -> None:
        try:
            status = self._session.check_health()
            if status == "Ok":
                logger.debug(f"{self.ip}: session healthy")
                return

            logger.warning(f"{self.ip}: health check returned '{status}'")
            if self._settings.auto_reconnect:
                self._reconnect()
        finally:
            with self._lock:
                self._health_in_flight = False

    def _reconnect(self) -> bool:
        try:
            self._session.authenticate()
        except AuthError as e:
            logger.error(f"Reconnect to {self.ip} failed: {e.technical_message}")
            return False

        if self._metadata.info.led_count is None:
            self._metadata.fetch_device_info()

        with self._lock:
            start_mode = self._settings.start_mode
            restore_rt = self._state is PowerState.ACTIVE and start_mode is not StartMode.OFF
            if restore_rt:
                self._rt_active = True
                self._last_ensure_rt_at = self._clock()

        if restore_rt:
            self._enter_rt_remote(start_mode)

        self._refresh_layout()
        logger.info(f"{self.ip}: session restored")
        self._notify(PowerEvent.SESSION_RESTORED)
        return True

    # ================================================================
    # SETTINGS & LAYOUT
    # ================================================================

    def apply_settings(self, settings: SignalSettings) -> None:
        """Swap in a new settings snapshot and run change hooks for what differs."""
        powered_off = False
        with self._lock:
            old = self._settings
            if settings == old:
                return
            self._settings = settings

            if settings.start_mode is not old.start_mode:
                powered_off = self._on_start_mode_changed(settings.start_mode)

            if settings.lighting_mode is not old.lighting_mode or settings.forced_color != old.forced_color:
                self._forced_dirty = True
                self._buffer.invalidate()

            if settings.shutdown_color != old.shutdown_color:
                self._buffer.invalidate()

            rescale = (settings.x_scale, settings.y_scale) != (old.x_scale, old.y_scale)

        if powered_off:
            self._notify(PowerEvent.POWERED_OFF)
        if rescale and self._session.is_authenticated:
            self._submit(self._refresh_layout)

    def _on_start_mode_changed(self, start_mode: StartMode) -> bool:
        logger.info(f"{self.ip}: start mode -> {start_mode.value}")
        if start_mode is StartMode.OFF:
            was_on = self._state is not PowerState.FORCED_OFF
            if was_on:
                self._power_off("start mode set to Off", send_shutdown_color=False)
            self._submit(self._switch_off_remote)
            return was_on

        # Re-enter real time on the next tick with the new brightness rule
        self._rt_active = False
        self._last_ensure_rt_at = None
        return False

    def _refresh_layout(self) -> bool:
        settings = self._settings
        layout = self._metadata.fetch_layout(settings.x_scale, settings.y_scale)
        if layout is None:
            return False

        led_count = self._metadata.info.led_count
        if led_count is not None and led_count != layout.led_count:
            logger.warning(
                f"{self.ip}: layout has {layout.led_count} LEDs but device reports {led_count}"
            )

        with self._lock:
            self._layout = layout
            self._buffer.invalidate()

        self._notify(PowerEvent.LAYOUT_CHANGED)
        return True

    # ================================================================
    # BACKGROUND WORK
    # ================================================================

    def _submit(self, fn: Callable, *args) -> Future:
        future = self._executor.submit(fn, *args)
        future.add_done_callback(self._log_worker_failure)
        return future

    def _log_worker_failure(self, future: Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(f"Background call for {self.ip} failed: {error}", exc_info=error)

    # ================================================================
    # STATE QUERIES
    # ================================================================

    @property
    def state(self) -> PowerState:
        return self._state

    @property
    def is_forced_off(self) -> bool:
        return self._state is PowerState.FORCED_OFF

    @property
    def rt_active(self) -> bool:
        return self._rt_active

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def settings(self) -> SignalSettings:
        return self._settings

    @property
    def layout(self) -> LedLayout:
        return self._layout

    @property
    def info(self) -> DeviceInfo:
        return self._metadata.info

    @property
    def product(self) -> ProductFamily:
        return get_product_catalog().lookup(self._metadata.info.product_code)

    @property
    def session_manager(self) -> SessionManager:
        return self._session

    @property
    def last_frame_accepted_at(self) -> int | None:
        return self._last_frame_accepted_at
