"""Pytest fixtures for tests."""

import json
from collections.abc import Callable
from concurrent.futures import Executor, Future
from pathlib import Path
from tempfile import TemporaryDirectory

import httpx
import pytest

from twinklyrt.device import DeviceController, XledHttpClient

DEVICE_IP = "192.168.1.40"

# base64 of bytes 1..8
TOKEN = "AQIDBAUGBwg="
DECODED_TOKEN = bytes(range(1, 9))

# Three LEDs on an L shape: (0,0) (2,0) (2,2)
L_SHAPE = [
    {"x": 0.0, "y": 0.0, "z": 0.0},
    {"x": 2.0, "y": 0.0, "z": 0.0},
    {"x": 2.0, "y": 2.0, "z": 0.0},
]


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


class DeferredExecutor(Executor):
    """Queues submitted work until run_pending() is called."""

    def __init__(self):
        self.pending: list[tuple[Future, object, tuple]] = []

    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        self.pending.append((future, fn, args))
        return future

    def run_pending(self) -> int:
        ran = 0
        while self.pending:
            future, fn, args = self.pending.pop(0)
            try:
                future.set_result(fn(*args))
            except Exception as e:
                future.set_exception(e)
            ran += 1
        return ran


class FakeTransport:
    """Records datagrams instead of sending them."""

    def __init__(self):
        self.datagrams: list[bytes] = []
        self.closed = False

    def send(self, datagram) -> None:
        self.datagrams.append(bytes(datagram))

    def close(self) -> None:
        self.closed = True


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start: int = 1000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


class FakeColorSource:
    """Color source returning one settable color everywhere."""

    def __init__(self, color: tuple[int, int, int] = (10, 20, 30)):
        self.color = color
        self.samples = 0

    def color_at(self, x: int, y: int) -> tuple[int, int, int]:
        self.samples += 1
        return self.color


class FakeTwinkly:
    """
    In-memory /xled/v1 API served through httpx.MockTransport.

    Attributes can be changed mid-test to simulate device behavior
    (mode switched by the vendor app, failing endpoints, etc.).
    """

    def __init__(
        self,
        led_count: int = 3,
        bytes_per_led: int = 3,
        coordinates: list[dict] | None = None,
        firmware: str = "2.8.3",
        mac: str = "98:cd:ac:00:11:22",
        device_name: str = "Twinkly_ABC123",
    ):
        self.led_count = led_count
        self.bytes_per_led = bytes_per_led
        self.coordinates = coordinates if coordinates is not None else list(L_SHAPE)
        self.layout_source = "2d"
        self.firmware = firmware
        self.mac = mac
        self.device_name = device_name
        self.product_code = "TWS250STP"
        self.gestalt_code = 1000

        self.token = TOKEN
        self.login_ok = True
        self.verify_code = 1000
        self.mode = "movie"
        self.mode_code = 1000
        self.control_code = 1000
        self.brightness = {"mode": "enabled", "type": "A", "value": 80}
        self.fail_paths: set[str] = set()
        # Called with each request before it is answered (e.g. to stall a call)
        self.before_request: Callable[[httpx.Request], None] | None = None

        # (method, path, body, X-Auth-Token)
        self.calls: list[tuple[str, str, dict | None, str | None]] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        body = json.loads(request.content) if request.content else None
        self.calls.append((request.method, path, body, request.headers.get("X-Auth-Token")))
        if self.before_request is not None:
            self.before_request(request)

        if path in self.fail_paths:
            return httpx.Response(500)

        if path == "/xled/v1/login":
            if not self.login_ok:
                return httpx.Response(401)
            return httpx.Response(
                200,
                json={
                    "authentication_token": self.token,
                    "authentication_token_expires_in": 14400,
                    "challenge-response": "c0ffee",
                    "code": 1000,
                },
            )
        if path == "/xled/v1/verify":
            return httpx.Response(200, json={"code": self.verify_code})
        if path == "/xled/v1/gestalt":
            return httpx.Response(
                200,
                json={
                    "code": self.gestalt_code,
                    "device_name": self.device_name,
                    "mac": self.mac,
                    "product_code": self.product_code,
                    "hardware_version": "100",
                    "number_of_led": self.led_count,
                    "bytes_per_led": self.bytes_per_led,
                },
            )
        if path == "/xled/v1/fw/version":
            return httpx.Response(200, json={"code": 1000, "version": self.firmware})
        if path == "/xled/v1/led/out/brightness":
            if request.method == "POST":
                if self.control_code == 1000:
                    self.brightness = body
                return httpx.Response(200, json={"code": self.control_code})
            return httpx.Response(200, json={"code": 1000, **self.brightness})
        if path == "/xled/v1/led/mode":
            if request.method == "POST":
                if self.control_code == 1000:
                    self.mode = body["mode"]
                return httpx.Response(200, json={"code": self.control_code})
            return httpx.Response(200, json={"code": self.mode_code, "mode": self.mode})
        if path == "/xled/v1/led/layout/full":
            return httpx.Response(
                200,
                json={"code": 1000, "source": self.layout_source, "coordinates": self.coordinates},
            )
        if path == "/xled/v1/led/effects/current":
            return httpx.Response(200, json={"code": 1000})

        return httpx.Response(404)

    def client(self, ip: str = DEVICE_IP, timeout: float = 3.0) -> XledHttpClient:
        return XledHttpClient(ip, timeout=timeout, transport=httpx.MockTransport(self.handler))

    def requests_to(self, path: str, method: str | None = None) -> list[tuple]:
        return [c for c in self.calls if c[1] == path and (method is None or c[0] == method)]


@pytest.fixture
def temp_dir():
    """Create a temporary directory that gets cleaned up."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_twinkly():
    return FakeTwinkly()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def source():
    return FakeColorSource()


@pytest.fixture
def make_controller(fake_twinkly, transport, clock, source):
    """Build DeviceControllers wired to the fakes, with background threads disabled."""
    controllers = []

    def _make(settings=None, executor=None, **kwargs):
        controller = DeviceController(
            DEVICE_IP,
            kwargs.pop("color_source", source),
            settings,
            http_client=fake_twinkly.client(),
            transport=transport,
            executor=executor or InlineExecutor(),
            clock=clock,
            idle_check_interval=None,
            **kwargs,
        )
        controllers.append(controller)
        return controller

    yield _make

    for controller in controllers:
        controller.close()
