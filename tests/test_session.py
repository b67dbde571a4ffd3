"""Tests for the HTTP client and the session handshake."""

import base64
import json

import httpx
import pytest

from conftest import DECODED_TOKEN, TOKEN, FakeTwinkly

from twinklyrt.device import STATUS_CODES, SessionManager, XledHttpClient, describe_status
from twinklyrt.exceptions import AuthError, NetworkError, ParseError


def client_with(handler) -> XledHttpClient:
    return XledHttpClient("10.0.0.9", transport=httpx.MockTransport(handler))


@pytest.mark.unit
class TestXledHttpClient:
    """Test error translation in the HTTP client."""

    def test_returns_json_object(self):
        client = client_with(lambda request: httpx.Response(200, json={"code": 1000}))
        assert client.get("/xled/v1/gestalt") == {"code": 1000}

    def test_sends_auth_header(self):
        seen = {}

        def handler(request):
            seen["token"] = request.headers.get("X-Auth-Token")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"code": 1000})

        client_with(handler).post("/xled/v1/led/mode", {"mode": "rt"}, token="abc")

        assert seen == {"token": "abc", "body": {"mode": "rt"}}

    def test_no_auth_header_without_token(self):
        seen = {}

        def handler(request):
            seen["has_token"] = "X-Auth-Token" in request.headers
            return httpx.Response(200, json={})

        client_with(handler).get("/xled/v1/fw/version")

        assert seen["has_token"] is False

    def test_empty_body_is_parse_error(self):
        client = client_with(lambda request: httpx.Response(200, content=b""))
        with pytest.raises(ParseError):
            client.get("/xled/v1/gestalt")

    def test_invalid_json_is_parse_error(self):
        client = client_with(lambda request: httpx.Response(200, content=b"{not json"))
        with pytest.raises(ParseError):
            client.get("/xled/v1/gestalt")

    def test_non_object_json_is_parse_error(self):
        client = client_with(lambda request: httpx.Response(200, json=[1, 2, 3]))
        with pytest.raises(ParseError):
            client.get("/xled/v1/gestalt")

    def test_http_error_status_is_network_error(self):
        client = client_with(lambda request: httpx.Response(503))
        with pytest.raises(NetworkError) as exc_info:
            client.get("/xled/v1/gestalt")
        assert "HTTP 503" in exc_info.value.technical_message

    def test_transport_failure_is_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(NetworkError) as exc_info:
            client_with(handler).get("/xled/v1/gestalt")
        assert exc_info.value.ip == "10.0.0.9"

    def test_timeout_is_network_error(self):
        def handler(request):
            raise httpx.ReadTimeout("too slow", request=request)

        with pytest.raises(NetworkError) as exc_info:
            client_with(handler).get("/xled/v1/gestalt")
        assert "timed out" in exc_info.value.technical_message


@pytest.mark.unit
class TestHandshake:
    """Test login / verify / decode."""

    @pytest.fixture
    def fake(self):
        return FakeTwinkly()

    @pytest.fixture
    def session(self, fake):
        client = fake.client()
        yield SessionManager(client)
        client.close()

    def test_login_sends_base64_challenge(self, fake, session):
        token, challenge_response = session.login()

        assert token == TOKEN
        assert challenge_response == "c0ffee"
        body = fake.requests_to("/xled/v1/login")[0][2]
        assert len(base64.b64decode(body["challenge"])) == 32

    def test_login_challenges_are_random(self, fake, session):
        session.login()
        session.login()
        first, second = (call[2]["challenge"] for call in fake.requests_to("/xled/v1/login"))
        assert first != second

    def test_verify_uses_token_header(self, fake, session):
        session.login()

        assert session.verify_token() is True
        _, _, body, token = fake.requests_to("/xled/v1/verify")[0]
        assert token == TOKEN
        assert body == {"challenge-response": "c0ffee"}

    def test_verify_rejected_code(self, fake, session):
        fake.verify_code = 1102
        session.login()
        assert session.verify_token() is False

    def test_decode_token(self, session):
        session.login()

        assert session.decode_token() == DECODED_TOKEN
        assert session.session.token == TOKEN
        assert session.session.decoded == DECODED_TOKEN

    def test_decode_before_login_raises(self, session):
        with pytest.raises(AuthError):
            session.decode_token()

    def test_authenticate(self, session):
        result = session.authenticate()

        assert result.decoded == DECODED_TOKEN
        assert session.is_authenticated
        assert session.token == TOKEN

    def test_login_failure_raises_auth_error(self, fake, session):
        fake.login_ok = False

        with pytest.raises(AuthError):
            session.authenticate()
        assert session.session is None

    def test_login_without_token_raises(self, fake, session):
        fake.token = ""
        with pytest.raises(AuthError):
            session.login()

    def test_invalid_base64_token_raises(self, fake, session):
        fake.token = "not*base64!"
        with pytest.raises(AuthError):
            session.authenticate()

    def test_failed_reauth_keeps_previous_session(self, fake, session):
        original = session.authenticate()
        fake.verify_code = 1104

        with pytest.raises(AuthError):
            session.authenticate()

        assert session.session is original


@pytest.mark.unit
class TestHealthAndControl:
    """Test check_health statuses and control calls."""

    @pytest.fixture
    def fake(self):
        return FakeTwinkly()

    @pytest.fixture
    def session(self, fake):
        client = fake.client()
        manager = SessionManager(client)
        manager.authenticate()
        yield manager
        client.close()

    def test_ok_in_rt_mode(self, fake, session):
        fake.mode = "rt"
        assert session.check_health() == "Ok"

    def test_incorrect_mode(self, fake, session):
        fake.mode = "movie"
        assert session.check_health() == "Incorrect Mode"

    @pytest.mark.parametrize(
        "code,status",
        [
            (1001, "Error"),
            (1101, "Invalid Argument"),
            (1104, "Error, Malformed Json?"),
            (1105, "Invalid Argument Key"),
            (1107, "Ok?"),
            (1205, "Error With Firmware Upgrade"),
            (4242, "Unknown"),
        ],
    )
    def test_status_codes(self, fake, session, code, status):
        fake.mode = "rt"
        fake.mode_code = code
        assert session.check_health() == status

    def test_network_failure_is_error(self, fake, session):
        fake.fail_paths.add("/xled/v1/led/mode")
        assert session.check_health() == "Error"

    def test_describe_status(self):
        assert describe_status(1000) == "Ok"
        assert describe_status(1103) == STATUS_CODES[1103]
        assert describe_status(None) == "Unknown"
        assert describe_status("1000") == "Unknown"

    def test_set_led_mode(self, fake, session):
        assert session.set_led_mode("rt") is True
        assert fake.mode == "rt"
        assert fake.requests_to("/xled/v1/led/mode", "POST")[-1][3] == TOKEN

    def test_set_brightness(self, fake, session):
        assert session.set_brightness("enabled", 50) is True
        assert fake.brightness == {"mode": "enabled", "type": "A", "value": 50}

    def test_set_current_effect(self, fake, session):
        assert session.set_current_effect(3) is True
        assert fake.requests_to("/xled/v1/led/effects/current")[-1][2] == {"preset_id": 3}

    def test_control_failure_returns_false(self, fake, session):
        fake.fail_paths.add("/xled/v1/led/mode")
        assert session.set_led_mode("off") is False

    def test_rejected_control_call_returns_false(self, fake, session):
        fake.control_code = 1102
        assert session.set_led_mode("rt") is False
        assert fake.mode == "movie"
