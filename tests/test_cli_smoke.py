"""Smoke tests for CLI commands.

Tests that CLI commands parse correctly and don't crash. Uses Click's
CliRunner with the config, state and log files redirected to tmp_path.
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from conftest import FakeTwinkly

from twinklyrt.cli.main import cli
from twinklyrt.discovery import DeviceCache, JsonSettingsStore
from twinklyrt.models import AppConfig, CacheEntry, LightingMode


@pytest.fixture
def runner():
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Config file pointing the device cache into tmp_path."""
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"state_path": str(tmp_path / "state.json")}))
    return path


@pytest.fixture
def invoke(runner, config_file, tmp_path):
    def _invoke(*args, **kwargs):
        base = ["--config", str(config_file), "--log-file", str(tmp_path / "test.log")]
        return runner.invoke(cli, [*base, *args], **kwargs)

    return _invoke


@pytest.mark.integration
class TestCLIHelp:
    """Test that all commands have working help text."""

    def test_main_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Twinkly RT" in result.output
        assert "real-time mode" in result.output

    def test_version_flag(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    @pytest.mark.parametrize("command", ["discover", "cache", "info", "run", "config"])
    def test_command_help(self, runner, command):
        result = runner.invoke(cli, [command, "--help"])
        assert result.exit_code == 0

    def test_run_rejects_unknown_pattern(self, invoke):
        result = invoke("run", "192.168.1.40", "--pattern", "plasma")
        assert result.exit_code != 0
        assert "Invalid value" in result.output


@pytest.mark.integration
class TestConfigCommand:
    """Test config show/set/reset against a temporary config file."""

    def test_show(self, invoke):
        result = invoke("config", "show")
        assert result.exit_code == 0
        assert "fps_limit: 45" in result.output
        assert "forced_color: #FF0000" in result.output

    def test_show_single_field(self, invoke):
        result = invoke("config", "show", "--field", "device.idle_off_seconds")
        assert result.exit_code == 0
        assert "device.idle_off_seconds: 5" in result.output

    def test_set_saves_value(self, invoke, config_file):
        result = invoke("config", "set", "device.fps_limit", "60")

        assert result.exit_code == 0
        assert AppConfig.load_or_default(config_file).device.fps_limit == 60

    def test_set_color_string(self, invoke, config_file):
        result = invoke("config", "set", "device.forced_color", "#00FF00")

        assert result.exit_code == 0
        assert AppConfig.load_or_default(config_file).device.forced_color.to_hex() == "#00FF00"

    def test_set_invalid_value(self, invoke, config_file):
        result = invoke("config", "set", "device.fps_limit", "500")

        assert result.exit_code == 1
        assert "ERROR" in result.output
        assert AppConfig.load_or_default(config_file).device.fps_limit == 45

    def test_set_unknown_field(self, invoke):
        result = invoke("config", "set", "device.brightness", "10")
        assert result.exit_code == 2
        assert "Unknown field" in result.output

    def test_reset_field(self, invoke, config_file):
        invoke("config", "set", "device.fps_limit", "60")

        result = invoke("config", "reset", "--field", "device.fps_limit")

        assert result.exit_code == 0
        assert AppConfig.load_or_default(config_file).device.fps_limit == 45

    def test_broken_config_file(self, invoke, config_file):
        config_file.write_text("{ not json")

        result = invoke("config", "show")

        assert result.exit_code == 1
        assert "ERROR" in result.output


@pytest.mark.integration
class TestCacheCommand:
    """Test cache list/remove/purge."""

    def _seed(self, tmp_path: Path) -> DeviceCache:
        cache = DeviceCache(JsonSettingsStore(tmp_path / "state.json"))
        cache.add("98:cd:ac:00:11:22", CacheEntry(id="98:cd:ac:00:11:22", name="Tree", ip="192.168.1.40"))
        return cache

    def test_list_empty(self, invoke):
        result = invoke("cache", "list")
        assert result.exit_code == 0
        assert "empty" in result.output

    def test_list_entries(self, invoke, tmp_path):
        self._seed(tmp_path)

        result = invoke("cache", "list")

        assert result.exit_code == 0
        assert "Tree" in result.output
        assert "192.168.1.40:5555" in result.output

    def test_remove(self, invoke, tmp_path):
        self._seed(tmp_path)

        result = invoke("cache", "remove", "98:cd:ac:00:11:22")

        assert result.exit_code == 0
        assert len(DeviceCache(JsonSettingsStore(tmp_path / "state.json"))) == 0

    def test_remove_missing(self, invoke):
        result = invoke("cache", "remove", "00:00:00:00:00:01")
        assert result.exit_code == 1

    def test_purge(self, invoke, tmp_path):
        self._seed(tmp_path)

        result = invoke("cache", "purge", "--yes")

        assert result.exit_code == 0
        assert len(DeviceCache(JsonSettingsStore(tmp_path / "state.json"))) == 0


@pytest.mark.integration
class TestInfoCommand:
    """Test the info command against the in-memory device."""

    def test_info(self, invoke):
        fake = FakeTwinkly()
        with patch(
            "twinklyrt.cli.commands.info.XledHttpClient",
            lambda ip, timeout: fake.client(ip, timeout),
        ):
            result = invoke("info", "192.168.1.40")

        assert result.exit_code == 0
        assert "Twinkly_ABC123" in result.output
        assert "Strings (TWS250STP)" in result.output
        assert "Firmware:    2.8.3" in result.output
        assert "3 LEDs on a 21x21 grid" in result.output

    def test_info_auth_failure(self, invoke):
        fake = FakeTwinkly()
        fake.login_ok = False
        with patch(
            "twinklyrt.cli.commands.info.XledHttpClient",
            lambda ip, timeout: fake.client(ip, timeout),
        ):
            result = invoke("info", "192.168.1.40")

        assert result.exit_code == 1
        assert "ERROR" in result.output


@pytest.mark.integration
class TestRunCommand:
    """Test the run command with the device controller patched out."""

    def run_with(self, invoke, *args, initialized=True):
        with patch("twinklyrt.cli.commands.run.DeviceController") as controller_cls:
            controller = controller_cls.return_value
            controller.initialize.return_value = initialized
            controller.layout.led_count = 3
            controller.info.device_name = "Twinkly_ABC123"
            result = invoke("run", "192.168.1.40", *args)
        return result, controller_cls, controller

    def test_run_disables_idle_power_off(self, invoke):
        result, controller_cls, controller = self.run_with(invoke, "--seconds", "0")

        assert result.exit_code == 0
        settings = controller_cls.call_args.args[2]
        assert settings.immediate_pause_off is False
        assert settings.off_when_idle is False
        assert "Streaming rainbow to Twinkly_ABC123 (3 LEDs)" in result.output
        controller.on_shutdown.assert_called_once_with(suspending=False)

    def test_zero_seconds_runs_no_ticks(self, invoke):
        result, _, controller = self.run_with(invoke, "--seconds", "0")

        assert result.exit_code == 0
        controller.on_tick.assert_not_called()

    def test_forced_color_keeps_device_in_rt(self, invoke):
        result, controller_cls, _ = self.run_with(
            invoke, "--forced", "--color", "#00FF00", "--seconds", "0"
        )

        assert result.exit_code == 0
        settings = controller_cls.call_args.args[2]
        assert settings.lighting_mode is LightingMode.FORCED
        assert settings.forced_color.to_hex() == "#00FF00"
        assert settings.keepalive_seconds >= 1
        assert settings.off_when_idle is False

    def test_initialize_failure(self, invoke):
        result, _, controller = self.run_with(invoke, "--seconds", "0", initialized=False)

        assert result.exit_code == 1
        assert "ERROR" in result.output
        controller.on_tick.assert_not_called()
