"""Errors for config.json and the persisted device state.

Both files are pydantic models written by PydanticPersistence. A file that
is not JSON raises ConfigFileInvalidError; JSON whose values are out of
range (fps limit, idle timeout, canvas scale, colors) raises
ConfigValidationError naming the offending field.
"""

from typing import Any

from .base import TwinklyError

# Field name fragment -> allowed range, matched in order
FIELD_HINTS = [
    ("fps", "Max FPS must be between 10 and 120"),
    ("idle_off", "Idle timeout must be between 2 and 60 seconds"),
    ("keepalive", "Keepalive is 0 (off) to 120 seconds"),
    ("scale", "Canvas scale must be between 1 and 10"),
    ("tick_rate", "Tick rate must be above 0 and at most 240 per second"),
    ("color", "Colors are hex strings such as '#FF0000'"),
]


class ConfigurationError(TwinklyError):
    """config.json or the state file cannot be used."""


class ConfigFileInvalidError(ConfigurationError):
    """The file is empty or is not valid JSON."""

    def __init__(self, file_path: str, parse_error: str):
        lowered = parse_error.lower()
        if "trailing comma" in lowered:
            user_msg = f"{file_path} has a trailing comma"
            recovery = "Remove the comma after the last item of the object or list."
        else:
            user_msg = f"{file_path} is not valid JSON"
            recovery = (
                f"Fix {file_path} by hand. For config.json, 'twinklyrt config reset' "
                "writes the defaults and keeps the old file as a .bak backup."
            )

        super().__init__(
            user_message=user_msg,
            technical_message=f"JSON parse error in {file_path}: {parse_error}",
            recoverable=True,
            recovery_hint=recovery,
        )
        self.file_path = file_path
        self.parse_error = parse_error


class ConfigValidationError(ConfigurationError):
    """A value in the file is outside what the engine accepts."""

    def __init__(self, field: str, value: Any, error_msg: str, file_path: str | None = None):
        """
        Args:
            field: Dotted field path, e.g. "device.fps_limit"
            value: The rejected value
            error_msg: Validation message from pydantic
            file_path: File the value came from, if any
        """
        recovery = f"Change '{field}' with 'twinklyrt config set' or 'twinklyrt config reset'"
        if file_path:
            recovery += f"\nConfig file: {file_path}"

        lowered = field.lower()
        for fragment, hint in FIELD_HINTS:
            if fragment in lowered:
                recovery += f"\n{hint}"
                break

        super().__init__(
            user_message=f"Invalid value for '{field}': {error_msg}",
            technical_message=f"Config validation failed for {field}={value!r}: {error_msg}",
            recoverable=True,
            recovery_hint=recovery,
        )
        self.field = field
        self.value = value
        self.file_path = file_path
