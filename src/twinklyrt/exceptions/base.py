"""Root of the twinklyrt error hierarchy.

Every failure the engine raises on purpose (an unreachable controller, a
rejected token, a broken config.json) is a TwinklyError. Each one carries
two texts: a short sentence for the terminal and a detailed line for the
log file with the device IP, endpoint and status code. Errors that a retry
or a settings change can fix are flagged as recoverable and usually name
the command or setting to try.
"""


class TwinklyError(Exception):
    """
    Error raised by the twinklyrt engine.

    `str(error)` is the terminal text; the CLI error banner prints
    `get_full_message()` to add the hint.

    Attributes:
        user_message: Short sentence shown in the CLI
        technical_message: Log line with device and protocol details
        recoverable: True if retrying or changing a setting can fix it
        recovery_hint: What to run or change, e.g. "Run 'twinklyrt discover'"
    """

    def __init__(
        self,
        user_message: str,
        technical_message: str | None = None,
        recoverable: bool = False,
        recovery_hint: str | None = None,
    ):
        super().__init__(user_message)
        self.user_message = user_message
        self.technical_message = technical_message or user_message
        self.recoverable = recoverable
        self.recovery_hint = recovery_hint

    def __str__(self) -> str:
        return self.user_message

    def get_full_message(self) -> str:
        """Terminal text followed by the hint, if there is one."""
        if not self.recovery_hint:
            return self.user_message
        return f"{self.user_message}\n\nSuggestion: {self.recovery_hint}"
