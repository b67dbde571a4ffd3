"""
Custom exception hierarchy for twinklyrt.

## Exception Hierarchy

```
TwinklyError (base)
├── DeviceError
│   ├── NetworkError
│   ├── AuthError
│   ├── ParseError
│   └── ProtocolError
└── ConfigurationError
    ├── ConfigFileInvalidError
    └── ConfigValidationError
```

All custom exceptions inherit from `TwinklyError`, which provides:

- `user_message`: Human-friendly message for display to users
- `technical_message`: Detailed message for logging
- `recoverable`: Whether the error can be recovered from
- `recovery_hint`: Optional suggestion for how to fix the issue

Device errors never escape the render tick or the idle timer. They are
raised by the HTTP layer and contained by the controller, which logs them
and treats the cycle as "no update".

See `twinklyrt.exceptions.handlers` for utilities to handle these exceptions systematically.
"""

from .base import TwinklyError
from .config import ConfigFileInvalidError, ConfigurationError, ConfigValidationError
from .device import AuthError, DeviceError, NetworkError, ParseError, ProtocolError
from .handlers import (
    ErrorCollector,
    ErrorContext,
    collect_errors,
    format_error_for_display,
    handle_errors,
    wrap_http_error,
    wrap_pydantic_error,
)

__all__ = [
    # Device
    "AuthError",
    # Config
    "ConfigFileInvalidError",
    "ConfigValidationError",
    "ConfigurationError",
    "DeviceError",
    # Handlers
    "ErrorCollector",
    "ErrorContext",
    "NetworkError",
    "ParseError",
    "ProtocolError",
    # Base
    "TwinklyError",
    "collect_errors",
    "format_error_for_display",
    "handle_errors",
    "wrap_http_error",
    "wrap_pydantic_error",
]
