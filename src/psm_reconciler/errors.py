"""Error types raised by the reconciliation layer.

Every failure reaches the caller as one of these; nothing is logged and
swallowed. Expanders raise the builtin TypeError for programmer errors
(a required scalar left unset), which is not a PSMError.
"""
from typing import Optional


class PSMError(Exception):
    """Base class for all reconciliation errors."""
    pass


class ConfigError(PSMError):
    """Provider settings could not be loaded."""
    pass


class ValidationError(PSMError):
    """Desired state is malformed or incomplete.

    Always raised before any request is sent to the server.
    """

    def __init__(self, message: str, errors: Optional[list[str]] = None):
        super().__init__(message)
        self.errors = errors if errors is not None else [message]


class ParseError(ValidationError):
    """Desired-state mapping could not be turned into typed records."""
    pass


class TransportError(PSMError):
    """The HTTP call itself could not be completed."""
    pass


class RemoteRejectedError(PSMError):
    """The server answered with a non-success status code."""

    def __init__(self, action: str, status_code: int, reason: str, body: str):
        self.action = action
        self.status_code = status_code
        self.reason = reason
        self.body = body
        super().__init__(
            f"failed to {action}: HTTP {status_code} {reason}: {body}"
        )


class DecodeError(PSMError):
    """Response body is not JSON or not the expected document shape."""
    pass
