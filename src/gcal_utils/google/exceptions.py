"""Google Calendar client exceptions.

Every failure surfaced by the client is a ``CalendarError`` tagged with an
``ErrorKind``, so callers can branch on ``error.kind`` or on the subclass.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Category of a calendar client failure."""

    CONFIGURATION = "configuration"
    TRANSPORT = "transport"
    INVALID_RESPONSE = "invalid_response"
    API = "api"


class CalendarError(Exception):
    """Base exception for calendar client errors."""

    kind: ErrorKind

    def __init__(self, message: str = ""):
        self.message = message
        super().__init__(message)


class ConfigurationError(CalendarError):
    """Raised when the client is used before it is configured."""

    kind = ErrorKind.CONFIGURATION


class TransportError(CalendarError):
    """Raised when the HTTP request could not be completed."""

    kind = ErrorKind.TRANSPORT


class InvalidResponseError(CalendarError):
    """Raised when the response body is not valid JSON."""

    kind = ErrorKind.INVALID_RESPONSE

    def __init__(self, message: str = "Invalid JSON-response", body: str | None = None):
        self.body = body
        super().__init__(message)


class CalendarAPIError(CalendarError):
    """Raised when the API response carries an ``error`` object.

    The message is ``"<type>: <message>"`` when the error has a type, the bare
    message otherwise. It may be the empty string.
    """

    kind = ErrorKind.API

    def __init__(self, message: str, payload: Any = None):
        self.payload = payload
        super().__init__(message)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> CalendarAPIError:
        """Build the error from a decoded response containing ``error``."""
        error = payload.get("error")
        if not isinstance(error, dict):
            return cls("" if error is None else str(error), payload=payload)

        error_type = "" if error.get("type") is None else str(error["type"])
        message = "" if error.get("message") is None else str(error["message"])
        if error_type:
            message = f"{error_type}: {message}".strip()
        return cls(message, payload=payload)
