"""Google OAuth, transport and error types shared by the calendar client."""

from gcal_utils.google.exceptions import (
    CalendarAPIError,
    CalendarError,
    ConfigurationError,
    ErrorKind,
    InvalidResponseError,
    TransportError,
)
from gcal_utils.google.oauth import Credentials, OAuthFlow, OAuthRedirect
from gcal_utils.google.transport import ContentFetcher

__all__ = [
    "ContentFetcher",
    "Credentials",
    "OAuthFlow",
    "OAuthRedirect",
    "ErrorKind",
    "CalendarError",
    "ConfigurationError",
    "TransportError",
    "InvalidResponseError",
    "CalendarAPIError",
]
