"""Google Calendar REST client implementation."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlencode

import httpx

from gcal_utils.config import CalendarSettings
from gcal_utils.google.exceptions import (
    CalendarAPIError,
    ConfigurationError,
    InvalidResponseError,
)
from gcal_utils.google.oauth import Credentials, OAuthFlow, OAuthRedirect
from gcal_utils.google.transport import ContentFetcher, mask_tokens


def format_timestamp(timestamp: int | float) -> str:
    """Format a Unix timestamp the way the events query expects.

    Example:
        >>> format_timestamp(0)
        '1970-01-01T00:00:00.000z'
    """
    moment = datetime.fromtimestamp(int(timestamp), tz=timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S") + ".000z"


class CalendarClient:
    """Google Calendar client for the events of a single calendar.

    Usage:
        client = CalendarClient.from_env()
        client.set_calendar("team@group.calendar.google.com")

        # First run: send the user to the consent screen
        redirect = client.request_oauth("https://example.com/oauth/callback")
        # ...then, in the callback handler
        client.get_oauth_access(code=request.args["code"])

        # Later runs: renew the access token with the stored refresh token
        client.request_oauth(refresh_token=stored_refresh_token)

        events = client.get_between(start_ts, end_ts)
        client.insert_event({"summary": "Standup", "start": {...}, "end": {...}})

    Note:
        Instances are meant for sequential use; do not share one across threads.
    """

    def __init__(
        self,
        settings: CalendarSettings | None = None,
        access_token: str | None = None,
        refresh_token: str | None = None,
        calendar_id: str | None = None,
        transport: httpx.BaseTransport | None = None,
        logger: logging.Logger | None = None,
        debug: bool | None = None,
    ) -> None:
        """Initialize Calendar client.

        Args:
            settings: Endpoints and OAuth client credentials. Defaults to
                ``CalendarSettings()`` (Google endpoints, no credentials).
            access_token: Previously obtained access token.
            refresh_token: Previously obtained refresh token.
            calendar_id: Calendar to operate on; can be set later.
            transport: Optional httpx transport, mainly for tests.
            logger: Logger for request and error diagnostics.
            debug: Log full error responses. Defaults to ``settings.debug``.
        """
        self.settings = settings or CalendarSettings()
        self.credentials = Credentials(access_token=access_token, refresh_token=refresh_token)
        self.calendar_id = calendar_id
        self.debug = self.settings.debug if debug is None else debug
        self._logger = logger or logging.getLogger(__name__)

        self._fetcher = ContentFetcher(
            user_agent=self.settings.user_agent,
            timeout=self.settings.timeout,
            verify=self.settings.verify_ssl,
            transport=transport,
        )
        self._oauth = OAuthFlow(self.settings, self._fetcher)

    @classmethod
    def from_env(cls, env_file: str | None = None, **kwargs: Any) -> CalendarClient:
        """Create a client configured from GCAL_* environment variables."""
        return cls(settings=CalendarSettings.from_env(env_file), **kwargs)

    @property
    def access_token(self) -> str | None:
        return self.credentials.access_token

    @property
    def refresh_token(self) -> str | None:
        return self.credentials.refresh_token

    def is_authorized(self) -> bool:
        """Check if an access token is held."""
        return bool(self.credentials.access_token)

    def set_calendar(self, calendar_id: str) -> None:
        """Set the calendar all event operations act on.

        Args:
            calendar_id: Calendar ID, e.g. "primary" or a group calendar address.
        """
        self.calendar_id = calendar_id

    # =========================================================================
    # OAuth
    # =========================================================================

    def request_oauth(
        self,
        redirect_url: str | None = None,
        refresh_token: str | None = None,
    ) -> OAuthRedirect | None:
        """Start or renew OAuth access.

        With a refresh token the access token is renewed immediately and
        nothing is returned. Without one, the consent redirect is returned for
        the embedding web application to send to the user agent.

        Args:
            redirect_url: Callback URL registered for the OAuth client.
            refresh_token: Refresh token from an earlier exchange.

        Returns:
            OAuthRedirect (HTTP 307) or None.
        """
        if refresh_token:
            self.get_oauth_access(refresh_token=refresh_token)
            return None

        redirect = self._oauth.authorization_redirect(redirect_url)
        self._logger.info("Redirecting user to OAuth consent screen")
        return redirect

    def get_oauth_access(
        self,
        code: str | None = None,
        refresh_token: str | None = None,
    ) -> dict[str, Any]:
        """Exchange an authorization code or refresh token for tokens.

        The access token is always stored. The refresh token from the
        response is stored only when the caller did not supply one.

        Args:
            code: Authorization code from the consent callback.
            refresh_token: Refresh token for renewal.

        Returns:
            Decoded token response (empty if the response was malformed).
        """
        token = self._oauth.exchange(code=code, refresh_token=refresh_token)
        self.credentials.update_from_token(token, keep_refresh_token=refresh_token is not None)
        return token

    # =========================================================================
    # Requests
    # =========================================================================

    def _build_url(self, path: str) -> str:
        url = f"{self.settings.api_url.rstrip('/')}/{self.calendar_id}/{path}"
        separator = "&" if "?" in url else "?"
        return f"{url}{separator}{urlencode({'access_token': self.access_token or ''})}"

    def do_call(
        self,
        path: str,
        parameters: dict[str, Any] | None = None,
        method: str = "GET",
    ) -> Any:
        """Make an authenticated call against the calendar resource.

        Args:
            path: Resource path below the calendar, e.g. "events".
            parameters: Query parameters for GET, JSON body for POST.
            method: HTTP method. Other verbs are sent without a body.

        Returns:
            Decoded JSON response.

        Raises:
            ConfigurationError: If no calendar has been set.
            TransportError: If the request fails.
            InvalidResponseError: If the response is not JSON.
            CalendarAPIError: If the response contains an ``error`` object.
        """
        if not self.calendar_id:
            raise ConfigurationError("No Calendar set")

        method = method.upper()
        options: dict[str, Any] = {"method": method}

        if method == "GET":
            if parameters:
                path = f"{path}?{urlencode(parameters)}"
        elif method == "POST":
            data = json.dumps(parameters).encode("utf-8")
            options["content"] = data
            options["headers"] = {
                "Content-Type": "application/json",
                "Content-Length": str(len(data)),
            }

        url = self._build_url(path)
        response = self._fetcher.request(url, options)
        body = response.text

        # Empty bodies (e.g. DELETE's 204) decode to None
        if not body.strip():
            return None

        try:
            payload = json.loads(body)
        except json.JSONDecodeError as e:
            self._logger.error(f"Invalid JSON from {method} {mask_tokens(url)}")
            raise InvalidResponseError(body=body) from e

        if isinstance(payload, dict) and payload.get("error") is not None:
            if self.debug:
                self._logger.debug(
                    f"API error {response.status_code} for {method} {mask_tokens(url)}: "
                    f"headers={dict(response.headers)} json={payload}"
                )
            raise CalendarAPIError.from_payload(payload)

        return payload

    # =========================================================================
    # Events
    # =========================================================================

    def get_all_events(self) -> Any:
        """Get all events of the calendar."""
        return self.do_call("events")

    def get_between(self, from_timestamp: int, to_timestamp: int) -> Any:
        """Get events between two Unix timestamps.

        Args:
            from_timestamp: Lower bound (timeMin).
            to_timestamp: Upper bound (timeMax).

        Returns:
            Decoded events list response.
        """
        return self.do_call(
            "events",
            {
                "timeMax": format_timestamp(to_timestamp),
                "timeMin": format_timestamp(from_timestamp),
            },
        )

    def get_from(self, from_timestamp: int) -> Any:
        """Get events ending after a Unix timestamp."""
        return self.do_call("events", {"timeMin": format_timestamp(from_timestamp)})

    def get_to(self, to_timestamp: int) -> Any:
        """Get events starting before a Unix timestamp."""
        return self.do_call("events", {"timeMax": format_timestamp(to_timestamp)})

    def get_event(self, event_id: str) -> Any | None:
        """Get a specific event.

        Args:
            event_id: Event ID.

        Returns:
            Decoded event, or None when the API answers with an error that
            has no message.
        """
        try:
            return self.do_call(f"events/{event_id}")
        except CalendarAPIError as e:
            # Any message-less error counts as "not found", not just 404s.
            if e.message == "":
                return None
            raise

    def insert_event(self, values: dict[str, Any]) -> None:
        """Insert an event.

        Args:
            values: Event resource, sent unmodified as the JSON body.
        """
        self.do_call("events", values, "POST")

    def delete_event(self, event_id: str) -> None:
        """Delete an event.

        Args:
            event_id: Event ID to delete.
        """
        self.do_call(f"events/{event_id}", None, "DELETE")
