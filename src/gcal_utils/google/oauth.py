"""Google OAuth 2.0 authorization-code and refresh-token exchange.

The authorization request URL and token request body are built with Authlib's
RFC 6749 parameter helpers; the token request itself goes through the same
``ContentFetcher`` as every other call.

Flow:
    1. ``authorization_redirect()`` gives the URL the end user must visit.
    2. Google redirects back with ``?code=...``.
    3. ``exchange(code=...)`` trades the code for access and refresh tokens.
    4. Later, ``exchange(refresh_token=...)`` mints a fresh access token.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from authlib.oauth2.rfc6749.parameters import prepare_grant_uri, prepare_token_request
from google.oauth2.credentials import Credentials as GoogleCredentials

from gcal_utils.google.exceptions import ConfigurationError
from gcal_utils.google.transport import ContentFetcher

if TYPE_CHECKING:
    from gcal_utils.config import CalendarSettings

logger = logging.getLogger(__name__)


@dataclass
class Credentials:
    """OAuth tokens held by a client."""

    access_token: str | None = None
    refresh_token: str | None = None

    def update_from_token(self, token: dict[str, Any], keep_refresh_token: bool = False) -> None:
        """Store tokens from a token endpoint response.

        Args:
            token: Decoded token endpoint response.
            keep_refresh_token: Leave ``refresh_token`` untouched even if the
                response carries one.
        """
        if "access_token" in token:
            self.access_token = token["access_token"]
        if not keep_refresh_token and "refresh_token" in token:
            self.refresh_token = token["refresh_token"]

    def to_google_credentials(self, settings: CalendarSettings) -> GoogleCredentials:
        """Get a Google Credentials object for other Google client libraries."""
        return GoogleCredentials(
            token=self.access_token,
            refresh_token=self.refresh_token,
            token_uri=settings.token_url,
            client_id=settings.client_id,
            client_secret=settings.client_secret,
            scopes=settings.scope.split(),
        )


@dataclass(frozen=True)
class OAuthRedirect:
    """A temporary redirect sending the end user to the consent screen.

    Web frameworks turn this into their own response object, e.g.
    ``RedirectResponse(redirect.location, status_code=redirect.status_code)``.
    """

    location: str
    status_code: int = 307

    @property
    def headers(self) -> dict[str, str]:
        return {"Location": self.location}


class OAuthFlow:
    """Builds authorization requests and performs token exchanges."""

    def __init__(self, settings: CalendarSettings, fetcher: ContentFetcher):
        self.settings = settings
        self.fetcher = fetcher

    def authorization_url(self, redirect_url: str | None) -> str:
        """Build the consent URL for offline calendar access.

        Args:
            redirect_url: Where Google sends the user back with ``code``.

        Raises:
            ConfigurationError: If no client id is configured.
        """
        if not self.settings.client_id:
            raise ConfigurationError("OAuth client_id is required. Set GCAL_CLIENT_ID.")

        return prepare_grant_uri(
            self.settings.authorize_url,
            client_id=self.settings.client_id,
            response_type="code",
            redirect_uri=redirect_url,
            scope=self.settings.scope,
            access_type="offline",
        )

    def authorization_redirect(self, redirect_url: str | None) -> OAuthRedirect:
        """Wrap ``authorization_url`` in a 307 redirect."""
        return OAuthRedirect(location=self.authorization_url(redirect_url))

    def token_request_body(self, code: str | None = None, refresh_token: str | None = None) -> str:
        """Build the URL-encoded token endpoint body.

        A code selects the ``authorization_code`` grant (with the configured
        redirect URI); otherwise the ``refresh_token`` grant is used.
        """
        client_id, client_secret = self.settings.require_oauth_credentials()

        if code:
            if not self.settings.redirect_uri:
                raise ConfigurationError(
                    "OAuth redirect_uri is required to exchange a code. Set GCAL_REDIRECT_URI."
                )
            return prepare_token_request(
                "authorization_code",
                redirect_uri=self.settings.redirect_uri,
                code=code,
                client_id=client_id,
                client_secret=client_secret,
            )
        return prepare_token_request(
            "refresh_token",
            refresh_token=refresh_token,
            client_id=client_id,
            client_secret=client_secret,
        )

    def exchange(self, code: str | None = None, refresh_token: str | None = None) -> dict[str, Any]:
        """POST to the token endpoint and decode the response.

        Args:
            code: Authorization code from the consent redirect.
            refresh_token: Refresh token for renewing the access token.

        Returns:
            Decoded token response, or an empty dict when the response is not
            a JSON object.

        Raises:
            ConfigurationError: If client credentials are missing.
            TransportError: If the token endpoint cannot be reached.
        """
        body = self.token_request_body(code=code, refresh_token=refresh_token)
        grant = "authorization_code" if code else "refresh_token"
        logger.info(f"Requesting access token ({grant} grant)")

        response = self.fetcher.fetch(
            self.settings.token_url,
            {
                "method": "POST",
                "content": body.encode("utf-8"),
                "headers": {"Content-Type": "application/x-www-form-urlencoded"},
            },
        )

        try:
            token = json.loads(response)
        except json.JSONDecodeError:
            logger.warning("Token endpoint returned a non-JSON response")
            return {}

        if not isinstance(token, dict):
            logger.warning("Token endpoint returned an unexpected JSON value")
            return {}
        if "error" in token:
            logger.warning(f"Token endpoint returned error: {token['error']}")
        return token
