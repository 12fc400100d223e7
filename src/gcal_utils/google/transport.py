"""HTTP content fetching for the calendar client.

A thin wrapper over ``httpx`` that returns the raw response body as text and
turns every transport-level failure into a ``TransportError``. HTTP status
codes are not inspected here.
"""

from __future__ import annotations

import logging
import re
from typing import Any

import httpx

from gcal_utils.google.exceptions import TransportError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "gcal-utils CalendarClient"
DEFAULT_TIMEOUT = 10.0

_TOKEN_PATTERN = re.compile(r"((?:access|refresh)_token=)[^&\s]*")


def mask_tokens(text: str) -> str:
    """Hide token values in a URL or form body before logging it."""
    return _TOKEN_PATTERN.sub(r"\1***", text)


class ContentFetcher:
    """Fetch the body of a URL as text.

    Defaults: GET, a fixed user agent, redirects followed, a 10 second timeout
    and TLS verification disabled. Any key passed in ``options`` overrides the
    matching default:

        method, content, headers, user_agent, timeout, verify, follow_redirects

    Example:
        >>> fetcher = ContentFetcher()
        >>> body = fetcher.fetch("https://example.com/data.json")
        >>> body = fetcher.fetch(url, {"method": "POST", "content": b"{}"})
    """

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_TIMEOUT,
        verify: bool = False,
        follow_redirects: bool = True,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the fetcher.

        Args:
            user_agent: User-Agent header sent with every request.
            timeout: Total request timeout in seconds.
            verify: Whether to verify TLS certificates and host names.
            follow_redirects: Whether to follow HTTP redirects.
            transport: Optional httpx transport (e.g. ``httpx.MockTransport``).
        """
        self.defaults: dict[str, Any] = {
            "method": "GET",
            "content": None,
            "headers": {},
            "user_agent": user_agent,
            "timeout": timeout,
            "verify": verify,
            "follow_redirects": follow_redirects,
        }
        self._transport = transport

    def build_options(self, options: dict[str, Any] | None = None) -> dict[str, Any]:
        """Merge caller options over the defaults."""
        merged = dict(self.defaults)
        if options:
            unknown = set(options) - set(merged)
            if unknown:
                raise ValueError(f"Unknown transport options: {sorted(unknown)}")
            merged.update(options)
        return merged

    def fetch(self, url: str, options: dict[str, Any] | None = None) -> str:
        """Perform the request and return the response body as text."""
        return self.request(url, options).text

    def request(self, url: str, options: dict[str, Any] | None = None) -> httpx.Response:
        """Perform the request and return the fully read response.

        Args:
            url: Absolute URL to request.
            options: Overrides for the default transport options.

        Returns:
            The httpx response, whatever the status code.

        Raises:
            TransportError: If the request could not be completed.
        """
        opts = self.build_options(options)
        headers = {"User-Agent": opts["user_agent"], **opts["headers"]}

        logger.debug(f"{opts['method']} {mask_tokens(url)}")

        try:
            with httpx.Client(
                timeout=opts["timeout"],
                verify=opts["verify"],
                follow_redirects=opts["follow_redirects"],
                transport=self._transport,
            ) as client:
                response = client.request(
                    opts["method"],
                    url,
                    content=opts["content"],
                    headers=headers,
                )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            message = mask_tokens(str(e))
            logger.warning(f"Request to {mask_tokens(url)} failed: {message}")
            raise TransportError(message) from e

        logger.debug(f"Response {response.status_code} from {mask_tokens(url)}")
        return response
