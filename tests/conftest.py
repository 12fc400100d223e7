"""Shared fixtures: test settings and an in-memory calendar server."""

import json
from urllib.parse import parse_qs

import httpx
import pytest

from gcal_utils.calendar import CalendarClient
from gcal_utils.config import CalendarSettings

API_URL = "https://calendar.test/calendar/v3/calendars"
OAUTH_URL = "https://oauth.test/o/oauth2"


class FakeCalendarServer:
    """Minimal stand-in for the Calendar events and token endpoints."""

    def __init__(self, calendar_id: str = "team-calendar", access_token: str = "good-token"):
        self.calendar_id = calendar_id
        self.access_token = access_token
        self.events: dict[str, dict] = {}
        self.requests: list[httpx.Request] = []
        self.last_token_form: dict[str, str] = {}
        self.token_response: dict = {
            "access_token": access_token,
            "refresh_token": "server-refresh-token",
            "expires_in": 3599,
            "token_type": "Bearer",
        }

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.host == "oauth.test":
            return self._token(request)

        if request.url.params.get("access_token") != self.access_token:
            return httpx.Response(
                401, json={"error": {"type": "authError", "message": "Invalid Credentials"}}
            )

        prefix = f"/calendar/v3/calendars/{self.calendar_id}/events"
        path = request.url.path
        if not path.startswith(prefix):
            return httpx.Response(404, json={"error": {"message": "Calendar not found"}})

        event_id = path[len(prefix) :].lstrip("/")
        if not event_id:
            if request.method == "GET":
                return httpx.Response(200, json={"items": list(self.events.values())})
            if request.method == "POST":
                event = json.loads(request.content)
                self.events[event["id"]] = event
                return httpx.Response(200, json=event)
        elif event_id in self.events:
            if request.method == "GET":
                return httpx.Response(200, json=self.events[event_id])
            if request.method == "DELETE":
                del self.events[event_id]
                return httpx.Response(204)
        else:
            return httpx.Response(404, json={"error": {"code": 404}})

        return httpx.Response(405, json={"error": {"message": "Method not allowed"}})

    def _token(self, request: httpx.Request) -> httpx.Response:
        form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        self.last_token_form = form
        return httpx.Response(200, json=self.token_response)


@pytest.fixture
def settings():
    """Settings pointing at the fake server."""
    return CalendarSettings(
        client_id="test-client-id.apps.googleusercontent.com",
        client_secret="test-client-secret",
        redirect_uri="https://app.test/oauth/callback",
        oauth_url=OAUTH_URL,
        api_url=API_URL,
    )


@pytest.fixture
def server():
    """An empty in-memory calendar server."""
    return FakeCalendarServer()


@pytest.fixture
def client(settings, server):
    """A client with a calendar and access token, backed by the fake server."""
    return CalendarClient(
        settings=settings,
        access_token=server.access_token,
        calendar_id=server.calendar_id,
        transport=httpx.MockTransport(server),
    )


@pytest.fixture
def make_client(settings):
    """Factory for clients whose requests go to a custom handler."""

    def _make(handler, **kwargs):
        kwargs.setdefault("access_token", "good-token")
        kwargs.setdefault("calendar_id", "team-calendar")
        return CalendarClient(settings=settings, transport=httpx.MockTransport(handler), **kwargs)

    return _make
