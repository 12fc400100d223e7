"""Google Calendar REST client with OAuth authentication.

Read and write the events of one calendar over the Calendar v3 JSON API.

Usage:
    from gcal_utils.calendar import CalendarClient

    client = CalendarClient.from_env(refresh_token=stored_refresh_token)
    client.request_oauth(refresh_token=stored_refresh_token)
    client.set_calendar("primary")

    events = client.get_all_events()
    event = client.get_event("abc123")
    client.delete_event("abc123")

OAuth Setup:
    1. Create an OAuth client in Google Cloud Console
    2. Export GCAL_CLIENT_ID, GCAL_CLIENT_SECRET and GCAL_REDIRECT_URI
       (or put them in a .env file)
"""

from __future__ import annotations

from gcal_utils.calendar.client import CalendarClient, format_timestamp

__all__ = ["CalendarClient", "format_timestamp"]
