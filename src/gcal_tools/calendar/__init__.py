"""Google Calendar API client with OAuth authentication.

Usage:
    from gcal_tools.calendar import CalendarClient, normalize

    client = CalendarClient(auth)

    # List events for a day
    events = client.list_events(
        "primary",
        time_min="2026-01-25T00:00:00+09:00",
        time_max="2026-01-25T23:59:59+09:00",
    )

    # Create an all-day event
    event = client.insert_event(
        "primary",
        summary="Holiday",
        start=normalize("2026-01-25"),
        end=normalize("2026-01-26"),
    )
"""

from __future__ import annotations

from gcal_tools.calendar.client import Calendar, CalendarClient, Event
from gcal_tools.calendar.times import (
    DEFAULT_TIME_ZONE,
    DEFAULT_UTC_OFFSET,
    AllDay,
    EventTimeSpec,
    Timed,
    event_time_from_api,
    normalize,
)

__all__ = [
    "CalendarClient",
    "Calendar",
    "Event",
    "AllDay",
    "Timed",
    "EventTimeSpec",
    "normalize",
    "event_time_from_api",
    "DEFAULT_TIME_ZONE",
    "DEFAULT_UTC_OFFSET",
]
