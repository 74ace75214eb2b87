"""Event start/end times.

The Calendar API describes an event endpoint either as an all-day date
(``{"date": "2025-01-15"}``) or as a zoned timestamp
(``{"dateTime": "2025-01-15T10:00:00+09:00", "timeZone": "Asia/Tokyo"}``),
never both. Date-times given without an offset are read as JST.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from gcal_tools.exceptions import InvalidTimeFormatError

DEFAULT_UTC_OFFSET = timezone(timedelta(hours=9))
DEFAULT_TIME_ZONE = "Asia/Tokyo"

_DATE_ONLY = re.compile(r"\d{4}-\d{2}-\d{2}")


@dataclass(frozen=True)
class AllDay:
    """An all-day endpoint: a calendar date with no time of day."""

    date: str

    def to_api(self) -> dict[str, Any]:
        return {"date": self.date}

    def to_dict(self) -> dict[str, Any]:
        return {"date_time": None, "date": self.date}


@dataclass(frozen=True)
class Timed:
    """A timed endpoint: an absolute instant plus a display time zone."""

    instant: datetime
    time_zone: str | None = DEFAULT_TIME_ZONE

    def to_api(self) -> dict[str, Any]:
        data: dict[str, Any] = {"dateTime": self.instant.isoformat()}
        if self.time_zone:
            data["timeZone"] = self.time_zone
        return data

    def to_dict(self) -> dict[str, Any]:
        return {"date_time": self.instant.isoformat(), "date": None}


EventTimeSpec = AllDay | Timed


def _parse_datetime(text: str) -> datetime:
    return datetime.fromisoformat(text.replace("Z", "+00:00"))


def normalize(text: str) -> EventTimeSpec:
    """Convert a user-supplied date or date-time into an event time.

    ``YYYY-MM-DD`` gives an all-day time. Anything else must be an ISO 8601
    date-time; one without an offset is taken to be +09:00.

    Raises:
        InvalidTimeFormatError: If the text is neither.
    """
    if _DATE_ONLY.fullmatch(text):
        return AllDay(date=text)

    try:
        instant = _parse_datetime(text.strip())
    except ValueError:
        raise InvalidTimeFormatError(text) from None

    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=DEFAULT_UTC_OFFSET)

    return Timed(instant=instant, time_zone=DEFAULT_TIME_ZONE)


def event_time_from_api(data: dict[str, Any] | None) -> EventTimeSpec | None:
    """Parse an API start/end object into an event time."""
    if not data:
        return None
    if data.get("dateTime"):
        return Timed(instant=_parse_datetime(data["dateTime"]), time_zone=data.get("timeZone"))
    if data.get("date"):
        return AllDay(date=data["date"])
    return None


def event_time_to_dict(value: EventTimeSpec | None) -> dict[str, Any] | None:
    """Output form of an event time, ``{"date_time": ..., "date": ...}``."""
    if value is None:
        return None
    return value.to_dict()
