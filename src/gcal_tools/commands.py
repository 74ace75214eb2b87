"""Calendar commands: fetch, create, update and delete.

Each command takes an already-configured ``CalendarClient`` and returns the
JSON-ready payload it reports. ``run_command`` wraps a command and turns a
``CalendarToolsError`` into a failed ``CommandResult``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any

from gcal_tools.calendar.client import CalendarClient
from gcal_tools.calendar.times import DEFAULT_UTC_OFFSET, normalize
from gcal_tools.exceptions import CalendarToolsError, InvalidArgumentError

logger = logging.getLogger(__name__)

VALID_SEND_UPDATES = ("all", "externalOnly", "none")
UPDATE_FIELDS = ("summary", "start", "end", "description", "location")

_YESTERDAY = {"y", "yesterday", "昨日"}
_TOMORROW = {"t", "tomorrow", "明日"}


@dataclass
class CommandResult:
    """Outcome of a command: a success payload or a tagged error."""

    ok: bool
    payload: dict[str, Any] = field(default_factory=dict)
    kind: str | None = None

    @classmethod
    def success(cls, payload: dict[str, Any]) -> CommandResult:
        return cls(ok=True, payload=payload)

    @classmethod
    def failure(cls, error: Exception, kind: str = "error") -> CommandResult:
        return cls(ok=False, payload={"error": str(error)}, kind=kind)

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1


def run_command(func: Callable[..., dict[str, Any]], *args: Any, **kwargs: Any) -> CommandResult:
    """Run a command, capturing gcal-tools errors as a failed result."""
    try:
        return CommandResult.success(func(*args, **kwargs))
    except CalendarToolsError as e:
        logger.debug(f"{func.__name__} failed: {e!r}")
        return CommandResult.failure(e, kind=e.kind)


def validate_send_updates(send_updates: str) -> str:
    """Check a sendUpdates value.

    Raises:
        InvalidArgumentError: If not one of all, externalOnly, none.
    """
    if send_updates not in VALID_SEND_UPDATES:
        raise InvalidArgumentError(
            f"Invalid send_updates value: {send_updates}. "
            f"Valid values are: {', '.join(VALID_SEND_UPDATES)}"
        )
    return send_updates


def resolve_day(text: str | None, today: date | None = None) -> str:
    """Turn a fetch date argument into a YYYY-MM-DD string.

    Accepts an ISO date, or yesterday/tomorrow keywords (y, t, 昨日, 明日).
    """
    today = today or date.today()
    if text is None:
        return today.isoformat()

    keyword = text.strip().lower()
    if keyword in _YESTERDAY:
        return (today - timedelta(days=1)).isoformat()
    if keyword in _TOMORROW:
        return (today + timedelta(days=1)).isoformat()

    try:
        return date.fromisoformat(text.strip()).isoformat()
    except ValueError:
        raise InvalidArgumentError("Invalid date format. Please use YYYY-MM-DD format.") from None


def day_window(day: str) -> tuple[str, str]:
    """RFC 3339 bounds of a calendar day in the default time zone."""
    d = date.fromisoformat(day)
    start = datetime.combine(d, time(0, 0, 0), tzinfo=DEFAULT_UTC_OFFSET)
    end = datetime.combine(d, time(23, 59, 59), tzinfo=DEFAULT_UTC_OFFSET)
    return start.isoformat(), end.isoformat()


# =============================================================================
# Fetch
# =============================================================================


def _fetch_calendar(
    client: CalendarClient, calendar_id: str, time_min: str, time_max: str
) -> dict[str, Any]:
    try:
        calendar = client.get_calendar(calendar_id)
        events = client.list_events(calendar_id, time_min=time_min, time_max=time_max)
    except Exception as e:
        logger.warning(f"Failed to fetch calendar {calendar_id}: {e}")
        return {
            "id": calendar_id,
            "summary": None,
            "description": None,
            "timezone": None,
            "error": str(e),
            "events": [],
        }

    data = calendar.to_dict()
    data["events"] = [event.to_summary_dict() for event in events]
    return data


def fetch_events(client: CalendarClient, calendar_ids: list[str], day: str) -> dict[str, Any]:
    """Fetch one day's events from each calendar, in order.

    A calendar that fails is reported with an ``error`` field and no events;
    the remaining calendars are still fetched. Missing or unusable
    credentials abort the whole fetch.
    """
    time_min, time_max = day_window(day)
    client.connect()
    calendars = [_fetch_calendar(client, cid, time_min, time_max) for cid in calendar_ids]
    return {"date": day, "calendars": calendars}


# =============================================================================
# Create / update / delete
# =============================================================================


def create_event(
    client: CalendarClient,
    calendar_id: str,
    summary: str | None,
    start: str | None,
    end: str | None,
    description: str | None = None,
    location: str | None = None,
) -> dict[str, Any]:
    """Create an event. ``start``/``end`` are dates or date-times."""
    if not summary or not start or not end:
        raise InvalidArgumentError(
            "Usage: gcal create SUMMARY START END "
            "(e.g. gcal create 'Meeting' '2025-11-24T10:00:00' '2025-11-24T11:00:00')"
        )

    event = client.insert_event(
        calendar_id,
        summary=summary,
        start=normalize(start),
        end=normalize(end),
        description=description,
        location=location,
    )
    return {"success": True, "event": event.to_dict()}


def update_event(
    client: CalendarClient,
    calendar_id: str,
    event_id: str | None,
    fields: dict[str, str | None],
    send_updates: str = "none",
) -> dict[str, Any]:
    """Patch an event with the given fields.

    Args:
        fields: Any of summary, start, end, description, location. ``None``
            values are ignored.
    """
    if not event_id:
        raise InvalidArgumentError("Missing required option: --event-id")
    validate_send_updates(send_updates)

    given = {key: value for key, value in fields.items() if value is not None}
    unknown = set(given) - set(UPDATE_FIELDS)
    if unknown:
        raise InvalidArgumentError(f"Unknown update fields: {', '.join(sorted(unknown))}")
    if not given:
        raise InvalidArgumentError(
            "At least one update field is required "
            "(--summary, --start, --end, --description, or --location)"
        )

    for key in ("start", "end"):
        if key in given:
            given[key] = normalize(given[key])

    event = client.patch_event(calendar_id, event_id, given, send_updates=send_updates)
    return {"success": True, "event": event.to_dict()}


def delete_event(
    client: CalendarClient,
    calendar_id: str,
    event_id: str | None,
    send_updates: str = "none",
) -> dict[str, Any]:
    """Delete an event."""
    if not event_id:
        raise InvalidArgumentError("Missing required option: --event-id")
    validate_send_updates(send_updates)

    client.delete_event(calendar_id, event_id, send_updates=send_updates)
    return {"success": True, "deleted_event_id": event_id}
