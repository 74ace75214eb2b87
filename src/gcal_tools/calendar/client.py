"""Google Calendar API client implementation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from google.auth.exceptions import RefreshError
from googleapiclient.errors import HttpError

from gcal_tools.calendar.times import EventTimeSpec, event_time_from_api, event_time_to_dict
from gcal_tools.exceptions import AuthError, RemoteApiError
from gcal_tools.google import GoogleOAuth

logger = logging.getLogger(__name__)


@dataclass
class Calendar:
    """Represents a Google Calendar as seen in the user's calendar list."""

    id: str
    summary: str | None = None
    description: str | None = None
    time_zone: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "summary": self.summary,
            "description": self.description,
            "timezone": self.time_zone,
        }


@dataclass
class Event:
    """Represents a Google Calendar event."""

    id: str
    summary: str | None = None
    description: str | None = None
    location: str | None = None
    start: EventTimeSpec | None = None
    end: EventTimeSpec | None = None
    html_link: str | None = None

    def to_summary_dict(self) -> dict[str, Any]:
        """Fields reported by fetch."""
        return {
            "id": self.id,
            "summary": self.summary,
            "description": self.description,
            "start": event_time_to_dict(self.start),
            "end": event_time_to_dict(self.end),
        }

    def to_dict(self) -> dict[str, Any]:
        """Fields reported by create and update."""
        return {
            "id": self.id,
            "summary": self.summary,
            "description": self.description,
            "location": self.location,
            "start": event_time_to_dict(self.start),
            "end": event_time_to_dict(self.end),
            "html_link": self.html_link,
        }


class CalendarClient:
    """Google Calendar API client with OAuth authentication.

    Usage:
        auth = GoogleOAuth(ScopeMode.READWRITE, settings)
        client = CalendarClient(auth)

        calendar = client.get_calendar("primary")
        event = client.insert_event(
            "primary",
            summary="Meeting",
            start=normalize("2026-01-25T10:00:00"),
            end=normalize("2026-01-25T11:00:00"),
        )
    """

    def __init__(self, auth: GoogleOAuth | None = None, service: Any = None) -> None:
        """Initialize Calendar client.

        Args:
            auth: Credential manager used to build the service on first use.
            service: Prebuilt Calendar v3 service (skips ``auth``).
        """
        if auth is None and service is None:
            raise ValueError("CalendarClient needs either auth or service")
        self._auth = auth
        self._service = service

    def _get_service(self) -> Any:
        """Get or create Calendar API service."""
        if self._service is None:
            self._service = self._auth.build_service()
        return self._service

    def connect(self) -> None:
        """Build the service now so credential errors surface before any request.

        Raises:
            NoCredentialsError: If no usable token is stored.
            AuthError: If the token refresh fails.
        """
        self._get_service()

    def _execute(self, request: Any) -> Any:
        """Execute an API request, translating client errors."""
        try:
            return request.execute()
        except HttpError as e:
            status = getattr(e.resp, "status", None)
            reason = e.reason if getattr(e, "reason", None) else str(e)
            raise RemoteApiError(reason, status_code=int(status) if status else None) from e
        except RefreshError as e:
            raise AuthError(f"Failed to refresh token: {e}") from e

    # =========================================================================
    # Calendars
    # =========================================================================

    def get_calendar(self, calendar_id: str) -> Calendar:
        """Get a calendar from the user's calendar list.

        Args:
            calendar_id: Calendar ID or "primary" for the main calendar.

        Raises:
            RemoteApiError: If the calendar is unknown or the call fails.
        """
        service = self._get_service()
        result = self._execute(service.calendarList().get(calendarId=calendar_id))
        return self._parse_calendar(result)

    def _parse_calendar(self, data: dict) -> Calendar:
        """Parse calendar from API response."""
        return Calendar(
            id=data["id"],
            summary=data.get("summaryOverride") or data.get("summary"),
            description=data.get("description"),
            time_zone=data.get("timeZone"),
        )

    # =========================================================================
    # Events
    # =========================================================================

    def list_events(
        self,
        calendar_id: str,
        time_min: str,
        time_max: str,
        max_results: int = 100,
    ) -> list[Event]:
        """List single events in a time range, ordered by start time.

        Args:
            calendar_id: Calendar ID.
            time_min: RFC 3339 lower bound.
            time_max: RFC 3339 upper bound.
            max_results: Maximum number of events to return.
        """
        service = self._get_service()
        request = service.events().list(
            calendarId=calendar_id,
            maxResults=max_results,
            singleEvents=True,
            orderBy="startTime",
            timeMin=time_min,
            timeMax=time_max,
        )
        results = self._execute(request)
        return [self._parse_event(item) for item in results.get("items", [])]

    def insert_event(
        self,
        calendar_id: str,
        summary: str,
        start: EventTimeSpec,
        end: EventTimeSpec,
        description: str | None = None,
        location: str | None = None,
        send_updates: str | None = None,
    ) -> Event:
        """Create a new event.

        Returns:
            Created Event.
        """
        service = self._get_service()

        body: dict[str, Any] = {
            "summary": summary,
            "start": start.to_api(),
            "end": end.to_api(),
        }
        if description:
            body["description"] = description
        if location:
            body["location"] = location

        kwargs: dict[str, Any] = {"calendarId": calendar_id, "body": body}
        if send_updates:
            kwargs["sendUpdates"] = send_updates

        result = self._execute(service.events().insert(**kwargs))
        logger.info(f"Created event {result.get('id')} in {calendar_id}")
        return self._parse_event(result)

    def patch_event(
        self,
        calendar_id: str,
        event_id: str,
        fields: dict[str, Any],
        send_updates: str = "none",
    ) -> Event:
        """Update only the given fields of an event.

        Args:
            calendar_id: Calendar ID.
            event_id: Event ID to update.
            fields: Any of summary, description, location (strings) and
                start, end (event times).
            send_updates: Attendee notification setting.

        Returns:
            Updated Event.
        """
        service = self._get_service()

        body: dict[str, Any] = {}
        for key in ("summary", "description", "location"):
            if fields.get(key) is not None:
                body[key] = fields[key]
        for key in ("start", "end"):
            if fields.get(key) is not None:
                body[key] = fields[key].to_api()

        request = service.events().patch(
            calendarId=calendar_id,
            eventId=event_id,
            body=body,
            sendUpdates=send_updates,
        )
        result = self._execute(request)
        logger.info(f"Updated event {event_id} in {calendar_id}")
        return self._parse_event(result)

    def delete_event(self, calendar_id: str, event_id: str, send_updates: str = "none") -> None:
        """Delete an event.

        Raises:
            RemoteApiError: If the event doesn't exist or the call fails.
        """
        service = self._get_service()
        request = service.events().delete(
            calendarId=calendar_id,
            eventId=event_id,
            sendUpdates=send_updates,
        )
        self._execute(request)
        logger.info(f"Deleted event {event_id} from {calendar_id}")

    def _parse_event(self, data: dict) -> Event:
        """Parse event from API response."""
        return Event(
            id=data["id"],
            summary=data.get("summary"),
            description=data.get("description"),
            location=data.get("location"),
            start=event_time_from_api(data.get("start")),
            end=event_time_from_api(data.get("end")),
            html_link=data.get("htmlLink"),
        )
