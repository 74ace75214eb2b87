"""Tests for the calendar commands."""

from datetime import date
from unittest.mock import MagicMock

import pytest

from gcal_tools.calendar import AllDay, Calendar, Event
from gcal_tools.commands import (
    CommandResult,
    create_event,
    day_window,
    delete_event,
    fetch_events,
    resolve_day,
    run_command,
    update_event,
    validate_send_updates,
)
from gcal_tools.exceptions import (
    ConfigurationError,
    InvalidArgumentError,
    InvalidTimeFormatError,
    NoCredentialsError,
    RemoteApiError,
)


@pytest.fixture
def client():
    return MagicMock()


class TestResolveDay:
    """Tests for the fetch date argument."""

    TODAY = date(2025, 1, 15)

    def test_default_is_today(self):
        """Should use today when no date is given."""
        assert resolve_day(None, today=self.TODAY) == "2025-01-15"

    @pytest.mark.parametrize("text", ["y", "yesterday", "Yesterday", "昨日"])
    def test_yesterday(self, text):
        """Should accept yesterday keywords."""
        assert resolve_day(text, today=self.TODAY) == "2025-01-14"

    @pytest.mark.parametrize("text", ["t", "tomorrow", "TOMORROW", "明日"])
    def test_tomorrow(self, text):
        """Should accept tomorrow keywords."""
        assert resolve_day(text, today=self.TODAY) == "2025-01-16"

    def test_iso_date(self):
        """Should pass through a valid date."""
        assert resolve_day("2024-12-31", today=self.TODAY) == "2024-12-31"

    @pytest.mark.parametrize("text", ["2025-02-30", "next week", ""])
    def test_invalid(self, text):
        """Should reject anything else."""
        with pytest.raises(InvalidArgumentError, match="YYYY-MM-DD"):
            resolve_day(text, today=self.TODAY)

    def test_day_window(self):
        """Should span the whole day at +09:00."""
        assert day_window("2025-01-15") == (
            "2025-01-15T00:00:00+09:00",
            "2025-01-15T23:59:59+09:00",
        )


class TestFetchEvents:
    """Tests for fetch."""

    def test_fetch_two_calendars_one_invalid(self, client):
        """Should record the failing calendar and still fetch the other."""

        def get_calendar(calendar_id):
            if calendar_id == "bad-id":
                raise RemoteApiError("Not Found", status_code=404)
            return Calendar(id=calendar_id, summary="Work", time_zone="Asia/Tokyo")

        client.get_calendar.side_effect = get_calendar
        client.list_events.return_value = [
            Event(
                id="evt1",
                summary="Standup",
                start=AllDay("2025-01-15"),
                end=AllDay("2025-01-16"),
            )
        ]

        output = fetch_events(client, ["bad-id", "work@example.com"], "2025-01-15")

        assert output["date"] == "2025-01-15"
        bad, good = output["calendars"]
        assert bad == {
            "id": "bad-id",
            "summary": None,
            "description": None,
            "timezone": None,
            "error": "Not Found",
            "events": [],
        }
        assert good["id"] == "work@example.com"
        assert good["summary"] == "Work"
        assert good["timezone"] == "Asia/Tokyo"
        assert "error" not in good
        assert good["events"] == [
            {
                "id": "evt1",
                "summary": "Standup",
                "description": None,
                "start": {"date_time": None, "date": "2025-01-15"},
                "end": {"date_time": None, "date": "2025-01-16"},
            }
        ]
        client.list_events.assert_called_once_with(
            "work@example.com",
            time_min="2025-01-15T00:00:00+09:00",
            time_max="2025-01-15T23:59:59+09:00",
        )

    def test_list_failure_is_per_calendar(self, client):
        """Should also catch failures while listing events."""
        client.get_calendar.return_value = Calendar(id="primary", summary="Me")
        client.list_events.side_effect = RemoteApiError("Rate Limit Exceeded", status_code=403)

        output = fetch_events(client, ["primary"], "2025-01-15")

        assert output["calendars"][0]["error"] == "Rate Limit Exceeded"
        assert output["calendars"][0]["events"] == []

    def test_transport_failure_is_per_calendar(self, client):
        """Should keep other calendars' results when one times out."""

        def get_calendar(calendar_id):
            if calendar_id == "flaky":
                raise TimeoutError("timed out")
            return Calendar(id=calendar_id, summary="Good")

        client.get_calendar.side_effect = get_calendar
        client.list_events.return_value = [Event(id="evt1", summary="Lunch")]

        output = fetch_events(client, ["flaky", "good"], "2025-01-15")

        flaky, good = output["calendars"]
        assert flaky["id"] == "flaky"
        assert flaky["error"] == "timed out"
        assert flaky["events"] == []
        assert good["summary"] == "Good"
        assert [e["id"] for e in good["events"]] == ["evt1"]

    def test_missing_credentials_aborts(self, client):
        """Should not swallow credential errors."""
        client.connect.side_effect = NoCredentialsError("/tmp/token.json", "readonly")

        with pytest.raises(NoCredentialsError):
            fetch_events(client, ["a", "b"], "2025-01-15")
        client.get_calendar.assert_not_called()


class TestCreateEvent:
    """Tests for create."""

    def test_create_timed_event(self, client):
        """Should normalize both endpoints and report the event."""
        client.insert_event.return_value = Event(
            id="evt1", summary="Meeting", html_link="https://calendar.google.com/event?eid=evt1"
        )

        output = create_event(
            client, "primary", "Meeting", "2025-11-24T10:00:00", "2025-11-24T11:00:00"
        )

        kwargs = client.insert_event.call_args.kwargs
        assert kwargs["start"].to_api() == {
            "dateTime": "2025-11-24T10:00:00+09:00",
            "timeZone": "Asia/Tokyo",
        }
        assert kwargs["end"].to_api()["dateTime"] == "2025-11-24T11:00:00+09:00"
        assert output == {
            "success": True,
            "event": {
                "id": "evt1",
                "summary": "Meeting",
                "description": None,
                "location": None,
                "start": None,
                "end": None,
                "html_link": "https://calendar.google.com/event?eid=evt1",
            },
        }

    @pytest.mark.parametrize(
        "args",
        [
            (None, "2025-11-24", "2025-11-25"),
            ("Trip", None, "2025-11-25"),
            ("Trip", "2025-11-24", None),
        ],
    )
    def test_missing_arguments(self, client, args):
        """Should require summary, start and end."""
        with pytest.raises(InvalidArgumentError, match="Usage"):
            create_event(client, "primary", *args)
        client.insert_event.assert_not_called()

    def test_bad_time_rejected_before_api_call(self, client):
        """Should not call the API with an unparseable time."""
        with pytest.raises(InvalidTimeFormatError):
            create_event(client, "primary", "Trip", "soon", "2025-11-25")
        client.insert_event.assert_not_called()


class TestUpdateEvent:
    """Tests for update."""

    def test_update_fields(self, client):
        """Should patch only the given fields."""
        client.patch_event.return_value = Event(id="evt1", summary="New")

        output = update_event(
            client,
            "primary",
            "evt1",
            {"summary": "New", "start": "2025-01-15", "end": None, "location": None},
            send_updates="all",
        )

        client.patch_event.assert_called_once_with(
            "primary", "evt1", {"summary": "New", "start": AllDay("2025-01-15")}, send_updates="all"
        )
        assert output["success"] is True
        assert output["event"]["summary"] == "New"

    @pytest.mark.parametrize("value", ["everyone", "ALL", ""])
    def test_invalid_send_updates_rejected_before_api_call(self, client, value):
        """Should validate send_updates first."""
        with pytest.raises(InvalidArgumentError, match="Invalid send_updates"):
            update_event(client, "primary", "evt1", {"summary": "x"}, send_updates=value)
        client.patch_event.assert_not_called()

    def test_requires_event_id(self, client):
        """Should require --event-id."""
        with pytest.raises(InvalidArgumentError, match="--event-id"):
            update_event(client, "primary", None, {"summary": "x"})

    def test_requires_a_field(self, client):
        """Should require at least one field."""
        with pytest.raises(InvalidArgumentError, match="At least one update field"):
            update_event(client, "primary", "evt1", {"summary": None})
        client.patch_event.assert_not_called()


class TestDeleteEvent:
    """Tests for delete."""

    def test_delete(self, client):
        """Should report the deleted event id."""
        output = delete_event(client, "primary", "evt1")

        client.delete_event.assert_called_once_with("primary", "evt1", send_updates="none")
        assert output == {"success": True, "deleted_event_id": "evt1"}

    def test_invalid_send_updates_rejected_before_api_call(self, client):
        """Should validate send_updates first."""
        with pytest.raises(InvalidArgumentError):
            delete_event(client, "primary", "evt1", send_updates="nobody")
        client.delete_event.assert_not_called()

    @pytest.mark.parametrize("value", ["all", "externalOnly", "none"])
    def test_valid_send_updates(self, value):
        """Should accept the three documented values."""
        assert validate_send_updates(value) == value


class TestRunCommand:
    """Tests for CommandResult conversion."""

    def test_success(self):
        """Should wrap the payload."""
        result = run_command(lambda: {"success": True})
        assert result == CommandResult(ok=True, payload={"success": True})
        assert result.exit_code == 0

    def test_tagged_failure(self):
        """Should tag gcal-tools errors with their kind."""

        def fail():
            raise ConfigurationError("GOOGLE_CLIENT_ID is not set")

        result = run_command(fail)
        assert result.ok is False
        assert result.kind == "configuration"
        assert result.payload == {"error": "GOOGLE_CLIENT_ID is not set"}
        assert result.exit_code == 1

    def test_other_errors_propagate(self):
        """Should leave unexpected exceptions to the caller."""

        def fail():
            raise KeyError("boom")

        with pytest.raises(KeyError):
            run_command(fail)
