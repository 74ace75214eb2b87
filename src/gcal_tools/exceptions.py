"""gcal-tools exceptions."""

from __future__ import annotations


class CalendarToolsError(Exception):
    """Base exception for gcal-tools errors."""

    kind = "error"


class ConfigurationError(CalendarToolsError):
    """Raised when a required setting (client id, calendar id) is missing."""

    kind = "configuration"


class NoCredentialsError(CalendarToolsError):
    """Raised when the token file for a scope mode is missing or unreadable."""

    kind = "no_credentials"

    def __init__(self, path: str, mode: str, reason: str | None = None):
        self.path = path
        self.mode = mode
        detail = f" ({reason})" if reason else ""
        super().__init__(
            f"No credentials found at {path}{detail}. "
            f"Run 'gcal auth --mode={mode}' first."
        )


class AuthError(CalendarToolsError):
    """Raised when a token refresh or code exchange fails."""

    kind = "auth"


class ScopeMismatchError(AuthError):
    """Raised when token scopes don't match required scopes."""

    def __init__(self, missing_scopes: set[str], mode: str):
        self.missing_scopes = missing_scopes
        self.mode = mode
        super().__init__(
            f"Token missing required scopes: {sorted(missing_scopes)}. "
            f"Run 'gcal auth --mode={mode}' after deleting the token file."
        )


class InvalidArgumentError(CalendarToolsError):
    """Raised for missing or malformed command arguments."""

    kind = "invalid_argument"


class InvalidTimeFormatError(InvalidArgumentError):
    """Raised when an event time is neither a date nor a date-time."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(
            f"Invalid time format: {value!r}. "
            "Use YYYY-MM-DD for all-day events or YYYY-MM-DDTHH:MM:SS[+HH:MM]."
        )


class RemoteApiError(CalendarToolsError):
    """Raised when the Calendar API rejects or fails a call."""

    kind = "remote_api"

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)
