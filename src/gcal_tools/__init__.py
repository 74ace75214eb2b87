"""gcal-tools: Google Calendar command-line tools with cached OAuth tokens."""

from gcal_tools.calendar import AllDay, CalendarClient, Timed, normalize
from gcal_tools.config import Settings
from gcal_tools.exceptions import (
    AuthError,
    CalendarToolsError,
    ConfigurationError,
    InvalidArgumentError,
    InvalidTimeFormatError,
    NoCredentialsError,
    RemoteApiError,
    ScopeMismatchError,
)
from gcal_tools.google import GoogleOAuth, ScopeMode

__version__ = "0.1.0"

__all__ = [
    "AllDay",
    "AuthError",
    "CalendarClient",
    "CalendarToolsError",
    "ConfigurationError",
    "GoogleOAuth",
    "InvalidArgumentError",
    "InvalidTimeFormatError",
    "NoCredentialsError",
    "RemoteApiError",
    "ScopeMismatchError",
    "ScopeMode",
    "Settings",
    "Timed",
    "normalize",
]
