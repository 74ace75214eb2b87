"""Google OAuth authentication for the Calendar API."""

from gcal_tools.google.oauth import SCOPES, GoogleOAuth, ScopeMode

__all__ = [
    "GoogleOAuth",
    "ScopeMode",
    "SCOPES",
]
