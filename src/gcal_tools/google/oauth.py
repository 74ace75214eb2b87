"""Google OAuth credential management using Authlib.

This module provides OAuth 2.0 user authentication for the Calendar API with:
- One cached token file per scope mode (read-only or read-write)
- Automatic token refresh, persisted back to the token file
- An interactive authorization flow for `gcal auth`

Token files use the google.oauth2.credentials JSON format:
    ~/.credentials/calendar-readonly-token.json
    ~/.credentials/calendar-readwrite-token.json
"""

import json
import logging
import webbrowser
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

import requests
from authlib.common.errors import AuthlibBaseError
from authlib.integrations.requests_client import OAuth2Session
from google.oauth2.credentials import Credentials as GoogleCredentials
from googleapiclient.discovery import build

from gcal_tools.config import Settings
from gcal_tools.exceptions import (
    AuthError,
    ConfigurationError,
    NoCredentialsError,
    ScopeMismatchError,
)

logger = logging.getLogger(__name__)


SCOPES = {
    "calendar": "https://www.googleapis.com/auth/calendar",
    "calendar_readonly": "https://www.googleapis.com/auth/calendar.readonly",
}


class ScopeMode(str, Enum):
    """Permission tier used by a command. Selects scope and token file."""

    READONLY = "readonly"
    READWRITE = "readwrite"

    @property
    def scope(self) -> str:
        if self is ScopeMode.READONLY:
            return SCOPES["calendar_readonly"]
        return SCOPES["calendar"]

    @property
    def description(self) -> str:
        return "read-only" if self is ScopeMode.READONLY else "read-write"


class GoogleOAuth:
    """Calendar OAuth credentials for one scope mode.

    Example:
        >>> auth = GoogleOAuth(ScopeMode.READONLY, Settings.from_env())
        >>> creds = auth.load()
        >>> service = auth.build_service()
    """

    AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"
    REDIRECT_URI = "http://localhost"

    def __init__(self, mode: ScopeMode | str, settings: Settings):
        """Initialize Google OAuth.

        Args:
            mode: Scope mode, "readonly" or "readwrite".
            settings: Resolved settings holding the OAuth client and paths.

        Raises:
            ConfigurationError: If the client id or secret is missing, or the
                mode is unknown.
        """
        self.settings = settings
        try:
            self.mode = ScopeMode(mode)
        except ValueError:
            valid = ", ".join(m.value for m in ScopeMode)
            raise ConfigurationError(f"Invalid mode: {mode}. Valid modes are: {valid}") from None
        self.token_path = settings.token_path(self.mode.value)
        self.required_scopes = [self.mode.scope]

        self.client_id, self.client_secret = settings.require_client()

        self.session = OAuth2Session(
            client_id=self.client_id,
            client_secret=self.client_secret,
            scope=" ".join(self.required_scopes),
            redirect_uri=self.REDIRECT_URI,
            update_token=self._save_token,
            token_endpoint=self.TOKEN_URL,
            token_endpoint_auth_method="client_secret_post",
        )

        self._state: str | None = None
        self.refresh_count = 0

    # =========================================================================
    # Token storage
    # =========================================================================

    def _read_token(self) -> dict[str, Any]:
        """Load token from storage in Authlib format.

        Raises:
            NoCredentialsError: If the file is missing or unreadable.
            ScopeMismatchError: If the token lacks the mode's scope.
        """
        if not self.token_path.exists():
            raise NoCredentialsError(str(self.token_path), self.mode.value)

        try:
            with open(self.token_path) as f:
                token_data = json.load(f)
        except (OSError, ValueError) as e:
            raise NoCredentialsError(str(self.token_path), self.mode.value, str(e)) from e

        if not isinstance(token_data, dict) or not token_data.get("refresh_token"):
            raise NoCredentialsError(
                str(self.token_path), self.mode.value, "no refresh token stored"
            )

        current_scopes = set(token_data.get("scopes") or [])
        missing = set(self.required_scopes) - current_scopes
        if missing:
            raise ScopeMismatchError(missing, self.mode.value)

        try:
            expires_at = _parse_expiry(token_data.get("expiry"))
        except (TypeError, ValueError) as e:
            raise NoCredentialsError(str(self.token_path), self.mode.value, str(e)) from e

        logger.debug(f"Loaded token with scopes: {current_scopes}")
        return {
            "access_token": token_data.get("token"),
            "refresh_token": token_data.get("refresh_token"),
            "token_type": token_data.get("type", "Bearer"),
            "expires_at": expires_at,
            "scope": " ".join(sorted(current_scopes)),
        }

    def _save_token(
        self,
        token: dict[str, Any],
        refresh_token: str | None = None,
        access_token: str | None = None,
    ):
        """Save token to storage (Authlib callback)."""
        if access_token:
            token["access_token"] = access_token
        if refresh_token and not token.get("refresh_token"):
            token["refresh_token"] = refresh_token

        token_scopes = set((token.get("scope") or " ".join(self.required_scopes)).split())
        missing = set(self.required_scopes) - token_scopes
        if missing:
            raise ScopeMismatchError(missing, self.mode.value)

        google_token = {
            "token": token["access_token"],
            "refresh_token": token.get("refresh_token"),
            "token_uri": self.TOKEN_URL,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "scopes": sorted(token_scopes),
            "type": token.get("token_type", "Bearer"),
            "expiry": _format_expiry(token.get("expires_at")),
        }

        self.token_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.token_path, "w") as f:
            json.dump(google_token, f, indent=2)

        self.refresh_count += 1

        logger.info(f"Token saved to {self.token_path}")

    # =========================================================================
    # Loading
    # =========================================================================

    def load(self) -> GoogleCredentials:
        """Get Google Credentials for API client libraries.

        Refreshes the access token first if it has expired.

        Returns:
            Google Credentials object with current token.

        Raises:
            NoCredentialsError: If the token file is missing or unreadable.
            ScopeMismatchError: If the stored token lacks the mode's scope.
            AuthError: If token refresh fails.
        """
        self.session.token = self._read_token()

        expires_at = self.session.token.get("expires_at")
        if not self.session.token.get("access_token") or (
            expires_at and expires_at < datetime.now().timestamp()
        ):
            logger.info("Token expired, refreshing...")
            try:
                self.session.refresh_token(
                    self.TOKEN_URL,
                    refresh_token=self.session.token.get("refresh_token"),
                )
            except (AuthlibBaseError, requests.RequestException) as e:
                raise AuthError(f"Failed to refresh token: {e}") from e

        token = self.session.token
        expiry = None
        if token.get("expires_at"):
            expiry = datetime.fromtimestamp(token["expires_at"], tz=timezone.utc).replace(
                tzinfo=None
            )

        return GoogleCredentials(
            token=token["access_token"],
            refresh_token=token.get("refresh_token"),
            token_uri=self.TOKEN_URL,
            client_id=self.client_id,
            client_secret=self.client_secret,
            scopes=self.required_scopes,
            expiry=expiry,
        )

    def build_service(self):
        """Build the Calendar v3 API service with current credentials."""
        creds = self.load()
        return build("calendar", "v3", credentials=creds, cache_discovery=False)

    def is_authorized(self) -> bool:
        """Check if a readable token with the required scope is stored."""
        try:
            self._read_token()
        except (NoCredentialsError, ScopeMismatchError):
            return False
        return True

    # =========================================================================
    # Interactive authorization
    # =========================================================================

    def get_authorization_url(self) -> str:
        """Start OAuth authorization flow.

        Returns:
            Authorization URL for user to visit.
        """
        authorization_url, state = self.session.create_authorization_url(
            self.AUTHORIZE_URL,
            access_type="offline",
            prompt="consent",
        )

        self._state = state
        return authorization_url

    def fetch_token(self, code: str) -> dict[str, Any]:
        """Exchange an authorization code for tokens and store them.

        Args:
            code: The one-time code, or the full redirect URL containing it.

        Returns:
            The fetched OAuth token dict.

        Raises:
            AuthError: If the exchange fails.
        """
        try:
            if "code=" in code:
                token = self.session.fetch_token(
                    self.TOKEN_URL,
                    authorization_response=code,
                    state=self._state,
                )
            else:
                token = self.session.fetch_token(
                    self.TOKEN_URL,
                    grant_type="authorization_code",
                    code=code,
                )
        except (AuthlibBaseError, requests.RequestException) as e:
            raise AuthError(f"Failed to exchange authorization code: {e}") from e

        self.settings.ensure_credentials_dir()
        self._save_token(token)
        return token

    def authorize_interactive(
        self,
        open_url: Callable[[str], Any] | None = webbrowser.open,
        read_code: Callable[[str], str] | None = None,
        echo: Callable[[str], None] = print,
    ) -> bool:
        """Run the interactive authorization flow if no usable token exists.

        Args:
            open_url: Best-effort browser launcher. None skips it.
            read_code: Prompts for and returns the authorization code (default: input).
            echo: Writes progress messages for the user.

        Returns:
            True if a new token was stored, False if already authorized.

        Raises:
            AuthError: If no code is given or the exchange fails.
        """
        if self.is_authorized():
            echo(f"Already authenticated ({self.mode.description})!")
            echo(f"Token file: {self.token_path}")
            echo(
                "If you want to re-authenticate, delete the token file "
                "and run this command again."
            )
            return False

        url = self.get_authorization_url()
        echo(f"=== Google Calendar OAuth 2.0 Setup ({self.mode.description}) ===")
        echo("Opening authorization URL in your browser...")
        echo("If the browser doesn't open automatically, please copy and paste this URL:")
        echo(url)

        if open_url is not None:
            try:
                if open_url(url) is False:
                    logger.warning("Could not open a browser; use the URL above")
            except Exception as e:
                logger.warning(f"Could not open a browser: {e}")

        read_code = read_code or input
        code = read_code("After authorizing, enter the authorization code: ").strip()
        if not code:
            raise AuthError("No authorization code provided")

        self.fetch_token(code)
        echo("Authentication successful!")
        echo(f"Token saved to: {self.token_path}")
        return True

    def get_token_info(self) -> dict[str, Any]:
        """Get information about the stored token.

        Returns:
            Dictionary with token status, scopes, expiry, etc.
        """
        try:
            token = self._read_token()
        except NoCredentialsError:
            return {"status": "no_token", "token_path": str(self.token_path)}
        except ScopeMismatchError as e:
            return {
                "status": "scope_mismatch",
                "missing_scopes": sorted(e.missing_scopes),
                "token_path": str(self.token_path),
            }

        expires_at = token.get("expires_at")
        now = datetime.now().timestamp()
        if expires_at:
            expires_str = str(timedelta(seconds=int(max(0, expires_at - now))))
            is_expired = expires_at < now
        else:
            expires_str = "unknown"
            is_expired = False

        return {
            "status": "expired" if is_expired else "valid",
            "mode": self.mode.value,
            "scopes": token.get("scope", "").split(),
            "expires_in": expires_str,
            "has_refresh_token": bool(token.get("refresh_token")),
            "token_path": str(self.token_path),
        }


def _parse_expiry(expiry: Any) -> float | None:
    """Convert a stored expiry (ISO string or timestamp) to a timestamp."""
    if not expiry:
        return None
    if isinstance(expiry, str):
        dt = datetime.fromisoformat(expiry.replace("Z", "+00:00"))
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.timestamp()
    return float(expiry)


def _format_expiry(expires_at: Any) -> str | None:
    """Convert a timestamp to the UTC ISO form google-auth stores."""
    if not expires_at:
        return None
    dt = datetime.fromtimestamp(float(expires_at), tz=timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%SZ")
