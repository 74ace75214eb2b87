"""Centralized configuration.

Tokens and the optional .env file live in a per-user directory:
    ~/.credentials/.env                             - GOOGLE_CLIENT_ID, GOOGLE_CALENDAR_IDS, ...
    ~/.credentials/calendar-readonly-token.json     - token used by `gcal fetch`
    ~/.credentials/calendar-readwrite-token.json    - token used by create/update/delete

Settings are resolved once per process with `Settings.from_env()` and passed
explicitly to the code that needs them. Real environment variables take
precedence over values from the .env file.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from gcal_tools.exceptions import ConfigurationError

CREDENTIALS_DIR = Path.home() / ".credentials"
ENV_FILE = CREDENTIALS_DIR / ".env"

TOKEN_FILES = {
    "readonly": "calendar-readonly-token.json",
    "readwrite": "calendar-readwrite-token.json",
}


def load_env_file(env_path: Path) -> dict[str, str]:
    """Read variables from a .env file.

    Args:
        env_path: Path to .env file.

    Returns:
        Dictionary of variables found in the file (empty if it doesn't exist).
    """
    loaded: dict[str, str] = {}
    if not env_path.exists():
        return loaded

    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue

            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip()

            # Remove surrounding quotes
            if (value.startswith('"') and value.endswith('"')) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]

            if key:
                loaded[key] = value

    return loaded


def _split_ids(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    """Configuration for one run of a gcal command."""

    client_id: str | None = None
    client_secret: str | None = None
    calendar_id: str | None = None
    calendar_ids: tuple[str, ...] = field(default_factory=tuple)
    credentials_dir: Path = CREDENTIALS_DIR

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        env_file: Path | None = ENV_FILE,
    ) -> Settings:
        """Build settings from the environment merged over the .env file.

        Args:
            environ: Environment mapping. Defaults to os.environ.
            env_file: Optional .env file. Pass None to skip it.
        """
        values = load_env_file(env_file) if env_file else {}
        environ = os.environ if environ is None else environ
        values.update({key: value for key, value in environ.items() if value})

        return cls(
            client_id=values.get("GOOGLE_CLIENT_ID") or None,
            client_secret=values.get("GOOGLE_CLIENT_SECRET") or None,
            calendar_id=values.get("GOOGLE_CALENDAR_ID") or None,
            calendar_ids=_split_ids(values.get("GOOGLE_CALENDAR_IDS")),
        )

    def require_client(self) -> tuple[str, str]:
        """Return the OAuth client id and secret.

        Raises:
            ConfigurationError: If either value is missing.
        """
        if not self.client_id:
            raise ConfigurationError("GOOGLE_CLIENT_ID is not set")
        if not self.client_secret:
            raise ConfigurationError("GOOGLE_CLIENT_SECRET is not set")
        return self.client_id, self.client_secret

    def token_path(self, mode: str) -> Path:
        """Token file used by a scope mode ("readonly" or "readwrite")."""
        try:
            return self.credentials_dir / TOKEN_FILES[mode]
        except KeyError:
            raise ConfigurationError(
                f"Invalid mode: {mode}. Valid modes are: {', '.join(TOKEN_FILES)}"
            ) from None

    def resolve_calendar_id(self, explicit: str | None = None) -> str:
        """Resolve the single calendar targeted by create/update/delete.

        Priority: explicit argument, GOOGLE_CALENDAR_ID, first entry of
        GOOGLE_CALENDAR_IDS.
        """
        if explicit:
            return explicit
        if self.calendar_id:
            return self.calendar_id
        if self.calendar_ids:
            return self.calendar_ids[0]
        raise ConfigurationError(
            "Calendar ID is not set. Use --calendar option or set GOOGLE_CALENDAR_ID"
        )

    def resolve_fetch_calendar_ids(self, explicit: list[str] | None = None) -> list[str]:
        """Resolve the calendars read by fetch.

        Priority: explicit arguments, GOOGLE_CALENDAR_IDS, GOOGLE_CALENDAR_ID.
        """
        if explicit:
            return list(explicit)
        if self.calendar_ids:
            return list(self.calendar_ids)
        if self.calendar_id:
            return [self.calendar_id]
        raise ConfigurationError("GOOGLE_CALENDAR_IDS or GOOGLE_CALENDAR_ID is not set")

    def ensure_credentials_dir(self) -> Path:
        """Create the credentials directory if it doesn't exist."""
        self.credentials_dir.mkdir(parents=True, exist_ok=True)
        return self.credentials_dir
