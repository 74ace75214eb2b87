"""Shared fixtures."""

import json
import time
from pathlib import Path

import pytest

from gcal_tools.config import Settings
from gcal_tools.google.oauth import SCOPES


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings with a mock OAuth client and a temporary credentials dir."""
    return Settings(
        client_id="test-client-id.apps.googleusercontent.com",
        client_secret="test-client-secret",
        calendar_id="primary",
        credentials_dir=tmp_path / "credentials",
    )


def write_token(
    path: Path,
    scopes: list[str] | None = None,
    expiry: str = "2099-01-01T00:00:00Z",
    **overrides,
) -> Path:
    """Write a token file in google.oauth2.credentials format."""
    token = {
        "token": "test-access-token",
        "refresh_token": "test-refresh-token",
        "token_uri": "https://oauth2.googleapis.com/token",
        "client_id": "test-client-id.apps.googleusercontent.com",
        "client_secret": "test-client-secret",
        "scopes": scopes if scopes is not None else [SCOPES["calendar_readonly"]],
        "type": "Bearer",
        "expiry": expiry,
    }
    token.update(overrides)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(token, f)
    return path


def fresh_token(scope: str, access_token: str = "new-access-token") -> dict:
    """Token dict as returned by the token endpoint (Authlib format)."""
    return {
        "access_token": access_token,
        "refresh_token": "new-refresh-token",
        "token_type": "Bearer",
        "expires_at": int(time.time()) + 3600,
        "scope": scope,
    }
