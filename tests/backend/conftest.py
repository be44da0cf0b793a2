"""Shared fixtures for backend tests.

Provides settings isolation, a controllable millisecond clock, a codec bound
to a fixed signing secret, and identity provider token helpers.
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from jose import jwt

from core.chatkit_token import ChatKitTokenCodec
from core.constants import Settings

# 2023-11-14T22:13:20.000Z
NOW_MS = 1_700_000_000_000
SIGNING_SECRET = "test-signing-secret-0123456789"
IDENTITY_KEY = "test-identity-key"

# ============================================================================
# Test Isolation: Settings Management (MUST BE FIRST)
# ============================================================================


@pytest.fixture(autouse=True, scope="function")
def reset_settings_singleton() -> Generator[None, None, None]:
    """Reset the settings singleton and ignore local .env files for each test."""
    from core import constants

    constants._settings_manager._instance = None
    with patch("core.constants._get_env_files", return_value=[]):
        yield
    constants._settings_manager._instance = None


# ============================================================================
# Codec Fixtures
# ============================================================================


@pytest.fixture
def clock() -> MagicMock:
    """Millisecond clock frozen at NOW_MS; set ``return_value`` to move time."""
    return MagicMock(return_value=NOW_MS)


@pytest.fixture
def codec(clock: MagicMock) -> ChatKitTokenCodec:
    return ChatKitTokenCodec(SIGNING_SECRET, clock=clock)


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    return Settings(
        app_env="test",
        chatkit_signing_secret=SIGNING_SECRET,
        identity_jwt_key=IDENTITY_KEY,
        identity_jwt_algorithms="HS256",
        log_dir=str(tmp_path / "logs"),
    )


# ============================================================================
# Identity Provider Fixtures
# ============================================================================


@pytest.fixture
def make_identity_token() -> Callable[..., str]:
    """Build a session token the way the identity provider would sign it."""

    def _make(subject: str | None = "user_42", key: str = IDENTITY_KEY, **claims: Any) -> str:
        payload: dict[str, Any] = dict(claims)
        if subject is not None:
            payload["sub"] = subject
        return jwt.encode(payload, key, algorithm="HS256")

    return _make


@pytest.fixture
def auth_headers(make_identity_token: Callable[..., str]) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_identity_token('user_42', sid='sess_1')}"}
