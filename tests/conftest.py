"""Shared test configuration for the ChatKit auth gateway test suite.

Runs before test collection so module-level imports (the global logger and
``api.main.app``) pick up test-safe settings.
"""

from __future__ import annotations

import os
import tempfile

import pytest


def pytest_configure(config: pytest.Config) -> None:
    """Point settings at the test environment before any module is imported."""
    os.environ["APP_ENV"] = "test"
    os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="chatkit-gateway-logs-"))
    os.environ.pop("CHATKIT_SIGNING_SECRET", None)
    os.environ.pop("ALLOW_LOCALHOST_NOAUTH", None)
