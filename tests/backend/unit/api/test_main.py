from __future__ import annotations

from unittest.mock import patch

import pytest

from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.main import create_app, lifespan
from core.chatkit_token import ChatKitTokenCodec
from core.constants import CLIENT_SECRET_HEADER, DEVELOPMENT_SIGNING_SECRET, Settings


@pytest.fixture
def app(test_settings: Settings) -> FastAPI:
    return create_app(test_settings)


def test_create_app_state(app: FastAPI, test_settings: Settings) -> None:
    assert app.state.settings is test_settings
    assert isinstance(app.state.token_codec, ChatKitTokenCodec)
    assert app.state.token_codec.validity_ms == test_settings.chatkit_token_validity_ms


def test_routes_mounted(app: FastAPI) -> None:
    paths = {route.path for route in app.routes}  # type: ignore[attr-defined]

    assert "/api/v1/health" in paths
    assert "/api/v1/chatkit/session" in paths
    assert "/api/v1/chatkit/refresh" in paths
    assert "/api/v1/chatkit/status" in paths
    assert "/api/v1/docs" in paths


def test_request_id_header(app: FastAPI) -> None:
    response = TestClient(app).get("/api/v1/health/live")

    assert response.status_code == 200
    assert "X-Request-ID" in response.headers


def test_cors_allows_client_secret_header(app: FastAPI) -> None:
    response = TestClient(app).options(
        "/api/v1/chatkit/session",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "GET",
            "Access-Control-Request-Headers": CLIENT_SECRET_HEADER,
        },
    )

    assert response.status_code == 200
    assert CLIENT_SECRET_HEADER.lower() in response.headers["access-control-allow-headers"].lower()


@pytest.mark.asyncio
async def test_lifespan_warns_on_development_secret(test_settings: Settings) -> None:
    app = create_app(test_settings.model_copy(update={"chatkit_signing_secret": DEVELOPMENT_SIGNING_SECRET}))

    with patch("api.main.logger") as mock_logger:
        async with lifespan(app):
            pass

    mock_logger.warning.assert_called_once()
    assert mock_logger.info.call_count == 2


@pytest.mark.asyncio
async def test_lifespan_configured_secret(app: FastAPI) -> None:
    with patch("api.main.logger") as mock_logger:
        async with lifespan(app):
            pass

    mock_logger.warning.assert_not_called()
