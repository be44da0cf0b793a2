from __future__ import annotations

import time

from collections.abc import Callable
from unittest.mock import MagicMock

import pytest

from fastapi import Request
from fastapi.security import HTTPAuthorizationCredentials

from api.middleware.auth import decode_identity_token, get_current_user, require_client_secret
from api.middleware.exception_handlers import AuthenticationError, ClientSecretRejectedError
from api.middleware.request_context import (
    RequestContext,
    clear_request_context,
    get_request_context,
    set_request_context,
)
from api.services.chatkit_session_service import ChatKitSessionService
from core.chatkit_token import ChatKitTokenCodec, TokenFailureReason
from core.constants import Settings
from models.error_models import ErrorCode
from models.schemas.auth import AuthenticatedUser


@pytest.fixture
def mock_request() -> MagicMock:
    req = MagicMock(spec=Request)
    req.client.host = "1.2.3.4"
    return req


@pytest.fixture
def sessions(codec: ChatKitTokenCodec) -> ChatKitSessionService:
    return ChatKitSessionService(codec)


def _bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestDecodeIdentityToken:
    def test_valid_token(self, test_settings: Settings, make_identity_token: Callable[..., str]) -> None:
        claims = decode_identity_token(make_identity_token("user_42", sid="sess_1"), test_settings)

        assert claims["sub"] == "user_42"
        assert claims["sid"] == "sess_1"

    def test_wrong_key(self, test_settings: Settings, make_identity_token: Callable[..., str]) -> None:
        with pytest.raises(ValueError):
            decode_identity_token(make_identity_token("user_42", key="some-other-key"), test_settings)

    def test_expired_token(self, test_settings: Settings, make_identity_token: Callable[..., str]) -> None:
        token = make_identity_token("user_42", exp=int(time.time()) - 60)

        with pytest.raises(ValueError):
            decode_identity_token(token, test_settings)

    def test_missing_subject(self, test_settings: Settings, make_identity_token: Callable[..., str]) -> None:
        with pytest.raises(ValueError, match="subject"):
            decode_identity_token(make_identity_token(None), test_settings)

    def test_malformed_token(self, test_settings: Settings) -> None:
        with pytest.raises(ValueError):
            decode_identity_token("not.a.jwt", test_settings)

    def test_issuer_and_audience(self, test_settings: Settings, make_identity_token: Callable[..., str]) -> None:
        settings = test_settings.model_copy(
            update={"identity_jwt_issuer": "https://idp.example.com", "identity_jwt_audience": "chatkit"}
        )
        good = make_identity_token("user_42", iss="https://idp.example.com", aud="chatkit")
        wrong_aud = make_identity_token("user_42", iss="https://idp.example.com", aud="other")

        assert decode_identity_token(good, settings)["sub"] == "user_42"
        with pytest.raises(ValueError):
            decode_identity_token(wrong_aud, settings)


class TestGetCurrentUser:
    @pytest.mark.asyncio
    async def test_valid_token(
        self, mock_request: MagicMock, test_settings: Settings, make_identity_token: Callable[..., str]
    ) -> None:
        creds = _bearer(make_identity_token("user_42", sid="sess_1"))

        user = await get_current_user(mock_request, creds, test_settings)

        assert user == AuthenticatedUser(subject="user_42", session_id="sess_1")

    @pytest.mark.asyncio
    async def test_records_subject_in_request_context(
        self, mock_request: MagicMock, test_settings: Settings, make_identity_token: Callable[..., str]
    ) -> None:
        set_request_context(RequestContext(request_id="req_test"))
        try:
            await get_current_user(mock_request, _bearer(make_identity_token("user_42")), test_settings)
            ctx = get_request_context()
            assert ctx is not None
            assert ctx.subject == "user_42"
        finally:
            clear_request_context()

    @pytest.mark.asyncio
    async def test_invalid_token(self, mock_request: MagicMock, test_settings: Settings) -> None:
        with pytest.raises(AuthenticationError) as exc:
            await get_current_user(mock_request, _bearer("bad_token"), test_settings)

        assert exc.value.code == ErrorCode.AUTH_INVALID_TOKEN

    @pytest.mark.asyncio
    async def test_missing_credentials(self, mock_request: MagicMock, test_settings: Settings) -> None:
        with pytest.raises(AuthenticationError) as exc:
            await get_current_user(mock_request, None, test_settings)

        assert exc.value.code == ErrorCode.AUTH_REQUIRED

    @pytest.mark.asyncio
    async def test_localhost_bypass(self, mock_request: MagicMock, test_settings: Settings) -> None:
        mock_request.client.host = "127.0.0.1"
        settings = test_settings.model_copy(update={"allow_localhost_noauth": True})

        user = await get_current_user(mock_request, None, settings)

        assert user.subject == settings.default_subject

    @pytest.mark.asyncio
    async def test_localhost_bypass_only_for_localhost(self, mock_request: MagicMock, test_settings: Settings) -> None:
        settings = test_settings.model_copy(update={"allow_localhost_noauth": True})

        with pytest.raises(AuthenticationError):
            await get_current_user(mock_request, None, settings)


class TestRequireClientSecret:
    @pytest.mark.asyncio
    async def test_valid_secret(self, sessions: ChatKitSessionService, codec: ChatKitTokenCodec) -> None:
        user = AuthenticatedUser(subject="user_42")
        secret = codec.issue("user_42").client_secret

        assert await require_client_secret(user, sessions, secret) is user

    @pytest.mark.asyncio
    async def test_missing_secret(self, sessions: ChatKitSessionService) -> None:
        with pytest.raises(AuthenticationError) as exc:
            await require_client_secret(AuthenticatedUser(subject="user_42"), sessions, None)

        assert exc.value.code == ErrorCode.AUTH_CLIENT_SECRET_REQUIRED

    @pytest.mark.asyncio
    async def test_secret_for_other_subject(self, sessions: ChatKitSessionService, codec: ChatKitTokenCodec) -> None:
        secret = codec.issue("alice").client_secret

        with pytest.raises(ClientSecretRejectedError) as exc:
            await require_client_secret(AuthenticatedUser(subject="bob"), sessions, secret)

        assert exc.value.reason is TokenFailureReason.USER_MISMATCH
