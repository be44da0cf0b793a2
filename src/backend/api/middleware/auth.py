from __future__ import annotations

from typing import Annotated, Any

from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from api.dependencies import AppSettings, ChatKitSessions
from api.middleware.exception_handlers import AuthenticationError
from api.middleware.request_context import update_request_context
from core.constants import CLIENT_SECRET_HEADER, Settings
from models.error_models import ErrorCode
from models.schemas.auth import AuthenticatedUser

bearer_scheme = HTTPBearer(auto_error=False)


def decode_identity_token(token: str, settings: Settings) -> dict[str, Any]:
    """Verify an identity provider session token and return its claims.

    Raises:
        ValueError: If the token is malformed, badly signed, expired or
            carries the wrong issuer/audience.
    """
    try:
        claims: dict[str, Any] = jwt.decode(
            token,
            settings.identity_jwt_key,
            algorithms=settings.identity_jwt_algorithms_list,
            issuer=settings.identity_jwt_issuer,
            audience=settings.identity_jwt_audience,
            options={"verify_aud": settings.identity_jwt_audience is not None},
        )
    except JWTError as exc:
        raise ValueError("Invalid token") from exc

    subject = claims.get("sub")
    if not isinstance(subject, str) or not subject:
        raise ValueError("Token has no subject")
    return claims


async def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    settings: AppSettings,
) -> AuthenticatedUser:
    """Resolve the authenticated subject from the identity provider bearer token."""
    if credentials is None:
        if settings.allow_localhost_noauth and _is_localhost(request):
            update_request_context(subject=settings.default_subject)
            return AuthenticatedUser(subject=settings.default_subject)
        raise AuthenticationError(
            message="Authentication required",
            code=ErrorCode.AUTH_REQUIRED,
        )

    try:
        claims = decode_identity_token(credentials.credentials, settings)
    except ValueError as exc:
        raise AuthenticationError(
            message="Invalid token",
            code=ErrorCode.AUTH_INVALID_TOKEN,
        ) from exc

    update_request_context(subject=claims["sub"])
    return AuthenticatedUser(subject=claims["sub"], session_id=claims.get("sid"))


async def require_client_secret(
    user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    sessions: ChatKitSessions,
    client_secret: Annotated[str | None, Header(alias=CLIENT_SECRET_HEADER)] = None,
) -> AuthenticatedUser:
    """Authorize a follow-up ChatKit call by its client secret.

    The secret must have been issued to the same subject the identity
    provider authenticated for this request.
    """
    if not client_secret:
        raise AuthenticationError(
            message="Client secret required",
            code=ErrorCode.AUTH_CLIENT_SECRET_REQUIRED,
        )

    sessions.verify(client_secret, user.subject)
    return user


def _is_localhost(request: Request) -> bool:
    """Check if the request originates from localhost."""
    host = request.client.host if request.client else ""
    return host in {"127.0.0.1", "localhost", "::1"}
