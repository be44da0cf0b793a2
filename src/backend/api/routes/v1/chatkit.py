"""
ChatKit session endpoints (v1).

Issues and refreshes the client secrets used by the ChatKit frontend, and
exposes verification and advisory expiry checks.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from api.dependencies import ChatKitSessions
from api.middleware.auth import get_current_user, require_client_secret
from models.schemas.auth import AuthenticatedUser
from models.schemas.chatkit import (
    ClientSecretRequest,
    ClientSecretResponse,
    ClientSecretStatusResponse,
    SessionVerificationResponse,
)

router = APIRouter()

CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]

_SECRET_EXAMPLE = {
    "client_secret": "chatkit_user_2abcDEF123_1700000000000_1700003600000_3f9a1c0b7d2e4f68",
    "expires_at": "2023-11-14T23:13:20.000Z",
}


@router.post(
    "/session",
    response_model=ClientSecretResponse,
    summary="Create ChatKit session",
    description="Issue a client secret for the authenticated user.",
    responses={
        200: {
            "description": "Client secret issued",
            "content": {"application/json": {"example": _SECRET_EXAMPLE}},
        },
        401: {"description": "Not authenticated"},
    },
)
async def create_session(user: CurrentUser, sessions: ChatKitSessions) -> ClientSecretResponse:
    """Issue a client secret."""
    issued = sessions.create_session(user.subject)
    return ClientSecretResponse(client_secret=issued.client_secret, expires_at=issued.expires_at)


@router.post(
    "/refresh",
    response_model=ClientSecretResponse,
    summary="Refresh ChatKit session",
    description="Exchange a still-valid client secret for one with a new validity window.",
    responses={
        200: {
            "description": "Client secret refreshed",
            "content": {"application/json": {"example": _SECRET_EXAMPLE}},
        },
        401: {"description": "Not authenticated, or the client secret is invalid or expired"},
    },
)
async def refresh_session(
    body: ClientSecretRequest,
    user: CurrentUser,
    sessions: ChatKitSessions,
) -> ClientSecretResponse:
    """Validate the existing client secret and issue a new one."""
    issued = sessions.refresh_session(body.client_secret, user.subject)
    return ClientSecretResponse(client_secret=issued.client_secret, expires_at=issued.expires_at)


@router.get(
    "/session",
    response_model=SessionVerificationResponse,
    summary="Verify ChatKit session",
    description="Verify the client secret sent in the X-ChatKit-Client-Secret header.",
    responses={
        200: {
            "description": "Client secret is valid for the authenticated user",
            "content": {"application/json": {"example": {"subject": "user_2abcDEF123", "valid": True}}},
        },
        401: {"description": "Missing, invalid or expired client secret"},
    },
)
async def verify_session(
    user: Annotated[AuthenticatedUser, Depends(require_client_secret)],
) -> SessionVerificationResponse:
    return SessionVerificationResponse(subject=user.subject)


@router.post(
    "/status",
    response_model=ClientSecretStatusResponse,
    summary="Client secret expiry status",
    description="Report when a client secret expires and whether it should be refreshed. "
    "Advisory only: the signature is not checked.",
)
async def session_status(
    body: ClientSecretRequest,
    user: CurrentUser,
    sessions: ChatKitSessions,
) -> ClientSecretStatusResponse:
    status = sessions.describe(body.client_secret)
    return ClientSecretStatusResponse(
        expires_at=status.expires_at,
        expires_at_ms=status.expires_at_ms,
        near_expiry=status.near_expiry,
    )
