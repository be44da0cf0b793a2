"""
Authentication-related API schemas.

The identity provider authenticates users; these models describe the
principal the gateway resolved from the provider's session token.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class AuthenticatedUser(BaseModel):
    """Principal resolved from the identity provider session token."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "subject": "user_2abcDEF123",
                "session_id": "sess_2xyz789",
            }
        },
    )

    subject: str = Field(
        ...,
        min_length=1,
        description="Identity provider user id",
        json_schema_extra={"example": "user_2abcDEF123"},
    )
    session_id: str | None = Field(
        default=None,
        description="Identity provider session id, when present in the token",
        json_schema_extra={"example": "sess_2xyz789"},
    )
