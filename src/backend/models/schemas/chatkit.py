"""
ChatKit session API schemas.

Provides request/response models for client secret issuance, refresh,
verification and expiry status with OpenAPI examples.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

_EXAMPLE_SECRET = "chatkit_user_2abcDEF123_1700000000000_1700003600000_3f9a1c0b7d2e4f68"


class ClientSecretRequest(BaseModel):
    """Request carrying an existing client secret."""

    model_config = ConfigDict(json_schema_extra={"example": {"client_secret": _EXAMPLE_SECRET}})

    client_secret: str = Field(
        ...,
        min_length=1,
        description="Client secret previously issued by /chatkit/session or /chatkit/refresh",
        json_schema_extra={"example": _EXAMPLE_SECRET},
    )


class ClientSecretResponse(BaseModel):
    """Newly issued client secret."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "client_secret": _EXAMPLE_SECRET,
                "expires_at": "2023-11-14T23:13:20.000Z",
            }
        }
    )

    client_secret: str = Field(..., description="Opaque bearer credential for the ChatKit frontend")
    expires_at: str = Field(..., description="Expiry as an ISO-8601 UTC timestamp")


class ClientSecretStatusResponse(BaseModel):
    """Advisory expiry information for a client secret.

    Computed without verifying the signature; clients use it to decide when
    to refresh, never to authorize.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "expires_at": "2023-11-14T23:13:20.000Z",
                "expires_at_ms": 1700003600000,
                "near_expiry": False,
            }
        }
    )

    expires_at: str | None = Field(default=None, description="Expiry as ISO-8601, null if unreadable")
    expires_at_ms: int | None = Field(default=None, description="Expiry in epoch milliseconds, null if unreadable")
    near_expiry: bool = Field(..., description="True if the secret should be refreshed now")


class SessionVerificationResponse(BaseModel):
    """Result of verifying the client secret on a follow-up call."""

    model_config = ConfigDict(json_schema_extra={"example": {"subject": "user_2abcDEF123", "valid": True}})

    subject: str = Field(..., description="Subject the client secret is bound to")
    valid: bool = Field(default=True, description="Always true; rejections are returned as 401 errors")
