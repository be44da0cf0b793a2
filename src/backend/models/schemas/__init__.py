"""
Centralized API schemas for the ChatKit auth gateway.

Request/response models organized by domain, with OpenAPI examples.
"""

from models.error_models import ErrorDetail, ErrorResponse
from models.schemas.auth import AuthenticatedUser
from models.schemas.chatkit import (
    ClientSecretRequest,
    ClientSecretResponse,
    ClientSecretStatusResponse,
    SessionVerificationResponse,
)
from models.schemas.health import HealthResponse, LivenessResponse

__all__ = [
    "AuthenticatedUser",
    "ClientSecretRequest",
    "ClientSecretResponse",
    "ClientSecretStatusResponse",
    "ErrorDetail",
    "ErrorResponse",
    "HealthResponse",
    "LivenessResponse",
    "SessionVerificationResponse",
]
