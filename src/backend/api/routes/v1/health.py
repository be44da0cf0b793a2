"""
Health check endpoints (v1).

Provides health and liveness probes.
"""

from __future__ import annotations

from fastapi import APIRouter

from api.dependencies import AppSettings, TokenCodec
from models.schemas.health import HealthResponse, LivenessResponse

router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Service status, version and client secret lifetime.",
)
async def health_check(settings: AppSettings, codec: TokenCodec) -> HealthResponse:
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.app_env,
        token_validity_ms=codec.validity_ms,
    )


@router.get(
    "/health/live",
    response_model=LivenessResponse,
    summary="Liveness probe",
    description="Returns 200 while the process is running.",
)
async def liveness_check() -> LivenessResponse:
    return LivenessResponse()
