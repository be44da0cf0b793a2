"""
Health check API schemas.

Provides response models for health and liveness probes.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    """Service health status."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "healthy",
                "version": "1.0.0",
                "environment": "development",
                "token_validity_ms": 3600000,
            }
        }
    )

    status: Literal["healthy", "degraded"] = Field(..., description="Overall status")
    version: str = Field(..., description="Application version")
    environment: str = Field(..., description="Application environment")
    token_validity_ms: int = Field(..., ge=0, description="Lifetime of newly issued client secrets")


class LivenessResponse(BaseModel):
    """Liveness probe response."""

    model_config = ConfigDict(json_schema_extra={"example": {"status": "alive"}})

    status: Literal["alive"] = Field(default="alive", description="Process is running")
