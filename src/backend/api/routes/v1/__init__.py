"""
API v1 Router - Aggregates all v1 endpoints.

Usage in main.py:
    from api.routes.v1 import router as v1_router
    app.include_router(v1_router, prefix="/api/v1")
"""

from fastapi import APIRouter

from api.routes.v1 import chatkit, health

# Create the v1 API router
router = APIRouter()

# Health endpoints (no auth required)
router.include_router(
    health.router,
    tags=["Health"],
)

# ChatKit client secrets
router.include_router(
    chatkit.router,
    prefix="/chatkit",
    tags=["ChatKit"],
)

__all__ = ["router"]
