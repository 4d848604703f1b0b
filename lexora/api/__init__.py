"""API router aggregation."""

from fastapi import APIRouter

from lexora.api.admin import admin_router
from lexora.api.auth import router as auth_router
from lexora.api.health import router as health_router
from lexora.api.panel import panel_router

# Main API router (for /api/* endpoints)
api_router = APIRouter(prefix="/api")

api_router.include_router(health_router)
api_router.include_router(auth_router)
api_router.include_router(panel_router)
api_router.include_router(admin_router)

__all__ = ["api_router"]
