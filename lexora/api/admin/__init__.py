"""Admin API router aggregation."""

from fastapi import APIRouter

from lexora.api.admin.users import router as users_router

admin_router = APIRouter(prefix="/admin", tags=["Admin"])

admin_router.include_router(users_router)

__all__ = ["admin_router"]
