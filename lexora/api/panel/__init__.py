"""Panel API router aggregation."""

from fastapi import APIRouter

from lexora.api.panel.customers import router as customers_router
from lexora.api.panel.insights import router as insights_router
from lexora.api.panel.profile import router as profile_router
from lexora.api.panel.team import router as team_router

panel_router = APIRouter(prefix="/panel", tags=["Panel"])

panel_router.include_router(customers_router)
panel_router.include_router(team_router)
panel_router.include_router(insights_router)
panel_router.include_router(profile_router)

__all__ = ["panel_router"]
