"""
LEXORA - token sales and commission tracking

Main FastAPI application with:
- Referral-code signup and cookie-based authentication
- Customer registration with commission cascade
- Team (downline) reporting and AI insights
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from lexora import __version__
from lexora.api import api_router
from lexora.config import settings
from lexora.db import get_db_context
from lexora.services.accounts import ensure_root_admin

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
    - Creates the root admin account if no admin exists
    """
    logger.info("Starting LEXORA...")

    async with get_db_context() as db:
        admin = await ensure_root_admin(db, settings.admin_email, settings.admin_password)

    logger.info(f"LEXORA started, root admin {admin.email}")

    yield

    logger.info("Shutting down LEXORA...")


app = FastAPI(
    title="LEXORA",
    description="Token sales and commission tracking",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "lexora.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
    )
