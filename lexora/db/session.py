"""
Database engine and session factories.

Registrations commit inside the service layer; the helpers here own the
session lifetime and roll back whatever the request left uncommitted
when it fails.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from lexora.config import settings

logger = logging.getLogger(__name__)

# Seconds a SQLite writer waits for another writer's lock
SQLITE_BUSY_TIMEOUT = 30


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine for ``database_url``.

    PostgreSQL goes through NullPool so an external pooler owns the
    connections. SQLite (tests, local demos) waits on locked writes
    instead of failing, since concurrent registrations write the same
    ancestor rows.
    """
    if database_url.startswith("sqlite"):
        return create_async_engine(
            database_url,
            echo=echo,
            connect_args={"timeout": SQLITE_BUSY_TIMEOUT},
        )
    return create_async_engine(database_url, poolclass=NullPool, echo=echo)


def build_sessionmaker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory used by the app, scripts and tests.

    Objects stay readable after commit so a registration response can be
    built from the customer it just wrote.
    """
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = build_engine(settings.database_url, echo=not settings.is_production)
AsyncSessionLocal = build_sessionmaker(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, committed on success."""
    async with get_db_context() as session:
        yield session


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Session for code outside a request (startup bootstrap, seed script).

    Usage:
        async with get_db_context() as db:
            admin = await ensure_root_admin(db, email, password)
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            logger.warning("Database session rolled back after an error")
            raise
