"""
Pytest configuration and fixtures.
"""

import pytest
import pytest_asyncio

from lexora.db.session import build_engine, build_sessionmaker
from lexora.models import Base, User, UserRole


# Test database URL (use SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

CHAIN = [
    ("admin", UserRole.ADMIN, "ADMIN1"),
    ("rd", UserRole.REGIONAL_DIRECTOR, "RDIR01"),
    ("hgm", UserRole.HEAD_GROUP_MANAGER, "HGM001"),
    ("gom", UserRole.GROUP_OPERATION_MANAGER, "GOM001"),
    ("tom", UserRole.TEAM_OPERATION_MANAGER, "TOM001"),
    ("salesman", UserRole.SALESMAN, None),
]


def make_user(key: str, role: UserRole, referrer=None, referral_code=None) -> User:
    return User(
        id=f"user-{key}",
        name=key.upper(),
        email=f"{key}@test.lexora.lk",
        password_hash="not-a-real-hash",
        role=role,
        referrer_id=referrer.id if referrer is not None else None,
        referral_code=referral_code,
        is_active=True,
    )


@pytest_asyncio.fixture
async def db_engine():
    """Create test database engine."""
    engine = build_engine(TEST_DATABASE_URL)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Create test database session."""
    async with build_sessionmaker(db_engine)() as session:
        yield session


@pytest_asyncio.fixture
async def chain(db_session):
    """
    A full referral chain Admin -> RD -> HGM -> GOM -> TOM -> Salesman.
    """
    users = {}
    referrer = None
    for key, role, code in CHAIN:
        user = make_user(key, role, referrer, code)
        db_session.add(user)
        users[key] = user
        referrer = user
    await db_session.commit()
    return users



@pytest.fixture
def user_factory():
    """Build (unsaved) users for hand-made hierarchies."""
    return make_user
