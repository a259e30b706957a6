from contextlib import contextmanager
from typing import AsyncGenerator, Optional

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.base import Base
from libs.db.session import get_async_db
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Import all models so metadata includes every table
from services.admin_service import models as _admin_models  # noqa: F401
from services.communications_service import models as _communications_models  # noqa: F401
from services.compliance_service import models as _compliance_models  # noqa: F401
from services.engagement_service import models as _engagement_models  # noqa: F401
from services.events_service import models as _events_models  # noqa: F401
from services.organizations_service import models as _organizations_models  # noqa: F401
from services.resources_service import models as _resources_models  # noqa: F401
from services.users_service import models as _users_models  # noqa: F401
from services.volunteer_service import models as _volunteer_models  # noqa: F401

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def test_engine():
    """
    Fresh in-memory database per test. StaticPool keeps the single
    connection alive so every session sees the same tables.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session configured like the application's session factory."""
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    session = session_factory()
    try:
        yield session
    finally:
        await session.close()


@pytest_asyncio.fixture
async def client(db_session) -> AsyncGenerator[AsyncClient, None]:
    """
    Yield an AsyncClient bound to the API app with the DB dependency
    pointed at the test session. Auth is set per test with ``override_auth``.
    """
    from services.gateway_service.app.main import app

    app.dependency_overrides[get_async_db] = lambda: db_session

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Auth helpers
# ---------------------------------------------------------------------------


def make_user(user=None, *, user_id: Optional[str] = None, is_admin: bool = False) -> AuthUser:
    """Build the AuthUser for a persisted ``User`` row (or a bare id)."""
    if user is not None:
        return AuthUser(
            user_id=str(user.id),
            email=user.email,
            is_admin=user.is_admin or is_admin,
            role="admin" if (user.is_admin or is_admin) else "volunteer",
        )
    return AuthUser(
        user_id=user_id,
        email="test@example.com",
        is_admin=is_admin,
        role="admin" if is_admin else "volunteer",
    )


@contextmanager
def override_auth(app, user: AuthUser):
    """Authenticate every request made inside the block as ``user``."""
    previous = app.dependency_overrides.get(get_current_user)
    app.dependency_overrides[get_current_user] = lambda: user
    try:
        yield
    finally:
        if previous is None:
            app.dependency_overrides.pop(get_current_user, None)
        else:
            app.dependency_overrides[get_current_user] = previous
