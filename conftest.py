import os
from typing import AsyncGenerator

# Tests run against in-memory SQLite unless a database is configured explicitly
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from libs.auth.dependencies import _service_role_jwt, get_current_user
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.db.base import Base
from libs.db.session import get_async_db

# Import all models so metadata includes every table
from services.marketplace_service import models as _marketplace_models  # noqa: F401
from services.store_service import models as _store_models  # noqa: F401

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def test_engine():
    """
    Fresh in-memory database per test. StaticPool keeps the single connection
    alive so every session sees the same tables.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Session shared by the test body and the apps under test."""
    session_factory = async_sessionmaker(
        bind=test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
def set_env(monkeypatch):
    """Set (or unset with None) environment variables and reload settings."""

    def _set(**values):
        for key, value in values.items():
            if value is None:
                monkeypatch.delenv(key, raising=False)
            else:
                monkeypatch.setenv(key, value)
        get_settings.cache_clear()

    yield _set
    get_settings.cache_clear()


@pytest.fixture
def admin_user() -> AuthUser:
    return AuthUser(
        sub="admin-user",
        email="admin@example.com",
        role="authenticated",
        app_metadata={"role": "admin"},
    )


@pytest.fixture
def service_user() -> AuthUser:
    return AuthUser(sub="service:tests", email="admin@example.com", role="service_role")


async def _client_for(app, db_session, user=None) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_async_db] = lambda: db_session
    if user is not None:
        app.dependency_overrides[get_current_user] = lambda: user

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def store_client(db_session, service_user) -> AsyncGenerator[AsyncClient, None]:
    """Store app; the service-role user passes both admin and internal guards."""
    from services.store_service.app.main import app

    async for ac in _client_for(app, db_session, service_user):
        yield ac


@pytest_asyncio.fixture
async def public_store_client(db_session) -> AsyncGenerator[AsyncClient, None]:
    """Store app with no auth override (real bearer validation)."""
    from services.store_service.app.main import app

    async for ac in _client_for(app, db_session):
        yield ac


@pytest_asyncio.fixture
async def payments_client(db_session) -> AsyncGenerator[AsyncClient, None]:
    from services.payments_service.app.main import app

    async for ac in _client_for(app, db_session):
        yield ac


@pytest_asyncio.fixture
async def marketplace_client(
    db_session, admin_user
) -> AsyncGenerator[AsyncClient, None]:
    from services.marketplace_service.app.main import app

    async for ac in _client_for(app, db_session, admin_user):
        yield ac


@pytest_asyncio.fixture
async def communications_client(db_session) -> AsyncGenerator[AsyncClient, None]:
    from services.communications_service.app.main import app

    async for ac in _client_for(app, db_session):
        yield ac


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Gateway app. Service clients are swapped per test."""
    from services.gateway_service.app.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def store_bridge(db_session, monkeypatch):
    """
    Route internal service calls to the in-process store app instead of
    STORE_SERVICE_URL. Calls carry a real service-role token, so the store's
    internal auth runs unmodified.
    """
    from libs.common import service_client
    from services.store_service.app.main import app as store_app

    store_app.dependency_overrides[get_async_db] = lambda: db_session

    async def _in_app_request(
        *,
        service_url,
        method,
        path,
        calling_service,
        json=None,
        params=None,
        timeout=10.0,
    ):
        headers = {
            "Authorization": f"Bearer {_service_role_jwt(calling_service)}",
            "X-Caller-Service": calling_service,
        }
        async with AsyncClient(
            transport=ASGITransport(app=store_app), base_url="http://store"
        ) as internal_client:
            return await internal_client.request(
                method, path, json=json, params=params, headers=headers
            )

    monkeypatch.setattr(service_client, "internal_request", _in_app_request)
    yield store_app
    store_app.dependency_overrides.clear()
