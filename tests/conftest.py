"""Shared pytest fixtures for all test suites."""

import os
import uuid
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from backend.app.api.deps import get_audit_logger, get_audit_store
from backend.app.audit.logger import AuditLogger
from backend.app.db.engine import create_session_factory, get_session
from backend.app.db.inmemory import InMemoryRateLimiter
from backend.app.db.models import Base, Organization, PlatformRole, Profile
from backend.app.db.sql_repositories import SqlAuditLogStore
from backend.app.main import app
from backend.app.middleware.ratelimit import (
    RateLimitMiddleware,
    create_default_bucket_map,
    get_rate_limit_middleware,
)
from tests.tenants import Tenants


@pytest_asyncio.fixture
async def db_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed sqlite engine so every session sees the same tables."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return create_session_factory(db_engine)


@pytest_asyncio.fixture
async def tenants(session_factory: async_sessionmaker[AsyncSession]) -> Tenants:
    """Seed two organizations, a member of each, a platform owner and a user without an org."""
    seeded = Tenants(
        org_a=uuid.uuid4(),
        org_b=uuid.uuid4(),
        user_a=uuid.uuid4(),
        user_b=uuid.uuid4(),
        owner=uuid.uuid4(),
        orphan=uuid.uuid4(),
    )

    async with session_factory() as session:
        session.add_all(
            [
                Organization(id=seeded.org_a, name="Acme Agency", slug="acme", type="agency"),
                Organization(id=seeded.org_b, name="Beta Client", slug="beta", type="client"),
            ]
        )
        await session.flush()
        session.add_all(
            [
                Profile(id=seeded.user_a, organization_id=seeded.org_a, role="admin"),
                Profile(id=seeded.user_b, organization_id=seeded.org_b, role="user"),
                Profile(id=seeded.owner, organization_id=seeded.org_a, role="owner"),
                Profile(id=seeded.orphan, organization_id=None, role="user"),
            ]
        )
        await session.flush()
        session.add(PlatformRole(user_id=seeded.owner, role="platform_owner"))
        await session.commit()

    return seeded


@pytest_asyncio.fixture
async def audit_store(session_factory: async_sessionmaker[AsyncSession]) -> SqlAuditLogStore:
    """SQL audit store on the test database."""
    return SqlAuditLogStore(session_factory)


@pytest_asyncio.fixture
async def audit_logger(audit_store: SqlAuditLogStore) -> AuditLogger:
    """Audit logger writing to the test database."""
    return AuditLogger(audit_store)


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    audit_store: SqlAuditLogStore,
    audit_logger: AuditLogger,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client for the app with the database and audit trail pointed at the test engine."""

    async def override_get_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    limiters = {"crud": InMemoryRateLimiter(100), "audit_read": InMemoryRateLimiter(60)}
    middleware = RateLimitMiddleware(limiters, create_default_bucket_map())

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_audit_store] = lambda: audit_store
    app.dependency_overrides[get_audit_logger] = lambda: audit_logger
    app.dependency_overrides[get_rate_limit_middleware] = lambda: middleware

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http

    await audit_logger.drain()
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def postgres_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create async engine for PostgreSQL integration tests.

    Requires DATABASE_URL to be set to a real PostgreSQL connection string.
    Tests using this fixture should be marked with @pytest.mark.postgres.
    """
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        pytest.skip("DATABASE_URL not set - skipping postgres test")

    if not database_url.startswith(("postgresql://", "postgresql+asyncpg://")):
        pytest.skip(f"DATABASE_URL is not PostgreSQL: {database_url}")

    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)

    engine = create_async_engine(database_url, poolclass=NullPool, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()
