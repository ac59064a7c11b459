"""
Pytest configuration and fixtures for authorization tests.

Provides fixtures for:
- Database session
- Test client
- Test users, organizations and memberships
- Identity tokens and super-principal cookies
"""

import os

# Settings are read at import time; configure them before importing authz
os.environ["AUTHZ_ENVIRONMENT"] = "test"
os.environ["AUTHZ_DATABASE_URL"] = "sqlite+aiosqlite:///./authz_test.sqlite"
os.environ["AUTHZ_JWT_SECRET_KEY"] = "test-identity-secret"
os.environ["AUTHZ_SUPER_ADMIN_SECRET"] = "test-super-secret"
os.environ["AUTHZ_SUPER_ADMIN_EMAIL"] = "root@ops.example.com"

from typing import AsyncGenerator, Callable, Dict

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from authz.database import get_db
from authz.domain.roles import Role
from authz.domain.scope import Identity, OrgScope
from authz.main import app
from authz.models import Membership, Organization, User
from authz.models.base import Base
from authz.security import create_identity_token, issue_super_token


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests of a single module")
    config.addinivalue_line("markers", "integration: tests through the HTTP API")


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """Create test database engine (file-based SQLite per test)."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'authz_test.sqlite'}",
        poolclass=NullPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async_session = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        yield session


async def _add_user(db: AsyncSession, user_id: str, email: str, name: str) -> User:
    user = User(id=user_id, email=email, name=name)
    db.add(user)
    await db.commit()
    return user


@pytest_asyncio.fixture
async def owner_user(test_db: AsyncSession) -> User:
    return await _add_user(test_db, "user-owner", "owner@acme.example.com", "Olivia Owner")


@pytest_asyncio.fixture
async def admin_user(test_db: AsyncSession) -> User:
    return await _add_user(test_db, "user-admin", "admin@acme.example.com", "Adam Admin")


@pytest_asyncio.fixture
async def staff_user(test_db: AsyncSession) -> User:
    return await _add_user(test_db, "user-staff", "staff@acme.example.com", "Sam Staff")


@pytest_asyncio.fixture
async def client_user(test_db: AsyncSession) -> User:
    return await _add_user(test_db, "user-client", "client@acme.example.com", "Chris Client")


@pytest_asyncio.fixture
async def outsider_user(test_db: AsyncSession) -> User:
    """User who belongs only to the other organization."""
    return await _add_user(test_db, "user-outsider", "outsider@globex.example.com", "Otto Outsider")


@pytest_asyncio.fixture
async def test_organization(
    test_db: AsyncSession,
    owner_user: User,
    admin_user: User,
    staff_user: User,
    client_user: User,
) -> Organization:
    """Create test organization with one member per role."""
    org = Organization(name="Acme Corp", slug="acme-corp", created_by=owner_user.id)
    test_db.add(org)
    await test_db.flush()

    for user, role in (
        (owner_user, Role.OWNER),
        (admin_user, Role.ADMIN),
        (staff_user, Role.STAFF),
        (client_user, Role.CLIENT),
    ):
        test_db.add(Membership(user_id=user.id, organization_id=org.id, role=role))

    await test_db.commit()
    return org


@pytest_asyncio.fixture
async def other_organization(test_db: AsyncSession, outsider_user: User) -> Organization:
    """Second tenant, owned by the outsider."""
    org = Organization(name="Globex", slug="globex", created_by=outsider_user.id)
    test_db.add(org)
    await test_db.flush()
    test_db.add(Membership(user_id=outsider_user.id, organization_id=org.id, role=Role.OWNER))
    await test_db.commit()
    return org


@pytest.fixture
def make_scope() -> Callable[[Organization, User, Role], OrgScope]:
    """Build a resolved scope without going through the resolver."""
    def _make(org: Organization, user: User, role: Role) -> OrgScope:
        return OrgScope(organization_id=org.id, user_id=user.id, email=user.email, role=role)

    return _make


@pytest.fixture
def identity_of() -> Callable[[User], Identity]:
    def _identity(user: User) -> Identity:
        return Identity(user_id=user.id, email=user.email, name=user.name)

    return _identity


@pytest.fixture
def auth_headers() -> Callable[..., Dict[str, str]]:
    """Authorization headers carrying an identity token for a user."""
    def _headers(user: User, org: Organization = None) -> Dict[str, str]:
        headers = {"Authorization": f"Bearer {create_identity_token(user.id, user.email, user.name)}"}
        if org is not None:
            headers["X-Org-Id"] = str(org.id)
        return headers

    return _headers


@pytest.fixture
def super_headers() -> Dict[str, str]:
    """Request headers carrying a fresh super-principal cookie."""
    return {"Cookie": f"authz_super={issue_super_token()}"}


@pytest_asyncio.fixture
async def client(test_db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client with database session override."""

    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
