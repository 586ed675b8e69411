import uuid
from collections.abc import AsyncGenerator
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import JSON, event
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from terrin.common.enums import UserRole
from terrin.common.events import flush_events
from terrin.common.security import create_access_token
from terrin.config import settings
from terrin.db.base import Base
from terrin.db.models import *  # noqa: F401,F403 - ensure all models loaded

# In-memory SQLite per test - JSONB is remapped to JSON below
TEST_DATABASE_URL = "sqlite+aiosqlite://"


# Make JSONB render as JSON for SQLite
@event.listens_for(Base.metadata, "before_create")
def _remap_jsonb(target, connection, **kw):
    if connection.dialect.name == "sqlite":
        for table in target.tables.values():
            for column in table.columns:
                if isinstance(column.type, JSONB):
                    column.type = JSON()


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def client(db_session):
    from terrin.api.deps import get_db
    from terrin.main import app

    async def override_get_db():
        yield db_session
        await flush_events(db_session)

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep uploads in a temp dir and run integrations in mock mode."""
    monkeypatch.setattr(settings, "STORAGE_LOCAL_PATH", str(tmp_path))
    monkeypatch.setattr(settings, "AI_API_KEY", "mock_ai_key")
    monkeypatch.setattr(settings, "STRIPE_SECRET_KEY", "mock_stripe_key")
    monkeypatch.setattr(settings, "STRIPE_WEBHOOK_SECRET", "")
    monkeypatch.setattr(settings, "PLATFORM_FEE_PERCENT", 5.0)


async def _make_user(db_session, role: UserRole, first_name: str):
    from terrin.db.models.user import User

    user = User(
        id=uuid.uuid4(),
        external_id=f"idp|{uuid.uuid4().hex[:12]}",
        email=f"{role.value}_{uuid.uuid4().hex[:8]}@test.com",
        first_name=first_name,
        last_name="Tester",
        role=role.value,
        is_initialized=True,
    )
    db_session.add(user)
    await db_session.flush()
    await db_session.refresh(user)
    return user


def _headers_for(user) -> dict[str, str]:
    token = create_access_token({"sub": user.external_id, "email": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def homeowner_user(db_session):
    return await _make_user(db_session, UserRole.HOMEOWNER, "Hannah")


@pytest.fixture
async def other_homeowner(db_session):
    return await _make_user(db_session, UserRole.HOMEOWNER, "Oscar")


@pytest.fixture
async def professional_user(db_session):
    return await _make_user(db_session, UserRole.PROFESSIONAL, "Pat")


@pytest.fixture
async def visitor_user(db_session):
    return await _make_user(db_session, UserRole.VISITOR, "Vic")


@pytest.fixture
async def admin_user(db_session):
    return await _make_user(db_session, UserRole.ADMIN, "Ada")


@pytest.fixture
def auth_headers(homeowner_user):
    return _headers_for(homeowner_user)


@pytest.fixture
def other_headers(other_homeowner):
    return _headers_for(other_homeowner)


@pytest.fixture
def professional_headers(professional_user):
    return _headers_for(professional_user)


@pytest.fixture
def visitor_headers(visitor_user):
    return _headers_for(visitor_user)


@pytest.fixture
def admin_headers(admin_user):
    return _headers_for(admin_user)


@pytest.fixture
async def contractor(db_session, professional_user):
    from terrin.db.models.contractor import Contractor

    c = Contractor(
        user_id=professional_user.id,
        business_name="Ridgeline Kitchens",
        specialty="Kitchen Specialist",
        description="Custom cabinets and full kitchen remodels.",
        hourly_rate=Decimal("85.00"),
        location="Austin, TX",
        service_area="Austin, TX",
        years_experience=12,
        rating=Decimal("4.50"),
        review_count=20,
        verified=True,
    )
    db_session.add(c)
    await db_session.flush()
    await db_session.refresh(c)
    return c


@pytest.fixture
async def onboarded_contractor(db_session, contractor):
    contractor.stripe_account_id = "acct_test123"
    contractor.stripe_onboarding_complete = True
    await db_session.flush()
    return contractor


@pytest.fixture
async def project(client, auth_headers):
    resp = await client.post(
        "/api/projects",
        headers=auth_headers,
        json={
            "title": "Kitchen Remodel",
            "description": "Replace cabinets and countertops in a 200 sq ft kitchen",
            "project_type": "Kitchen Remodel",
            "budget_range": "$25k-$50k",
            "timeline": "2-3 months",
            "location": "Austin, TX",
        },
    )
    assert resp.status_code == 201
    return resp.json()
