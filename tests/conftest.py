"""
Test configuration and fixtures.
Uses SQLite in-memory for fast tests. The app runs in-process over httpx's ASGI transport.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("AUTH_JWT_SECRET", "test_jwt_secret")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import uuid
from datetime import datetime, timedelta, timezone

import httpx
import jwt
import pytest
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.pool import StaticPool

from catchhook.config import get_settings
from catchhook.database import Base, get_db
from catchhook.models.endpoint import WebhookEndpoint

TEST_JWT_SECRET = "test_jwt_secret"
USER_ID = uuid.UUID("a1111111-1111-4111-8111-111111111111")
OTHER_USER_ID = uuid.UUID("b2222222-2222-4222-8222-222222222222")


# Register JSONB as JSON for SQLite compatibility in tests
@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(type_, compiler, **kw):
    return "JSON"


# SQLite would give a bare "UUID" column NUMERIC affinity and turn all-digit hex into numbers
@compiles(UUID, "sqlite")
def _compile_uuid_sqlite(type_, compiler, **kw):
    return "CHAR(32)"


def make_token(user_id: uuid.UUID = USER_ID, secret: str = TEST_JWT_SECRET, expires_in: int = 3600) -> str:
    payload = {
        "sub": str(user_id),
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(user_id: uuid.UUID = USER_ID) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
async def session_factory():
    """In-memory SQLite shared by every session in the test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def app(session_factory):
    from catchhook.main import create_app

    application = create_app()

    async def _override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db] = _override_get_db
    return application


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def endpoint(db) -> WebhookEndpoint:
    ep = WebhookEndpoint(user_id=USER_ID, name="Stripe sandbox", webhook_id="abc12345")
    db.add(ep)
    await db.commit()
    return ep
