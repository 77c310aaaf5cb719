import os

# Settings are read at import time; point them at throwaway values first.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["TELEMETRY_ENABLED"] = "false"
os.environ["ADMIN_PASSWORD"] = "test-password"
os.environ["ADMIN_TOKEN"] = "test-admin-token"

import pytest
import httpx

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from listings_hub.models import Base
from listings_hub.main import app
from listings_hub.core.db import get_db


@pytest.fixture
async def async_engine():
    # one in-memory database per test; StaticPool keeps it on a single connection
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
async def db_session(async_engine):
    session_factory = async_sessionmaker(bind=async_engine, expire_on_commit=False, class_=AsyncSession)
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(db_session: AsyncSession):
    """
    HTTP client that uses the test DB session via dependency override.
    """
    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"Authorization": "Bearer test-admin-token"}


def _listing_row(mls: str = "1929100", **overrides) -> dict:
    row = {
        "mlsNumber": mls,
        "address": "305 Theresa St, Watertown, WI 53094",
        "price": 324900,
        "status": "Active",
        "description": "3BR/2BA with updated kitchen",
    }
    row.update(overrides)
    return row


@pytest.fixture
def make_row():
    """Factory for one raw export row; keyword overrides replace columns."""
    return _listing_row
