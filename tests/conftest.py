"""
Shared test fixtures
=====================
  - engine / db : in-memory SQLite (aiosqlite) with the history tables
  - client      : httpx AsyncClient bound to the FastAPI app, with get_db
                  pointed at the in-memory database
  - measurements: a complete, valid adult male measurement session
"""

import copy

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from clinical_calc import models  # noqa: F401  (registers the tables)
from clinical_calc.core.database import Base, get_db
from clinical_calc.main import app


ADULT_MALE = {
    "bio_data": {
        "weight": 75.0,
        "height": 178.0,
        "age": 30,
        "sex": "male",
        "sitting_height": 92.0,
    },
    "skinfolds": {
        "triceps": 10.0,
        "subscapular": 12.0,
        "biceps": 5.0,
        "iliac_crest": 15.0,
        "supraspinale": 9.0,
        "abdominal": 18.0,
        "thigh": 14.0,
        "calf": 8.0,
    },
    "girths": {
        "arm_relaxed": 31.0,
        "arm_flexed": 34.0,
        "forearm": 27.0,
        "waist": 82.0,
        "hip": 96.0,
        "mid_thigh": 55.0,
        "calf": 37.0,
        "head": 57.0,
    },
    "breadths": {
        "humerus": 7.0,
        "femur": 9.8,
        "biacromial": 41.0,
        "biiliocristal": 29.0,
        "wrist": 5.8,
        "ankle": 7.4,
    },
}


# ── Fixtures ────────────────────────────────────────────────────

@pytest.fixture
def measurements() -> dict:
    """A fresh copy of a complete, valid adult measurement session."""
    return copy.deepcopy(ADULT_MALE)


@pytest_asyncio.fixture
async def engine():
    """Create an in-memory SQLite async engine for testing."""
    eng = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )

    # SQLite doesn't enforce FK by default; enable it
    @event.listens_for(eng.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield eng

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db(session_factory):
    """Provide a fresh async session for each test."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client for the app, with a per-request session on the test database."""

    async def _get_test_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_test_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()
