"""
Async Database Engine & Session Factory
========================================
This module sets up the async SQLAlchemy engine used by the measurement
history store and provides:
  - `async_engine`: the connection pool to PostgreSQL
  - `AsyncSessionLocal`: a session factory for creating DB sessions
  - `get_db()`: a FastAPI dependency that yields a session per request

The calculation services never touch the database; only the history
service and the patient router do.
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from clinical_calc.core.config import settings

# `echo=False` suppresses SQL logging. Set to True for debugging.
async_engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    pool_pre_ping=True,    # Drop stale connections before handing them out
)

# expire_on_commit=False keeps attributes loaded after commit,
# which avoids extra lazy-load queries in async context.
AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models (shared metadata registry)."""
    pass


async def get_db():
    """
    FastAPI dependency that provides a database session.

    Usage in a route:
        @router.get("/example")
        async def example(db: AsyncSession = Depends(get_db)):
            ...

    The session is closed when the request is done, even if an exception occurs.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
