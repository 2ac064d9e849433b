"""
Database session configuration.

Async SQLAlchemy engine and session factory. PostgreSQL (asyncpg) in
deployment; a ``sqlite+aiosqlite`` URL works for local runs.
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base
from backend.app.core.config import settings


def _engine_options(database_url: str) -> dict:
    options = {"echo": settings.db_echo, "future": True}
    # SQLite doesn't take queue pool sizing
    if not make_url(database_url).get_backend_name().startswith("sqlite"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=True,
        )
    return options


engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

# Services own commit/rollback; objects stay usable after commit
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_db():
    """
    FastAPI dependency for database sessions.

    Yields an async session per request. Anything left uncommitted when
    the request ends is rolled back on close.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
