"""
Async SQLAlchemy engine, session factory and declarative base.
"""
import logging
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from subnetly.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine_for(url: str, **kwargs) -> AsyncEngine:
    """Build an async engine with foreign keys enforced on every backend.

    SQLite ignores foreign keys unless each connection opts in, so the
    pragma is installed on connect. PostgreSQL connections carry the
    configured statement timeout.
    """
    if url.startswith("postgresql+asyncpg"):
        kwargs.setdefault("pool_timeout", settings.DB_POOL_TIMEOUT_SECONDS)
        kwargs.setdefault("connect_args", {
            "server_settings": {"statement_timeout": str(settings.DB_STATEMENT_TIMEOUT_MS)},
        })
    engine = create_async_engine(url, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


engine = create_engine_for(settings.DATABASE_URL, echo=settings.DEBUG)
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    # Closing the session rolls back anything left uncommitted, which is what
    # aborts an import when the client disconnects mid-request.
    async with AsyncSessionLocal() as session:
        yield session


async def init_db():
    """Create any missing tables."""
    import subnetly.models  # noqa: F401 - registers tables with Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured")
