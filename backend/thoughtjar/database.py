"""
ThoughtJar Backend — Database Session Management
==================================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
Why:   Centralizes all database connection logic in one place.
How:   Creates an async engine with a bounded connection pool, provides a
       session dependency that commits on success and rolls back on error.
Who:   Used by route handlers via FastAPI's dependency injection system.
When:  Engine is created at module import; sessions are created per-request.

Connection Pooling Strategy:
    pool_size=10:      Persistent connections for normal load
    max_overflow=0:    No burst connections; the pool is a hard bound
    pool_pre_ping:     Validates connections before use (catches stale connections)
    pool_recycle:      Replaces connections older than db_pool_recycle seconds
    connect timeout:   Passed to the driver (asyncpg and sqlite both accept `timeout`)

Transaction scope:
    One session per request, one transaction per session. Every statement a
    handler issues (the two-step folder delete included) commits or rolls
    back together.
"""

from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from thoughtjar.config import settings


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(
    settings.database_url,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=settings.db_pool_pre_ping,
    pool_recycle=settings.db_pool_recycle,
    connect_args={"timeout": settings.db_connect_timeout},
    # Echo SQL queries in DEBUG mode for development visibility
    echo=settings.log_level == "DEBUG",
)


# SQLite ships with foreign key enforcement off; the cascade and set-null
# rules on thoughts/folders depend on it.
if engine.dialect.name == "sqlite":

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: response models are built from ORM rows after the
# handler returns, which is after commit.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models inherit from this class so they register with a single
    metadata object, which Alembic and the test suite use to build the schema.
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler (the handler performs queries)
        3. On success: commits the transaction
        4. On error: rolls back the transaction (including NotFoundError
           raised after a partial two-step operation)
        5. Always: closes the session (returns connection to pool)

    Example usage in a route:
        @router.get("/thoughts")
        async def list_thoughts(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """Gracefully closes all connections in the pool (application shutdown)."""
    await engine.dispose()
