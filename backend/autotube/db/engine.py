"""
Database engine configuration for the SQL job store.

Provides async SQLAlchemy engines with SQLite WAL mode and crash-safe
PRAGMA configuration.
"""
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool


def configure_sqlite_pragmas(dbapi_conn, connection_record):
    """
    Configure SQLite PRAGMA settings for crash safety and performance.

    - WAL mode: readers do not block the writer
    - FULL synchronous: terminal job states survive a crash
    - Busy timeout: wait up to 5s for locks
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=FULL")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()


def create_engine(database_url: str) -> AsyncEngine:
    """Create an async engine for database_url.

    In-memory SQLite URLs share one connection (StaticPool) so every
    session sees the same database.
    """
    kwargs = {}
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        kwargs["poolclass"] = StaticPool
        kwargs["connect_args"] = {"check_same_thread": False}

    engine = create_async_engine(database_url, echo=False, **kwargs)

    if database_url.startswith("sqlite"):
        # CRITICAL: Use engine.sync_engine for aiosqlite compatibility
        event.listens_for(engine.sync_engine, "connect")(configure_sqlite_pragmas)

    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False keeps records readable after commit
    return async_sessionmaker(
        engine,
        expire_on_commit=False,
        class_=AsyncSession,
    )
