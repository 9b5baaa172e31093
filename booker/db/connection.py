from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from booker.settings import get_settings

logger = logging.getLogger(__name__)


def get_database_url() -> str:
    """Return the async database URL resolved from settings.

    Malformed URLs raise ``RuntimeError`` here so every caller, including the
    CLI, surfaces the same message.
    """

    return get_settings().resolved_database_url


def get_database_type() -> str:
    """Return ``postgresql`` or ``sqlite`` for the configured database."""

    return get_settings().database_type


def _enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINTs nest inside a real transaction.

    The sqlite3 driver otherwise defers BEGIN until the first DML statement,
    which turns the outermost SAVEPOINT into the transaction boundary.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


def create_engine(url: str | None = None) -> AsyncEngine:
    """Create the async SQLAlchemy engine.

    PostgreSQL gets a warm connection pool; SQLite keeps SQLAlchemy's defaults
    because the file-backed driver does not accept pool sizing arguments.
    """

    url = url or get_database_url()
    if url.startswith("sqlite"):
        engine = create_async_engine(url, future=True, echo=False)
        _enable_sqlite_savepoints(engine)
    else:
        engine = create_async_engine(
            url,
            future=True,
            echo=False,
            pool_size=10,
            max_overflow=20,
            pool_pre_ping=True,  # Validate connections before use
            pool_recycle=1800,
            pool_timeout=30,
        )

    from booker.monitoring import setup_query_monitoring

    setup_query_monitoring(
        engine,
        slow_query_threshold=get_settings().slow_query_threshold,
    )
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


# Global engine/session instances for FastAPI dependency injection
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Get or create the global engine instance."""
    global _engine
    if _engine is None:
        _engine = create_engine()
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Lazily create a session factory bound to the shared engine."""
    global _session_factory
    if _session_factory is None:
        _session_factory = create_session_factory(get_engine())
    return _session_factory


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    Dependency to provide database session.

    Commits when the request handler returns normally and rolls back when it
    raises, so a failed favorites mutation never leaves a partial write.
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def dispose_engine() -> None:
    """Dispose the shared engine so pooled connections close on shutdown."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("Database engine disposed")
    _engine = None
    _session_factory = None
