from __future__ import annotations

import logging
from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from settings.config import settings

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _dsn() -> str:
    # Prefer pgbouncer when configured
    return settings.PGBOUNCER_DSN or settings.POSTGRES_DSN


def enable_sqlite_savepoints(engine: AsyncEngine) -> AsyncEngine:
    """
    pysqlite's own transaction handling breaks SAVEPOINT; switch it off and
    let SQLAlchemy emit BEGIN so ``begin_nested()`` works on SQLite.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def get_engine() -> AsyncEngine:
    global _engine, _session_factory
    if _engine is None:
        dsn = _dsn()
        if dsn.startswith("sqlite"):
            _engine = enable_sqlite_savepoints(create_async_engine(dsn))
        else:
            _engine = create_async_engine(
                dsn,
                pool_size=10,
                max_overflow=20,
                pool_pre_ping=True,
            )
        _session_factory = async_sessionmaker(_engine, expire_on_commit=False)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        get_engine()
    assert _session_factory is not None
    return _session_factory


async def get_async_session() -> AsyncIterator[AsyncSession]:
    """
    FastAPI dependency for request-scoped AsyncSession.
    """
    session_factory = get_session_factory()
    async with session_factory() as session:
        yield session


async def init_db() -> None:
    """
    Initialize the engine and verify connectivity. Creates the tables when
    AUTO_CREATE_SCHEMA is set; production schemas come from Alembic.
    """
    engine = get_engine()
    async with engine.begin() as conn:
        if settings.AUTO_CREATE_SCHEMA:
            from db.models import Base
            import auth.tables  # noqa: F401  registers the users table

            logger.info("Creating database schema")
            await conn.run_sync(Base.metadata.create_all)
        else:
            await conn.run_sync(lambda _: None)


async def close_db() -> None:
    """
    Dispose the engine on application shutdown.
    """
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
