"""
Database connection and session management.

Every inbound request gets one session; the session is one transaction that
commits on success and rolls back on any exception. Services never commit.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TypeVar

import structlog
from sqlalchemy import event, text
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from app.core.config import get_settings

T = TypeVar("T")

log = structlog.get_logger()
settings = get_settings()


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _configure_sqlite(engine: AsyncEngine) -> None:
    """SQLite has no row locks: take the database write lock at BEGIN instead.

    ``BEGIN IMMEDIATE`` serializes write transactions, which gives the same
    per-request ordering that ``SELECT ... FOR UPDATE`` gives on PostgreSQL.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Stop the driver from emitting its own deferred BEGIN.
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(url: str, *, echo: bool = False) -> AsyncEngine:
    if _is_sqlite(url):
        engine = create_async_engine(url, echo=echo, connect_args={"timeout": 30})
        _configure_sqlite(engine)
        return engine
    return create_async_engine(url, echo=echo, pool_pre_ping=True)


engine = build_engine(settings.database_url, echo=settings.db_echo)

async_session_factory = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db():
    """Create all tables (development and tests only — use migrations in production)."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def drop_db():
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)


async def check_database() -> bool:
    """Readiness probe: can we run a trivial query?"""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except (OperationalError, InterfaceError, OSError) as exc:
        log.warning("database.unreachable", error_type=type(exc).__name__)
        return False


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def get_session_context():
    """Context manager for use outside of FastAPI request lifecycle."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def with_read_retry(operation: Callable[[AsyncSession], Awaitable[T]]) -> T:
    """Run a read-only operation, retrying once on a transient storage error.

    Only for idempotent reads. Mutations must never go through here: a
    committed-but-unacknowledged write would be applied twice.
    """
    try:
        async with get_session_context() as session:
            return await operation(session)
    except (OperationalError, InterfaceError) as exc:
        log.warning("database.read_retry", error_type=type(exc).__name__)

    async with get_session_context() as session:
        return await operation(session)
