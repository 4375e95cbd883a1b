"""Database configuration and connection management.

The engine below is the process-wide connection pool. It is created at import,
checked out once per request through ``get_db`` and disposed by the
application lifespan on shutdown.
"""

import asyncio
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from sqlalchemy import event, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config import settings
from app.core.exceptions import SlotUnavailableException
from app.models import metadata

logger = structlog.get_logger()

# Convert sync PostgreSQL URL to async
DATABASE_URL = settings.database_url.replace("postgresql://", "postgresql+asyncpg://")


def _engine_options() -> dict[str, Any]:
    """Build pool options for the configured backend."""
    options: dict[str, Any] = {
        "echo": settings.debug,
        "pool_pre_ping": True,
    }
    if settings.is_sqlite:
        return options

    options.update(
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_recycle=3600,
        connect_args={
            "server_settings": {
                "application_name": settings.app_name,
            },
        },
    )
    return options


# Create async engine with connection pooling
engine: AsyncEngine = create_async_engine(DATABASE_URL, **_engine_options())

# Async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@event.listens_for(engine.sync_engine, "connect")
def set_sqlite_pragma(dbapi_conn: Any, connection_record: Any) -> None:
    """Turn on foreign key enforcement for SQLite connections."""
    if settings.is_sqlite:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# Postgres SQLSTATE for unique_violation
UNIQUE_VIOLATION_SQLSTATE = "23505"


def is_unique_violation(error: IntegrityError) -> bool:
    """Tell unique-key violations apart from foreign key and check failures."""
    orig = error.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate is not None:
        return sqlstate == UNIQUE_VIOLATION_SQLSTATE
    # sqlite3 reports every constraint kind under one code; the message names it
    message = str(orig)
    return "UNIQUE constraint failed" in message or "duplicate key value" in message


@asynccontextmanager
async def transaction(
    db: AsyncSession,
    conflict_message: str = "This time slot is no longer available.",
) -> AsyncIterator[AsyncSession]:
    """
    Run a unit of work that commits on success and rolls back on any error.

    Unique violations raised by the database (the partial unique indexes on
    sessions, unique usernames) are re-raised as ``SlotUnavailableException``
    so callers never look at driver error codes. Other integrity errors, such
    as foreign key or check failures, propagate unchanged.

    Args:
        db: Session checked out for the current request
        conflict_message: Message carried by the translated conflict

    Yields:
        The same session, inside an open transaction
    """
    try:
        yield db
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if not is_unique_violation(e):
            logger.error("transaction_integrity_error", error=str(e.orig))
            raise
        logger.warning("transaction_unique_violation", error=str(e.orig))
        raise SlotUnavailableException(conflict_message) from e
    except Exception:
        await db.rollback()
        raise


async def check_database_connection() -> bool:
    """Check if database connection is healthy."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False


async def wait_for_database(
    retries: int = settings.db_boot_retries,
    delay: float = settings.db_boot_retry_delay_seconds,
) -> None:
    """
    Poll the database until it accepts connections.

    Args:
        retries: Maximum number of attempts
        delay: Seconds to sleep between attempts

    Raises:
        Exception: The last connection error once every attempt has failed
    """
    for attempt in range(1, retries + 1):
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            logger.info("database_connected", attempt=attempt)
            return
        except Exception as e:
            if attempt == retries:
                logger.error("database_unavailable", attempts=retries, error=str(e))
                raise
            logger.warning(
                "database_not_ready",
                attempt=attempt,
                retries=retries,
                retry_in=delay,
                error=str(e),
            )
            await asyncio.sleep(delay)


async def create_schema() -> None:
    """Create all tables, indexes and triggers that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    logger.info("database_schema_ready")
