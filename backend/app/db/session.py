"""
Async engine and session factory.

SQLite (the default, matching D1) gets no pool sizing arguments and has
foreign keys switched on per connection; server databases get the
configured connection pool.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import get_settings
from app.core.errors import InternalFailure
from app.core.logging import get_logger

settings = get_settings()
logger = get_logger(__name__)


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {}
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "pool_recycle": settings.DB_POOL_RECYCLE,
        "pool_pre_ping": True,
    }


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """SQLite leaves FOREIGN KEY enforcement off unless asked on every connection."""

    @event.listens_for(engine.sync_engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(settings.DATABASE_URL, echo=settings.DEBUG, **_engine_options(settings.DATABASE_URL))
if settings.DATABASE_URL.startswith("sqlite"):
    enable_sqlite_foreign_keys(engine)

AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session. Services commit explicitly before touching the
    cache, so anything still pending here is committed on the way out.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def storage_errors(db: AsyncSession, message: str, log_event: str, **context):
    """
    Turn a storage exception raised inside the block into InternalFailure.

    The session is rolled back and the error logged with `context`. Domain
    errors raised inside the block pass through untouched.
    """
    try:
        yield
    except SQLAlchemyError:
        await db.rollback()
        logger.error(log_event, exc_info=True, **context)
        raise InternalFailure(message)


def is_unique_violation(exc: IntegrityError) -> bool:
    """True for UNIQUE violations, False for foreign key, CHECK and NOT NULL ones."""
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate:
        return sqlstate == "23505"
    return "UNIQUE constraint failed" in str(orig)
