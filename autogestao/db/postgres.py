"""PostgreSQL access for the dealership API.

Three ways to get a session:

- get_async_session(): request-scoped FastAPI dependency. Commits when the
  handler returns, rolls back when it raises, and only then runs the
  callbacks registered with after_commit() (webhook deliveries, media
  unlinks) or after_rollback() (removing media stored for a failed insert).
- background_session(): for work scheduled with asyncio.create_task that
  outlives the request (API-key last_used_at, webhook delivery status).
- async_session_factory: the raw sessionmaker, used by both of the above.

Pool sizing comes from settings (DB_POOL_SIZE, DB_MAX_OVERFLOW,
DB_POOL_RECYCLE_SECONDS, DB_ECHO).
"""

from collections.abc import AsyncGenerator, AsyncIterator, Callable
from contextlib import asynccontextmanager

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from autogestao.core.config import settings
from autogestao.core.exceptions import DatabaseConnectionError

logger = structlog.get_logger(__name__)

_AFTER_COMMIT_KEY = "autogestao.after_commit"
_AFTER_ROLLBACK_KEY = "autogestao.after_rollback"


class Base(DeclarativeBase):
    """Declarative base shared by every tenant-scoped table."""


engine: AsyncEngine = create_async_engine(
    settings.postgres_url,
    echo=settings.db_echo,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_recycle=settings.db_pool_recycle_seconds,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


def after_commit(session: AsyncSession, callback: Callable[[], None]) -> None:
    """Run *callback* once *session*'s transaction has committed.

    Discarded if the transaction rolls back.
    """
    session.info.setdefault(_AFTER_COMMIT_KEY, []).append(callback)


def after_rollback(session: AsyncSession, callback: Callable[[], None]) -> None:
    """Run *callback* if *session*'s transaction rolls back."""
    session.info.setdefault(_AFTER_ROLLBACK_KEY, []).append(callback)


def _run_callbacks(session: AsyncSession, run_key: str, drop_key: str) -> int:
    session.info.pop(drop_key, None)
    callbacks = session.info.pop(run_key, [])
    for callback in callbacks:
        try:
            callback()
        except Exception as e:
            # The transaction outcome is settled; a failed callback must not
            # change the response.
            logger.error("session_callback_failed", hook=run_key, error=str(e))
    return len(callbacks)


def run_after_commit(session: AsyncSession) -> int:
    """Run and clear the commit callbacks queued on *session*."""
    return _run_callbacks(session, _AFTER_COMMIT_KEY, _AFTER_ROLLBACK_KEY)


def run_after_rollback(session: AsyncSession) -> int:
    """Run and clear the rollback callbacks queued on *session*."""
    return _run_callbacks(session, _AFTER_ROLLBACK_KEY, _AFTER_COMMIT_KEY)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session that settles the transaction, then its callbacks.

    SQLAlchemy errors surface as DatabaseConnectionError (503).
    """
    try:
        async with async_session_factory() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                run_after_rollback(session)
                logger.error("postgres_session_error", error=str(e))
                raise DatabaseConnectionError(f"Database operation failed: {e}") from e
            except Exception:
                await session.rollback()
                run_after_rollback(session)
                raise
            run_after_commit(session)
    except DatabaseConnectionError:
        raise
    except SQLAlchemyError as e:
        logger.error("postgres_connection_error", error=str(e))
        raise DatabaseConnectionError(f"Database connection failed: {e}") from e


@asynccontextmanager
async def background_session() -> AsyncIterator[AsyncSession]:
    """Session for fire-and-forget tasks; commits on exit, rolls back on error.

    Callers own error handling: background work must log, not raise.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def close_postgres() -> None:
    """Dispose of the engine pool on shutdown."""
    logger.info("postgres_shutdown")
    await engine.dispose()
