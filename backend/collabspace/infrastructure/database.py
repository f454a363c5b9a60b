"""Database Session Manager — async connection pool with automatic rollback and health checks.

Invariants:
    - Every session auto-rolls-back on exception (no partial commits leak)
    - Connection pool uses pool_pre_ping for stale connection detection
    - All SQLAlchemy exceptions mapped through map_db_error (core/errors.py types)
    - Serialization failures and deadlocks surface as ConflictError, never StorageError

Design Decisions:
    - Singleton db_manager initialized on startup: FastAPI lifespan manages lifecycle
      (ADR: no global import side effects)
    - expire_on_commit=False: prevents lazy-load issues in async context
    - Isolation level set on the engine, not per session: every transaction a move
      runs in gets it, including the guard reads that precede it
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.exc import (
    IntegrityError, OperationalError, DBAPIError, SQLAlchemyError,
)
from sqlalchemy import text

from collabspace.core.errors import CollabSpaceError, ConflictError, StorageError

logger = logging.getLogger(__name__)

# serialization_failure, deadlock_detected
RETRYABLE_SQLSTATES: frozenset[str] = frozenset({"40001", "40P01"})


def _sqlstate(exc: DBAPIError) -> str | None:
    orig = exc.orig
    for candidate in (orig, getattr(orig, "__cause__", None)):
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return str(code)
    return None


def map_db_error(exc: SQLAlchemyError) -> CollabSpaceError:
    """Translate a SQLAlchemy exception into the domain error hierarchy."""
    if isinstance(exc, DBAPIError) and _sqlstate(exc) in RETRYABLE_SQLSTATES:
        logger.warning(f"DB serialization conflict: {exc}")
        return ConflictError(
            "Concurrent modification detected, reload and retry",
        )
    if isinstance(exc, IntegrityError):
        logger.error(f"DB integrity error: {exc}")
        return StorageError("Integrity constraint violated", "commit")
    if isinstance(exc, OperationalError):
        logger.error(f"DB operational error: {exc}")
        return StorageError("Connection or operational error", "execute")
    if isinstance(exc, DBAPIError):
        logger.error(f"DB driver error: {exc}")
        return StorageError("Database driver error", "query")
    logger.error(f"SQLAlchemy error: {exc}")
    return StorageError("Database operation failed", "unknown")


class DatabaseSessionManager:
    """Manages async database sessions with pooling, rollback, and health checks."""

    def __init__(
        self,
        database_url: str,
        pool_size: int = 20,
        max_overflow: int = 10,
        isolation_level: str | None = None,
    ):
        engine_kwargs: dict = {
            "pool_size": pool_size,
            "max_overflow": max_overflow,
            "pool_pre_ping": True,
            "pool_recycle": 3600,
        }
        if isolation_level:
            engine_kwargs["isolation_level"] = isolation_level
        self.engine = create_async_engine(database_url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide session with auto-rollback on exception."""
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            raise map_db_error(e) from e
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """Check database connectivity (for readiness probes)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def close(self) -> None:
        await self.engine.dispose()


# Singleton (initialized on startup)
db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs):
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    if not db_manager:
        raise RuntimeError("Database not initialized")
    async with db_manager.session() as session:
        yield session


async def commit_or_raise(db: AsyncSession) -> None:
    """Commit the request session; map driver failures to domain errors."""
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise map_db_error(e) from e
