"""Database Session Manager — async connection pool with automatic rollback and health checks.

Invariants:
    - Every session auto-rolls-back on exception (no partial commits leak)
    - Connection pool uses pool_pre_ping for stale connection detection
    - All SQLAlchemy exceptions mapped to DatabaseError (core/errors.py)

Design Decisions:
    - Singleton db_manager initialized on startup: FastAPI lifespan manages lifecycle
      (no global import side effects)
    - expire_on_commit=False: rows returned by a unit of work stay readable after commit
    - Pool sizing skipped for SQLite: its pools take no size arguments
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import (
    DBAPIError, IntegrityError, OperationalError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)

from ladder.core.errors import DatabaseError

logger = logging.getLogger(__name__)


def map_db_error(e: SQLAlchemyError) -> DatabaseError:
    """Translate a SQLAlchemy failure into the internal DatabaseError."""
    if isinstance(e, IntegrityError):
        logger.error(f"DB integrity error: {e}")
        return DatabaseError("Integrity constraint violated", "commit")
    if isinstance(e, OperationalError):
        logger.error(f"DB operational error: {e}")
        return DatabaseError("Connection or operational error", "execute")
    if isinstance(e, DBAPIError):
        logger.error(f"DB driver error: {e}")
        return DatabaseError("Database driver error", "query")
    logger.error(f"SQLAlchemy error: {e}")
    return DatabaseError("Database operation failed", "unknown")


class DatabaseSessionManager:
    """Manages async database sessions with pooling, rollback, and health checks."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        pool_args = {}
        if not database_url.startswith("sqlite"):
            pool_args = {
                "pool_size": pool_size,
                "max_overflow": max_overflow,
                "pool_recycle": 3600,
            }
        self.engine = create_async_engine(
            database_url, pool_pre_ping=True, **pool_args,
        )
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        return self._session_factory

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
        """Check database connectivity (for the readiness check)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()


# Singleton (initialized on startup)
db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)
    return db_manager
