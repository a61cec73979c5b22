"""Unit of Work — scoped transaction driver for the coordinators.

Invariants:
    - work() receives a repository bound to a freshly opened AsyncSession
    - Commit happens only if work() returns; any exception rolls back
    - The session is closed on every exit path
    - SQLAlchemy failures surface as DatabaseError; LadderErrors pass through unchanged

Design Decisions:
    - Work as a callable taking the repository (not a context manager handed to
      callers): the driver owns begin/commit/rollback, coordinators cannot forget one
    - repository_factory injectable so tests can count or wrap repository calls
"""

import logging
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ladder.core.repository_protocols import SessionRepository
from ladder.infrastructure.database import map_db_error
from ladder.services.repository import SqlSessionRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


class UnitOfWork:
    """Runs one unit of work per call to run()."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        repository_factory: Callable[[AsyncSession], SessionRepository] = SqlSessionRepository,
    ):
        self._session_factory = session_factory
        self._repository_factory = repository_factory

    async def run(self, work: Callable[[SessionRepository], Awaitable[T]]) -> T:
        async with self._session_factory() as session:
            try:
                result = await work(self._repository_factory(session))
                await session.commit()
                return result
            except SQLAlchemyError as e:
                await session.rollback()
                raise map_db_error(e) from e
            except Exception:
                await session.rollback()
                raise
