"""Service test fixtures — async SQLite DB, fake outbound capabilities, fixed clock.

Invariants:
    - Every test gets a fresh SQLite file under tmp_path
    - The clock is a fixed, movable instant: no test depends on wall time
    - pg_* fixtures skip unless LADDER_TEST_POSTGRES_URL names a scratch database

Design Decisions:
    - SQLite file rather than :memory:: the unlock task opens its own sessions
      concurrently with the test and needs a real shared database
    - SQLite ignores FOR UPDATE and pysqlite only begins a transaction at the
      first write, so concurrent calls there are guarded by unique constraints
      alone. Races that rely on row locks are marked postgres and run against
      the pg_* fixtures
    - Test doubles live in fakes.py so test modules can import them directly
"""

import os

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)

from ladder.db.base import Base
from ladder.services.ladder_service import LadderService
from ladder.services.unit_of_work import UnitOfWork

from tests.services.fakes import (
    OFFSET, FakeUnlocker, FixedClock, RecordingSender, Seeder,
)


@pytest.fixture
async def test_engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'ladder.db'}", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
def uow(test_session_factory):
    return UnitOfWork(test_session_factory)


@pytest.fixture
def seed(test_session_factory):
    return Seeder(test_session_factory)


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def unlocker():
    return FakeUnlocker()


@pytest.fixture
async def ladder_service(test_session_factory, sender, unlocker, clock):
    service = LadderService(
        test_session_factory, sender, unlocker,
        preparation_offset=OFFSET, clock=clock,
    )
    yield service
    await service.shutdown()


# ─── PostgreSQL ──────────────────────────────────────────────────

@pytest.fixture
async def pg_session_factory():
    url = os.environ.get("LADDER_TEST_POSTGRES_URL")
    if not url:
        pytest.skip("LADDER_TEST_POSTGRES_URL not set")
    engine = create_async_engine(
        url.replace("postgresql://", "postgresql+asyncpg://", 1), echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def pg_seed(pg_session_factory):
    return Seeder(pg_session_factory)


@pytest.fixture
async def pg_ladder_service(pg_session_factory, sender, unlocker, clock):
    service = LadderService(
        pg_session_factory, sender, unlocker,
        preparation_offset=OFFSET, clock=clock,
    )
    yield service
    await service.shutdown()
