"""Unit of work tests — commit on success, rollback on every failure.

Tests cover:
    - Returned value passes through and writes are committed
    - LadderError rolls back and propagates unchanged
    - Any other exception rolls back and propagates
    - SQLAlchemy failures (integrity) surface as DatabaseError
"""

import pytest

from ladder.core.errors import DatabaseError, RaceInProgressError
from ladder.models import League, Player


async def test_commit_on_success(uow, seed):
    async def work(repo):
        player = Player(name="ana")
        await repo.save(player)
        return player.id

    player_id = await uow.run(work)

    assert (await seed.get(Player, player_id)).name == "ana"


async def test_ladder_error_rolls_back(uow, seed):
    created = {}

    async def work(repo):
        player = Player(name="ana")
        await repo.save(player)
        created["id"] = player.id
        raise RaceInProgressError()

    with pytest.raises(RaceInProgressError):
        await uow.run(work)

    assert await seed.get(Player, created["id"]) is None


async def test_unexpected_error_rolls_back(uow, seed):
    league = await seed.league()

    async def work(repo):
        stored = await repo.get_league(league.id)
        stored.name = "Renamed"
        await repo.save(stored)
        raise ValueError("boom")

    with pytest.raises(ValueError):
        await uow.run(work)

    assert (await seed.get(League, league.id)).name == "Standard"


async def test_integrity_error_maps_to_database_error(uow, seed):
    await seed.player("ana")

    async def work(repo):
        await repo.save(Player(name="ana"))

    with pytest.raises(DatabaseError) as exc_info:
        await uow.run(work)
    assert not exc_info.value.public
