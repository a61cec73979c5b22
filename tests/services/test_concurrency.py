"""Concurrency tests — simultaneous calls for the same player or the same match.

Tests cover:
    - Two joins of one player into one league: one registration, the other
      call aborts cleanly and the roster lists the player once
    - Two joins of one player into two leagues: one registration, the other
      is RaceInProgressError (postgres)
    - Both runners completing at the same instant: neither call fails and the
      match settles as a draw with its session closed (postgres)
"""

import asyncio
from datetime import timedelta

import pytest

from ladder.core.domain_types import (
    MatchEntryOutcome, MatchEntryStatus, MatchSessionStatus,
)
from ladder.core.errors import AlreadyRegisteredError, DatabaseError, RaceInProgressError
from ladder.models import Match, MatchSession

from tests.services.fakes import NOW


def _split(results):
    successes = [r for r in results if not isinstance(r, BaseException)]
    failures = [r for r in results if isinstance(r, BaseException)]
    return successes, failures


async def test_double_join_same_league(ladder_service, seed):
    ana = await seed.player("ana")
    league = await seed.league()
    session = await seed.session(league)

    results = await asyncio.gather(
        ladder_service.join_session(ana.id, league.id),
        ladder_service.join_session(ana.id, league.id),
        return_exceptions=True,
    )

    successes, failures = _split(results)
    assert len(successes) == 1
    assert len(failures) == 1
    assert isinstance(failures[0], (AlreadyRegisteredError, DatabaseError))
    assert (await seed.get(MatchSession, session.id)).player_ids == [ana.id]


@pytest.mark.postgres
async def test_double_join_two_leagues(pg_ladder_service, pg_seed):
    ana = await pg_seed.player("ana")
    standard = await pg_seed.league("Standard", "std")
    open_league = await pg_seed.league("Open", "open")
    first = await pg_seed.session(standard)
    second = await pg_seed.session(open_league)

    results = await asyncio.gather(
        pg_ladder_service.join_session(ana.id, standard.id),
        pg_ladder_service.join_session(ana.id, open_league.id),
        return_exceptions=True,
    )

    successes, failures = _split(results)
    assert len(successes) == 1
    assert len(failures) == 1
    assert isinstance(failures[0], RaceInProgressError)
    rosters = [
        (await pg_seed.get(MatchSession, first.id)).player_ids,
        (await pg_seed.get(MatchSession, second.id)).player_ids,
    ]
    assert sorted(rosters, key=len) == [[], [ana.id]]


@pytest.mark.postgres
async def test_simultaneous_completes(pg_ladder_service, pg_seed):
    ana, bob = await pg_seed.player("ana"), await pg_seed.player("bob")
    league = await pg_seed.league()
    session = await pg_seed.session(
        league, start_date=NOW - timedelta(hours=1),
        status=MatchSessionStatus.IN_PROGRESS, players=(ana, bob),
    )
    match = await pg_seed.match(session, ana, bob)

    results = await asyncio.gather(
        pg_ladder_service.complete_active_match(ana.id),
        pg_ladder_service.complete_active_match(bob.id),
        return_exceptions=True,
    )
    await pg_ladder_service.unlock_scheduler.drain()

    _, failures = _split(results)
    assert failures == []
    stored = await pg_seed.get(Match, match.id)
    assert {e.status for e in stored.entries} == {MatchEntryStatus.COMPLETED}
    assert {e.outcome for e in stored.entries} == {MatchEntryOutcome.DRAW}
    assert stored.winner_player_id is None
    assert stored.ended_at is not None
    closed = await pg_seed.get(MatchSession, session.id)
    assert closed.status == MatchSessionStatus.CLOSED
