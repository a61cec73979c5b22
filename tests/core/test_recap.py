"""Session recap tests — snapshot building from loaded rows.

Tests cover:
    - race_time only for completed entries with both timestamps
    - winner name resolved from the player map, "unknown" when missing
    - has_ended requires every match to have ended
    - snapshot is frozen
"""

import dataclasses
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from uuid import uuid4

import pytest

from ladder.core.domain_types import (
    MatchEntryOutcome, MatchEntryStatus, MatchSessionStatus,
)
from ladder.core.recap import UNKNOWN_PLAYER_NAME, build_session_recap, race_time

T0 = datetime(2026, 3, 1, 20, 0, tzinfo=timezone.utc)


def _player(name):
    return SimpleNamespace(id=uuid4(), name=name, discord_id=None)


def _entry(player, status, outcome, ended_at=None):
    return SimpleNamespace(
        player_id=player.id, status=status, outcome=outcome,
        started_at=T0, ended_at=ended_at,
    )


def test_race_time_for_completed_entry():
    entry = _entry(
        _player("ana"), MatchEntryStatus.COMPLETED, MatchEntryOutcome.WIN,
        ended_at=T0 + timedelta(hours=1, minutes=5),
    )
    assert race_time(entry) == timedelta(hours=1, minutes=5)


def test_race_time_absent_for_forfeit():
    entry = _entry(
        _player("ana"), MatchEntryStatus.FORFEITED, MatchEntryOutcome.LOSS,
        ended_at=T0 + timedelta(minutes=5),
    )
    assert race_time(entry) is None


def test_build_recap_of_ended_session():
    ana, bob = _player("ana"), _player("bob")
    match = SimpleNamespace(
        id=uuid4(), seed_ref="seed-1", ended_at=T0 + timedelta(hours=2),
        winner_player_id=ana.id,
        entries=[
            _entry(ana, MatchEntryStatus.COMPLETED, MatchEntryOutcome.WIN,
                   T0 + timedelta(hours=1)),
            _entry(bob, MatchEntryStatus.FORFEITED, MatchEntryOutcome.LOSS,
                   T0 + timedelta(hours=2)),
        ],
    )
    session = SimpleNamespace(id=uuid4(), status=MatchSessionStatus.CLOSED)

    recap = build_session_recap(session, [match], {ana.id: ana, bob.id: bob})

    assert recap.session_id == session.id
    assert recap.has_ended
    assert recap.matches[0].winner_name == "ana"
    assert [e.player_name for e in recap.matches[0].entries] == ["ana", "bob"]
    assert recap.matches[0].entries[0].race_time == timedelta(hours=1)
    assert recap.matches[0].entries[1].race_time is None


def test_build_recap_with_unknown_player_and_running_match():
    ana, zed = _player("ana"), _player("zed")
    match = SimpleNamespace(
        id=uuid4(), seed_ref=None, ended_at=None, winner_player_id=None,
        entries=[
            _entry(ana, MatchEntryStatus.COMPLETED, MatchEntryOutcome.WIN,
                   T0 + timedelta(hours=1)),
            _entry(zed, MatchEntryStatus.IN_PROGRESS, MatchEntryOutcome.LOSS),
        ],
    )
    session = SimpleNamespace(id=uuid4(), status=MatchSessionStatus.IN_PROGRESS)

    recap = build_session_recap(session, [match], {ana.id: ana})

    assert not recap.has_ended
    assert recap.matches[0].winner_name is None
    assert recap.matches[0].entries[1].player_name == UNKNOWN_PLAYER_NAME


def test_recap_is_frozen():
    session = SimpleNamespace(id=uuid4(), status=MatchSessionStatus.JOINABLE)
    recap = build_session_recap(session, [], {})
    assert not recap.has_ended
    with pytest.raises(dataclasses.FrozenInstanceError):
        recap.status = MatchSessionStatus.CLOSED
