"""Notification dispatcher tests — which side hears what, and failure mapping.

Tests cover:
    - Only terminal sides are notified, each with its own text
    - Both sides notified once the match ended
    - Transport exceptions wrapped in NotificationError
    - Session recap built from committed rows and sent with RUNNER scope
"""

from datetime import timedelta
from types import SimpleNamespace
from uuid import uuid4

import pytest

from ladder.core.domain_types import (
    MatchEntryOutcome, MatchEntryStatus, MatchSessionStatus, RecapScope,
)
from ladder.core.errors import NotificationError
from ladder.services.notification_dispatcher import NotificationDispatcher

from tests.services.fakes import NOW


@pytest.fixture
def dispatcher(sender):
    return NotificationDispatcher(sender)


def _entry(player, status, outcome):
    return SimpleNamespace(
        match_id=uuid4(), player_id=player.id, status=status, outcome=outcome,
        started_at=NOW, ended_at=NOW + timedelta(hours=1),
    )


async def test_only_terminal_side_is_notified(dispatcher, uow, seed, sender):
    ana, bob = await seed.player("ana"), await seed.player("bob")
    own = _entry(ana, MatchEntryStatus.COMPLETED, MatchEntryOutcome.WIN)
    other = _entry(bob, MatchEntryStatus.IN_PROGRESS, MatchEntryOutcome.LOSS)

    await uow.run(lambda repo: dispatcher.notify_sides(repo, ana, own, other))

    assert [pid for pid, _ in sender.messages] == [ana.id]
    assert "bob is still racing" in sender.messages[0][1]


async def test_both_sides_notified_when_match_ended(dispatcher, uow, seed, sender):
    ana, bob = await seed.player("ana"), await seed.player("bob")
    own = _entry(bob, MatchEntryStatus.FORFEITED, MatchEntryOutcome.LOSS)
    other = _entry(ana, MatchEntryStatus.COMPLETED, MatchEntryOutcome.WIN)

    await uow.run(lambda repo: dispatcher.notify_sides(repo, bob, own, other))

    assert "forfeited your race against ana" in sender.texts_for(bob.id)[0]
    assert "bob forfeited: you won" in sender.texts_for(ana.id)[0]


async def test_transport_failure_is_wrapped(dispatcher, sender):
    sender.fail_with = TimeoutError("chat timed out")
    player = SimpleNamespace(id=uuid4(), name="ana", discord_id=None)
    match = SimpleNamespace(
        id=uuid4(), seed_ref="seed-1", spoiler_ref=None, spoiler_unlocked_at=None,
    )

    with pytest.raises(NotificationError) as exc_info:
        await dispatcher.relay_seed(player, match)
    assert exc_info.value.context.player_id == str(player.id)


async def test_session_recap(dispatcher, uow, seed, sender):
    ana, bob = await seed.player("ana"), await seed.player("bob")
    league = await seed.league()
    session = await seed.session(
        league, start_date=NOW - timedelta(hours=1),
        status=MatchSessionStatus.IN_PROGRESS, players=(ana, bob),
    )
    await seed.match(session, ana, bob, first_status=MatchEntryStatus.COMPLETED)

    recap = await uow.run(
        lambda repo: dispatcher.send_session_recap(repo, session.id, ana),
    )

    assert recap.session_id == session.id
    assert not recap.has_ended
    assert [e.player_name for e in recap.matches[0].entries] == ["ana", "bob"]
    assert sender.recaps == [(recap, RecapScope.RUNNER, ana.id)]
