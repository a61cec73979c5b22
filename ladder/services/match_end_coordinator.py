"""Match End Coordinator — complete and forfeit transitions with their ordered side effects.

Invariants:
    - Precondition: the player holds a non-terminal entry; otherwise NoActiveRaceError.
      Forfeiting an entry that already ended is therefore rejected and mutates nothing
    - complete requires the entry to be IN_PROGRESS (RaceNotStartedError)
    - In one UnitOfWork: transition, save own entry + opponent entry + match,
      close the session when all its matches ended, then match-end notifications
    - After commit, in order: private session recap to the acting player, seed
      relay to the acting player, unlock scheduling when the match has ended
    - A failure before commit rolls everything back, messages included

Design Decisions:
    - Opponent entry re-saved even when unchanged: its outcome may have been
      settled by this transition
    - Recap read in a fresh UnitOfWork after commit: it reflects the committed
      state of every match of the session, not just this one
"""

import logging
from datetime import datetime
from typing import Callable

from ladder.core.domain_types import MatchEntryStatus, MatchSessionStatus, PlayerId
from ladder.core.errors import ErrorContext, NoActiveRaceError, RaceNotStartedError
from ladder.core.repository_protocols import SessionRepository
from ladder.core.session_rules import utc_now
from ladder.core.transitions import (
    complete_entry, forfeit_entry, match_has_ended, session_has_ended,
)
from ladder.models import Match, Player
from ladder.services.notification_dispatcher import NotificationDispatcher
from ladder.services.repository import require_player
from ladder.services.unit_of_work import UnitOfWork
from ladder.services.unlock_scheduler import AsyncUnlockScheduler

logger = logging.getLogger(__name__)


class MatchEndCoordinator:
    def __init__(
        self,
        uow: UnitOfWork,
        dispatcher: NotificationDispatcher,
        unlock_scheduler: AsyncUnlockScheduler,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._uow = uow
        self._dispatcher = dispatcher
        self._unlock_scheduler = unlock_scheduler
        self._clock = clock

    async def complete(self, player_id: PlayerId) -> Match:
        return await self._end_active_match(player_id, forfeit=False)

    async def forfeit(self, player_id: PlayerId) -> Match:
        return await self._end_active_match(player_id, forfeit=True)

    async def _end_active_match(self, player_id: PlayerId, forfeit: bool) -> Match:
        async def work(repo: SessionRepository) -> tuple[Player, Match]:
            player = await require_player(repo, player_id)
            found = await repo.get_active_match_for_player(player.id)
            if found is None:
                raise NoActiveRaceError(ErrorContext(player_id=str(player_id)))
            match, entry, opponent = found

            now = self._clock()
            if forfeit:
                forfeit_entry(entry, opponent, match, now)
            else:
                if entry.status != MatchEntryStatus.IN_PROGRESS:
                    raise RaceNotStartedError(ErrorContext(
                        player_id=str(player_id), match_id=str(match.id),
                    ))
                complete_entry(entry, opponent, match, now)

            await repo.save(entry, opponent, match)
            if match_has_ended(match):
                await self._maybe_close_session(repo, match)

            await self._dispatcher.notify_sides(repo, player, entry, opponent)

            logger.info(
                f"Player {player.name} {'forfeited' if forfeit else 'completed'} their race",
                extra={"player_id": player.id, "match_id": match.id},
            )
            return player, match

        player, match = await self._uow.run(work)

        await self._uow.run(
            lambda repo: self._dispatcher.send_session_recap(repo, match.session_id, player),
        )
        await self._dispatcher.relay_seed(player, match)

        if match_has_ended(match):
            self._unlock_scheduler.maybe_unlock(match)

        return match

    async def _maybe_close_session(self, repo: SessionRepository, match: Match) -> None:
        # Locked before reading matches: a concurrent close of the last other match is seen.
        session = await repo.get_session(match.session_id, lock=True)
        if session is None or session.status == MatchSessionStatus.CLOSED:
            return
        matches = await repo.get_matches_for_session(match.session_id)
        if not session_has_ended(matches):
            return
        session.status = MatchSessionStatus.CLOSED
        await repo.save(session)
        logger.info("Session closed", extra={"session_id": session.id})
