"""Join Coordinator — registers a player for the next joinable session of a league.

Invariants:
    - Whole read-check-mutate sequence runs in one UnitOfWork
    - Joining a session the player is already in fails with AlreadyRegisteredError
      and leaves the roster unchanged
    - A player holding a non-terminal entry, or listed in another non-closed
      session whose race they have not ended, cannot join (RaceInProgressError)
    - No notification is sent: confirming the join is the caller's job

Design Decisions:
    - Player row locked first: two concurrent joins of one player serialize on it,
      so the active-race check cannot be raced into a double registration
"""

import logging
from datetime import datetime
from typing import Callable

from ladder.core.domain_types import LeagueId, PlayerId
from ladder.core.errors import ErrorContext, LeagueNotFoundError, RaceInProgressError
from ladder.core.repository_protocols import SessionRepository
from ladder.core.session_rules import pick_joinable_session, utc_now
from ladder.models import League, MatchSession, Player
from ladder.services.repository import require_player
from ladder.services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class JoinCoordinator:
    def __init__(
        self, uow: UnitOfWork, clock: Callable[[], datetime] = utc_now,
    ):
        self._uow = uow
        self._clock = clock

    async def join(self, player_id: PlayerId, league_id: LeagueId) -> MatchSession:
        async def work(repo: SessionRepository) -> MatchSession:
            player = await require_player(repo, player_id)
            league = await repo.get_league(league_id)
            if league is None:
                raise LeagueNotFoundError(
                    context=ErrorContext(player_id=str(player_id)),
                )
            return await self._join(repo, player, league)

        return await self._uow.run(work)

    async def join_by_short_code(
        self, player_id: PlayerId, short_code: str,
    ) -> tuple[MatchSession, League]:
        """Resolve the league from its short code, then join."""
        async def work(repo: SessionRepository) -> tuple[MatchSession, League]:
            player = await require_player(repo, player_id)
            league = await repo.get_league_by_short_code(short_code)
            if league is None:
                raise LeagueNotFoundError(
                    short_code, ErrorContext(player_id=str(player_id)),
                )
            return await self._join(repo, player, league), league

        return await self._uow.run(work)

    async def _join(
        self, repo: SessionRepository, player: Player, league: League,
    ) -> MatchSession:
        now = self._clock()
        candidates = await repo.get_joinable_sessions(league.id, now)
        session = pick_joinable_session(candidates, player.id, league.name)

        await self._ensure_no_active_race(repo, player)

        await repo.add_participant(session, player.id, now)
        logger.info(
            f"Player {player.name} joined the next {league.name} race",
            extra={
                "player_id": player.id,
                "league_id": league.id,
                "session_id": session.id,
            },
        )
        return session

    async def _ensure_no_active_race(
        self, repo: SessionRepository, player: Player,
    ) -> None:
        ctx = ErrorContext(player_id=str(player.id))
        if await repo.player_has_active_entry(player.id):
            raise RaceInProgressError(ctx)
        other = await repo.get_player_active_session(player.id)
        if other is not None:
            ctx.session_id = str(other.id)
            raise RaceInProgressError(ctx)
