"""Ladder Service — the public surface of the lifecycle engine.

Invariants:
    - The five exposed operations map one-to-one onto a coordinator call
    - All coordinators share one UnitOfWork driver and one clock
    - Errors reach the caller unchanged; the intake decides what the player sees
      (core.errors.public_message)

Design Decisions:
    - Facade built from a session factory plus the two outbound capabilities:
      the intake wires it once at startup, tests build it around a SQLite file
"""

from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ladder.core.domain_types import LeagueId, PlayerId
from ladder.core.format_messages import format_join_confirmation
from ladder.core.repository_protocols import NotificationSender, SpoilerUnlocker
from ladder.core.session_rules import cancel_deadline, utc_now
from ladder.models import League, Match, MatchSession
from ladder.services.cancellation_coordinator import CancellationCoordinator
from ladder.services.join_coordinator import JoinCoordinator
from ladder.services.match_end_coordinator import MatchEndCoordinator
from ladder.services.notification_dispatcher import NotificationDispatcher
from ladder.services.unit_of_work import UnitOfWork
from ladder.services.unlock_scheduler import AsyncUnlockScheduler


class LadderService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        sender: NotificationSender,
        unlocker: SpoilerUnlocker,
        preparation_offset: timedelta = timedelta(minutes=15),
        clock: Callable[[], datetime] = utc_now,
    ):
        self.preparation_offset = preparation_offset
        self.unlocker = unlocker
        self._clock = clock

        uow = UnitOfWork(session_factory)
        self._uow = uow
        self.dispatcher = NotificationDispatcher(sender)
        self.unlock_scheduler = AsyncUnlockScheduler(uow, unlocker, clock)
        self._joins = JoinCoordinator(uow, clock)
        self._cancellations = CancellationCoordinator(uow, preparation_offset, clock)
        self._match_ends = MatchEndCoordinator(
            uow, self.dispatcher, self.unlock_scheduler, clock,
        )

    async def join_session(
        self, player_id: PlayerId, league_id: LeagueId,
    ) -> MatchSession:
        return await self._joins.join(player_id, league_id)

    async def join_session_by_short_code(
        self, player_id: PlayerId, short_code: str,
    ) -> tuple[MatchSession, League]:
        return await self._joins.join_by_short_code(player_id, short_code)

    async def cancel_session(self, player_id: PlayerId) -> MatchSession:
        return await self._cancellations.cancel(player_id)

    async def complete_active_match(self, player_id: PlayerId) -> Match:
        return await self._match_ends.complete(player_id)

    async def forfeit_active_match(self, player_id: PlayerId) -> Match:
        return await self._match_ends.forfeit(player_id)

    def cancel_deadline(self, session: MatchSession) -> datetime:
        return cancel_deadline(session, self.preparation_offset)

    async def league_for(self, session: MatchSession) -> League:
        """League a session belongs to, read in its own UnitOfWork."""
        return await self._uow.run(lambda repo: repo.get_league(session.league_id))

    def join_confirmation(self, league_name: str, session: MatchSession) -> str:
        """Reply text after a successful join."""
        return format_join_confirmation(
            league_name, session, self._clock(), self.preparation_offset,
        )

    async def shutdown(self) -> None:
        """Let outstanding unlocks finish."""
        await self.unlock_scheduler.drain()


# Singleton (initialized on startup)
ladder_service: LadderService | None = None


def init_ladder_service(*args, **kwargs) -> LadderService:
    global ladder_service
    ladder_service = LadderService(*args, **kwargs)
    return ladder_service


def get_ladder_service() -> LadderService:
    """FastAPI dependency for the lifecycle engine."""
    if not ladder_service:
        raise RuntimeError("Ladder service not initialized")
    return ladder_service
