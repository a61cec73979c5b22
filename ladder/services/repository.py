"""SQL Session Repository — SessionRepository over one AsyncSession.

Invariants:
    - Never commits: the UnitOfWork owns the transaction, the repository only flushes
    - Rows about to be mutated are read with SELECT ... FOR UPDATE; the player row
      lock serializes concurrent actions of one player
    - Lock order within a transaction: player, then match, then its entries by
      id, then the session
    - get_active_match_for_player returns the acting entry and the opponent entry
      of the same match, both locked and re-read after the match lock

Design Decisions:
    - Row locks over application locks: the store's isolation is the only
      concurrency mechanism (SQLite ignores FOR UPDATE, PostgreSQL honours it)
    - Short codes matched case-insensitively, players type them by hand; the
      leagues table keeps lower(short_code) unique so the lookup stays single-row
"""

from datetime import datetime
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ladder.core.domain_types import (
    ACTIVE_ENTRY_STATUSES, LeagueId, MatchId, MatchSessionStatus, PlayerId, SessionId,
    TERMINAL_ENTRY_STATUSES,
)
from ladder.core.errors import (
    ErrorContext, InvalidTransitionError, PlayerNotFoundError,
)
from ladder.core.repository_protocols import SessionRepository
from ladder.models import (
    League, Match, MatchEntry, MatchSession, MatchSessionPlayer, Player,
)


class SqlSessionRepository:
    """Data access for the lifecycle coordinators."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Players & leagues ───────────────────────────────────────

    async def get_player(
        self, player_id: PlayerId, *, lock: bool = False,
    ) -> Player | None:
        stmt = select(Player).where(Player.id == player_id)
        if lock:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_players(self, player_ids: Sequence[UUID]) -> dict[UUID, Player]:
        if not player_ids:
            return {}
        result = await self.db.execute(
            select(Player).where(Player.id.in_(set(player_ids))),
        )
        return {p.id: p for p in result.scalars().all()}

    async def get_league(self, league_id: LeagueId) -> League | None:
        result = await self.db.execute(
            select(League).where(League.id == league_id),
        )
        return result.scalar_one_or_none()

    async def get_league_by_short_code(self, short_code: str) -> League | None:
        result = await self.db.execute(
            select(League).where(
                func.lower(League.short_code) == short_code.strip().lower(),
            ),
        )
        return result.scalar_one_or_none()

    # ─── Sessions ────────────────────────────────────────────────

    async def get_session(
        self, session_id: SessionId, *, lock: bool = False,
    ) -> MatchSession | None:
        stmt = select(MatchSession).where(MatchSession.id == session_id)
        if lock:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_joinable_sessions(
        self, league_id: LeagueId, now: datetime,
    ) -> list[MatchSession]:
        """Future JOINABLE sessions of a league, earliest first, locked."""
        result = await self.db.execute(
            select(MatchSession)
            .where(
                MatchSession.league_id == league_id,
                MatchSession.status == MatchSessionStatus.JOINABLE,
                MatchSession.start_date > now,
            )
            .order_by(MatchSession.start_date)
            .with_for_update(),
        )
        return list(result.scalars().all())

    async def get_player_active_session(
        self, player_id: PlayerId,
    ) -> MatchSession | None:
        """Earliest non-closed session listing the player, unless their own entry there ended."""
        own_entry_ended = (
            select(MatchEntry.id)
            .where(
                MatchEntry.session_id == MatchSession.id,
                MatchEntry.player_id == player_id,
                MatchEntry.status.in_(TERMINAL_ENTRY_STATUSES),
            )
            .exists()
        )
        result = await self.db.execute(
            select(MatchSession)
            .join(MatchSessionPlayer, MatchSessionPlayer.session_id == MatchSession.id)
            .where(
                MatchSessionPlayer.player_id == player_id,
                MatchSession.status != MatchSessionStatus.CLOSED,
                ~own_entry_ended,
            )
            .order_by(MatchSession.start_date)
            .limit(1)
            .with_for_update(of=MatchSession),
        )
        return result.scalar_one_or_none()

    async def add_participant(
        self, session: MatchSession, player_id: PlayerId, joined_at: datetime,
    ) -> None:
        position = max((p.position for p in session.participants), default=0) + 1
        session.participants.append(MatchSessionPlayer(
            player_id=player_id, position=position, joined_at=joined_at,
        ))
        await self.db.flush()

    async def remove_participant(
        self, session: MatchSession, player_id: PlayerId,
    ) -> None:
        for slot in list(session.participants):
            if slot.player_id == player_id:
                session.participants.remove(slot)
        await self.db.flush()

    # ─── Matches & entries ───────────────────────────────────────

    async def player_has_active_entry(self, player_id: PlayerId) -> bool:
        result = await self.db.execute(
            select(MatchEntry.id)
            .where(
                MatchEntry.player_id == player_id,
                MatchEntry.status.in_(ACTIVE_ENTRY_STATUSES),
            )
            .limit(1),
        )
        return result.scalar_one_or_none() is not None

    async def get_active_match_for_player(
        self, player_id: PlayerId,
    ) -> tuple[Match, MatchEntry, MatchEntry] | None:
        """(match, own entry, opponent entry) for the player's non-terminal entry.

        Lock order is match row, then both entries by id: the two runners of one
        match queue on the match row instead of each holding its own entry.
        """
        result = await self.db.execute(
            select(MatchEntry.match_id)
            .where(
                MatchEntry.player_id == player_id,
                MatchEntry.status.in_(ACTIVE_ENTRY_STATUSES),
            )
            .order_by(MatchEntry.created_at.desc())
            .limit(1),
        )
        match_id = result.scalar_one_or_none()
        if match_id is None:
            return None

        match_result = await self.db.execute(
            select(Match).where(Match.id == match_id).with_for_update(),
        )
        match = match_result.scalar_one()
        entries_result = await self.db.execute(
            select(MatchEntry)
            .where(MatchEntry.match_id == match.id)
            .order_by(MatchEntry.id)
            .with_for_update()
            .execution_options(populate_existing=True),
        )
        entries = entries_result.scalars().all()
        entry = next((e for e in entries if e.player_id == player_id), None)
        if entry is None or entry.status not in ACTIVE_ENTRY_STATUSES:
            # Ended by a concurrent call while we waited on the match row.
            return None

        opponent = next((e for e in entries if e.player_id != player_id), None)
        if opponent is None:
            raise InvalidTransitionError(
                "match has no opponent entry",
                ErrorContext(player_id=str(player_id), match_id=str(match.id)),
            )
        return match, entry, opponent

    async def get_match(self, match_id: MatchId, *, lock: bool = False) -> Match | None:
        stmt = select(Match).where(Match.id == match_id)
        if lock:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_matches_for_session(self, session_id: SessionId) -> list[Match]:
        result = await self.db.execute(
            select(Match)
            .where(Match.session_id == session_id)
            .order_by(Match.created_at),
        )
        return list(result.scalars().all())

    async def save(self, *objects: Any) -> None:
        self.db.add_all(objects)
        await self.db.flush()


async def require_player(
    repo: SessionRepository, player_id: PlayerId, *, lock: bool = True,
) -> Player:
    """Load (and by default lock) the acting player or raise PlayerNotFoundError."""
    player = await repo.get_player(player_id, lock=lock)
    if player is None:
        raise PlayerNotFoundError(ErrorContext(player_id=str(player_id)))
    return player
