"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy; an
      in-memory fake satisfies SessionRepository without subclassing
    - Async in Protocol: boundary methods are async because implementations do IO,
      but core pure functions that USE the *Like types are never async themselves —
      the coordinators orchestrate the async calls around the pure logic
"""

from datetime import datetime
from typing import Any, Protocol, Sequence
from uuid import UUID

from ladder.core.domain_types import (
    LeagueId, MatchEntryOutcome, MatchEntryStatus, MatchId, MatchSessionStatus,
    PlayerId, RecapScope, SessionId,
)


# ─── Structural entity contracts ─────────────────────────────────

class PlayerLike(Protocol):
    id: UUID
    name: str
    discord_id: str | None


class LeagueLike(Protocol):
    id: UUID
    name: str
    short_code: str


class MatchSessionLike(Protocol):
    id: UUID
    league_id: UUID
    start_date: datetime
    status: MatchSessionStatus
    capacity: int

    @property
    def player_ids(self) -> list[UUID]: ...


class MatchEntryLike(Protocol):
    id: UUID
    match_id: UUID
    session_id: UUID
    player_id: UUID
    status: MatchEntryStatus
    outcome: MatchEntryOutcome
    started_at: datetime | None
    ended_at: datetime | None


class MatchLike(Protocol):
    id: UUID
    session_id: UUID
    seed_ref: str | None
    spoiler_ref: str | None
    winner_player_id: UUID | None
    ended_at: datetime | None
    spoiler_unlocked_at: datetime | None


# ─── Persistence ─────────────────────────────────────────────────

class SessionRepository(Protocol):
    """Contract for session/entry/player/league persistence inside one unit of work."""
    async def get_player(
        self, player_id: PlayerId, *, lock: bool = False,
    ) -> Any | None: ...
    async def get_players(self, player_ids: Sequence[UUID]) -> dict[UUID, Any]: ...
    async def get_league(self, league_id: LeagueId) -> Any | None: ...
    async def get_league_by_short_code(self, short_code: str) -> Any | None: ...
    async def get_session(
        self, session_id: SessionId, *, lock: bool = False,
    ) -> Any | None: ...
    async def get_joinable_sessions(
        self, league_id: LeagueId, now: datetime,
    ) -> list[Any]: ...
    async def get_player_active_session(self, player_id: PlayerId) -> Any | None: ...
    async def player_has_active_entry(self, player_id: PlayerId) -> bool: ...
    async def get_active_match_for_player(
        self, player_id: PlayerId,
    ) -> tuple[Any, Any, Any] | None: ...
    async def get_match(self, match_id: MatchId, *, lock: bool = False) -> Any | None: ...
    async def get_matches_for_session(self, session_id: SessionId) -> list[Any]: ...
    async def add_participant(
        self, session: Any, player_id: PlayerId, joined_at: datetime,
    ) -> None: ...
    async def remove_participant(self, session: Any, player_id: PlayerId) -> None: ...
    async def save(self, *objects: Any) -> None: ...


# ─── Outbound capabilities ───────────────────────────────────────

class NotificationSender(Protocol):
    """Delivers messages to players — implemented by the chat integration."""
    async def send_to_player(self, player: PlayerLike, text: str) -> None: ...
    async def send_session_recap(
        self, recap: Any, scope: RecapScope, player: PlayerLike | None,
    ) -> None: ...


class SpoilerUnlocker(Protocol):
    """Generation-side capability: unlock a spoiler log and return its content."""
    async def unlock(self, spoiler_ref: str) -> bytes: ...
