"""Session Recap — immutable snapshot of every match in a session.

Invariants:
    - Built from already-loaded rows only (no IO); missing players render as "unknown"
    - Matches keep the order they were given, entries keep their match order
    - race_time is set only for COMPLETED entries with both timestamps

Design Decisions:
    - Frozen dataclasses: the snapshot is handed to an external sender after the
      transaction closed, it must not drift with later ORM mutations
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Iterable, Mapping
from uuid import UUID

from ladder.core.domain_types import (
    MatchEntryOutcome, MatchEntryStatus, MatchSessionStatus,
)
from ladder.core.repository_protocols import (
    MatchEntryLike, MatchSessionLike, PlayerLike,
)
from ladder.core.session_rules import as_utc

UNKNOWN_PLAYER_NAME = "unknown"


@dataclass(frozen=True)
class EntryRecap:
    player_id: UUID
    player_name: str
    status: MatchEntryStatus
    outcome: MatchEntryOutcome
    race_time: timedelta | None


@dataclass(frozen=True)
class MatchRecap:
    match_id: UUID
    seed_ref: str | None
    has_ended: bool
    winner_name: str | None
    entries: tuple[EntryRecap, ...]


@dataclass(frozen=True)
class SessionRecap:
    session_id: UUID
    status: MatchSessionStatus
    matches: tuple[MatchRecap, ...]

    @property
    def has_ended(self) -> bool:
        return bool(self.matches) and all(m.has_ended for m in self.matches)


def race_time(entry: MatchEntryLike) -> timedelta | None:
    if entry.status != MatchEntryStatus.COMPLETED:
        return None
    if entry.started_at is None or entry.ended_at is None:
        return None
    return as_utc(entry.ended_at) - as_utc(entry.started_at)


def build_session_recap(
    session: MatchSessionLike,
    matches: Iterable,
    players: Mapping[UUID, PlayerLike],
) -> SessionRecap:
    """Snapshot ``session``; each match must expose ``entries``."""
    def name_of(player_id: UUID | None) -> str | None:
        if player_id is None:
            return None
        player = players.get(player_id)
        return player.name if player else UNKNOWN_PLAYER_NAME

    match_recaps = []
    for match in matches:
        entries = tuple(
            EntryRecap(
                player_id=e.player_id,
                player_name=name_of(e.player_id) or UNKNOWN_PLAYER_NAME,
                status=e.status,
                outcome=e.outcome,
                race_time=race_time(e),
            )
            for e in match.entries
        )
        match_recaps.append(MatchRecap(
            match_id=match.id,
            seed_ref=match.seed_ref,
            has_ended=match.ended_at is not None,
            winner_name=name_of(match.winner_player_id),
            entries=entries,
        ))

    return SessionRecap(
        session_id=session.id,
        status=session.status,
        matches=tuple(match_recaps),
    )
