"""Session Rules — pure joinability and cancellation checks for match sessions.

Invariants:
    - All functions are pure (no IO, no async, no DB); "now" is always a parameter
      (utc_now is the default clock injected into the coordinators)
    - Cancellation is allowed only while the session is WAITING/JOINABLE and
      strictly before start_date - preparation_offset
    - A full session is never picked for a join
    - Datetimes are compared in UTC; naive values (SQLite) are read as UTC

Design Decisions:
    - pick_joinable_session walks candidates in start order so a player already
      registered for the next race gets "already registered" rather than being
      slotted into a later session
"""

from datetime import datetime, timedelta, timezone
from typing import Sequence
from uuid import UUID

from ladder.core.domain_types import CANCELLABLE_SESSION_STATUSES
from ladder.core.errors import (
    AlreadyRegisteredError, ErrorContext, NoJoinableSessionError,
    TooLateToCancelError,
)
from ladder.core.repository_protocols import MatchSessionLike


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def has_room(session: MatchSessionLike) -> bool:
    return len(session.player_ids) < session.capacity


def cancel_deadline(
    session: MatchSessionLike, preparation_offset: timedelta,
) -> datetime:
    """Last instant (exclusive) at which a participant may still cancel."""
    return as_utc(session.start_date) - preparation_offset


def ensure_can_cancel(
    session: MatchSessionLike, now: datetime, preparation_offset: timedelta,
) -> None:
    """Raise TooLateToCancelError unless the session can still be left freely."""
    ctx = ErrorContext(session_id=str(session.id))
    if session.status not in CANCELLABLE_SESSION_STATUSES:
        raise TooLateToCancelError(ctx)
    if as_utc(now) >= cancel_deadline(session, preparation_offset):
        raise TooLateToCancelError(ctx)


def pick_joinable_session(
    candidates: Sequence[MatchSessionLike],
    player_id: UUID,
    league_name: str,
) -> MatchSessionLike:
    """Choose the session a player joins among joinable ones, earliest first."""
    for session in candidates:
        if player_id in session.player_ids:
            raise AlreadyRegisteredError(
                league_name, ErrorContext(
                    player_id=str(player_id), session_id=str(session.id),
                ),
            )
        if has_room(session):
            return session
    raise NoJoinableSessionError(ErrorContext(player_id=str(player_id)))


def utc_now() -> datetime:
    """Default clock of the coordinators."""
    return datetime.now(timezone.utc)
