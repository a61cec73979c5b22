"""Match Transitions — pure complete/forfeit state changes on a match and its two entries.

Invariants:
    - Only the acting entry changes status; the opponent's status is never touched,
      at most its (provisional) outcome
    - complete requires IN_PROGRESS; forfeit requires a non-terminal entry
    - Forfeiting is always a LOSS for the forfeiting side
    - The first runner to complete wins; completing at the same instant is a draw
    - A match ends exactly when both entries are terminal: ended_at is set once and
      winner_player_id is the single WIN side (None on draw or double forfeit)
    - All functions mutate the objects passed in and perform no IO

Design Decisions:
    - Opponent outcome set provisionally when one side ends first: the waiting side
      learns "you won" without a second pass once the other side finishes
    - InvalidTransitionError is internal: coordinators check the user-facing
      preconditions first, so reaching it means a caller bug
"""

from datetime import datetime
from typing import Iterable

from ladder.core.domain_types import MatchEntryOutcome, MatchEntryStatus
from ladder.core.errors import ErrorContext, InvalidTransitionError
from ladder.core.repository_protocols import MatchEntryLike, MatchLike
from ladder.core.session_rules import as_utc


def entry_has_ended(entry: MatchEntryLike) -> bool:
    return entry.status.is_terminal


def match_has_ended(match: MatchLike) -> bool:
    return match.ended_at is not None


def session_has_ended(matches: Iterable[MatchLike]) -> bool:
    """True when the session has at least one match and all of them ended."""
    matches = list(matches)
    return bool(matches) and all(match_has_ended(m) for m in matches)


def complete_entry(
    entry: MatchEntryLike,
    opponent: MatchEntryLike,
    match: MatchLike,
    now: datetime,
) -> None:
    """Mark ``entry`` COMPLETED and settle outcomes against ``opponent``."""
    if entry.status != MatchEntryStatus.IN_PROGRESS:
        raise InvalidTransitionError(
            f"cannot complete entry in status {entry.status.value}",
            ErrorContext(match_id=str(match.id)),
        )

    entry.status = MatchEntryStatus.COMPLETED
    entry.ended_at = now

    if opponent.status == MatchEntryStatus.COMPLETED:
        if opponent.ended_at is not None and as_utc(opponent.ended_at) == as_utc(now):
            entry.outcome = MatchEntryOutcome.DRAW
            opponent.outcome = MatchEntryOutcome.DRAW
        else:
            entry.outcome = MatchEntryOutcome.LOSS
            opponent.outcome = MatchEntryOutcome.WIN
    else:
        # Opponent forfeited, or is still racing and can only finish later.
        entry.outcome = MatchEntryOutcome.WIN
        opponent.outcome = MatchEntryOutcome.LOSS

    _maybe_end_match(entry, opponent, match, now)


def forfeit_entry(
    entry: MatchEntryLike,
    opponent: MatchEntryLike,
    match: MatchLike,
    now: datetime,
) -> None:
    """Mark ``entry`` FORFEITED, whether or not it had started."""
    if entry_has_ended(entry):
        raise InvalidTransitionError(
            f"cannot forfeit entry in status {entry.status.value}",
            ErrorContext(match_id=str(match.id)),
        )

    entry.status = MatchEntryStatus.FORFEITED
    entry.ended_at = now
    entry.outcome = MatchEntryOutcome.LOSS
    if opponent.status != MatchEntryStatus.FORFEITED:
        opponent.outcome = MatchEntryOutcome.WIN

    _maybe_end_match(entry, opponent, match, now)


def _maybe_end_match(
    entry: MatchEntryLike,
    opponent: MatchEntryLike,
    match: MatchLike,
    now: datetime,
) -> None:
    if not (entry_has_ended(entry) and entry_has_ended(opponent)):
        return
    if match_has_ended(match):
        return

    match.ended_at = now
    winners = [
        e for e in (entry, opponent) if e.outcome == MatchEntryOutcome.WIN
    ]
    match.winner_player_id = winners[0].player_id if len(winners) == 1 else None
