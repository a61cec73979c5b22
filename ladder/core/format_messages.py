"""Message Formatting — pure functions producing the texts sent to runners.

Invariants:
    - All functions are pure (no IO, no async, no DB); "now" is always a parameter
    - A match-end message only describes the side it is addressed to
    - Durations are truncated to whole seconds

Design Decisions:
    - Kept out of NotificationDispatcher so wording can be tested without a
      database or a sender
"""

from datetime import datetime, timedelta

from ladder.core.domain_types import MatchEntryOutcome, MatchEntryStatus
from ladder.core.recap import SessionRecap, race_time
from ladder.core.repository_protocols import (
    MatchEntryLike, MatchLike, MatchSessionLike,
)
from ladder.core.session_rules import as_utc, cancel_deadline


def format_duration(delta: timedelta) -> str:
    """1h02m03s style, hours omitted when zero."""
    total = max(0, int(delta.total_seconds()))
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours:
        return f"{hours}h{minutes:02d}m{seconds:02d}s"
    return f"{minutes}m{seconds:02d}s"


def format_match_end(
    entry: MatchEntryLike,
    opponent: MatchEntryLike,
    opponent_name: str,
) -> str:
    """Text for the runner owning ``entry``, which just became terminal."""
    if entry.status == MatchEntryStatus.FORFEITED:
        return f"You forfeited your race against {opponent_name}. This counts as a loss."

    elapsed = race_time(entry)
    time_part = f" in {format_duration(elapsed)}" if elapsed is not None else ""

    if entry.outcome == MatchEntryOutcome.DRAW:
        return f"You finished{time_part}, your race against {opponent_name} is a draw."
    if entry.outcome == MatchEntryOutcome.LOSS:
        return f"You finished{time_part} but {opponent_name} finished first."
    if opponent.status == MatchEntryStatus.FORFEITED:
        return f"You finished{time_part}, {opponent_name} forfeited: you won."
    if opponent.status not in (MatchEntryStatus.COMPLETED, MatchEntryStatus.FORFEITED):
        return (
            f"You finished{time_part} and {opponent_name} is still racing, "
            f"you will win unless something unexpected happens."
        )
    return f"You finished{time_part} and won against {opponent_name}."


def format_seed_relay(match: MatchLike) -> str:
    """Seed and spoiler log references, sent to a runner after they end."""
    lines = ["Here is the seed you just played, for your own review."]
    if match.seed_ref:
        lines.append(f"Seed: {match.seed_ref}")
    if match.spoiler_ref:
        lines.append(f"Spoiler log: {match.spoiler_ref}")
    if match.spoiler_unlocked_at is None:
        lines.append("The spoiler log will be unlocked once every race of the session has ended.")
    return "\n".join(lines)


def format_session_recap(recap: SessionRecap) -> str:
    """Plain-text rendering of a recap, one line per runner."""
    lines = [f"Race recap ({recap.status.value}):"]
    for match in recap.matches:
        for entry in match.entries:
            elapsed = (
                format_duration(entry.race_time)
                if entry.race_time is not None else entry.status.value
            )
            lines.append(f"- {entry.player_name}: {elapsed} ({entry.outcome.value})")
        if match.has_ended:
            lines.append(f"  winner: {match.winner_name or 'none'}")
    return "\n".join(lines)


def format_join_confirmation(
    league_name: str,
    session: MatchSessionLike,
    now: datetime,
    preparation_offset: timedelta,
) -> str:
    """Reply for a successful join, including how long cancelling stays free."""
    lines = [f"You have been registered for the next race in the {league_name} league."]
    now = as_utc(now)
    deadline = cancel_deadline(session, preparation_offset)
    if deadline > now:
        lines.append(
            f"If you wish to cancel you have {format_duration(deadline - now)} "
            f"to do so, after that you will have to forfeit."
        )
    else:
        start = as_utc(session.start_date)
        lines.append(
            f"The race begins in {format_duration(start - now)}, "
            f"you will soon receive your seed details."
        )
    return "\n".join(lines)
