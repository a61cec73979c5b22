"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - PlayerId, LeagueId, SessionId, MatchId wrap UUIDs — never use bare UUID in domain logic
    - All valid states encoded as Enums — no raw string matching
    - A MatchEntry is terminal iff its status is COMPLETED or FORFEITED

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: stored as plain strings in the DB and serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

PlayerId = NewType("PlayerId", UUID)
LeagueId = NewType("LeagueId", UUID)
SessionId = NewType("SessionId", UUID)
MatchId = NewType("MatchId", UUID)


# ─── Enums ───────────────────────────────────────────────────────

class MatchSessionStatus(str, Enum):
    """Session lifecycle. Only JOINABLE/CLOSED are reached from this package;
    WAITING, PREPARING and IN_PROGRESS are set by the scheduler."""
    WAITING = "waiting"
    JOINABLE = "joinable"
    PREPARING = "preparing"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"


class MatchEntryStatus(str, Enum):
    """One runner's progress inside a match."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FORFEITED = "forfeited"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_ENTRY_STATUSES


TERMINAL_ENTRY_STATUSES = frozenset({
    MatchEntryStatus.COMPLETED, MatchEntryStatus.FORFEITED,
})
ACTIVE_ENTRY_STATUSES = frozenset({
    MatchEntryStatus.NOT_STARTED, MatchEntryStatus.IN_PROGRESS,
})

# Sessions a player can still cancel out of.
CANCELLABLE_SESSION_STATUSES = frozenset({
    MatchSessionStatus.WAITING, MatchSessionStatus.JOINABLE,
})


class MatchEntryOutcome(str, Enum):
    """Result of one side. WIN/LOSS may be provisional until the match ends."""
    UNDECIDED = "undecided"
    WIN = "win"
    LOSS = "loss"
    DRAW = "draw"


class RecapScope(str, Enum):
    """Audience of a session recap. Only private runner recaps are sent from here;
    the public channel recap belongs to the chat integration."""
    RUNNER = "runner"
