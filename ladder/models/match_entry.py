"""MatchEntry ORM — one runner's record within one match.

Invariants:
    - (match_id, player_id) is unique: one entry per player per match
    - At most one entry per player is NOT_STARTED/IN_PROGRESS system-wide
    - Mutated only by the match-end transitions, never deleted

Design Decisions:
    - session_id denormalized next to match_id: "does P hold an entry in session S"
      is answered without joining matches
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from ladder.core.domain_types import MatchEntryOutcome, MatchEntryStatus
from ladder.db.base import Base, str_enum


class MatchEntry(Base):
    __tablename__ = "match_entries"
    __table_args__ = (
        UniqueConstraint("match_id", "player_id", name="uq_match_player"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    match_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("matches.id"), nullable=False, index=True,
    )
    session_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("match_sessions.id"), nullable=False, index=True,
    )
    player_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("players.id"), nullable=False, index=True,
    )
    status: Mapped[MatchEntryStatus] = mapped_column(
        str_enum(MatchEntryStatus),
        nullable=False,
        default=MatchEntryStatus.NOT_STARTED,
    )
    outcome: Mapped[MatchEntryOutcome] = mapped_column(
        str_enum(MatchEntryOutcome),
        nullable=False,
        default=MatchEntryOutcome.UNDECIDED,
    )
    started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    ended_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
