"""Match ORM — pairs the two entries of a session match and holds the race artifacts.

Invariants:
    - Always belongs to a MatchSession (session_id FK)
    - Owns exactly two MatchEntry rows, created together by the scheduler
    - ended_at is set once, when both entries are terminal
    - spoiler_log / spoiler_unlocked_at are only written by the unlock task

Design Decisions:
    - seed_ref / spoiler_ref are opaque references handed out by the generator
    - winner_player_id denormalized from entry outcomes: recaps need no entry scan
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, LargeBinary, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ladder.db.base import Base


class Match(Base):
    __tablename__ = "matches"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    session_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("match_sessions.id"), nullable=False, index=True,
    )
    seed_ref: Mapped[str | None] = mapped_column(String(255), nullable=True)
    spoiler_ref: Mapped[str | None] = mapped_column(String(255), nullable=True)
    spoiler_log: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)
    spoiler_unlocked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    winner_player_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("players.id"), nullable=True,
    )
    ended_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    entries: Mapped[list["MatchEntry"]] = relationship(
        "MatchEntry", cascade="all, delete-orphan", lazy="selectin",
        order_by="MatchEntry.created_at",
    )

    def entry_for(self, player_id: uuid.UUID) -> "MatchEntry | None":
        return next((e for e in self.entries if e.player_id == player_id), None)

