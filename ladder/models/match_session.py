"""MatchSession ORM — one scheduled race event and its ordered participant roster.

Invariants:
    - Created externally in JOINABLE (or WAITING); only join/cancel touch the roster
    - (session_id, player_id) is unique: a player is listed at most once per session
    - player_ids preserves join order (position, then joined_at)
    - Moves to CLOSED once every match of the session has ended

Design Decisions:
    - Roster as a child table rather than a JSON array: "which sessions contain
      player P" stays an indexed SQL query and the unique constraint backs the
      no-double-join rule at the storage level
    - lazy="selectin": the roster is always needed and async sessions cannot lazy-load
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ladder.config import get_settings
from ladder.core.domain_types import MatchSessionStatus
from ladder.db.base import Base, str_enum


class MatchSession(Base):
    __tablename__ = "match_sessions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    league_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("leagues.id"), nullable=False, index=True,
    )
    start_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    status: Mapped[MatchSessionStatus] = mapped_column(
        str_enum(MatchSessionStatus),
        nullable=False,
        default=MatchSessionStatus.JOINABLE,
    )
    capacity: Mapped[int] = mapped_column(
        Integer, nullable=False,
        default=lambda: get_settings().default_session_capacity,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    participants: Mapped[list["MatchSessionPlayer"]] = relationship(
        "MatchSessionPlayer", back_populates="session",
        cascade="all, delete-orphan", lazy="selectin",
        order_by=lambda: [MatchSessionPlayer.position, MatchSessionPlayer.joined_at],
    )

    @property
    def player_ids(self) -> list[uuid.UUID]:
        return [p.player_id for p in self.participants]


class MatchSessionPlayer(Base):
    """One roster slot."""
    __tablename__ = "match_session_players"
    __table_args__ = (
        UniqueConstraint("session_id", "player_id", name="uq_session_player"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    session_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("match_sessions.id"), nullable=False,
    )
    player_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("players.id"), nullable=False, index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    session: Mapped["MatchSession"] = relationship(
        "MatchSession", back_populates="participants",
    )
