"""Race Schemas — Pydantic request/response models for the race intake routes.

Invariants:
    - Every request names the acting player by id: intents arrive already parsed
    - short_code is stripped, 1-16 chars
    - Responses are built from ORM rows (from_attributes), never hand-copied dicts
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ladder.core.domain_types import (
    MatchEntryOutcome, MatchEntryStatus, MatchSessionStatus,
)


class PlayerAction(BaseModel):
    """Cancel, complete and forfeit only need the acting player."""
    player_id: UUID


class JoinRequest(PlayerAction):
    league_id: UUID


class JoinByShortCodeRequest(PlayerAction):
    short_code: str = Field(min_length=1, max_length=16)

    @field_validator("short_code")
    @classmethod
    def strip_short_code(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("short_code cannot be empty or whitespace")
        return v


class LeagueResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    short_code: str


class MatchSessionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    league_id: UUID
    start_date: datetime
    status: MatchSessionStatus
    capacity: int
    player_ids: list[UUID]


class JoinResponse(BaseModel):
    session: MatchSessionResponse
    league: LeagueResponse
    cancel_deadline: datetime
    message: str


class MatchEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    player_id: UUID
    status: MatchEntryStatus
    outcome: MatchEntryOutcome
    started_at: datetime | None
    ended_at: datetime | None


class MatchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    session_id: UUID
    seed_ref: str | None
    spoiler_ref: str | None
    winner_player_id: UUID | None
    ended_at: datetime | None
    entries: list[MatchEntryResponse]
