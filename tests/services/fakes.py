"""Test doubles for the lifecycle services — fixed clock, recording sender, fake unlocker, seeder.

Invariants:
    - RecordingSender / FakeUnlocker satisfy the outbound Protocols structurally
    - Seeder writes and re-reads rows through its own committed sessions, never
      through the session a coordinator is using
"""

from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ladder.core.domain_types import MatchEntryStatus, MatchSessionStatus
from ladder.models import (
    League, Match, MatchEntry, MatchSession, MatchSessionPlayer, Player,
)

NOW = datetime(2026, 3, 1, 18, 0, tzinfo=timezone.utc)
OFFSET = timedelta(minutes=15)


class FixedClock:
    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


class RecordingSender:
    """NotificationSender that records instead of delivering."""

    def __init__(self):
        self.messages: list[tuple] = []
        self.recaps: list[tuple] = []
        self.fail_with: Exception | None = None

    async def send_to_player(self, player, text):
        if self.fail_with is not None:
            raise self.fail_with
        self.messages.append((player.id, text))

    async def send_session_recap(self, recap, scope, player):
        if self.fail_with is not None:
            raise self.fail_with
        self.recaps.append((recap, scope, player.id if player else None))

    def texts_for(self, player_id) -> list[str]:
        return [text for pid, text in self.messages if pid == player_id]


class FakeUnlocker:
    """SpoilerUnlocker returning a canned log, or raising fail_with."""

    def __init__(self):
        self.calls: list[str] = []
        self.fail_with: Exception | None = None

    async def unlock(self, spoiler_ref: str) -> bytes:
        self.calls.append(spoiler_ref)
        if self.fail_with is not None:
            raise self.fail_with
        return f'{{"ref": "{spoiler_ref}"}}'.encode()


class Seeder:
    """Inserts fixtures and re-reads rows, each in its own committed session."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._factory = session_factory

    async def _add(self, obj):
        async with self._factory() as db:
            db.add(obj)
            await db.commit()
        return obj

    async def player(self, name: str) -> Player:
        return await self._add(Player(name=name, discord_id=f"discord-{name}"))

    async def league(self, name: str = "Standard", short_code: str = "std") -> League:
        return await self._add(League(name=name, short_code=short_code))

    async def session(
        self,
        league: League,
        start_date: datetime = NOW + timedelta(hours=2),
        status: MatchSessionStatus = MatchSessionStatus.JOINABLE,
        capacity: int = 2,
        players: tuple[Player, ...] = (),
    ) -> MatchSession:
        session = MatchSession(
            league_id=league.id, start_date=start_date,
            status=status, capacity=capacity,
        )
        session.participants = [
            MatchSessionPlayer(
                player_id=p.id, position=i + 1, joined_at=NOW - timedelta(days=1),
            )
            for i, p in enumerate(players)
        ]
        return await self._add(session)

    async def match(
        self,
        session: MatchSession,
        first: Player,
        second: Player,
        first_status: MatchEntryStatus = MatchEntryStatus.IN_PROGRESS,
        second_status: MatchEntryStatus = MatchEntryStatus.IN_PROGRESS,
        seed_ref: str = "seed-1",
        spoiler_ref: str | None = "spoiler-1",
    ) -> Match:
        def entry(player, status, offset):
            return MatchEntry(
                session_id=session.id,
                player_id=player.id,
                status=status,
                started_at=(
                    session.start_date
                    if status != MatchEntryStatus.NOT_STARTED else None
                ),
                created_at=NOW + timedelta(seconds=offset),
            )

        match = Match(session_id=session.id, seed_ref=seed_ref, spoiler_ref=spoiler_ref)
        match.entries = [entry(first, first_status, 0), entry(second, second_status, 1)]
        return await self._add(match)

    async def get(self, model, obj_id):
        async with self._factory() as db:
            return await db.get(model, obj_id)

    async def update(self, model, obj_id, **values):
        async with self._factory() as db:
            obj = await db.get(model, obj_id)
            for key, value in values.items():
                setattr(obj, key, value)
            await db.commit()
        return obj
