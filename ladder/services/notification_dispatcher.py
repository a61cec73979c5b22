"""Notification Dispatcher — decides which messages a transition fires and hands them to the sender.

Invariants:
    - One match-end message per terminal side, addressed to that side only
    - notify_sides runs inside the transition's UnitOfWork: the opponent is read
      from the same transaction, so message and persisted state never diverge
    - Transport failures surface as NotificationError (internal) and abort the
      enclosing transaction when raised in-transaction
    - Recaps are immutable snapshots built from rows read in one UnitOfWork

Design Decisions:
    - Immediate match-end messages sent in-transaction: a small latency cost for
      the guarantee that a rolled-back transition never announced itself
    - Wording lives in core/format_messages.py; this class only routes
"""

import logging

from ladder.core.domain_types import RecapScope, SessionId
from ladder.core.errors import ErrorContext, LadderError, NotificationError, PlayerNotFoundError
from ladder.core.format_messages import format_match_end, format_seed_relay
from ladder.core.recap import SessionRecap, build_session_recap
from ladder.core.repository_protocols import (
    MatchEntryLike, MatchLike, NotificationSender, PlayerLike, SessionRepository,
)
from ladder.core.transitions import entry_has_ended

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    def __init__(self, sender: NotificationSender):
        self._sender = sender

    async def notify_sides(
        self,
        repo: SessionRepository,
        player: PlayerLike,
        entry: MatchEntryLike,
        opponent_entry: MatchEntryLike,
    ) -> None:
        """Fire match-end messages for every side whose entry is terminal."""
        opponent = await repo.get_player(opponent_entry.player_id)
        if opponent is None:
            raise PlayerNotFoundError(ErrorContext(
                player_id=str(opponent_entry.player_id),
                match_id=str(opponent_entry.match_id),
            ))

        if entry_has_ended(entry):
            await self.notify_match_end(entry, opponent_entry, player, opponent.name)
        if entry_has_ended(opponent_entry):
            await self.notify_match_end(opponent_entry, entry, opponent, player.name)

    async def notify_match_end(
        self,
        ended_entry: MatchEntryLike,
        opponent_entry: MatchEntryLike,
        player: PlayerLike,
        opponent_name: str,
    ) -> None:
        """Tell ``player``, owner of ``ended_entry``, how their race ended."""
        text = format_match_end(ended_entry, opponent_entry, opponent_name)
        await self._send(player, text, match_id=ended_entry.match_id)
        logger.info(
            "Match end notification sent",
            extra={"player_id": player.id, "match_id": ended_entry.match_id},
        )

    async def send_session_recap(
        self, repo: SessionRepository, session_id: SessionId, player: PlayerLike,
    ) -> SessionRecap:
        """Private recap of the whole session for one runner."""
        session = await repo.get_session(session_id)
        if session is None:
            raise NotificationError(
                f"session {session_id} vanished before its recap",
                ErrorContext(session_id=str(session_id)),
            )
        matches = await repo.get_matches_for_session(session_id)
        players = await repo.get_players(
            [e.player_id for m in matches for e in m.entries],
        )
        recap = build_session_recap(session, matches, players)

        try:
            await self._sender.send_session_recap(recap, RecapScope.RUNNER, player)
        except LadderError:
            raise
        except Exception as e:
            raise NotificationError(
                str(e), ErrorContext(player_id=str(player.id), session_id=str(session_id)),
            ) from e
        return recap

    async def relay_seed(self, player: PlayerLike, match: MatchLike) -> None:
        """Send the seed and spoiler references of ``match`` to ``player``."""
        await self._send(player, format_seed_relay(match), match_id=match.id)

    async def _send(self, player: PlayerLike, text: str, *, match_id=None) -> None:
        try:
            await self._sender.send_to_player(player, text)
        except LadderError:
            raise
        except Exception as e:
            raise NotificationError(
                str(e), ErrorContext(
                    player_id=str(player.id),
                    match_id=str(match_id) if match_id else None,
                ),
            ) from e
