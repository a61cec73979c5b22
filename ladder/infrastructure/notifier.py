"""Logging Notification Sender — default NotificationSender when no chat transport is wired.

Invariants:
    - Satisfies core.repository_protocols.NotificationSender structurally
    - Never raises: writing a log line is the whole delivery

Design Decisions:
    - The chat client lives outside this package; this adapter keeps the HTTP
      intake usable on its own and leaves an audit trail of every message
"""

import logging

from ladder.core.domain_types import RecapScope
from ladder.core.format_messages import format_session_recap
from ladder.core.recap import SessionRecap
from ladder.core.repository_protocols import PlayerLike

logger = logging.getLogger(__name__)


class LoggingNotificationSender:
    """Writes every outgoing message to the log."""

    async def send_to_player(self, player: PlayerLike, text: str) -> None:
        logger.info(
            f"To {player.name}: {text}",
            extra={"player_id": player.id},
        )

    async def send_session_recap(
        self, recap: SessionRecap, scope: RecapScope, player: PlayerLike | None,
    ) -> None:
        target = player.name if player is not None else scope.value
        logger.info(
            f"Recap to {target}:\n{format_session_recap(recap)}",
            extra={
                "session_id": recap.session_id,
                "player_id": player.id if player is not None else None,
            },
        )
