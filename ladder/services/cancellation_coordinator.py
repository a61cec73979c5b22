"""Cancellation Coordinator — leaves a session before its race starts, without penalty.

Invariants:
    - Allowed only while the session is WAITING/JOINABLE and strictly before
      start_date - preparation_offset; otherwise TooLateToCancelError and the
      roster is unchanged
    - Only the roster changes: no entry, outcome, or standing is touched
"""

import logging
from datetime import datetime, timedelta
from typing import Callable

from ladder.core.domain_types import PlayerId
from ladder.core.errors import ErrorContext, NoActiveSessionError
from ladder.core.repository_protocols import SessionRepository
from ladder.core.session_rules import ensure_can_cancel, utc_now
from ladder.models import MatchSession
from ladder.services.repository import require_player
from ladder.services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class CancellationCoordinator:
    def __init__(
        self,
        uow: UnitOfWork,
        preparation_offset: timedelta,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._uow = uow
        self._preparation_offset = preparation_offset
        self._clock = clock

    async def cancel(self, player_id: PlayerId) -> MatchSession:
        async def work(repo: SessionRepository) -> MatchSession:
            player = await require_player(repo, player_id)
            session = await repo.get_player_active_session(player.id)
            if session is None:
                raise NoActiveSessionError(ErrorContext(player_id=str(player_id)))

            ensure_can_cancel(session, self._clock(), self._preparation_offset)

            await repo.remove_participant(session, player.id)
            logger.info(
                f"Player {player.name} cancelled their registration",
                extra={"player_id": player.id, "session_id": session.id},
            )
            return session

        return await self._uow.run(work)
