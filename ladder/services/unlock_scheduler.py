"""Async Unlock Scheduler — best-effort spoiler log unlock once a whole session has ended.

Invariants:
    - maybe_unlock() never blocks and never raises: it only schedules a task
    - The task re-reads the session in its own UnitOfWork and does nothing unless
      every match of the session has ended
    - Each match is unlocked at most once (spoiler_unlocked_at is the marker)
    - Failures are logged and swallowed: the triggering transition is already
      committed and is never rolled back or reported to the player
    - No ordering relative to later player actions, no cancellation

Design Decisions:
    - asyncio task with a strong reference kept in _tasks until done: the loop only
      holds weak references to tasks
    - The unlock call runs outside any transaction: it is remote and may be slow;
      only storing its result opens a (short) UnitOfWork
    - drain() lets shutdown and tests wait for outstanding unlocks
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable

from ladder.core.domain_types import MatchId, SessionId
from ladder.core.repository_protocols import MatchLike, SessionRepository, SpoilerUnlocker
from ladder.core.session_rules import utc_now
from ladder.core.transitions import session_has_ended
from ladder.services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class AsyncUnlockScheduler:
    def __init__(
        self,
        uow: UnitOfWork,
        unlocker: SpoilerUnlocker,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._uow = uow
        self._unlocker = unlocker
        self._clock = clock
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def maybe_unlock(self, match: MatchLike) -> asyncio.Task:
        """Schedule the unlock check for the session owning ``match``."""
        task = asyncio.get_running_loop().create_task(
            self._run(match.session_id), name=f"unlock-{match.session_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every scheduled unlock, including ones scheduled meanwhile."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run(self, session_id: SessionId) -> None:
        try:
            await self.unlock_session(session_id)
        except Exception as e:
            logger.error(
                f"unable to unlock spoiler log: {e}",
                exc_info=True,
                extra={"session_id": session_id},
            )

    async def unlock_session(self, session_id: SessionId) -> int:
        """Unlock every still-locked spoiler log of an ended session; returns how many."""
        matches = await self._uow.run(
            lambda repo: repo.get_matches_for_session(session_id),
        )
        if not session_has_ended(matches):
            logger.debug(
                "Session not over yet, spoiler logs stay locked",
                extra={"session_id": session_id},
            )
            return 0

        unlocked = 0
        for match in matches:
            if not match.spoiler_ref or match.spoiler_unlocked_at is not None:
                continue
            spoiler_log = await self._unlocker.unlock(match.spoiler_ref)
            await self._uow.run(
                lambda repo, match_id=match.id: self._store(repo, match_id, spoiler_log),
            )
            unlocked += 1
            logger.info(
                "Spoiler log unlocked",
                extra={"session_id": session_id, "match_id": match.id},
            )
        return unlocked

    async def _store(
        self, repo: SessionRepository, match_id: MatchId, spoiler_log: bytes,
    ) -> None:
        match = await repo.get_match(match_id, lock=True)
        if match is None or match.spoiler_unlocked_at is not None:
            return
        if spoiler_log:
            match.spoiler_log = spoiler_log
        match.spoiler_unlocked_at = self._clock()
        await repo.save(match)
