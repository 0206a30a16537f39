"""Keeps track of the live match sessions of this process (no persistence: a match lives as long as someone watches it)."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from src.core.exceptions import MatchNotFoundError
from src.services.match_session import MatchSession

logger = logging.getLogger(__name__)


class MatchRegistry:
    """
    Create-on-first-use, discard-when-idle store of MatchSessions.

    Every match gets its own asyncio.Lock: the transport enters `exclusive()` while a match handles an event,
    so events of one match never interleave while different matches proceed independently.
    A lock outlives its session as long as any coroutine holds it or waits for it.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, MatchSession] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    def __contains__(self, match_id: str) -> bool:
        return match_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, match_id: str) -> MatchSession:
        session = self._sessions.get(match_id)
        if session is None:
            raise MatchNotFoundError(f"Match {match_id!r} not found.")
        return session

    def get_or_create(self, match_id: str) -> MatchSession:
        if match_id not in self._sessions:
            self._sessions[match_id] = MatchSession(match_id)
            logger.info("match %s: created", match_id)
        return self._sessions[match_id]

    def lock(self, match_id: str) -> asyncio.Lock:
        return self._locks.setdefault(match_id, asyncio.Lock())

    @asynccontextmanager
    async def exclusive(self, match_id: str) -> AsyncIterator[None]:
        """Hold the match's lock. Counts holders and waiters, the last one out forgets the lock of a discarded match."""
        lock = self.lock(match_id)
        self._lock_users[match_id] = self._lock_users.get(match_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[match_id] -= 1
            if self._lock_users[match_id] == 0:
                del self._lock_users[match_id]
                if match_id not in self._sessions:
                    self._locks.pop(match_id, None)

    def discard_if_idle(self, match_id: str) -> bool:
        """Drop the match once nobody is connected to it anymore. Returns True if it was discarded."""
        session = self._sessions.get(match_id)
        if session is None or not session.is_idle():
            return False
        del self._sessions[match_id]
        if match_id not in self._lock_users:
            self._locks.pop(match_id, None)
        logger.info("match %s: discarded", match_id)
        return True
