"""The collection of live matches. Owned by the MatchService, never a module-level global."""

import logging
from typing import Iterator, Optional
from uuid import UUID

from src.core.exceptions import UnknownMatchError
from src.services.match_session import MatchSession

logger = logging.getLogger(__name__)


class MatchRegistry:
    def __init__(self) -> None:
        self._sessions: dict[UUID, MatchSession] = {}

    def add(self, session: MatchSession) -> None:
        self._sessions[session.match_id] = session
        logger.info("Match %s registered (%d live)", session.match_id, len(self._sessions))

    def get(self, match_id: UUID) -> MatchSession:
        session = self._sessions.get(match_id)
        if session is None:
            raise UnknownMatchError(f"Match with {match_id=} not found.")
        return session

    def remove(self, match_id: UUID) -> Optional[MatchSession]:
        session = self._sessions.pop(match_id, None)
        if session is not None:
            logger.info("Match %s removed (%d live)", match_id, len(self._sessions))
        return session

    def __contains__(self, match_id: object) -> bool:
        return match_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[UUID]:
        return iter(list(self._sessions))

    async def close_all(self) -> None:
        """Shutdown: close every live session (which also removes it from here)."""
        for match_id in list(self._sessions):
            session = self._sessions.get(match_id)
            if session is not None:
                await session.close()
            self._sessions.pop(match_id, None)
