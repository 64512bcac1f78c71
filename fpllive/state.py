"""Per-team live state owned by the engine."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional, Tuple

from .models import TeamState

logger = logging.getLogger('fpllive.state')


class TeamStateStore:
    """
    Tracked team states keyed by team id.

    Each team has its own asyncio.Lock so that a scheduled refresh and an
    out-of-band refresh of the same team never interleave. A lock lives as
    long as its team is tracked or any task holds or waits for it.
    """

    def __init__(self) -> None:
        self._states: Dict[str, TeamState] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        # team id -> tasks holding or waiting for its lock
        self._lock_users: Dict[str, int] = {}

    def __contains__(self, team_id: str) -> bool:
        return team_id in self._states

    def __len__(self) -> int:
        return len(self._states)

    def get(self, team_id: str) -> Optional[TeamState]:
        return self._states.get(team_id)

    def ensure(self, team_id: str) -> Tuple[TeamState, bool]:
        """Return the team's state, creating it if needed, and whether it was created."""
        state = self._states.get(team_id)
        if state is not None:
            return state, False
        state = TeamState(team_id=team_id)
        self._states[team_id] = state
        logger.info(f'Tracking team {team_id}')
        return state, True

    @asynccontextmanager
    async def hold(self, team_id: str) -> AsyncIterator[None]:
        """Hold the team's lock for the duration of the block."""
        lock = self._locks.get(team_id)
        if lock is None:
            lock = self._locks[team_id] = asyncio.Lock()
        self._lock_users[team_id] = self._lock_users.get(team_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[team_id] -= 1
            if not self._lock_users[team_id]:
                del self._lock_users[team_id]
            self._release_lock(team_id)

    def is_locked(self, team_id: str) -> bool:
        """True while any task holds or waits for the team's lock."""
        return team_id in self._lock_users

    def _release_lock(self, team_id: str) -> None:
        if team_id not in self._states and team_id not in self._lock_users:
            self._locks.pop(team_id, None)

    def evict(self, team_id: str) -> bool:
        """Forget a team. Returns True if it was tracked."""
        state = self._states.pop(team_id, None)
        self._release_lock(team_id)
        if state is not None:
            logger.info(f'Stopped tracking team {team_id}')
        return state is not None

    def team_ids(self) -> List[str]:
        return list(self._states)
