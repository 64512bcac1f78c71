"""
In-memory reference data cache.

Holds the latest bootstrap, fixtures and live stats. Each refresh replaces
its slice wholesale; a failed refresh leaves the previous data in place.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from .constants import LIVE_WINDOW_HOURS
from .schemas import Bootstrap, Fixture, Gameweek, LiveGameweek, PlayerInfo

logger = logging.getLogger('fpllive.cache')


class NoGameweekError(LookupError):
    """The reference data contains no gameweeks at all."""


def resolve_gameweek(gameweeks: List[Gameweek]) -> Gameweek:
    """
    Pick the gameweek the engine should score.

    Resolution order: the current gameweek, else the most recently finished
    one, else the soonest upcoming one.

    Raises:
        NoGameweekError: If there are no gameweeks
    """
    if not gameweeks:
        raise NoGameweekError('Reference data has no gameweeks')

    for gameweek in gameweeks:
        if gameweek.is_current:
            return gameweek

    finished = [gw for gw in gameweeks if gw.finished]
    if finished:
        return max(finished, key=lambda gw: gw.id)

    return min(gameweeks, key=lambda gw: gw.id)


def is_fixture_live(fixture: Fixture, now: datetime, window_hours: float = LIVE_WINDOW_HOURS) -> bool:
    """True if ``now`` falls between kickoff and kickoff plus the live window."""
    if fixture.kickoff_time is None:
        return False
    kickoff = fixture.kickoff_time
    if kickoff.tzinfo is None:
        kickoff = kickoff.replace(tzinfo=timezone.utc)
    return kickoff <= now <= kickoff + timedelta(hours=window_hours)


class ReferenceDataCache:
    """Latest snapshot of players, clubs, gameweeks, fixtures and live stats."""

    def __init__(self, live_window_hours: float = LIVE_WINDOW_HOURS) -> None:
        self.live_window_hours = live_window_hours
        self.bootstrap: Optional[Bootstrap] = None
        self.fixtures: List[Fixture] = []
        self.players: Dict[int, PlayerInfo] = {}
        # player id -> stats dict for live_gameweek
        self.live_stats: Dict[int, dict] = {}
        self.live_gameweek: Optional[int] = None

    @property
    def is_loaded(self) -> bool:
        return self.bootstrap is not None

    def update_bootstrap(self, bootstrap: Bootstrap) -> None:
        self.bootstrap = bootstrap
        self.players = {player.id: player for player in bootstrap.elements}
        logger.debug(
            f'Reference data: {len(bootstrap.events)} gameweeks, '
            f'{len(bootstrap.elements)} players, {len(bootstrap.teams)} clubs'
        )

    def update_fixtures(self, fixtures: List[Fixture]) -> None:
        self.fixtures = list(fixtures)

    def update_live(self, gameweek: int, live: LiveGameweek) -> None:
        self.live_gameweek = gameweek
        self.live_stats = {element.id: element.stats.model_dump() for element in live.elements}

    def current_gameweek(self) -> Optional[Gameweek]:
        """The resolved gameweek, or None before the first successful refresh."""
        if self.bootstrap is None:
            return None
        return resolve_gameweek(self.bootstrap.events)

    def fixtures_for_gameweek(self, gameweek_id: Optional[int]) -> List[Fixture]:
        if gameweek_id is None:
            return []
        return [fixture for fixture in self.fixtures if fixture.event == gameweek_id]

    def stats_for_gameweek(self, gameweek_id: int) -> Dict[int, dict]:
        """Live stats, or nothing if the cached stats belong to another gameweek."""
        if self.live_gameweek != gameweek_id:
            return {}
        return self.live_stats

    def is_live(self, now: Optional[datetime] = None) -> bool:
        """
        Whether live polling cadence applies.

        Live iff the resolved gameweek is unfinished and at least one of its
        fixtures is inside its live window.
        """
        gameweek = self.current_gameweek()
        if gameweek is None or gameweek.finished:
            return False
        now = now or datetime.now(timezone.utc)
        return any(
            is_fixture_live(fixture, now, self.live_window_hours)
            for fixture in self.fixtures_for_gameweek(gameweek.id)
        )

    def gameweek_status(self) -> dict:
        gameweek = self.current_gameweek()
        return {
            'current': gameweek.id if gameweek else None,
            'isFinished': gameweek.finished if gameweek else False,
        }

    def fixtures_payload(self) -> List[dict]:
        gameweek = self.current_gameweek()
        return [
            fixture.model_dump(mode='json')
            for fixture in self.fixtures_for_gameweek(gameweek.id if gameweek else None)
        ]
