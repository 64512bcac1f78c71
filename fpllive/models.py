"""Data models for the FPL live engine."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .constants import EVENT_KINDS


@dataclass(frozen=True)
class ScoringEvent:
    """A single scoring event for one player, never mutated once created."""
    type: str
    player: str
    points: int
    timestamp: int  # milliseconds since the epoch

    def __post_init__(self):
        if self.type not in EVENT_KINDS:
            raise ValueError(f'Unknown event kind: {self.type!r}')

    def to_dict(self) -> dict:
        return {
            'type': self.type,
            'player': self.player,
            'points': self.points,
            'timestamp': self.timestamp,
        }


@dataclass
class TeamState:
    """Live state of one tracked fantasy team."""
    team_id: str
    picks: List[dict] = field(default_factory=list)
    live_score: int = 0
    events: List[ScoringEvent] = field(default_factory=list)
    gameweek: Optional[int] = None
    manager: Optional[Dict[str, Any]] = None
    history: Optional[Dict[str, Any]] = None
    # player id -> stats dict from the previous poll
    previous_stats: Optional[Dict[int, dict]] = None

    @property
    def is_baseline(self) -> bool:
        """True until the team has been observed at least once."""
        return self.previous_stats is None

    def to_payload(self) -> dict:
        """Client-facing view of the state (the previous snapshot stays private)."""
        return {
            'picks': self.picks,
            'liveScore': self.live_score,
            'events': [event.to_dict() for event in self.events],
            'gameweek': self.gameweek,
            'manager': self.manager,
            'history': self.history,
        }
