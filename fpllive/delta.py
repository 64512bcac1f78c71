"""Turns successive live stat snapshots of a team into scoring events."""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from .models import ScoringEvent
from .schemas import PlayerInfo
from .scoring import pick_points, score_player_events
from .utils import epoch_ms

logger = logging.getLogger('fpllive.delta')


@dataclass
class TeamDelta:
    """Result of reconciling one team against the latest live stats."""
    live_score: int = 0
    # Full rule evaluation of the current snapshot (broadcast to viewers)
    events: List[ScoringEvent] = field(default_factory=list)
    # Events whose value changed since the previous snapshot (pushed)
    new_events: List[ScoringEvent] = field(default_factory=list)
    # player id -> stats, becomes the team's previous snapshot
    snapshot: Dict[int, dict] = field(default_factory=dict)


def compute_team_delta(
    picks: List[dict],
    players: Mapping[int, PlayerInfo],
    live_stats: Mapping[int, dict],
    previous: Optional[Mapping[int, dict]],
    timestamp: Optional[int] = None,
) -> TeamDelta:
    """
    Score a team's picks and work out which events are new this cycle.

    An event is new when the previous snapshot did not produce the same
    (player, kind) with the same value. Passing ``previous=None`` marks the
    first observation of the team: its events become the baseline and
    nothing is reported as new.

    Args:
        picks: Pick dicts for the team's current gameweek
        players: Reference data, player id -> PlayerInfo
        live_stats: Current live stats, player id -> stats dict
        previous: The team's snapshot from the last cycle, or None
        timestamp: Event timestamp in ms (defaults to now)

    Returns:
        TeamDelta with live score, full and new event lists, and the snapshot
    """
    if timestamp is None:
        timestamp = epoch_ms()

    result = TeamDelta()

    for pick in picks:
        element = pick['element']
        stats = live_stats.get(element)
        if stats is None:
            continue

        result.live_score += pick_points(stats, pick.get('multiplier', 1))
        result.snapshot[element] = stats

        player = players.get(element)
        if player is None:
            logger.debug(f'Player {element} missing from reference data, no events scored')
            continue

        current = score_player_events(stats, player.element_type)
        before = {}
        if previous and element in previous:
            before = dict(score_player_events(previous[element], player.element_type))

        for kind, points in current:
            event = ScoringEvent(type=kind, player=player.web_name, points=points, timestamp=timestamp)
            result.events.append(event)
            if previous is not None and before.get(kind) != points:
                result.new_events.append(event)

    return result
