"""FPL scoring rules: maps a player's live stats to scoring events."""

from typing import List, Tuple

from .constants import (
    CLEAN_SHEET_POINTS,
    DEFAULT_GOAL_POINTS,
    DEFENDER,
    GOAL_POINTS,
    KEEPER,
)


def score_player_events(stats: dict, position: int) -> List[Tuple[str, int]]:
    """
    Score a player's cumulative gameweek stats as a list of events.

    Every rule is evaluated independently, so one player can trigger several
    events in the same poll.

    Scoring:
        - Minutes played: 2 pts for 60+ minutes, 1 pt for any appearance
        - Goals: 10 (GKP) / 6 (DEF) / 5 (MID) / 4 (FWD) pts each
        - Assists: 3 pts each
        - Clean sheet: 4 (GKP/DEF) / 1 (MID) pts, forwards get nothing
        - Goals conceded (GKP/DEF only): -1 pt per 2 conceded
        - Saves (GKP only): 1 pt per 3 saves
        - Penalty saves: 5 pts each
        - Penalty misses: -2 pts each
        - Own goals: -2 pts each
        - Yellow cards: -1 pt each
        - Red cards: -3 pts each
        - Bonus: as awarded

    Args:
        stats: Live stats dict from the upstream API
        position: element_type (1 GKP, 2 DEF, 3 MID, 4 FWD)

    Returns:
        List of (event kind, points) pairs
    """
    events = []

    # Minutes played
    minutes = stats.get('minutes', 0) or 0
    if minutes > 59:
        events.append(('minutesPlayed', 2))
    elif minutes > 0:
        events.append(('minutesPlayed', 1))

    # Goals
    goals = stats.get('goals_scored', 0) or 0
    if goals > 0:
        events.append(('goal', goals * GOAL_POINTS.get(position, DEFAULT_GOAL_POINTS)))

    # Assists
    assists = stats.get('assists', 0) or 0
    if assists > 0:
        events.append(('assist', assists * 3))

    # Clean sheets
    clean_sheets = stats.get('clean_sheets', 0) or 0
    clean_sheet_pts = CLEAN_SHEET_POINTS.get(position, 0)
    if clean_sheets > 0 and clean_sheet_pts > 0:
        events.append(('cleanSheet', clean_sheet_pts))

    # Goals conceded
    goals_conceded = stats.get('goals_conceded', 0) or 0
    if position in (KEEPER, DEFENDER) and goals_conceded >= 2:
        events.append(('goalsConceded', -(goals_conceded // 2)))

    # Saves
    saves = stats.get('saves', 0) or 0
    if position == KEEPER and saves >= 3:
        events.append(('save', saves // 3))

    # Penalties
    penalties_saved = stats.get('penalties_saved', 0) or 0
    if penalties_saved > 0:
        events.append(('penaltySave', penalties_saved * 5))

    penalties_missed = stats.get('penalties_missed', 0) or 0
    if penalties_missed > 0:
        events.append(('penaltyMiss', penalties_missed * -2))

    # Own goals
    own_goals = stats.get('own_goals', 0) or 0
    if own_goals > 0:
        events.append(('ownGoal', own_goals * -2))

    # Cards
    yellow_cards = stats.get('yellow_cards', 0) or 0
    if yellow_cards > 0:
        events.append(('yellowCard', yellow_cards * -1))

    red_cards = stats.get('red_cards', 0) or 0
    if red_cards > 0:
        events.append(('redCard', red_cards * -3))

    # Bonus
    bonus = stats.get('bonus', 0) or 0
    if bonus > 0:
        events.append(('bonus', bonus))

    return events


def pick_points(stats: dict, multiplier: int) -> int:
    """Live points a pick contributes: the player's total times the multiplier."""
    return (stats.get('total_points', 0) or 0) * multiplier
