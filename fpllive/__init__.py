from .models import ScoringEvent, TeamState
from .scoring import score_player_events, pick_points
from .delta import TeamDelta, compute_team_delta
from .cache import ReferenceDataCache, NoGameweekError, resolve_gameweek, is_fixture_live
from .state import TeamStateStore
from .data_fetcher import FPLDataFetcher, UpstreamError
from .connections import ConnectionRegistry, LiveConnection, parse_register_message
from .notifications import NotificationDispatcher, render_notification
from .scheduler import PollScheduler, LIVE, IDLE
from .engine import LiveEngine
from .config import ConfigurationError, Settings, get_config, clear_config_cache

__all__ = [
    # Models
    'ScoringEvent',
    'TeamState',
    # Scoring
    'score_player_events',
    'pick_points',
    'TeamDelta',
    'compute_team_delta',
    # Reference data and team state
    'ReferenceDataCache',
    'NoGameweekError',
    'resolve_gameweek',
    'is_fixture_live',
    'TeamStateStore',
    # Data fetching
    'FPLDataFetcher',
    'UpstreamError',
    # Live connections and notifications
    'ConnectionRegistry',
    'LiveConnection',
    'parse_register_message',
    'NotificationDispatcher',
    'render_notification',
    # Engine
    'PollScheduler',
    'LIVE',
    'IDLE',
    'LiveEngine',
    # Configuration
    'ConfigurationError',
    'Settings',
    'get_config',
    'clear_config_cache',
]
