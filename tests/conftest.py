"""Shared fixtures: canned FPL payloads and fake collaborators."""

from datetime import datetime, timedelta, timezone

import pytest

from fpllive.data_fetcher import UpstreamError
from fpllive.notifications import NotificationDispatcher
from fpllive.schemas import Bootstrap, Fixture, LiveGameweek, PicksResponse


def make_bootstrap(events=None, elements=None):
    """Bootstrap payload with a small squad of players."""
    if events is None:
        events = [
            {'id': 1, 'is_current': False, 'finished': True, 'data_checked': True},
            {'id': 2, 'is_current': True, 'finished': False, 'data_checked': False},
            {'id': 3, 'is_current': False, 'finished': False, 'data_checked': False},
        ]
    if elements is None:
        elements = [
            {'id': 1, 'web_name': 'Raya', 'team': 1, 'element_type': 1},
            {'id': 2, 'web_name': 'Gabriel', 'team': 1, 'element_type': 2},
            {'id': 3, 'web_name': 'Saka', 'team': 1, 'element_type': 3},
            {'id': 4, 'web_name': 'Haaland', 'team': 2, 'element_type': 4},
        ]
    return {
        'events': events,
        'elements': elements,
        'teams': [
            {'id': 1, 'short_name': 'ARS', 'name': 'Arsenal'},
            {'id': 2, 'short_name': 'MCI', 'name': 'Man City'},
        ],
    }


def make_live(stats_by_player):
    """Live payload from {player_id: stats}."""
    return {'elements': [{'id': pid, 'stats': stats} for pid, stats in stats_by_player.items()]}


def make_picks(elements=(1, 2, 3, 4), captain=3):
    picks = []
    for position, element in enumerate(elements, start=1):
        picks.append({
            'element': element,
            'position': position,
            'multiplier': 2 if element == captain else 1,
            'is_captain': element == captain,
            'is_vice_captain': False,
        })
    return {'picks': picks, 'active_chip': None}


def make_fixture(fixture_id=1, event=2, kickoff=None, finished=False):
    if kickoff is None:
        kickoff = datetime.now(timezone.utc) - timedelta(minutes=30)
    return {
        'id': fixture_id,
        'event': event,
        'kickoff_time': kickoff.isoformat().replace('+00:00', 'Z'),
        'finished': finished,
        'team_h': 1,
        'team_a': 2,
    }


def subscription(endpoint='https://push.example.com/send/device-1'):
    return {
        'endpoint': endpoint,
        'keys': {'p256dh': 'BNcRdreALRFXTkOOUHK1EtK2wtaz5Ry4YfYCA_0QTpQtUbVlUls0VJXg7A8u-Ts1XbjhazAkj7I99e8QcYP7DkM', 'auth': 'tBHItJI5svbpez7KI4CCXg'},
    }


class FakeFetcher:
    """Stands in for FPLDataFetcher with canned, mutable payloads."""

    def __init__(self):
        self.bootstrap = make_bootstrap()
        self.fixtures = [make_fixture()]
        self.live = {2: make_live({})}
        self.picks = {}
        self.failing = set()  # names of calls that raise UpstreamError
        self.failing_teams = set()
        self.calls = []

    def _check(self, name, team_id=None):
        self.calls.append((name, team_id))
        if name in self.failing or (team_id is not None and team_id in self.failing_teams):
            raise UpstreamError(f'https://fpl.test/{name}', 'service unavailable')

    def get_bootstrap(self):
        self._check('bootstrap')
        return Bootstrap.model_validate(self.bootstrap)

    def get_fixtures(self):
        self._check('fixtures')
        return [Fixture.model_validate(f) for f in self.fixtures]

    def get_live(self, gameweek):
        self._check('live')
        return LiveGameweek.model_validate(self.live.get(gameweek, {'elements': []}))

    def get_picks(self, team_id, gameweek):
        self._check('picks', team_id)
        return PicksResponse.model_validate(self.picks.get(team_id, make_picks()))

    def get_entry(self, team_id):
        self._check('entry', team_id)
        return {'id': int(team_id), 'name': f'Team {team_id}', 'player_first_name': 'Alex'}

    def get_history(self, team_id):
        self._check('history', team_id)
        return {'current': [], 'past': [], 'chips': []}


class FakeWebSocket:
    """Collects messages a connection sends."""

    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    async def send_json(self, message):
        if self.fail:
            raise RuntimeError('socket closed')
        self.sent.append(message)

    def kinds(self):
        return [m['type'] for m in self.sent]


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def dispatcher():
    return NotificationDispatcher(
        vapid_public_key='BPublicKeyForTests',
        vapid_private_key='private-key-for-tests',
        vapid_email='ops@example.com',
    )
