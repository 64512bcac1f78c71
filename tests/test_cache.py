"""Tests for gameweek resolution and live-window detection."""

from datetime import datetime, timedelta, timezone

import pytest

from conftest import make_bootstrap, make_fixture, make_live
from fpllive.cache import NoGameweekError, ReferenceDataCache, is_fixture_live, resolve_gameweek
from fpllive.schemas import Bootstrap, Fixture, Gameweek, LiveGameweek


def gameweeks(*events):
    return [Gameweek.model_validate(e) for e in events]


class TestResolveGameweek:
    """Resolution order: current > last finished > next upcoming."""

    def test_current_takes_priority(self):
        events = gameweeks(
            {'id': 1, 'is_current': False, 'finished': True},
            {'id': 2, 'is_current': True, 'finished': False},
            {'id': 3, 'is_current': False, 'finished': False},
        )
        assert resolve_gameweek(events).id == 2

    def test_last_finished_when_none_current(self):
        events = gameweeks({'id': 1, 'finished': True}, {'id': 2, 'finished': True})
        assert resolve_gameweek(events).id == 2

    def test_next_upcoming_when_none_finished(self):
        events = gameweeks({'id': 1, 'finished': False})
        assert resolve_gameweek(events).id == 1

    def test_soonest_upcoming(self):
        events = gameweeks({'id': 5, 'finished': False}, {'id': 4, 'finished': False})
        assert resolve_gameweek(events).id == 4

    def test_empty_fails(self):
        with pytest.raises(NoGameweekError):
            resolve_gameweek([])


class TestFixtureLiveWindow:
    """Tests for a fixture's two-hour live window."""

    NOW = datetime(2024, 8, 17, 15, 30, tzinfo=timezone.utc)

    def fixture(self, kickoff):
        return Fixture(id=1, event=1, kickoff_time=kickoff, finished=False)

    def test_in_progress(self):
        assert is_fixture_live(self.fixture(self.NOW - timedelta(minutes=30)), self.NOW)

    def test_at_kickoff(self):
        assert is_fixture_live(self.fixture(self.NOW), self.NOW)

    def test_window_end_inclusive(self):
        assert is_fixture_live(self.fixture(self.NOW - timedelta(hours=2)), self.NOW)

    def test_after_window(self):
        assert not is_fixture_live(self.fixture(self.NOW - timedelta(hours=2, seconds=1)), self.NOW)

    def test_before_kickoff(self):
        assert not is_fixture_live(self.fixture(self.NOW + timedelta(minutes=1)), self.NOW)

    def test_unscheduled(self):
        assert not is_fixture_live(Fixture(id=1), self.NOW)


class TestReferenceDataCache:
    """Tests for the cache's derived views."""

    def loaded_cache(self, fixtures, events=None):
        cache = ReferenceDataCache()
        cache.update_bootstrap(Bootstrap.model_validate(make_bootstrap(events=events)))
        cache.update_fixtures([Fixture.model_validate(f) for f in fixtures])
        return cache

    def test_empty_cache(self):
        cache = ReferenceDataCache()
        assert not cache.is_loaded
        assert cache.current_gameweek() is None
        assert not cache.is_live()
        assert cache.gameweek_status() == {'current': None, 'isFinished': False}
        assert cache.fixtures_payload() == []

    def test_live_with_fixture_in_progress(self):
        """Test kickoff 30 minutes ago on the current gameweek means live."""
        cache = self.loaded_cache([make_fixture(event=2)])
        assert cache.is_live()

    def test_idle_when_window_passed(self):
        kickoff = datetime.now(timezone.utc) - timedelta(hours=3)
        cache = self.loaded_cache([make_fixture(event=2, kickoff=kickoff)])
        assert not cache.is_live()

    def test_fixture_of_other_gameweek_ignored(self):
        cache = self.loaded_cache([make_fixture(event=3)])
        assert not cache.is_live()

    def test_finished_gameweek_never_live(self):
        events = [{'id': 2, 'is_current': True, 'finished': True}]
        cache = self.loaded_cache([make_fixture(event=2)], events=events)
        assert not cache.is_live()

    def test_fixtures_payload_for_current_gameweek(self):
        cache = self.loaded_cache([make_fixture(1, event=2), make_fixture(2, event=3), make_fixture(3, event=2)])
        payload = cache.fixtures_payload()
        assert [f['id'] for f in payload] == [1, 3]
        assert payload[0]['team_h'] == 1  # upstream fields pass through

    def test_gameweek_status(self):
        cache = self.loaded_cache([])
        assert cache.gameweek_status() == {'current': 2, 'isFinished': False}

    def test_live_stats_scoped_to_gameweek(self):
        cache = ReferenceDataCache()
        cache.update_live(2, LiveGameweek.model_validate(make_live({3: {'minutes': 45, 'total_points': 1}})))
        assert cache.stats_for_gameweek(2)[3]['minutes'] == 45
        assert cache.stats_for_gameweek(3) == {}
