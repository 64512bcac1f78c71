"""Live-state engine: ties the data fetcher, caches, registry and dispatcher together."""

import asyncio
import logging
from typing import List, Optional, Union

from .cache import NoGameweekError, ReferenceDataCache, resolve_gameweek
from .connections import ConnectionRegistry, LiveConnection
from .data_fetcher import FPLDataFetcher, UpstreamError
from .delta import compute_team_delta
from .models import TeamState
from .notifications import NotificationDispatcher
from .schemas import PushSubscription
from .state import TeamStateStore

logger = logging.getLogger('fpllive.engine')


class LiveEngine:
    """
    Owns all live state of the server.

    Constructed once at startup. All mutation goes through the poll cycle
    (run_cycle) or the registration callbacks below, on a single event loop.
    Blocking upstream calls run in worker threads.

    A team is tracked while at least one live connection or push
    subscription references it; its state is dropped as soon as neither
    remains and no refresh of it is in flight.
    """

    def __init__(
        self,
        fetcher: FPLDataFetcher,
        dispatcher: NotificationDispatcher,
        cache: Optional[ReferenceDataCache] = None,
        store: Optional[TeamStateStore] = None,
        registry: Optional[ConnectionRegistry] = None,
    ):
        self.fetcher = fetcher
        self.dispatcher = dispatcher
        self.cache = cache or ReferenceDataCache()
        self.store = store or TeamStateStore()
        self.registry = registry or ConnectionRegistry()

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def has_observers(self, team_id: str) -> bool:
        return self.registry.has_connections(team_id) or self.dispatcher.has_subscriptions(team_id)

    def tracked_team_ids(self) -> List[str]:
        return sorted(set(self.registry.team_ids()) | set(self.dispatcher.team_ids()))

    def maybe_evict(self, team_id: str) -> bool:
        """
        Drop a team's state if nothing observes it any more.

        A team whose refresh is in flight is left alone; that refresh
        evicts it when it finishes.
        """
        if team_id not in self.store or self.has_observers(team_id):
            return False
        if self.store.is_locked(team_id):
            return False
        return self.store.evict(team_id)

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    async def refresh_reference(self) -> bool:
        """
        Refresh bootstrap, fixtures and live stats.

        Each step fails on its own: cached data from a failed step is kept
        and the next cycle retries it.

        Returns:
            True if every step succeeded
        """
        ok = True

        try:
            bootstrap = await asyncio.to_thread(self.fetcher.get_bootstrap)
            resolve_gameweek(bootstrap.events)
            self.cache.update_bootstrap(bootstrap)
        except (UpstreamError, NoGameweekError) as e:
            logger.error(f'Reference data refresh failed: {e}')
            ok = False

        try:
            fixtures = await asyncio.to_thread(self.fetcher.get_fixtures)
            self.cache.update_fixtures(fixtures)
        except UpstreamError as e:
            logger.error(f'Fixtures refresh failed: {e}')
            ok = False

        gameweek = self.cache.current_gameweek()
        if gameweek is None:
            logger.warning('No reference data yet, skipping live stats')
            return False

        try:
            live = await asyncio.to_thread(self.fetcher.get_live, gameweek.id)
            self.cache.update_live(gameweek.id, live)
        except UpstreamError as e:
            logger.error(f'Live stats refresh for gameweek {gameweek.id} failed: {e}')
            ok = False

        return ok

    async def refresh_team(self, team_id: str, notify: bool = True) -> Optional[TeamState]:
        """
        Re-fetch one team, score it, publish the update and push new events.

        Upstream failures are logged and leave the team's previous state in
        place.

        Args:
            team_id: Tracked team id
            notify: Whether to push notifications for new events

        Returns:
            The updated state, or None if the team was not refreshed
        """
        async with self.store.hold(team_id):
            state = self._refreshable_state(team_id)
            if state is None:
                return None

            gameweek = self.cache.current_gameweek()
            if gameweek is None:
                logger.warning(f'No reference data yet, cannot refresh team {team_id}')
                return None

            try:
                picks, manager, history = await asyncio.gather(
                    asyncio.to_thread(self.fetcher.get_picks, team_id, gameweek.id),
                    asyncio.to_thread(self.fetcher.get_entry, team_id),
                    asyncio.to_thread(self.fetcher.get_history, team_id),
                )
            except UpstreamError as e:
                logger.warning(f'Refresh of team {team_id} failed: {e}')
                return None

            # Observers may have left while we were waiting on the API
            state = self._refreshable_state(team_id)
            if state is None:
                return None

            previous = state.previous_stats
            if previous is not None and state.gameweek != gameweek.id:
                previous = {}

            pick_dicts = [pick.model_dump() for pick in picks.picks]
            delta = compute_team_delta(
                pick_dicts,
                self.cache.players,
                self.cache.stats_for_gameweek(gameweek.id),
                previous,
            )

            state.picks = pick_dicts
            state.live_score = delta.live_score
            state.events = delta.events
            state.gameweek = gameweek.id
            state.manager = manager
            state.history = history
            state.previous_stats = delta.snapshot

            logger.debug(
                f'Team {team_id}: {delta.live_score} live pts, {len(delta.events)} events, '
                f'{len(delta.new_events)} new'
            )
            await self.registry.broadcast(team_id, self.team_payload(state))

        if notify and delta.new_events:
            await self.dispatcher.notify_events(team_id, delta.new_events)

        self.maybe_evict(team_id)
        return state

    def _refreshable_state(self, team_id: str) -> Optional[TeamState]:
        if not self.has_observers(team_id):
            self.store.evict(team_id)
            return None
        return self.store.get(team_id)

    async def run_cycle(self) -> bool:
        """
        One full poll cycle: reference data, then every tracked team.

        One team failing never stops the others.

        Returns:
            Whether live polling cadence applies afterwards
        """
        await self.refresh_reference()

        for team_id in self.store.team_ids():
            self.maybe_evict(team_id)

        for team_id in self.tracked_team_ids():
            self.store.ensure(team_id)
            try:
                await self.refresh_team(team_id)
            except Exception:
                logger.exception(f'Unexpected error refreshing team {team_id}')

        return self.cache.is_live()

    def team_payload(self, state: TeamState) -> dict:
        """State as sent to live viewers."""
        return {
            **state.to_payload(),
            'gameweekStatus': self.cache.gameweek_status(),
            'fixtures': self.cache.fixtures_payload(),
        }

    # ------------------------------------------------------------------
    # Live connections
    # ------------------------------------------------------------------

    async def register_connection(self, connection: LiveConnection, team_id: str) -> bool:
        """
        Register a viewer and send it the initial snapshot.

        A team seen for the first time is refreshed immediately so the viewer
        does not wait for the next poll.

        Returns:
            True if the initial snapshot was sent
        """
        previous_team = self.registry.register(connection, team_id)
        if previous_team is not None:
            self.maybe_evict(previous_team)

        state, created = self.store.ensure(team_id)
        if created or state.is_baseline:
            await self.refresh_team(team_id)

        try:
            async with self.store.hold(team_id):
                state = self.store.get(team_id)
                if state is None or connection.team_id != team_id:
                    return False
                return await self.registry.send_initial(connection, self.team_payload(state))
        finally:
            self.maybe_evict(team_id)

    def unregister_connection(self, connection: LiveConnection) -> None:
        """Forget a closed connection. Safe to call more than once."""
        team_id = self.registry.unregister(connection)
        if team_id is not None:
            self.maybe_evict(team_id)

    # ------------------------------------------------------------------
    # Push subscriptions
    # ------------------------------------------------------------------

    async def add_subscription(self, team_id: str, subscription: Union[PushSubscription, dict]) -> bool:
        """
        Subscribe an endpoint to a team's events.

        A newly tracked team is refreshed at once to record the baseline
        that later notifications are measured against.
        """
        added = self.dispatcher.add_subscription(team_id, subscription)
        state, created = self.store.ensure(team_id)
        if created or state.is_baseline:
            await self.refresh_team(team_id)
        return added

    def remove_subscription(self, team_id: str, endpoint: str) -> bool:
        removed = self.dispatcher.remove_subscription(team_id, endpoint)
        self.maybe_evict(team_id)
        return removed

    def get_public_key(self) -> str:
        return self.dispatcher.get_public_key()
