"""FPL API data fetching using requests."""

import logging
from typing import Any, Optional, TypeVar
from urllib.parse import quote

import requests
from pydantic import BaseModel, ValidationError

from .constants import FPL_API_BASE_URL, REQUEST_TIMEOUT_SECONDS
from .schemas import Bootstrap, Fixture, LiveGameweek, PicksResponse

T = TypeVar('T', bound=BaseModel)
logger = logging.getLogger('fpllive.data_fetcher')


class UpstreamError(Exception):
    """The FPL API was unreachable or returned something unusable."""

    def __init__(self, url: str, message: str):
        super().__init__(f'{url}: {message}')
        self.url = url


class FPLDataFetcher:
    """Fetches data from the read-only FPL API.

    Every call is bounded by ``timeout``. Non-2xx responses, bodies that are
    not JSON and bodies that fail schema validation all raise UpstreamError;
    nothing is ever turned into empty data.
    """

    def __init__(
        self,
        base_url: str = FPL_API_BASE_URL,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    def _url(self, path: str) -> str:
        return f'{self.base_url}/{path.strip("/")}/'

    def _get_json(self, path: str) -> Any:
        url = self._url(path)
        logger.debug(f'GET {url}')
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise UpstreamError(url, f'request failed: {e}') from e

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(url, 'response body is not valid JSON') from e

    def _get_validated(self, path: str, schema: type[T]) -> T:
        data = self._get_json(path)
        try:
            return schema.model_validate(data)
        except ValidationError as e:
            raise UpstreamError(self._url(path), f'unexpected payload: {e}') from e

    def _get_object(self, path: str) -> dict:
        data = self._get_json(path)
        if not isinstance(data, dict):
            raise UpstreamError(self._url(path), f'expected a JSON object, got {type(data).__name__}')
        return data

    def get_bootstrap(self) -> Bootstrap:
        """Reference data: gameweeks, players and clubs."""
        return self._get_validated('bootstrap-static', Bootstrap)

    def get_fixtures(self) -> list[Fixture]:
        """All fixtures of the season."""
        data = self._get_json('fixtures')
        if not isinstance(data, list):
            raise UpstreamError(self._url('fixtures'), f'expected a JSON list, got {type(data).__name__}')
        try:
            return [Fixture.model_validate(item) for item in data]
        except ValidationError as e:
            raise UpstreamError(self._url('fixtures'), f'unexpected payload: {e}') from e

    def get_live(self, gameweek: int) -> LiveGameweek:
        """Live per-player stats for a gameweek."""
        return self._get_validated(f'event/{gameweek}/live', LiveGameweek)

    def get_picks(self, team_id: str, gameweek: int) -> PicksResponse:
        """A team's picks for a gameweek."""
        return self._get_validated(f'entry/{quote(team_id, safe="")}/event/{gameweek}/picks', PicksResponse)

    def get_entry(self, team_id: str) -> dict:
        """Manager info for a team."""
        return self._get_object(f'entry/{quote(team_id, safe="")}')

    def get_history(self, team_id: str) -> dict:
        """Season history for a team."""
        return self._get_object(f'entry/{quote(team_id, safe="")}/history')
