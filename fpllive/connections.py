"""Registry of live WebSocket viewers per tracked team."""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Set

from pydantic import ValidationError

from .schemas import RegisterMessage

logger = logging.getLogger('fpllive.connections')

INITIAL = 'initial'
UPDATE = 'update'


class LiveConnection:
    """
    One open duplex channel to a viewer.

    Wraps anything with an awaitable ``send_json`` (a FastAPI WebSocket in
    production). Compared and hashed by identity.
    """

    def __init__(self, websocket: Any, label: str = ''):
        self.websocket = websocket
        self.label = label or hex(id(websocket))
        self.team_id: Optional[str] = None
        # Set once the initial snapshot has been sent; updates wait for it
        self.ready = False

    async def send(self, message: dict) -> None:
        await self.websocket.send_json(message)

    def __repr__(self) -> str:
        return f'LiveConnection({self.label}, team={self.team_id})'


class ConnectionRegistry:
    """Maps team ids to their open connections and pushes state to them."""

    def __init__(self) -> None:
        self._by_team: Dict[str, Set[LiveConnection]] = {}

    def register(self, connection: LiveConnection, team_id: str) -> Optional[str]:
        """
        Associate a connection with a team.

        A connection belongs to at most one team; re-registering moves it.

        Returns:
            The team id the connection was previously registered for, if it changed
        """
        previous = connection.team_id
        if previous == team_id:
            return None
        if previous is not None:
            self._discard(connection, previous)
        connection.team_id = team_id
        connection.ready = False
        self._by_team.setdefault(team_id, set()).add(connection)
        logger.info(f'Registered {connection!r}')
        return previous

    def unregister(self, connection: LiveConnection) -> Optional[str]:
        """
        Remove a connection. Safe to call more than once.

        Returns:
            The team id it was registered for, or None
        """
        team_id = connection.team_id
        if team_id is None:
            return None
        self._discard(connection, team_id)
        connection.team_id = None
        connection.ready = False
        logger.info(f'Connection {connection.label} for team {team_id} closed')
        return team_id

    def _discard(self, connection: LiveConnection, team_id: str) -> None:
        connections = self._by_team.get(team_id)
        if connections is None:
            return
        connections.discard(connection)
        if not connections:
            del self._by_team[team_id]

    def connections(self, team_id: str) -> List[LiveConnection]:
        return list(self._by_team.get(team_id, ()))

    def has_connections(self, team_id: str) -> bool:
        return bool(self._by_team.get(team_id))

    def team_ids(self) -> List[str]:
        return list(self._by_team)

    async def send(self, connection: LiveConnection, kind: str, data: dict) -> bool:
        """
        Send one message; a connection that cannot be written to is dropped.

        Returns:
            True if the message was sent
        """
        try:
            await connection.send({'type': kind, 'data': data})
        except Exception as e:
            logger.warning(f'Dropping {connection!r}: send failed: {e}')
            self.unregister(connection)
            return False
        return True

    async def send_initial(self, connection: LiveConnection, data: dict) -> bool:
        sent = await self.send(connection, INITIAL, data)
        if sent:
            connection.ready = True
        return sent

    async def broadcast(self, team_id: str, data: dict) -> int:
        """
        Send an update with the full team state to every viewer of a team.

        Returns:
            Number of connections the update reached
        """
        connections = [conn for conn in self.connections(team_id) if conn.ready]
        if not connections:
            return 0
        results = await asyncio.gather(*(self.send(conn, UPDATE, data) for conn in connections))
        delivered = sum(results)
        logger.debug(f'Broadcast update for team {team_id} to {delivered}/{len(connections)} connections')
        return delivered


def parse_register_message(raw: Any) -> Optional[RegisterMessage]:
    """Parse an inbound frame; anything but a well-formed register message yields None."""
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode('utf-8', errors='replace')
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        return None
    try:
        return RegisterMessage.model_validate(data)
    except ValidationError:
        return None
