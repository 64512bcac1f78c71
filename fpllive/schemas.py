"""Pydantic schemas for upstream payloads and client messages."""

import base64
import re
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, StrictStr, field_validator


# ---------------------------------------------------------------------------
# Upstream: bootstrap-static
# ---------------------------------------------------------------------------


class Gameweek(BaseModel):
    """A gameweek ("event" in the upstream API)."""

    id: int
    is_current: bool = False
    is_next: bool = False
    finished: bool = False
    data_checked: bool = False
    deadline_time: datetime | None = None

    class Config:
        extra = 'allow'


class PlayerInfo(BaseModel):
    """A player ("element") from the reference data."""

    id: int
    web_name: str
    team: int
    element_type: int

    class Config:
        extra = 'allow'


class Club(BaseModel):
    """A Premier League club."""

    id: int
    short_name: str
    name: str | None = None

    class Config:
        extra = 'allow'


class Bootstrap(BaseModel):
    """bootstrap-static payload: gameweeks, players and clubs."""

    events: list[Gameweek]
    elements: list[PlayerInfo]
    teams: list[Club]

    class Config:
        extra = 'allow'


# ---------------------------------------------------------------------------
# Upstream: fixtures and live stats
# ---------------------------------------------------------------------------


class Fixture(BaseModel):
    """A fixture. Unscheduled fixtures have no gameweek or kickoff time."""

    id: int
    event: int | None = None
    kickoff_time: datetime | None = None
    finished: bool = False

    class Config:
        extra = 'allow'


class LiveStats(BaseModel):
    """Cumulative per-gameweek stats for one player."""

    minutes: int = 0
    goals_scored: int = 0
    assists: int = 0
    clean_sheets: int = 0
    goals_conceded: int = 0
    own_goals: int = 0
    penalties_saved: int = 0
    penalties_missed: int = 0
    yellow_cards: int = 0
    red_cards: int = 0
    saves: int = 0
    bonus: int = 0
    total_points: int = 0

    class Config:
        extra = 'allow'


class LiveElement(BaseModel):
    """Live stats for one player."""

    id: int
    stats: LiveStats

    class Config:
        extra = 'allow'


class LiveGameweek(BaseModel):
    """event/{gw}/live payload."""

    elements: list[LiveElement]

    class Config:
        extra = 'allow'


# ---------------------------------------------------------------------------
# Upstream: team picks
# ---------------------------------------------------------------------------


class Pick(BaseModel):
    """One squad slot of a fantasy team for a gameweek."""

    element: int
    position: int = Field(..., ge=1, le=15)
    multiplier: int = Field(..., ge=0)
    is_captain: bool = False
    is_vice_captain: bool = False

    class Config:
        extra = 'allow'


class PicksResponse(BaseModel):
    """entry/{team}/event/{gw}/picks payload."""

    picks: list[Pick]

    class Config:
        extra = 'allow'


# ---------------------------------------------------------------------------
# Client messages
# ---------------------------------------------------------------------------


class RegisterMessage(BaseModel):
    """Inbound WebSocket handshake."""

    type: Literal['register']
    teamId: StrictStr = Field(..., min_length=1)

    class Config:
        extra = 'allow'


_BASE64URL = re.compile(r'[A-Za-z0-9_-]+=*')


def _decode_base64url(value: str) -> bytes:
    if not _BASE64URL.fullmatch(value):
        raise ValueError('must be base64url encoded')
    value = value.rstrip('=')
    return base64.urlsafe_b64decode(value + '=' * (-len(value) % 4))


class PushKeys(BaseModel):
    """
    Transport keys of a Web Push subscription.

    p256dh is the client's uncompressed P-256 public key (65 bytes) and
    auth its 16-byte secret, both base64url encoded.
    """

    p256dh: str
    auth: str

    @field_validator('p256dh')
    @classmethod
    def validate_p256dh(cls, v):
        raw = _decode_base64url(v)
        if len(raw) != 65 or raw[0] != 0x04:
            raise ValueError('p256dh must be an uncompressed P-256 public key')
        return v

    @field_validator('auth')
    @classmethod
    def validate_auth(cls, v):
        if len(_decode_base64url(v)) != 16:
            raise ValueError('auth secret must be 16 bytes')
        return v

    class Config:
        extra = 'allow'


class PushSubscription(BaseModel):
    """A Web Push subscription as produced by the browser's PushManager."""

    endpoint: str = Field(..., min_length=1)
    keys: PushKeys
    expirationTime: float | None = None

    @field_validator('endpoint')
    @classmethod
    def validate_endpoint(cls, v):
        """Push services are only reachable over https."""
        if not v.startswith('https://'):
            raise ValueError(f'Push endpoint must be an https URL, got {v!r}')
        return v

    class Config:
        extra = 'allow'


class SubscribeRequest(BaseModel):
    """Body of POST /api/push/subscribe."""

    teamId: StrictStr = Field(..., min_length=1)
    subscription: PushSubscription


class UnsubscribeRequest(BaseModel):
    """Body of DELETE /api/push/unsubscribe."""

    teamId: StrictStr = Field(..., min_length=1)
    endpoint: StrictStr = Field(..., min_length=1)
