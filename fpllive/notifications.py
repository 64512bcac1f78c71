"""Web Push notification dispatch and subscription bookkeeping."""

import asyncio
import json
import logging
from typing import Dict, List, Optional, Union

import requests
from pywebpush import WebPushException, webpush

from .config import ConfigurationError
from .constants import (
    DEFAULT_NOTIFICATION_ICON,
    GONE_STATUS_CODES,
    NOTIFICATION_DATA_TYPE,
    NOTIFICATION_TEMPLATES,
    REQUEST_TIMEOUT_SECONDS,
)
from .models import ScoringEvent
from .schemas import PushSubscription

logger = logging.getLogger('fpllive.notifications')


def _short(endpoint: str) -> str:
    """Endpoint prefix for logs; the tail is a per-device token."""
    return endpoint if len(endpoint) <= 48 else endpoint[:48] + '...'


def render_notification(event: ScoringEvent, icon: str = DEFAULT_NOTIFICATION_ICON) -> dict:
    """Build the push payload for a scoring event."""
    title, body = NOTIFICATION_TEMPLATES[event.type]
    body = body.format(
        player=event.player,
        points=event.points,
        minutes='60+' if event.points == 2 else '30+',
    )
    return {
        'title': title,
        'body': body,
        'icon': icon,
        'data': {
            'type': NOTIFICATION_DATA_TYPE,
            'event': {'type': event.type, 'player': event.player, 'points': event.points},
        },
    }


class NotificationDispatcher:
    """
    Holds push subscriptions per team and delivers event notifications.

    Subscriptions are unique by endpoint within a team. Deliveries to one
    team's subscriptions run concurrently and independently; an endpoint the
    push service reports as gone (HTTP 410/404) is removed, any other
    failure, including a subscription pywebpush cannot encrypt for,
    is only logged.
    """

    def __init__(
        self,
        vapid_public_key: Optional[str],
        vapid_private_key: Optional[str],
        vapid_email: Optional[str],
        icon: str = DEFAULT_NOTIFICATION_ICON,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ):
        if not vapid_public_key or not vapid_private_key:
            raise ConfigurationError('VAPID public and private keys must be configured')
        if not vapid_email:
            raise ConfigurationError('VAPID contact email must be configured')
        self._public_key = vapid_public_key
        self._private_key = vapid_private_key
        self._subject = f'mailto:{vapid_email}'
        self.icon = icon
        self.timeout = timeout
        # team id -> endpoint -> subscription info
        self._subscriptions: Dict[str, Dict[str, dict]] = {}

    def get_public_key(self) -> str:
        return self._public_key

    def add_subscription(self, team_id: str, subscription: Union[PushSubscription, dict]) -> bool:
        """
        Add a subscription for a team. Re-adding a known endpoint is a no-op.

        Returns:
            True if the subscription was new
        """
        if not isinstance(subscription, PushSubscription):
            subscription = PushSubscription.model_validate(subscription)

        team_subscriptions = self._subscriptions.setdefault(team_id, {})
        if subscription.endpoint in team_subscriptions:
            return False
        team_subscriptions[subscription.endpoint] = subscription.model_dump(exclude_none=True)
        logger.info(f'Added push subscription for team {team_id}: {_short(subscription.endpoint)}')
        return True

    def remove_subscription(self, team_id: str, endpoint: str) -> bool:
        """
        Remove a subscription. Unknown teams and endpoints are ignored.

        Returns:
            True if something was removed
        """
        team_subscriptions = self._subscriptions.get(team_id)
        if not team_subscriptions or endpoint not in team_subscriptions:
            return False
        del team_subscriptions[endpoint]
        if not team_subscriptions:
            del self._subscriptions[team_id]
        logger.info(f'Removed push subscription for team {team_id}: {_short(endpoint)}')
        return True

    def subscriptions(self, team_id: str) -> List[dict]:
        return list(self._subscriptions.get(team_id, {}).values())

    def has_subscriptions(self, team_id: str) -> bool:
        return bool(self._subscriptions.get(team_id))

    def team_ids(self) -> List[str]:
        return list(self._subscriptions)

    def _vapid_claims(self) -> dict:
        # pywebpush fills in aud/exp on the dict it is given
        return {'sub': self._subject}

    def _push(self, subscription: dict, data: str) -> None:
        webpush(
            subscription_info=subscription,
            data=data,
            vapid_private_key=self._private_key,
            vapid_claims=self._vapid_claims(),
            timeout=self.timeout,
        )

    async def _deliver(self, team_id: str, subscription: dict, data: str) -> bool:
        endpoint = subscription['endpoint']
        try:
            await asyncio.to_thread(self._push, subscription, data)
        except WebPushException as e:
            status = e.response.status_code if e.response is not None else None
            if status in GONE_STATUS_CODES:
                logger.info(f'Push endpoint gone ({status}) for team {team_id}: {_short(endpoint)}')
                self.remove_subscription(team_id, endpoint)
            else:
                logger.error(f'Push delivery failed for team {team_id} ({_short(endpoint)}): {e}')
            return False
        except requests.RequestException as e:
            logger.error(f'Push delivery failed for team {team_id} ({_short(endpoint)}): {e}')
            return False
        except Exception:
            logger.exception(f'Push delivery failed for team {team_id} ({_short(endpoint)})')
            return False
        return True

    async def send_notification(self, team_id: str, payload: dict) -> int:
        """
        Deliver a payload to every subscription of a team.

        Returns:
            Number of successful deliveries
        """
        subscriptions = self.subscriptions(team_id)
        if not subscriptions:
            return 0
        data = json.dumps(payload)
        results = await asyncio.gather(*(self._deliver(team_id, sub, data) for sub in subscriptions))
        return sum(results)

    async def notify_event(self, team_id: str, event: ScoringEvent) -> int:
        """Render and deliver one event to every subscription of the team."""
        if not self.has_subscriptions(team_id):
            return 0
        return await self.send_notification(team_id, render_notification(event, self.icon))

    async def notify_events(self, team_id: str, events: List[ScoringEvent]) -> int:
        delivered = 0
        for event in events:
            delivered += await self.notify_event(team_id, event)
        return delivered
