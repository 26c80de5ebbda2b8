"""
Slack Delivery - Incoming-webhook channel.

Registered statically in the ChannelRegistry under a configured name.
"""

import logging
from typing import Any, Optional

import aiohttp

from poap_feed.exceptions import DeliveryError, FetchError
from poap_feed.http import HttpClient
from poap_feed.models import NotificationPayload
from poap_feed.notifications.base import BaseChannel
from poap_feed.retry import RetryPolicy


logger = logging.getLogger(__name__)


def render_attachment(payload: NotificationPayload) -> dict[str, Any]:
    """Render a payload as a Slack message with one attachment."""
    return {
        "text": payload.title,
        "attachments": [
            {
                "color": payload.color,
                "title": payload.title,
                "title_link": payload.link_url,
                "author_name": payload.author_label,
                "author_link": payload.author_link_url,
                "thumb_url": payload.image_url,
                "fields": [
                    {"title": f.label, "value": f.value, "short": f.inline}
                    for f in payload.fields
                ],
                "ts": int(payload.timestamp.timestamp()),
            }
        ],
    }


class SlackWebhookChannel(HttpClient, BaseChannel):
    """Posts notifications to a Slack incoming webhook."""

    DEFAULT_NAME = "slack"

    def __init__(
        self,
        webhook_url: str,
        name: str = DEFAULT_NAME,
        retry_policy: Optional[RetryPolicy] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        super().__init__("slack", retry_policy, session=session)
        self._webhook_url = webhook_url
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    async def send(self, payload: NotificationPayload) -> None:
        try:
            await self._request("POST", self._webhook_url, json=render_attachment(payload))
        except FetchError as e:
            raise DeliveryError(
                "Slack webhook delivery failed",
                destination=self._name,
                component="slack",
                original_error=e,
            )
        logger.debug(f"[slack] Posted {payload.title!r} to {self._name}")
