"""
Automation Webhook - Flat JSON POST for external triggers.

Used as the secondary delivery of a destination, for MINT only.
"""

import logging
from typing import Optional

import aiohttp

from poap_feed.exceptions import DeliveryError, FetchError
from poap_feed.http import HttpClient
from poap_feed.models import NotificationPayload
from poap_feed.retry import RetryPolicy


logger = logging.getLogger(__name__)


class WebhookNotifier(HttpClient):
    """Posts payload.to_flat_dict() to a fixed URL."""

    def __init__(
        self,
        retry_policy: Optional[RetryPolicy] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        super().__init__("webhook", retry_policy, session=session)

    async def post(self, url: str, payload: NotificationPayload) -> None:
        """
        Post the flat payload.

        Raises:
            DeliveryError: If the webhook rejects the call after retries
        """
        try:
            await self._request("POST", url, json=payload.to_flat_dict())
        except FetchError as e:
            raise DeliveryError(
                "Webhook delivery failed",
                component="webhook",
                original_error=e,
                context={"url": url},
            )
        logger.debug(f"[webhook] Posted {payload.action.value} for token {payload.token_id}")
