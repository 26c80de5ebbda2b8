"""
Fan-out Dispatcher - Delivers one payload to every matching destination.

============================================================
DELIVERY POLICY
============================================================
- Destinations with a non-empty action filter only get their actions
- Unknown destinations are skipped silently (best effort: names
  are resolved at delivery time)
- A failure on one destination never blocks the others
- The secondary webhook fires for MINT only, after the primary
  deliveries and never when they all failed; its failure is logged
- dispatch() raises only when every attempted delivery failed

============================================================
"""

import logging
from typing import Optional, Sequence

from poap_feed.exceptions import DeliveryError
from poap_feed.models import Action, DestinationConfig, DispatchResult, NotificationPayload
from poap_feed.notifications.base import BaseDirectory
from poap_feed.notifications.webhook import WebhookNotifier


logger = logging.getLogger(__name__)


class FanOutDispatcher:
    """Routes a payload to the configured destinations."""

    def __init__(
        self,
        destinations: Sequence[DestinationConfig],
        directory: BaseDirectory,
        webhook: Optional[WebhookNotifier] = None,
    ) -> None:
        self._destinations = tuple(destinations)
        self._directory = directory
        self._webhook = webhook

    @property
    def destinations(self) -> tuple[DestinationConfig, ...]:
        return self._destinations

    async def dispatch(self, action: Action, payload: NotificationPayload) -> DispatchResult:
        """
        Deliver payload to every destination accepting action.

        Webhooks are posted after the primary deliveries, and only if
        those did not all fail.

        Raises:
            DeliveryError: If deliveries were attempted and all failed
        """
        result = DispatchResult(action=action)
        webhook_owners: list[DestinationConfig] = []

        for destination in self._destinations:
            if not destination.accepts(action):
                logger.debug(f"[{destination.name}] Filtered out {action.value}")
                result.skipped.append(destination.name)
                continue

            if action is Action.MINT and destination.webhook_url:
                webhook_owners.append(destination)

            channel = self._directory.resolve(destination.name)
            if channel is None:
                logger.debug(f"[{destination.name}] Destination not found, skipping")
                result.skipped.append(destination.name)
                continue

            try:
                await channel.send(payload)
                result.delivered.append(destination.name)
            except Exception as e:
                logger.error(f"[{destination.name}] Delivery failed: {e}")
                result.failed.append(destination.name)

        if result.attempted and not result.delivered:
            raise DeliveryError(
                f"All {len(result.failed)} deliveries failed",
                component="dispatcher",
                context=result.to_dict(),
            )

        for destination in webhook_owners:
            if await self._post_webhook(destination, payload):
                result.webhook_posted = True

        logger.info(
            f"Dispatched {payload.title!r}: delivered={result.delivered} "
            f"skipped={len(result.skipped)} failed={result.failed}"
        )
        return result

    async def _post_webhook(self, destination: DestinationConfig, payload: NotificationPayload) -> bool:
        if self._webhook is None:
            logger.warning(f"[{destination.name}] Webhook configured but no notifier available")
            return False
        try:
            await self._webhook.post(destination.webhook_url, payload)
            return True
        except Exception as e:
            logger.error(f"[{destination.name}] Mint webhook failed: {e}")
            return False
