"""
Event Watcher - Drives the per-event notification pipeline.

============================================================
RESPONSIBILITY
============================================================
One watcher per network subscription:

    TransferEvent -> classify -> enrich -> dedup -> format -> dispatch

- Each event is handled in its own task; a slow lookup never
  blocks the stream or the other network
- Failures are isolated per event: logged, counted, never raised
- The last delivered hash belongs to this watcher only and is
  updated after a successful dispatch

============================================================
"""

import asyncio
import logging
from typing import Any, AsyncIterator, Callable, Optional, Protocol

from poap_feed.classifier import classify
from poap_feed.dedup import DedupFilter
from poap_feed.enrichment import MetadataEnricher
from poap_feed.exceptions import SubscriptionError
from poap_feed.models import Network, TransferEvent
from poap_feed.notifications.dispatcher import FanOutDispatcher
from poap_feed.notifications.formatter import NotificationFormatter


logger = logging.getLogger(__name__)


class EventSource(Protocol):
    """What the watcher needs from a chain subscription."""

    def events(self) -> AsyncIterator[TransferEvent]: ...

    async def close(self) -> None: ...


# factory(network, contract_address, on_connected, on_changed, on_error)
SubscriptionFactory = Callable[
    [
        Network,
        str,
        Callable[[str], None],
        Callable[[dict[str, Any]], None],
        Callable[[Exception], None],
    ],
    EventSource,
]


class EventWatcher:
    """Watches one network and relays its transfers."""

    def __init__(
        self,
        enricher: MetadataEnricher,
        dispatcher: FanOutDispatcher,
        subscription_factory: Optional[SubscriptionFactory] = None,
        formatter: type[NotificationFormatter] = NotificationFormatter,
        name: str = "watcher",
    ) -> None:
        self._enricher = enricher
        self._dispatcher = dispatcher
        self._subscription_factory = subscription_factory
        self._formatter = formatter
        self._name = name
        self._network: Optional[Network] = None
        self._dedup = DedupFilter(name)
        self._tasks: set[asyncio.Task] = set()

        self.summary = {
            "received": 0,
            "delivered": 0,
            "duplicates": 0,
            "suppressed": 0,
            "failed": 0,
        }

    @property
    def network(self) -> Optional[Network]:
        return self._network

    @property
    def dedup(self) -> DedupFilter:
        return self._dedup

    @property
    def pending(self) -> int:
        """Events still being handled."""
        return len(self._tasks)

    # ─────────────────────────────────────────────────────────────
    # Subscription
    # ─────────────────────────────────────────────────────────────

    async def subscribe(self, network: Network, contract_address: str) -> None:
        """
        Consume the network's transfer stream until it dies.

        Returns once the subscription is exhausted; it is not restarted.
        """
        if self._subscription_factory is None:
            raise RuntimeError("No subscription factory configured")
        if self._network is not None and self._network != network:
            raise RuntimeError(
                f"Watcher already bound to {self._network.value}, cannot watch {network.value}"
            )
        self._network = network
        tag = network.value

        logger.info(f"Subscribing to {tag} - {contract_address}")
        subscription = self._subscription_factory(
            network,
            contract_address,
            lambda sub_id: logger.info(f"Connected to {tag} - {sub_id}"),
            lambda log: logger.info(f"Changed to {tag} - {log}"),
            lambda error: logger.error(f"Error to {tag} - {error}"),
        )

        try:
            async for event in subscription.events():
                self._spawn(event)
        except SubscriptionError as e:
            logger.critical(f"[{tag}] Subscription dead, restart required: {e}")
        except Exception as e:
            logger.critical(f"[{tag}] Subscription crashed, restart required: {e!r}", exc_info=True)
        finally:
            await subscription.close()

    def _spawn(self, event: TransferEvent) -> None:
        task = asyncio.create_task(self.handle_event(event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for in-flight events to finish.

        Returns:
            True if nothing is left in flight
        """
        if not self._tasks:
            return True
        _, pending = await asyncio.wait(list(self._tasks), timeout=timeout)
        return not pending

    async def stop(self) -> None:
        """Cancel in-flight events."""
        for task in list(self._tasks):
            task.cancel()
        await self.drain()

    # ─────────────────────────────────────────────────────────────
    # Per-event pipeline
    # ─────────────────────────────────────────────────────────────

    async def handle_event(self, event: TransferEvent) -> bool:
        """
        Run one event through the pipeline.

        Returns:
            True if a notification was dispatched. Never raises.
        """
        self.summary["received"] += 1
        tag = event.network.value

        try:
            action = classify(event.from_address, event.to_address)
            logger.info(
                f"[{tag}] {action.value} TokenId: {event.token_id}, "
                f"to: {event.to_address}, tx: {event.transaction_hash}"
            )

            token_info = await self._enricher.lookup(event.token_id)
            if token_info is None or not token_info.is_usable():
                self.summary["suppressed"] += 1
                logger.info(f"[{tag}] No usable metadata for token {event.token_id}, skipping")
                return False

            if self._dedup.is_duplicate(event.transaction_hash):
                self.summary["duplicates"] += 1
                return False

            payload = self._formatter.format(
                action,
                event.token_id,
                token_info,
                event.to_address,
                event.network,
            )
            await self._dispatcher.dispatch(action, payload)

            self._dedup.mark_delivered(event.transaction_hash)
            self.summary["delivered"] += 1
            return True

        except Exception as e:
            self.summary["failed"] += 1
            logger.error(
                f"[{tag}] Error sending notification for token {event.token_id} "
                f"(tx {event.transaction_hash}): {e}",
                exc_info=True,
            )
            return False

    def __repr__(self) -> str:
        return f"<EventWatcher(name={self._name}, network={self._network}, summary={self.summary})>"
