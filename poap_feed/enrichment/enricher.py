"""
Metadata Enricher - Resolves a token id into TokenInfo.

Lookup is two-stage:
1. Hard: token + event record. Missing id, name or image -> None.
2. Soft: reputation score (default 0) and ENS alias (default unset),
   each failing independently without aborting the lookup.
"""

import asyncio
import logging
from typing import Any, Awaitable, Optional, TypeVar

from poap_feed.enrichment.poap_api import PoapApiClient
from poap_feed.exceptions import EnrichmentError, FetchError
from poap_feed.models import TokenInfo


logger = logging.getLogger(__name__)

T = TypeVar("T")

REQUIRED_EVENT_FIELDS = ("id", "name", "image_url")


async def _soft(operation: Awaitable[T], default: T, label: str) -> T:
    """Await operation, falling back to default on any failure."""
    try:
        return await operation
    except Exception as e:
        logger.warning(f"[enricher] {label} failed, using default {default!r}: {e}")
        return default


class MetadataEnricher:
    """
    Builds TokenInfo from the POAP API.

    A fixed throttle delay is awaited before the first call of every
    lookup to stay under upstream rate limits.
    """

    DEFAULT_THROTTLE_SECONDS = 5.0

    def __init__(
        self,
        api: PoapApiClient,
        throttle_seconds: float = DEFAULT_THROTTLE_SECONDS,
    ) -> None:
        self._api = api
        self._throttle = throttle_seconds

    async def lookup(self, token_id: str) -> Optional[TokenInfo]:
        """
        Resolve token metadata.

        Returns:
            TokenInfo, or None when the token/event record is unavailable
        """
        if self._throttle > 0:
            await asyncio.sleep(self._throttle)

        try:
            token = await self._api.get_token(token_id)
            event, owner = self._require_event(token_id, token)
        except (FetchError, EnrichmentError) as e:
            logger.warning(f"[enricher] Token {token_id} lookup failed: {e}")
            return None

        reputation = 0
        alias = None
        if owner:
            reputation = await _soft(self._reputation(owner), 0, f"Reputation for {owner}")
            alias = await _soft(self._api.get_ens(owner), None, f"ENS lookup for {owner}")

        return TokenInfo(
            event_id=int(event["id"]),
            event_name=str(event["name"]),
            image_url=str(event["image_url"]),
            owner_address=owner,
            reputation_score=reputation,
            alias=alias,
        )

    async def _reputation(self, owner: str) -> int:
        held = await self._api.get_scan(owner)
        return len(held)

    @staticmethod
    def _require_event(token_id: str, token: dict[str, Any]) -> tuple[dict[str, Any], str]:
        """Extract the event record, enforcing the hard fields."""
        event = token.get("event")
        if not isinstance(event, dict):
            raise EnrichmentError(
                f"Token {token_id} has no event",
                token_id=token_id,
                missing_fields=["event"],
            )

        missing = [f for f in REQUIRED_EVENT_FIELDS if not event.get(f)]
        if missing:
            raise EnrichmentError(
                f"Token {token_id} event incomplete",
                token_id=token_id,
                missing_fields=missing,
            )

        try:
            int(event["id"])
        except (TypeError, ValueError) as e:
            raise EnrichmentError(
                f"Token {token_id} has non-numeric event id {event['id']!r}",
                token_id=token_id,
                original_error=e,
            )

        return event, str(token.get("owner") or "")
