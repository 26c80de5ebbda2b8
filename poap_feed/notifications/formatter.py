"""
Notification Formatter - Builds channel-agnostic payloads.

Pure: same inputs (and timestamp) give the same payload.
Channel adapters decide how a payload is rendered.
"""

from datetime import datetime, timezone
from typing import Optional

from poap_feed.models import (
    Action,
    Network,
    NotificationField,
    NotificationPayload,
    TokenInfo,
)


GALLERY_URL = "https://poap.gallery/event/{event_id}/?utm_share=discordfeed"
SCAN_URL = "https://app.poap.xyz/scan/{address}/?utm_share=discordfeed"


# (upper bound inclusive, tag); anything above the last bound is the top tier
REPUTATION_TIERS = (
    (5, "🆕"),
    (10, "🟢"),
    (20, "🟡"),
    (50, "🔴"),
)
TOP_TIER = "🔥"


def reputation_tier(score: int) -> str:
    """Tier tag for a reputation score; boundaries belong to the lower tier."""
    for upper, tag in REPUTATION_TIERS:
        if score <= upper:
            return tag
    return TOP_TIER


class NotificationFormatter:
    """
    Formats transfer notifications.

    Colors identify the network the transfer happened on.
    """

    NETWORK_COLORS = {
        Network.MAINNET: "#5762cf",
        Network.XDAI: "#48A9A9",
    }

    REPUTATION_LABEL = "POAP Power"
    TOKEN_LABEL = "Token ID"
    EVENT_LABEL = "Event ID"

    @classmethod
    def format(
        cls,
        action: Action,
        token_id: str,
        token_info: TokenInfo,
        recipient_address: str,
        network: Network,
        timestamp: Optional[datetime] = None,
    ) -> NotificationPayload:
        """Build the payload for one transfer."""
        score = token_info.reputation_score

        fields = (
            NotificationField(cls.REPUTATION_LABEL, f"{reputation_tier(score)} {score}"),
            NotificationField(cls.TOKEN_LABEL, f"#{token_id}"),
            NotificationField(cls.EVENT_LABEL, f"#{token_info.event_id}"),
        )

        return NotificationPayload(
            title=f"{action.value}: {token_info.event_name}",
            color=cls.NETWORK_COLORS[network],
            fields=fields,
            link_url=GALLERY_URL.format(event_id=token_info.event_id),
            image_url=token_info.image_url,
            author_label=token_info.alias or recipient_address.lower(),
            author_link_url=SCAN_URL.format(address=recipient_address),
            timestamp=timestamp or datetime.now(timezone.utc),
            action=action,
            network=network,
            token_id=str(token_id),
            event_id=token_info.event_id,
            event_name=token_info.event_name,
            recipient=recipient_address,
        )
