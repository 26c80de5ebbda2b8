"""
Tests for notification formatting and channel rendering.
"""

from datetime import datetime, timezone

import pytest

from poap_feed.models import Action, Network, TokenInfo
from poap_feed.notifications import (
    NotificationFormatter,
    render_attachment,
    render_embed,
    reputation_tier,
)


RECIPIENT = "0xABC0000000000000000000000000000000000001"
FIXED_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_info(**overrides) -> TokenInfo:
    values = dict(
        event_id=7,
        event_name="Devcon",
        image_url="https://img/7.png",
        owner_address=RECIPIENT,
        reputation_score=3,
        alias=None,
    )
    values.update(overrides)
    return TokenInfo(**values)


def format_payload(action=Action.MINT, network=Network.XDAI, **info):
    return NotificationFormatter.format(
        action, "42", make_info(**info), RECIPIENT, network, timestamp=FIXED_TIME
    )


# =============================================================================
# TIER TESTS
# =============================================================================

class TestReputationTier:
    """Boundaries belong to the lower tier."""

    @pytest.mark.parametrize("score,tag", [
        (0, "🆕"),
        (5, "🆕"),
        (6, "🟢"),
        (10, "🟢"),
        (11, "🟡"),
        (20, "🟡"),
        (21, "🔴"),
        (50, "🔴"),
        (51, "🔥"),
        (1000, "🔥"),
    ])
    def test_boundaries(self, score, tag):
        assert reputation_tier(score) == tag


# =============================================================================
# FORMATTER TESTS
# =============================================================================

class TestNotificationFormatter:
    """Tests for NotificationFormatter.format()."""

    def test_title_and_fields(self):
        payload = format_payload()

        assert payload.title == "MINT: Devcon"
        assert payload.field_value("POAP Power") == "🆕 3"
        assert payload.field_value("Token ID") == "#42"
        assert payload.field_value("Event ID") == "#7"
        assert [f.label for f in payload.fields] == ["POAP Power", "Token ID", "Event ID"]

    def test_action_in_title(self):
        assert format_payload(Action.BURN).title == "BURN: Devcon"
        assert format_payload(Action.TRANSFER).title == "TRANSFER: Devcon"

    def test_network_colors(self):
        assert format_payload(network=Network.XDAI).color == "#48A9A9"
        assert format_payload(network=Network.MAINNET).color == "#5762cf"

    def test_author_without_alias_is_lowercased_address(self):
        payload = format_payload()
        assert payload.author_label == RECIPIENT.lower()

    def test_author_prefers_alias(self):
        assert format_payload(alias="vitalik.eth").author_label == "vitalik.eth"

    def test_links(self):
        payload = format_payload()

        assert payload.link_url == "https://poap.gallery/event/7/?utm_share=discordfeed"
        assert payload.author_link_url == (
            f"https://app.poap.xyz/scan/{RECIPIENT}/?utm_share=discordfeed"
        )
        assert payload.image_url == "https://img/7.png"

    def test_deterministic_for_fixed_timestamp(self):
        assert format_payload() == format_payload()

    def test_default_timestamp_is_utc_now(self):
        payload = NotificationFormatter.format(
            Action.MINT, "42", make_info(), RECIPIENT, Network.XDAI
        )
        assert payload.timestamp.tzinfo is not None

    def test_context_fields(self):
        payload = format_payload(Action.TRANSFER, Network.MAINNET)

        assert payload.action == Action.TRANSFER
        assert payload.network == Network.MAINNET
        assert payload.token_id == "42"
        assert payload.event_id == 7
        assert payload.recipient == RECIPIENT


# =============================================================================
# RENDERING TESTS
# =============================================================================

class TestRendering:
    """Discord embed and Slack attachment shapes."""

    def test_discord_embed(self):
        embed = render_embed(format_payload(alias="vitalik.eth"))

        assert embed["title"] == "MINT: Devcon"
        assert embed["color"] == 0x48A9A9
        assert embed["url"].startswith("https://poap.gallery/event/7/")
        assert embed["author"]["name"] == "vitalik.eth"
        assert embed["thumbnail"]["url"] == "https://img/7.png"
        assert embed["fields"][1] == {"name": "Token ID", "value": "#42", "inline": True}
        assert embed["timestamp"] == FIXED_TIME.isoformat()

    def test_slack_attachment(self):
        message = render_attachment(format_payload(network=Network.MAINNET))
        attachment = message["attachments"][0]

        assert message["text"] == "MINT: Devcon"
        assert attachment["color"] == "#5762cf"
        assert attachment["title_link"].startswith("https://poap.gallery/event/7/")
        assert attachment["fields"][0] == {"title": "POAP Power", "value": "🆕 3", "short": True}
        assert attachment["ts"] == int(FIXED_TIME.timestamp())


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
