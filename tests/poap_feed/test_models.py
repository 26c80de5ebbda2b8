"""
Tests for data models and destination parsing.
"""

from datetime import datetime, timezone

import pytest

from poap_feed.models import (
    Action,
    DestinationConfig,
    DispatchResult,
    Network,
    NotificationField,
    NotificationPayload,
    parse_actions,
)


def make_payload(**overrides) -> NotificationPayload:
    values = dict(
        title="MINT: Devcon",
        color="#48A9A9",
        fields=(NotificationField("Token ID", "#42"),),
        link_url="https://poap.gallery/event/7/?utm_share=discordfeed",
        image_url="https://img/7.png",
        author_label="0xabc",
        author_link_url="https://app.poap.xyz/scan/0xabc/?utm_share=discordfeed",
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
        action=Action.MINT,
        network=Network.XDAI,
        token_id="42",
        event_id=7,
        event_name="Devcon",
        recipient="0xabc",
    )
    values.update(overrides)
    return NotificationPayload(**values)


class TestAction:
    """Tests for Action.parse()."""

    def test_case_insensitive(self):
        assert Action.parse("mint") == Action.MINT
        assert Action.parse(" Burn ") == Action.BURN

    def test_unknown_raises(self):
        with pytest.raises(ValueError, match="Unknown action"):
            Action.parse("SWAP")


class TestDestinationConfig:
    """Tests for DestinationConfig."""

    def test_empty_filter_accepts_all(self):
        destination = DestinationConfig("poap-feed")
        for action in Action:
            assert destination.accepts(action)

    def test_filter_restricts_actions(self):
        destination = DestinationConfig("mints", frozenset({Action.MINT}))
        assert destination.accepts(Action.MINT)
        assert not destination.accepts(Action.BURN)
        assert not destination.accepts(Action.TRANSFER)

    def test_accepts_text_case_insensitive(self):
        destination = DestinationConfig("mints", frozenset({Action.MINT}))
        assert destination.accepts("mint")

    def test_parse_plain_name(self):
        destination = DestinationConfig.parse("poap-feed")
        assert destination.name == "poap-feed"
        assert destination.allowed_actions == frozenset()

    def test_parse_with_actions(self):
        destination = DestinationConfig.parse("alerts:MINT|burn")
        assert destination.name == "alerts"
        assert destination.allowed_actions == {Action.MINT, Action.BURN}

    def test_parse_empty_name_raises(self):
        with pytest.raises(ValueError):
            DestinationConfig.parse(":MINT")

    def test_parse_actions_separators(self):
        assert parse_actions("MINT,TRANSFER") == {Action.MINT, Action.TRANSFER}
        assert parse_actions("") == frozenset()
        assert parse_actions(None) == frozenset()


class TestPayload:
    """Tests for NotificationPayload helpers."""

    def test_field_value(self):
        payload = make_payload()
        assert payload.field_value("Token ID") == "#42"
        assert payload.field_value("Missing") is None

    def test_flat_dict(self):
        data = make_payload().to_flat_dict()

        assert data["action"] == "MINT"
        assert data["network"] == "XDAI"
        assert data["token_id"] == "42"
        assert data["event_id"] == 7
        assert data["scan_url"].startswith("https://app.poap.xyz/scan/0xabc")
        assert data["timestamp"] == "2024-01-01T00:00:00+00:00"


class TestDispatchResult:
    def test_attempted_excludes_skipped(self):
        result = DispatchResult(Action.MINT, delivered=["a"], skipped=["b"], failed=["c"])
        assert result.attempted == 2
        assert result.to_dict()["skipped"] == ["b"]
