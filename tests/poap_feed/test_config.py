"""
Tests for environment configuration and application wiring.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from poap_feed.app import FeedApplication, main
from poap_feed.config import POAP_CONTRACT_ADDRESS, FeedConfig
from poap_feed.exceptions import ConfigurationError
from poap_feed.models import Action, Network
from poap_feed.notifications import DiscordDirectory, SlackWebhookChannel


ENV_KEYS = [
    "DISCORD_TOKEN",
    "DISCORD_CHANNEL_NAME",
    "DISCORD_CHANNEL_NAMES",
    "DISCORD_REFRESH_SECONDS",
    "SLACK_WEBHOOK_URL",
    "SLACK_DESTINATION_NAME",
    "SLACK_ACTIONS",
    "MINT_WEBHOOK_URL",
    "MINT_WEBHOOK_DESTINATION",
    "XDAI_WS_PROVIDER",
    "MAINNET_WS_PROVIDER",
    "POAP_CONTRACT_ADDRESS",
    "POAP_API_URL",
    "POAP_API_KEY",
    "LOOKUP_THROTTLE_SECONDS",
    "HTTP_MAX_RETRIES",
    "HTTP_RETRY_DELAY_SECONDS",
    "RECONNECT_MAX_ATTEMPTS",
    "RECONNECT_DELAY_SECONDS",
    "LOG_LEVEL",
    "LOG_FORMAT",
]


@pytest.fixture
def env(monkeypatch):
    """Clean environment with the minimal valid settings."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("DISCORD_TOKEN", "bot-token")
    monkeypatch.setenv("DISCORD_CHANNEL_NAME", "poap-feed")
    monkeypatch.setenv("XDAI_WS_PROVIDER", "wss://xdai.example")
    monkeypatch.setenv("MAINNET_WS_PROVIDER", "wss://mainnet.example")

    with patch("poap_feed.config.load_dotenv"):
        yield monkeypatch


# =============================================================================
# LOADING TESTS
# =============================================================================

class TestFromEnv:
    """Tests for FeedConfig.from_env()."""

    def test_defaults(self, env):
        config = FeedConfig.from_env()

        assert config.validate() == []
        assert [d.name for d in config.destinations] == ["poap-feed"]
        assert config.contract_address == POAP_CONTRACT_ADDRESS
        assert config.ws_providers == {
            Network.XDAI: "wss://xdai.example",
            Network.MAINNET: "wss://mainnet.example",
        }
        assert config.reconnect_max_attempts == 20
        assert config.reconnect_delay_seconds == 5.0
        assert config.http_max_retries == 3
        assert config.http_retry_delay_seconds == 4.0
        assert config.lookup_throttle_seconds == 5.0

    def test_multiple_destinations_with_filters(self, env):
        env.setenv("DISCORD_CHANNEL_NAMES", "poap-feed, mints:MINT, exits:burn|transfer")

        config = FeedConfig.from_env()

        names = [d.name for d in config.destinations]
        assert names == ["poap-feed", "mints", "exits"]
        assert config.destinations[1].allowed_actions == {Action.MINT}
        assert config.destinations[2].allowed_actions == {Action.BURN, Action.TRANSFER}

    def test_slack_destination_added(self, env):
        env.setenv("SLACK_WEBHOOK_URL", "https://hooks.slack.example/x")
        env.setenv("SLACK_ACTIONS", "MINT")

        config = FeedConfig.from_env()

        slack = config.destinations[-1]
        assert slack.name == "slack"
        assert slack.allowed_actions == {Action.MINT}

    def test_webhook_attached_to_first_destination(self, env):
        env.setenv("DISCORD_CHANNEL_NAMES", "poap-feed,mints")
        env.setenv("MINT_WEBHOOK_URL", "https://hooks.example/mint")

        config = FeedConfig.from_env()

        assert config.destinations[0].webhook_url == "https://hooks.example/mint"
        assert config.destinations[1].webhook_url is None

    def test_webhook_attached_to_named_destination(self, env):
        env.setenv("DISCORD_CHANNEL_NAMES", "poap-feed,mints")
        env.setenv("MINT_WEBHOOK_URL", "https://hooks.example/mint")
        env.setenv("MINT_WEBHOOK_DESTINATION", "mints")

        config = FeedConfig.from_env()

        assert config.destinations[0].webhook_url is None
        assert config.destinations[1].webhook_url == "https://hooks.example/mint"

    def test_unparseable_number_raises(self, env):
        env.setenv("HTTP_MAX_RETRIES", "many")

        with pytest.raises(ConfigurationError):
            FeedConfig.from_env()

    def test_unknown_action_raises(self, env):
        env.setenv("DISCORD_CHANNEL_NAME", "poap-feed:SWAP")

        with pytest.raises(ConfigurationError):
            FeedConfig.from_env()


# =============================================================================
# VALIDATION TESTS
# =============================================================================

class TestValidate:
    """Tests for FeedConfig.validate()."""

    def test_missing_everything(self, env):
        for key in ENV_KEYS:
            env.delenv(key, raising=False)

        errors = FeedConfig.from_env().validate()

        assert any("destination" in e for e in errors)
        assert any("XDAI_WS_PROVIDER" in e for e in errors)
        assert any("MAINNET_WS_PROVIDER" in e for e in errors)

    def test_discord_destination_needs_token(self, env):
        env.delenv("DISCORD_TOKEN")

        errors = FeedConfig.from_env().validate()

        assert any("DISCORD_TOKEN" in e for e in errors)

    def test_slack_only_needs_no_token(self, env):
        env.delenv("DISCORD_TOKEN")
        env.delenv("DISCORD_CHANNEL_NAME")
        env.setenv("SLACK_WEBHOOK_URL", "https://hooks.slack.example/x")

        assert FeedConfig.from_env().validate() == []

    def test_unknown_webhook_destination(self, env):
        env.setenv("MINT_WEBHOOK_URL", "https://hooks.example/mint")
        env.setenv("MINT_WEBHOOK_DESTINATION", "ghost")

        errors = FeedConfig.from_env().validate()

        assert any("ghost" in e for e in errors)

    def test_require_valid_lists_errors(self, env):
        env.delenv("XDAI_WS_PROVIDER")

        with pytest.raises(ConfigurationError) as exc_info:
            FeedConfig.from_env().require_valid()

        assert exc_info.value.errors == ["XDAI_WS_PROVIDER is required"]


# =============================================================================
# WIRING TESTS
# =============================================================================

class TestApplication:
    """Tests for FeedApplication wiring and main()."""

    def test_one_watcher_per_network(self, env):
        env.setenv("SLACK_WEBHOOK_URL", "https://hooks.slack.example/x")
        app = FeedApplication(FeedConfig.from_env())

        assert set(app.watchers) == {Network.XDAI, Network.MAINNET}
        assert isinstance(app.registry.resolve("slack"), SlackWebhookChannel)
        assert isinstance(app.registry._directories[0], DiscordDirectory)
        assert app.webhook is None
        assert app.retry_policy.max_retries == 3

    @pytest.mark.asyncio
    async def test_close_releases_resources(self, env):
        app = FeedApplication(FeedConfig.from_env())
        app.registry.close = AsyncMock()
        app.api.close = AsyncMock()

        await app.close()

        app.registry.close.assert_awaited_once()
        app.api.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_one_crashed_watcher_does_not_stop_the_other(self, env):
        app = FeedApplication(FeedConfig.from_env())
        app.registry.start = AsyncMock()
        app.watchers[Network.XDAI].subscribe = AsyncMock(side_effect=AttributeError("get"))
        app.watchers[Network.MAINNET].subscribe = AsyncMock()

        await app.run()

        app.watchers[Network.MAINNET].subscribe.assert_awaited_once_with(
            Network.MAINNET, POAP_CONTRACT_ADDRESS
        )

    @pytest.mark.asyncio
    async def test_close_drains_before_stopping(self, env):
        app = FeedApplication(FeedConfig.from_env())
        app.registry.close = AsyncMock()
        app.api.close = AsyncMock()
        calls = []
        for watcher in app.watchers.values():
            watcher._tasks = {MagicMock()}
            watcher.drain = AsyncMock(side_effect=lambda timeout: calls.append("drain") or True)
            watcher.stop = AsyncMock(side_effect=lambda: calls.append("stop"))

        await app.close()

        assert calls == ["drain", "stop", "drain", "stop"]
        for watcher in app.watchers.values():
            watcher.drain.assert_awaited_once_with(FeedApplication.DRAIN_TIMEOUT_SECONDS)

    def test_main_returns_2_on_invalid_config(self, env):
        env.delenv("MAINNET_WS_PROVIDER")

        with patch("poap_feed.app.setup_logging"):
            assert main() == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
