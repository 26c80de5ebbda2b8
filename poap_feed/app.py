"""
POAP Feed - Application Entry Point.

============================================================
SINGLE ENTRYPOINT
============================================================
Wires configuration, logging, the metadata client, the chat
channels and one watcher per network into a single asyncio
process.

Direct execution:
    python -m poap_feed

Environment-based configuration (see poap_feed.config):
    DISCORD_TOKEN=... DISCORD_CHANNEL_NAME=poap-feed \\
    XDAI_WS_PROVIDER=wss://... MAINNET_WS_PROVIDER=wss://... \\
    poap-feed

============================================================
"""

import asyncio
import json
import logging
import signal
import sys
from typing import Callable, Optional

from poap_feed.chain import TransferSubscription
from poap_feed.config import FeedConfig
from poap_feed.enrichment import MetadataEnricher, PoapApiClient
from poap_feed.exceptions import ConfigurationError
from poap_feed.models import Network
from poap_feed.notifications import (
    ChannelRegistry,
    DiscordDirectory,
    FanOutDispatcher,
    SlackWebhookChannel,
    WebhookNotifier,
)
from poap_feed.retry import RetryPolicy
from poap_feed.watcher import EventWatcher


logger = logging.getLogger(__name__)


# ============================================================
# LOGGING SETUP
# ============================================================

def setup_logging(level: str = "INFO", log_format: str = "text") -> logging.Logger:
    """
    Set up process logging.

    Args:
        level: Log level
        log_format: Output format (json or text)

    Returns:
        Application logger
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if log_format == "json":
        formatter = logging.Formatter(
            json.dumps({
                "timestamp": "%(asctime)s",
                "level": "%(levelname)s",
                "logger": "%(name)s",
                "message": "%(message)s",
            })
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    # aiohttp access noise
    logging.getLogger("aiohttp").setLevel(max(log_level, logging.WARNING))

    return logging.getLogger("poap_feed")


# ============================================================
# WIRING
# ============================================================

class FeedApplication:
    """Owns every long-lived resource of the process."""

    DRAIN_TIMEOUT_SECONDS = 30.0

    def __init__(self, config: FeedConfig) -> None:
        self.config = config
        self.retry_policy = RetryPolicy(
            max_retries=config.http_max_retries,
            delay_seconds=config.http_retry_delay_seconds,
        )

        self.api = PoapApiClient(
            api_key=config.poap_api_key,
            base_url=config.poap_api_url,
            retry_policy=self.retry_policy,
        )
        self.enricher = MetadataEnricher(self.api, throttle_seconds=config.lookup_throttle_seconds)

        self.registry = ChannelRegistry()
        if config.discord_token:
            self.registry.add_directory(
                DiscordDirectory(
                    bot_token=config.discord_token,
                    refresh_interval=config.discord_refresh_seconds,
                    retry_policy=self.retry_policy,
                )
            )
        if config.slack_webhook_url:
            self.registry.register(
                SlackWebhookChannel(
                    config.slack_webhook_url,
                    name=config.slack_destination_name,
                    retry_policy=self.retry_policy,
                )
            )

        self.webhook = WebhookNotifier(self.retry_policy) if config.mint_webhook_url else None
        self.dispatcher = FanOutDispatcher(config.destinations, self.registry, self.webhook)

        self.watchers: dict[Network, EventWatcher] = {
            network: EventWatcher(
                self.enricher,
                self.dispatcher,
                subscription_factory=self._subscription_factory(ws_url),
                name=network.value,
            )
            for network, ws_url in config.ws_providers.items()
        }

    def _subscription_factory(self, ws_url: str) -> Callable[..., TransferSubscription]:
        def factory(network, contract_address, on_connected, on_changed, on_error):
            return TransferSubscription(
                network,
                ws_url,
                contract_address,
                reconnect_attempts=self.config.reconnect_max_attempts,
                reconnect_delay=self.config.reconnect_delay_seconds,
                on_connected=on_connected,
                on_changed=on_changed,
                on_error=on_error,
            )
        return factory

    async def run(self) -> None:
        """Run every watcher until all subscriptions are dead or cancelled."""
        logger.info("+*+*+*+*+*+*+*+*+*+*+*+*+*+*+")
        logger.info("Starting to listen POAP events...")
        logger.info("+*+*+*+*+*+*+*+*+*+*+*+*+*+*+")

        await self.registry.start()

        results = await asyncio.gather(
            *(
                watcher.subscribe(network, self.config.contract_address)
                for network, watcher in self.watchers.items()
            ),
            return_exceptions=True,
        )
        for network, result in zip(self.watchers, results):
            if isinstance(result, BaseException):
                logger.critical(f"[{network.value}] Watcher failed: {result!r}")
        logger.critical("All subscriptions are dead, stopping")

    async def close(self) -> None:
        """Let in-flight events finish, then stop watchers and release HTTP sessions."""
        for network, watcher in self.watchers.items():
            if watcher.pending:
                logger.info(f"[{network.value}] Waiting for {watcher.pending} in-flight events")
                if not await watcher.drain(self.DRAIN_TIMEOUT_SECONDS):
                    logger.warning(
                        f"[{network.value}] Cancelling {watcher.pending} events still in flight"
                    )
            await watcher.stop()
            logger.info(f"[{network.value}] Watcher summary: {watcher.summary}")

        await self.registry.close()
        await self.api.close()
        if self.webhook:
            await self.webhook.close()


# ============================================================
# MAIN FUNCTION
# ============================================================

async def run_application(config: FeedConfig) -> int:
    """
    Run the feed until interrupted.

    Returns:
        Exit code
    """
    app = FeedApplication(config)
    main_task = asyncio.create_task(app.run())

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, main_task.cancel)
        except NotImplementedError:
            # add_signal_handler is unavailable on Windows
            pass

    try:
        await main_task
        return 1
    except asyncio.CancelledError:
        logger.info("Shutdown requested")
        return 0
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1
    finally:
        await app.close()


def main(env_file: Optional[str] = None) -> int:
    """Main entry point."""
    try:
        config = FeedConfig.from_env(env_file).require_valid()
    except ConfigurationError as e:
        setup_logging()
        for error in e.errors or [e.message]:
            logger.error(f"Configuration error: {error}")
        return 2

    setup_logging(config.log_level, config.log_format)
    logger.info(
        f"Destinations: {', '.join(d.name for d in config.destinations)} | "
        f"Networks: {', '.join(n.value for n in config.ws_providers)}"
    )

    return asyncio.run(run_application(config))


if __name__ == "__main__":
    sys.exit(main())
