"""
POAP Feed Configuration.

============================================================
RESPONSIBILITY
============================================================
Loads the process configuration once at startup from environment
variables (a .env file is honoured via python-dotenv).

- Destinations: comma list of 'name' or 'name:MINT|BURN'
- Networks: one websocket endpoint per watched network
- Delivery: Discord bot token, optional Slack and MINT webhooks
- Tuning: throttle, retry and reconnect settings

Read-only after load; validate() lists every problem at once.

============================================================
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from poap_feed.exceptions import ConfigurationError
from poap_feed.models import DestinationConfig, Network, parse_actions


POAP_CONTRACT_ADDRESS = "0x22C1f6050E56d2876009903609a2cC3fEf83B415"

NETWORK_ENV_VARS = {
    Network.XDAI: "XDAI_WS_PROVIDER",
    Network.MAINNET: "MAINNET_WS_PROVIDER",
}


def _split(value: Optional[str]) -> list[str]:
    return [part.strip() for part in (value or "").split(",") if part.strip()]


@dataclass
class FeedConfig:
    """Complete process configuration."""

    # Discord
    discord_token: Optional[str] = None
    """Bot token; Discord delivery is disabled without it."""

    discord_refresh_seconds: float = 300.0
    """Channel cache refresh interval."""

    # Destinations
    destinations: list[DestinationConfig] = field(default_factory=list)
    """Every destination the dispatcher fans out to."""

    # Slack
    slack_webhook_url: Optional[str] = None
    slack_destination_name: str = "slack"

    # Secondary MINT webhook
    mint_webhook_url: Optional[str] = None
    mint_webhook_destination: Optional[str] = None
    """Destination owning the webhook; defaults to the first one."""

    # Chain
    ws_providers: dict[Network, str] = field(default_factory=dict)
    contract_address: str = POAP_CONTRACT_ADDRESS
    reconnect_max_attempts: int = 20
    reconnect_delay_seconds: float = 5.0

    # Metadata API
    poap_api_url: str = "https://api.poap.xyz"
    poap_api_key: Optional[str] = None
    lookup_throttle_seconds: float = 5.0

    # Outbound HTTP retries
    http_max_retries: int = 3
    http_retry_delay_seconds: float = 4.0

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "FeedConfig":
        """
        Load configuration from environment variables.

        Raises:
            ConfigurationError: If a value cannot be parsed
        """
        load_dotenv(env_file)

        try:
            destinations = [
                DestinationConfig.parse(entry)
                for entry in _split(
                    os.getenv("DISCORD_CHANNEL_NAMES") or os.getenv("DISCORD_CHANNEL_NAME")
                )
            ]

            slack_url = os.getenv("SLACK_WEBHOOK_URL") or None
            slack_name = os.getenv("SLACK_DESTINATION_NAME", "slack").strip() or "slack"
            if slack_url and slack_name not in {d.name for d in destinations}:
                destinations.append(
                    DestinationConfig(
                        name=slack_name,
                        allowed_actions=parse_actions(os.getenv("SLACK_ACTIONS")),
                    )
                )

            config = cls(
                discord_token=os.getenv("DISCORD_TOKEN") or None,
                discord_refresh_seconds=float(os.getenv("DISCORD_REFRESH_SECONDS", "300")),
                destinations=destinations,
                slack_webhook_url=slack_url,
                slack_destination_name=slack_name,
                mint_webhook_url=os.getenv("MINT_WEBHOOK_URL") or None,
                mint_webhook_destination=os.getenv("MINT_WEBHOOK_DESTINATION") or None,
                ws_providers={
                    network: os.environ[var]
                    for network, var in NETWORK_ENV_VARS.items()
                    if os.getenv(var)
                },
                contract_address=os.getenv("POAP_CONTRACT_ADDRESS", POAP_CONTRACT_ADDRESS),
                reconnect_max_attempts=int(os.getenv("RECONNECT_MAX_ATTEMPTS", "20")),
                reconnect_delay_seconds=float(os.getenv("RECONNECT_DELAY_SECONDS", "5")),
                poap_api_url=os.getenv("POAP_API_URL", "https://api.poap.xyz"),
                poap_api_key=os.getenv("POAP_API_KEY") or None,
                lookup_throttle_seconds=float(os.getenv("LOOKUP_THROTTLE_SECONDS", "5")),
                http_max_retries=int(os.getenv("HTTP_MAX_RETRIES", "3")),
                http_retry_delay_seconds=float(os.getenv("HTTP_RETRY_DELAY_SECONDS", "4")),
                log_level=os.getenv("LOG_LEVEL", "INFO"),
                log_format=os.getenv("LOG_FORMAT", "text"),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid configuration value: {e}") from e

        return config.with_webhook()

    def with_webhook(self) -> "FeedConfig":
        """Attach the MINT webhook URL to its owning destination."""
        if not self.mint_webhook_url or not self.destinations:
            return self

        owner = self.mint_webhook_destination or self.destinations[0].name
        self.destinations = [
            DestinationConfig(d.name, d.allowed_actions, self.mint_webhook_url)
            if d.name == owner else d
            for d in self.destinations
        ]
        return self

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if not self.destinations:
            errors.append("At least one destination is required (DISCORD_CHANNEL_NAME)")

        discord_destinations = [
            d.name for d in self.destinations
            if not (self.slack_webhook_url and d.name == self.slack_destination_name)
        ]
        if discord_destinations and not self.discord_token:
            errors.append(
                f"DISCORD_TOKEN is required for Discord destinations: {', '.join(discord_destinations)}"
            )

        for network, var in NETWORK_ENV_VARS.items():
            if network not in self.ws_providers:
                errors.append(f"{var} is required")

        if self.mint_webhook_url and self.mint_webhook_destination:
            if self.mint_webhook_destination not in {d.name for d in self.destinations}:
                errors.append(
                    f"MINT_WEBHOOK_DESTINATION '{self.mint_webhook_destination}' is not a configured destination"
                )

        if self.http_max_retries < 0:
            errors.append("HTTP_MAX_RETRIES must be >= 0")
        if self.reconnect_max_attempts < 0:
            errors.append("RECONNECT_MAX_ATTEMPTS must be >= 0")
        if self.lookup_throttle_seconds < 0:
            errors.append("LOOKUP_THROTTLE_SECONDS must be >= 0")

        return errors

    def require_valid(self) -> "FeedConfig":
        """
        Raises:
            ConfigurationError: Listing every validation error
        """
        errors = self.validate()
        if errors:
            raise ConfigurationError(
                f"Invalid configuration: {'; '.join(errors)}",
                errors=errors,
            )
        return self

