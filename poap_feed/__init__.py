"""
POAP Feed - On-chain POAP transfers relayed to chat.

Watches ERC-721 Transfer events of the POAP contract on xDai and
Ethereum mainnet and posts a notification per transfer to Discord
channels and Slack.

Pipeline (per event):
    classify -> enrich -> dedup -> format -> fan-out

Quick Start:
    from poap_feed import (
        EventWatcher,
        FanOutDispatcher,
        MetadataEnricher,
        Network,
        PoapApiClient,
    )

    watcher = EventWatcher(enricher, dispatcher, subscription_factory)
    await watcher.subscribe(Network.XDAI, POAP_CONTRACT_ADDRESS)
"""

from poap_feed.classifier import ZERO_ADDRESS, classify
from poap_feed.config import POAP_CONTRACT_ADDRESS, FeedConfig
from poap_feed.dedup import DedupFilter
from poap_feed.enrichment import MetadataEnricher, PoapApiClient
from poap_feed.exceptions import (
    ConfigurationError,
    DecodeError,
    DeliveryError,
    EnrichmentError,
    FetchError,
    PoapFeedError,
    SubscriptionError,
)
from poap_feed.models import (
    Action,
    DestinationConfig,
    DispatchResult,
    Network,
    NotificationField,
    NotificationPayload,
    TokenInfo,
    TransferEvent,
)
from poap_feed.notifications import FanOutDispatcher, NotificationFormatter
from poap_feed.retry import RetryPolicy
from poap_feed.watcher import EventWatcher


__version__ = "1.0.0"

__all__ = [
    # Pipeline
    "EventWatcher",
    "FanOutDispatcher",
    "MetadataEnricher",
    "NotificationFormatter",
    "PoapApiClient",
    "DedupFilter",
    "RetryPolicy",
    "classify",
    # Models
    "Action",
    "DestinationConfig",
    "DispatchResult",
    "Network",
    "NotificationField",
    "NotificationPayload",
    "TokenInfo",
    "TransferEvent",
    # Config
    "FeedConfig",
    "POAP_CONTRACT_ADDRESS",
    "ZERO_ADDRESS",
    # Exceptions
    "ConfigurationError",
    "DecodeError",
    "DeliveryError",
    "EnrichmentError",
    "FetchError",
    "PoapFeedError",
    "SubscriptionError",
]
