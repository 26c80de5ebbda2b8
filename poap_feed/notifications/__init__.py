"""
Notifications Package - Formatting and fan-out delivery.

Components:
- NotificationFormatter: action + metadata -> NotificationPayload
- ChannelRegistry: destination name -> channel
- DiscordDirectory / SlackWebhookChannel: chat deliveries
- WebhookNotifier: MINT-only automation trigger
- FanOutDispatcher: payload -> every matching destination
"""

from poap_feed.notifications.base import BaseChannel, BaseDirectory
from poap_feed.notifications.discord import DiscordChannel, DiscordDirectory, render_embed
from poap_feed.notifications.dispatcher import FanOutDispatcher
from poap_feed.notifications.formatter import NotificationFormatter, reputation_tier
from poap_feed.notifications.registry import ChannelRegistry
from poap_feed.notifications.slack import SlackWebhookChannel, render_attachment
from poap_feed.notifications.webhook import WebhookNotifier


__all__ = [
    "BaseChannel",
    "BaseDirectory",
    "ChannelRegistry",
    "DiscordChannel",
    "DiscordDirectory",
    "FanOutDispatcher",
    "NotificationFormatter",
    "SlackWebhookChannel",
    "WebhookNotifier",
    "render_attachment",
    "render_embed",
    "reputation_tier",
]
