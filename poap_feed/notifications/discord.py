"""
Discord Delivery - Bot REST client with a name-indexed channel cache.

============================================================
PURPOSE
============================================================
Post notification embeds to Discord text channels that are
addressed by name.

PRINCIPLES:
- Channels are resolved by exact name against a local cache
- Unknown names resolve to None (the dispatcher skips them)
- The cache is refreshed in the background, replaced wholesale
- Sends go through the shared retry policy

============================================================
"""

import asyncio
import logging
from typing import Any, Optional

import aiohttp

from poap_feed.exceptions import DeliveryError, FetchError
from poap_feed.http import HttpClient
from poap_feed.models import NotificationPayload
from poap_feed.notifications.base import BaseChannel, BaseDirectory
from poap_feed.retry import RetryPolicy


logger = logging.getLogger(__name__)


# Guild text and announcement channels accept messages
MESSAGEABLE_CHANNEL_TYPES = {0, 5}


def render_embed(payload: NotificationPayload) -> dict[str, Any]:
    """Render a payload as a Discord embed object."""
    return {
        "title": payload.title,
        "url": payload.link_url,
        "color": int(payload.color.lstrip("#"), 16),
        "fields": [
            {"name": f.label, "value": f.value, "inline": f.inline}
            for f in payload.fields
        ],
        "author": {
            "name": payload.author_label,
            "url": payload.author_link_url,
        },
        "thumbnail": {"url": payload.image_url},
        "timestamp": payload.timestamp.isoformat(),
    }


class DiscordChannel(BaseChannel):
    """A resolved Discord channel."""

    def __init__(self, name: str, channel_id: str, directory: "DiscordDirectory") -> None:
        self._name = name
        self.channel_id = channel_id
        self._directory = directory

    @property
    def name(self) -> str:
        return self._name

    async def send(self, payload: NotificationPayload) -> None:
        try:
            await self._directory.post_embed(self.channel_id, render_embed(payload))
        except FetchError as e:
            raise DeliveryError(
                f"Discord send to #{self._name} failed",
                destination=self._name,
                component="discord",
                original_error=e,
            )


class DiscordDirectory(HttpClient, BaseDirectory):
    """
    Discord bot client acting as a destination directory.

    Usage:
        directory = DiscordDirectory(bot_token="...")
        await directory.start()
        channel = directory.resolve("poap-feed")   # DiscordChannel or None
    """

    API_URL = "https://discord.com/api/v10"
    DEFAULT_REFRESH_SECONDS = 300.0

    def __init__(
        self,
        bot_token: str,
        refresh_interval: float = DEFAULT_REFRESH_SECONDS,
        api_url: str = API_URL,
        retry_policy: Optional[RetryPolicy] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        super().__init__("discord", retry_policy, session=session)
        self._bot_token = bot_token
        self._api_url = api_url.rstrip("/")
        self._refresh_interval = refresh_interval
        self._channels: dict[str, str] = {}
        self._refresh_task: Optional[asyncio.Task] = None

    def _get_default_headers(self) -> dict[str, str]:
        headers = super()._get_default_headers()
        headers["Authorization"] = f"Bot {self._bot_token}"
        return headers

    @property
    def channel_names(self) -> list[str]:
        return sorted(self._channels)

    def resolve(self, name: str) -> Optional[DiscordChannel]:
        channel_id = self._channels.get(name)
        if channel_id is None:
            return None
        return DiscordChannel(name, channel_id, self)

    async def refresh(self) -> int:
        """
        Reload the name -> id cache from every guild the bot is in.

        Returns:
            Number of cached channels
        """
        headers = self._get_default_headers()
        guilds = await self._request("GET", f"{self._api_url}/users/@me/guilds", headers=headers)

        channels: dict[str, str] = {}
        for guild in guilds or []:
            guild_channels = await self._request(
                "GET",
                f"{self._api_url}/guilds/{guild['id']}/channels",
                headers=headers,
            )
            for channel in guild_channels or []:
                if channel.get("type") not in MESSAGEABLE_CHANNEL_TYPES:
                    continue
                # First match wins, like a cache find()
                channels.setdefault(channel["name"], str(channel["id"]))

        self._channels = channels
        logger.info(
            f"[discord] Channel cache refreshed: {len(channels)} channels "
            f"in {len(guilds or [])} guilds"
        )
        return len(channels)

    async def post_embed(self, channel_id: str, embed: dict[str, Any]) -> None:
        await self._request(
            "POST",
            f"{self._api_url}/channels/{channel_id}/messages",
            json={"embeds": [embed]},
            headers=self._get_default_headers(),
        )

    async def start(self) -> None:
        """Load the cache and start periodic refresh."""
        try:
            await self.refresh()
        except FetchError as e:
            logger.error(f"[discord] Initial channel refresh failed: {e}")

        if self._refresh_interval > 0 and self._refresh_task is None:
            self._refresh_task = asyncio.create_task(self._refresh_loop())

    async def _refresh_loop(self) -> None:
        while True:
            try:
                await asyncio.sleep(self._refresh_interval)
                await self.refresh()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"[discord] Channel refresh error: {e}")

    async def close(self) -> None:
        if self._refresh_task:
            self._refresh_task.cancel()
            try:
                await self._refresh_task
            except asyncio.CancelledError:
                pass
            self._refresh_task = None
        await super().close()
