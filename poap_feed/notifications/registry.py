"""
Channel Registry - Destination resolution for the dispatcher.

Static channels (e.g. a Slack webhook) are registered by name;
dynamic directories (e.g. the Discord channel cache) are consulted
in registration order when no static channel matches.
"""

import logging
from typing import Optional

from poap_feed.notifications.base import BaseChannel, BaseDirectory


logger = logging.getLogger(__name__)


class ChannelRegistry(BaseDirectory):
    """Name -> channel resolution across static channels and directories."""

    def __init__(self) -> None:
        self._channels: dict[str, BaseChannel] = {}
        self._directories: list[BaseDirectory] = []

    def register(self, channel: BaseChannel) -> None:
        """Register a static channel under its name."""
        if channel.name in self._channels:
            logger.warning(f"Replacing channel registered as '{channel.name}'")
        self._channels[channel.name] = channel
        logger.info(f"Registered channel: {channel.name}")

    def add_directory(self, directory: BaseDirectory) -> None:
        self._directories.append(directory)

    def resolve(self, name: str) -> Optional[BaseChannel]:
        channel = self._channels.get(name)
        if channel is not None:
            return channel

        for directory in self._directories:
            channel = directory.resolve(name)
            if channel is not None:
                return channel

        return None

    async def start(self) -> None:
        for directory in self._directories:
            await directory.start()

    async def close(self) -> None:
        for directory in self._directories:
            await directory.close()
        for channel in self._channels.values():
            close = getattr(channel, "close", None)
            if close is not None:
                await close()
