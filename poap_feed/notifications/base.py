"""
Base Channel - Abstract interfaces for chat delivery.

A channel delivers a payload to one place. A directory resolves a
destination name to a channel at delivery time, or None when the
name is unknown.
"""

from abc import ABC, abstractmethod
from typing import Optional

from poap_feed.models import NotificationPayload


class BaseChannel(ABC):
    """A deliverable chat destination."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Destination name this channel answers to."""
        pass

    @abstractmethod
    async def send(self, payload: NotificationPayload) -> None:
        """
        Deliver a payload.

        Raises:
            DeliveryError: If delivery fails after retries
        """
        pass

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.name})>"


class BaseDirectory(ABC):
    """Resolves destination names to channels."""

    @abstractmethod
    def resolve(self, name: str) -> Optional[BaseChannel]:
        """Exact-name lookup; None when the destination is unknown."""
        pass

    async def start(self) -> None:
        """Prepare the directory (e.g. load a channel cache)."""

    async def close(self) -> None:
        """Release resources."""
