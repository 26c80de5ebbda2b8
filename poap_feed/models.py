"""
POAP Feed Data Models - Events, token metadata and notification payloads.

All records flowing through the pipeline are plain dataclasses.
Payloads are transport-agnostic; channel adapters render them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Optional, Union


class Network(Enum):
    """Watched blockchain networks."""
    XDAI = "XDAI"
    MAINNET = "MAINNET"


class Action(Enum):
    """Semantic action of a token transfer."""
    MINT = "MINT"
    BURN = "BURN"
    TRANSFER = "TRANSFER"

    @classmethod
    def parse(cls, value: str) -> "Action":
        """Parse an action name, case-insensitive."""
        try:
            return cls(value.strip().upper())
        except ValueError:
            raise ValueError(
                f"Unknown action '{value}', expected one of "
                f"{', '.join(a.value for a in cls)}"
            ) from None


@dataclass(frozen=True)
class TransferEvent:
    """
    A single ERC-721 Transfer log as seen on one network.

    Produced by the chain subscription, consumed once by a watcher.
    """
    token_id: str
    from_address: str
    to_address: str
    transaction_hash: str
    network: Network

    # Raw log context
    block_number: Optional[int] = None
    removed: bool = False


@dataclass(frozen=True)
class TokenInfo:
    """
    Descriptive metadata for a token, built fresh per lookup.

    event_* fields are hard requirements of a lookup;
    reputation_score and alias are soft and default independently.
    """
    event_id: int
    event_name: str
    image_url: str
    owner_address: str
    reputation_score: int = 0
    alias: Optional[str] = None

    def is_usable(self) -> bool:
        """A notification needs an image reference."""
        return bool(self.image_url)


@dataclass(frozen=True)
class NotificationField:
    """One labelled value in a notification."""
    label: str
    value: str
    inline: bool = True


@dataclass(frozen=True)
class NotificationPayload:
    """
    Channel-agnostic notification.

    One instance fans out to every destination; channel adapters
    render it as a Discord embed, a Slack attachment or flat JSON.
    """
    title: str
    color: str
    fields: tuple[NotificationField, ...]
    link_url: str
    image_url: str
    author_label: str
    author_link_url: str
    timestamp: datetime

    # Context the payload was built from
    action: Action
    network: Network
    token_id: str
    event_id: int
    event_name: str
    recipient: str

    def field_value(self, label: str) -> Optional[str]:
        """Get a field value by label."""
        for item in self.fields:
            if item.label == label:
                return item.value
        return None

    def to_flat_dict(self) -> dict[str, Any]:
        """Flat JSON rendering used by automation webhooks."""
        return {
            "action": self.action.value,
            "network": self.network.value,
            "title": self.title,
            "token_id": self.token_id,
            "event_id": self.event_id,
            "event_name": self.event_name,
            "recipient": self.recipient,
            "author": self.author_label,
            "image_url": self.image_url,
            "link_url": self.link_url,
            "scan_url": self.author_link_url,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class DestinationConfig:
    """
    A named chat destination with an optional action filter.

    An empty allowed_actions set accepts every action.
    webhook_url enables the secondary MINT-only delivery.
    """
    name: str
    allowed_actions: frozenset[Action] = frozenset()
    webhook_url: Optional[str] = None

    def accepts(self, action: Union[Action, str]) -> bool:
        """Check the action filter (case-insensitive for text)."""
        if not self.allowed_actions:
            return True
        if isinstance(action, str):
            action = Action.parse(action)
        return action in self.allowed_actions

    @classmethod
    def parse(cls, text: str) -> "DestinationConfig":
        """
        Parse 'name' or 'name:MINT|BURN'.

        Raises:
            ValueError: On an empty name or unknown action
        """
        name, _, actions = text.partition(":")
        name = name.strip()
        if not name:
            raise ValueError(f"Empty destination name in '{text}'")
        return cls(name=name, allowed_actions=parse_actions(actions))


def parse_actions(text: Optional[str]) -> frozenset[Action]:
    """Parse a '|' or ',' separated action list. Empty means all."""
    if not text:
        return frozenset()
    parts: Iterable[str] = text.replace(",", "|").split("|")
    return frozenset(Action.parse(p) for p in parts if p.strip())


@dataclass
class DispatchResult:
    """Outcome of fanning out one payload."""
    action: Action
    delivered: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    webhook_posted: bool = False

    @property
    def attempted(self) -> int:
        """Number of destinations a delivery was attempted on."""
        return len(self.delivered) + len(self.failed)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "action": self.action.value,
            "delivered": self.delivered,
            "skipped": self.skipped,
            "failed": self.failed,
            "webhook_posted": self.webhook_posted,
        }
