"""
Chain Package - Transfer event subscriptions.
"""

from poap_feed.chain.subscription import (
    TRANSFER_TOPIC,
    TransferSubscription,
    decode_transfer_log,
)


__all__ = [
    "TRANSFER_TOPIC",
    "TransferSubscription",
    "decode_transfer_log",
]
