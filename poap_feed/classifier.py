"""
Event Classifier - Maps a transfer's (from, to) pair to a semantic action.

The all-zero address is the ERC-721 convention for "no owner":
a transfer from it is a mint, a transfer to it is a burn.
"""

from poap_feed.models import Action


ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def is_zero_address(address: str) -> bool:
    """Check for the null sentinel (hex case-insensitive)."""
    return (address or "").lower() == ZERO_ADDRESS


def classify(from_address: str, to_address: str) -> Action:
    """
    Classify a transfer.

    MINT takes priority when both sides are the sentinel.
    """
    if is_zero_address(from_address):
        return Action.MINT
    if is_zero_address(to_address):
        return Action.BURN
    return Action.TRANSFER
