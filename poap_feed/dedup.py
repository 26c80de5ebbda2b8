"""
Dedup Filter - Suppresses back-to-back re-delivery of one transaction.

Each watcher owns exactly one filter; state is never shared across
networks. The hash is only recorded after a successful delivery.
"""

import logging
from typing import Optional


logger = logging.getLogger(__name__)


class DedupFilter:
    """Remembers the last delivered transaction hash of a subscription."""

    def __init__(self, name: str = "") -> None:
        self._name = name
        self._last_delivered: Optional[str] = None
        self._suppressed = 0

    @property
    def last_delivered(self) -> Optional[str]:
        """Hash of the last delivered transaction, if any."""
        return self._last_delivered

    @property
    def suppressed_count(self) -> int:
        return self._suppressed

    def is_duplicate(self, tx_hash: str) -> bool:
        """True when tx_hash equals the last delivered hash."""
        if self._last_delivered is not None and tx_hash == self._last_delivered:
            self._suppressed += 1
            logger.debug(f"[{self._name}] Duplicate tx {tx_hash} suppressed")
            return True
        return False

    def mark_delivered(self, tx_hash: str) -> None:
        """Record a successful delivery."""
        self._last_delivered = tx_hash

    def __repr__(self) -> str:
        return f"<DedupFilter(name={self._name}, last={self._last_delivered})>"
