"""
Enrichment Package - Token metadata lookups.

Quick Start:
    from poap_feed.enrichment import MetadataEnricher, PoapApiClient

    async with PoapApiClient(api_key="...") as api:
        enricher = MetadataEnricher(api)
        info = await enricher.lookup("42")   # TokenInfo or None
"""

from poap_feed.enrichment.enricher import MetadataEnricher
from poap_feed.enrichment.poap_api import PoapApiClient


__all__ = [
    "MetadataEnricher",
    "PoapApiClient",
]
