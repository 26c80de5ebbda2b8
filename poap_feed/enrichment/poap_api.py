"""
POAP API Client - REST lookups used for token enrichment.

Endpoints:
  - GET /token/{tokenId}              -> event + owner
  - GET /actions/scan/{address}       -> list of tokens held
  - GET /actions/ens_lookup/{address} -> {"valid": bool, "ens": str}

Authentication is a static X-API-Key header when a key is configured.
"""

import logging
from typing import Any, Optional

import aiohttp

from poap_feed.http import HttpClient
from poap_feed.retry import RetryPolicy


logger = logging.getLogger(__name__)


class PoapApiClient(HttpClient):
    """Thin async client for the POAP REST API."""

    BASE_URL = "https://api.poap.xyz"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = BASE_URL,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: float = HttpClient.DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        super().__init__("poap_api", retry_policy, timeout, session)
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")

    def _get_default_headers(self) -> dict[str, str]:
        headers = super()._get_default_headers()
        if self._api_key:
            headers["X-API-Key"] = self._api_key
        return headers

    async def _get(self, path: str) -> Any:
        return await self._request(
            "GET",
            f"{self._base_url}{path}",
            headers=self._get_default_headers(),
        )

    async def get_token(self, token_id: str) -> dict[str, Any]:
        """Token record with nested event and owner address."""
        data = await self._get(f"/token/{token_id}")
        return data if isinstance(data, dict) else {}

    async def get_scan(self, address: str) -> list[Any]:
        """Tokens held by an address."""
        data = await self._get(f"/actions/scan/{address}")
        return data if isinstance(data, list) else []

    async def get_ens(self, address: str) -> Optional[str]:
        """ENS name for an address, if one resolves."""
        data = await self._get(f"/actions/ens_lookup/{address}")
        if isinstance(data, dict):
            return data.get("ens") or None
        return None
