"""
HTTP client base - Shared aiohttp session handling for outbound calls.

Subclasses get a lazily created session, uniform error mapping
(status >= 400 and connection errors become FetchError) and the
retry policy around every request.
"""

import asyncio
import logging
from typing import Any, Optional

import aiohttp

from poap_feed.exceptions import FetchError
from poap_feed.retry import RetryPolicy


logger = logging.getLogger(__name__)


class HttpClient:
    """Base class for aiohttp based clients."""

    DEFAULT_TIMEOUT = 30.0
    USER_AGENT = "poap-feed/1.0"

    def __init__(
        self,
        name: str,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.client_name = name
        self._retry = retry_policy or RetryPolicy()
        self._timeout = timeout
        self._session = session
        self._owns_session = session is None

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry

    def _get_default_headers(self) -> dict[str, str]:
        """Get default HTTP headers."""
        return {
            "Accept": "application/json",
            "User-Agent": self.USER_AGENT,
        }

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers=self._get_default_headers(),
            )
            self._owns_session = True
        return self._session

    async def _request_once(
        self,
        method: str,
        url: str,
        params: Optional[dict[str, Any]] = None,
        json: Optional[Any] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        """Single HTTP request; returns parsed JSON or None for empty bodies."""
        session = await self._get_session()

        try:
            async with session.request(
                method,
                url,
                params=params,
                json=json,
                headers=headers,
            ) as response:
                if response.status >= 400:
                    body = await response.text()
                    raise FetchError(
                        message=f"HTTP {response.status}",
                        component=self.client_name,
                        status_code=response.status,
                        response_body=body[:500],
                        request_url=url,
                    )

                if response.status == 204:
                    return None
                if response.content_type == "application/json":
                    try:
                        return await response.json()
                    except ValueError as e:
                        body = await response.text()
                        raise FetchError(
                            message=f"Malformed JSON body: {e}",
                            component=self.client_name,
                            status_code=response.status,
                            response_body=body[:500],
                            request_url=url,
                            original_error=e,
                        )
                text = await response.text()
                return text or None

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise FetchError(
                message=f"Connection error: {e!r}",
                component=self.client_name,
                request_url=url,
                original_error=e,
            )

    async def _request(
        self,
        method: str,
        url: str,
        params: Optional[dict[str, Any]] = None,
        json: Optional[Any] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        """HTTP request with the client's retry policy."""
        return await self._retry.run(
            lambda: self._request_once(method, url, params=params, json=json, headers=headers),
            description=f"[{self.client_name}] {method} {url}",
        )

    async def close(self) -> None:
        """Close resources."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.client_name})>"
