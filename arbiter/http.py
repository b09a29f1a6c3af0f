from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = httpx.Timeout(30.0, connect=10.0)


class HttpClient:
    def __init__(self, timeout: float | None = None, transport: httpx.AsyncBaseTransport | None = None) -> None:
        limits = httpx.Limits(max_connections=10, max_keepalive_connections=5)
        client_timeout = httpx.Timeout(timeout, connect=min(timeout, 10.0)) if timeout else DEFAULT_TIMEOUT
        self._client = httpx.AsyncClient(timeout=client_timeout, limits=limits, transport=transport)

    async def get(self, url: str) -> httpx.Response:
        return await self._request("GET", url)

    async def _request(self, method: str, url: str) -> httpx.Response:
        # Single attempt: status handling and retries belong to the caller
        logger.debug(f"HTTP {method} {url}")
        return await self._client.request(method, url)

    async def aclose(self) -> None:
        await self._client.aclose()
