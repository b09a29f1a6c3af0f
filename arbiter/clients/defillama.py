from __future__ import annotations

import logging
from typing import Any, List

import httpx
from pydantic import ValidationError

from arbiter.config import DEFAULT_POOLS_URL, Settings
from arbiter.errors import NetworkError, ParseError, StatusError
from arbiter.http import HttpClient
from arbiter.models import Pool

logger = logging.getLogger(__name__)


def parse_pools(body: Any) -> List[Pool]:
    """Validate a ``{"data": [...]}`` yields document into Pool records.

    Feed order is kept. A single record that does not match the Pool schema
    fails the whole document.
    """
    records = body.get("data") if isinstance(body, dict) else None
    if not isinstance(records, list):
        raise ParseError("pool feed", "expected an object with a 'data' list")

    pools: List[Pool] = []
    defaulted = 0
    for idx, raw in enumerate(records):
        try:
            pools.append(Pool.model_validate(raw))
        except ValidationError as e:
            raise ParseError("pool feed", f"record {idx}: {e}") from e
        if raw.get("apy") is None or raw.get("tvlUsd") is None:
            defaulted += 1
    if defaulted:
        logger.debug(f"{defaulted} pool(s) had no apy/tvlUsd and were read as 0")
    return pools


class PoolFetcher:
    """Fetch pools from the DefiLlama Yields API.

    Docs: https://yields.llama.fi/pools
    """

    def __init__(self, http: HttpClient, url: str = DEFAULT_POOLS_URL):
        self.http = http
        self.url = url

    @classmethod
    def from_settings(cls, http: HttpClient, settings: Settings) -> "PoolFetcher":
        return cls(http, url=settings.LLAMA_POOLS_URL)

    async def fetch_pools(self) -> List[Pool]:
        try:
            resp = await self.http.get(self.url)
        except httpx.HTTPError as e:
            raise NetworkError(self.url, str(e) or type(e).__name__) from e

        if not resp.is_success:
            raise StatusError(self.url, resp.status_code)

        try:
            body = resp.json()
        except ValueError as e:
            raise ParseError("pool feed", f"body is not JSON ({e})") from e

        pools = parse_pools(body)
        logger.info(f"Fetched {len(pools)} pools from {self.url}")
        return pools
