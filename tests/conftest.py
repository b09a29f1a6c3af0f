"""Shared test fixtures for pytest."""

from __future__ import annotations

from typing import Any, Dict

import pytest

from arbiter.models import Pool

VAULT = "0x742C5c2eDF43e426C4bb9caCBb8D99b8C1f29b7d"

PROOF_JSON = {
    "policyHash": "1234567890",
    "a": ["1", "2"],
    "b": [["3", "4"], ["5", "6"]],
    "c": ["7", "8"],
    "publicInputs": ["1234567890", "42", "0", "1", "10000"],
}


def make_pool(pool: str = "p", chain: str = "Mantle", symbol: str = "USDC", apy: float = 10.0, tvl_usd: float = 100_000.0, project: str = "agni-finance") -> Pool:
    return Pool(pool=pool, chain=chain, project=project, symbol=symbol, apy=apy, tvl_usd=tvl_usd)


@pytest.fixture
def feed_records() -> list[Dict[str, Any]]:
    """A small DefiLlama /pools payload with the quirks the live feed has."""
    return [
        {"pool": "a1", "chain": "Mantle", "project": "agni-finance", "symbol": "USDC-USDT", "apy": 12.5, "tvlUsd": 250_000, "apyBase": 10.0, "stablecoin": True},
        {"pool": "a2", "chain": "Mantle", "project": "init-capital", "symbol": "USDC", "apy": 7.1, "tvlUsd": 2_000_000},
        {"pool": "a3", "chain": "Base", "project": "aave-v3", "symbol": "USDC", "apy": 5.0, "tvlUsd": 9_000_000},
        {"pool": "a4", "chain": "Mantle", "project": "stargate-v1", "symbol": "USDC", "apy": None, "tvlUsd": 800_000},
        {"pool": "a5", "chain": "Mantle", "project": "ondo-finance", "symbol": "USDY"},
    ]


@pytest.fixture
def proof_json() -> Dict[str, Any]:
    return {**PROOF_JSON}
