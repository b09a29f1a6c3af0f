from __future__ import annotations

import math
from typing import List, Sequence

from arbiter.models import Pool

# Sanity filters against illiquid pools and broken/incentive-inflated APYs
MIN_TVL_USD = 50_000.0
MAX_APY = 1_000_000.0


def normalize(s: str) -> str:
    return s.strip().lower()


def _is_sane(pool: Pool) -> bool:
    if pool.tvl_usd < MIN_TVL_USD:
        return False
    return math.isfinite(pool.apy) and 0.0 < pool.apy < MAX_APY


def select_top_pools(pools: Sequence[Pool], chain: str, stable_hint: str, top_k: int) -> List[Pool]:
    """Shortlist the highest-APY pools on ``chain`` whose symbol mentions ``stable_hint``.

    Chain match is exact and symbol match is a substring, both case-insensitive.
    Pools below ``MIN_TVL_USD`` or with a non-finite, non-positive or
    ``>= MAX_APY`` APY are dropped. The result is ordered by APY descending,
    equal APYs by pool id, and holds at most ``top_k`` pools.
    """
    if top_k < 0:
        raise ValueError("top_k must be >= 0")

    chain_lc = normalize(chain)
    hint_lc = normalize(stable_hint)

    candidates = [
        p
        for p in pools
        if normalize(p.chain) == chain_lc and hint_lc in normalize(p.symbol) and _is_sane(p)
    ]
    candidates.sort(key=lambda p: (-p.apy, p.pool))
    return candidates[:top_k]
