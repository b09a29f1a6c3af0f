from __future__ import annotations

import logging
from typing import List

from arbiter.clients.defillama import PoolFetcher
from arbiter.errors import ArbiterError, PipelineError
from arbiter.models import Pool
from arbiter.services.selector import select_top_pools

logger = logging.getLogger(__name__)


async def run_pipeline(fetcher: PoolFetcher, chain: str, stable_hint: str, top_k: int) -> List[Pool]:
    """Fetch the catalog, then shortlist it. Each run is independent."""
    try:
        pools = await fetcher.fetch_pools()
    except ArbiterError as e:
        raise PipelineError("fetch", e) from e

    selected = select_top_pools(pools, chain, stable_hint, top_k)
    logger.info(f"Selected {len(selected)}/{len(pools)} pools (chain={chain}, hint={stable_hint}, top_k={top_k})")

    # TODO: map the shortlist to a per-protocol bps allocation vector and pass
    # it to ProofService.generate_proof once the Router/ProofGate addresses exist.
    return selected


def format_selection(selected: List[Pool]) -> str:
    lines = [f"Selected {len(selected)} pool(s):"]
    for p in selected:
        lines.append(f"- {p.project} | {p.symbol} | apy={p.apy:.2f}% | tvl=${p.tvl_usd:.0f} | pool={p.pool}")
    return "\n".join(lines)
