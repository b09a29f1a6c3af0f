from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from arbiter.models import Pool, ProtocolApr
from arbiter.services.selector import normalize

# DefiLlama "project" ids do not always match protocol page slugs, so each
# protocol lists the yields dataset identifiers it is known under.
PROTOCOLS: List[Tuple[str, Tuple[str, ...]]] = [
    ("ondo", ("ondo-finance", "ondo")),
    ("agni", ("agni-finance", "agni")),
    ("stargate", ("stargate-v1", "stargate")),
    ("pendle", ("pendle", "pendle-finance")),
    ("init", ("init-capital", "init capital", "init")),
]


def matches_protocol(project: str, llama_projects: Sequence[str]) -> bool:
    p = normalize(project)
    return any(p == normalize(x) or normalize(x) in p for x in llama_projects)


def summarize_protocol_aprs(pools: Sequence[Pool], chain: str = "Mantle", stable_hint: str = "USDC") -> Dict[str, ProtocolApr]:
    """Best candidate pool per tracked protocol, picked by deepest TVL."""
    chain_lc = normalize(chain)
    hint_lc = normalize(stable_hint)
    on_chain = [p for p in pools if normalize(p.chain) == chain_lc and hint_lc in normalize(p.symbol)]

    out: Dict[str, ProtocolApr] = {}
    for key, llama_projects in PROTOCOLS:
        candidates = [p for p in on_chain if matches_protocol(p.project, llama_projects)]
        if not candidates:
            out[key] = ProtocolApr(
                candidates=0,
                note=f"No {chain}+{stable_hint} pool found in DefiLlama yields dataset for this protocol.",
            )
            continue
        best = max(candidates, key=lambda p: p.tvl_usd)
        out[key] = ProtocolApr(
            apr=best.apy if best.apy_reported else None,
            project=best.project,
            symbol=best.symbol,
            tvl_usd=best.tvl_usd,
            candidates=len(candidates),
        )
    return out
