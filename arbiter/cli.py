"""Run one fetch + select cycle and print the shortlist.

Usage:
    python -m arbiter [--top-k 7] [--chain Mantle] [--stable-hint USDC]

Environment:
    LLAMA_POOLS_URL - override the DefiLlama pools endpoint
    ZK_PROVER_CMD   - override the prover base invocation
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from arbiter.clients.defillama import PoolFetcher
from arbiter.config import Settings, get_settings
from arbiter.errors import PipelineError
from arbiter.http import HttpClient
from arbiter.models import Pool
from arbiter.pipeline import format_selection, run_pipeline
from arbiter.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def _non_negative_int(value: str) -> int:
    n = int(value)
    if n < 0:
        raise argparse.ArgumentTypeError("must be >= 0")
    return n


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="arbiter", description="Arbiter agent: pick top-yielding pools")
    parser.add_argument("--top-k", type=_non_negative_int, default=7, help="Pick up to K highest-yielding pools after filtering (default: 7)")
    parser.add_argument("--chain", default="Mantle", help="Only keep pools on this DefiLlama chain name (default: Mantle)")
    parser.add_argument("--stable-hint", default="USDC", help="Only keep pools whose symbol contains this (default: USDC)")
    return parser


async def _run(args: argparse.Namespace, settings: Settings) -> List[Pool]:
    http = HttpClient(timeout=settings.LLAMA_FETCH_TIMEOUT_SECONDS)
    try:
        fetcher = PoolFetcher.from_settings(http, settings)
        return await run_pipeline(fetcher, args.chain, args.stable_hint, args.top_k)
    finally:
        await http.aclose()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)

    try:
        selected = asyncio.run(_run(args, settings))
    except PipelineError as e:
        logger.error(f"Run failed at {e.stage}: {e.cause}")
        return 1

    print(format_selection(selected))
    return 0


if __name__ == "__main__":
    sys.exit(main())
