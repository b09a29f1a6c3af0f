from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, HTTPException, Query, Request

from arbiter.clients.defillama import PoolFetcher
from arbiter.clients.prover import ProofService, SubprocessProofService
from arbiter.config import get_settings
from arbiter.errors import FetchError, ParseError, ProcessSpawnError, ProverError
from arbiter.http import HttpClient
from arbiter.models import ProofRequest, ProofResult, ProtocolAprResponse, SelectionResponse
from arbiter.services.protocols import summarize_protocol_aprs
from arbiter.services.selector import select_top_pools
from arbiter.utils.logging import setup_logging

app = FastAPI(title="Arbiter Yield Agent", version="0.1.0")

logger = logging.getLogger(__name__)


@app.on_event("startup")
async def startup_event() -> None:
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    app.state.http = HttpClient(timeout=settings.LLAMA_FETCH_TIMEOUT_SECONDS)
    app.state.fetcher = PoolFetcher.from_settings(app.state.http, settings)
    app.state.prover = SubprocessProofService.from_settings(settings)
    logger.info(f"Arbiter API ready (feed={settings.LLAMA_POOLS_URL}, env={settings.ENV})")


@app.on_event("shutdown")
async def shutdown_event() -> None:
    if getattr(app.state, "http", None):
        await app.state.http.aclose()


def get_fetcher(request: Request) -> PoolFetcher:
    return request.app.state.fetcher


def get_prover(request: Request) -> ProofService:
    return request.app.state.prover


async def _load_pools(fetcher: PoolFetcher):
    try:
        return await fetcher.fetch_pools()
    except (FetchError, ParseError) as e:
        logger.warning(f"Pool fetch failed: {e}")
        raise HTTPException(status_code=502, detail=str(e)) from e


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/api/pools/top", response_model=SelectionResponse)
async def get_top_pools(
    chain: str = Query("Mantle", min_length=1),
    stable_hint: str = Query("USDC", min_length=1),
    top_k: int = Query(7, ge=0, le=100),
    fetcher: PoolFetcher = Depends(get_fetcher),
):
    pools = await _load_pools(fetcher)
    selected = select_top_pools(pools, chain, stable_hint, top_k)
    return SelectionResponse(chain=chain, stable_hint=stable_hint, top_k=top_k, count=len(selected), pools=selected)


@app.get("/api/protocols/apr", response_model=ProtocolAprResponse)
async def get_protocol_aprs(
    chain: str = Query("Mantle", min_length=1),
    stable_hint: str = Query("USDC", min_length=1),
    fetcher: PoolFetcher = Depends(get_fetcher),
):
    pools = await _load_pools(fetcher)
    data = summarize_protocol_aprs(pools, chain=chain, stable_hint=stable_hint)
    return ProtocolAprResponse(chain=chain.lower(), token=stable_hint, data=data)


@app.post("/api/proofs", response_model=ProofResult)
async def post_proof(req: ProofRequest, prover: ProofService = Depends(get_prover)):
    try:
        return await prover.generate_proof(req)
    except ProcessSpawnError as e:
        logger.error(f"Prover unavailable: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e
    except (ProverError, ParseError) as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
