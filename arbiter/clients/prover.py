from __future__ import annotations

import asyncio
import contextlib
import logging
import shlex
from typing import Protocol

from pydantic import ValidationError

from arbiter.config import DEFAULT_PROVER_CMD, Settings
from arbiter.errors import ParseError, ProcessSpawnError, ProverExecutionError, ProverTimeoutError
from arbiter.models import ProofRequest, ProofResult

logger = logging.getLogger(__name__)

# bash exit status when the base command is not on PATH
COMMAND_NOT_FOUND = 127


class ProofService(Protocol):
    async def generate_proof(self, request: ProofRequest) -> ProofResult:
        ...


def parse_proof_output(stdout: str) -> ProofResult:
    try:
        return ProofResult.model_validate_json(stdout)
    except ValidationError as e:
        raise ParseError("prover output", str(e)) from e


class SubprocessProofService:
    """Generate Groth16 proofs by running the Node prover (snarkjs) under `bash -lc`.

    The base command may carry its own flags; the request is appended as
    ``--vault .. --nonce .. --deadline .. --allowBitmap .. --capsBps ..
    --allocations ..``. One process is spawned per proof and nothing is
    retried. Without a timeout the call waits for the prover indefinitely.
    """

    def __init__(self, command: str = DEFAULT_PROVER_CMD, timeout: float | None = None):
        self.command = command
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SubprocessProofService":
        return cls(command=settings.prover_command(), timeout=settings.ZK_PROVER_TIMEOUT_SECONDS)

    def build_command(self, request: ProofRequest) -> str:
        return " ".join([self.command, *(shlex.quote(arg) for arg in request.to_args())])

    async def generate_proof(self, request: ProofRequest, timeout: float | None = None) -> ProofResult:
        cmd = self.build_command(request)
        limit = timeout if timeout is not None else self.timeout
        logger.debug(f"Running prover: {cmd}")

        try:
            # Login shell, so PATH managers like nvm put `node` in reach
            proc = await asyncio.create_subprocess_exec(
                "bash",
                "-lc",
                cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ProcessSpawnError(self.command, str(e)) from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=limit)
        except asyncio.TimeoutError as e:
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()
            logger.warning(f"Prover killed after {limit}s")
            raise ProverTimeoutError(limit) from e

        err = stderr.decode("utf-8", errors="replace")
        if proc.returncode == COMMAND_NOT_FOUND:
            raise ProcessSpawnError(self.command, err.strip() or "command not found")
        if proc.returncode != 0:
            logger.warning(f"Prover exited with status {proc.returncode}")
            raise ProverExecutionError(proc.returncode, err)

        result = parse_proof_output(stdout.decode("utf-8", errors="replace"))
        logger.info(f"Proof generated (policyHash={result.policy_hash}, public inputs={len(result.public_inputs)})")
        return result
