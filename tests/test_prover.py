"""Tests for the subprocess-backed Groth16 prover client."""

from __future__ import annotations

import asyncio
import json
import shlex
import sys
from unittest.mock import AsyncMock, patch

import pytest
from pydantic import ValidationError

from arbiter.clients.prover import SubprocessProofService, parse_proof_output
from arbiter.config import Settings
from arbiter.errors import ParseError, ProcessSpawnError, ProverExecutionError, ProverTimeoutError
from arbiter.models import ProofRequest
from conftest import PROOF_JSON, VAULT


class FakeProcess:
    def __init__(self, returncode: int = 0, stdout: bytes = b"", stderr: bytes = b"", delay: float = 0.0):
        self.returncode = returncode
        self._stdout = stdout
        self._stderr = stderr
        self._delay = delay
        self.killed = False

    async def communicate(self):
        if self._delay:
            await asyncio.sleep(self._delay)
        return self._stdout, self._stderr

    def kill(self):
        self.killed = True

    async def wait(self):
        return self.returncode


@pytest.fixture
def request_():
    return ProofRequest(
        vault=VAULT,
        nonce=3,
        deadline=0,
        allow_bitmap=1,
        caps_bps="10000,0,0,0,0",
        allocations="10000,0,0,0,0",
    )


def _spawn(proc: FakeProcess):
    return patch("asyncio.create_subprocess_exec", new=AsyncMock(return_value=proc))


def test_build_command_matches_argument_contract(request_):
    service = SubprocessProofService(command="node ../zk/scripts/prove.mjs")

    assert service.build_command(request_) == (
        f"node ../zk/scripts/prove.mjs --vault {VAULT} --nonce 3 --deadline 0 "
        "--allowBitmap 1 --capsBps 10000,0,0,0,0 --allocations 10000,0,0,0,0"
    )


async def test_success_returns_validated_proof(request_):
    proc = FakeProcess(stdout=json.dumps(PROOF_JSON, indent=2).encode())
    service = SubprocessProofService(command="prove")

    with _spawn(proc) as spawn:
        result = await service.generate_proof(request_)

    assert spawn.await_count == 1
    assert spawn.await_args.args == ("bash", "-lc", service.build_command(request_))
    assert result.policy_hash == "1234567890"
    assert result.a == ("1", "2")
    assert result.b == (("3", "4"), ("5", "6"))
    assert result.c == ("7", "8")
    assert result.public_inputs == ["1234567890", "42", "0", "1", "10000"]


async def test_nonzero_exit_surfaces_stderr(request_):
    proc = FakeProcess(returncode=1, stdout=b"", stderr=b"bad nonce\n")

    with _spawn(proc), pytest.raises(ProverExecutionError) as exc:
        await SubprocessProofService(command="prove").generate_proof(request_)

    assert exc.value.returncode == 1
    assert "bad nonce" in exc.value.stderr
    assert "bad nonce" in str(exc.value)


async def test_malformed_json_is_parse_error(request_):
    proc = FakeProcess(stdout=b"{not json")

    with _spawn(proc), pytest.raises(ParseError) as exc:
        await SubprocessProofService(command="prove").generate_proof(request_)

    assert exc.value.source == "prover output"


async def test_spawn_failure_is_process_spawn_error(request_):
    boom = AsyncMock(side_effect=FileNotFoundError(2, "No such file or directory"))

    with patch("asyncio.create_subprocess_exec", new=boom), pytest.raises(ProcessSpawnError) as exc:
        await SubprocessProofService(command="prove").generate_proof(request_)

    assert exc.value.command == "prove"


async def test_timeout_kills_prover(request_):
    proc = FakeProcess(stdout=json.dumps(PROOF_JSON).encode(), delay=5.0)

    with _spawn(proc), pytest.raises(ProverTimeoutError) as exc:
        await SubprocessProofService(command="prove").generate_proof(request_, timeout=0.05)

    assert proc.killed
    assert exc.value.timeout == 0.05


async def test_real_subprocess_round_trip(request_):
    script = "import json, sys; print(json.dumps(%r)); print(sys.argv[1:], file=sys.stderr)" % PROOF_JSON
    command = f"{shlex.quote(sys.executable)} -c {shlex.quote(script)}"

    result = await SubprocessProofService(command=command).generate_proof(request_)

    assert result.policy_hash == PROOF_JSON["policyHash"]


async def test_real_subprocess_failure(request_):
    script = "import sys; sys.stderr.write('bad nonce'); sys.exit(3)"
    command = f"{shlex.quote(sys.executable)} -c {shlex.quote(script)}"

    with pytest.raises(ProverExecutionError) as exc:
        await SubprocessProofService(command=command).generate_proof(request_)

    assert exc.value.returncode == 3
    assert exc.value.stderr == "bad nonce"


async def test_missing_prover_binary_is_spawn_error(request_):
    with pytest.raises(ProcessSpawnError) as exc:
        await SubprocessProofService(command="/nonexistent/prover").generate_proof(request_)

    assert exc.value.command == "/nonexistent/prover"
    assert "/nonexistent/prover" in exc.value.reason


async def test_status_127_is_spawn_error(request_):
    proc = FakeProcess(returncode=127, stderr=b"bash: line 1: node: command not found\n")

    with _spawn(proc), pytest.raises(ProcessSpawnError) as exc:
        await SubprocessProofService(command="node prove.mjs").generate_proof(request_)

    assert "command not found" in exc.value.reason


@pytest.mark.parametrize(
    "mutate",
    [
        lambda d: d.pop("policyHash"),
        lambda d: d.__setitem__("a", ["1"]),
        lambda d: d.__setitem__("a", ["1", "2", "3"]),
        lambda d: d.__setitem__("b", [["1", "2"], ["3"]]),
        lambda d: d.__setitem__("b", [["1", "2"]]),
        lambda d: d.__setitem__("c", [1, 2]),
        lambda d: d.__setitem__("publicInputs", "123"),
        lambda d: d.__setitem__("policyHash", 123),
    ],
)
def test_schema_violations_rejected(proof_json, mutate):
    mutate(proof_json)

    with pytest.raises(ParseError):
        parse_proof_output(json.dumps(proof_json))


def test_public_inputs_length_is_free(proof_json):
    proof_json["publicInputs"] = []

    assert parse_proof_output(json.dumps(proof_json)).public_inputs == []


def test_empty_stdout_is_parse_error():
    with pytest.raises(ParseError):
        parse_proof_output("")


def test_from_settings():
    service = SubprocessProofService.from_settings(Settings(ZK_PROVER_CMD="  ", ZK_PROVER_TIMEOUT_SECONDS=60))

    assert service.command == "node ../zk/scripts/prove.mjs"
    assert service.timeout == 60


def test_prover_command_read_from_environment(monkeypatch):
    monkeypatch.setenv("ZK_PROVER_CMD", "myprover --flag")
    monkeypatch.setenv("ZK_PROVER_TIMEOUT_SECONDS", "90")

    service = SubprocessProofService.from_settings(Settings())

    assert service.command == "myprover --flag"
    assert service.timeout == 90


@pytest.mark.parametrize(
    "field,value",
    [
        ("vault", "0x1234"),
        ("vault", "742C5c2eDF43e426C4bb9caCBb8D99b8C1f29b7d"),
        ("vault", f"{VAULT}; rm -rf /"),
        ("caps_bps", "10000,0,x"),
        ("allocations", "10000;echo pwned"),
        ("allocations", ""),
        ("nonce", -1),
    ],
)
def test_request_validation(field, value):
    data = dict(vault=VAULT, nonce=0, deadline=0, allow_bitmap=1, caps_bps="10000,0,0,0,0", allocations="10000,0,0,0,0")
    data[field] = value

    with pytest.raises(ValidationError):
        ProofRequest(**data)


def test_request_csv_whitespace_is_normalized():
    req = ProofRequest(vault=VAULT, nonce=0, allow_bitmap=1, caps_bps="10000, 0 ,0,0,0", allocations="10000,0,0,0,0")

    assert req.caps_bps == "10000,0,0,0,0"
