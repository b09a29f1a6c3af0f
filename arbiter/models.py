from __future__ import annotations

import re
from typing import Any, Dict, List, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_UINT_RE = re.compile(r"^\d+$")


class Pool(BaseModel):
    """One DefiLlama yields record, reduced to the fields the agent ranks on."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    pool: str = Field(..., description="Opaque DefiLlama pool id")
    chain: str
    project: str
    symbol: str
    # strict: numeric strings and booleans are schema violations, not yields
    apy: float = Field(default=0.0, strict=True, description="Nominal APY in %")
    tvl_usd: float = Field(default=0.0, strict=True, validation_alias=AliasChoices("tvlUsd", "tvl_usd"))
    apy_reported: bool = Field(default=True, exclude=True, description="False when the feed had no apy figure")

    @model_validator(mode="before")
    @classmethod
    def _flag_missing_apy(cls, data: Any) -> Any:
        if isinstance(data, dict) and "apy_reported" not in data:
            data = {**data, "apy_reported": data.get("apy") is not None}
        return data

    @field_validator("apy", "tvl_usd", mode="before")
    @classmethod
    def _null_as_zero(cls, v: Any) -> Any:
        # The feed sends null for pools it has no figure for
        return 0.0 if v is None else v


class ProofResult(BaseModel):
    """Groth16 proof as emitted by the prover script.

    The shapes of ``a``, ``b`` and ``c`` are fixed by Groth16; the length of
    ``public_inputs`` depends on the circuit. Every element is a decimal
    field-element string and is never coerced from a JSON number.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    policy_hash: str = Field(..., alias="policyHash")
    a: Tuple[str, str]
    b: Tuple[Tuple[str, str], Tuple[str, str]]
    c: Tuple[str, str]
    public_inputs: List[str] = Field(..., alias="publicInputs")


class ProofRequest(BaseModel):
    vault: str = Field(..., description="Safe/vault address, 0x-prefixed")
    nonce: int = Field(..., ge=0)
    deadline: int = Field(default=0, ge=0)
    allow_bitmap: int = Field(..., ge=0)
    caps_bps: str = Field(..., description="Comma-separated caps in bps, e.g. 10000,0,0,0,0")
    allocations: str = Field(..., description="Comma-separated allocations in bps, e.g. 10000,0,0,0,0")

    @field_validator("vault")
    @classmethod
    def _check_address(cls, v: str) -> str:
        v = v.strip()
        if not _ADDRESS_RE.match(v):
            raise ValueError(f"bad address: {v}")
        return v

    @field_validator("caps_bps", "allocations")
    @classmethod
    def _check_csv(cls, v: str) -> str:
        parts = [s.strip() for s in v.split(",")]
        if not parts or not all(_UINT_RE.match(p) for p in parts):
            raise ValueError(f"expected comma-separated non-negative integers, got {v!r}")
        return ",".join(parts)

    def to_args(self) -> List[str]:
        return [
            "--vault", self.vault,
            "--nonce", str(self.nonce),
            "--deadline", str(self.deadline),
            "--allowBitmap", str(self.allow_bitmap),
            "--capsBps", self.caps_bps,
            "--allocations", self.allocations,
        ]


class SelectionResponse(BaseModel):
    chain: str
    stable_hint: str
    top_k: int
    count: int
    pools: List[Pool]


class ProtocolApr(BaseModel):
    apr: float | None = Field(default=None, description="APY of the deepest matching pool in %")
    project: str | None = None
    symbol: str | None = None
    tvl_usd: float | None = None
    candidates: int = 0
    note: str | None = None


class ProtocolAprResponse(BaseModel):
    chain: str
    token: str
    data: Dict[str, ProtocolApr]
