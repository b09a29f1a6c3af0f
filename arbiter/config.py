from __future__ import annotations

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


DEFAULT_POOLS_URL = "https://yields.llama.fi/pools"
DEFAULT_PROVER_CMD = "node ../zk/scripts/prove.mjs"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Runtime
    ENV: str = Field(default="development")
    LOG_LEVEL: str = Field(default="INFO")
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)

    # DefiLlama yields feed
    LLAMA_POOLS_URL: str = Field(default=DEFAULT_POOLS_URL)
    LLAMA_FETCH_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0)

    # Groth16 prover (shell invocation, arguments are appended)
    ZK_PROVER_CMD: str = Field(default=DEFAULT_PROVER_CMD)
    ZK_PROVER_TIMEOUT_SECONDS: float | None = Field(default=None, gt=0)  # None = wait forever

    def prover_command(self) -> str:
        # Blank override falls back to the repo-relative script
        return self.ZK_PROVER_CMD.strip() or DEFAULT_PROVER_CMD


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
