from __future__ import annotations
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Tuple

import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict

CHAINS_PATH = Path(__file__).resolve().parent.parent / "data" / "chains.yaml"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Data provider
    NODIT_API_KEY: str | None = None
    CHAINS_PATH: str = str(CHAINS_PATH)
    PROVIDER_TIMEOUT: float | None = None  # seconds; None waits forever

    # LLM (intent extraction + narrator)
    OPENAI_API_KEY: str | None = None
    LLM_MODEL: str = "gpt-4o-mini"
    LLM_TIMEOUT: int = 12             # seconds
    INTENT_MAX_TOKENS: int = 300
    LLM_MAX_TOKENS: int = 400
    NARRATOR_MODE: str = "auto"       # "auto" | "llm" | "deterministic"

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]


@dataclass(frozen=True)
class ChainDef:
    name: str
    family: str             # "evm" | "xrpl"
    web3_url: str
    node_url: Optional[str]


@dataclass(frozen=True)
class ProviderConfig:
    """Immutable view of the chain table plus the provider credential."""
    chains: Tuple[ChainDef, ...]
    api_key: Optional[str] = None
    timeout: Optional[float] = None

    @property
    def default_chain(self) -> str:
        return self.chains[0].name

    @property
    def chain_names(self) -> Tuple[str, ...]:
        return tuple(c.name for c in self.chains)

    def get(self, name: str) -> Optional[ChainDef]:
        for c in self.chains:
            if c.name == name:
                return c
        return None


def load_chains(path: Path) -> Tuple[ChainDef, ...]:
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    chains = []
    for c in raw.get("chains", []):
        chains.append(ChainDef(
            name=c["name"], family=c.get("family", "evm"),
            web3_url=c["web3_url"], node_url=c.get("node_url"),
        ))
    if not chains:
        raise ValueError(f"no chains defined in {path}")
    return tuple(chains)


def build_provider_config(settings: Settings) -> ProviderConfig:
    return ProviderConfig(
        chains=load_chains(Path(settings.CHAINS_PATH)),
        api_key=settings.NODIT_API_KEY,
        timeout=settings.PROVIDER_TIMEOUT,
    )


@lru_cache(maxsize=1)
def default_chains() -> Tuple[ChainDef, ...]:
    return load_chains(CHAINS_PATH)


settings = Settings()
