from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

SUPPORTED_NETWORKS = ("mainnet", "testnet", "devnet", "localnet")

_NETWORK_ALIASES = {
    "mainnet-beta": "mainnet",
    "main": "mainnet",
    "test": "testnet",
    "dev": "devnet",
    "local": "localnet",
}


def parse_network(value: Optional[str], default: str = "mainnet") -> str:
    """Return the canonical Sui network name, falling back to ``default``."""

    key = (value or "").strip().lower()
    if key in SUPPORTED_NETWORKS:
        return key
    if key in _NETWORK_ALIASES:
        return _NETWORK_ALIASES[key]
    return default


def _optional_env(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None:
        return None
    raw = raw.strip()
    return raw or None


@dataclass(slots=True)
class WorkflowSettings:
    """Runtime configuration for the Sui workflow tools."""

    default_network: str = "mainnet"
    rpc_url: Optional[str] = None
    rpc_timeout: float = 30.0
    private_key: Optional[str] = None
    wallet_address: Optional[str] = None
    session_ttl_seconds: float = 86400.0
    session_max_entries: int = 1024

    @classmethod
    def load(cls) -> "WorkflowSettings":
        load_dotenv()
        return cls(
            default_network=parse_network(os.getenv("SUI_NETWORK"), "mainnet"),
            rpc_url=_optional_env("SUI_RPC_URL"),
            rpc_timeout=float(os.getenv("SUI_RPC_TIMEOUT", "30")),
            private_key=_optional_env("SUI_PRIVATE_KEY"),
            wallet_address=_optional_env("SUI_WALLET_ADDRESS"),
            session_ttl_seconds=float(os.getenv("SUI_WORKFLOW_SESSION_TTL", "86400")),
            session_max_entries=int(os.getenv("SUI_WORKFLOW_SESSION_MAX", "1024")),
        )

    def rpc_url_for(self, network: str) -> Optional[str]:
        """Per-network override (``SUI_<NETWORK>_RPC_URL``) first, then ``SUI_RPC_URL``."""

        return _optional_env(f"SUI_{network.upper()}_RPC_URL") or self.rpc_url


@lru_cache(maxsize=1)
def get_settings() -> WorkflowSettings:
    """Memoized accessor so callers share a single settings instance."""

    return WorkflowSettings.load()
