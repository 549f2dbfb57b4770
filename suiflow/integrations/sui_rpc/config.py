from __future__ import annotations

from typing import Optional
from urllib.parse import quote

from suiflow.settings import WorkflowSettings, get_settings, parse_network

_FULLNODE_URLS = {
    "mainnet": "https://fullnode.mainnet.sui.io:443",
    "testnet": "https://fullnode.testnet.sui.io:443",
    "devnet": "https://fullnode.devnet.sui.io:443",
    "localnet": "http://127.0.0.1:9000",
}

_EXPLORER_ORIGINS = {
    "mainnet": "https://suivision.xyz",
    "testnet": "https://testnet.suivision.xyz",
    "devnet": "https://devnet.suivision.xyz",
}


def get_rpc_endpoint(
    network: Optional[str],
    rpc_url: Optional[str] = None,
    settings: WorkflowSettings | None = None,
) -> str:
    """Explicit URL, then env overrides, then the public fullnode."""

    explicit = (rpc_url or "").strip()
    if explicit:
        return explicit
    resolved = parse_network(network)
    configured = (settings or get_settings()).rpc_url_for(resolved)
    if configured:
        return configured
    return _FULLNODE_URLS[resolved]


def get_explorer_transaction_url(digest: str, network: Optional[str]) -> Optional[str]:
    origin = _EXPLORER_ORIGINS.get(parse_network(network))
    if origin is None:
        return None
    return f"{origin}/txblock/{quote(digest, safe='')}"


def resolve_request_type(wait_for_local_execution: Optional[bool]) -> str:
    if wait_for_local_execution is False:
        return "WaitForEffectsCert"
    return "WaitForLocalExecution"
