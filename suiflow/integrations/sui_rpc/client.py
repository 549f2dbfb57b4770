from __future__ import annotations

import base64
import itertools
import logging
from typing import Any, Dict, Optional, Sequence

import httpx

from suiflow.errors import UpstreamRpcError
from suiflow.integrations.protocols import SuiSigner, TransactionLike
from suiflow.settings import WorkflowSettings, get_settings, parse_network

from .config import get_rpc_endpoint

logger = logging.getLogger(__name__)

_EXECUTE_OPTIONS = {
    "showEffects": True,
    "showEvents": True,
    "showObjectChanges": True,
    "showBalanceChanges": True,
}


class SuiJsonRpcClient:
    """JSON-RPC 2.0 wrapper around a Sui fullnode."""

    def __init__(
        self,
        network: Optional[str] = None,
        rpc_url: Optional[str] = None,
        *,
        settings: WorkflowSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self.network = parse_network(network, self._settings.default_network)
        self.url = get_rpc_endpoint(self.network, rpc_url, self._settings)
        self._client = client or httpx.AsyncClient(timeout=self._settings.rpc_timeout)
        self._ids = itertools.count(1)

    async def __aenter__(self) -> "SuiJsonRpcClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ---- low-level helpers -------------------------------------------------
    async def _call(self, method: str, params: Sequence[Any]) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": list(params),
        }
        try:
            response = await self._client.post(self.url, json=payload)
        except httpx.HTTPError as exc:
            raise UpstreamRpcError(f"Sui RPC {method} failed: {exc}", source="sui-rpc") from exc

        if response.status_code >= 400:
            raise UpstreamRpcError(
                f"Sui RPC {method} failed ({response.status_code}): {response.text}",
                source="sui-rpc",
            )
        try:
            body = response.json()
        except ValueError as exc:
            raise UpstreamRpcError(f"Sui RPC {method} returned invalid JSON", source="sui-rpc") from exc

        error = body.get("error") if isinstance(body, dict) else None
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise UpstreamRpcError(f"Sui RPC {method} error: {message}", source="sui-rpc")
        logger.debug("Sui RPC %s ok (network=%s)", method, self.network)
        return body.get("result")

    # ---- reads --------------------------------------------------------------
    async def get_coins(
        self,
        owner: str,
        coin_type: str,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Dict[str, Any]:
        result = await self._call("suix_getCoins", [owner, coin_type, cursor, limit])
        return result or {"data": [], "hasNextPage": False, "nextCursor": None}

    async def get_object(self, object_id: str) -> Dict[str, Any]:
        result = await self._call(
            "sui_getObject",
            [object_id, {"showType": True, "showContent": True, "showOwner": True}],
        )
        return result or {}

    async def get_coin_metadata(self, coin_type: str) -> Optional[Dict[str, Any]]:
        return await self._call("suix_getCoinMetadata", [coin_type])

    # ---- simulation / submission -------------------------------------------
    async def dev_inspect_transaction_block(self, sender: str, tx: TransactionLike) -> Dict[str, Any]:
        kind_bytes = await tx.build(client=self, only_transaction_kind=True)
        encoded = base64.b64encode(kind_bytes).decode("ascii")
        return await self._call("sui_devInspectTransactionBlock", [sender, encoded])

    async def execute_transaction_block(
        self,
        tx_bytes_b64: str,
        signatures: Sequence[str],
        *,
        request_type: str,
    ) -> Dict[str, Any]:
        return await self._call(
            "sui_executeTransactionBlock",
            [tx_bytes_b64, list(signatures), _EXECUTE_OPTIONS, request_type],
        )

    async def sign_and_execute_transaction(
        self,
        signer: SuiSigner,
        tx: TransactionLike,
        *,
        request_type: str,
    ) -> Dict[str, Any]:
        tx_bytes = await tx.build(client=self)
        signature = signer.sign_transaction(tx_bytes)
        encoded = base64.b64encode(tx_bytes).decode("ascii")
        return await self.execute_transaction_block(encoded, [signature], request_type=request_type)
