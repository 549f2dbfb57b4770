"""Dry-run a built transaction against a Sui fullnode."""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from suiflow.errors import SimulationFailedError, UpstreamRpcError
from suiflow.integrations.protocols import SuiRpc, TransactionLike

logger = logging.getLogger(__name__)


@dataclass
class SimulationOutcome:
    status: str
    error: Optional[str] = None
    unsigned_payload: Dict[str, Any] = field(default_factory=dict)
    raw: Any = None


def simulation_status(result: Any) -> Tuple[str, Optional[str]]:
    """Read ``effects.status`` from a dev-inspect or execute response."""

    if not isinstance(result, dict):
        return "unknown", None
    effects = result.get("effects") or {}
    status_block = effects.get("status") or {}
    status = status_block.get("status") or "unknown"
    error = status_block.get("error") or result.get("error")
    return status, error


async def export_unsigned_payload(tx: TransactionLike, rpc: SuiRpc) -> Dict[str, Any]:
    """Serialize ``tx`` for external signing; failures are reported, not raised."""

    try:
        tx_bytes = await tx.build(client=rpc)
    except Exception as exc:
        logger.warning("Could not serialize simulated transaction: %s", exc)
        return {"txBytesBase64": None, "serializeError": str(exc)}
    return {"txBytesBase64": base64.b64encode(tx_bytes).decode("ascii"), "serializeError": None}


async def run_simulation(
    rpc: SuiRpc,
    tx: TransactionLike,
    *,
    signer_address: str,
    intent_type: str,
) -> SimulationOutcome:
    tx.set_sender(signer_address)
    try:
        result = await rpc.dev_inspect_transaction_block(signer_address, tx)
    except UpstreamRpcError as exc:
        raise SimulationFailedError(
            f"Simulation failed: {exc} (intent={intent_type})",
            intent_type=intent_type,
            status="error",
        ) from exc

    status, error = simulation_status(result)
    if status != "success":
        raise SimulationFailedError(
            f"Simulation failed: {error or 'unknown error'} (intent={intent_type})",
            intent_type=intent_type,
            status=status,
        )
    logger.info("Simulation succeeded for %s (sender=%s)", intent_type, signer_address)
    unsigned_payload = await export_unsigned_payload(tx, rpc)
    return SimulationOutcome(status=status, error=error, unsigned_payload=unsigned_payload, raw=result)
