"""Submit a workflow intent on chain.

Three strategies, tried in order:

1. a caller-supplied signed payload is submitted as is;
2. the transaction built during ``simulate`` is re-signed and submitted when
   the run, network, intent and signer all still match;
3. otherwise the intent is rebuilt and sent through its single-shot executor.

Every strategy returns the same envelope.
"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional

from suiflow.errors import (
    MainnetGuardError,
    SignerMismatchError,
    UpstreamRpcError,
    ValidationError,
    WorkflowError,
)
from suiflow.integrations.protocols import SuiRpc, SuiSigner
from suiflow.integrations.sui_rpc.config import get_explorer_transaction_url
from suiflow.workflow.builders import BUILDERS, BuildContext, Builder
from suiflow.workflow.intent import SuiIntent
from suiflow.workflow.params import WorkflowParams
from suiflow.workflow.simulation import simulation_status
from suiflow.workflow.storage import WorkflowSession

logger = logging.getLogger(__name__)

EXECUTE_VIA_SIGNED_PAYLOAD = "signed-payload"
EXECUTE_VIA_SIMULATED_TRANSACTION = "simulated-transaction"
EXECUTE_VIA_REBUILD = "rebuild"


@dataclass
class ExecutionResult:
    envelope: Dict[str, Any]
    reuse: Dict[str, Any] = field(default_factory=dict)
    raw: Any = None


def _ensure_not_failed(result: Dict[str, Any], source: str) -> None:
    status, error = simulation_status(result)
    if status == "failure":
        digest = result.get("digest")
        raise UpstreamRpcError(
            f"Sui transaction failed: {error or 'unknown error'} (digest={digest})",
            source=source,
            digest=digest,
        )


def build_envelope(
    result: Dict[str, Any],
    *,
    network: str,
    request_type: str,
    execute_via: str,
) -> Dict[str, Any]:
    status, error = simulation_status(result)
    digest = result.get("digest")
    return {
        "digest": digest,
        "status": status,
        "error": error,
        "confirmedLocalExecution": result.get("confirmedLocalExecution"),
        "network": network,
        "requestType": request_type,
        "executeVia": execute_via,
        "explorer": get_explorer_transaction_url(digest, network) if digest else None,
    }


# ---------- Single-shot executors ----------
SingleShotExecutor = Callable[..., Awaitable[Dict[str, Any]]]


def _single_shot(builder: Builder) -> SingleShotExecutor:
    async def execute(
        intent: SuiIntent,
        ctx: BuildContext,
        signer: SuiSigner,
        *,
        confirm_mainnet: bool,
        request_type: str,
    ) -> Dict[str, Any]:
        if ctx.network == "mainnet" and confirm_mainnet is not True:
            raise MainnetGuardError(f"Mainnet {intent.type} execute is blocked. Set confirmMainnet=true.")
        built = await builder(intent, ctx)
        built.transaction.set_sender(signer.address)
        result = await ctx.rpc.sign_and_execute_transaction(signer, built.transaction, request_type=request_type)
        _ensure_not_failed(result, "sui-rpc")
        return result

    return execute


SINGLE_SHOT_EXECUTORS: Dict[str, SingleShotExecutor] = {
    intent_type: _single_shot(builder) for intent_type, builder in BUILDERS.items()
}


class ExecutionDispatcher:
    """Chooses and runs the submission strategy for one ``execute`` call."""

    def __init__(self, rpc: SuiRpc, executors: Dict[str, SingleShotExecutor] | None = None) -> None:
        self._rpc = rpc
        self._executors = executors or SINGLE_SHOT_EXECUTORS

    async def execute(
        self,
        intent: SuiIntent,
        *,
        params: WorkflowParams,
        network: str,
        request_type: str,
        session: Optional[WorkflowSession],
        fresh_intent_inputs: bool,
        signer: Optional[SuiSigner],
        build_context: Optional[BuildContext],
        confirm_mainnet: bool,
    ) -> ExecutionResult:
        if params.has_signed_payload():
            return await self._submit_signed(params, network=network, request_type=request_type)

        reuse_reason = self._reuse_blocker(intent, network, session, fresh_intent_inputs, signer)
        if reuse_reason is None:
            try:
                self._check_signer(session, signer)
            except SignerMismatchError as exc:
                logger.warning("Simulated transaction not reused: %s", exc)
                reuse_reason = "signer-mismatch"

        if reuse_reason is None:
            logger.info("Re-signing simulated transaction for run %s", session.run_id)
            result = await self._rpc.sign_and_execute_transaction(
                signer, session.simulated_transaction, request_type=request_type
            )
            _ensure_not_failed(result, "sui-rpc")
            return ExecutionResult(
                envelope=build_envelope(
                    result,
                    network=network,
                    request_type=request_type,
                    execute_via=EXECUTE_VIA_SIMULATED_TRANSACTION,
                ),
                reuse={"used": True, "reason": "signer-match"},
                raw=result,
            )

        if reuse_reason not in ("intent-inputs-supplied", "no-session", "no-simulated-transaction"):
            logger.warning("Simulated transaction not reused (%s); rebuilding %s", reuse_reason, intent.type)

        if signer is None:
            raise ValidationError(
                "No local signing key available for execute. Provide fromPrivateKey, configure "
                "SUI_PRIVATE_KEY, or submit signedTransactionBytesBase64 with signedSignatures.",
                field="fromPrivateKey",
            )
        if build_context is None:
            raise WorkflowError(f"Cannot rebuild {intent.type}: no transaction factory configured.")
        executor = self._executors[intent.type]
        result = await executor(
            intent,
            build_context,
            signer,
            confirm_mainnet=confirm_mainnet,
            request_type=request_type,
        )
        return ExecutionResult(
            envelope=build_envelope(
                result,
                network=network,
                request_type=request_type,
                execute_via=EXECUTE_VIA_REBUILD,
            ),
            reuse={"used": False, "reason": reuse_reason},
            raw=result,
        )

    async def _submit_signed(self, params: WorkflowParams, *, network: str, request_type: str) -> ExecutionResult:
        tx_b64 = params.signed_transaction_bytes_base64 or ""
        try:
            base64.b64decode(tx_b64, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValidationError(
                "signedTransactionBytesBase64 is not valid base64.",
                field="signedTransactionBytesBase64",
            ) from exc
        logger.info("Submitting caller-signed transaction on %s", network)
        result = await self._rpc.execute_transaction_block(tx_b64, params.signatures(), request_type=request_type)
        _ensure_not_failed(result, "sui-rpc")
        return ExecutionResult(
            envelope=build_envelope(
                result,
                network=network,
                request_type=request_type,
                execute_via=EXECUTE_VIA_SIGNED_PAYLOAD,
            ),
            reuse={"used": False, "reason": "signed-payload"},
            raw=result,
        )

    @staticmethod
    def _reuse_blocker(
        intent: SuiIntent,
        network: str,
        session: Optional[WorkflowSession],
        fresh_intent_inputs: bool,
        signer: Optional[SuiSigner],
    ) -> Optional[str]:
        if fresh_intent_inputs:
            return "intent-inputs-supplied"
        if session is None:
            return "no-session"
        if session.simulated_transaction is None or not session.simulated_signer_address:
            return "no-simulated-transaction"
        if not session.matches(network, intent):
            return "session-mismatch"
        if signer is None:
            return "no-local-signer"
        return None

    @staticmethod
    def _check_signer(session: WorkflowSession, signer: SuiSigner) -> None:
        if signer.address != session.simulated_signer_address:
            raise SignerMismatchError(expected=session.simulated_signer_address, actual=signer.address)
