"""The ``analysis -> simulate -> execute`` workflow.

Each call performs exactly one phase chosen by ``runMode``. State between
calls lives in the session repository, keyed by ``runId``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from suiflow.errors import (
    MainnetGuardError,
    SimulationFailedError,
    UpstreamRpcError,
    ValidationError,
    WorkflowError,
)
from suiflow.infrastructure.logging import get_workflow_logger
from suiflow.integrations.protocols import (
    ClmmVenue,
    FarmsVenue,
    KeyResolver,
    StableLayerVenue,
    SuiRpc,
    SuiSigner,
    SwapRouter,
    TokenDirectory,
    TransactionFactory,
)
from suiflow.integrations.sui_rpc import SuiJsonRpcClient, resolve_request_type
from suiflow.settings import WorkflowSettings, get_settings, parse_network
from suiflow.workflow.builders import BuildContext, build_transaction
from suiflow.workflow.execution import ExecutionDispatcher
from suiflow.workflow.hints import has_confirm_mainnet_phrase, has_confirm_risk_phrase
from suiflow.workflow.intent import SuiIntent
from suiflow.workflow.normalizer import IntentNormalizer
from suiflow.workflow.params import WorkflowParams
from suiflow.workflow.risk import RiskCheck, assess
from suiflow.workflow.simulation import run_simulation
from suiflow.workflow.storage import (
    WorkflowSession,
    WorkflowSessionRepository,
    create_run_id,
    derive_confirm_token,
    has_intent_inputs,
)

logger = logging.getLogger(__name__)

PLAN = ["analysis", "simulate", "execute"]


@dataclass
class WorkflowDependencies:
    """External collaborators shared by the workflow tools."""

    rpc_factory: Optional[Callable[[str], SuiRpc]] = None
    new_transaction: Optional[TransactionFactory] = None
    key_resolver: Optional[KeyResolver] = None
    swap_router: Optional[SwapRouter] = None
    clmm: Optional[ClmmVenue] = None
    stable_layer: Optional[StableLayerVenue] = None
    farms: Optional[FarmsVenue] = None
    token_directory: Optional[TokenDirectory] = None


@dataclass
class ResolvedSigner:
    address: Optional[str] = None
    signer: Optional[SuiSigner] = None
    source: Optional[str] = None

    @property
    def can_sign(self) -> bool:
        return self.signer is not None


@dataclass
class _PhaseState:
    run_id: str
    network: str
    intent: SuiIntent
    fresh_inputs: bool
    prior: Optional[WorkflowSession]
    signer: ResolvedSigner
    extra: Dict[str, Any] = field(default_factory=dict)


class WorkflowOrchestrator:
    """Runs one workflow route (``core``, ``stablelayer`` or ``farms``)."""

    def __init__(
        self,
        route: str,
        *,
        dependencies: WorkflowDependencies | None = None,
        sessions: WorkflowSessionRepository | None = None,
        settings: WorkflowSettings | None = None,
    ) -> None:
        self.route = route
        self._deps = dependencies or WorkflowDependencies()
        self._sessions = sessions or WorkflowSessionRepository.instance()
        self._settings = settings or get_settings()
        self._rpc_clients: Dict[str, SuiRpc] = {}

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------
    def _rpc(self, network: str) -> SuiRpc:
        if network not in self._rpc_clients:
            if self._deps.rpc_factory is not None:
                self._rpc_clients[network] = self._deps.rpc_factory(network)
            else:
                self._rpc_clients[network] = SuiJsonRpcClient(network, settings=self._settings)
        return self._rpc_clients[network]

    def _build_context(self, rpc: SuiRpc, network: str, signer_address: str) -> BuildContext:
        if self._deps.new_transaction is None:
            raise WorkflowError("No transaction factory configured; simulate and execute are unavailable.")
        return BuildContext(
            rpc=rpc,
            network=network,
            signer_address=signer_address,
            new_transaction=self._deps.new_transaction,
            swap_router=self._deps.swap_router,
            clmm=self._deps.clmm,
            stable_layer=self._deps.stable_layer,
            farms=self._deps.farms,
        )

    def resolve_signer(self, params: WorkflowParams) -> ResolvedSigner:
        """Explicit key, then ``SUI_PRIVATE_KEY``, then a watch-only address."""

        key_ref, source = params.from_private_key, "fromPrivateKey"
        if not key_ref and self._settings.private_key:
            key_ref, source = self._settings.private_key, "SUI_PRIVATE_KEY"
        if key_ref:
            if self._deps.key_resolver is None:
                raise ValidationError(
                    "A private key was provided but no key resolver is configured.",
                    field="fromPrivateKey",
                )
            try:
                signer = self._deps.key_resolver(key_ref)
            except ValueError as exc:
                raise ValidationError(f"Invalid {source}: {exc}", field="fromPrivateKey") from exc
            return ResolvedSigner(address=signer.address, signer=signer, source=source)
        if self._settings.wallet_address:
            return ResolvedSigner(address=self._settings.wallet_address, source="SUI_WALLET_ADDRESS")
        if params.owner_address:
            return ResolvedSigner(address=params.owner_address, source="ownerAddress")
        return ResolvedSigner()

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------
    async def run(self, params: WorkflowParams) -> Dict[str, Any]:
        try:
            return await self._run(params)
        except (ValidationError, MainnetGuardError) as exc:
            logger.warning(
                "%s workflow %s rejected: %s", self.route, params.run_mode, exc, extra={"route": self.route}
            )
            raise
        except (UpstreamRpcError, SimulationFailedError) as exc:
            logger.error(
                "%s workflow %s failed: %s",
                self.route,
                params.run_mode,
                exc,
                exc_info=True,
                extra={"route": self.route},
            )
            raise

    async def _run(self, params: WorkflowParams) -> Dict[str, Any]:
        run_mode = params.run_mode
        state = await self._prepare(params)
        run_logger = get_workflow_logger(__name__, run_id=state.run_id, route=self.route, network=state.network)
        run_logger.info("%s %s (signer=%s)", run_mode, state.intent.type, state.signer.source or "none")
        if run_mode == "analysis":
            return self._analysis(params, state)
        if run_mode == "simulate":
            return await self._simulate(params, state)
        return await self._execute(params, state)

    async def _prepare(self, params: WorkflowParams) -> _PhaseState:
        fresh_inputs = has_intent_inputs(params.model_dump())
        signer = self.resolve_signer(params)

        if params.run_mode == "execute" and not fresh_inputs:
            session = self._sessions.read(self.route, params.run_id)
            if session is None:
                raise ValidationError(
                    "No prior workflow session found. Provide intent parameters or run analysis/simulate first.",
                    field="runId",
                )
            network = parse_network(params.network, session.network) if params.network else session.network
            return _PhaseState(
                run_id=session.run_id,
                network=network,
                intent=session.intent,
                fresh_inputs=False,
                prior=session,
                signer=signer,
            )

        run_id = create_run_id(params.run_id)
        network = parse_network(params.network, self._settings.default_network)
        prior = self._sessions.read(self.route, run_id) if params.run_id else None
        normalizer = IntentNormalizer(
            self._rpc(network),
            clmm=self._deps.clmm,
            farms=self._deps.farms,
            token_directory=self._deps.token_directory,
        )
        intent = await normalizer.normalize(params, route=self.route, network=network, owner_address=signer.address)
        return _PhaseState(
            run_id=run_id,
            network=network,
            intent=intent,
            fresh_inputs=fresh_inputs,
            prior=prior,
            signer=signer,
        )

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------
    def _details(
        self,
        params: WorkflowParams,
        state: _PhaseState,
        *,
        confirm_token: str,
        risk: RiskCheck,
        artifacts: Dict[str, Any],
    ) -> Dict[str, Any]:
        details = {
            "runId": state.run_id,
            "runMode": params.run_mode,
            "network": state.network,
            "route": self.route,
            "intentType": state.intent.type,
            "intent": state.intent.to_public(),
            "needsMainnetConfirmation": state.network == "mainnet",
            "confirmToken": confirm_token,
            "risk": risk.to_dict(),
            "artifacts": artifacts,
        }
        details.update(state.extra)
        return details

    def _analysis(self, params: WorkflowParams, state: _PhaseState) -> Dict[str, Any]:
        risk = assess(state.intent, None)
        confirm_token = derive_confirm_token(state.run_id, state.network, state.intent)
        self._sessions.remember(
            WorkflowSession(run_id=state.run_id, route=self.route, network=state.network, intent=state.intent)
        )
        summary = f"Workflow analyzed: {state.intent.type} network={state.network} risk={risk.risk_band.value}"
        if state.network == "mainnet":
            summary += f" confirmToken={confirm_token}"
        artifacts = {"analysis": {"intent": state.intent.to_public(), "plan": list(PLAN), "risk": risk.to_dict()}}
        return _response(
            summary,
            self._details(params, state, confirm_token=confirm_token, risk=risk, artifacts=artifacts),
        )

    async def _simulate(self, params: WorkflowParams, state: _PhaseState) -> Dict[str, Any]:
        signer = state.signer
        if not signer.address:
            raise ValidationError(
                "No signer available for simulate. Provide fromPrivateKey, or configure "
                "SUI_PRIVATE_KEY or SUI_WALLET_ADDRESS.",
                field="fromPrivateKey",
            )
        rpc = self._rpc(state.network)
        built = await build_transaction(state.intent, self._build_context(rpc, state.network, signer.address))
        outcome = await run_simulation(
            rpc,
            built.transaction,
            signer_address=signer.address,
            intent_type=state.intent.type,
        )

        risk = assess(state.intent, None)
        confirm_token = derive_confirm_token(state.run_id, state.network, state.intent)
        self._sessions.remember(
            WorkflowSession(
                run_id=state.run_id,
                route=self.route,
                network=state.network,
                intent=state.intent,
                simulated_transaction=built.transaction,
                simulated_signer_address=signer.address,
            )
        )
        summary = (
            f"Workflow simulated: {state.intent.type} signer={signer.address} status={outcome.status} "
            f"risk={risk.risk_band.value} localSigner={'yes' if signer.can_sign else 'no'}"
        )
        artifacts = {
            "simulate": {
                "status": outcome.status,
                "error": outcome.error,
                "signerAddress": signer.address,
                "signerSource": signer.source,
                "canSign": signer.can_sign,
                "unsignedPayload": outcome.unsigned_payload,
                "risk": risk.to_dict(),
                "summaryLine": summary,
                **built.artifacts,
            }
        }
        return _response(
            summary,
            self._details(params, state, confirm_token=confirm_token, risk=risk, artifacts=artifacts),
        )

    def _check_mainnet_gate(
        self,
        params: WorkflowParams,
        state: _PhaseState,
        confirm_token: str,
        confirm_mainnet: bool,
        risk: RiskCheck,
    ) -> None:
        if not confirm_mainnet:
            raise MainnetGuardError(
                "Mainnet execute requires confirmMainnet=true (or the phrase 'confirm mainnet' / '确认主网')."
            )

        if params.confirm_token:
            if params.confirm_token.strip() != confirm_token:
                raise MainnetGuardError(
                    f"Invalid confirmToken for runId={state.run_id}. "
                    "Run analysis or simulate first and pass the returned confirmToken."
                )
        else:
            prior = state.prior
            if prior is None or prior.run_id != state.run_id or not prior.matches(state.network, state.intent):
                raise MainnetGuardError(
                    f"Invalid confirmToken for runId={state.run_id}: no confirmToken given and no matching "
                    "analysis/simulate session. Run analysis or simulate first and pass the returned confirmToken."
                )

        if risk.requires_explicit_risk_acceptance and not risk.confirm_risk_accepted:
            raise MainnetGuardError(
                f"Mainnet execute blocked by risk check ({risk.describe()}). "
                "Set confirmRisk=true or say 'accept risk' / '接受风险' to proceed. "
                "风险检查未通过：请确认风险后再执行。"
            )

    async def _execute(self, params: WorkflowParams, state: _PhaseState) -> Dict[str, Any]:
        confirm_mainnet = params.confirm_mainnet is True or has_confirm_mainnet_phrase(params.intent_text)
        confirm_risk = params.confirm_risk is True or has_confirm_risk_phrase(params.intent_text)
        confirm_token = derive_confirm_token(state.run_id, state.network, state.intent)
        risk = assess(state.intent, confirm_risk)
        if state.network == "mainnet":
            self._check_mainnet_gate(params, state, confirm_token, confirm_mainnet, risk)

        rpc = self._rpc(state.network)
        request_type = resolve_request_type(params.wait_for_local_execution)
        signer = state.signer
        build_context = None
        if not params.has_signed_payload() and self._deps.new_transaction is not None:
            build_context = self._build_context(rpc, state.network, signer.address or "")
        result = await ExecutionDispatcher(rpc).execute(
            state.intent,
            params=params,
            network=state.network,
            request_type=request_type,
            session=state.prior,
            fresh_intent_inputs=state.fresh_inputs,
            signer=signer.signer,
            build_context=build_context,
            confirm_mainnet=confirm_mainnet,
        )

        self._sessions.remember(
            WorkflowSession(run_id=state.run_id, route=self.route, network=state.network, intent=state.intent)
        )
        envelope = result.envelope
        summary = (
            f"Workflow executed: {state.intent.type} status={envelope['status']} "
            f"digest={envelope['digest']} via={envelope['executeVia']}"
        )
        state.extra.update(
            {
                "requestType": request_type,
                "confirmTokenMatched": bool(params.confirm_token) and params.confirm_token.strip() == confirm_token,
            }
        )
        artifacts = {
            "execute": {
                **envelope,
                "simulatedTransactionReuse": result.reuse,
                "risk": risk.to_dict(),
                "summaryLine": summary,
            }
        }
        return _response(
            summary,
            self._details(params, state, confirm_token=confirm_token, risk=risk, artifacts=artifacts),
        )

    async def aclose(self) -> None:
        for client in self._rpc_clients.values():
            close = getattr(client, "aclose", None)
            if close is not None:
                await close()
        self._rpc_clients.clear()


def _response(text: str, details: Dict[str, Any]) -> Dict[str, Any]:
    content: List[Dict[str, str]] = [{"type": "text", "text": text}]
    return {"content": content, "details": details}
