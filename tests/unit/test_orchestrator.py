import pytest

from conftest import OTHER_OWNER, OWNER, POOL_ID, RECIPIENT, SUI, USDC
from suiflow.errors import MainnetGuardError, SimulationFailedError, ValidationError
from suiflow.settings import WorkflowSettings
from suiflow.workflow.params import WorkflowParams
from suiflow.workflow.storage import derive_confirm_token
from suiflow.workflow.intent import TransferSuiIntent

TRANSFER = {"intent_type": "sui.transfer.sui", "to_address": "0xabc", "amount_sui": 2}


async def _run(orchestrator, **fields):
    return await orchestrator.run(WorkflowParams(**fields))


@pytest.mark.asyncio
async def test_analysis_on_testnet(make_orchestrator):
    result = await _run(make_orchestrator(), run_mode="analysis", network="testnet", **TRANSFER)
    details = result["details"]
    assert details["intent"] == {"type": "sui.transfer.sui", "toAddress": "0xabc", "amountSui": 2}
    assert details["needsMainnetConfirmation"] is False
    assert details["confirmToken"].startswith("SUI-")
    assert details["runId"].startswith("wf-sui-")
    assert details["artifacts"]["analysis"]["plan"] == ["analysis", "simulate", "execute"]
    assert result["content"][0]["text"].startswith("Workflow analyzed: sui.transfer.sui")


@pytest.mark.asyncio
async def test_run_mode_defaults_to_analysis(make_orchestrator, sessions):
    result = await _run(make_orchestrator(), run_id="run-default", **TRANSFER)
    assert result["details"]["runMode"] == "analysis"
    assert sessions.read("core", "run-default") is not None


@pytest.mark.asyncio
async def test_mainnet_execute_without_confirmation(make_orchestrator, sessions):
    with pytest.raises(MainnetGuardError) as exc:
        await _run(make_orchestrator(), run_mode="execute", network="mainnet", run_id="run-x", **TRANSFER)
    assert "confirmMainnet=true" in str(exc.value)
    assert sessions.read("core", "run-x") is None


@pytest.mark.asyncio
async def test_mainnet_execute_with_analysis_token(make_orchestrator, rpc):
    orchestrator = make_orchestrator()
    analysis = await _run(orchestrator, run_mode="analysis", network="mainnet", run_id="run-1", **TRANSFER)
    token = analysis["details"]["confirmToken"]

    result = await _run(
        orchestrator,
        run_mode="execute",
        network="mainnet",
        run_id="run-1",
        confirm_mainnet=True,
        confirm_token=token,
        from_private_key="key-owner",
        **TRANSFER,
    )
    details = result["details"]
    assert details["confirmTokenMatched"] is True
    assert details["artifacts"]["execute"]["digest"] == "DIGEST1"
    assert details["artifacts"]["execute"]["executeVia"] == "rebuild"
    assert details["artifacts"]["execute"]["explorer"] == "https://suivision.xyz/txblock/DIGEST1"
    assert rpc.signed[0][0] == OWNER


@pytest.mark.asyncio
async def test_mainnet_execute_with_token_of_another_intent(make_orchestrator, rpc):
    orchestrator = make_orchestrator()
    await _run(orchestrator, run_mode="analysis", network="mainnet", run_id="run-1", **TRANSFER)
    other = TransferSuiIntent(to_address="0xabc", amount_sui=5.0)

    with pytest.raises(MainnetGuardError) as exc:
        await _run(
            orchestrator,
            run_mode="execute",
            network="mainnet",
            run_id="run-1",
            confirm_mainnet=True,
            confirm_token=derive_confirm_token("run-1", "mainnet", other),
            from_private_key="key-owner",
            **TRANSFER,
        )
    assert "Invalid confirmToken" in str(exc.value)
    assert rpc.signed == []


@pytest.mark.asyncio
async def test_mainnet_execute_passes_on_matching_session_without_token(make_orchestrator):
    orchestrator = make_orchestrator()
    await _run(orchestrator, run_mode="analysis", network="mainnet", run_id="run-1", **TRANSFER)
    result = await _run(
        orchestrator,
        run_mode="execute",
        network="mainnet",
        run_id="run-1",
        intent_text="confirm mainnet",
        from_private_key="key-owner",
    )
    assert result["details"]["confirmTokenMatched"] is False
    assert result["details"]["artifacts"]["execute"]["status"] == "success"


@pytest.mark.asyncio
async def test_mainnet_execute_with_confirmation_sentence_continues_session(make_orchestrator, rpc):
    orchestrator = make_orchestrator()
    simulated = await _run(
        orchestrator, run_mode="simulate", network="mainnet", run_id="X", from_private_key="key-owner", **TRANSFER
    )
    result = await _run(
        orchestrator,
        run_mode="execute",
        run_id="X",
        intent_text="confirm mainnet, go ahead to execute",
        from_private_key="key-owner",
    )
    assert result["details"]["runId"] == "X"
    assert result["details"]["intent"] == simulated["details"]["intent"]
    assert result["details"]["artifacts"]["execute"]["executeVia"] == "simulated-transaction"
    assert len(rpc.signed) == 1


@pytest.mark.asyncio
async def test_mainnet_execute_without_token_or_session(make_orchestrator):
    with pytest.raises(MainnetGuardError) as exc:
        await _run(
            make_orchestrator(),
            run_mode="execute",
            network="mainnet",
            run_id="fresh-run",
            confirm_mainnet=True,
            from_private_key="key-owner",
            **TRANSFER,
        )
    assert "Invalid confirmToken" in str(exc.value)


@pytest.mark.asyncio
async def test_simulate_then_execute_reuses_intent_and_transaction(make_orchestrator, rpc):
    orchestrator = make_orchestrator()
    simulated = await _run(
        orchestrator,
        run_mode="simulate",
        network="mainnet",
        run_id="X",
        from_private_key="key-owner",
        **TRANSFER,
    )
    sim = simulated["details"]["artifacts"]["simulate"]
    assert sim["status"] == "success"
    assert sim["canSign"] is True
    assert sim["signerAddress"] == OWNER
    assert "localSigner=yes" in simulated["content"][0]["text"]
    simulated_tx = rpc.inspected[0][1]

    executed = await _run(
        orchestrator,
        run_mode="execute",
        run_id="X",
        confirm_mainnet=True,
        confirm_token=simulated["details"]["confirmToken"],
        from_private_key="key-owner",
    )
    assert executed["details"]["intent"] == simulated["details"]["intent"]
    assert executed["details"]["network"] == "mainnet"
    execute = executed["details"]["artifacts"]["execute"]
    assert execute["executeVia"] == "simulated-transaction"
    assert execute["simulatedTransactionReuse"] == {"used": True, "reason": "signer-match"}
    assert rpc.signed[0][1] is simulated_tx


@pytest.mark.asyncio
async def test_execute_with_other_signer_rebuilds(make_orchestrator, rpc):
    orchestrator = make_orchestrator()
    simulated = await _run(
        orchestrator, run_mode="simulate", run_id="X", from_private_key="key-owner", **TRANSFER
    )
    executed = await _run(orchestrator, run_mode="execute", run_id="X", from_private_key="key-other")
    execute = executed["details"]["artifacts"]["execute"]
    assert executed["details"]["intent"] == simulated["details"]["intent"]
    assert execute["executeVia"] == "rebuild"
    assert execute["simulatedTransactionReuse"]["reason"] == "signer-mismatch"
    assert rpc.signed[0][0] == OTHER_OWNER


@pytest.mark.asyncio
async def test_execute_without_session_or_intent(make_orchestrator):
    with pytest.raises(ValidationError) as exc:
        await _run(make_orchestrator(), run_mode="execute", confirm_mainnet=True)
    assert "No prior workflow session" in str(exc.value)


@pytest.mark.asyncio
async def test_execute_drops_simulated_transaction_from_session(make_orchestrator, sessions):
    orchestrator = make_orchestrator()
    await _run(orchestrator, run_mode="simulate", run_id="X", from_private_key="key-owner", **TRANSFER)
    assert sessions.read("core", "X").simulated_transaction is not None
    await _run(orchestrator, run_mode="execute", run_id="X", from_private_key="key-owner")
    assert sessions.read("core", "X").simulated_transaction is None


@pytest.mark.asyncio
async def test_simulate_with_watch_only_address(make_orchestrator, rpc):
    settings = WorkflowSettings(default_network="testnet", wallet_address=OWNER)
    result = await _run(make_orchestrator(settings=settings), run_mode="simulate", **TRANSFER)
    sim = result["details"]["artifacts"]["simulate"]
    assert sim["canSign"] is False
    assert sim["signerAddress"] == OWNER
    assert "localSigner=no" in result["content"][0]["text"]


@pytest.mark.asyncio
async def test_simulate_without_signer(make_orchestrator):
    with pytest.raises(ValidationError) as exc:
        await _run(make_orchestrator(), run_mode="simulate", **TRANSFER)
    assert exc.value.field == "fromPrivateKey"


@pytest.mark.asyncio
async def test_invalid_private_key(make_orchestrator):
    with pytest.raises(ValidationError) as exc:
        await _run(make_orchestrator(), run_mode="simulate", from_private_key="garbage", **TRANSFER)
    assert exc.value.field == "fromPrivateKey"


@pytest.mark.asyncio
async def test_failed_simulation_keeps_previous_session(make_orchestrator, rpc, sessions):
    orchestrator = make_orchestrator()
    await _run(orchestrator, run_mode="analysis", run_id="X", **TRANSFER)
    rpc.inspect_result = {"effects": {"status": {"status": "failure", "error": "InsufficientGas"}}}
    with pytest.raises(SimulationFailedError):
        await _run(orchestrator, run_mode="simulate", run_id="X", from_private_key="key-owner", **TRANSFER)
    assert sessions.read("core", "X").simulated_transaction is None


SWAP = {
    "input_coin_type": SUI,
    "output_coin_type": USDC,
    "amount_raw": "1000000000",
}


@pytest.mark.asyncio
async def test_risky_mainnet_swap_requires_risk_acceptance(make_orchestrator, rpc):
    orchestrator = make_orchestrator()
    analysis = await _run(
        orchestrator, run_mode="analysis", network="mainnet", run_id="R", slippage_bps=1200, **SWAP
    )
    assert analysis["details"]["risk"]["riskBand"] == "critical"
    token = analysis["details"]["confirmToken"]

    with pytest.raises(MainnetGuardError) as exc:
        await _run(
            orchestrator,
            run_mode="execute",
            run_id="R",
            confirm_mainnet=True,
            confirm_token=token,
            from_private_key="key-owner",
        )
    assert "confirmRisk=true" in str(exc.value)

    result = await _run(
        orchestrator,
        run_mode="execute",
        run_id="R",
        confirm_mainnet=True,
        confirm_token=token,
        intent_text="接受风险",
        from_private_key="key-owner",
    )
    assert result["details"]["risk"]["confirmRiskAccepted"] is True
    assert len(rpc.signed) == 1


@pytest.mark.asyncio
async def test_risk_gate_is_skipped_off_mainnet(make_orchestrator, rpc):
    result = await _run(
        make_orchestrator(),
        run_mode="execute",
        network="testnet",
        slippage_bps=1200,
        from_private_key="key-owner",
        **SWAP,
    )
    assert result["details"]["risk"]["riskBand"] == "critical"
    assert result["details"]["artifacts"]["execute"]["executeVia"] == "rebuild"


@pytest.mark.asyncio
async def test_signed_payload_execute(make_orchestrator, rpc):
    orchestrator = make_orchestrator()
    await _run(orchestrator, run_mode="analysis", run_id="S", **TRANSFER)
    result = await _run(
        orchestrator,
        run_mode="execute",
        run_id="S",
        wait_for_local_execution=False,
        signed_transaction_bytes_base64="dHgtYnl0ZXM=",
        signed_signatures=["sig-1"],
    )
    assert rpc.submitted == [("dHgtYnl0ZXM=", ["sig-1"], "WaitForEffectsCert")]
    assert result["details"]["requestType"] == "WaitForEffectsCert"
    assert result["details"]["artifacts"]["execute"]["executeVia"] == "signed-payload"


@pytest.mark.asyncio
async def test_stablelayer_route_rejects_core_intent(make_orchestrator):
    with pytest.raises(ValidationError):
        await _run(make_orchestrator("stablelayer"), **TRANSFER)


@pytest.mark.asyncio
async def test_lp_remove_end_to_end_on_testnet(make_orchestrator, rpc, clmm):
    rpc.objects[POOL_ID] = {"data": {"type": f"0x1eab::pool::Pool<{SUI}, {USDC}>"}}
    result = await _run(
        make_orchestrator(),
        run_mode="simulate",
        intent_type="sui.lp.cetus.remove",
        pool_id=POOL_ID,
        position_id="0xpos",
        delta_liquidity="500",
        from_private_key="key-owner",
    )
    assert result["details"]["risk"]["reasonCodes"] == ["ZERO_MIN_OUTPUT"]
    assert clmm.payloads[0][0] == "remove"
