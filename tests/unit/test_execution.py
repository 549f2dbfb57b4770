import pytest

from conftest import OTHER_OWNER, OWNER, RECIPIENT, FakeRpc, FakeSigner, FakeTransaction
from suiflow.errors import MainnetGuardError, UpstreamRpcError, ValidationError
from suiflow.workflow.builders import BuildContext
from suiflow.workflow.execution import ExecutionDispatcher, build_envelope
from suiflow.workflow.intent import TransferSuiIntent
from suiflow.workflow.params import WorkflowParams
from suiflow.workflow.storage import WorkflowSession

INTENT = TransferSuiIntent(to_address=RECIPIENT, amount_sui=1.0)


def _session(tx=None, signer_address=OWNER, network="testnet", intent=INTENT):
    return WorkflowSession(
        run_id="run-1",
        route="core",
        network=network,
        intent=intent,
        simulated_transaction=tx,
        simulated_signer_address=signer_address if tx is not None else None,
    )


async def _execute(rpc, *, params=None, session=None, fresh=False, signer=None, network="testnet", confirm=True):
    ctx = BuildContext(rpc=rpc, network=network, signer_address=OWNER, new_transaction=FakeTransaction)
    return await ExecutionDispatcher(rpc).execute(
        INTENT,
        params=params or WorkflowParams(run_mode="execute"),
        network=network,
        request_type="WaitForLocalExecution",
        session=session,
        fresh_intent_inputs=fresh,
        signer=signer,
        build_context=ctx,
        confirm_mainnet=confirm,
    )


def test_envelope_shape():
    envelope = build_envelope(
        {"digest": "ABC", "confirmedLocalExecution": True, "effects": {"status": {"status": "success"}}},
        network="mainnet",
        request_type="WaitForEffectsCert",
        execute_via="rebuild",
    )
    assert envelope == {
        "digest": "ABC",
        "status": "success",
        "error": None,
        "confirmedLocalExecution": True,
        "network": "mainnet",
        "requestType": "WaitForEffectsCert",
        "executeVia": "rebuild",
        "explorer": "https://suivision.xyz/txblock/ABC",
    }


@pytest.mark.asyncio
async def test_signed_payload_is_submitted_directly():
    rpc = FakeRpc()
    params = WorkflowParams(
        run_mode="execute",
        signed_transaction_bytes_base64="dHgtYnl0ZXM=",
        signed_signature="sig-1",
    )
    result = await _execute(rpc, params=params, session=_session(FakeTransaction()), signer=FakeSigner(OWNER))
    assert rpc.submitted == [("dHgtYnl0ZXM=", ["sig-1"], "WaitForLocalExecution")]
    assert rpc.signed == []
    assert result.envelope["executeVia"] == "signed-payload"


@pytest.mark.asyncio
async def test_signed_payload_must_be_base64():
    params = WorkflowParams(run_mode="execute", signed_transaction_bytes_base64="not base64!", signed_signatures=["s"])
    with pytest.raises(ValidationError) as exc:
        await _execute(FakeRpc(), params=params)
    assert exc.value.field == "signedTransactionBytesBase64"


@pytest.mark.asyncio
async def test_failed_signed_payload_reports_digest():
    rpc = FakeRpc()
    rpc.execute_result = {"digest": "BAD", "effects": {"status": {"status": "failure", "error": "MoveAbort"}}}
    params = WorkflowParams(run_mode="execute", signed_transaction_bytes_base64="dHgtYnl0ZXM=", signed_signatures=["s"])
    with pytest.raises(UpstreamRpcError) as exc:
        await _execute(rpc, params=params)
    assert exc.value.digest == "BAD"


@pytest.mark.asyncio
async def test_simulated_transaction_is_reused_on_signer_match():
    rpc = FakeRpc()
    tx = FakeTransaction()
    result = await _execute(rpc, session=_session(tx), signer=FakeSigner(OWNER))
    assert rpc.signed == [(OWNER, tx, "WaitForLocalExecution")]
    assert result.envelope["executeVia"] == "simulated-transaction"
    assert result.reuse == {"used": True, "reason": "signer-match"}


@pytest.mark.asyncio
async def test_signer_mismatch_falls_back_to_rebuild():
    rpc = FakeRpc()
    tx = FakeTransaction()
    result = await _execute(rpc, session=_session(tx), signer=FakeSigner(OTHER_OWNER))
    signer_address, rebuilt, _ = rpc.signed[0]
    assert signer_address == OTHER_OWNER
    assert rebuilt is not tx
    assert rebuilt.sender == OTHER_OWNER
    assert result.envelope["executeVia"] == "rebuild"
    assert result.reuse == {"used": False, "reason": "signer-mismatch"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "kwargs, reason",
    [
        ({"fresh": True}, "intent-inputs-supplied"),
        ({"session": None}, "no-session"),
        ({"session": _session(None)}, "no-simulated-transaction"),
        ({"session": _session(FakeTransaction(), network="mainnet")}, "session-mismatch"),
    ],
)
async def test_reuse_blockers(kwargs, reason):
    kwargs.setdefault("session", _session(FakeTransaction()))
    result = await _execute(FakeRpc(), signer=FakeSigner(OWNER), **kwargs)
    assert result.reuse == {"used": False, "reason": reason}
    assert result.envelope["executeVia"] == "rebuild"


@pytest.mark.asyncio
async def test_rebuild_without_signer_is_rejected():
    with pytest.raises(ValidationError) as exc:
        await _execute(FakeRpc(), session=_session(FakeTransaction()))
    assert exc.value.field == "fromPrivateKey"


@pytest.mark.asyncio
async def test_single_shot_executor_has_its_own_mainnet_gate():
    with pytest.raises(MainnetGuardError) as exc:
        await _execute(FakeRpc(), signer=FakeSigner(OWNER), network="mainnet", confirm=False)
    assert "confirmMainnet=true" in str(exc.value)
