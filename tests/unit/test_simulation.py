import pytest

from conftest import OWNER, FakeRpc, FakeTransaction
from suiflow.errors import SimulationFailedError, UpstreamRpcError
from suiflow.workflow.simulation import run_simulation, simulation_status


def test_simulation_status_reads_effects():
    assert simulation_status({"effects": {"status": {"status": "success"}}}) == ("success", None)
    assert simulation_status({"effects": {"status": {"status": "failure", "error": "MoveAbort"}}}) == (
        "failure",
        "MoveAbort",
    )
    assert simulation_status(None) == ("unknown", None)


@pytest.mark.asyncio
async def test_success_sets_sender_and_exports_payload():
    rpc = FakeRpc()
    tx = FakeTransaction()
    outcome = await run_simulation(rpc, tx, signer_address=OWNER, intent_type="sui.transfer.sui")
    assert tx.sender == OWNER
    assert rpc.inspected == [(OWNER, tx)]
    assert outcome.status == "success"
    assert outcome.unsigned_payload == {"txBytesBase64": "dHgtYnl0ZXM=", "serializeError": None}


@pytest.mark.asyncio
async def test_serialize_error_is_soft():
    outcome = await run_simulation(
        FakeRpc(),
        FakeTransaction(serialize_error=RuntimeError("missing gas coin")),
        signer_address=OWNER,
        intent_type="sui.transfer.sui",
    )
    assert outcome.status == "success"
    assert outcome.unsigned_payload["txBytesBase64"] is None
    assert "missing gas coin" in outcome.unsigned_payload["serializeError"]


@pytest.mark.asyncio
async def test_failure_status_aborts():
    rpc = FakeRpc()
    rpc.inspect_result = {"effects": {"status": {"status": "failure", "error": "InsufficientGas"}}}
    with pytest.raises(SimulationFailedError) as exc:
        await run_simulation(rpc, FakeTransaction(), signer_address=OWNER, intent_type="sui.swap.cetus")
    assert exc.value.status == "failure"
    assert "InsufficientGas" in str(exc.value)


@pytest.mark.asyncio
async def test_transport_error_is_a_simulation_failure():
    rpc = FakeRpc()
    rpc.inspect_error = UpstreamRpcError("connection reset", source="sui-rpc")
    with pytest.raises(SimulationFailedError) as exc:
        await run_simulation(rpc, FakeTransaction(), signer_address=OWNER, intent_type="sui.swap.cetus")
    assert exc.value.intent_type == "sui.swap.cetus"
