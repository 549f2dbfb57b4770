from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import pytest

from suiflow.integrations.protocols import PoolCandidate, PositionCandidate, SwapRoute
from suiflow.settings import WorkflowSettings
from suiflow.workflow.orchestrator import WorkflowDependencies, WorkflowOrchestrator
from suiflow.workflow.storage import InMemorySessionStore, WorkflowSessionRepository

OWNER = "0x" + "a" * 64
OTHER_OWNER = "0x" + "e" * 64
RECIPIENT = "0x" + "b" * 64
POOL_ID = "0x" + "c" * 64
POOL_ID_2 = "0x" + "d" * 64
POSITION_ID = "0x" + "1" * 64
FARMS_POOL_ID = "0x" + "f" * 64
POSITION_NFT_ID = "0x" + "9" * 64

USDC = "0xdba34672e30cb065b1f93e3ab55318768fd6fef66c15942c9f7cb846e2f900e7::usdc::USDC"
CETUS = "0x06864a6f921804860930db6ddbe2e16acdf8504495ea7481637a1c8b9a8fe54b::cetus::CETUS"
SUI = "0x2::sui::SUI"
STABLE = "0x" + "5" * 64 + "::usdb::USDB"

SUCCESS = {"effects": {"status": {"status": "success"}}}


class FakeTransaction:
    gas = "GAS"

    def __init__(self, serialize_error: Optional[Exception] = None) -> None:
        self.sender: Optional[str] = None
        self.calls: List[tuple] = []
        self.serialize_error = serialize_error

    def object(self, object_id: str) -> Any:
        return ("object", object_id)

    def set_sender(self, address: str) -> None:
        self.sender = address

    def split_coins(self, coin, amounts):
        self.calls.append(("split_coins", coin, list(amounts)))
        return [("split", coin, tuple(amounts))]

    def merge_coins(self, primary, sources) -> None:
        self.calls.append(("merge_coins", primary, list(sources)))

    def transfer_objects(self, objects, recipient: str) -> None:
        self.calls.append(("transfer_objects", list(objects), recipient))

    async def build(self, *, client: Any = None, only_transaction_kind: bool = False) -> bytes:
        if self.serialize_error is not None:
            raise self.serialize_error
        return b"tx-bytes"


@dataclass
class FakeSigner:
    address: str

    def sign_transaction(self, tx_bytes: bytes) -> str:
        return f"sig-{self.address[:6]}"


KEYS = {"key-owner": OWNER, "key-other": OTHER_OWNER}


def resolve_key(key_ref: str) -> FakeSigner:
    if key_ref not in KEYS:
        raise ValueError("unsupported key format")
    return FakeSigner(KEYS[key_ref])


class FakeRpc:
    def __init__(self, network: str = "testnet") -> None:
        self.network = network
        self.coin_pages: Dict[tuple, List[Dict[str, Any]]] = {}
        self.objects: Dict[str, Dict[str, Any]] = {}
        self.metadata: Dict[str, Dict[str, Any]] = {}
        self.inspect_result: Any = SUCCESS
        self.inspect_error: Optional[Exception] = None
        self.execute_result: Dict[str, Any] = {
            "digest": "DIGEST1",
            "confirmedLocalExecution": True,
            **SUCCESS,
        }
        self.inspected: List[tuple] = []
        self.signed: List[tuple] = []
        self.submitted: List[tuple] = []
        self.coin_requests: List[tuple] = []

    async def get_coins(self, owner, coin_type, cursor=None, limit=None):
        self.coin_requests.append((owner, coin_type, cursor, limit))
        pages = self.coin_pages.get((owner, coin_type), [])
        index = int(cursor) if cursor else 0
        if index >= len(pages):
            return {"data": [], "hasNextPage": False, "nextCursor": None}
        return pages[index]

    async def get_object(self, object_id):
        return self.objects.get(object_id, {})

    async def get_coin_metadata(self, coin_type):
        return self.metadata.get(coin_type)

    async def dev_inspect_transaction_block(self, sender, tx):
        self.inspected.append((sender, tx))
        if self.inspect_error is not None:
            raise self.inspect_error
        return self.inspect_result

    async def execute_transaction_block(self, tx_bytes_b64, signatures, *, request_type):
        self.submitted.append((tx_bytes_b64, list(signatures), request_type))
        return self.execute_result

    async def sign_and_execute_transaction(self, signer, tx, *, request_type):
        self.signed.append((signer.address, tx, request_type))
        return self.execute_result


def coin_page(*balances, start: int = 0, next_cursor: Optional[str] = None) -> Dict[str, Any]:
    return {
        "data": [
            {"coinObjectId": f"0xcoin{start + i}", "balance": str(balance)} for i, balance in enumerate(balances)
        ],
        "hasNextPage": next_cursor is not None,
        "nextCursor": next_cursor,
    }


class FakeClmm:
    def __init__(self) -> None:
        self.pools: List[PoolCandidate] = []
        self.positions: List[PositionCandidate] = []
        self.payloads: List[tuple] = []

    async def find_pools_for_pair(self, *, network, coin_type_a, coin_type_b):
        wanted = {coin_type_a, coin_type_b}
        return [pool for pool in self.pools if {pool.coin_type_a, pool.coin_type_b} == wanted]

    async def find_positions(self, *, network, owner, coin_type_a, coin_type_b, pool_id=None):
        return [pos for pos in self.positions if pool_id is None or pos.pool_id == pool_id]

    async def build_add_liquidity_payload(self, *, network, sender, params):
        self.payloads.append(("add", sender, params))
        return FakeTransaction()

    async def build_remove_liquidity_payload(self, *, network, sender, params):
        self.payloads.append(("remove", sender, params))
        return FakeTransaction()


class FakeFarms:
    def __init__(self) -> None:
        self.pools: List[PoolCandidate] = []
        self.positions: List[PositionCandidate] = []
        self.payloads: List[tuple] = []

    async def find_pools_for_pair(self, *, network, coin_type_a, coin_type_b):
        wanted = {coin_type_a, coin_type_b}
        return [pool for pool in self.pools if {pool.coin_type_a, pool.coin_type_b} == wanted]

    async def find_positions(self, *, network, owner, pool_id=None):
        return [pos for pos in self.positions if pool_id is None or pos.pool_id == pool_id]

    async def build_stake_payload(self, **kwargs):
        self.payloads.append(("stake", kwargs))
        return FakeTransaction()

    async def build_unstake_payload(self, **kwargs):
        self.payloads.append(("unstake", kwargs))
        return FakeTransaction()

    async def build_harvest_payload(self, **kwargs):
        self.payloads.append(("harvest", kwargs))
        return FakeTransaction()


class FakeStableLayer:
    def __init__(self) -> None:
        self.calls: List[tuple] = []

    async def build_mint_tx(self, **kwargs):
        self.calls.append(("mint", kwargs))

    async def build_burn_tx(self, **kwargs):
        self.calls.append(("burn", kwargs))

    async def build_claim_tx(self, **kwargs):
        self.calls.append(("claim", kwargs))


class FakeSwapRouter:
    def __init__(self, route: Optional[SwapRoute] = None) -> None:
        self.route = route or SwapRoute(
            amount_in=1_000_000_000,
            amount_out=2_500_000,
            paths=[{"provider": "CETUS"}, {"provider": "DEEPBOOKV3"}],
            quote_id="quote-1",
        )
        self.requests: List[Dict[str, Any]] = []
        self.built: List[Dict[str, Any]] = []

    async def find_route(self, **kwargs):
        self.requests.append(kwargs)
        return self.route

    async def build_swap(self, **kwargs):
        self.built.append(kwargs)


@pytest.fixture
def settings():
    return WorkflowSettings(default_network="testnet")


@pytest.fixture
def rpc():
    return FakeRpc()


@pytest.fixture
def clmm():
    return FakeClmm()


@pytest.fixture
def farms():
    return FakeFarms()


@pytest.fixture
def stable_layer():
    return FakeStableLayer()


@pytest.fixture
def swap_router():
    return FakeSwapRouter()


@pytest.fixture
def sessions():
    WorkflowSessionRepository.reset()
    try:
        yield WorkflowSessionRepository(InMemorySessionStore())
    finally:
        WorkflowSessionRepository.reset()


@pytest.fixture
def dependencies(rpc, clmm, farms, stable_layer, swap_router):
    return WorkflowDependencies(
        rpc_factory=lambda network: rpc,
        new_transaction=FakeTransaction,
        key_resolver=resolve_key,
        swap_router=swap_router,
        clmm=clmm,
        stable_layer=stable_layer,
        farms=farms,
    )


@pytest.fixture
def make_orchestrator(dependencies, sessions, settings):
    def _make(route: str = "core", **overrides) -> WorkflowOrchestrator:
        return WorkflowOrchestrator(
            route,
            dependencies=overrides.get("dependencies", dependencies),
            sessions=sessions,
            settings=overrides.get("settings", settings),
        )

    return _make
