"""Interfaces of the chain and venue collaborators used by the workflow.

Transaction construction, key decoding and the venue SDKs (Cetus aggregator,
Cetus CLMM, Stable Layer, Cetus farms) live outside this package. The
workflow only talks to them through these protocols.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, Union, runtime_checkable


# ---------- Transactions & keys ----------
@runtime_checkable
class TransactionLike(Protocol):
    """An unsigned programmable transaction under construction."""

    @property
    def gas(self) -> Any: ...

    def object(self, object_id: str) -> Any: ...

    def set_sender(self, address: str) -> None: ...

    def split_coins(self, coin: Any, amounts: Sequence[str]) -> List[Any]: ...

    def merge_coins(self, primary: Any, sources: Sequence[Any]) -> None: ...

    def transfer_objects(self, objects: Sequence[Any], recipient: str) -> None: ...

    async def build(self, *, client: Any = None, only_transaction_kind: bool = False) -> bytes: ...


class TransactionFactory(Protocol):
    def __call__(self) -> TransactionLike: ...


class SuiSigner(Protocol):
    """A key able to sign transaction bytes; ``address`` is the derived Sui address."""

    address: str

    def sign_transaction(self, tx_bytes: bytes) -> str: ...


class KeyResolver(Protocol):
    """Turns a key material reference (e.g. ``suiprivkey...``) into a signer."""

    def __call__(self, key_ref: str) -> SuiSigner: ...


# ---------- Chain RPC ----------
class SuiRpc(Protocol):
    network: str

    async def get_coins(
        self,
        owner: str,
        coin_type: str,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Dict[str, Any]: ...

    async def get_object(self, object_id: str) -> Dict[str, Any]: ...

    async def get_coin_metadata(self, coin_type: str) -> Optional[Dict[str, Any]]: ...

    async def dev_inspect_transaction_block(self, sender: str, tx: TransactionLike) -> Dict[str, Any]: ...

    async def execute_transaction_block(
        self,
        tx_bytes_b64: str,
        signatures: Sequence[str],
        *,
        request_type: str,
    ) -> Dict[str, Any]: ...

    async def sign_and_execute_transaction(
        self,
        signer: SuiSigner,
        tx: TransactionLike,
        *,
        request_type: str,
    ) -> Dict[str, Any]: ...


# ---------- Venue results ----------
@dataclass(frozen=True)
class PoolCandidate:
    pool_id: str
    coin_type_a: str
    coin_type_b: str
    pair_label: str
    clmm_pool_id: Optional[str] = None

    def describe(self) -> str:
        return f"{self.pool_id} ({self.pair_label})"


@dataclass(frozen=True)
class PositionCandidate:
    position_id: str
    pool_id: str
    label: str = ""

    def describe(self) -> str:
        return f"{self.position_id} ({self.label or self.pool_id})"


@dataclass
class SwapRoute:
    amount_in: int
    amount_out: int
    paths: List[Dict[str, Any]] = field(default_factory=list)
    quote_id: Optional[str] = None
    insufficient_liquidity: bool = False
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    raw: Any = None

    @property
    def providers(self) -> List[str]:
        seen: List[str] = []
        for path in self.paths:
            provider = path.get("provider")
            if provider and provider not in seen:
                seen.append(provider)
        return seen


# ---------- Venues ----------
class SwapRouter(Protocol):
    async def find_route(
        self,
        *,
        network: str,
        from_coin_type: str,
        target_coin_type: str,
        amount: int,
        by_amount_in: bool,
        providers: Optional[Sequence[str]],
        depth: Optional[int],
        signer: str,
    ) -> Optional[SwapRoute]: ...

    async def build_swap(
        self,
        *,
        network: str,
        tx: TransactionLike,
        route: SwapRoute,
        slippage: float,
        signer: str,
    ) -> None: ...


class ClmmVenue(Protocol):
    async def find_pools_for_pair(
        self, *, network: str, coin_type_a: str, coin_type_b: str
    ) -> List[PoolCandidate]: ...

    async def find_positions(
        self,
        *,
        network: str,
        owner: str,
        coin_type_a: str,
        coin_type_b: str,
        pool_id: Optional[str] = None,
    ) -> List[PositionCandidate]: ...

    async def build_add_liquidity_payload(
        self, *, network: str, sender: str, params: Dict[str, Any]
    ) -> TransactionLike: ...

    async def build_remove_liquidity_payload(
        self, *, network: str, sender: str, params: Dict[str, Any]
    ) -> TransactionLike: ...


class StableLayerVenue(Protocol):
    async def build_mint_tx(
        self,
        *,
        network: str,
        sender: str,
        tx: TransactionLike,
        stable_coin_type: str,
        amount_usdc_raw: int,
        usdc_coin_type: str,
        auto_transfer: bool,
    ) -> None: ...

    async def build_burn_tx(
        self,
        *,
        network: str,
        sender: str,
        tx: TransactionLike,
        stable_coin_type: str,
        amount: Optional[int],
        burn_all: bool,
        auto_transfer: bool,
    ) -> None: ...

    async def build_claim_tx(
        self,
        *,
        network: str,
        sender: str,
        tx: TransactionLike,
        stable_coin_type: str,
        auto_transfer: bool,
    ) -> None: ...


class FarmsVenue(Protocol):
    async def find_pools_for_pair(
        self, *, network: str, coin_type_a: str, coin_type_b: str
    ) -> List[PoolCandidate]: ...

    async def find_positions(
        self, *, network: str, owner: str, pool_id: Optional[str] = None
    ) -> List[PositionCandidate]: ...

    async def build_stake_payload(
        self,
        *,
        network: str,
        sender: str,
        pool_id: str,
        clmm_position_id: str,
        clmm_pool_id: str,
        coin_type_a: str,
        coin_type_b: str,
    ) -> TransactionLike: ...

    async def build_unstake_payload(
        self, *, network: str, sender: str, pool_id: str, position_nft_id: str
    ) -> TransactionLike: ...

    async def build_harvest_payload(
        self, *, network: str, sender: str, pool_id: str, position_nft_id: str
    ) -> TransactionLike: ...


class TokenDirectory(Protocol):
    async def resolve_token_type_by_symbol(
        self, *, network: str, symbol: str
    ) -> Union[str, List[str], None]: ...
