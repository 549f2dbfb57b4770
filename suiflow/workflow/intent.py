"""Typed Sui workflow intents.

Every intent is an immutable pydantic model tagged by ``type``. Attributes are
snake_case in Python and dumped in camelCase for tool responses, so the
public form matches what callers send in.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


def camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


class _IntentBase(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=camel_case,
        extra="forbid",
    )

    def to_public(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ---------- Core route ----------
class TransferSuiIntent(_IntentBase):
    type: Literal["sui.transfer.sui"] = "sui.transfer.sui"
    to_address: str
    amount_sui: Optional[float] = None
    amount_mist: Optional[str] = None


class TransferCoinIntent(_IntentBase):
    type: Literal["sui.transfer.coin"] = "sui.transfer.coin"
    to_address: str
    coin_type: str
    amount_raw: str
    max_coin_objects_to_merge: Optional[int] = None


class SwapCetusIntent(_IntentBase):
    type: Literal["sui.swap.cetus"] = "sui.swap.cetus"
    input_coin_type: str
    output_coin_type: str
    amount_raw: str
    by_amount_in: bool = True
    slippage_bps: int
    providers: Optional[Tuple[str, ...]] = None
    depth: Optional[int] = None


class AddLiquidityIntent(_IntentBase):
    type: Literal["sui.lp.cetus.add"] = "sui.lp.cetus.add"
    pool_id: str
    position_id: Optional[str] = None
    coin_type_a: str
    coin_type_b: str
    tick_lower: int
    tick_upper: int
    amount_a: str
    amount_b: str
    fix_amount_a: bool = True
    slippage_bps: int
    collect_fee: bool = True
    rewarder_coin_types: Tuple[str, ...] = ()


class RemoveLiquidityIntent(_IntentBase):
    type: Literal["sui.lp.cetus.remove"] = "sui.lp.cetus.remove"
    pool_id: str
    position_id: str
    coin_type_a: str
    coin_type_b: str
    delta_liquidity: str
    min_amount_a: str
    min_amount_b: str
    collect_fee: bool = True
    rewarder_coin_types: Tuple[str, ...] = ()


# ---------- Stable Layer route ----------
class StableLayerMintIntent(_IntentBase):
    type: Literal["sui.stablelayer.mint"] = "sui.stablelayer.mint"
    stable_coin_type: str
    amount_usdc_raw: str
    usdc_coin_type: str
    auto_transfer: bool = True


class StableLayerBurnIntent(_IntentBase):
    type: Literal["sui.stablelayer.burn"] = "sui.stablelayer.burn"
    stable_coin_type: str
    amount_stable_raw: Optional[str] = None
    burn_all: bool = False
    auto_transfer: bool = True


class StableLayerClaimIntent(_IntentBase):
    type: Literal["sui.stablelayer.claim"] = "sui.stablelayer.claim"
    stable_coin_type: str
    auto_transfer: bool = True


# ---------- Cetus farms route ----------
class FarmsStakeIntent(_IntentBase):
    type: Literal["sui.cetus.farms.stake"] = "sui.cetus.farms.stake"
    pool_id: str
    clmm_position_id: str
    clmm_pool_id: str
    coin_type_a: str
    coin_type_b: str


class FarmsUnstakeIntent(_IntentBase):
    type: Literal["sui.cetus.farms.unstake"] = "sui.cetus.farms.unstake"
    pool_id: str
    position_nft_id: str


class FarmsHarvestIntent(_IntentBase):
    type: Literal["sui.cetus.farms.harvest"] = "sui.cetus.farms.harvest"
    pool_id: str
    position_nft_id: str


SuiIntent = Annotated[
    Union[
        TransferSuiIntent,
        TransferCoinIntent,
        SwapCetusIntent,
        AddLiquidityIntent,
        RemoveLiquidityIntent,
        StableLayerMintIntent,
        StableLayerBurnIntent,
        StableLayerClaimIntent,
        FarmsStakeIntent,
        FarmsUnstakeIntent,
        FarmsHarvestIntent,
    ],
    Field(discriminator="type"),
]

ROUTE_INTENT_TYPES: Dict[str, Tuple[str, ...]] = {
    "core": (
        "sui.transfer.sui",
        "sui.transfer.coin",
        "sui.swap.cetus",
        "sui.lp.cetus.add",
        "sui.lp.cetus.remove",
    ),
    "stablelayer": (
        "sui.stablelayer.mint",
        "sui.stablelayer.burn",
        "sui.stablelayer.claim",
    ),
    "farms": (
        "sui.cetus.farms.stake",
        "sui.cetus.farms.unstake",
        "sui.cetus.farms.harvest",
    ),
}


def route_for_intent_type(intent_type: str) -> Optional[str]:
    for route, types in ROUTE_INTENT_TYPES.items():
        if intent_type in types:
            return route
    return None
