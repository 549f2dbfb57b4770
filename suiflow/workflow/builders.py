"""Per-intent transaction builders.

Builders only pick input coins and shape venue call parameters; the venue
SDKs and transaction primitives do the rest.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from suiflow.errors import UpstreamRpcError, ValidationError
from suiflow.integrations.protocols import (
    ClmmVenue,
    FarmsVenue,
    StableLayerVenue,
    SuiRpc,
    SwapRouter,
    TransactionFactory,
    TransactionLike,
)
from suiflow.workflow.amounts import sui_to_mist
from suiflow.workflow.config import DEFAULT_MAX_COIN_OBJECTS, MAX_COIN_OBJECTS
from suiflow.workflow.intent import (
    AddLiquidityIntent,
    FarmsHarvestIntent,
    FarmsStakeIntent,
    FarmsUnstakeIntent,
    RemoveLiquidityIntent,
    StableLayerBurnIntent,
    StableLayerClaimIntent,
    StableLayerMintIntent,
    SuiIntent,
    SwapCetusIntent,
    TransferCoinIntent,
    TransferSuiIntent,
)

logger = logging.getLogger(__name__)

_VENUE_NETWORKS = ("mainnet", "testnet")


@dataclass
class BuildContext:
    """Collaborators a builder may use for one call."""

    rpc: SuiRpc
    network: str
    signer_address: str
    new_transaction: TransactionFactory
    swap_router: Optional[SwapRouter] = None
    clmm: Optional[ClmmVenue] = None
    stable_layer: Optional[StableLayerVenue] = None
    farms: Optional[FarmsVenue] = None


@dataclass
class BuildResult:
    transaction: TransactionLike
    artifacts: Dict[str, Any] = field(default_factory=dict)


def slippage_fraction(slippage_bps: int) -> float:
    """``100`` bps -> ``0.01``."""
    return slippage_bps / 10_000


def _venue(ctx: BuildContext, venue: Any, name: str) -> Any:
    if ctx.network not in _VENUE_NETWORKS:
        raise ValidationError(
            f"{name} is only available on mainnet or testnet (got {ctx.network}).",
            field="network",
        )
    if venue is None:
        raise ValidationError(f"{name} is not configured for this workflow.")
    return venue


async def select_coin_objects(
    rpc: SuiRpc,
    owner: str,
    coin_type: str,
    amount: int,
    max_objects: Optional[int] = None,
) -> Tuple[List[str], int]:
    """Greedily page the owner's coins until ``amount`` is covered.

    Returns ``(object_ids, selected_balance)``. Coins with a non-numeric or
    zero balance are skipped; at most ``max_objects`` coins are taken.
    """

    limit = max_objects or DEFAULT_MAX_COIN_OBJECTS
    if not 1 <= limit <= MAX_COIN_OBJECTS:
        raise ValidationError(
            f"maxCoinObjectsToMerge must be between 1 and {MAX_COIN_OBJECTS}.",
            field="maxCoinObjectsToMerge",
        )

    selected: List[str] = []
    total = 0
    cursor: Optional[str] = None
    while len(selected) < limit:
        page = await rpc.get_coins(owner, coin_type, cursor, min(100, limit - len(selected)))
        for coin in page.get("data") or []:
            balance = str(coin.get("balance", ""))
            if not balance.isdigit() or int(balance) == 0:
                continue
            selected.append(coin["coinObjectId"])
            total += int(balance)
            if total >= amount or len(selected) >= limit:
                break
        if total >= amount or not page.get("hasNextPage") or not page.get("nextCursor"):
            break
        cursor = page["nextCursor"]

    if total < amount:
        raise ValidationError(
            f"Insufficient {coin_type} balance: need {amount}, found {total} "
            f"across {len(selected)} coin object(s) (limit {limit}).",
            field="amountRaw",
        )
    return selected, total


# ---------- Core route ----------
async def build_transfer_sui(intent: TransferSuiIntent, ctx: BuildContext) -> BuildResult:
    amount_mist = intent.amount_mist or sui_to_mist(intent.amount_sui)
    tx = ctx.new_transaction()
    [coin] = tx.split_coins(tx.gas, [amount_mist])
    tx.transfer_objects([coin], intent.to_address)
    return BuildResult(tx, {"toAddress": intent.to_address, "amountMist": amount_mist})


async def build_transfer_coin(intent: TransferCoinIntent, ctx: BuildContext) -> BuildResult:
    amount = int(intent.amount_raw)
    object_ids, selected_balance = await select_coin_objects(
        ctx.rpc,
        ctx.signer_address,
        intent.coin_type,
        amount,
        intent.max_coin_objects_to_merge,
    )
    tx = ctx.new_transaction()
    primary = tx.object(object_ids[0])
    if len(object_ids) > 1:
        tx.merge_coins(primary, [tx.object(object_id) for object_id in object_ids[1:]])
    [coin] = tx.split_coins(primary, [intent.amount_raw])
    tx.transfer_objects([coin], intent.to_address)
    return BuildResult(
        tx,
        {
            "coinType": intent.coin_type,
            "amountRaw": intent.amount_raw,
            "selectedCoinObjectIds": object_ids,
            "selectedBalanceRaw": str(selected_balance),
        },
    )


async def build_swap(intent: SwapCetusIntent, ctx: BuildContext) -> BuildResult:
    router: SwapRouter = _venue(ctx, ctx.swap_router, "Cetus aggregator swap")
    route = await router.find_route(
        network=ctx.network,
        from_coin_type=intent.input_coin_type,
        target_coin_type=intent.output_coin_type,
        amount=int(intent.amount_raw),
        by_amount_in=intent.by_amount_in,
        providers=list(intent.providers) if intent.providers else None,
        depth=intent.depth,
        signer=ctx.signer_address,
    )
    if route is None or route.insufficient_liquidity or not route.paths:
        if route is not None and (route.error_code or route.error_message):
            reason = f"{route.error_code}: {route.error_message}"
        elif route is not None and route.insufficient_liquidity:
            reason = "Insufficient liquidity"
        else:
            reason = "No route found"
        raise UpstreamRpcError(f"Unable to build swap ({reason})", source="cetus-aggregator")

    tx = ctx.new_transaction()
    await router.build_swap(
        network=ctx.network,
        tx=tx,
        route=route,
        slippage=slippage_fraction(intent.slippage_bps),
        signer=ctx.signer_address,
    )
    return BuildResult(
        tx,
        {
            "quoteId": route.quote_id,
            "routeAmountIn": str(route.amount_in),
            "routeAmountOut": str(route.amount_out),
            "pathCount": len(route.paths),
            "providersUsed": route.providers,
            "slippage": slippage_fraction(intent.slippage_bps),
        },
    )


async def build_add_liquidity(intent: AddLiquidityIntent, ctx: BuildContext) -> BuildResult:
    clmm: ClmmVenue = _venue(ctx, ctx.clmm, "Cetus CLMM")
    payload = {
        "poolId": intent.pool_id,
        "positionId": intent.position_id,
        "coinTypeA": intent.coin_type_a,
        "coinTypeB": intent.coin_type_b,
        "tickLower": intent.tick_lower,
        "tickUpper": intent.tick_upper,
        "amountA": intent.amount_a,
        "amountB": intent.amount_b,
        "fixAmountA": intent.fix_amount_a,
        "slippage": slippage_fraction(intent.slippage_bps),
        "collectFee": intent.collect_fee,
        "rewarderCoinTypes": list(intent.rewarder_coin_types),
    }
    tx = await clmm.build_add_liquidity_payload(network=ctx.network, sender=ctx.signer_address, params=payload)
    return BuildResult(tx, {"liquidityParams": payload})


async def build_remove_liquidity(intent: RemoveLiquidityIntent, ctx: BuildContext) -> BuildResult:
    clmm: ClmmVenue = _venue(ctx, ctx.clmm, "Cetus CLMM")
    payload = {
        "poolId": intent.pool_id,
        "positionId": intent.position_id,
        "coinTypeA": intent.coin_type_a,
        "coinTypeB": intent.coin_type_b,
        "deltaLiquidity": intent.delta_liquidity,
        "minAmountA": intent.min_amount_a,
        "minAmountB": intent.min_amount_b,
        "collectFee": intent.collect_fee,
        "rewarderCoinTypes": list(intent.rewarder_coin_types),
    }
    tx = await clmm.build_remove_liquidity_payload(network=ctx.network, sender=ctx.signer_address, params=payload)
    return BuildResult(tx, {"liquidityParams": payload})


# ---------- Stable Layer route ----------
async def build_stable_mint(intent: StableLayerMintIntent, ctx: BuildContext) -> BuildResult:
    venue: StableLayerVenue = _venue(ctx, ctx.stable_layer, "Stable Layer")
    tx = ctx.new_transaction()
    await venue.build_mint_tx(
        network=ctx.network,
        sender=ctx.signer_address,
        tx=tx,
        stable_coin_type=intent.stable_coin_type,
        amount_usdc_raw=int(intent.amount_usdc_raw),
        usdc_coin_type=intent.usdc_coin_type,
        auto_transfer=intent.auto_transfer,
    )
    return BuildResult(
        tx,
        {
            "stableCoinType": intent.stable_coin_type,
            "amountUsdcRaw": intent.amount_usdc_raw,
            "usdcCoinType": intent.usdc_coin_type,
        },
    )


async def build_stable_burn(intent: StableLayerBurnIntent, ctx: BuildContext) -> BuildResult:
    venue: StableLayerVenue = _venue(ctx, ctx.stable_layer, "Stable Layer")
    tx = ctx.new_transaction()
    await venue.build_burn_tx(
        network=ctx.network,
        sender=ctx.signer_address,
        tx=tx,
        stable_coin_type=intent.stable_coin_type,
        amount=int(intent.amount_stable_raw) if intent.amount_stable_raw else None,
        burn_all=intent.burn_all,
        auto_transfer=intent.auto_transfer,
    )
    return BuildResult(
        tx,
        {
            "stableCoinType": intent.stable_coin_type,
            "amountStableRaw": intent.amount_stable_raw,
            "burnAll": intent.burn_all,
        },
    )


async def build_stable_claim(intent: StableLayerClaimIntent, ctx: BuildContext) -> BuildResult:
    venue: StableLayerVenue = _venue(ctx, ctx.stable_layer, "Stable Layer")
    tx = ctx.new_transaction()
    await venue.build_claim_tx(
        network=ctx.network,
        sender=ctx.signer_address,
        tx=tx,
        stable_coin_type=intent.stable_coin_type,
        auto_transfer=intent.auto_transfer,
    )
    return BuildResult(tx, {"stableCoinType": intent.stable_coin_type})


# ---------- Cetus farms route ----------
async def build_farms_stake(intent: FarmsStakeIntent, ctx: BuildContext) -> BuildResult:
    farms: FarmsVenue = _venue(ctx, ctx.farms, "Cetus farms")
    tx = await farms.build_stake_payload(
        network=ctx.network,
        sender=ctx.signer_address,
        pool_id=intent.pool_id,
        clmm_position_id=intent.clmm_position_id,
        clmm_pool_id=intent.clmm_pool_id,
        coin_type_a=intent.coin_type_a,
        coin_type_b=intent.coin_type_b,
    )
    return BuildResult(tx, {"poolId": intent.pool_id, "clmmPositionId": intent.clmm_position_id})


async def build_farms_unstake(intent: FarmsUnstakeIntent, ctx: BuildContext) -> BuildResult:
    farms: FarmsVenue = _venue(ctx, ctx.farms, "Cetus farms")
    tx = await farms.build_unstake_payload(
        network=ctx.network,
        sender=ctx.signer_address,
        pool_id=intent.pool_id,
        position_nft_id=intent.position_nft_id,
    )
    return BuildResult(tx, {"poolId": intent.pool_id, "positionNftId": intent.position_nft_id})


async def build_farms_harvest(intent: FarmsHarvestIntent, ctx: BuildContext) -> BuildResult:
    farms: FarmsVenue = _venue(ctx, ctx.farms, "Cetus farms")
    tx = await farms.build_harvest_payload(
        network=ctx.network,
        sender=ctx.signer_address,
        pool_id=intent.pool_id,
        position_nft_id=intent.position_nft_id,
    )
    return BuildResult(tx, {"poolId": intent.pool_id, "positionNftId": intent.position_nft_id})


Builder = Callable[[Any, BuildContext], Awaitable[BuildResult]]

BUILDERS: Dict[str, Builder] = {
    "sui.transfer.sui": build_transfer_sui,
    "sui.transfer.coin": build_transfer_coin,
    "sui.swap.cetus": build_swap,
    "sui.lp.cetus.add": build_add_liquidity,
    "sui.lp.cetus.remove": build_remove_liquidity,
    "sui.stablelayer.mint": build_stable_mint,
    "sui.stablelayer.burn": build_stable_burn,
    "sui.stablelayer.claim": build_stable_claim,
    "sui.cetus.farms.stake": build_farms_stake,
    "sui.cetus.farms.unstake": build_farms_unstake,
    "sui.cetus.farms.harvest": build_farms_harvest,
}


async def build_transaction(intent: SuiIntent, ctx: BuildContext) -> BuildResult:
    result = await BUILDERS[intent.type](intent, ctx)
    logger.debug("Built %s transaction for %s on %s", intent.type, ctx.signer_address, ctx.network)
    return result
