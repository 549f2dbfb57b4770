"""Turn workflow parameters into one fully-resolved :data:`SuiIntent`.

Resolution order for the intent type is: explicit ``intentType``, then a
keyword found in ``intentText``, then the combination of structured fields
present. Structured fields always win over anything parsed from text.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from suiflow.errors import ValidationError
from suiflow.integrations.protocols import (
    ClmmVenue,
    FarmsVenue,
    PoolCandidate,
    PositionCandidate,
    SuiRpc,
    TokenDirectory,
)
from suiflow.workflow.amounts import is_raw_amount, is_ui_amount, parse_amount, parse_positive_amount
from suiflow.workflow.config import (
    DEFAULT_SLIPPAGE_BPS,
    FULL_RANGE_TICK_LOWER,
    FULL_RANGE_TICK_UPPER,
    MAX_POOL_CANDIDATES_LISTED,
    MAX_SLIPPAGE_BPS,
    STABLE_LAYER_DEFAULT_USDC_COIN_TYPE,
    SUI_COIN_TYPE,
    SUI_DECIMALS,
    SuiTokenConfig,
    is_coin_type,
    normalize_coin_type,
)
from suiflow.workflow.hints import TextHints, detect_intent_keyword, extract_hints
from suiflow.workflow.intent import (
    ROUTE_INTENT_TYPES,
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
    route_for_intent_type,
)
from suiflow.workflow.params import WorkflowParams

logger = logging.getLogger(__name__)

_POOL_TYPE_RE = re.compile(r"::pool::Pool<\s*(.+?)\s*,\s*(.+?)\s*>$")


def _describe_candidates(candidates: Sequence[Any]) -> str:
    shown = [candidate.describe() for candidate in candidates[:MAX_POOL_CANDIDATES_LISTED]]
    if len(candidates) > MAX_POOL_CANDIDATES_LISTED:
        shown.append(f"... (+{len(candidates) - MAX_POOL_CANDIDATES_LISTED} more)")
    return ", ".join(shown)


def _require(value: Any, field: str, intent_type: str) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field} is required for {intent_type}.", field=field)
    return value


def _object_fields(obj: Dict[str, Any]) -> Dict[str, Any]:
    data = obj.get("data") or {}
    content = data.get("content") or {}
    fields = content.get("fields")
    return fields if isinstance(fields, dict) else {}


def _slippage(params: WorkflowParams, hints: TextHints) -> int:
    value = params.slippage_bps if params.slippage_bps is not None else hints.slippage_bps
    if value is None:
        return DEFAULT_SLIPPAGE_BPS
    if not 1 <= int(value) <= MAX_SLIPPAGE_BPS:
        raise ValidationError(
            f"slippageBps must be between 1 and {MAX_SLIPPAGE_BPS}, got {value}.",
            field="slippageBps",
        )
    return int(value)


@dataclass
class _Context:
    params: WorkflowParams
    hints: TextHints
    network: str
    owner: Optional[str]


class IntentNormalizer:
    """Builds intents, consulting the chain and venues for missing ids and types."""

    def __init__(
        self,
        rpc: SuiRpc,
        *,
        clmm: ClmmVenue | None = None,
        farms: FarmsVenue | None = None,
        token_directory: TokenDirectory | None = None,
    ) -> None:
        self._rpc = rpc
        self._clmm = clmm
        self._farms = farms
        self._token_directory = token_directory
        self._handlers: Dict[str, Callable[[_Context], Awaitable[SuiIntent]]] = {
            "sui.transfer.sui": self._transfer_sui,
            "sui.transfer.coin": self._transfer_coin,
            "sui.swap.cetus": self._swap,
            "sui.lp.cetus.add": self._add_liquidity,
            "sui.lp.cetus.remove": self._remove_liquidity,
            "sui.stablelayer.mint": self._stable_mint,
            "sui.stablelayer.burn": self._stable_burn,
            "sui.stablelayer.claim": self._stable_claim,
            "sui.cetus.farms.stake": self._farms_stake,
            "sui.cetus.farms.unstake": self._farms_unstake,
            "sui.cetus.farms.harvest": self._farms_harvest,
        }

    async def normalize(
        self,
        params: WorkflowParams,
        *,
        route: str,
        network: str,
        owner_address: Optional[str] = None,
    ) -> SuiIntent:
        hints = extract_hints(params.intent_text)
        ctx = _Context(params=params, hints=hints, network=network, owner=params.owner_address or owner_address)
        intent_type = self.resolve_intent_type(params, hints, route)
        logger.debug("Normalizing %s on %s (route=%s)", intent_type, network, route)
        return await self._handlers[intent_type](ctx)

    # ------------------------------------------------------------------
    # Intent type
    # ------------------------------------------------------------------
    def resolve_intent_type(self, params: WorkflowParams, hints: TextHints, route: str) -> str:
        allowed = ROUTE_INTENT_TYPES[route]
        if params.intent_type:
            if params.intent_type not in allowed:
                owner_route = route_for_intent_type(params.intent_type)
                detail = f" (it belongs to the {owner_route} workflow)" if owner_route else ""
                raise ValidationError(
                    f"Unsupported intentType={params.intent_type} for the {route} workflow{detail}. "
                    f"Expected one of: {', '.join(allowed)}.",
                    field="intentType",
                )
            return params.intent_type

        keyword = None
        if params.intent_text:
            scope = allowed + ("sui.transfer",) if route == "core" else allowed
            keyword = detect_intent_keyword(params.intent_text, scope)
        if keyword == "sui.transfer":
            return self._transfer_kind(params, hints)
        if keyword:
            return keyword

        inferred = self._infer_from_fields(params, route)
        if inferred:
            return inferred
        raise ValidationError(
            f"Cannot determine the {route} intent: provide intentType "
            f"({', '.join(allowed)}) or the fields that identify it.",
            field="intentType",
        )

    @staticmethod
    def _transfer_kind(params: WorkflowParams, hints: TextHints) -> str:
        coin = params.coin_type or (hints.coin_types[0] if hints.coin_types else None)
        if coin is None and hints.amount_symbol and hints.amount_symbol != "SUI":
            coin = hints.amount_symbol
        if coin and coin.upper() != "SUI" and normalize_coin_type(coin) != SUI_COIN_TYPE:
            return "sui.transfer.coin"
        return "sui.transfer.sui"

    @staticmethod
    def _infer_from_fields(params: WorkflowParams, route: str) -> Optional[str]:
        p = params
        if route == "core":
            if p.delta_liquidity and p.min_amount_a is not None and p.min_amount_b is not None:
                return "sui.lp.cetus.remove"
            if (p.amount_a or p.amount_b) and (p.pool_id or (p.coin_type_a and p.coin_type_b)):
                return "sui.lp.cetus.add"
            if p.input_coin_type and p.output_coin_type:
                return "sui.swap.cetus"
            if p.coin_type and p.to_address:
                if normalize_coin_type(p.coin_type) == SUI_COIN_TYPE:
                    return "sui.transfer.sui"
                return "sui.transfer.coin"
            if p.to_address and (p.amount_sui is not None or p.amount_mist or p.amount_raw):
                return "sui.transfer.sui"
            return None
        if route == "stablelayer":
            if p.amount_usdc_raw:
                return "sui.stablelayer.mint"
            if p.burn_all or p.amount_stable_raw:
                return "sui.stablelayer.burn"
            return None
        if route == "farms":
            if p.clmm_position_id:
                return "sui.cetus.farms.stake"
            if p.position_nft_id:
                raise ValidationError(
                    "positionNftId alone is ambiguous: set intentType to "
                    "sui.cetus.farms.unstake or sui.cetus.farms.harvest.",
                    field="intentType",
                )
            return None
        return None

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------
    async def resolve_coin_type(self, value: str, network: str, field: str) -> str:
        """Accept a fully-qualified type or a symbol known to the registry or directory."""

        text = (value or "").strip()
        if not text:
            raise ValidationError(f"{field} is required.", field=field)
        if is_coin_type(text):
            return normalize_coin_type(text)

        known = SuiTokenConfig.lookup_symbol(text, network)
        if known:
            return known[0]

        if self._token_directory is not None:
            resolved = await self._token_directory.resolve_token_type_by_symbol(network=network, symbol=text)
            if isinstance(resolved, str) and resolved:
                return normalize_coin_type(resolved)
            if isinstance(resolved, list):
                unique = sorted({normalize_coin_type(item) for item in resolved if item})
                if len(unique) == 1:
                    return unique[0]
                if len(unique) > 1:
                    raise ValidationError(
                        f"{field}={text} matches multiple coin types: "
                        f"{', '.join(unique[:MAX_POOL_CANDIDATES_LISTED])}. Please provide the full coin type.",
                        field=field,
                        candidates=unique,
                    )
        raise ValidationError(
            f"Unknown token symbol {text} on {network}; provide the full coin type for {field}.",
            field=field,
        )

    async def coin_decimals(self, coin_type: str, network: str) -> Optional[int]:
        decimals = SuiTokenConfig.decimals_for(coin_type, network)
        if decimals is not None:
            return decimals
        metadata = await self._rpc.get_coin_metadata(coin_type)
        if isinstance(metadata, dict) and isinstance(metadata.get("decimals"), int):
            return metadata["decimals"]
        return None

    async def parse_coin_amount(self, value: Any, coin_type: str, network: str, field: str, *, positive: bool = True) -> str:
        decimals = None
        if not is_raw_amount(value) and is_ui_amount(value):
            decimals = await self.coin_decimals(coin_type, network)
        if positive:
            return parse_positive_amount(value, decimals, field)
        return parse_amount(value, decimals, field)

    async def pool_coin_types(self, pool_id: str) -> Tuple[str, str]:
        obj = await self._rpc.get_object(pool_id)
        object_type = ((obj.get("data") or {}).get("type")) or ""
        match = _POOL_TYPE_RE.search(object_type)
        if not match:
            raise ValidationError(
                f"Cannot read coin types from pool {pool_id} (type={object_type or 'unknown'}); "
                "provide coinTypeA and coinTypeB.",
                field="poolId",
            )
        return normalize_coin_type(match.group(1)), normalize_coin_type(match.group(2))

    async def position_pool_id(self, position_id: str) -> str:
        fields = _object_fields(await self._rpc.get_object(position_id))
        pool = fields.get("pool") or fields.get("pool_id")
        if not isinstance(pool, str) or not pool:
            raise ValidationError(
                f"Cannot read the pool of position {position_id}; provide poolId.",
                field="poolId",
            )
        return pool

    async def _pair_types(self, ctx: _Context, left: Optional[str], right: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
        if left is None and right is None and ctx.hints.pair:
            left, right = ctx.hints.pair
        if left is None or right is None:
            return (
                await self.resolve_coin_type(left, ctx.network, "coinTypeA") if left else None,
                await self.resolve_coin_type(right, ctx.network, "coinTypeB") if right else None,
            )
        type_a, type_b = await asyncio.gather(
            self.resolve_coin_type(left, ctx.network, "coinTypeA"),
            self.resolve_coin_type(right, ctx.network, "coinTypeB"),
        )
        return type_a, type_b

    @staticmethod
    def _pick_one(candidates: List[Any], *, none_message: str, many_message: str, field: str) -> Any:
        if not candidates:
            raise ValidationError(none_message, field=field)
        if len(candidates) > 1:
            raise ValidationError(
                f"{many_message}: {_describe_candidates(candidates)}. Please provide {field}.",
                field=field,
                candidates=list(candidates),
            )
        return candidates[0]

    def _need_venue(self, venue: Any, name: str) -> Any:
        if venue is None:
            raise ValidationError(f"{name} lookups are not configured; provide the ids explicitly.")
        return venue

    # ------------------------------------------------------------------
    # Core route
    # ------------------------------------------------------------------
    async def _transfer_sui(self, ctx: _Context) -> SuiIntent:
        p, h = ctx.params, ctx.hints
        intent_type = "sui.transfer.sui"
        to_address = _require(p.to_address or h.first_object_id(), "toAddress", intent_type)

        amount_mist = None
        amount_sui = p.amount_sui
        raw = p.amount_mist or p.amount_raw
        if raw is not None:
            amount_mist = parse_positive_amount(raw, SUI_DECIMALS, "amountMist")
        elif amount_sui is None and h.amount and h.amount_symbol in (None, "SUI"):
            amount_sui = float(h.amount)
        if amount_mist is None and amount_sui is None:
            raise ValidationError(f"amountSui or amountMist is required for {intent_type}.", field="amountSui")
        if amount_sui is not None and amount_sui <= 0:
            raise ValidationError("amountSui must be greater than zero.", field="amountSui")
        return TransferSuiIntent(to_address=to_address, amount_sui=amount_sui, amount_mist=amount_mist)

    async def _transfer_coin(self, ctx: _Context) -> SuiIntent:
        p, h = ctx.params, ctx.hints
        intent_type = "sui.transfer.coin"
        to_address = _require(p.to_address or h.first_object_id(), "toAddress", intent_type)
        coin_ref = p.coin_type or (h.coin_types[0] if h.coin_types else None) or h.amount_symbol
        coin_type = await self.resolve_coin_type(_require(coin_ref, "coinType", intent_type), ctx.network, "coinType")
        if coin_type == SUI_COIN_TYPE:
            return await self._transfer_sui(ctx)
        amount = _require(p.amount_raw or h.amount, "amountRaw", intent_type)
        amount_raw = await self.parse_coin_amount(amount, coin_type, ctx.network, "amountRaw")
        return TransferCoinIntent(
            to_address=to_address,
            coin_type=coin_type,
            amount_raw=amount_raw,
            max_coin_objects_to_merge=p.max_coin_objects_to_merge,
        )

    async def _swap(self, ctx: _Context) -> SuiIntent:
        p, h = ctx.params, ctx.hints
        intent_type = "sui.swap.cetus"
        input_ref, output_ref = p.input_coin_type, p.output_coin_type
        if input_ref is None and output_ref is None:
            if len(h.coin_types) >= 2:
                input_ref, output_ref = h.coin_types[0], h.coin_types[1]
            elif h.pair:
                input_ref, output_ref = h.pair
        input_coin_type = await self.resolve_coin_type(
            _require(input_ref, "inputCoinType", intent_type), ctx.network, "inputCoinType"
        )
        output_coin_type = await self.resolve_coin_type(
            _require(output_ref, "outputCoinType", intent_type), ctx.network, "outputCoinType"
        )
        if input_coin_type == output_coin_type:
            raise ValidationError("inputCoinType and outputCoinType must be different.", field="outputCoinType")

        by_amount_in = True if p.by_amount_in is None else p.by_amount_in
        amount = _require(p.amount_raw or h.amount, "amountRaw", intent_type)
        amount_coin = input_coin_type if by_amount_in else output_coin_type
        amount_raw = await self.parse_coin_amount(amount, amount_coin, ctx.network, "amountRaw")
        return SwapCetusIntent(
            input_coin_type=input_coin_type,
            output_coin_type=output_coin_type,
            amount_raw=amount_raw,
            by_amount_in=by_amount_in,
            slippage_bps=_slippage(p, h),
            providers=tuple(p.providers) if p.providers else None,
            depth=p.depth,
        )

    async def _resolve_clmm_pool(self, ctx: _Context, coin_type_a: Optional[str], coin_type_b: Optional[str]) -> PoolCandidate:
        clmm = self._need_venue(self._clmm, "Cetus CLMM pool")
        if not coin_type_a or not coin_type_b:
            raise ValidationError("poolId or both coinTypeA and coinTypeB are required.", field="poolId")
        pair = f"{SuiTokenConfig.symbol_for(coin_type_a, ctx.network)}/{SuiTokenConfig.symbol_for(coin_type_b, ctx.network)}"
        candidates = await clmm.find_pools_for_pair(
            network=ctx.network, coin_type_a=coin_type_a, coin_type_b=coin_type_b
        )
        return self._pick_one(
            list(candidates),
            none_message=f"No Cetus pools found for pair {pair}.",
            many_message=f"Pair {pair} maps to multiple pools",
            field="poolId",
        )

    async def _lp_pool_and_types(
        self, ctx: _Context, pool_id: Optional[str], position_id: Optional[str]
    ) -> Tuple[str, str, str, bool]:
        """Return ``(pool_id, coin_type_a, coin_type_b, reversed)`` in pool order.

        ``reversed`` is True when the caller named the pair as ``B/A`` of the
        pool that was looked up for it.
        """
        p = ctx.params
        coin_type_a, coin_type_b = await self._pair_types(ctx, p.coin_type_a, p.coin_type_b)
        reversed_pair = False
        if not pool_id and position_id:
            pool_id = await self.position_pool_id(position_id)
        if not pool_id:
            candidate = await self._resolve_clmm_pool(ctx, coin_type_a, coin_type_b)
            pool_id = candidate.pool_id
            reversed_pair = (
                normalize_coin_type(candidate.coin_type_a) == coin_type_b
                and normalize_coin_type(candidate.coin_type_b) == coin_type_a
            )
            coin_type_a = normalize_coin_type(candidate.coin_type_a)
            coin_type_b = normalize_coin_type(candidate.coin_type_b)
        if not coin_type_a or not coin_type_b:
            coin_type_a, coin_type_b = await self.pool_coin_types(pool_id)
        return pool_id, coin_type_a, coin_type_b, reversed_pair

    async def _add_liquidity(self, ctx: _Context) -> SuiIntent:
        p, h = ctx.params, ctx.hints
        intent_type = "sui.lp.cetus.add"
        pool_id = p.pool_id or (h.first_object_id() if not p.position_id else None)
        pool_id, coin_type_a, coin_type_b, reversed_pair = await self._lp_pool_and_types(ctx, pool_id, p.position_id)

        if p.amount_a is None and p.amount_b is None:
            raise ValidationError(f"amountA or amountB is required for {intent_type}.", field="amountA")
        given_a, given_b, given_fix_a = p.amount_a, p.amount_b, p.fix_amount_a
        if reversed_pair:
            given_a, given_b = given_b, given_a
            given_fix_a = None if given_fix_a is None else not given_fix_a
        amount_a = await self.parse_coin_amount(given_a or "0", coin_type_a, ctx.network, "amountA", positive=False)
        amount_b = await self.parse_coin_amount(given_b or "0", coin_type_b, ctx.network, "amountB", positive=False)
        if int(amount_a) == 0 and int(amount_b) == 0:
            raise ValidationError("amountA or amountB must be greater than zero.", field="amountA")
        fix_amount_a = given_fix_a if given_fix_a is not None else int(amount_a) > 0

        tick_lower, tick_upper = p.tick_lower, p.tick_upper
        if tick_lower is None and tick_upper is None and h.tick_range:
            tick_lower, tick_upper = h.tick_range
        if tick_lower is not None and tick_upper is not None:
            if tick_lower > tick_upper:
                tick_lower, tick_upper = tick_upper, tick_lower
        else:
            tick_lower = FULL_RANGE_TICK_LOWER if tick_lower is None else tick_lower
            tick_upper = FULL_RANGE_TICK_UPPER if tick_upper is None else tick_upper
            if tick_lower >= tick_upper:
                raise ValidationError(
                    f"Tick range [{tick_lower}, {tick_upper}] is empty: give both tickLower and tickUpper, "
                    f"or keep the single bound inside [{FULL_RANGE_TICK_LOWER}, {FULL_RANGE_TICK_UPPER}].",
                    field="tickLower" if p.tick_lower is not None else "tickUpper",
                )

        return AddLiquidityIntent(
            pool_id=pool_id,
            position_id=p.position_id,
            coin_type_a=coin_type_a,
            coin_type_b=coin_type_b,
            tick_lower=tick_lower,
            tick_upper=tick_upper,
            amount_a=amount_a,
            amount_b=amount_b,
            fix_amount_a=fix_amount_a,
            slippage_bps=_slippage(p, h),
            collect_fee=True if p.collect_fee is None else p.collect_fee,
            rewarder_coin_types=tuple(normalize_coin_type(t) for t in (p.rewarder_coin_types or [])),
        )

    async def _remove_liquidity(self, ctx: _Context) -> SuiIntent:
        p, h = ctx.params, ctx.hints
        intent_type = "sui.lp.cetus.remove"
        position_id = p.position_id or h.first_object_id()
        pool_id, coin_type_a, coin_type_b, reversed_pair = await self._lp_pool_and_types(ctx, p.pool_id, position_id)

        if not position_id:
            clmm = self._need_venue(self._clmm, "Cetus CLMM position")
            owner = _require(ctx.owner, "ownerAddress", intent_type)
            positions = await clmm.find_positions(
                network=ctx.network,
                owner=owner,
                coin_type_a=coin_type_a,
                coin_type_b=coin_type_b,
                pool_id=pool_id,
            )
            chosen: PositionCandidate = self._pick_one(
                list(positions),
                none_message=f"No Cetus positions found for owner {owner} in pool {pool_id}.",
                many_message=f"Owner {owner} has multiple positions in pool {pool_id}",
                field="positionId",
            )
            position_id = chosen.position_id

        delta = p.delta_liquidity or (h.integers[0] if h.integers else None)
        delta = _require(delta, "deltaLiquidity", intent_type)
        if not is_raw_amount(delta):
            raise ValidationError("deltaLiquidity must be an integer liquidity amount.", field="deltaLiquidity")
        delta_liquidity = parse_positive_amount(delta, None, "deltaLiquidity")
        given_min_a, given_min_b = p.min_amount_a, p.min_amount_b
        if reversed_pair:
            given_min_a, given_min_b = given_min_b, given_min_a
        min_amount_a = await self.parse_coin_amount(given_min_a or "0", coin_type_a, ctx.network, "minAmountA", positive=False)
        min_amount_b = await self.parse_coin_amount(given_min_b or "0", coin_type_b, ctx.network, "minAmountB", positive=False)
        return RemoveLiquidityIntent(
            pool_id=pool_id,
            position_id=position_id,
            coin_type_a=coin_type_a,
            coin_type_b=coin_type_b,
            delta_liquidity=delta_liquidity,
            min_amount_a=min_amount_a,
            min_amount_b=min_amount_b,
            collect_fee=True if p.collect_fee is None else p.collect_fee,
            rewarder_coin_types=tuple(normalize_coin_type(t) for t in (p.rewarder_coin_types or [])),
        )

    # ------------------------------------------------------------------
    # Stable Layer route
    # ------------------------------------------------------------------
    async def _stable_coin(self, ctx: _Context, intent_type: str) -> str:
        ref = ctx.params.stable_coin_type or (ctx.hints.coin_types[0] if ctx.hints.coin_types else None)
        return await self.resolve_coin_type(_require(ref, "stableCoinType", intent_type), ctx.network, "stableCoinType")

    async def _stable_mint(self, ctx: _Context) -> SuiIntent:
        p, h = ctx.params, ctx.hints
        intent_type = "sui.stablelayer.mint"
        stable_coin_type = await self._stable_coin(ctx, intent_type)
        usdc_coin_type = normalize_coin_type(p.usdc_coin_type or STABLE_LAYER_DEFAULT_USDC_COIN_TYPE)
        amount = p.amount_usdc_raw or (h.amount if h.amount_symbol in (None, "USDC") else None)
        amount_usdc_raw = await self.parse_coin_amount(
            _require(amount, "amountUsdcRaw", intent_type), usdc_coin_type, ctx.network, "amountUsdcRaw"
        )
        return StableLayerMintIntent(
            stable_coin_type=stable_coin_type,
            amount_usdc_raw=amount_usdc_raw,
            usdc_coin_type=usdc_coin_type,
            auto_transfer=True if p.auto_transfer is None else p.auto_transfer,
        )

    async def _stable_burn(self, ctx: _Context) -> SuiIntent:
        p, h = ctx.params, ctx.hints
        intent_type = "sui.stablelayer.burn"
        stable_coin_type = await self._stable_coin(ctx, intent_type)
        burn_all = bool(p.burn_all)
        amount_stable_raw = None
        if not burn_all:
            amount = _require(p.amount_stable_raw or h.amount, "amountStableRaw", intent_type)
            amount_stable_raw = await self.parse_coin_amount(amount, stable_coin_type, ctx.network, "amountStableRaw")
        return StableLayerBurnIntent(
            stable_coin_type=stable_coin_type,
            amount_stable_raw=amount_stable_raw,
            burn_all=burn_all,
            auto_transfer=True if p.auto_transfer is None else p.auto_transfer,
        )

    async def _stable_claim(self, ctx: _Context) -> SuiIntent:
        stable_coin_type = await self._stable_coin(ctx, "sui.stablelayer.claim")
        auto_transfer = ctx.params.auto_transfer
        return StableLayerClaimIntent(
            stable_coin_type=stable_coin_type,
            auto_transfer=True if auto_transfer is None else auto_transfer,
        )

    # ------------------------------------------------------------------
    # Cetus farms route
    # ------------------------------------------------------------------
    async def _resolve_farms_pool(self, ctx: _Context) -> PoolCandidate:
        farms = self._need_venue(self._farms, "Cetus farms pool")
        coin_type_a, coin_type_b = await self._pair_types(ctx, ctx.params.coin_type_a, ctx.params.coin_type_b)
        if not coin_type_a or not coin_type_b:
            raise ValidationError("poolId or both coinTypeA and coinTypeB are required.", field="poolId")
        pair = f"{SuiTokenConfig.symbol_for(coin_type_a, ctx.network)}/{SuiTokenConfig.symbol_for(coin_type_b, ctx.network)}"
        candidates = await farms.find_pools_for_pair(
            network=ctx.network, coin_type_a=coin_type_a, coin_type_b=coin_type_b
        )
        return self._pick_one(
            list(candidates),
            none_message=f"No farms pools found for pair {pair}.",
            many_message=f"Farms pair {pair} maps to multiple pools",
            field="poolId",
        )

    async def _farms_stake(self, ctx: _Context) -> SuiIntent:
        p, h = ctx.params, ctx.hints
        intent_type = "sui.cetus.farms.stake"
        clmm_position_id = _require(p.clmm_position_id or h.first_object_id(), "clmmPositionId", intent_type)

        pool_id = p.pool_id
        candidate: Optional[PoolCandidate] = None
        if not pool_id:
            candidate = await self._resolve_farms_pool(ctx)
            pool_id = candidate.pool_id

        clmm_pool_id = p.clmm_pool_id or (candidate.clmm_pool_id if candidate else None)
        if not clmm_pool_id:
            clmm_pool_id = await self.position_pool_id(clmm_position_id)

        if candidate is not None:
            coin_type_a = normalize_coin_type(candidate.coin_type_a)
            coin_type_b = normalize_coin_type(candidate.coin_type_b)
        elif p.coin_type_a and p.coin_type_b:
            coin_type_a, coin_type_b = await self._pair_types(ctx, p.coin_type_a, p.coin_type_b)
        else:
            coin_type_a, coin_type_b = await self.pool_coin_types(clmm_pool_id)
        return FarmsStakeIntent(
            pool_id=pool_id,
            clmm_position_id=clmm_position_id,
            clmm_pool_id=clmm_pool_id,
            coin_type_a=coin_type_a,
            coin_type_b=coin_type_b,
        )

    async def _farms_position(self, ctx: _Context, intent_type: str) -> Tuple[str, str]:
        p, h = ctx.params, ctx.hints
        pool_id = p.pool_id
        position_nft_id = p.position_nft_id or h.first_object_id()
        if not pool_id and not position_nft_id:
            pool_id = (await self._resolve_farms_pool(ctx)).pool_id
        if position_nft_id and pool_id:
            return pool_id, position_nft_id

        farms = self._need_venue(self._farms, "Cetus farms position")
        owner = _require(ctx.owner, "ownerAddress", intent_type)
        positions = await farms.find_positions(network=ctx.network, owner=owner, pool_id=pool_id)
        if position_nft_id:
            positions = [pos for pos in positions if pos.position_id == position_nft_id]
        chosen: PositionCandidate = self._pick_one(
            list(positions),
            none_message=f"No farms positions found for owner {owner}"
            + (f" in pool {pool_id}." if pool_id else "."),
            many_message=f"Owner {owner} has multiple farms positions",
            field="positionNftId",
        )
        return pool_id or chosen.pool_id, chosen.position_id

    async def _farms_unstake(self, ctx: _Context) -> SuiIntent:
        pool_id, position_nft_id = await self._farms_position(ctx, "sui.cetus.farms.unstake")
        return FarmsUnstakeIntent(pool_id=pool_id, position_nft_id=position_nft_id)

    async def _farms_harvest(self, ctx: _Context) -> SuiIntent:
        pool_id, position_nft_id = await self._farms_position(ctx, "sui.cetus.farms.harvest")
        return FarmsHarvestIntent(pool_id=pool_id, position_nft_id=position_nft_id)
