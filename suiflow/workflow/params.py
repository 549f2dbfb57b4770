"""Input schema shared by the Sui workflow tools."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Literal, Mapping, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

RunMode = Literal["analysis", "simulate", "execute"]

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def snake_case_keys(params: Mapping[str, Any]) -> Dict[str, Any]:
    """``{"toAddress": ...}`` -> ``{"to_address": ...}``; snake_case keys pass through."""

    return {_CAMEL_BOUNDARY.sub("_", key).lower(): value for key, value in params.items()}


class WorkflowParams(BaseModel):
    """Parameters accepted by every workflow tool.

    Intent fields are all optional: the normalizer decides which are required
    once the intent type is known.
    """

    # ---- Control ----
    run_id: Optional[str] = Field(None, description="Run identifier; generated when omitted.")
    run_mode: RunMode = Field("analysis", description="analysis | simulate | execute")
    intent_type: Optional[str] = Field(None, description="Explicit intent type, e.g. sui.swap.cetus")
    intent_text: Optional[str] = Field(None, description="Free-text request (English or Chinese).")
    network: Optional[str] = Field(None, description="mainnet | testnet | devnet | localnet")

    # ---- Transfers ----
    to_address: Optional[str] = None
    amount_sui: Optional[float] = Field(None, gt=0)
    amount_mist: Optional[str] = None
    amount_raw: Optional[str] = None
    coin_type: Optional[str] = None
    max_coin_objects_to_merge: Optional[int] = Field(None, ge=1, le=100)

    # ---- Swap ----
    input_coin_type: Optional[str] = None
    output_coin_type: Optional[str] = None
    by_amount_in: Optional[bool] = None
    slippage_bps: Optional[int] = Field(None, ge=1, le=10_000)
    providers: Optional[List[str]] = Field(None, min_length=1, max_length=50)
    depth: Optional[int] = Field(None, ge=1, le=8)

    # ---- Cetus CLMM liquidity ----
    pool_id: Optional[str] = None
    position_id: Optional[str] = None
    owner_address: Optional[str] = Field(None, description="Owner used to look up LP or farm positions.")
    coin_type_a: Optional[str] = None
    coin_type_b: Optional[str] = None
    tick_lower: Optional[int] = None
    tick_upper: Optional[int] = None
    amount_a: Optional[str] = None
    amount_b: Optional[str] = None
    fix_amount_a: Optional[bool] = None
    delta_liquidity: Optional[str] = None
    min_amount_a: Optional[str] = None
    min_amount_b: Optional[str] = None
    collect_fee: Optional[bool] = None
    rewarder_coin_types: Optional[List[str]] = None

    # ---- Stable Layer ----
    stable_coin_type: Optional[str] = None
    amount_usdc_raw: Optional[str] = None
    usdc_coin_type: Optional[str] = None
    amount_stable_raw: Optional[str] = None
    burn_all: Optional[bool] = None
    auto_transfer: Optional[bool] = None

    # ---- Cetus farms ----
    clmm_position_id: Optional[str] = None
    clmm_pool_id: Optional[str] = None
    position_nft_id: Optional[str] = None

    # ---- Execution ----
    from_private_key: Optional[str] = Field(None, description="Key reference used to sign.")
    wait_for_local_execution: Optional[bool] = None
    confirm_mainnet: Optional[bool] = None
    confirm_token: Optional[str] = None
    confirm_risk: Optional[bool] = None
    signed_transaction_bytes_base64: Optional[str] = None
    signed_signatures: Optional[List[str]] = None
    signed_signature: Optional[str] = None

    @field_validator(
        "amount_mist",
        "amount_raw",
        "amount_a",
        "amount_b",
        "delta_liquidity",
        "min_amount_a",
        "min_amount_b",
        "amount_usdc_raw",
        "amount_stable_raw",
        mode="before",
    )
    @classmethod
    def _amount_to_text(cls, value: Any) -> Any:
        if value is None or isinstance(value, bool):
            return value
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float):
            return repr(value) if not value.is_integer() else str(int(value))
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator(
        "run_id",
        "intent_type",
        "intent_text",
        "network",
        "to_address",
        "coin_type",
        "input_coin_type",
        "output_coin_type",
        "pool_id",
        "position_id",
        "owner_address",
        "coin_type_a",
        "coin_type_b",
        "stable_coin_type",
        "usdc_coin_type",
        "clmm_position_id",
        "clmm_pool_id",
        "position_nft_id",
        "from_private_key",
        "confirm_token",
        "signed_transaction_bytes_base64",
        "signed_signature",
        mode="before",
    )
    @classmethod
    def _strip_text(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator("run_mode", mode="before")
    @classmethod
    def _default_run_mode(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return "analysis"
        return value.strip().lower() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _collect_signatures(self) -> "WorkflowParams":
        if self.signed_signature and not self.signed_signatures:
            self.signed_signatures = [self.signed_signature]
        return self

    def signatures(self) -> List[str]:
        return [sig for sig in (self.signed_signatures or []) if sig and sig.strip()]

    def has_signed_payload(self) -> bool:
        return bool(self.signed_transaction_bytes_base64) and bool(self.signatures())
