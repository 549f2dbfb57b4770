"""Heuristic risk assessment for normalized intents."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from suiflow.workflow.intent import (
    AddLiquidityIntent,
    RemoveLiquidityIntent,
    SuiIntent,
    SwapCetusIntent,
)

CRITICAL_SLIPPAGE_BPS = 1000
WARNING_SLIPPAGE_BPS = 300


class RiskBand(str, Enum):
    SAFE = "safe"
    WARNING = "warning"
    CRITICAL = "critical"
    UNKNOWN = "unknown"


_RISK_LEVELS = {
    RiskBand.CRITICAL: "high",
    RiskBand.WARNING: "medium",
    RiskBand.SAFE: "low",
    RiskBand.UNKNOWN: "unknown",
}


@dataclass
class RiskCheck:
    risk_band: RiskBand
    confirm_risk_accepted: Optional[bool] = None
    reason_codes: List[str] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)

    @property
    def risk_level(self) -> str:
        return _RISK_LEVELS[self.risk_band]

    @property
    def requires_explicit_risk_acceptance(self) -> bool:
        return self.risk_band in (RiskBand.WARNING, RiskBand.CRITICAL)

    def describe(self) -> str:
        """Bilingual explanation used in error messages and summaries."""
        if not self.notes:
            return f"risk={self.risk_band.value}"
        return f"risk={self.risk_band.value}: " + " ".join(self.notes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "riskBand": self.risk_band.value,
            "riskLevel": self.risk_level,
            "riskEngine": "heuristic",
            "requiresExplicitRiskAcceptance": self.requires_explicit_risk_acceptance,
            "confirmRiskAccepted": self.confirm_risk_accepted,
            "reasonCodes": list(self.reason_codes),
            "notes": list(self.notes),
        }


def _slippage_band(slippage_bps: int) -> RiskBand:
    if slippage_bps >= CRITICAL_SLIPPAGE_BPS:
        return RiskBand.CRITICAL
    if slippage_bps >= WARNING_SLIPPAGE_BPS:
        return RiskBand.WARNING
    return RiskBand.SAFE


def _is_zero(value: str) -> bool:
    try:
        return int(value) == 0
    except (TypeError, ValueError):
        return False


def assess(intent: SuiIntent, confirm_risk_accepted: Optional[bool] = None) -> RiskCheck:
    """Classify *intent*; never performs I/O and never raises for a valid intent."""

    check = RiskCheck(risk_band=RiskBand.SAFE, confirm_risk_accepted=confirm_risk_accepted)

    if isinstance(intent, (SwapCetusIntent, AddLiquidityIntent)):
        band = _slippage_band(intent.slippage_bps)
        check.risk_band = band
        if band is RiskBand.CRITICAL:
            check.reason_codes.append("SLIPPAGE_CRITICAL")
            check.notes.append(
                f"Slippage {intent.slippage_bps} bps is at or above {CRITICAL_SLIPPAGE_BPS} bps. "
                f"滑点 {intent.slippage_bps} bps 过高（≥{CRITICAL_SLIPPAGE_BPS} bps）。"
            )
        elif band is RiskBand.WARNING:
            check.reason_codes.append("SLIPPAGE_WARNING")
            check.notes.append(
                f"Slippage {intent.slippage_bps} bps is at or above {WARNING_SLIPPAGE_BPS} bps. "
                f"滑点 {intent.slippage_bps} bps 偏高（≥{WARNING_SLIPPAGE_BPS} bps）。"
            )
    elif isinstance(intent, RemoveLiquidityIntent):
        if _is_zero(intent.min_amount_a) and _is_zero(intent.min_amount_b):
            check.risk_band = RiskBand.WARNING
            check.reason_codes.append("ZERO_MIN_OUTPUT")
            check.notes.append(
                "Both minimum output amounts are 0, so the removal has no price protection. "
                "两个最小输出数量均为 0，移除流动性没有价格保护。"
            )
    return check
