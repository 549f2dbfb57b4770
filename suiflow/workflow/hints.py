"""
Best-effort hint extraction from free-text workflow requests.

Parses English and Chinese phrasing into optional hints. Hints are only ever
merged *beneath* explicit structured parameters; they never override them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple


# ---------------------------------------------------------------------------
# Result container
# ---------------------------------------------------------------------------

@dataclass
class TextHints:
    """Fields that could be parsed from the request text."""
    intent_type: Optional[str] = None
    object_ids: List[str] = field(default_factory=list)
    coin_types: List[str] = field(default_factory=list)
    pair: Optional[Tuple[str, str]] = None
    integers: List[str] = field(default_factory=list)
    amount: Optional[str] = None          # UI amount, e.g. "12.5"
    amount_symbol: Optional[str] = None   # symbol following the amount
    tick_range: Optional[Tuple[int, int]] = None
    slippage_bps: Optional[int] = None
    confirm_mainnet: bool = False
    confirm_risk: bool = False

    def describes_intent(self, is_symbol: Callable[[str], bool] = lambda symbol: False) -> bool:
        """True when the text says what to do, not just how to proceed.

        Bare integers never count. Amounts and pairs only count when their
        symbols are known tokens.
        """
        if self.intent_type or self.object_ids or self.coin_types or self.tick_range:
            return True
        if self.slippage_bps is not None:
            return True
        if self.amount and self.amount_symbol and is_symbol(self.amount_symbol):
            return True
        return bool(self.pair) and all(is_symbol(side) for side in self.pair)

    def first_object_id(self) -> Optional[str]:
        return self.object_ids[0] if self.object_ids else None


# ---------------------------------------------------------------------------
# Compiled patterns
# ---------------------------------------------------------------------------

_OBJECT_ID = re.compile(r"(?<![A-Za-z0-9_])0x[0-9a-fA-F]{64}(?![0-9a-fA-F:])")
_COIN_TYPE = re.compile(r"(?<![A-Za-z0-9_])0x[0-9a-fA-F]{1,64}::[A-Za-z_][A-Za-z0-9_]*::[A-Za-z_][A-Za-z0-9_]*")

_PAIR = re.compile(
    r"(?<![A-Za-z0-9_:])([A-Za-z][A-Za-z0-9]{1,11})\s*(?:/|->|-|\bto\b|换|兑)\s*([A-Za-z][A-Za-z0-9]{1,11})(?![A-Za-z0-9_:])",
    re.IGNORECASE,
)

_INTEGER = re.compile(r"(?<![A-Za-z0-9_.\-])\d+(?![A-Za-z0-9_.])")
_AMOUNT_SYMBOL = re.compile(r"(?<![A-Za-z0-9_.])(\d+(?:\.\d+)?)\s*([A-Za-z][A-Za-z0-9]{1,11})(?![A-Za-z0-9_])")
_TICK_RANGE = re.compile(r"(?:tick[s]?\s*)?(-?\d+)\s*(?:to|~|至|到)\s*(-?\d+)", re.IGNORECASE)
_SLIPPAGE_BPS = re.compile(r"(?:slippage|滑点)\D{0,12}?(\d+)\s*bps", re.IGNORECASE)
_SLIPPAGE_PCT = re.compile(r"(?:slippage|滑点)\D{0,12}?(\d+(?:\.\d+)?)\s*%", re.IGNORECASE)

_CONFIRM_MAINNET = re.compile(r"confirm\s+mainnet|确认主网", re.IGNORECASE)
_CONFIRM_RISK = re.compile(
    r"accept\s+(?:the\s+)?risk|i\s+understand\s+the\s+risk|接受风险|确认风险|风险自负",
    re.IGNORECASE,
)

# Words the pair pattern would otherwise pick up as symbols.
_PAIR_STOPWORDS = {
    "swap", "send", "transfer", "stake", "unstake", "harvest", "claim", "mint",
    "burn", "add", "remove", "liquidity", "pool", "tick", "ticks", "from", "into", "and",
    "mainnet", "testnet", "devnet", "localnet", "bps", "confirm",
}

# Order matters: unstake before stake, remove before add.
_INTENT_KEYWORDS: Tuple[Tuple[str, re.Pattern[str]], ...] = (
    ("sui.cetus.farms.unstake", re.compile(r"\bunstake\b|取消质押|解除质押|解押", re.IGNORECASE)),
    ("sui.cetus.farms.harvest", re.compile(r"\bharvest\b|收获|领取奖励", re.IGNORECASE)),
    ("sui.cetus.farms.stake", re.compile(r"\bstake\b|质押", re.IGNORECASE)),
    ("sui.lp.cetus.remove", re.compile(r"remove\s+liquidity|withdraw\s+liquidity|移除流动性|撤出流动性", re.IGNORECASE)),
    ("sui.lp.cetus.add", re.compile(r"add\s+liquidity|provide\s+liquidity|添加流动性|提供流动性", re.IGNORECASE)),
    ("sui.stablelayer.mint", re.compile(r"\bmint\b|铸造", re.IGNORECASE)),
    ("sui.stablelayer.burn", re.compile(r"\bburn\b|\bredeem\b|赎回|销毁", re.IGNORECASE)),
    ("sui.stablelayer.claim", re.compile(r"\bclaim\b|领取", re.IGNORECASE)),
    ("sui.swap.cetus", re.compile(r"\bswap\b|\bexchange\b|兑换|换成|换", re.IGNORECASE)),
    ("sui.transfer", re.compile(r"\btransfer\b|\bsend\b|转账|发送|转给|转", re.IGNORECASE)),
)


def _pct_to_bps(raw: str) -> Optional[int]:
    try:
        bps = round(float(raw) * 100)
    except ValueError:
        return None
    return bps if bps > 0 else None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def detect_intent_keyword(text: str, allowed: Optional[Sequence[str]] = None) -> Optional[str]:
    """Return the intent type hinted by a keyword, or ``sui.transfer`` for a
    generic transfer (native vs coin is decided by the normalizer).

    With ``allowed``, keywords for other intent types are skipped.
    """

    for intent_type, pattern in _INTENT_KEYWORDS:
        if allowed is not None and intent_type not in allowed:
            continue
        if pattern.search(text or ""):
            return intent_type
    return None


def has_confirm_mainnet_phrase(text: Optional[str]) -> bool:
    return bool(text and _CONFIRM_MAINNET.search(text))


def has_confirm_risk_phrase(text: Optional[str]) -> bool:
    return bool(text and _CONFIRM_RISK.search(text))


def extract_hints(text: Optional[str]) -> TextHints:
    """Extract every recognisable hint from *text* (empty hints for no text)."""

    hints = TextHints()
    if not text:
        return hints

    hints.intent_type = detect_intent_keyword(text)
    hints.confirm_mainnet = has_confirm_mainnet_phrase(text)
    hints.confirm_risk = has_confirm_risk_phrase(text)

    hints.coin_types = _COIN_TYPE.findall(text)
    # Strip coin types first so their package addresses are not read as objects.
    remainder = _COIN_TYPE.sub(" ", text)
    hints.object_ids = _OBJECT_ID.findall(remainder)
    remainder = _OBJECT_ID.sub(" ", remainder)

    tick = _TICK_RANGE.search(remainder)
    if tick:
        hints.tick_range = (int(tick.group(1)), int(tick.group(2)))

    bps = _SLIPPAGE_BPS.search(remainder)
    if bps:
        hints.slippage_bps = int(bps.group(1))
    else:
        pct = _SLIPPAGE_PCT.search(remainder)
        if pct:
            hints.slippage_bps = _pct_to_bps(pct.group(1))

    for match in _PAIR.finditer(remainder):
        left, right = match.group(1), match.group(2)
        if left.lower() in _PAIR_STOPWORDS or right.lower() in _PAIR_STOPWORDS:
            continue
        if left.isdigit() or right.isdigit():
            continue
        hints.pair = (left.upper(), right.upper())
        break

    for match in _AMOUNT_SYMBOL.finditer(remainder):
        symbol = match.group(2)
        if symbol.lower() in {"bps", "to", "tick", "ticks"}:
            continue
        hints.amount = match.group(1)
        hints.amount_symbol = symbol.upper()
        break

    hints.integers = _INTEGER.findall(remainder)
    return hints
