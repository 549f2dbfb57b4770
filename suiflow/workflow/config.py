"""Network-aware Sui token and protocol constants loaded from a registry file."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple

from suiflow.settings import parse_network

SUI_COIN_TYPE = "0x2::sui::SUI"
SUI_DECIMALS = 9

# Cetus CLMM full-range tick bounds.
FULL_RANGE_TICK_LOWER = -443636
FULL_RANGE_TICK_UPPER = 443636

DEFAULT_SLIPPAGE_BPS = 100
MAX_SLIPPAGE_BPS = 10_000
DEFAULT_MAX_COIN_OBJECTS = 20
MAX_COIN_OBJECTS = 100
MAX_POOL_CANDIDATES_LISTED = 6

STABLE_LAYER_DEFAULT_USDC_COIN_TYPE = (
    "0xdba34672e30cb065b1f93e3ab55318768fd6fef66c15942c9f7cb846e2f900e7::usdc::USDC"
)

_COIN_TYPE_RE = re.compile(r"^(0x[0-9a-fA-F]{1,64})::([A-Za-z_][A-Za-z0-9_]*)::([A-Za-z_][A-Za-z0-9_]*)$")


def is_coin_type(value: str) -> bool:
    return bool(_COIN_TYPE_RE.match((value or "").strip()))


def normalize_coin_type(value: str) -> str:
    """Lowercase the address part and strip leading zeros (``0x0002`` == ``0x2``)."""

    match = _COIN_TYPE_RE.match((value or "").strip())
    if not match:
        return (value or "").strip()
    address, module, name = match.groups()
    digits = address[2:].lower().lstrip("0") or "0"
    if len(digits) > 2:
        digits = digits.rjust(64, "0")
    return f"0x{digits}::{module}::{name}"


def coin_symbol_fallback(coin_type: str) -> str:
    return coin_type.rsplit("::", 1)[-1] if "::" in coin_type else coin_type


@dataclass(frozen=True)
class TokenEntry:
    symbol: str
    coin_type: str
    decimals: int


@dataclass
class _NetworkTokens:
    by_alias: Dict[str, TokenEntry] = field(default_factory=dict)
    by_coin_type: Dict[str, TokenEntry] = field(default_factory=dict)


class SuiTokenConfig:
    """Known coin types per Sui network, keyed by symbol and by coin type.

    The table only helps the normalizer turn symbols into coin types. Coin
    types it does not know are still valid inputs; their decimals come from
    on-chain metadata.
    """

    _REGISTRY_PATH: Path = Path(__file__).with_name("tokens.json")
    _NETWORKS: Dict[str, _NetworkTokens] = {}
    _LOADED: bool = False

    @classmethod
    def reload(cls, path: Optional[Path] = None) -> None:
        source = path or cls._REGISTRY_PATH
        try:
            data = json.loads(source.read_text())
        except FileNotFoundError as exc:
            raise RuntimeError(f"Sui token registry not found: {source}") from exc
        except json.JSONDecodeError as exc:
            raise RuntimeError(f"Sui token registry {source} is not valid JSON: {exc}") from exc
        if not isinstance(data, dict) or not isinstance(data.get("networks"), list):
            raise RuntimeError(f"Sui token registry {source} must contain a 'networks' list.")

        networks: Dict[str, _NetworkTokens] = {}
        for entry in data["networks"]:
            name = parse_network(entry.get("name"), "") if isinstance(entry, dict) else ""
            if not name:
                continue
            table = networks.setdefault(name, _NetworkTokens())
            for raw in entry.get("tokens") or []:
                token = _parse_token(raw)
                if token is None:
                    continue
                table.by_coin_type[token.coin_type] = token
                for alias in (token.symbol, *(raw.get("aliases") or [])):
                    table.by_alias[str(alias).strip().lower()] = token

        cls._NETWORKS = networks
        cls._LOADED = True

    @classmethod
    def _table(cls, network: str) -> _NetworkTokens:
        if not cls._LOADED:
            cls.reload()
        return cls._NETWORKS.get(parse_network(network, ""), _NetworkTokens())

    @classmethod
    def list_networks(cls) -> Iterable[str]:
        if not cls._LOADED:
            cls.reload()
        return sorted(cls._NETWORKS)

    @classmethod
    def list_symbols(cls, network: str) -> Iterable[str]:
        return sorted({token.symbol for token in cls._table(network).by_coin_type.values()})

    @classmethod
    def lookup_symbol(cls, symbol: str, network: str) -> Optional[Tuple[str, int]]:
        """Return ``(coin_type, decimals)`` for a known symbol, else None."""

        token = cls._table(network).by_alias.get((symbol or "").strip().lower())
        if token is None:
            return None
        return token.coin_type, token.decimals

    @classmethod
    def decimals_for(cls, coin_type: str, network: str) -> Optional[int]:
        token = cls._table(network).by_coin_type.get(normalize_coin_type(coin_type))
        return token.decimals if token else None

    @classmethod
    def symbol_for(cls, coin_type: str, network: str) -> str:
        normalized = normalize_coin_type(coin_type)
        token = cls._table(network).by_coin_type.get(normalized)
        return token.symbol if token else coin_symbol_fallback(normalized)


def _parse_token(raw: Any) -> Optional[TokenEntry]:
    if not isinstance(raw, dict):
        return None
    symbol = str(raw.get("symbol") or "").strip().upper()
    coin_type = normalize_coin_type(str(raw.get("coinType") or ""))
    decimals = raw.get("decimals")
    if not symbol or not is_coin_type(coin_type) or not isinstance(decimals, int):
        return None
    return TokenEntry(symbol=symbol, coin_type=coin_type, decimals=decimals)


# Load at import so a broken registry fails fast.
SuiTokenConfig.reload()
