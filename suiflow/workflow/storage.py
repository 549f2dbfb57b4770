"""Workflow sessions and confirm tokens.

Sessions carry a run across separate ``analysis`` / ``simulate`` / ``execute``
calls. The default store keeps them in process memory with a TTL and an entry
ceiling; any object implementing :class:`SessionStore` can replace it.
"""

from __future__ import annotations

import hashlib
import json
import logging
import random
import string
import time
from collections import OrderedDict
from dataclasses import dataclass, field, replace
from threading import Lock
from typing import Any, Mapping, Optional, Protocol

from suiflow.settings import get_settings
from suiflow.workflow.config import SuiTokenConfig
from suiflow.workflow.hints import extract_hints
from suiflow.workflow.intent import SuiIntent

logger = logging.getLogger(__name__)

_RUN_ID_ALPHABET = string.digits + string.ascii_lowercase

# Parameters that describe *what* to do. Anything else (runId, runMode,
# network, confirm flags, signed payloads, keys) is control input.
INTENT_PARAM_KEYS = (
    "intent_type",
    "intent_text",
    "to_address",
    "amount_sui",
    "amount_mist",
    "amount_raw",
    "coin_type",
    "input_coin_type",
    "output_coin_type",
    "by_amount_in",
    "slippage_bps",
    "providers",
    "depth",
    "max_coin_objects_to_merge",
    "pool_id",
    "position_id",
    "coin_type_a",
    "coin_type_b",
    "tick_lower",
    "tick_upper",
    "amount_a",
    "amount_b",
    "fix_amount_a",
    "delta_liquidity",
    "min_amount_a",
    "min_amount_b",
    "collect_fee",
    "rewarder_coin_types",
    "stable_coin_type",
    "amount_usdc_raw",
    "usdc_coin_type",
    "amount_stable_raw",
    "burn_all",
    "auto_transfer",
    "clmm_position_id",
    "clmm_pool_id",
    "position_nft_id",
)


def _to_base36(value: int) -> str:
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_RUN_ID_ALPHABET[rem])
    return "".join(reversed(digits)) or "0"


def create_run_id(run_id: Optional[str] = None) -> str:
    """Return the caller's run id, or a fresh ``wf-sui-<base36 ms>-<nonce>``."""

    if run_id and run_id.strip():
        return run_id.strip()
    nonce = "".join(random.choices(_RUN_ID_ALPHABET, k=6))
    return f"wf-sui-{_to_base36(int(time.time() * 1000))}-{nonce}"


def derive_confirm_token(run_id: str, network: str, intent: SuiIntent) -> str:
    payload = json.dumps(
        {"runId": run_id, "network": network, "intent": intent.to_public()},
        separators=(",", ":"),
        ensure_ascii=False,
    )
    digest = hashlib.sha256(payload.encode("utf-8")).hexdigest()
    return f"SUI-{digest[:16].upper()}"


def _is_known_symbol(symbol: str) -> bool:
    return any(SuiTokenConfig.lookup_symbol(symbol, network) for network in SuiTokenConfig.list_networks())


def has_intent_inputs(params: Mapping[str, Any]) -> bool:
    """True when the call carries any field that describes an intent.

    ``intentText`` only counts when it holds more than control phrases such
    as "confirm mainnet".
    """

    for key in INTENT_PARAM_KEYS:
        value = params.get(key)
        if value is None:
            continue
        if key == "intent_text":
            if extract_hints(value).describes_intent(_is_known_symbol):
                return True
            continue
        if isinstance(value, str) and not value.strip():
            continue
        if isinstance(value, (list, tuple)) and not value:
            continue
        return True
    return False


@dataclass
class WorkflowSession:
    run_id: str
    route: str
    network: str
    intent: SuiIntent
    simulated_transaction: Any = None
    simulated_signer_address: Optional[str] = None
    updated_at: float = field(default_factory=time.time)

    def matches(self, network: str, intent: SuiIntent) -> bool:
        return self.network == network and self.intent == intent


class SessionStore(Protocol):
    def get(self, run_id: str) -> Optional[WorkflowSession]: ...

    def put(self, session: WorkflowSession) -> None: ...

    def latest(self) -> Optional[WorkflowSession]: ...


class InMemorySessionStore:
    """Process-local store bounded by a TTL and an entry ceiling (oldest evicted first)."""

    def __init__(self, *, ttl_seconds: float = 86400.0, max_entries: int = 1024) -> None:
        self._ttl = ttl_seconds
        self._max_entries = max(1, max_entries)
        self._sessions: "OrderedDict[str, WorkflowSession]" = OrderedDict()
        self._latest_run_id: Optional[str] = None
        self._lock = Lock()

    def _expired(self, session: WorkflowSession, now: float) -> bool:
        return self._ttl > 0 and now - session.updated_at > self._ttl

    def get(self, run_id: str) -> Optional[WorkflowSession]:
        with self._lock:
            session = self._sessions.get(run_id)
            if session is None:
                return None
            if self._expired(session, time.time()):
                self._sessions.pop(run_id, None)
                return None
            return session

    def put(self, session: WorkflowSession) -> None:
        with self._lock:
            self._sessions.pop(session.run_id, None)
            self._sessions[session.run_id] = session
            self._latest_run_id = session.run_id
            while len(self._sessions) > self._max_entries:
                evicted, _ = self._sessions.popitem(last=False)
                logger.debug("Evicted workflow session %s", evicted)

    def latest(self) -> Optional[WorkflowSession]:
        with self._lock:
            if self._latest_run_id is None:
                return None
            session = self._sessions.get(self._latest_run_id)
            if session is None or self._expired(session, time.time()):
                return None
            return session

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()
            self._latest_run_id = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


class WorkflowSessionRepository:
    """Route-aware access to workflow sessions."""

    _instance: "WorkflowSessionRepository" | None = None
    _instance_lock: Lock = Lock()

    def __init__(self, store: SessionStore | None = None) -> None:
        if store is None:
            settings = get_settings()
            store = InMemorySessionStore(
                ttl_seconds=settings.session_ttl_seconds,
                max_entries=settings.session_max_entries,
            )
        self._store = store

    # ---- Singleton helpers -----------------------------------------------
    @classmethod
    def instance(cls) -> "WorkflowSessionRepository":
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        with cls._instance_lock:
            cls._instance = None

    # ---- Core API ---------------------------------------------------------
    def remember(self, session: WorkflowSession) -> WorkflowSession:
        stamped = replace(session, updated_at=time.time())
        self._store.put(stamped)
        logger.debug(
            "Stored workflow session run_id=%s route=%s intent=%s",
            stamped.run_id,
            stamped.route,
            stamped.intent.type,
        )
        return stamped

    def read(self, route: str, run_id: Optional[str] = None) -> Optional[WorkflowSession]:
        """Exact run id match for ``route``; without a run id, the latest session of ``route``."""

        if run_id and run_id.strip():
            session = self._store.get(run_id.strip())
        else:
            session = self._store.latest()
        if session is None or session.route != route:
            return None
        return session

    def latest(self) -> Optional[WorkflowSession]:
        return self._store.latest()
