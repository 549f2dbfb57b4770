"""Pick the concrete workflow (core, stablelayer or farms) for a request."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from suiflow.workflow.hints import detect_intent_keyword
from suiflow.workflow.intent import route_for_intent_type
from suiflow.workflow.params import WorkflowParams
from suiflow.workflow.storage import WorkflowSessionRepository, has_intent_inputs

logger = logging.getLogger(__name__)


class WorkflowRoute(str, Enum):
    CORE = "core"
    STABLELAYER = "stablelayer"
    FARMS = "farms"


@dataclass(frozen=True)
class RouteDecision:
    route: WorkflowRoute
    reason: str


_STABLELAYER_FIELDS = (
    "stable_coin_type",
    "amount_usdc_raw",
    "usdc_coin_type",
    "amount_stable_raw",
    "burn_all",
    "auto_transfer",
)
_FARMS_FIELDS = ("clmm_position_id", "clmm_pool_id", "position_nft_id")

_STABLELAYER_TEXT = re.compile(r"stable\s*layer|稳定层", re.IGNORECASE)
_FARMS_TEXT = re.compile(r"\bfarms?\b|农场|挖矿", re.IGNORECASE)


def _prefix_route(intent_type: str) -> Optional[WorkflowRoute]:
    route = route_for_intent_type(intent_type)
    if route is not None:
        return WorkflowRoute(route)
    if intent_type.startswith("sui.stablelayer."):
        return WorkflowRoute.STABLELAYER
    if intent_type.startswith("sui.cetus.farms."):
        return WorkflowRoute.FARMS
    return None


def _has_field(params: WorkflowParams, names) -> bool:
    return any(getattr(params, name) is not None for name in names)


def select_route(
    params: WorkflowParams,
    sessions: WorkflowSessionRepository | None = None,
) -> RouteDecision:
    """Explicit intent type, then venue-specific fields, then text, then session continuity."""

    if params.intent_type:
        route = _prefix_route(params.intent_type)
        if route is not None:
            return RouteDecision(route, "intent-type")

    if _has_field(params, _STABLELAYER_FIELDS):
        return RouteDecision(WorkflowRoute.STABLELAYER, "stablelayer-fields")
    if _has_field(params, _FARMS_FIELDS):
        return RouteDecision(WorkflowRoute.FARMS, "farms-fields")

    text = params.intent_text or ""
    if _STABLELAYER_TEXT.search(text):
        return RouteDecision(WorkflowRoute.STABLELAYER, "stablelayer-text")
    if _FARMS_TEXT.search(text):
        return RouteDecision(WorkflowRoute.FARMS, "farms-text")
    keyword = detect_intent_keyword(text) if text else None
    if keyword:
        route = route_for_intent_type(keyword)
        if route is not None and route != WorkflowRoute.CORE.value:
            return RouteDecision(WorkflowRoute(route), "keyword")

    if params.run_mode == "execute" and not has_intent_inputs(params.model_dump()):
        sessions = sessions or WorkflowSessionRepository.instance()
        if params.run_id:
            for route in WorkflowRoute:
                if sessions.read(route.value, params.run_id) is not None:
                    return RouteDecision(route, "session-run-id")
        else:
            latest = sessions.latest()
            if latest is not None:
                return RouteDecision(WorkflowRoute(latest.route), "latest-session")

    return RouteDecision(WorkflowRoute.CORE, "default")


class DefiWorkflowRouter:
    """Dispatches a whole call to one of the concrete workflow orchestrators."""

    def __init__(
        self,
        orchestrators: Mapping[str, Any],
        sessions: WorkflowSessionRepository | None = None,
    ) -> None:
        self._orchestrators = dict(orchestrators)
        self._sessions = sessions

    async def run(self, params: WorkflowParams) -> Dict[str, Any]:
        decision = select_route(params, self._sessions or WorkflowSessionRepository.instance())
        logger.info("DeFi router selected %s (%s)", decision.route.value, decision.reason)
        result = await self._orchestrators[decision.route.value].run(params)
        result["details"]["routedTo"] = decision.route.value
        result["details"]["routeReason"] = decision.reason
        return result
