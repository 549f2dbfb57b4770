"""Tool surface for the Sui workflows.

``SuiWorkflowTool.execute`` is the programmatic entry point and raises
:mod:`suiflow.errors` exceptions. ``get_tools()`` wraps the same tools as
LangChain ``StructuredTool``s, which report failures in the payload instead.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from langchain_core.tools import BaseTool, StructuredTool
from pydantic import ValidationError as PydanticValidationError

from suiflow.errors import ValidationError, WorkflowError
from suiflow.settings import WorkflowSettings
from suiflow.workflow.intent import camel_case
from suiflow.workflow.orchestrator import WorkflowDependencies, WorkflowOrchestrator
from suiflow.workflow.params import WorkflowParams, snake_case_keys
from suiflow.workflow.router import DefiWorkflowRouter, WorkflowRoute
from suiflow.workflow.storage import WorkflowSessionRepository

logger = logging.getLogger(__name__)

SUI_WORKFLOW_TOOL = "w3rt_run_sui_workflow_v0"
SUI_STABLELAYER_WORKFLOW_TOOL = "w3rt_run_sui_stablelayer_workflow_v0"
SUI_CETUS_FARMS_WORKFLOW_TOOL = "w3rt_run_sui_cetus_farms_workflow_v0"
SUI_DEFI_WORKFLOW_TOOL = "w3rt_run_sui_defi_workflow_v0"

_DESCRIPTIONS = {
    SUI_WORKFLOW_TOOL: (
        "Run a Sui workflow (analysis -> simulate -> execute) for SUI transfers, coin transfers, "
        "Cetus aggregator swaps and Cetus CLMM liquidity add/remove. Mainnet execute requires "
        "confirmMainnet=true and the confirmToken returned by analysis or simulate."
    ),
    SUI_STABLELAYER_WORKFLOW_TOOL: (
        "Run a Stable Layer workflow (analysis -> simulate -> execute) to mint, burn or claim "
        "stable coins on Sui."
    ),
    SUI_CETUS_FARMS_WORKFLOW_TOOL: (
        "Run a Cetus farms workflow (analysis -> simulate -> execute) to stake, unstake or "
        "harvest CLMM positions."
    ),
    SUI_DEFI_WORKFLOW_TOOL: (
        "Route a Sui DeFi request to the core, Stable Layer or Cetus farms workflow and run it. "
        "Without new intent fields, execute continues the most recent workflow session."
    ),
}

Runner = Union[WorkflowOrchestrator, DefiWorkflowRouter]


def parse_params(raw: Mapping[str, Any]) -> WorkflowParams:
    """Accept camelCase or snake_case keys; schema errors become ``ValidationError``."""

    try:
        return WorkflowParams.model_validate(snake_case_keys(raw))
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(camel_case(str(part)) for part in first.get("loc", ())) or None
        raise ValidationError(f"Invalid {field or 'parameters'}: {first.get('msg')}", field=field) from exc


class SuiWorkflowTool:
    def __init__(self, name: str, runner: Runner, description: str = "") -> None:
        self.name = name
        self.runner = runner
        self.description = description or _DESCRIPTIONS.get(name, "")

    async def execute(self, call_id: str, params: Mapping[str, Any]) -> Dict[str, Any]:
        parsed = parse_params(params or {})
        logger.debug("%s call_id=%s run_mode=%s", self.name, call_id, parsed.run_mode)
        return await self.runner.run(parsed)

    def as_structured_tool(self) -> BaseTool:
        async def _run(**kwargs: Any) -> Dict[str, Any]:
            try:
                return await self.execute(self.name, {k: v for k, v in kwargs.items() if v is not None})
            except WorkflowError as exc:
                return _error_payload(exc)

        return StructuredTool.from_function(
            coroutine=_run,
            name=self.name,
            description=self.description,
            args_schema=WorkflowParams,
        )


def _error_payload(exc: WorkflowError) -> Dict[str, Any]:
    details: Dict[str, Any] = {"error": str(exc), "errorType": type(exc).__name__}
    field = getattr(exc, "field", None)
    if field:
        details["field"] = field
    candidates = getattr(exc, "candidates", None)
    if candidates:
        details["candidates"] = [
            candidate.describe() if hasattr(candidate, "describe") else candidate for candidate in candidates
        ]
    return {"content": [{"type": "text", "text": f"Workflow failed: {exc}"}], "details": details}


def create_workflow_tools(
    dependencies: Optional[WorkflowDependencies] = None,
    *,
    sessions: Optional[WorkflowSessionRepository] = None,
    settings: Optional[WorkflowSettings] = None,
) -> List[SuiWorkflowTool]:
    """The three concrete workflow tools plus the router, sharing one session repository."""

    sessions = sessions or WorkflowSessionRepository.instance()
    orchestrators = {
        route.value: WorkflowOrchestrator(
            route.value,
            dependencies=dependencies,
            sessions=sessions,
            settings=settings,
        )
        for route in WorkflowRoute
    }
    router = DefiWorkflowRouter(orchestrators, sessions)
    return [
        SuiWorkflowTool(SUI_WORKFLOW_TOOL, orchestrators[WorkflowRoute.CORE.value]),
        SuiWorkflowTool(SUI_STABLELAYER_WORKFLOW_TOOL, orchestrators[WorkflowRoute.STABLELAYER.value]),
        SuiWorkflowTool(SUI_CETUS_FARMS_WORKFLOW_TOOL, orchestrators[WorkflowRoute.FARMS.value]),
        SuiWorkflowTool(SUI_DEFI_WORKFLOW_TOOL, router),
    ]


def get_tools(
    dependencies: Optional[WorkflowDependencies] = None,
    *,
    sessions: Optional[WorkflowSessionRepository] = None,
    settings: Optional[WorkflowSettings] = None,
) -> List[BaseTool]:
    return [
        tool.as_structured_tool()
        for tool in create_workflow_tools(dependencies, sessions=sessions, settings=settings)
    ]
