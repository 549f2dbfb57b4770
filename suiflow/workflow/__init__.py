"""Sui multi-intent workflow: normalize, simulate and execute."""

from .orchestrator import WorkflowDependencies, WorkflowOrchestrator
from .params import WorkflowParams
from .router import DefiWorkflowRouter, WorkflowRoute, select_route
from .tools import SuiWorkflowTool, create_workflow_tools, get_tools

__all__ = [
    "DefiWorkflowRouter",
    "SuiWorkflowTool",
    "WorkflowDependencies",
    "WorkflowOrchestrator",
    "WorkflowParams",
    "WorkflowRoute",
    "create_workflow_tools",
    "get_tools",
    "select_route",
]
