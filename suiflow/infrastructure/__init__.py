"""
Infrastructure Module - Cross-cutting concerns.

This module provides:
- Logging: color or JSON output with per-run workflow context
"""

from .logging import WorkflowLoggerAdapter, get_workflow_logger, setup_logging

__all__ = [
    "setup_logging",
    "get_workflow_logger",
    "WorkflowLoggerAdapter",
]
