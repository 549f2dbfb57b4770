"""
Exceptions raised by the Sui workflow tools.
"""

from __future__ import annotations

from typing import Any, List, Optional


class WorkflowError(Exception):
    """Base exception for workflow failures."""

    pass


class ValidationError(WorkflowError):
    """Raised when input is missing, malformed or ambiguous."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        candidates: Optional[List[Any]] = None,
    ):
        self.field = field
        self.candidates = list(candidates or [])
        super().__init__(message)


class UpstreamRpcError(WorkflowError):
    """Raised when a chain node or venue API call fails or reports a non-success status."""

    def __init__(self, message: str, source: str | None = None, digest: str | None = None):
        self.source = source
        self.digest = digest
        super().__init__(message)


class SimulationFailedError(WorkflowError):
    """Raised when a dry-run does not report success."""

    def __init__(self, message: str, intent_type: str | None = None, status: str | None = None):
        self.intent_type = intent_type
        self.status = status
        super().__init__(message)


class MainnetGuardError(WorkflowError):
    """Raised when a mainnet execute lacks confirmation, a valid confirmToken or risk acceptance."""

    pass


class SignerMismatchError(WorkflowError):
    """Raised when the local signer differs from the sender used during simulate."""

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Local signer {actual} does not match simulated sender {expected}."
        )
