"""Error taxonomy surfaced to callers.

Degraded auxiliary lookups have no error type here:
they are recovered inside the evaluators and never raised.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from aegis_core.protocols.types import ValidationRecord


class AegisError(Exception):
    """Service-level error with a code."""

    code = "INTERNAL"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(f"[{self.code}] {message}")

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"error": self.code, "message": self.message}
        if self.details:
            data["details"] = self.details
        return data


class NotFoundError(AegisError):
    """Target or required record missing. Terminal, not retried."""

    code = "NOT_FOUND"


class InvalidRequestError(AegisError):
    """Request is missing required fields or carries invalid values."""

    code = "INVALID_REQUEST"


class JudgmentFailureError(AegisError):
    """Judgment collaborator errored, timed out or returned malformed output.

    Fatal for the gate invocation only; nothing is persisted.
    """

    code = "JUDGMENT_FAILURE"


class ValidationBlockedError(AegisError):
    """Business-rule rejection: unresolved hard stops under enforcement.

    Not a system fault. Carries the persisted record and the actionable
    resolution checklist.
    """

    code = "BLOCKED"

    def __init__(
        self,
        record: "ValidationRecord",
        resolution_steps: List[str],
        resolution_checklist: List[Dict[str, Any]],
    ):
        self.record = record
        self.resolution_steps = resolution_steps
        self.resolution_checklist = resolution_checklist
        super().__init__(
            "AEGIS Protocol blocked execution due to critical failures",
            details={"record_id": record.record_id},
        )


__all__ = [
    "AegisError",
    "NotFoundError",
    "InvalidRequestError",
    "JudgmentFailureError",
    "ValidationBlockedError",
]
