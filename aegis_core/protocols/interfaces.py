"""Protocol definitions - interfaces for dependency injection.

These are typing.Protocol classes for static type checking. Every
external collaborator of the engines (entity store, lookups, permission
check, judgment, result sink, LLM transport) is consumed only through
one of these interfaces. Concrete adapters live in aegis_core.adapters
and aegis_core.llm.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional, Protocol, runtime_checkable

from aegis_core.protocols.types import (
    Actor,
    JudgmentResponse,
    RubricRequest,
    StageGateResult,
    ValidationRecord,
)


# =============================================================================
# REQUEST CONTEXT
# =============================================================================

@dataclass(frozen=True)
class RequestContext:
    """Immutable request context for tracing and logging.

    Usage:
        ctx = RequestContext(request_id=str(uuid4()), operation="validation")
        with request_scope(ctx, logger):
            ...
    """
    request_id: str
    operation: str
    actor_email: Optional[str] = None
    tags: Dict[str, str] = field(default_factory=dict)

    MAX_TAGS: ClassVar[int] = 16

    def __post_init__(self) -> None:
        if not isinstance(self.request_id, str) or not self.request_id.strip():
            raise ValueError("request_id is required and must be a non-empty string")
        if not isinstance(self.operation, str) or not self.operation.strip():
            raise ValueError("operation is required and must be a non-empty string")
        if len(self.tags) > self.MAX_TAGS:
            raise ValueError(f"tags exceed max count ({self.MAX_TAGS})")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "request_id": self.request_id,
            "operation": self.operation,
            "actor_email": self.actor_email,
            "tags": self.tags,
        }


# =============================================================================
# LOGGING / CLOCK
# =============================================================================

@runtime_checkable
class LoggerProtocol(Protocol):
    """Structured logging interface."""

    def info(self, message: str, **kwargs: Any) -> None: ...
    def debug(self, message: str, **kwargs: Any) -> None: ...
    def warning(self, message: str, **kwargs: Any) -> None: ...
    def error(self, message: str, **kwargs: Any) -> None: ...
    def bind(self, **kwargs: Any) -> "LoggerProtocol": ...


@runtime_checkable
class ClockProtocol(Protocol):
    def utcnow(self) -> datetime: ...


# =============================================================================
# ENTITY STORE
# =============================================================================

@runtime_checkable
class EntityStoreProtocol(Protocol):
    """Generic entity store keyed by collection name and record id."""

    async def get(self, collection: str, entity_id: str) -> Optional[Dict[str, Any]]: ...

    async def filter(self, collection: str, **criteria: Any) -> List[Dict[str, Any]]: ...

    async def update_fields(
        self,
        collection: str,
        entity_id: str,
        fields: Dict[str, Any],
    ) -> Dict[str, Any]: ...

    async def create(self, collection: str, data: Dict[str, Any]) -> Dict[str, Any]: ...


# =============================================================================
# OPTIONAL LOOKUPS
# =============================================================================

@runtime_checkable
class AssessmentLookupProtocol(Protocol):
    """Cross-validation / contextual assessment lookup.

    ``category`` is ``"cross_validation"`` or ``"contextual_assessment"``.
    May return an empty list; may raise when the backing service is down.
    """

    async def list_by_target(self, category: str, target_id: str) -> List[Dict[str, Any]]: ...


@runtime_checkable
class KnowledgeLookupProtocol(Protocol):
    """Knowledge lookup used to enrich Gate 1 with comparison data."""

    async def find_similar(self, industry: str, limit: int = 5) -> List[Dict[str, Any]]: ...


# =============================================================================
# PERMISSIONS
# =============================================================================

@runtime_checkable
class PermissionCheckerProtocol(Protocol):
    """Access-control decision for (actor, resource, action)."""

    async def check(
        self,
        actor: Actor,
        resource: str,
        action: str,
        entity_id: Optional[str] = None,
    ) -> bool: ...


# =============================================================================
# JUDGMENT / LLM
# =============================================================================

@runtime_checkable
class JudgmentProviderProtocol(Protocol):
    """External judgment collaborator for stage-gate rubrics."""

    async def judge(self, rubric: RubricRequest) -> JudgmentResponse: ...


@runtime_checkable
class LLMProviderProtocol(Protocol):
    """LLM provider interface."""

    async def generate(
        self,
        model: str,
        prompt: str,
        options: Optional[Dict[str, Any]] = None,
    ) -> str: ...

    async def health_check(self) -> bool: ...


# =============================================================================
# RESULT SINK
# =============================================================================

@runtime_checkable
class ResultSinkProtocol(Protocol):
    """Append-only write of validation records, upsert of stage-gate results."""

    async def append_validation_record(self, record: ValidationRecord) -> str: ...

    async def upsert_stage_gate_result(self, project_id: str, result: StageGateResult) -> None: ...
