"""Domain types and collaborator interfaces.

Usage:
    from aegis_core.protocols import EntitySnapshot, LayerResult, LoggerProtocol
"""

from aegis_core.protocols.types import (
    Actor,
    Deliverable,
    Diagnostic,
    EntitySnapshot,
    GateState,
    HardStop,
    HardStopSeverity,
    JudgmentResponse,
    LayerResult,
    LookupResult,
    LookupStatus,
    QualityGateStatus,
    RubricCriterion,
    RubricRequest,
    Severity,
    StageGateResult,
    TargetKind,
    ValidationRecord,
    ValidationStatus,
    clamp_score,
)
from aegis_core.protocols.interfaces import (
    AssessmentLookupProtocol,
    ClockProtocol,
    EntityStoreProtocol,
    JudgmentProviderProtocol,
    KnowledgeLookupProtocol,
    LLMProviderProtocol,
    LoggerProtocol,
    PermissionCheckerProtocol,
    RequestContext,
    ResultSinkProtocol,
)

__all__ = [
    # Types
    "Actor",
    "Deliverable",
    "Diagnostic",
    "EntitySnapshot",
    "GateState",
    "HardStop",
    "HardStopSeverity",
    "JudgmentResponse",
    "LayerResult",
    "LookupResult",
    "LookupStatus",
    "QualityGateStatus",
    "RubricCriterion",
    "RubricRequest",
    "Severity",
    "StageGateResult",
    "TargetKind",
    "ValidationRecord",
    "ValidationStatus",
    "clamp_score",
    # Interfaces
    "AssessmentLookupProtocol",
    "ClockProtocol",
    "EntityStoreProtocol",
    "JudgmentProviderProtocol",
    "KnowledgeLookupProtocol",
    "LLMProviderProtocol",
    "LoggerProtocol",
    "PermissionCheckerProtocol",
    "RequestContext",
    "ResultSinkProtocol",
]
