"""Domain types for the validation and stage-gate engines.

All records produced by an evaluation run are frozen dataclasses: a
validation run never mutates a record once it has been emitted, and a
re-evaluation always builds a new one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple


# =============================================================================
# ENUMS
# =============================================================================

class TargetKind(str, Enum):
    """Kinds of entity a validation run can target."""
    PROJECT = "project"
    STRATEGY = "strategy"
    ANALYSIS = "analysis"
    DELIVERABLE = "deliverable"


class Severity(str, Enum):
    """Severity attached to a single layer diagnostic."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class HardStopSeverity(str, Enum):
    HARD_STOP = "hard_stop"
    WARNING = "warning"


class GateState(str, Enum):
    """Quality gate outcome."""
    PASSED = "passed"
    WARNING = "warning"
    FAILED = "failed"


class ValidationStatus(str, Enum):
    """Terminal states of the decision engine."""
    PASSED = "passed"
    FAILED = "failed"
    BLOCKED = "blocked"


class LookupStatus(str, Enum):
    """Outcome of an optional auxiliary lookup."""
    FOUND = "found"
    ABSENT = "absent"
    DEGRADED = "degraded"


# =============================================================================
# ACTOR / LOOKUPS
# =============================================================================

@dataclass(frozen=True)
class Actor:
    """Caller on whose behalf a validation runs."""
    email: str
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


@dataclass(frozen=True)
class LookupResult:
    """Explicit result of an optional lookup.

    Lookups never raise into evaluators: a missing collaborator is
    ``absent`` and a failing one is ``degraded``. Both mean "not found"
    for scoring purposes.
    """
    status: LookupStatus
    items: Tuple[Any, ...] = ()
    error: Optional[str] = None

    @classmethod
    def found(cls, items) -> "LookupResult":
        items = tuple(items)
        if not items:
            return cls(status=LookupStatus.ABSENT)
        return cls(status=LookupStatus.FOUND, items=items)

    @classmethod
    def absent(cls) -> "LookupResult":
        return cls(status=LookupStatus.ABSENT)

    @classmethod
    def degraded(cls, error: str) -> "LookupResult":
        return cls(status=LookupStatus.DEGRADED, error=error)

    @property
    def is_found(self) -> bool:
        return self.status == LookupStatus.FOUND

    @property
    def is_degraded(self) -> bool:
        return self.status == LookupStatus.DEGRADED


# =============================================================================
# SNAPSHOT
# =============================================================================

@dataclass(frozen=True)
class EntitySnapshot:
    """Common shape every target kind is normalised into by the loader.

    ``data_sources`` and ``deliverables`` are ``None`` when the record does
    not declare them at all, and a (possibly empty) tuple otherwise.
    """
    kind: TargetKind
    id: Optional[str]
    title: Optional[str] = None
    status: Optional[str] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    data_sources: Optional[Tuple[Mapping[str, Any], ...]] = None
    deliverables: Optional[Tuple[Mapping[str, Any], ...]] = None
    referenced_documents: Tuple[Any, ...] = ()
    analysis_results: Optional[Any] = None
    milestones: Tuple[Mapping[str, Any], ...] = ()
    narratives: Tuple[str, ...] = ()
    confidence_score: Optional[float] = None
    has_quality_gate_state: bool = False
    raw: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def has_provenance(self) -> bool:
        """Data sources, referenced documents or analysis results present."""
        return bool(self.data_sources) or bool(self.referenced_documents) or bool(self.analysis_results)

    def get(self, name: str, default: Any = None) -> Any:
        """Read a raw field of the underlying record."""
        return self.raw.get(name, default)


# =============================================================================
# LAYER RESULTS
# =============================================================================

@dataclass(frozen=True)
class Diagnostic:
    """One check executed by a layer evaluator."""
    check_name: str
    passed: bool
    severity: Severity
    detail: Optional[str] = None
    degraded: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "check": self.check_name,
            "passed": self.passed,
            "severity": self.severity.value,
        }
        if self.detail:
            data["detail"] = self.detail
        if self.degraded:
            data["degraded"] = True
        return data


def clamp_score(value: int, low: int = 0, high: int = 100) -> int:
    """Clamp a score into [low, high]."""
    return max(low, min(high, int(value)))


@dataclass(frozen=True)
class LayerResult:
    """Bounded score plus structured diagnostics for one layer.

    The score is clamped to [0, 100] on construction.
    """
    layer_name: str
    score: int
    diagnostics: Tuple[Diagnostic, ...] = ()
    derived_fields: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        object.__setattr__(self, "score", clamp_score(self.score))
        object.__setattr__(self, "diagnostics", tuple(self.diagnostics))
        object.__setattr__(self, "derived_fields", MappingProxyType(dict(self.derived_fields)))

    def derived(self, name: str, default: Any = None) -> Any:
        return self.derived_fields.get(name, default)

    @property
    def degraded_checks(self) -> List[str]:
        return [d.check_name for d in self.diagnostics if d.degraded]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "layer": self.layer_name,
            "score": self.score,
            "checks": [d.to_dict() for d in self.diagnostics],
            **dict(self.derived_fields),
        }


# =============================================================================
# GATES / HARD STOPS
# =============================================================================

@dataclass(frozen=True)
class HardStop:
    """Rule violation emitted by the gate policy engine."""
    gate_id: str
    severity: HardStopSeverity
    message: str
    resolution_required: bool
    resolved: bool = False
    threshold: Optional[int] = None
    observed: Optional[int] = None

    @property
    def is_blocking(self) -> bool:
        """Unresolved hard_stop severity; warnings never block."""
        return self.severity == HardStopSeverity.HARD_STOP and not self.resolved

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gate": self.gate_id,
            "severity": self.severity.value,
            "message": self.message,
            "resolution_required": self.resolution_required,
            "resolved": self.resolved,
            "minimum": self.threshold,
            "observed": self.observed,
        }


@dataclass(frozen=True)
class QualityGateStatus:
    gate_id: str
    status: GateState
    score: int
    details: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gate": self.gate_id,
            "status": self.status.value,
            "score": self.score,
            "details": self.details,
        }


# =============================================================================
# VALIDATION RECORD
# =============================================================================

@dataclass(frozen=True)
class ValidationRecord:
    """Full, immutable outcome of one validation run."""
    record_id: str
    target_kind: TargetKind
    target_id: Optional[str]
    layers: Tuple[LayerResult, ...]
    aggregate_score: int
    hard_stops: Tuple[HardStop, ...]
    gates: Tuple[QualityGateStatus, ...]
    status: ValidationStatus
    duration_ms: int
    checks_performed: int
    enforce_hard_stops: bool
    created_at: datetime

    def layer(self, name: str) -> LayerResult:
        for layer in self.layers:
            if layer.layer_name == name:
                return layer
        raise KeyError(name)

    def gate(self, gate_id: str) -> QualityGateStatus:
        for gate in self.gates:
            if gate.gate_id == gate_id:
                return gate
        raise KeyError(gate_id)

    @property
    def unresolved_hard_stops(self) -> List[HardStop]:
        return [h for h in self.hard_stops if h.is_blocking]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "record_id": self.record_id,
            "target_kind": self.target_kind.value,
            "target_id": self.target_id,
            "validation_layers": {layer.layer_name: layer.to_dict() for layer in self.layers},
            "aggregate_score": self.aggregate_score,
            "hard_stops": [h.to_dict() for h in self.hard_stops],
            "quality_gates": [g.to_dict() for g in self.gates],
            "status": self.status.value,
            "enforce_hard_stops": self.enforce_hard_stops,
            "execution_metadata": {
                "duration_ms": self.duration_ms,
                "checks_performed": self.checks_performed,
            },
            "created_at": self.created_at.isoformat(),
        }


# =============================================================================
# STAGE GATES
# =============================================================================

@dataclass(frozen=True)
class Deliverable:
    """Upstream artifact submitted with a stage-gate request."""
    code: str
    content: Any = None
    confidence_score: Optional[float] = None

    @property
    def has_content(self) -> bool:
        return bool(self.content)


@dataclass(frozen=True)
class RubricCriterion:
    """Named, weighted criterion of a stage-gate rubric."""
    key: str
    label: str
    weight: int
    questions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RubricRequest:
    """Structured judgment request submitted to the judgment collaborator."""
    gate_number: int
    gate_name: str
    mission: str
    artifact_code: str
    artifact_label: str
    criteria: Tuple[RubricCriterion, ...]
    pass_rule: str
    project: Mapping[str, Any]
    artifact_content: Any
    artifact_confidence: Optional[float] = None
    comparisons: Tuple[Any, ...] = ()
    extra_output_fields: Tuple[str, ...] = ()

    @property
    def criterion_keys(self) -> List[str]:
        return [c.key for c in self.criteria]


@dataclass(frozen=True)
class JudgmentResponse:
    """Validated output of the judgment collaborator."""
    score_breakdown: Mapping[str, int]
    overall_score: int
    passed: bool
    gate_name: Optional[str] = None
    critical_issues: Tuple[str, ...] = ()
    blockers: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    required_actions: Tuple[str, ...] = ()
    recommendation: Optional[str] = None
    confidence_assessment: Optional[Mapping[str, Any]] = None
    comparisons_with_similar_strategies: Tuple[str, ...] = ()
    unmitigated_critical_risks: Tuple[str, ...] = ()


@dataclass
class StageGateResult:
    """Outcome of one stage-gate invocation.

    The owning project keeps only the latest result per gate number.
    """
    gate_number: int
    passed: bool
    gate_name: str
    score_breakdown: Dict[str, int] = field(default_factory=dict)
    critical_issues: List[str] = field(default_factory=list)
    blockers: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    required_actions: List[str] = field(default_factory=list)
    recommendation: Optional[str] = None
    overall_score: Optional[int] = None
    judgment_passed: Optional[bool] = None
    confidence_assessment: Optional[Dict[str, Any]] = None
    comparisons_with_similar_strategies: List[str] = field(default_factory=list)
    evaluated_at: Optional[datetime] = None

    @property
    def status(self) -> str:
        return "passed" if self.passed else "failed"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "gate_number": self.gate_number,
            "passed": self.passed,
            "gate_name": self.gate_name,
            "score_breakdown": dict(self.score_breakdown),
            "overall_score": self.overall_score,
            "critical_issues": list(self.critical_issues),
            "blockers": list(self.blockers),
            "warnings": list(self.warnings),
            "required_actions": list(self.required_actions),
            "recommendation": self.recommendation,
            "judgment_passed": self.judgment_passed,
        }
        if self.confidence_assessment is not None:
            data["confidence_assessment"] = dict(self.confidence_assessment)
        if self.comparisons_with_similar_strategies:
            data["comparisons_with_similar_strategies"] = list(self.comparisons_with_similar_strategies)
        if self.evaluated_at is not None:
            data["evaluated_at"] = self.evaluated_at.isoformat()
        return data
