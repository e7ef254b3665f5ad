"""Validation and stage-gate policy tables.

Weights, thresholds, deductions and rubrics are immutable data injected
into the engines at construction. Tests and alternate deployments build
their own ValidationPolicy / StageGatePolicy instead of patching globals.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from aegis_core.protocols.types import RubricCriterion
from aegis_core.utils.scoring import weights_sum_to_one

# =============================================================================
# LAYERS
# =============================================================================

LAYER_AUTHENTICITY = "authenticity"
LAYER_EVIDENCE = "evidence"
LAYER_GOVERNANCE = "governance"
LAYER_INTEGRITY = "integrity"
LAYER_SECURITY = "security"

LAYER_NAMES: Tuple[str, ...] = (
    LAYER_AUTHENTICITY,
    LAYER_EVIDENCE,
    LAYER_GOVERNANCE,
    LAYER_INTEGRITY,
    LAYER_SECURITY,
)

DEFAULT_LAYER_WEIGHTS: Mapping[str, float] = MappingProxyType({
    LAYER_AUTHENTICITY: 0.25,
    LAYER_EVIDENCE: 0.20,
    LAYER_GOVERNANCE: 0.25,
    LAYER_INTEGRITY: 0.20,
    LAYER_SECURITY: 0.10,
})

# =============================================================================
# QUALITY GATES
# =============================================================================

GATE_DATA_QUALITY = "data_quality"
GATE_METHODOLOGY = "methodology"
GATE_CRV_VALIDATION = "crv_validation"
GATE_INTEGRITY_CONSISTENCY = "integrity_consistency"
GATE_SECURITY_AUDIT = "security_audit"
GATE_SECURITY_RBAC = "security_rbac"


@dataclass(frozen=True)
class GateThreshold:
    """passed when score >= passed_at, warning when >= warning_at, else failed."""
    passed_at: int
    warning_at: int

    def __post_init__(self) -> None:
        if not 0 <= self.warning_at <= self.passed_at <= 100:
            raise ValueError(
                f"gate thresholds must satisfy 0 <= warning_at <= passed_at <= 100, "
                f"got warning_at={self.warning_at} passed_at={self.passed_at}"
            )


@dataclass(frozen=True)
class LayerDeductions:
    """Fixed deductions applied by the layer evaluators (baseline 100)."""
    # Authenticity
    missing_creator: int = 15
    temporal_incoherence: int = 25
    missing_provenance: int = 20
    # Evidence
    no_sources: int = 30
    no_tier_one_source: int = 20
    # Governance (applied to methodology_adherence)
    missing_cross_validation: int = 15
    missing_contextual_assessment: int = 15
    missing_confidence_score: int = 20
    missing_quality_gate_state: int = 10
    # Integrity
    milestone_out_of_order: int = 25
    missing_narrative: int = 20
    missing_critical_field: int = 10
    # Security
    missing_provenance_stamp: int = 30
    missing_audit_trail: int = 20
    access_denied: int = 40


@dataclass(frozen=True)
class GovernanceBlend:
    """governance.score = round(adherence * adherence_weight + bonus * found lookups)."""
    adherence_weight: float = 0.7
    cross_validation_bonus: int = 15
    contextual_assessment_bonus: int = 15


@dataclass(frozen=True)
class ValidationPolicy:
    """Complete policy for the five-layer validation pipeline."""
    weights: Mapping[str, float] = field(default_factory=lambda: DEFAULT_LAYER_WEIGHTS)
    data_quality: GateThreshold = GateThreshold(passed_at=70, warning_at=50)
    methodology: GateThreshold = GateThreshold(passed_at=80, warning_at=60)
    crv_validation: GateThreshold = GateThreshold(passed_at=75, warning_at=60)
    integrity_consistency: GateThreshold = GateThreshold(passed_at=85, warning_at=70)
    evidence_hard_stop_floor: int = 50
    methodology_hard_stop_floor: int = 60
    integrity_hard_stop_floor: int = 60
    layer_pass_score: int = 70
    critical_fields: Tuple[str, ...] = ("title", "status")
    deductions: LayerDeductions = field(default_factory=LayerDeductions)
    governance: GovernanceBlend = field(default_factory=GovernanceBlend)

    def __post_init__(self) -> None:
        if set(self.weights) != set(LAYER_NAMES):
            raise ValueError(f"weights must cover exactly {LAYER_NAMES}, got {sorted(self.weights)}")
        if any(w < 0 for w in self.weights.values()):
            raise ValueError("weights must be non-negative")
        if not weights_sum_to_one(self.weights.values()):
            raise ValueError(f"weights must sum to exactly 1.0, got {dict(self.weights)}")
        object.__setattr__(self, "weights", MappingProxyType(dict(self.weights)))

    def weight(self, layer_name: str) -> float:
        return self.weights[layer_name]


DEFAULT_VALIDATION_POLICY = ValidationPolicy()


# =============================================================================
# STAGE GATES
# =============================================================================

@dataclass(frozen=True)
class MissingArtifactFeedback:
    """Fixed feedback returned when a gate's required artifact is absent."""
    critical_issue: str
    blocker: str
    required_action: str
    include_confidence_assessment: bool = False


@dataclass(frozen=True)
class StageGateDefinition:
    """One gate of the Gate 0 / 1 / 2 sequence."""
    gate_number: int
    gate_name: str
    mission: str
    artifact_code: str
    artifact_label: str
    criteria: Tuple[RubricCriterion, ...]
    min_overall_score: int
    missing_artifact: MissingArtifactFeedback
    min_confidence: Optional[int] = None
    require_no_blockers: bool = False
    require_no_unmitigated_risks: bool = False
    uses_knowledge_lookup: bool = False

    def __post_init__(self) -> None:
        total = sum(c.weight for c in self.criteria)
        if total != 100:
            raise ValueError(f"Gate {self.gate_number} criteria weights sum to {total}, expected 100")

    @property
    def pass_rule(self) -> str:
        parts = [f"overall score >= {self.min_overall_score}%"]
        if self.min_confidence is not None:
            parts.append(f"consolidated CRV >= {self.min_confidence}%")
        if self.require_no_blockers:
            parts.append("no critical blockers")
        if self.require_no_unmitigated_risks:
            parts.append("no critical risk without mitigation")
        return " AND ".join(parts)


GATE_0 = StageGateDefinition(
    gate_number=0,
    gate_name="Foundation Validation",
    mission="Assess whether this project has a solid foundation to proceed.",
    artifact_code="D1",
    artifact_label="Market Intelligence",
    criteria=(
        RubricCriterion(
            key="clarity_score",
            label="Objective Clarity",
            weight=30,
            questions=(
                "Is the project objective clear and specific?",
                "Is it actionable or too vague?",
            ),
        ),
        RubricCriterion(
            key="data_quality_score",
            label="Data Quality",
            weight=40,
            questions=(
                "Is CRV >= 70%?",
                "Are the sources reliable?",
                "Are assumptions documented?",
            ),
        ),
        RubricCriterion(
            key="feasibility_score",
            label="Feasibility",
            weight=30,
            questions=(
                "Is the scope realistic?",
                "Are the constraints manageable?",
                "Are there critical red flags?",
            ),
        ),
    ),
    min_overall_score=80,
    require_no_blockers=True,
    missing_artifact=MissingArtifactFeedback(
        critical_issue="D1 (Market Intelligence) não foi gerado",
        blocker="Sem contexto de mercado, impossível prosseguir",
        required_action="Execute D1 primeiro",
        include_confidence_assessment=True,
    ),
)

GATE_1 = StageGateDefinition(
    gate_number=1,
    gate_name="Strategy Validation",
    mission="Assess whether the proposed strategy is robust and actionable.",
    artifact_code="D5",
    artifact_label="Strategic Synthesis",
    criteria=(
        RubricCriterion(
            key="strategic_clarity",
            label="Strategic Clarity",
            weight=25,
            questions=(
                "Is the GO/NO-GO recommendation clear?",
                "Are the strategic options (A, B, C) well defined?",
                "Is the VRIN analysis solid?",
            ),
        ),
        RubricCriterion(
            key="data_confidence",
            label="Data Confidence",
            weight=25,
            questions=(
                "Is the consolidated CRV >= 70%?",
                "Are critical assumptions documented?",
                "Are facts and hypotheses classified?",
            ),
        ),
        RubricCriterion(
            key="actionability",
            label="Actionability",
            weight=25,
            questions=(
                "Are the strategic options executable?",
                "Is the timeline realistic?",
                "Are resource requirements clear?",
            ),
        ),
        RubricCriterion(
            key="risk_assessment",
            label="Risk Assessment",
            weight=25,
            questions=(
                "Are critical gaps identified?",
                "Do mitigation plans exist?",
                "Were downside scenarios considered?",
            ),
        ),
    ),
    min_overall_score=75,
    min_confidence=70,
    uses_knowledge_lookup=True,
    missing_artifact=MissingArtifactFeedback(
        critical_issue="D5 (Strategic Synthesis) não foi gerado",
        blocker="Sem síntese estratégica, impossível avaliar viabilidade",
        required_action="Execute D5 primeiro",
    ),
)

GATE_2 = StageGateDefinition(
    gate_number=2,
    gate_name="Execution Readiness",
    mission="Assess whether the execution plan is viable and complete.",
    artifact_code="D7",
    artifact_label="Implementation Roadmap",
    criteria=(
        RubricCriterion(
            key="resource_planning",
            label="Resource Planning",
            weight=30,
            questions=(
                "Are team requirements clear?",
                "Is the budget allocation defined?",
                "Are tools and technology specified?",
            ),
        ),
        RubricCriterion(
            key="timeline_realism",
            label="Timeline Realism",
            weight=30,
            questions=(
                "Are the milestones achievable?",
                "Are dependencies mapped?",
                "Is there adequate buffer?",
            ),
        ),
        RubricCriterion(
            key="risk_mitigation",
            label="Risk Mitigation",
            weight=20,
            questions=(
                "Are the top risks identified?",
                "Do mitigation plans exist?",
                "Are contingencies defined?",
            ),
        ),
        RubricCriterion(
            key="accountability",
            label="Accountability",
            weight=20,
            questions=(
                "Is a RACI matrix present?",
                "Are the OKRs measurable?",
                "Is governance defined?",
            ),
        ),
    ),
    min_overall_score=75,
    require_no_unmitigated_risks=True,
    missing_artifact=MissingArtifactFeedback(
        critical_issue="D7 (Implementation Roadmap) não foi gerado",
        blocker="Sem roadmap de implementação",
        required_action="Execute D7 primeiro",
    ),
)


@dataclass(frozen=True)
class StageGatePolicy:
    gates: Mapping[int, StageGateDefinition] = field(
        default_factory=lambda: MappingProxyType({0: GATE_0, 1: GATE_1, 2: GATE_2})
    )
    comparison_limit: int = 5

    def definition(self, gate_number: int) -> StageGateDefinition:
        return self.gates[gate_number]

    @property
    def gate_numbers(self) -> Tuple[int, ...]:
        return tuple(sorted(self.gates))


DEFAULT_STAGE_GATE_POLICY = StageGatePolicy()
