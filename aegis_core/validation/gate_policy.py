"""Gate policy engine.

Maps layer and aggregate scores onto the named quality gates and derives
the hard-stop list. Gates and hard stops are evaluated independently of
each other; both are pure functions of the layer results.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Mapping, Tuple

from aegis_core.protocols import (
    GateState,
    HardStop,
    HardStopSeverity,
    LayerResult,
    QualityGateStatus,
)
from aegis_core.thresholds import (
    DEFAULT_VALIDATION_POLICY,
    GATE_CRV_VALIDATION,
    GATE_DATA_QUALITY,
    GATE_INTEGRITY_CONSISTENCY,
    GATE_METHODOLOGY,
    GATE_SECURITY_AUDIT,
    GATE_SECURITY_RBAC,
    LAYER_EVIDENCE,
    LAYER_GOVERNANCE,
    LAYER_INTEGRITY,
    LAYER_SECURITY,
    GateThreshold,
    ValidationPolicy,
)


@dataclass(frozen=True)
class GateEvaluation:
    gates: Tuple[QualityGateStatus, ...]
    hard_stops: Tuple[HardStop, ...]


def gate_state(score: int, threshold: GateThreshold) -> GateState:
    if score >= threshold.passed_at:
        return GateState.PASSED
    if score >= threshold.warning_at:
        return GateState.WARNING
    return GateState.FAILED


class GatePolicyEngine:
    """Quality gates and hard stops from layer results."""

    def __init__(self, policy: ValidationPolicy = DEFAULT_VALIDATION_POLICY):
        self._policy = policy

    def evaluate(self, layers: Mapping[str, LayerResult], aggregate_score: int) -> GateEvaluation:
        return GateEvaluation(
            gates=tuple(self.quality_gates(layers, aggregate_score)),
            hard_stops=tuple(self.hard_stops(layers)),
        )

    def quality_gates(self, layers: Mapping[str, LayerResult], aggregate_score: int) -> List[QualityGateStatus]:
        policy = self._policy
        evidence = layers[LAYER_EVIDENCE]
        adherence = layers[LAYER_GOVERNANCE].derived("methodology_adherence", 0)
        consistency = layers[LAYER_INTEGRITY].derived("consistency_score", 0)
        tier_one = evidence.derived("data_tier_breakdown", {}).get("tier_1", 0)

        return [
            QualityGateStatus(
                gate_id=GATE_DATA_QUALITY,
                status=gate_state(evidence.score, policy.data_quality),
                score=evidence.score,
                details=f"Data quality: {evidence.derived('sources_validated', 0)} sources, Tier 1: {tier_one}%",
            ),
            QualityGateStatus(
                gate_id=GATE_METHODOLOGY,
                status=gate_state(adherence, policy.methodology),
                score=adherence,
                details=f"Methodology adherence: {adherence}%",
            ),
            QualityGateStatus(
                gate_id=GATE_CRV_VALIDATION,
                status=gate_state(aggregate_score, policy.crv_validation),
                score=aggregate_score,
                details=f"Overall AEGIS score: {aggregate_score}",
            ),
            QualityGateStatus(
                gate_id=GATE_INTEGRITY_CONSISTENCY,
                status=gate_state(consistency, policy.integrity_consistency),
                score=consistency,
                details=f"Consistency score: {consistency}%",
            ),
        ]

    def hard_stops(self, layers: Mapping[str, LayerResult]) -> List[HardStop]:
        policy = self._policy
        stops: List[HardStop] = []

        evidence_score = layers[LAYER_EVIDENCE].score
        if evidence_score < policy.evidence_hard_stop_floor:
            stops.append(_blocking(
                GATE_DATA_QUALITY,
                "Critical data quality failure",
                evidence_score,
                policy.evidence_hard_stop_floor,
            ))

        adherence = layers[LAYER_GOVERNANCE].derived("methodology_adherence", 0)
        if adherence < policy.methodology_hard_stop_floor:
            stops.append(_blocking(
                GATE_METHODOLOGY,
                "Methodology adherence below threshold",
                adherence,
                policy.methodology_hard_stop_floor,
            ))

        integrity_score = layers[LAYER_INTEGRITY].score
        if integrity_score < policy.integrity_hard_stop_floor:
            stops.append(_blocking(
                GATE_INTEGRITY_CONSISTENCY,
                "Integrity validation failed",
                integrity_score,
                policy.integrity_hard_stop_floor,
            ))

        security = layers[LAYER_SECURITY]
        if not security.derived("audit_trail", False):
            stops.append(HardStop(
                gate_id=GATE_SECURITY_AUDIT,
                severity=HardStopSeverity.WARNING,
                message="Audit trail incomplete - recommend enabling full tracking",
                resolution_required=False,
            ))
        if security.derived("rbac_degraded", False):
            stops.append(HardStop(
                gate_id=GATE_SECURITY_RBAC,
                severity=HardStopSeverity.WARNING,
                message="Permission check unavailable; access defaulted to allow",
                resolution_required=False,
            ))

        return stops


def _blocking(gate_id: str, label: str, observed: int, minimum: int) -> HardStop:
    return HardStop(
        gate_id=gate_id,
        severity=HardStopSeverity.HARD_STOP,
        message=f"{label}: {observed}% (minimum: {minimum}%)",
        resolution_required=True,
        threshold=minimum,
        observed=observed,
    )
