"""Governance layer: methodology adherence plus linked assessments.

Cross-validation and contextual assessment lookups are optional. A
missing collaborator, an empty result and a failing lookup all count as
"not found"; the latter is recorded as a degraded diagnostic.
"""

from __future__ import annotations

from typing import Optional

from aegis_core.protocols import (
    Actor,
    AssessmentLookupProtocol,
    EntitySnapshot,
    LayerResult,
    LoggerProtocol,
    LookupResult,
)
from aegis_core.thresholds import DEFAULT_VALIDATION_POLICY, LAYER_GOVERNANCE, ValidationPolicy
from aegis_core.utils.scoring import weighted_round
from aegis_core.validation.layers.base import BASELINE_SCORE, LayerEvaluator, check

CROSS_VALIDATION = "cross_validation"
CONTEXTUAL_ASSESSMENT = "contextual_assessment"


class GovernanceLayer(LayerEvaluator):
    name = LAYER_GOVERNANCE

    def __init__(
        self,
        assessments: Optional[AssessmentLookupProtocol] = None,
        policy: ValidationPolicy = DEFAULT_VALIDATION_POLICY,
        lookup_timeout: float = 5.0,
        logger: Optional[LoggerProtocol] = None,
    ):
        super().__init__(policy=policy, logger=logger)
        self._assessments = assessments
        self._lookup_timeout = lookup_timeout

    async def _lookup(self, category: str, snapshot: EntitySnapshot) -> LookupResult:
        if self._assessments is None or not snapshot.id:
            return LookupResult.absent()
        return await self.guarded_lookup(
            category,
            lambda: self._assessments.list_by_target(category, snapshot.id),
            self._lookup_timeout,
        )

    async def evaluate(self, snapshot: EntitySnapshot, actor: Actor) -> LayerResult:
        deductions = self._deductions
        blend = self._policy.governance
        adherence = BASELINE_SCORE
        diagnostics = []

        cross = await self._lookup(CROSS_VALIDATION, snapshot)
        contextual = await self._lookup(CONTEXTUAL_ASSESSMENT, snapshot)

        has_cross = cross.is_found
        diagnostics.append(check(
            "cross_validation_linked",
            has_cross,
            detail=cross.error,
            degraded=cross.is_degraded,
        ))
        if not has_cross:
            adherence -= deductions.missing_cross_validation

        has_contextual = contextual.is_found
        diagnostics.append(check(
            "contextual_assessment_linked",
            has_contextual,
            detail=contextual.error,
            degraded=contextual.is_degraded,
        ))
        if not has_contextual:
            adherence -= deductions.missing_contextual_assessment

        has_confidence = snapshot.confidence_score is not None
        diagnostics.append(check("confidence_score_present", has_confidence))
        if not has_confidence:
            adherence -= deductions.missing_confidence_score

        diagnostics.append(check("quality_gate_state_present", snapshot.has_quality_gate_state))
        if not snapshot.has_quality_gate_state:
            adherence -= deductions.missing_quality_gate_state

        score = weighted_round([
            (blend.adherence_weight, adherence),
            (blend.cross_validation_bonus, int(has_cross)),
            (blend.contextual_assessment_bonus, int(has_contextual)),
        ])

        return self.result(
            score,
            diagnostics,
            methodology_adherence=adherence,
            cross_validation=has_cross,
            contextual_assessment=has_contextual,
        )
