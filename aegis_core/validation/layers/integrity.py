"""Integrity layer: temporal and logical consistency of the target."""

from __future__ import annotations

from typing import Optional

from aegis_core.protocols import Actor, EntitySnapshot, LayerResult, Severity
from aegis_core.thresholds import LAYER_INTEGRITY
from aegis_core.utils.datetime import parse_datetime_or_none
from aegis_core.validation.layers.base import BASELINE_SCORE, LayerEvaluator, check


def first_milestone_violation(snapshot: EntitySnapshot) -> Optional[int]:
    """Index of the first dated milestone that precedes its predecessor."""
    dates = [
        parsed for parsed in (parse_datetime_or_none(m.get("target_date")) for m in snapshot.milestones)
        if parsed is not None
    ]
    for i in range(1, len(dates)):
        if dates[i] < dates[i - 1]:
            return i
    return None


class IntegrityLayer(LayerEvaluator):
    name = LAYER_INTEGRITY

    async def evaluate(self, snapshot: EntitySnapshot, actor: Actor) -> LayerResult:
        consistency = BASELINE_SCORE
        diagnostics = []

        violation = first_milestone_violation(snapshot)
        temporal_coherence = violation is None
        diagnostics.append(check(
            "milestone_order",
            temporal_coherence,
            failed_severity=Severity.HIGH,
            detail=None if temporal_coherence else f"milestone {violation} precedes its predecessor",
        ))
        if not temporal_coherence:
            consistency -= self._deductions.milestone_out_of_order

        logical_coherence = True
        has_narrative = bool(snapshot.narratives)
        diagnostics.append(check("narrative_present", has_narrative))
        if not has_narrative:
            consistency -= self._deductions.missing_narrative
            logical_coherence = False

        for field_name in self._policy.critical_fields:
            present = bool(snapshot.get(field_name))
            diagnostics.append(check(f"critical_field:{field_name}", present))
            if not present:
                consistency -= self._deductions.missing_critical_field
                logical_coherence = False

        return self.result(
            max(0, consistency),
            diagnostics,
            consistency_score=consistency,
            temporal_coherence=temporal_coherence,
            logical_coherence=logical_coherence,
        )
