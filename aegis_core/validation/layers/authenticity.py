"""Authenticity layer: who created the target, when, and from what."""

from aegis_core.protocols import Actor, EntitySnapshot, LayerResult, Severity
from aegis_core.thresholds import LAYER_AUTHENTICITY
from aegis_core.validation.layers.base import BASELINE_SCORE, LayerEvaluator, check


class AuthenticityLayer(LayerEvaluator):
    name = LAYER_AUTHENTICITY

    async def evaluate(self, snapshot: EntitySnapshot, actor: Actor) -> LayerResult:
        score = BASELINE_SCORE
        diagnostics = []

        has_creator = bool(snapshot.created_by)
        diagnostics.append(check("creator_identity", has_creator))
        if not has_creator:
            score -= self._deductions.missing_creator

        # Only comparable when both timestamps are present
        timestamp_valid = True
        if snapshot.created_at is not None and snapshot.updated_at is not None:
            timestamp_valid = snapshot.updated_at >= snapshot.created_at
            diagnostics.append(check(
                "timestamp_coherence",
                timestamp_valid,
                failed_severity=Severity.HIGH,
                detail=None if timestamp_valid else "updated_at precedes created_at",
            ))
            if not timestamp_valid:
                score -= self._deductions.temporal_incoherence

        has_provenance = snapshot.has_provenance
        diagnostics.append(check("data_provenance", has_provenance))
        if not has_provenance:
            score -= self._deductions.missing_provenance

        return self.result(
            score,
            diagnostics,
            creator_verified=has_creator,
            timestamp_valid=timestamp_valid,
            source_traceable=has_provenance,
        )
