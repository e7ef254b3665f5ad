"""Score aggregator: weighted combination of the five layer scores."""

from __future__ import annotations

from typing import Mapping, Sequence

from aegis_core.protocols import LayerResult, clamp_score
from aegis_core.thresholds import DEFAULT_VALIDATION_POLICY, ValidationPolicy
from aegis_core.utils.scoring import weighted_round


class ScoreAggregator:
    """aggregate = round(sum(weight_i * score_i)), computed exactly.

    Pure and deterministic: identical layer scores always yield the same
    aggregate.
    """

    def __init__(self, policy: ValidationPolicy = DEFAULT_VALIDATION_POLICY):
        self._policy = policy

    def aggregate_scores(self, scores: Mapping[str, int]) -> int:
        missing = set(self._policy.weights) - set(scores)
        if missing:
            raise ValueError(f"Missing layer scores: {sorted(missing)}")
        pairs = [(self._policy.weight(name), clamp_score(scores[name])) for name in self._policy.weights]
        return clamp_score(weighted_round(pairs))

    def aggregate(self, layers: Sequence[LayerResult]) -> int:
        return self.aggregate_scores({layer.layer_name: layer.score for layer in layers})
