"""Five-layer validation pipeline."""

from aegis_core.validation.aggregator import ScoreAggregator
from aegis_core.validation.decision import Decision, decide, resolution_checklist, resolution_steps
from aegis_core.validation.gate_policy import GateEvaluation, GatePolicyEngine, gate_state
from aegis_core.validation.loader import EntitySnapshotLoader, resolve_kind
from aegis_core.validation.service import (
    ValidationService,
    blocked_response,
    success_response,
)

__all__ = [
    "Decision",
    "EntitySnapshotLoader",
    "GateEvaluation",
    "GatePolicyEngine",
    "ScoreAggregator",
    "ValidationService",
    "blocked_response",
    "decide",
    "gate_state",
    "resolution_checklist",
    "resolution_steps",
    "resolve_kind",
    "success_response",
]
