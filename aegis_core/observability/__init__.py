"""Observability: Prometheus metrics for the validation and stage-gate engines."""

from aegis_core.observability.metrics import (
    record_degraded_lookup,
    record_hard_stops,
    record_judgment_latency,
    record_stage_gate,
    record_validation,
)

__all__ = [
    "record_degraded_lookup",
    "record_hard_stops",
    "record_judgment_latency",
    "record_stage_gate",
    "record_validation",
]
