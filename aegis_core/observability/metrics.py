"""Prometheus metrics instrumentation for the AEGIS engines."""

from __future__ import annotations

from typing import Iterable, TYPE_CHECKING

from prometheus_client import Counter, Histogram

if TYPE_CHECKING:
    from aegis_core.protocols import HardStop, ValidationRecord


# ============================================================
# Validation Pipeline Metrics
# ============================================================

VALIDATIONS_TOTAL = Counter(
    "aegis_validations_total",
    "Total validation runs by terminal status.",
    labelnames=("status",),
)

LAYER_SCORE = Histogram(
    "aegis_layer_score",
    "Distribution of layer scores (0-100).",
    labelnames=("layer",),
    buckets=(10, 20, 30, 40, 50, 60, 70, 80, 90, 100),
)

VALIDATION_DURATION = Histogram(
    "aegis_validation_duration_seconds",
    "Validation run duration in seconds.",
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5),
)

DEGRADED_LOOKUPS = Counter(
    "aegis_degraded_lookups_total",
    "Optional lookups that failed and fell back to their default.",
    labelnames=("layer", "lookup"),
)

HARD_STOPS = Counter(
    "aegis_hard_stops_total",
    "Hard stops emitted by the gate policy engine.",
    labelnames=("gate_id", "severity"),
)

# ============================================================
# Stage Gate Metrics
# ============================================================

STAGE_GATES_TOTAL = Counter(
    "aegis_stage_gates_total",
    "Stage gate evaluations by gate number and outcome.",
    labelnames=("gate_number", "outcome"),
)

JUDGMENT_LATENCY = Histogram(
    "aegis_judgment_latency_seconds",
    "Judgment collaborator latency in seconds.",
    labelnames=("gate_number",),
    buckets=(0.1, 0.5, 1, 2, 5, 10, 30, 60, 120, 180),
)


def record_validation(record: "ValidationRecord") -> None:
    """Emit metrics for a completed validation record."""
    VALIDATIONS_TOTAL.labels(status=record.status.value).inc()
    VALIDATION_DURATION.observe(max(record.duration_ms, 0) / 1000.0)
    for layer in record.layers:
        LAYER_SCORE.labels(layer=layer.layer_name).observe(layer.score)


def record_hard_stops(hard_stops: Iterable["HardStop"]) -> None:
    for stop in hard_stops:
        HARD_STOPS.labels(gate_id=stop.gate_id, severity=stop.severity.value).inc()


def record_degraded_lookup(layer: str, lookup: str) -> None:
    """Record an optional lookup that fell back to its documented default.

    Args:
        layer: Layer evaluator name (e.g., governance, security)
        lookup: Lookup name (e.g., cross_validation, permission_check)
    """
    DEGRADED_LOOKUPS.labels(layer=layer, lookup=lookup).inc()


def record_stage_gate(gate_number: int, outcome: str) -> None:
    """outcome is one of passed, failed, missing_artifact, judgment_failure."""
    STAGE_GATES_TOTAL.labels(gate_number=str(gate_number), outcome=outcome).inc()


def record_judgment_latency(gate_number: int, seconds: float) -> None:
    JUDGMENT_LATENCY.labels(gate_number=str(gate_number)).observe(max(seconds, 0.0))


__all__ = [
    "VALIDATIONS_TOTAL",
    "LAYER_SCORE",
    "VALIDATION_DURATION",
    "DEGRADED_LOOKUPS",
    "HARD_STOPS",
    "STAGE_GATES_TOTAL",
    "JUDGMENT_LATENCY",
    "record_validation",
    "record_hard_stops",
    "record_degraded_lookup",
    "record_stage_gate",
    "record_judgment_latency",
]
