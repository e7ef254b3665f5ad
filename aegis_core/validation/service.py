"""Validation service: the five-layer pipeline end to end.

Control flow:
    Loader -> layer evaluators (concurrent) -> ScoreAggregator
    -> GatePolicyEngine -> decide() -> ResultSink

The sink write is the only side effect and happens once, after every
decision has been made. A caller that cancels before that point leaves
nothing behind.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable, Mapping, Optional, Sequence
from uuid import uuid4

from aegis_core.errors import ValidationBlockedError
from aegis_core.logging import get_component_logger
from aegis_core.observability import record_hard_stops, record_validation
from aegis_core.protocols import (
    Actor,
    ClockProtocol,
    LayerResult,
    LoggerProtocol,
    ResultSinkProtocol,
    ValidationRecord,
)
from aegis_core.thresholds import DEFAULT_VALIDATION_POLICY, LAYER_NAMES, ValidationPolicy
from aegis_core.validation.aggregator import ScoreAggregator
from aegis_core.validation.decision import decide, resolution_checklist, resolution_steps
from aegis_core.validation.gate_policy import GatePolicyEngine
from aegis_core.validation.layers import LayerEvaluator
from aegis_core.validation.loader import EntitySnapshotLoader


class ValidationService:
    """Runs one validation and persists its record.

    Usage:
        service = ValidationService(loader, layers, sink, clock=SystemClock())
        record = await service.validate("project", actor, target_id="p-1")
    """

    def __init__(
        self,
        loader: EntitySnapshotLoader,
        layers: Sequence[LayerEvaluator],
        sink: ResultSinkProtocol,
        clock: ClockProtocol,
        policy: ValidationPolicy = DEFAULT_VALIDATION_POLICY,
        logger: Optional[LoggerProtocol] = None,
        id_factory: Callable[[], str] = lambda: str(uuid4()),
    ):
        names = sorted(layer.name for layer in layers)
        if names != sorted(LAYER_NAMES):
            raise ValueError(f"ValidationService needs exactly one evaluator per layer {LAYER_NAMES}, got {names}")
        self._loader = loader
        self._layers = tuple(layers)
        self._sink = sink
        self._clock = clock
        self._policy = policy
        self._aggregator = ScoreAggregator(policy)
        self._gate_engine = GatePolicyEngine(policy)
        self._logger = get_component_logger("ValidationService", logger)
        self._id_factory = id_factory

    @property
    def policy(self) -> ValidationPolicy:
        return self._policy

    async def validate(
        self,
        target_kind: Any,
        actor: Actor,
        target_id: Optional[str] = None,
        inline_target: Optional[Mapping[str, Any]] = None,
        enforce_hard_stops: bool = True,
    ) -> ValidationRecord:
        """Validate a target and persist the record.

        Raises:
            InvalidRequestError: malformed request
            NotFoundError: target does not resolve
            ValidationBlockedError: unresolved hard stops under enforcement
                (the record is persisted before this is raised)
        """
        started = time.perf_counter()
        snapshot = await self._loader.load(target_kind, target_id=target_id, inline_target=inline_target)

        self._logger.info(
            "validation_started",
            target_kind=snapshot.kind.value,
            target_id=snapshot.id,
            enforce_hard_stops=enforce_hard_stops,
        )

        results: Sequence[LayerResult] = await asyncio.gather(
            *(layer.evaluate(snapshot, actor) for layer in self._layers)
        )
        by_name = {result.layer_name: result for result in results}
        ordered = tuple(by_name[name] for name in LAYER_NAMES)

        aggregate = self._aggregator.aggregate(ordered)
        gate_eval = self._gate_engine.evaluate(by_name, aggregate)
        decision = decide(gate_eval.hard_stops, enforce_hard_stops)

        record = ValidationRecord(
            record_id=self._id_factory(),
            target_kind=snapshot.kind,
            target_id=snapshot.id,
            layers=ordered,
            aggregate_score=aggregate,
            hard_stops=gate_eval.hard_stops,
            gates=gate_eval.gates,
            status=decision.status,
            duration_ms=int((time.perf_counter() - started) * 1000),
            checks_performed=sum(len(result.diagnostics) for result in ordered),
            enforce_hard_stops=enforce_hard_stops,
            created_at=self._clock.utcnow(),
        )

        await self._sink.append_validation_record(record)
        record_validation(record)
        record_hard_stops(record.hard_stops)

        self._logger.info(
            "validation_completed",
            record_id=record.record_id,
            target_id=record.target_id,
            aggregate_score=aggregate,
            status=record.status.value,
            hard_stops=len(record.hard_stops),
            duration_ms=record.duration_ms,
        )

        if decision.is_blocked:
            self._logger.warning(
                "validation_blocked",
                record_id=record.record_id,
                unresolved=[stop.gate_id for stop in decision.unresolved],
            )
            raise ValidationBlockedError(
                record,
                resolution_steps=resolution_steps(record.hard_stops),
                resolution_checklist=resolution_checklist(record.hard_stops),
            )

        return record


def layer_summary(record: ValidationRecord, pass_score: int) -> dict:
    """Per-layer view for responses: score, pass flag and derived fields."""
    return {
        layer.layer_name: {
            **layer.to_dict(),
            "passed": layer.score >= pass_score,
        }
        for layer in record.layers
    }


def success_response(record: ValidationRecord, policy: ValidationPolicy = DEFAULT_VALIDATION_POLICY) -> dict:
    return {
        "success": True,
        "record_id": record.record_id,
        "aggregate_score": record.aggregate_score,
        "status": record.status.value,
        "gates": [gate.to_dict() for gate in record.gates],
        "hard_stops": [stop.to_dict() for stop in record.hard_stops],
        "duration_ms": record.duration_ms,
        "checks_performed": record.checks_performed,
        "validation_layers": layer_summary(record, policy.layer_pass_score),
    }


def blocked_response(error: ValidationBlockedError) -> dict:
    record = error.record
    return {
        "success": False,
        "blocked": True,
        "record_id": record.record_id,
        "aggregate_score": record.aggregate_score,
        "status": record.status.value,
        "message": error.message,
        "hard_stops": [stop.to_dict() for stop in record.hard_stops],
        "resolution_steps": list(error.resolution_steps),
        "resolution_checklist": list(error.resolution_checklist),
        "duration_ms": record.duration_ms,
    }
