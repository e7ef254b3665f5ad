"""AppContext - unified application context for dependency injection.

One composition root (aegis_core.bootstrap) builds one AppContext;
the gateway and scripts take their services from it, never from globals.

Usage:
    from aegis_core.bootstrap import create_app_context

    app_context = create_app_context()
    record = await app_context.validation_service.validate("project", actor, target_id="p-1")
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, TYPE_CHECKING

from aegis_core.protocols import (
    ClockProtocol,
    EntityStoreProtocol,
    LLMProviderProtocol,
    LoggerProtocol,
    ResultSinkProtocol,
)
from aegis_core.thresholds import (
    DEFAULT_STAGE_GATE_POLICY,
    DEFAULT_VALIDATION_POLICY,
    StageGatePolicy,
    ValidationPolicy,
)
from aegis_core.utils.datetime import utc_now

if TYPE_CHECKING:
    from aegis_core.settings import Settings
    from aegis_core.stage_gates import StageGateEvaluator
    from aegis_core.validation import ValidationService


class SystemClock:
    """Wall-clock ClockProtocol; replace with a fixed clock in tests."""

    def utcnow(self) -> datetime:
        return utc_now()


@dataclass
class AppContext:
    """Concrete application context.

    Attributes:
        settings: Runtime settings
        logger: Root logger
        store: Entity store shared by loader, lookups and sink
        sink: Result sink
        llm: LLM provider behind the judgment collaborator
        validation_service: Five-layer validation pipeline
        stage_gate_evaluator: Gate 0/1/2 evaluator
        validation_policy / stage_gate_policy: Injected policy tables
    """

    settings: "Settings"
    logger: LoggerProtocol
    store: EntityStoreProtocol
    sink: ResultSinkProtocol
    llm: LLMProviderProtocol
    validation_service: "ValidationService"
    stage_gate_evaluator: "StageGateEvaluator"
    clock: ClockProtocol = field(default_factory=SystemClock)
    validation_policy: ValidationPolicy = DEFAULT_VALIDATION_POLICY
    stage_gate_policy: StageGatePolicy = DEFAULT_STAGE_GATE_POLICY

    def get_bound_logger(self, component: str, **extra: Any) -> LoggerProtocol:
        return self.logger.bind(component=component, **extra)


__all__ = ["AppContext", "SystemClock"]
