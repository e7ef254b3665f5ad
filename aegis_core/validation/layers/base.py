"""Shared machinery for layer evaluators."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Iterable, List, Optional

from aegis_core.logging import get_component_logger
from aegis_core.observability import record_degraded_lookup
from aegis_core.protocols import (
    Actor,
    Diagnostic,
    EntitySnapshot,
    LayerResult,
    LoggerProtocol,
    LookupResult,
    Severity,
)
from aegis_core.thresholds import DEFAULT_VALIDATION_POLICY, ValidationPolicy

BASELINE_SCORE = 100


class LayerEvaluator(ABC):
    """One independent scoring dimension.

    Evaluators start at a baseline of 100 and apply fixed deductions from
    the injected policy. They never write anywhere and never raise for a
    failing optional lookup; see ``guarded_lookup``.
    """

    name: str = ""

    def __init__(
        self,
        policy: ValidationPolicy = DEFAULT_VALIDATION_POLICY,
        logger: Optional[LoggerProtocol] = None,
    ):
        self._policy = policy
        self._deductions = policy.deductions
        self._logger = get_component_logger(f"{self.name}_layer", logger)

    @abstractmethod
    async def evaluate(self, snapshot: EntitySnapshot, actor: Actor) -> LayerResult:
        """Score the snapshot on this layer."""

    def result(
        self,
        score: int,
        diagnostics: Iterable[Diagnostic],
        **derived_fields: Any,
    ) -> LayerResult:
        return LayerResult(
            layer_name=self.name,
            score=score,
            diagnostics=tuple(diagnostics),
            derived_fields=derived_fields,
        )

    async def guarded_lookup(
        self,
        lookup: str,
        call: Optional[Callable[[], Awaitable[Optional[List[Any]]]]],
        timeout: float,
    ) -> LookupResult:
        """Run an optional lookup; failures and timeouts degrade to "not found"."""
        if call is None:
            return LookupResult.absent()
        try:
            items = await asyncio.wait_for(call(), timeout=timeout)
        except Exception as e:
            error = str(e) or type(e).__name__
            self._logger.warning(
                "layer_lookup_degraded",
                layer=self.name,
                lookup=lookup,
                error=error,
            )
            record_degraded_lookup(self.name, lookup)
            return LookupResult.degraded(error)
        return LookupResult.found(items or ())


def check(
    name: str,
    passed: bool,
    failed_severity: Severity = Severity.MEDIUM,
    detail: Optional[str] = None,
    degraded: bool = False,
) -> Diagnostic:
    """Build a diagnostic; passing checks are always low severity."""
    return Diagnostic(
        check_name=name,
        passed=passed,
        severity=Severity.LOW if passed else failed_severity,
        detail=detail,
        degraded=degraded,
    )


__all__ = ["BASELINE_SCORE", "LayerEvaluator", "check"]
