"""Decision engine: hard-stop state plus caller policy to a final status."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

from aegis_core.protocols import HardStop, ValidationStatus


@dataclass(frozen=True)
class Decision:
    status: ValidationStatus
    unresolved: Tuple[HardStop, ...] = ()

    @property
    def is_blocked(self) -> bool:
        return self.status == ValidationStatus.BLOCKED


def decide(hard_stops: Sequence[HardStop], enforce_hard_stops: bool) -> Decision:
    """blocked / failed when any hard_stop is unresolved, passed otherwise.

    Warnings never block.
    """
    unresolved = tuple(stop for stop in hard_stops if stop.is_blocking)
    if not unresolved:
        return Decision(status=ValidationStatus.PASSED)
    status = ValidationStatus.BLOCKED if enforce_hard_stops else ValidationStatus.FAILED
    return Decision(status=status, unresolved=unresolved)


def resolution_steps(hard_stops: Sequence[HardStop]) -> List[str]:
    return [stop.message for stop in hard_stops if stop.resolution_required and not stop.resolved]


def resolution_checklist(hard_stops: Sequence[HardStop]) -> List[Dict[str, Any]]:
    """Actionable items for each unresolved hard stop.

    Each item names the unmet gate, the minimum and the observed value.
    """
    return [
        {
            "gate_id": stop.gate_id,
            "action": f"Raise {stop.gate_id} to at least {stop.threshold}% (currently {stop.observed}%)",
            "minimum": stop.threshold,
            "observed": stop.observed,
        }
        for stop in hard_stops
        if stop.is_blocking
    ]
