"""Security layer: provenance stamp, audit trail and access control.

The permission collaborator is consulted only when the target has a
creator other than the actor and the actor is not an admin. When the
collaborator errors or times out, access defaults to allow: the score is
not reduced, but the check is marked degraded and ``rbac_degraded`` is
set so the gate policy engine can surface a warning.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from aegis_core.observability import record_degraded_lookup
from aegis_core.protocols import (
    Actor,
    EntitySnapshot,
    LayerResult,
    LoggerProtocol,
    PermissionCheckerProtocol,
    Severity,
)
from aegis_core.thresholds import DEFAULT_VALIDATION_POLICY, LAYER_SECURITY, ValidationPolicy
from aegis_core.validation.layers.base import BASELINE_SCORE, LayerEvaluator, check

PERMISSION_CHECK = "permission_check"
READ_ACTION = "read"


class SecurityLayer(LayerEvaluator):
    name = LAYER_SECURITY

    def __init__(
        self,
        permissions: Optional[PermissionCheckerProtocol] = None,
        policy: ValidationPolicy = DEFAULT_VALIDATION_POLICY,
        permission_timeout: float = 5.0,
        logger: Optional[LoggerProtocol] = None,
    ):
        super().__init__(policy=policy, logger=logger)
        self._permissions = permissions
        self._permission_timeout = permission_timeout

    @staticmethod
    def requires_permission_check(snapshot: EntitySnapshot, actor: Actor) -> bool:
        return bool(snapshot.created_by) and snapshot.created_by != actor.email and not actor.is_admin

    async def evaluate(self, snapshot: EntitySnapshot, actor: Actor) -> LayerResult:
        score = BASELINE_SCORE
        diagnostics = []

        data_provenance = bool(snapshot.created_by) and snapshot.created_at is not None
        diagnostics.append(check("data_provenance", data_provenance, failed_severity=Severity.HIGH))
        if not data_provenance:
            score -= self._deductions.missing_provenance_stamp

        audit_trail = bool(snapshot.updated_by) and snapshot.updated_at is not None
        diagnostics.append(check("audit_trail", audit_trail))
        if not audit_trail:
            score -= self._deductions.missing_audit_trail

        rbac_compliance = True
        rbac_degraded = False
        if self._permissions is not None and self.requires_permission_check(snapshot, actor):
            try:
                rbac_compliance = bool(await asyncio.wait_for(
                    self._permissions.check(actor, snapshot.kind.value, READ_ACTION, snapshot.id),
                    timeout=self._permission_timeout,
                ))
            except Exception as e:
                rbac_degraded = True
                error = str(e) or type(e).__name__
                self._logger.warning(
                    "layer_lookup_degraded",
                    layer=self.name,
                    lookup=PERMISSION_CHECK,
                    error=error,
                    fallback="allow",
                )
                record_degraded_lookup(self.name, PERMISSION_CHECK)
            diagnostics.append(check(
                "rbac_compliance",
                rbac_compliance,
                failed_severity=Severity.HIGH,
                detail="permission check unavailable; defaulted to allow" if rbac_degraded else None,
                degraded=rbac_degraded,
            ))
        if not rbac_compliance:
            score -= self._deductions.access_denied

        return self.result(
            score,
            diagnostics,
            data_provenance=data_provenance,
            audit_trail=audit_trail,
            rbac_compliance=rbac_compliance,
            rbac_degraded=rbac_degraded,
        )
