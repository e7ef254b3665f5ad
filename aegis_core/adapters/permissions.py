"""Permission collaborators.

RoleBasedPermissionChecker evaluates role assignments, role definitions
and entity-level grants held in the entity store:

1. Active ``user_roles`` assignment for the actor; an expired one denies.
2. No assignment: an ``admin`` actor is allowed everything, anyone else
   gets the ``viewer`` role.
3. The role definition (``roles``, active) must exist and list the
   resource and action; per-assignment ``custom_permissions`` override it.
4. For a specific entity the owner is allowed; anyone else needs an
   active, unexpired ``entity_access`` grant carrying the matching flag.

HTTPPermissionChecker delegates the same question to a remote service.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import httpx

from aegis_core.logging import get_component_logger
from aegis_core.protocols import Actor, ClockProtocol, EntityStoreProtocol, LoggerProtocol
from aegis_core.utils.datetime import parse_datetime_or_none

DEFAULT_ROLE = "viewer"
ADMIN_ROLE = "admin"

ENTITY_ACCESS_FLAGS: Mapping[str, str] = {
    "read": "can_view",
    "update": "can_edit",
    "delete": "can_delete",
    "share": "can_share",
}

RESOURCE_COLLECTIONS: Mapping[str, str] = {
    "project": "projects",
    "strategy": "strategies",
    "analysis": "analyses",
    "deliverable": "deliverables",
}


@dataclass(frozen=True)
class PermissionDecision:
    allowed: bool
    reason: str
    role_name: Optional[str] = None


class RoleBasedPermissionChecker:
    """PermissionCheckerProtocol over ``user_roles``, ``roles`` and ``entity_access``."""

    def __init__(
        self,
        store: EntityStoreProtocol,
        clock: ClockProtocol,
        logger: Optional[LoggerProtocol] = None,
    ):
        self._store = store
        self._clock = clock
        self._logger = get_component_logger("RoleBasedPermissionChecker", logger)

    async def check(
        self,
        actor: Actor,
        resource: str,
        action: str,
        entity_id: Optional[str] = None,
    ) -> bool:
        decision = await self.explain(actor, resource, action, entity_id)
        self._logger.debug(
            "permission_checked",
            actor=actor.email,
            resource=resource,
            action=action,
            entity_id=entity_id,
            allowed=decision.allowed,
            reason=decision.reason,
        )
        return decision.allowed

    def _expired(self, value: Any) -> bool:
        expires_at = parse_datetime_or_none(value)
        return expires_at is not None and expires_at < self._clock.utcnow()

    async def explain(
        self,
        actor: Actor,
        resource: str,
        action: str,
        entity_id: Optional[str] = None,
    ) -> PermissionDecision:
        """Full decision with the rule that produced it."""
        if not resource or not action:
            return PermissionDecision(False, "resource and action are required")

        assignments = await self._store.filter("user_roles", user_email=actor.email, is_active=True)
        assignment: Optional[Dict[str, Any]] = assignments[0] if assignments else None

        if assignment is not None and self._expired(assignment.get("expires_at")):
            return PermissionDecision(False, "role has expired")

        if assignment is None:
            if actor.role == ADMIN_ROLE:
                return PermissionDecision(True, "built-in admin", role_name=ADMIN_ROLE)
            assignment = {"role_name": DEFAULT_ROLE, "custom_permissions": {}}

        role_name = assignment.get("role_name")
        roles = await self._store.filter("roles", name=role_name, is_active=True)
        if not roles:
            return PermissionDecision(False, "role definition not found", role_name=role_name)

        permissions = roles[0].get("permissions") or {}
        resource_permissions = permissions.get(resource)
        if not resource_permissions:
            return PermissionDecision(False, f"resource '{resource}' not in role permissions", role_name)
        if action not in resource_permissions:
            return PermissionDecision(False, f"action '{action}' not defined for '{resource}'", role_name)

        allowed = bool(resource_permissions[action])
        custom = (assignment.get("custom_permissions") or {}).get(resource) or {}
        if action in custom:
            allowed = bool(custom[action])

        if not allowed:
            return PermissionDecision(False, "permission denied by role", role_name)
        if not entity_id:
            return PermissionDecision(True, "permission granted by role", role_name)

        return await self._entity_decision(actor, resource, action, entity_id, role_name)

    async def _entity_decision(
        self,
        actor: Actor,
        resource: str,
        action: str,
        entity_id: str,
        role_name: Optional[str],
    ) -> PermissionDecision:
        collection = RESOURCE_COLLECTIONS.get(resource, resource)
        entity = await self._store.get(collection, entity_id)
        if entity is not None and entity.get("created_by") == actor.email:
            return PermissionDecision(True, "owner", role_name)

        grants = await self._store.filter("entity_access", entity_id=entity_id, is_active=True)
        grant = next(
            (
                g for g in grants
                if g.get("shared_with_email") == actor.email and not self._expired(g.get("expires_at"))
            ),
            None,
        )
        if grant is None:
            return PermissionDecision(False, "no access to this entity", role_name)

        flag = ENTITY_ACCESS_FLAGS.get(action)
        if flag and not (grant.get("permissions") or {}).get(flag):
            return PermissionDecision(False, f"entity access does not allow '{action}'", role_name)
        return PermissionDecision(True, f"entity access grant ({grant.get('access_level')})", role_name)


class HTTPPermissionChecker:
    """PermissionCheckerProtocol delegating to a remote permission service.

    POSTs ``{user_email, resource, action, entity_id}`` and reads
    ``hasPermission``. Transport errors, 5xx responses and bodies without
    ``hasPermission`` raise; the security layer turns that into its
    degraded default.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        logger: Optional[LoggerProtocol] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._url = url
        self._timeout = timeout
        self._transport = transport
        self._logger = get_component_logger("HTTPPermissionChecker", logger)

    async def check(
        self,
        actor: Actor,
        resource: str,
        action: str,
        entity_id: Optional[str] = None,
    ) -> bool:
        payload = {
            "user_email": actor.email,
            "resource": resource,
            "action": action,
            "entity_id": entity_id,
        }
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await client.post(
                self._url,
                json=payload,
                headers={"X-Actor-Email": actor.email, "X-Actor-Role": actor.role},
            )
        if response.status_code >= 500:
            response.raise_for_status()

        data = response.json()
        if not isinstance(data, dict) or "hasPermission" not in data:
            raise ValueError(f"Permission service response missing hasPermission (status {response.status_code})")

        allowed = bool(data["hasPermission"])
        self._logger.debug(
            "permission_checked_remote",
            actor=actor.email,
            resource=resource,
            action=action,
            allowed=allowed,
        )
        return allowed
