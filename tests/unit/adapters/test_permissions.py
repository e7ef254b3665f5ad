"""Unit tests for the permission collaborators."""

import json
from datetime import datetime, timezone

import httpx
import pytest

from aegis_core.adapters import HTTPPermissionChecker, InMemoryEntityStore, RoleBasedPermissionChecker
from aegis_core.protocols import Actor

NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)
ANALYST = Actor(email="analyst@example.com", role="user")


class _Clock:
    def utcnow(self):
        return NOW


def _store(**collections):
    seed = {
        "roles": [
            {
                "id": "r-viewer",
                "name": "viewer",
                "is_active": True,
                "permissions": {"project": {"read": True, "update": False}},
            },
            {
                "id": "r-analyst",
                "name": "analyst",
                "is_active": True,
                "permissions": {"project": {"read": True, "update": True}, "strategy": {"read": True}},
            },
        ],
        "projects": [
            {"id": "p-1", "created_by": "owner@example.com"},
            {"id": "p-2", "created_by": ANALYST.email},
        ],
    }
    seed.update(collections)
    return InMemoryEntityStore(seed=seed)


def _assignment(role_name="analyst", **overrides):
    data = {"id": "ur-1", "user_email": ANALYST.email, "role_name": role_name, "is_active": True}
    data.update(overrides)
    return data


def _grant(**overrides):
    data = {
        "id": "ea-1",
        "entity_id": "p-1",
        "shared_with_email": ANALYST.email,
        "is_active": True,
        "access_level": "viewer",
        "permissions": {"can_view": True, "can_edit": False},
    }
    data.update(overrides)
    return data


# =============================================================================
# RoleBasedPermissionChecker
# =============================================================================

class TestRoleBasedPermissionChecker:

    @pytest.mark.asyncio
    async def test_admin_without_assignment_is_allowed(self, mock_logger):
        checker = RoleBasedPermissionChecker(_store(), _Clock(), logger=mock_logger)

        decision = await checker.explain(Actor(email="root@example.com", role="admin"), "strategy", "delete")

        assert decision.allowed is True
        assert decision.role_name == "admin"

    @pytest.mark.asyncio
    async def test_no_assignment_falls_back_to_viewer(self, mock_logger):
        checker = RoleBasedPermissionChecker(_store(), _Clock(), logger=mock_logger)

        assert await checker.check(ANALYST, "project", "read") is True
        assert await checker.check(ANALYST, "project", "update") is False
        assert await checker.check(ANALYST, "strategy", "read") is False

    @pytest.mark.asyncio
    async def test_assigned_role_applies(self, mock_logger):
        checker = RoleBasedPermissionChecker(_store(user_roles=[_assignment()]), _Clock(), logger=mock_logger)

        assert await checker.check(ANALYST, "strategy", "read") is True

    @pytest.mark.asyncio
    async def test_expired_assignment_denies(self, mock_logger):
        store = _store(user_roles=[_assignment(expires_at="2025-01-01T00:00:00Z")])
        checker = RoleBasedPermissionChecker(store, _Clock(), logger=mock_logger)

        decision = await checker.explain(ANALYST, "project", "read")

        assert decision.allowed is False
        assert decision.reason == "role has expired"

    @pytest.mark.asyncio
    async def test_unknown_role_denies(self, mock_logger):
        store = _store(user_roles=[_assignment(role_name="ghost")])
        checker = RoleBasedPermissionChecker(store, _Clock(), logger=mock_logger)

        decision = await checker.explain(ANALYST, "project", "read")

        assert decision.allowed is False
        assert decision.reason == "role definition not found"

    @pytest.mark.asyncio
    async def test_custom_permissions_override_role(self, mock_logger):
        store = _store(user_roles=[_assignment(custom_permissions={"project": {"update": False}})])
        checker = RoleBasedPermissionChecker(store, _Clock(), logger=mock_logger)

        assert await checker.check(ANALYST, "project", "update") is False

    @pytest.mark.asyncio
    async def test_owner_can_read_own_entity(self, mock_logger):
        checker = RoleBasedPermissionChecker(_store(), _Clock(), logger=mock_logger)

        decision = await checker.explain(ANALYST, "project", "read", entity_id="p-2")

        assert decision.allowed is True
        assert decision.reason == "owner"

    @pytest.mark.asyncio
    async def test_other_entity_needs_grant(self, mock_logger):
        checker = RoleBasedPermissionChecker(_store(), _Clock(), logger=mock_logger)

        decision = await checker.explain(ANALYST, "project", "read", entity_id="p-1")

        assert decision.allowed is False
        assert decision.reason == "no access to this entity"

    @pytest.mark.asyncio
    async def test_grant_allows_matching_flag_only(self, mock_logger):
        store = _store(user_roles=[_assignment()], entity_access=[_grant()])
        checker = RoleBasedPermissionChecker(store, _Clock(), logger=mock_logger)

        assert await checker.check(ANALYST, "project", "read", entity_id="p-1") is True
        assert await checker.check(ANALYST, "project", "update", entity_id="p-1") is False

    @pytest.mark.asyncio
    async def test_expired_grant_is_ignored(self, mock_logger):
        store = _store(entity_access=[_grant(expires_at="2025-05-01T00:00:00Z")])
        checker = RoleBasedPermissionChecker(store, _Clock(), logger=mock_logger)

        assert await checker.check(ANALYST, "project", "read", entity_id="p-1") is False

    @pytest.mark.asyncio
    async def test_resource_and_action_required(self, mock_logger):
        checker = RoleBasedPermissionChecker(_store(), _Clock(), logger=mock_logger)

        assert await checker.check(ANALYST, "", "read") is False


# =============================================================================
# HTTPPermissionChecker
# =============================================================================

class TestHTTPPermissionChecker:

    @pytest.mark.asyncio
    async def test_reads_has_permission(self, mock_logger):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"hasPermission": True, "role": "analyst"})

        checker = HTTPPermissionChecker(
            "http://permissions/check", logger=mock_logger, transport=httpx.MockTransport(handler),
        )

        assert await checker.check(ANALYST, "project", "read", "p-1") is True
        body = json.loads(seen[0].content)
        assert body == {"user_email": ANALYST.email, "resource": "project", "action": "read", "entity_id": "p-1"}
        assert seen[0].headers["X-Actor-Email"] == ANALYST.email

    @pytest.mark.asyncio
    async def test_denial_with_4xx_body(self, mock_logger):
        transport = httpx.MockTransport(lambda request: httpx.Response(403, json={"hasPermission": False}))
        checker = HTTPPermissionChecker("http://permissions/check", logger=mock_logger, transport=transport)

        assert await checker.check(ANALYST, "project", "read") is False

    @pytest.mark.asyncio
    async def test_server_error_raises(self, mock_logger):
        transport = httpx.MockTransport(lambda request: httpx.Response(502, json={"error": "bad gateway"}))
        checker = HTTPPermissionChecker("http://permissions/check", logger=mock_logger, transport=transport)

        with pytest.raises(httpx.HTTPStatusError):
            await checker.check(ANALYST, "project", "read")

    @pytest.mark.asyncio
    async def test_malformed_body_raises(self, mock_logger):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"ok": True}))
        checker = HTTPPermissionChecker("http://permissions/check", logger=mock_logger, transport=transport)

        with pytest.raises(ValueError, match="hasPermission"):
            await checker.check(ANALYST, "project", "read")
