"""Unit tests for the composition root and logging context."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from aegis_core.adapters import HTTPPermissionChecker, InMemoryEntityStore, RoleBasedPermissionChecker
from aegis_core.bootstrap import create_app_context, create_permission_checker
from aegis_core.context import AppContext, SystemClock
from aegis_core.llm import MockProvider
from aegis_core.logging import get_current_logger, get_request_context, request_scope
from aegis_core.protocols import Actor, RequestContext
from aegis_core.settings import Settings


def _settings(**overrides):
    return Settings(llm_adapter="mock", log_json=False, **overrides)


class TestCreatePermissionChecker:

    def test_role_based_by_default(self, mock_logger):
        checker = create_permission_checker(_settings(), InMemoryEntityStore(), SystemClock(), mock_logger)

        assert isinstance(checker, RoleBasedPermissionChecker)

    def test_http_when_url_configured(self, mock_logger):
        settings = _settings(permission_service_url="http://permissions/check")

        checker = create_permission_checker(settings, InMemoryEntityStore(), SystemClock(), mock_logger)

        assert isinstance(checker, HTTPPermissionChecker)


class TestCreateAppContext:

    def test_defaults(self):
        ctx = create_app_context(settings=_settings())

        assert isinstance(ctx, AppContext)
        assert isinstance(ctx.store, InMemoryEntityStore)
        assert isinstance(ctx.llm, MockProvider)
        assert isinstance(ctx.clock, SystemClock)

    @pytest.mark.asyncio
    async def test_injected_collaborators_are_used(self, store, clock, make_judgment):
        judgment = AsyncMock()
        judgment.judge = AsyncMock(return_value=make_judgment(
            {"resource_planning": 90, "timeline_realism": 90, "risk_mitigation": 90, "accountability": 90}, 90,
        ))
        permissions = AsyncMock()
        permissions.check = AsyncMock(return_value=True)
        ctx = create_app_context(
            settings=_settings(),
            store=store,
            judgment=judgment,
            permissions=permissions,
            clock=clock,
        )

        record = await ctx.validation_service.validate(
            "project", Actor(email="analyst@example.com"), target_id="p-1",
        )
        result = await ctx.stage_gate_evaluator.evaluate(2, "p-1", [{"code": "D7", "content": "roadmap"}])

        permissions.check.assert_awaited_once()
        assert record.created_at == clock.now
        assert result.passed is True
        assert store.count("validation_records") == 1


class TestRequestScope:

    def test_scope_sets_and_restores(self, mock_logger):
        ctx = RequestContext(request_id="req-1", operation="validation")

        with request_scope(ctx, mock_logger):
            assert get_request_context() is ctx
            assert get_current_logger() is mock_logger

        assert get_request_context() is None
        assert get_current_logger() is not mock_logger

    def test_request_context_requires_ids(self):
        with pytest.raises(ValueError):
            RequestContext(request_id=" ", operation="validation")


class TestSystemClock:

    def test_reads_utc_now(self, monkeypatch):
        fixed = datetime(2025, 6, 1, 12, tzinfo=timezone.utc)
        monkeypatch.setattr("aegis_core.context.utc_now", lambda: fixed)

        assert SystemClock().utcnow() is fixed

    def test_is_timezone_aware(self):
        assert SystemClock().utcnow().tzinfo is not None
