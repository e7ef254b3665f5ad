"""Unit tests for ValidationService - the pipeline end to end.

Runs against the in-memory store so persisted records can be inspected.
"""

from unittest.mock import AsyncMock

import pytest

from aegis_core.errors import NotFoundError, ValidationBlockedError
from aegis_core.protocols import Actor, HardStopSeverity, ValidationStatus
from aegis_core.validation import blocked_response, success_response


def _fixed_id():
    return "rec-1"


class TestValidationServiceSetup:

    def test_requires_every_layer(self, build_service, build_layers):
        with pytest.raises(ValueError, match="exactly one evaluator per layer"):
            build_service(layers=build_layers()[:4])

    def test_rejects_duplicate_layers(self, build_service, build_layers):
        layers = build_layers()
        with pytest.raises(ValueError):
            build_service(layers=layers[:4] + [layers[0]])


class TestValidate:

    @pytest.mark.asyncio
    async def test_healthy_project_passes(self, build_service, store, owner, clock):
        service = build_service(id_factory=_fixed_id)

        record = await service.validate("project", owner, target_id="p-1")

        assert record.status == ValidationStatus.PASSED
        assert record.aggregate_score == 100
        assert [layer.layer_name for layer in record.layers] == [
            "authenticity", "evidence", "governance", "integrity", "security",
        ]
        assert record.hard_stops == ()
        assert record.created_at == clock.now
        assert record.checks_performed == sum(len(layer.diagnostics) for layer in record.layers)

        stored = await store.get("validation_records", "rec-1")
        assert stored["status"] == "passed"
        assert stored["aggregate_score"] == 100

    @pytest.mark.asyncio
    async def test_missing_assessments_warn_without_blocking(self, build_service, store, owner, project_record):
        store.put("projects", project_record(id="p-2"))
        service = build_service()

        record = await service.validate("project", owner, target_id="p-2")

        # governance = round(0.7 * 70) = 49; 25 + 20 + 12.25 + 20 + 10 = 87.25
        assert record.layer("governance").score == 49
        assert record.aggregate_score == 87
        assert record.gate("methodology").status.value == "warning"
        assert record.status == ValidationStatus.PASSED

    @pytest.mark.asyncio
    async def test_same_input_same_record(self, build_service, owner):
        service = build_service(id_factory=_fixed_id)

        first = (await service.validate("project", owner, target_id="p-1")).to_dict()
        second = (await service.validate("project", owner, target_id="p-1")).to_dict()

        first.pop("execution_metadata")
        second.pop("execution_metadata")
        assert first == second

    @pytest.mark.asyncio
    async def test_every_run_appends_a_record(self, build_service, store, owner):
        service = build_service()

        await service.validate("project", owner, target_id="p-1")
        await service.validate("project", owner, target_id="p-1")

        assert store.count("validation_records") == 2

    @pytest.mark.asyncio
    async def test_unknown_target_persists_nothing(self, build_service, store, owner):
        service = build_service()

        with pytest.raises(NotFoundError):
            await service.validate("project", owner, target_id="missing")

        assert store.count("validation_records") == 0


class TestBlocking:
    """Inline draft with no creator, sources, assessments or audit stamps."""

    DRAFT = {"title": "Draft idea"}

    @pytest.mark.asyncio
    async def test_blocked_record_is_persisted_then_raised(self, build_service, store, owner):
        service = build_service(id_factory=_fixed_id)

        with pytest.raises(ValidationBlockedError) as exc_info:
            await service.validate("strategy", owner, inline_target=self.DRAFT)

        error = exc_info.value
        assert error.record.status == ValidationStatus.BLOCKED
        assert error.record.aggregate_score == 56
        assert [item["gate_id"] for item in error.resolution_checklist] == ["methodology"]
        assert error.resolution_steps == ["Methodology adherence below threshold: 40% (minimum: 60%)"]

        stored = await store.get("validation_records", "rec-1")
        assert stored["status"] == "blocked"

    @pytest.mark.asyncio
    async def test_not_enforced_returns_failed_record(self, build_service, owner):
        service = build_service()

        record = await service.validate("strategy", owner, inline_target=self.DRAFT, enforce_hard_stops=False)

        assert record.status == ValidationStatus.FAILED
        assert record.enforce_hard_stops is False
        severities = {stop.gate_id: stop.severity for stop in record.hard_stops}
        assert severities == {
            "methodology": HardStopSeverity.HARD_STOP,
            "security_audit": HardStopSeverity.WARNING,
        }

    @pytest.mark.asyncio
    async def test_blocked_response_shape(self, build_service, owner):
        service = build_service()

        with pytest.raises(ValidationBlockedError) as exc_info:
            await service.validate("strategy", owner, inline_target=self.DRAFT)

        body = blocked_response(exc_info.value)
        assert body["success"] is False
        assert body["blocked"] is True
        assert body["status"] == "blocked"
        assert body["resolution_checklist"][0]["minimum"] == 60
        assert body["resolution_checklist"][0]["observed"] == 40


class TestDegradedCollaborators:

    @pytest.mark.asyncio
    async def test_failing_assessment_lookup_still_produces_record(self, build_service, build_layers, owner, mock_logger):
        failing = AsyncMock()
        failing.list_by_target = AsyncMock(side_effect=TimeoutError("assessments timed out"))
        layers = build_layers()
        layers[2] = type(layers[2])(failing, logger=mock_logger)
        service = build_service(layers=layers)

        record = await service.validate("project", owner, target_id="p-1")

        governance = record.layer("governance")
        assert governance.derived("cross_validation") is False
        assert len(governance.degraded_checks) == 2
        assert record.status == ValidationStatus.PASSED

    @pytest.mark.asyncio
    async def test_failing_permission_check_surfaces_warning(self, build_service):
        permissions = AsyncMock()
        permissions.check = AsyncMock(side_effect=ConnectionError("permission service down"))
        service = build_service(permissions=permissions)
        analyst = Actor(email="analyst@example.com")

        record = await service.validate("project", analyst, target_id="p-1")

        assert record.layer("security").score == 100
        rbac = [stop for stop in record.hard_stops if stop.gate_id == "security_rbac"]
        assert len(rbac) == 1
        assert rbac[0].severity == HardStopSeverity.WARNING
        assert record.status == ValidationStatus.PASSED

    @pytest.mark.asyncio
    async def test_denied_permission_lowers_security(self, build_service):
        permissions = AsyncMock()
        permissions.check = AsyncMock(return_value=False)
        service = build_service(permissions=permissions)

        record = await service.validate("project", Actor(email="analyst@example.com"), target_id="p-1")

        assert record.layer("security").score == 60
        assert record.aggregate_score == 96


class TestSuccessResponse:

    @pytest.mark.asyncio
    async def test_shape(self, build_service, owner):
        service = build_service(id_factory=_fixed_id)
        record = await service.validate("project", owner, target_id="p-1")

        body = success_response(record)

        assert body["success"] is True
        assert body["record_id"] == "rec-1"
        assert body["status"] == "passed"
        assert set(body["validation_layers"]) == {
            "authenticity", "evidence", "governance", "integrity", "security",
        }
        assert body["validation_layers"]["evidence"]["passed"] is True
        assert body["validation_layers"]["evidence"]["data_tier_breakdown"]["tier_1"] == 50
        assert [gate["gate"] for gate in body["gates"]] == [
            "data_quality", "methodology", "crv_validation", "integrity_consistency",
        ]
